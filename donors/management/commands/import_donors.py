# donors/management/commands/import_donors.py
"""
Django management command to import donors from a CSV or Excel file
Usage: python manage.py import_donors path/to/donors.xlsx [--default-password ...] [--dry-run]

Expected columns: full_name, phone, blood_type, location
Optional columns: gender, age, email, last_donation
"""
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import IntegrityError, transaction
from django.utils import timezone
import pandas as pd

from algorithms.blood_types import parse_blood_type
from algorithms.eligibility import in_cooldown

User = get_user_model()

REQUIRED_COLUMNS = ['full_name', 'phone', 'blood_type', 'location']


def read_donor_file(path):
    """Load the sheet into a DataFrame with normalized column names."""
    if str(path).lower().endswith('.csv'):
        df = pd.read_csv(path, dtype={'phone': str})
    else:
        df = pd.read_excel(path, dtype={'phone': str})
    df.columns = [str(c).strip().lower().replace(' ', '_') for c in df.columns]
    return df


def _clean(value, default=''):
    if value is None or pd.isna(value):
        return default
    return str(value).strip()


class Command(BaseCommand):
    help = 'Import donors from a CSV or Excel file'

    def add_arguments(self, parser):
        parser.add_argument('donor_file', type=str, help='Path to the CSV or Excel file')
        parser.add_argument(
            '--default-password',
            default='ChangeMe123!',
            help='Password given to newly created donor accounts',
        )
        parser.add_argument('--dry-run', action='store_true', help='Validate rows without saving')

    def handle(self, *args, **options):
        donor_file = options['donor_file']
        dry_run = options['dry_run']

        self.stdout.write(self.style.WARNING(f'Starting import from {donor_file}...'))

        try:
            df = read_donor_file(donor_file)
        except FileNotFoundError:
            raise CommandError(f'File not found: {donor_file}')

        missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
        if missing:
            raise CommandError(f'Missing required column(s): {", ".join(missing)}')

        self.stdout.write(f'Found {len(df)} rows')
        df = df.dropna(subset=['full_name', 'phone'])

        created_count = 0
        updated_count = 0
        skipped_count = 0
        now = timezone.now()

        for index, row in df.iterrows():
            line = index + 2  # header is line 1

            blood_type = parse_blood_type(_clean(row.get('blood_type')))
            if blood_type is None:
                self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid blood type {row.get("blood_type")}'))
                skipped_count += 1
                continue

            age = None
            if _clean(row.get('age')):
                try:
                    age = int(float(row.get('age')))
                except (TypeError, ValueError):
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid age'))
                    skipped_count += 1
                    continue

            last_donation = None
            if _clean(row.get('last_donation')):
                try:
                    last_donation = pd.to_datetime(row.get('last_donation')).to_pydatetime()
                except (TypeError, ValueError):
                    self.stdout.write(self.style.WARNING(f'Skipping row {line}: Invalid last_donation date'))
                    skipped_count += 1
                    continue
                if timezone.is_naive(last_donation):
                    last_donation = timezone.make_aware(last_donation)

            phone = _clean(row.get('phone'))
            gender = _clean(row.get('gender')).upper()
            fields = {
                'full_name': _clean(row.get('full_name')),
                'location': _clean(row.get('location')),
                'blood_type': blood_type,
                'gender': gender if gender in dict(User.GENDER_CHOICES) else '',
                'age': age,
                'last_donation': last_donation,
                'user_type': 'donor',
            }
            # A recent donation keeps the donor in cool-down
            fields['is_eligible'] = not in_cooldown(User(last_donation=last_donation), now)

            if dry_run:
                self.stdout.write(f'✓ Valid: {fields["full_name"]} ({phone})')
                continue

            try:
                with transaction.atomic():
                    donor = User.objects.filter(phone=phone).first()
                    if donor is None:
                        User.objects.create_user(
                            username=phone,
                            email=_clean(row.get('email')) or None,
                            password=options['default_password'],
                            phone=phone,
                            **fields
                        )
                        created_count += 1
                        self.stdout.write(f'✓ Created: {fields["full_name"]} ({phone})')
                    else:
                        for field, value in fields.items():
                            setattr(donor, field, value)
                        donor.save()
                        updated_count += 1
                        self.stdout.write(f'↻ Updated: {fields["full_name"]} ({phone})')
            except IntegrityError as e:
                skipped_count += 1
                self.stdout.write(self.style.ERROR(f'✗ Error at row {line}: {e}'))

        self.stdout.write(
            self.style.SUCCESS(
                f'\nImport complete!\n'
                f'Created: {created_count}\n'
                f'Updated: {updated_count}\n'
                f'Skipped: {skipped_count}'
            )
        )

        if created_count:
            self.stdout.write(
                self.style.WARNING(
                    'NOTE: New donor accounts use the default password. '
                    'Donors should change it on first login.'
                )
            )
