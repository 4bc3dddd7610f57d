from datetime import timedelta

import pytest
from django.utils import timezone

from algorithms.blood_types import format_blood_type, parse_blood_type
from algorithms.eligibility import days_until_eligible, is_donor_eligible
from algorithms.matching import find_eligible_donors

pytestmark = pytest.mark.django_db


# ============================================
# BLOOD TYPES
# ============================================
def test_parse_blood_type_accepts_label_and_code():
    assert parse_blood_type('O+') == 'O_POSITIVE'
    assert parse_blood_type('ab-') == 'AB_NEGATIVE'
    assert parse_blood_type('B_POSITIVE') == 'B_POSITIVE'
    assert parse_blood_type('C+') is None
    assert parse_blood_type('') is None


def test_format_blood_type():
    assert format_blood_type('A_NEGATIVE') == 'A-'
    assert format_blood_type(None) == ''


# ============================================
# ELIGIBILITY PREDICATE
# ============================================
def test_matching_donor_is_eligible(donor, blood_request):
    assert is_donor_eligible(donor, blood_request)


@pytest.mark.parametrize('blood_type', ['O_NEGATIVE', 'A_POSITIVE', 'AB_POSITIVE'])
def test_blood_type_mismatch_is_never_eligible(make_donor, blood_request, blood_type):
    donor = make_donor(blood_type=blood_type)
    assert donor.is_active and donor.is_eligible
    assert not is_donor_eligible(donor, blood_request)


def test_location_is_case_insensitive_substring(make_donor, make_request):
    blood_request = make_request(location='mogadishu')
    assert is_donor_eligible(make_donor(location='Hodan, Mogadishu'), blood_request)
    assert not is_donor_eligible(make_donor(location='Hargeisa'), blood_request)


def test_inactive_or_flagged_donor_is_not_eligible(make_donor, blood_request):
    assert not is_donor_eligible(make_donor(is_active=False), blood_request)
    assert not is_donor_eligible(make_donor(is_eligible=False), blood_request)


def test_recent_donation_blocks_even_when_flags_are_true(make_donor, blood_request):
    now = timezone.now()
    donor = make_donor(last_donation=now - timedelta(days=30), is_eligible=True)
    assert not is_donor_eligible(donor, blood_request, now=now)


def test_cooldown_boundary(make_donor, blood_request):
    now = timezone.now()
    exactly_90 = make_donor(last_donation=now - timedelta(days=90))
    past_90 = make_donor(last_donation=now - timedelta(days=90, seconds=1))
    assert not is_donor_eligible(exactly_90, blood_request, now=now)
    assert is_donor_eligible(past_90, blood_request, now=now)


def test_days_until_eligible(make_donor):
    now = timezone.now()
    assert days_until_eligible(make_donor(), now) == 0
    assert days_until_eligible(make_donor(last_donation=now - timedelta(days=30)), now) == 60
    assert days_until_eligible(make_donor(last_donation=now - timedelta(days=120)), now) == 0


# ============================================
# DONOR MATCHER
# ============================================
def test_matcher_filters_with_the_same_rules(make_donor, blood_request):
    now = timezone.now()
    match = make_donor(location='Mogadishu')
    make_donor(blood_type='A_POSITIVE')
    make_donor(location='Kismayo')
    make_donor(is_active=False)
    make_donor(last_donation=now - timedelta(days=10))

    donors = find_eligible_donors(blood_request, now=now)
    assert donors == [match]


def test_matcher_orders_newest_first_and_caps(make_donor, blood_request, settings):
    first = make_donor()
    second = make_donor()
    third = make_donor()

    assert find_eligible_donors(blood_request) == [third, second, first]
    assert find_eligible_donors(blood_request, limit=2) == [third, second]

    settings.DONOR_MATCH_LIMIT = 1
    assert find_eligible_donors(blood_request) == [third]
    assert len(find_eligible_donors(blood_request, unlimited=True)) == 3


def test_matcher_excludes_admin_accounts(admin_user, blood_request):
    admin_user.blood_type = 'O_POSITIVE'
    admin_user.location = 'Mogadishu'
    admin_user.is_eligible = True
    admin_user.save()
    assert find_eligible_donors(blood_request) == []


def test_matcher_returns_empty_list_when_nobody_qualifies(blood_request):
    assert find_eligible_donors(blood_request) == []


def test_days_until_eligible_rounds_up_partial_days(make_donor):
    now = timezone.now()
    donor = make_donor(last_donation=now - timedelta(days=30) + timedelta(microseconds=5))
    assert days_until_eligible(donor, now) == 61

    donor = make_donor(last_donation=now - timedelta(days=89, hours=23, microseconds=1))
    assert days_until_eligible(donor, now) == 1


def test_search_donors_without_a_request(make_donor):
    from algorithms.matching import search_donors

    match = make_donor(blood_type='B_NEGATIVE', location='Hodan, Mogadishu')
    make_donor(blood_type='B_NEGATIVE', location='Garowe')
    make_donor(blood_type='B_NEGATIVE', location='Mogadishu', last_donation=timezone.now() - timedelta(days=3))

    assert search_donors('B_NEGATIVE', 'mogadishu') == [match]
