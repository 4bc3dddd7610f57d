# notifications/messages.py
"""
WhatsApp message bodies. Plain text with WhatsApp *bold* markup.
"""
from django.conf import settings

from algorithms.blood_types import format_blood_type


def _signature():
    return f"- {getattr(settings, 'APP_NAME', 'Badbaado Blood Donation App')}"


def new_request_for_admin(admin, blood_request):
    return f"""
*NEW BLOOD REQUEST - APPROVAL NEEDED*

Hello {admin.full_name or admin.username},

*Request ID:* #{blood_request.id}
*Patient:* {blood_request.full_name}
*Blood Type:* {format_blood_type(blood_request.blood_type)}
*Location:* {blood_request.location}
*Hospital:* {blood_request.hospital or 'N/A'}
*Urgency:* {blood_request.urgency}
*Donors Needed:* {blood_request.max_donors}

Please review and approve or reject this request.

{_signature()}
""".strip()


def donor_request_alert(donor, blood_request):
    return f"""
*URGENT: BLOOD DONOR NEEDED*

Dear {donor.full_name},

A patient near you needs your blood type.

*Blood Type:* {format_blood_type(blood_request.blood_type)}
*Location:* {blood_request.location}
*Hospital:* {blood_request.hospital or 'N/A'}
*Urgency:* {blood_request.urgency}
*Contact:* {blood_request.phone}

Open the app to respond to request #{blood_request.id}.
Your donation can save a life!

{_signature()}
""".strip()


def request_approved(blood_request, donors_matched):
    return f"""
*YOUR BLOOD REQUEST WAS APPROVED*

Dear {blood_request.full_name},

Request #{blood_request.id} for {format_blood_type(blood_request.blood_type)} blood has been approved.
We have alerted {donors_matched} eligible donor(s) in {blood_request.location}.
You will receive a message as soon as a donor responds.

{_signature()}
""".strip()


def request_rejected(blood_request):
    return f"""
*YOUR BLOOD REQUEST WAS NOT APPROVED*

Dear {blood_request.full_name},

Request #{blood_request.id} was rejected.
*Reason:* {blood_request.reject_reason}

{_signature()}
""".strip()


def request_completed(blood_request):
    return f"""
*YOUR BLOOD REQUEST IS COMPLETE*

Dear {blood_request.full_name},

Request #{blood_request.id} has reached the number of donors needed.
Thank you for using our service.

{_signature()}
""".strip()


def donor_responded(blood_request, donor):
    return f"""
*A DONOR HAS RESPONDED TO YOUR REQUEST!*

*Donor Details:*
*Name:* {donor.full_name}
*Phone:* {donor.phone}
*Blood Type:* {format_blood_type(donor.blood_type)}
*Location:* {donor.location}

*Your Request:*
*Blood Type:* {format_blood_type(blood_request.blood_type)}
*Location:* {blood_request.location}

Please contact the donor to arrange the donation.

{_signature()}
""".strip()


def donation_thank_you(donation):
    return f"""
*THANK YOU FOR DONATING BLOOD!*

Dear {donation.donor.full_name},

Your donation for request #{donation.blood_request_id} is recorded.
Total donations: {donation.donor.total_donations}
You can donate again in {getattr(settings, 'DONATION_COOLDOWN_DAYS', 90)} days.

{_signature()}
""".strip()
