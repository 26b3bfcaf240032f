import logging

from django.dispatch import receiver

from donations.signals import donation_processed
from masjid_site.auth import ROLE_LABELS, display_name, user_role

from .models import ActivityLog

logger = logging.getLogger(__name__)


def format_rupiah(amount):
    return f"{int(amount):,}".replace(',', '.')


@receiver(donation_processed)
def record_donation_activity(sender, donation, action, actor, details, ip_address=None, **kwargs):
    role = user_role(actor) or ''
    entry = ActivityLog.objects.create(
        action=action,
        entity='Donation',
        entity_id=str(donation.pk),
        entity_title=f"Donasi {donation.ledger_display_name} - Rp {format_rupiah(donation.amount)}",
        user=actor,
        user_name=f"{ROLE_LABELS.get(role, 'User')} ({display_name(actor)})",
        user_role=role,
        details=details or {},
        ip_address=ip_address,
    )
    logger.debug("Activity logged", extra={'activity_id': entry.pk, 'entity_id': entry.entity_id})
    return entry
