import logging

from django.utils import timezone

from .models import Transaction, INCOME

logger = logging.getLogger(__name__)


def post_donation_income(donation, category, actor, when=None):
    """Insert the permanent income entry for a verified donation."""
    when = when or timezone.now()
    entry = Transaction.objects.create(
        type=INCOME,
        amount=donation.amount,
        description=f"Donasi untuk program: {donation.program.title}",
        donor=donation.ledger_display_name,
        date=timezone.localdate(when),
        receipt_number=donation.receipt_number,
        notes=donation.message or '',
        category=category,
        created_by=actor,
        source_donation=donation,
    )
    logger.debug("Posted donation income", extra={'transaction_id': entry.pk, 'receipt_number': entry.receipt_number})
    return entry
