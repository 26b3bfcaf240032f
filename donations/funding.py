"""Program funding ledger.

``Program.collected`` has a single writer, :func:`credit_program`, called
from the approval path of the verification workflow.
"""
import logging
from decimal import Decimal

from django.db.models import F, Q, Sum, Value, DecimalField
from django.db.models.functions import Coalesce

from .models import Donation, Program

logger = logging.getLogger(__name__)


def credit_program(program_id, amount):
    """Add ``amount`` to the program's collected total.

    Issued as ``UPDATE ... SET collected = collected + amount`` so concurrent
    approvals for the same program never overwrite each other.
    Raises Program.DoesNotExist when no row was updated.
    """
    if amount is None or amount <= 0:
        raise ValueError("Program credit must be a positive amount")
    updated = Program.objects.filter(pk=program_id).update(collected=F('collected') + amount)
    if updated != 1:
        raise Program.DoesNotExist(f"Program {program_id} tidak ditemukan")
    logger.debug("Credited program", extra={'program_id': program_id, 'amount': str(amount)})


def with_verified_totals(queryset=None):
    queryset = Program.objects.all() if queryset is None else queryset
    return queryset.annotate(
        verified_total=Coalesce(
            Sum('donations__amount', filter=Q(donations__status=Donation.VERIFIED)),
            Value(Decimal('0')),
            output_field=DecimalField(max_digits=15, decimal_places=2),
        )
    )


def find_discrepancies(queryset=None):
    """Programs whose collected total differs from the sum of their verified donations.

    Returns a list of ``(program, collected, verified_total)`` tuples.
    """
    return [
        (program, program.collected, program.verified_total)
        for program in with_verified_totals(queryset).order_by('pk')
        if program.collected != program.verified_total
    ]
