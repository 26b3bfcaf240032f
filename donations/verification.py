"""Donation verification workflow.

A PENDING donation leaves that state exactly once. Approval runs as one
unit of work::

    resolve "Donasi Program" category
    PENDING -> VERIFIED     (conditional UPDATE, must hit one row)
    Program.collected += amount
    insert the income Transaction

Rejection is the conditional UPDATE to CANCELLED alone. Nothing is visible
to other connections until the unit commits; any failure rolls it back and
surfaces as a :class:`~donations.exceptions.VerificationError`.
"""
import logging
import uuid
from dataclasses import dataclass
from functools import partial

from django.db import DatabaseError, transaction
from django.utils import timezone

from finance.categories import CategoryTypeConflict, resolve_category
from finance.ledger import post_donation_income
from finance.models import INCOME

from .exceptions import (
    AlreadyProcessed,
    DonationNotFound,
    InvalidVerificationRequest,
    PersistenceFailure,
    VerificationError,
)
from .funding import credit_program
from .models import Donation, Program
from .signals import announce_processed

logger = logging.getLogger(__name__)

APPROVE = 'approve'
REJECT = 'reject'
ACTIONS = (APPROVE, REJECT)

DONATION_CATEGORY = {
    'name': 'Donasi Program',
    'type': INCOME,
    'description': 'Donasi dari program masjid',
    'color': '#10B981',
    'icon': 'heart',
}


@dataclass(frozen=True)
class VerificationResult:
    id: str
    status: str
    message: str
    summary: str
    receipt_number: str = ''

    def as_dict(self):
        return {'id': self.id, 'status': self.status, 'message': self.message}


def verify_donation(donation_id, action, actor, reject_reason=None, ip_address=None) -> VerificationResult:
    """Approve or reject a pending donation on behalf of ``actor``.

    ``actor`` is the already-authorized administrator; it is only recorded.
    Raises InvalidVerificationRequest, DonationNotFound, AlreadyProcessed or
    PersistenceFailure. No step is retried here; a retried request is safe
    because a processed donation always answers AlreadyProcessed.
    """
    action = (action or '').strip().lower() if isinstance(action, str) else ''
    if action not in ACTIONS:
        raise InvalidVerificationRequest('Action harus "approve" atau "reject"')
    log_extra = {'donation_id': str(donation_id), 'action': action, 'actor_id': getattr(actor, 'pk', None)}

    try:
        with transaction.atomic():
            donation = _load_donation(donation_id)
            if donation.status != Donation.PENDING:
                raise AlreadyProcessed()
            if action == APPROVE:
                result, details = _approve(donation, actor)
            else:
                result, details = _reject(donation, actor, reject_reason)
    except VerificationError as exc:
        logger.warning("Donation verification refused: %s", exc.code, extra=log_extra)
        raise
    except (DatabaseError, Program.DoesNotExist, CategoryTypeConflict) as exc:
        logger.exception("Donation verification rolled back", extra=log_extra)
        raise PersistenceFailure() from exc

    logger.info("Donation %s", result.status.lower(), extra=log_extra)
    transaction.on_commit(partial(
        announce_processed, donation, action.upper(), actor, details, ip_address=ip_address,
    ))
    return result


def _load_donation(donation_id):
    try:
        pk = donation_id if isinstance(donation_id, uuid.UUID) else uuid.UUID(str(donation_id))
    except ValueError:
        raise DonationNotFound() from None
    try:
        return Donation.objects.select_related('program').get(pk=pk)
    except Donation.DoesNotExist:
        raise DonationNotFound() from None


def _transition(donation, target, **fields):
    # The snapshot said PENDING; the UPDATE decides.
    if not Donation.objects.transition(donation.pk, target, **fields):
        raise AlreadyProcessed()
    donation.status = target
    for name, value in fields.items():
        setattr(donation, name, value)


def _approve(donation, actor):
    category = resolve_category(**DONATION_CATEGORY)
    now = timezone.now()
    _transition(donation, Donation.VERIFIED, verified_by=actor, verified_at=now, updated_at=now)
    credit_program(donation.program_id, donation.amount)
    entry = post_donation_income(donation, category, actor, when=now)
    result = VerificationResult(
        id=str(donation.pk),
        status=Donation.VERIFIED,
        message='Donasi berhasil diverifikasi dan tercatat di laporan keuangan',
        summary='Donasi berhasil diverifikasi',
        receipt_number=entry.receipt_number,
    )
    details = {
        'program': donation.program.title,
        'amount': str(donation.amount),
        'donor': donation.ledger_display_name,
        'receiptNumber': entry.receipt_number,
    }
    return result, details


def _reject(donation, actor, reject_reason):
    reason = reject_reason.strip() if isinstance(reject_reason, str) else ''
    if not reason:
        raise InvalidVerificationRequest('Alasan penolakan wajib diisi')
    now = timezone.now()
    _transition(
        donation, Donation.CANCELLED,
        reject_reason=reason, verified_by=actor, verified_at=now, updated_at=now,
    )
    result = VerificationResult(
        id=str(donation.pk),
        status=Donation.CANCELLED,
        message='Donasi telah ditolak',
        summary='Donasi berhasil ditolak',
    )
    details = {
        'program': donation.program.title,
        'amount': str(donation.amount),
        'donor': donation.ledger_display_name,
        'reason': reason,
    }
    return result, details
