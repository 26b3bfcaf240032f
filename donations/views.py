import logging
import uuid
from decimal import Decimal

from django.db.models import Count, Q, Sum
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from masjid_site.api import (
    client_ip,
    error_response,
    form_error_response,
    get_pagination_params,
    paginated_response,
    parse_json_body,
    success_response,
    INVALID_JSON,
)
from masjid_site.auth import admin_api_required, display_name

from .exceptions import VerificationError
from .forms import DonationSubmissionForm
from .models import Donation
from .verification import verify_donation

logger = logging.getLogger(__name__)


def _user_summary(user):
    if user is None:
        return None
    return {'id': user.pk, 'name': display_name(user)}


def _donation_payload(d):
    return {
        'id': str(d.id),
        'donorName': d.donor_name,
        'donorEmail': d.donor_email,
        'donorPhone': d.donor_phone,
        'amount': d.amount,
        'message': d.message,
        'isAnonymous': d.is_anonymous,
        'status': d.status,
        'paymentMethod': d.payment_method,
        'paymentProof': d.payment_proof.url if d.payment_proof else None,
        'rejectReason': d.reject_reason or None,
        'program': {'id': d.program.id, 'title': d.program.title, 'slug': d.program.slug},
        'verifiedBy': _user_summary(d.verified_by),
        'verifiedAt': d.verified_at.isoformat() if d.verified_at else None,
        'createdAt': d.created_at.isoformat(),
    }


@csrf_exempt
@require_POST
def submit_donation(request):
    form = DonationSubmissionForm(request.POST, request.FILES)
    if not form.is_valid():
        if form.has_error('program', code='invalid_choice'):
            return error_response('Program tidak ditemukan', 404, code='NOT_FOUND')
        return form_error_response(form)
    donation = form.save()
    logger.info("Donation submitted", extra={'donation_id': str(donation.pk), 'program_id': donation.program_id})
    return success_response({
        'id': str(donation.pk),
        'status': donation.status,
        'message': 'Donasi berhasil disubmit. Mohon tunggu verifikasi dari admin.',
    }, 'Donasi berhasil disubmit', status=201)


@require_GET
@admin_api_required()
def donation_list(request):
    page, limit, offset = get_pagination_params(request.GET)
    qs = Donation.objects.select_related('program', 'verified_by')
    status = request.GET.get('status')
    if status in dict(Donation.STATUS_CHOICES):
        qs = qs.filter(status=status)
    program_id = request.GET.get('programId')
    if program_id:
        if not program_id.isdigit():
            return error_response('programId tidak valid', 400, code='VALIDATION_ERROR')
        qs = qs.filter(program_id=program_id)
    total = qs.count()
    items = [_donation_payload(d) for d in qs.order_by('-created_at')[offset:offset + limit]]
    pending_count = Donation.objects.filter(status=Donation.PENDING).count()
    return paginated_response(items, total, page, limit, pendingCount=pending_count)


@require_GET
@admin_api_required()
def donation_detail(request, donation_id):
    try:
        donation = Donation.objects.select_related('program', 'verified_by').get(pk=uuid.UUID(donation_id))
    except (ValueError, Donation.DoesNotExist):
        return error_response('Donasi tidak ditemukan', 404, code='NOT_FOUND')
    payload = _donation_payload(donation)
    program = donation.program
    payload['program'].update({
        'target': program.target,
        'collected': program.collected,
        'progress': program.progress,
    })
    payload['updatedAt'] = donation.updated_at.isoformat()
    return success_response(payload)


@require_GET
@admin_api_required()
def donation_stats(request):
    totals = Donation.objects.aggregate(
        pending=Count('pk', filter=Q(status=Donation.PENDING)),
        verified=Count('pk', filter=Q(status=Donation.VERIFIED)),
        cancelled=Count('pk', filter=Q(status=Donation.CANCELLED)),
        total_verified=Sum('amount', filter=Q(status=Donation.VERIFIED)),
    )
    return success_response({
        'pending': totals['pending'],
        'verified': totals['verified'],
        'cancelled': totals['cancelled'],
        'totalVerifiedAmount': totals['total_verified'] or Decimal('0'),
    })


@require_POST
@admin_api_required()
def verify(request, donation_id):
    try:
        payload = parse_json_body(request)
    except ValueError:
        return error_response(INVALID_JSON, 400, code='VALIDATION_ERROR')
    try:
        result = verify_donation(
            donation_id,
            payload.get('action'),
            request.user,
            reject_reason=payload.get('rejectReason'),
            ip_address=client_ip(request),
        )
    except VerificationError as exc:
        return error_response(exc.message, exc.status_code, code=exc.code)
    return success_response(result.as_dict(), result.summary)
