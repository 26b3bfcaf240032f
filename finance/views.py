import logging

from django.db.models import Count
from django.utils.dateparse import parse_date
from django.views.decorators.http import require_http_methods

from masjid_site.api import (
    error_response,
    form_error_response,
    get_pagination_params,
    paginated_response,
    parse_json_body,
    success_response,
    INVALID_JSON,
)
from masjid_site.auth import SUPER_ADMIN, admin_api_required, display_name

from .forms import CategoryForm, TransactionForm
from .models import Category, Transaction, TYPE_CHOICES

logger = logging.getLogger(__name__)

TRANSACTION_FIELDS = {
    'type': 'type',
    'amount': 'amount',
    'description': 'description',
    'donor': 'donor',
    'recipient': 'recipient',
    'date': 'date',
    'categoryId': 'category',
    'receiptNumber': 'receipt_number',
    'notes': 'notes',
}
LOCKED_MESSAGE = 'Transaksi hasil verifikasi donasi tidak dapat diubah atau dihapus'


def _category_payload(c):
    return {
        'id': c.id,
        'name': c.name,
        'type': c.type,
        'description': c.description,
        'color': c.color,
        'icon': c.icon,
        'isActive': c.is_active,
    }


def _transaction_payload(t):
    return {
        'id': t.id,
        'type': t.type,
        'amount': t.amount,
        'description': t.description,
        'donor': t.donor or None,
        'recipient': t.recipient or None,
        'date': t.date.isoformat(),
        'receiptNumber': t.receipt_number or None,
        'notes': t.notes or None,
        'category': {'id': t.category.id, 'name': t.category.name, 'color': t.category.color, 'icon': t.category.icon},
        'createdBy': {'id': t.created_by.pk, 'name': display_name(t.created_by)} if t.created_by else None,
        'sourceDonationId': str(t.source_donation_id) if t.source_donation_id else None,
        'locked': t.is_locked,
        'createdAt': t.created_at.isoformat(),
        'updatedAt': t.updated_at.isoformat(),
    }


def _form_data(payload, instance=None):
    data = {}
    if instance is not None:
        data = {
            'type': instance.type,
            'amount': instance.amount,
            'description': instance.description,
            'donor': instance.donor,
            'recipient': instance.recipient,
            'date': instance.date,
            'category': instance.category_id,
            'receipt_number': instance.receipt_number,
            'notes': instance.notes,
        }
    for key, field in TRANSACTION_FIELDS.items():
        if key in payload:
            data[field] = payload[key]
    return data


@require_http_methods(['GET', 'POST'])
@admin_api_required()
def categories(request):
    if request.method == 'POST':
        try:
            payload = parse_json_body(request)
        except ValueError:
            return error_response(INVALID_JSON, 400, code='VALIDATION_ERROR')
        form = CategoryForm(payload)
        if not form.is_valid():
            return form_error_response(form)
        category = form.save()
        return success_response(_category_payload(category), 'Kategori berhasil dibuat', status=201)

    qs = Category.objects.annotate(transaction_count=Count('transactions')).order_by('name')
    type_ = request.GET.get('type')
    if type_ in dict(TYPE_CHOICES):
        qs = qs.filter(type=type_)
    data = []
    for c in qs:
        item = _category_payload(c)
        item['transactionCount'] = c.transaction_count
        data.append(item)
    return success_response(data)


@require_http_methods(['GET', 'POST'])
@admin_api_required()
def transactions(request):
    if request.method == 'POST':
        try:
            payload = parse_json_body(request)
        except ValueError:
            return error_response(INVALID_JSON, 400, code='VALIDATION_ERROR')
        form = TransactionForm(_form_data(payload))
        if not form.is_valid():
            return form_error_response(form)
        entry = form.save(commit=False)
        entry.created_by = request.user
        entry.save()
        logger.info("Manual transaction recorded", extra={'transaction_id': entry.pk, 'actor_id': request.user.pk})
        return success_response(_transaction_payload(entry), 'Transaksi berhasil dibuat', status=201)

    params = request.GET
    page, limit, offset = get_pagination_params(params)
    qs = Transaction.objects.select_related('category', 'created_by')
    if params.get('type') in dict(TYPE_CHOICES):
        qs = qs.filter(type=params['type'])
    category_id = params.get('categoryId')
    if category_id:
        if not category_id.isdigit():
            return error_response('categoryId tidak valid', 400, code='VALIDATION_ERROR')
        qs = qs.filter(category_id=category_id)
    search = params.get('search', '').strip()
    if search:
        qs = qs.filter(description__icontains=search)
    for key, lookup in (('startDate', 'date__gte'), ('endDate', 'date__lte')):
        raw = params.get(key)
        if not raw:
            continue
        try:
            value = parse_date(raw)
        except ValueError:
            value = None
        if value is None:
            return error_response(f'{key} harus berformat YYYY-MM-DD', 400, code='VALIDATION_ERROR')
        qs = qs.filter(**{lookup: value})
    total = qs.count()
    items = [_transaction_payload(t) for t in qs[offset:offset + limit]]
    return paginated_response(items, total, page, limit)


@require_http_methods(['GET', 'PUT', 'DELETE'])
@admin_api_required(roles=(SUPER_ADMIN,))
def transaction_detail(request, pk):
    entry = Transaction.objects.select_related('category', 'created_by').filter(pk=pk).first()
    if entry is None:
        return error_response('Transaksi tidak ditemukan', 404, code='NOT_FOUND')
    if request.method == 'GET':
        return success_response(_transaction_payload(entry))

    if entry.is_locked:
        return error_response(LOCKED_MESSAGE, 409, code='LOCKED')

    if request.method == 'DELETE':
        entry.delete()
        logger.info("Transaction deleted", extra={'transaction_id': pk, 'actor_id': request.user.pk})
        return success_response({'id': pk}, 'Transaksi berhasil dihapus')

    try:
        payload = parse_json_body(request)
    except ValueError:
        return error_response(INVALID_JSON, 400, code='VALIDATION_ERROR')
    form = TransactionForm(_form_data(payload, entry), instance=entry)
    if not form.is_valid():
        return form_error_response(form)
    entry = form.save()
    return success_response(_transaction_payload(entry), 'Transaksi berhasil diperbarui')
