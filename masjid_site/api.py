"""JSON envelope shared by every dashboard endpoint.

Success: ``{"success": true, "data": ..., "message": ..., "meta": ...}``
Error:   ``{"success": false, "error": ..., "code": ..., "details": ...}``
"""
import json

from django.conf import settings
from django.http import JsonResponse

UNAUTHORIZED = 'Unauthorized access'
FORBIDDEN = 'Access forbidden'
NOT_FOUND = 'Resource not found'
INVALID_JSON = 'Body harus berupa JSON yang valid'


def success_response(data, message=None, meta=None, status=200):
    body = {'success': True, 'data': data}
    if message:
        body['message'] = message
    if meta is not None:
        body['meta'] = meta
    return JsonResponse(body, status=status)


def error_response(error, status=400, code=None, details=None):
    body = {'success': False, 'error': error}
    if code:
        body['code'] = code
    if details:
        body['details'] = details
    return JsonResponse(body, status=status)


def _as_int(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def get_pagination_params(params):
    """Return (page, limit, offset) from a QueryDict; limit is clamped to 1..MAX_PAGE_SIZE."""
    page = max(1, _as_int(params.get('page'), 1))
    limit = _as_int(params.get('limit'), settings.DEFAULT_PAGE_SIZE)
    limit = min(settings.MAX_PAGE_SIZE, max(1, limit))
    return page, limit, (page - 1) * limit


def paginated_response(data, total, page, limit, message=None, **extra_meta):
    meta = {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': (total + limit - 1) // limit,
    }
    meta.update(extra_meta)
    return success_response(data, message, meta=meta)


def parse_json_body(request):
    """Decode a JSON object body. Raises ValueError on anything else."""
    if not request.body:
        return {}
    payload = json.loads(request.body.decode('utf-8'))
    if not isinstance(payload, dict):
        raise ValueError('JSON body must be an object')
    return payload


def form_error_response(form, status=400):
    errors = {field: [str(e) for e in errs] for field, errs in form.errors.items()}
    first = next(iter(errors.values()), ['Validation error'])[0]
    return error_response(first, status, code='VALIDATION_ERROR', details=errors)


def client_ip(request):
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return request.META.get('HTTP_X_REAL_IP') or request.META.get('REMOTE_ADDR') or None
