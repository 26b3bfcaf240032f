from django.views.decorators.http import require_GET

from masjid_site.api import get_pagination_params, paginated_response
from masjid_site.auth import admin_api_required

from .models import ActivityLog


@require_GET
@admin_api_required()
def activity_logs(request):
    page, limit, offset = get_pagination_params(request.GET)
    qs = ActivityLog.objects.all()
    for param in ('entity', 'action'):
        value = request.GET.get(param)
        if value:
            qs = qs.filter(**{param: value})
    total = qs.count()
    items = [
        {
            'id': log.id,
            'action': log.action,
            'entity': log.entity,
            'entityId': log.entity_id or None,
            'entityTitle': log.entity_title or None,
            'userName': log.user_name,
            'userRole': log.user_role,
            'details': log.details,
            'ipAddress': log.ip_address,
            'createdAt': log.created_at.isoformat(),
        }
        for log in qs[offset:offset + limit]
    ]
    return paginated_response(items, total, page, limit)
