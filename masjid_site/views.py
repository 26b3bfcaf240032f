from django.middleware.csrf import get_token
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET

from .api import success_response


@require_GET
@ensure_csrf_cookie
def csrf_token(request):
    """Hand the CSRF token to script clients; send it back as the X-CSRFToken header on POST/PUT/DELETE."""
    return success_response({'csrfToken': get_token(request)})
