from django.contrib import admin
from django.urls import path, include
from django.views.generic import RedirectView
from django.conf import settings
from django.conf.urls.static import static

from . import views

urlpatterns = [
    path('admin/', admin.site.urls),
    path('gestion/', RedirectView.as_view(url='/admin/login/', permanent=False)),
    path('api/csrf/', views.csrf_token, name='csrf_token'),
    path('', include('donations.urls', namespace='donations')),
    path('', include('finance.urls', namespace='finance')),
    path('', include('audit.urls', namespace='audit')),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
