from django.urls import path
from . import views

app_name = 'audit'

urlpatterns = [
    path('api/admin/activity-logs/', views.activity_logs, name='activity_logs'),
]
