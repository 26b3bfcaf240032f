from django.urls import path
from . import views

app_name = 'donations'

urlpatterns = [
    path('api/donations/', views.submit_donation, name='submit'),
    path('api/admin/donations/', views.donation_list, name='admin_list'),
    path('api/admin/donations/stats/', views.donation_stats, name='admin_stats'),
    path('api/admin/donations/<str:donation_id>/', views.donation_detail, name='admin_detail'),
    path('api/admin/donations/<str:donation_id>/verify/', views.verify, name='verify'),
]
