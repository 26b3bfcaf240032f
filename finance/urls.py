from django.urls import path
from . import views

app_name = 'finance'

urlpatterns = [
    path('api/admin/categories/', views.categories, name='categories'),
    path('api/admin/transactions/', views.transactions, name='transactions'),
    path('api/admin/transactions/<int:pk>/', views.transaction_detail, name='transaction_detail'),
]
