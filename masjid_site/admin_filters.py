from datetime import timedelta

from django.contrib import admin
from django.utils import timezone


class RecentDateFilter(admin.SimpleListFilter):
    title = 'Periode'
    parameter_name = 'periode'
    date_field = 'created_at'

    def lookups(self, request, model_admin):
        return [
            ('1d', '24 jam terakhir'),
            ('7d', '7 hari terakhir'),
            ('30d', '30 hari terakhir'),
        ]

    def queryset(self, request, queryset):
        days = {'1d': 1, '7d': 7, '30d': 30}.get(self.value())
        if not days:
            return queryset
        since = timezone.now() - timedelta(days=days)
        return queryset.filter(**{f'{self.date_field}__gte': since})
