from django.contrib import admin

from masjid_site.admin_filters import RecentDateFilter

from .models import ActivityLog


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'user_name', 'action', 'entity', 'entity_title', 'ip_address')
    list_filter = ('action', 'entity', RecentDateFilter)
    search_fields = ('entity_title', 'entity_id', 'user_name')
    date_hierarchy = 'created_at'

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
