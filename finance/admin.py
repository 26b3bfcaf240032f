from django.contrib import admin

from masjid_site.admin_filters import RecentDateFilter

from .models import Category, Transaction


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ('name', 'type', 'color', 'icon', 'is_active', 'transaction_count')
    list_filter = ('type', 'is_active')
    search_fields = ('name', 'description')

    def transaction_count(self, obj):
        return obj.transactions.count()
    transaction_count.short_description = 'Transaksi'


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ('date', 'type', 'description', 'amount', 'category', 'receipt_number', 'source_donation')
    list_filter = ('type', 'category', RecentDateFilter, 'date')
    search_fields = ('description', 'donor', 'recipient', 'receipt_number', 'notes')
    date_hierarchy = 'date'
    list_select_related = ('category',)
    readonly_fields = ('source_donation', 'created_by', 'created_at', 'updated_at')

    def get_readonly_fields(self, request, obj=None):
        if obj is not None and obj.is_locked:
            # Audit record of a donation approval
            return [f.name for f in self.model._meta.fields]
        return self.readonly_fields

    def has_delete_permission(self, request, obj=None):
        if obj is not None and obj.is_locked:
            return False
        return super().has_delete_permission(request, obj)

    def get_actions(self, request):
        # Bulk delete would bypass the per-object lock
        actions = super().get_actions(request)
        actions.pop('delete_selected', None)
        return actions

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)
