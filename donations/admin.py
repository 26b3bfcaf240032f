from django.contrib import admin, messages

from masjid_site.admin_filters import RecentDateFilter

from .exceptions import VerificationError
from .models import Donation, Program
from .verification import APPROVE, verify_donation


@admin.register(Program)
class ProgramAdmin(admin.ModelAdmin):
    list_display = ('title', 'target', 'collected', 'progress_display', 'is_active', 'start_date', 'end_date')
    list_filter = ('is_active', 'start_date')
    search_fields = ('title', 'description')
    prepopulated_fields = {'slug': ('title',)}
    readonly_fields = ('collected', 'created_at', 'updated_at')
    fieldsets = (
        (None, {'fields': ('title', 'slug', 'description', 'is_active')}),
        ('Target', {
            'fields': ('target', 'collected'),
            'description': "Dana terkumpul hanya bertambah melalui verifikasi donasi.",
        }),
        ('Periode', {'fields': ('start_date', 'end_date')}),
        ('Meta', {'fields': ('created_at', 'updated_at')}),
    )

    def progress_display(self, obj):
        return f"{obj.progress}%"
    progress_display.short_description = 'Progres'


class DonationDateFilter(RecentDateFilter):
    title = 'Dikirim'


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ('id', 'program', 'amount', 'donor_display', 'status', 'created_at', 'verified_by', 'verified_at')
    list_filter = ('status', 'program', DonationDateFilter)
    search_fields = ('donor_name', 'donor_email', 'donor_phone', 'message')
    date_hierarchy = 'created_at'
    ordering = ('-created_at',)
    list_select_related = ('program', 'verified_by')
    actions = ['approve_selected']

    def get_readonly_fields(self, request, obj=None):
        # Status and audit fields only change through the verification workflow
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False

    def donor_display(self, obj: Donation):
        return obj.ledger_display_name
    donor_display.short_description = 'Donatur'

    def approve_selected(self, request, queryset):
        skipped = queryset.exclude(status=Donation.PENDING).count()
        approved = 0
        for donation in queryset.filter(status=Donation.PENDING):
            try:
                verify_donation(donation.pk, APPROVE, request.user)
            except VerificationError as exc:
                self.message_user(request, f"{donation.receipt_number}: {exc.message}", level=messages.ERROR)
            else:
                approved += 1
        msg = f"{approved} donasi diverifikasi."
        if skipped:
            msg += f" {skipped} donasi dilewati karena sudah diproses."
        self.message_user(request, msg)
    approve_selected.short_description = "Verifikasi donasi terpilih"
