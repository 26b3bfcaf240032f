from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

INCOME = 'INCOME'
EXPENSE = 'EXPENSE'
TYPE_CHOICES = [
    (INCOME, 'Pemasukan'),
    (EXPENSE, 'Pengeluaran'),
]


class Category(models.Model):
    INCOME = INCOME
    EXPENSE = EXPENSE
    TYPE_CHOICES = TYPE_CHOICES

    # Unique across both types: the name alone identifies a category
    name = models.CharField(max_length=100, unique=True)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    description = models.TextField(blank=True)
    color = models.CharField(max_length=20, default='#10B981')
    icon = models.CharField(max_length=40, default='circle')
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ('name',)
        verbose_name = 'Kategori'
        verbose_name_plural = 'Kategori'

    def __str__(self):
        return f"{self.name} ({self.get_type_display()})"


class Transaction(models.Model):
    INCOME = INCOME
    EXPENSE = EXPENSE
    TYPE_CHOICES = TYPE_CHOICES

    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=15, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    description = models.CharField(max_length=255)
    donor = models.CharField(max_length=150, blank=True)
    recipient = models.CharField(max_length=150, blank=True)
    date = models.DateField(default=timezone.localdate)
    receipt_number = models.CharField(max_length=50, blank=True)
    notes = models.TextField(blank=True)
    category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name='transactions')
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_transactions',
    )
    # Set only for entries posted by donation verification; such entries are never edited.
    source_donation = models.OneToOneField(
        'donations.Donation',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        editable=False,
        related_name='ledger_entry',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-date', '-created_at')
        verbose_name = 'Transaksi'
        verbose_name_plural = 'Transaksi'

    def __str__(self):
        return f"[{self.get_type_display()}] {self.description} - Rp {self.amount}"

    @property
    def is_locked(self):
        return self.source_donation_id is not None

    def save(self, *args, **kwargs):
        # Donor and recipient are mutually exclusive by type
        if self.type == INCOME:
            self.recipient = ''
        elif self.type == EXPENSE:
            self.donor = ''
        super().save(*args, **kwargs)
