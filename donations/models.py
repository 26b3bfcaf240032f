import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.text import slugify

ANONYMOUS_DONOR = 'Hamba Allah'
UNNAMED_DONOR = 'Anonim'
RECEIPT_PREFIX = 'DON-'


class Program(models.Model):
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=220, unique=True, blank=True)
    description = models.TextField(blank=True)
    target = models.DecimalField(max_digits=15, decimal_places=2)
    # Only ever moved by donations.funding.credit_program
    collected = models.DecimalField(max_digits=15, decimal_places=2, default=0, editable=False)
    is_active = models.BooleanField(default=True)
    start_date = models.DateField(default=timezone.localdate)
    end_date = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ('-created_at',)
        verbose_name = 'Program'
        verbose_name_plural = 'Program'

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug and self.title:
            base = slugify(self.title)[:200] or 'program'
            candidate = base
            i = 1
            while Program.objects.filter(slug=candidate).exclude(pk=self.pk).exists():
                candidate = f"{base}-{i}"[:220]
                i += 1
            self.slug = candidate
        super().save(*args, **kwargs)

    @property
    def progress(self):
        if not self.target:
            return 0
        return round(self.collected / self.target * 100)


class DonationQuerySet(models.QuerySet):

    def transition(self, pk, target, **fields):
        """Move one PENDING donation to ``target``.

        The status guard is part of the UPDATE itself, so of two racing
        callers only one sees an affected row. Returns True for that caller.
        """
        if target not in Donation.TRANSITIONS[Donation.PENDING]:
            raise ValueError(f"Transition PENDING -> {target} is not allowed")
        updated = self.filter(pk=pk, status=Donation.PENDING).update(status=target, **fields)
        return updated == 1


class Donation(models.Model):
    PENDING = 'PENDING'
    VERIFIED = 'VERIFIED'
    CANCELLED = 'CANCELLED'
    STATUS_CHOICES = [
        (PENDING, 'Menunggu verifikasi'),
        (VERIFIED, 'Terverifikasi'),
        (CANCELLED, 'Ditolak'),
    ]
    # VERIFIED and CANCELLED are terminal
    TRANSITIONS = {
        PENDING: (VERIFIED, CANCELLED),
        VERIFIED: (),
        CANCELLED: (),
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    program = models.ForeignKey(Program, on_delete=models.PROTECT, related_name='donations')
    amount = models.DecimalField(max_digits=15, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    donor_name = models.CharField(max_length=150, blank=True)
    donor_email = models.EmailField(blank=True, null=True)
    donor_phone = models.CharField(max_length=30, blank=True, null=True)
    is_anonymous = models.BooleanField(default=False)
    message = models.TextField(blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=PENDING, db_index=True)
    payment_method = models.CharField(max_length=20, default='QRIS')
    payment_proof = models.ImageField(upload_to='donations/proofs/%Y/%m/')
    reject_reason = models.TextField(blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='verified_donations',
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = DonationQuerySet.as_manager()

    class Meta:
        ordering = ('-created_at',)
        verbose_name = 'Donasi'
        verbose_name_plural = 'Donasi'

    def __str__(self):
        return f"Donasi {self.ledger_display_name} - Rp {self.amount} - {self.status}"

    @property
    def is_pending(self):
        return self.status == self.PENDING

    @property
    def ledger_display_name(self):
        if self.is_anonymous:
            return ANONYMOUS_DONOR
        return self.donor_name or UNNAMED_DONOR

    @property
    def receipt_number(self):
        return f"{RECEIPT_PREFIX}{str(self.pk)[-8:].upper()}"
