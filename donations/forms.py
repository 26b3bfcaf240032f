from django import forms
from django.conf import settings

from .models import Donation, Program


class DonationSubmissionForm(forms.ModelForm):
    """Public form: a donor declares a donation and attaches the transfer proof image."""

    class Meta:
        model = Donation
        fields = ['program', 'amount', 'donor_name', 'donor_email', 'donor_phone', 'message', 'is_anonymous', 'payment_proof']
        error_messages = {
            'payment_proof': {'required': 'Bukti pembayaran wajib diupload'},
            'amount': {'required': 'Nominal donasi wajib diisi dan harus lebih dari 0'},
            'program': {'required': 'Program ID wajib diisi'},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['program'].queryset = Program.objects.all()

    def clean_amount(self):
        amount = self.cleaned_data.get('amount')
        if amount is None or amount <= 0:
            raise forms.ValidationError('Nominal donasi wajib diisi dan harus lebih dari 0')
        return amount

    def clean_program(self):
        program = self.cleaned_data.get('program')
        if program and not program.is_active:
            raise forms.ValidationError('Program sudah tidak aktif')
        return program

    def clean_payment_proof(self):
        proof = self.cleaned_data.get('payment_proof')
        if proof and proof.size > settings.MAX_PROOF_UPLOAD_SIZE:
            limit_mb = settings.MAX_PROOF_UPLOAD_SIZE / (1024 * 1024)
            raise forms.ValidationError(f'Ukuran bukti pembayaran maksimal {limit_mb:g} MB')
        return proof

    def save(self, commit=True):
        donation = super().save(commit=False)
        donation.status = Donation.PENDING
        donation.payment_method = 'QRIS'
        if commit:
            donation.save()
        return donation
