from django import forms
from django.utils import timezone

from .models import Category, Transaction


class CategoryForm(forms.ModelForm):
    class Meta:
        model = Category
        fields = ['name', 'type', 'description', 'color', 'icon']
        error_messages = {
            'name': {
                'required': 'Nama dan tipe kategori wajib diisi',
                'unique': 'Kategori dengan nama ini sudah ada',
            },
            'type': {
                'required': 'Nama dan tipe kategori wajib diisi',
                'invalid_choice': 'Tipe kategori tidak valid',
            },
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['color'].required = False
        self.fields['icon'].required = False

    def clean_color(self):
        return self.cleaned_data.get('color') or '#10B981'

    def clean_icon(self):
        return self.cleaned_data.get('icon') or 'circle'


class TransactionForm(forms.ModelForm):
    """Manual ledger entry. Entries posted by donation verification never go through here."""

    class Meta:
        model = Transaction
        fields = ['type', 'amount', 'description', 'donor', 'recipient', 'date', 'category', 'receipt_number', 'notes']
        error_messages = {
            'type': {'invalid_choice': 'Tipe transaksi tidak valid'},
            'category': {'invalid_choice': 'Kategori tidak ditemukan'},
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields['date'].required = False

    def clean_date(self):
        return self.cleaned_data.get('date') or timezone.localdate()

    def clean(self):
        cleaned = super().clean()
        category = cleaned.get('category')
        type_ = cleaned.get('type')
        if category and type_ and category.type != type_:
            self.add_error('category', 'Tipe kategori tidak sesuai dengan tipe transaksi')
        return cleaned
