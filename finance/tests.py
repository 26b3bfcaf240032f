import json
from datetime import date
from decimal import Decimal

from django.contrib import admin
from django.contrib.auth import get_user_model
from django.test import RequestFactory, TestCase
from django.urls import reverse
from django.utils import timezone

from donations.models import Donation, Program
from donations.verification import APPROVE, verify_donation
from finance.ledger import post_donation_income
from finance.models import Category, Transaction

User = get_user_model()


def make_users():
    admin_user = User.objects.create_user(username='admin', password='secret', is_staff=True)
    super_admin = User.objects.create_superuser(username='ketua', email='ketua@example.com', password='secret')
    return admin_user, super_admin


def make_locked_entry(actor):
    program = Program.objects.create(title='Santunan Yatim', target=Decimal('5000000'))
    donation = Donation.objects.create(
        program=program, amount=Decimal('200000'), donor_name='Fatimah',
        payment_proof='donations/proofs/bukti.png',
    )
    verify_donation(donation.pk, APPROVE, actor)
    return Transaction.objects.get(source_donation=donation)


class SeedCategoryTests(TestCase):
    def test_default_categories_exist(self):
        income = set(Category.objects.filter(type=Category.INCOME).values_list('name', flat=True))
        expense = set(Category.objects.filter(type=Category.EXPENSE).values_list('name', flat=True))
        self.assertTrue({'Infak', 'Zakat', 'Wakaf', 'Sedekah'} <= income)
        self.assertTrue({'Operasional', 'Kebersihan', 'Pembangunan', 'Kegiatan'} <= expense)


class TransactionModelTests(TestCase):
    def test_donor_and_recipient_follow_type(self):
        infak = Category.objects.get(name='Infak')
        operasional = Category.objects.get(name='Operasional')
        income = Transaction.objects.create(
            type=Transaction.INCOME, amount=Decimal('50000'), description='Kotak infak Jumat',
            donor='Jamaah', recipient='Toko', category=infak,
        )
        expense = Transaction.objects.create(
            type=Transaction.EXPENSE, amount=Decimal('75000'), description='Listrik',
            donor='Jamaah', recipient='PLN', category=operasional,
        )
        self.assertEqual((income.donor, income.recipient), ('Jamaah', ''))
        self.assertEqual((expense.donor, expense.recipient), ('', 'PLN'))
        self.assertFalse(income.is_locked)

    def test_donation_income_entry(self):
        actor = User.objects.create_user(username='admin', password='secret', is_staff=True)
        program = Program.objects.create(title='Renovasi Masjid', target=Decimal('1000000'))
        donation = Donation.objects.create(
            program=program, amount=Decimal('10000'), donor_name='Rahmat', is_anonymous=True,
            payment_proof='donations/proofs/bukti.png',
        )
        category = Category.objects.get(name='Infak')
        when = timezone.now()
        entry = post_donation_income(donation, category, actor, when=when)
        self.assertTrue(entry.is_locked)
        self.assertEqual(entry.donor, 'Hamba Allah')
        self.assertEqual(entry.receipt_number, donation.receipt_number)
        self.assertEqual(entry.date, timezone.localdate(when))
        self.assertEqual(donation.ledger_entry, entry)


class CategoryApiTests(TestCase):
    def setUp(self):
        self.admin, _ = make_users()
        self.client.force_login(self.admin)
        self.url = reverse('finance:categories')

    def test_list_with_counts_and_type_filter(self):
        Transaction.objects.create(
            type=Transaction.INCOME, amount=Decimal('1000'), description='Infak',
            category=Category.objects.get(name='Infak'),
        )
        data = self.client.get(self.url, {'type': 'INCOME'}).json()['data']
        self.assertTrue(all(item['type'] == 'INCOME' for item in data))
        counts = {item['name']: item['transactionCount'] for item in data}
        self.assertEqual(counts['Infak'], 1)
        self.assertEqual(counts['Zakat'], 0)

    def test_create(self):
        response = self.client.post(
            self.url, data=json.dumps({'name': 'Qurban', 'type': 'INCOME'}), content_type='application/json',
        )
        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual((data['color'], data['icon']), ('#10B981', 'circle'))

        response = self.client.post(
            self.url, data=json.dumps({'name': 'Qurban', 'type': 'INCOME'}), content_type='application/json',
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Kategori dengan nama ini sudah ada')

        response = self.client.post(
            self.url, data=json.dumps({'name': 'Lain', 'type': 'HIBAH'}), content_type='application/json',
        )
        self.assertEqual(response.status_code, 400)

    def test_requires_admin(self):
        self.client.logout()
        self.assertEqual(self.client.get(self.url).status_code, 401)


class TransactionApiTests(TestCase):
    def setUp(self):
        self.admin, self.super_admin = make_users()
        self.infak = Category.objects.get(name='Infak')
        self.operasional = Category.objects.get(name='Operasional')

    def put_json(self, url, body):
        return self.client.put(url, data=json.dumps(body), content_type='application/json')

    def test_create_and_filter(self):
        self.client.force_login(self.admin)
        url = reverse('finance:transactions')
        response = self.client.post(url, data=json.dumps({
            'type': 'EXPENSE', 'amount': '125000', 'description': 'Bayar listrik',
            'recipient': 'PLN', 'date': '2026-03-01', 'categoryId': self.operasional.pk,
        }), content_type='application/json')
        self.assertEqual(response.status_code, 201)
        data = response.json()['data']
        self.assertEqual(data['createdBy']['id'], self.admin.pk)
        self.assertFalse(data['locked'])

        Transaction.objects.create(
            type=Transaction.INCOME, amount=Decimal('50000'), description='Kotak infak',
            date=date(2026, 2, 1), category=self.infak,
        )
        body = self.client.get(url, {'type': 'EXPENSE'}).json()
        self.assertEqual(body['meta']['total'], 1)
        body = self.client.get(url, {'startDate': '2026-02-15', 'search': 'listrik'}).json()
        self.assertEqual([t['description'] for t in body['data']], ['Bayar listrik'])
        self.assertEqual(self.client.get(url, {'endDate': '01-02-2026'}).status_code, 400)

    def test_category_type_must_match(self):
        self.client.force_login(self.admin)
        response = self.client.post(reverse('finance:transactions'), data=json.dumps({
            'type': 'EXPENSE', 'amount': '1000', 'description': 'Salah kategori', 'categoryId': self.infak.pk,
        }), content_type='application/json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('category', response.json()['details'])

    def test_detail_is_super_admin_only(self):
        entry = Transaction.objects.create(
            type=Transaction.INCOME, amount=Decimal('50000'), description='Kotak infak', category=self.infak,
        )
        self.client.force_login(self.admin)
        response = self.client.get(reverse('finance:transaction_detail', args=[entry.pk]))
        self.assertEqual(response.status_code, 403)

    def test_manual_entry_can_be_edited_and_deleted(self):
        entry = Transaction.objects.create(
            type=Transaction.INCOME, amount=Decimal('50000'), description='Kotak infak', category=self.infak,
        )
        url = reverse('finance:transaction_detail', args=[entry.pk])
        self.client.force_login(self.super_admin)

        response = self.put_json(url, {'amount': '60000'})
        self.assertEqual(response.status_code, 200)
        entry.refresh_from_db()
        self.assertEqual(entry.amount, Decimal('60000'))
        self.assertEqual(entry.description, 'Kotak infak')

        self.assertEqual(self.client.delete(url).status_code, 200)
        self.assertFalse(Transaction.objects.filter(pk=entry.pk).exists())
        self.assertEqual(self.client.get(url).status_code, 404)

    def test_donation_entry_is_locked(self):
        entry = make_locked_entry(self.admin)
        url = reverse('finance:transaction_detail', args=[entry.pk])
        self.client.force_login(self.super_admin)

        response = self.client.get(url)
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['data']['locked'])

        for response in (self.put_json(url, {'amount': '1'}), self.client.delete(url)):
            self.assertEqual(response.status_code, 409)
            self.assertEqual(response.json()['code'], 'LOCKED')
        entry.refresh_from_db()
        self.assertEqual(entry.amount, Decimal('200000'))


class TransactionAdminTests(TestCase):
    def test_locked_entry_is_read_only(self):
        admin_user, super_admin = make_users()
        entry = make_locked_entry(admin_user)
        model_admin = admin.site._registry[Transaction]
        request = RequestFactory().get('/')
        request.user = super_admin

        self.assertFalse(model_admin.has_delete_permission(request, entry))
        self.assertIn('amount', model_admin.get_readonly_fields(request, entry))
        self.assertNotIn('delete_selected', model_admin.get_actions(request))

        manual = Transaction.objects.create(
            type=Transaction.INCOME, amount=Decimal('1000'), description='Infak',
            category=Category.objects.get(name='Infak'),
        )
        self.assertTrue(model_admin.has_delete_permission(request, manual))
        self.assertNotIn('amount', model_admin.get_readonly_fields(request, manual))


__all__ = [
    'SeedCategoryTests',
    'TransactionModelTests',
    'CategoryApiTests',
    'TransactionApiTests',
    'TransactionAdminTests',
]
