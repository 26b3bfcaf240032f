from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse

from audit.models import ActivityLog
from audit.signals import format_rupiah
from donations.exceptions import InvalidVerificationRequest
from donations.models import Donation, Program
from donations.verification import APPROVE, REJECT, verify_donation

User = get_user_model()


class FormatRupiahTests(TestCase):
    def test_thousands_use_dots(self):
        self.assertEqual(format_rupiah(Decimal('1500000.00')), '1.500.000')
        self.assertEqual(format_rupiah(Decimal('999')), '999')


class ActivityLogTests(TestCase):
    def setUp(self):
        self.super_admin = User.objects.create_superuser(
            username='ketua', email='ketua@example.com', password='secret', first_name='Hasan',
        )
        self.program = Program.objects.create(title='Renovasi Masjid', target=Decimal('10000000'))

    def make_donation(self, **extra):
        return Donation.objects.create(
            program=self.program, amount=Decimal('2500000'), donor_name='Yusuf',
            payment_proof='donations/proofs/bukti.png', **extra
        )

    def test_rejection_is_logged_with_reason(self):
        donation = self.make_donation(is_anonymous=True)
        with self.captureOnCommitCallbacks(execute=True):
            verify_donation(donation.pk, REJECT, self.super_admin, reject_reason='Bukti palsu')
        log = ActivityLog.objects.get()
        self.assertEqual(log.action, 'REJECT')
        self.assertEqual(log.entity_title, 'Donasi Hamba Allah - Rp 2.500.000')
        self.assertEqual(log.user_name, 'Super Admin (Hasan)')
        self.assertEqual(log.user_role, 'SUPER_ADMIN')
        self.assertEqual(log.details['reason'], 'Bukti palsu')

    def test_refused_verification_is_not_logged(self):
        donation = self.make_donation()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            with self.assertRaises(InvalidVerificationRequest):
                verify_donation(donation.pk, REJECT, self.super_admin, reject_reason='')
        self.assertEqual(callbacks, [])
        self.assertFalse(ActivityLog.objects.exists())

    def test_activity_log_endpoint(self):
        first = self.make_donation()
        second = self.make_donation()
        with self.captureOnCommitCallbacks(execute=True):
            verify_donation(first.pk, APPROVE, self.super_admin)
            verify_donation(second.pk, REJECT, self.super_admin, reject_reason='Ganda')

        url = reverse('audit:activity_logs')
        self.assertEqual(self.client.get(url).status_code, 401)

        self.client.force_login(self.super_admin)
        body = self.client.get(url, {'action': 'APPROVE'}).json()
        self.assertEqual(body['meta']['total'], 1)
        entry = body['data'][0]
        self.assertEqual(entry['entityId'], str(first.pk))
        self.assertEqual(entry['details']['receiptNumber'], first.receipt_number)

        body = self.client.get(url, {'entity': 'Donation'}).json()
        self.assertEqual(body['meta']['total'], 2)


__all__ = [
    'FormatRupiahTests',
    'ActivityLogTests',
]
