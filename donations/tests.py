import json
import shutil
import tempfile
import threading
import uuid
from decimal import Decimal
from io import BytesIO, StringIO
from unittest import SkipTest, mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DatabaseError, connection, connections
from django.db.models.query import QuerySet
from django.test import Client, TestCase, TransactionTestCase, override_settings
from django.urls import reverse
from django.utils import timezone
from PIL import Image

from audit.models import ActivityLog
from donations.exceptions import (
    AlreadyProcessed,
    DonationNotFound,
    InvalidVerificationRequest,
    PersistenceFailure,
)
from donations.funding import credit_program, find_discrepancies
from donations.models import Donation, Program
from donations.signals import donation_processed
from donations.verification import APPROVE, REJECT, verify_donation
from finance.categories import CategoryTypeConflict, resolve_category
from finance.models import Category, Transaction

User = get_user_model()

MEDIA_DIR = tempfile.mkdtemp(prefix='masjid-test-media-')


def make_admin(username='admin', **extra):
    extra.setdefault('is_staff', True)
    return User.objects.create_user(username=username, password='secret', **extra)


def make_program(title='Renovasi Masjid', target='10000000', **extra):
    return Program.objects.create(title=title, target=Decimal(target), **extra)


def make_donation(program, amount='500000', **extra):
    extra.setdefault('donor_name', 'Ahmad Fauzi')
    extra.setdefault('payment_proof', 'donations/proofs/bukti.png')
    return Donation.objects.create(program=program, amount=Decimal(amount), **extra)


def make_proof(name='bukti.png'):
    buffer = BytesIO()
    Image.new('RGB', (16, 16), 'white').save(buffer, 'PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


class DonationVerificationTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.program = make_program()

    def test_approve_records_ledger_entry_and_credits_program(self):
        donation = make_donation(self.program, amount='500000', message='Semoga berkah')
        result = verify_donation(donation.pk, APPROVE, self.admin)

        self.assertEqual(result.status, Donation.VERIFIED)
        self.assertEqual(result.as_dict(), {
            'id': str(donation.pk),
            'status': 'VERIFIED',
            'message': 'Donasi berhasil diverifikasi dan tercatat di laporan keuangan',
        })
        donation.refresh_from_db()
        self.program.refresh_from_db()
        self.assertEqual(donation.status, Donation.VERIFIED)
        self.assertEqual(donation.verified_by, self.admin)
        self.assertIsNotNone(donation.verified_at)
        self.assertEqual(self.program.collected, Decimal('500000'))

        entry = Transaction.objects.get(source_donation=donation)
        self.assertEqual(entry.type, Transaction.INCOME)
        self.assertEqual(entry.amount, Decimal('500000'))
        self.assertEqual(entry.donor, 'Ahmad Fauzi')
        self.assertEqual(entry.recipient, '')
        self.assertEqual(entry.description, 'Donasi untuk program: Renovasi Masjid')
        self.assertEqual(entry.notes, 'Semoga berkah')
        self.assertEqual(entry.created_by, self.admin)
        self.assertEqual(entry.category.name, 'Donasi Program')
        self.assertEqual(entry.category.type, Category.INCOME)
        self.assertEqual(entry.date, timezone.localdate())

    def test_receipt_number_is_derived_from_donation_id(self):
        donation = make_donation(self.program, id=uuid.UUID('3f2b8c1e-0d4a-4b7e-9a61-5c2d7e8fab12'))
        result = verify_donation(str(donation.pk), APPROVE, self.admin)
        self.assertEqual(result.receipt_number, 'DON-7E8FAB12')
        self.assertEqual(Transaction.objects.get(source_donation=donation).receipt_number, 'DON-7E8FAB12')

    def test_anonymous_donation_is_recorded_under_fixed_label(self):
        donation = make_donation(self.program, donor_name='Budi Santoso', is_anonymous=True)
        verify_donation(donation.pk, APPROVE, self.admin)
        entry = Transaction.objects.get(source_donation=donation)
        self.assertEqual(entry.donor, 'Hamba Allah')

    def test_reject_requires_a_reason(self):
        donation = make_donation(self.program)
        for reason in ('', '   ', None):
            with self.assertRaises(InvalidVerificationRequest):
                verify_donation(donation.pk, REJECT, self.admin, reject_reason=reason)
        donation.refresh_from_db()
        self.assertEqual(donation.status, Donation.PENDING)
        self.assertIsNone(donation.verified_by)

    def test_reject_marks_donation_cancelled(self):
        donation = make_donation(self.program)
        result = verify_donation(donation.pk, REJECT, self.admin, reject_reason='  Bukti transfer tidak terbaca ')
        self.assertEqual(result.as_dict()['status'], 'CANCELLED')
        donation.refresh_from_db()
        self.program.refresh_from_db()
        self.assertEqual(donation.status, Donation.CANCELLED)
        self.assertEqual(donation.reject_reason, 'Bukti transfer tidak terbaca')
        self.assertEqual(donation.verified_by, self.admin)
        self.assertIsNotNone(donation.verified_at)
        self.assertEqual(self.program.collected, Decimal('0'))
        self.assertFalse(Transaction.objects.filter(source_donation=donation).exists())

    def test_verified_donation_cannot_be_approved_again(self):
        donation = make_donation(self.program)
        verify_donation(donation.pk, APPROVE, self.admin)
        with self.assertRaises(AlreadyProcessed):
            verify_donation(donation.pk, APPROVE, self.admin)
        self.program.refresh_from_db()
        self.assertEqual(self.program.collected, Decimal('500000'))
        self.assertEqual(Transaction.objects.filter(source_donation=donation).count(), 1)

    def test_terminal_states_refuse_every_action(self):
        now = timezone.now()
        verified = make_donation(self.program, status=Donation.VERIFIED, verified_by=self.admin, verified_at=now)
        cancelled = make_donation(
            self.program, status=Donation.CANCELLED, verified_by=self.admin, verified_at=now,
            reject_reason='Duplikat',
        )
        for donation in (verified, cancelled):
            before = Donation.objects.values().get(pk=donation.pk)
            for action, reason in ((APPROVE, None), (REJECT, 'Lain'), (REJECT, '')):
                with self.assertRaises(AlreadyProcessed):
                    verify_donation(donation.pk, action, self.admin, reject_reason=reason)
            self.assertEqual(Donation.objects.values().get(pk=donation.pk), before)
        self.program.refresh_from_db()
        self.assertEqual(self.program.collected, Decimal('0'))
        self.assertFalse(Transaction.objects.exists())

    def test_unknown_donation_raises_not_found(self):
        for donation_id in (uuid.uuid4(), 'bukan-uuid'):
            with self.assertRaises(DonationNotFound):
                verify_donation(donation_id, APPROVE, self.admin)

    def test_unknown_action_is_refused(self):
        donation = make_donation(self.program)
        for action in ('', None, 'delete', 42):
            with self.assertRaises(InvalidVerificationRequest):
                verify_donation(donation.pk, action, self.admin)
        donation.refresh_from_db()
        self.assertEqual(donation.status, Donation.PENDING)

    def test_stale_snapshot_loses_the_race(self):
        donation = make_donation(self.program)
        stale = Donation.objects.select_related('program').get(pk=donation.pk)
        other_admin = make_admin('bendahara')
        verify_donation(donation.pk, APPROVE, self.admin)

        for action, reason in ((APPROVE, None), (REJECT, 'Terlambat')):
            stale.status = Donation.PENDING
            with mock.patch('donations.verification._load_donation', return_value=stale):
                with self.assertRaises(AlreadyProcessed):
                    verify_donation(donation.pk, action, other_admin, reject_reason=reason)

        donation.refresh_from_db()
        self.program.refresh_from_db()
        self.assertEqual(donation.status, Donation.VERIFIED)
        self.assertEqual(donation.verified_by, self.admin)
        self.assertEqual(self.program.collected, Decimal('500000'))
        self.assertEqual(Transaction.objects.filter(source_donation=donation).count(), 1)

    def test_ledger_failure_rolls_back_every_step(self):
        donation = make_donation(self.program)
        with mock.patch('donations.verification.post_donation_income', side_effect=DatabaseError('disk full')):
            with self.assertRaises(PersistenceFailure) as ctx:
                verify_donation(donation.pk, APPROVE, self.admin)
        self.assertEqual(ctx.exception.message, 'Gagal memverifikasi donasi')
        donation.refresh_from_db()
        self.program.refresh_from_db()
        self.assertEqual(donation.status, Donation.PENDING)
        self.assertIsNone(donation.verified_at)
        self.assertEqual(self.program.collected, Decimal('0'))
        self.assertFalse(Transaction.objects.exists())
        self.assertFalse(Category.objects.filter(name='Donasi Program').exists())

    def test_missing_program_aborts_approval(self):
        donation = make_donation(self.program)
        with mock.patch('donations.verification.credit_program', side_effect=Program.DoesNotExist):
            with self.assertRaises(PersistenceFailure):
                verify_donation(donation.pk, APPROVE, self.admin)
        donation.refresh_from_db()
        self.assertEqual(donation.status, Donation.PENDING)
        self.assertFalse(Transaction.objects.exists())

    def test_category_with_wrong_type_aborts_approval(self):
        Category.objects.create(name='Donasi Program', type=Category.EXPENSE)
        donation = make_donation(self.program)
        with self.assertRaises(PersistenceFailure):
            verify_donation(donation.pk, APPROVE, self.admin)
        donation.refresh_from_db()
        self.assertEqual(donation.status, Donation.PENDING)

    def test_donation_category_is_created_once_and_reused(self):
        first = make_donation(self.program)
        second = make_donation(self.program, amount='250000')
        verify_donation(first.pk, APPROVE, self.admin)
        verify_donation(second.pk, APPROVE, self.admin)
        category = Category.objects.get(name='Donasi Program')
        self.assertEqual(category.color, '#10B981')
        self.assertEqual(category.icon, 'heart')
        self.assertTrue(category.is_active)
        self.assertEqual(
            set(Transaction.objects.values_list('category_id', flat=True)),
            {category.pk},
        )

    def test_collected_matches_sum_of_verified_donations(self):
        other = make_program('Santunan Yatim', target='5000000')
        plan = [
            (self.program, '500000', APPROVE),
            (self.program, '125000.50', APPROVE),
            (self.program, '90000', REJECT),
            (other, '300000', APPROVE),
            (other, '75000', REJECT),
            (other, '10000', None),
        ]
        for program, amount, action in plan:
            donation = make_donation(program, amount=amount)
            if action:
                verify_donation(donation.pk, action, self.admin, reject_reason='Tidak valid')

        self.program.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(self.program.collected, Decimal('625000.50'))
        self.assertEqual(other.collected, Decimal('300000'))
        self.assertEqual(find_discrepancies(), [])

    def test_activity_is_logged_after_commit(self):
        donation = make_donation(self.program)
        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            verify_donation(donation.pk, APPROVE, self.admin, ip_address='10.0.0.5')
        self.assertEqual(len(callbacks), 1)
        self.assertFalse(ActivityLog.objects.exists())

        callbacks[0]()
        log = ActivityLog.objects.get(entity_id=str(donation.pk))
        self.assertEqual(log.action, 'APPROVE')
        self.assertEqual(log.entity, 'Donation')
        self.assertEqual(log.entity_title, 'Donasi Ahmad Fauzi - Rp 500.000')
        self.assertEqual(log.user, self.admin)
        self.assertEqual(log.user_role, 'ADMIN')
        self.assertEqual(log.ip_address, '10.0.0.5')
        self.assertEqual(log.details['receiptNumber'], donation.receipt_number)

    def test_failing_activity_receiver_does_not_break_verification(self):
        def broken_receiver(sender, **kwargs):
            raise RuntimeError('audit store down')

        donation = make_donation(self.program)
        donation_processed.connect(broken_receiver, weak=False)
        try:
            with self.assertLogs('donations.signals', level='ERROR'):
                with self.captureOnCommitCallbacks(execute=True):
                    result = verify_donation(donation.pk, REJECT, self.admin, reject_reason='Palsu')
        finally:
            donation_processed.disconnect(broken_receiver)
        self.assertEqual(result.status, Donation.CANCELLED)
        self.assertTrue(ActivityLog.objects.filter(action='REJECT', entity_id=str(donation.pk)).exists())


class CategoryDirectoryTests(TestCase):
    def test_resolve_creates_then_reuses(self):
        first = resolve_category('Donasi Program', Category.INCOME, description='Donasi', color='#10B981', icon='heart')
        second = resolve_category('Donasi Program', Category.INCOME)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Category.objects.filter(name='Donasi Program').count(), 1)

    def test_lookup_miss_falls_back_to_the_committed_row(self):
        # Another request inserted the row between our lookup and our insert.
        existing = Category.objects.create(name='Donasi Program', type=Category.INCOME)
        real_get = QuerySet.get
        misses = []

        def racing_get(qs, *args, **kwargs):
            if qs.model is Category and not misses:
                misses.append(kwargs)
                raise Category.DoesNotExist
            return real_get(qs, *args, **kwargs)

        with mock.patch.object(QuerySet, 'get', autospec=True, side_effect=racing_get):
            category = resolve_category('Donasi Program', Category.INCOME)

        self.assertEqual(misses, [{'name': 'Donasi Program'}])
        self.assertEqual(category.pk, existing.pk)
        self.assertEqual(Category.objects.filter(name='Donasi Program').count(), 1)

    def test_name_taken_by_other_type_is_a_conflict(self):
        Category.objects.create(name='Donasi Program', type=Category.EXPENSE)
        with self.assertRaises(CategoryTypeConflict):
            resolve_category('Donasi Program', Category.INCOME)


class ProgramFundingTests(TestCase):
    def setUp(self):
        self.program = make_program()

    def test_credit_is_applied_by_the_database(self):
        snapshot = Program.objects.get(pk=self.program.pk)
        credit_program(self.program.pk, Decimal('100000'))
        credit_program(self.program.pk, Decimal('250000'))
        self.assertEqual(snapshot.collected, Decimal('0'))
        snapshot.refresh_from_db()
        self.assertEqual(snapshot.collected, Decimal('350000'))

    def test_credit_rejects_non_positive_amounts(self):
        for amount in (Decimal('0'), Decimal('-5'), None):
            with self.assertRaises(ValueError):
                credit_program(self.program.pk, amount)

    def test_credit_unknown_program_raises(self):
        with self.assertRaises(Program.DoesNotExist):
            credit_program(self.program.pk + 1000, Decimal('1'))

    def test_program_slug_is_unique(self):
        other = make_program()
        self.assertEqual(self.program.slug, 'renovasi-masjid')
        self.assertEqual(other.slug, 'renovasi-masjid-1')

    def test_check_program_totals_command(self):
        admin = make_admin()
        donation = make_donation(self.program)
        verify_donation(donation.pk, APPROVE, admin)
        call_command('check_program_totals', stdout=StringIO(), stderr=StringIO())

        Program.objects.filter(pk=self.program.pk).update(collected=Decimal('1'))
        stderr = StringIO()
        with self.assertRaises(CommandError):
            call_command('check_program_totals', stdout=StringIO(), stderr=stderr)
        self.assertIn('Renovasi Masjid', stderr.getvalue())


class VerifyEndpointTests(TestCase):
    def setUp(self):
        self.admin = make_admin(first_name='Umar')
        self.program = make_program()
        self.donation = make_donation(self.program)
        self.url = reverse('donations:verify', args=[self.donation.pk])

    def post_json(self, url, body):
        return self.client.post(url, data=json.dumps(body), content_type='application/json')

    def test_script_client_posts_with_issued_csrf_token(self):
        client = Client(enforce_csrf_checks=True)
        client.force_login(self.admin)
        body = json.dumps({'action': 'approve'})

        response = client.post(self.url, data=body, content_type='application/json')
        self.assertEqual(response.status_code, 403)

        token = client.get(reverse('csrf_token')).json()['data']['csrfToken']
        response = client.post(self.url, data=body, content_type='application/json', HTTP_X_CSRFTOKEN=token)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'VERIFIED')

    def test_requires_signed_in_admin(self):
        response = self.post_json(self.url, {'action': 'approve'})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['code'], 'UNAUTHORIZED')

        member = User.objects.create_user(username='jamaah', password='secret')
        self.client.force_login(member)
        response = self.post_json(self.url, {'action': 'approve'})
        self.assertEqual(response.status_code, 403)
        self.donation.refresh_from_db()
        self.assertEqual(self.donation.status, Donation.PENDING)

    def test_approve(self):
        self.client.force_login(self.admin)
        response = self.post_json(self.url, {'action': 'approve'})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['message'], 'Donasi berhasil diverifikasi')
        self.assertEqual(body['data'], {
            'id': str(self.donation.pk),
            'status': 'VERIFIED',
            'message': 'Donasi berhasil diverifikasi dan tercatat di laporan keuangan',
        })

    def test_second_approval_is_already_processed(self):
        self.client.force_login(self.admin)
        self.post_json(self.url, {'action': 'approve'})
        response = self.post_json(self.url, {'action': 'approve'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {
            'success': False,
            'error': 'Donasi sudah diverifikasi sebelumnya',
            'code': 'ALREADY_PROCESSED',
        })

    def test_reject_without_reason(self):
        self.client.force_login(self.admin)
        response = self.post_json(self.url, {'action': 'reject', 'rejectReason': ' '})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Alasan penolakan wajib diisi')

    def test_reject_with_reason(self):
        self.client.force_login(self.admin)
        response = self.post_json(self.url, {'action': 'reject', 'rejectReason': 'Nominal tidak sesuai'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['status'], 'CANCELLED')

    def test_unknown_donation(self):
        self.client.force_login(self.admin)
        for donation_id in (uuid.uuid4(), 'bukan-uuid'):
            response = self.post_json(reverse('donations:verify', args=[donation_id]), {'action': 'approve'})
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.json(), {
                'success': False,
                'error': 'Donasi tidak ditemukan',
                'code': 'NOT_FOUND',
            })

    def test_bad_action_and_bad_body(self):
        self.client.force_login(self.admin)
        response = self.post_json(self.url, {'action': 'hapus'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['code'], 'VALIDATION_ERROR')

        response = self.client.post(self.url, data='{bukan json', content_type='application/json')
        self.assertEqual(response.status_code, 400)

        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 405)


class DonationAdminApiTests(TestCase):
    def setUp(self):
        self.admin = make_admin()
        self.program = make_program()
        self.client.force_login(self.admin)

    def test_list_filters_and_paginates(self):
        for amount in ('100000', '200000', '300000'):
            make_donation(self.program, amount=amount)
        verified = make_donation(self.program, amount='400000')
        verify_donation(verified.pk, APPROVE, self.admin)

        response = self.client.get(reverse('donations:admin_list'), {'status': 'PENDING', 'limit': 2})
        body = response.json()
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(body['data']), 2)
        self.assertEqual(body['meta']['total'], 3)
        self.assertEqual(body['meta']['totalPages'], 2)
        self.assertEqual(body['meta']['pendingCount'], 3)
        self.assertTrue(all(item['status'] == 'PENDING' for item in body['data']))

        response = self.client.get(reverse('donations:admin_list'), {'programId': 'abc'})
        self.assertEqual(response.status_code, 400)

    def test_detail_includes_program_progress(self):
        donation = make_donation(self.program, amount='1000000')
        verify_donation(donation.pk, APPROVE, self.admin)
        response = self.client.get(reverse('donations:admin_detail', args=[donation.pk]))
        data = response.json()['data']
        self.assertEqual(data['status'], 'VERIFIED')
        self.assertEqual(Decimal(data['program']['collected']), Decimal('1000000'))
        self.assertEqual(data['verifiedBy']['id'], self.admin.pk)

        for donation_id in (uuid.uuid4(), 'bukan-uuid'):
            response = self.client.get(reverse('donations:admin_detail', args=[donation_id]))
            self.assertEqual(response.status_code, 404)
            self.assertEqual(response.json()['code'], 'NOT_FOUND')

    def test_stats(self):
        make_donation(self.program)
        verified = make_donation(self.program, amount='750000')
        rejected = make_donation(self.program)
        verify_donation(verified.pk, APPROVE, self.admin)
        verify_donation(rejected.pk, REJECT, self.admin, reject_reason='Ganda')

        data = self.client.get(reverse('donations:admin_stats')).json()['data']
        self.assertEqual((data['pending'], data['verified'], data['cancelled']), (1, 1, 1))
        self.assertEqual(Decimal(data['totalVerifiedAmount']), Decimal('750000'))


@override_settings(MEDIA_ROOT=MEDIA_DIR)
class DonationSubmissionTests(TestCase):
    @classmethod
    def tearDownClass(cls):
        super().tearDownClass()
        shutil.rmtree(MEDIA_DIR, ignore_errors=True)

    def setUp(self):
        self.program = make_program()
        self.url = reverse('donations:submit')

    def submit(self, **overrides):
        data = {
            'program': self.program.pk,
            'amount': '150000',
            'donor_name': 'Siti Aminah',
            'donor_email': 'siti@example.com',
            'message': 'Untuk renovasi',
            'payment_proof': make_proof(),
        }
        data.update(overrides)
        return self.client.post(self.url, {k: v for k, v in data.items() if v is not None})

    def test_submission_creates_pending_donation(self):
        response = self.submit()
        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['data']['status'], 'PENDING')
        donation = Donation.objects.get(pk=body['data']['id'])
        self.assertEqual(donation.amount, Decimal('150000'))
        self.assertEqual(donation.payment_method, 'QRIS')
        self.assertTrue(donation.payment_proof.name.startswith('donations/proofs/'))
        self.program.refresh_from_db()
        self.assertEqual(self.program.collected, Decimal('0'))

    def test_status_cannot_be_chosen_by_the_donor(self):
        response = self.submit(status='VERIFIED')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(Donation.objects.get().status, Donation.PENDING)

    def test_invalid_submissions(self):
        self.assertEqual(self.submit(payment_proof=None).status_code, 400)
        self.assertEqual(self.submit(amount='0').status_code, 400)
        not_image = SimpleUploadedFile('bukti.txt', b'bukan gambar', content_type='text/plain')
        self.assertEqual(self.submit(payment_proof=not_image).status_code, 400)
        self.assertFalse(Donation.objects.exists())

    def test_unknown_and_inactive_programs(self):
        response = self.submit(program=self.program.pk + 1000)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error'], 'Program tidak ditemukan')

        Program.objects.filter(pk=self.program.pk).update(is_active=False)
        response = self.submit()
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'Program sudah tidak aktif')

    @override_settings(MAX_PROOF_UPLOAD_SIZE=16)
    def test_oversized_proof(self):
        response = self.submit()
        self.assertEqual(response.status_code, 400)
        self.assertIn('payment_proof', response.json()['details'])


class ConcurrentVerificationTests(TransactionTestCase):
    serialized_rollback = True

    @classmethod
    def setUpClass(cls):
        if connection.vendor == 'sqlite' and connection.is_in_memory_db():
            raise SkipTest('threads need a file-backed or server test database')
        super().setUpClass()

    def run_together(self, *calls):
        barrier = threading.Barrier(len(calls))
        outcomes = [None] * len(calls)

        def worker(index, call):
            try:
                barrier.wait(timeout=10)
                outcomes[index] = call()
            except Exception as exc:
                outcomes[index] = exc
            finally:
                connections.close_all()

        threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return outcomes

    def test_same_donation_is_verified_once(self):
        first, second = make_admin('admin1'), make_admin('admin2')
        program = make_program()
        donation = make_donation(program)

        outcomes = self.run_together(
            lambda: verify_donation(donation.pk, APPROVE, first),
            lambda: verify_donation(donation.pk, APPROVE, second),
        )

        self.assertEqual(sum(isinstance(o, AlreadyProcessed) for o in outcomes), 1)
        self.assertEqual(sum(getattr(o, 'status', None) == Donation.VERIFIED for o in outcomes), 1)
        program.refresh_from_db()
        self.assertEqual(program.collected, Decimal('500000'))
        self.assertEqual(Transaction.objects.filter(source_donation=donation).count(), 1)

    def test_double_submit_loser_sees_already_processed(self):
        admin = make_admin()
        program = make_program()
        for _ in range(5):
            donation = make_donation(program, amount='10')
            outcomes = self.run_together(
                lambda: verify_donation(donation.pk, APPROVE, admin),
                lambda: verify_donation(donation.pk, APPROVE, admin),
            )
            self.assertEqual(
                sorted(type(o).__name__ for o in outcomes),
                ['AlreadyProcessed', 'VerificationResult'],
            )
        program.refresh_from_db()
        self.assertEqual(program.collected, Decimal('50'))
        self.assertEqual(Transaction.objects.count(), 5)

    def test_approve_and_reject_race(self):
        admin = make_admin()
        donation = make_donation(make_program())
        outcomes = self.run_together(
            lambda: verify_donation(donation.pk, APPROVE, admin),
            lambda: verify_donation(donation.pk, REJECT, admin, reject_reason='Ganda'),
        )
        self.assertEqual(sum(isinstance(o, AlreadyProcessed) for o in outcomes), 1)
        donation.refresh_from_db()
        winner = next(o for o in outcomes if not isinstance(o, Exception))
        self.assertEqual(donation.status, winner.status)
        self.assertEqual(Transaction.objects.filter(source_donation=donation).exists(), winner.status == Donation.VERIFIED)

    def test_concurrent_credits_to_one_program_add_up(self):
        admin = make_admin()
        program = make_program()
        donations = [make_donation(program, amount=str(100000 * (i + 1))) for i in range(4)]
        outcomes = self.run_together(*[
            (lambda pk=d.pk: verify_donation(pk, APPROVE, admin)) for d in donations
        ])
        self.assertFalse([o for o in outcomes if isinstance(o, Exception)])
        program.refresh_from_db()
        self.assertEqual(program.collected, Decimal('1000000'))
        self.assertEqual(find_discrepancies(), [])
        self.assertEqual(Category.objects.filter(name='Donasi Program').count(), 1)

    def test_first_use_of_a_category_from_many_requests(self):
        outcomes = self.run_together(*[
            (lambda: resolve_category('Donasi Program', Category.INCOME)) for _ in range(4)
        ])
        self.assertEqual(len({c.pk for c in outcomes}), 1)
        self.assertEqual(Category.objects.filter(name='Donasi Program').count(), 1)


class DonationAdminActionTests(TestCase):
    def test_approve_selected_skips_processed_donations(self):
        super_admin = User.objects.create_superuser(username='ketua', email='ketua@example.com', password='secret')
        program = make_program()
        pending = [make_donation(program, amount='100000'), make_donation(program, amount='200000')]
        done = make_donation(program)
        verify_donation(done.pk, REJECT, super_admin, reject_reason='Ganda')

        self.client.force_login(super_admin)
        response = self.client.post(reverse('admin:donations_donation_changelist'), {
            'action': 'approve_selected',
            '_selected_action': [str(d.pk) for d in pending + [done]],
        }, follow=True)

        self.assertEqual(response.status_code, 200)
        messages = [str(m) for m in response.context['messages']]
        self.assertIn('2 donasi diverifikasi. 1 donasi dilewati karena sudah diproses.', messages)
        program.refresh_from_db()
        self.assertEqual(program.collected, Decimal('300000'))
        done.refresh_from_db()
        self.assertEqual(done.status, Donation.CANCELLED)


__all__ = [
    'DonationVerificationTests',
    'CategoryDirectoryTests',
    'ProgramFundingTests',
    'VerifyEndpointTests',
    'DonationAdminApiTests',
    'DonationSubmissionTests',
    'DonationAdminActionTests',
    'ConcurrentVerificationTests',
]
