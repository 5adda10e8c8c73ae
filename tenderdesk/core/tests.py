"""
Test suite for the core module
Tests: internal ids, activity logging, auth, users, staged form data, documents and search
"""
import re
import shutil
import tempfile
from io import StringIO

from django.core.management import call_command
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
from tenderdesk.core.ids import generate_internal_id, entity_type_for_id, to_base36
from tenderdesk.core.models import ActivityLog, PendingData, Document
from tenderdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tenderdesk.core.utils import log_activity, is_admin_user


class InternalIdTests(TestCase):
    """Test readable internal id generation"""

    def test_base36(self):
        self.assertEqual(to_base36(0), '0')
        self.assertEqual(to_base36(35), 'z')
        self.assertEqual(to_base36(36), '10')

    def test_prefix_per_entity(self):
        self.assertTrue(generate_internal_id('TENDER').startswith('tdr_'))
        self.assertTrue(generate_internal_id('RAW_MATERIAL').startswith('rm_'))
        self.assertTrue(generate_internal_id('FOREIGN_SUPPLIER').startswith('fs_'))

    def test_format(self):
        internal_id = generate_internal_id('PRICE_QUOTE')
        self.assertRegex(internal_id, re.compile(r'^pq_[0-9a-z]+$'))

    def test_unknown_entity_type(self):
        with self.assertRaises(ValueError):
            generate_internal_id('SPACESHIP')

    def test_ids_are_unique(self):
        ids = {generate_internal_id('TENDER') for _ in range(200)}
        self.assertEqual(len(ids), 200)

    def test_entity_type_lookup(self):
        self.assertEqual(entity_type_for_id(generate_internal_id('CLIENT')), 'CLIENT')

    def test_assigned_on_first_save(self):
        client = TestDataFactory.create_client()
        self.assertTrue(client.internal_id.startswith('cst_'))
        original = client.internal_id
        client.name = 'Renamed'
        client.save()
        client.refresh_from_db()
        self.assertEqual(client.internal_id, original)


class ActivityLogTests(TestCase):
    """Test log_activity helper"""

    def setUp(self):
        self.user = TestDataFactory.create_user()

    def test_creates_entry(self):
        entry = log_activity(user=self.user, action='create', model_name='tender', object_id=5,
                             object_name='Road works', description='Created tender')
        self.assertIsNotNone(entry)
        self.assertEqual(entry.object_id, '5')
        self.assertTrue(entry.internal_id.startswith('act_'))

    def test_duplicate_within_window_is_skipped(self):
        first = log_activity(user=self.user, action='update', model_name='tender', object_id=1)
        second = log_activity(user=self.user, action='update', model_name='tender', object_id=1)
        self.assertIsNotNone(first)
        self.assertIsNone(second)
        self.assertEqual(ActivityLog.objects.count(), 1)

    def test_different_object_is_not_deduplicated(self):
        log_activity(user=self.user, action='update', model_name='tender', object_id=1)
        log_activity(user=self.user, action='update', model_name='tender', object_id=2)
        self.assertEqual(ActivityLog.objects.count(), 2)

    @override_settings(ACTIVITY_DEDUP_SECONDS=0)
    def test_dedup_disabled(self):
        log_activity(user=self.user, action='update', model_name='tender', object_id=1)
        log_activity(user=self.user, action='update', model_name='tender', object_id=1)
        self.assertEqual(ActivityLog.objects.count(), 2)

    def test_missing_fields_skipped(self):
        self.assertIsNone(log_activity(user=self.user, action='create', model_name='tender'))
        self.assertEqual(ActivityLog.objects.count(), 0)


class PruneActivityLogsCommandTests(TestCase):
    """Test the prune_activity_logs management command"""

    def setUp(self):
        user = TestDataFactory.create_user()
        self.entries = [
            log_activity(user=user, action='update', model_name='tender', object_id=number)
            for number in range(5)
        ]

    def test_keeps_newest_entries(self):
        out = StringIO()
        call_command('prune_activity_logs', '--keep', '2', stdout=out)
        self.assertIn('Deleted 3', out.getvalue())
        kept = set(ActivityLog.objects.values_list('id', flat=True))
        self.assertEqual(kept, {self.entries[3].id, self.entries[4].id})

    def test_dry_run_deletes_nothing(self):
        out = StringIO()
        call_command('prune_activity_logs', '--keep', '2', '--dry-run', stdout=out)
        self.assertIn('Would delete 3 of 5', out.getvalue())
        self.assertEqual(ActivityLog.objects.count(), 5)

    def test_nothing_to_prune(self):
        out = StringIO()
        call_command('prune_activity_logs', '--keep', '10', stdout=out)
        self.assertIn('Nothing to prune', out.getvalue())
        self.assertEqual(ActivityLog.objects.count(), 5)


class AdminCheckTests(TestCase):

    def test_staff_is_admin(self):
        self.assertTrue(is_admin_user(TestDataFactory.create_user(is_staff=True)))

    def test_admin_group(self):
        self.assertTrue(is_admin_user(TestDataFactory.create_admin()))

    def test_employee_role(self):
        user = TestDataFactory.create_user()
        TestDataFactory.create_employee(role='admin', user=user)
        self.assertTrue(is_admin_user(user))

    def test_regular_user(self):
        self.assertFalse(is_admin_user(TestDataFactory.create_user()))


class AuthAPITests(TestCase):
    """Test login, refresh and current user endpoints"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()
        self.user = TestDataFactory.create_user(username='alice', password='secret-pass-123')

    def test_login(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'alice', 'password': 'secret-pass-123'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_login_wrong_password(self):
        response = self.client.post('/api/v1/auth/login/', {
            'username': 'alice', 'password': 'nope'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh(self):
        login = self.client.post('/api/v1/auth/login/', {
            'username': 'alice', 'password': 'secret-pass-123'
        }, format='json')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_requires_authentication(self):
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_flags(self):
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['username'], 'alice')
        self.assertFalse(response.data['is_admin'])
        self.assertFalse(response.data['can_empty_trash'])
        self.assertIsNone(response.data['employee'])

    def test_me_with_employee_profile(self):
        TestDataFactory.create_employee(full_name='Alice Manager', role='manager', user=self.user)
        self.client.authenticate_user(self.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.data['employee']['full_name'], 'Alice Manager')
        self.assertTrue(response.data['can_view_activity'])
        self.assertFalse(response.data['is_admin'])


class UserAPITests(TestCase):

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_regular_user_cannot_list_users(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_lists_users(self):
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertGreaterEqual(len(response.data), 1)


class ActivityAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_is_paginated(self):
        for object_id in range(3):
            log_activity(user=self.user, action='create', model_name='client', object_id=object_id)
        response = self.client.get('/api/v1/activity/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual(len(response.data['results']), 3)

    def test_filter_by_action(self):
        log_activity(user=self.user, action='create', model_name='client', object_id=1)
        log_activity(user=self.user, action='trash', model_name='client', object_id=1)
        response = self.client.get('/api/v1/activity/', {'action': 'trash'})
        self.assertEqual(response.data['count'], 1)

    def test_manual_entry_and_duplicate(self):
        data = {'action': 'manual', 'model_name': 'tender', 'object_id': '9', 'description': 'Called the client'}
        response = self.client.post('/api/v1/activity/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post('/api/v1/activity/', data, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_stats(self):
        log_activity(user=self.user, action='create', model_name='client', object_id=1)
        response = self.client.get('/api/v1/activity/stats/')
        self.assertEqual(response.data['total'], 1)
        self.assertEqual(response.data['by_action'], {'create': 1})

    def test_export_csv(self):
        log_activity(user=self.user, action='create', model_name='client', object_id=1, object_name='Acme')
        response = self.client.get('/api/v1/activity/export/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('Acme', response.content.decode())

    def test_clear_requires_admin(self):
        response = self.client.post('/api/v1/activity/clear/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_clears(self):
        log_activity(user=self.user, action='create', model_name='client', object_id=1)
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/api/v1/activity/clear/')
        self.assertEqual(response.data['deleted'], 1)
        self.assertFalse(ActivityLog.objects.exists())

    def test_cannot_delete_someone_elses_entry(self):
        other = TestDataFactory.create_user()
        entry = log_activity(user=other, action='create', model_name='client', object_id=1)
        response = self.client.delete(f'/api/v1/activity/{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PendingDataAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_put_creates_then_replaces(self):
        url = '/api/v1/pending-data/tender-form/'
        response = self.client.put(url, {'payload': {'title': 'Draft'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.put(url, {'payload': {'title': 'Second draft'}}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(PendingData.objects.get(user=self.user, key='tender-form').payload, {'title': 'Second draft'})

    def test_payload_required(self):
        response = self.client.put('/api/v1/pending-data/form/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_entries_are_per_user(self):
        other = TestDataFactory.create_user()
        PendingData.objects.create(user=other, key='form', payload={'a': 1})
        response = self.client.get('/api/v1/pending-data/form/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete(self):
        PendingData.objects.create(user=self.user, key='form', payload={'a': 1})
        response = self.client.delete('/api/v1/pending-data/form/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PendingData.objects.exists())


class DocumentAPITests(TestCase):

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.tender = TestDataFactory.create_tender(user=self.user)

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _upload(self, owner_type='tender', owner_id=None, content=b'%PDF-1.4 test'):
        upload = SimpleUploadedFile('offer.pdf', content, content_type='application/pdf')
        return self.client.post('/api/v1/documents/', {
            'owner_type': owner_type,
            'owner_id': owner_id or self.tender.id,
            'file': upload,
        }, format='multipart')

    def test_upload(self):
        response = self._upload()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        document = Document.objects.get()
        self.assertEqual(document.file_name, 'offer.pdf')
        self.assertEqual(document.uploaded_by, self.user)

    def test_owner_must_exist(self):
        response = self._upload(owner_id=999999)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(MAX_UPLOAD_SIZE_MB=0)
    def test_size_limit(self):
        response = self._upload(content=b'x' * 100)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_by_owner(self):
        self._upload()
        response = self.client.get('/api/v1/documents/', {'owner_type': 'tender', 'owner_id': self.tender.id})
        self.assertEqual(len(response.data), 1)

    def test_delete_moves_to_trash(self):
        self._upload()
        document = Document.objects.get()
        response = self.client.delete(f'/api/v1/documents/{document.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Document.objects.exists())


class GlobalSearchTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_empty_query(self):
        response = self.client.get('/api/v1/search/')
        self.assertEqual(response.data['tenders'], [])
        self.assertEqual(response.data['clients'], [])

    def test_finds_across_entities(self):
        TestDataFactory.create_tender(title='Cement supply lot 4')
        TestDataFactory.create_raw_material(name='Cement bags')
        TestDataFactory.create_client(name='Other client')
        response = self.client.get('/api/v1/search/', {'q': 'cement'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['tenders']), 1)
        self.assertEqual(len(response.data['raw_materials']), 1)
        self.assertEqual(response.data['clients'], [])

    def test_internal_id_returns_only_that_record(self):
        tender = TestDataFactory.create_tender(title='Bridge repairs')
        TestDataFactory.create_tender(title='Bridge lighting')
        response = self.client.get('/api/v1/search/', {'q': tender.internal_id})
        self.assertEqual([entry['id'] for entry in response.data['tenders']], [tender.id])
        self.assertEqual(response.data['raw_materials'], [])

    def test_supplier_internal_id(self):
        supplier = TestDataFactory.create_supplier(supplier_type='foreign', country='Germany')
        response = self.client.get('/api/v1/search/', {'q': supplier.internal_id.upper()})
        self.assertEqual([entry['id'] for entry in response.data['suppliers']], [supplier.id])

    def test_unknown_internal_id_falls_back_to_text_search(self):
        response = self.client.get('/api/v1/search/', {'q': 'tdr_doesnotexist'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['tenders'], [])
