"""
Test suite for the trash module
Tests: moving records with their cascade, restoring, conflicts, purging
"""
import shutil
import tempfile
from decimal import Decimal

from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework import status
from tenderdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tenderdesk.catalog.models import RawMaterial, PriceQuote
from tenderdesk.core.models import Document
from tenderdesk.parties.models import Client
from tenderdesk.tenders.models import Tender
from tenderdesk.trash.models import TrashItem
from tenderdesk.trash.services import (
    move_to_trash, restore, purge, empty_trash, display_name_for,
    AlreadyInTrash, RestoreConflict
)


class DisplayNameTests(TestCase):

    def test_title_first(self):
        tender = TestDataFactory.create_tender(title='Harbour lights')
        self.assertEqual(display_name_for(tender), 'Harbour lights')

    def test_full_name(self):
        employee = TestDataFactory.create_employee(full_name='Omar Saleh')
        self.assertEqual(display_name_for(employee), 'Omar Saleh')

    def test_supplier_name(self):
        material = TestDataFactory.create_raw_material()
        quote = TestDataFactory.create_price_quote(material, '5.00', supplier_name='Market stall')
        self.assertEqual(display_name_for(quote), 'Market stall')

    def test_fallback(self):
        class Anonymous:
            pass
        self.assertEqual(display_name_for(Anonymous()), 'Unnamed item')


class TrashServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.material = TestDataFactory.create_raw_material(name='Copper wire', price=Decimal('30.00'))
        self.supplier = TestDataFactory.create_supplier()
        TestDataFactory.create_price_quote(self.material, '25.00', supplier=self.supplier)
        TestDataFactory.create_price_quote(self.material, '28.00', supplier_name='Other')

    def test_move_collects_cascade(self):
        trash_item = move_to_trash(self.material, user=self.user)
        self.assertEqual(trash_item.object_count, 3)
        self.assertEqual(trash_item.original_model, 'catalog.rawmaterial')
        self.assertEqual(trash_item.display_name, 'Copper wire')
        self.assertEqual(trash_item.deleted_by, self.user)
        self.assertTrue(trash_item.internal_id.startswith('trs_'))
        self.assertFalse(RawMaterial.objects.exists())
        self.assertFalse(PriceQuote.objects.exists())
        # parents first
        self.assertEqual(trash_item.payload[0]['model'], 'catalog.rawmaterial')

    def test_restore_recreates_with_same_keys(self):
        material_pk = self.material.pk
        quote_pks = set(PriceQuote.objects.values_list('pk', flat=True))
        trash_item = move_to_trash(self.material, user=self.user)

        restored = restore(trash_item)
        self.assertEqual(restored.pk, material_pk)
        self.assertEqual(set(PriceQuote.objects.values_list('pk', flat=True)), quote_pks)
        self.assertFalse(TrashItem.objects.exists())
        material = RawMaterial.objects.get(pk=material_pk)
        self.assertEqual(material.price, Decimal('25.00'))
        self.assertEqual(material.lowest_price_supplier, self.supplier)

    def test_cannot_trash_twice(self):
        client = TestDataFactory.create_client()
        move_to_trash(client)
        # same model and id back in the table, e.g. recreated by hand
        Client.objects.create(pk=client.pk, name='Again', email='again@test.test', phone='0500000000')
        with self.assertRaises(AlreadyInTrash):
            move_to_trash(Client.objects.get(pk=client.pk))

    def test_restore_conflicts_with_existing_row(self):
        client = TestDataFactory.create_client()
        trash_item = move_to_trash(client)
        Client.objects.create(pk=client.pk, name='Taken', email='taken@test.test', phone='0500000001')
        with self.assertRaises(RestoreConflict):
            restore(trash_item)
        self.assertTrue(TrashItem.objects.filter(pk=trash_item.pk).exists())

    def test_purge(self):
        trash_item = move_to_trash(TestDataFactory.create_client())
        purge(trash_item)
        self.assertFalse(TrashItem.objects.exists())

    def test_empty_trash(self):
        move_to_trash(TestDataFactory.create_client())
        move_to_trash(TestDataFactory.create_client())
        self.assertEqual(empty_trash(), 2)
        self.assertFalse(TrashItem.objects.exists())

    def test_context_recorded(self):
        quote = PriceQuote.objects.filter(supplier=self.supplier).get()
        trash_item = move_to_trash(quote)
        self.assertEqual(trash_item.context['material_id'], self.material.pk)
        self.assertEqual(trash_item.context['material_type'], 'rawMaterial')


class TrashDocumentTests(TestCase):
    """Documents are filed by owner type and id and follow their owner through the trash"""

    def setUp(self):
        self.media_root = tempfile.mkdtemp()
        self.override = override_settings(MEDIA_ROOT=self.media_root)
        self.override.enable()
        self.tender = TestDataFactory.create_tender()

    def tearDown(self):
        self.override.disable()
        shutil.rmtree(self.media_root, ignore_errors=True)

    def _attach(self, owner_type='tender', owner_id=None):
        upload = SimpleUploadedFile('offer.pdf', b'%PDF-1.4 test', content_type='application/pdf')
        return Document.objects.create(
            owner_type=owner_type,
            owner_id=owner_id or self.tender.id,
            file=upload,
            file_name='offer.pdf',
        )

    def test_owner_documents_are_trashed_with_owner(self):
        document = self._attach()
        trash_item = move_to_trash(self.tender)
        self.assertFalse(Document.objects.exists())
        self.assertIn('core.document', [entry['model'] for entry in trash_item.payload])
        # the file is kept until the entry is purged
        self.assertTrue(default_storage.exists(document.file.name))

    def test_restore_brings_documents_back(self):
        document = self._attach()
        trash_item = move_to_trash(self.tender)
        restore(trash_item)
        restored = Document.objects.get(pk=document.pk)
        self.assertEqual(restored.owner_id, self.tender.id)
        self.assertEqual(restored.file.name, document.file.name)

    def test_purging_owner_removes_document_files(self):
        document = self._attach()
        trash_item = move_to_trash(self.tender)
        purge(trash_item)
        self.assertFalse(Document.objects.exists())
        self.assertFalse(default_storage.exists(document.file.name))

    def test_purging_trashed_document_removes_its_file(self):
        document = self._attach()
        trash_item = move_to_trash(document)
        self.assertTrue(default_storage.exists(document.file.name))
        purge(trash_item)
        self.assertFalse(default_storage.exists(document.file.name))

    def test_other_owners_documents_stay(self):
        other = TestDataFactory.create_tender()
        kept = self._attach(owner_id=other.id)
        self._attach()
        move_to_trash(self.tender)
        self.assertEqual(list(Document.objects.values_list('pk', flat=True)), [kept.pk])

    def test_document_restore_needs_its_owner(self):
        document = self._attach()
        document_trash = move_to_trash(document)
        purge(move_to_trash(self.tender))
        self.assertFalse(Tender.objects.exists())
        with self.assertRaises(RestoreConflict):
            restore(document_trash)


class TrashAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_and_filter(self):
        move_to_trash(TestDataFactory.create_client(name='Old client'), user=self.user)
        move_to_trash(TestDataFactory.create_raw_material(), user=self.user)
        response = self.client.get('/api/v1/trash/')
        self.assertEqual(response.data['count'], 2)
        response = self.client.get('/api/v1/trash/', {'model': 'parties.client'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/trash/', {'search': 'old'})
        self.assertEqual(response.data['results'][0]['display_name'], 'Old client')

    def test_detail_includes_payload(self):
        trash_item = move_to_trash(TestDataFactory.create_client(), user=self.user)
        response = self.client.get(f'/api/v1/trash/{trash_item.id}/')
        self.assertEqual(len(response.data['payload']), 1)

    def test_restore_endpoint(self):
        client_party = TestDataFactory.create_client()
        trash_item = move_to_trash(client_party, user=self.user)
        response = self.client.post(f'/api/v1/trash/{trash_item.id}/restore/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['restored'])
        self.assertTrue(Client.objects.filter(pk=client_party.pk).exists())

    def test_purge_endpoint(self):
        trash_item = move_to_trash(TestDataFactory.create_client(), user=self.user)
        response = self.client.delete(f'/api/v1/trash/{trash_item.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(TrashItem.objects.exists())

    def test_empty_requires_admin(self):
        move_to_trash(TestDataFactory.create_client(), user=self.user)
        response = self.client.post('/api/v1/trash/empty/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/api/v1/trash/empty/')
        self.assertEqual(response.data, {'deleted': 1})

    def test_delete_of_already_trashed_record_is_conflict(self):
        client_party = TestDataFactory.create_client()
        move_to_trash(client_party, user=self.user)
        Client.objects.create(pk=client_party.pk, name='Again', email='again@test.test', phone='0500000002')
        response = self.client.delete(f'/api/v1/clients/{client_party.pk}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
