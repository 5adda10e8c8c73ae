"""
Test suite for the parties module
Tests: clients, local and foreign suppliers, contact uniqueness across parties
"""
from django.test import TestCase
from rest_framework import status
from tenderdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tenderdesk.parties.models import Client, Supplier
from tenderdesk.parties.validators import find_party_conflict, validate_unique_party_fields
from tenderdesk.trash.models import TrashItem
from tenderdesk.trash.services import restore


class SupplierModelTests(TestCase):

    def test_internal_id_prefix_follows_type(self):
        local = TestDataFactory.create_supplier(supplier_type='local')
        foreign = TestDataFactory.create_supplier(supplier_type='foreign', country='China')
        self.assertTrue(local.internal_id.startswith('ls_'))
        self.assertTrue(foreign.internal_id.startswith('fs_'))

    def test_local_supplier_country_default(self):
        supplier = TestDataFactory.create_supplier(supplier_type='local')
        self.assertEqual(supplier.country, 'Saudi Arabia')


class PartyUniquenessTests(TestCase):
    """Phone, email and tax number are shared across clients and suppliers"""

    def test_phone_used_by_client(self):
        TestDataFactory.create_client(phone='0551112222')
        self.assertEqual(find_party_conflict('phone', ' 0551112222 '), 'client')

    def test_email_case_insensitive(self):
        TestDataFactory.create_supplier(email='sales@steel.test')
        self.assertEqual(find_party_conflict('email', 'SALES@steel.test'), 'local supplier')

    def test_foreign_supplier_label(self):
        TestDataFactory.create_supplier(supplier_type='foreign', phone='+8613812345678')
        self.assertEqual(find_party_conflict('phone', '+8613812345678'), 'foreign supplier')

    def test_exclude_self(self):
        client = TestDataFactory.create_client(phone='0551112222')
        self.assertIsNone(find_party_conflict('phone', '0551112222', exclude=client))

    def test_blank_values_never_conflict(self):
        TestDataFactory.create_client(tax_number='')
        self.assertEqual(validate_unique_party_fields({'tax_number': ''}), {})

    def test_names_may_repeat(self):
        TestDataFactory.create_client(name='Acme')
        self.assertEqual(validate_unique_party_fields({'name': 'Acme'}), {})


class ClientAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_client(self):
        response = self.client.post('/api/v1/clients/', {
            'name': 'Ministry of Health',
            'email': 'procurement@moh.test',
            'phone': '0112223333',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['internal_id'].startswith('cst_'))
        self.assertEqual(response.data['tender_count'], 0)

    def test_phone_taken_by_supplier(self):
        TestDataFactory.create_supplier(phone='0112223333')
        response = self.client.post('/api/v1/clients/', {
            'name': 'Ministry of Health',
            'email': 'procurement@moh.test',
            'phone': '0112223333',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_update_keeps_own_phone(self):
        client = TestDataFactory.create_client(phone='0112223333')
        response = self.client.patch(f'/api/v1/clients/{client.id}/', {
            'phone': '0112223333', 'notes': 'Key account'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_search(self):
        TestDataFactory.create_client(name='Riyadh Municipality')
        TestDataFactory.create_client(name='Jeddah Port')
        response = self.client.get('/api/v1/clients/', {'search': 'riyadh'})
        self.assertEqual(response.data['count'], 1)

    def test_trash_client(self):
        client = TestDataFactory.create_client()
        response = self.client.delete(f'/api/v1/clients/{client.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Client.objects.filter(pk=client.pk).exists())
        self.assertTrue(TrashItem.objects.filter(original_model='parties.client').exists())


class SupplierAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_local_supplier(self):
        response = self.client.post('/api/v1/suppliers/', {
            'name': 'Al Noor Steel',
            'supplier_type': 'local',
            'phone': '0133334444',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['country'], 'Saudi Arabia')

    def test_foreign_supplier_short_phone(self):
        response = self.client.post('/api/v1/suppliers/', {
            'name': 'Shenzhen Parts',
            'supplier_type': 'foreign',
            'phone': '12345',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data)

    def test_foreign_supplier_short_name(self):
        response = self.client.post('/api/v1/suppliers/', {
            'name': 'X',
            'supplier_type': 'foreign',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data)

    def test_type_cannot_change(self):
        supplier = TestDataFactory.create_supplier(supplier_type='local')
        response = self.client.patch(f'/api/v1/suppliers/{supplier.id}/', {'supplier_type': 'foreign'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_type(self):
        TestDataFactory.create_supplier(supplier_type='local')
        TestDataFactory.create_supplier(supplier_type='foreign')
        response = self.client.get('/api/v1/suppliers/', {'supplier_type': 'foreign'})
        self.assertEqual(response.data['count'], 1)

    def test_supplier_quotes(self):
        supplier = TestDataFactory.create_supplier()
        material = TestDataFactory.create_raw_material()
        TestDataFactory.create_price_quote(material, '42.00', supplier=supplier)
        response = self.client.get(f'/api/v1/suppliers/{supplier.id}/quotes/')
        self.assertEqual(len(response.data), 1)
        self.assertEqual(response.data[0]['material_name'], material.name)

    def test_check_unique(self):
        TestDataFactory.create_client(email='a@b.test')
        response = self.client.get('/api/v1/parties/check-unique/', {'field': 'email', 'value': 'A@B.test'})
        self.assertFalse(response.data['unique'])
        response = self.client.get('/api/v1/parties/check-unique/', {'field': 'email', 'value': 'free@b.test'})
        self.assertTrue(response.data['unique'])

    def test_check_unique_rejects_unknown_field(self):
        response = self.client.get('/api/v1/parties/check-unique/', {'field': 'name', 'value': 'x'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_trash_and_restore_relinks_quotes(self):
        supplier = TestDataFactory.create_supplier()
        material = TestDataFactory.create_raw_material()
        quote = TestDataFactory.create_price_quote(material, '42.00', supplier=supplier)
        material.refresh_from_db()
        self.assertEqual(material.lowest_price_supplier_id, supplier.id)

        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        quote.refresh_from_db()
        self.assertIsNone(quote.supplier_id)

        restore(TrashItem.objects.get(original_model='parties.supplier'))
        quote.refresh_from_db()
        material.refresh_from_db()
        self.assertEqual(quote.supplier_id, supplier.id)
        self.assertEqual(material.lowest_price_supplier_id, supplier.id)
        self.assertTrue(Supplier.objects.filter(pk=supplier.pk).exists())
