"""
Test suite for the tenders module
Tests: line items and merging, pricing refresh, summaries, status changes,
price studies, competitor prices and result statistics
"""
from decimal import Decimal
from unittest.mock import patch

from django.db import IntegrityError
from django.test import TestCase
from rest_framework import status
from tenderdesk.catalog.services import add_component
from tenderdesk.core.models import ActivityLog
from tenderdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tenderdesk.tenders import services as tender_services
from tenderdesk.tenders.models import Tender, TenderItem, CompetitorPrice, TenderStudy
from tenderdesk.tenders.services import (
    add_material, refresh_pricing, tender_summary, study_pricing, result_stats, DuplicateItem
)
from tenderdesk.trash.models import TrashItem
from tenderdesk.trash.services import restore, RestoreConflict


class TenderServiceTests(TestCase):
    """Test adding materials and tender totals"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.tender = TestDataFactory.create_tender(user=self.user)
        self.steel = TestDataFactory.create_raw_material(name='Steel', price=Decimal('50.00'))
        self.cable = TestDataFactory.create_local_product(name='Cable', price=Decimal('12.50'))

    def test_new_item_takes_snapshot(self):
        item, created = add_material(self.tender, 'rawMaterial', self.steel, 4)
        self.assertTrue(created)
        self.assertEqual(item.material_name, 'Steel')
        self.assertEqual(item.material_internal_id, self.steel.internal_id)
        self.assertEqual(item.unit_price, Decimal('50.00'))
        self.assertEqual(item.total_price, Decimal('200.00'))
        self.assertEqual(item.raw_material, self.steel)
        self.assertTrue(item.internal_id.startswith('ti_'))

    def test_same_material_merges(self):
        add_material(self.tender, 'rawMaterial', self.steel, 4)
        item, created = add_material(self.tender, 'rawMaterial', self.steel, 6)
        self.assertFalse(created)
        self.assertEqual(item.quantity, Decimal('10'))
        self.assertEqual(item.total_price, Decimal('500.00'))
        self.assertEqual(self.tender.items.count(), 1)

    def test_merge_disabled_raises(self):
        add_material(self.tender, 'rawMaterial', self.steel, 1)
        with self.assertRaises(DuplicateItem):
            add_material(self.tender, 'rawMaterial', self.steel, 1, merge=False)

    def test_quantity_must_be_positive(self):
        with self.assertRaises(ValueError):
            add_material(self.tender, 'rawMaterial', self.steel, 0)
        with self.assertRaises(ValueError):
            add_material(self.tender, 'rawMaterial', self.steel, -2)

    def test_unit_price_uses_cheapest_quote(self):
        supplier = TestDataFactory.create_supplier(name='Budget Steel')
        TestDataFactory.create_price_quote(self.steel, '42.00', supplier=supplier)
        item, _ = add_material(self.tender, 'rawMaterial', self.steel, 1)
        self.assertEqual(item.unit_price, Decimal('42.00'))
        self.assertEqual(item.supplier_info['supplier_name'], 'Budget Steel')

    def test_manufactured_product_item(self):
        product = TestDataFactory.create_manufactured_product(title='Control panel')
        add_component(product, 'localProduct', self.cable, 4)
        product.refresh_from_db()
        item, _ = add_material(self.tender, 'manufacturedProduct', product, 2)
        self.assertEqual(item.material_name, 'Control panel')
        self.assertEqual(item.unit_price, Decimal('50.00'))
        self.assertEqual(item.manufactured_product, product)

    def test_estimated_value_follows_items(self):
        add_material(self.tender, 'rawMaterial', self.steel, 2)
        item, _ = add_material(self.tender, 'localProduct', self.cable, 4)
        self.tender.refresh_from_db()
        self.assertEqual(self.tender.estimated_value, Decimal('150.00'))
        item.delete()
        self.tender.refresh_from_db()
        self.assertEqual(self.tender.estimated_value, Decimal('100.00'))

    def test_refresh_pricing(self):
        add_material(self.tender, 'rawMaterial', self.steel, 2)
        add_material(self.tender, 'localProduct', self.cable, 1)
        supplier = TestDataFactory.create_supplier()
        TestDataFactory.create_price_quote(self.steel, '45.00', supplier=supplier)

        self.assertEqual(refresh_pricing(self.tender), 1)
        item = self.tender.items.get(material_type='rawMaterial')
        self.assertEqual(item.unit_price, Decimal('45.00'))
        self.assertEqual(item.total_price, Decimal('90.00'))
        self.tender.refresh_from_db()
        self.assertEqual(self.tender.estimated_value, Decimal('102.50'))
        self.assertEqual(refresh_pricing(self.tender), 0)

    def test_refresh_skips_missing_material(self):
        item, _ = add_material(self.tender, 'rawMaterial', self.steel, 2)
        self.steel.delete()
        self.assertEqual(refresh_pricing(self.tender), 0)
        item.refresh_from_db()
        self.assertEqual(item.unit_price, Decimal('50.00'))
        self.assertEqual(item.material_name, 'Steel')

    def test_summary(self):
        add_material(self.tender, 'rawMaterial', self.steel, 2)
        add_material(self.tender, 'localProduct', self.cable, 4)
        summary = tender_summary(self.tender)
        self.assertEqual(summary['item_count'], 2)
        self.assertEqual(summary['total_price'], Decimal('150.00'))
        self.assertEqual(summary['total_quantity'], Decimal('6'))
        self.assertEqual(summary['by_material_type']['rawMaterial'], 1)
        self.assertEqual(summary['by_material_type']['foreignProduct'], 0)

    def test_result_stats(self):
        add_material(self.tender, 'rawMaterial', self.steel, 2)
        CompetitorPrice.objects.create(tender=self.tender, competitor_name='A', price=Decimal('90.00'))
        CompetitorPrice.objects.create(tender=self.tender, competitor_name='B', price=Decimal('130.00'))
        stats = result_stats(self.tender)
        self.assertEqual(stats['items_total'], Decimal('100.00'))
        self.assertEqual(stats['our_price'], Decimal('100.00'))
        self.assertEqual(stats['total_bids'], 3)
        self.assertEqual(stats['lowest_price'], Decimal('90.00'))
        self.assertEqual(stats['average_price'], Decimal('106.67'))
        self.assertEqual(stats['lowest_competitor_price'], Decimal('90.00'))
        self.assertEqual(stats['highest_competitor_price'], Decimal('130.00'))
        self.assertEqual(stats['our_rank'], 2)
        self.assertFalse(stats['is_lowest'])

    def test_result_stats_without_competitors(self):
        stats = result_stats(self.tender)
        self.assertIsNone(stats['lowest_competitor_price'])
        self.assertIsNone(stats['our_rank'])
        self.assertIsNone(stats['average_price'])

    def test_concurrent_first_add_is_merged(self):
        add_material(self.tender, 'rawMaterial', self.steel, 2)
        real = tender_services._add_or_merge
        calls = []

        def lose_race_once(*args):
            calls.append(args)
            if len(calls) == 1:
                raise IntegrityError('UNIQUE constraint failed: uniq_tender_material')
            return real(*args)

        with patch('tenderdesk.tenders.services._add_or_merge', side_effect=lose_race_once):
            item, created = add_material(self.tender, 'rawMaterial', self.steel, 3)
        self.assertFalse(created)
        self.assertEqual(len(calls), 2)
        self.assertEqual(item.quantity, Decimal('5'))
        self.assertEqual(self.tender.items.count(), 1)

    def test_repeated_integrity_error_is_raised(self):
        with patch('tenderdesk.tenders.services._add_or_merge', side_effect=IntegrityError('UNIQUE constraint failed')):
            with self.assertRaises(IntegrityError):
                add_material(self.tender, 'rawMaterial', self.steel, 1)

    def test_item_total_rounded_to_cents(self):
        washer = TestDataFactory.create_raw_material(name='Washer', price=Decimal('0.35'))
        item, _ = add_material(self.tender, 'rawMaterial', washer, '0.333')
        self.assertEqual(item.total_price, Decimal('0.12'))
        item.refresh_from_db()
        self.assertEqual(item.total_price, Decimal('0.12'))
        self.tender.refresh_from_db()
        self.assertEqual(self.tender.estimated_value, Decimal('0.12'))


class TenderStudyTests(TestCase):
    """Profit on top of the item costs and the final price it gives"""

    def setUp(self):
        self.tender = TestDataFactory.create_tender()
        steel = TestDataFactory.create_raw_material(name='Steel', price=Decimal('50.00'))
        cable = TestDataFactory.create_local_product(name='Cable', price=Decimal('12.50'))
        self.steel_item, _ = add_material(self.tender, 'rawMaterial', steel, 2)
        self.cable_item, _ = add_material(self.tender, 'localProduct', cable, 4)

    def test_without_study_final_price_is_items_total(self):
        pricing = study_pricing(self.tender)
        self.assertFalse(pricing['has_study'])
        self.assertIsNone(pricing['method'])
        self.assertEqual(pricing['final_price'], Decimal('150.00'))
        self.assertEqual(pricing['total_profit'], Decimal('0.00'))

    def test_overall_fixed_and_percentage_profit(self):
        TenderStudy.objects.create(tender=self.tender, fixed_profit=Decimal('10.00'), percentage_profit=Decimal('10'))
        pricing = study_pricing(self.tender)
        self.assertEqual(pricing['method'], 'overall')
        self.assertEqual(pricing['base_cost'], Decimal('150.00'))
        self.assertEqual(pricing['total_profit'], Decimal('25.00'))
        self.assertEqual(pricing['final_price'], Decimal('175.00'))
        self.assertEqual(pricing['profit_margin'], Decimal('16.67'))
        profits = {line['internal_id']: line['profit'] for line in pricing['items']}
        self.assertEqual(profits[self.steel_item.internal_id], Decimal('16.67'))
        self.assertEqual(profits[self.cable_item.internal_id], Decimal('8.33'))

    def test_per_item_profit(self):
        TenderStudy.objects.create(tender=self.tender, per_item=True, item_profits={
            self.steel_item.internal_id: {'type': 'percentage', 'value': '20'},
            self.cable_item.internal_id: {'type': 'fixed', 'value': '5'},
        })
        pricing = study_pricing(self.tender)
        self.assertEqual(pricing['method'], 'per_item')
        self.assertEqual(pricing['total_profit'], Decimal('25.00'))
        self.assertEqual(pricing['final_price'], Decimal('175.00'))
        sale_prices = {line['internal_id']: line['sale_price'] for line in pricing['items']}
        self.assertEqual(sale_prices[self.steel_item.internal_id], Decimal('120.00'))
        self.assertEqual(sale_prices[self.cable_item.internal_id], Decimal('55.00'))

    def test_per_item_ignores_overall_values(self):
        TenderStudy.objects.create(tender=self.tender, per_item=True, fixed_profit=Decimal('99.00'))
        self.assertEqual(study_pricing(self.tender)['final_price'], Decimal('150.00'))

    def test_results_use_final_price(self):
        TenderStudy.objects.create(tender=self.tender, fixed_profit=Decimal('25.00'))
        CompetitorPrice.objects.create(tender=self.tender, competitor_name='Rival', price=Decimal('170.00'))
        stats = result_stats(self.tender)
        self.assertEqual(stats['items_total'], Decimal('150.00'))
        self.assertEqual(stats['our_price'], Decimal('175.00'))
        self.assertEqual(stats['our_rank'], 2)
        self.assertEqual(stats['lowest_price'], Decimal('170.00'))
        self.assertEqual(stats['highest_price'], Decimal('175.00'))
        self.assertEqual(stats['average_price'], Decimal('172.50'))


class TenderStudyAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.tender = TestDataFactory.create_tender(user=self.user)
        steel = TestDataFactory.create_raw_material(price=Decimal('40.00'))
        self.item, _ = add_material(self.tender, 'rawMaterial', steel, 5)
        self.url = f'/api/v1/tenders/{self.tender.id}/study/'

    def test_get_without_study(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['study'])
        self.assertEqual(response.data['pricing']['final_price'], Decimal('200.00'))

    def test_put_creates_then_replaces(self):
        response = self.client.put(self.url, {'fixed_profit': '20.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['pricing']['final_price'], Decimal('220.00'))
        self.assertEqual(TenderStudy.objects.get().updated_by, self.user)

        response = self.client.put(self.url, {
            'per_item': True, 'item_profits': {self.item.internal_id: {'type': 'percentage', 'value': '10'}}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(TenderStudy.objects.count(), 1)
        response = self.client.get(self.url)
        self.assertEqual(response.data['pricing']['method'], 'per_item')
        self.assertEqual(response.data['pricing']['final_price'], Decimal('220.00'))

    def test_invalid_profit_rejected(self):
        response = self.client.put(self.url, {
            'per_item': True, 'item_profits': {self.item.internal_id: {'type': 'bonus', 'value': '10'}}
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('item_profits', response.data)
        response = self.client.put(self.url, {'fixed_profit': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(TenderStudy.objects.exists())

    def test_delete_moves_study_to_trash(self):
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        TenderStudy.objects.create(tender=self.tender, fixed_profit=Decimal('5.00'))
        response = self.client.delete(self.url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(TenderStudy.objects.exists())
        self.assertTrue(TrashItem.objects.filter(original_model='tenders.tenderstudy').exists())


class TenderAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.steel = TestDataFactory.create_raw_material(name='Steel', price=Decimal('50.00'))

    def _payload(self, **overrides):
        data = {
            'title': 'School maintenance',
            'reference_number': 'T-2024-001',
            'entity': 'Education Department',
            'submission_deadline': '2030-01-31',
        }
        data.update(overrides)
        return data

    def test_create_tender(self):
        response = self.client.post('/api/v1/tenders/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['internal_id'].startswith('tdr_'))
        self.assertEqual(response.data['status'], 'draft')
        self.assertEqual(Tender.objects.get().created_by, self.user)

    def test_required_fields(self):
        response = self.client.post('/api/v1/tenders/', {'title': ' '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        for field in ('title', 'reference_number', 'entity', 'submission_deadline'):
            self.assertIn(field, response.data)

    def test_create_with_items_merges_duplicates(self):
        response = self.client.post('/api/v1/tenders/', self._payload(items=[
            {'material_type': 'rawMaterial', 'material_id': self.steel.id, 'quantity': 2},
            {'material_type': 'rawMaterial', 'material_internal_id': self.steel.internal_id, 'quantity': 3},
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['items']), 1)
        self.assertEqual(Decimal(response.data['estimated_value']), Decimal('250.00'))

    def test_create_with_unknown_material_rolls_back(self):
        response = self.client.post('/api/v1/tenders/', self._payload(items=[
            {'material_type': 'rawMaterial', 'material_id': 999999, 'quantity': 1},
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Tender.objects.exists())

    def test_list_filters(self):
        client_party = TestDataFactory.create_client()
        TestDataFactory.create_tender(title='Hospital wing', client=client_party)
        TestDataFactory.create_tender(title='Road', status='won')
        response = self.client.get('/api/v1/tenders/', {'status': 'won'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/tenders/', {'client': client_party.id})
        self.assertEqual(response.data['results'][0]['client_name'], client_party.name)
        response = self.client.get('/api/v1/tenders/', {'search': 'hospital'})
        self.assertEqual(response.data['count'], 1)
        self.assertIn('X-Data-Version', response)

    def test_data_version_changes_when_older_tender_is_trashed(self):
        older = TestDataFactory.create_tender(title='Older')
        TestDataFactory.create_tender(title='Newer')
        before = self.client.get('/api/v1/tenders/')['X-Data-Version']
        response = self.client.delete(f'/api/v1/tenders/{older.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertNotEqual(self.client.get('/api/v1/tenders/')['X-Data-Version'], before)

    def test_items_endpoint_merges(self):
        tender = TestDataFactory.create_tender(user=self.user)
        url = f'/api/v1/tenders/{tender.id}/items/'
        response = self.client.post(url, {'material_type': 'rawMaterial', 'material_id': self.steel.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(url, {'material_type': 'rawMaterial', 'material_id': self.steel.id, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['quantity']), Decimal('3'))
        self.assertTrue(ActivityLog.objects.filter(action='tender_item_add').exists())

    def test_item_create_rejects_duplicate(self):
        tender = TestDataFactory.create_tender(user=self.user)
        url = f'/api/v1/tenders/{tender.id}/items/create/'
        data = {'material_type': 'rawMaterial', 'material_id': self.steel.id, 'quantity': 2}
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(url, data, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(TenderItem.objects.count(), 1)

    def test_item_missing_material(self):
        tender = TestDataFactory.create_tender(user=self.user)
        response = self.client.post(f'/api/v1/tenders/{tender.id}/items/', {
            'material_type': 'foreignProduct', 'material_id': 999999
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_item_invalid_quantity(self):
        tender = TestDataFactory.create_tender(user=self.user)
        response = self.client.post(f'/api/v1/tenders/{tender.id}/items/', {
            'material_type': 'rawMaterial', 'material_id': self.steel.id, 'quantity': 0
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_item_patch_recomputes_totals(self):
        tender = TestDataFactory.create_tender(user=self.user)
        item, _ = add_material(tender, 'rawMaterial', self.steel, 2)
        response = self.client.patch(f'/api/v1/tenders/{tender.id}/items/{item.id}/', {
            'quantity': '4', 'unit_price': '60.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['total_price']), Decimal('240.00'))
        tender.refresh_from_db()
        self.assertEqual(tender.estimated_value, Decimal('240.00'))

    def test_item_patch_rejects_zero_quantity(self):
        tender = TestDataFactory.create_tender(user=self.user)
        item, _ = add_material(tender, 'rawMaterial', self.steel, 2)
        response = self.client.patch(f'/api/v1/tenders/{tender.id}/items/{item.id}/', {'quantity': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_refresh_pricing_endpoint(self):
        tender = TestDataFactory.create_tender(user=self.user)
        add_material(tender, 'rawMaterial', self.steel, 2)
        self.steel.price = Decimal('55.00')
        self.steel.save()
        response = self.client.post(f'/api/v1/tenders/{tender.id}/refresh-pricing/')
        self.assertEqual(response.data['updated'], 1)
        self.assertEqual(Decimal(response.data['tender']['estimated_value']), Decimal('110.00'))

    def test_summary_endpoint(self):
        tender = TestDataFactory.create_tender(user=self.user)
        add_material(tender, 'rawMaterial', self.steel, 2)
        response = self.client.get(f'/api/v1/tenders/{tender.id}/summary/')
        self.assertEqual(response.data['item_count'], 1)

    def test_change_status(self):
        tender = TestDataFactory.create_tender(user=self.user, status='submitted')
        response = self.client.post(f'/api/v1/tenders/{tender.id}/status/', {
            'status': 'won', 'awarded_value': '125000.00', 'result_notes': 'Lowest bid'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tender.refresh_from_db()
        self.assertEqual(tender.status, 'won')
        self.assertEqual(tender.awarded_value, Decimal('125000.00'))
        log = ActivityLog.objects.get(action='tender_status')
        self.assertEqual(log.changes, {'status': ['submitted', 'won']})

    def test_awarded_value_only_when_won(self):
        tender = TestDataFactory.create_tender(user=self.user)
        response = self.client.post(f'/api/v1/tenders/{tender.id}/status/', {
            'status': 'lost', 'awarded_value': '10.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_awarded_value_cleared_when_leaving_won(self):
        tender = TestDataFactory.create_tender(user=self.user, status='submitted')
        url = f'/api/v1/tenders/{tender.id}/status/'
        self.client.post(url, {'status': 'won', 'awarded_value': '5000.00'}, format='json')
        response = self.client.post(url, {'status': 'lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['awarded_value'])
        tender.refresh_from_db()
        self.assertIsNone(tender.awarded_value)

    def test_patch_cannot_change_status_or_result(self):
        tender = TestDataFactory.create_tender(user=self.user, status='submitted')
        self.client.post(f'/api/v1/tenders/{tender.id}/status/', {
            'status': 'won', 'awarded_value': '5000.00', 'result_notes': 'Awarded'
        }, format='json')
        response = self.client.patch(f'/api/v1/tenders/{tender.id}/', {
            'status': 'draft', 'awarded_value': '999.00', 'result_notes': '', 'title': 'Renamed'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        tender.refresh_from_db()
        self.assertEqual(tender.title, 'Renamed')
        self.assertEqual(tender.status, 'won')
        self.assertEqual(tender.awarded_value, Decimal('5000.00'))
        self.assertEqual(tender.result_notes, 'Awarded')

    def test_item_removal_logged_only_when_trashed(self):
        tender = TestDataFactory.create_tender(user=self.user)
        item, _ = add_material(tender, 'rawMaterial', self.steel, 1)
        url = f'/api/v1/tenders/{tender.id}/items/{item.id}/'
        blocker = TrashItem.objects.create(
            original_model='tenders.tenderitem', original_id=str(item.pk), display_name='Earlier copy'
        )
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(ActivityLog.objects.filter(action='tender_item_remove').exists())
        self.assertTrue(TenderItem.objects.filter(pk=item.pk).exists())

        blocker.delete()
        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(ActivityLog.objects.filter(action='tender_item_remove').exists())

    def test_invalid_status(self):
        tender = TestDataFactory.create_tender(user=self.user)
        response = self.client.post(f'/api/v1/tenders/{tender.id}/status/', {'status': 'archived'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_by_internal_id(self):
        tender = TestDataFactory.create_tender(user=self.user)
        response = self.client.get(f'/api/v1/tenders/by-internal-id/{tender.internal_id}/')
        self.assertEqual(response.data['id'], tender.id)

    def test_client_tender_count(self):
        client_party = TestDataFactory.create_client()
        TestDataFactory.create_tender(client=client_party)
        response = self.client.get(f'/api/v1/clients/{client_party.id}/')
        self.assertEqual(response.data['tender_count'], 1)


class CompetitorPriceAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.tender = TestDataFactory.create_tender(user=self.user)
        self.url = f'/api/v1/tenders/{self.tender.id}/competitors/'

    def test_add_competitor(self):
        response = self.client.post(self.url, {
            'competitor_name': 'Rival Contracting', 'competitor_city': 'Dammam', 'price': '98000.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(CompetitorPrice.objects.get().created_by, self.user)

    def test_duplicate_competitor_rejected(self):
        self.client.post(self.url, {'competitor_name': 'Rival', 'price': '10.00'}, format='json')
        response = self.client.post(self.url, {'competitor_name': ' rival ', 'price': '12.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('competitor_name', response.data)

    def test_same_competitor_on_other_tender(self):
        other = TestDataFactory.create_tender(user=self.user)
        CompetitorPrice.objects.create(tender=other, competitor_name='Rival', price=Decimal('10.00'))
        response = self.client.post(self.url, {'competitor_name': 'Rival', 'price': '12.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_price_must_be_positive(self):
        response = self.client.post(self.url, {'competitor_name': 'Rival', 'price': '0'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_delete(self):
        entry = CompetitorPrice.objects.create(tender=self.tender, competitor_name='Rival', price=Decimal('10.00'))
        response = self.client.patch(f'{self.url}{entry.id}/', {'price': '11.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.delete(f'{self.url}{entry.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CompetitorPrice.objects.exists())

    def test_results_endpoint(self):
        steel = TestDataFactory.create_raw_material(price=Decimal('10.00'))
        add_material(self.tender, 'rawMaterial', steel, 5)
        CompetitorPrice.objects.create(tender=self.tender, competitor_name='Rival', price=Decimal('60.00'))
        response = self.client.get(f'/api/v1/tenders/{self.tender.id}/results/')
        self.assertEqual(response.data['our_rank'], 1)
        self.assertTrue(response.data['is_lowest'])


class TenderTrashTests(TestCase):
    """Trashing and restoring tenders, items and their materials"""

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.tender = TestDataFactory.create_tender(user=self.user)
        self.steel = TestDataFactory.create_raw_material(name='Steel', price=Decimal('50.00'))
        self.item, _ = add_material(self.tender, 'rawMaterial', self.steel, 2)

    def test_trash_tender_takes_items(self):
        CompetitorPrice.objects.create(tender=self.tender, competitor_name='Rival', price=Decimal('10.00'))
        response = self.client.delete(f'/api/v1/tenders/{self.tender.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(TenderItem.objects.exists())
        trash_item = TrashItem.objects.get(original_model='tenders.tender')
        self.assertEqual(trash_item.object_count, 3)

        restore(trash_item)
        tender = Tender.objects.get(pk=self.tender.pk)
        self.assertEqual(tender.items.count(), 1)
        self.assertEqual(tender.competitor_prices.count(), 1)
        self.assertEqual(tender.estimated_value, Decimal('100.00'))

    def test_restore_item_recomputes_tender(self):
        self.client.delete(f'/api/v1/tenders/{self.tender.id}/items/{self.item.id}/')
        self.tender.refresh_from_db()
        self.assertEqual(self.tender.estimated_value, Decimal('0.00'))
        self.assertTrue(ActivityLog.objects.filter(action='tender_item_remove').exists())

        restore(TrashItem.objects.get(original_model='tenders.tenderitem'))
        self.tender.refresh_from_db()
        self.assertEqual(self.tender.estimated_value, Decimal('100.00'))

    def test_restore_item_after_material_re_added_conflicts(self):
        self.client.delete(f'/api/v1/tenders/{self.tender.id}/items/{self.item.id}/')
        add_material(self.tender, 'rawMaterial', self.steel, 1)
        with self.assertRaises(RestoreConflict):
            restore(TrashItem.objects.get(original_model='tenders.tenderitem'))

    def test_item_of_trashed_tender_cannot_be_restored(self):
        self.client.delete(f'/api/v1/tenders/{self.tender.id}/items/{self.item.id}/')
        self.client.delete(f'/api/v1/tenders/{self.tender.id}/')
        response = self.client.post(
            f"/api/v1/trash/{TrashItem.objects.get(original_model='tenders.tenderitem').id}/restore/"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_trashed_material_is_relinked_on_restore(self):
        self.client.delete(f'/api/v1/raw-materials/{self.steel.id}/')
        self.item.refresh_from_db()
        self.assertIsNone(self.item.raw_material_id)
        self.assertEqual(self.item.material_name, 'Steel')

        restore(TrashItem.objects.get(original_model='catalog.rawmaterial'))
        self.item.refresh_from_db()
        self.assertEqual(self.item.raw_material_id, self.steel.id)
