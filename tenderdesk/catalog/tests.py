"""
Test suite for the catalog module
Tests: lowest-price selection, price quotes, materials, manufactured products and settings
"""
from decimal import Decimal
from unittest.mock import patch

from django.core.cache import cache
from django.db import IntegrityError
from django.test import TestCase
from rest_framework import status
from tenderdesk.core.models import ActivityLog
from tenderdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tenderdesk.catalog import services as catalog_services
from tenderdesk.catalog.cache import SETTINGS_CACHE_KEY, get_settings_payload
from tenderdesk.catalog.defaults import seed_default_settings, DEFAULT_CATEGORIES, DEFAULT_UNITS
from tenderdesk.catalog.models import (
    Category, Unit, RawMaterial, LocalProduct, PriceQuote, ManufacturedProductComponent
)
from tenderdesk.catalog.pricing import cheapest_quote, quote_price, material_unit_price, refresh_lowest_price
from tenderdesk.catalog.services import add_component, resolve_material, material_snapshot, MaterialNotFound
from tenderdesk.trash.models import TrashItem
from tenderdesk.trash.services import restore, RestoreConflict


class CheapestQuoteTests(TestCase):
    """Test lowest-price selection on plain quote dicts"""

    def test_no_quotes(self):
        self.assertIsNone(cheapest_quote([]))

    def test_lowest_wins(self):
        quotes = [{'id': 1, 'price': '30'}, {'id': 2, 'price': '10.5'}, {'id': 3, 'price': 20}]
        self.assertEqual(cheapest_quote(quotes)['id'], 2)

    def test_tie_keeps_first(self):
        quotes = [{'id': 1, 'price': '10'}, {'id': 2, 'price': '10.00'}]
        self.assertEqual(cheapest_quote(quotes)['id'], 1)

    def test_unparsable_price_counts_as_zero(self):
        quotes = [{'id': 1, 'price': '10'}, {'id': 2, 'price': 'n/a'}]
        self.assertEqual(cheapest_quote(quotes)['id'], 2)
        self.assertEqual(quote_price({'price': None}), Decimal('0.00'))


class LowestPriceSyncTests(TestCase):
    """Material price follows its cheapest quote"""

    def setUp(self):
        self.material = TestDataFactory.create_raw_material(price=Decimal('100.00'))
        self.cheap = TestDataFactory.create_supplier(name='Cheap Co')
        self.pricey = TestDataFactory.create_supplier(name='Pricey Co')

    def test_quote_sets_price_and_supplier(self):
        TestDataFactory.create_price_quote(self.material, '80.00', supplier=self.pricey)
        TestDataFactory.create_price_quote(self.material, '60.00', supplier=self.cheap)
        self.material.refresh_from_db()
        self.assertEqual(self.material.price, Decimal('60.00'))
        self.assertEqual(self.material.supplier, 'Cheap Co')
        self.assertEqual(self.material.lowest_price_supplier, self.cheap)

    def test_quote_update(self):
        quote = TestDataFactory.create_price_quote(self.material, '80.00', supplier=self.pricey)
        TestDataFactory.create_price_quote(self.material, '60.00', supplier=self.cheap)
        quote.price = Decimal('50.00')
        quote.save()
        self.material.refresh_from_db()
        self.assertEqual(self.material.price, Decimal('50.00'))
        self.assertEqual(self.material.lowest_price_supplier, self.pricey)

    def test_deleting_cheapest_falls_back_to_next(self):
        TestDataFactory.create_price_quote(self.material, '80.00', supplier=self.pricey)
        cheap_quote = TestDataFactory.create_price_quote(self.material, '60.00', supplier=self.cheap)
        cheap_quote.delete()
        self.material.refresh_from_db()
        self.assertEqual(self.material.price, Decimal('80.00'))
        self.assertEqual(self.material.supplier, 'Pricey Co')

    def test_last_quote_removed_keeps_price(self):
        quote = TestDataFactory.create_price_quote(self.material, '70.00', supplier=self.cheap)
        quote.delete()
        self.material.refresh_from_db()
        self.assertEqual(self.material.price, Decimal('70.00'))

    def test_refresh_without_quotes(self):
        self.assertFalse(refresh_lowest_price(self.material))

    def test_unit_price(self):
        self.assertEqual(material_unit_price(self.material), Decimal('100.00'))
        TestDataFactory.create_price_quote(self.material, '45.00', supplier=self.cheap)
        self.assertEqual(material_unit_price(self.material), Decimal('45.00'))

    def test_trash_and_restore_quote(self):
        TestDataFactory.create_price_quote(self.material, '80.00', supplier=self.pricey)
        cheap_quote = TestDataFactory.create_price_quote(self.material, '60.00', supplier=self.cheap)
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())

        response = client.delete(f'/api/v1/price-quotes/{cheap_quote.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.material.refresh_from_db()
        self.assertEqual(self.material.price, Decimal('80.00'))

        restore(TrashItem.objects.get(original_model='catalog.pricequote'))
        self.material.refresh_from_db()
        self.assertEqual(self.material.price, Decimal('60.00'))
        self.assertEqual(self.material.lowest_price_supplier, self.cheap)

    def test_quote_of_trashed_material_cannot_be_restored(self):
        quote = TestDataFactory.create_price_quote(self.material, '60.00', supplier=self.cheap)
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        client.delete(f'/api/v1/price-quotes/{quote.id}/')
        client.delete(f'/api/v1/raw-materials/{self.material.id}/')

        with self.assertRaises(RestoreConflict):
            restore(TrashItem.objects.get(original_model='catalog.pricequote'))


class MaterialAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.supplier = TestDataFactory.create_supplier(name='Steel House')

    def test_create_raw_material(self):
        response = self.client.post('/api/v1/raw-materials/', {
            'name': 'Rebar 12mm', 'category': 'Building materials', 'unit': 'Ton', 'price': '2500.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['internal_id'].startswith('rm_'))
        self.assertEqual(response.data['material_type'], 'rawMaterial')

    def test_price_required_without_quotes(self):
        response = self.client.post('/api/v1/raw-materials/', {
            'name': 'Rebar 12mm', 'category': 'Building materials', 'unit': 'Ton', 'price': '0'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data)

    def test_create_with_quotes_takes_cheapest(self):
        response = self.client.post('/api/v1/local-products/', {
            'name': 'Cement bag', 'category': 'Building materials', 'unit': 'Piece',
            'price_quotes': [
                {'supplier': self.supplier.id, 'price': '19.50'},
                {'supplier_name': 'Corner shop', 'price': '21.00'},
            ]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = LocalProduct.objects.get()
        self.assertEqual(product.price, Decimal('19.50'))
        self.assertEqual(product.supplier, 'Steel House')
        self.assertEqual(product.price_quotes.count(), 2)

    def test_invalid_nested_quote_rolls_back(self):
        response = self.client.post('/api/v1/local-products/', {
            'name': 'Cement bag', 'category': 'Building materials', 'unit': 'Piece',
            'price_quotes': [{'supplier': self.supplier.id, 'price': '-1'}]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(LocalProduct.objects.exists())

    def test_foreign_product_fields(self):
        response = self.client.post('/api/v1/foreign-products/', {
            'name': 'Control valve', 'category': 'Plumbing materials', 'unit': 'Piece',
            'price': '350.00', 'country': 'Italy', 'currency': 'EUR'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['country'], 'Italy')
        self.assertTrue(response.data['internal_id'].startswith('fp_'))

    def test_add_quote_endpoint(self):
        material = TestDataFactory.create_raw_material(price=Decimal('100.00'))
        response = self.client.post(f'/api/v1/raw-materials/{material.id}/quotes/', {
            'supplier': self.supplier.id, 'price': '90.00'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_lowest'])
        material.refresh_from_db()
        self.assertEqual(material.price, Decimal('90.00'))

    def test_quote_needs_a_supplier(self):
        material = TestDataFactory.create_raw_material()
        response = self.client.post(f'/api/v1/raw-materials/{material.id}/quotes/', {'price': '90.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quote_cannot_move_to_another_material(self):
        material = TestDataFactory.create_raw_material()
        other = TestDataFactory.create_raw_material()
        quote = TestDataFactory.create_price_quote(material, '10.00', supplier=self.supplier)
        response = self.client.patch(f'/api/v1/price-quotes/{quote.id}/', {'raw_material': other.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_filters(self):
        cheap = TestDataFactory.create_raw_material(name='Sand', price=Decimal('5.00'))
        TestDataFactory.create_raw_material(name='Granite', price=Decimal('500.00'))
        TestDataFactory.create_price_quote(cheap, '4.00', supplier=self.supplier)

        response = self.client.get('/api/v1/raw-materials/', {'max_price': '10'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/raw-materials/', {'has_quotes': 'true'})
        self.assertEqual(response.data['count'], 1)
        response = self.client.get('/api/v1/raw-materials/', {'search': 'gran'})
        self.assertEqual(response.data['results'][0]['name'], 'Granite')
        self.assertIn('X-Data-Version', response)

    def test_search_by_internal_id(self):
        material = TestDataFactory.create_raw_material()
        TestDataFactory.create_raw_material()
        response = self.client.get('/api/v1/raw-materials/', {'search': material.internal_id})
        self.assertEqual(response.data['count'], 1)

    def test_by_internal_id(self):
        material = TestDataFactory.create_local_product()
        response = self.client.get(f'/api/v1/local-products/by-internal-id/{material.internal_id}/')
        self.assertEqual(response.data['id'], material.id)

    def test_trash_and_restore_material_with_quotes(self):
        material = TestDataFactory.create_raw_material()
        TestDataFactory.create_price_quote(material, '10.00', supplier=self.supplier)
        response = self.client.delete(f'/api/v1/raw-materials/{material.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(PriceQuote.objects.exists())

        trash_item = TrashItem.objects.get(original_model='catalog.rawmaterial')
        self.assertEqual(trash_item.object_count, 2)
        response = self.client.post(f'/api/v1/trash/{trash_item.id}/restore/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(RawMaterial.objects.get(pk=material.pk).price_quotes.count(), 1)


    def test_data_version_changes_when_older_row_is_trashed(self):
        older = TestDataFactory.create_raw_material(name='Older')
        TestDataFactory.create_raw_material(name='Newer')
        before = self.client.get('/api/v1/raw-materials/')['X-Data-Version']

        response = self.client.delete(f'/api/v1/raw-materials/{older.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        after_trash = self.client.get('/api/v1/raw-materials/')
        self.assertEqual(after_trash.data['count'], 1)
        self.assertNotEqual(after_trash['X-Data-Version'], before)

        restore(TrashItem.objects.get())
        after_restore = self.client.get('/api/v1/raw-materials/')['X-Data-Version']
        self.assertNotEqual(after_restore, after_trash['X-Data-Version'])

    def test_quote_removal_logged_only_when_trashed(self):
        material = TestDataFactory.create_raw_material()
        quote = TestDataFactory.create_price_quote(material, '12.00', supplier=self.supplier)
        blocker = TrashItem.objects.create(
            original_model='catalog.pricequote', original_id=str(quote.pk), display_name='Earlier copy'
        )
        response = self.client.delete(f'/api/v1/price-quotes/{quote.id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(ActivityLog.objects.filter(action='price_quote_remove').exists())

        blocker.delete()
        response = self.client.delete(f'/api/v1/price-quotes/{quote.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertTrue(ActivityLog.objects.filter(action='price_quote_remove').exists())


class MaterialServiceTests(TestCase):

    def test_resolve_by_internal_id(self):
        material = TestDataFactory.create_foreign_product()
        self.assertEqual(resolve_material('foreignProduct', internal_id=material.internal_id), material)

    def test_resolve_unknown_type(self):
        with self.assertRaises(MaterialNotFound):
            resolve_material('spaceship', material_id=1)

    def test_resolve_missing(self):
        with self.assertRaises(MaterialNotFound):
            resolve_material('rawMaterial', material_id=999999)

    def test_snapshot(self):
        material = TestDataFactory.create_raw_material(name='Gravel', price=Decimal('12.00'))
        snapshot = material_snapshot(material)
        self.assertEqual(snapshot['material_name'], 'Gravel')
        self.assertEqual(snapshot['unit_price'], Decimal('12.00'))
        self.assertEqual(snapshot['material_internal_id'], material.internal_id)


class ManufacturedProductTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.product = TestDataFactory.create_manufactured_product(title='Steel cabinet')
        self.sheet = TestDataFactory.create_raw_material(name='Steel sheet', price=Decimal('40.00'))
        self.paint = TestDataFactory.create_local_product(name='Paint', price=Decimal('15.00'))

    def test_add_component_merges(self):
        component, created = add_component(self.product, 'rawMaterial', self.sheet, 2)
        self.assertTrue(created)
        component, created = add_component(self.product, 'rawMaterial', self.sheet, '1.5')
        self.assertFalse(created)
        self.assertEqual(component.quantity, Decimal('3.5'))
        self.assertEqual(ManufacturedProductComponent.objects.count(), 1)

    def test_concurrent_first_add_is_merged(self):
        add_component(self.product, 'rawMaterial', self.sheet, 2)
        real = catalog_services._add_or_merge_component
        calls = []

        def lose_race_once(*args):
            calls.append(args)
            if len(calls) == 1:
                raise IntegrityError('UNIQUE constraint failed: uniq_component_material')
            return real(*args)

        with patch('tenderdesk.catalog.services._add_or_merge_component', side_effect=lose_race_once):
            component, created = add_component(self.product, 'rawMaterial', self.sheet, 1)
        self.assertFalse(created)
        self.assertEqual(len(calls), 2)
        self.assertEqual(component.quantity, Decimal('3'))
        self.assertEqual(ManufacturedProductComponent.objects.count(), 1)

    def test_repeated_integrity_error_is_raised(self):
        with patch('tenderdesk.catalog.services._add_or_merge_component',
                   side_effect=IntegrityError('UNIQUE constraint failed')):
            with self.assertRaises(IntegrityError):
                add_component(self.product, 'rawMaterial', self.sheet, 1)

    def test_component_total_rounded_to_cents(self):
        washer = TestDataFactory.create_raw_material(name='Washer', price=Decimal('0.35'))
        component, _ = add_component(self.product, 'rawMaterial', washer, '0.333')
        self.assertEqual(component.total_price, Decimal('0.12'))
        self.product.refresh_from_db()
        self.assertEqual(self.product.estimated_value, Decimal('0.12'))
        stamp = self.product.updated_at
        self.product.recalculate_estimated_value()
        self.product.refresh_from_db()
        self.assertEqual(self.product.updated_at, stamp)

    def test_add_component_rejects_bad_quantity(self):
        with self.assertRaises(ValueError):
            add_component(self.product, 'rawMaterial', self.sheet, 0)
        with self.assertRaises(ValueError):
            add_component(self.product, 'rawMaterial', self.sheet, 'lots')

    def test_estimated_value_follows_components(self):
        add_component(self.product, 'rawMaterial', self.sheet, 2)
        add_component(self.product, 'localProduct', self.paint, 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.estimated_value, Decimal('95.00'))
        self.assertEqual(self.product.get_total_cost(), Decimal('95.00'))

    def test_manufactured_product_priced_from_components(self):
        add_component(self.product, 'rawMaterial', self.sheet, 2)
        self.product.refresh_from_db()
        self.assertEqual(material_unit_price(self.product), Decimal('80.00'))

    def test_create_with_components(self):
        response = self.client.post('/api/v1/manufactured-products/', {
            'title': 'Door frame',
            'components': [
                {'material_type': 'rawMaterial', 'material_id': self.sheet.id, 'quantity': 2},
                {'material_type': 'rawMaterial', 'material_internal_id': self.sheet.internal_id, 'quantity': 1},
            ]
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['components']), 1)
        self.assertEqual(Decimal(response.data['components'][0]['quantity']), Decimal('3'))
        self.assertEqual(Decimal(response.data['estimated_value']), Decimal('120.00'))

    def test_component_endpoint(self):
        url = f'/api/v1/manufactured-products/{self.product.id}/components/'
        response = self.client.post(url, {'material_type': 'localProduct', 'material_id': self.paint.id, 'quantity': 2}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.client.post(url, {'material_type': 'localProduct', 'material_id': self.paint.id, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(url, {'material_type': 'localProduct', 'material_id': 999999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_component_patch_and_trash(self):
        component, _ = add_component(self.product, 'rawMaterial', self.sheet, 2)
        url = f'/api/v1/manufactured-products/{self.product.id}/components/{component.id}/'
        response = self.client.patch(url, {'quantity': '5'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.product.refresh_from_db()
        self.assertEqual(self.product.estimated_value, Decimal('200.00'))

        response = self.client.delete(url)
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.product.refresh_from_db()
        self.assertEqual(self.product.estimated_value, Decimal('0.00'))

    def test_filter_by_status(self):
        TestDataFactory.create_manufactured_product(status='completed')
        response = self.client.get('/api/v1/manufactured-products/', {'status': 'completed'})
        self.assertEqual(response.data['count'], 1)


class SettingsTests(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_category_name_unique_ignoring_case(self):
        TestDataFactory.create_category(name='Electrical')
        response = self.client.post('/api/v1/categories/', {'name': 'electrical'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_overview_cached_and_invalidated(self):
        TestDataFactory.create_unit(name='Meter')
        response = self.client.get('/api/v1/settings/')
        self.assertEqual([unit['name'] for unit in response.data['units']], ['Meter'])
        self.assertIsNotNone(cache.get(SETTINGS_CACHE_KEY))

        TestDataFactory.create_unit(name='Liter')
        self.assertIsNone(cache.get(SETTINGS_CACHE_KEY))
        self.assertEqual(len(get_settings_payload()['units']), 2)

    def test_seed_only_fills_empty_tables(self):
        result = seed_default_settings()
        self.assertEqual(result, {'categories': len(DEFAULT_CATEGORIES), 'units': len(DEFAULT_UNITS)})
        self.assertEqual(seed_default_settings(), {'categories': 0, 'units': 0})

    def test_seed_requires_admin(self):
        response = self.client.post('/api/v1/settings/seed/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.post('/api/v1/settings/seed/')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Unit.objects.filter(name='Piece').exists())

    def test_trash_category(self):
        category = TestDataFactory.create_category()
        response = self.client.delete(f'/api/v1/categories/{category.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Category.objects.exists())

    def test_version_changes_when_older_category_is_trashed(self):
        alpha = TestDataFactory.create_category(name='Alpha')
        TestDataFactory.create_category(name='Beta')
        before = self.client.get('/api/v1/settings/')['X-Data-Version']

        response = self.client.delete(f'/api/v1/categories/{alpha.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        response = self.client.get('/api/v1/settings/')
        self.assertEqual([category['name'] for category in response.data['categories']], ['Beta'])
        self.assertNotEqual(response['X-Data-Version'], before)
