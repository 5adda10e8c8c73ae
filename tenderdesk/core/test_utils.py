"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from tenderdesk.organization.models import Company, Employee
from tenderdesk.parties.models import Client, Supplier
from tenderdesk.catalog.models import (
    Category, Unit, RawMaterial, LocalProduct, ForeignProduct, PriceQuote, ManufacturedProduct
)
from tenderdesk.tenders.models import Tender
from decimal import Decimal
from datetime import timedelta
from django.utils import timezone
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def random_phone():
        return f'05{random.randint(10000000, 99999999)}'

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )
        return user

    @staticmethod
    def create_admin(username=None):
        """Create a user in the Admin group"""
        user = TestDataFactory.create_user(username=username)
        group, _ = Group.objects.get_or_create(name='Admin')
        user.groups.add(group)
        return user

    @staticmethod
    def create_company(name=None, email=None, phone=None):
        if not name:
            name = f'Company_{TestDataFactory.random_string(6)}'
        return Company.objects.create(
            name=name,
            email=email or f'{name.lower()}@company.test',
            phone=phone or TestDataFactory.random_phone()
        )

    @staticmethod
    def create_employee(full_name=None, email=None, role='employee', department='Sales', company=None, user=None):
        """Create a test employee (without a login unless ``user`` is given)"""
        if not full_name:
            full_name = f'Employee {TestDataFactory.random_string(6)}'
        if not email:
            email = f'emp_{TestDataFactory.random_string(8).lower()}@test.com'
        return Employee.objects.create(
            full_name=full_name,
            email=email,
            national_id=TestDataFactory.random_string(10),
            department=department,
            role=role,
            company=company,
            user=user
        )

    @staticmethod
    def create_client(name=None, email=None, phone=None, tax_number=''):
        """Create a test client"""
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        return Client.objects.create(
            name=name,
            email=email or f'{name.lower()}@client.test',
            phone=phone or TestDataFactory.random_phone(),
            tax_number=tax_number
        )

    @staticmethod
    def create_supplier(name=None, supplier_type='local', phone=None, email=None, country=None):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        if not phone:
            phone = TestDataFactory.random_phone()
        if not email:
            email = f'{name.lower()}@supplier.test'
        return Supplier.objects.create(
            name=name,
            supplier_type=supplier_type,
            phone=phone,
            email=email,
            country=country or ''
        )

    @staticmethod
    def create_category(name=None, description=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(
            name=name,
            description=description or f'Test category {name}'
        )

    @staticmethod
    def create_unit(name=None):
        if not name:
            name = f'Unit_{TestDataFactory.random_string(6)}'
        return Unit.objects.create(name=name)

    @staticmethod
    def _create_material(model, name, price, prefix, **extra):
        if not name:
            name = f'{prefix}_{TestDataFactory.random_string(6)}'
        if price is None:
            price = Decimal('100.00')
        return model.objects.create(
            name=name,
            category='General',
            unit='Piece',
            price=price,
            **extra
        )

    @staticmethod
    def create_raw_material(name=None, price=None):
        """Create a test raw material"""
        return TestDataFactory._create_material(RawMaterial, name, price, 'Raw')

    @staticmethod
    def create_local_product(name=None, price=None):
        """Create a test local product"""
        return TestDataFactory._create_material(LocalProduct, name, price, 'Local')

    @staticmethod
    def create_foreign_product(name=None, price=None, country='Germany'):
        """Create a test foreign product"""
        return TestDataFactory._create_material(ForeignProduct, name, price, 'Foreign', country=country)

    @staticmethod
    def create_price_quote(material, price, supplier=None, supplier_name=None):
        """Attach a price quote to a raw material, local product or foreign product"""
        field = {
            'rawMaterial': 'raw_material',
            'localProduct': 'local_product',
            'foreignProduct': 'foreign_product',
        }[material.MATERIAL_TYPE]
        return PriceQuote.objects.create(
            supplier=supplier,
            supplier_name=supplier_name or (supplier.name if supplier else 'Walk-in supplier'),
            price=Decimal(str(price)),
            **{field: material}
        )

    @staticmethod
    def create_manufactured_product(title=None, status='draft'):
        """Create a test manufactured product"""
        if not title:
            title = f'Product_{TestDataFactory.random_string(6)}'
        return ManufacturedProduct.objects.create(title=title, status=status)

    @staticmethod
    def create_tender(user=None, title=None, client=None, status='draft', deadline=None):
        """Create a test tender"""
        if not title:
            title = f'Tender_{TestDataFactory.random_string(6)}'
        if not deadline:
            deadline = timezone.now().date() + timedelta(days=30)
        return Tender.objects.create(
            title=title,
            reference_number=f'REF-{TestDataFactory.random_string(6).upper()}',
            entity='Ministry of Works',
            client=client,
            submission_deadline=deadline,
            status=status,
            created_by=user
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
