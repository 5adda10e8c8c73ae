"""
Test suite for the organization module
Tests: companies, employees with their login accounts, departments
"""
from django.test import TestCase
from rest_framework import status
from tenderdesk.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from tenderdesk.core.models import User
from tenderdesk.organization.models import Company, Employee
from tenderdesk.trash.models import TrashItem
from tenderdesk.trash.services import restore


class CompanyAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_company(self):
        response = self.client.post('/api/v1/companies/', {
            'name': '  Gulf Builders ',
            'email': 'info@gulf.test',
            'phone': '0551234567',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['name'], 'Gulf Builders')
        self.assertTrue(response.data['internal_id'].startswith('comp_'))

    def test_email_and_phone_required(self):
        response = self.client.post('/api/v1/companies/', {'name': 'No contact'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)
        self.assertIn('phone', response.data)

    def test_search(self):
        TestDataFactory.create_company(name='Alpha Trading')
        TestDataFactory.create_company(name='Beta Works')
        response = self.client.get('/api/v1/companies/', {'search': 'alpha'})
        self.assertEqual(response.data['count'], 1)

    def test_lookup_by_internal_id(self):
        company = TestDataFactory.create_company()
        response = self.client.get(f'/api/v1/companies/by-internal-id/{company.internal_id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], company.id)

    def test_trash_and_restore_keeps_employees_linked(self):
        company = TestDataFactory.create_company()
        employee = TestDataFactory.create_employee(company=company)

        response = self.client.delete(f'/api/v1/companies/{company.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        employee.refresh_from_db()
        self.assertIsNone(employee.company_id)

        restore(TrashItem.objects.get(original_model='organization.company'))
        employee.refresh_from_db()
        self.assertEqual(employee.company_id, company.id)


class EmployeeAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def _payload(self, **overrides):
        data = {
            'full_name': 'Sara Ahmed',
            'email': 'Sara@Example.com',
            'national_id': '1098765432',
            'department': 'Procurement',
            'role': 'employee',
            'password': 'welcome123',
        }
        data.update(overrides)
        return data

    def test_create_employee_creates_login(self):
        response = self.client.post('/api/v1/employees/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        employee = Employee.objects.get()
        self.assertEqual(employee.email, 'sara@example.com')
        self.assertEqual(employee.user.username, 'sara@example.com')
        self.assertTrue(employee.user.check_password('welcome123'))
        self.assertTrue(employee.internal_id.startswith('emp_'))

    def test_without_password_login_is_unusable(self):
        response = self.client.post('/api/v1/employees/', self._payload(password=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(Employee.objects.get().user.has_usable_password())

    def test_email_must_be_unique(self):
        TestDataFactory.create_employee(email='sara@example.com')
        response = self.client.post('/api/v1/employees/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('email', response.data)

    def test_national_id_required(self):
        response = self.client.post('/api/v1/employees/', self._payload(national_id=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_non_admin_cannot_create(self):
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.post('/api/v1/employees/', self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_non_admin_can_list(self):
        TestDataFactory.create_employee()
        self.client.authenticate_user(TestDataFactory.create_user())
        response = self.client.get('/api/v1/employees/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_inactive_status_disables_login(self):
        self.client.post('/api/v1/employees/', self._payload(), format='json')
        employee = Employee.objects.get()
        response = self.client.patch(f'/api/v1/employees/{employee.id}/', {'status': 'inactive'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(User.objects.get(pk=employee.user_id).is_active)

    def test_email_change_updates_username(self):
        self.client.post('/api/v1/employees/', self._payload(), format='json')
        employee = Employee.objects.get()
        self.client.patch(f'/api/v1/employees/{employee.id}/', {'email': 'sara.a@example.com'}, format='json')
        self.assertEqual(User.objects.get(pk=employee.user_id).username, 'sara.a@example.com')

    def test_cannot_trash_own_record(self):
        TestDataFactory.create_employee(user=self.admin)
        employee = Employee.objects.get(user=self.admin)
        response = self.client.delete(f'/api/v1/employees/{employee.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_trash_disables_login_and_restore_enables_it(self):
        self.client.post('/api/v1/employees/', self._payload(), format='json')
        employee = Employee.objects.get()
        user_id = employee.user_id

        response = self.client.delete(f'/api/v1/employees/{employee.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(User.objects.get(pk=user_id).is_active)

        restore(TrashItem.objects.get(original_model='organization.employee'))
        self.assertTrue(User.objects.get(pk=user_id).is_active)

    def test_departments(self):
        TestDataFactory.create_employee(department='Sales')
        TestDataFactory.create_employee(department='Sales')
        TestDataFactory.create_employee(department='Finance')
        response = self.client.get('/api/v1/departments/')
        self.assertEqual(response.data, [
            {'name': 'Finance', 'employee_count': 1},
            {'name': 'Sales', 'employee_count': 2},
        ])


class EmployeeModelTests(TestCase):

    def test_hire_date_defaults_to_today(self):
        employee = TestDataFactory.create_employee()
        self.assertIsNotNone(employee.hire_date)

    def test_is_active(self):
        employee = TestDataFactory.create_employee()
        self.assertTrue(employee.is_active)
        employee.status = 'inactive'
        self.assertFalse(employee.is_active)

    def test_company_employee_count(self):
        company = TestDataFactory.create_company()
        TestDataFactory.create_employee(company=company)
        self.assertEqual(Company.objects.get(pk=company.pk).employees.count(), 1)
