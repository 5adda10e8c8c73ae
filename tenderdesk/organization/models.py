from decimal import Decimal

from django.db import models
from django.utils import timezone
from tenderdesk.core.ids import InternalIdMixin
from tenderdesk.core.models import User


class Company(InternalIdMixin, models.Model):
    """Companies the business works with or bids on behalf of"""
    ENTITY_TYPE = 'COMPANY'

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30)
    address = models.TextField(blank=True)
    tax_number = models.CharField(max_length=50, blank=True)
    commercial_register = models.CharField(max_length=50, blank=True)
    website = models.URLField(blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'companies'
        ordering = ['name']
        verbose_name_plural = 'companies'


class Employee(InternalIdMixin, models.Model):
    """Staff members, each linked to a login account"""
    ENTITY_TYPE = 'EMPLOYEE'

    ROLE_CHOICES = [
        ('admin', 'Admin'),
        ('manager', 'Manager'),
        ('employee', 'Employee'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    full_name = models.CharField(max_length=200)
    email = models.EmailField(unique=True)
    phone = models.CharField(max_length=30, blank=True)
    national_id = models.CharField(max_length=50)
    department = models.CharField(max_length=100, blank=True)
    job_title = models.CharField(max_length=100, blank=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default='employee')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')
    hire_date = models.DateField(default=timezone.localdate)
    salary = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True)
    company = models.ForeignKey(Company, on_delete=models.SET_NULL, null=True, blank=True, related_name='employees')
    user = models.OneToOneField(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='employee_profile')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.full_name

    @property
    def is_active(self):
        return self.status == 'active'

    class Meta:
        db_table = 'employees'
        ordering = ['full_name']
        indexes = [
            models.Index(fields=['department'], name='idx_employee_department'),
        ]
