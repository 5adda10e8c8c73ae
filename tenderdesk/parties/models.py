from django.db import models
from tenderdesk.core.ids import InternalIdMixin


class Client(InternalIdMixin, models.Model):
    """Clients (government entities and companies issuing tenders)"""
    ENTITY_TYPE = 'CLIENT'

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    name = models.CharField(max_length=200)
    email = models.EmailField()
    phone = models.CharField(max_length=30)
    address = models.TextField(blank=True)
    tax_number = models.CharField(max_length=50, blank=True)
    contact_person = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'clients'
        ordering = ['name']


class Supplier(InternalIdMixin, models.Model):
    """Local and foreign suppliers"""
    TYPE_CHOICES = [
        ('local', 'Local'),
        ('foreign', 'Foreign'),
    ]
    DEFAULT_LOCAL_COUNTRY = 'Saudi Arabia'

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    supplier_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default='local')
    name = models.CharField(max_length=200)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=30, blank=True)
    country = models.CharField(max_length=100, blank=True)
    address = models.TextField(blank=True)
    tax_number = models.CharField(max_length=50, blank=True)
    contact_person = models.CharField(max_length=200, blank=True)
    notes = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def get_entity_type(self):
        return 'FOREIGN_SUPPLIER' if self.supplier_type == 'foreign' else 'LOCAL_SUPPLIER'

    def save(self, *args, **kwargs):
        if self.supplier_type == 'local' and not self.country:
            self.country = self.DEFAULT_LOCAL_COUNTRY
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'suppliers'
        ordering = ['name']
        indexes = [
            models.Index(fields=['supplier_type'], name='idx_supplier_type'),
        ]
