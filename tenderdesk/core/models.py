from django.apps import apps
from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Extended user model with additional fields"""
    phone = models.CharField(max_length=20, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'users'


class Setting(models.Model):
    """System settings"""
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField()
    description = models.TextField(blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.key

    class Meta:
        db_table = 'settings'


class ActivityLog(models.Model):
    """Activity log of user operations"""
    ACTION_CHOICES = [
        ('create', 'Create'),
        ('update', 'Update'),
        ('delete', 'Delete'),
        ('view', 'View'),
        ('trash', 'Moved to Trash'),
        ('restore', 'Restored from Trash'),
        ('purge', 'Permanently Deleted'),
        ('price_quote_add', 'Price Quote Added'),
        ('price_quote_remove', 'Price Quote Removed'),
        ('tender_item_add', 'Tender Item Added'),
        ('tender_item_remove', 'Tender Item Removed'),
        ('tender_status', 'Tender Status Changed'),
        ('document_upload', 'Document Uploaded'),
        ('login', 'Login'),
        ('manual', 'Manual Entry'),
    ]

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='activity_logs')
    action = models.CharField(max_length=50, choices=ACTION_CHOICES)
    model_name = models.CharField(max_length=100)
    object_id = models.CharField(max_length=100)
    object_name = models.CharField(max_length=255, blank=True, null=True, help_text="Human-readable name of the object (e.g., tender title, supplier name)")
    description = models.TextField(blank=True)
    changes = models.JSONField(default=dict, blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.action} {self.model_name}#{self.object_id}"

    def save(self, *args, **kwargs):
        if not self.internal_id:
            from .ids import generate_internal_id
            self.internal_id = generate_internal_id('ACTIVITY')
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'activity_logs'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['-created_at'], name='idx_activity_created'),
            models.Index(fields=['action'], name='idx_activity_action'),
            models.Index(fields=['model_name'], name='idx_activity_model'),
        ]


class PendingData(models.Model):
    """In-progress form data staged per user (unsaved tender, product forms)"""
    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name='pending_data')
    key = models.CharField(max_length=150)
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.user_id}:{self.key}"

    class Meta:
        db_table = 'pending_data'
        ordering = ['-updated_at']
        constraints = [
            models.UniqueConstraint(fields=['user', 'key'], name='uniq_pending_data_user_key'),
        ]


def document_upload_to(instance, filename):
    return f"documents/{instance.owner_type}/{instance.owner_id}/{filename}"


class Document(models.Model):
    """Uploaded file attached to a tender, company, employee, supplier or manufactured product"""
    OWNER_TYPE_CHOICES = [
        ('tender', 'Tender'),
        ('company', 'Company'),
        ('employee', 'Employee'),
        ('supplier', 'Supplier'),
        ('manufactured_product', 'Manufactured Product'),
    ]

    OWNER_MODELS = {
        'tender': 'tenders.Tender',
        'company': 'organization.Company',
        'employee': 'organization.Employee',
        'supplier': 'parties.Supplier',
        'manufactured_product': 'catalog.ManufacturedProduct',
    }

    owner_type = models.CharField(max_length=30, choices=OWNER_TYPE_CHOICES)
    owner_id = models.PositiveBigIntegerField()
    file = models.FileField(upload_to=document_upload_to, max_length=500)
    file_name = models.CharField(max_length=255)
    content_type = models.CharField(max_length=100, blank=True)
    size = models.PositiveBigIntegerField(default=0)
    description = models.TextField(blank=True)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='documents')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.file_name

    @classmethod
    def owner_model_for(cls, owner_type):
        return apps.get_model(cls.OWNER_MODELS[owner_type])

    @classmethod
    def owner_type_for(cls, model):
        """The owner_type documents of `model` are filed under, or None"""
        label = model._meta.label
        for owner_type, owner_label in cls.OWNER_MODELS.items():
            if owner_label == label:
                return owner_type
        return None

    class Meta:
        db_table = 'documents'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['owner_type', 'owner_id'], name='idx_document_owner'),
        ]
