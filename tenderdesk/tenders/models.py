from decimal import Decimal, ROUND_HALF_UP

from django.db import models
from tenderdesk.core.ids import InternalIdMixin
from tenderdesk.core.models import User
from tenderdesk.catalog.models import RawMaterial, LocalProduct, ForeignProduct, ManufacturedProduct

CENTS = Decimal('0.01')


class Tender(InternalIdMixin, models.Model):
    """A bid for a procurement opportunity"""
    ENTITY_TYPE = 'TENDER'

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('submitted', 'Submitted'),
        ('won', 'Won'),
        ('lost', 'Lost'),
        ('cancelled', 'Cancelled'),
    ]

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    title = models.CharField(max_length=255)
    reference_number = models.CharField(max_length=100)
    entity = models.CharField(max_length=200, help_text="Issuing entity")
    client = models.ForeignKey('parties.Client', on_delete=models.SET_NULL, null=True, blank=True, related_name='tenders')
    description = models.TextField(blank=True)
    submission_deadline = models.DateField()
    estimated_value = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    location = models.CharField(max_length=255, blank=True)
    contact_person = models.CharField(max_length=200, blank=True)
    contact_phone = models.CharField(max_length=30, blank=True)
    contact_email = models.EmailField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    awarded_value = models.DecimalField(max_digits=16, decimal_places=2, null=True, blank=True)
    result_notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='tenders')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.reference_number} - {self.title}"

    def get_items_total(self):
        total = Decimal('0.00')
        for item in self.items.all():
            total += item.total_price
        return total

    def recalculate_estimated_value(self):
        """Estimated value is the sum of the item totals"""
        total = self.get_items_total()
        if total != self.estimated_value:
            self.estimated_value = total
            self.save(update_fields=['estimated_value', 'updated_at'])
        return total

    class Meta:
        db_table = 'tenders'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_tender_status'),
            models.Index(fields=['submission_deadline'], name='idx_tender_deadline'),
        ]


class TenderItem(InternalIdMixin, models.Model):
    """Material line of a tender, with a snapshot of the material at the time it was added"""
    ENTITY_TYPE = 'TENDER_ITEM'

    MATERIAL_TYPE_CHOICES = [
        ('rawMaterial', 'Raw Material'),
        ('localProduct', 'Local Product'),
        ('foreignProduct', 'Foreign Product'),
        ('manufacturedProduct', 'Manufactured Product'),
    ]

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    tender = models.ForeignKey(Tender, on_delete=models.CASCADE, related_name='items')
    material_type = models.CharField(max_length=30, choices=MATERIAL_TYPE_CHOICES)
    raw_material = models.ForeignKey(RawMaterial, on_delete=models.SET_NULL, null=True, blank=True, related_name='tender_items')
    local_product = models.ForeignKey(LocalProduct, on_delete=models.SET_NULL, null=True, blank=True, related_name='tender_items')
    foreign_product = models.ForeignKey(ForeignProduct, on_delete=models.SET_NULL, null=True, blank=True, related_name='tender_items')
    manufactured_product = models.ForeignKey(ManufacturedProduct, on_delete=models.SET_NULL, null=True, blank=True, related_name='tender_items')
    material_internal_id = models.CharField(max_length=50)
    material_name = models.CharField(max_length=255)
    unit = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=200, blank=True)
    quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('1'))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_price = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    supplier_info = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    MATERIAL_FIELDS = {
        'rawMaterial': 'raw_material',
        'localProduct': 'local_product',
        'foreignProduct': 'foreign_product',
        'manufacturedProduct': 'manufactured_product',
    }

    def __str__(self):
        return f"{self.material_name} x {self.quantity}"

    @property
    def material(self):
        field = self.MATERIAL_FIELDS.get(self.material_type)
        return getattr(self, field) if field else None

    def save(self, *args, **kwargs):
        total = (self.quantity or Decimal('0')) * (self.unit_price or Decimal('0'))
        self.total_price = total.quantize(CENTS, rounding=ROUND_HALF_UP)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and ('quantity' in update_fields or 'unit_price' in update_fields):
            kwargs['update_fields'] = set(update_fields) | {'total_price'}
        super().save(*args, **kwargs)

    def trash_context(self):
        return {'tender_id': self.tender_id, 'tender_title': self.tender.title}

    class Meta:
        db_table = 'tender_items'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['tender', 'material_type', 'material_internal_id'],
                name='uniq_tender_item_material'
            ),
        ]


class CompetitorPrice(models.Model):
    """Price a competitor offered for a tender"""
    tender = models.ForeignKey(Tender, on_delete=models.CASCADE, related_name='competitor_prices')
    competitor_name = models.CharField(max_length=200)
    competitor_email = models.EmailField(blank=True)
    competitor_phone = models.CharField(max_length=30, blank=True)
    competitor_city = models.CharField(max_length=100, blank=True)
    price = models.DecimalField(max_digits=16, decimal_places=2)
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='competitor_prices')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.competitor_name}: {self.price}"

    @property
    def name(self):
        return self.competitor_name

    def trash_context(self):
        return {'tender_id': self.tender_id, 'tender_title': self.tender.title}

    class Meta:
        db_table = 'competitor_prices'
        ordering = ['price', 'id']
        constraints = [
            models.UniqueConstraint(fields=['tender', 'competitor_name'], name='uniq_competitor_per_tender'),
        ]


class TenderStudy(models.Model):
    """
    Price study of a tender: the profit added on top of the item costs.

    Profit is either ``fixed_profit`` plus ``percentage_profit`` percent of
    the items total, or, with ``per_item`` set, the sum of the entries in
    ``item_profits`` keyed by item internal id, each
    ``{"type": "fixed" | "percentage", "value": <number>}``.
    """
    tender = models.OneToOneField(Tender, on_delete=models.CASCADE, related_name='study')
    fixed_profit = models.DecimalField(max_digits=16, decimal_places=2, default=Decimal('0.00'))
    percentage_profit = models.DecimalField(max_digits=7, decimal_places=3, default=Decimal('0'))
    per_item = models.BooleanField(default=False)
    item_profits = models.JSONField(default=dict, blank=True)
    notes = models.TextField(blank=True)
    updated_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='tender_studies')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Study of {self.tender}"

    @property
    def name(self):
        return f"Study of {self.tender.title}"

    def trash_context(self):
        return {'tender_id': self.tender_id, 'tender_title': self.tender.title}

    class Meta:
        db_table = 'tender_studies'
        verbose_name_plural = 'tender studies'
