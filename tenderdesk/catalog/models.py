from decimal import Decimal, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from tenderdesk.core.ids import InternalIdMixin


class Category(models.Model):
    """Material categories (shared settings list)"""
    name = models.CharField(max_length=200, unique=True)
    description = models.TextField(blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'categories'
        ordering = ['name']
        verbose_name_plural = 'categories'


class Unit(models.Model):
    """Units of measure (shared settings list)"""
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'units'
        ordering = ['name']


class Material(InternalIdMixin, models.Model):
    """
    Common shape of raw materials, local products and foreign products.

    ``price`` is the entered price until the material has price quotes,
    then it follows the cheapest quote. ``supplier`` holds the name of the
    cheapest supplier.
    """
    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=200)
    unit = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    supplier = models.CharField(max_length=200, blank=True)
    lowest_price_supplier = models.ForeignKey(
        'parties.Supplier', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='cheapest_%(class)ss'
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        abstract = True
        ordering = ['name']


class RawMaterial(Material):
    ENTITY_TYPE = 'RAW_MATERIAL'
    MATERIAL_TYPE = 'rawMaterial'

    class Meta(Material.Meta):
        db_table = 'raw_materials'


class LocalProduct(Material):
    ENTITY_TYPE = 'LOCAL_PRODUCT'
    MATERIAL_TYPE = 'localProduct'

    class Meta(Material.Meta):
        db_table = 'local_products'


class ForeignProduct(Material):
    ENTITY_TYPE = 'FOREIGN_PRODUCT'
    MATERIAL_TYPE = 'foreignProduct'

    country = models.CharField(max_length=100, blank=True)
    currency = models.CharField(max_length=10, blank=True, default='USD')

    class Meta(Material.Meta):
        db_table = 'foreign_products'


QUOTED_MATERIAL_FIELDS = {
    'rawMaterial': 'raw_material',
    'localProduct': 'local_product',
    'foreignProduct': 'foreign_product',
}


class PriceQuote(InternalIdMixin, models.Model):
    """A supplier's price for one raw material, local product or foreign product"""
    ENTITY_TYPE = 'PRICE_QUOTE'

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    raw_material = models.ForeignKey(RawMaterial, on_delete=models.CASCADE, null=True, blank=True, related_name='price_quotes')
    local_product = models.ForeignKey(LocalProduct, on_delete=models.CASCADE, null=True, blank=True, related_name='price_quotes')
    foreign_product = models.ForeignKey(ForeignProduct, on_delete=models.CASCADE, null=True, blank=True, related_name='price_quotes')
    supplier = models.ForeignKey('parties.Supplier', on_delete=models.SET_NULL, null=True, blank=True, related_name='price_quotes')
    supplier_name = models.CharField(max_length=200, blank=True)
    supplier_type = models.CharField(max_length=20, blank=True)
    price = models.DecimalField(max_digits=14, decimal_places=2)
    quote_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.supplier_name or 'Unknown supplier'}: {self.price}"

    @property
    def material(self):
        return self.raw_material or self.local_product or self.foreign_product

    @property
    def material_type(self):
        for material_type, field in QUOTED_MATERIAL_FIELDS.items():
            if getattr(self, f'{field}_id'):
                return material_type
        return None

    def clean(self):
        attached = [field for field in QUOTED_MATERIAL_FIELDS.values() if getattr(self, f'{field}_id')]
        if len(attached) != 1:
            raise ValidationError("A price quote must belong to exactly one material")
        if self.price is not None and self.price <= 0:
            raise ValidationError({'price': "Price must be greater than zero"})

    def save(self, *args, **kwargs):
        if self.supplier_id and self.supplier:
            self.supplier_name = self.supplier.name
            self.supplier_type = self.supplier.supplier_type
        super().save(*args, **kwargs)

    def trash_context(self):
        material = self.material
        return {
            'material_type': self.material_type,
            'material_id': material.pk if material else None,
            'material_name': material.name if material else None,
        }

    class Meta:
        db_table = 'price_quotes'
        ordering = ['price', 'id']


class ManufacturedProduct(InternalIdMixin, models.Model):
    """A product assembled from materials, priced from its components"""
    ENTITY_TYPE = 'MANUFACTURED_PRODUCT'
    MATERIAL_TYPE = 'manufacturedProduct'

    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('in_progress', 'In Progress'),
        ('completed', 'Completed'),
        ('cancelled', 'Cancelled'),
    ]

    internal_id = models.CharField(max_length=50, unique=True, blank=True)
    title = models.CharField(max_length=255)
    reference_number = models.CharField(max_length=100, blank=True)
    entity = models.CharField(max_length=200, blank=True, help_text="Manufacturer")
    submission_deadline = models.DateField(null=True, blank=True, help_text="Expected production date")
    estimated_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    description = models.TextField(blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    unit = models.CharField(max_length=100, blank=True, default='Piece')
    category = models.CharField(max_length=200, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.title

    # Tender items read these like any other material
    @property
    def name(self):
        return self.title

    def get_total_cost(self):
        total = Decimal('0.00')
        for component in self.components.all():
            total += component.total_price
        return total

    def recalculate_estimated_value(self):
        total = self.get_total_cost()
        if total != self.estimated_value:
            self.estimated_value = total
            self.save(update_fields=['estimated_value', 'updated_at'])
        return total

    class Meta:
        db_table = 'manufactured_products'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='idx_manufactured_status'),
        ]


class ManufacturedProductComponent(models.Model):
    """Material line of a manufactured product, with a snapshot of the material"""
    MATERIAL_TYPE_CHOICES = [
        ('rawMaterial', 'Raw Material'),
        ('localProduct', 'Local Product'),
        ('foreignProduct', 'Foreign Product'),
    ]

    product = models.ForeignKey(ManufacturedProduct, on_delete=models.CASCADE, related_name='components')
    material_type = models.CharField(max_length=30, choices=MATERIAL_TYPE_CHOICES)
    raw_material = models.ForeignKey(RawMaterial, on_delete=models.SET_NULL, null=True, blank=True, related_name='component_uses')
    local_product = models.ForeignKey(LocalProduct, on_delete=models.SET_NULL, null=True, blank=True, related_name='component_uses')
    foreign_product = models.ForeignKey(ForeignProduct, on_delete=models.SET_NULL, null=True, blank=True, related_name='component_uses')
    material_internal_id = models.CharField(max_length=50)
    material_name = models.CharField(max_length=255)
    unit = models.CharField(max_length=100, blank=True)
    category = models.CharField(max_length=200, blank=True)
    quantity = models.DecimalField(max_digits=14, decimal_places=3, default=Decimal('1'))
    unit_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.material_name} x {self.quantity}"

    @property
    def total_price(self):
        total = (self.quantity or Decimal('0')) * (self.unit_price or Decimal('0'))
        return total.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    @property
    def material(self):
        field = QUOTED_MATERIAL_FIELDS.get(self.material_type)
        return getattr(self, field) if field else None

    class Meta:
        db_table = 'manufactured_product_components'
        ordering = ['id']
        constraints = [
            models.UniqueConstraint(
                fields=['product', 'material_type', 'material_internal_id'],
                name='uniq_component_material'
            ),
        ]


MATERIAL_MODELS = {
    'rawMaterial': RawMaterial,
    'localProduct': LocalProduct,
    'foreignProduct': ForeignProduct,
    'manufacturedProduct': ManufacturedProduct,
}
