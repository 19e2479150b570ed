from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

from common.models import SoftDeleteModel, TimeStampedModel
from core.querysets import ProductScopedQuerySet, SoftDeleteStoreScopedQuerySet, StoreScopedQuerySet

from .choices import InventoryStatus

DEFAULT_LOW_STOCK_THRESHOLD = 5


class Category(TimeStampedModel):
    """Hierarchical product category within a store."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="categories",
        verbose_name=_("store"),
        help_text=_("Store that owns this category."),
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
        verbose_name=_("parent"),
        help_text=_("Parent category. Empty for root categories."),
    )
    name = models.CharField(max_length=255, verbose_name=_("name"))
    slug = models.SlugField(
        max_length=100,
        blank=True,
        verbose_name=_("slug"),
        help_text=_("Unique within the store; generated from the name when empty."),
    )
    description = models.TextField(blank=True, default="")
    image = models.URLField(blank=True, default="")
    sort_order = models.PositiveIntegerField(default=0, verbose_name=_("sort order"))
    is_published = models.BooleanField(default=True, verbose_name=_("is published"))

    objects = StoreScopedQuerySet.as_manager()

    class Meta:
        ordering = ["sort_order", "name"]
        verbose_name = _("category")
        verbose_name_plural = _("categories")
        constraints = [
            models.UniqueConstraint(fields=["store", "slug"], name="unique_store_category_slug"),
        ]

    def __str__(self):
        return self.name


class Brand(TimeStampedModel):
    """Product brand within a store."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="brands",
        verbose_name=_("store"),
    )
    name = models.CharField(max_length=255, verbose_name=_("name"))
    slug = models.SlugField(max_length=100, blank=True, verbose_name=_("slug"))
    description = models.TextField(blank=True, default="")
    logo = models.URLField(blank=True, default="")
    website = models.URLField(blank=True, default="")
    is_published = models.BooleanField(default=True, verbose_name=_("is published"))

    objects = StoreScopedQuerySet.as_manager()

    class Meta:
        ordering = ["name"]
        verbose_name = _("brand")
        verbose_name_plural = _("brands")
        constraints = [
            models.UniqueConstraint(fields=["store", "slug"], name="unique_store_brand_slug"),
        ]

    def __str__(self):
        return self.name


class Product(SoftDeleteModel):
    """Sellable product in a store's catalog."""

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="products",
        verbose_name=_("store"),
        help_text=_("Store that owns this product."),
    )
    category = models.ForeignKey(
        Category,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        verbose_name=_("category"),
    )
    brand = models.ForeignKey(
        Brand,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="products",
        verbose_name=_("brand"),
    )
    name = models.CharField(
        max_length=255,
        verbose_name=_("name"),
        help_text=_("Display name of the product."),
    )
    slug = models.SlugField(
        max_length=100,
        blank=True,
        verbose_name=_("slug"),
        help_text=_("Unique within the store; generated from the name when empty."),
    )
    sku = models.CharField(
        max_length=100,
        verbose_name=_("SKU"),
        help_text=_("Stock keeping unit, unique within the store."),
    )
    description = models.TextField(
        blank=True,
        default="",
        verbose_name=_("description"),
        help_text=_("Product description."),
    )
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        verbose_name=_("price"),
        help_text=_("Authoritative selling price used at checkout."),
    )
    compare_at_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_("compare at price"),
        help_text=_("Previous price shown struck through."),
    )
    cost_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_("cost price"),
        help_text=_("Purchase cost; never shown on the storefront."),
    )
    track_inventory = models.BooleanField(
        default=True,
        verbose_name=_("track inventory"),
        help_text=_("When off, the product never runs out of stock."),
    )
    inventory_qty = models.IntegerField(
        default=0,
        verbose_name=_("inventory quantity"),
        help_text=_("Units on hand."),
    )
    low_stock_threshold = models.PositiveIntegerField(
        default=DEFAULT_LOW_STOCK_THRESHOLD,
        verbose_name=_("low stock threshold"),
        help_text=_("At or below this quantity the product is LOW_STOCK."),
    )
    inventory_status = models.CharField(
        max_length=20,
        choices=InventoryStatus.choices,
        default=InventoryStatus.IN_STOCK,
        db_index=True,
        verbose_name=_("inventory status"),
    )
    weight = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    images = models.JSONField(default=list, blank=True, help_text=_("List of image URLs."))
    is_published = models.BooleanField(
        default=False,
        db_index=True,
        verbose_name=_("is published"),
        help_text=_("Visible and purchasable on the storefront."),
    )
    is_featured = models.BooleanField(default=False, verbose_name=_("is featured"))

    objects = SoftDeleteStoreScopedQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        verbose_name = _("product")
        verbose_name_plural = _("products")
        constraints = [
            models.UniqueConstraint(fields=["store", "slug"], name="unique_store_product_slug"),
            models.UniqueConstraint(fields=["store", "sku"], name="unique_store_product_sku"),
        ]

    def __str__(self):
        return self.name


class ProductVariant(TimeStampedModel):
    """
    Variant of a product (size, colour, ...). A variant price overrides the
    product price; a variant carries its own stock.
    """

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
        verbose_name=_("product"),
    )
    name = models.CharField(max_length=255, verbose_name=_("name"))
    sku = models.CharField(max_length=100, verbose_name=_("SKU"))
    price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_("price"),
        help_text=_("Overrides the product price when set."),
    )
    track_inventory = models.BooleanField(default=True, verbose_name=_("track inventory"))
    inventory_qty = models.IntegerField(default=0, verbose_name=_("inventory quantity"))
    low_stock_threshold = models.PositiveIntegerField(
        default=DEFAULT_LOW_STOCK_THRESHOLD,
        verbose_name=_("low stock threshold"),
    )
    options = models.JSONField(default=dict, blank=True, help_text=_("e.g. {\"size\": \"M\"}"))
    is_default = models.BooleanField(default=False, verbose_name=_("is default"))

    objects = ProductScopedQuerySet.as_manager()

    class Meta:
        ordering = ["product", "name"]
        verbose_name = _("product variant")
        verbose_name_plural = _("product variants")
        constraints = [
            models.UniqueConstraint(fields=["product", "sku"], name="unique_product_variant_sku"),
        ]

    def __str__(self):
        return f"{self.product.name} - {self.name}"

    @property
    def effective_price(self):
        return self.price if self.price is not None else self.product.price


class ProductAttribute(TimeStampedModel):
    """
    Store-defined product attribute (Material, Fit, ...) with the list of
    values a product may take for it.
    """

    store = models.ForeignKey(
        "stores.Store",
        on_delete=models.CASCADE,
        related_name="product_attributes",
        verbose_name=_("store"),
    )
    name = models.CharField(max_length=255, verbose_name=_("name"))
    values = models.JSONField(
        default=list,
        verbose_name=_("values"),
        help_text=_("Allowed values, e.g. [\"Cotton\", \"Linen\"]."),
    )

    objects = StoreScopedQuerySet.as_manager()

    class Meta:
        ordering = ["name"]
        verbose_name = _("product attribute")
        verbose_name_plural = _("product attributes")
        constraints = [
            models.UniqueConstraint(fields=["store", "name"], name="unique_store_attribute_name"),
        ]

    def __str__(self):
        return self.name


class ProductAttributeValue(TimeStampedModel):
    """The value one product has for one attribute."""

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="attribute_values",
        verbose_name=_("product"),
    )
    attribute = models.ForeignKey(
        ProductAttribute,
        on_delete=models.CASCADE,
        related_name="product_values",
        verbose_name=_("attribute"),
    )
    value = models.CharField(max_length=255, verbose_name=_("value"))

    objects = ProductScopedQuerySet.as_manager()

    class Meta:
        ordering = ["attribute__name"]
        verbose_name = _("product attribute value")
        verbose_name_plural = _("product attribute values")
        constraints = [
            models.UniqueConstraint(fields=["product", "attribute"], name="unique_product_attribute"),
        ]

    def __str__(self):
        return f"{self.attribute.name}: {self.value}"
