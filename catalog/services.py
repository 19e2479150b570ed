"""
Catalog rules: category hierarchy, product creation under plan limits,
and CSV export/import of products.
"""
import csv
import io
import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import F
from rest_framework.exceptions import NotFound

from billing.services import ensure_can_create_product
from common.exceptions import ConflictError, DomainError
from common.utils import unique_slug
from core.validators import validate_store_consistency
from inventory.services import determine_inventory_status

from .models import Brand, Category, Product, ProductAttribute, ProductAttributeValue

logger = logging.getLogger(__name__)

PRODUCT_CSV_COLUMNS = [
    "name", "sku", "price", "compare_at_price", "inventory_qty",
    "category", "brand", "description", "is_published",
]

TRUE_VALUES = {"1", "true", "yes", "y"}


class CategoryHierarchyError(DomainError):
    error_code = "INVALID_CATEGORY_HIERARCHY"


class InvalidAttributeValue(DomainError):
    error_code = "INVALID_ATTRIBUTE_VALUE"


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def get_descendant_ids(category: Category) -> set:
    """All ids below category (breadth-first over the store's categories)."""
    children_by_parent = {}
    for pk, parent_id in Category.objects.for_store(category.store_id).values_list("pk", "parent_id"):
        children_by_parent.setdefault(parent_id, []).append(pk)
    found, frontier = set(), [category.pk]
    while frontier:
        next_frontier = []
        for pk in frontier:
            for child in children_by_parent.get(pk, []):
                if child not in found:
                    found.add(child)
                    next_frontier.append(child)
        frontier = next_frontier
    return found


def validate_category_parent(category, parent):
    if parent is None or category is None or category.pk is None:
        return
    if parent.pk == category.pk:
        raise CategoryHierarchyError("Category cannot be its own parent.")
    if parent.pk in get_descendant_ids(category):
        raise CategoryHierarchyError("Cannot move category to its own descendant.")


def move_category(category: Category, new_parent) -> Category:
    validate_category_parent(category, new_parent)
    category.parent = new_parent
    category.save(update_fields=["parent", "updated_at"])
    return category


def delete_category(category: Category):
    if category.children.exists():
        raise ConflictError(
            "Cannot delete category with subcategories. Please delete or move subcategories first."
        )
    if category.products.alive().exists():
        raise ConflictError(
            "Cannot delete category with products. Please move products to another category first."
        )
    category.delete()


def build_category_tree(categories) -> list:
    """Nest an iterable of categories into [{..., "children": [...]}] roots."""
    nodes = {}
    for category in categories:
        nodes[category.pk] = {
            "id": category.pk,
            "name": category.name,
            "slug": category.slug,
            "parent": category.parent_id,
            "sort_order": category.sort_order,
            "children": [],
        }
    roots = []
    for node in nodes.values():
        parent = nodes.get(node["parent"])
        if parent is None:
            roots.append(node)
        else:
            parent["children"].append(node)
    return roots


def category_breadcrumb(category: Category) -> list:
    trail = []
    seen = set()
    while category is not None and category.pk not in seen:
        seen.add(category.pk)
        trail.append(category)
        category = category.parent
    return list(reversed(trail))


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


def assigned_values(attribute: ProductAttribute):
    """Assignments of attribute on products that are not deleted."""
    return attribute.product_values.filter(product__deleted_at__isnull=True)


def ensure_values_removable(attribute: ProductAttribute, values) -> None:
    """Values still assigned to a product cannot be dropped from the attribute."""
    removed = set(attribute.values) - set(values)
    in_use = sorted(
        set(assigned_values(attribute).filter(value__in=removed).values_list("value", flat=True))
    )
    if in_use:
        raise ConflictError(
            "Cannot remove values that are assigned to products.",
            details={"values": in_use},
        )


def delete_attribute(attribute: ProductAttribute):
    count = assigned_values(attribute).count()
    if count:
        raise ConflictError(
            "Cannot delete attribute that is assigned to products. Please remove all assignments first.",
            details={"product_count": count},
        )
    attribute.delete()


def assign_attribute(product: Product, attribute: ProductAttribute, value: str):
    """
    Set product's value for attribute, replacing any earlier value.
    Returns (assignment, created).
    """
    validate_store_consistency(product.store_id, attribute=attribute)
    if value not in attribute.values:
        raise InvalidAttributeValue(
            f"Value '{value}' is not valid for attribute '{attribute.name}'.",
            details={"value": value, "allowed": attribute.values},
        )
    assignment, created = ProductAttributeValue.objects.update_or_create(
        product=product, attribute=attribute, defaults={"value": value}
    )
    logger.info("Attribute %s=%s set on product %s", attribute.name, value, product.sku)
    return assignment, created


def remove_attribute(product: Product, attribute: ProductAttribute) -> None:
    deleted, _ = ProductAttributeValue.objects.filter(product=product, attribute=attribute).delete()
    if not deleted:
        raise NotFound("Attribute assignment not found.")


def products_with_attribute(attribute: ProductAttribute, value=None):
    lookup = {"attribute_values__attribute": attribute}
    if value:
        lookup["attribute_values__value"] = value
    return (
        Product.objects.alive()
        .filter(**lookup)
        .annotate(attribute_value=F("attribute_values__value"))
        .order_by("name")
    )


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def prepare_product_fields(store, data: dict, instance=None) -> dict:
    """Fill slug and inventory status for a create/update payload."""
    if not data.get("slug") and (instance is None or "name" in data):
        data["slug"] = unique_slug(
            Product.objects.for_store(store), data.get("name") or instance.name,
            exclude_pk=getattr(instance, "pk", None),
        )
    qty = data.get("inventory_qty", getattr(instance, "inventory_qty", 0))
    threshold = data.get("low_stock_threshold", getattr(instance, "low_stock_threshold", None))
    if threshold is None:
        threshold = Product._meta.get_field("low_stock_threshold").default
    data["inventory_status"] = determine_inventory_status(qty, threshold)
    return data


def create_product(store, **data) -> Product:
    """Create a product after checking the store's plan limit."""
    ensure_can_create_product(store)
    data = prepare_product_fields(store, data)
    try:
        with transaction.atomic():
            return Product.objects.create(store=store, **data)
    except IntegrityError:
        raise ConflictError("A product with this SKU or slug already exists in this store.")


def export_products_csv(queryset) -> str:
    from common.exports import render_csv

    rows = (
        [
            p.name, p.sku, p.price, p.compare_at_price, p.inventory_qty,
            p.category.slug if p.category else "",
            p.brand.slug if p.brand else "",
            p.description, "true" if p.is_published else "false",
        ]
        for p in queryset.select_related("category", "brand")
    )
    return render_csv(PRODUCT_CSV_COLUMNS, rows)


def _parse_row(store, row):
    name = (row.get("name") or "").strip()
    sku = (row.get("sku") or "").strip()
    if not name:
        raise ValueError("name is required")
    if not sku:
        raise ValueError("sku is required")
    try:
        price = Decimal((row.get("price") or "").strip())
    except InvalidOperation:
        raise ValueError("price must be a number")
    if price < 0:
        raise ValueError("price must not be negative")
    compare_raw = (row.get("compare_at_price") or "").strip()
    try:
        compare_at_price = Decimal(compare_raw) if compare_raw else None
    except InvalidOperation:
        raise ValueError("compare_at_price must be a number")
    qty_raw = (row.get("inventory_qty") or "0").strip()
    try:
        inventory_qty = int(qty_raw)
    except ValueError:
        raise ValueError("inventory_qty must be an integer")
    if inventory_qty < 0:
        raise ValueError("inventory_qty must not be negative")

    category = None
    category_slug = (row.get("category") or "").strip()
    if category_slug:
        category = Category.objects.for_store(store).filter(slug=category_slug).first()
        if category is None:
            raise ValueError(f'Category "{category_slug}" not found')
    brand = None
    brand_slug = (row.get("brand") or "").strip()
    if brand_slug:
        brand = Brand.objects.for_store(store).filter(slug=brand_slug).first()
        if brand is None:
            raise ValueError(f'Brand "{brand_slug}" not found')

    return {
        "name": name,
        "sku": sku,
        "price": price,
        "compare_at_price": compare_at_price,
        "inventory_qty": inventory_qty,
        "category": category,
        "brand": brand,
        "description": (row.get("description") or "").strip(),
        "is_published": (row.get("is_published") or "").strip().lower() in TRUE_VALUES,
    }


def import_products_csv(store, content: str) -> dict:
    """
    Create products from CSV text. Each row is created on its own; invalid
    rows are reported with their line number and skipped.
    """
    reader = csv.DictReader(io.StringIO(content))
    missing = {"name", "sku", "price"} - set(reader.fieldnames or [])
    if missing:
        raise DomainError(
            "CSV is missing required columns.",
            details={"missing_columns": sorted(missing)},
            code="INVALID_CSV",
        )

    created, errors = [], []
    for line_no, row in enumerate(reader, start=2):
        try:
            data = _parse_row(store, row)
            if Product.objects.for_store(store).filter(sku=data["sku"]).exists():
                raise ValueError(f'SKU "{data["sku"]}" already exists')
            product = create_product(store, **data)
        except (ValueError, DomainError) as exc:
            message = str(exc.detail) if isinstance(exc, DomainError) else str(exc)
            errors.append({"row": line_no, "error": message})
            continue
        created.append(product.pk)

    logger.info("Imported %s products into store %s (%s errors)", len(created), store.pk, len(errors))
    return {"created": len(created), "failed": len(errors), "product_ids": created, "errors": errors}
