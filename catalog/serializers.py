"""Serializers for catalog models."""
from rest_framework import serializers

from core.validators import validate_store_consistency

from .models import Brand, Category, Product, ProductAttribute, ProductAttributeValue, ProductVariant


class StoreBoundSerializer(serializers.ModelSerializer):
    """Resolves the store a write goes to: the instance's, or the request scope's."""

    def get_target_store(self):
        if self.instance is not None:
            return self.instance.store
        scope = self.context.get("scope")
        return scope.require_store() if scope is not None else None


class CategorySerializer(StoreBoundSerializer):
    class Meta:
        model = Category
        fields = [
            "id", "store", "parent", "name", "slug", "description", "image",
            "sort_order", "is_published", "created_at", "updated_at",
        ]
        read_only_fields = ["store", "created_at", "updated_at"]
        extra_kwargs = {"slug": {"required": False}}

    def validate(self, attrs):
        store = self.get_target_store()
        validate_store_consistency(store, parent=attrs.get("parent"))
        slug = attrs.get("slug")
        if slug and store is not None:
            qs = Category.objects.for_store(store).filter(slug=slug)
            if self.instance is not None:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise serializers.ValidationError({"slug": "A category with this slug already exists."})
        return attrs


class BrandSerializer(StoreBoundSerializer):
    class Meta:
        model = Brand
        fields = [
            "id", "store", "name", "slug", "description", "logo", "website",
            "is_published", "created_at", "updated_at",
        ]
        read_only_fields = ["store", "created_at", "updated_at"]
        extra_kwargs = {"slug": {"required": False}}

    def validate_slug(self, value):
        store = self.get_target_store()
        qs = Brand.objects.for_store(store).filter(slug=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if value and qs.exists():
            raise serializers.ValidationError("A brand with this slug already exists.")
        return value


class ProductVariantSerializer(serializers.ModelSerializer):
    effective_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            "id", "product", "name", "sku", "price", "effective_price", "track_inventory",
            "inventory_qty", "low_stock_threshold", "options", "is_default",
            "created_at", "updated_at",
        ]
        read_only_fields = ["product", "inventory_qty", "created_at", "updated_at"]


class ProductAttributeSerializer(StoreBoundSerializer):
    values = serializers.ListField(child=serializers.CharField(max_length=255), allow_empty=False)
    product_count = serializers.SerializerMethodField()

    class Meta:
        model = ProductAttribute
        fields = ["id", "store", "name", "values", "product_count", "created_at", "updated_at"]
        read_only_fields = ["store", "created_at", "updated_at"]

    def get_product_count(self, obj):
        count = getattr(obj, "product_count", None)
        if count is None:
            count = obj.product_values.filter(product__deleted_at__isnull=True).count()
        return count

    def validate_values(self, value):
        # Order kept, duplicates dropped.
        return list(dict.fromkeys(value))

    def validate_name(self, value):
        store = self.get_target_store()
        qs = ProductAttribute.objects.for_store(store).filter(name__iexact=value)
        if self.instance is not None:
            qs = qs.exclude(pk=self.instance.pk)
        if store is not None and qs.exists():
            raise serializers.ValidationError("An attribute with this name already exists.")
        return value


class ProductAttributeValueSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="attribute.name", read_only=True)

    class Meta:
        model = ProductAttributeValue
        fields = ["attribute", "name", "value"]


class AttributeAssignmentSerializer(serializers.Serializer):
    product = serializers.IntegerField()
    value = serializers.CharField(max_length=255)


class AttributeProductSerializer(serializers.ModelSerializer):
    """Product row in an attribute's product list."""

    value = serializers.CharField(source="attribute_value", read_only=True)

    class Meta:
        model = Product
        fields = ["id", "name", "slug", "sku", "value"]


class ProductSerializer(StoreBoundSerializer):
    variants = ProductVariantSerializer(many=True, read_only=True)
    attributes = ProductAttributeValueSerializer(source="attribute_values", many=True, read_only=True)
    category_name = serializers.CharField(source="category.name", read_only=True, default=None)
    brand_name = serializers.CharField(source="brand.name", read_only=True, default=None)

    class Meta:
        model = Product
        fields = [
            "id", "store", "category", "category_name", "brand", "brand_name",
            "name", "slug", "sku", "description", "price", "compare_at_price", "cost_price",
            "track_inventory", "inventory_qty", "low_stock_threshold", "inventory_status",
            "weight", "images", "is_published", "is_featured", "variants", "attributes",
            "created_at", "updated_at",
        ]
        read_only_fields = ["store", "inventory_status", "created_at", "updated_at"]
        extra_kwargs = {"slug": {"required": False}}

    def get_fields(self):
        fields = super().get_fields()
        # Stock changes after creation go through /inventory/adjust/.
        if self.instance is not None:
            fields["inventory_qty"].read_only = True
        return fields

    def validate(self, attrs):
        store = self.get_target_store()
        validate_store_consistency(store, category=attrs.get("category"), brand=attrs.get("brand"))
        for field in ("sku", "slug"):
            value = attrs.get(field)
            if not value or store is None:
                continue
            qs = Product.objects.for_store(store).filter(**{field: value})
            if self.instance is not None:
                qs = qs.exclude(pk=self.instance.pk)
            if qs.exists():
                raise serializers.ValidationError({field: f"A product with this {field} already exists."})
        return attrs


class StorefrontProductSerializer(serializers.ModelSerializer):
    """Public product view: no cost price or stock counts."""

    variants = serializers.SerializerMethodField()
    category = serializers.SlugRelatedField(slug_field="slug", read_only=True)
    brand = serializers.SlugRelatedField(slug_field="slug", read_only=True)
    in_stock = serializers.SerializerMethodField()
    attributes = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id", "name", "slug", "sku", "description", "price", "compare_at_price",
            "category", "brand", "images", "is_featured", "in_stock", "variants", "attributes",
        ]

    def get_in_stock(self, obj):
        return not obj.track_inventory or obj.inventory_qty > 0

    def get_attributes(self, obj):
        return {av.attribute.name: av.value for av in obj.attribute_values.all()}

    def get_variants(self, obj):
        return [
            {
                "id": v.pk,
                "name": v.name,
                "sku": v.sku,
                "price": str(v.effective_price),
                "options": v.options,
                "in_stock": not v.track_inventory or v.inventory_qty > 0,
            }
            for v in obj.variants.all()
        ]


class ProductImportSerializer(serializers.Serializer):
    file = serializers.FileField(required=False)
    csv = serializers.CharField(required=False, allow_blank=False, trim_whitespace=False)

    def validate(self, attrs):
        if attrs.get("file") is None and not attrs.get("csv"):
            raise serializers.ValidationError({"file": "Upload a CSV file or send csv text."})
        return attrs

    def get_content(self):
        upload = self.validated_data.get("file")
        if upload is not None:
            return upload.read().decode("utf-8-sig")
        return self.validated_data["csv"]


class CategoryMoveSerializer(serializers.Serializer):
    parent = serializers.PrimaryKeyRelatedField(queryset=Category.objects.all(), allow_null=True)
