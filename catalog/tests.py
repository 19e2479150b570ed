"""Tests for catalog app."""
from decimal import Decimal

from django.test import TestCase
from rest_framework.test import APIClient

from accounts.choices import Role
from common.exceptions import DomainError
from tests.helpers import make_product, make_store, make_user

from .choices import InventoryStatus
from .models import Category, Product, ProductAttribute, ProductAttributeValue
from .services import (
    CategoryHierarchyError,
    build_category_tree,
    category_breadcrumb,
    import_products_csv,
    move_category,
)


class CategoryServiceTests(TestCase):
    def setUp(self):
        self.store = make_store("acme")
        self.root = Category.objects.create(store=self.store, name="Apparel", slug="apparel")
        self.child = Category.objects.create(store=self.store, name="Shirts", slug="shirts", parent=self.root)
        self.leaf = Category.objects.create(store=self.store, name="Polo", slug="polo", parent=self.child)

    def test_tree(self):
        tree = build_category_tree(Category.objects.for_store(self.store))
        self.assertEqual(len(tree), 1)
        self.assertEqual(tree[0]["children"][0]["children"][0]["slug"], "polo")

    def test_breadcrumb(self):
        self.assertEqual([c.slug for c in category_breadcrumb(self.leaf)], ["apparel", "shirts", "polo"])

    def test_cannot_move_under_descendant(self):
        with self.assertRaises(CategoryHierarchyError):
            move_category(self.root, self.leaf)
        with self.assertRaises(CategoryHierarchyError):
            move_category(self.root, self.root)

    def test_move_to_root(self):
        move_category(self.leaf, None)
        self.leaf.refresh_from_db()
        self.assertIsNone(self.leaf.parent)


class CategoryAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)
        self.client.force_authenticate(user=self.admin)

    def test_create_generates_slug(self):
        r = self.client.post("/api/categories/", {"name": "Home & Garden"}, format="json")
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["data"]["slug"], "home-garden")
        self.assertEqual(r.json()["data"]["store"], self.store.pk)

    def test_delete_with_children_conflicts(self):
        parent = Category.objects.create(store=self.store, name="A", slug="a")
        Category.objects.create(store=self.store, name="B", slug="b", parent=parent)
        r = self.client.delete(f"/api/categories/{parent.pk}/")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["code"], "CONFLICT")

    def test_delete_with_products_conflicts(self):
        category = Category.objects.create(store=self.store, name="A", slug="a")
        make_product(self.store, category=category)
        r = self.client.delete(f"/api/categories/{category.pk}/")
        self.assertEqual(r.status_code, 409)

    def test_move_to_foreign_parent_is_404(self):
        category = Category.objects.create(store=self.store, name="A", slug="a")
        foreign = Category.objects.create(store=self.other, name="X", slug="x")
        r = self.client.post(f"/api/categories/{category.pk}/move/", {"parent": foreign.pk}, format="json")
        self.assertEqual(r.status_code, 404)

    def test_foreign_category_is_404(self):
        foreign = Category.objects.create(store=self.other, name="X", slug="x")
        r = self.client.get(f"/api/categories/{foreign.pk}/")
        self.assertEqual(r.status_code, 404)

    def test_tree_endpoint(self):
        parent = Category.objects.create(store=self.store, name="A", slug="a")
        Category.objects.create(store=self.store, name="B", slug="b", parent=parent)
        Category.objects.create(store=self.other, name="X", slug="x")
        r = self.client.get("/api/categories/tree/")
        self.assertEqual(r.status_code, 200)
        tree = r.json()["data"]
        self.assertEqual([n["slug"] for n in tree], ["a"])
        self.assertEqual(tree[0]["children"][0]["slug"], "b")


class ProductAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        self.client.force_authenticate(user=self.staff)

    def test_create_sets_slug_and_status(self):
        r = self.client.post(
            "/api/products/",
            {"name": "Blue Mug", "sku": "MUG-1", "price": "9.50", "inventory_qty": 3},
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        data = r.json()["data"]
        self.assertEqual(data["slug"], "blue-mug")
        self.assertEqual(data["inventory_status"], InventoryStatus.LOW_STOCK)
        self.assertEqual(Product.objects.get().store, self.store)

    def test_duplicate_sku_rejected(self):
        make_product(self.store, sku="MUG-1")
        r = self.client.post(
            "/api/products/", {"name": "Other", "sku": "MUG-1", "price": "1.00"}, format="json"
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "VALIDATION_ERROR")

    def test_same_sku_in_other_store_allowed(self):
        make_product(self.other, sku="MUG-1")
        r = self.client.post(
            "/api/products/", {"name": "Mug", "sku": "MUG-1", "price": "1.00"}, format="json"
        )
        self.assertEqual(r.status_code, 201)

    def test_plan_limit(self):
        self.store.product_limit = 1
        self.store.save()
        make_product(self.store)
        r = self.client.post(
            "/api/products/", {"name": "Two", "sku": "SKU-2", "price": "1.00"}, format="json"
        )
        self.assertEqual(r.status_code, 402)
        self.assertEqual(r.json()["error"]["code"], "PLAN_LIMIT_EXCEEDED")
        self.assertEqual(Product.objects.count(), 1)

    def test_list_paginated_and_scoped(self):
        for i in range(3):
            make_product(self.store, sku=f"SKU-{i}")
        make_product(self.other, sku="FOREIGN")
        r = self.client.get("/api/products/?per_page=2")
        body = r.json()
        self.assertEqual(len(body["data"]), 2)
        self.assertEqual(body["meta"]["total"], 3)
        self.assertEqual(body["meta"]["total_pages"], 2)
        self.assertTrue(body["meta"]["has_next_page"])

    def test_filters(self):
        make_product(self.store, sku="CHEAP", price="2.00", name="Pencil")
        make_product(self.store, sku="DEAR", price="200.00", name="Pen")
        r = self.client.get("/api/products/?min_price=10")
        self.assertEqual([p["sku"] for p in r.json()["data"]], ["DEAR"])
        r = self.client.get("/api/products/?search=penc")
        self.assertEqual([p["sku"] for p in r.json()["data"]], ["CHEAP"])

    def test_foreign_product_is_404(self):
        foreign = make_product(self.other, sku="FOREIGN")
        self.assertEqual(self.client.get(f"/api/products/{foreign.pk}/").status_code, 404)
        r = self.client.patch(f"/api/products/{foreign.pk}/", {"price": "0.01"}, format="json")
        self.assertEqual(r.status_code, 404)
        foreign.refresh_from_db()
        self.assertEqual(foreign.price, Decimal("10.00"))

    def test_update_ignores_inventory_qty(self):
        product = make_product(self.store, inventory_qty=10)
        r = self.client.patch(f"/api/products/{product.pk}/", {"inventory_qty": 99, "price": "11.00"}, format="json")
        self.assertEqual(r.status_code, 200)
        product.refresh_from_db()
        self.assertEqual(product.inventory_qty, 10)
        self.assertEqual(product.price, Decimal("11.00"))

    def test_destroy_soft_deletes(self):
        product = make_product(self.store)
        r = self.client.delete(f"/api/products/{product.pk}/")
        self.assertEqual(r.status_code, 204)
        product.refresh_from_db()
        self.assertIsNotNone(product.deleted_at)
        self.assertEqual(self.client.get(f"/api/products/{product.pk}/").status_code, 404)

    def test_variants(self):
        product = make_product(self.store)
        r = self.client.post(
            f"/api/products/{product.pk}/variants/",
            {"name": "Large", "sku": "SKU-1-L", "price": None},
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["data"]["effective_price"], "10.00")

        foreign = make_product(self.other, sku="FOREIGN")
        r = self.client.get(f"/api/products/{foreign.pk}/variants/")
        self.assertEqual(r.status_code, 404)

    def test_export_csv(self):
        make_product(self.store, sku="SKU-A", name="Alpha")
        r = self.client.get("/api/products/export/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r["Content-Type"], "text/csv; charset=utf-8")
        lines = r.content.decode().strip().splitlines()
        self.assertEqual(lines[0], "name,sku,price,compare_at_price,inventory_qty,category,brand,description,is_published")
        self.assertTrue(lines[1].startswith("Alpha,SKU-A,10.00"))

    def test_import_csv(self):
        content = "name,sku,price,inventory_qty\nMug,MUG-1,4.50,3\nBad,,1.00,1\nCup,CUP-1,abc,1\n"
        r = self.client.post("/api/products/import/", {"csv": content}, format="json")
        self.assertEqual(r.status_code, 201)
        data = r.json()["data"]
        self.assertEqual(data["created"], 1)
        self.assertEqual([e["row"] for e in data["errors"]], [3, 4])

    def test_import_missing_columns(self):
        with self.assertRaises(DomainError) as ctx:
            import_products_csv(self.store, "name,price\nMug,1.00\n")
        self.assertEqual(ctx.exception.details["missing_columns"], ["sku"])


class ProductAttributeAPITests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.other = make_store("other")
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        self.material = ProductAttribute.objects.create(
            store=self.store, name="Material", values=["Cotton", "Linen"]
        )
        self.product = make_product(self.store, sku="SHIRT", name="Shirt")
        self.client.force_authenticate(user=self.staff)

    def _assign(self, product, value, attribute=None):
        attribute = attribute or self.material
        return self.client.post(
            f"/api/attributes/{attribute.pk}/products/", {"product": product.pk, "value": value}, format="json"
        )

    def test_create_drops_duplicate_values(self):
        r = self.client.post("/api/attributes/", {"name": "Size", "values": ["S", "M", "S"]}, format="json")
        self.assertEqual(r.status_code, 201)
        data = r.json()["data"]
        self.assertEqual(data["values"], ["S", "M"])
        self.assertEqual(data["store"], self.store.pk)
        self.assertEqual(data["product_count"], 0)

    def test_create_validation(self):
        r = self.client.post("/api/attributes/", {"name": "material", "values": ["Wool"]}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertIn("name", r.json()["error"]["details"])
        r = self.client.post("/api/attributes/", {"name": "Size", "values": []}, format="json")
        self.assertEqual(r.status_code, 400)
        self.assertIn("values", r.json()["error"]["details"])

    def test_same_name_in_other_store_allowed(self):
        ProductAttribute.objects.create(store=self.other, name="Size", values=["S"])
        r = self.client.post("/api/attributes/", {"name": "Size", "values": ["S"]}, format="json")
        self.assertEqual(r.status_code, 201)

    def test_list_search_sort_and_paginate(self):
        ProductAttribute.objects.create(store=self.store, name="Size", values=["S"])
        ProductAttribute.objects.create(store=self.store, name="Colour", values=["Red"])
        ProductAttribute.objects.create(store=self.other, name="Style", values=["Slim"])

        r = self.client.get("/api/attributes/?sort_by=-name&per_page=2")
        body = r.json()
        self.assertEqual([a["name"] for a in body["data"]], ["Size", "Material"])
        self.assertEqual(body["meta"]["total"], 3)
        self.assertTrue(body["meta"]["has_next_page"])

        r = self.client.get("/api/attributes/?search=si")
        self.assertEqual([a["name"] for a in r.json()["data"]], ["Size"])

    def test_foreign_attribute_is_404(self):
        foreign = ProductAttribute.objects.create(store=self.other, name="Size", values=["S"])
        self.assertEqual(self.client.get(f"/api/attributes/{foreign.pk}/").status_code, 404)
        self.assertEqual(self._assign(self.product, "S", attribute=foreign).status_code, 404)
        self.assertFalse(ProductAttributeValue.objects.exists())

    def test_assign_then_replace_value(self):
        r = self._assign(self.product, "Cotton")
        self.assertEqual(r.status_code, 201)
        self.assertEqual(r.json()["data"]["value"], "Cotton")

        r = self._assign(self.product, "Linen")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(ProductAttributeValue.objects.get(product=self.product).value, "Linen")

        r = self.client.get(f"/api/products/{self.product.pk}/")
        self.assertEqual(
            r.json()["data"]["attributes"], [{"attribute": self.material.pk, "name": "Material", "value": "Linen"}]
        )

    def test_assign_unknown_value_rejected(self):
        r = self._assign(self.product, "Silk")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INVALID_ATTRIBUTE_VALUE")
        self.assertEqual(r.json()["error"]["details"]["allowed"], ["Cotton", "Linen"])

    def test_assign_to_foreign_product_is_404(self):
        foreign = make_product(self.other, sku="FOREIGN")
        self.assertEqual(self._assign(foreign, "Cotton").status_code, 404)
        self.assertFalse(ProductAttributeValue.objects.exists())

    def test_list_products_by_value(self):
        linen = make_product(self.store, sku="TROUSERS", name="Trousers")
        deleted = make_product(self.store, sku="OLD", name="Old shirt")
        self._assign(self.product, "Cotton")
        self._assign(linen, "Linen")
        self._assign(deleted, "Cotton")
        deleted.soft_delete()

        r = self.client.get(f"/api/attributes/{self.material.pk}/products/")
        self.assertEqual([p["sku"] for p in r.json()["data"]], ["SHIRT", "TROUSERS"])
        r = self.client.get(f"/api/attributes/{self.material.pk}/products/?value=Linen")
        body = r.json()
        self.assertEqual(body["meta"]["total"], 1)
        self.assertEqual(body["data"][0], {
            "id": linen.pk, "name": "Trousers", "slug": "trousers", "sku": "TROUSERS", "value": "Linen",
        })

    def test_cannot_remove_assigned_value(self):
        self._assign(self.product, "Cotton")
        r = self.client.patch(f"/api/attributes/{self.material.pk}/", {"values": ["Linen"]}, format="json")
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.json()["error"]["details"], {"values": ["Cotton"]})
        r = self.client.patch(f"/api/attributes/{self.material.pk}/", {"values": ["Cotton", "Wool"]}, format="json")
        self.assertEqual(r.status_code, 200)
        self.material.refresh_from_db()
        self.assertEqual(self.material.values, ["Cotton", "Wool"])

    def test_delete_requires_no_assignments(self):
        self._assign(self.product, "Cotton")
        r = self.client.delete(f"/api/attributes/{self.material.pk}/")
        self.assertEqual(r.status_code, 409)

        r = self.client.delete(f"/api/attributes/{self.material.pk}/products/?product={self.product.pk}")
        self.assertEqual(r.status_code, 204)
        r = self.client.delete(f"/api/attributes/{self.material.pk}/products/?product={self.product.pk}")
        self.assertEqual(r.status_code, 404)

        r = self.client.delete(f"/api/attributes/{self.material.pk}/")
        self.assertEqual(r.status_code, 204)
        self.assertFalse(ProductAttribute.objects.filter(pk=self.material.pk).exists())


class StorefrontTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.visible = make_product(self.store, sku="PUB", cost_price=Decimal("3.00"))
        self.hidden = make_product(self.store, sku="DRAFT", is_published=False)

    def test_lists_published_only_without_auth(self):
        r = self.client.get("/api/storefront/acme/products/")
        self.assertEqual(r.status_code, 200)
        data = r.json()["data"]
        self.assertEqual([p["sku"] for p in data], ["PUB"])
        self.assertNotIn("cost_price", data[0])
        self.assertNotIn("inventory_qty", data[0])

    def test_detail_by_slug(self):
        r = self.client.get("/api/storefront/acme/products/pub/")
        self.assertEqual(r.status_code, 200)
        self.assertTrue(r.json()["data"]["in_stock"])
        self.assertEqual(self.client.get("/api/storefront/acme/products/draft/").status_code, 404)

    def test_detail_lists_attributes(self):
        material = ProductAttribute.objects.create(store=self.store, name="Material", values=["Oak"])
        ProductAttributeValue.objects.create(product=self.visible, attribute=material, value="Oak")
        r = self.client.get("/api/storefront/acme/products/pub/")
        self.assertEqual(r.json()["data"]["attributes"], {"Material": "Oak"})

    def test_inactive_store_is_404(self):
        self.store.is_active = False
        self.store.save()
        self.assertEqual(self.client.get("/api/storefront/acme/products/").status_code, 404)

    def test_category_tree(self):
        Category.objects.create(store=self.store, name="Shown", slug="shown")
        Category.objects.create(store=self.store, name="Hidden", slug="hidden", is_published=False)
        r = self.client.get("/api/storefront/acme/categories/")
        self.assertEqual([c["slug"] for c in r.json()["data"]], ["shown"])
