"""Tests for role checks and store scoping."""
from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory, TestCase
from rest_framework import exceptions

from accounts.choices import Role
from catalog.models import Product
from core.permissions import (
    IsStoreAdmin,
    IsStoreStaff,
    IsStoreStaffOrAdminWrite,
    IsSuperAdmin,
    can_access_store,
    is_store_admin,
    is_store_staff,
    is_super_admin,
)
from core.tenancy import StoreScope
from tests.helpers import make_product, make_store, make_user


class RoleHelpersTest(TestCase):
    def setUp(self):
        self.store = make_store("acme")
        self.root = make_user("root@platform.test", role=Role.SUPER_ADMIN)
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        self.customer = make_user("c@example.com", store=self.store)

    def test_super_admin(self):
        self.assertTrue(is_super_admin(self.root))
        self.assertFalse(is_super_admin(self.admin))
        self.assertFalse(is_super_admin(AnonymousUser()))

    def test_store_admin(self):
        self.assertTrue(is_store_admin(self.root))
        self.assertTrue(is_store_admin(self.admin))
        self.assertFalse(is_store_admin(self.staff))

    def test_store_staff(self):
        self.assertTrue(is_store_staff(self.staff))
        self.assertFalse(is_store_staff(self.customer))
        self.assertFalse(is_store_staff(AnonymousUser()))

    def test_can_access_store(self):
        other = make_store("other")
        self.assertTrue(can_access_store(self.admin, self.store))
        self.assertTrue(can_access_store(self.admin, self.store.pk))
        self.assertFalse(can_access_store(self.admin, other))
        self.assertTrue(can_access_store(self.root, other))
        self.assertFalse(can_access_store(AnonymousUser(), self.store))


class PermissionClassesTest(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.store = make_store("acme")
        self.admin = make_user("admin@acme.test", role=Role.STORE_ADMIN, store=self.store)
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)

    def _request(self, method, user):
        request = getattr(self.factory, method)("/")
        request.user = user
        return request

    def test_staff_read_admin_write(self):
        perm = IsStoreStaffOrAdminWrite()
        self.assertTrue(perm.has_permission(self._request("get", self.staff), None))
        self.assertFalse(perm.has_permission(self._request("post", self.staff), None))
        self.assertTrue(perm.has_permission(self._request("post", self.admin), None))

    def test_simple_classes(self):
        self.assertTrue(IsStoreStaff().has_permission(self._request("get", self.staff), None))
        self.assertFalse(IsStoreAdmin().has_permission(self._request("get", self.staff), None))
        self.assertFalse(IsSuperAdmin().has_permission(self._request("get", self.admin), None))


class StoreScopeTest(TestCase):
    def setUp(self):
        self.store = make_store("acme")
        self.other = make_store("other")
        self.mine = make_product(self.store)
        self.theirs = make_product(self.other)

    def test_store_user_bound_to_own_store(self):
        user = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        scope = StoreScope.for_user(user, requested_store_id=self.other.pk)
        self.assertEqual(list(scope.filter(Product.objects.all())), [self.mine])
        self.assertTrue(scope.allows(self.store))
        self.assertFalse(scope.allows(self.other))

    def test_get_outside_scope_is_not_found(self):
        user = make_user("staff@acme.test", role=Role.STAFF, store=self.store)
        scope = StoreScope.for_user(user)
        with self.assertRaises(exceptions.NotFound):
            scope.get(Product.objects.all(), pk=self.theirs.pk)

    def test_super_admin_global_and_narrowed(self):
        root = make_user("root@platform.test", role=Role.SUPER_ADMIN)
        scope = StoreScope.for_user(root)
        self.assertTrue(scope.is_global)
        self.assertEqual(scope.filter(Product.objects.all()).count(), 2)
        with self.assertRaises(exceptions.ValidationError):
            scope.require_store()

        narrowed = StoreScope.for_user(root, requested_store_id=self.other.pk)
        self.assertEqual(list(narrowed.filter(Product.objects.all())), [self.theirs])
        self.assertEqual(narrowed.require_store(), self.other)

    def test_user_without_store_sees_nothing(self):
        scope = StoreScope.for_user(make_user("c@example.com"))
        self.assertTrue(scope.is_empty)
        self.assertFalse(scope.filter(Product.objects.all()).exists())
        with self.assertRaises(exceptions.NotFound):
            scope.require_store()

    def test_anonymous_scope_is_empty(self):
        self.assertTrue(StoreScope.for_user(AnonymousUser()).is_empty)
