"""Response envelope, error mapping and request tracing."""
import json

from django.core.paginator import Paginator
from django.test import SimpleTestCase, TestCase
from rest_framework import exceptions
from rest_framework.response import Response
from rest_framework.test import APIClient

from accounts.choices import Role
from common.exceptions import ConflictError, DomainError, envelope_exception_handler
from common.log import get_request_id
from common.pagination import EnvelopePagination
from common.renderers import EnvelopeJSONRenderer
from tests.helpers import make_store, make_user


class EnvelopeTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.staff = make_user("staff@acme.test", role=Role.STAFF, store=self.store)

    def test_list_has_data_and_meta(self):
        self.client.force_authenticate(user=self.staff)
        body = self.client.get("/api/products/").json()
        self.assertEqual(set(body), {"data", "meta"})
        self.assertEqual(
            set(body["meta"]),
            {"page", "per_page", "total", "total_pages", "has_next_page", "has_previous_page"},
        )

    def test_per_page_clamped(self):
        self.client.force_authenticate(user=self.staff)
        self.assertEqual(self.client.get("/api/products/?per_page=500").json()["meta"]["per_page"], 100)
        self.assertEqual(self.client.get("/api/products/?per_page=0").json()["meta"]["per_page"], 1)

    def test_detail_wrapped(self):
        self.client.force_authenticate(user=self.staff)
        body = self.client.get("/api/auth/me/").json()
        self.assertEqual(list(body), ["data"])

    def test_unauthenticated_is_401(self):
        r = self.client.get("/api/orders/")
        self.assertEqual(r.status_code, 401)
        error = r.json()["error"]
        self.assertEqual(error["code"], "UNAUTHORIZED")
        self.assertIn("message", error)
        self.assertIn("details", error)

    def test_not_found_envelope(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.get("/api/products/999999/")
        self.assertEqual(r.status_code, 404)
        self.assertEqual(r.json()["error"]["code"], "NOT_FOUND")

    def test_validation_envelope(self):
        self.client.force_authenticate(user=self.staff)
        r = self.client.post("/api/products/", {"name": ""}, format="json")
        self.assertEqual(r.status_code, 400)
        error = r.json()["error"]
        self.assertEqual(error["code"], "VALIDATION_ERROR")
        self.assertIn("sku", error["details"])

    def test_request_id_echoed(self):
        r = self.client.get("/api/health/", HTTP_X_REQUEST_ID="abc-123")
        self.assertEqual(r["X-Request-ID"], "abc-123")
        self.assertEqual(r.json(), {"status": "ok"})
        self.assertEqual(get_request_id(), "-")


class RendererTest(SimpleTestCase):
    def _render(self, response):
        content = EnvelopeJSONRenderer().render(response.data, renderer_context={"response": response})
        return json.loads(content)

    def test_payload_with_data_key_is_wrapped(self):
        self.assertEqual(self._render(Response({"data": [1, 2]})), {"data": {"data": [1, 2]}})
        self.assertEqual(
            self._render(Response({"data": 1, "meta": 2})), {"data": {"data": 1, "meta": 2}}
        )

    def test_paginated_response_passes_through(self):
        pagination = EnvelopePagination()
        pagination.page = Paginator([1, 2, 3], 2).page(1)
        body = self._render(pagination.get_paginated_response([1, 2]))
        self.assertEqual(body["data"], [1, 2])
        self.assertEqual(body["meta"]["total"], 3)
        self.assertTrue(body["meta"]["has_next_page"])


class ExceptionHandlerTest(TestCase):
    def test_domain_error(self):
        r = envelope_exception_handler(DomainError("Nope.", details={"x": 1}, code="CUSTOM"), {})
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.data, {"error": {"code": "CUSTOM", "message": "Nope.", "details": {"x": 1}}})

    def test_conflict(self):
        r = envelope_exception_handler(ConflictError("Taken."), {})
        self.assertEqual(r.status_code, 409)
        self.assertEqual(r.data["error"]["code"], "CONFLICT")

    def test_authentication_failed_forced_to_401(self):
        r = envelope_exception_handler(exceptions.AuthenticationFailed(), {})
        self.assertEqual(r.status_code, 401)

    def test_unexpected_error_is_500(self):
        with self.assertLogs("common.exceptions", level="ERROR"):
            r = envelope_exception_handler(RuntimeError("boom"), {})
        self.assertEqual(r.status_code, 500)
        self.assertEqual(r.data["error"]["code"], "INTERNAL_ERROR")
        self.assertNotIn("boom", r.data["error"]["message"])
