from urllib.parse import parse_qs, urlsplit

from django.contrib.auth.tokens import default_token_generator
from django.core import mail
from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from audit.models import AuditLog
from tests.helpers import make_store, make_user

from .choices import Role
from .models import User


class RegisterTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")

    def test_register_customer(self):
        r = self.client.post(
            "/api/auth/register/",
            {"email": "new@example.com", "password": "longenough1", "name": "New", "store": self.store.pk},
            format="json",
        )
        self.assertEqual(r.status_code, 201)
        self.assertNotIn("password", r.json()["data"])
        user = User.objects.get(email="new@example.com")
        self.assertEqual(user.role, Role.CUSTOMER)
        self.assertEqual(user.store, self.store)
        self.assertTrue(user.check_password("longenough1"))

    def test_role_cannot_be_chosen(self):
        self.client.post(
            "/api/auth/register/",
            {"email": "sneaky@example.com", "password": "longenough1", "role": "SUPER_ADMIN"},
            format="json",
        )
        self.assertEqual(User.objects.get(email="sneaky@example.com").role, Role.CUSTOMER)

    def test_duplicate_email(self):
        make_user("taken@example.com")
        r = self.client.post(
            "/api/auth/register/", {"email": "TAKEN@example.com", "password": "longenough1"}, format="json"
        )
        self.assertEqual(r.status_code, 400)
        self.assertIn("email", r.json()["error"]["details"])


class TokenTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.store = make_store("acme")
        self.user = make_user("staff@acme.test", role=Role.STAFF, store=self.store)

    def test_obtain_and_use_token(self):
        r = self.client.post(
            "/api/auth/token/", {"email": "staff@acme.test", "password": "pass12345"}, format="json"
        )
        self.assertEqual(r.status_code, 200)
        access = r.json()["data"]["access"]
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {access}")
        r = self.client.get("/api/auth/me/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["data"]["role"], Role.STAFF)
        self.assertEqual(r.json()["data"]["store"], self.store.pk)

    def test_bad_password(self):
        r = self.client.post(
            "/api/auth/token/", {"email": "staff@acme.test", "password": "wrong"}, format="json"
        )
        self.assertIn(r.status_code, (400, 401))
        self.assertIn("error", r.json())

    def test_invalid_token_is_401(self):
        self.client.credentials(HTTP_AUTHORIZATION="Bearer not-a-token")
        r = self.client.get("/api/auth/me/")
        self.assertEqual(r.status_code, 401)
        self.assertEqual(r.json()["error"]["code"], "UNAUTHORIZED")

    def test_session_login(self):
        r = self.client.post(
            "/api/auth/login/", {"email": "staff@acme.test", "password": "pass12345"}, format="json"
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(self.client.get("/api/auth/me/").status_code, 200)

    def test_profile_update_keeps_role(self):
        self.client.force_authenticate(user=self.user)
        r = self.client.patch("/api/auth/me/", {"name": "Sam", "role": "SUPER_ADMIN"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, "Sam")
        self.assertEqual(self.user.role, Role.STAFF)


class PasswordResetTests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = make_user("shopper@example.com")

    def _request_link(self):
        r = self.client.post("/api/auth/password-reset/", {"email": "shopper@example.com"}, format="json")
        self.assertEqual(r.status_code, 200)
        link = mail.outbox[-1].body.split("Reset it here: ")[1].split()[0]
        query = parse_qs(urlsplit(link).query)
        return query["uid"][0], query["token"][0]

    def test_unknown_email_gets_same_answer(self):
        known = self.client.post("/api/auth/password-reset/", {"email": "shopper@example.com"}, format="json")
        unknown = self.client.post("/api/auth/password-reset/", {"email": "nobody@example.com"}, format="json")
        self.assertEqual(unknown.status_code, 200)
        self.assertEqual(unknown.json(), known.json())
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["shopper@example.com"])

    def test_inactive_user_gets_no_mail(self):
        self.user.is_active = False
        self.user.save()
        r = self.client.post("/api/auth/password-reset/", {"email": "shopper@example.com"}, format="json")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(mail.outbox, [])

    @override_settings(PASSWORD_RESET_URL="https://shop.test/reset-password")
    def test_link_points_at_frontend(self):
        self._request_link()
        self.assertIn("https://shop.test/reset-password?uid=", mail.outbox[0].body)

    def test_confirm_sets_password(self):
        uid, token = self._request_link()
        r = self.client.post(
            "/api/auth/password-reset/confirm/",
            {"uid": uid, "token": token, "new_password": "fresh-Secret-42"},
            format="json",
        )
        self.assertEqual(r.status_code, 200)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("fresh-Secret-42"))
        self.assertEqual(mail.outbox[-1].subject, "Your password was changed")
        self.assertTrue(
            AuditLog.objects.filter(action="user.password_reset", entity_id=str(self.user.pk)).exists()
        )

        # The token is tied to the old password hash.
        r = self.client.post(
            "/api/auth/password-reset/confirm/",
            {"uid": uid, "token": token, "new_password": "another-Secret-43"},
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.json()["error"]["code"], "INVALID_OR_EXPIRED_TOKEN")

    def test_confirm_revokes_refresh_tokens(self):
        r = self.client.post(
            "/api/auth/token/", {"email": "shopper@example.com", "password": "pass12345"}, format="json"
        )
        refresh = r.json()["data"]["refresh"]
        uid, token = self._request_link()
        self.client.post(
            "/api/auth/password-reset/confirm/",
            {"uid": uid, "token": token, "new_password": "fresh-Secret-42"},
            format="json",
        )
        r = self.client.post("/api/auth/token/refresh/", {"refresh": refresh}, format="json")
        self.assertEqual(r.status_code, 401)

    def test_bad_token_rejected(self):
        uid, _ = self._request_link()
        for data in (
            {"uid": uid, "token": "nope", "new_password": "fresh-Secret-42"},
            {"uid": "!!", "token": "nope", "new_password": "fresh-Secret-42"},
        ):
            r = self.client.post("/api/auth/password-reset/confirm/", data, format="json")
            self.assertEqual(r.status_code, 400)
            self.assertEqual(r.json()["error"]["code"], "INVALID_OR_EXPIRED_TOKEN")
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("pass12345"))

    def test_weak_password_rejected(self):
        uid, token = self._request_link()
        r = self.client.post(
            "/api/auth/password-reset/confirm/",
            {"uid": uid, "token": token, "new_password": "123"},
            format="json",
        )
        self.assertEqual(r.status_code, 400)
        error = r.json()["error"]
        self.assertEqual(error["code"], "VALIDATION_ERROR")
        self.assertIn("new_password", error["details"])
        self.assertTrue(default_token_generator.check_token(self.user, token))
