# apps/utils/tests.py
import json
import logging
from datetime import date

from django.contrib.auth import get_user_model
from django.http import Http404
from django.test import SimpleTestCase, TestCase, override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from .exceptions import BusinessLogicException, DuplicateSKU, custom_exception_handler
from .logging import JSONFormatter
from .utils import (
    build_ordering,
    coerce_positive_int,
    parse_bool_param,
    parse_date_param,
    parse_positive_int,
)

User = get_user_model()


class ParamParsingTests(SimpleTestCase):
    def test_parse_positive_int(self):
        self.assertEqual(parse_positive_int("3", 1), 3)
        self.assertEqual(parse_positive_int(" 7 ", 1), 7)
        for bad in [None, "", "abc", "0", "-4", "2.5"]:
            with self.subTest(value=bad):
                self.assertEqual(parse_positive_int(bad, 10), 10)

    def test_parse_date_param(self):
        self.assertEqual(parse_date_param("2024-03-01"), date(2024, 3, 1))
        self.assertEqual(parse_date_param("2024-03-01T10:00:00Z"), date(2024, 3, 1))
        self.assertIsNone(parse_date_param("2024-02-30"))
        self.assertIsNone(parse_date_param("yesterday"))
        self.assertIsNone(parse_date_param(None))

    def test_parse_bool_param(self):
        self.assertTrue(parse_bool_param("true"))
        self.assertTrue(parse_bool_param("TRUE"))
        self.assertTrue(parse_bool_param("1"))
        self.assertFalse(parse_bool_param("false"))
        self.assertFalse(parse_bool_param(None))

    def test_coerce_positive_int(self):
        self.assertEqual(coerce_positive_int(4), 4)
        self.assertEqual(coerce_positive_int("12"), 12)
        for bad in [0, -1, 1.0, "1.5", "", None, True, [1], "²", "①"]:
            with self.subTest(value=bad):
                self.assertIsNone(coerce_positive_int(bad))

    def test_build_ordering(self):
        allowed = ("name", "price")
        self.assertEqual(build_ordering("price", None, allowed, "-created_at"), ["price", "-pk"])
        self.assertEqual(build_ordering("price", "desc", allowed, "-created_at"), ["-price", "-pk"])
        self.assertEqual(build_ordering("stock", "ASC", allowed, "-created_at"), ["-created_at", "-pk"])
        self.assertEqual(build_ordering(None, None, allowed, "-created_at"), ["-created_at", "-pk"])

    def test_build_ordering_descending_default(self):
        allowed = ("order_date",)
        self.assertEqual(
            build_ordering("order_date", None, allowed, "-order_date", default_direction="DESC"),
            ["-order_date", "-pk"],
        )
        self.assertEqual(
            build_ordering("order_date", "asc", allowed, "-order_date", default_direction="DESC"),
            ["order_date", "-pk"],
        )


class ExceptionHandlerTests(SimpleTestCase):
    def test_business_error(self):
        response = custom_exception_handler(BusinessLogicException("Nope"), {})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data, {"error": "Nope", "code": "business_error"})

    def test_business_error_keeps_status(self):
        response = custom_exception_handler(DuplicateSKU("A-1"), {})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data["error"], "SKU 'A-1' already exists.")

    def test_validation_error_is_flattened(self):
        exc = ValidationError({"price": ["Price must be a valid non-negative number."]})
        response = custom_exception_handler(exc, {})

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["code"], "validation_error")
        self.assertEqual(response.data["error"], "price: Price must be a valid non-negative number.")
        self.assertIn("price", response.data["details"])

    def test_not_found(self):
        response = custom_exception_handler(Http404(), {})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "not_found")

    def test_unexpected_error_hides_details(self):
        with self.assertLogs("apps.utils.exceptions", level="ERROR"):
            response = custom_exception_handler(RuntimeError("near \"SELEC\": syntax error"), {})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data, {"error": "Internal Server Error", "code": "server_error"})


class JSONFormatterTests(SimpleTestCase):
    def make_record(self, msg, **extra):
        record = logging.LogRecord("apps.orders", logging.INFO, __file__, 1, msg, None, None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_context_fields(self):
        line = JSONFormatter().format(self.make_record("Order created", order_id=7))
        data = json.loads(line)

        self.assertEqual(data["msg"], "Order created")
        self.assertEqual(data["order_id"], 7)
        self.assertEqual(data["lvl"], "INFO")

    def test_sensitive_keys_redacted(self):
        record = self.make_record({"user": "bob", "password": "hunter2", "nested": {"token": "abc"}})
        data = json.loads(JSONFormatter().format(record))

        self.assertNotIn("hunter2", data["msg"])
        self.assertNotIn("abc", data["msg"])
        self.assertIn("bob", data["msg"])


class HealthAndInfoTests(TestCase):
    def test_health(self):
        response = self.client.get(reverse("health-check"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "UP")
        self.assertEqual(response.json()["database"], "ok")

    def test_info(self):
        response = self.client.get(reverse("server-info"))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["app_name"], "Stockroom")
        self.assertFalse(response.json()["auth_required"])

    def test_request_logging(self):
        with self.assertLogs("apps.utils.middleware", level="INFO") as logs:
            self.client.get(reverse("product-list"))

        self.assertTrue(any("GET /api/products/ -> 200" in line for line in logs.output))


class AuthToggleTests(APITestCase):
    def setUp(self):
        self.user = User.objects.create_user(username="clerk", password="s3cret-pass")

    def test_open_by_default(self):
        response = self.client.get(reverse("product-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @override_settings(API_AUTH_REQUIRED=True)
    def test_token_required_when_enabled(self):
        response = self.client.get(reverse("order-list"))
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data["code"], "not_authenticated")

        response = self.client.post(
            reverse("token-obtain"),
            {"username": "clerk", "password": "s3cret-pass"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        response = self.client.get(reverse("order-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    @override_settings(API_AUTH_REQUIRED=True)
    def test_health_stays_public(self):
        response = self.client.get(reverse("health-check"))
        self.assertEqual(response.status_code, 200)


class SchemaTests(APITestCase):
    def test_schema_is_served(self):
        response = self.client.get(reverse("schema"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
