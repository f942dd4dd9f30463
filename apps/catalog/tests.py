# apps/catalog/tests.py
from decimal import Decimal

from django.test import TestCase
from django.urls import reverse

from rest_framework.test import APITestCase
from rest_framework import status

from apps.orders.services import OrderService
from apps.utils.exceptions import DuplicateSKU, ProductInUse, ProductNotFound
from .models import Product
from .services import CatalogService


def product_payload(**overrides):
    payload = {
        "name": "Steel Bolt",
        "sku": "BOLT-M8",
        "category": "Hardware",
        "description": "M8 zinc plated",
        "price": "1.25",
        "stock": 100,
        "image_url": "",
    }
    payload.update(overrides)
    return payload


class CatalogServiceTests(TestCase):
    def setUp(self):
        self.service = CatalogService()
        self.product = Product.objects.create(name="Nut", sku="NUT-1", price=Decimal("0.20"), stock=40)

    def test_create_duplicate_sku(self):
        with self.assertRaises(DuplicateSKU):
            self.service.create_product({"name": "Other", "sku": "NUT-1", "price": Decimal("1"), "stock": 1})

    def test_update_keeps_own_sku(self):
        product = self.service.update_product(
            self.product.pk, {"name": "Hex Nut", "sku": "NUT-1", "price": Decimal("0.30"), "stock": 40}
        )
        self.assertEqual(product.name, "Hex Nut")

    def test_update_missing_product(self):
        with self.assertRaises(ProductNotFound):
            self.service.update_product(999999, {"name": "X", "sku": "X", "price": Decimal("1"), "stock": 1})

    def test_delete_referenced_product(self):
        OrderService().create_order("Alice", [{"product_id": self.product.pk, "quantity": 1}])

        with self.assertRaises(ProductInUse):
            self.service.delete_product(self.product.pk)
        self.assertTrue(Product.objects.filter(pk=self.product.pk).exists())

    def test_delete_product(self):
        self.service.delete_product(self.product.pk)
        self.assertFalse(Product.objects.filter(pk=self.product.pk).exists())

        with self.assertRaises(ProductNotFound):
            self.service.delete_product(self.product.pk)


class ProductViewSetTests(APITestCase):
    def setUp(self):
        self.list_url = reverse("product-list")

    def detail_url(self, pk):
        return reverse("product-detail", args=[pk])

    def test_create_product(self):
        response = self.client.post(self.list_url, product_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["message"], "Product added successfully")
        self.assertEqual(response.data["product"]["sku"], "BOLT-M8")
        self.assertEqual(Product.objects.get().price, Decimal("1.25"))

    def test_create_duplicate_sku_conflict(self):
        self.client.post(self.list_url, product_payload(), format="json")
        response = self.client.post(self.list_url, product_payload(name="Another"), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "conflict")
        self.assertEqual(Product.objects.count(), 1)

    def test_create_invalid_price_or_stock(self):
        for overrides, field in [
            ({"price": "-1"}, "price"),
            ({"price": "abc"}, "price"),
            ({"stock": -5}, "stock"),
            ({"stock": "ten"}, "stock"),
        ]:
            with self.subTest(overrides=overrides):
                response = self.client.post(self.list_url, product_payload(**overrides), format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertEqual(response.data["code"], "validation_error")
                self.assertTrue(response.data["error"].startswith(field))

        self.assertEqual(Product.objects.count(), 0)

    def test_create_requires_name_and_sku(self):
        response = self.client.post(self.list_url, product_payload(name="  ", sku=""), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_retrieve_and_404(self):
        product = Product.objects.create(name="Nut", sku="NUT-1", price=Decimal("0.20"), stock=40)

        response = self.client.get(self.detail_url(product.pk))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["name"], "Nut")
        self.assertFalse(response.data["is_low_stock"])

        response = self.client.get(self.detail_url(999999))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "not_found")

    def test_update_product(self):
        product = Product.objects.create(name="Nut", sku="NUT-1", price=Decimal("0.20"), stock=40)

        response = self.client.put(
            self.detail_url(product.pk),
            product_payload(name="Hex Nut", sku="NUT-1", price="0.35", stock=5),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Product updated successfully")
        product.refresh_from_db()
        self.assertEqual((product.name, product.price, product.stock), ("Hex Nut", Decimal("0.35"), 5))

    def test_update_sku_collision(self):
        Product.objects.create(name="Nut", sku="NUT-1", price=Decimal("0.20"), stock=40)
        other = Product.objects.create(name="Washer", sku="WASH-1", price=Decimal("0.05"), stock=40)

        response = self.client.put(self.detail_url(other.pk), product_payload(sku="NUT-1"), format="json")

        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        other.refresh_from_db()
        self.assertEqual(other.sku, "WASH-1")

    def test_update_missing_product(self):
        response = self.client.put(self.detail_url(999999), product_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_product(self):
        product = Product.objects.create(name="Nut", sku="NUT-1", price=Decimal("0.20"), stock=40)

        response = self.client.delete(self.detail_url(product.pk))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["message"], "Product deleted successfully")

        response = self.client.delete(self.detail_url(product.pk))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class ProductListTests(APITestCase):
    def setUp(self):
        self.list_url = reverse("product-list")
        Product.objects.create(name="Hammer", sku="HAM-1", category="Tools", price=Decimal("15.00"), stock=3)
        Product.objects.create(name="Saw", sku="SAW-1", category="Tools", price=Decimal("22.50"), stock=12,
                               description="Fine tooth hand saw")
        Product.objects.create(name="Glue", sku="GLU-1", category="Adhesives", price=Decimal("4.00"), stock=50)

    def names(self, response):
        return [p["name"] for p in response.data["products"]]

    def test_envelope(self):
        response = self.client.get(self.list_url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(set(response.data), {"products", "total", "page", "limit"})
        self.assertEqual(response.data["total"], 3)
        self.assertEqual((response.data["page"], response.data["limit"]), (1, 10))

    def test_search_and_category(self):
        response = self.client.get(self.list_url, {"search": "tooth"})
        self.assertEqual(self.names(response), ["Saw"])

        response = self.client.get(self.list_url, {"search": "glu-"})
        self.assertEqual(self.names(response), ["Glue"])

        response = self.client.get(self.list_url, {"category": "Tools"})
        self.assertEqual(response.data["total"], 2)

    def test_low_stock_filter(self):
        response = self.client.get(self.list_url, {"lowStock": "true"})
        self.assertEqual(self.names(response), ["Hammer"])

        response = self.client.get(self.list_url, {"lowStock": "false"})
        self.assertEqual(response.data["total"], 3)

    def test_sorting(self):
        response = self.client.get(self.list_url, {"sortBy": "price"})
        self.assertEqual(self.names(response), ["Glue", "Hammer", "Saw"])

        response = self.client.get(self.list_url, {"sortBy": "price", "sortOrder": "desc"})
        self.assertEqual(self.names(response), ["Saw", "Hammer", "Glue"])

        response = self.client.get(self.list_url, {"sortBy": "password"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["total"], 3)

    def test_pagination(self):
        response = self.client.get(self.list_url, {"sortBy": "name", "limit": 2, "page": 2})
        self.assertEqual(self.names(response), ["Saw"])
        self.assertEqual((response.data["page"], response.data["limit"]), (2, 2))

        response = self.client.get(self.list_url, {"limit": "abc", "page": "-1"})
        self.assertEqual((response.data["page"], response.data["limit"]), (1, 10))
        self.assertEqual(len(response.data["products"]), 3)
