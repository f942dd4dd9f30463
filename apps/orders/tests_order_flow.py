from decimal import Decimal

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Product
from apps.orders.models import Order


class OrderFlowTests(APITestCase):
    def setUp(self):
        self.product_a = Product.objects.create(name='Widget A', sku='A-1', price=Decimal('10.00'), stock=5)
        self.product_b = Product.objects.create(name='Widget B', sku='B-1', price=Decimal('25.00'), stock=3)
        self.list_url = reverse('order-list')

    def create_order(self, **overrides):
        payload = {
            'customer_name': 'Alice',
            'items': [
                {'product_id': self.product_a.pk, 'quantity': 2},
                {'product_id': self.product_b.pk, 'quantity': 1},
            ],
        }
        payload.update(overrides)
        return self.client.post(self.list_url, payload, format='json')

    def status_url(self, order_id):
        return reverse('order-update-status', args=[order_id])

    def test_create_order(self):
        response = self.create_order()

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Order created successfully')
        order = response.data['order']
        self.assertEqual(order['status'], 'Pending')
        self.assertEqual(Decimal(str(order['total_amount'])), Decimal('45.00'))
        self.assertEqual(len(order['items']), 2)
        names = {item['product_name'] for item in order['items']}
        self.assertEqual(names, {'Widget A', 'Widget B'})

    def test_create_order_insufficient_stock(self):
        response = self.create_order(items=[{'product_id': self.product_b.pk, 'quantity': 4}])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'insufficient_stock')
        self.assertIn('Available: 3, Requested: 4', response.data['error'])
        self.assertEqual(Order.objects.count(), 0)

    def test_create_order_unknown_product(self):
        response = self.create_order(items=[{'product_id': 424242, 'quantity': 1}])

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'not_found')

    def test_create_order_validation(self):
        response = self.create_order(customer_name='', items=[])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'validation_error')

        response = self.create_order(items=[{'product_id': self.product_a.pk, 'quantity': 0}])
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        for quantity in ['²', '①']:
            response = self.create_order(items=[{'product_id': self.product_a.pk, 'quantity': quantity}])
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['code'], 'validation_error')

    def test_retrieve_order(self):
        order_id = self.create_order().data['order']['id']

        response = self.client.get(reverse('order-detail', args=[order_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], order_id)
        item = response.data['items'][0]
        for key in ('product_id', 'product_name', 'product_sku', 'quantity', 'price_per_unit', 'total_price'):
            self.assertIn(key, item)

        response = self.client.get(reverse('order-detail', args=[999999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_list_orders_filters_and_pagination(self):
        self.create_order(customer_name='Alice Smith', items=[{'product_id': self.product_a.pk, 'quantity': 1}])
        self.create_order(customer_name='Bob', items=[{'product_id': self.product_a.pk, 'quantity': 1}])
        self.create_order(customer_name='alice jones', items=[{'product_id': self.product_b.pk, 'quantity': 1}])

        response = self.client.get(self.list_url, {'customer_name': 'ALICE'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 2)
        self.assertEqual(response.data['page'], 1)
        self.assertEqual(response.data['limit'], 10)

        response = self.client.get(self.list_url, {'limit': 2, 'page': 2})
        self.assertEqual(response.data['total'], 3)
        self.assertEqual(len(response.data['orders']), 1)

        response = self.client.get(self.list_url, {'sortBy': 'customer_name', 'sortOrder': 'ASC'})
        self.assertEqual(response.data['orders'][0]['customer_name'], 'Alice Smith')

        response = self.client.get(self.list_url, {'status': 'Cancelled'})
        self.assertEqual(response.data['total'], 0)

    def test_status_update_and_cancel(self):
        order_id = self.create_order().data['order']['id']

        response = self.client.put(self.status_url(order_id), {'status': 'Processing'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], f'Order {order_id} status updated to Processing')

        response = self.client.put(self.status_url(order_id), {'status': 'Cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('stock restored', response.data['message'])
        self.assertEqual(response.data['order']['status'], 'Cancelled')

        self.product_a.refresh_from_db()
        self.product_b.refresh_from_db()
        self.assertEqual((self.product_a.stock, self.product_b.stock), (5, 3))

        response = self.client.put(self.status_url(order_id), {'status': 'Cancelled'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], f'Order {order_id} status is already Cancelled.')

        response = self.client.put(self.status_url(order_id), {'status': 'Pending'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'invalid_transition')

    def test_status_update_rejects_unknown_status(self):
        order_id = self.create_order().data['order']['id']

        response = self.client.put(self.status_url(order_id), {'status': 'Lost'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Invalid status', response.data['error'])

    def test_status_update_missing_order(self):
        response = self.client.put(self.status_url(999999), {'status': 'Shipped'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_referenced_product_cannot_be_deleted(self):
        self.create_order()

        response = self.client.delete(reverse('product-detail', args=[self.product_a.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'product_in_use')
        self.assertTrue(Product.objects.filter(pk=self.product_a.pk).exists())
