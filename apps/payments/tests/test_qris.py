from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock, patch

import requests
from django.test import SimpleTestCase, TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.orders.models import Order, PaymentMethod
from apps.orders.tests.helpers import make_admin, make_customer, make_order, make_product
from apps.payments.gateway import MidtransConfig, MidtransGateway, compute_signature
from apps.payments.models import PaymentTransaction
from apps.payments.services import create_qris_charge
from fivescent.errors import AlreadyPaid, ChargeNotAllowed, GatewayError

Status = Order.Status


def fake_charge(gateway_order_id, gross_amount, customer_details=None):
    return {
        'transaction_id': f'tx-{gateway_order_id}',
        'qr_url': f'https://api.sandbox.midtrans.com/v2/qris/{gateway_order_id}/qr-code',
        'raw': {'status_code': '201'},
    }


class QrisChargeApiTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.product = make_product(stock_30ml=10)
        self.order = make_order(self.customer, self.product)
        self.client = APIClient()
        self.client.force_authenticate(self.customer)

    def test_charge_is_created_then_reused(self):
        with patch('apps.payments.services.MidtransGateway') as gateway_mock:
            gateway_mock.return_value.charge_qris.side_effect = fake_charge
            first = self.client.post('/api/v1/payments/qris/', {'order_id': self.order.id}, format='json')
            second = self.client.post('/api/v1/payments/qris/', {'order_id': self.order.id}, format='json')

        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)
        self.assertEqual(second.status_code, status.HTTP_200_OK, second.data)
        self.assertEqual(gateway_mock.return_value.charge_qris.call_count, 1)
        self.assertEqual(first.data['qr_url'], second.data['qr_url'])
        self.assertTrue(first.data['midtrans_order_id'].startswith(f'ORDER-{self.order.id}-'))
        self.assertEqual(PaymentTransaction.objects.filter(order=self.order).count(), 1)

        gateway_order_id, amount, _ = gateway_mock.return_value.charge_qris.call_args[0]
        self.assertEqual(amount, Decimal('105000.00'))

    def test_mock_mode_without_server_key(self):
        response = self.client.post('/api/v1/payments/qris/', {'order_id': self.order.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertIn('mock-ORDER-', response.data['qr_url'])
        payment_tx = PaymentTransaction.objects.get(order=self.order)
        self.assertEqual(payment_tx.status, PaymentTransaction.Status.PENDING)
        self.assertGreater(payment_tx.expired_at, timezone.now())

    def test_gateway_failure_returns_502_and_leaves_order_pending(self):
        with patch('apps.payments.services.MidtransGateway') as gateway_mock:
            gateway_mock.return_value.charge_qris.side_effect = GatewayError()
            response = self.client.post('/api/v1/payments/qris/', {'order_id': self.order.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, Status.PENDING)
        self.assertFalse(PaymentTransaction.objects.exists())

    def test_other_customers_cannot_charge_my_order(self):
        client = APIClient()
        client.force_authenticate(make_customer('other'))
        response = client.post('/api/v1/payments/qris/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_can_charge_any_order(self):
        client = APIClient()
        client.force_authenticate(make_admin())
        response = client.post('/api/v1/payments/qris/', {'order_id': self.order.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_stored_qr_detail(self):
        url = f'/api/v1/orders/{self.order.id}/qris/'
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

        charged = self.client.post('/api/v1/payments/qris/', {'order_id': self.order.id}, format='json')
        with patch('apps.payments.services.MidtransGateway') as gateway_mock:
            response = self.client.get(url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['qr_url'], charged.data['qr_url'])
        self.assertEqual(response.data['status'], PaymentTransaction.Status.PENDING)
        gateway_mock.assert_not_called()

        outsider = APIClient()
        outsider.force_authenticate(make_customer('outsider'))
        self.assertEqual(outsider.get(url).status_code, status.HTTP_404_NOT_FOUND)


class QrisChargeServiceTests(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.product = make_product(stock_30ml=10)
        self.gateway = MagicMock()
        self.gateway.charge_qris.side_effect = fake_charge

    def test_non_qris_order_rejected(self):
        order = make_order(self.customer, self.product, payment_method=PaymentMethod.VIRTUAL_ACCOUNT)
        with self.assertRaises(ChargeNotAllowed):
            create_qris_charge(order.pk, gateway=self.gateway)
        self.gateway.charge_qris.assert_not_called()

    def test_non_pending_order_rejected(self):
        order = make_order(self.customer, self.product, status=Status.CANCELLED)
        with self.assertRaises(ChargeNotAllowed):
            create_qris_charge(order.pk, gateway=self.gateway)

    def test_settled_order_rejected(self):
        order = make_order(self.customer, self.product)
        PaymentTransaction.objects.create(
            order=order, midtrans_order_id=f'ORDER-{order.pk}-1', gross_amount=order.total_price,
            status=PaymentTransaction.Status.SETTLEMENT,
        )
        with self.assertRaises(AlreadyPaid):
            create_qris_charge(order.pk, gateway=self.gateway)

    def test_expired_qr_is_replaced_in_place(self):
        order = make_order(self.customer, self.product)
        now = timezone.now()
        stale = PaymentTransaction.objects.create(
            order=order,
            midtrans_order_id=f'ORDER-{order.pk}-1',
            gross_amount=order.total_price,
            qr_url='https://api.sandbox.midtrans.com/v2/qris/old/qr-code',
            expired_at=now - timedelta(minutes=1),
        )

        payment_tx, created = create_qris_charge(order.pk, gateway=self.gateway, now=now)

        self.assertTrue(created)
        self.assertEqual(payment_tx.pk, stale.pk)
        self.assertEqual(payment_tx.midtrans_order_id, f'ORDER-{order.pk}-{int(now.timestamp())}')
        self.assertEqual(payment_tx.expired_at, now + timedelta(minutes=5))


@override_settings(MIDTRANS_SERVER_KEY='SB-Mid-server-test', MIDTRANS_QRIS_EXPIRY_MINUTES=15)
class MidtransGatewayTests(SimpleTestCase):
    def setUp(self):
        self.config = MidtransConfig.from_settings()
        self.gateway = MidtransGateway(self.config)

    def _response(self, data):
        response = MagicMock()
        response.json.return_value = data
        response.raise_for_status.return_value = None
        return response

    @patch('apps.payments.gateway.requests.post')
    def test_charge_request(self, post_mock):
        post_mock.return_value = self._response({
            'status_code': '201',
            'transaction_id': 'abc-123',
            'actions': [
                {'name': 'generate-qr-code', 'url': 'https://api.sandbox.midtrans.com/v2/qris/abc-123/qr-code'},
            ],
        })

        result = self.gateway.charge_qris('ORDER-7-1733800000', Decimal('105000.00'))

        self.assertEqual(result['transaction_id'], 'abc-123')
        self.assertTrue(result['qr_url'].endswith('/qr-code'))
        args, kwargs = post_mock.call_args
        self.assertEqual(args[0], 'https://api.sandbox.midtrans.com/v2/charge')
        self.assertEqual(kwargs['timeout'], 30)
        self.assertEqual(kwargs['auth'].username, 'SB-Mid-server-test')
        self.assertEqual(kwargs['auth'].password, '')
        body = kwargs['json']
        self.assertEqual(body['payment_type'], 'qris')
        self.assertEqual(body['transaction_details'], {'order_id': 'ORDER-7-1733800000', 'gross_amount': 105000})
        self.assertEqual(body['custom_expiry'], {'expiry_duration': 15, 'unit': 'minute'})
        self.assertEqual(body['qris'], {'acquirer': 'gopay'})

    @patch('apps.payments.gateway.requests.post')
    def test_network_error_raises_gateway_error(self, post_mock):
        post_mock.side_effect = requests.Timeout('slow')
        with self.assertRaises(GatewayError):
            self.gateway.charge_qris('ORDER-7-1733800000', Decimal('1000'))

    @patch('apps.payments.gateway.requests.post')
    def test_rejected_charge_raises_gateway_error(self, post_mock):
        post_mock.return_value = self._response({'status_code': '406', 'status_message': 'Duplicate order ID'})
        with self.assertRaises(GatewayError) as ctx:
            self.gateway.charge_qris('ORDER-7-1733800000', Decimal('1000'))
        self.assertEqual(ctx.exception.message, 'Duplicate order ID')

    def test_signature(self):
        signature = compute_signature('ORDER-7-1', '200', '105000.00', 'SB-Mid-server-test')
        self.assertEqual(len(signature), 128)
        payload = {
            'order_id': 'ORDER-7-1', 'status_code': '200', 'gross_amount': '105000.00',
            'signature_key': signature,
        }
        self.assertTrue(self.gateway.verify_signature(payload))
        payload['gross_amount'] = '1.00'
        self.assertFalse(self.gateway.verify_signature(payload))

    def test_production_base_url(self):
        config = MidtransConfig(server_key='x', is_production=True)
        self.assertEqual(config.base_url, 'https://api.midtrans.com')
        self.assertTrue(MidtransConfig().is_mock)
