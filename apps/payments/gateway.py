"""Midtrans Core API client for QRIS charges."""
import hashlib
import hmac
import logging
from dataclasses import dataclass
from decimal import Decimal

import requests
from django.conf import settings
from requests.auth import HTTPBasicAuth

from fivescent.errors import GatewayError


logger = logging.getLogger(__name__)

SANDBOX_BASE_URL = 'https://api.sandbox.midtrans.com'
PRODUCTION_BASE_URL = 'https://api.midtrans.com'
COMMON_HEADERS = {'Content-Type': 'application/json', 'Accept': 'application/json'}


@dataclass(frozen=True)
class MidtransConfig:
    server_key: str = ''
    client_key: str = ''
    is_production: bool = False
    verify_signature: bool = False
    qris_expiry_minutes: int = 5
    qris_acquirer: str = 'gopay'
    timeout_seconds: int = 30

    @classmethod
    def from_settings(cls):
        return cls(
            server_key=getattr(settings, 'MIDTRANS_SERVER_KEY', '') or '',
            client_key=getattr(settings, 'MIDTRANS_CLIENT_KEY', '') or '',
            is_production=bool(getattr(settings, 'MIDTRANS_IS_PRODUCTION', False)),
            verify_signature=bool(getattr(settings, 'MIDTRANS_VERIFY_SIGNATURE', False)),
            qris_expiry_minutes=int(getattr(settings, 'MIDTRANS_QRIS_EXPIRY_MINUTES', 5)),
            qris_acquirer=getattr(settings, 'MIDTRANS_QRIS_ACQUIRER', 'gopay'),
            timeout_seconds=int(getattr(settings, 'MIDTRANS_TIMEOUT_SECONDS', 30)),
        )

    @property
    def base_url(self) -> str:
        return PRODUCTION_BASE_URL if self.is_production else SANDBOX_BASE_URL

    @property
    def is_mock(self) -> bool:
        return not self.server_key


def format_amount(amount) -> str:
    return f"{Decimal(str(amount)):.2f}"


def compute_signature(order_id, status_code, gross_amount, server_key) -> str:
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode('utf-8')).hexdigest()


class MidtransGateway:
    def __init__(self, config: MidtransConfig):
        self.config = config

    def charge_qris(self, gateway_order_id: str, gross_amount, customer_details=None) -> dict:
        """Create a QRIS charge and return ``{'transaction_id', 'qr_url', 'raw'}``."""
        if self.config.is_mock:
            logger.info("Midtrans server key not configured; mocking QRIS charge %s", gateway_order_id)
            return {
                'transaction_id': f"mock-{gateway_order_id}",
                'qr_url': f"{SANDBOX_BASE_URL}/v2/qris/mock-{gateway_order_id}/qr-code",
                'raw': {'status_code': '201', 'transaction_status': 'pending', 'mock': True},
            }

        body = {
            'payment_type': 'qris',
            'transaction_details': {
                'order_id': gateway_order_id,
                # Midtrans takes IDR amounts as whole numbers
                'gross_amount': int(Decimal(str(gross_amount))),
            },
            'qris': {'acquirer': self.config.qris_acquirer},
            'custom_expiry': {
                'expiry_duration': self.config.qris_expiry_minutes,
                'unit': 'minute',
            },
        }
        if customer_details:
            body['customer_details'] = customer_details

        url = f"{self.config.base_url}/v2/charge"
        try:
            resp = requests.post(
                url,
                json=body,
                headers=COMMON_HEADERS,
                auth=HTTPBasicAuth(self.config.server_key, ''),
                timeout=self.config.timeout_seconds,
            )
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as exc:
            logger.error("Midtrans charge %s failed: %s", gateway_order_id, exc)
            raise GatewayError() from exc

        if str(data.get('status_code', '')) not in ('200', '201'):
            logger.error(
                "Midtrans rejected charge %s: %s %s",
                gateway_order_id, data.get('status_code'), data.get('status_message'),
            )
            raise GatewayError(data.get('status_message') or GatewayError.default_message)

        qr_url = None
        for action in data.get('actions') or []:
            if action.get('name') == 'generate-qr-code':
                qr_url = action.get('url')
                break
        if not qr_url:
            raise GatewayError('Payment gateway did not return a QR code.')

        logger.info("Midtrans QRIS charge %s created", gateway_order_id)
        return {
            'transaction_id': data.get('transaction_id'),
            'qr_url': qr_url,
            'raw': data,
        }

    def verify_signature(self, payload: dict) -> bool:
        expected = compute_signature(
            payload.get('order_id', ''),
            payload.get('status_code', ''),
            payload.get('gross_amount', ''),
            self.config.server_key,
        )
        return hmac.compare_digest(expected, str(payload.get('signature_key', '')))
