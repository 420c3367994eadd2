"""
Paystack API client.

Only transaction verification is needed: the browser runs the Paystack inline
checkout and posts the resulting reference back to us.
Documentation: https://paystack.com/docs/api/transaction/#verify
"""

import requests
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote
import logging

from app.services.errors import PaymentConfigurationError, PaymentGatewayError

logger = logging.getLogger(__name__)


@dataclass
class PaymentVerification:
    reference: str
    succeeded: bool
    status: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    message: Optional[str] = None


class PaystackClient:
    """Verifies Paystack transactions by reference."""

    DEFAULT_BASE_URL = 'https://api.paystack.co'

    def __init__(self, secret_key: Optional[str], base_url: str = DEFAULT_BASE_URL, timeout: float = 10.0):
        self.secret_key = secret_key
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip('/')
        self.timeout = timeout

    @classmethod
    def from_config(cls, config) -> 'PaystackClient':
        return cls(
            secret_key=config.get('PAYSTACK_SECRET_KEY'),
            base_url=config.get('PAYSTACK_BASE_URL', cls.DEFAULT_BASE_URL),
            timeout=config.get('PAYSTACK_TIMEOUT', 10.0),
        )

    def verify_transaction(self, reference: str) -> PaymentVerification:
        """
        Ask Paystack for the status of a transaction.

        Args:
            reference: Transaction reference returned by the checkout

        Returns:
            PaymentVerification; ``succeeded`` is True only for a successful charge

        Raises:
            PaymentConfigurationError: no secret key configured
            PaymentGatewayError: network failure or unreadable response
        """
        if not self.secret_key:
            logger.error("Paystack secret key is not configured")
            raise PaymentConfigurationError("Paystack secret key is not configured")

        url = f"{self.base_url}/transaction/verify/{quote(str(reference), safe='')}"
        try:
            response = requests.get(
                url,
                headers={'Authorization': f'Bearer {self.secret_key}'},
                timeout=self.timeout,
            )
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.error(f"Could not connect to payment gateway: {e}")
            raise PaymentGatewayError(f"Could not connect to payment gateway: {e}") from e
        except ValueError as e:
            logger.error(f"Failed to parse Paystack response for {reference}: {e}")
            raise PaymentGatewayError("Failed to parse Paystack response") from e

        if not isinstance(payload, dict):
            raise PaymentGatewayError("Failed to parse Paystack response")

        data = payload.get('data') or {}
        if not isinstance(data, dict):
            data = {}
        status = data.get('status')
        succeeded = bool(payload.get('status')) and status == 'success'

        if succeeded:
            logger.info(f"Paystack verification successful for {reference}")
        else:
            logger.warning(f"Paystack verification failed for {reference}: {payload.get('message')}")

        return PaymentVerification(
            reference=data.get('reference') or reference,
            succeeded=succeeded,
            status=status,
            amount=data.get('amount'),
            currency=data.get('currency'),
            message=payload.get('message'),
        )
