import os
import razorpay
import requests
from razorpay.errors import BadRequestError, GatewayError, ServerError
from dotenv import load_dotenv

from app.core.errors import PaymentGatewayError
from app.core.logging_config import get_logger
from app.services.payment_gateway import (
    Authorization, AuthorizationState, AuthorizationStatus, PaymentGateway,
)

load_dotenv()

logger = get_logger()

RAZORPAY_ERRORS = (
    BadRequestError,
    ServerError,
    GatewayError,
    requests.RequestException,
)

# order.status: created | attempted | paid
ORDER_STATUS = {
    "paid": AuthorizationStatus.SUCCEEDED,
    "created": AuthorizationStatus.PENDING,
    "attempted": AuthorizationStatus.PENDING,
}

# payment.status: created | authorized | captured | refunded | failed
PAYMENT_STATUS = {
    "captured": AuthorizationStatus.SUCCEEDED,
    "authorized": AuthorizationStatus.PENDING,
    "created": AuthorizationStatus.PENDING,
    "failed": AuthorizationStatus.FAILED,
}


def build_razorpay_client():
    return razorpay.Client(
        auth=(os.getenv("RAZORPAY_KEY_ID"), os.getenv("RAZORPAY_KEY_SECRET"))
    )


class RazorpayGateway(PaymentGateway):
    """Authorizations are Razorpay orders.

    Checkout on the client needs the order id, so it doubles as the client
    secret. A payment reference may be the order id or a `pay_` payment id.
    """

    name = "razorpay"

    def __init__(self, client=None) -> None:
        self._client = client or build_razorpay_client()

    def create_authorization(self, amount_minor_units, currency, metadata):
        try:
            order = self._client.order.create({
                "amount": amount_minor_units,
                "currency": currency.upper(),
                "receipt": metadata.get("booking_number", ""),
                "notes": {k: str(v) for k, v in metadata.items()},
            })
        except RAZORPAY_ERRORS as e:
            logger.bind(log_type="payment").error(f"Razorpay order create failed: {e}")
            raise PaymentGatewayError("Payment gateway rejected the authorization") from e

        logger.bind(log_type="payment").info(
            f"Razorpay order {order['id']} | amount={amount_minor_units} {currency.upper()}"
        )
        return Authorization(authorization_id=order["id"], client_secret=order["id"])

    def retrieve_authorization(self, reference):
        try:
            if reference.startswith("pay_"):
                payment = self._client.payment.fetch(reference)
                status = PAYMENT_STATUS.get(payment.get("status"), AuthorizationStatus.PENDING)
                return AuthorizationState(status=status, authorization_id=payment.get("order_id"))

            order = self._client.order.fetch(reference)
        except RAZORPAY_ERRORS as e:
            logger.bind(log_type="payment").error(f"Razorpay fetch {reference} failed: {e}")
            raise PaymentGatewayError("Could not verify payment with gateway") from e

        status = ORDER_STATUS.get(order.get("status"), AuthorizationStatus.PENDING)
        return AuthorizationState(status=status, authorization_id=order.get("id"))

    def cancel_authorization(self, authorization_id):
        # Orders cannot be voided; uncaptured payments are auto-refunded by Razorpay
        logger.bind(log_type="payment").info(
            f"Razorpay order {authorization_id} left to expire (no void API)"
        )
        return False
