import os
import stripe
from dotenv import load_dotenv

from app.core.errors import PaymentGatewayError
from app.core.logging_config import get_logger
from app.services.payment_gateway import (
    Authorization, AuthorizationState, AuthorizationStatus, PaymentGateway,
)

load_dotenv()

logger = get_logger()

INTENT_STATUS = {
    "succeeded": AuthorizationStatus.SUCCEEDED,
    "canceled": AuthorizationStatus.FAILED,
}


class StripeGateway(PaymentGateway):
    """Authorizations are Stripe PaymentIntents."""

    name = "stripe"

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key or os.getenv("STRIPE_SECRET_KEY")

    def create_authorization(self, amount_minor_units, currency, metadata):
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor_units,
                currency=currency.lower(),
                metadata={k: str(v) for k, v in metadata.items()},
                api_key=self._api_key,
            )
        except stripe.StripeError as e:
            logger.bind(log_type="payment").error(f"Stripe intent create failed: {e}")
            raise PaymentGatewayError("Payment gateway rejected the authorization") from e

        logger.bind(log_type="payment").info(
            f"Stripe intent {intent.id} | amount={amount_minor_units} {currency.lower()}"
        )
        return Authorization(authorization_id=intent.id, client_secret=intent.client_secret)

    def retrieve_authorization(self, reference):
        try:
            intent = stripe.PaymentIntent.retrieve(reference, api_key=self._api_key)
        except stripe.StripeError as e:
            logger.bind(log_type="payment").error(f"Stripe intent {reference} fetch failed: {e}")
            raise PaymentGatewayError("Could not verify payment with gateway") from e

        # requires_payment_method, requires_action, processing, ... are all still open
        status = INTENT_STATUS.get(intent.status, AuthorizationStatus.PENDING)
        return AuthorizationState(status=status, authorization_id=intent.id)

    def cancel_authorization(self, authorization_id):
        try:
            stripe.PaymentIntent.cancel(authorization_id, api_key=self._api_key)
        except stripe.StripeError as e:
            raise PaymentGatewayError("Could not void authorization") from e
        return True
