"""Inbound payment provider webhook."""
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from leadmarket.core.exceptions import PersistenceFailureError, ProviderUnavailableError
from leadmarket.interfaces.http.deps import get_purchase_service
from leadmarket.modules.purchases import InvalidWebhookSignatureError, PurchaseService
from leadmarket.schemas import WebhookResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook", response_model=WebhookResponse, summary="Stripe Checkout webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    purchases: PurchaseService = Depends(get_purchase_service),
) -> WebhookResponse:
    """Only failures worth a provider retry answer with an error status."""
    payload = await request.body()
    try:
        result = await purchases.handle_webhook(payload, stripe_signature)
    except InvalidWebhookSignatureError as exc:
        logger.warning("Rejected webhook: %s", exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except ProviderUnavailableError as exc:
        logger.warning("Webhook deferred, provider unavailable: %s", exc)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Retry later") from exc
    except PersistenceFailureError as exc:
        logger.error("Webhook failed to persist: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Retry later") from exc
    return WebhookResponse(event_type=result.event_type, outcome=result.outcome)
