# src/px_order/api/webhook_router.py
"""Payment provider webhook.

The provider signs nothing; it echoes a shared secret in the `verif-hash`
header. Anything but a "successful" charge is acknowledged and ignored.
Redeliveries of a successful charge are safe: settlement is idempotent.
"""

import hmac
import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, Request
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.px_common.database import get_db_session
from src.px_common.errors import InvalidWebhookPayloadError, InvalidWebhookSignatureError
from src.px_common.response import ApiResponse, success_response
from src.px_order.application.service import OrderApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
_service = OrderApplicationService()


class WebhookData(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str
    tx_ref: str | None = None


class PaymentWebhook(BaseModel):
    model_config = ConfigDict(extra="allow")

    event: str | None = None
    data: WebhookData


async def verify_webhook_hash(
    verif_hash: Annotated[str | None, Header(alias="verif-hash")] = None,
) -> None:
    expected = settings.PAYMENT_WEBHOOK_HASH
    if not expected or verif_hash is None:
        raise InvalidWebhookSignatureError()
    if not hmac.compare_digest(verif_hash.encode(), expected.encode()):
        raise InvalidWebhookSignatureError()


@router.post(
    "/payment",
    response_model=ApiResponse,
    dependencies=[Depends(verify_webhook_hash)],
)
async def payment_webhook(
    request: Request,
    body: PaymentWebhook,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    if body.data.status != "successful":
        logger.info(
            "Webhook %s ignored: status=%s tx_ref=%s",
            body.event,
            body.data.status,
            body.data.tx_ref,
        )
        data: dict[str, Any] = {"settled": False, "status": body.data.status}
        resp = success_response(data, message="Ignored")
    else:
        if not body.data.tx_ref:
            raise InvalidWebhookPayloadError("tx_ref missing")
        result = await _service.settle(db, reference=body.data.tx_ref)
        resp = success_response({"settled": True, **result.model_dump()})
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
