import asyncio

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from booth_ingest.core.context import AppContext, get_context
from booth_ingest.core.database import get_db
from booth_ingest.dtos.webhook_dto import CrawlWebhookPayload, WebhookAck
from booth_ingest.services.webhook_receiver import WebhookReceiver

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/crawl", response_model=WebhookAck)
async def crawl_webhook(
    payload: CrawlWebhookPayload,
    db: Session = Depends(get_db),
    context: AppContext = Depends(get_context),
):
    """Crawl-provider callback. Always acknowledged once the payload parses."""
    receiver = WebhookReceiver(db, context)
    # Extraction on completion can take minutes; keep it off the event loop.
    outcome = await asyncio.to_thread(receiver.handle, payload.to_event())
    return WebhookAck(received=True, outcome=outcome.value)
