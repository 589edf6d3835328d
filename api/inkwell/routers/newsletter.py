"""Newsletter endpoints."""

from __future__ import annotations

import html
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..auth import require_admin
from ..container import Services
from ..deps import get_db, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/newsletter", tags=["Newsletter"])


@router.post(
    "/subscribe",
    response_model=schemas.MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
def subscribe(
    payload: schemas.NewsletterSubscribeRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> schemas.MessageResponse:
    services.newsletter.subscribe(db, payload.email)
    return schemas.MessageResponse(message="Subscribed successfully")


@router.delete("/unsubscribe", response_model=schemas.MessageResponse)
def unsubscribe(
    payload: schemas.NewsletterSubscribeRequest,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
) -> schemas.MessageResponse:
    services.newsletter.unsubscribe(db, payload.email)
    return schemas.MessageResponse(message="Unsubscribed successfully")


@router.get("", response_model=list[schemas.NewsletterSubscriber])
def list_subscribers(
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    _admin: models.User = Depends(require_admin),
) -> list[models.NewsletterSubscriber]:
    return services.newsletter.list_subscribers(db)


@router.post("/broadcast", response_model=schemas.NewsletterBroadcastResponse)
def broadcast(
    payload: schemas.NewsletterBroadcastRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    services: Services = Depends(get_services),
    current_user: models.User = Depends(require_admin),
) -> schemas.NewsletterBroadcastResponse:
    """
    Email every active subscriber.

    Sending happens in the background; the response reports how many
    addresses were queued.
    """
    recipients = services.newsletter.active_emails(db)
    if recipients:
        body = "".join(
            f"<p>{html.escape(line)}</p>" for line in payload.content.splitlines() if line.strip()
        )
        background_tasks.add_task(services.email.send_newsletter, recipients, payload.subject, body)
    logger.info(f"Admin {current_user.id} queued newsletter '{payload.subject}' for {len(recipients)} subscribers")
    return schemas.NewsletterBroadcastResponse(
        message="Newsletter queued",
        recipient_count=len(recipients),
    )
