"""Asynchronous tasks of the core module."""

import structlog
from celery import shared_task

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = 100) -> dict:
    """Publish pending outbox rows to the in-process event bus.

    Rows are processed oldest first.  A row whose handlers raise is marked
    ``FAILED`` with the error and the relay moves on to the next one.
    """
    published = 0
    failed = 0
    pending = OutboxEvent.objects.filter(status=EventStatus.PENDING).order_by(
        "created_at"
    )[:batch_size]

    for row in pending:
        try:
            event = DomainEvent.from_payload(row.event_type, row.payload)
            event_bus.publish(event)
        except Exception as exc:
            row.mark_as_failed(str(exc))
            failed += 1
            logger.warning(
                "outbox.relay_failed",
                outbox_id=str(row.id),
                event_type=row.event_type,
                error=str(exc),
            )
            continue
        row.mark_as_published()
        published += 1

    logger.info("outbox.relayed", published=published, failed=failed)
    return {"published": published, "failed": failed}
