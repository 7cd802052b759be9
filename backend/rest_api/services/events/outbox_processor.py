"""
Outbox publisher.

A background task started by the FastAPI lifespan. Each pass claims a
batch of PENDING rows, oldest first, and publishes them to Redis:

    PENDING -> PROCESSING -> PUBLISHED
                          -> PENDING (retry_count + 1)
                          -> FAILED (retry_count reached the limit)

Rows are claimed with SKIP LOCKED, so several API processes can run the
publisher against the same database.
"""

import asyncio
import json
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import OutboxEvent, OutboxStatus
from shared.infrastructure.db import SessionLocal
from shared.infrastructure.events import Event, get_redis_pool, publish_to_subscribers
from shared.config.logging import get_logger
from shared.config.settings import settings

logger = get_logger(__name__)


def _to_event(row: OutboxEvent) -> Event:
    payload = json.loads(row.payload)
    return Event(
        type=row.event_type,
        order_id=payload.get("order_id"),
        table_id=payload.get("table_id"),
        entity=payload.get("entity") or {},
        actor=payload.get("actor") or {},
    )


class OutboxProcessor:

    def __init__(
        self,
        batch_size: int | None = None,
        poll_interval: float | None = None,
        max_retries: int | None = None,
    ):
        self.batch_size = batch_size or settings.outbox_batch_size
        self.poll_interval = poll_interval or settings.outbox_poll_interval
        self.max_retries = max_retries or settings.outbox_max_retries
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            logger.warning("Outbox processor already running")
            return
        self._task = asyncio.create_task(self._run())
        logger.info("Outbox processor started", batch_size=self.batch_size)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        logger.info("Outbox processor stopped")

    async def _run(self) -> None:
        while True:
            try:
                published = await self.process_batch()
            except Exception as e:
                logger.error("Outbox processor error", error=str(e))
                published = 0
            if published == 0:
                await asyncio.sleep(self.poll_interval)

    def _claim(self, db: Session) -> list[OutboxEvent]:
        rows = db.execute(
            select(OutboxEvent)
            .where(OutboxEvent.status == OutboxStatus.PENDING)
            .order_by(OutboxEvent.created_at.asc(), OutboxEvent.id.asc())
            .limit(self.batch_size)
            .with_for_update(skip_locked=True)
        ).scalars().all()
        for row in rows:
            row.status = OutboxStatus.PROCESSING
        db.commit()
        return list(rows)

    async def _publish(self, row: OutboxEvent) -> bool:
        try:
            redis_client = await get_redis_pool()
            await publish_to_subscribers(redis_client, _to_event(row))
        except Exception as e:
            row.last_error = str(e)
            logger.error(
                "Failed to publish outbox event",
                event_id=row.id,
                event_type=row.event_type,
                attempt=row.retry_count + 1,
                error=str(e),
            )
            return False

        row.status = OutboxStatus.PUBLISHED
        row.processed_at = datetime.now(timezone.utc)
        row.last_error = None
        return True

    def _schedule_retry(self, row: OutboxEvent) -> None:
        row.retry_count += 1
        if row.retry_count < self.max_retries:
            row.status = OutboxStatus.PENDING
            return
        row.status = OutboxStatus.FAILED
        logger.error(
            "Outbox event failed after max retries",
            event_id=row.id,
            event_type=row.event_type,
            retries=row.retry_count,
        )

    async def process_batch(self) -> int:
        """Publish one batch. Returns how many events were published."""
        db = SessionLocal()
        try:
            rows = self._claim(db)
            if not rows:
                return 0

            published = 0
            for row in rows:
                if await self._publish(row):
                    published += 1
                else:
                    self._schedule_retry(row)
            db.commit()

            logger.info("Outbox batch processed", claimed=len(rows), published=published)
            return published
        except Exception as e:
            db.rollback()
            logger.error("Outbox batch processing failed", error=str(e))
            return 0
        finally:
            db.close()


_processor: OutboxProcessor | None = None


def get_outbox_processor() -> OutboxProcessor:
    global _processor
    if _processor is None:
        _processor = OutboxProcessor()
    return _processor


async def start_outbox_processor() -> None:
    await get_outbox_processor().start()


async def stop_outbox_processor() -> None:
    await get_outbox_processor().stop()
