"""Scheduler run log repository."""
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from notifier.domain.common.types import generate_id, utcnow
from notifier.infra.db.models.schedule_log import NotificationScheduleLogModel


class ScheduleLogRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def log_run(
        self,
        success: bool,
        users_processed: int = 0,
        metrics: Optional[dict[str, Any]] = None,
        error_details: Optional[dict[str, Any]] = None,
    ) -> None:
        self.session.add(
            NotificationScheduleLogModel(
                id=generate_id(),
                users_processed=users_processed,
                success=success,
                metrics=metrics,
                error_details=error_details,
                created_at=utcnow(),
            )
        )
        await self.session.commit()
