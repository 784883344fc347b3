"""逐条包装调度器调用：单条失败只记结果，不中断整批。"""
import logging
from typing import Iterable, Optional

from pet_reminders.notifications.adapter import NotificationScheduler
from pet_reminders.notifications.models import (
    BatchResult,
    NotificationRequest,
    OperationOutcome,
    ScheduledNotification,
)

_LOGGER = logging.getLogger(__name__)


async def cancel_many(scheduler: NotificationScheduler, entries: Iterable[ScheduledNotification]) -> BatchResult:
    """依次取消账本记录对应的系统通知，返回每条的结果。"""
    result = BatchResult()
    for entry in entries:
        try:
            await scheduler.cancel(entry.notification_id)
        except Exception as err:
            _LOGGER.warning("Failed to cancel notification %s (%s): %s", entry.notification_id, entry.dedup_key, err)
            result.outcomes.append(
                OperationOutcome(key=entry.dedup_key, notification_id=entry.notification_id, ok=False, error=str(err))
            )
        else:
            result.outcomes.append(OperationOutcome(key=entry.dedup_key, notification_id=entry.notification_id))
    return result


async def schedule_one(
    scheduler: NotificationScheduler,
    key: str,
    request: NotificationRequest,
    result: BatchResult,
) -> Optional[str]:
    """排程一条通知并把结果追加进 result；失败返回 None。"""
    try:
        notification_id = await scheduler.schedule(request)
    except Exception as err:
        _LOGGER.warning("Failed to schedule notification %s: %s", key, err)
        result.outcomes.append(OperationOutcome(key=key, ok=False, error=str(err)))
        return None
    result.outcomes.append(OperationOutcome(key=key, notification_id=notification_id))
    return notification_id
