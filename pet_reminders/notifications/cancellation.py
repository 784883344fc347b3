"""批量取消：按类型、按宠物、全部。"""
import logging
from typing import Optional

from pet_reminders.notifications.adapter import NotificationScheduler
from pet_reminders.notifications.batch import cancel_many
from pet_reminders.notifications.ledger import NotificationLedger
from pet_reminders.notifications.models import BatchResult, NotificationType

_LOGGER = logging.getLogger(__name__)


async def cancel_notifications_by_type(
    ledger: NotificationLedger,
    scheduler: NotificationScheduler,
    notification_type: NotificationType,
) -> BatchResult:
    """取消某类型的全部通知；用药类型同时清空用药计划。"""
    stored = await ledger.get_scheduled()
    to_cancel = [n for n in stored if n.type == notification_type]
    result = await cancel_many(scheduler, to_cancel)
    await ledger.save_scheduled([n for n in stored if n.type != notification_type])

    if notification_type == NotificationType.MED_REMINDER:
        await ledger.save_med_schedules([])
    if to_cancel:
        _LOGGER.debug("Cancelled %d %s notification(s)", result.succeeded, NotificationType(notification_type).value)
    return result


async def cancel_notifications_for_pet(
    ledger: NotificationLedger,
    scheduler: NotificationScheduler,
    pet_id: str,
    notification_type: Optional[NotificationType] = None,
) -> BatchResult:
    """取消某只宠物的通知（可限定类型），例如删除宠物时。"""

    def matches(n) -> bool:
        return n.pet_id == pet_id and (notification_type is None or n.type == notification_type)

    stored = await ledger.get_scheduled()
    result = await cancel_many(scheduler, [n for n in stored if matches(n)])
    await ledger.save_scheduled([n for n in stored if not matches(n)])

    if notification_type is None or notification_type == NotificationType.MED_REMINDER:
        schedules = await ledger.get_med_schedules()
        await ledger.save_med_schedules([s for s in schedules if s.pet_id != pet_id])
    return result


async def cancel_all_notifications(ledger: NotificationLedger, scheduler: NotificationScheduler) -> None:
    """清空系统排程与本地账本（例如退出登录）。"""
    await scheduler.cancel_all()
    await ledger.save_scheduled([])
    await ledger.save_med_schedules([])
