"""账本与系统实际排程的对账。"""
import logging
from typing import List

from pet_reminders.notifications.adapter import NotificationScheduler
from pet_reminders.notifications.ledger import NotificationLedger

_LOGGER = logging.getLogger(__name__)


async def reconcile_with_scheduler(ledger: NotificationLedger, scheduler: NotificationScheduler) -> List[str]:
    """剔除账本中系统已不再持有的记录，返回这些记录的去重键。

    只读诊断加账本修剪，不排程任何通知。账本为空时不查询系统。
    """
    stored = await ledger.get_scheduled()
    if not stored:
        return []

    live_ids = set(await scheduler.list_scheduled_ids())
    still_active = [n for n in stored if n.notification_id in live_ids]
    missing = [n for n in stored if n.notification_id not in live_ids]

    await ledger.save_scheduled(still_active)
    if missing:
        _LOGGER.info("%d scheduled notification(s) were cleared by the system", len(missing))
    return [n.dedup_key for n in missing]
