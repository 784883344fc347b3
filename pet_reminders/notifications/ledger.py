"""通知账本：已排程通知与用药计划两个集合，整体读写。"""
import logging
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from pet_reminders.config import MED_SCHEDULES_KEY, SCHEDULED_KEY
from pet_reminders.notifications.models import MedReminderSchedule, ScheduledNotification
from pet_reminders.notifications.storage import JsonFileStorage, KeyValueStorage

_LOGGER = logging.getLogger(__name__)

_SCHEDULED_ADAPTER = TypeAdapter(List[ScheduledNotification])
_MED_SCHEDULES_ADAPTER = TypeAdapter(List[MedReminderSchedule])


class NotificationLedger:
    """本地记录「认为系统里排着哪些通知」。

    读取时缺失或损坏的数据一律视为空列表，不抛异常；写入则整体覆盖。
    本层不加锁，读-改-写的串行由调用方保证。
    """

    def __init__(self, storage: Optional[KeyValueStorage] = None):
        self.storage = storage if storage is not None else JsonFileStorage()

    async def _load(self, key: str, adapter: TypeAdapter) -> list:
        try:
            raw = await self.storage.get_item(key)
        except UnicodeDecodeError as err:
            _LOGGER.warning("Discarding undecodable ledger slot %s: %s", key, err)
            return []
        if not raw:
            return []
        try:
            return adapter.validate_json(raw)
        except ValidationError as err:
            _LOGGER.warning("Discarding unreadable ledger slot %s: %s", key, err.error_count())
            return []

    async def get_scheduled(self) -> List[ScheduledNotification]:
        return await self._load(SCHEDULED_KEY, _SCHEDULED_ADAPTER)

    async def save_scheduled(self, notifications: List[ScheduledNotification]) -> None:
        await self.storage.set_item(SCHEDULED_KEY, _SCHEDULED_ADAPTER.dump_json(notifications).decode("utf-8"))

    async def get_med_schedules(self) -> List[MedReminderSchedule]:
        return await self._load(MED_SCHEDULES_KEY, _MED_SCHEDULES_ADAPTER)

    async def save_med_schedules(self, schedules: List[MedReminderSchedule]) -> None:
        await self.storage.set_item(MED_SCHEDULES_KEY, _MED_SCHEDULES_ADAPTER.dump_json(schedules).decode("utf-8"))

    async def upsert_med_schedule(self, schedule: MedReminderSchedule) -> None:
        """按 (pet_id, medication_name) 替换，找不到则追加。"""
        existing = await self.get_med_schedules()
        for i, s in enumerate(existing):
            if s.pet_id == schedule.pet_id and s.medication_name == schedule.medication_name:
                existing[i] = schedule
                break
        else:
            existing.append(schedule)
        await self.save_med_schedules(existing)

    async def remove_med_schedule(self, pet_id: str, medication_name: str) -> None:
        existing = await self.get_med_schedules()
        remaining = [s for s in existing if not (s.pet_id == pet_id and s.medication_name == medication_name)]
        await self.save_med_schedules(remaining)
