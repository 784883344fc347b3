"""每日用药提醒：保存、读取、删除，以及按计划补排丢失的通知。"""
import logging
import re
from typing import Iterable, List, Optional, Set, Tuple, Union

from pet_reminders.exceptions import PermissionDeniedError
from pet_reminders.notifications.adapter import NotificationScheduler
from pet_reminders.notifications.batch import cancel_many, schedule_one
from pet_reminders.notifications.keys import build_med_dedup_key, format_daily_trigger, med_key_prefix
from pet_reminders.notifications.ledger import NotificationLedger
from pet_reminders.notifications.models import (
    BatchResult,
    DailyTrigger,
    MedReminderSchedule,
    NotificationRequest,
    NotificationType,
    ReminderTime,
    ScheduledNotification,
)

_LOGGER = logging.getLogger(__name__)

_TWICE = re.compile(r"twice|bid|2\s*x", re.IGNORECASE)
_THREE_TIMES = re.compile(r"three|tid|3\s*x", re.IGNORECASE)
_FOUR_TIMES = re.compile(r"four|qid|4\s*x", re.IGNORECASE)


def default_times_for_frequency(frequency: Optional[str]) -> List[ReminderTime]:
    """根据病历里的用药频次给出默认提醒时刻。"""
    text = (frequency or "").lower()
    if _TWICE.search(text):
        hours = [8, 20]
    elif _THREE_TIMES.search(text):
        hours = [8, 14, 20]
    elif _FOUR_TIMES.search(text):
        hours = [8, 12, 16, 20]
    else:
        hours = [9]
    return [ReminderTime(hour=h, minute=0) for h in hours]


def _request_for(pet_id: str, pet_name: str, medication_name: str, dosage: str, time: ReminderTime) -> NotificationRequest:
    return NotificationRequest(
        title=f"Time for {pet_name}'s {medication_name}",
        body=" · ".join(part for part in [dosage] if part),
        data={"type": NotificationType.MED_REMINDER.value, "pet_id": pet_id},
        trigger=DailyTrigger(hour=time.hour, minute=time.minute),
    )


def _entry_for(notification_id: str, pet_id: str, pet_name: str, medication_name: str, time: ReminderTime) -> ScheduledNotification:
    return ScheduledNotification(
        notification_id=notification_id,
        type=NotificationType.MED_REMINDER,
        pet_id=pet_id,
        pet_name=pet_name,
        item_name=medication_name,
        trigger_date=format_daily_trigger(time.hour, time.minute),
        dedup_key=build_med_dedup_key(pet_id, medication_name, time.hour, time.minute),
    )


def _belongs_to(entry: ScheduledNotification, pet_id: str, medication_name: str) -> bool:
    return (
        entry.type == NotificationType.MED_REMINDER
        and entry.pet_id == pet_id
        and entry.dedup_key.startswith(med_key_prefix(pet_id, medication_name))
    )


class MedReminderScheduler:
    """用药提醒的增删查。每次保存都先清掉该药品的全部时段再重建。"""

    def __init__(self, ledger: NotificationLedger, scheduler: NotificationScheduler):
        self.ledger = ledger
        self.scheduler = scheduler

    async def get_schedule(self, pet_id: str, medication_name: str) -> Optional[MedReminderSchedule]:
        """按 pet_id 与药品名（区分大小写）精确查找。"""
        for s in await self.ledger.get_med_schedules():
            if s.pet_id == pet_id and s.medication_name == medication_name:
                return s
        return None

    async def _sweep(self, pet_id: str, medication_name: str) -> Tuple[List[ScheduledNotification], BatchResult]:
        stored = await self.ledger.get_scheduled()
        to_cancel = [n for n in stored if _belongs_to(n, pet_id, medication_name)]
        result = await cancel_many(self.scheduler, to_cancel)
        remaining = [n for n in stored if not _belongs_to(n, pet_id, medication_name)]
        return remaining, result

    async def set_reminder(
        self,
        pet_id: str,
        pet_name: str,
        medication_name: str,
        dosage: str,
        times: Iterable[Union[ReminderTime, dict]],
    ) -> BatchResult:
        """保存用药提醒并重建对应的系统通知，返回各时段的排程结果。

        未授权时抛出 PermissionDeniedError；时刻不合法时抛出 pydantic 的 ValidationError。
        单个时段排程失败不会中断，计划本身总会被保存，供之后的同步补排。
        """
        schedule = MedReminderSchedule(
            pet_id=pet_id,
            pet_name=pet_name,
            medication_name=medication_name,
            dosage=dosage or "",
            times=list(times),
        )
        if not await self.scheduler.request_permission():
            raise PermissionDeniedError()

        remaining, _ = await self._sweep(pet_id, medication_name)

        result = BatchResult()
        added: List[ScheduledNotification] = []
        seen: Set[str] = set()
        for time in schedule.times:
            key = build_med_dedup_key(pet_id, medication_name, time.hour, time.minute)
            if key in seen:
                continue
            seen.add(key)
            request = _request_for(pet_id, pet_name, medication_name, schedule.dosage, time)
            notification_id = await schedule_one(self.scheduler, key, request, result)
            if notification_id is not None:
                added.append(_entry_for(notification_id, pet_id, pet_name, medication_name, time))

        await self.ledger.save_scheduled(remaining + added)
        await self.ledger.upsert_med_schedule(schedule)
        if result.failed:
            _LOGGER.warning(
                "Saved reminders for %s/%s with %d of %d time(s) unscheduled",
                pet_id, medication_name, result.failed, result.attempted,
            )
        return result

    async def remove_reminder(self, pet_id: str, medication_name: str) -> BatchResult:
        """取消该药品全部时段并删除计划。"""
        remaining, result = await self._sweep(pet_id, medication_name)
        await self.ledger.save_scheduled(remaining)
        await self.ledger.remove_med_schedule(pet_id, medication_name)
        return result

    async def sync_all(self, missing_keys: Optional[Iterable[str]] = None) -> BatchResult:
        """按已保存的计划补排缺失的每日通知（账本中没有，或系统已清掉）。"""
        result = BatchResult()
        schedules = await self.ledger.get_med_schedules()
        if not schedules:
            return result

        missing: Set[str] = set(missing_keys or ())
        stored = await self.ledger.get_scheduled()
        med_stored = [n for n in stored if n.type == NotificationType.MED_REMINDER]
        non_med = [n for n in stored if n.type != NotificationType.MED_REMINDER]
        med_stored_keys = {n.dedup_key for n in med_stored}

        needs_reschedule: Set[str] = set()
        for s in schedules:
            for time in s.times:
                key = build_med_dedup_key(s.pet_id, s.medication_name, time.hour, time.minute)
                if key not in med_stored_keys or key in missing:
                    needs_reschedule.add(key)
        if not needs_reschedule:
            return result

        # 仍在账本里的旧句柄先取消，保证每个键只有一条系统通知
        replaced = [n for n in med_stored if n.dedup_key in needs_reschedule]
        await cancel_many(self.scheduler, replaced)
        kept = [n for n in med_stored if n.dedup_key not in needs_reschedule]
        added: List[ScheduledNotification] = []
        for s in schedules:
            for time in s.times:
                key = build_med_dedup_key(s.pet_id, s.medication_name, time.hour, time.minute)
                if key not in needs_reschedule:
                    continue
                # 同一键只补排一次
                needs_reschedule.discard(key)
                request = _request_for(s.pet_id, s.pet_name, s.medication_name, s.dosage, time)
                notification_id = await schedule_one(self.scheduler, key, request, result)
                if notification_id is not None:
                    added.append(_entry_for(notification_id, s.pet_id, s.pet_name, s.medication_name, time))

        await self.ledger.save_scheduled(non_med + kept + added)
        _LOGGER.debug("Rescheduled %d medication reminder(s)", result.succeeded)
        return result
