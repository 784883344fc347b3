"""通知同步：对账、重算疫苗提醒、补排用药提醒。"""
import logging
import time
from datetime import datetime
from typing import Callable, List, Optional

from pydantic import BaseModel, Field

from pet_reminders.config import SYNC_COOLDOWN_SECONDS
from pet_reminders.notifications.adapter import NotificationScheduler
from pet_reminders.notifications.batch import cancel_many, schedule_one
from pet_reminders.notifications.cancellation import cancel_notifications_by_type
from pet_reminders.notifications.ledger import NotificationLedger
from pet_reminders.notifications.medications import MedReminderScheduler
from pet_reminders.notifications.models import (
    BatchResult,
    DateTrigger,
    NotificationRequest,
    NotificationType,
    ScheduledNotification,
    VaccineNotificationIntent,
)
from pet_reminders.notifications.reconcile import reconcile_with_scheduler
from pet_reminders.notifications.vaccines import build_vaccine_intents
from pet_reminders.records.models import Pet
from pet_reminders.records.source import RecordSource, collect_vaccines

_LOGGER = logging.getLogger(__name__)


class SyncReport(BaseModel):
    """一次同步的结果。"""
    ran: bool = Field(False, description="是否真正执行（冷却期内为 False）")
    missing_keys: List[str] = Field(default_factory=list, description="系统已清掉的提醒")
    vaccine_scheduled: int = 0
    vaccine_cancelled: int = 0
    med_rescheduled: int = 0
    error: Optional[str] = None


class NotificationSyncOrchestrator:
    """周期/事件触发的通知同步。应用启动时创建一个实例。

    冷却期（默认 30 秒）内的重复触发直接忽略；时间戳在第一次 await 之前写入，
    因此同一事件循环里几乎同时的两次触发只会执行一次。冷却时间只在内存中，
    冷启动后会立即允许同步。
    """

    def __init__(
        self,
        ledger: NotificationLedger,
        scheduler: NotificationScheduler,
        source: RecordSource,
        cooldown: float = SYNC_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.ledger = ledger
        self.scheduler = scheduler
        self.source = source
        self.cooldown = cooldown
        self.clock = clock
        self.now = now
        self.med_scheduler = MedReminderScheduler(ledger, scheduler)
        self.last_sync_at: Optional[float] = None

    def _cooling_down(self) -> bool:
        if self.last_sync_at is None:
            return False
        return self.clock() - self.last_sync_at < self.cooldown

    async def sync_notifications(self) -> SyncReport:
        """触发一次同步（应用回到前台、宠物列表变化、偏好切换时调用）。"""
        if self._cooling_down():
            _LOGGER.debug("Notification sync skipped, last run %.1fs ago", self.clock() - self.last_sync_at)
            return SyncReport()
        self.last_sync_at = self.clock()

        report = SyncReport(ran=True)
        try:
            await self._run(report)
        except Exception as err:
            # 后台同步不向外抛异常
            _LOGGER.exception("Notification sync failed")
            report.error = str(err)
        return report

    async def _run(self, report: SyncReport) -> None:
        report.missing_keys = await reconcile_with_scheduler(self.ledger, self.scheduler)
        preferences = await self.source.get_preferences()

        if not preferences.vaccine_reminders_enabled:
            cancelled = await cancel_notifications_by_type(
                self.ledger, self.scheduler, NotificationType.VACCINE_REMINDER
            )
            report.vaccine_cancelled = cancelled.succeeded
        elif await self.scheduler.request_permission():
            try:
                await self._sync_vaccines(report)
            except Exception as err:
                # 只跳过疫苗部分，用药补排照常进行
                _LOGGER.warning("Vaccine reminder sync failed: %s", err)
                report.error = str(err)
        else:
            _LOGGER.info("Notification permission denied, skipping vaccine reminders")

        if preferences.medication_reminders_enabled:
            result = await self.med_scheduler.sync_all(report.missing_keys)
            report.med_rescheduled = result.succeeded

    async def _gather_intents(self, pets: List[Pet]) -> List[VaccineNotificationIntent]:
        now = self.now() if self.now else None
        intents: List[VaccineNotificationIntent] = []
        for pet in pets:
            try:
                records = await self.source.list_completed_records(pet.id)
            except Exception as err:
                _LOGGER.warning("Skipping vaccine reminders for pet %s: %s", pet.id, err)
                continue
            vaccines = collect_vaccines(records)
            if vaccines:
                intents.extend(build_vaccine_intents(pet.id, pet.name, vaccines, now=now))
        return intents

    async def _sync_vaccines(self, report: SyncReport) -> None:
        intents = await self._gather_intents(await self.source.list_pets())

        stored = await self.ledger.get_scheduled()
        stored_vax = {n.dedup_key: n for n in stored if n.type == NotificationType.VACCINE_REMINDER}
        intent_keys = {i.dedup_key for i in intents}
        missing = set(report.missing_keys)

        stale = [n for key, n in stored_vax.items() if key not in intent_keys]
        cancelled = await cancel_many(self.scheduler, stale)

        scheduled = BatchResult()
        vaccine_entries: List[ScheduledNotification] = []
        for intent in intents:
            existing = stored_vax.get(intent.dedup_key)
            if existing is not None and intent.dedup_key not in missing:
                vaccine_entries.append(existing)
                continue
            request = NotificationRequest(
                title=intent.title,
                body=intent.body,
                data={"type": NotificationType.VACCINE_REMINDER.value, "pet_id": intent.pet_id},
                trigger=DateTrigger(date=intent.trigger_date),
            )
            notification_id = await schedule_one(self.scheduler, intent.dedup_key, request, scheduled)
            if notification_id is None:
                continue
            vaccine_entries.append(
                ScheduledNotification(
                    notification_id=notification_id,
                    type=NotificationType.VACCINE_REMINDER,
                    pet_id=intent.pet_id,
                    pet_name=intent.pet_name,
                    item_name=intent.vaccine_name,
                    trigger_date=intent.trigger_date.isoformat(),
                    dedup_key=intent.dedup_key,
                )
            )

        non_vax = [n for n in stored if n.type != NotificationType.VACCINE_REMINDER]
        await self.ledger.save_scheduled(non_vax + vaccine_entries)
        report.vaccine_scheduled = scheduled.succeeded
        report.vaccine_cancelled = cancelled.succeeded
