"""批量取消测试。"""
from datetime import datetime, timezone

import pytest

from pet_reminders.notifications.adapter import InMemoryScheduler
from pet_reminders.notifications.cancellation import (
    cancel_all_notifications,
    cancel_notifications_by_type,
    cancel_notifications_for_pet,
)
from pet_reminders.notifications.ledger import NotificationLedger
from pet_reminders.notifications.medications import MedReminderScheduler
from pet_reminders.notifications.models import DateTrigger, NotificationRequest, NotificationType, ScheduledNotification
from pet_reminders.notifications.storage import MemoryStorage


async def _setup():
    scheduler = InMemoryScheduler()
    ledger = NotificationLedger(MemoryStorage())
    meds = MedReminderScheduler(ledger, scheduler)
    await meds.set_reminder("p1", "Fido", "Apoquel", "", [{"hour": 7, "minute": 0}])
    await meds.set_reminder("p2", "Rex", "Apoquel", "", [{"hour": 7, "minute": 0}])

    stored = await ledger.get_scheduled()
    when = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
    for pet_id in ("p1", "p2"):
        notification_id = await scheduler.schedule(
            NotificationRequest(title="t", body="b", trigger=DateTrigger(date=when))
        )
        stored.append(ScheduledNotification(
            notification_id=notification_id,
            type=NotificationType.VACCINE_REMINDER,
            pet_id=pet_id,
            pet_name="x",
            item_name="Rabies",
            trigger_date=when.isoformat(),
            dedup_key=f"vax_{pet_id}_rabies_day_of",
        ))
    await ledger.save_scheduled(stored)
    return ledger, scheduler


@pytest.mark.asyncio
async def test_cancel_by_type() -> None:
    ledger, scheduler = await _setup()
    result = await cancel_notifications_by_type(ledger, scheduler, NotificationType.VACCINE_REMINDER)
    assert result.succeeded == 2
    assert {n.type for n in await ledger.get_scheduled()} == {"med_reminder"}
    assert len(scheduler.pending) == 2
    assert len(await ledger.get_med_schedules()) == 2

    await cancel_notifications_by_type(ledger, scheduler, NotificationType.MED_REMINDER)
    assert await ledger.get_scheduled() == []
    assert await ledger.get_med_schedules() == []
    assert scheduler.pending == {}


@pytest.mark.asyncio
async def test_cancel_for_pet() -> None:
    ledger, scheduler = await _setup()
    result = await cancel_notifications_for_pet(ledger, scheduler, "p1")
    assert result.attempted == 2
    assert {n.pet_id for n in await ledger.get_scheduled()} == {"p2"}
    assert [s.pet_id for s in await ledger.get_med_schedules()] == ["p2"]


@pytest.mark.asyncio
async def test_cancel_for_pet_vaccines_only_keeps_med_schedules() -> None:
    ledger, scheduler = await _setup()
    await cancel_notifications_for_pet(ledger, scheduler, "p1", NotificationType.VACCINE_REMINDER)
    remaining = await ledger.get_scheduled()
    assert len(remaining) == 3
    assert len(await ledger.get_med_schedules()) == 2


@pytest.mark.asyncio
async def test_cancel_all() -> None:
    ledger, scheduler = await _setup()
    await cancel_all_notifications(ledger, scheduler)
    assert scheduler.pending == {}
    assert await ledger.get_scheduled() == []
    assert await ledger.get_med_schedules() == []
