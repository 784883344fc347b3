"""通知同步测试。"""
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import pytest

from pet_reminders.exceptions import RecordSourceError
from pet_reminders.notifications.adapter import InMemoryScheduler
from pet_reminders.notifications.ledger import NotificationLedger
from pet_reminders.notifications.medications import MedReminderScheduler
from pet_reminders.notifications.models import NotificationType
from pet_reminders.notifications.storage import MemoryStorage
from pet_reminders.notifications.sync import NotificationSyncOrchestrator
from pet_reminders.records.models import (
    ExtractedValues,
    HealthRecord,
    NotificationPreferences,
    Pet,
    RecordInterpretation,
    VaccineRecord,
)
from pet_reminders.records.store import RecordStore

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, value: float = 1000.0):
        self.value = value

    def __call__(self) -> float:
        return self.value

    def advance(self, seconds: float) -> None:
        self.value += seconds


class FlakyRecordStore(RecordStore):
    """指定宠物的病历读取失败。"""

    def __init__(self, base_dir: Path, broken_pet_id: str):
        super().__init__(base_dir=base_dir)
        self.broken_pet_id = broken_pet_id

    async def list_completed_records(self, pet_id: str) -> List[HealthRecord]:
        if pet_id == self.broken_pet_id:
            raise RecordSourceError("query failed")
        return await super().list_completed_records(pet_id)


class BrokenPreferencesStore(RecordStore):
    async def get_preferences(self) -> NotificationPreferences:
        raise RecordSourceError("offline")


def _vaccine_record(record_id: str, pet_id: str, *vaccines: VaccineRecord) -> HealthRecord:
    return HealthRecord(
        id=record_id,
        pet_id=pet_id,
        processing_status="completed",
        interpretation=RecordInterpretation(extracted_values=ExtractedValues(vaccines=list(vaccines))),
    )


def _orchestrator(store, scheduler=None, clock=None):
    scheduler = scheduler or InMemoryScheduler()
    ledger = NotificationLedger(MemoryStorage())
    clock = clock or FakeClock()
    orchestrator = NotificationSyncOrchestrator(ledger, scheduler, store, clock=clock, now=lambda: NOW)
    return orchestrator, ledger, scheduler, clock


async def _vaccine_keys(ledger: NotificationLedger) -> set:
    return {n.dedup_key for n in await ledger.get_scheduled() if n.type == NotificationType.VACCINE_REMINDER}


@pytest.fixture
def store():
    with tempfile.TemporaryDirectory() as tmp:
        s = RecordStore(base_dir=Path(tmp))
        s.save_pet(Pet(id="fido", name="Fido"))
        s.save_record(_vaccine_record("r1", "fido", VaccineRecord(name="Rabies", next_due="2026-03-15")))
        yield s


@pytest.mark.asyncio
async def test_vaccine_due_in_five_days(store) -> None:
    orchestrator, ledger, scheduler, _ = _orchestrator(store)
    report = await orchestrator.sync_notifications()

    assert report.ran and report.error is None
    assert report.vaccine_scheduled == 2
    assert await _vaccine_keys(ledger) == {"vax_fido_rabies_day_of", "vax_fido_rabies_after"}
    entry = next(n for n in await ledger.get_scheduled() if n.dedup_key == "vax_fido_rabies_day_of")
    assert entry.trigger_date == "2026-03-15T09:00:00+00:00"
    assert entry.pet_name == "Fido" and entry.item_name == "Rabies"
    assert len(scheduler.pending) == 2


@pytest.mark.asyncio
async def test_triggers_within_cooldown_collapse(store) -> None:
    orchestrator, _, scheduler, clock = _orchestrator(store)
    first = await orchestrator.sync_notifications()
    clock.advance(10)
    second = await orchestrator.sync_notifications()

    assert first.ran is True
    assert second.ran is False
    assert scheduler.schedule_calls == 2
    assert scheduler.list_calls == 0


@pytest.mark.asyncio
async def test_resync_with_unchanged_data_schedules_nothing(store) -> None:
    orchestrator, ledger, scheduler, clock = _orchestrator(store)
    await orchestrator.sync_notifications()
    ids = {n.notification_id for n in await ledger.get_scheduled()}

    clock.advance(31)
    report = await orchestrator.sync_notifications()
    assert report.ran
    assert report.vaccine_scheduled == 0
    assert scheduler.schedule_calls == 2
    assert {n.notification_id for n in await ledger.get_scheduled()} == ids


@pytest.mark.asyncio
async def test_reschedules_notification_cleared_by_system(store) -> None:
    orchestrator, ledger, scheduler, clock = _orchestrator(store)
    await orchestrator.sync_notifications()
    lost = next(n for n in await ledger.get_scheduled() if n.dedup_key == "vax_fido_rabies_after")
    scheduler.drop(lost.notification_id)

    clock.advance(31)
    report = await orchestrator.sync_notifications()
    assert report.missing_keys == ["vax_fido_rabies_after"]
    assert report.vaccine_scheduled == 1
    stored = await ledger.get_scheduled()
    assert len(stored) == 2
    assert len({n.dedup_key for n in stored}) == 2
    assert lost.notification_id not in {n.notification_id for n in stored}


@pytest.mark.asyncio
async def test_stale_vaccine_reminders_are_cancelled(store) -> None:
    orchestrator, ledger, scheduler, clock = _orchestrator(store)
    await orchestrator.sync_notifications()

    store.save_record(_vaccine_record("r1", "fido"))
    clock.advance(31)
    report = await orchestrator.sync_notifications()
    assert report.vaccine_cancelled == 2
    assert await ledger.get_scheduled() == []
    assert scheduler.pending == {}


@pytest.mark.asyncio
async def test_disabling_vaccine_reminders_sweeps_them(store) -> None:
    orchestrator, ledger, scheduler, clock = _orchestrator(store)
    await orchestrator.sync_notifications()

    store.save_preferences(NotificationPreferences(vaccine_reminders_enabled=False))
    clock.advance(31)
    report = await orchestrator.sync_notifications()
    assert report.vaccine_cancelled == 2
    assert await _vaccine_keys(ledger) == set()
    assert scheduler.pending == {}


@pytest.mark.asyncio
async def test_permission_denied_skips_vaccines_quietly(store) -> None:
    orchestrator, ledger, scheduler, _ = _orchestrator(store, scheduler=InMemoryScheduler(granted=False))
    report = await orchestrator.sync_notifications()
    assert report.ran and report.error is None
    assert scheduler.schedule_calls == 0
    assert await ledger.get_scheduled() == []


@pytest.mark.asyncio
async def test_failing_pet_does_not_block_others() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        flaky = FlakyRecordStore(Path(tmp), broken_pet_id="rex")
        flaky.save_pet(Pet(id="rex", name="Rex"))
        flaky.save_pet(Pet(id="fido", name="Fido"))
        flaky.save_record(_vaccine_record("r1", "rex", VaccineRecord(name="DHPP", next_due="2026-03-20")))
        flaky.save_record(_vaccine_record("r2", "fido", VaccineRecord(name="DHPP", next_due="2026-03-20")))

        orchestrator, ledger, _, _ = _orchestrator(flaky)
        report = await orchestrator.sync_notifications()
        assert report.error is None
        assert await _vaccine_keys(ledger) == {
            "vax_fido_dhpp_before", "vax_fido_dhpp_day_of", "vax_fido_dhpp_after",
        }


@pytest.mark.asyncio
async def test_sync_failure_is_contained() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        orchestrator, _, scheduler, _ = _orchestrator(BrokenPreferencesStore(base_dir=Path(tmp)))
        report = await orchestrator.sync_notifications()
        assert report.ran
        assert report.error == "offline"
        assert scheduler.schedule_calls == 0


@pytest.mark.asyncio
async def test_medication_reminders_are_restored(store) -> None:
    orchestrator, ledger, scheduler, clock = _orchestrator(store)
    meds = MedReminderScheduler(ledger, scheduler)
    await meds.set_reminder("fido", "Fido", "Amoxicillin", "50mg", [{"hour": 9, "minute": 0}, {"hour": 21, "minute": 0}])
    await orchestrator.sync_notifications()

    lost = next(n for n in await ledger.get_scheduled() if n.dedup_key == "med_fido_amoxicillin_9:0")
    scheduler.drop(lost.notification_id)
    clock.advance(31)
    report = await orchestrator.sync_notifications()

    assert "med_fido_amoxicillin_9:0" in report.missing_keys
    assert report.med_rescheduled == 1
    keys = [n.dedup_key for n in await ledger.get_scheduled()]
    assert sorted(keys) == sorted({
        "vax_fido_rabies_day_of", "vax_fido_rabies_after",
        "med_fido_amoxicillin_9:0", "med_fido_amoxicillin_21:0",
    })


@pytest.mark.asyncio
async def test_medication_section_respects_preference(store) -> None:
    store.save_preferences(NotificationPreferences(medication_reminders_enabled=False))
    orchestrator, ledger, scheduler, _ = _orchestrator(store)
    meds = MedReminderScheduler(ledger, scheduler)
    await meds.set_reminder("fido", "Fido", "Amoxicillin", "", [{"hour": 9, "minute": 0}])
    scheduler.drop(next(iter(scheduler.pending)))

    report = await orchestrator.sync_notifications()
    assert report.missing_keys == ["med_fido_amoxicillin_9:0"]
    assert report.med_rescheduled == 0
    assert "med_fido_amoxicillin_9:0" not in {n.dedup_key for n in await ledger.get_scheduled()}


class BrokenPetListStore(RecordStore):
    async def list_pets(self) -> List[Pet]:
        raise RecordSourceError("pets unavailable")


@pytest.mark.asyncio
async def test_pet_list_failure_still_restores_medications() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        orchestrator, ledger, scheduler, _ = _orchestrator(BrokenPetListStore(base_dir=Path(tmp)))
        meds = MedReminderScheduler(ledger, scheduler)
        await meds.set_reminder("fido", "Fido", "Amoxicillin", "", [{"hour": 9, "minute": 0}])
        scheduler.drop(next(iter(scheduler.pending)))

        report = await orchestrator.sync_notifications()
        assert report.ran
        assert report.error == "pets unavailable"
        assert report.med_rescheduled == 1
        assert [n.dedup_key for n in await ledger.get_scheduled()] == ["med_fido_amoxicillin_9:0"]
        assert len(scheduler.pending) == 1
