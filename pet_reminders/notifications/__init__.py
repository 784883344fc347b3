"""本地通知：账本、对账、疫苗与用药提醒、同步。"""
from pet_reminders.notifications.adapter import InMemoryScheduler, NotificationScheduler
from pet_reminders.notifications.cancellation import (
    cancel_all_notifications,
    cancel_notifications_by_type,
    cancel_notifications_for_pet,
)
from pet_reminders.notifications.keys import build_med_dedup_key, build_vaccine_dedup_key, normalize_item_name
from pet_reminders.notifications.ledger import NotificationLedger
from pet_reminders.notifications.medications import MedReminderScheduler, default_times_for_frequency
from pet_reminders.notifications.models import (
    BatchResult,
    MedReminderSchedule,
    NotificationType,
    ReminderTime,
    ScheduledNotification,
    VaccineNotificationIntent,
    VaccineTriggerType,
)
from pet_reminders.notifications.reconcile import reconcile_with_scheduler
from pet_reminders.notifications.storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from pet_reminders.notifications.sync import NotificationSyncOrchestrator, SyncReport
from pet_reminders.notifications.vaccines import VaccineStatus, build_vaccine_intents, get_vaccine_status

__all__ = [
    "InMemoryScheduler",
    "NotificationScheduler",
    "cancel_all_notifications",
    "cancel_notifications_by_type",
    "cancel_notifications_for_pet",
    "build_med_dedup_key",
    "build_vaccine_dedup_key",
    "normalize_item_name",
    "NotificationLedger",
    "MedReminderScheduler",
    "default_times_for_frequency",
    "BatchResult",
    "MedReminderSchedule",
    "NotificationType",
    "ReminderTime",
    "ScheduledNotification",
    "VaccineNotificationIntent",
    "VaccineTriggerType",
    "reconcile_with_scheduler",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "NotificationSyncOrchestrator",
    "SyncReport",
    "VaccineStatus",
    "build_vaccine_intents",
    "get_vaccine_status",
]
