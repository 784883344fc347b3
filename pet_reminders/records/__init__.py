"""宠物、提醒偏好与病历数据源。"""
from pet_reminders.records.models import (
    ExtractedValues,
    HealthRecord,
    MedicationRecord,
    NotificationPreferences,
    Pet,
    RecordInterpretation,
    VaccineRecord,
)
from pet_reminders.records.source import RecordSource, collect_vaccines
from pet_reminders.records.store import RecordStore

__all__ = [
    "ExtractedValues",
    "HealthRecord",
    "MedicationRecord",
    "NotificationPreferences",
    "Pet",
    "RecordInterpretation",
    "VaccineRecord",
    "RecordSource",
    "collect_vaccines",
    "RecordStore",
]
