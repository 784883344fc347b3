"""去重键与触发描述的构造。"""
from pet_reminders.notifications.models import VaccineTriggerType


def normalize_item_name(name: str) -> str:
    """疫苗/药品名归一：去首尾空白并转小写。"""
    return name.strip().lower()


def build_vaccine_dedup_key(pet_id: str, vaccine_name: str, trigger_type: VaccineTriggerType) -> str:
    trigger = VaccineTriggerType(trigger_type).value
    return f"vax_{pet_id}_{normalize_item_name(vaccine_name)}_{trigger}"


def med_key_prefix(pet_id: str, medication_name: str) -> str:
    """某药品所有时段共用的键前缀。"""
    return f"med_{pet_id}_{normalize_item_name(medication_name)}_"


def build_med_dedup_key(pet_id: str, medication_name: str, hour: int, minute: int) -> str:
    # 时分不补零：med_p1_amoxicillin_9:0
    return f"{med_key_prefix(pet_id, medication_name)}{hour}:{minute}"


def format_daily_trigger(hour: int, minute: int) -> str:
    return f"daily:{hour:02d}:{minute:02d}"
