"""由病历中的疫苗记录推导期望的疫苗提醒。"""
from datetime import date, datetime, time, timedelta, tzinfo
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple

from pet_reminders.config import (
    VACCINE_AFTER_DAYS,
    VACCINE_BEFORE_DAYS,
    VACCINE_FAR_OUT_DAYS,
    VACCINE_REMINDER_HOUR,
    VACCINE_UPCOMING_DAYS,
)
from pet_reminders.notifications.keys import build_vaccine_dedup_key, normalize_item_name
from pet_reminders.notifications.models import VaccineNotificationIntent, VaccineTriggerType
from pet_reminders.records.models import VaccineRecord


class VaccineStatus(str, Enum):
    """疫苗状态（列表展示用）。"""
    OVERDUE = "overdue"
    UPCOMING = "upcoming"
    CURRENT = "current"


def _resolve_now(now: Optional[datetime]) -> Tuple[datetime, Optional[tzinfo]]:
    # tz 为 None 表示系统本地时区，每个时刻单独换算偏移（夏令时）
    if now is None:
        return datetime.now().astimezone(), None
    if now.tzinfo is None:
        return now.astimezone(), None
    return now, now.tzinfo


def _at_local(day: date, at: time, tz: Optional[tzinfo]) -> datetime:
    if tz is None:
        return datetime.combine(day, at).astimezone()
    return datetime.combine(day, at, tzinfo=tz)


def parse_due_date(value: Optional[str], tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """解析 ISO 日期或时间；无法解析返回 None。无时区的按 tz（默认系统本地）处理。"""
    if not value or not value.strip():
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz) if tz is not None else parsed.astimezone()
    return parsed.astimezone(tz)


def _latest_by_name(vaccines: Iterable[VaccineRecord], tz: Optional[tzinfo]) -> List[Tuple[VaccineRecord, Optional[datetime]]]:
    # 同名疫苗（忽略大小写与空白）只保留 next_due 最晚的一条
    latest: Dict[str, Tuple[VaccineRecord, Optional[datetime]]] = {}
    for vax in vaccines:
        if not vax.name or not vax.next_due:
            continue
        key = normalize_item_name(vax.name)
        due = parse_due_date(vax.next_due, tz)
        current = latest.get(key)
        if current is None or (due is not None and (current[1] is None or due > current[1])):
            latest[key] = (vax, due)
    return list(latest.values())


def _render(pet_name: str, vaccine_name: str, trigger_type: VaccineTriggerType) -> Tuple[str, str]:
    if trigger_type == VaccineTriggerType.BEFORE:
        return (
            f"{pet_name}: {vaccine_name} Due Soon",
            f"{vaccine_name} is due in {VACCINE_BEFORE_DAYS} days. Schedule a vet appointment.",
        )
    if trigger_type == VaccineTriggerType.DAY_OF:
        return (
            f"{pet_name}: {vaccine_name} Due Today",
            f"{vaccine_name} is due today. Don't forget the appointment!",
        )
    return (
        f"{pet_name}: {vaccine_name} Overdue",
        f"{vaccine_name} was due yesterday. Please schedule an appointment soon.",
    )


def build_vaccine_intents(
    pet_id: str,
    pet_name: str,
    vaccines: Iterable[VaccineRecord],
    now: Optional[datetime] = None,
) -> List[VaccineNotificationIntent]:
    """计算一只宠物的疫苗提醒意图。

    每种疫苗最多三条：到期前 7 天、当天、逾期 1 天，均为本地 09:00。
    到期日在 60 天以外的只排「到期前」一条，其余等进入 60 天窗口后的同步再补。
    next_due 缺失或无法解析的疫苗直接跳过。
    """
    now, tz = _resolve_now(now)
    far_out_cutoff = now + timedelta(days=VACCINE_FAR_OUT_DAYS)
    at_hour = time(VACCINE_REMINDER_HOUR, 0)

    intents: List[VaccineNotificationIntent] = []
    for vax, due in _latest_by_name(vaccines, tz):
        if due is None:
            continue
        due_day = due.date()
        candidates = [
            (VaccineTriggerType.BEFORE, due_day - timedelta(days=VACCINE_BEFORE_DAYS)),
            (VaccineTriggerType.DAY_OF, due_day),
            (VaccineTriggerType.AFTER, due_day + timedelta(days=VACCINE_AFTER_DAYS)),
        ]
        is_far_out = due > far_out_cutoff

        for trigger_type, day in candidates:
            if is_far_out and trigger_type != VaccineTriggerType.BEFORE:
                continue
            trigger_date = _at_local(day, at_hour, tz)
            if trigger_date <= now:
                continue
            title, body = _render(pet_name, vax.name, trigger_type)
            intents.append(
                VaccineNotificationIntent(
                    dedup_key=build_vaccine_dedup_key(pet_id, vax.name, trigger_type),
                    pet_id=pet_id,
                    pet_name=pet_name,
                    vaccine_name=vax.name,
                    trigger_date=trigger_date,
                    trigger_type=trigger_type,
                    title=title,
                    body=body,
                )
            )
    return intents


def get_vaccine_status(next_due: Optional[str], now: Optional[datetime] = None) -> Optional[VaccineStatus]:
    """已过期、30 天内到期或仍有效；无日期返回 None。"""
    now, tz = _resolve_now(now)
    due = parse_due_date(next_due, tz)
    if due is None:
        return None
    if due < now:
        return VaccineStatus.OVERDUE
    if due < now + timedelta(days=VACCINE_UPCOMING_DAYS):
        return VaccineStatus.UPCOMING
    return VaccineStatus.CURRENT
