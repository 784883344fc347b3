"""通知账本、用药计划与疫苗提醒数据模型。"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from pet_reminders.config import MAX_MED_REMINDER_TIMES


class NotificationType(str, Enum):
    """通知类型。"""
    VACCINE_REMINDER = "vaccine_reminder"  # 疫苗到期
    MED_REMINDER = "med_reminder"          # 每日用药


class VaccineTriggerType(str, Enum):
    """疫苗提醒触发点。"""
    BEFORE = "before"    # 到期前 7 天
    DAY_OF = "day_of"    # 到期当天
    AFTER = "after"      # 逾期 1 天


class ScheduledNotification(BaseModel):
    """账本中的一条记录：已交给系统排程的通知。"""
    notification_id: str = Field(..., description="系统返回的通知句柄，取消时需要")
    type: NotificationType = Field(..., description="通知类型")
    pet_id: str = Field(..., description="宠物 ID")
    pet_name: str = Field(..., description="宠物名字")
    item_name: str = Field(..., description="疫苗或药品名")
    trigger_date: str = Field(..., description="一次性为 ISO 时间，每日重复为 daily:HH:MM")
    dedup_key: str = Field(..., description="逻辑提醒的去重键")

    model_config = ConfigDict(use_enum_values=True)


class ReminderTime(BaseModel):
    """每日提醒时刻。"""
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)


class MedReminderSchedule(BaseModel):
    """用药提醒计划：系统通知丢失后据此重建。"""
    pet_id: str = Field(..., description="宠物 ID")
    pet_name: str = Field(..., description="宠物名字")
    medication_name: str = Field(..., description="药品名（按原样保存）")
    dosage: str = Field("", description="剂量说明")
    times: List[ReminderTime] = Field(default_factory=list, max_length=MAX_MED_REMINDER_TIMES, description="每日提醒时刻，最多 6 个")


class VaccineNotificationIntent(BaseModel):
    """计算得出、尚未排程的疫苗提醒。不持久化。"""
    dedup_key: str
    pet_id: str
    pet_name: str
    vaccine_name: str
    trigger_date: datetime
    trigger_type: VaccineTriggerType
    title: str
    body: str


class DateTrigger(BaseModel):
    """一次性触发。"""
    date: datetime


class DailyTrigger(BaseModel):
    """每日固定时刻重复触发。"""
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)


class NotificationRequest(BaseModel):
    """交给系统调度器的一条通知。"""
    title: str
    body: str
    data: Dict[str, Any] = Field(default_factory=dict, description="附带数据，至少含 type 与 pet_id")
    trigger: Union[DateTrigger, DailyTrigger]


class OperationOutcome(BaseModel):
    """单次排程/取消的结果。"""
    key: str = Field(..., description="去重键")
    notification_id: Optional[str] = Field(None, description="成功排程后的句柄，或被取消的句柄")
    ok: bool = True
    error: Optional[str] = None


class BatchResult(BaseModel):
    """一批调度操作的结果汇总。"""
    outcomes: List[OperationOutcome] = Field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    def failures(self) -> List[OperationOutcome]:
        return [o for o in self.outcomes if not o.ok]
