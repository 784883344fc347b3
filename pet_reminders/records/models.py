"""宠物、通知偏好与解读后病历的数据模型（只读消费）。"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

COMPLETED_STATUS = "completed"


class Pet(BaseModel):
    """宠物（提醒只需要 ID 与名字）。"""
    id: str = Field(..., description="宠物唯一 ID")
    name: str = Field(..., description="宠物名字")
    species: Optional[str] = Field(None, description="物种，如 cat / dog")


class NotificationPreferences(BaseModel):
    """用户的提醒开关。"""
    vaccine_reminders_enabled: bool = Field(True, description="疫苗到期提醒")
    medication_reminders_enabled: bool = Field(True, description="每日用药提醒")


class VaccineRecord(BaseModel):
    """病历中抽取出的一条疫苗记录。"""
    name: str = Field("", description="疫苗名")
    date_given: Optional[str] = Field(None, description="接种日期")
    next_due: Optional[str] = Field(None, description="下次到期日期 ISO")


class MedicationRecord(BaseModel):
    """病历中抽取出的一条用药记录。"""
    name: str = Field("", description="药品名")
    dosage: str = Field("", description="剂量")
    frequency: str = Field("", description="频次，如 twice daily")


class ExtractedValues(BaseModel):
    vaccines: List[VaccineRecord] = Field(default_factory=list)
    medications: List[MedicationRecord] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class RecordInterpretation(BaseModel):
    """AI 解读结果中提醒用得到的部分。"""
    extracted_values: ExtractedValues = Field(default_factory=ExtractedValues)

    model_config = ConfigDict(extra="ignore")


class HealthRecord(BaseModel):
    """一份扫描上传的病历。"""
    id: str = Field(..., description="病历 ID")
    pet_id: str = Field(..., description="所属宠物 ID")
    processing_status: str = Field("pending", description="解读状态：pending / processing / completed / failed")
    record_date: Optional[str] = Field(None, description="病历日期 ISO")
    interpretation: Optional[RecordInterpretation] = Field(None, description="解读结果，未完成时为空")

    model_config = ConfigDict(extra="ignore")

    @property
    def is_interpreted(self) -> bool:
        return self.processing_status == COMPLETED_STATUS and self.interpretation is not None
