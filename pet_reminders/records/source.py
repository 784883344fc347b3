"""提醒引擎读取宠物与病历的数据源接口。"""
from typing import Iterable, List, Protocol

from pet_reminders.records.models import HealthRecord, NotificationPreferences, Pet, VaccineRecord


class RecordSource(Protocol):
    """只读数据源：当前用户的提醒偏好、宠物列表、已解读病历。"""

    async def get_preferences(self) -> NotificationPreferences:
        ...

    async def list_pets(self) -> List[Pet]:
        ...

    async def list_completed_records(self, pet_id: str) -> List[HealthRecord]:
        ...


def collect_vaccines(records: Iterable[HealthRecord]) -> List[VaccineRecord]:
    """汇总多份病历中抽取出的全部疫苗记录。"""
    out: List[VaccineRecord] = []
    for record in records:
        if record.interpretation is None:
            continue
        out.extend(record.interpretation.extracted_values.vaccines)
    return out
