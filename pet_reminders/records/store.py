"""宠物、偏好与病历的本地存储。"""
import json
from pathlib import Path
from typing import List, Optional

from pet_reminders.config import RECORDS_DATA_DIR, ensure_dirs
from pet_reminders.records.models import HealthRecord, NotificationPreferences, Pet


class RecordStore:
    """本地 JSON 实现的数据源：宠物索引、提醒偏好、按宠物分文件的病历。"""
    _index_file = "index.json"
    _preferences_file = "preferences.json"

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or RECORDS_DATA_DIR
        ensure_dirs()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _index_path(self) -> Path:
        return self.base_dir / self._index_file

    def _preferences_path(self) -> Path:
        return self.base_dir / self._preferences_file

    def _records_path(self, pet_id: str) -> Path:
        return self.base_dir / f"records_{pet_id}.json"

    def _read_json(self, path: Path) -> Optional[dict]:
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _write_json(self, path: Path, data: dict) -> None:
        ensure_dirs()
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def load_pets(self) -> List[Pet]:
        data = self._read_json(self._index_path()) or {}
        return [Pet.model_validate(p) for p in data.get("pets", [])]

    def save_pet(self, pet: Pet) -> None:
        """保存宠物（同 ID 覆盖）。"""
        pets = [p for p in self.load_pets() if p.id != pet.id]
        pets.append(pet)
        self._write_json(self._index_path(), {"pets": [p.model_dump(mode="json") for p in pets]})

    def delete_pet(self, pet_id: str) -> bool:
        """删除宠物及其病历。"""
        pets = self.load_pets()
        remaining = [p for p in pets if p.id != pet_id]
        if len(remaining) == len(pets):
            return False
        self._write_json(self._index_path(), {"pets": [p.model_dump(mode="json") for p in remaining]})
        path = self._records_path(pet_id)
        if path.exists():
            path.unlink()
        return True

    def load_preferences(self) -> NotificationPreferences:
        data = self._read_json(self._preferences_path())
        if data is None:
            return NotificationPreferences()
        return NotificationPreferences.model_validate(data)

    def save_preferences(self, preferences: NotificationPreferences) -> None:
        self._write_json(self._preferences_path(), preferences.model_dump(mode="json"))

    def load_records(self, pet_id: str) -> List[HealthRecord]:
        data = self._read_json(self._records_path(pet_id)) or {}
        return [HealthRecord.model_validate(r) for r in data.get("records", [])]

    def save_record(self, record: HealthRecord) -> None:
        """保存病历（合并到该宠物的病历列表，同 ID 覆盖）。"""
        records = [r for r in self.load_records(record.pet_id) if r.id != record.id]
        records.append(record)
        self._write_json(
            self._records_path(record.pet_id),
            {"records": [r.model_dump(mode="json") for r in records]},
        )

    # 数据源接口（异步）

    async def get_preferences(self) -> NotificationPreferences:
        return self.load_preferences()

    async def list_pets(self) -> List[Pet]:
        return self.load_pets()

    async def list_completed_records(self, pet_id: str) -> List[HealthRecord]:
        """只返回解读完成的病历。"""
        return [r for r in self.load_records(pet_id) if r.is_interpreted]
