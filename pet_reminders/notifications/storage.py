"""键值持久化：每个槽位一个 JSON 文件。"""
import asyncio
from pathlib import Path
from typing import Dict, Optional, Protocol

from pet_reminders.config import NOTIFICATIONS_DATA_DIR, ensure_dirs


class KeyValueStorage(Protocol):
    """异步键值存储（字符串进，字符串出）。"""

    async def get_item(self, key: str) -> Optional[str]:
        ...

    async def set_item(self, key: str, value: str) -> None:
        ...


class JsonFileStorage:
    """槽位存储在数据目录下的 <key>.json。"""

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or NOTIFICATIONS_DATA_DIR
        ensure_dirs()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def _read(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return f.read()

    def _write(self, key: str, value: str) -> None:
        with open(self._path(key), "w", encoding="utf-8") as f:
            f.write(value)

    async def get_item(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._read, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._write, key, value)


class MemoryStorage:
    """进程内存储，不落盘。"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.items[key] = value
