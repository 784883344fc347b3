"""系统通知调度器接口，以及进程内参考实现。"""
import uuid
from typing import Dict, List, Optional, Protocol

from pet_reminders.config import MAX_PENDING_NOTIFICATIONS
from pet_reminders.exceptions import SchedulerError
from pet_reminders.notifications.models import NotificationRequest


class NotificationScheduler(Protocol):
    """设备通知子系统的最小能力集。"""

    async def request_permission(self) -> bool:
        ...

    async def schedule(self, request: NotificationRequest) -> str:
        """排程一条通知，返回系统句柄。"""
        ...

    async def cancel(self, notification_id: str) -> None:
        ...

    async def list_scheduled_ids(self) -> List[str]:
        """系统当前仍待触发的通知句柄。"""
        ...

    async def cancel_all(self) -> None:
        ...


class InMemoryScheduler:
    """进程内调度器：行为接近移动端系统通知（有上限、会被系统清掉）。"""

    def __init__(self, granted: bool = True, max_pending: Optional[int] = MAX_PENDING_NOTIFICATIONS):
        self.granted = granted
        self.max_pending = max_pending
        self.pending: Dict[str, NotificationRequest] = {}
        self.schedule_calls = 0
        self.cancel_calls = 0
        self.list_calls = 0

    async def request_permission(self) -> bool:
        return self.granted

    async def schedule(self, request: NotificationRequest) -> str:
        self.schedule_calls += 1
        if not self.granted:
            raise SchedulerError("Notifications are not permitted")
        if self.max_pending is not None and len(self.pending) >= self.max_pending:
            raise SchedulerError(f"Pending notification limit reached ({self.max_pending})")
        notification_id = uuid.uuid4().hex
        self.pending[notification_id] = request
        return notification_id

    async def cancel(self, notification_id: str) -> None:
        # 已不存在的句柄直接忽略
        self.cancel_calls += 1
        self.pending.pop(notification_id, None)

    async def list_scheduled_ids(self) -> List[str]:
        self.list_calls += 1
        return list(self.pending)

    async def cancel_all(self) -> None:
        self.pending.clear()

    def drop(self, notification_id: str) -> None:
        """模拟系统悄悄清掉一条通知（已触发或被清理）。"""
        self.pending.pop(notification_id, None)
