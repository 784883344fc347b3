"""提醒引擎异常。"""


class ReminderError(Exception):
    """提醒相关错误基类。"""


class PermissionDeniedError(ReminderError):
    """用户拒绝了通知权限。"""

    def __init__(self, message: str = "Notification permission was not granted") -> None:
        super().__init__(message)


class SchedulerError(ReminderError):
    """系统通知调度失败（排程/取消/列举）。"""


class RecordSourceError(ReminderError):
    """读取宠物或病历数据失败。"""
