"""提醒引擎全局配置与路径。"""
from pathlib import Path

# 项目根目录（pet_reminders 包所在目录的上一级）
ROOT_DIR = Path(__file__).resolve().parent.parent
# 数据目录：通知账本、宠物与病历
DATA_DIR = ROOT_DIR / "data"
NOTIFICATIONS_DATA_DIR = DATA_DIR / "notifications"
RECORDS_DATA_DIR = DATA_DIR / "records"

# 账本存储槽位（每个槽位一个 JSON 文件）
SCHEDULED_KEY = "pl_notifications_scheduled"
MED_SCHEDULES_KEY = "pl_notifications_med_schedules"

# 同步节流（秒）
SYNC_COOLDOWN_SECONDS = 30

# 疫苗提醒
VACCINE_REMINDER_HOUR = 9  # 本地时间 09:00 触发
VACCINE_BEFORE_DAYS = 7
VACCINE_AFTER_DAYS = 1
VACCINE_FAR_OUT_DAYS = 60  # 超过则只排「提前」提醒
VACCINE_UPCOMING_DAYS = 30

# 用药提醒
MAX_MED_REMINDER_TIMES = 6

# 系统待触发通知上限（iOS 为 64）
MAX_PENDING_NOTIFICATIONS = 64


def ensure_dirs() -> None:
    """确保数据目录存在。"""
    for d in (DATA_DIR, NOTIFICATIONS_DATA_DIR, RECORDS_DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)
