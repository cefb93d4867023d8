"""家庭助手全局配置与路径。"""
import os
from pathlib import Path

# 项目根目录（home_organizer 包所在目录的上一级）
ROOT_DIR = Path(__file__).resolve().parent.parent
# 数据目录：用药、预约、通知授权等
DATA_DIR = Path(os.environ.get("HOME_ORGANIZER_DATA_DIR", "").strip() or ROOT_DIR / "data")
REMINDERS_DATA_DIR = DATA_DIR / "reminders"
NOTIFY_DATA_DIR = DATA_DIR / "notify"  # 通知授权结果

# 日志级别
LOG_LEVEL = os.environ.get("HOME_ORGANIZER_LOG_LEVEL", "INFO").strip().upper() or "INFO"

# 提醒默认（毫秒）
REMINDER_POLL_INTERVAL_MS = 30_000  # 30 秒轮询一次
MEDICATION_WINDOW_MS = 40_000  # 服药时间前后 40 秒内算到点
APPOINTMENT_LOOKAHEAD_MS = 600_000  # 预约前 10 分钟提醒

# 系统通知停留时间（毫秒）
NOTIFICATION_DISPLAY_MS = 6_000

# Qt 事件泵间隔（毫秒）
QT_EVENT_PUMP_MS = 50


def ensure_dirs() -> None:
    """确保数据目录存在。"""
    for d in (DATA_DIR, REMINDERS_DATA_DIR, NOTIFY_DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)
