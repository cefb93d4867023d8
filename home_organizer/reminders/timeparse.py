"""提醒时间解析：按本地时钟理解存储的时间戳。"""
from datetime import date, datetime, time
from typing import Tuple, Union

from home_organizer.errors import ReminderParseError

TimeValue = Union[str, datetime, time, None]


def to_local_naive(value: datetime) -> datetime:
    """带时区的时间转为本地无时区时间；无时区的视为本地时间原样返回。"""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _parse_datetime_text(text: str) -> datetime:
    # 兼容 JSON 导出常见的 "Z" 结尾
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def parse_instant(value: TimeValue) -> datetime:
    """解析预约时间（绝对时刻），返回本地无时区 datetime。失败抛 ReminderParseError。"""
    if isinstance(value, datetime):
        return to_local_naive(value)
    if isinstance(value, date):
        return datetime.combine(value, time())
    if not isinstance(value, str) or not value.strip():
        raise ReminderParseError(value, "空值或类型不支持")
    try:
        return to_local_naive(_parse_datetime_text(value.strip()))
    except ValueError as e:
        raise ReminderParseError(value, str(e)) from e


def parse_time_of_day(value: TimeValue) -> Tuple[int, int]:
    """解析服药时间，只取 (时, 分)。支持完整时间戳或 "HH:MM"。"""
    if isinstance(value, datetime):
        local = to_local_naive(value)
        return local.hour, local.minute
    if isinstance(value, time):
        return value.hour, value.minute
    if not isinstance(value, str) or not value.strip():
        raise ReminderParseError(value, "空值或类型不支持")
    text = value.strip()
    try:
        local = to_local_naive(_parse_datetime_text(text))
        return local.hour, local.minute
    except ValueError:
        pass
    try:
        t = time.fromisoformat(text)
    except ValueError as e:
        raise ReminderParseError(value, str(e)) from e
    return t.hour, t.minute
