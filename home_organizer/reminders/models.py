"""用药、预约提醒与到点事件数据模型。"""
import logging
import os
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Iterable, List, Mapping, Optional, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from home_organizer.config import (
    APPOINTMENT_LOOKAHEAD_MS,
    MEDICATION_WINDOW_MS,
    REMINDER_POLL_INTERVAL_MS,
)
from home_organizer.reminders.timeparse import parse_instant, parse_time_of_day

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


def _time_to_text(value: Any) -> Any:
    """datetime/time 对象统一转成 ISO 文本保存；其余原样交给校验。"""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


class DueKind(str, Enum):
    """到点事件类型。"""
    MEDICATION = "medication"    # 服药
    APPOINTMENT = "appointment"  # 预约


class MedicationReminder(BaseModel):
    """每日服药提醒：只看时间的时分，每天重复。"""
    id: str = Field(..., description="用药唯一 ID")
    name: str = Field(..., description="药名")
    dose: Optional[str] = Field(None, description="剂量说明")
    time: Optional[str] = Field(None, description="服药时间（时间戳，只取时分）")
    active: bool = Field(True, description="是否启用")

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    @field_validator("time", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> Any:
        return _time_to_text(value)

    def time_of_day(self) -> Tuple[int, int]:
        """返回 (时, 分)。无法解析时抛 ReminderParseError。"""
        return parse_time_of_day(self.time)


class AppointmentReminder(BaseModel):
    """一次性预约：绝对时刻，过了就不再提醒。"""
    id: str = Field(..., description="预约唯一 ID")
    title: str = Field(..., description="预约标题")
    datetime: Optional[str] = Field(None, description="预约时间 ISO")
    note: Optional[str] = Field(None, description="备注")

    model_config = ConfigDict(frozen=True, coerce_numbers_to_str=True)

    @field_validator("datetime", mode="before")
    @classmethod
    def _normalize_datetime(cls, value: Any) -> Any:
        return _time_to_text(value)

    def instant(self):
        """返回本地无时区的预约时刻。无法解析时抛 ReminderParseError。"""
        return parse_instant(self.datetime)


class DueEvent(BaseModel):
    """一次到点提醒，交给通知层投递。"""
    kind: DueKind = Field(..., description="事件类型")
    id: str = Field(..., description="对应条目 ID")
    title: str = Field(..., description="通知标题")
    body: str = Field("", description="通知正文")

    model_config = ConfigDict(use_enum_values=True, frozen=True)


def _validate_each(model: Type[_M], items: Optional[Iterable[Any]], label: str) -> List[_M]:
    if items is None:
        return []
    if not isinstance(items, (list, tuple)):
        logger.warning("%s数据不是列表，已忽略: %r", label, type(items).__name__)
        return []
    out: List[_M] = []
    for item in items:
        if isinstance(item, model):
            out.append(item)
            continue
        try:
            out.append(model.model_validate(item))
        except ValidationError as e:
            # 单条坏数据不影响其它条目
            logger.warning("跳过无效%s条目: %s", label, e.errors(include_url=False))
    return out


class ReminderSnapshot(BaseModel):
    """某一时刻的只读提醒快照（用药 + 预约）。"""
    medications: Tuple[MedicationReminder, ...] = Field(default=())
    appointments: Tuple[AppointmentReminder, ...] = Field(default=())

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_raw(cls, data: Optional[Mapping[str, Any]]) -> "ReminderSnapshot":
        """从宿主程序的原始字典构造快照，逐条校验，跳过无效条目。"""
        data = data or {}
        return cls(
            medications=tuple(_validate_each(MedicationReminder, data.get("medications"), "用药")),
            appointments=tuple(_validate_each(AppointmentReminder, data.get("appointments"), "预约")),
        )


_ENV_OPTIONS = {
    "HOME_ORGANIZER_POLL_INTERVAL_MS": "poll_interval_ms",
    "HOME_ORGANIZER_MEDICATION_WINDOW_MS": "medication_window_ms",
    "HOME_ORGANIZER_APPOINTMENT_LOOKAHEAD_MS": "appointment_lookahead_ms",
}


class SchedulerOptions(BaseModel):
    """调度参数。也接受 pollIntervalMs 等驼峰写法。"""
    poll_interval_ms: int = Field(REMINDER_POLL_INTERVAL_MS, gt=0, alias="pollIntervalMs", description="轮询间隔")
    medication_window_ms: int = Field(MEDICATION_WINDOW_MS, gt=0, alias="medicationWindowMs", description="服药到点半窗口")
    appointment_lookahead_ms: int = Field(APPOINTMENT_LOOKAHEAD_MS, gt=0, alias="appointmentLookaheadMs", description="预约提前量")

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @property
    def poll_interval_seconds(self) -> float:
        return self.poll_interval_ms / 1000.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SchedulerOptions":
        """从环境变量读取覆盖值，未设置的用默认。"""
        environ = os.environ if environ is None else environ
        values = {}
        for env_name, field_name in _ENV_OPTIONS.items():
            raw = (environ.get(env_name) or "").strip()
            if raw:
                values[field_name] = raw
        return cls.model_validate(values)
