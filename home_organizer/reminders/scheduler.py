"""提醒调度：定时检查用药与预约，到点的生成通知事件并投递。

- 用药：每天按存储时间的时分重复，当前时间落在当天该时刻前后窗口内即到点。
- 预约：绝对时刻，在接下来的提前量之内（且尚未开始）即到点。
- 去重：同一用药同一天只提醒一次；同一预约同一时刻只提醒一次。
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

from home_organizer.errors import ReminderParseError
from home_organizer.notify.permission import PermissionGate, PermissionState
from home_organizer.reminders.models import (
    AppointmentReminder,
    DueEvent,
    DueKind,
    MedicationReminder,
    ReminderSnapshot,
    SchedulerOptions,
)
from home_organizer.reminders.ticker import AsyncioTicker, TickHandle, Ticker
from home_organizer.reminders.timeparse import to_local_naive

logger = logging.getLogger(__name__)

SnapshotSource = Callable[[], Union[ReminderSnapshot, Mapping[str, Any]]]

_DedupKey = Tuple[str, str]


@dataclass
class _Emitted:
    """某条目最近一次发出提醒的记录。"""
    occurrence: Union[date, datetime]  # 用药为日期，预约为时刻
    emitted_at: datetime


def _ms(delta: timedelta) -> float:
    return delta.total_seconds() * 1000.0


def medication_occurrence(med: MedicationReminder, now: datetime) -> datetime:
    """当天的服药时刻（秒、微秒清零）。时间无法解析时抛 ReminderParseError。"""
    hour, minute = med.time_of_day()
    return now.replace(hour=hour, minute=minute, second=0, microsecond=0)


def is_medication_due(med: MedicationReminder, now: datetime, window_ms: int) -> bool:
    """用药是否到点：启用且 |now - 当天服药时刻| < window_ms。时间无法解析时抛 ReminderParseError。"""
    if not med.active:
        return False
    scheduled = medication_occurrence(med, now)
    return abs(_ms(now - scheduled)) < window_ms


def medication_event(med: MedicationReminder) -> DueEvent:
    return DueEvent(
        kind=DueKind.MEDICATION,
        id=med.id,
        title=f"服药时间：{med.name}",
        body=f"剂量：{med.dose or '-'}，现在该服用了",
    )


def appointment_event(appt: AppointmentReminder, delta_ms: float) -> DueEvent:
    minutes = max(1, round(delta_ms / 60_000))
    body = f"{minutes} 分钟后开始"
    if appt.note:
        body = f"{body}（{appt.note}）"
    return DueEvent(
        kind=DueKind.APPOINTMENT,
        id=appt.id,
        title=f"预约提醒：{appt.title}",
        body=body,
    )


def _due_medications(
    now: datetime, medications: Iterable[MedicationReminder], window_ms: int
) -> List[MedicationReminder]:
    out = []
    for med in medications:
        try:
            if is_medication_due(med, now, window_ms):
                out.append(med)
        except ReminderParseError as e:
            logger.debug("跳过用药 %s: %s", med.id, e)
    return out


def _due_appointments(
    now: datetime, appointments: Iterable[AppointmentReminder], lookahead_ms: int
) -> List[Tuple[AppointmentReminder, datetime, float]]:
    out = []
    for appt in appointments:
        try:
            instant = appt.instant()
        except ReminderParseError as e:
            logger.debug("跳过预约 %s: %s", appt.id, e)
            continue
        delta = _ms(instant - now)
        if 0 < delta < lookahead_ms:
            out.append((appt, instant, delta))
    return out


def compute_due_events(
    now: datetime,
    medications: Iterable[MedicationReminder],
    appointments: Iterable[AppointmentReminder],
    options: Optional[SchedulerOptions] = None,
) -> List[DueEvent]:
    """不含去重的纯计算：相同输入总得到相同输出。用药在前，预约在后，各自保持原顺序。"""
    options = options or SchedulerOptions()
    now = to_local_naive(now)
    events = [medication_event(m) for m in _due_medications(now, medications, options.medication_window_ms)]
    events.extend(
        appointment_event(a, delta)
        for a, _, delta in _due_appointments(now, appointments, options.appointment_lookahead_ms)
    )
    return events


class ReminderScheduler:
    """提醒调度器：持有自己的去重状态，从不修改传入的提醒数据。"""

    def __init__(
        self,
        options: Optional[SchedulerOptions] = None,
        ticker: Optional[Ticker] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.options = options or SchedulerOptions()
        self._ticker = ticker
        self._clock = clock
        self._emitted: Dict[_DedupKey, _Emitted] = {}
        self._pending: Set["asyncio.Task[None]"] = set()
        if self.options.medication_window_ms * 2 <= self.options.poll_interval_ms:
            logger.warning(
                "用药窗口 (±%sms) 不大于轮询间隔 (%sms)，可能漏掉提醒",
                self.options.medication_window_ms,
                self.options.poll_interval_ms,
            )

    # --- 计算 ---

    def evaluate_tick(
        self,
        now: datetime,
        medications: Iterable[MedicationReminder],
        appointments: Iterable[AppointmentReminder],
    ) -> List[DueEvent]:
        """计算本轮到点事件并去重：同一用药同一天、同一预约同一时刻只出现一次。"""
        now = to_local_naive(now)
        self._prune(now)
        events: List[DueEvent] = []
        for med in _due_medications(now, medications, self.options.medication_window_ms):
            if self._mark(DueKind.MEDICATION, med.id, now.date(), now):
                events.append(medication_event(med))
        for appt, instant, delta in _due_appointments(now, appointments, self.options.appointment_lookahead_ms):
            if self._mark(DueKind.APPOINTMENT, appt.id, instant, now):
                events.append(appointment_event(appt, delta))
        return events

    def _mark(self, kind: DueKind, entry_id: str, occurrence: Union[date, datetime], now: datetime) -> bool:
        key = (kind.value, entry_id)
        previous = self._emitted.get(key)
        if previous is not None and previous.occurrence == occurrence:
            return False
        self._emitted[key] = _Emitted(occurrence=occurrence, emitted_at=now)
        return True

    def _prune(self, now: datetime) -> None:
        # 过期的去重记录不会再命中：用药按天，预约过了开始时间就不会再到点
        today = now.date()
        for key, record in list(self._emitted.items()):
            if key[0] == DueKind.MEDICATION.value:
                if record.occurrence != today:
                    del self._emitted[key]
            elif record.occurrence <= now:
                del self._emitted[key]

    def reset_dedup(self) -> None:
        """清空去重状态。"""
        self._emitted.clear()

    def last_emitted_at(self, kind: DueKind, entry_id: str) -> Optional[datetime]:
        """某条目最近一次发出提醒的时间。"""
        record = self._emitted.get((DueKind(kind).value, entry_id))
        return record.emitted_at if record else None

    # --- 投递 ---

    def run_tick(self, source: SnapshotSource, gate: PermissionGate) -> List[DueEvent]:
        """执行一轮：读取最新快照、计算到点事件、逐条投递。"""
        try:
            snapshot = _to_snapshot(source())
        except Exception as e:  # noqa: BLE001
            logger.exception("读取提醒快照失败，本轮跳过: %s", e)
            return []
        events = self.evaluate_tick(self._clock(), snapshot.medications, snapshot.appointments)
        for event in events:
            logger.info("提醒到点: kind=%s id=%s title=%s", event.kind, event.id, event.title)
            self._dispatch(gate, event)
        return events

    def _dispatch(self, gate: PermissionGate, event: DueEvent) -> None:
        if gate.current_state() == PermissionState.UNKNOWN:
            # 还没决定授权：异步询问后再投递，不阻塞本轮
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning("没有运行中的事件循环，无法请求通知授权: %s", event.title)
                return
            task = loop.create_task(self._request_and_deliver(gate, event))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
            return
        self._deliver(gate, event)

    async def _request_and_deliver(self, gate: PermissionGate, event: DueEvent) -> None:
        await gate.request_permission()
        self._deliver(gate, event)

    def _deliver(self, gate: PermissionGate, event: DueEvent) -> None:
        if not gate.can_notify():
            return
        try:
            gate.deliver(event.title, event.body)
        except Exception as e:  # noqa: BLE001
            logger.warning("投递提醒失败: id=%s error=%s", event.id, e)

    @property
    def pending_deliveries(self) -> int:
        """等待授权结果的投递数。"""
        return len(self._pending)

    # --- 启停 ---

    def start(self, source: SnapshotSource, gate: PermissionGate) -> TickHandle:
        """开始周期检查，返回句柄供 stop() 使用。"""
        ticker = self._ticker or AsyncioTicker()
        handle = ticker.start(
            self.options.poll_interval_seconds,
            lambda: self.run_tick(source, gate),
            name="reminder-scheduler",
        )
        logger.info("提醒调度已启动: interval=%sms", self.options.poll_interval_ms)
        return handle

    def stop(self, handle: Optional[TickHandle]) -> None:
        """停止周期检查。可重复调用；已发出的投递不撤回。"""
        if handle is None or not handle.active:
            return
        handle.cancel()
        logger.info("提醒调度已停止")


def _to_snapshot(data: Union[ReminderSnapshot, Mapping[str, Any], None]) -> ReminderSnapshot:
    if isinstance(data, ReminderSnapshot):
        return data
    return ReminderSnapshot.from_raw(data)
