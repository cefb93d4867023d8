"""周期触发器：调度器不直接依赖真实时钟，由外部注入。

- AsyncioTicker: 在 asyncio 事件循环里每 N 秒执行一次回调。
- ManualTicker: 调用 tick() 才执行，测试或宿主自行驱动时使用。

回调抛出的异常只记日志，不会让周期任务停止。
"""
import asyncio
import logging
from typing import Callable, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class TickHandle:
    """周期任务句柄。cancel() 可重复调用。"""

    def __init__(self, name: str = "tick", on_cancel: Optional[Callable[[], None]] = None):
        self.name = name
        self._on_cancel = on_cancel
        self._cancelled = False

    @property
    def active(self) -> bool:
        return not self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()
            self._on_cancel = None


class Ticker(Protocol):
    """周期触发器接口。"""

    def start(self, interval_seconds: float, callback: TickCallback, *, name: str = "tick") -> TickHandle:
        ...


def _run_callback(name: str, callback: TickCallback) -> None:
    try:
        callback()
    except Exception as exc:  # noqa: BLE001
        logger.exception("周期回调失败: name=%s error=%s", name, exc)


class AsyncioTicker:
    """基于 asyncio 的周期触发器。必须在运行中的事件循环内 start。"""

    def __init__(self, wait_first: bool = False):
        # True 时首次执行前先等一个间隔
        self.wait_first = wait_first

    def start(self, interval_seconds: float, callback: TickCallback, *, name: str = "tick") -> TickHandle:
        interval = float(interval_seconds)
        if interval <= 0:
            raise ValueError("interval_seconds must be > 0")

        async def _runner() -> None:
            if self.wait_first:
                await asyncio.sleep(interval)
            while True:
                _run_callback(name, callback)
                await asyncio.sleep(interval)

        task = asyncio.get_running_loop().create_task(_runner(), name=name)
        return TickHandle(name=name, on_cancel=task.cancel)


class ManualTicker:
    """手动触发器：记录回调，调用 tick() 时依次执行仍有效的回调。"""

    def __init__(self) -> None:
        self._entries: List[Tuple[TickHandle, TickCallback]] = []
        self.intervals: List[float] = []

    def start(self, interval_seconds: float, callback: TickCallback, *, name: str = "tick") -> TickHandle:
        handle = TickHandle(name=name)
        self._entries.append((handle, callback))
        self.intervals.append(float(interval_seconds))
        return handle

    @property
    def active_count(self) -> int:
        return sum(1 for handle, _ in self._entries if handle.active)

    def tick(self) -> int:
        """执行一轮，返回执行的回调数。"""
        self._entries = [(h, cb) for h, cb in self._entries if h.active]
        for handle, callback in list(self._entries):
            _run_callback(handle.name, callback)
        return len(self._entries)
