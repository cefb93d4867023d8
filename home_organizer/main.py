"""家庭助手提醒入口：读取本地提醒数据，定时检查并弹出系统通知。"""
import argparse
import asyncio
import logging
import os
import signal
import sys
from typing import TYPE_CHECKING, Optional

from home_organizer import __version__
from home_organizer.config import LOG_LEVEL, QT_EVENT_PUMP_MS, ensure_dirs
from home_organizer.log import setup_logging
from home_organizer.notify.permission import PermissionGate, PermissionState
from home_organizer.reminders.models import SchedulerOptions
from home_organizer.reminders.scheduler import ReminderScheduler
from home_organizer.reminders.store import ReminderStore
from home_organizer.reminders.ticker import AsyncioTicker

if TYPE_CHECKING:  # pragma: no cover
    from home_organizer.notify.qt_backend import QtTrayBackend

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="home-organizer", description="用药与预约提醒")
    parser.add_argument("--headless", action="store_true", help="不使用系统托盘，只记录到点提醒")
    parser.add_argument("--ask-notify", action="store_true", help="重新询问通知授权（之前拒绝过也会再问一次）")
    parser.add_argument("--log-level", default=LOG_LEVEL, help="日志级别（默认 INFO）")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _has_display() -> bool:
    if sys.platform.startswith("linux"):
        return bool(os.environ.get("DISPLAY") or os.environ.get("WAYLAND_DISPLAY"))
    return True


def create_desktop_backend(headless: bool = False) -> Optional["QtTrayBackend"]:
    """创建托盘通知后端；无图形环境时返回 None（通知不可用）。"""
    if headless or not _has_display():
        return None
    from home_organizer.notify.qt_backend import QtTrayBackend

    return QtTrayBackend()


async def ask_notify_again(gate: PermissionGate) -> PermissionState:
    """用户主动开启提醒：之前拒绝过也重新询问一次。"""
    state = await gate.request_again()
    logger.info("通知授权结果: %s", state.value)
    return state


async def run(headless: bool = False, ask_notify: bool = False) -> None:
    """运行提醒调度直到收到退出信号。"""
    store = ReminderStore()
    backend = create_desktop_backend(headless)
    gate = PermissionGate(backend)
    scheduler = ReminderScheduler(SchedulerOptions.from_env(), ticker=AsyncioTicker())

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except (NotImplementedError, RuntimeError):
            # Windows 事件循环不支持，靠 KeyboardInterrupt 退出
            pass

    pump = None
    if backend is not None:
        pump = AsyncioTicker().start(QT_EVENT_PUMP_MS / 1000.0, backend.process_events, name="qt-event-pump")

    gate.check_support()
    ask_task = asyncio.ensure_future(ask_notify_again(gate)) if ask_notify else None
    handle = scheduler.start(store.load_snapshot, gate)
    try:
        await stop_event.wait()
    finally:
        scheduler.stop(handle)
        if ask_task is not None and not ask_task.done():
            ask_task.cancel()
        if pump is not None:
            pump.cancel()
        if backend is not None:
            backend.close()


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    setup_logging(args.log_level)
    ensure_dirs()
    logger.info("家庭助手提醒启动: version=%s", __version__)
    try:
        asyncio.run(run(headless=args.headless, ask_notify=args.ask_notify))
    except KeyboardInterrupt:
        pass
    logger.info("家庭助手提醒已退出")


if __name__ == "__main__":
    main()
