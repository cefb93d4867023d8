"""PyQt6 系统托盘通知后端：托盘气泡显示提醒，非模态对话框询问授权。

由 asyncio 事件循环定期调用 process_events() 驱动 Qt 事件。
"""
import asyncio
import logging
import sys
from typing import Optional

from PyQt6.QtWidgets import QApplication, QMessageBox, QStyle, QSystemTrayIcon

from home_organizer.notify.consent import ConsentStore
from home_organizer.notify.permission import PermissionState

logger = logging.getLogger(__name__)


class QtTrayBackend:
    """托盘通知：授权结果保存在 ConsentStore，重启后不再重复询问。"""

    def __init__(self, consent_store: Optional[ConsentStore] = None):
        self._app = QApplication.instance() or QApplication(sys.argv)
        self._app.setQuitOnLastWindowClosed(False)
        self._consent_store = consent_store or ConsentStore()
        self._tray: Optional[QSystemTrayIcon] = None
        self._prompt_box: Optional[QMessageBox] = None

    def _ensure_tray(self) -> QSystemTrayIcon:
        if self._tray is None:
            icon = self._app.style().standardIcon(QStyle.StandardPixmap.SP_MessageBoxInformation)
            self._tray = QSystemTrayIcon(icon)
            self._tray.setToolTip("家庭助手提醒")
            self._tray.show()
        return self._tray

    def is_supported(self) -> bool:
        return QSystemTrayIcon.isSystemTrayAvailable() and QSystemTrayIcon.supportsMessages()

    def query_permission(self) -> PermissionState:
        return self._consent_store.load()

    async def request_permission(self) -> PermissionState:
        """弹出非模态询问框，等用户点选后返回结果。"""
        loop = asyncio.get_running_loop()
        future: "asyncio.Future[PermissionState]" = loop.create_future()
        box = QMessageBox(
            QMessageBox.Icon.Question,
            "开启提醒",
            "是否允许家庭助手在服药时间和预约前弹出系统通知？",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
        )
        box.setModal(False)

        def on_finished(_code: int) -> None:
            clicked = box.clickedButton()
            granted = clicked is not None and box.standardButton(clicked) == QMessageBox.StandardButton.Yes
            if not future.done():
                future.set_result(PermissionState.GRANTED if granted else PermissionState.DENIED)

        box.finished.connect(on_finished)
        self._prompt_box = box
        box.show()
        try:
            state = await future
        finally:
            self._prompt_box = None
        self._consent_store.save(state)
        return state

    def show(self, title: str, body: str, display_ms: int) -> None:
        self._ensure_tray().showMessage(title, body, QSystemTrayIcon.MessageIcon.Information, display_ms)

    def process_events(self) -> None:
        self._app.processEvents()

    def close(self) -> None:
        if self._tray is not None:
            self._tray.hide()
            self._tray = None
