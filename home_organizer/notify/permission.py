"""通知授权：查询、请求（每次会话最多弹一次）、投递前检查。

状态机: UNSUPPORTED（平台无通知能力，终态）或 UNKNOWN → GRANTED / DENIED。
DENIED 之后不会自动再次询问，只能由用户主动 request_again()。
"""
import asyncio
import logging
from enum import Enum
from typing import Optional, Protocol

from home_organizer.config import NOTIFICATION_DISPLAY_MS
from home_organizer.errors import DeliveryFailure

logger = logging.getLogger(__name__)


class PermissionState(str, Enum):
    """通知授权状态。"""
    UNSUPPORTED = "unsupported"  # 平台不支持
    UNKNOWN = "unknown"          # 尚未决定
    GRANTED = "granted"          # 已允许
    DENIED = "denied"            # 已拒绝


class NotificationBackend(Protocol):
    """平台通知能力（系统托盘、浏览器等）。"""

    def is_supported(self) -> bool:
        ...

    def query_permission(self) -> PermissionState:
        ...

    async def request_permission(self) -> PermissionState:
        ...

    def show(self, title: str, body: str, display_ms: int) -> None:
        ...


class PermissionGate:
    """所有通知投递都要经过这里的授权检查。"""

    def __init__(
        self,
        backend: Optional[NotificationBackend] = None,
        display_ms: int = NOTIFICATION_DISPLAY_MS,
    ):
        self._backend = backend
        self.display_ms = display_ms
        self._supported: Optional[bool] = None
        self._state = PermissionState.UNKNOWN
        self._inflight: Optional["asyncio.Future[PermissionState]"] = None

    def check_support(self) -> bool:
        """平台是否有通知能力。只检测一次。"""
        if self._supported is None:
            self._supported = self._detect_support()
            if self._supported:
                self._state = self._query_backend()
            else:
                self._state = PermissionState.UNSUPPORTED
                logger.info("当前平台不支持系统通知，提醒将只记录不投递")
        return self._supported

    def _detect_support(self) -> bool:
        if self._backend is None:
            return False
        try:
            return bool(self._backend.is_supported())
        except Exception as e:  # noqa: BLE001
            logger.warning("检测通知能力失败，视为不支持: %s", e)
            return False

    def _query_backend(self) -> PermissionState:
        try:
            state = PermissionState(self._backend.query_permission())
        except Exception as e:  # noqa: BLE001
            logger.warning("查询通知授权失败: %s", e)
            return PermissionState.UNKNOWN
        if state == PermissionState.UNSUPPORTED:
            return PermissionState.UNKNOWN
        return state

    def current_state(self) -> PermissionState:
        """当前授权状态。"""
        self.check_support()
        return self._state

    @property
    def request_in_flight(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def request_permission(self) -> PermissionState:
        """
        请求通知授权，等待用户回应（不设超时）。
        已决定时直接返回；正在询问时复用同一次询问，不会叠加弹窗。
        不支持的平台返回 DENIED，不抛异常。
        """
        if not self.check_support():
            return PermissionState.DENIED
        if self._state in (PermissionState.GRANTED, PermissionState.DENIED):
            return self._state
        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.ensure_future(self._prompt())
        return await asyncio.shield(self._inflight)

    async def _prompt(self) -> PermissionState:
        logger.info("请求通知授权")
        try:
            result = PermissionState(await self._backend.request_permission())
        except asyncio.CancelledError:
            raise
        except Exception as e:  # noqa: BLE001
            logger.warning("通知授权请求失败，按拒绝处理: %s", e)
            result = PermissionState.DENIED
        if result not in (PermissionState.GRANTED, PermissionState.DENIED):
            result = PermissionState.DENIED
        self._state = result
        if result == PermissionState.DENIED:
            logger.info("用户拒绝了通知授权")
        else:
            logger.info("用户允许了通知授权")
        return result

    async def request_again(self) -> PermissionState:
        """用户主动重试：已拒绝时重置为未决定并再次询问。"""
        if not self.check_support():
            return PermissionState.DENIED
        if self._state == PermissionState.DENIED and not self.request_in_flight:
            self._state = PermissionState.UNKNOWN
        return await self.request_permission()

    def can_notify(self) -> bool:
        """是否可以投递通知。只读状态，不会触发询问。"""
        return self.check_support() and self._state == PermissionState.GRANTED

    def deliver(self, title: str, body: str) -> bool:
        """投递一条通知，若干秒后自动消失。不可投递或失败时返回 False，不抛异常。"""
        if not self.can_notify():
            logger.debug("未授权或不支持通知，跳过: %s", title)
            return False
        try:
            self._backend.show(title, body, self.display_ms)
        except Exception as e:  # noqa: BLE001
            logger.warning("%s", DeliveryFailure(title, e))
            return False
        return True
