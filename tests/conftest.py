"""测试共用：假的通知后端。"""
import asyncio
from typing import List, Optional, Set, Tuple

import pytest

from home_organizer.notify.permission import PermissionState


class FakeBackend:
    """记录询问次数与显示过的通知；hold 被设置前询问会一直挂起。"""

    def __init__(
        self,
        supported: bool = True,
        state: PermissionState = PermissionState.UNKNOWN,
        answer: PermissionState = PermissionState.GRANTED,
    ):
        self.supported = supported
        self.state = state
        self.answer = answer
        self.prompts = 0
        self.shown: List[Tuple[str, str, int]] = []
        self.fail_titles: Set[str] = set()
        self.fail_prompt = False
        self.hold: Optional[asyncio.Event] = None

    def is_supported(self) -> bool:
        return self.supported

    def query_permission(self) -> PermissionState:
        return self.state

    async def request_permission(self) -> PermissionState:
        self.prompts += 1
        if self.hold is not None:
            await self.hold.wait()
        if self.fail_prompt:
            raise RuntimeError("prompt failed")
        return self.answer

    def show(self, title: str, body: str, display_ms: int) -> None:
        if title in self.fail_titles:
            raise RuntimeError("notification constructor failed")
        self.shown.append((title, body, display_ms))


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def granted_backend() -> FakeBackend:
    return FakeBackend(state=PermissionState.GRANTED)
