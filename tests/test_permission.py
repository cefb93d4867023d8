"""通知授权测试。"""
import asyncio

from home_organizer.notify.permission import PermissionGate, PermissionState

from conftest import FakeBackend


def test_unsupported_platform_is_noop() -> None:
    gate = PermissionGate(None)
    assert gate.check_support() is False
    assert gate.current_state() == PermissionState.UNSUPPORTED
    assert gate.can_notify() is False
    assert asyncio.run(gate.request_permission()) == PermissionState.DENIED
    assert asyncio.run(gate.request_again()) == PermissionState.DENIED
    assert gate.deliver("t", "b") is False


def test_backend_without_capability_is_unsupported() -> None:
    backend = FakeBackend(supported=False, state=PermissionState.GRANTED)
    gate = PermissionGate(backend)
    assert gate.current_state() == PermissionState.UNSUPPORTED
    assert gate.can_notify() is False
    assert gate.deliver("t", "b") is False
    assert backend.shown == []


def test_support_check_failure_is_unsupported() -> None:
    class Broken(FakeBackend):
        def is_supported(self) -> bool:
            raise RuntimeError("no bus")

    gate = PermissionGate(Broken())
    assert gate.check_support() is False
    assert gate.current_state() == PermissionState.UNSUPPORTED


def test_already_granted_delivers_without_prompt(granted_backend: FakeBackend) -> None:
    gate = PermissionGate(granted_backend)
    assert gate.can_notify() is True
    assert asyncio.run(gate.request_permission()) == PermissionState.GRANTED
    assert granted_backend.prompts == 0
    assert gate.deliver("吃药", "现在") is True
    assert granted_backend.shown == [("吃药", "现在", 6_000)]


def test_request_prompts_once(backend: FakeBackend) -> None:
    gate = PermissionGate(backend)
    assert gate.current_state() == PermissionState.UNKNOWN
    assert gate.can_notify() is False
    assert asyncio.run(gate.request_permission()) == PermissionState.GRANTED
    assert asyncio.run(gate.request_permission()) == PermissionState.GRANTED
    assert backend.prompts == 1
    assert gate.can_notify() is True


def test_denied_is_sticky_until_request_again() -> None:
    backend = FakeBackend(answer=PermissionState.DENIED)
    gate = PermissionGate(backend)
    assert asyncio.run(gate.request_permission()) == PermissionState.DENIED
    assert asyncio.run(gate.request_permission()) == PermissionState.DENIED
    assert backend.prompts == 1
    assert gate.deliver("t", "b") is False

    backend.answer = PermissionState.GRANTED
    assert asyncio.run(gate.request_again()) == PermissionState.GRANTED
    assert backend.prompts == 2
    assert gate.can_notify() is True


def test_concurrent_requests_share_one_prompt() -> None:
    async def scenario():
        backend = FakeBackend()
        backend.hold = asyncio.Event()
        gate = PermissionGate(backend)
        waiters = [asyncio.ensure_future(gate.request_permission()) for _ in range(3)]
        for _ in range(3):
            await asyncio.sleep(0)
        assert gate.request_in_flight
        assert gate.current_state() == PermissionState.UNKNOWN
        backend.hold.set()
        results = await asyncio.gather(*waiters)
        return backend, results

    backend, results = asyncio.run(scenario())
    assert backend.prompts == 1
    assert results == [PermissionState.GRANTED] * 3


def test_prompt_failure_counts_as_denied(backend: FakeBackend) -> None:
    backend.fail_prompt = True
    gate = PermissionGate(backend)
    assert asyncio.run(gate.request_permission()) == PermissionState.DENIED
    assert gate.current_state() == PermissionState.DENIED


def test_delivery_failure_is_swallowed(granted_backend: FakeBackend) -> None:
    granted_backend.fail_titles.add("boom")
    gate = PermissionGate(granted_backend, display_ms=1_000)
    assert gate.deliver("boom", "x") is False
    assert gate.deliver("ok", "x") is True
    assert granted_backend.shown == [("ok", "x", 1_000)]
