"""系统通知与授权。"""
from home_organizer.notify.consent import ConsentStore
from home_organizer.notify.permission import NotificationBackend, PermissionGate, PermissionState

__all__ = [
    "ConsentStore",
    "NotificationBackend",
    "PermissionGate",
    "PermissionState",
]
