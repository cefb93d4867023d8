"""通知授权结果的本地保存（桌面托盘后端用）。"""
import json
import logging
from pathlib import Path
from typing import Optional

from home_organizer.config import NOTIFY_DATA_DIR, ensure_dirs
from home_organizer.notify.permission import PermissionState

logger = logging.getLogger(__name__)


class ConsentStore:
    """保存用户是否允许桌面通知。未保存过视为未决定。"""
    _filename = "consent.json"

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or NOTIFY_DATA_DIR
        ensure_dirs()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self) -> Path:
        return self.base_dir / self._filename

    def load(self) -> PermissionState:
        if not self._path().exists():
            return PermissionState.UNKNOWN
        try:
            with open(self._path(), "r", encoding="utf-8") as f:
                data = json.load(f)
            state = PermissionState(data.get("state"))
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("通知授权记录无效，按未决定处理: %s", e)
            return PermissionState.UNKNOWN
        if state not in (PermissionState.GRANTED, PermissionState.DENIED):
            return PermissionState.UNKNOWN
        return state

    def save(self, state: PermissionState) -> None:
        with open(self._path(), "w", encoding="utf-8") as f:
            json.dump({"state": PermissionState(state).value}, f, indent=2, ensure_ascii=False)
