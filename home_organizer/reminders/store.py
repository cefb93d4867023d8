"""用药与预约的本地 JSON 存储，作为调度器的快照来源。"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from home_organizer.config import REMINDERS_DATA_DIR, ensure_dirs
from home_organizer.reminders.models import AppointmentReminder, MedicationReminder, ReminderSnapshot

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


class ReminderStore:
    """提醒存储：medications.json / appointments.json。每次读取都从磁盘取最新数据。"""
    _medications_file = "medications.json"
    _appointments_file = "appointments.json"

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or REMINDERS_DATA_DIR
        ensure_dirs()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, filename: str) -> Path:
        return self.base_dir / filename

    def _load_items(self, filename: str, key: str) -> List[Dict[str, Any]]:
        path = self._path(filename)
        if not path.exists():
            return []
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("读取 %s 失败，按空列表处理: %s", path, e)
            return []
        items = data.get(key, []) if isinstance(data, dict) else []
        if not isinstance(items, list):
            logger.warning("%s 中的 %s 不是列表，按空列表处理", path, key)
            return []
        return [item for item in items if isinstance(item, dict)]

    def _save_items(self, filename: str, key: str, items: List[BaseModel]) -> None:
        ensure_dirs()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        data = {key: [item.model_dump(mode="json") for item in items]}
        with open(self._path(filename), "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)

    def _list(self, model: Type[_M], filename: str, key: str) -> List[_M]:
        out = []
        for item in self._load_items(filename, key):
            try:
                out.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning("跳过无效记录 %s: %s", filename, e.errors(include_url=False))
        return out

    def list_medications(self) -> List[MedicationReminder]:
        """所有用药提醒。"""
        return self._list(MedicationReminder, self._medications_file, "medications")

    def list_appointments(self) -> List[AppointmentReminder]:
        """所有预约。"""
        return self._list(AppointmentReminder, self._appointments_file, "appointments")

    def save_medication(self, medication: MedicationReminder) -> None:
        """保存用药（同 ID 覆盖，新条目排在最前）。"""
        items = [m for m in self.list_medications() if m.id != medication.id]
        self._save_items(self._medications_file, "medications", [medication, *items])

    def save_appointment(self, appointment: AppointmentReminder) -> None:
        """保存预约（同 ID 覆盖，新条目排在最前）。"""
        items = [a for a in self.list_appointments() if a.id != appointment.id]
        self._save_items(self._appointments_file, "appointments", [appointment, *items])

    def remove(self, entry_id: str) -> bool:
        """按 ID 删除用药或预约，返回是否删除了条目。"""
        removed = False
        meds = self.list_medications()
        kept_meds = [m for m in meds if m.id != entry_id]
        if len(kept_meds) != len(meds):
            self._save_items(self._medications_file, "medications", kept_meds)
            removed = True
        appts = self.list_appointments()
        kept_appts = [a for a in appts if a.id != entry_id]
        if len(kept_appts) != len(appts):
            self._save_items(self._appointments_file, "appointments", kept_appts)
            removed = True
        return removed

    def load_snapshot(self) -> ReminderSnapshot:
        """读取最新快照（不缓存）。"""
        return ReminderSnapshot.from_raw(
            {
                "medications": self._load_items(self._medications_file, "medications"),
                "appointments": self._load_items(self._appointments_file, "appointments"),
            }
        )
