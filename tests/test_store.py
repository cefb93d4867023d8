"""提醒存储与授权记录测试。"""
import json
import tempfile
from pathlib import Path

from home_organizer.notify.consent import ConsentStore
from home_organizer.notify.permission import PermissionState
from home_organizer.reminders.models import AppointmentReminder, MedicationReminder, ReminderSnapshot
from home_organizer.reminders.store import ReminderStore


def test_store_save_list_remove() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = ReminderStore(base_dir=Path(tmp))
        assert store.list_medications() == []
        store.save_medication(MedicationReminder(id="m1", name="Aspirin", time="08:00"))
        store.save_medication(MedicationReminder(id="m2", name="钙片", dose="1 片", time="20:00"))
        store.save_medication(MedicationReminder(id="m1", name="Aspirin", time="08:30", active=False))
        meds = store.list_medications()
        assert [m.id for m in meds] == ["m1", "m2"]
        assert meds[0].time == "08:30"
        assert meds[0].active is False

        store.save_appointment(AppointmentReminder(id="a1", title="牙医", datetime="2026-03-15T15:00"))
        assert store.remove("a1") is True
        assert store.remove("a1") is False
        assert store.list_appointments() == []


def test_snapshot_reads_fresh_data() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = ReminderStore(base_dir=Path(tmp))
        assert store.load_snapshot() == ReminderSnapshot()
        store.save_medication(MedicationReminder(id="m1", name="Aspirin", time="08:00"))
        snapshot = store.load_snapshot()
        assert [m.name for m in snapshot.medications] == ["Aspirin"]
        assert snapshot.appointments == ()


def test_store_tolerates_bad_files() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        (base / "medications.json").write_text("{not json", encoding="utf-8")
        (base / "appointments.json").write_text(
            json.dumps({"appointments": [{"title": "缺 ID"}, {"id": "a1", "title": "体检", "datetime": "2026-04-01T09:00"}]}),
            encoding="utf-8",
        )
        store = ReminderStore(base_dir=base)
        snapshot = store.load_snapshot()
        assert snapshot.medications == ()
        assert [a.id for a in snapshot.appointments] == ["a1"]


def test_store_tolerates_non_list_collections() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        (base / "medications.json").write_text(json.dumps({"medications": 5}), encoding="utf-8")
        (base / "appointments.json").write_text(
            json.dumps({"appointments": [{"id": "a1", "title": "体检", "datetime": "2026-04-01T09:00"}]}),
            encoding="utf-8",
        )
        store = ReminderStore(base_dir=base)
        snapshot = store.load_snapshot()
        assert snapshot.medications == ()
        assert [a.id for a in snapshot.appointments] == ["a1"]
        assert store.list_medications() == []

        (base / "appointments.json").write_text(json.dumps({"appointments": None}), encoding="utf-8")
        assert store.list_appointments() == []
        store.save_medication(MedicationReminder(id="m1", name="Aspirin", time="08:00"))
        assert [m.id for m in store.list_medications()] == ["m1"]
        assert store.remove("m1") is True


def test_consent_store() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        consent = ConsentStore(base_dir=Path(tmp))
        assert consent.load() == PermissionState.UNKNOWN
        consent.save(PermissionState.DENIED)
        assert consent.load() == PermissionState.DENIED
        (Path(tmp) / "consent.json").write_text('{"state": "maybe"}', encoding="utf-8")
        assert consent.load() == PermissionState.UNKNOWN
