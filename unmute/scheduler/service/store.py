"""YAML store for alarm records.

Architecture:
- YAML file (alarms.yaml): one entry per alarm, user-editable
- In-memory index keyed by alarm id, written back atomically on save()

The store only keeps records; it never touches backend registrations.
The orchestrator cancels an alarm before deleting it.
"""
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from ..models import AlarmRecord

logger = logger.bind(module="scheduler.store")


def _record_to_yaml_dict(record: AlarmRecord) -> dict[str, Any]:
    """Convert an AlarmRecord to a YAML-friendly dict (defaults omitted)."""
    data = record.to_dict()
    d: dict[str, Any] = {
        "id": data["id"],
        "label": data["label"],
        "kind": data["kind"],
        "hour": data["hour"],
        "minute": data["minute"],
    }
    if data["repeat_days"]:
        d["repeat_days"] = data["repeat_days"]
    if data["target_date"]:
        d["target_date"] = data["target_date"]
    if data["future_repeat"] != "never":
        d["future_repeat"] = data["future_repeat"]
    if data["timezone"]:
        d["timezone"] = data["timezone"]
    d["snooze_enabled"] = data["snooze_enabled"]
    d["snooze_duration"] = data["snooze_duration"]
    d["enabled"] = data["enabled"]
    d["created_at_ms"] = data["created_at_ms"]
    d["schedule_seed"] = data["schedule_seed"]
    return d


class AlarmStore:
    """YAML-backed persistence for alarm records.

    Writes are serialized by the single event loop; save() rewrites the
    whole file through a temp file and rename.
    """

    def __init__(self, data_dir: str | Path):
        """Initialize store.

        Args:
            data_dir: Directory to store alarms.yaml
        """
        self.data_dir = Path(data_dir).expanduser()
        self.yaml_path = self.data_dir / "alarms.yaml"
        self._alarms: dict[str, AlarmRecord] = {}

    # ============== Lifecycle ==============

    async def initialize(self) -> None:
        """Create the data directory and load alarms."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._load_yaml()
        logger.info(f"Store initialized: {len(self._alarms)} alarms from {self.yaml_path}")

    # ============== YAML I/O ==============

    def _load_yaml(self) -> None:
        """Load alarm records from the YAML file."""
        self._alarms = {}
        if not self.yaml_path.exists():
            self._write_yaml()
            return

        try:
            with open(self.yaml_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except Exception as e:
            logger.error(f"Failed to load YAML: {e}")
            return

        for entry in data.get("alarms", []):
            try:
                record = AlarmRecord.from_dict(entry)
            except (ValueError, TypeError, AttributeError) as e:
                logger.error(f"Skipping invalid alarm entry {entry!r}: {e}")
                continue
            self._alarms[record.id] = record

    def _write_yaml(self) -> None:
        """Write alarm records to the YAML file (atomic)."""
        records = sorted(self._alarms.values(), key=lambda r: r.created_at_ms)
        data = {"alarms": [_record_to_yaml_dict(r) for r in records]}

        self.data_dir.mkdir(parents=True, exist_ok=True)
        temp_path = self.yaml_path.with_suffix(".tmp")
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write("# Unmute alarms\n")
            f.write("# Changes take effect after restarting the service.\n\n")
            yaml.dump(
                data,
                f,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
            )
        temp_path.replace(self.yaml_path)

    # ============== Record CRUD ==============

    def insert(self, record: AlarmRecord) -> None:
        """Track a new record; persisted on the next save()."""
        self._alarms[record.id] = record

    def save(self) -> None:
        """Persist every tracked record."""
        self._write_yaml()
        logger.debug(f"Saved {len(self._alarms)} alarms to {self.yaml_path}")

    def delete(self, record: AlarmRecord) -> bool:
        """Stop tracking a record; persisted on the next save()."""
        return self._alarms.pop(record.id, None) is not None

    def get(self, alarm_id: str) -> AlarmRecord | None:
        return self._alarms.get(alarm_id)

    def list_alarms(self, include_disabled: bool = True) -> list[AlarmRecord]:
        """Alarms ordered by creation time."""
        alarms = sorted(self._alarms.values(), key=lambda r: r.created_at_ms)
        if not include_disabled:
            alarms = [a for a in alarms if a.enabled]
        return alarms
