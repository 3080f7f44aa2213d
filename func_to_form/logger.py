from __future__ import annotations

import csv
import io
import json
import time
import uuid
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from . import config


def current_timestamp() -> str:
    ts = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return ts.replace("+00:00", "Z")


def append_jsonl(path: Path, record: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        fh.flush()


def flatten_record_for_csv(record: Dict[str, Any]) -> Dict[str, Any]:
    flat = dict.fromkeys(config.TRACE_COLUMNS, None)
    for key, value in record.items():
        if key in flat:
            flat[key] = value
    fields = flat.get("fields")
    if isinstance(fields, (list, tuple)):
        flat["fields"] = ";".join(str(f) for f in fields)
    return flat


def build_csv_content(records: List[Dict[str, Any]]) -> Optional[str]:
    if not records:
        return None
    columns = list(config.TRACE_COLUMNS)
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=columns, extrasaction="ignore")
    writer.writeheader()
    for rec in records:
        writer.writerow(flatten_record_for_csv(rec))
    return buffer.getvalue()


class TraceLog:
    """Structured event log for one app session.

    Keeps the last ``capacity`` records in memory and, when ``log_dir`` is
    given, appends every record to ``session_<id>.jsonl``.
    """

    def __init__(
        self,
        session_id: Optional[str] = None,
        log_dir: Optional[Path] = None,
        capacity: int = config.TRACE_HISTORY_CAPACITY,
    ):
        self.session_id = session_id or uuid.uuid4().hex[:12]
        self.log_dir = Path(log_dir) if log_dir is not None else None
        self.entries: Deque[Dict[str, Any]] = deque(maxlen=capacity)
        self._seq = 0
        self._t0 = time.monotonic()

    @property
    def path(self) -> Optional[Path]:
        if self.log_dir is None:
            return None
        return self.log_dir / f"session_{self.session_id}.jsonl"

    def record(self, event: str, form: Optional[str] = None, **extras: Any) -> Dict[str, Any]:
        self._seq += 1
        record: Dict[str, Any] = {
            "schema_version": config.SCHEMA_VERSION,
            "session_id": self.session_id,
            "seq": self._seq,
            "timestamp": current_timestamp(),
            "elapsed_time_ms": int((time.monotonic() - self._t0) * 1000),
            "event": event,
            "form": form,
        }
        record.update(extras)
        self.entries.append(record)
        path = self.path
        if path is not None:
            try:
                append_jsonl(path, record)
            except OSError as exc:
                print("[f2f-log]", exc, record)
        return record

    def records(self, event: Optional[str] = None) -> List[Dict[str, Any]]:
        if event is None:
            return list(self.entries)
        return [rec for rec in self.entries if rec["event"] == event]

    def to_csv(self) -> Optional[str]:
        return build_csv_content(self.records())
