"""Processed-event ledgers keyed by (identity, flow context)."""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ValidationError
from rich.console import Console

console = Console()

LEDGER_DIR = Path(".cache")
LEDGER_FILE = LEDGER_DIR / "processed.json"


@runtime_checkable
class ProcessedLedger(Protocol):
    def is_processed(self, identity: str, flow_context: str) -> bool:
        ...

    def mark_processed(self, identity: str, flow_context: str, job_id: Optional[str] = None) -> None:
        ...


class ProcessedEntry(BaseModel):
    identity: str
    flow_context: str
    job_id: Optional[str] = None
    processed_at: float

    class Config:
        extra = "ignore"


class MemoryLedger:
    """In-process ledger for tests and one-shot runs."""

    def __init__(self):
        self._entries: dict[tuple[str, str], ProcessedEntry] = {}

    def is_processed(self, identity: str, flow_context: str) -> bool:
        return (identity, flow_context) in self._entries

    def mark_processed(self, identity: str, flow_context: str, job_id: Optional[str] = None) -> None:
        self._entries[(identity, flow_context)] = ProcessedEntry(
            identity=identity,
            flow_context=flow_context,
            job_id=job_id,
            processed_at=datetime.now().timestamp(),
        )

    def entries(self) -> list[ProcessedEntry]:
        return list(self._entries.values())

    def clear(self, flow_context: Optional[str] = None) -> int:
        """Forget entries (all, or one flow context). Returns how many were dropped."""
        doomed = [k for k in self._entries if flow_context is None or k[1] == flow_context]
        for key in doomed:
            del self._entries[key]
        return len(doomed)

    def stats(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for _, flow in self._entries:
            counts[flow] = counts.get(flow, 0) + 1
        return counts

    def __len__(self) -> int:
        return len(self._entries)


class JsonFileLedger(MemoryLedger):
    """Ledger persisted as JSON, saved on every mark."""

    def __init__(self, path: Optional[Path] = None):
        super().__init__()
        self.path = Path(path) if path else LEDGER_FILE
        self._load()

    def _load(self) -> None:
        if not self.path.exists():
            return
        try:
            with open(self.path) as f:
                data = json.load(f)
            for raw in data.get("entries", []):
                entry = ProcessedEntry.model_validate(raw)
                self._entries[(entry.identity, entry.flow_context)] = entry
            console.print(f"[dim]Loaded {len(self._entries)} processed events from {self.path}[/dim]")
        except (OSError, json.JSONDecodeError, ValidationError, AttributeError) as e:
            console.print(f"[yellow]Failed to load ledger {self.path}: {e}[/yellow]")
            self._entries = {}

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump({
                "updated_at": datetime.now().timestamp(),
                "entries": [entry.model_dump() for entry in self._entries.values()],
            }, f, indent=2)

    def mark_processed(self, identity: str, flow_context: str, job_id: Optional[str] = None) -> None:
        super().mark_processed(identity, flow_context, job_id)
        self._save()

    def clear(self, flow_context: Optional[str] = None) -> int:
        dropped = super().clear(flow_context)
        self._save()
        return dropped
