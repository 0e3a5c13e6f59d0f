"""
Swap History
============
Every confirmed swap is appended to a JSON array file shared by all wallet
runners. Appends are serialized with a process-wide lock and written through a
temporary file, so concurrent runners never drop each other's records.
"""

import json
import os
import tempfile
import threading
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .utils import logger


_WRITE_LOCK = threading.Lock()


@dataclass
class SwapRecord:
    """One confirmed swap."""
    input_mint: str
    output_mint: str
    amount: int
    txid: str
    wallet: str
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).isoformat()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SwapRecord":
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


class SwapHistory:
    """Append-only swap log stored as a JSON array."""

    def __init__(self, path: str = "./swap_history.json"):
        self.path = Path(path)

    def load(self) -> List[SwapRecord]:
        """Read all records; a missing or unreadable file is an empty history."""
        return [SwapRecord.from_dict(item) for item in self._read_raw()]

    def _read_raw(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read swap history {self.path}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning(f"Swap history {self.path} is not a JSON array, starting fresh")
            return []
        return [item for item in data if isinstance(item, dict)]

    def append(self, record: SwapRecord):
        """Append one record and rewrite the file atomically."""
        with _WRITE_LOCK:
            data = self._read_raw()
            data.append(record.to_dict())
            self._write(data)

    def _write(self, data: List[Dict[str, Any]]):
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, 'w') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def for_wallet(self, wallet: str) -> List[SwapRecord]:
        return [r for r in self.load() if r.wallet == wallet]

    def count_for(self, wallet: str) -> int:
        return len(self.for_wallet(wallet))

    def summary(self, wallet: Optional[str] = None) -> Dict[str, Dict[str, Any]]:
        """Swap count and last swap time per wallet."""
        stats: Dict[str, Dict[str, Any]] = {}
        for record in self.load():
            if wallet and record.wallet != wallet:
                continue
            entry = stats.setdefault(record.wallet, {"swaps": 0, "last_swap": ""})
            entry["swaps"] += 1
            entry["last_swap"] = max(entry["last_swap"], record.timestamp)
        return stats
