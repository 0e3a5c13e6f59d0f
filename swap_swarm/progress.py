"""
Progress Reporting
==================
Wallet runners never print. They publish ProgressEvents to one shared channel
and the orchestrator thread renders them in arrival order.
"""

import queue
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


INFO = "info"
SUCCESS = "success"
WARNING = "warning"
ERROR = "error"

LEVELS = (INFO, SUCCESS, WARNING, ERROR)


@dataclass
class ProgressEvent:
    """A single progress message from one wallet."""
    wallet: str
    level: str
    message: str
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    def __post_init__(self):
        if self.level not in LEVELS:
            raise ValueError(f"Unknown progress level: {self.level}")


@dataclass
class RunnerResult:
    """Outcome of one wallet runner. exit_code is 0 on completion, 1 on a fatal error."""
    wallet: str
    exit_code: int = 0
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProgressChannel:
    """Multiple-producer, single-consumer queue of ProgressEvents."""

    def __init__(self):
        self._queue: "queue.Queue[ProgressEvent]" = queue.Queue()

    def publish(self, event: ProgressEvent):
        self._queue.put(event)

    def get(self, timeout: Optional[float] = None) -> Optional[ProgressEvent]:
        """Next event, or None if nothing arrived within ``timeout`` seconds."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def empty(self) -> bool:
        return self._queue.empty()


class WalletReporter:
    """Publishes progress for one wallet address."""

    def __init__(self, wallet: str, channel: ProgressChannel):
        self.wallet = wallet
        self.channel = channel

    def _publish(self, level: str, message: str):
        self.channel.publish(ProgressEvent(self.wallet, level, message))

    def info(self, message: str):
        self._publish(INFO, message)

    def success(self, message: str):
        self._publish(SUCCESS, message)

    def warning(self, message: str):
        self._publish(WARNING, message)

    def error(self, message: str):
        self._publish(ERROR, message)
