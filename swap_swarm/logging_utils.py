"""
Structured Logging and Metrics
==============================
- JSON line formatter for the rotating log file
- Thread-safe metrics collection for swaps and account creation
- Rich summary table printed when a run finishes
"""

import json
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table


@dataclass
class OperationMetric:
    """Timing and outcome of one swap-swarm operation."""
    operation: str
    wallet: str
    start_time: float
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None
    success: bool = False
    error: Optional[str] = None
    txid: Optional[str] = None
    extra: Optional[Dict[str, Any]] = None

    def finalize(self, success: bool = True, error: Optional[str] = None,
                 txid: Optional[str] = None):
        """Finalize the metric with result."""
        self.end_time = time.time()
        self.duration_ms = (self.end_time - self.start_time) * 1000
        self.success = success
        self.error = error
        self.txid = txid

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.operation,
            'wallet': self.wallet,
            'start_time': datetime.fromtimestamp(self.start_time).isoformat(),
            'end_time': datetime.fromtimestamp(self.end_time).isoformat() if self.end_time else None,
            'duration_ms': round(self.duration_ms, 2) if self.duration_ms is not None else None,
            'success': self.success,
            'error': self.error,
            'txid': self.txid,
            'extra': self.extra or {}
        }


class MetricsCollector:
    """Collects and aggregates operation metrics from all wallet runners."""

    def __init__(self):
        self.metrics: List[OperationMetric] = []
        self._lock = threading.Lock()
        self._operation_counts: Dict[str, Dict[str, int]] = {}
        self._operation_times: Dict[str, List[float]] = {}

    def start(self, operation: str, wallet: str, **extra) -> OperationMetric:
        return OperationMetric(
            operation=operation,
            wallet=wallet,
            start_time=time.time(),
            extra=extra or None
        )

    def add_metric(self, metric: OperationMetric):
        """Add a finalized metric to the collector."""
        with self._lock:
            self.metrics.append(metric)

            op = metric.operation
            if op not in self._operation_counts:
                self._operation_counts[op] = {'total': 0, 'success': 0, 'failure': 0}
            self._operation_counts[op]['total'] += 1
            if metric.success:
                self._operation_counts[op]['success'] += 1
            else:
                self._operation_counts[op]['failure'] += 1

            if metric.duration_ms is not None:
                self._operation_times.setdefault(op, []).append(metric.duration_ms)

    def get_summary(self) -> Dict[str, Any]:
        """Get summary statistics."""
        with self._lock:
            summary = {
                'total_operations': len(self.metrics),
                'operations': {},
                'overall_success_rate': 0,
            }

            total_success = 0
            for op, counts in self._operation_counts.items():
                times = self._operation_times.get(op, [])
                summary['operations'][op] = {
                    'total': counts['total'],
                    'success': counts['success'],
                    'failure': counts['failure'],
                    'success_rate': round(counts['success'] / counts['total'] * 100, 2) if counts['total'] > 0 else 0,
                    'avg_duration_ms': round(sum(times) / len(times), 2) if times else 0,
                    'max_duration_ms': round(max(times), 2) if times else 0
                }
                total_success += counts['success']

            if self.metrics:
                summary['overall_success_rate'] = round(total_success / len(self.metrics) * 100, 2)

            return summary

    def save_to_file(self, filepath: str):
        """Save all metrics to a JSON file."""
        summary = self.get_summary()
        with self._lock:
            data = {
                'summary': summary,
                'metrics': [m.to_dict() for m in self.metrics]
            }
        Path(filepath).parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w') as f:
            json.dump(data, f, indent=2)

    def print_summary(self, console: Optional[Console] = None):
        """Print a formatted metrics summary to console."""
        console = console or Console()
        summary = self.get_summary()

        table = Table(title="Operation Summary")
        table.add_column("Operation", style="cyan")
        table.add_column("Total", justify="right")
        table.add_column("Success", justify="right", style="green")
        table.add_column("Failure", justify="right", style="red")
        table.add_column("Success %", justify="right")
        table.add_column("Avg ms", justify="right")
        table.add_column("Max ms", justify="right")

        for op, stats in summary['operations'].items():
            table.add_row(
                op,
                str(stats['total']),
                str(stats['success']),
                str(stats['failure']),
                f"{stats['success_rate']:.1f}%",
                f"{stats['avg_duration_ms']:.2f}",
                f"{stats['max_duration_ms']:.2f}"
            )

        console.print(Panel(
            f"Total Operations: {summary['total_operations']}\n"
            f"Overall Success Rate: {summary['overall_success_rate']:.1f}%",
            title="Summary",
            border_style="blue"
        ))
        console.print(table)


class JSONFormatter(logging.Formatter):
    """JSON formatter for the log file."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'thread': record.threadName,
            'message': record.getMessage(),
        }

        wallet = getattr(record, 'wallet', None)
        if wallet:
            log_data['wallet'] = wallet

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)
