"""Render the contents of both storage partitions for inspection.

The report lists the raw (key, value) pairs of each partition and a view
of the values with JSON decoded where possible. Nothing here writes to
storage.
"""
from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Tuple

logger = logging.getLogger(__name__)


def safe_parse(value: str) -> Any:
    """JSON-decode `value`, or return it unchanged when it is not JSON."""
    try:
        return json.loads(value)
    except (ValueError, RecursionError):
        return value


@dataclass
class PartitionReport:
    title: str
    label: str
    rows: List[Tuple[str, str]] = field(default_factory=list)
    parsed: Dict[str, Any] = field(default_factory=dict)

    @property
    def heading(self) -> str:
        return f"Storage: {self.title} (path: {self.label})"


@dataclass
class StorageReport:
    global_: PartitionReport
    workspace: PartitionReport

    def partitions(self) -> List[PartitionReport]:
        return [self.global_, self.workspace]


def _partition(title: str, items: Mapping[str, str], label: str) -> PartitionReport:
    report = PartitionReport(title=title, label=label)
    for key, value in items.items():
        report.rows.append((key, value))
        report.parsed[key] = safe_parse(value)
    return report


def build_report(
    global_items: Mapping[str, str],
    workspace_items: Mapping[str, str],
    global_path: str,
    workspace_path: str,
) -> StorageReport:
    return StorageReport(
        global_=_partition("Global", global_items, global_path),
        workspace=_partition("Workspace", workspace_items, workspace_path),
    )


def _table(rows: List[Tuple[str, str]]) -> List[str]:
    header = ("key", "value")
    width = max([len(header[0])] + [len(k) for k, _ in rows])
    lines = [f"{header[0]:<{width}} | {header[1]}", f"{'-' * width}-+-{'-' * len(header[1])}"]
    for key, value in rows:
        lines.append(f"{key:<{width}} | {value}")
    return lines


def format_report(report: StorageReport) -> str:
    lines: List[str] = []
    for part in report.partitions():
        lines.append(part.heading)
        lines.extend("  " + line for line in _table(part.rows))
        lines.append(json.dumps(part.parsed, indent=2, ensure_ascii=False, default=str))
    return "\n".join(lines)


def log_storage(
    global_items: Mapping[str, str],
    workspace_items: Mapping[str, str],
    global_path: str,
    workspace_path: str,
) -> StorageReport:
    report = build_report(global_items, workspace_items, global_path, workspace_path)
    logger.info("%s", format_report(report))
    return report
