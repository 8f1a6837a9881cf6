# bucket_routing/report.py
from __future__ import annotations

import logging
from typing import Mapping

from .routing.table import RoutingTable
from .runtime.events import InputSpec

logger = logging.getLogger(__name__)


def _abbrev(s: str, width: int = 96) -> str:
    """Return s truncated with an ellipsis if it exceeds width."""
    return s if len(s) <= width else (s[: max(0, width - 1)] + "…")


def _format_units(units) -> str:
    return ", ".join(str(u) for u in units)


def format_routing_summary(
    *,
    vertex_name: str,
    table: RoutingTable,
    input_specs: Mapping[str, InputSpec],
    color: bool = True,
) -> str:
    """
    Build a human-readable summary of a finalized routing table.
    """
    heading = f"Vertex: {vertex_name}"
    if color:
        heading = f"\033[31m{heading}\033[0m"

    empty = table.num_buckets - len(table)

    lines = [
        heading,
        ("\033[4mBucket Routing\033[0m" if color else "Bucket Routing"),
        f"Primary buckets:            {table.num_buckets}",
        f"Work units:                 {table.task_count}",
        f"Buckets with work units:    {len(table)}",
    ]

    if empty > 0:
        lines.append(f"Buckets without work:       {empty}")

    for bucket, units in table.items():
        lines.append(f"  bucket {bucket:>5} -> {_abbrev(_format_units(units), 80)}")

    for name in sorted(input_specs):
        spec = input_specs[name]
        lines.append(
            f"Input {_abbrev(name, 40)}: {spec.total_events:,} events over {spec.num_tasks} units"
        )
    return "\n".join(lines) + "\n"


def print_routing_summary(**kwargs) -> None:
    """Print the routing summary to stdout (CLI usage)."""
    print(format_routing_summary(**kwargs), end="")


def log_routing_summary(*, color: bool = False, **kwargs) -> None:
    """Log the routing summary at INFO level."""
    summary = format_routing_summary(color=color, **kwargs)
    for line in summary.rstrip("\n").splitlines():
        logger.info(line)
