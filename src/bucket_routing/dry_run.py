# bucket_routing/dry_run.py
"""Drive a coordinator over a JSON split manifest without a cluster.

Manifest layout::

    {
      "vertex": "join",
      "num_buckets": 4,
      "primary_input": "big",            # "" for a single-input vertex
      "vertex_type": "MULTI_INPUT_INITIALIZED_EDGES",
      "consistent_splits": false,
      "input_bucket_counts": {"small": 2},
      "grouping_waves": 1.7,
      "smb_waves": 0.5,
      "min_group_bytes": 52428800,       # 0 keeps small splits apart
      "total_memory_mb": 4096,
      "task_memory_mb": 1024,
      "edges": {"small_src": {"data_movement": "custom",
                              "edge_manager": "bucket_routing.BucketRoutingEdge"}},
      "inputs": [
        {"name": "big", "num_tasks": 2,
         "splits": [{"path": "/t/000000_0", "start": 0, "length": 100,
                     "hosts": ["h1"], "bucket_id": 0}]}
      ]
    }

Inputs report in listed order; every listed input counts toward parallelism.
"""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from setproctitle import setproctitle

from .config import CoordinatorConfig, VertexType
from .coordinator.vertex import VertexCoordinator
from .logger import configure_logging
from .report import print_routing_summary
from .runtime.events import (
    ConfigureTasksEvent,
    DataInformationEvent,
    DataMovementType,
    EdgeProperty,
    InputDescriptor,
)
from .runtime.local import LocalVertexContext
from .splits.codec import encode_split
from .splits.grouping import DEFAULT_GROUPING_WAVES, DEFAULT_MIN_GROUP_BYTES, DEFAULT_SMB_WAVES
from .splits.types import FileSplit

logger = logging.getLogger(__name__)

__all__ = ["DryRunResult", "load_manifest", "config_from_manifest", "run_dry_run", "main"]


@dataclass
class DryRunResult:
    context: LocalVertexContext
    coordinator: VertexCoordinator


def load_manifest(path: str | Path) -> Dict[str, Any]:
    with open(Path(path).expanduser(), "r", encoding="utf-8") as f:
        return json.load(f)


def config_from_manifest(manifest: Dict[str, Any]) -> CoordinatorConfig:
    vertex_type = manifest.get("vertex_type", VertexType.INITIALIZED_EDGES.name)
    return CoordinatorConfig(
        num_buckets=int(manifest["num_buckets"]),
        primary_input_name=manifest.get("primary_input", ""),
        vertex_type=VertexType[vertex_type],
        consistent_splits=bool(manifest.get("consistent_splits", False)),
        num_inputs=len(manifest["inputs"]),
        input_to_bucket_map=manifest.get("input_bucket_counts"),
        grouping_waves=float(manifest.get("grouping_waves", DEFAULT_GROUPING_WAVES)),
        smb_waves=float(manifest.get("smb_waves", DEFAULT_SMB_WAVES)),
        min_group_bytes=int(manifest.get("min_group_bytes", DEFAULT_MIN_GROUP_BYTES)),
    )


def _edges_from_manifest(manifest: Dict[str, Any]) -> Dict[str, EdgeProperty]:
    edges = {}
    for source, entry in manifest.get("edges", {}).items():
        edges[source] = EdgeProperty(
            data_movement=DataMovementType(entry.get("data_movement", "custom")),
            edge_manager_name=entry.get("edge_manager"),
        )
    return edges


def _events_for_input(entry: Dict[str, Any]) -> List[object]:
    events: List[object] = []
    if "num_tasks" in entry:
        events.append(ConfigureTasksEvent(num_tasks=int(entry["num_tasks"])))
    for i, raw in enumerate(entry.get("splits", [])):
        split = FileSplit(
            path=raw["path"],
            start=int(raw.get("start", 0)),
            length=int(raw.get("length", 0)),
            hosts=tuple(raw.get("hosts", ())),
            bucket_id=raw.get("bucket_id"),
        )
        events.append(DataInformationEvent.with_payload(i, encode_split(split)))
    return events


def run_dry_run(manifest: Dict[str, Any]) -> DryRunResult:
    """Report every manifest input to a fresh coordinator and return what it published."""
    config = config_from_manifest(manifest)
    logger.info("Dry run over %d inputs, %d buckets", config.num_inputs, config.num_buckets)
    context = LocalVertexContext(
        user_payload=config.to_payload(),
        vertex_name=manifest.get("vertex", "join"),
        total_memory_mb=int(manifest.get("total_memory_mb", 4096)),
        task_memory_mb=int(manifest.get("task_memory_mb", 1024)),
        edges=_edges_from_manifest(manifest),
    )
    coordinator = VertexCoordinator(context)
    coordinator.initialize()

    for entry in manifest["inputs"]:
        descriptor = InputDescriptor(grouping_waves=entry.get("grouping_waves"))
        coordinator.on_root_vertex_initialized(entry["name"], descriptor, _events_for_input(entry))

    coordinator.on_vertex_started()
    return DryRunResult(context=context, coordinator=coordinator)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Compute bucket routing for a split manifest without a cluster."
    )
    parser.add_argument("manifest", help="Path to the JSON split manifest")
    parser.add_argument("--log-dir", default=None, help="Write a log file under this directory")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    parser.add_argument("--no-color", action="store_true", help="Plain summary output")
    args = parser.parse_args(argv)

    setproctitle("bkr:dry-run")

    manifest = load_manifest(args.manifest)
    configure_logging(
        run_name=manifest.get("vertex", "routing_dry_run"),
        log_dir=args.log_dir,
        verbose=args.verbose,
    )

    result = run_dry_run(manifest)
    print_routing_summary(
        vertex_name=result.context.vertex_name,
        table=result.coordinator.routing_table,
        input_specs=result.coordinator.input_specs,
        color=not args.no_color,
    )
    return 0
