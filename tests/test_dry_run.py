# tests/test_dry_run.py
import json
import logging

import pytest

from bucket_routing import dry_run
from bucket_routing.config import VertexType
from bucket_routing.errors import MissingBucketMapping
from bucket_routing.logger import remove_handlers
from bucket_routing.runtime.events import DataMovementType


def _manifest():
    return {
        "vertex": "Merge Join 1",
        "num_buckets": 6,
        "primary_input": "big",
        "vertex_type": "MULTI_INPUT_INITIALIZED_EDGES",
        "input_bucket_counts": {"small": 4},
        "edges": {
            "Map 2": {"data_movement": "custom",
                      "edge_manager": "bucket_routing.BucketRoutingEdge"},
            "Reducer 3": {"data_movement": "scatter_gather"},
        },
        "inputs": [
            {"name": "small",
             "splits": [{"path": f"/small/{s:06d}_0", "length": 50, "bucket_id": s}
                        for s in range(4)]},
            {"name": "big", "num_tasks": 6,
             "splits": [{"path": f"/big/{b:06d}_0", "length": 100,
                         "hosts": ["h1"], "bucket_id": b}
                        for b in range(6)]},
        ],
    }


@pytest.fixture(autouse=True)
def restore_root_logger():
    level = logging.getLogger().level
    yield
    remove_handlers()
    logging.getLogger().setLevel(level)


@pytest.fixture
def manifest_path(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_text(json.dumps(_manifest()), encoding="utf-8")
    return path


def test_config_from_manifest():
    config = dry_run.config_from_manifest(_manifest())
    assert config.num_buckets == 6
    assert config.primary_input_name == "big"
    assert config.vertex_type is VertexType.MULTI_INPUT_INITIALIZED_EDGES
    assert config.num_inputs == 2
    assert config.input_to_bucket_map == {"small": 4}
    assert config.grouping_waves == 1.7
    assert config.min_group_bytes == 50 * 1024 * 1024


def test_manifest_min_group_bytes_reaches_the_grouper():
    manifest = _manifest()
    manifest["min_group_bytes"] = 0
    manifest["inputs"][1]["splits"].append(
        {"path": "/big/000000_1", "length": 100, "bucket_id": 0}
    )

    result = dry_run.run_dry_run(manifest)
    assert result.coordinator.grouper.min_group_bytes == 0
    assert result.coordinator.config.min_group_bytes == 0
    assert len(result.context.events_for_task("big", 0)) == 2


def test_run_dry_run_finalizes_routing():
    result = dry_run.run_dry_run(_manifest())
    ctx = result.context

    assert ctx.parallelism.task_count == 6
    assert list(ctx.parallelism.edge_managers) == ["Map 2"]
    assert ctx.parallelism.input_specs["small"].per_task_counts == (2,) * 6
    assert result.coordinator.configured_task_hints == {"big": 6}
    assert [t.index for t in ctx.scheduled] == list(range(6))
    assert ctx.edges["Reducer 3"].data_movement is DataMovementType.SCATTER_GATHER


def test_run_dry_run_propagates_routing_errors():
    manifest = _manifest()
    manifest["input_bucket_counts"] = {}
    with pytest.raises(MissingBucketMapping):
        dry_run.run_dry_run(manifest)


def test_main_prints_summary(manifest_path, monkeypatch, capsys):
    titles = []
    monkeypatch.setattr(dry_run, "setproctitle", titles.append)

    assert dry_run.main([str(manifest_path), "--no-color"]) == 0

    out = capsys.readouterr().out
    assert titles == ["bkr:dry-run"]
    assert "Vertex: Merge Join 1" in out
    assert "Work units:                 6" in out
    assert "Input big: 6 events over 6 units" in out
    assert "Input small: 12 events over 6 units" in out
    assert "\x1b[" not in out


def test_main_logs_to_a_file_named_after_the_vertex(manifest_path, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(dry_run, "setproctitle", lambda title: None)
    log_dir = tmp_path / "logs"

    assert dry_run.main([str(manifest_path), "--no-color", "--log-dir", str(log_dir)]) == 0

    (log_file,) = log_dir.glob("Merge_Join_1_*.log")
    text = log_file.read_text(encoding="utf-8")
    assert "Dry run over 2 inputs, 6 buckets" in text
    assert "Setting vertex parallelism" in text
    assert "Vertex: Merge Join 1" in capsys.readouterr().out
