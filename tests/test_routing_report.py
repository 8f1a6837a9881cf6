# tests/test_routing_report.py
from bucket_routing.report import (
    format_routing_summary,
    log_routing_summary,
    print_routing_summary,
)
from bucket_routing.routing.table import RoutingTableBuilder
from bucket_routing.runtime.events import InputSpec


def _demo_kwargs(**overrides):
    builder = RoutingTableBuilder(num_buckets=4)
    builder.assign(0, ["g0", "g1"])
    builder.assign(2, ["g2"])
    kwargs = dict(
        vertex_name="Map 1",
        table=builder.build(),
        input_specs={
            "big": InputSpec((1000, 1, 1)),
            "small": InputSpec((2, 2, 3)),
        },
    )
    kwargs.update(overrides)
    return kwargs


def test_format_routing_summary_no_color_contains_key_fields():
    s = format_routing_summary(color=False, **_demo_kwargs())
    assert s.startswith("Vertex: Map 1\n")
    assert "Primary buckets:            4" in s
    assert "Work units:                 3" in s
    assert "Buckets with work units:    2" in s
    assert "Buckets without work:       2" in s
    assert "  bucket     0 -> 0, 1" in s
    assert "  bucket     2 -> 2" in s
    assert "Input big: 1,002 events over 3 units" in s
    assert "Input small: 7 events over 3 units" in s
    assert "\x1b[" not in s


def test_format_routing_summary_omits_empty_line_when_all_buckets_routed():
    builder = RoutingTableBuilder(num_buckets=1)
    builder.assign(0, ["g0"])
    s = format_routing_summary(color=False, **_demo_kwargs(table=builder.build()))
    assert "Buckets without work" not in s


def test_format_routing_summary_color_includes_ansi():
    s = format_routing_summary(color=True, **_demo_kwargs())
    assert "\x1b[31m" in s
    assert "\x1b[4m" in s


def test_format_routing_summary_truncates_long_input_names():
    long_name = "input_" + ("a" * 200)
    s = format_routing_summary(
        color=False, **_demo_kwargs(input_specs={long_name: InputSpec((1,))})
    )
    assert "…" in s
    assert long_name not in s


def test_print_routing_summary_writes_stdout(capsys):
    print_routing_summary(color=False, **_demo_kwargs())
    out = capsys.readouterr().out
    assert "Bucket Routing" in out


def test_log_routing_summary_emits_info(caplog):
    caplog.set_level("INFO")
    log_routing_summary(**_demo_kwargs())
    messages = [rec.getMessage() for rec in caplog.records]
    assert "Bucket Routing" in messages
    assert any("Work units:                 3" in m for m in messages)
    assert all(rec.levelname == "INFO" for rec in caplog.records)
