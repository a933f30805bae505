# tests/pipeline/test_report.py
from datetime import datetime, timedelta

from scatterkit.config import PipelineConfig
from scatterkit.pipeline.dispatcher import RunStats
from scatterkit.pipeline.report import (
    format_completion,
    format_run_summary,
    log_run_summary,
    print_completion,
    print_run_summary,
)


def _demo_kwargs():
    return dict(
        output_dir="/tmp/out",
        inputs_available=["/data/S1.fastq.gz", "/data/S2.fastq.gz", "/data/S3.fastq.gz"],
        inputs_to_use=["/data/S1.fastq.gz", "/data/S3.fastq.gz"],
        config=PipelineConfig(
            n_pieces=16, workers=8, max_units_in_flight=1000,
            failure_policy="skip-partial",
        ),
        transform_name="revcomp",
        start_time=datetime(2025, 8, 18, 12, 34, 56),
        overwrite=False,
        inputs_to_skip=1,
    )


def test_format_run_summary_no_color_contains_key_fields():
    s = format_run_summary(color=False, **_demo_kwargs())
    assert "Start Time: 2025-08-18 12:34:56" in s
    assert "Output directory:           /tmp/out" in s
    assert "Total inputs available:     3" in s
    assert "Inputs to process:          2" in s
    assert "First input:                /data/S1.fastq.gz" in s
    assert "Last input:                 /data/S3.fastq.gz" in s
    assert "Record format:              fastq" in s
    assert "Pieces per unit (target):   16" in s
    assert "Transform:                  revcomp" in s
    assert "Failure policy:             skip-partial" in s
    assert "Overwrite mode:             False" in s
    assert "Inputs to skip (done):      1" in s
    assert "Units in flight (max):      1,000" in s
    assert "Worker processes/threads:   8 (processes)" in s
    assert "\x1b[" not in s


def test_format_run_summary_color_and_fail_fast():
    kw = _demo_kwargs() | {"config": PipelineConfig(fail_fast=True, use_threads=True, workers=2)}
    s = format_run_summary(color=True, **kw)
    assert "\x1b[31m" in s
    assert "\x1b[4m" in s
    assert "abort-group (fail fast)" in s
    assert "(threads)" in s
    assert "Units in flight" not in s


def test_format_run_summary_truncates_long_paths():
    long_dir = "/scratch/" + ("a" * 200)
    s = format_run_summary(color=False, **_demo_kwargs() | {"output_dir": long_dir})
    assert "…" in s
    assert long_dir not in s


def test_log_run_summary_emits_info(caplog):
    caplog.set_level("INFO")
    log_run_summary(**_demo_kwargs())
    messages = [rec.getMessage() for rec in caplog.records]
    assert any("Scatter/Gather Configuration" in m for m in messages)
    assert any("Output directory:           /tmp/out" in m for m in messages)


def test_print_run_summary_writes_to_stdout(capfd):
    print_run_summary(color=False, **_demo_kwargs())
    out, _ = capfd.readouterr()
    assert "Inputs to process:          2" in out


def test_format_completion_counts():
    stats = RunStats(
        units_submitted=4, pieces_submitted=40, pieces_processed=38,
        pieces_failed=2, merged=3, partial=1, failed_keys=["S9"],
    )
    start = datetime(2025, 1, 1, 0, 0, 0)
    s = format_completion(stats, start, start + timedelta(minutes=3), color=False)
    assert "Processing completed!" in s
    assert "Merged units: 3" in s
    assert "Partial units: 1" in s
    assert "Failed units: 1" in s
    assert "Failed keys: S9" in s
    assert "Pieces processed: 38 of 40" in s
    assert "Time per unit: 0:01:00" in s
    assert "Units per hour: 60.0" in s


def test_print_completion_nothing_merged(capsys):
    start = datetime(2025, 1, 1)
    print_completion(RunStats(), start, start + timedelta(seconds=5), color=False)
    out, _ = capsys.readouterr()
    assert "Merged units: 0" in out
    assert "Units per hour: 0.0" in out
    assert "Failed" not in out
