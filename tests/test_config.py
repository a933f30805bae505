# tests/test_config.py
from __future__ import annotations

import dataclasses

import pytest

from scatterkit.config import PipelineConfig, default_workers
from scatterkit.types import FailurePolicy


def test_defaults():
    cfg = PipelineConfig()
    assert cfg.n_pieces == 4
    assert cfg.record_format == "fastq"
    assert cfg.failure_policy is FailurePolicy.ABORT_GROUP
    assert cfg.num_workers == default_workers()
    assert cfg.executor_name == "processes"
    assert 1 <= default_workers() <= 32


def test_policy_string_is_normalised():
    cfg = PipelineConfig(failure_policy="skip-partial")
    assert cfg.failure_policy is FailurePolicy.SKIP_PARTIAL
    assert PipelineConfig(workers=3, use_threads=True).num_workers == 3


def test_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        PipelineConfig().n_pieces = 2


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(n_pieces=0),
        dict(record_format="bam"),
        dict(workers=0),
        dict(max_units_in_flight=0),
        dict(failure_policy="retry"),
    ],
)
def test_invalid_values_raise(kwargs):
    with pytest.raises(ValueError):
        PipelineConfig(**kwargs)
