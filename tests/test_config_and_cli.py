from __future__ import annotations

import json

import pytest

from dasbench import cli
from dasbench.core.config import Settings, get_settings
from dasbench.sampling.aggregator import FAILED_SAMPLE_LATENCY_NS
from dasbench.store import InMemoryLeafStore, build_leaf_store


@pytest.mark.parametrize("leaves", [3, 12, 512, 0])
def test_unsupported_leaf_count_is_a_config_error(leaves):
    with pytest.raises(ValueError, match="power of two"):
        Settings(num_leaves=leaves, num_samples=1)


def test_more_samples_than_leaves_is_a_config_error():
    with pytest.raises(ValueError, match="exceeds"):
        Settings(num_leaves=4, num_samples=5)


def test_settings_read_prefixed_environment(monkeypatch):
    monkeypatch.setenv("DAS_NUM_LEAVES", "64")
    monkeypatch.setenv("DAS_NUM_SAMPLES", "20")
    monkeypatch.setenv("DAS_STORE_BACKEND", "memory")
    get_settings.cache_clear()

    settings = get_settings()
    assert settings.num_leaves == 64
    assert settings.num_samples == 20
    assert settings.store_backend == "memory"


def _write_cids(tmp_path, cids):
    path = tmp_path / "cids.json"
    path.write_text(json.dumps(cids))
    return path


def test_cli_memory_run_writes_both_series(tmp_path):
    cids_file = _write_cids(tmp_path, ["rootA", "rootB"])
    out_dir = tmp_path / "out"

    code = cli.main(
        [
            "sample",
            "--store",
            "memory",
            "--cids-file",
            str(cids_file),
            "--num-leaves",
            "8",
            "--num-samples",
            "3",
            "--out-dir",
            str(out_dir),
            "--initial-delay",
            "0",
            "--round-pause",
            "0",
            "--seed",
            "1",
        ]
    )

    assert code == 0
    samples = json.loads((out_dir / "sample_latencies.json").read_text())
    rounds = json.loads((out_dir / "da_proof_latencies.json").read_text())
    assert len(samples) == 6
    assert len(rounds) == 2
    assert FAILED_SAMPLE_LATENCY_NS not in samples


def test_cli_rejects_bad_leaf_count_before_sampling(tmp_path, capsys):
    cids_file = _write_cids(tmp_path, ["rootA"])
    out_dir = tmp_path / "out"

    code = cli.main(["sample", "--store", "memory", "--cids-file", str(cids_file), "--num-leaves", "12", "--out-dir", str(out_dir)])

    assert code == 1
    assert "power of two" in capsys.readouterr().err
    assert not out_dir.exists()


def test_cli_reports_unreadable_cids_file(tmp_path, capsys):
    code = cli.main(
        [
            "sample",
            "--store",
            "memory",
            "--cids-file",
            str(tmp_path / "missing.json"),
            "--initial-delay",
            "0",
        ]
    )

    assert code == 1
    assert "error while reading CIDs file" in capsys.readouterr().err


def test_cli_blocked_out_dir_fails_before_any_fetch(tmp_path, capsys, monkeypatch):
    cids_file = _write_cids(tmp_path, ["r1", "r2", "r3"])
    blocker = tmp_path / "blocker"
    blocker.write_text("x")
    stores: list[InMemoryLeafStore] = []

    def tracking_store(settings, roots=()):
        store = build_leaf_store(settings, roots=roots)
        stores.append(store)
        return store

    monkeypatch.setattr(cli, "build_leaf_store", tracking_store)

    code = cli.main(
        [
            "sample",
            "--store",
            "memory",
            "--cids-file",
            str(cids_file),
            "--num-leaves",
            "8",
            "--num-samples",
            "2",
            "--out-dir",
            str(blocker / "sub"),
            "--initial-delay",
            "0",
            "--round-pause",
            "0",
        ]
    )

    assert code == 1
    assert "error while creating output directory" in capsys.readouterr().err
    assert stores == []


def test_cli_flags_override_environment_before_validation(tmp_path, monkeypatch):
    monkeypatch.setenv("DAS_NUM_SAMPLES", "40")
    cids_file = _write_cids(tmp_path, ["rootA"])
    out_dir = tmp_path / "out"

    code = cli.main(
        [
            "sample",
            "--store",
            "memory",
            "--cids-file",
            str(cids_file),
            "--num-leaves",
            "64",
            "--out-dir",
            str(out_dir),
            "--initial-delay",
            "0",
        ]
    )

    assert code == 0
    assert len(json.loads((out_dir / "sample_latencies.json").read_text())) == 40


def test_settings_carry_only_sampling_fields():
    assert "app_name" not in Settings.model_fields
