import csv

import pytest

import experiments


@pytest.mark.parametrize("generator", sorted(experiments.GENERATOR_REGISTRY))
@pytest.mark.parametrize("pipeline", experiments.PIPELINES)
def test_run_one_is_correct(generator, pipeline):
    data = experiments.generate_dataset(generator, 2048, seed=7)
    row = experiments.run_one(data, pipeline)
    assert row.correctness_ok == 1
    assert row.file_size_bytes == 2048
    assert row.pipeline == pipeline


def test_single_symbol_dataset_compresses_to_nothing():
    row = experiments.run_one(experiments.gen_single_symbol(100), "reloaded")
    assert row.unique_symbols == 1
    assert row.compressed_bytes == 0
    assert row.correctness_ok == 1


def test_unknown_pipeline_and_generator():
    with pytest.raises(ValueError):
        experiments.run_one(b"ab", "adaptive")
    with pytest.raises(ValueError):
        experiments.generate_dataset("nope", 10, 0)


def test_main_writes_csv(tmp_path):
    rc = experiments.main([
        "--outdir", str(tmp_path), "--runs", "2", "--size_kb", "1",
        "--generators", "zipf64,single_symbol", "--no_exp2", "--no_plots",
    ])
    assert rc == 0
    with (tmp_path / "metrics.csv").open(newline="") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 2 * 2 * len(experiments.PIPELINES)
    assert all(r["correctness_ok"] == "1" for r in rows)
    with (tmp_path / "summary.csv").open(newline="") as f:
        summary = list(csv.DictReader(f))
    assert len(summary) == 2 * len(experiments.PIPELINES)
    assert all(float(r["correctness_ok_rate"]) == 1.0 for r in summary)


def test_main_writes_plots(tmp_path):
    rc = experiments.main([
        "--outdir", str(tmp_path), "--runs", "1", "--size_kb", "1", "--generators", "zipf64",
        "--exp2_min_kb", "1", "--exp2_max_kb", "2", "--exp2_generators", "uniform256",
    ])
    assert rc == 0
    assert (tmp_path / "exp1_bits_per_symbol.png").exists()
    assert (tmp_path / "exp2_decode_time_uniform256.png").exists()


def test_main_reports_bad_generator(tmp_path, capsys):
    rc = experiments.main(["--outdir", str(tmp_path), "--generators", "bogus", "--no_exp2", "--no_plots"])
    assert rc == 1
    assert "bogus" in capsys.readouterr().err
