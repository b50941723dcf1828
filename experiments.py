"""
Huffman code experiments: direct tree vs saved-and-reloaded code

Runs repeated build -> (save -> load) -> encode -> decode pipelines over
synthetic datasets and checks that every run reproduces its input.

Outputs (in --outdir):
  - metrics.csv     (raw row per run per pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts, unless --no_plots)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --size_kb 256 --generators zipf64,single_symbol
  python experiments.py --no_exp2 --no_plots --verbose
"""

from __future__ import annotations

import argparse
import csv
import io
import random
import statistics
import sys
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from loguru import logger

from bitio import BitInputStream
from errors import HuffmanError
from huffman import freq_table
from huffman_code import HuffmanCode

PIPELINES = ("direct", "reloaded")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)

def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


# Synthetic dataset generators

def _weighted_bytes(size: int, weights: List[float], seed: int) -> bytes:
    rng = random.Random(seed)
    return bytes(rng.choices(range(len(weights)), weights=weights, k=size))

def gen_uniform(size: int, seed: int = 0) -> bytes:
    return _weighted_bytes(size, [1.0] * 256, seed)

def gen_zipf_like(size: int, alphabet: int = 64, s: float = 1.2, seed: int = 0) -> bytes:
    return _weighted_bytes(size, [1.0 / (rank ** s) for rank in range(1, alphabet + 1)], seed)

def gen_skewed(size: int, dominant: int = ord('A'), dom_frac: float = 0.90, seed: int = 0) -> bytes:
    # dominant symbol takes dom_frac of the mass, the rest is spread evenly
    rest = (1.0 - dom_frac) / 255
    return _weighted_bytes(size, [dom_frac if b == dominant else rest for b in range(256)], seed)

def gen_single_symbol(size: int, symbol: int = ord('A')) -> bytes:
    return bytes([symbol]) * size

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], bytes]] = {
    "uniform256": lambda size, seed: gen_uniform(size, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, seed=seed),
    "skewed90": lambda size, seed: gen_skewed(size, seed=seed),
    "single_symbol": lambda size, seed: gen_single_symbol(size),
}

def generate_dataset(name: str, size_bytes: int, seed: int) -> bytes:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}; choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size_bytes, seed)


# Experiment runner

@dataclass
class MetricRow:
    exp_name: str
    dataset_name: str
    file_size_bytes: int
    run_id: int
    pipeline: str  # "direct" or "reloaded"
    unique_symbols: int

    build_ms: float
    save_ms: float
    load_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    code_text_bytes: int
    compressed_bytes: int
    pad_bits: int
    compression_ratio: float
    bits_per_symbol: float
    correctness_ok: int  # 1 or 0


def run_one(data: bytes, pipeline: str) -> MetricRow:
    if pipeline not in PIPELINES:
        raise ValueError(f"pipeline must be one of {PIPELINES}")

    # Huffman build
    t0 = now_ns()
    code = HuffmanCode.from_frequencies(freq_table(data))
    build_ms = ns_to_ms(now_ns() - t0)

    # Persist the code; the reloaded pipeline decodes with the reloaded tree
    t1 = now_ns()
    buf = io.StringIO()
    code.save(buf)
    text = buf.getvalue()
    save_ms = ns_to_ms(now_ns() - t1)

    load_ms = 0.0
    decode_code = code
    if pipeline == "reloaded":
        t2 = now_ns()
        decode_code = HuffmanCode.load(io.StringIO(text))
        load_ms = ns_to_ms(now_ns() - t2)

    t3 = now_ns()
    packed, pad_bits = code.encode(data)
    encode_ms = ns_to_ms(now_ns() - t3)

    # A single-symbol code has no codeword bits, so the symbol count travels alongside
    t4 = now_ns()
    decoded = decode_code.decode(BitInputStream(packed, pad_bits), single_symbol_count=len(data))
    decode_ms = ns_to_ms(now_ns() - t4)

    payload_bits = len(packed) * 8 - pad_bits
    return MetricRow(
        exp_name="",
        dataset_name="",
        file_size_bytes=len(data),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(code.codes),
        build_ms=build_ms,
        save_ms=save_ms,
        load_ms=load_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + save_ms + load_ms + encode_ms + decode_ms,
        code_text_bytes=len(text.encode("ascii")),
        compressed_bytes=len(packed),
        pad_bits=pad_bits,
        compression_ratio=len(packed) / max(1, len(data)),
        bits_per_symbol=payload_bits / max(1, len(data)),
        correctness_ok=1 if decoded == data else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    names = [f.name for f in fields(MetricRow)]
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=names)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in names})


SUMMARY_METRICS = ("compression_ratio", "bits_per_symbol", "build_ms", "save_ms", "load_ms",
                   "encode_ms", "decode_ms", "total_ms")

def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)

def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by exp_name, dataset_name, file_size_bytes, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.exp_name, r.dataset_name, r.file_size_bytes, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = ["exp_name", "dataset_name", "file_size_bytes", "pipeline", "n_runs"]
    for m in SUMMARY_METRICS:
        summary_fields += [f"{m}_mean", f"{m}_stdev"]
    summary_fields.append("correctness_ok_rate")

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            exp_name, dataset_name, size_b, pipeline = key
            out = {
                "exp_name": exp_name,
                "dataset_name": dataset_name,
                "file_size_bytes": size_b,
                "pipeline": pipeline,
                "n_runs": len(items),
            }
            for m in SUMMARY_METRICS:
                out[f"{m}_mean"], out[f"{m}_stdev"] = mean_stdev([getattr(x, m) for x in items])
            out["correctness_ok_rate"] = sum(x.correctness_ok for x in items) / len(items)
            w.writerow(out)


# Plotting

def _mean_by(rows: List[MetricRow], x_attr: str, y_attr: str) -> Dict[str, Tuple[list, list]]:
    """Per pipeline, the sorted x values and the mean y at each."""
    series = {}
    for p in PIPELINES:
        by_x: Dict[object, List[float]] = {}
        for r in rows:
            if r.pipeline == p:
                by_x.setdefault(getattr(r, x_attr), []).append(getattr(r, y_attr))
        xs = sorted(by_x)
        series[p] = (xs, [statistics.mean(by_x[x]) for x in xs])
    return series

def _save_chart(path: Path, title: str, xlabel: str, ylabel: str, series: Dict[str, Tuple[list, list]],
                categorical: bool = False) -> None:
    fig, ax = plt.subplots()
    for label, (xs, ys) in series.items():
        positions = list(range(len(xs))) if categorical else xs
        ax.plot(positions, ys, marker="o", label=label)
        if categorical:
            ax.set_xticks(positions)
            ax.set_xticklabels(xs, rotation=20, ha="right")
    ax.set_title(title)
    if xlabel:
        ax.set_xlabel(xlabel)
    ax.set_ylabel(ylabel)
    ax.legend()
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)

def plot_results(rows: List[MetricRow], outdir: Path) -> None:
    exp1 = [r for r in rows if r.exp_name == "exp1_distribution"]
    if exp1:
        _save_chart(outdir / "exp1_bits_per_symbol.png", "Bits per Symbol by Distribution", "",
                    "Bits per Symbol", _mean_by(exp1, "dataset_name", "bits_per_symbol"), categorical=True)

    exp2 = [r for r in rows if r.exp_name == "exp2_size_scaling"]
    for dist in sorted(set(r.dataset_name for r in exp2)):
        dist_rows = [r for r in exp2 if r.dataset_name == dist]
        _save_chart(outdir / f"exp2_decode_time_{dist}.png", f"Decode Time vs Size ({dist})",
                    "File Size (bytes)", "Decode Time (ms)", _mean_by(dist_rows, "file_size_bytes", "decode_ms"))


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def run_experiments(args: argparse.Namespace) -> List[MetricRow]:
    rows: List[MetricRow] = []

    # Experiment 1: distributions (fixed size)
    if not args.no_exp1:
        fixed_size = max(1, args.size_kb) * 1024
        for gen_name in parse_csv_list(args.generators):
            for run_id in range(1, args.runs + 1):
                data = generate_dataset(gen_name, fixed_size, args.seed + run_id)
                for pipeline in PIPELINES:
                    row = run_one(data, pipeline)
                    row.exp_name = "exp1_distribution"
                    row.dataset_name = gen_name
                    row.run_id = run_id
                    rows.append(row)
            logger.debug("exp1 finished {}", gen_name)

    # Experiment 2: size scaling (powers of 2)
    if not args.no_exp2:
        sizes: List[int] = []
        s = max(1, args.exp2_min_kb) * 1024
        while s <= max(1, args.exp2_max_kb) * 1024:
            sizes.append(s)
            s *= 2

        for gen_name in parse_csv_list(args.exp2_generators):
            for size_b in sizes:
                for run_id in range(1, args.runs + 1):
                    data = generate_dataset(gen_name, size_b, args.seed + 10_000 + size_b + run_id)
                    for pipeline in PIPELINES:
                        row = run_one(data, pipeline)
                        row.exp_name = "exp2_size_scaling"
                        row.dataset_name = gen_name
                        row.run_id = run_id
                        rows.append(row)
            logger.debug("exp2 finished {}", gen_name)

    return rows

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Huffman code build/persist/decode experiments")
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration (>=3 recommended for timing)")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--no_exp1", action="store_true", help="Disable experiment 1 (distribution)")
    ap.add_argument("--no_exp2", action="store_true", help="Disable experiment 2 (size scaling)")
    ap.add_argument("--no_plots", action="store_true", help="Write CSV files only")
    ap.add_argument("--verbose", action="store_true", help="Log debug messages")

    # Experiment 1 controls
    ap.add_argument("--size_kb", type=int, default=256, help="Experiment 1 fixed file size in KB")
    ap.add_argument("--generators", type=str, default="uniform256,zipf64,skewed90,single_symbol",
                    help="Comma-separated dataset generator names for experiment 1")

    # Experiment 2 controls
    ap.add_argument("--exp2_min_kb", type=int, default=4, help="Experiment 2 min size in KB (power-of-two growth)")
    ap.add_argument("--exp2_max_kb", type=int, default=1024, help="Experiment 2 max size in KB")
    ap.add_argument("--exp2_generators", type=str, default="uniform256,zipf64",
                    help="Comma-separated dataset generator names for experiment 2")
    return ap

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)

    try:
        rows = run_experiments(args)
    except (HuffmanError, ValueError) as e:
        print(f"experiment failed: {e}", file=sys.stderr)
        return 1

    # Write raw and summary
    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_results(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0 if ok_rate == 1.0 or not rows else 2


if __name__ == "__main__":
    raise SystemExit(main())
