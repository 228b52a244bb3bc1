"""
Codec experiments: frequency-built vs table-rebuilt vs restored Huffman codecs

Runs synthetic texts through three pipelines, with repeated runs:
  - frequency   codec built from the text's symbol frequencies
  - code_table  codec rebuilt from the frequency codec's symbol -> code table
  - restored    codec restored from a save file written by the frequency codec

Outputs (in --outdir):
  - metrics.csv     (raw row per run per pipeline)
  - summary.csv     (grouped mean/stdev)
  - *.png           (charts)

How to run:
  python experiments.py --outdir results --runs 5
  python experiments.py --outdir results --runs 3 --size 20000 --generators zipf64,english_like
"""

from __future__ import annotations

import argparse
import csv
import random
import statistics
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Tuple

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from codec import HuffmanCodec
from huffman import entropy, frequency_table

PIPELINES = ("frequency", "code_table", "restored")


# Utilities

def now_ns() -> int:
    return time.perf_counter_ns()

def ns_to_ms(ns: int) -> float:
    return ns / 1_000_000.0

def safe_mkdir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


# Synthetic text generators

def _sample(rng: random.Random, chars: str, weights: List[float], size: int) -> str:
    return "".join(rng.choices(chars, weights=weights, k=size))

def gen_uniform(size: int, alphabet: int = 64, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = "".join(chr(ord("!") + i) for i in range(alphabet))
    return _sample(rng, chars, [1.0] * alphabet, size)

def gen_repetitive(size: int, dominant: str = "A", dom_frac: float = 0.90, seed: int = 0) -> str:
    rng = random.Random(seed)
    others = "".join(chr(c) for c in range(ord("!"), ord("~") + 1) if chr(c) != dominant)
    out = []
    for _ in range(size):
        if rng.random() < dom_frac:
            out.append(dominant)
        else:
            out.append(rng.choice(others))
    return "".join(out)

def gen_zipf_like(size: int, alphabet: int = 64, s: float = 1.2, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = "".join(chr(ord("!") + i) for i in range(alphabet))
    weights = [1.0 / ((i + 1) ** s) for i in range(alphabet)]
    return _sample(rng, chars, weights, size)

def gen_english_like(size: int, seed: int = 0) -> str:
    rng = random.Random(seed)
    chars = (
        " etaoinshrdlcumwfgypbvkjxq"
        "ETAOINSHRDLCUMWFGYPBVKJXQ"
        "\n"
    )
    weights = []
    for ch in chars:
        if ch == ' ':
            weights.append(13.0)
        elif ch == '\n':
            weights.append(1.5)
        elif ch.lower() in "etaoinshrdlu":
            weights.append(6.0)
        elif ch.lower() in "cmfwgypbvk":
            weights.append(2.5)
        else:
            weights.append(1.2)
    return _sample(rng, chars, weights, size)

GENERATOR_REGISTRY: Dict[str, Callable[[int, int], str]] = {
    "uniform64": lambda size, seed: gen_uniform(size, alphabet=64, seed=seed),
    "uniform16": lambda size, seed: gen_uniform(size, alphabet=16, seed=seed),
    "zipf64": lambda size, seed: gen_zipf_like(size, alphabet=64, s=1.2, seed=seed),
    "repetitive90": lambda size, seed: gen_repetitive(size, dominant="A", dom_frac=0.90, seed=seed),
    "english_like": lambda size, seed: gen_english_like(size, seed=seed),
}

def generate_dataset(name: str, size: int, seed: int) -> str:
    fn = GENERATOR_REGISTRY.get(name)
    if fn is None:
        raise ValueError(f"unknown generator {name!r}, choose from {', '.join(sorted(GENERATOR_REGISTRY))}")
    return fn(size, seed)


# Experiment runner

@dataclass
class MetricRow:
    dataset_name: str
    text_length: int
    run_id: int
    pipeline: str  # one of PIPELINES
    unique_symbols: int

    build_ms: float
    encode_ms: float
    decode_ms: float
    total_ms: float

    encoded_bits: int
    bits_per_symbol: float
    entropy_bits: float
    tree_height: int
    correctness_ok: int  # 1 or 0


def build_codec(text: str, pipeline: str, save_path: Path) -> HuffmanCodec:
    codec = HuffmanCodec(text)
    if pipeline == "frequency":
        return codec
    if pipeline == "code_table":
        return HuffmanCodec.from_code_table(codec.code_table())
    if pipeline == "restored":
        if not codec.save(str(save_path)):
            raise RuntimeError(f"save verification failed for {save_path}")
        restored = HuffmanCodec.restore(str(save_path))
        if restored is None:
            raise RuntimeError(f"could not restore codec from {save_path}")
        return restored
    raise ValueError(f"pipeline must be one of {', '.join(PIPELINES)}")


def run_one(text: str, pipeline: str, save_path: Path) -> MetricRow:
    t0 = now_ns()
    codec = build_codec(text, pipeline, save_path)
    t1 = now_ns()

    encoded = codec.encode(text)
    t2 = now_ns()

    decoded = codec.decode(encoded)
    t3 = now_ns()

    build_ms = ns_to_ms(t1 - t0)
    encode_ms = ns_to_ms(t2 - t1)
    decode_ms = ns_to_ms(t3 - t2)

    return MetricRow(
        dataset_name="",
        text_length=len(text),
        run_id=0,
        pipeline=pipeline,
        unique_symbols=len(codec.symbols()),
        build_ms=build_ms,
        encode_ms=encode_ms,
        decode_ms=decode_ms,
        total_ms=build_ms + encode_ms + decode_ms,
        encoded_bits=encoded.length(),
        bits_per_symbol=encoded.length() / max(1, len(text)),
        entropy_bits=entropy(frequency_table(text)),
        tree_height=codec.tree.height(),
        correctness_ok=1 if decoded == text else 0,
    )


def write_csv(path: Path, rows: List[MetricRow]) -> None:
    fields = list(MetricRow.__dataclass_fields__.keys())
    with path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=fields)
        w.writeheader()
        for r in rows:
            w.writerow({k: getattr(r, k) for k in fields})


def mean_stdev(vals: List[float]) -> Tuple[float, float]:
    if len(vals) == 1:
        return vals[0], 0.0
    return statistics.mean(vals), statistics.stdev(vals)


def group_summary(rows: List[MetricRow], out_path: Path) -> None:
    """
    Group by dataset_name, text_length, pipeline and compute mean/stdev
    """
    key_to: Dict[Tuple[str, int, str], List[MetricRow]] = {}
    for r in rows:
        key = (r.dataset_name, r.text_length, r.pipeline)
        key_to.setdefault(key, []).append(r)

    summary_fields = [
        "dataset_name", "text_length", "pipeline", "n_runs",
        "bits_per_symbol_mean", "bits_per_symbol_stdev",
        "entropy_bits_mean",
        "build_ms_mean", "build_ms_stdev",
        "encode_ms_mean", "encode_ms_stdev",
        "decode_ms_mean", "decode_ms_stdev",
        "total_ms_mean", "total_ms_stdev",
        "correctness_ok_rate",
    ]

    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.DictWriter(f, fieldnames=summary_fields)
        w.writeheader()
        for key, items in sorted(key_to.items()):
            dataset_name, length, pipeline = key

            bps_m, bps_s = mean_stdev([x.bits_per_symbol for x in items])
            bu_m, bu_s = mean_stdev([x.build_ms for x in items])
            en_m, en_s = mean_stdev([x.encode_ms for x in items])
            de_m, de_s = mean_stdev([x.decode_ms for x in items])
            tt_m, tt_s = mean_stdev([x.total_ms for x in items])

            w.writerow({
                "dataset_name": dataset_name,
                "text_length": length,
                "pipeline": pipeline,
                "n_runs": len(items),
                "bits_per_symbol_mean": bps_m,
                "bits_per_symbol_stdev": bps_s,
                "entropy_bits_mean": statistics.mean(x.entropy_bits for x in items),
                "build_ms_mean": bu_m,
                "build_ms_stdev": bu_s,
                "encode_ms_mean": en_m,
                "encode_ms_stdev": en_s,
                "decode_ms_mean": de_m,
                "decode_ms_stdev": de_s,
                "total_ms_mean": tt_m,
                "total_ms_stdev": tt_s,
                "correctness_ok_rate": sum(x.correctness_ok for x in items) / len(items),
            })


# Plotting

def plot_bits_vs_entropy(rows: List[MetricRow], outdir: Path) -> None:
    datasets = sorted(set(r.dataset_name for r in rows))
    if not datasets:
        return

    def mean_for(dataset: str, field: str) -> float:
        vals = [getattr(r, field) for r in rows if r.dataset_name == dataset and r.pipeline == "frequency"]
        return statistics.mean(vals) if vals else float("nan")

    x = list(range(len(datasets)))

    plt.figure()
    plt.plot(x, [mean_for(d, "bits_per_symbol") for d in datasets], marker="o", label="huffman")
    plt.plot(x, [mean_for(d, "entropy_bits") for d in datasets], marker="s", linestyle="--", label="entropy")
    plt.xticks(x, datasets, rotation=20, ha="right")
    plt.ylabel("Bits per Symbol")
    plt.title("Encoded Bits per Symbol vs Entropy")
    plt.legend()
    plt.tight_layout()
    plt.savefig(outdir / "bits_per_symbol.png", dpi=200)
    plt.close()


def plot_pipeline_times(rows: List[MetricRow], outdir: Path) -> None:
    datasets = sorted(set(r.dataset_name for r in rows))
    if not datasets:
        return
    x = list(range(len(datasets)))

    for field, label, filename in (
        ("build_ms", "Build Time (ms)", "build_time.png"),
        ("decode_ms", "Decode Time (ms)", "decode_time.png"),
        ("total_ms", "Total Time (ms) (build + encode + decode)", "total_time.png"),
    ):
        plt.figure()
        for p in PIPELINES:
            y = []
            for d in datasets:
                vals = [getattr(r, field) for r in rows if r.dataset_name == d and r.pipeline == p]
                y.append(statistics.mean(vals) if vals else float("nan"))
            plt.plot(x, y, marker="o", label=p)
        plt.xticks(x, datasets, rotation=20, ha="right")
        plt.ylabel(label)
        plt.title(f"{label.split(' (')[0]} by Pipeline")
        plt.legend()
        plt.tight_layout()
        plt.savefig(outdir / filename, dpi=200)
        plt.close()


# Main

def parse_csv_list(s: str) -> List[str]:
    return [x.strip() for x in s.split(",") if x.strip()]

def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--outdir", type=str, default="results", help="Output directory for CSV and plots")
    ap.add_argument("--runs", type=int, default=5, help="Repetitions per configuration")
    ap.add_argument("--seed", type=int, default=123, help="Base random seed")
    ap.add_argument("--size", type=int, default=50_000, help="Characters per generated text")
    ap.add_argument("--generators", type=str, default="uniform64,zipf64,repetitive90,english_like",
                    help="Comma-separated text generator names")
    ap.add_argument("--no_plots", action="store_true", help="Only write the CSV files")

    args = ap.parse_args(argv)

    outdir = Path(args.outdir)
    safe_mkdir(outdir)
    save_path = outdir / "codec.ser"

    rows: List[MetricRow] = []
    for gen_name in parse_csv_list(args.generators):
        for run_id in range(1, args.runs + 1):
            text = generate_dataset(gen_name, max(1, args.size), args.seed + run_id)
            for pipeline in PIPELINES:
                row = run_one(text, pipeline, save_path)
                row.dataset_name = gen_name
                row.run_id = run_id
                rows.append(row)

    metrics_csv = outdir / "metrics.csv"
    summary_csv = outdir / "summary.csv"
    write_csv(metrics_csv, rows)
    group_summary(rows, summary_csv)

    if not args.no_plots:
        plot_bits_vs_entropy(rows, outdir)
        plot_pipeline_times(rows, outdir)

    ok_rate = sum(r.correctness_ok for r in rows) / max(1, len(rows))
    print(f"Wrote {len(rows)} rows to {metrics_csv}")
    print(f"Wrote grouped summary to {summary_csv}")
    print(f"Correctness rate across all runs: {ok_rate:.3f}")
    if not args.no_plots:
        print("Charts saved in:", outdir.resolve())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
