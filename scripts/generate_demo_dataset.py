#!/usr/bin/env python3
"""
Generate a synthetic correlation dataset for the corrsurface webapp.

Writes a JSON array with one record per (beta, disorder) point on a regular
grid, carrying the 18 correlation fields the webapp reads. Correlations rise
with beta along a logistic curve whose midpoint moves up with disorder; the
medium and long range buckets are scaled down, the quenched and annealed
variants slightly below and above the combined one.

Usage:
    python scripts/generate_demo_dataset.py [--output PATH] [--betas N] [--disorders N]
"""

import argparse
import json
import sys
from pathlib import Path

import numpy as np

RANGE_FACTORS = {"s": 1.0, "m": 0.75, "l": 0.5}
VARIANT_FACTORS = {"": 1.0, "_quench": 0.95, "_anneal": 1.05}

DEFAULT_OUTPUT = Path(__file__).parent.parent / "public" / "data" / "correlations.json"


def generate_records(betas, disorders) -> list:
    """Build records ordered by disorder, then beta."""
    records = []
    for disorder in disorders:
        for beta in betas:
            base = 1.0 / (1.0 + np.exp(-4.0 * (beta - 1.0 - 2.0 * disorder)))
            record = {"beta": round(float(beta), 6), "disorder": round(float(disorder), 6)}
            for family in ("FQ", "AFQ"):
                for code, range_factor in RANGE_FACTORS.items():
                    for suffix, variant_factor in VARIANT_FACTORS.items():
                        value = base * range_factor * variant_factor
                        if family == "AFQ":
                            value *= 1.0 - disorder
                        record[f"corr{family}{code}{suffix}"] = round(float(np.clip(value, 0.0, 1.0)), 6)
            records.append(record)
    return records


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a synthetic correlation dataset")
    parser.add_argument("--output", type=Path, default=DEFAULT_OUTPUT, help="Output JSON path")
    parser.add_argument("--betas", type=int, default=10, help="Number of beta values")
    parser.add_argument("--disorders", type=int, default=6, help="Number of disorder values")
    parser.add_argument("--beta-step", type=float, default=0.2, help="Spacing of beta values")
    parser.add_argument("--disorder-step", type=float, default=0.1, help="Spacing of disorder values")
    args = parser.parse_args()

    if args.betas < 1 or args.disorders < 1:
        print("Error: --betas and --disorders must be positive", file=sys.stderr)
        return 1

    betas = args.beta_step * np.arange(1, args.betas + 1)
    disorders = args.disorder_step * np.arange(args.disorders)
    records = generate_records(betas, disorders)

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(records, f, indent=2)

    print(f"Wrote {len(records)} records ({args.betas} betas x {args.disorders} disorders) to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
