#!/usr/bin/env python3
# scripts/run_report.py
from __future__ import annotations
import argparse
import sys

from losreport.config import DEFAULT_CONFIG, load_config, with_overrides
from losreport.pipeline import run_pipeline


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Profile the admissions CSV, train the LOS forest, write the HTML report.")
    p.add_argument("--config", default=str(DEFAULT_CONFIG))
    p.add_argument("--data", default=None, help="admissions CSV (overrides data.csv_path)")
    p.add_argument("--out_dir", default=None, help="report directory (overrides data.out_dir)")
    p.add_argument("--seed", type=int, default=None, help="split / forest seed (overrides split.seed)")
    p.add_argument("--quiet", action="store_true")
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        cfg = with_overrides(load_config(args.config), csv_path=args.data, out_dir=args.out_dir, seed=args.seed)
        result = run_pipeline(cfg, verbose=not args.quiet)
    except (FileNotFoundError, ValueError) as e:
        # SchemaMismatchError and UnknownCategoryError are ValueErrors
        print(f"[FATAL] {e}", file=sys.stderr)
        return 2
    m = result.evaluation.metrics
    print(f"[OK] {result.report_path} | accuracy={m['accuracy']:.4f} f1={m['f1']:.4f}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
