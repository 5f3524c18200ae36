# scripts/inspect_dataset.py
import argparse
from pathlib import Path

from losreport.config import DEFAULT_CONFIG, load_config
from losreport.data.engine import Engine
from losreport.data.io import count_rows, load_admissions, value_counts
from losreport.profile import profile_columns, profiles_to_frame


def main(argv=None):
    ap = argparse.ArgumentParser()
    ap.add_argument("csv", nargs="?", default=None)
    ap.add_argument("--config", default=str(DEFAULT_CONFIG))
    ap.add_argument("--limit", type=int, default=None, help="cardinality limit for category samples")
    args = ap.parse_args(argv)

    cfg = load_config(args.config)
    path = Path(args.csv or cfg.data.csv_path)
    limit = args.limit if args.limit is not None else cfg.profile.cardinality_limit

    with Engine() as engine:
        rel = load_admissions(engine, path, cfg.columns.required)
        print("Rows:", count_rows(rel))
        print("Columns:", list(rel.columns))

        prof = profiles_to_frame(profile_columns(rel, limit))
        prof["missing_pct"] = (prof.pop("missing_fraction") * 100).round(2)
        print("\nColumn profile:")
        print(prof.to_string(index=False))

        target = cfg.columns.target
        print(f"\nCounts by {target}:")
        print(value_counts(rel, target).to_string())


if __name__ == "__main__":
    main()
