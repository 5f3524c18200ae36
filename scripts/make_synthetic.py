# scripts/make_synthetic.py
import argparse

from losreport.data.synthetic import make_admissions, write_admissions_csv

if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument("--rows", type=int, default=5000)
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--out", default="data/train_data.csv")
    args = ap.parse_args()

    df = make_admissions(args.rows, seed=args.seed)
    out = write_admissions_csv(df, args.out)
    print(f"[OK] wrote {out} ({len(df)} rows)")
