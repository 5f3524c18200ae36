import json
from pathlib import Path
import pandas as pd


def save_json(path, payload) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    return path


def save_feature_names(cols, out_dir) -> Path:
    """Persist the exact feature column order used at training."""
    return save_json(Path(out_dir) / "feature_names.json", list(cols))


def load_feature_names(out_dir):
    with open(Path(out_dir) / "feature_names.json") as f:
        return json.load(f)


def fmt_float(x, digits=3):
    """Format a float with fixed digits; scientific for very small non-zero."""
    if pd.isna(x):
        return ""
    try:
        f = float(x)
    except Exception:
        return str(x)
    if (abs(f) < 1e-4) and (f != 0.0):
        return f"{f:.{digits}e}"
    return f"{f:.{digits}f}"


def fmt_pct(x, digits=2):
    """Format a proportion 0..1 as a percentage."""
    if pd.isna(x):
        return ""
    try:
        f = float(x) * 100.0
    except Exception:
        return str(x)
    return f"{f:.{digits}f}%"
