from __future__ import annotations
import base64
import html
import io
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Tuple
import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from losreport.profile import ColumnProfile, profiles_to_frame
from losreport.utils import fmt_float, fmt_pct

METRIC_LABELS = {"accuracy": "Accuracy", "precision": "Precision", "recall": "Recall", "f1": "F1"}

_CSS = """
body { font-family: sans-serif; margin: 2em auto; max-width: 1100px; color: #222; }
h1 { border-bottom: 2px solid #444; padding-bottom: .2em; }
table { border-collapse: collapse; margin: 1em 0; font-size: 90%; }
th, td { border: 1px solid #bbb; padding: 4px 8px; text-align: left; }
th { background: #eee; }
img { max-width: 100%; }
.note { color: #666; font-size: 85%; }
"""


# ---------- tables ----------

def profile_table(profiles: Sequence[ColumnProfile]) -> pd.DataFrame:
    df = profiles_to_frame(list(profiles))
    return pd.DataFrame({
        "Column": df["name"],
        "Approx. distinct": df["approx_distinct_count"].map(lambda v: "" if pd.isna(v) else str(int(v))),
        "Missing": df["missing_fraction"].map(fmt_pct),
        "Categories": df["sample_categories"].map(lambda v: "NA" if v is None or pd.isna(v) else v),
    })


def metrics_table(metrics: Mapping[str, float]) -> pd.DataFrame:
    return pd.DataFrame({
        "Metric": [METRIC_LABELS[k] for k in METRIC_LABELS],
        "Value": [fmt_pct(metrics[k]) for k in METRIC_LABELS],
    })


def importance_table(importances: pd.Series) -> pd.DataFrame:
    return pd.DataFrame({"Feature": importances.index, "Importance": importances.map(fmt_float).to_numpy()})


def counts_table(counts: pd.Series, label: str) -> pd.DataFrame:
    total = counts.sum()
    return pd.DataFrame({
        label: [("NA" if pd.isna(k) else str(k)) for k in counts.index],
        "Rows": counts.to_numpy(),
        "Share": [fmt_pct(v / total if total else 0.0) for v in counts.to_numpy()],
    })


def table_html(df: pd.DataFrame) -> str:
    return df.to_html(index=False, escape=True, border=0)


# ---------- figures ----------

def fig_to_html(fig, alt: str = "") -> str:
    buf = io.BytesIO()
    fig.savefig(buf, format="png", dpi=120, bbox_inches="tight")
    plt.close(fig)
    data = base64.b64encode(buf.getvalue()).decode("ascii")
    return f'<img alt="{html.escape(alt)}" src="data:image/png;base64,{data}"/>'


def plot_target_distribution(counts: pd.Series, target: str):
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.bar([str(k) for k in counts.index], counts.to_numpy(), color="#4c72b0")
    ax.set_xlabel(target); ax.set_ylabel("rows")
    ax.set_title(f"Distribution of {target}")
    plt.setp(ax.get_xticklabels(), rotation=30, ha="right")
    fig.tight_layout()
    return fig


def plot_feature_by_target(frame: pd.DataFrame, feature: str, target: str, order: Sequence[str]):
    groups = [frame.loc[frame[target] == lbl, feature].dropna().to_numpy() for lbl in order]
    fig, ax = plt.subplots(figsize=(8, 4))
    ax.boxplot(groups, showfliers=False)
    ax.set_xticks(range(1, len(order) + 1))
    ax.set_xticklabels([str(o) for o in order], rotation=30, ha="right")
    ax.set_xlabel(target); ax.set_ylabel(feature)
    ax.set_title(f"{feature} by {target}")
    fig.tight_layout()
    return fig


def plot_feature_importances(importances: pd.Series):
    s = importances.sort_values(ascending=True)
    fig, ax = plt.subplots(figsize=(8, max(3, 0.35 * len(s))))
    ax.barh(list(s.index), s.to_numpy(), color="#55a868")
    ax.set_xlabel("importance")
    ax.set_title("Random Forest feature importance")
    fig.tight_layout()
    return fig


def plot_confusion(cm: pd.DataFrame):
    n = len(cm)
    fig, ax = plt.subplots(figsize=(1.2 * n + 3, 1.0 * n + 2))
    im = ax.imshow(cm.to_numpy(), cmap="Blues")
    fig.colorbar(im, ax=ax, label="count")
    ax.set_xticks(range(n)); ax.set_yticks(range(n))
    ax.set_xticklabels(cm.columns, rotation=30, ha="right"); ax.set_yticklabels(cm.index)
    ax.set_xlabel("predicted"); ax.set_ylabel("actual")
    ax.set_title("Confusion matrix")
    vmax = cm.to_numpy().max() if cm.size else 0
    for i in range(n):
        for j in range(n):
            v = int(cm.iat[i, j])
            ax.text(j, i, str(v), ha="center", va="center",
                    color="white" if vmax and v > vmax / 2 else "black")
    fig.tight_layout()
    return fig


# ---------- document ----------

def render_report(title: str, sections: List[Tuple[str, str]], note: Optional[str] = None) -> str:
    parts = [
        "<!DOCTYPE html>",
        '<html><head><meta charset="utf-8"/>',
        f"<title>{html.escape(title)}</title><style>{_CSS}</style></head><body>",
        f"<h1>{html.escape(title)}</h1>",
        f'<p class="note">generated {datetime.now():%Y-%m-%d %H:%M}</p>',
    ]
    if note:
        parts.append(f'<p class="note">{html.escape(note)}</p>')
    for heading, body in sections:
        parts.append(f"<h2>{html.escape(heading)}</h2>")
        parts.append(body)
    parts.append("</body></html>")
    return "\n".join(parts)


def write_report(text: str, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def build_sections(
    profiles: Sequence[ColumnProfile],
    raw_counts: pd.Series,
    counts: pd.Series,
    target: str,
    leakage: Optional[Tuple[str, pd.DataFrame]],
    label_order: Sequence[str],
    importances: pd.Series,
    metrics: Mapping[str, float],
    confusion: pd.DataFrame,
    clean_summary: Optional[Dict[str, int]] = None,
) -> List[Tuple[str, str]]:
    sections = [("Column profile", table_html(profile_table(profiles)))]
    if clean_summary:
        rows = pd.DataFrame({"Step": list(clean_summary), "Rows": list(clean_summary.values())})
        sections.append(("Cleaning", table_html(rows)))
    sections.append((f"{target} before collapsing", table_html(counts_table(raw_counts, target))))
    sections.append((
        f"{target} distribution",
        fig_to_html(plot_target_distribution(counts, target), f"{target} distribution")
        + table_html(counts_table(counts, target)),
    ))
    if leakage is not None:
        feature, frame = leakage
        sections.append((
            f"{feature} by {target} (excluded from the model)",
            fig_to_html(plot_feature_by_target(frame, feature, target, label_order), f"{feature} by {target}"),
        ))
    sections.append((
        "Feature importance",
        fig_to_html(plot_feature_importances(importances), "feature importance")
        + table_html(importance_table(importances)),
    ))
    sections.append(("Test metrics", table_html(metrics_table(metrics))))
    sections.append(("Confusion matrix", fig_to_html(plot_confusion(confusion), "confusion matrix")))
    return sections
