from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Mapping
import numpy as np
import pandas as pd
from sklearn.metrics import (
    accuracy_score, precision_score, recall_score, f1_score, confusion_matrix
)

METRIC_NAMES = ("accuracy", "precision", "recall", "f1")


def compute_metrics(y_true, y_pred) -> Dict[str, float]:
    """Accuracy plus support-weighted precision / recall / F1."""
    y = np.asarray(y_true).astype(int).reshape(-1)
    p = np.asarray(y_pred).astype(int).reshape(-1)
    if y.size == 0 or y.size != p.size:
        raise ValueError(f"need equally sized, non-empty label arrays (got {y.size} and {p.size})")
    return {
        "accuracy": float(accuracy_score(y, p)),
        "precision": float(precision_score(y, p, average="weighted", zero_division=0)),
        "recall": float(recall_score(y, p, average="weighted", zero_division=0)),
        "f1": float(f1_score(y, p, average="weighted", zero_division=0)),
    }


def confusion_table(y_true, y_pred, lookup: Mapping[int, str]) -> pd.DataFrame:
    """
    Label x label counts (rows = actual, columns = predicted). Every label in
    `lookup` appears on both axes, zero-filled when it never occurs.
    """
    codes = sorted(int(k) for k in lookup)
    y = np.asarray(y_true).astype(int).reshape(-1)
    p = np.asarray(y_pred).astype(int).reshape(-1)
    seen = {int(c) for c in np.concatenate([y, p])}
    stray = sorted(seen - set(codes))
    if stray:
        raise ValueError(f"code(s) {stray} have no label")
    cm = confusion_matrix(y, p, labels=codes)
    names = [lookup[c] for c in codes]
    out = pd.DataFrame(cm, index=names, columns=names)
    out.index.name = "actual"
    out.columns.name = "predicted"
    return out


def confusion_records(y_true, y_pred, lookup: Mapping[int, str]) -> pd.DataFrame:
    """Observed (actual, predicted) pairs with their counts, labels decoded."""
    pairs = pd.DataFrame({
        "actual_code": np.asarray(y_true).astype(int).reshape(-1),
        "predicted_code": np.asarray(y_pred).astype(int).reshape(-1),
    })
    counts = pairs.groupby(["actual_code", "predicted_code"]).size().reset_index(name="count")
    counts["actual_label"] = counts["actual_code"].map(lookup)
    counts["predicted_label"] = counts["predicted_code"].map(lookup)
    if counts[["actual_label", "predicted_label"]].isna().any().any():
        raise ValueError("prediction codes without a label in the lookup")
    return counts[["actual_label", "predicted_label", "count"]]


@dataclass(frozen=True)
class Evaluation:
    metrics: Dict[str, float]
    confusion: pd.DataFrame
    records: pd.DataFrame
    n_test: int


def evaluate_model(model, test: pd.DataFrame, target: str, lookup: Mapping[int, str]) -> Evaluation:
    if test.empty:
        raise ValueError("test frame is empty")
    y_true = test[target].astype(int).to_numpy()
    y_pred = model.predict(test)
    return Evaluation(
        metrics=compute_metrics(y_true, y_pred),
        confusion=confusion_table(y_true, y_pred, lookup),
        records=confusion_records(y_true, y_pred, lookup),
        n_test=int(len(test)),
    )
