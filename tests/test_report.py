import pandas as pd

from losreport.profile import ColumnProfile
from losreport.report import (
    build_sections, counts_table, metrics_table, profile_table, render_report, write_report
)
from losreport.utils import fmt_pct


def _profiles():
    return [
        ColumnProfile("Ward_Type", 6, 0.0, "P, Q, R, S, T, U"),
        ColumnProfile("case_id", 318438, 0.0, None),
        ColumnProfile("Bed_Grade", 4, 0.00036, "1.0, 2.0, 3.0, 4.0"),
    ]


def test_fmt_pct():
    assert fmt_pct(0.5) == "50.00%"
    assert fmt_pct(float("nan")) == ""


def test_profile_table_marks_high_cardinality_as_na():
    t = profile_table(_profiles())
    assert list(t.columns) == ["Column", "Approx. distinct", "Missing", "Categories"]
    assert t.loc[1, "Categories"] == "NA"
    assert t.loc[2, "Missing"] == "0.04%"


def test_metrics_table_has_four_percent_rows():
    t = metrics_table({"accuracy": 0.4, "precision": 0.35, "recall": 0.4, "f1": 0.361})
    assert t["Metric"].tolist() == ["Accuracy", "Precision", "Recall", "F1"]
    assert t["Value"].tolist() == ["40.00%", "35.00%", "40.00%", "36.10%"]


def test_counts_table_shares():
    t = counts_table(pd.Series({"0-10": 30, "More than 40": 10}), "Stay")
    assert t["Share"].tolist() == ["75.00%", "25.00%"]


def test_full_report_renders(tmp_path):
    labels = ["0-10", "11-20", "More than 40"]
    counts = pd.Series([5, 3, 2], index=labels)
    leak = pd.DataFrame({"Stay": labels * 4, "Visitors_with_Patient": range(12)})
    cm = pd.DataFrame([[3, 1, 0], [0, 2, 0], [0, 0, 0]], index=labels, columns=labels)
    sections = build_sections(
        profiles=_profiles(),
        raw_counts=pd.Series([5, 3, 1, 1], index=["0-10", "11-20", "41-50", "51-60"]),
        counts=counts,
        target="Stay",
        leakage=("Visitors_with_Patient", leak),
        label_order=labels,
        importances=pd.Series([0.7, 0.3], index=["Ward_Type", "Bed_Grade"]),
        metrics={"accuracy": 0.83, "precision": 0.9, "recall": 0.83, "f1": 0.84},
        confusion=cm,
        clean_summary={"rows read": 12, "rows kept": 10},
    )
    headings = [h for h, _ in sections]
    assert "Column profile" in headings
    assert "Confusion matrix" in headings
    assert "Test metrics" in headings

    path = write_report(render_report("LOS", sections), tmp_path / "nested" / "report.html")
    text = path.read_text(encoding="utf-8")
    assert text.startswith("<!DOCTYPE html>")
    assert text.count("data:image/png;base64,") == 4
    assert "83.00%" in text
