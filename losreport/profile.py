from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Optional
import duckdb
import pandas as pd

from losreport.data.io import count_rows, quote_ident

DEFAULT_CARDINALITY_LIMIT = 15


@dataclass(frozen=True)
class ColumnProfile:
    name: str
    approx_distinct_count: Optional[int]
    missing_fraction: float
    sample_categories: Optional[str] = None


def _missing_counts(rel: duckdb.DuckDBPyRelation) -> List[int]:
    exprs = ", ".join(f"count(*) - count({quote_ident(c)})" for c in rel.columns)
    return [int(v) for v in rel.query("t", f"SELECT {exprs} FROM t").fetchone()]


def _approx_distinct(rel: duckdb.DuckDBPyRelation, column: str) -> int:
    c = quote_ident(column)
    return int(rel.query("t", f"SELECT approx_count_distinct({c}) FROM t").fetchone()[0])


def _sample_values(rel: duckdb.DuckDBPyRelation, column: str, limit: int) -> List[str]:
    c = quote_ident(column)
    rows = rel.query(
        "t", f"SELECT DISTINCT {c} AS v FROM t WHERE {c} IS NOT NULL ORDER BY v LIMIT {int(limit)}"
    ).fetchall()
    return [str(r[0]) for r in rows]


def profile_columns(rel: duckdb.DuckDBPyRelation,
                    cardinality_limit: int = DEFAULT_CARDINALITY_LIMIT) -> List[ColumnProfile]:
    """
    One profile per column, in table order. Only aggregates leave the engine:
      - approximate distinct count (HyperLogLog sketch)
      - fraction of null cells
      - up to `cardinality_limit` distinct values, joined, when the column
        has fewer than `cardinality_limit` distinct values
    A column whose values cannot be aggregated or ordered keeps its missing
    fraction and gets no sample; the run carries on.
    """
    if cardinality_limit < 1:
        raise ValueError(f"cardinality_limit must be >= 1, got {cardinality_limit}")

    n_rows = count_rows(rel)
    missing = _missing_counts(rel)

    profiles: List[ColumnProfile] = []
    for col, n_missing in zip(rel.columns, missing):
        frac = (n_missing / n_rows) if n_rows else 0.0
        approx: Optional[int] = None
        sample: Optional[str] = None
        try:
            approx = _approx_distinct(rel, col)
            if approx < cardinality_limit:
                values = _sample_values(rel, col, cardinality_limit)
                sample = ", ".join(values) if values else None
        except duckdb.Error:
            sample = None
        profiles.append(ColumnProfile(col, approx, float(frac), sample))
    return profiles


def profiles_to_frame(profiles: List[ColumnProfile]) -> pd.DataFrame:
    cols = [f for f in ColumnProfile.__dataclass_fields__]
    return pd.DataFrame([asdict(p) for p in profiles], columns=cols)
