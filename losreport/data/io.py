#!/usr/bin/env python3
from __future__ import annotations
import re
from pathlib import Path
from typing import Iterable
import duckdb
import pandas as pd

from losreport.data.engine import Engine
from losreport.errors import SchemaMismatchError

_SPACE_RE = re.compile(r"\s+")


def quote_ident(name: str) -> str:
    return '"' + str(name).replace('"', '""') + '"'


def quote_literal(value) -> str:
    return "'" + str(value).replace("'", "''") + "'"


def sanitize_name(name: str) -> str:
    # "Bed Grade" -> "Bed_Grade"
    return _SPACE_RE.sub("_", str(name).strip())


def sanitize_columns(rel: duckdb.DuckDBPyRelation) -> duckdb.DuckDBPyRelation:
    cols = list(rel.columns)
    clean = [sanitize_name(c) for c in cols]
    if clean == cols:
        return rel
    dupes = sorted({c for c in clean if clean.count(c) > 1})
    if dupes:
        raise ValueError(f"column names collide after sanitising: {dupes}")
    exprs = ", ".join(f"{quote_ident(c)} AS {quote_ident(n)}" for c, n in zip(cols, clean))
    return rel.project(exprs)


def require_columns(rel: duckdb.DuckDBPyRelation, columns: Iterable[str], where: str = "input table") -> None:
    have = set(rel.columns)
    missing = [c for c in columns if c not in have]
    if missing:
        raise SchemaMismatchError(missing, where=where)


def count_rows(rel: duckdb.DuckDBPyRelation) -> int:
    return int(rel.query("t", "SELECT count(*) FROM t").fetchone()[0])


def value_counts(rel: duckdb.DuckDBPyRelation, column: str) -> pd.Series:
    """Row count per value of `column` (nulls included), largest first."""
    c = quote_ident(column)
    rows = rel.query(
        "t", f"SELECT {c} AS v, count(*) AS n FROM t GROUP BY v ORDER BY n DESC, v ASC NULLS LAST"
    ).fetchall()
    return pd.Series({v: int(n) for v, n in rows}, name="count", dtype="int64")


def load_admissions(engine: Engine, path: str | Path, required: Iterable[str]) -> duckdb.DuckDBPyRelation:
    rel = sanitize_columns(engine.read_csv(path))
    require_columns(rel, required, where=str(path))
    return rel
