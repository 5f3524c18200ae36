from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence, Tuple
import duckdb

from losreport.data.io import count_rows, quote_ident, quote_literal, require_columns
from losreport.errors import UnknownCategoryError


@dataclass(frozen=True)
class CleanResult:
    table: duckdb.DuckDBPyRelation
    rows_in: int
    rows_out: int

    @property
    def rows_removed(self) -> int:
        return self.rows_in - self.rows_out


def drop_missing(rel: duckdb.DuckDBPyRelation, columns: Sequence[str]) -> CleanResult:
    """Drop every row with a null in any of `columns`. No imputation."""
    columns = list(columns)
    require_columns(rel, columns, where="drop_missing")
    rows_in = count_rows(rel)
    if not columns:
        return CleanResult(rel, rows_in, rows_in)
    cond = " AND ".join(f"{quote_ident(c)} IS NOT NULL" for c in columns)
    out = rel.filter(cond)
    return CleanResult(out, rows_in, count_rows(out))


@dataclass(frozen=True)
class CategoryCollapser:
    """
    Total mapping of the target labels onto a reduced set:
      keep      -> unchanged
      collapse  -> `into`
      `into`    -> `into` (so a second pass changes nothing)
    Anything else is rejected with UnknownCategoryError.
    """
    keep: Tuple[str, ...]
    collapse: Tuple[str, ...]
    into: str = "More than 40"

    def __post_init__(self):
        both = set(self.keep) & set(self.collapse)
        if both:
            raise ValueError(f"labels both kept and collapsed: {sorted(both)}")
        if self.into in self.collapse:
            raise ValueError(f"collapse target '{self.into}' is itself listed under collapse")

    @property
    def known_labels(self) -> set:
        return set(self.keep) | set(self.collapse) | {self.into}

    @property
    def output_labels(self) -> List[str]:
        out = list(dict.fromkeys(self.keep))
        if self.into not in out:
            out.append(self.into)
        return out

    def map_label(self, label: str, column: str = "target") -> str:
        if label in self.keep:
            return label
        if label in self.collapse or label == self.into:
            return self.into
        raise UnknownCategoryError(column, [label])

    def check_domain(self, rel: duckdb.DuckDBPyRelation, column: str) -> None:
        c = quote_ident(column)
        observed = [r[0] for r in rel.query("t", f"SELECT DISTINCT {c} FROM t WHERE {c} IS NOT NULL").fetchall()]
        unseen = [v for v in observed if str(v) not in self.known_labels]
        if unseen:
            raise UnknownCategoryError(column, unseen)

    def apply(self, rel: duckdb.DuckDBPyRelation, column: str) -> duckdb.DuckDBPyRelation:
        require_columns(rel, [column], where="collapse")
        self.check_domain(rel, column)
        c = quote_ident(column)
        exprs = []
        for col in rel.columns:
            if col != column:
                exprs.append(quote_ident(col))
                continue
            if self.collapse:
                members = ", ".join(quote_literal(v) for v in self.collapse)
                exprs.append(f"CASE WHEN {c} IN ({members}) THEN {quote_literal(self.into)} ELSE {c} END AS {c}")
            else:
                exprs.append(c)
        return rel.project(", ".join(exprs))
