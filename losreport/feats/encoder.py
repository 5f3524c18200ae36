from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import duckdb
import pandas as pd

from losreport.data.io import quote_ident, quote_literal, require_columns
from losreport.errors import SchemaMismatchError, UnknownCategoryError


@dataclass
class LabelIndexer:
    """
    Dense integer codes for the string values of one column.

    Codes follow descending frequency; equal counts are ordered by the
    string value, so refitting on the same data always gives the same codes.
    Values are indexed as strings (CAST ... AS VARCHAR), nulls are not indexed.
    """
    column: str
    labels_: List[str] = field(default_factory=list)

    def fit(self, rel: duckdb.DuckDBPyRelation) -> "LabelIndexer":
        require_columns(rel, [self.column], where="LabelIndexer")
        c = quote_ident(self.column)
        rows = rel.query(
            "t",
            f"SELECT CAST({c} AS VARCHAR) AS v, count(*) AS n FROM t "
            f"WHERE {c} IS NOT NULL GROUP BY v ORDER BY n DESC, v ASC",
        ).fetchall()
        if not rows:
            raise ValueError(f"column '{self.column}' has no non-null values to index")
        self.labels_ = [str(v) for v, _ in rows]
        return self

    def _check_fitted(self):
        if not self.labels_:
            raise RuntimeError(f"LabelIndexer('{self.column}') not fitted")

    @property
    def labels(self) -> List[str]:
        self._check_fitted()
        return list(self.labels_)

    @property
    def mapping(self) -> Dict[str, int]:
        return {v: i for i, v in enumerate(self.labels)}

    @property
    def lookup(self) -> Dict[int, str]:
        return dict(enumerate(self.labels))

    def encode(self, label) -> int:
        code = self.mapping.get(str(label))
        if code is None:
            raise UnknownCategoryError(self.column, [label])
        return code

    def decode(self, code: int) -> str:
        self._check_fitted()
        i = int(code)
        if not 0 <= i < len(self.labels_):
            raise ValueError(f"column '{self.column}': code {code} out of range 0..{len(self.labels_) - 1}")
        return self.labels_[i]

    def unseen(self, rel: duckdb.DuckDBPyRelation) -> List:
        """Values of the column (nulls included) that have no code."""
        self._check_fitted()
        c = quote_ident(self.column)
        known = ", ".join(quote_literal(v) for v in self.labels_)
        rows = rel.query(
            "t",
            f"SELECT DISTINCT CAST({c} AS VARCHAR) AS v FROM t "
            f"WHERE {c} IS NULL OR CAST({c} AS VARCHAR) NOT IN ({known})",
        ).fetchall()
        return [r[0] for r in rows]

    def transform_expr(self, alias: Optional[str] = None) -> str:
        self._check_fitted()
        c = quote_ident(self.column)
        whens = " ".join(f"WHEN {quote_literal(v)} THEN {i}" for i, v in enumerate(self.labels_))
        return f"(CASE CAST({c} AS VARCHAR) {whens} END) AS {quote_ident(alias or self.column)}"


@dataclass
class FeatureEncoder:
    """
    Fits one LabelIndexer per categorical column plus the target, then
    rewrites those columns as integer codes. Everything else passes through.
    """
    categorical: Sequence[str]
    target: str
    indexers_: Dict[str, LabelIndexer] = field(default_factory=dict)

    def fit(self, rel: duckdb.DuckDBPyRelation) -> "FeatureEncoder":
        cols = list(dict.fromkeys(list(self.categorical) + [self.target]))
        require_columns(rel, cols, where="FeatureEncoder")
        self.indexers_ = {c: LabelIndexer(c).fit(rel) for c in cols}
        return self

    def _check_fitted(self):
        if not self.indexers_:
            raise RuntimeError("FeatureEncoder not fitted")

    @property
    def target_indexer(self) -> LabelIndexer:
        self._check_fitted()
        return self.indexers_[self.target]

    @property
    def target_lookup(self) -> Dict[int, str]:
        return self.target_indexer.lookup

    def transform(self, rel: duckdb.DuckDBPyRelation, columns: Sequence[str]) -> duckdb.DuckDBPyRelation:
        """Project `columns` (in order), encoding the fitted ones."""
        self._check_fitted()
        require_columns(rel, columns, where="FeatureEncoder.transform")
        exprs = []
        for col in columns:
            idx = self.indexers_.get(col)
            if idx is None:
                exprs.append(quote_ident(col))
                continue
            bad = idx.unseen(rel)
            if bad:
                raise UnknownCategoryError(col, bad)
            exprs.append(idx.transform_expr())
        return rel.project(", ".join(exprs))

    def to_frame(self, rel: duckdb.DuckDBPyRelation, index_col: Optional[str] = None) -> pd.DataFrame:
        """Materialise an encoded relation; every non-index column must be numeric."""
        df = rel.df()
        if index_col is not None:
            if index_col not in df.columns:
                raise SchemaMismatchError([index_col], where="FeatureEncoder.to_frame")
            df = df.set_index(index_col)
        not_numeric = [c for c in df.columns if not pd.api.types.is_numeric_dtype(df[c])]
        if not_numeric:
            raise ValueError(f"non-numeric feature column(s) {not_numeric}; list them as categorical")
        for col in self.indexers_:
            if col in df.columns:
                df[col] = df[col].astype("int64")
        return df
