from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from losreport.errors import SchemaMismatchError


@dataclass
class FeaturePolicy:
    """
    Which columns reach the model:
      - drop identifiers (row ids, patient ids)
      - drop leakage columns (only known after the stay is over)
      - drop columns made redundant by encoding
      - if an allowlist is given, keep only those (hand-picked after
        reviewing feature importances; never inferred from a threshold)
    """
    identifiers: Tuple[str, ...] = ()
    leakage: Tuple[str, ...] = ()
    redundant: Tuple[str, ...] = ()
    allowlist: Optional[Tuple[str, ...]] = None
    selected_features_: List[str] = field(default_factory=list)

    @property
    def dropped(self) -> set:
        return set(self.identifiers) | set(self.leakage) | set(self.redundant)

    def fit(self, columns: Sequence[str], target: str):
        columns = list(columns)
        if target not in columns:
            raise SchemaMismatchError([target], where="FeaturePolicy")

        cand = [c for c in columns if c != target and c not in self.dropped]

        if self.allowlist is not None:
            missing = [c for c in self.allowlist if c not in columns]
            if missing:
                raise SchemaMismatchError(missing, where="feature allowlist")
            blocked = [c for c in self.allowlist if c in self.dropped or c == target]
            if blocked:
                raise ValueError(f"allowlisted column(s) are excluded from modelling: {blocked}")
            allowed = set(self.allowlist)
            cand = [c for c in cand if c in allowed]

        if not cand:
            raise ValueError("feature policy leaves no columns to train on")

        # preserve table order
        self.selected_features_ = list(dict.fromkeys(cand))
        return self

    def get_feature_names_out(self) -> List[str]:
        if not self.selected_features_:
            raise RuntimeError("FeaturePolicy not fitted")
        return list(self.selected_features_)
