from __future__ import annotations
from dataclasses import dataclass
from typing import Optional
import pandas as pd
from sklearn.model_selection import train_test_split


@dataclass(frozen=True)
class SplitResult:
    train: pd.DataFrame
    test: pd.DataFrame

    @property
    def sizes(self) -> dict:
        return {"train": len(self.train), "test": len(self.test)}


def split_frame(df: pd.DataFrame, test_size: float = 0.2, seed: int = 42,
                stratify_col: Optional[str] = None) -> SplitResult:
    """Seeded train/test partition; every row lands in exactly one side."""
    if not 0.0 < float(test_size) < 1.0:
        raise ValueError(f"test_size must be in (0, 1), got {test_size}")
    if len(df) < 2:
        raise ValueError(f"need at least 2 rows to split, got {len(df)}")
    if not df.index.is_unique:
        raise ValueError("row index must be unique to split")

    strat = None
    if stratify_col is not None:
        if stratify_col not in df.columns:
            raise KeyError(f"stratify column '{stratify_col}' not in frame")
        strat = df[stratify_col]

    train, test = train_test_split(df, test_size=test_size, random_state=seed, shuffle=True, stratify=strat)
    return SplitResult(train=train, test=test)
