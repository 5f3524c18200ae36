#!/usr/bin/env python3
"""
Random Forest for the length-of-stay buckets.
The forest itself is scikit-learn's; this module only maps the run's
parameters onto it and wraps the fitted estimator with its feature names.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence
import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier


@dataclass(frozen=True)
class ForestParams:
    num_trees: int = 20
    max_depth: Optional[int] = 10
    # minimum rows each child keeps after a split
    min_instances_per_node: int = 1

    def __post_init__(self):
        if self.num_trees < 1:
            raise ValueError(f"num_trees must be >= 1, got {self.num_trees}")
        if self.max_depth is not None and self.max_depth < 1:
            raise ValueError(f"max_depth must be >= 1 or None, got {self.max_depth}")
        if self.min_instances_per_node < 1:
            raise ValueError(f"min_instances_per_node must be >= 1, got {self.min_instances_per_node}")


def build_forest(params: ForestParams, seed: int) -> RandomForestClassifier:
    return RandomForestClassifier(
        n_estimators=params.num_trees,
        max_depth=params.max_depth,
        min_samples_leaf=params.min_instances_per_node,
        max_features="sqrt",
        bootstrap=True,
        n_jobs=-1,
        random_state=seed,
    )


@dataclass(frozen=True)
class ForestModel:
    estimator: RandomForestClassifier
    features: tuple
    target: str

    def _matrix(self, frame: pd.DataFrame) -> pd.DataFrame:
        missing = [c for c in self.features if c not in frame.columns]
        if missing:
            raise KeyError(f"frame lacks model feature(s) {missing}")
        return frame[list(self.features)]

    def predict(self, frame: pd.DataFrame) -> np.ndarray:
        return self.estimator.predict(self._matrix(frame)).astype(int)

    def feature_importances(self) -> pd.Series:
        imp = np.asarray(self.estimator.feature_importances_, dtype=float)
        total = imp.sum()
        if total > 0:
            imp = imp / total
        else:
            # every tree is a single leaf: nothing to rank
            imp = np.full(len(self.features), 1.0 / len(self.features))
        s = pd.Series(imp, index=list(self.features), name="importance")
        return s.sort_values(ascending=False)


def train_forest(train: pd.DataFrame, features: Sequence[str], target: str,
                 params: ForestParams = ForestParams(), seed: int = 42) -> ForestModel:
    features = list(features)
    if not features:
        raise ValueError("no features to train on")
    missing = [c for c in features + [target] if c not in train.columns]
    if missing:
        raise KeyError(f"training frame lacks column(s) {missing}")
    if train.empty:
        raise ValueError("training frame is empty")

    clf = build_forest(params, seed)
    clf.fit(train[features], train[target].astype(int).to_numpy())
    return ForestModel(estimator=clf, features=tuple(features), target=target)
