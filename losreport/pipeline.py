from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List
import pandas as pd

from losreport.config import ReportConfig
from losreport.data.engine import Engine
from losreport.data.io import load_admissions, quote_ident, value_counts
from losreport.evaluate import Evaluation, evaluate_model
from losreport.feats.encoder import FeatureEncoder
from losreport.feats.selector import FeaturePolicy
from losreport.models import ForestModel, ForestParams, train_forest
from losreport.preprocess import CategoryCollapser, drop_missing
from losreport.profile import ColumnProfile, profile_columns
from losreport.report import build_sections, render_report, write_report
from losreport.split import split_frame
from losreport.utils import save_feature_names, save_json

REPORT_NAME = "los_report.html"


@dataclass
class PipelineResult:
    profiles: List[ColumnProfile]
    clean_summary: Dict[str, int]
    target_counts: pd.Series
    target_lookup: Dict[int, str]
    features: List[str]
    split_sizes: Dict[str, int]
    model: ForestModel
    evaluation: Evaluation
    report_path: Path


def _say(verbose: bool, msg: str) -> None:
    if verbose:
        print(msg)


def _ordered(labels, order) -> List[str]:
    first = [l for l in order if l in labels]
    return first + sorted((l for l in labels if l not in first), key=str)


def run_pipeline(cfg: ReportConfig, data_path=None, out_dir=None, verbose: bool = True) -> PipelineResult:
    cols = cfg.columns
    target = cols.target
    csv_path = Path(data_path or cfg.data.csv_path)
    out = Path(out_dir or cfg.data.out_dir)

    collapser = CategoryCollapser(keep=cfg.collapse.keep, collapse=cfg.collapse.collapse, into=cfg.collapse.into)
    policy = FeaturePolicy(
        identifiers=tuple(dict.fromkeys(cfg.features.identifiers + (cols.id_col,))),
        leakage=cfg.features.leakage,
        redundant=cfg.features.redundant,
        allowlist=cfg.features.allowlist,
    )
    params = ForestParams(
        num_trees=cfg.forest.num_trees,
        max_depth=cfg.forest.max_depth,
        min_instances_per_node=cfg.forest.min_instances_per_node,
    )

    with Engine() as engine:
        rel = load_admissions(engine, csv_path, cols.required)
        _say(verbose, f"[OK] loaded {csv_path} ({len(rel.columns)} columns)")

        profiles = profile_columns(rel, cfg.profile.cardinality_limit)
        _say(verbose, f"[OK] profiled {len(profiles)} columns")

        cleaned = drop_missing(rel, cfg.cleaning.dropna)
        clean_summary = {
            "rows read": cleaned.rows_in,
            "rows with missing values removed": cleaned.rows_removed,
            "rows kept": cleaned.rows_out,
        }
        _say(verbose, f"[OK] cleaning: {cleaned.rows_in} -> {cleaned.rows_out} rows "
                      f"({cleaned.rows_removed} removed)")
        if cleaned.rows_out == 0:
            raise ValueError("no rows left after dropping missing values")

        raw_counts = value_counts(cleaned.table, target)
        collapsed = collapser.apply(cleaned.table, target)
        counts = value_counts(collapsed, target)
        order = _ordered(list(counts.index), collapser.output_labels)
        counts = counts.reindex(order)
        _say(verbose, f"[OK] {target}: {len(raw_counts)} labels -> {len(counts)} after collapsing")

        leakage_view = None
        if cfg.features.leakage and cfg.features.leakage[0] in collapsed.columns:
            leak = cfg.features.leakage[0]
            leakage_view = (leak, collapsed.project(f"{quote_ident(target)}, {quote_ident(leak)}").df())

        features = policy.fit(collapsed.columns, target).get_feature_names_out()
        categorical = [c for c in cols.categorical if c in features]
        encoder = FeatureEncoder(categorical=categorical, target=target).fit(collapsed)
        keep = [cols.id_col] + features + [target]
        frame = encoder.to_frame(encoder.transform(collapsed, keep), index_col=cols.id_col)
        lookup = encoder.target_lookup
        _say(verbose, f"[OK] encoded {len(frame)} rows x {len(features)} features "
                      f"({len(categorical)} categorical)")

    split = split_frame(
        frame,
        test_size=cfg.split.test_size,
        seed=cfg.split.seed,
        stratify_col=target if cfg.split.stratify else None,
    )
    _say(verbose, f"[OK] split train={len(split.train)} test={len(split.test)} (seed={cfg.split.seed})")

    model = train_forest(split.train, features, target, params, seed=cfg.split.seed)
    importances = model.feature_importances()
    _say(verbose, f"[OK] trained forest: {params.num_trees} trees, max_depth={params.max_depth}")

    evaluation = evaluate_model(model, split.test, target, lookup)
    m = evaluation.metrics
    _say(verbose, f"[OK] test accuracy={m['accuracy']:.4f} precision={m['precision']:.4f} "
                  f"recall={m['recall']:.4f} f1={m['f1']:.4f}")

    label_order = _ordered(list(lookup.values()), collapser.output_labels)
    confusion = evaluation.confusion.reindex(index=label_order, columns=label_order)

    sections = build_sections(
        profiles=profiles,
        raw_counts=raw_counts,
        counts=counts,
        target=target,
        leakage=leakage_view,
        label_order=label_order,
        importances=importances,
        metrics=m,
        confusion=confusion,
        clean_summary=clean_summary,
    )
    report_path = write_report(
        render_report("Covid-19 hospital length of stay", sections, note=f"source: {csv_path.name}"),
        out / REPORT_NAME,
    )
    save_json(out / "metrics.json", {
        "metrics": m,
        "n_test": evaluation.n_test,
        "split": split.sizes,
        "labels": {str(k): v for k, v in lookup.items()},
        "confusion": evaluation.records.to_dict(orient="records"),
    })
    save_feature_names(features, out)
    _say(verbose, f"[OK] wrote {report_path}")

    return PipelineResult(
        profiles=profiles,
        clean_summary=clean_summary,
        target_counts=counts,
        target_lookup=lookup,
        features=features,
        split_sizes=split.sizes,
        model=model,
        evaluation=evaluation,
        report_path=report_path,
    )
