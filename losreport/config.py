from __future__ import annotations
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml

DEFAULT_CONFIG = Path("configs/los.yaml")

STAY_LABELS = (
    "0-10", "11-20", "21-30", "31-40", "41-50", "51-60",
    "61-70", "71-80", "81-90", "91-100", "More than 100 Days",
)

ADMISSION_COLUMNS = (
    "case_id", "Hospital_code", "Hospital_type_code", "City_Code_Hospital",
    "Hospital_region_code", "Available_Extra_Rooms_in_Hospital", "Department",
    "Ward_Type", "Ward_Facility_Code", "Bed_Grade", "patientid",
    "City_Code_Patient", "Type_of_Admission", "Severity_of_Illness",
    "Visitors_with_Patient", "Age", "Admission_Deposit", "Stay",
)


@dataclass(frozen=True)
class DataConfig:
    csv_path: str = "data/train_data.csv"
    out_dir: str = "results/los_report"


@dataclass(frozen=True)
class ColumnsConfig:
    id_col: str = "case_id"
    target: str = "Stay"
    categorical: Tuple[str, ...] = (
        "Hospital_type_code", "Hospital_region_code", "Department", "Ward_Type",
        "Ward_Facility_Code", "Type_of_Admission", "Severity_of_Illness", "Age",
    )
    required: Tuple[str, ...] = ADMISSION_COLUMNS


@dataclass(frozen=True)
class CleaningConfig:
    dropna: Tuple[str, ...] = ("Bed_Grade", "City_Code_Patient")


@dataclass(frozen=True)
class CollapseConfig:
    keep: Tuple[str, ...] = STAY_LABELS[:4]
    collapse: Tuple[str, ...] = STAY_LABELS[4:]
    into: str = "More than 40"


@dataclass(frozen=True)
class FeaturesConfig:
    identifiers: Tuple[str, ...] = ("case_id", "patientid")
    # known only once the stay is over
    leakage: Tuple[str, ...] = ("Visitors_with_Patient",)
    redundant: Tuple[str, ...] = ()
    allowlist: Optional[Tuple[str, ...]] = None


@dataclass(frozen=True)
class SplitConfig:
    test_size: float = 0.2
    seed: int = 42
    stratify: bool = False


@dataclass(frozen=True)
class ForestConfig:
    num_trees: int = 20
    max_depth: Optional[int] = 10
    min_instances_per_node: int = 1


@dataclass(frozen=True)
class ProfileConfig:
    cardinality_limit: int = 15


@dataclass(frozen=True)
class ReportConfig:
    data: DataConfig = field(default_factory=DataConfig)
    columns: ColumnsConfig = field(default_factory=ColumnsConfig)
    cleaning: CleaningConfig = field(default_factory=CleaningConfig)
    collapse: CollapseConfig = field(default_factory=CollapseConfig)
    features: FeaturesConfig = field(default_factory=FeaturesConfig)
    split: SplitConfig = field(default_factory=SplitConfig)
    forest: ForestConfig = field(default_factory=ForestConfig)
    profile: ProfileConfig = field(default_factory=ProfileConfig)


def load_yaml(path: str | Path) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _section(cls, raw: Optional[Dict[str, Any]], name: str):
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ValueError(f"config section '{name}' must be a mapping, got {type(raw).__name__}")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ValueError(f"config section '{name}': unknown key(s) {unknown}")
    kwargs = {k: tuple(v) if isinstance(v, list) else v for k, v in raw.items()}
    return cls(**kwargs)


def config_from_dict(raw: Dict[str, Any]) -> ReportConfig:
    # each section's default_factory is its dataclass
    sections = {f.name: f.default_factory for f in fields(ReportConfig)}
    unknown = sorted(set(raw) - set(sections))
    if unknown:
        raise ValueError(f"unknown config section(s) {unknown}")
    built = {name: _section(cls, raw.get(name), name) for name, cls in sections.items()}
    return ReportConfig(**built)


def load_config(path: str | Path = DEFAULT_CONFIG) -> ReportConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"config not found: {p}")
    return config_from_dict(load_yaml(p))


def with_overrides(cfg: ReportConfig, csv_path=None, out_dir=None, seed=None) -> ReportConfig:
    """Apply command-line overrides on top of a loaded config."""
    data = cfg.data
    if csv_path is not None:
        data = replace(data, csv_path=str(csv_path))
    if out_dir is not None:
        data = replace(data, out_dir=str(out_dir))
    split = cfg.split if seed is None else replace(cfg.split, seed=int(seed))
    return replace(cfg, data=data, split=split)
