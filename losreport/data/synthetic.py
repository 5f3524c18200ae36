from __future__ import annotations
from pathlib import Path
import numpy as np
import pandas as pd

from losreport.config import STAY_LABELS

# raw header, as shipped with the admissions CSV (spaces included)
RAW_HEADER = {
    "Available_Extra_Rooms_in_Hospital": "Available Extra Rooms in Hospital",
    "Bed_Grade": "Bed Grade",
    "Type_of_Admission": "Type of Admission",
    "Severity_of_Illness": "Severity of Illness",
    "Visitors_with_Patient": "Visitors with Patient",
}

AGE_BANDS = ["0-10", "11-20", "21-30", "31-40", "41-50", "51-60", "61-70", "71-80", "81-90", "91-100"]


def make_admissions(n: int = 500, seed: int = 0, missing_rate: float = 0.015) -> pd.DataFrame:
    """
    Synthetic admissions with the real column layout. Stay grows with
    severity and with the visitor count, so a forest has something to learn.
    """
    rng = np.random.default_rng(seed)
    severity = rng.choice(["Minor", "Moderate", "Extreme"], size=n, p=[0.3, 0.5, 0.2])
    sev_rank = pd.Series(severity).map({"Minor": 0, "Moderate": 1, "Extreme": 2}).to_numpy()
    visitors = rng.integers(0, 4, size=n) + 2 * sev_rank + rng.integers(0, 3, size=n)
    stay_idx = np.clip(sev_rank * 2 + visitors // 2 + rng.integers(-1, 2, size=n), 0, len(STAY_LABELS) - 1)

    df = pd.DataFrame({
        "case_id": np.arange(1, n + 1),
        "Hospital_code": rng.integers(1, 33, size=n),
        "Hospital_type_code": rng.choice(list("abcdefg"), size=n),
        "City_Code_Hospital": rng.integers(1, 14, size=n),
        "Hospital_region_code": rng.choice(["X", "Y", "Z"], size=n),
        "Available_Extra_Rooms_in_Hospital": rng.integers(0, 8, size=n),
        "Department": rng.choice(["gynecology", "anesthesia", "radiotherapy", "TB & Chest disease", "surgery"], size=n),
        "Ward_Type": rng.choice(list("PQRSTU"), size=n),
        "Ward_Facility_Code": rng.choice(list("ABCDEF"), size=n),
        "Bed_Grade": rng.integers(1, 5, size=n).astype(float),
        "patientid": rng.integers(1, max(2, n // 2), size=n),
        "City_Code_Patient": rng.integers(1, 38, size=n).astype(float),
        "Type_of_Admission": rng.choice(["Emergency", "Trauma", "Urgent"], size=n),
        "Severity_of_Illness": severity,
        "Visitors_with_Patient": visitors,
        "Age": rng.choice(AGE_BANDS, size=n),
        "Admission_Deposit": rng.normal(4800, 1100, size=n).round(1),
        "Stay": [STAY_LABELS[i] for i in stay_idx],
    })
    for col in ("Bed_Grade", "City_Code_Patient"):
        mask = rng.random(n) < missing_rate
        df.loc[mask, col] = np.nan
    return df


def write_admissions_csv(df: pd.DataFrame, path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.rename(columns=RAW_HEADER).to_csv(path, index=False)
    return path
