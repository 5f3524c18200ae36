import pandas as pd
import pytest

from losreport.data.engine import Engine
from losreport.data.synthetic import make_admissions, write_admissions_csv


@pytest.fixture
def engine():
    eng = Engine().open()
    yield eng
    eng.close()


@pytest.fixture
def admissions_df() -> pd.DataFrame:
    return make_admissions(400, seed=1, missing_rate=0.05)


@pytest.fixture
def admissions_csv(tmp_path, admissions_df):
    return write_admissions_csv(admissions_df, tmp_path / "train_data.csv")
