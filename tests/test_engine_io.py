import pandas as pd
import pytest

from losreport.config import ADMISSION_COLUMNS
from losreport.data.engine import Engine
from losreport.data.io import (
    count_rows, load_admissions, quote_ident, sanitize_name, value_counts
)
from losreport.errors import SchemaMismatchError


def test_engine_context_closes_connection():
    with Engine() as eng:
        assert eng.is_open
        assert eng.con.execute("SELECT 41").fetchone()[0] == 41
    assert not eng.is_open
    with pytest.raises(RuntimeError):
        eng.con
    # closing twice is harmless, reopening is not allowed
    eng.close()
    with pytest.raises(RuntimeError):
        eng.open()


def test_engine_closes_when_body_raises():
    eng = Engine()
    with pytest.raises(ZeroDivisionError):
        with eng:
            1 / 0
    assert not eng.is_open


def test_read_csv_missing_file(engine, tmp_path):
    with pytest.raises(FileNotFoundError):
        engine.read_csv(tmp_path / "nope.csv")


def test_sanitize_name():
    assert sanitize_name("Bed Grade") == "Bed_Grade"
    assert sanitize_name(" Available Extra Rooms in Hospital ") == "Available_Extra_Rooms_in_Hospital"
    assert quote_ident('we"ird') == '"we""ird"'


def test_load_admissions_renames_and_validates(engine, admissions_csv, admissions_df):
    rel = load_admissions(engine, admissions_csv, ADMISSION_COLUMNS)
    assert list(rel.columns) == list(ADMISSION_COLUMNS)
    assert count_rows(rel) == len(admissions_df)


def test_load_admissions_reports_every_missing_column(engine, tmp_path, admissions_df):
    path = tmp_path / "broken.csv"
    admissions_df.drop(columns=["Stay", "Age"]).to_csv(path, index=False)
    with pytest.raises(SchemaMismatchError) as err:
        load_admissions(engine, path, ADMISSION_COLUMNS)
    assert set(err.value.missing) == {"Stay", "Age"}


def test_value_counts_largest_first(engine):
    rel = engine.from_frame(pd.DataFrame({"x": ["a", "b", "b", "c", "c", "c"]}))
    vc = value_counts(rel, "x")
    assert list(vc.index) == ["c", "b", "a"]
    assert vc.sum() == 6
