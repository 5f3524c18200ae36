import pandas as pd
import pytest

from losreport.errors import SchemaMismatchError, UnknownCategoryError
from losreport.feats.encoder import FeatureEncoder, LabelIndexer
from losreport.feats.selector import FeaturePolicy


def test_codes_follow_frequency_then_value(engine):
    rel = engine.from_frame(pd.DataFrame({"x": ["b", "b", "a", "a", "c", "c", "c", "d"]}))
    idx = LabelIndexer("x").fit(rel)
    assert idx.labels == ["c", "a", "b", "d"]
    assert idx.mapping == {"c": 0, "a": 1, "b": 2, "d": 3}


def test_refit_gives_same_codes(engine):
    df = pd.DataFrame({"x": list("zzyyxw")})
    a = LabelIndexer("x").fit(engine.from_frame(df))
    b = LabelIndexer("x").fit(engine.from_frame(df.sample(frac=1.0, random_state=3)))
    assert a.labels == b.labels


def test_decode_inverts_encode(engine):
    labels = ["0-10", "11-20", "More than 40", "0-10", "21-30", "More than 40"]
    idx = LabelIndexer("Stay").fit(engine.from_frame(pd.DataFrame({"Stay": labels})))
    for lbl in set(labels):
        assert idx.decode(idx.encode(lbl)) == lbl
    with pytest.raises(UnknownCategoryError):
        idx.encode("91-100")
    with pytest.raises(ValueError):
        idx.decode(99)


def test_numeric_codes_are_indexed_as_strings(engine):
    idx = LabelIndexer("g").fit(engine.from_frame(pd.DataFrame({"g": [3, 3, 1]})))
    assert idx.labels == ["3", "1"]
    assert idx.encode(1) == 1


def test_unfitted_indexer():
    with pytest.raises(RuntimeError):
        LabelIndexer("x").labels


def test_all_null_column_cannot_be_indexed(engine):
    rel = engine.from_frame(pd.DataFrame({"Ward_Type": [None, None], "Stay": ["0-10", "11-20"]}))
    with pytest.raises(ValueError, match="Ward_Type"):
        LabelIndexer("Ward_Type").fit(rel)
    with pytest.raises(ValueError, match="Ward_Type"):
        FeatureEncoder(categorical=["Ward_Type"], target="Stay").fit(rel)


def _admissions_like():
    return pd.DataFrame({
        "case_id": [10, 11, 12, 13, 14, 15],
        "Ward_Type": ["R", "R", "Q", "S", "Q", "R"],
        "Bed_Grade": [1.0, 2.0, 2.0, 3.0, 4.0, 2.0],
        "Stay": ["0-10", "11-20", "11-20", "More than 40", "0-10", "11-20"],
    })


def test_feature_encoder_roundtrip(engine):
    rel = engine.from_frame(_admissions_like())
    enc = FeatureEncoder(categorical=["Ward_Type"], target="Stay").fit(rel)
    frame = enc.to_frame(enc.transform(rel, ["case_id", "Ward_Type", "Bed_Grade", "Stay"]), index_col="case_id")

    assert list(frame.index) == [10, 11, 12, 13, 14, 15]
    assert list(frame.columns) == ["Ward_Type", "Bed_Grade", "Stay"]
    assert frame["Ward_Type"].tolist() == [0, 0, 1, 2, 1, 0]
    assert frame["Bed_Grade"].tolist() == [1.0, 2.0, 2.0, 3.0, 4.0, 2.0]

    lookup = enc.target_lookup
    assert lookup == {0: "11-20", 1: "0-10", 2: "More than 40"}
    decoded = [lookup[c] for c in frame["Stay"]]
    assert decoded == _admissions_like()["Stay"].tolist()


def test_transform_rejects_unseen_values(engine):
    enc = FeatureEncoder(categorical=["Ward_Type"], target="Stay").fit(engine.from_frame(_admissions_like()))
    other = _admissions_like()
    other.loc[0, "Ward_Type"] = "U"
    with pytest.raises(UnknownCategoryError) as err:
        enc.transform(engine.from_frame(other), ["Ward_Type", "Stay"])
    assert err.value.column == "Ward_Type"
    assert err.value.values == ["U"]


def test_to_frame_requires_numeric_features(engine):
    df = _admissions_like().assign(Department=["a", "b", "a", "b", "a", "b"])
    rel = engine.from_frame(df)
    enc = FeatureEncoder(categorical=["Ward_Type"], target="Stay").fit(rel)
    with pytest.raises(ValueError):
        enc.to_frame(enc.transform(rel, ["case_id", "Department", "Stay"]), index_col="case_id")


def test_encoder_missing_column(engine):
    with pytest.raises(SchemaMismatchError):
        FeatureEncoder(categorical=["Age"], target="Stay").fit(engine.from_frame(_admissions_like()))


COLUMNS = ["case_id", "Hospital_code", "Ward_Type", "patientid", "Visitors_with_Patient", "Age", "Stay"]


def test_policy_drops_ids_and_leakage():
    pol = FeaturePolicy(identifiers=("case_id", "patientid"), leakage=("Visitors_with_Patient",))
    assert pol.fit(COLUMNS, "Stay").get_feature_names_out() == ["Hospital_code", "Ward_Type", "Age"]


def test_policy_allowlist():
    pol = FeaturePolicy(identifiers=("case_id",), allowlist=("Age", "Hospital_code"))
    assert pol.fit(COLUMNS, "Stay").get_feature_names_out() == ["Hospital_code", "Age"]

    with pytest.raises(SchemaMismatchError):
        FeaturePolicy(allowlist=("Bed_Grade",)).fit(COLUMNS, "Stay")
    with pytest.raises(ValueError):
        FeaturePolicy(leakage=("Visitors_with_Patient",), allowlist=("Visitors_with_Patient",)).fit(COLUMNS, "Stay")


def test_policy_needs_target():
    with pytest.raises(SchemaMismatchError):
        FeaturePolicy().fit(["a", "b"], "Stay")
