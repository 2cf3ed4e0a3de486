import hypothesis.strategies as st
import numpy as np
import pandas as pd
import pandas.testing as pdt
from hypothesis import given

from colonsurv.data import labels


@given(st.floats(min_value=0, max_value=120, allow_nan=False))
def test_age_band_is_total_over_ages(age):
    band = labels.age_band(age)
    assert band in labels.AGE_BANDS
    assert band == ("18-69" if age < 70 else "70+")


@given(st.integers(min_value=0, max_value=120))
def test_age_band_threshold(age):
    expected = "70+" if age >= labels.AGE_THRESHOLD else "18-69"
    assert labels.age_band(age) == expected


def test_age_band_boundaries():
    assert labels.age_band(69) == "18-69"
    assert labels.age_band(69.9) == "18-69"
    assert labels.age_band(70) == "70+"
    assert labels.age_band(None) is None
    assert labels.age_band(np.nan) is None


def test_scalar_labellers():
    assert labels.label_sex(0) == "Female"
    assert labels.label_sex(1) == "Male"
    assert labels.label_differ(1) == "Well"
    assert labels.label_differ(2.0) == "Moderate"
    assert labels.label_differ(3) == "Poor"
    assert labels.label_extent(4) == "Contiguous structures"
    assert labels.label_surg(0) == "Short"
    assert labels.label_surg(1) == "Long"


@given(st.one_of(st.integers(), st.floats(), st.text(), st.none()))
def test_lookups_never_raise(code):
    for labeller in (
        labels.label_sex,
        labels.label_differ,
        labels.label_extent,
        labels.label_surg,
    ):
        result = labeller(code)
        assert result is None or isinstance(result, str)


def test_unknown_codes_map_to_missing():
    assert labels.label_differ(4) is None
    assert labels.label_differ(1.5) is None
    assert labels.label_extent("serosa") is None
    assert labels.label_sex(np.nan) is None


def test_age_bands_vectorised_matches_scalar():
    ages = pd.Series([18, 45, 69, 70, 85, np.nan])
    bands = labels.age_bands(ages)
    assert bands.ordered
    assert list(bands.categories) == list(labels.AGE_BANDS)
    expected = [labels.age_band(a) for a in ages]
    assert [None if pd.isna(b) else b for b in bands] == expected


def test_derive_labels_is_idempotent(raw_colon):
    first = labels.derive_labels(raw_colon)
    second = labels.derive_labels(raw_colon)
    pdt.assert_frame_equal(first, second)

    again = labels.derive_labels(first)
    pdt.assert_frame_equal(first, again)


def test_derive_labels_leaves_input_untouched(raw_colon):
    before = raw_colon.copy()
    out = labels.derive_labels(raw_colon)
    pdt.assert_frame_equal(raw_colon, before)
    for col in ("age_group", "sex_label", "differ_label", "extent_label", "surg_label"):
        assert col in out.columns
        assert col not in raw_colon.columns


def test_derived_labels_follow_codes(raw_colon):
    out = labels.derive_labels(raw_colon)
    for code, label in labels.DIFFER_LABELS.items():
        assert (out.loc[raw_colon["differ"] == code, "differ_label"] == label).all()
    assert out.loc[raw_colon["differ"].isna(), "differ_label"].isna().all()
    assert (out.loc[raw_colon["age"] >= 70, "age_group"] == "70+").all()
