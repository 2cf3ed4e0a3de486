import logging

import pandas as pd
import pytest

from colonsurv.data.load import (
    REQUIRED_COLUMNS,
    check_two_rows_per_subject,
    load_dataset,
    validate_columns,
)
from colonsurv.utils.config import default_config


def test_validate_columns_names_missing_columns(raw_colon):
    with pytest.raises(KeyError, match="differ"):
        validate_columns(raw_colon.drop(columns=["differ", "node4"]))


def test_validate_columns_rejects_non_numeric(raw_colon):
    bad = raw_colon.copy()
    bad["age"] = bad["age"].astype(object)
    bad.loc[0, "age"] = "sixty"
    with pytest.raises(ValueError):
        validate_columns(bad)


def test_validate_columns_coerces_numbers(raw_colon):
    as_text = raw_colon.astype({"time": str, "status": str})
    df = validate_columns(as_text)
    assert pd.api.types.is_numeric_dtype(df["time"])
    assert pd.api.types.is_numeric_dtype(df["status"])


def test_two_rows_per_subject(raw_colon, caplog):
    assert check_two_rows_per_subject(raw_colon)

    with caplog.at_level(logging.WARNING):
        assert not check_two_rows_per_subject(raw_colon.iloc[1:])
    assert "exactly two rows" in caplog.text


def test_load_dataset_from_csv(colon_csv):
    cfg = default_config().data
    cfg.csv_path = str(colon_csv)
    df = load_dataset(cfg)
    assert set(REQUIRED_COLUMNS) <= set(df.columns)
    assert len(df) == 2 * df["id"].nunique()


def test_load_dataset_drops_rownames(raw_colon, tmp_path):
    path = tmp_path / "colon.csv"
    raw_colon.to_csv(path)
    cfg = default_config().data
    cfg.csv_path = str(path)
    df = load_dataset(cfg)
    assert "Unnamed: 0" not in df.columns
    assert "rownames" not in df.columns


def test_load_dataset_missing_column_is_fatal(raw_colon, tmp_path):
    path = tmp_path / "colon.csv"
    raw_colon.drop(columns=["etype"]).to_csv(path, index=False)
    cfg = default_config().data
    cfg.csv_path = str(path)
    with pytest.raises(KeyError):
        load_dataset(cfg)


def test_real_dataset_shape(real_colon):
    assert len(real_colon) == 1858
    assert real_colon["id"].nunique() == 929
    assert check_two_rows_per_subject(real_colon)
