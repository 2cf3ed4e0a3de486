import pytest

from colonsurv.data.variables import BINARY, VARIABLES, get_variable
from colonsurv.utils.config import KM_COVARIATES, MULTIVARIABLE_COVARIATES, SUMMARY_VARIABLES


def test_configured_covariates_are_registered():
    for key in KM_COVARIATES + MULTIVARIABLE_COVARIATES + SUMMARY_VARIABLES:
        assert key in VARIABLES


def test_unknown_variable():
    with pytest.raises(KeyError, match="Unknown analysis variable"):
        get_variable("stage")


def test_reference_is_first_level():
    assert get_variable("rx").reference == "Obs"
    assert get_variable("differ").reference == "Well"
    assert get_variable("age").reference is None


@pytest.mark.parametrize("key", [k for k, v in VARIABLES.items() if v.kind == BINARY])
def test_binary_flags_read_as_no_yes(colon, key):
    values = get_variable(key).values(colon)
    assert list(values.cat.categories) == ["No", "Yes"]
    assert values.notna().all()
    assert (values == "Yes").sum() == (colon[get_variable(key).column] == 1).sum()


def test_categorical_values_keep_index(colon):
    values = get_variable("extent").values(colon)
    assert values.index.equals(colon.index)
    assert values.name == "extent"
    assert values.cat.ordered


def test_continuous_values_are_float(colon):
    values = get_variable("nodes").values(colon)
    assert values.dtype == float
    assert values.isna().any()
