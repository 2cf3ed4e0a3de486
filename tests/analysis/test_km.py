import numpy as np
import pytest
from lifelines import KaplanMeierFitter
from lifelines.statistics import logrank_test

from colonsurv.analysis.km import fit_km, km_medians, plot_km, plot_km_grid
from colonsurv.utils.config import KM_COVARIATES


def test_fit_km_one_curve_per_level(colon):
    result = fit_km(colon, "differ")
    assert [kmf.label for kmf in result.fitters] == ["Well", "Moderate", "Poor"]
    assert set(result.medians) == {"Well", "Moderate", "Poor"}
    assert 0 <= result.logrank_p <= 1


def test_fit_km_matches_lifelines(colon):
    result = fit_km(colon, "node4")
    no, yes = result.fitters
    mask = colon["node4"] == 1
    expected = KaplanMeierFitter().fit(colon.loc[mask, "time"], colon.loc[mask, "status"])
    np.testing.assert_allclose(
        yes.survival_function_.values, expected.survival_function_.values
    )
    two_group = logrank_test(
        colon.loc[~mask, "time"],
        colon.loc[mask, "time"],
        colon.loc[~mask, "status"],
        colon.loc[mask, "status"],
    )
    assert result.logrank_p == pytest.approx(two_group.p_value)


def test_fit_km_rejects_continuous(colon):
    with pytest.raises(ValueError, match="continuous"):
        fit_km(colon, "age")


def test_km_grid_layout(colon):
    results = [fit_km(colon, key) for key in KM_COVARIATES]
    fig = plot_km_grid(results, ncols=2)
    visible = [ax for ax in fig.axes if ax.get_visible() and ax.get_title()]
    assert len(visible) == 10
    assert {ax.get_title() for ax in visible} == {r.label for r in results}


def test_plot_km_annotates_logrank(colon):
    ax = plot_km(fit_km(colon, "rx"))
    assert any(t.get_text().startswith("Log-rank p = ") for t in ax.texts)


def test_km_medians_table(colon):
    results = [fit_km(colon, "rx"), fit_km(colon, "sex")]
    table = km_medians(results)
    assert list(table.columns) == ["Variable", "Level", "Median survival", "Log-rank p"]
    assert list(table["Level"]) == ["Obs", "Lev", "Lev+5FU", "Female", "Male"]
