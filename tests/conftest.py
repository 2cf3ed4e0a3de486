import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402
import pytest  # noqa: E402

from colonsurv.data.clean import clean  # noqa: E402
from colonsurv.data.load import load_dataset  # noqa: E402
from colonsurv.utils.config import default_config  # noqa: E402

ARMS = ["Obs", "Lev", "Lev+5FU"]


def make_colon(n_subjects=600, seed=42, missing_differ=0.03, missing_nodes=0.02):
    """Colon-shaped records: two rows per subject, recurrence then death."""
    rng = np.random.default_rng(seed)
    n = n_subjects
    rx = rng.choice(ARMS, size=n)
    sex = rng.integers(0, 2, size=n)
    age = rng.integers(20, 86, size=n)
    obstruct = rng.binomial(1, 0.2, size=n)
    perfor = rng.binomial(1, 0.05, size=n)
    adhere = rng.binomial(1, 0.15, size=n)
    nodes = rng.poisson(3.5, size=n).astype(float) + 1
    node4 = (nodes > 4).astype(int)
    differ = rng.choice([1, 2, 3], size=n, p=[0.12, 0.68, 0.2]).astype(float)
    extent = rng.choice([1, 2, 3, 4], size=n, p=[0.05, 0.15, 0.7, 0.1])
    surg = rng.binomial(1, 0.3, size=n)

    differ[rng.random(n) < missing_differ] = np.nan
    nodes[rng.random(n) < missing_nodes] = np.nan

    lp = (
        -0.35 * (rx == "Lev+5FU")
        + 0.9 * node4
        + 0.3 * obstruct
        + 0.25 * adhere
        + 0.2 * (extent - 3)
        + 0.2 * surg
    )
    base = 1 / 2500.0
    death = rng.exponential(1 / (base * np.exp(lp)))
    recurrence = death * rng.uniform(0.3, 1.0, size=n)
    censor = rng.uniform(1000, 3300, size=n)

    rows = []
    for etype, event_time in ((1, recurrence), (2, death)):
        time = np.maximum(1, np.minimum(event_time, censor).round())
        status = (event_time <= censor).astype(int)
        rows.append(
            pd.DataFrame(
                {
                    "id": np.arange(1, n + 1),
                    "study": 1,
                    "rx": rx,
                    "sex": sex,
                    "age": age,
                    "obstruct": obstruct,
                    "perfor": perfor,
                    "adhere": adhere,
                    "nodes": nodes,
                    "status": status,
                    "differ": differ,
                    "extent": extent,
                    "surg": surg,
                    "node4": node4,
                    "time": time.astype(int),
                    "etype": etype,
                }
            )
        )
    return pd.concat(rows).sort_values(["id", "etype"]).reset_index(drop=True)


@pytest.fixture(scope="session")
def raw_colon():
    return make_colon()


@pytest.fixture(scope="session")
def colon(raw_colon):
    return clean(raw_colon, target_event="death")


@pytest.fixture
def colon_csv(raw_colon, tmp_path):
    path = tmp_path / "colon.csv"
    raw_colon.to_csv(path, index=False)
    return path


@pytest.fixture
def report_cfg(colon_csv, tmp_path):
    cfg = default_config()
    cfg.data.csv_path = str(colon_csv)
    cfg.report.output_dir = str(tmp_path / "report")
    cfg.format.dpi = 60
    return cfg


@pytest.fixture(scope="session")
def real_colon():
    """The published colon trial records; skipped when they cannot be fetched."""
    try:
        return load_dataset(default_config().data)
    except Exception as e:
        pytest.skip(f"colon dataset unavailable: {e!r}")


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
