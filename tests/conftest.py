"""
Shared pytest fixtures: a small two-wave officer survey with known network.

Combined nomination network after cleaning (responders 101-107):

    101 <-> 102        mutual pair
    103 -> 101, 102    closes a transitive triad at 103
    104                no nominations (sentinels only)        -> isolate
    105 -> 108         108 never answered the outcome         -> isolate
    106 -> 105         plus a sentinel and a self-nomination
    107 -> 101         named twice (mentor_1 and friend_1)

108 answered wave 2 but refused the outcome question; 109 only answered wave 1.
"""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from officer_alaam.config import FRIEND_SLOTS, MENTOR_SLOTS

RESPONDERS = [101, 102, 103, 104, 105, 106, 107]

EXPECTED_EDGES = {
    (101, 102),
    (102, 101),
    (103, 101),
    (103, 102),
    (106, 105),
    (107, 101),
}


@pytest.fixture
def wave1() -> pd.DataFrame:
    return pd.DataFrame({
        "Officer_ID": [101, 102, 103, 104, 105, 106, 107, 109],
        "gender": ["Female", "Male", "Male", "Female", "Male", "Male", "-99", "Male"],
        "race": ["White", "Black", "White", "Hispanic", "White", "Asian", "White", "White"],
        "hispanic": ["no", "no", "no", "yes", "no", "no", "no", "no"],
        "rank": ["Officer", "Officer", "Sergeant", "Officer", "Lieutenant", "Officer", "Officer", "Officer"],
        "hire_year": [2010, 2005, 1999, 2015, 1995, 2012, 2018, 2001],
        "pj_1": [4, 3, 5, 2, 4, 3, -88, 4],
        "pj_2": [4, 3, 4, 2, 5, 3, -88, 4],
        "pj_3": [5, 2, 4, 3, 4, 3, -88, 4],
        "pj_4": [4, 3, 4, 2, 4, 2, -88, 3],
        "cyn_1": [1, 2, 2, 4, 1, 3, 2, 2],
        "cyn_2": [2, 2, 1, 4, 1, 3, 2, 2],
        "cyn_3": [1, 3, 2, 5, 2, 3, 2, 1],
    })


def _slots(rows: dict[int, dict[str, int]], ids: list[int]) -> dict[str, list[int]]:
    cols = {s: [0] * len(ids) for s in MENTOR_SLOTS + FRIEND_SLOTS}
    for pos, oid in enumerate(ids):
        for slot, nominee in rows.get(oid, {}).items():
            cols[slot][pos] = nominee
    return cols


@pytest.fixture
def wave2() -> pd.DataFrame:
    ids = [101, 102, 103, 104, 105, 106, 107, 108]
    noms = {
        101: {"mentor_1": 102},
        102: {"friend_1": 101},
        103: {"mentor_1": 101, "friend_1": 102},
        104: {"mentor_1": -99, "friend_1": -88},
        105: {"friend_1": 108},
        106: {"mentor_1": 105, "friend_1": 999, "friend_2": 106},
        107: {"mentor_1": 101, "friend_1": 101},
        108: {"friend_1": 101},
    }
    df = pd.DataFrame({
        "officer_id": ids,
        "gender": [np.nan, "Male", "Male", "Female", "Male", "Male", "Female", "Male"],
        "rank": ["Officer", "Sergeant", "Sergeant", "Officer", "Lieutenant", "Officer", "Officer", "Officer"],
        "hire_year": [2010, 2005, 1999, 2015, 1995, 2012, 2018, 2003],
        "invited": [1, 1, 0, 0, 1, 0, 0, -99],
    })
    for slot, values in _slots(noms, ids).items():
        df[slot] = values
    return df


@pytest.fixture
def incidents() -> pd.DataFrame:
    return pd.DataFrame({
        "officer_id": [101, 101, 101, 103, 103, 106, 200, 102],
        "incident_id": [1, 2, 1, 3, 4, 5, 6, 7],
        "incident_type": [
            "use_of_force",
            "use_of_force",
            "use_of_force",
            "weapon_drawn",
            "complaint",
            "Weapon_Discharged",
            "use_of_force",
            "traffic_stop",
        ],
    })


@pytest.fixture
def write_inputs(tmp_path, wave1, wave2, incidents):
    """Write the fixtures as the CSV files the CLI expects."""
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    wave1.to_csv(data_dir / "survey_wave1.csv", index=False)
    wave2.to_csv(data_dir / "survey_wave2.csv", index=False)
    incidents.to_csv(data_dir / "incident_log.csv", index=False)
    return data_dir


@pytest.fixture
def logit_frame() -> pd.DataFrame:
    """Synthetic responders with a known logistic data-generating process."""
    rng = np.random.default_rng(7)
    n = 400
    x1 = rng.normal(size=n)
    x2 = rng.integers(0, 2, size=n)
    eta = -0.5 + 1.0 * x1 + 0.8 * x2
    y = (rng.random(n) < 1 / (1 + np.exp(-eta))).astype(int)
    return pd.DataFrame({"officer_id": np.arange(1, n + 1), "x1": x1, "x2": x2.astype(float), "invited": y})


@pytest.fixture
def responders() -> list[int]:
    """Officers who answered the outcome question, in id order."""
    return list(RESPONDERS)


@pytest.fixture
def expected_edges() -> set[tuple[int, int]]:
    """Combined-network edges left after cleaning and responder restriction."""
    return set(EXPECTED_EDGES)


@pytest.fixture
def mcar_frames() -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Full data and the same data with 40% of x1 missing completely at random.

    x1 is correlated with x2 and drives the outcome, so imputations that
    ignore the outcome attenuate the x1 coefficient.
    """
    rng = np.random.default_rng(2019)
    n = 2000
    x2 = rng.normal(size=n)
    x1 = 0.5 * x2 + np.sqrt(0.75) * rng.normal(size=n)
    eta = -0.3 + 1.5 * x1 + 0.5 * x2
    y = (rng.random(n) < 1 / (1 + np.exp(-eta))).astype(int)
    full = pd.DataFrame({"officer_id": np.arange(1, n + 1), "x1": x1, "x2": x2, "invited": y})
    missing = full.copy()
    missing.loc[rng.random(n) < 0.4, "x1"] = np.nan
    return full, missing
