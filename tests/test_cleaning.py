"""Tests for survey cleaning, wave merging and attribute derivation."""
from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from officer_alaam.cleaning import (
    attach_incidents,
    build_officers,
    clean_wave,
    derive_attributes,
    filter_responders,
    incident_counts,
    merge_waves,
    recode_sentinels,
)


class TestRecodeSentinels:
    def test_numeric_codes(self):
        df = pd.DataFrame({"x": [1, -99, 3, -88]})
        out = recode_sentinels(df, ["x"])
        assert out["x"].isna().tolist() == [False, True, False, True]

    def test_text_codes(self):
        df = pd.DataFrame({"g": ["Male", "-99", " -88 ", "Female"]})
        out = recode_sentinels(df, ["g"])
        assert out["g"].isna().tolist() == [False, True, True, False]

    def test_does_not_mutate_input(self):
        df = pd.DataFrame({"x": [-99]})
        recode_sentinels(df, ["x"])
        assert df.loc[0, "x"] == -99


class TestCleanWave:
    def test_normalizes_columns_and_ids(self):
        df = pd.DataFrame({"Officer_ID": ["3", "1", None], "Rank": ["a", "b", "c"]})
        out = clean_wave(df, 1)
        assert list(out.columns) == ["officer_id", "rank"]
        assert out["officer_id"].tolist() == [1, 3]

    def test_duplicate_ids_raise(self):
        df = pd.DataFrame({"officer_id": [1, 1]})
        with pytest.raises(ValueError, match="duplicate"):
            clean_wave(df, 2)

    def test_missing_key_raises(self):
        with pytest.raises(ValueError, match="officer_id"):
            clean_wave(pd.DataFrame({"id": [1]}), 1)


class TestMergeWaves:
    def test_wave2_falls_back_to_wave1(self):
        w1 = pd.DataFrame({"officer_id": [1, 2, 3], "rank": ["officer", "officer", "sergeant"]})
        w2 = pd.DataFrame({"officer_id": [1, 2], "rank": [np.nan, "sergeant"], "invited": [1, 0]})
        out = merge_waves(w1, w2).set_index("officer_id")
        assert out.loc[1, "rank"] == "officer"
        assert out.loc[2, "rank"] == "sergeant"
        assert out.loc[3, "rank"] == "sergeant"
        assert np.isnan(out.loc[3, "invited"])
        assert "rank_w1" not in out.columns


class TestDeriveAttributes:
    def test_demographics_and_role(self):
        df = pd.DataFrame({
            "gender": ["Female", "male", np.nan],
            "race": ["White", "Black", "Asian"],
            "hispanic": ["yes", "no", np.nan],
            "rank": ["Sergeant", "Officer", np.nan],
            "hire_year": [2009, 2030, np.nan],
        })
        out = derive_attributes(df)
        assert out["female"].tolist()[:2] == [1.0, 0.0]
        assert np.isnan(out.loc[2, "female"])
        assert out["race"].tolist() == ["white", "black", "other"]
        assert out["nonwhite"].tolist() == [0.0, 1.0, 1.0]
        assert out["hispanic"].tolist()[:2] == [1.0, 0.0]
        assert out["supervisor"].tolist()[:2] == [1.0, 0.0]
        assert np.isnan(out.loc[2, "supervisor"])
        assert out.loc[0, "years_service"] == 10
        assert np.isnan(out.loc[1, "years_service"])

    def test_scale_means_use_answered_items(self):
        df = pd.DataFrame({"cyn_1": [1, np.nan], "cyn_2": [3, np.nan], "cyn_3": [np.nan, np.nan]})
        out = derive_attributes(df)
        assert out.loc[0, "cynicism"] == 2.0
        assert np.isnan(out.loc[1, "cynicism"])


class TestIncidents:
    def test_counts_distinct_incidents(self, incidents):
        counts = incident_counts(incidents).set_index("officer_id")
        assert counts.loc[101, "force_incidents"] == 2
        assert counts.loc[103, "weapon_draws"] == 1
        assert counts.loc[103, "misconduct_reports"] == 1
        assert counts.loc[106, "weapon_uses"] == 1
        assert 102 not in counts.index

    def test_officers_without_incidents_get_zero(self, incidents):
        officers = pd.DataFrame({"officer_id": [101, 104]})
        out = attach_incidents(officers, incident_counts(incidents)).set_index("officer_id")
        assert out.loc[104, "force_incidents"] == 0
        assert out["force_incidents"].dtype.kind == "i"

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="incident_id"):
            incident_counts(pd.DataFrame({"officer_id": [1], "incident_type": ["complaint"]}))


class TestResponders:
    def test_filter_keeps_binary_answers(self):
        df = pd.DataFrame({"officer_id": [3, 1, 2, 4], "invited": [1, 0, np.nan, 2]})
        out = filter_responders(df)
        assert out["officer_id"].tolist() == [1, 3]
        assert out["invited"].tolist() == [0, 1]


class TestBuildOfficers:
    def test_fixture_officers(self, wave1, wave2, incidents):
        officers = build_officers(wave1, wave2, incidents).set_index("officer_id")
        assert sorted(officers.index) == [101, 102, 103, 104, 105, 106, 107, 108, 109]
        # gender missing in wave 2 falls back to wave 1
        assert officers.loc[101, "female"] == 1.0
        # rank answered in wave 2 takes precedence
        assert officers.loc[102, "supervisor"] == 1.0
        # refused outcome recoded to missing
        assert np.isnan(officers.loc[108, "invited"])
        assert officers.loc[101, "force_incidents"] == 2
        assert np.isnan(officers.loc[107, "procedural_justice"])

    def test_responders_only(self, wave1, wave2, incidents):
        officers = build_officers(wave1, wave2, incidents, responders_only=True)
        assert officers["officer_id"].tolist() == [101, 102, 103, 104, 105, 106, 107]
