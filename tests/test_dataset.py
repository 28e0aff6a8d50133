"""Tests for key-aligned dataset assembly and export round trips."""
from __future__ import annotations

import json

import numpy as np
import pandas as pd
import pytest

from officer_alaam.config import COVARIATE_COLUMNS
from officer_alaam.dataset import AlaamInputs, align_on_ids, assemble_alaam_inputs
from officer_alaam.export import export_alaam_inputs, load_alaam_inputs


@pytest.fixture
def adjacency() -> pd.DataFrame:
    ids = pd.Index([10, 20, 30], name="officer_id")
    return pd.DataFrame([[0, 1, 1], [1, 0, 0], [0, 0, 0]], index=ids, columns=ids)


@pytest.fixture
def officers() -> pd.DataFrame:
    # deliberately out of id order
    return pd.DataFrame({
        "officer_id": [30, 10, 20],
        "invited": [0, 1, 1],
        "female": [np.nan, 1.0, 1.0],
        "nonwhite": [0.0, 1.0, 0.0],
        "supervisor": [1.0, np.nan, 0.0],
        "years_service": [5.0, 12.0, 5.0],
        "force_incidents": [0, 3, 1],
    })


class TestAlignment:
    def test_align_on_ids_reorders_by_key(self, officers):
        out = align_on_ids(officers, pd.Index([10, 20, 30]))
        assert out.index.tolist() == [10, 20, 30]
        assert out.loc[10, "force_incidents"] == 3

    def test_missing_ids_raise(self, officers):
        with pytest.raises(ValueError, match="missing"):
            align_on_ids(officers, pd.Index([10, 40]))

    def test_duplicate_ids_raise(self, officers):
        dup = pd.concat([officers, officers.iloc[[0]]])
        with pytest.raises(ValueError, match="Duplicate"):
            align_on_ids(dup, pd.Index([10]))

    def test_inputs_reject_misordered_covariates(self, adjacency):
        X = pd.DataFrame({"a": [1, 2, 3]}, index=[30, 20, 10])
        with pytest.raises(ValueError, match="officer_id order"):
            AlaamInputs(officer_ids=(10, 20, 30), outcome=np.array([0, 1, 0]), adjacency=adjacency, covariates=X)


class TestAssemble:
    def test_rows_follow_adjacency_order(self, officers, adjacency):
        inputs = assemble_alaam_inputs(officers, adjacency)
        assert inputs.officer_ids == (10, 20, 30)
        assert inputs.outcome.tolist() == [1, 1, 0]
        assert inputs.covariates.index.tolist() == [10, 20, 30]
        assert inputs.covariates.loc[10, "out_degree"] == 2
        assert inputs.covariates.loc[30, "in_degree"] == 1
        assert inputs.covariates.loc[10, "reciprocity"] == 1

    def test_mode_filled_attributes(self, officers, adjacency):
        inputs = assemble_alaam_inputs(officers, adjacency)
        X = inputs.covariates
        assert not X.isna().any().any()
        assert X.loc[30, "female"] == 1.0
        # supervisor observed [0.0 (id 20), 1.0 (id 30)] in id order: tie -> first seen
        assert X.loc[10, "supervisor"] == 0.0
        assert list(X.columns[-9:]) == COVARIATE_COLUMNS

    def test_officers_outside_network_ignored(self, officers, adjacency):
        extra = pd.concat([officers, officers.iloc[[0]].assign(officer_id=99)])
        inputs = assemble_alaam_inputs(extra, adjacency)
        assert 99 not in inputs.covariates.index


class TestExportRoundTrip:
    @pytest.mark.parametrize("fmt", ["csv", "pickle"])
    def test_round_trip(self, officers, adjacency, tmp_path, fmt):
        inputs = assemble_alaam_inputs(officers, adjacency)
        export_alaam_inputs(inputs, tmp_path)
        loaded = load_alaam_inputs(tmp_path, fmt=fmt)

        assert loaded.officer_ids == inputs.officer_ids
        np.testing.assert_array_equal(loaded.outcome, inputs.outcome)
        np.testing.assert_array_equal(loaded.adjacency.to_numpy(), inputs.adjacency.to_numpy())
        assert loaded.adjacency.columns.tolist() == [10, 20, 30]
        assert loaded.covariates.columns.tolist() == inputs.covariates.columns.tolist()
        for col in COVARIATE_COLUMNS:
            assert loaded.covariates[col].tolist() == inputs.covariates[col].tolist()

    def test_manifest(self, officers, adjacency, tmp_path):
        manifest = export_alaam_inputs(assemble_alaam_inputs(officers, adjacency), tmp_path)
        assert set(manifest) == {
            "adjacency.csv", "adjacency.pkl", "outcome.csv", "outcome.pkl", "covariates.csv", "covariates.pkl",
        }
        meta = json.loads((tmp_path / "manifest.json").read_text())
        assert meta["n"] == 3 and meta["directed"] is True

    def test_unknown_format(self, officers, adjacency, tmp_path):
        export_alaam_inputs(assemble_alaam_inputs(officers, adjacency), tmp_path)
        with pytest.raises(ValueError, match="Unknown format"):
            load_alaam_inputs(tmp_path, fmt="parquet")
