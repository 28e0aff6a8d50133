"""
Model-ready dataset assembly.

Every combination of network-derived and attribute data is a join on
officer_id followed by a check that the row order equals the adjacency
node order. Rows are never combined by position.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd

from officer_alaam.config import ALAAM_ATTRIBUTES, ID_COL, OUTCOME_COL
from officer_alaam.covariates import network_covariates
from officer_alaam.imputation import mode_fill
from officer_alaam.utils import assert_unique_key

__all__ = [
    "AlaamInputs",
    "align_on_ids",
    "analysis_frame",
    "assemble_alaam_inputs",
]

logger = logging.getLogger("officer_alaam")


@dataclass(frozen=True)
class AlaamInputs:
    """Node-aligned inputs for the ALAAM estimator."""
    officer_ids: tuple[int, ...]
    outcome: np.ndarray
    adjacency: pd.DataFrame
    covariates: pd.DataFrame
    directed: bool = True

    def __post_init__(self) -> None:
        ids = pd.Index(self.officer_ids, name=ID_COL)
        for label, index in [
            ("adjacency rows", self.adjacency.index),
            ("adjacency columns", self.adjacency.columns),
            ("covariates", self.covariates.index),
        ]:
            if not ids.equals(pd.Index(index)):
                raise ValueError(f"{label} are not in officer_id order")
        if len(self.outcome) != len(ids):
            raise ValueError(f"Outcome has {len(self.outcome)} values for {len(ids)} officers")

    @property
    def n(self) -> int:
        return len(self.officer_ids)


def align_on_ids(frame: pd.DataFrame, ids: pd.Index) -> pd.DataFrame:
    """
    Return `frame` reindexed to `ids` by its officer_id key.

    Raises ValueError if any id is duplicated in `frame` or absent from it.
    """
    keyed = frame.set_index(ID_COL) if ID_COL in frame.columns else frame
    if keyed.index.has_duplicates:
        dups = keyed.index[keyed.index.duplicated()].unique()[:5].tolist()
        raise ValueError(f"Duplicate {ID_COL} values: {dups}")
    missing = pd.Index(ids).difference(keyed.index)
    if len(missing):
        raise ValueError(f"{len(missing)} officers missing from table, e.g. {missing[:5].tolist()}")
    aligned = keyed.loc[list(ids)]
    aligned.index.name = ID_COL
    return aligned


def analysis_frame(officers: pd.DataFrame, adjacency: pd.DataFrame) -> pd.DataFrame:
    """
    Officer table for network nodes joined with their structural covariates.

    Attribute missingness is left untouched (regression path).
    """
    cov = network_covariates(adjacency)
    attrs = align_on_ids(officers, adjacency.index)
    overlap = [c for c in cov.columns if c in attrs.columns]
    frame = attrs.drop(columns=overlap).join(cov, how="inner")
    if not frame.index.equals(adjacency.index):
        raise ValueError("Analysis frame order does not match adjacency order")
    return frame.reset_index()


def assemble_alaam_inputs(
    officers: pd.DataFrame,
    adjacency: pd.DataFrame,
    attributes: list[str] = ALAAM_ATTRIBUTES,
) -> AlaamInputs:
    """
    Build node-aligned estimator inputs.

    Attributes are mode-filled, joined with the structural covariates on
    officer_id and ordered like the adjacency matrix.
    """
    assert_unique_key(officers, [ID_COL], "officers for ALAAM")
    ids = pd.Index(adjacency.index, name=ID_COL)

    attrs = align_on_ids(officers[[ID_COL, OUTCOME_COL] + attributes], ids)
    attrs = mode_fill(attrs, attributes)

    cov = network_covariates(adjacency)
    X = attrs[attributes].join(cov, how="inner")
    if not X.index.equals(ids):
        raise ValueError("Covariate order does not match adjacency order")
    if X.isna().any().any():
        cols = X.columns[X.isna().any()].tolist()
        raise ValueError(f"Covariates still missing after mode fill: {cols}")

    y = attrs[OUTCOME_COL].astype(int).to_numpy()
    logger.info(
        f"[ALAAM inputs] n={len(ids)} | covariates={X.shape[1]} | outcome=1: {int(y.sum())}"
    )
    return AlaamInputs(
        officer_ids=tuple(int(i) for i in ids),
        outcome=y,
        adjacency=adjacency,
        covariates=X,
    )
