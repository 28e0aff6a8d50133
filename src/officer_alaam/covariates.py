"""
Node-level structural covariates from a directed adjacency matrix.

All statistics are deterministic functions of the final (sorted,
self-loop-free) 0/1 adjacency matrix A:

- out_degree   row sums of A
- in_degree    column sums of A
- reciprocity  row sums of A * A.T
- k-stars      C(degree, k) for k = 2, 3
- mixed_2star  in_degree * out_degree - reciprocity
- triangles    row sums of A * (A @ A.T)
"""
from __future__ import annotations

import numpy as np
import pandas as pd
from scipy.special import comb

from officer_alaam.config import COVARIATE_COLUMNS, ID_COL

__all__ = [
    "network_covariates",
    "contagion_exposure",
]


def _as_matrix(adjacency: pd.DataFrame | np.ndarray) -> tuple[np.ndarray, pd.Index]:
    if isinstance(adjacency, pd.DataFrame):
        if not adjacency.index.equals(adjacency.columns):
            raise ValueError("Adjacency rows and columns must carry the same officer order")
        index = pd.Index(adjacency.index, name=ID_COL)
        A = adjacency.to_numpy()
    else:
        A = np.asarray(adjacency)
        index = pd.RangeIndex(A.shape[0], name=ID_COL) if A.ndim == 2 else None

    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ValueError(f"Adjacency matrix must be square, got shape {A.shape}")
    if not np.isin(A, (0, 1)).all():
        raise ValueError("Adjacency matrix must be binary (0/1)")
    if np.diag(A).any():
        raise ValueError("Adjacency matrix has self-loops; remove placeholders first")
    return A.astype(np.int64), index


def network_covariates(adjacency: pd.DataFrame | np.ndarray) -> pd.DataFrame:
    """
    Compute the nine structural covariates for every node.

    Args:
        adjacency: n x n 0/1 matrix with zero diagonal. A DataFrame keeps its
            officer_id index in the result.

    Returns:
        n x 9 DataFrame with columns COVARIATE_COLUMNS
    """
    A, index = _as_matrix(adjacency)

    out_deg = A.sum(axis=1)
    in_deg = A.sum(axis=0)
    recip = (A * A.T).sum(axis=1)
    triangles = (A * (A @ A.T)).sum(axis=1)

    cov = pd.DataFrame(
        {
            "out_degree": out_deg,
            "in_degree": in_deg,
            "reciprocity": recip,
            "out_2star": comb(out_deg, 2),
            "in_2star": comb(in_deg, 2),
            "out_3star": comb(out_deg, 3),
            "in_3star": comb(in_deg, 3),
            "mixed_2star": in_deg * out_deg - recip,
            "triangles": triangles,
        },
        index=index,
    )
    return cov[COVARIATE_COLUMNS]


def contagion_exposure(adjacency: pd.DataFrame | np.ndarray, outcome: pd.Series | np.ndarray) -> pd.Series:
    """Number of nominated alters with outcome 1 (A @ y)."""
    A, index = _as_matrix(adjacency)
    if isinstance(outcome, pd.Series) and isinstance(adjacency, pd.DataFrame):
        y = outcome.reindex(adjacency.index)
        if y.isna().any():
            raise ValueError("Outcome is missing for some network nodes")
        y = y.to_numpy()
    else:
        y = np.asarray(outcome)
    if y.shape != (A.shape[0],):
        raise ValueError(f"Outcome length {y.shape} does not match adjacency size {A.shape[0]}")
    return pd.Series(A @ y.astype(np.int64), index=index, name="exposure")
