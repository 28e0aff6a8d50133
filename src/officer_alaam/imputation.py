"""
Missing-data handling.

Two separate policies are used:
- mode_fill: one-pass column-mode substitution for the ALAAM export path
- multiply_impute + pool_estimates: chained-equation imputation and Rubin's
  rules pooling for the logistic-regression robustness path
"""
from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.imputation.mice import MICEData

from officer_alaam.config import MI_BURN, MI_IMPUTATIONS, MI_SEED

__all__ = [
    "column_mode",
    "mode_fill",
    "multiply_impute",
    "pool_estimates",
]

logger = logging.getLogger("officer_alaam")


def column_mode(s: pd.Series):
    """
    Most frequent observed value.

    Ties go to the value encountered first in the column's order, which
    pandas' Series.mode (sorted) does not guarantee. Returns NaN when every
    value is missing.
    """
    observed = s.dropna()
    if observed.empty:
        return np.nan
    counts = observed.value_counts(sort=False).reindex(pd.unique(observed))
    return counts.idxmax()


def mode_fill(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Fill missing values in each column with that column's mode."""
    out = df.copy()
    for col in columns:
        if col not in out.columns:
            raise ValueError(f"Column '{col}' not found for mode fill")
        n_missing = int(out[col].isna().sum())
        if not n_missing:
            continue
        mode = column_mode(out[col])
        if pd.isna(mode):
            logger.warning(f"[mode fill] {col}: all values missing, left as NaN")
            continue
        out[col] = out[col].fillna(mode)
        logger.info(f"[mode fill] {col}: {n_missing} values -> {mode}")
    return out


def multiply_impute(
    df: pd.DataFrame,
    columns: list[str],
    m: int = MI_IMPUTATIONS,
    burn: int = MI_BURN,
    seed: int = MI_SEED,
    auxiliary: Optional[list[str]] = None,
) -> list[pd.DataFrame]:
    """
    Generate m completed copies of df using chained equations.

    Only `columns` are imputed (predictive mean matching via statsmodels
    MICEData); other columns are carried over untouched. `auxiliary` columns,
    typically the analysis outcome, enter every imputation model as
    predictors but are never written back.
    """
    if m < 2:
        raise ValueError("Multiple imputation needs at least 2 imputations")

    if not df[columns].isna().any().any():
        logger.info("[MI] no missing values; returning identical copies")
        return [df.copy() for _ in range(m)]

    model_cols = [c for c in (auxiliary or []) if c not in columns] + list(columns)
    data = df[model_cols].apply(pd.to_numeric, errors="coerce").astype(float).reset_index(drop=True)

    # MICEData draws from numpy's global generator; restore it afterwards
    state = np.random.get_state()
    np.random.seed(seed)
    try:
        imp = MICEData(data)
        completed: list[pd.DataFrame] = []
        for _ in range(m):
            imp.update_all(burn)
            filled = imp.data[columns].copy()
            filled.index = df.index
            out = df.copy()
            out[columns] = filled
            completed.append(out)
    finally:
        np.random.set_state(state)
    logger.info(f"[MI] generated {m} completed datasets ({burn} cycles each)")
    return completed


def pool_estimates(params: pd.DataFrame, variances: pd.DataFrame) -> pd.DataFrame:
    """
    Combine per-imputation estimates with Rubin's rules.

    Args:
        params: m x k frame of point estimates (one row per imputation)
        variances: m x k frame of squared standard errors

    Returns:
        k-row frame with coef, se, within, between, df, t, p-value, CI and the
        fraction of missing information
    """
    m = len(params)
    if m < 2:
        raise ValueError("Pooling needs estimates from at least 2 imputations")
    variances = variances.reindex(index=params.index, columns=params.columns)

    qbar = params.mean(axis=0)
    ubar = variances.mean(axis=0)
    b = params.var(axis=0, ddof=1)
    total = ubar + (1 + 1 / m) * b
    se = np.sqrt(total)

    with np.errstate(divide="ignore", invalid="ignore"):
        r = (1 + 1 / m) * b / ubar
        dof = np.where(b > 0, (m - 1) * (1 + 1 / r) ** 2, np.inf)
        fmi = np.where(total > 0, (1 + 1 / m) * b / total, 0.0)
    dof = pd.Series(dof, index=params.columns)

    t_stat = qbar / se
    finite = np.isfinite(dof)
    pval = np.where(
        finite,
        2 * stats.t.sf(np.abs(t_stat), np.where(finite, dof, 1)),
        2 * stats.norm.sf(np.abs(t_stat)),
    )
    crit = np.where(finite, stats.t.ppf(0.975, np.where(finite, dof, 1)), stats.norm.ppf(0.975))

    pooled = pd.DataFrame(
        {
            "coef": qbar,
            "se": se,
            "within": ubar,
            "between": b,
            "df": dof,
            "t": t_stat,
            "p-value": pval,
            "ci_low": qbar - crit * se,
            "ci_high": qbar + crit * se,
            "fmi": fmi,
        },
        index=params.columns,
    )
    pooled.index.name = "term"
    return pooled
