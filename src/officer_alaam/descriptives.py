"""
Descriptive statistics for the officer network study.

Produces flat tables for:
- Summary statistics of outcome, attributes and network covariates
- Invited vs not-invited comparisons
- Whole-network summary
- Missingness of model variables
"""
from __future__ import annotations

import logging
from pathlib import Path

import networkx as nx
import numpy as np
import pandas as pd
from scipy import stats

from officer_alaam.config import COVARIATE_COLUMNS, ID_COL, OUTCOME_COL, get_predictors
from officer_alaam.covariates import contagion_exposure
from officer_alaam.export import write_table
from officer_alaam.nominations import network_summary
from officer_alaam.utils import missingness_report

__all__ = [
    "summary_table",
    "compare_by_outcome",
    "run_descriptives",
]

logger = logging.getLogger("officer_alaam")


def summary_table(df: pd.DataFrame, variables: list[str]) -> pd.DataFrame:
    """Compute summary statistics (N, Mean, SD, Min, Max) for variables."""
    available = [v for v in variables if v in df.columns]
    stats_df = df[available].apply(pd.to_numeric, errors="coerce").describe().T
    stats_df = stats_df[["count", "mean", "std", "min", "max"]]
    stats_df.columns = ["N", "Mean", "SD", "Min", "Max"]
    return stats_df.round(3)


def _is_binary(s: pd.Series) -> bool:
    return set(s.dropna().unique()) <= {0, 1}


def compare_by_outcome(df: pd.DataFrame, variables: list[str], outcome: str = OUTCOME_COL) -> pd.DataFrame:
    """
    Compare invited and not-invited officers.

    Binary variables use a chi-square test of independence, continuous ones a
    Welch t-test. Tests are skipped (NaN) when a group has fewer than 2 values.
    """
    rows = []
    groups = df[outcome]
    for var in [v for v in variables if v in df.columns]:
        x = pd.to_numeric(df[var], errors="coerce")
        in_grp = x[groups == 1].dropna()
        out_grp = x[groups == 0].dropna()
        test, stat, pval = "", np.nan, np.nan
        if len(in_grp) >= 2 and len(out_grp) >= 2:
            if _is_binary(x):
                table = pd.crosstab(x, groups)
                if table.shape == (2, 2):
                    stat, pval, _, _ = stats.chi2_contingency(table)
                    test = "chi2"
            elif x.dropna().nunique() > 1:
                stat, pval = stats.ttest_ind(in_grp, out_grp, equal_var=False)
                test = "welch_t"
        rows.append({
            "variable": var,
            "mean_invited": in_grp.mean(),
            "mean_not_invited": out_grp.mean(),
            "n_invited": len(in_grp),
            "n_not_invited": len(out_grp),
            "test": test,
            "statistic": stat,
            "p-value": pval,
        })
    return pd.DataFrame(rows).set_index("variable").round(4)


def run_descriptives(
    frame: pd.DataFrame,
    graph: nx.DiGraph,
    adjacency: pd.DataFrame,
    out_dir: Path,
) -> dict[str, pd.DataFrame]:
    """
    Generate descriptive tables.

    Outputs to out_dir:
    - summary_stats.csv
    - outcome_comparison.csv
    - network_summary.csv
    - missingness.csv
    """
    logger.info("[Descriptives] Generating tables...")
    out_dir = Path(out_dir)

    exposure = contagion_exposure(adjacency, frame.set_index(ID_COL)[OUTCOME_COL])
    frame = frame.merge(exposure.reset_index(), on=ID_COL, how="left")

    key_vars = [OUTCOME_COL] + get_predictors(["attributes", "behavior", "attitudes"])
    key_vars += [c for c in COVARIATE_COLUMNS if c not in key_vars] + ["exposure"]

    tables = {
        "summary_stats": summary_table(frame, key_vars),
        "outcome_comparison": compare_by_outcome(frame, key_vars[1:]),
        "network_summary": network_summary(graph).set_index("metric"),
        "missingness": missingness_report(frame, key_vars),
    }
    for name, table in tables.items():
        write_table(table, out_dir / f"{name}.csv")

    logger.info(f"\n{tables['summary_stats'].to_string()}")
    logger.info(f"\n{tables['network_summary'].to_string()}")
    return tables
