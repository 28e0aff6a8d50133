"""Logistic regressions of subgroup invitation on officer and network covariates."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

from officer_alaam.config import MI_IMPUTATIONS, MI_SEED, OUTCOME_COL, get_predictors
from officer_alaam.export import write_table
from officer_alaam.imputation import multiply_impute, pool_estimates

__all__ = [
    "significance_stars",
    "fit_logit",
    "fit_logit_mi",
    "run_regressions",
]

logger = logging.getLogger("officer_alaam")


def significance_stars(pval: float) -> str:
    return "***" if pval < 0.01 else "**" if pval < 0.05 else "*" if pval < 0.10 else ""


def _build_formula(outcome: str, predictors: list[str]) -> str:
    return f"{outcome} ~ " + " + ".join(predictors)


def _fit(df: pd.DataFrame, outcome: str, predictors: list[str]):
    model = smf.logit(_build_formula(outcome, predictors), data=df)
    return model.fit(disp=False, maxiter=200)


def fit_logit(
    df: pd.DataFrame,
    predictors: list[str],
    outcome: str = OUTCOME_COL,
) -> pd.DataFrame:
    """
    Complete-case logistic regression.

    Returns:
        DataFrame indexed by term with columns: coef, se, z, p-value,
        odds_ratio, ci_low, ci_high, Sig, N
    """
    data = df.dropna(subset=[outcome] + predictors)
    logger.info(f"[Logit] complete cases: {len(data):,} of {len(df):,}")
    res = _fit(data, outcome, predictors)

    ci = res.conf_int()
    table = pd.DataFrame(
        {
            "coef": res.params,
            "se": res.bse,
            "z": res.tvalues,
            "p-value": res.pvalues,
            "odds_ratio": np.exp(res.params),
            "ci_low": ci[0],
            "ci_high": ci[1],
        }
    )
    table["Sig"] = table["p-value"].map(significance_stars)
    table["N"] = int(res.nobs)
    table.index.name = "term"
    logger.info(f"[Logit] pseudo R2={res.prsquared:.3f} | LL={res.llf:.2f}")
    return table


def fit_logit_mi(
    df: pd.DataFrame,
    predictors: list[str],
    outcome: str = OUTCOME_COL,
    m: int = MI_IMPUTATIONS,
    seed: int = MI_SEED,
    impute_columns: Optional[list[str]] = None,
) -> pd.DataFrame:
    """
    Logistic regression on m multiply-imputed datasets, pooled with Rubin's rules.

    The outcome is never imputed; rows missing it are dropped first. It does
    enter every imputation model as a predictor.
    """
    data = df.dropna(subset=[outcome])
    columns = impute_columns or predictors
    completed = multiply_impute(data, columns, m=m, seed=seed, auxiliary=[outcome])

    params, variances = [], []
    for i, d in enumerate(completed):
        res = _fit(d, outcome, predictors)
        params.append(res.params.rename(i))
        variances.append((res.bse ** 2).rename(i))

    pooled = pool_estimates(pd.DataFrame(params), pd.DataFrame(variances))
    pooled["odds_ratio"] = np.exp(pooled["coef"])
    pooled["Sig"] = pooled["p-value"].map(significance_stars)
    pooled["N"] = len(data)
    pooled["m"] = m
    return pooled


def run_regressions(
    frame: pd.DataFrame,
    out_dir: Path,
    predictors: Optional[list[str]] = None,
    m: int = MI_IMPUTATIONS,
) -> dict[str, pd.DataFrame]:
    """
    Fit the complete-case and multiple-imputation logits and save both tables.

    Outputs to out_dir:
    - logit_complete_case.csv
    - logit_mi.csv
    """
    predictors = predictors or get_predictors()
    predictors = [p for p in predictors if p in frame.columns]

    print("\n" + "=" * 60)
    print(" LOGISTIC REGRESSION: Invitation to subgroup")
    print("=" * 60)

    cc = fit_logit(frame, predictors)
    write_table(cc, Path(out_dir) / "logit_complete_case.csv")
    print(cc[["coef", "se", "p-value", "odds_ratio", "Sig"]].round(4).to_string())

    mi = fit_logit_mi(frame, predictors, m=m)
    write_table(mi, Path(out_dir) / "logit_mi.csv")
    print(f"\nPooled over {m} imputations:")
    print(mi[["coef", "se", "p-value", "odds_ratio", "Sig"]].round(4).to_string())
    print("\nSignificance levels: *** p<0.01, ** p<0.05, * p<0.10")

    return {"complete_case": cc, "mi": mi}
