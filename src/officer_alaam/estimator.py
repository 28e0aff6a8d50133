"""
Interface to the external ALAAM estimator.

The Bayesian MCMC sampler is an external routine. This module only hands it
node-aligned inputs and summarizes the coefficient draws it returns, so the
routine can be swapped for another implementation or a test double.
"""
from __future__ import annotations

import importlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Protocol

import numpy as np
import pandas as pd
from statsmodels.tsa.stattools import acf

from officer_alaam.config import ALAAM_BURNIN, ALAAM_ITERATIONS, ALAAM_THIN
from officer_alaam.dataset import AlaamInputs
from officer_alaam.export import write_table

__all__ = [
    "Contagion",
    "AlaamResult",
    "AlaamEstimator",
    "CallableEstimator",
    "coefficient_names",
    "effective_sample_size",
    "summarize_draws",
    "run_alaam",
]

logger = logging.getLogger("officer_alaam")


class Contagion(str, Enum):
    """Network-autocorrelation term passed to the estimator."""
    NONE = "none"
    SIMPLE = "simple"


@dataclass(frozen=True)
class AlaamResult:
    """Posterior coefficient draws plus whatever diagnostics the routine returns."""
    draws: pd.DataFrame
    acceptance_rate: Optional[float] = None
    diagnostics: dict[str, Any] = field(default_factory=dict)


class AlaamEstimator(Protocol):
    def estimate(
        self,
        outcome: np.ndarray,
        adjacency: np.ndarray,
        covariates: pd.DataFrame,
        directed: bool,
        contagion: Contagion,
        iterations: int,
    ) -> AlaamResult:
        ...


def coefficient_names(covariates: list[str], contagion: Contagion) -> list[str]:
    names = ["intercept"]
    if contagion is Contagion.SIMPLE:
        names.append("contagion")
    return names + list(covariates)


class CallableEstimator:
    """
    Adapter around an external estimation function.

    The function is called as
    ``func(outcome, adjacency, covariates, directed=..., contagion=..., iterations=...)``
    with numpy arrays and must return the draws array, optionally followed by
    an acceptance rate and a dict of extras (GOF simulations and the like).
    """

    def __init__(self, func: Callable[..., Any], name: Optional[str] = None):
        self.func = func
        self.name = name or getattr(func, "__name__", "estimator")

    @classmethod
    def from_path(cls, path: str) -> "CallableEstimator":
        """Import the routine from a ``package.module:function`` path."""
        module_name, sep, attr = path.partition(":")
        if not sep or not module_name or not attr:
            raise ValueError(f"Estimator path must look like 'module:function', got {path!r}")
        module = importlib.import_module(module_name)
        return cls(getattr(module, attr), name=path)

    def estimate(
        self,
        outcome: np.ndarray,
        adjacency: np.ndarray,
        covariates: pd.DataFrame,
        directed: bool,
        contagion: Contagion,
        iterations: int,
    ) -> AlaamResult:
        raw = self.func(
            np.asarray(outcome),
            np.asarray(adjacency),
            covariates.to_numpy(dtype=float),
            directed=directed,
            contagion=contagion.value,
            iterations=iterations,
        )
        acceptance, extras = None, {}
        if isinstance(raw, tuple):
            draws = raw[0]
            if len(raw) > 1 and raw[1] is not None:
                acceptance = float(raw[1])
            if len(raw) > 2 and raw[2] is not None:
                extras = dict(raw[2])
        else:
            draws = raw

        draws = np.asarray(draws, dtype=float)
        names = coefficient_names(list(covariates.columns), contagion)
        if draws.ndim != 2 or draws.shape[1] != len(names):
            raise ValueError(
                f"{self.name} returned draws of shape {draws.shape}; "
                f"expected (iterations, {len(names)}) for {names}"
            )
        return AlaamResult(
            draws=pd.DataFrame(draws, columns=names),
            acceptance_rate=acceptance,
            diagnostics=extras,
        )


def effective_sample_size(x: np.ndarray) -> float:
    """ESS from the initial positive sequence of autocorrelations."""
    x = np.asarray(x, dtype=float)
    n = len(x)
    if n < 3 or np.allclose(x, x[0]):
        return float(n)
    rho = acf(x, nlags=min(n - 1, 1000), fft=True)[1:]
    negative = np.where(rho < 0)[0]
    cut = negative[0] if len(negative) else len(rho)
    return float(n / (1 + 2 * rho[:cut].sum()))


def summarize_draws(
    draws: pd.DataFrame,
    burnin: int = ALAAM_BURNIN,
    thin: int = ALAAM_THIN,
) -> pd.DataFrame:
    """
    Posterior summary per coefficient after burn-in and thinning.

    Returns:
        DataFrame indexed by coefficient with columns: mean, sd, q2.5, q97.5,
        ess, excludes_zero, draws
    """
    if burnin >= len(draws):
        raise ValueError(f"Burn-in ({burnin}) leaves no draws out of {len(draws)}")
    post = draws.iloc[burnin::max(thin, 1)]
    summary = pd.DataFrame(
        {
            "mean": post.mean(),
            "sd": post.std(ddof=1),
            "q2.5": post.quantile(0.025),
            "q97.5": post.quantile(0.975),
            "ess": [effective_sample_size(post[c].to_numpy()) for c in post.columns],
        }
    )
    summary["excludes_zero"] = (summary["q2.5"] > 0) | (summary["q97.5"] < 0)
    summary["draws"] = len(post)
    summary.index.name = "term"
    return summary


def run_alaam(
    inputs: AlaamInputs,
    estimator: AlaamEstimator,
    contagion: Contagion = Contagion.NONE,
    iterations: int = ALAAM_ITERATIONS,
    burnin: int = ALAAM_BURNIN,
    thin: int = ALAAM_THIN,
    out_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """
    Estimate the ALAAM and summarize the posterior.

    The estimator call blocks until its fixed number of iterations is done.
    """
    contagion = Contagion(contagion)
    print("\n" + "=" * 60)
    print(f" ALAAM: contagion={contagion.value} | iterations={iterations:,}")
    print("=" * 60)

    result = estimator.estimate(
        inputs.outcome,
        inputs.adjacency.to_numpy(),
        inputs.covariates,
        directed=inputs.directed,
        contagion=contagion,
        iterations=iterations,
    )
    if result.acceptance_rate is not None:
        logger.info(f"[ALAAM] acceptance rate: {result.acceptance_rate:.3f}")

    summary = summarize_draws(result.draws, burnin=burnin, thin=thin)
    print(summary.round(4).to_string())

    if out_dir is not None:
        out_dir = Path(out_dir)
        write_table(summary, out_dir / f"alaam_{contagion.value}_summary.csv")
        write_table(result.draws, out_dir / f"alaam_{contagion.value}_draws.csv", index=False)
    return summary
