"""Configuration for data paths, coding rules and model specifications."""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd
import pyreadr

__all__ = [
    "Paths",
    "ID_COL",
    "OUTCOME_COL",
    "MENTOR_SLOTS",
    "FRIEND_SLOTS",
    "NOMINATION_SENTINELS",
    "SURVEY_MISSING_CODES",
    "COVARIATE_COLUMNS",
    "setup_logging",
    "load_table",
    "get_predictors",
]

logger = logging.getLogger("officer_alaam")


@dataclass(frozen=True)
class Paths:
    """File paths for input data and output files."""
    # Input data files
    wave1: Path = Path("data/survey_wave1.csv")
    wave2: Path = Path("data/survey_wave2.csv")
    incidents: Path = Path("data/incident_log.csv")

    # Output directories
    results_dir: Path = Path("results")

    @property
    def tables_dir(self) -> Path:
        return self.results_dir / "tables"

    @property
    def alaam_dir(self) -> Path:
        return self.results_dir / "alaam"

    def inputs(self) -> list[Path]:
        return [self.wave1, self.wave2, self.incidents]

    def validate(self) -> list[Path]:
        """Return input files that do not exist."""
        return [p for p in self.inputs() if not Path(p).exists()]


# Keys
ID_COL = "officer_id"
OUTCOME_COL = "invited"

# Nomination slots (fixed-width survey grid)
MENTOR_SLOTS = [f"mentor_{i}" for i in range(1, 4)]
FRIEND_SLOTS = [f"friend_{i}" for i in range(1, 11)]
NETWORK_SLOTS = {
    "mentor": MENTOR_SLOTS,
    "friend": FRIEND_SLOTS,
    "combined": MENTOR_SLOTS + FRIEND_SLOTS,
}

# 0 = no nomination, -88 = don't know, -99 = refused, 999 = officer not on roster
NOMINATION_SENTINELS = (0, -88, -99, 999)
SURVEY_MISSING_CODES = (-88, -99)

SURVEY_YEAR = 2019

SUPERVISOR_RANKS = {"sergeant", "lieutenant", "captain", "commander", "deputy chief", "chief"}

ATTITUDE_SCALES = {
    "procedural_justice": ["pj_1", "pj_2", "pj_3", "pj_4"],
    "cynicism": ["cyn_1", "cyn_2", "cyn_3"],
    "force_support": ["frc_1", "frc_2", "frc_3"],
}

# Incident log types -> officer-level count column
INCIDENT_TYPES = {
    "weapon_drawn": "weapon_draws",
    "weapon_discharged": "weapon_uses",
    "use_of_force": "force_incidents",
    "complaint": "misconduct_reports",
}

COVARIATE_COLUMNS = [
    "out_degree",
    "in_degree",
    "reciprocity",
    "out_2star",
    "in_2star",
    "out_3star",
    "in_3star",
    "mixed_2star",
    "triangles",
]

# Model specifications
MODEL_PREDICTORS = {
    "attributes": ["female", "nonwhite", "supervisor", "years_service"],
    "behavior": ["weapon_draws", "force_incidents", "misconduct_reports"],
    "attitudes": ["procedural_justice", "cynicism"],
    "network": ["out_degree", "in_degree", "reciprocity"],
}

# ALAAM attributes are mode-filled and combined with the network covariates
ALAAM_ATTRIBUTES = ["female", "nonwhite", "supervisor", "years_service", "force_incidents"]

# Multiple imputation
MI_IMPUTATIONS = 20
MI_BURN = 10
MI_SEED = 20190601

# External ALAAM estimator
ALAAM_ITERATIONS = 20000
ALAAM_BURNIN = 2000
ALAAM_THIN = 10


def get_predictors(blocks: Optional[list[str]] = None) -> list[str]:
    """Return the regression predictors for the named blocks (all by default)."""
    blocks = blocks or list(MODEL_PREDICTORS)
    out: list[str] = []
    for b in blocks:
        out += MODEL_PREDICTORS[b]
    return out


def setup_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    """Configure the package logger once; later calls only add a file handler."""
    fmt = logging.Formatter("%(asctime)s %(levelname)-7s %(message)s", datefmt="%H:%M:%S")
    logger.setLevel(level)
    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
               for h in logger.handlers):
        stream = logging.StreamHandler(sys.stdout)
        stream.setFormatter(fmt)
        logger.addHandler(stream)
    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        logger.addHandler(fh)
    logger.propagate = False


def load_table(path: Path) -> pd.DataFrame:
    """Load a tabular input file (.csv, .dta or .rds)."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path, low_memory=False)
    if suffix == ".dta":
        return pd.read_stata(path, convert_categoricals=False)
    if suffix == ".rds":
        return list(pyreadr.read_r(path).values())[0].copy()
    raise ValueError(f"Unsupported input format: {path}")
