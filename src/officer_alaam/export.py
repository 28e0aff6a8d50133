"""Serialization of estimator inputs and flat result tables."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pandas as pd

from officer_alaam.config import ID_COL, OUTCOME_COL
from officer_alaam.dataset import AlaamInputs
from officer_alaam.utils import file_hash

__all__ = [
    "export_alaam_inputs",
    "load_alaam_inputs",
    "write_table",
]

logger = logging.getLogger("officer_alaam")

ALAAM_FILES = ("adjacency", "outcome", "covariates")


def write_table(df: pd.DataFrame, path: Path, index: bool = True) -> Path:
    """Write a flat comma-delimited table, creating the parent directory."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(path, index=index)
    logger.info(f"Saved: {path}")
    return path


def export_alaam_inputs(inputs: AlaamInputs, out_dir: Path) -> dict[str, str]:
    """
    Write adjacency, outcome and covariates as CSV and pickle.

    Returns the manifest (file name -> hash), also written to manifest.json.
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    outcome = pd.DataFrame(
        {OUTCOME_COL: inputs.outcome},
        index=pd.Index(inputs.officer_ids, name=ID_COL),
    )
    tables = {
        "adjacency": inputs.adjacency.rename_axis(index=ID_COL, columns=None),
        "outcome": outcome,
        "covariates": inputs.covariates.rename_axis(index=ID_COL),
    }

    manifest: dict[str, str] = {}
    for name, df in tables.items():
        csv_path = out_dir / f"{name}.csv"
        pkl_path = out_dir / f"{name}.pkl"
        df.to_csv(csv_path)
        df.to_pickle(pkl_path)
        manifest[csv_path.name] = file_hash(csv_path)
        manifest[pkl_path.name] = file_hash(pkl_path)

    with open(out_dir / "manifest.json", "w", encoding="utf-8") as f:
        json.dump({"n": inputs.n, "directed": inputs.directed, "files": manifest}, f, indent=2)
    logger.info(f"Saved ALAAM inputs to {out_dir}/ (n={inputs.n})")
    return manifest


def _read(out_dir: Path, name: str, fmt: str) -> pd.DataFrame:
    if fmt == "pickle":
        return pd.read_pickle(out_dir / f"{name}.pkl")
    if fmt == "csv":
        return pd.read_csv(out_dir / f"{name}.csv", index_col=ID_COL)
    raise ValueError(f"Unknown format: {fmt!r} (expected 'csv' or 'pickle')")


def load_alaam_inputs(out_dir: Path, fmt: str = "csv") -> AlaamInputs:
    """Reload exported inputs; node order is checked by AlaamInputs."""
    out_dir = Path(out_dir)
    adjacency = _read(out_dir, "adjacency", fmt)
    outcome = _read(out_dir, "outcome", fmt)
    covariates = _read(out_dir, "covariates", fmt)

    # CSV headers come back as strings
    adjacency.columns = pd.Index([int(c) for c in adjacency.columns], name=ID_COL)
    adjacency.index = adjacency.index.astype(int)

    directed = True
    manifest_path = out_dir / "manifest.json"
    if manifest_path.exists():
        with open(manifest_path, encoding="utf-8") as f:
            directed = bool(json.load(f).get("directed", True))

    return AlaamInputs(
        officer_ids=tuple(int(i) for i in adjacency.index),
        outcome=outcome[OUTCOME_COL].astype(int).to_numpy(),
        adjacency=adjacency,
        covariates=covariates,
        directed=directed,
    )
