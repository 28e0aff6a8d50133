"""
Utility functions for data validation and reproducibility.
"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path

import pandas as pd

__all__ = [
    "file_hash",
    "assert_unique_key",
    "merge_report",
    "missingness_report",
]

logger = logging.getLogger("officer_alaam")


def file_hash(path: Path) -> str:
    """Compute SHA-256 hash of a file for reproducibility tracking."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()[:12]


def assert_unique_key(df: pd.DataFrame, keys: list[str], name: str) -> None:
    """Verify that columns form a unique key, raising an error if duplicates exist."""
    dups = df.duplicated(keys).sum()
    if dups:
        examples = df[df.duplicated(keys, keep=False)].groupby(keys).size().head(5)
        raise ValueError(f"{name}: {dups} duplicate rows on {keys}.\n{examples}")
    logger.info(f"[{name}] unique on {keys}")


def merge_report(df: pd.DataFrame, indicator: str, label: str) -> dict[str, int]:
    """Log merge statistics and return the counts."""
    counts = df[indicator].value_counts()
    out = {
        "both": int(counts.get("both", 0)),
        "left_only": int(counts.get("left_only", 0)),
        "right_only": int(counts.get("right_only", 0)),
    }
    logger.info(
        f"[{label}] both={out['both']:,} | left_only={out['left_only']:,} "
        f"| right_only={out['right_only']:,}"
    )
    return out


def missingness_report(df: pd.DataFrame, columns: list[str]) -> pd.DataFrame:
    """Count and share of missing values per column."""
    available = [c for c in columns if c in df.columns]
    n_missing = df[available].isna().sum()
    report = pd.DataFrame({
        "N": len(df),
        "Missing": n_missing,
        "Share": (n_missing / max(len(df), 1)).round(3),
    })
    report.index.name = "variable"
    return report
