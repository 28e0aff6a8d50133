"""
Officer-level data cleaning.

Builds one row per responding officer from the two survey waves and the
operations incident log:
1. Clean each wave (key coercion, missing-code recode)
2. Merge waves on officer_id, wave 2 falling back to wave 1
3. Derive demographic, role and attitude-scale attributes
4. Attach behavioral counts from the incident log
5. Keep officers who answered the outcome question
"""
from __future__ import annotations

import logging
from typing import Iterable

import numpy as np
import pandas as pd

from officer_alaam.config import (
    ATTITUDE_SCALES,
    ID_COL,
    INCIDENT_TYPES,
    OUTCOME_COL,
    SUPERVISOR_RANKS,
    SURVEY_MISSING_CODES,
    SURVEY_YEAR,
)
from officer_alaam.utils import assert_unique_key, merge_report

__all__ = [
    "recode_sentinels",
    "clean_wave",
    "merge_waves",
    "derive_attributes",
    "incident_counts",
    "attach_incidents",
    "filter_responders",
    "build_officers",
]

logger = logging.getLogger("officer_alaam")

COUNT_COLUMNS = list(INCIDENT_TYPES.values())


def recode_sentinels(
    df: pd.DataFrame,
    columns: Iterable[str],
    codes: Iterable[int] = SURVEY_MISSING_CODES,
) -> pd.DataFrame:
    """Set missing-value codes to NaN in the given columns (numeric or text codes)."""
    out = df.copy()
    codes = list(codes)
    as_text = {str(c) for c in codes}
    for col in columns:
        if col not in out.columns:
            continue
        s = out[col]
        if pd.api.types.is_numeric_dtype(s):
            out[col] = s.where(~s.isin(codes))
        else:
            out[col] = s.where(~s.astype(str).str.strip().isin(as_text))
    return out


def clean_wave(df: pd.DataFrame, wave: int) -> pd.DataFrame:
    """
    Clean one survey wave.

    Column names are normalized to lower case, the officer id is coerced to
    int (rows without an id are dropped) and survey missing codes become NaN.
    """
    label = f"wave {wave}"
    out = df.copy()
    out.columns = [str(c).strip().lower() for c in out.columns]
    if ID_COL not in out.columns:
        raise ValueError(f"{label} is missing the key column '{ID_COL}'")

    out[ID_COL] = pd.to_numeric(out[ID_COL], errors="coerce")
    n_before = len(out)
    out = out.dropna(subset=[ID_COL])
    if len(out) < n_before:
        logger.info(f"[{label}] dropped {n_before - len(out)} rows without {ID_COL}")
    out[ID_COL] = out[ID_COL].astype(int)

    fields = [c for c in out.columns if c != ID_COL]
    out = recode_sentinels(out, fields)

    assert_unique_key(out, [ID_COL], label)
    return out.sort_values(ID_COL).reset_index(drop=True)


def merge_waves(wave1: pd.DataFrame, wave2: pd.DataFrame) -> pd.DataFrame:
    """
    Merge the two waves on officer_id.

    Fields asked in both waves take the wave-2 answer and fall back to the
    wave-1 answer where wave 2 is missing. Fields asked in one wave only are
    carried through unchanged.
    """
    merged = wave1.merge(
        wave2, on=ID_COL, how="outer", suffixes=("_w1", "_w2"), indicator="_m"
    )
    merge_report(merged, "_m", "wave 1 + wave 2")
    merged = merged.drop(columns=["_m"])

    shared = sorted((set(wave1.columns) & set(wave2.columns)) - {ID_COL})
    for col in shared:
        w1, w2 = f"{col}_w1", f"{col}_w2"
        filled = merged[w2].isna() & merged[w1].notna()
        if filled.any():
            logger.info(f"[merge] {col}: {int(filled.sum())} values filled from wave 1")
        merged[col] = merged[w2].combine_first(merged[w1])
        merged = merged.drop(columns=[w1, w2])

    return merged.sort_values(ID_COL).reset_index(drop=True)


def _binary_from_text(s: pd.Series, true_values: set[str], false_values: set[str]) -> pd.Series:
    """Map yes/no style text or 0/1 numbers to a float 0/1 series with NaN."""
    if pd.api.types.is_numeric_dtype(s):
        return s.where(s.isin([0, 1])).astype(float)
    text = s.astype(str).str.strip().str.lower()
    out = pd.Series(np.nan, index=s.index)
    out[text.isin(true_values)] = 1.0
    out[text.isin(false_values)] = 0.0
    numeric = pd.to_numeric(s, errors="coerce")
    out = out.fillna(numeric.where(numeric.isin([0, 1])))
    return out


def derive_attributes(df: pd.DataFrame) -> pd.DataFrame:
    """
    Derive model attributes from the merged survey.

    Output variables:
    - female, nonwhite, hispanic, supervisor (0/1 with NaN)
    - race (white/black/other)
    - years_service (SURVEY_YEAR - hire_year)
    - one mean score per attitude scale
    """
    out = df.copy()

    if "gender" in out.columns:
        out["female"] = _binary_from_text(out["gender"], {"female", "f", "woman"}, {"male", "m", "man"})

    if "race" in out.columns:
        race = out["race"].astype(str).str.strip().str.lower()
        out["race"] = np.where(
            out["race"].isna(),
            None,
            np.where(race == "white", "white", np.where(race == "black", "black", "other")),
        )
        out["nonwhite"] = np.where(out["race"].isna(), np.nan, (out["race"] != "white").astype(float))

    if "hispanic" in out.columns:
        out["hispanic"] = _binary_from_text(out["hispanic"], {"yes", "y", "hispanic"}, {"no", "n"})

    if "rank" in out.columns:
        rank = out["rank"].astype(str).str.strip().str.lower()
        out["supervisor"] = np.where(out["rank"].isna(), np.nan, rank.isin(SUPERVISOR_RANKS).astype(float))

    if "hire_year" in out.columns:
        hire = pd.to_numeric(out["hire_year"], errors="coerce")
        years = SURVEY_YEAR - hire
        out["years_service"] = years.where(years >= 0)

    for scale, items in ATTITUDE_SCALES.items():
        available = [i for i in items if i in out.columns]
        if not available:
            continue
        answers = out[available].apply(pd.to_numeric, errors="coerce")
        out[scale] = answers.mean(axis=1, skipna=True)

    return out


def incident_counts(log: pd.DataFrame) -> pd.DataFrame:
    """Count distinct incidents per officer and incident type."""
    log = log.copy()
    log.columns = [str(c).strip().lower() for c in log.columns]
    required = {ID_COL, "incident_id", "incident_type"}
    missing = sorted(required - set(log.columns))
    if missing:
        raise ValueError(f"Incident log is missing required columns: {missing}")

    log[ID_COL] = pd.to_numeric(log[ID_COL], errors="coerce")
    log = log.dropna(subset=[ID_COL, "incident_id"])
    log[ID_COL] = log[ID_COL].astype(int)
    log["incident_type"] = log["incident_type"].astype(str).str.strip().str.lower()
    log = log[log["incident_type"].isin(INCIDENT_TYPES)]
    log = log.drop_duplicates([ID_COL, "incident_id", "incident_type"])
    if log.empty:
        logger.warning("[incidents] no usable incidents in log")
        return pd.DataFrame({ID_COL: pd.Series(dtype=int), **{c: pd.Series(dtype=int) for c in COUNT_COLUMNS}})

    counts = (
        log.groupby([ID_COL, "incident_type"]).size()
        .unstack(fill_value=0)
        .rename(columns=INCIDENT_TYPES)
        .reindex(columns=COUNT_COLUMNS, fill_value=0)
        .astype(int)
        .reset_index()
    )
    counts.columns.name = None
    logger.info(f"[incidents] {len(log):,} incidents across {len(counts):,} officers")
    return counts


def attach_incidents(officers: pd.DataFrame, counts: pd.DataFrame) -> pd.DataFrame:
    """Left-join incident counts on officer_id; officers absent from the log get 0."""
    merged = officers.merge(counts, on=ID_COL, how="left", indicator="_m")
    merge_report(merged, "_m", "officers + incidents")
    merged = merged.drop(columns=["_m"])
    merged[COUNT_COLUMNS] = merged[COUNT_COLUMNS].fillna(0).astype(int)
    return merged


def filter_responders(df: pd.DataFrame) -> pd.DataFrame:
    """Keep officers whose outcome answer is 0 or 1."""
    if OUTCOME_COL not in df.columns:
        raise ValueError(f"Outcome column '{OUTCOME_COL}' not found")
    out = df.copy()
    out[OUTCOME_COL] = pd.to_numeric(out[OUTCOME_COL], errors="coerce")
    keep = out[OUTCOME_COL].isin([0, 1])
    logger.info(f"Filtered to outcome responders: {int(keep.sum()):,} of {len(out):,}")
    out = out[keep].copy()
    out[OUTCOME_COL] = out[OUTCOME_COL].astype(int)
    return out.sort_values(ID_COL).reset_index(drop=True)


def build_officers(
    wave1: pd.DataFrame,
    wave2: pd.DataFrame,
    incidents: pd.DataFrame,
    responders_only: bool = False,
) -> pd.DataFrame:
    """
    Build the officer table from raw inputs.

    All surveyed officers are kept by default because nominations from
    non-responders still matter for isolate bookkeeping; pass
    responders_only=True to apply the outcome filter here.
    """
    logger.info("Building officer table...")
    officers = merge_waves(clean_wave(wave1, 1), clean_wave(wave2, 2))
    officers = derive_attributes(officers)
    officers = attach_incidents(officers, incident_counts(incidents))
    if responders_only:
        officers = filter_responders(officers)
    assert_unique_key(officers, [ID_COL], "officers")
    return officers
