"""
Dataset construction for the officer network study.

Composes the cleaning, network and covariate stages into the two analysis
inputs:
1. analysis frame - responders with attributes and network covariates
   (regression and descriptive path)
2. ALAAM inputs - node-aligned outcome, adjacency and mode-filled
   covariates (estimator path)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import networkx as nx
import pandas as pd

from officer_alaam.cleaning import build_officers, filter_responders
from officer_alaam.config import ALAAM_ATTRIBUTES, Paths, load_table
from officer_alaam.dataset import AlaamInputs, analysis_frame, assemble_alaam_inputs
from officer_alaam.export import export_alaam_inputs, write_table
from officer_alaam.nominations import adjacency_matrix, build_network
from officer_alaam.utils import file_hash

__all__ = [
    "NetworkDataset",
    "load_inputs",
    "build_dataset",
    "build_all",
]

logger = logging.getLogger("officer_alaam")


@dataclass(frozen=True)
class NetworkDataset:
    officers: pd.DataFrame
    graph: nx.DiGraph
    adjacency: pd.DataFrame
    frame: pd.DataFrame

    def alaam_inputs(self, attributes: list[str] = ALAAM_ATTRIBUTES) -> AlaamInputs:
        return assemble_alaam_inputs(self.frame, self.adjacency, attributes)


def load_inputs(paths: Paths) -> tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """Load both survey waves and the incident log, logging file hashes."""
    tables = []
    for label, path in [("wave 1", paths.wave1), ("wave 2", paths.wave2), ("incidents", paths.incidents)]:
        logger.info(f"Loading {label} [{file_hash(path)}]")
        tables.append(load_table(path))
    return tables[0], tables[1], tables[2]


def build_dataset(
    wave1: pd.DataFrame,
    wave2: pd.DataFrame,
    incidents: pd.DataFrame,
    kind: str = "combined",
) -> NetworkDataset:
    """Run every stage from raw tables to the node-aligned analysis frame."""
    officers = build_officers(wave1, wave2, incidents)
    graph = build_network(officers, kind)
    adjacency = adjacency_matrix(graph)
    responders = filter_responders(officers)
    frame = analysis_frame(responders, adjacency)
    return NetworkDataset(officers=officers, graph=graph, adjacency=adjacency, frame=frame)


def build_all(paths: Paths, kind: str = "combined") -> NetworkDataset:
    """Build and save the analysis frame, edge list and ALAAM inputs."""
    wave1, wave2, incidents = load_inputs(paths)
    ds = build_dataset(wave1, wave2, incidents, kind)

    out = Path(paths.results_dir)
    write_table(ds.frame, out / f"analysis_frame_{kind}.csv", index=False)
    edges = nx.to_pandas_edgelist(ds.graph, source="nominator", target="nominee")
    write_table(edges, out / f"edges_{kind}.csv", index=False)
    export_alaam_inputs(ds.alaam_inputs(), paths.alaam_dir / kind)
    return ds
