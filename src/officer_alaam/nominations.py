"""
Nomination network construction.

Turns the fixed-slot nomination grid into a directed officer network:
1. Wide slots -> long (nominator, nominee) edge list, sentinels dropped
2. Officers with no valid nomination get a self-loop placeholder
3. Edges touching non-responders are dropped and the placeholder rule is
   re-applied, so officers who only named non-responders become isolates
4. Placeholders never become graph edges; the adjacency matrix is sorted
   by officer_id
"""
from __future__ import annotations

import logging
from typing import Iterable

import networkx as nx
import numpy as np
import pandas as pd

from officer_alaam.config import (
    ID_COL,
    MENTOR_SLOTS,
    NETWORK_SLOTS,
    NOMINATION_SENTINELS,
    OUTCOME_COL,
)

__all__ = [
    "nomination_edges",
    "with_isolate_placeholders",
    "restrict_to_responders",
    "build_network",
    "adjacency_matrix",
    "network_summary",
]

logger = logging.getLogger("officer_alaam")

EDGE_COLUMNS = ["nominator", "nominee", "slot_type"]


def nomination_edges(
    df: pd.DataFrame,
    slots: list[str],
    sentinels: Iterable[int] = NOMINATION_SENTINELS,
) -> pd.DataFrame:
    """
    Reshape nomination slots into a long edge list.

    Blank and sentinel slots are dropped, as are self-nominations. Repeated
    nominations of the same alter collapse to one edge; the first slot type
    (mentor before friend) is kept.
    """
    slots = [s for s in slots if s in df.columns]
    if not slots:
        return pd.DataFrame(columns=EDGE_COLUMNS).astype({"nominator": int, "nominee": int})

    long = df[[ID_COL] + slots].melt(id_vars=ID_COL, var_name="slot", value_name="nominee")
    long["nominee"] = pd.to_numeric(long["nominee"], errors="coerce")
    long = long.dropna(subset=["nominee"])
    long = long[~long["nominee"].isin(list(sentinels))]

    long = long.rename(columns={ID_COL: "nominator"})
    long["nominator"] = long["nominator"].astype(int)
    long["nominee"] = long["nominee"].astype(int)
    long["slot_type"] = np.where(long["slot"].isin(MENTOR_SLOTS), "mentor", "friend")

    self_noms = long["nominator"] == long["nominee"]
    if self_noms.any():
        logger.info(f"[nominations] dropped {int(self_noms.sum())} self-nominations")
    long = long[~self_noms]

    # stable order so the kept duplicate is deterministic
    long["_order"] = long["slot"].map({s: i for i, s in enumerate(slots)})
    long = long.sort_values(["nominator", "_order"], kind="mergesort")
    edges = long.drop_duplicates(["nominator", "nominee"], keep="first")
    n_dups = len(long) - len(edges)
    if n_dups:
        logger.info(f"[nominations] collapsed {n_dups} duplicate nominations")

    return edges[EDGE_COLUMNS].sort_values(["nominator", "nominee"]).reset_index(drop=True)


def with_isolate_placeholders(edges: pd.DataFrame, officer_ids: Iterable[int]) -> pd.DataFrame:
    """Add an (i, i) placeholder for every officer with no out-edge."""
    real = edges[edges["nominator"] != edges["nominee"]]
    senders = set(real["nominator"])
    missing = sorted(set(int(i) for i in officer_ids) - senders)
    placeholders = pd.DataFrame({
        "nominator": missing,
        "nominee": missing,
        "slot_type": "none",
    })
    out = pd.concat([real, placeholders], ignore_index=True)
    out[["nominator", "nominee"]] = out[["nominator", "nominee"]].astype(int)
    return out.sort_values(["nominator", "nominee"]).reset_index(drop=True)


def restrict_to_responders(edges: pd.DataFrame, responder_ids: Iterable[int]) -> pd.DataFrame:
    """
    Drop edges with an endpoint outside the responder set, then re-apply the
    placeholder fallback for responders left without an out-edge.
    """
    responders = set(int(i) for i in responder_ids)
    inside = edges["nominator"].isin(responders) & edges["nominee"].isin(responders)
    n_dropped = int((~inside & (edges["nominator"] != edges["nominee"])).sum())
    if n_dropped:
        logger.info(f"[nominations] dropped {n_dropped} edges to or from non-responders")
    return with_isolate_placeholders(edges[inside], responders)


def build_network(officers: pd.DataFrame, kind: str = "combined") -> nx.DiGraph:
    """
    Build the directed nomination network among outcome responders.

    Every responder is a node; placeholder self-loops are never added as
    edges so zero-nomination officers end up as isolates.
    """
    if kind not in NETWORK_SLOTS:
        raise ValueError(f"Unknown network kind: {kind!r} (expected one of {sorted(NETWORK_SLOTS)})")

    all_ids = officers[ID_COL].astype(int)
    responders = officers.loc[pd.to_numeric(officers[OUTCOME_COL], errors="coerce").isin([0, 1]), ID_COL]
    responders = sorted(responders.astype(int))

    edges = nomination_edges(officers, NETWORK_SLOTS[kind])
    edges = with_isolate_placeholders(edges, all_ids)
    edges = restrict_to_responders(edges, responders)

    G = nx.DiGraph(kind=kind)
    G.add_nodes_from(responders)
    real = edges[edges["nominator"] != edges["nominee"]]
    for row in real.itertuples(index=False):
        G.add_edge(row.nominator, row.nominee, slot_type=row.slot_type)

    n_iso = sum(1 for n in G.nodes if G.out_degree(n) == 0)
    logger.info(
        f"[network:{kind}] {G.number_of_nodes():,} nodes | {G.number_of_edges():,} edges "
        f"| {n_iso} without out-nominations"
    )
    return G


def adjacency_matrix(G: nx.DiGraph) -> pd.DataFrame:
    """0/1 adjacency matrix with rows and columns sorted by officer_id."""
    order = sorted(G.nodes)
    A = nx.to_numpy_array(G, nodelist=order, weight=None, dtype=int)
    np.fill_diagonal(A, 0)
    index = pd.Index(order, name=ID_COL)
    return pd.DataFrame(A, index=index, columns=index.copy())


def network_summary(G: nx.DiGraph) -> pd.DataFrame:
    """Whole-network statistics for the descriptives table."""
    n = G.number_of_nodes()
    isolates = sum(1 for v in G.nodes if G.degree(v) == 0)
    no_out = sum(1 for v in G.nodes if G.out_degree(v) == 0)
    stats = {
        "nodes": n,
        "edges": G.number_of_edges(),
        "density": round(nx.density(G), 4) if n > 1 else 0.0,
        "reciprocity": round(nx.reciprocity(G), 4) if G.number_of_edges() else 0.0,
        "isolates": isolates,
        "no_out_nominations": no_out,
        "mean_out_degree": round(G.number_of_edges() / n, 3) if n else 0.0,
        "weak_components": nx.number_weakly_connected_components(G) if n else 0,
    }
    return pd.DataFrame({"metric": list(stats), "value": list(stats.values())})
