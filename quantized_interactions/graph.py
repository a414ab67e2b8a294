from __future__ import annotations

from typing import Any, Dict

import networkx as nx
import numpy as np

from .lattice import index_to_coords
from .torus import Torus


def torus_to_graph(torus: Torus) -> nx.Graph:
    """Undirected graph on linear cell indices, with ``coords`` node attributes.

    Neighbor relations are symmetric, so every edge appears once regardless of
    which end it is read from.
    """
    G = nx.Graph()
    for i in range(torus.N):
        G.add_node(i, coords=index_to_coords(i, torus.dimensions))
    for i, nbrs in enumerate(torus.neighbor_indices()):
        for j in nbrs:
            G.add_edge(i, int(j))
    G.graph["tiling"] = torus.tiling.value
    G.graph["dimensions"] = tuple(torus.dimensions)
    return G


def adjacency_matrix(torus: Torus) -> np.ndarray:
    """Dense 0/1 adjacency; A[i, j] == 1 iff cell i lists cell j as a neighbor."""
    A = np.zeros((torus.N, torus.N), dtype=np.int8)
    for i, nbrs in enumerate(torus.neighbor_indices()):
        for j in nbrs:
            A[i, j] = 1
    return A


def degree_summary(G: nx.Graph) -> Dict[str, Any]:
    degrees = np.array([d for _, d in G.degree()], dtype=np.int64)
    N = int(G.number_of_nodes())
    return {
        "N": N,
        "E": int(G.number_of_edges()),
        "min_degree": int(degrees.min()) if degrees.size else 0,
        "max_degree": int(degrees.max()) if degrees.size else 0,
        "mean_degree": float(degrees.mean()) if degrees.size else 0.0,
        "connected": bool(nx.is_connected(G)) if N > 0 else False,
    }
