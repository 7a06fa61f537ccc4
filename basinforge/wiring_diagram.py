#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Wiring-diagram representation of a regulatory network.

This module defines the :class:`~basinforge.WiringDiagram` class, which
encodes who regulates whom, independently of the update dynamics (symbolic
rules or weighted thresholds). Rule-based networks derive it from the
identifiers each rule reads; weighted networks from the non-zero entries of
their weight matrix.
"""

from collections.abc import Sequence

import numpy as np
import networkx as nx


__all__ = [
    "WiringDiagram",
]

class WiringDiagram(object):
    """
    Directed wiring diagram of a network.

    Parameters
    ----------
    I : sequence of sequences of int
        Adjacency-list representation of the wiring diagram.
        Entry ``I[i]`` contains the indices of nodes regulating node ``i``.
    variables : list[str] or np.ndarray[str], optional
        Names of the nodes. Must have length ``N`` if provided. If None,
        default names ``['x0', 'x1', ..., 'x{N-1}']`` are assigned.
    weights : sequence of sequences of float, optional
        Interaction weights corresponding to ``I``. Entry ``weights[i][j]``
        gives the weight of the interaction from regulator ``I[i][j]`` to
        node ``i``.

    Attributes
    ----------
    I : list[np.ndarray]
        Regulator index arrays, one per node.
    variables : np.ndarray[str]
        Node names.
    N : int
        Number of nodes.
    indegrees : np.ndarray[int]
        Indegree of each node.
    outdegrees : np.ndarray[int]
        Outdegree of each node.
    weights : list[np.ndarray] or None
        Interaction weights associated with ``I`` if provided.

    Examples
    --------
    >>> W = WiringDiagram([[], [0], [0, 1]], ['A', 'B', 'C'])
    >>> W.get_source_nodes(AS_DICT=False)
    array([0])
    """

    def __init__(
        self,
        I : Sequence[Sequence[int]],
        variables : list[str] | np.ndarray | None = None,
        weights : Sequence[Sequence[float]] | None = None,
    ):
        if not isinstance(I, Sequence) or isinstance(I, (str, bytes)):
            raise TypeError("I must be a sequence of sequences of int")

        if variables is not None and len(I) != len(variables):
            raise ValueError("len(I) == len(variables) required if variable names are provided")

        self.I = [np.array(regulators, dtype=int) for regulators in I]
        self.N = len(I)
        self.indegrees = np.array([len(regulators) for regulators in self.I], dtype=int)

        if variables is None:
            variables = ['x'+str(i) for i in range(self.N)]

        self.variables = np.array(variables, dtype=str)

        self.outdegrees = self.get_outdegrees()

        if weights is not None:
            if not isinstance(weights, Sequence) or isinstance(weights, (str, bytes)):
                raise TypeError("weights must be None or a sequence of sequences of numbers")
            if len(weights) != self.N:
                raise ValueError("weights must have the same length as I")

            self.weights = []
            for i, (regs, row) in enumerate(zip(self.I, weights)):
                if len(row) != len(regs):
                    raise ValueError(f"weights[{i}] must have the same length as I[{i}]")
                self.weights.append(np.array(row, dtype=float))
        else:
            self.weights = None


    @classmethod
    def from_edges(cls, node_order : Sequence[str], edges : Sequence) -> "WiringDiagram":
        """
        Construct a weighted wiring diagram from an edge list.

        Parameters
        ----------
        node_order : list[str]
            Node ids; the position is the node index.
        edges : list[dict]
            Edges ``{'source', 'target', 'weight'?}``. The weight defaults to
            1. Edges are folded by :func:`~basinforge.weighted_network.edges_to_matrix`,
            so unknown nodes are skipped and the last of repeated pairs wins.
            A pair whose final weight is 0 is not a regulation.

        Returns
        -------
        WiringDiagram
        """
        try:
            from basinforge.weighted_network import edges_to_matrix
        except ModuleNotFoundError:
            from weighted_network import edges_to_matrix

        N = len(node_order)
        W = np.array(edges_to_matrix(node_order, edges)['matrix'], dtype=float).reshape(N, N)
        I = [np.flatnonzero(row).tolist() for row in W]
        weights = [W[i, regulators].tolist() for i, regulators in enumerate(I)]
        return cls(I=I, variables=list(node_order), weights=weights)


    def to_DiGraph(self, USE_VARIABLE_NAMES: bool = True) -> nx.DiGraph:
        """
        Convert the wiring diagram into a NetworkX directed graph.

        A directed edge ``u -> v`` indicates that node ``u`` regulates
        node ``v``. If interaction weights are present, they are stored as
        edge attributes under the key ``'weight'``.

        Parameters
        ----------
        USE_VARIABLE_NAMES : bool, optional
            If True (default), nodes are labeled using ``self.variables``;
            otherwise by integer indices ``0, 1, ..., N-1``.

        Returns
        -------
        nx.DiGraph
        """
        G = nx.DiGraph()

        if USE_VARIABLE_NAMES:
            idx_to_node = {i: str(self.variables[i]) for i in range(self.N)}
        else:
            idx_to_node = {i: i for i in range(self.N)}

        G.add_nodes_from(idx_to_node.values())

        for i in range(self.N):
            target = idx_to_node[i]
            for j, reg in enumerate(self.I[i]):
                source = idx_to_node[int(reg)]
                if self.weights is not None:
                    G.add_edge(source, target, weight=float(self.weights[i][j]))
                else:
                    G.add_edge(source, target)

        return G

    def __str__(self):
        return (
            f"WiringDiagram(N={self.N}, "
            f"indegrees={self.indegrees.tolist()})"
        )

    def __getitem__(self, index):
        return self.I[index]

    def __repr__(self):
        return f"{type(self).__name__}(N={self.N})"

    def get_outdegrees(self) -> np.ndarray:
        """
        Compute the outdegree of each node, i.e. the number of nodes it
        regulates.
        """
        outdegrees = np.zeros(self.N, dtype=int)
        for regulators in self.I:
            for regulator in regulators:
                outdegrees[regulator] += 1
        return outdegrees


    def get_source_nodes(
        self,
        AS_DICT: bool = True
    ) -> dict[int, bool] | np.ndarray:
        """
        Identify source nodes (nodes with zero indegree).

        Parameters
        ----------
        AS_DICT : bool, optional
            If True (default), return a dictionary mapping node indices to
            whether each node is a source node. If False, return an array of
            the indices of source nodes.
        """
        is_source = self.indegrees == 0
        if AS_DICT:
            return dict(enumerate(is_source.tolist()))
        return np.where(is_source)[0]


    def get_strongly_connected_components(self) -> list:
        """
        Compute the strongly connected components of the wiring diagram.

        Isolated nodes form singleton components.

        Returns
        -------
        list of set of int
            Strongly connected components as sets of node indices.
        """
        G = nx.DiGraph()
        G.add_nodes_from(range(self.N))
        G.add_edges_from((int(reg), target) for target, regs in enumerate(self.I) for reg in regs)
        return list(nx.strongly_connected_components(G))
