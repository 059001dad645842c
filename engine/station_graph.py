"""Station connectivity graph and passenger route finding.

Nodes are station IDs; an edge joins every pair of stations that are
consecutive on some line (plus the closing edge of loop lines). Routes are
minimum-hop paths found by breadth-first search.

The graph is rebuilt from the current lines whenever it is needed and is
never updated incrementally.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional

import networkx as nx

from core.station import Station, StationId
from core.metro_line import MetroLine, LineId


class StationGraph:
    """Undirected adjacency of stations by line.

    Each edge carries a "lines" attribute: the set of line IDs serving it.
    """

    def __init__(self, graph: Optional[nx.Graph] = None):
        self.graph = graph if graph is not None else nx.Graph()

    @classmethod
    def build(
        cls,
        stations: Mapping[StationId, Station],
        lines: Iterable[MetroLine],
    ) -> StationGraph:
        """Build the graph from the current stations and lines.

        Args:
            stations: Stations keyed by ID. Every station becomes a node.
            lines: Completed lines.

        Returns:
            A new StationGraph.
        """
        graph = nx.Graph()
        graph.add_nodes_from(stations)

        for line in lines:
            ids = line.station_ids
            pairs = list(zip(ids, ids[1:]))
            if line.is_loop and ids and ids[0] != ids[-1]:
                pairs.append((ids[-1], ids[0]))
            for a, b in pairs:
                if a == b:
                    continue
                if graph.has_edge(a, b):
                    graph.edges[a, b]["lines"].add(line.line_id)
                else:
                    graph.add_edge(a, b, lines={line.line_id})

        return cls(graph)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def has_station(self, station_id: StationId) -> bool:
        """Check if a station is a node of the graph."""
        return self.graph.has_node(station_id)

    def neighbors(self, station_id: StationId) -> list[StationId]:
        """Stations one hop away, in insertion order."""
        if not self.graph.has_node(station_id):
            return []
        return list(self.graph.neighbors(station_id))

    def lines_between(self, station_a: StationId, station_b: StationId) -> set[LineId]:
        """Line IDs serving the edge between two stations (empty if none)."""
        if not self.graph.has_edge(station_a, station_b):
            return set()
        return set(self.graph.edges[station_a, station_b]["lines"])

    def find_route(self, start: StationId, end: StationId) -> Optional[list[StationId]]:
        """Find a minimum-hop route between two stations.

        Args:
            start: Origin station ID.
            end: Destination station ID.

        Returns:
            Station IDs from start to end inclusive, an empty list when
            start == end, or None if either station is unknown or there is
            no route.
        """
        if start == end:
            return []
        if not self.graph.has_node(start) or not self.graph.has_node(end):
            return None

        predecessors: dict[StationId, StationId] = {}
        for node, parent in nx.bfs_predecessors(self.graph, start):
            predecessors[node] = parent
            if node == end:
                break
        if end not in predecessors:
            return None

        route = [end]
        while route[-1] != start:
            route.append(predecessors[route[-1]])
        route.reverse()
        return route


def find_route(
    start: StationId,
    end: StationId,
    stations: Mapping[StationId, Station],
    lines: Iterable[MetroLine],
) -> Optional[list[StationId]]:
    """Build a fresh graph and find a route on it.

    See StationGraph.find_route for the return contract.
    """
    return StationGraph.build(stations, lines).find_route(start, end)
