"""Street graph representation."""

from typing import Optional

import networkx as nx

from .config import CONFIG
from .geo import haversine_distance, bearing_between, bearing_to_compass, relative_direction
from .models import Point, PathStep


class StreetGraph:
    """Graph representation of the walkable street network"""

    def __init__(self):
        self.graph = nx.Graph()
        self.nodes: dict[int, tuple[float, float]] = {}  # node_id -> (lat, lon)

    def build_from_osm(self, osm_data: dict):
        """Build graph from Overpass JSON (ways plus their nodes)"""
        # First pass: collect all nodes
        for element in osm_data.get("elements", []):
            if element["type"] == "node":
                self.nodes[element["id"]] = (element["lat"], element["lon"])

        # Second pass: build edges from ways
        for element in osm_data.get("elements", []):
            if element["type"] != "way":
                continue

            tags = element.get("tags", {})
            road_type = tags.get("highway", "unclassified")
            name = tags.get("name")
            nodes = element.get("nodes", [])
            weight_factor = CONFIG["road_weights"].get(road_type, CONFIG["default_road_weight"])

            # Create edges between consecutive nodes
            for i in range(len(nodes) - 1):
                n1, n2 = nodes[i], nodes[i + 1]

                if n1 not in self.nodes or n2 not in self.nodes:
                    continue

                lat1, lon1 = self.nodes[n1]
                lat2, lon2 = self.nodes[n2]
                length = haversine_distance(lat1, lon1, lat2, lon2)

                self.graph.add_edge(n1, n2,
                                    way_id=element["id"],
                                    length=length,
                                    weight=weight_factor * length,
                                    road_type=road_type,
                                    name=name)

        # Nodes not referenced by any kept way are useless for routing
        self.nodes = {n: loc for n, loc in self.nodes.items() if n in self.graph}

    def find_nearest_node(self, lat: float, lon: float) -> Optional[int]:
        """Find the nearest graph node to a location"""
        if not self.nodes:
            return None

        min_dist = float("inf")
        nearest = None

        for node_id, (nlat, nlon) in self.nodes.items():
            dist = haversine_distance(lat, lon, nlat, nlon)
            if dist < min_dist:
                min_dist = dist
                nearest = node_id

        return nearest

    def node_point(self, node_id: int) -> Point:
        lat, lon = self.nodes[node_id]
        return Point(lat=lat, lon=lon)

    def is_intersection(self, node_id: int) -> bool:
        """Check if a node is an intersection (degree > 2)"""
        return self.graph.degree(node_id) > 2

    def shortest_path(self, source: int, target: int) -> list[int]:
        """Preferred walking path between two nodes.

        Raises networkx.NetworkXNoPath if the nodes are not connected.
        """
        return nx.shortest_path(self.graph, source, target, weight="weight")

    def path_length(self, nodes: list[int]) -> float:
        """Length in meters of a node path"""
        return sum(self.graph.edges[u, v]["length"] for u, v in zip(nodes, nodes[1:]))

    def turn_instruction(self, from_node: int, current_node: int, to_node: int) -> tuple[str, str]:
        """Return (relative direction, instruction text) for a turn at current_node"""
        from_loc = self.nodes[from_node]
        current_loc = self.nodes[current_node]
        to_loc = self.nodes[to_node]

        incoming_bearing = bearing_between(from_loc[0], from_loc[1], current_loc[0], current_loc[1])
        outgoing_bearing = bearing_between(current_loc[0], current_loc[1], to_loc[0], to_loc[1])
        rel_dir = relative_direction(incoming_bearing, outgoing_bearing)

        name = self.graph.edges[current_node, to_node].get("name")
        if name:
            return rel_dir, f"{rel_dir} onto {name}"
        # No street name - add compass heading for clarity
        return rel_dir, f"{rel_dir}, heading {bearing_to_compass(outgoing_bearing)}"

    def path_steps(self, nodes: list[int]) -> list[PathStep]:
        """Turn-by-turn steps along a node path.

        A new step starts wherever the street name changes or the path
        turns at an intersection. The final step is always "arrive".
        """
        if len(nodes) < 2:
            return []

        first_edge = self.graph.edges[nodes[0], nodes[1]]
        start_loc = self.nodes[nodes[0]]
        next_loc = self.nodes[nodes[1]]
        heading = bearing_to_compass(bearing_between(start_loc[0], start_loc[1], next_loc[0], next_loc[1]))
        instruction = f"head {heading}"
        if first_edge.get("name"):
            instruction += f" on {first_edge['name']}"

        steps = []
        current = PathStep(instruction=instruction, distance=0.0, location=self.node_point(nodes[0]))
        current_name = first_edge.get("name")

        for i in range(1, len(nodes)):
            u, v = nodes[i - 1], nodes[i]
            edge = self.graph.edges[u, v]
            if i > 1:
                rel_dir, text = self.turn_instruction(nodes[i - 2], u, v)
                turned = rel_dir != "straight" and self.is_intersection(u)
                if edge.get("name") != current_name or turned:
                    steps.append(current)
                    current = PathStep(instruction=text, distance=0.0, location=self.node_point(u))
                    current_name = edge.get("name")
            current.distance += edge["length"]

        steps.append(current)
        steps.append(PathStep(instruction="arrive", distance=0.0, location=self.node_point(nodes[-1])))
        return steps
