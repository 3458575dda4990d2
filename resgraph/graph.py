from typing import Dict, List

from resgraph.models.resource import Edge, Resource


class DependencyGraph:
    """
    Consumer -> producer edges over the resources of one run.
    Node order is registration order.
    """

    def __init__(self, resources: List[Resource]):
        self._nodes: Dict[str, Resource] = {r.qualified_name: r for r in resources}
        self._edges: List[Edge] = []
        self._successors: Dict[str, List[str]] = {name: [] for name in self._nodes}

    def add_edge(self, edge: Edge) -> None:
        self._edges.append(edge)
        targets = self._successors[edge.source]
        if edge.target not in targets:
            targets.append(edge.target)

    @property
    def nodes(self) -> List[str]:
        return list(self._nodes)

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def resource(self, node: str) -> Resource:
        return self._nodes[node]

    def resources(self) -> List[Resource]:
        return list(self._nodes.values())

    def dependencies(self, node: str) -> List[str]:
        """Distinct producers ``node`` depends on, in first-seen order."""
        return list(self._successors[node])

    def __len__(self) -> int:
        return len(self._nodes)
