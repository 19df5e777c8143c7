"""
Dependency graph analysis with Tarjan's algorithm for cycle detection.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple
from dataclasses import dataclass, field


@dataclass
class GraphNode:
    """Dependency graph node."""

    name: str
    dependencies: List[str] = field(default_factory=list)
    priority: int = 10
    index: int = 0  # insertion order, the tie-breaker for equal priorities

    def __hash__(self) -> int:
        return hash(self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.name == other.name


@dataclass
class SortResult:
    """
    Outcome of a topological sort.

    Attributes:
        order: Node names, dependencies first, cycle members excluded
        cycles: Each detected cycle as a list of member names
        missing: Node name -> dependency names not present in the graph
    """

    order: List[str] = field(default_factory=list)
    cycles: List[List[str]] = field(default_factory=list)
    missing: Dict[str, List[str]] = field(default_factory=dict)

    @property
    def has_cycles(self) -> bool:
        return bool(self.cycles)

    @property
    def cyclic(self) -> Set[str]:
        """Every node that sits on some cycle."""
        members: Set[str] = set()
        for cycle in self.cycles:
            members.update(cycle)
        return members

    def cycle_of(self, name: str) -> Optional[List[str]]:
        for cycle in self.cycles:
            if name in cycle:
                return cycle
        return None


class DependencyGraph:
    """
    Dependency graph with cycle detection and priority-aware topological
    sorting.

    Edges point from a component to the components it depends on. Edges to
    names that were never added are kept and reported as missing.
    """

    def __init__(self):
        self._nodes: Dict[str, GraphNode] = {}
        self._adjacency: Dict[str, List[str]] = {}

    def add_node(self, name: str, dependencies: Iterable[str] = (), priority: int = 10) -> None:
        """
        Add node to graph.

        Args:
            name: Node name
            dependencies: Dependency names, in declaration order
            priority: Lower sorts earlier among unconstrained nodes
        """
        deps = list(dependencies)
        node = GraphNode(name=name, dependencies=deps, priority=priority, index=len(self._nodes))
        self._nodes[name] = node
        self._adjacency[name] = deps

    def topological_sort(self) -> SortResult:
        """
        Compute load order.

        Nodes are visited in (priority, insertion) order; each node's
        dependencies are placed before it. Members of a cycle are left out
        of the order entirely. Nodes that merely depend on a cycle member or
        on a missing name are still placed; the caller decides what to do
        with them.

        Returns:
            SortResult with order, cycles and missing dependencies
        """
        result = SortResult(cycles=self.find_cycles())
        excluded = result.cyclic

        for name, deps in self._adjacency.items():
            missing = [dep for dep in deps if dep not in self._nodes]
            if missing:
                result.missing[name] = missing

        placed: Set[str] = set()
        in_progress: Set[str] = set()

        for root in self.sorted_nodes():
            if root in excluded or root in placed:
                continue

            # Iterative depth-first placement; stack holds (node, remaining deps)
            stack = [(root, iter(self._adjacency[root]))]
            in_progress.add(root)

            while stack:
                node_name, pending = stack[-1]
                descended = False

                for dep in pending:
                    if dep not in self._nodes or dep in excluded or dep in placed:
                        continue
                    if dep in in_progress:
                        # Unreachable when find_cycles ran first; kept as a guard
                        names = [n for n, _ in stack]
                        cycle = names[names.index(dep):]
                        result.cycles.append(cycle)
                        excluded.update(cycle)
                        continue
                    in_progress.add(dep)
                    stack.append((dep, iter(self._adjacency[dep])))
                    descended = True
                    break

                if not descended:
                    stack.pop()
                    in_progress.discard(node_name)
                    if node_name not in excluded:
                        placed.add(node_name)
                        result.order.append(node_name)

        return result

    def sorted_nodes(self) -> List[str]:
        """Node names by (priority, insertion order)."""
        return [
            node.name
            for node in sorted(self._nodes.values(), key=lambda n: (n.priority, n.index))
        ]

    def find_cycles(self) -> List[List[str]]:
        """
        Find all cycles using Tarjan's strongly connected components.

        A component of two or more nodes, or a single node depending on
        itself, is a cycle.

        Returns:
            List of cycles, members in insertion order
        """
        counter = 0
        stack: List[str] = []
        lowlinks: Dict[str, int] = {}
        index: Dict[str, int] = {}
        on_stack: Set[str] = set()
        cycles: List[List[str]] = []

        def visit(node_name: str) -> Iterator[str]:
            nonlocal counter
            index[node_name] = counter
            lowlinks[node_name] = counter
            counter += 1
            stack.append(node_name)
            on_stack.add(node_name)
            return iter(self._adjacency.get(node_name, []))

        for root in self.sorted_nodes():
            if root in index:
                continue

            # (node, remaining deps) frames
            frames: List[Tuple[str, Iterator[str]]] = [(root, visit(root))]
            while frames:
                node_name, deps = frames[-1]
                descended = False
                for dep_name in deps:
                    if dep_name not in self._nodes:
                        continue
                    if dep_name not in index:
                        frames.append((dep_name, visit(dep_name)))
                        descended = True
                        break
                    if dep_name in on_stack:
                        lowlinks[node_name] = min(lowlinks[node_name], index[dep_name])
                if descended:
                    continue

                frames.pop()
                if frames:
                    parent = frames[-1][0]
                    lowlinks[parent] = min(lowlinks[parent], lowlinks[node_name])

                if lowlinks[node_name] == index[node_name]:
                    component: List[str] = []
                    while True:
                        w = stack.pop()
                        on_stack.remove(w)
                        component.append(w)
                        if w == node_name:
                            break

                    if len(component) > 1 or node_name in self._adjacency.get(node_name, []):
                        component.sort(key=lambda n: self._nodes[n].index)
                        cycles.append(component)

        return cycles

    def find_cycle(self) -> Optional[List[str]]:
        """First cycle found, or None."""
        cycles = self.find_cycles()
        return cycles[0] if cycles else None

    def get_dependencies(self, node_name: str) -> List[str]:
        return list(self._adjacency.get(node_name, []))

    def get_transitive_dependencies(self, node_name: str) -> Set[str]:
        """
        Get transitive closure of dependencies (excluding the node itself).
        """
        visited: Set[str] = set()
        pending = list(self._adjacency.get(node_name, []))

        while pending:
            name = pending.pop()
            if name in visited:
                continue
            visited.add(name)
            pending.extend(self._adjacency.get(name, []))

        visited.discard(node_name)
        return visited

    def get_dependents(self, node_name: str) -> List[str]:
        """
        Get nodes that depend on given node (reverse dependencies).
        """
        return [
            name for name, deps in self._adjacency.items()
            if node_name in deps
        ]

    def get_transitive_dependents(self, node_name: str) -> List[str]:
        """
        All nodes that depend on node_name directly or indirectly, nearest
        first.
        """
        ordered: List[str] = []
        seen: Set[str] = {node_name}
        frontier = [node_name]

        while frontier:
            next_frontier: List[str] = []
            for name in frontier:
                for dependent in self.get_dependents(name):
                    if dependent not in seen:
                        seen.add(dependent)
                        ordered.append(dependent)
                        next_frontier.append(dependent)
            frontier = next_frontier

        return ordered

    def to_dict(self) -> Dict[str, List[str]]:
        """Export graph as adjacency dict."""
        return {name: list(deps) for name, deps in self._adjacency.items()}

    def get_roots(self) -> List[str]:
        """Nodes with no dependencies."""
        return [name for name, deps in self._adjacency.items() if not deps]

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, name: str) -> bool:
        return name in self._nodes

    def __repr__(self) -> str:
        return f"DependencyGraph({len(self._nodes)} nodes)"
