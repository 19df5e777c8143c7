"""
Tests for componentry.registry.graph - ordering, cycles, dependents.
"""

from componentry.registry.graph import DependencyGraph, SortResult


def build(*nodes):
    """build(("a", ["b"], 1), ...) -> DependencyGraph"""
    graph = DependencyGraph()
    for name, deps, priority in nodes:
        graph.add_node(name, deps, priority)
    return graph


def assert_topological(order, graph):
    position = {name: i for i, name in enumerate(order)}
    for name in order:
        for dep in graph.get_dependencies(name):
            if dep in position:
                assert position[dep] < position[name], f"{dep} must precede {name}"


# ============================================================================
# Topological sort
# ============================================================================

class TestTopologicalSort:

    def test_priority_order_without_dependencies(self):
        graph = build(("c", [], 3), ("a", [], 1), ("b", [], 2))
        assert graph.topological_sort().order == ["a", "b", "c"]

    def test_ties_keep_insertion_order(self):
        graph = build(("x1", [], 5), ("x2", [], 5), ("x3", [], 5))
        assert graph.topological_sort().order == ["x1", "x2", "x3"]

    def test_dependency_beats_priority(self):
        graph = build(("crm", ["payment"], 1), ("payment", [], 9))
        assert graph.topological_sort().order == ["payment", "crm"]

    def test_deep_chain(self):
        graph = build(
            ("analytics", ["contacts"], 3),
            ("contacts", ["payment"], 2),
            ("payment", [], 1),
            ("extra", ["analytics", "payment"], 0),
        )
        result = graph.topological_sort()
        assert result.order == ["payment", "contacts", "analytics", "extra"]
        assert_topological(result.order, graph)

    def test_missing_dependencies_recorded_not_fatal(self):
        graph = build(("reporting", ["nope"], 1), ("payment", [], 2))
        result = graph.topological_sort()

        assert result.order == ["reporting", "payment"]
        assert result.missing == {"reporting": ["nope"]}

    def test_cycle_members_excluded(self):
        graph = build(
            ("a", ["b"], 1),
            ("b", ["a"], 2),
            ("c", [], 3),
            ("d", ["a"], 4),
        )
        result = graph.topological_sort()

        assert result.has_cycles
        assert result.cycles == [["a", "b"]]
        assert result.cyclic == {"a", "b"}
        assert result.order == ["c", "d"]
        assert result.cycle_of("b") == ["a", "b"]
        assert result.cycle_of("c") is None

    def test_self_dependency_is_a_cycle(self):
        graph = build(("loop", ["loop"], 1), ("ok", [], 2))
        result = graph.topological_sort()
        assert result.cycles == [["loop"]]
        assert result.order == ["ok"]

    def test_empty(self):
        result = DependencyGraph().topological_sort()
        assert result == SortResult()


# ============================================================================
# Cycles
# ============================================================================

class TestCycles:

    def test_find_cycles_multiple(self):
        graph = build(
            ("a", ["b"], 1),
            ("b", ["a"], 1),
            ("x", ["y"], 1),
            ("y", ["z"], 1),
            ("z", ["x"], 1),
        )
        cycles = graph.find_cycles()
        assert sorted(map(sorted, cycles)) == [["a", "b"], ["x", "y", "z"]]

    def test_find_cycle_none(self):
        assert build(("a", [], 1)).find_cycle() is None

    def test_chain_deeper_than_recursion_limit(self):
        depth = 1500
        graph = build(*[(f"c{i}", [f"c{i - 1}"] if i else [], 10) for i in reversed(range(depth))])

        assert graph.find_cycles() == []
        result = graph.topological_sort()
        assert result.order == [f"c{i}" for i in range(depth)]

    def test_long_cycle(self):
        depth = 1500
        graph = build(*[(f"c{i}", [f"c{(i - 1) % depth}"], 10) for i in reversed(range(depth))])

        cycles = graph.find_cycles()

        assert len(cycles) == 1
        assert len(cycles[0]) == depth
        assert graph.topological_sort().order == []


# ============================================================================
# Dependents
# ============================================================================

class TestDependents:

    def test_transitive_dependencies(self):
        graph = build(("a", [], 1), ("b", ["a"], 1), ("c", ["b"], 1))
        assert graph.get_transitive_dependencies("c") == {"a", "b"}

    def test_dependents_nearest_first(self):
        graph = build(("a", [], 1), ("b", ["a"], 1), ("c", ["b"], 1), ("d", ["a"], 1))
        assert graph.get_dependents("a") == ["b", "d"]
        assert graph.get_transitive_dependents("a") == ["b", "d", "c"]

    def test_roots_and_container(self):
        graph = build(("a", [], 1), ("b", ["a"], 1))
        assert graph.get_roots() == ["a"]
        assert "a" in graph
        assert len(graph) == 2
        assert graph.to_dict() == {"a": [], "b": ["a"]}
