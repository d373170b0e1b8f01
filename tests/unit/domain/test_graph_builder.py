"""Tests for dependency graph construction."""
import pytest

from topoplan.domain.graph import (
    CycleError,
    DanglingReferenceError,
    DuplicateIdError,
    ResourceGraph,
    build,
)
from topoplan.domain.resource import MissingPropertyError, Reference, Resource, UnknownKindError


class TestGraphBuilder:
    """Test graph validation and topological ordering."""

    def test_reference_creates_edge(self, build_graph, make_vpc, make_sg):
        """A reference to another resource's output is a dependency edge."""
        graph = build_graph(make_sg(), make_vpc())

        assert graph.dependencies("SecurityGroup") == frozenset({"VPC"})
        assert graph.dependents("VPC") == frozenset({"SecurityGroup"})
        assert graph.topological_order == ("VPC", "SecurityGroup")

    def test_order_respects_every_edge(self, build_graph, make_node):
        """Every dependency comes before its dependents."""
        graph = build_graph(
            make_node("D", depends_on=["B", "C"]),
            make_node("B", depends_on=["A"]),
            make_node("C", depends_on=["A"]),
            make_node("A"),
            make_node("E"),
        )

        position = {logical_id: i for i, logical_id in enumerate(graph.topological_order)}
        for dependent, dependency in graph.edges():
            assert position[dependency] < position[dependent]

    def test_order_is_deterministic(self, catalog, make_node):
        """Input order does not change the topological order."""
        nodes = [make_node("C", depends_on=["A"]), make_node("B"), make_node("A")]

        first = build(nodes, catalog).topological_order
        second = build(list(reversed(nodes)), catalog).topological_order

        assert first == second == ("A", "B", "C")

    def test_nested_references(self, build_graph, make_vpc):
        """References inside lists and dicts are found."""
        instance = Resource(
            kind="compute.instance",
            logical_id="Web",
            properties={"network": {"interfaces": [{"vpc": Reference.parse("VPC.id")}]}},
        )

        graph = build_graph(instance, make_vpc())

        assert graph.dependencies("Web") == frozenset({"VPC"})

    def test_transitive_dependencies(self, build_graph, make_node):
        graph = build_graph(make_node("C", depends_on=["B"]), make_node("B", depends_on=["A"]), make_node("A"))

        assert graph.transitive_dependencies("C") == frozenset({"A", "B"})
        assert graph.transitive_dependencies("A") == frozenset()

    def test_cycle_raises_with_members(self, build_graph, make_node):
        """A cycle is reported as an ordered chain of its members."""
        with pytest.raises(CycleError) as exc_info:
            build_graph(
                make_node("A", depends_on=["C"]),
                make_node("B", depends_on=["A"]),
                make_node("C", depends_on=["B"]),
            )

        cycle = exc_info.value.cycle
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"A", "B", "C"}

    def test_self_reference_is_a_cycle(self, build_graph):
        node = Resource(kind="test.node", logical_id="A", properties={"value": Reference.parse("A.id")})

        with pytest.raises(CycleError) as exc_info:
            build_graph(node)

        assert exc_info.value.cycle == ["A", "A"]

    def test_duplicate_logical_id(self, build_graph, make_vpc):
        with pytest.raises(DuplicateIdError) as exc_info:
            build_graph(make_vpc(), make_vpc(cidr="10.1.0.0/16"))

        assert exc_info.value.logical_id == "VPC"

    def test_dangling_reference(self, build_graph, make_sg):
        """Referencing a logical id that is not in the graph fails."""
        with pytest.raises(DanglingReferenceError) as exc_info:
            build_graph(make_sg())

        assert exc_info.value.target == "VPC"
        assert exc_info.value.output_name == "id"

    def test_dangling_depends_on(self, build_graph, make_node):
        with pytest.raises(DanglingReferenceError):
            build_graph(make_node("A", depends_on=["Missing"]))

    def test_undeclared_output(self, build_graph, make_vpc, make_sg):
        """Referencing an output the kind does not declare fails."""
        with pytest.raises(DanglingReferenceError) as exc_info:
            build_graph(make_vpc(), make_sg(vpc_ref="VPC.arn"))

        assert "does not declare output" in exc_info.value.message

    def test_unknown_kind(self, build_graph):
        with pytest.raises(UnknownKindError) as exc_info:
            build_graph(Resource(kind="dns.zone", logical_id="Zone"))

        assert exc_info.value.kind == "dns.zone"
        assert exc_info.value.logical_id == "Zone"

    def test_missing_required_property(self, build_graph):
        with pytest.raises(MissingPropertyError) as exc_info:
            build_graph(Resource(kind="network.vpc", logical_id="VPC"))

        assert exc_info.value.missing == ["cidr"]

    def test_empty_graph(self, build_graph):
        graph = build_graph()

        assert len(graph) == 0
        assert isinstance(graph, ResourceGraph)
        assert list(graph) == []
