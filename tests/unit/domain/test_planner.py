"""Tests for the planner."""
import json

from topoplan.domain.graph import ResourceGraph
from topoplan.domain.plan import Action, Planner, Step
from topoplan.domain.resource import Reference, Resource
from topoplan.domain.state import AppliedState, StateEntry


def applied(catalog, *resources):
    """State as if ``resources`` had been applied."""
    state = AppliedState.empty()
    for resource in resources:
        retain = resource.retain_on_delete
        if retain is None:
            retain = catalog.get(resource.kind).retain_on_delete
        state.set_entry(
            resource.logical_id,
            StateEntry.from_resource(resource, {"id": f"{resource.logical_id.lower()}-1"}, retain),
        )
    return state


def keys(plan):
    return [op.key for op in plan.operations]


def group_keys(plan):
    return [[op.key for op in group] for group in plan.groups]


class TestPlannerScenarios:
    """The basic create, delete and failure-free scenarios."""

    def test_create_from_empty_state(self, catalog, build_graph, make_vpc, make_sg):
        """VPC and a dependent security group are created in dependency order."""
        graph = build_graph(make_vpc(), make_sg())

        plan = Planner(catalog).plan(graph, AppliedState.empty())

        assert [(op.action, op.logical_id) for op in plan] == [
            (Action.CREATE, "VPC"),
            (Action.CREATE, "SecurityGroup"),
        ]
        assert group_keys(plan) == [["VPC:apply"], ["SecurityGroup:apply"]]
        assert plan.dependencies_of("SecurityGroup:apply") == ["VPC:apply"]
        assert plan.dependents_of("VPC:apply") == ["SecurityGroup:apply"]
        assert plan.dependents_of("SecurityGroup:apply") == []

    def test_delete_in_reverse_order(self, catalog, make_vpc, make_sg):
        """Resources only present in state are deleted dependents first."""
        state = applied(catalog, make_vpc(), make_sg())

        plan = Planner(catalog).plan(ResourceGraph.empty(), state)

        assert [(op.action, op.logical_id) for op in plan] == [
            (Action.DELETE, "SecurityGroup"),
            (Action.DELETE, "VPC"),
        ]
        assert group_keys(plan) == [["SecurityGroup:destroy"], ["VPC:destroy"]]

    def test_destroy_flag_ignores_desired(self, catalog, build_graph, make_vpc, make_sg):
        state = applied(catalog, make_vpc(), make_sg())
        graph = build_graph(make_vpc(), make_sg())

        plan = Planner(catalog).plan(graph, state, destroy=True)

        assert keys(plan) == ["SecurityGroup:destroy", "VPC:destroy"]
        assert plan.destroy is True

    def test_unchanged_is_noop(self, catalog, build_graph, make_vpc, make_sg):
        """Planning against the state of the same graph yields no changes."""
        state = applied(catalog, make_vpc(), make_sg())

        plan = Planner(catalog).plan(build_graph(make_vpc(), make_sg()), state)

        assert not plan.has_changes()
        assert all(op.action == Action.NOOP for op in plan)
        assert plan.groups == []
        assert plan.summary()["noop"] == 2

    def test_independent_resources_share_a_group(self, catalog, build_graph, make_node):
        plan = Planner(catalog).plan(build_graph(make_node("B"), make_node("A")), AppliedState.empty())

        assert group_keys(plan) == [["A:apply", "B:apply"]]


class TestPlannerChanges:
    """Update, replace and reference invalidation."""

    def test_mutable_change_is_update(self, catalog, build_graph, make_vpc, make_sg):
        state = applied(catalog, make_vpc(tags={"env": "dev"}), make_sg())

        plan = Planner(catalog).plan(build_graph(make_vpc(tags={"env": "prod"}), make_sg()), state)

        vpc = plan.get("VPC:apply")
        assert vpc.action == Action.UPDATE
        assert vpc.changed_properties == ("tags",)
        assert plan.get("SecurityGroup:none").action == Action.NOOP

    def test_added_property_counts_as_changed(self, catalog, build_graph, make_vpc, make_sg):
        state = applied(catalog, make_vpc(), make_sg())

        plan = Planner(catalog).plan(build_graph(make_vpc(tags={"a": "b"}), make_sg()), state)

        assert plan.get("VPC:apply").action == Action.UPDATE

    def test_immutable_change_replaces_dependents(self, catalog, build_graph, make_vpc, make_sg):
        """Replacing the VPC invalidates the security group's reference to it."""
        state = applied(catalog, make_vpc(), make_sg())

        plan = Planner(catalog).plan(build_graph(make_vpc(cidr="10.9.0.0/16"), make_sg()), state)

        assert keys(plan) == [
            "SecurityGroup:destroy",
            "VPC:destroy",
            "VPC:apply",
            "SecurityGroup:apply",
        ]
        assert plan.get("SecurityGroup:apply").changed_properties == ("vpc_id",)
        assert plan.summary()["replace"] == 2
        assert len(plan.groups) == 4

    def test_replaced_dependency_updates_mutable_reference(self, catalog, build_graph, make_node):
        """A dependent whose reference is mutable is updated after the new dependency exists."""
        old_a = make_node("A", properties={"size": 1})
        b = make_node("B", properties={"value": Reference.parse("A.id")})
        state = applied(catalog, old_a, b)

        plan = Planner(catalog).plan(build_graph(make_node("A", properties={"size": 2}), b), state)

        assert keys(plan) == ["A:destroy", "A:apply", "B:apply"]
        assert plan.get("A:destroy").action == Action.REPLACE
        assert plan.get("B:apply").action == Action.UPDATE

    def test_updated_dependency_renews_changing_outputs(self, catalog, build_graph, make_node):
        """An in-place update may change outputs other than id and declared stable ones."""
        source = Resource(kind="test.source", logical_id="A", properties={"name": "x"})
        by_name = make_node("B", properties={"value": Reference.parse("A.name")})
        by_arn = make_node("C", properties={"value": Reference.parse("A.arn")})
        state = applied(catalog, source, by_name, by_arn)
        renamed = Resource(kind="test.source", logical_id="A", properties={"name": "y"})

        plan = Planner(catalog).plan(build_graph(renamed, by_name, by_arn), state)

        assert plan.get("A:apply").action == Action.UPDATE
        assert plan.get("B:apply").action == Action.UPDATE
        assert plan.get("B:apply").changed_properties == ("value",)
        assert plan.dependencies_of("B:apply") == ["A:apply"]
        assert plan.get("C:none").action == Action.NOOP

    def test_recorded_reference_value_out_of_date(self, catalog, build_graph, make_node):
        """A dependent applied against an older output value is re-applied."""
        a = Resource(kind="test.source", logical_id="A", properties={"name": "y"})
        b = make_node("B", properties={"value": Reference.parse("A.name")})
        state = AppliedState.empty()
        state.set_entry("A", StateEntry.from_resource(a, {"id": "a-1", "name": "y"}))
        state.set_entry("B", StateEntry.from_resource(b, {"id": "b-1"}, resolved_references={"A.name": "x"}))

        plan = Planner(catalog).plan(build_graph(a, b), state)

        assert plan.get("A:none").action == Action.NOOP
        assert plan.get("B:apply").action == Action.UPDATE

    def test_recorded_reference_value_current(self, catalog, build_graph, make_node):
        a = Resource(kind="test.source", logical_id="A", properties={"name": "y"})
        b = make_node("B", properties={"value": Reference.parse("A.name")})
        state = AppliedState.empty()
        state.set_entry("A", StateEntry.from_resource(a, {"id": "a-1", "name": "y"}))
        state.set_entry("B", StateEntry.from_resource(b, {"id": "b-1"}, resolved_references={"A.name": "y"}))

        assert not Planner(catalog).plan(build_graph(a, b), state).has_changes()

    def test_kind_change_is_replace(self, catalog, build_graph):
        old = Resource(kind="test.node", logical_id="Thing", properties={"value": 1})
        new = Resource(kind="compute.instance", logical_id="Thing", properties={"value": 1})
        state = applied(catalog, old)

        plan = Planner(catalog).plan(build_graph(new), state)

        assert keys(plan) == ["Thing:destroy", "Thing:apply"]
        assert plan.get("Thing:destroy").kind == "test.node"
        assert plan.get("Thing:apply").kind == "compute.instance"

    def test_dropped_dependency_updates_before_delete(self, catalog, build_graph, make_node):
        """A surviving resource that stops depending on a deleted one is changed first."""
        state = applied(catalog, make_node("A"), make_node("B", depends_on=["A"], value=1))

        plan = Planner(catalog).plan(build_graph(make_node("B", value=2)), state)

        assert keys(plan) == ["B:apply", "A:destroy"]
        assert plan.dependencies_of("A:destroy") == ["B:apply"]

    def test_noop_dependency_passes_readiness_through(self, catalog, build_graph, make_node):
        state = applied(catalog, make_node("A"))

        plan = Planner(catalog).plan(build_graph(make_node("A"), make_node("B", depends_on=["A"])), state)

        assert group_keys(plan) == [["B:apply"]]
        assert plan.dependencies_of("B:apply") == []


class TestPlannerProperties:
    """Retention and determinism."""

    def test_retained_kind_marks_delete(self, catalog):
        bucket = Resource(kind="storage.bucket", logical_id="Backups")
        state = applied(catalog, bucket)

        plan = Planner(catalog).plan(ResourceGraph.empty(), state)

        assert plan.get("Backups:destroy").retain is True

    def test_resource_overrides_kind_retention(self, catalog, build_graph):
        bucket = Resource(kind="storage.bucket", logical_id="Scratch", retain_on_delete=False)

        plan = Planner(catalog).plan(build_graph(bucket), AppliedState.empty())

        assert plan.get("Scratch:apply").retain is False

    def test_retention_change_rewrites_state_only(self, catalog, build_graph):
        bucket = Resource(kind="storage.bucket", logical_id="Bk")
        state = applied(catalog, bucket)

        plan = Planner(catalog).plan(
            build_graph(Resource(kind="storage.bucket", logical_id="Bk", retain_on_delete=False)), state)

        op = plan.get("Bk:apply")
        assert op.action == Action.UPDATE
        assert op.state_only is True
        assert op.retain is False
        assert plan.has_changes()

    def test_retention_change_leaves_dependents_alone(self, catalog, build_graph, make_node):
        source = Resource(kind="test.source", logical_id="A", properties={"name": "x"})
        dependent = make_node("B", properties={"value": Reference.parse("A.name")})
        state = applied(catalog, source, dependent)
        retained = Resource(kind="test.source", logical_id="A", properties={"name": "x"}, retain_on_delete=True)

        plan = Planner(catalog).plan(build_graph(retained, dependent), state)

        assert plan.get("A:apply").state_only is True
        assert plan.get("B:none").action == Action.NOOP

    def test_replace_follows_desired_retention(self, catalog, build_graph):
        state = applied(catalog, Resource(kind="storage.bucket", logical_id="Bk", properties={"region": "a"}))
        replacement = Resource(kind="storage.bucket", logical_id="Bk", properties={"region": "b"},
                               retain_on_delete=False)

        plan = Planner(catalog).plan(build_graph(replacement), state)

        assert plan.get("Bk:destroy").retain is False

    def test_plan_is_deterministic(self, catalog, build_graph, make_node, make_vpc, make_sg):
        state = applied(catalog, make_vpc(), make_node("Old"))
        resources = [make_node("C", depends_on=["VPC"]), make_sg(), make_vpc(cidr="10.2.0.0/16")]

        first = Planner(catalog).plan(build_graph(*resources), state)
        second = Planner(catalog).plan(build_graph(*reversed(resources)), state)

        assert json.dumps(first.to_dict(), sort_keys=True, default=str) == \
            json.dumps(second.to_dict(), sort_keys=True, default=str)

    def test_destroy_steps_precede_apply_steps_in_a_level(self, catalog, build_graph, make_node):
        state = applied(catalog, make_node("Z"))

        plan = Planner(catalog).plan(build_graph(make_node("A")), state)

        assert keys(plan) == ["Z:destroy", "A:apply"]
        assert group_keys(plan) == [["Z:destroy", "A:apply"]]
        assert [op.step for op in plan] == [Step.DESTROY, Step.APPLY]
