"""Tests for topology document loading."""
import json
from pathlib import Path

import pytest

from topoplan.domain.graph import DanglingReferenceError
from topoplan.domain.plan.planner import Planner
from topoplan.domain.resource import Reference
from topoplan.domain.state import AppliedState, StateEntry
from topoplan.infrastructure.topology import TopologyLoadError, load_topology, loads_topology

TOPOLOGY = """
name: webapp
kinds:
  network.vpc:
    outputs: [id]
    required: [cidr]
  network.security_group:
    outputs: [id]
    mutable: [ingress]
resources:
  VPC:
    kind: network.vpc
    properties:
      cidr: 10.0.0.0/16
  SecurityGroup:
    kind: network.security_group
    properties:
      vpc_id: !ref VPC.id
      ingress:
        - port: 22
          source: ${SSH_IP:0.0.0.0/0}
        - port: 5432
          source: {"$ref": "VPC.id"}
outputs:
  SecurityGroupId: !ref SecurityGroup.id
  VpcId: VPC.id
"""


class TestTopologyLoader:
    """Test YAML and JSON topology documents."""

    def test_yaml_document(self):
        document = loads_topology(TOPOLOGY, environ={})

        assert document.name == "webapp"
        assert document.catalog.names() == ["network.security_group", "network.vpc"]
        sg = next(r for r in document.resources if r.logical_id == "SecurityGroup")
        assert sg.properties["vpc_id"] == Reference.parse("VPC.id")
        assert sg.properties["ingress"][0]["source"] == "0.0.0.0/0"
        assert sg.properties["ingress"][1]["source"] == Reference.parse("VPC.id")
        assert document.outputs["VpcId"].address == "VPC.id"

    def test_environment_placeholder(self):
        document = loads_topology(TOPOLOGY, environ={"SSH_IP": "203.0.113.7/32"})

        sg = next(r for r in document.resources if r.logical_id == "SecurityGroup")
        assert sg.properties["ingress"][0]["source"] == "203.0.113.7/32"

    def test_unset_variable_without_default(self):
        content = TOPOLOGY.replace("${SSH_IP:0.0.0.0/0}", "${DB_PASSWORD}")

        with pytest.raises(TopologyLoadError) as exc_info:
            loads_topology(content, environ={})

        assert "DB_PASSWORD" in exc_info.value.message

    def test_builds_graph(self):
        graph = loads_topology(TOPOLOGY, environ={}).build_graph()

        assert graph.topological_order == ("VPC", "SecurityGroup")

    @pytest.mark.parametrize("output, reason", [
        ("Missing.id", "unknown logical id"),
        ("VPC.arn", "does not declare output 'arn'"),
    ])
    def test_outputs_must_point_at_declared_outputs(self, output, reason):
        document = loads_topology(TOPOLOGY.replace("VpcId: VPC.id", f"VpcId: {output}"), environ={})

        with pytest.raises(DanglingReferenceError) as exc_info:
            document.build_graph()

        assert exc_info.value.message.startswith("Output 'VpcId' references")
        assert reason in exc_info.value.message

    def test_json_file_with_resource_list(self, tmp_path):
        path = tmp_path / "stack.json"
        path.write_text(json.dumps({
            "kinds": {"test.node": {"outputs": ["id"]}},
            "resources": [
                {"logical_id": "A", "kind": "test.node"},
                {"logical_id": "B", "kind": "test.node", "depends_on": ["A"], "retain_on_delete": True},
            ],
        }))

        document = load_topology(str(path))

        assert document.name == "stack"
        assert [r.logical_id for r in document.resources] == ["A", "B"]
        assert document.resources[1].depends_on == frozenset({"A"})
        assert document.resources[1].retain_on_delete is True

    def test_resolve_outputs(self):
        document = loads_topology(TOPOLOGY, environ={})
        state = AppliedState.empty()
        state.set_entry("VPC", StateEntry(kind="network.vpc", properties_hash="h", outputs={"id": "vpc-1"}))

        assert document.resolve_outputs(state) == {"SecurityGroupId": None, "VpcId": "vpc-1"}

    @pytest.mark.parametrize("content", [
        "- just\n- a list\n",
        "resources: 5\n",
        "unexpected: true\n",
        "resources:\n  A:\n    kind: test.node\n    colour: red\n",
        "resources:\n  'bad id':\n    kind: test.node\n",
        "outputs:\n  X: not-a-reference\n",
        "resources:\n  A:\n    kind: test.node\n    properties:\n      x: !ref nodot\n",
        "kinds: [a, b]\n",
        "name: [unclosed\n",
    ])
    def test_malformed_documents(self, content):
        with pytest.raises(TopologyLoadError):
            loads_topology(content, environ={})

    def test_missing_file(self, tmp_path):
        with pytest.raises(TopologyLoadError):
            load_topology(str(tmp_path / "absent.yaml"))


class TestBundledExample:
    """The example topology shipped with the project stays loadable."""

    EXAMPLE = Path(__file__).parents[3] / "examples" / "odoo-topology.yaml"

    def test_requires_database_password(self):
        with pytest.raises(TopologyLoadError, match="AWS_RDS_PASSWORD"):
            load_topology(str(self.EXAMPLE), environ={})

    def test_plans_full_creation(self):
        document = load_topology(str(self.EXAMPLE), environ={"AWS_RDS_PASSWORD": "secret"})
        graph = document.build_graph()

        plan = Planner(document.catalog).plan(graph, AppliedState.empty())

        assert document.name == "odoo"
        assert graph.get("PublicSecurityGroup").properties["ingress"][0]["peer"] == "0.0.0.0/0"
        keys = [[op.key for op in group] for group in plan.groups]
        assert keys[0] == ["BackupBucket:apply", "Ec2InstanceRole:apply",
                           "OdooBucket:apply", "OdooVPC:apply"]
        assert keys[-1] == ["OdooInstance:apply"]
        assert document.catalog.get("storage.bucket").retain_on_delete is False
        assert graph.get("BackupBucket").retain_on_delete is True
