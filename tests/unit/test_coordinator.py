"""Unit tests for the build coordinator and offload executors."""

import logging

import pytest

from schema_lens.coordinator.coordinator import BuildCoordinator, RowBudget
from schema_lens.coordinator.executor import (
    OffloadExecutor,
    ProcessOffloadExecutor,
    ThreadOffloadExecutor,
)
from schema_lens.coordinator.messages import BuildRequest, BuildResponse, run_full_build
from schema_lens.schema.base import CombinerSchemaNode, ObjectSchemaNode, RefSchemaNode
from schema_lens.schema_tree.builder import SchemaDepthError, build_tree

GIF_SCHEMA = {
    "properties": {
        "data": {"items": {"$ref": "#/definitions/Gif"}, "type": "array"},
        "meta": {"$ref": "#/definitions/Meta"},
        "pagination": {"$ref": "#/definitions/Pagination"},
    },
}

ALL_OF_SCHEMA = {
    "allOf": [
        {
            "properties": {
                "Object1Property": {"type": "string", "minLength": 1, "x-val": "lol"},
            },
        },
    ],
}


class RecordingExecutor(OffloadExecutor):
    """Executor that records requests instead of running them."""

    def __init__(self) -> None:
        self.requests = []
        self.callbacks = []

    def submit(self, request, on_response) -> None:
        self.requests.append(request)
        self.callbacks.append(on_response)


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


class TestBuildCoordinator:
    """Test suite for BuildCoordinator."""

    def test_small_schema_builds_synchronously(self, executor) -> None:
        """Test that no request is issued under the row threshold."""
        coordinator = BuildCoordinator(executor=executor, max_rows=10)

        tree = coordinator.build(GIF_SCHEMA)

        assert executor.requests == []
        assert len(tree) == 4
        assert coordinator.tree is tree
        assert coordinator.latest_instance_id is None

    def test_threshold_is_inclusive(self, executor) -> None:
        """Test that a schema with exactly max_rows rows is built in place."""
        coordinator = BuildCoordinator(executor=executor, max_rows=4)

        coordinator.build(GIF_SCHEMA)

        assert executor.requests == []

    def test_all_of_forces_delegation(self, executor) -> None:
        """Test that allOf is delegated regardless of node count."""
        coordinator = BuildCoordinator(executor=executor, max_rows=10)

        coordinator.build(ALL_OF_SCHEMA)

        assert len(executor.requests) == 1
        request = executor.requests[0]
        assert request.merge_all_of is True
        assert request.document == ALL_OF_SCHEMA
        assert request.instance_id == coordinator.latest_instance_id

    def test_all_of_without_merging_builds_synchronously(self, executor) -> None:
        """Test that mergeAllOf=False keeps small allOf schemas in place."""
        coordinator = BuildCoordinator(executor=executor, max_rows=10, merge_all_of=False)

        tree = coordinator.build(ALL_OF_SCHEMA)

        assert executor.requests == []
        assert len(tree) == 3

    def test_merge_all_of_none_means_merge(self, executor) -> None:
        """Test that only an explicit False disables merging."""
        coordinator = BuildCoordinator(executor=executor, max_rows=10, merge_all_of=None)

        coordinator.build(ALL_OF_SCHEMA)

        assert executor.requests[0].merge_all_of is True

    def test_large_schema_pre_renders_max_rows(self, executor) -> None:
        """Test the pre-render of a schema larger than max_rows."""
        coordinator = BuildCoordinator(executor=executor, max_rows=1)

        tree = coordinator.build(GIF_SCHEMA)

        assert len(executor.requests) == 1
        assert executor.requests[0].document == GIF_SCHEMA
        assert executor.requests[0].merge_all_of is True

        assert len(tree) == 1
        root = tree.nodes[0]
        assert root.level == 0
        assert root.name == ""
        assert root.can_have_children is True
        assert root.children == []

        record = tree.metadata[root.id]
        assert record.path == ()
        assert record.annotations == {}
        assert record.validations == {}
        assert isinstance(record.fragment, ObjectSchemaNode)
        assert record.fragment.id == root.id
        assert record.fragment.type == "object"
        assert record.fragment.properties == GIF_SCHEMA["properties"]

    def test_request_holds_a_snapshot(self, executor) -> None:
        """Test that the request does not share the caller's document."""
        schema = {"properties": {"a": {"type": "string"}}}
        coordinator = BuildCoordinator(executor=executor, max_rows=0)

        coordinator.build(schema)
        schema["properties"]["a"]["type"] = "number"

        assert executor.requests[0].document == {"properties": {"a": {"type": "string"}}}

    def test_build_does_not_mutate_schema(self, executor) -> None:
        """Test that neither path touches the input document."""
        schema = {"type": "object", "anyOf": [{"properties": {"a": {}}}]}
        coordinator = BuildCoordinator(executor=executor, max_rows=0)

        coordinator.build(schema)
        run_full_build(executor.requests[0])

        assert schema == {"type": "object", "anyOf": [{"properties": {"a": {}}}]}

    def test_matching_response_replaces_tree(self, executor) -> None:
        """Test that the response to the latest request is applied."""
        coordinator = BuildCoordinator(executor=executor, max_rows=1)
        coordinator.build(GIF_SCHEMA)

        response = run_full_build(executor.requests[0])
        executor.callbacks[0](response)

        assert coordinator.tree.nodes == response.nodes
        assert len(coordinator.tree) == 4
        assert coordinator.tree.roots == [0]
        assert all(node.id in coordinator.tree.metadata for node in coordinator.tree.nodes)

    def test_non_matching_response_is_discarded(self, executor) -> None:
        """Test that a response with a foreign instance id changes nothing."""
        coordinator = BuildCoordinator(executor=executor, max_rows=0)
        coordinator.build(GIF_SCHEMA)
        assert coordinator.tree.nodes == []

        response = run_full_build(executor.requests[0])
        stale = BuildResponse(instance_id="foooo", nodes=response.nodes, metadata=response.metadata)

        assert coordinator.handle_response(stale) is False
        assert coordinator.tree.nodes == []

    def test_superseded_response_is_discarded(self, executor) -> None:
        """Test that only the most recent request's response is applied."""
        coordinator = BuildCoordinator(executor=executor, max_rows=0)
        coordinator.build(GIF_SCHEMA)
        coordinator.build({"properties": {"only": {"type": "string"}}})

        second = run_full_build(executor.requests[1])
        first = run_full_build(executor.requests[0])

        assert coordinator.handle_response(second) is True
        assert coordinator.handle_response(first) is False
        assert len(coordinator.tree) == 2

    def test_sync_build_supersedes_pending_request(self, executor) -> None:
        """Test that an in-place build invalidates an in-flight delegated build."""
        coordinator = BuildCoordinator(executor=executor, max_rows=2)
        coordinator.build(GIF_SCHEMA)
        pending = executor.requests[0]

        tree = coordinator.build({"type": "string"})

        assert coordinator.handle_response(run_full_build(pending)) is False
        assert coordinator.tree is tree

    def test_duplicate_response_is_harmless(self, executor) -> None:
        """Test that delivering the same response twice is safe."""
        coordinator = BuildCoordinator(executor=executor, max_rows=1)
        coordinator.build(GIF_SCHEMA)
        response = run_full_build(executor.requests[0])

        assert coordinator.handle_response(response) is True
        assert coordinator.handle_response(response) is True
        assert coordinator.tree.nodes == response.nodes

    def test_on_update_receives_new_tree(self, executor) -> None:
        """Test the update callback."""
        updates = []
        coordinator = BuildCoordinator(executor=executor, max_rows=1, on_update=updates.append)
        coordinator.build(GIF_SCHEMA)

        executor.callbacks[0](run_full_build(executor.requests[0]))

        assert updates == [coordinator.tree]

    def test_missing_response_keeps_pre_render(self, executor) -> None:
        """Test that the truncated tree stays when nothing comes back."""
        coordinator = BuildCoordinator(executor=executor, max_rows=2)

        tree = coordinator.build(GIF_SCHEMA)

        assert coordinator.tree is tree
        assert len(coordinator.tree) == 2


def test_row_budget():
    """Test that the row budget admits exactly max_rows nodes."""
    budget = RowBudget(2)

    assert [budget(None, None, 0) for _ in range(4)] == [True, True, False, False]


def test_full_build_merges_all_of():
    """Test that the delegated build merges allOf when requested."""
    request = BuildRequest(instance_id="a", schema=ALL_OF_SCHEMA, merge_all_of=True)

    tree = run_full_build(request).to_tree()

    assert len(tree) == 2
    root = tree.metadata[tree.nodes[0].id]
    assert isinstance(root.fragment, ObjectSchemaNode)
    child = tree.metadata[tree.nodes[1].id]
    assert child.path == ("properties", "Object1Property")
    assert child.validations == {"minLength": 1}
    assert child.annotations == {"x-val": "lol"}


def test_full_build_without_merging_keeps_combiner():
    """Test that the delegated build uses the plain builder when merging is off."""
    request = BuildRequest(instance_id="a", schema=ALL_OF_SCHEMA, merge_all_of=False)

    tree = run_full_build(request).to_tree()

    assert isinstance(tree.metadata[tree.nodes[0].id].fragment, CombinerSchemaNode)
    assert len(tree) == 3


def test_full_build_keeps_ref_branches_of_typed_all_of():
    """Test that unmerged $ref branches stay expandable references."""
    schema = {
        "type": "object",
        "allOf": [{"$ref": "#/definitions/Base"}, {"properties": {"b": {}}}],
    }

    tree = run_full_build(BuildRequest(instance_id="a", schema=schema)).to_tree()

    ref_node = tree.nodes[1]
    assert isinstance(tree.metadata[ref_node.id].fragment, RefSchemaNode)
    assert ref_node.children == []


def nested_properties(depth):
    schema = {"type": "string"}
    for _ in range(depth):
        schema = {"properties": {"child": schema}}
    return schema


def test_too_deep_schema_is_rejected(executor):
    """Test that pathological nesting raises a ValueError instead of RecursionError."""
    schema = nested_properties(5000)
    coordinator = BuildCoordinator(executor=executor)

    with pytest.raises(SchemaDepthError):
        coordinator.build(schema)
    with pytest.raises(SchemaDepthError):
        run_full_build(BuildRequest(instance_id="a", schema=schema))
    assert executor.requests == []


def test_request_serializes_schema_alias():
    """Test the wire shape of a request."""
    request = BuildRequest(instance_id="abc", schema={"type": "string"})

    assert request.model_dump(by_alias=True) == {
        "instance_id": "abc",
        "schema": {"type": "string"},
        "merge_all_of": True,
    }


class TestThreadOffloadExecutor:
    """Test suite for the thread-backed executor."""

    def test_full_build_is_applied(self) -> None:
        """Test the round trip through a background thread."""
        with ThreadOffloadExecutor() as executor:
            coordinator = BuildCoordinator(executor=executor, max_rows=1)
            coordinator.build(GIF_SCHEMA)

            assert coordinator.wait(timeout=10) is True

        assert len(coordinator.tree) == 4

    def test_wait_without_submissions(self) -> None:
        """Test that waiting with nothing pending returns immediately."""
        with ThreadOffloadExecutor() as executor:
            assert executor.wait(timeout=0) is True

    def test_failed_build_keeps_pre_render(self, monkeypatch, caplog) -> None:
        """Test that an exception in the worker is logged, not raised."""

        def broken_build(request):
            raise RuntimeError("boom")

        monkeypatch.setattr("schema_lens.coordinator.executor.run_full_build", broken_build)

        with caplog.at_level(logging.WARNING, logger="schema_lens.coordinator.executor"):
            with ThreadOffloadExecutor() as executor:
                coordinator = BuildCoordinator(executor=executor, max_rows=1)
                tree = coordinator.build(GIF_SCHEMA)
                assert coordinator.wait(timeout=10) is True

        assert coordinator.tree is tree
        assert "Full schema build failed: boom" in caplog.text


class TestProcessOffloadExecutor:
    """Test suite for the process-backed executor."""

    def test_full_build_is_applied(self) -> None:
        """Test the round trip through a worker process."""
        with ProcessOffloadExecutor() as executor:
            coordinator = BuildCoordinator(executor=executor, max_rows=1)
            coordinator.build(GIF_SCHEMA)

            assert coordinator.wait(timeout=60) is True

        tree = coordinator.tree
        expected = build_tree(GIF_SCHEMA)
        assert len(tree) == len(expected)
        assert [node.children for node in tree.nodes] == [
            node.children for node in expected.nodes
        ]
        assert [tree.metadata[node.id].path for node in tree.nodes] == [
            expected.metadata[node.id].path for node in expected.nodes
        ]
        meta = tree.metadata[tree.nodes[2].id].fragment
        assert isinstance(meta, RefSchemaNode)
        assert meta.ref == "#/definitions/Meta"

    def test_all_of_is_merged_in_worker(self) -> None:
        """Test that merging and the fragment union survive pickling."""
        with ProcessOffloadExecutor() as executor:
            coordinator = BuildCoordinator(executor=executor)
            coordinator.build(ALL_OF_SCHEMA)

            assert coordinator.wait(timeout=60) is True

        tree = coordinator.tree
        assert len(tree) == 2
        assert isinstance(tree.metadata[tree.nodes[0].id].fragment, ObjectSchemaNode)
        assert tree.metadata[tree.nodes[1].id].validations == {"minLength": 1}
