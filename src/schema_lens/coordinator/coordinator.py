"""Build coordination: synchronous pre-render plus delegated full build.

Small schemas are built in place. Large schemas, and any schema containing
an allOf while merging is enabled, are pre-rendered up to a row budget so the
caller gets a usable tree immediately, while a full build is delegated to an
offload executor. Only the response to the most recent request is applied.
"""

import copy
import logging
import threading
from typing import Any, Callable, Dict, Optional

from schema_lens.coordinator.executor import OffloadExecutor, ThreadOffloadExecutor
from schema_lens.coordinator.messages import BuildRequest, BuildResponse
from schema_lens.schema.base import SchemaNode
from schema_lens.schema_tree.builder import (
    WalkingOptions,
    build_tree,
    contains_all_of,
    estimate_node_count,
)
from schema_lens.schema_tree.nodes import SchemaTree, TreeNode
from schema_lens.schema_tree.walker import IdFactory, generate_id

logger = logging.getLogger(__name__)

DEFAULT_MAX_ROWS = 20


class RowBudget:
    """Node filter admitting at most ``max_rows`` rows."""

    def __init__(self, max_rows: int) -> None:
        self.max_rows = max_rows
        self.emitted = 0

    def __call__(self, node: SchemaNode, parent: Optional[TreeNode], level: int) -> bool:
        if self.emitted >= self.max_rows:
            return False
        self.emitted += 1
        return True


class BuildCoordinator:
    """Decides how each schema is built and reconciles delegated results.

    Attributes:
        executor: Executor receiving full-build requests.
        max_rows: Row threshold above which the full build is delegated.
        merge_all_of: Whether allOf combiners are merged by the full build.
        tree: The current tree. Replaced wholesale, never patched.

    Example:
        >>> coordinator = BuildCoordinator(max_rows=50)
        >>> tree = coordinator.build(schema)   # usable immediately
        >>> coordinator.wait()                  # full tree, if delegated
        >>> coordinator.tree.nodes
    """

    def __init__(
        self,
        executor: Optional[OffloadExecutor] = None,
        max_rows: int = DEFAULT_MAX_ROWS,
        merge_all_of: Optional[bool] = True,
        ids: IdFactory = generate_id,
        instance_ids: IdFactory = generate_id,
        on_update: Optional[Callable[[SchemaTree], None]] = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            executor: Executor for delegated builds. A single-worker thread
                executor is created when omitted.
            max_rows: Row threshold for the synchronous build.
            merge_all_of: Merge allOf combiners in the full build. Only an
                explicit False disables merging.
            ids: Factory for node identifiers.
            instance_ids: Factory for request instance ids.
            on_update: Called with the new tree whenever a delegated result
                is applied.
        """
        self.executor = executor if executor is not None else ThreadOffloadExecutor()
        self.max_rows = max_rows
        self.merge_all_of = merge_all_of
        self.ids = ids
        self.instance_ids = instance_ids
        self.on_update = on_update
        self.tree = SchemaTree()
        self._lock = threading.Lock()
        self._latest_instance_id: Optional[str] = None

    @property
    def latest_instance_id(self) -> Optional[str]:
        """Instance id of the pending delegated build, None if there is none."""
        return self._latest_instance_id

    def needs_delegation(self, schema: Dict[str, Any]) -> bool:
        """Whether ``schema`` is too large, or needs allOf merging, to build in place."""
        estimate = estimate_node_count(schema, limit=self.max_rows)
        has_all_of = contains_all_of(schema)
        logger.debug(
            "Schema estimate: %d nodes (max_rows=%d), allOf present: %s",
            estimate,
            self.max_rows,
            has_all_of,
        )
        return estimate > self.max_rows or (has_all_of and self.merge_all_of is not False)

    def build(self, schema: Dict[str, Any]) -> SchemaTree:
        """Build ``schema``, delegating the full build when needed.

        Args:
            schema: The JSON Schema document. Never mutated.

        Returns:
            The tree available right away: complete when built in place,
            truncated to ``max_rows`` rows when the full build was delegated.
        """
        if not self.needs_delegation(schema):
            tree = build_tree(schema, WalkingOptions(ids=self.ids))
            with self._lock:
                self._latest_instance_id = None
                self.tree = tree
            return tree

        tree = build_tree(schema, WalkingOptions(on_node=RowBudget(self.max_rows), ids=self.ids))
        request = BuildRequest(
            instance_id=self.instance_ids(),
            document=copy.deepcopy(schema),
            merge_all_of=self.merge_all_of is not False,
        )
        with self._lock:
            self._latest_instance_id = request.instance_id
            self.tree = tree

        logger.debug("Pre-rendered %d rows, delegating full build %s", len(tree), request.instance_id)
        self.executor.submit(request, self.handle_response)
        return tree

    def handle_response(self, response: BuildResponse) -> bool:
        """Apply a delegated build result if it answers the latest request.

        Args:
            response: The executor's response.

        Returns:
            True if the tree was replaced, False if the response was stale.
        """
        with self._lock:
            if self._latest_instance_id is None or response.instance_id != self._latest_instance_id:
                logger.debug("Discarding stale build response %s", response.instance_id)
                return False
            self.tree = response.to_tree()
            tree = self.tree

        logger.debug("Applied full build %s with %d rows", response.instance_id, len(tree))
        if self.on_update is not None:
            self.on_update(tree)
        return True

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the latest delegated build has been delivered.

        Returns:
            False if the timeout expired first.
        """
        return self.executor.wait(timeout)
