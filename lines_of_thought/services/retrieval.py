"""
Retrieval Engine - Tree navigation reads

- get_with_neighbors: a thought with its direct children and parent(s)
- get_batch_with_neighbors: the same for many ids in one store round trip
- get_subgraph: everything reachable forward from a thought

Results are de-duplicated by id, so a batch read equals the union of the
single reads for the same ids.
"""

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from lines_of_thought.config.settings import settings
from lines_of_thought.models.thought import Branch, GraphView, Thought
from lines_of_thought.services.errors import ThoughtNotFoundError, ValidationFailedError
from lines_of_thought.services.graph_store import GraphStore, GraphStoreBase, Neighborhood

logger = logging.getLogger(__name__)


class _GraphAccumulator:
    """Collects nodes and edges keyed by id, keeping first-seen order."""

    def __init__(self) -> None:
        self.nodes: Dict[str, Thought] = {}
        self.edges: Dict[str, Branch] = {}

    def add_node(self, thought: Thought) -> None:
        self.nodes.setdefault(thought.id, thought)

    def add_edge(self, branch: Branch) -> None:
        self.edges.setdefault(branch.id, branch)

    def add_neighborhood(self, hood: Neighborhood) -> None:
        self.add_node(hood.thought)
        for branch, child in hood.children:
            self.add_node(child)
            self.add_edge(branch)
        if len(hood.parents) > 1:
            logger.warning(f"Thought {hood.thought.id} has {len(hood.parents)} parents")
        for branch, parent in hood.parents:
            self.add_node(parent)
            self.add_edge(branch)

    def view(self) -> GraphView:
        return GraphView(nodes=list(self.nodes.values()), relationships=list(self.edges.values()))


class RetrievalEngine:
    """Single, batch and subgraph reads over the thought graph."""

    def __init__(self, store: Optional[GraphStoreBase] = None, max_batch_ids: Optional[int] = None):
        self.store = store or GraphStore()
        self.max_batch_ids = max_batch_ids or settings.MAX_BATCH_IDS

    def get_with_neighbors(self, thought_id: str) -> GraphView:
        hoods = self.store.fetch_neighborhoods([thought_id])
        if not hoods:
            raise ThoughtNotFoundError(f"Thought {thought_id} not found")

        acc = _GraphAccumulator()
        for hood in hoods:
            acc.add_neighborhood(hood)
        return acc.view()

    def get_batch_with_neighbors(self, thought_ids: Sequence[str]) -> GraphView:
        """Neighborhoods of every resolvable id; unknown ids contribute nothing."""
        ids = _unique(thought_ids)
        if len(ids) > self.max_batch_ids:
            raise ValidationFailedError(f"At most {self.max_batch_ids} ids per batch request")
        if not ids:
            return GraphView()

        acc = _GraphAccumulator()
        for hood in self.store.fetch_neighborhoods(ids):
            acc.add_neighborhood(hood)
        return acc.view()

    def get_subgraph(self, root_id: str) -> GraphView:
        """
        All thoughts reachable from ``root_id`` along branches, plus the
        branches among them.

        Breadth-first, one store round trip per level. The visited set keeps
        the traversal finite even if the stored graph contains a cycle.
        """
        root = self.store.get_thought(root_id)
        if root is None:
            raise ThoughtNotFoundError(f"Thought {root_id} not found")

        acc = _GraphAccumulator()
        acc.add_node(root)
        visited = {root.id}
        frontier = [root.id]

        while frontier:
            next_frontier = []
            for branch, child in self.store.fetch_children(frontier):
                acc.add_edge(branch)
                if child.id in visited:
                    continue
                visited.add(child.id)
                acc.add_node(child)
                next_frontier.append(child.id)
            frontier = next_frontier

        logger.debug(f"Subgraph of {root_id}: {len(acc.nodes)} nodes, {len(acc.edges)} edges")
        return acc.view()


def _unique(ids: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for thought_id in ids:
        if not isinstance(thought_id, str) or not thought_id.strip():
            raise ValidationFailedError("Thought ids must be non-empty strings")
        seen.setdefault(thought_id.strip(), None)
    return list(seen)
