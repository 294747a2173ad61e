"""In-memory collaborators shared by the unit tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT))

from lines_of_thought.models.thought import Branch, Thought  # noqa: E402
from lines_of_thought.services.argument_scorer import StrengthAssessment  # noqa: E402
from lines_of_thought.services.errors import (  # noqa: E402
    BranchConflictError,
    ParentNotFoundError,
    ThoughtNotFoundError,
)
from lines_of_thought.services.graph_store import GraphStoreBase, Neighborhood, ParentContext  # noqa: E402
from lines_of_thought.services.moderation import ModerationVerdict  # noqa: E402

EPOCH = datetime(2025, 10, 1, tzinfo=timezone.utc)


class FakeGraphStore(GraphStoreBase):
    """Dict-backed store with the same semantics as the Neo4j store."""

    def __init__(self):
        self.nodes: Dict[str, Thought] = {}
        self.edges: Dict[str, Branch] = {}
        self._next = 0
        self.calls: List[str] = []

    def _id(self, prefix: str) -> str:
        self._next += 1
        return f"{prefix}{self._next}"

    def _new_thought(self, text, embedding, is_root) -> Thought:
        thought = Thought(
            id=self._id("t"),
            text=text,
            created_at=EPOCH + timedelta(minutes=self._next),
            is_root=is_root,
            embedding=list(embedding) if embedding is not None else None,
        )
        self.nodes[thought.id] = thought
        return thought

    def _parents_of(self, thought_id: str) -> List[Branch]:
        return [b for b in self.edges.values() if b.to_id == thought_id]

    def _children_of(self, thought_id: str) -> List[Branch]:
        return [b for b in self.edges.values() if b.from_id == thought_id]

    def add_edge(self, from_id: str, to_id: str, **fields) -> Branch:
        """Insert an edge without any checks, for seeding legacy shapes."""
        branch = Branch(id=self._id("b"), from_id=from_id, to_id=to_id, **fields)
        self.edges[branch.id] = branch
        return branch

    def create_thought(self, text, embedding, is_root=True):
        self.calls.append("create_thought")
        return self._new_thought(text, embedding, is_root)

    def create_branch(self, parent_id, text, embedding, perspective=None,
                      strength_score=None, strength_analysis=None):
        self.calls.append("create_branch")
        if parent_id not in self.nodes:
            raise ParentNotFoundError(f"Parent thought {parent_id} not found")
        child = self._new_thought(text, embedding, False)
        branch = self.add_edge(
            parent_id,
            child.id,
            perspective=perspective,
            strength_score=strength_score,
            strength_analysis=strength_analysis,
        )
        return child, branch

    def link_thoughts(self, from_id, to_id, perspective=None):
        self.calls.append("link_thoughts")
        for thought_id in (from_id, to_id):
            if thought_id not in self.nodes:
                raise ThoughtNotFoundError(f"Thought {thought_id} not found")
        if self._parents_of(to_id):
            raise BranchConflictError(f"Thought {to_id} already has a parent")
        if from_id in self._reachable(to_id):
            raise BranchConflictError(f"Linking {from_id} to {to_id} would create a cycle")
        return self.add_edge(from_id, to_id, perspective=perspective)

    def _reachable(self, start: str) -> set:
        seen = {start}
        stack = [start]
        while stack:
            for branch in self._children_of(stack.pop()):
                if branch.to_id not in seen:
                    seen.add(branch.to_id)
                    stack.append(branch.to_id)
        return seen

    def delete_thought(self, thought_id):
        if thought_id not in self.nodes:
            return 0
        del self.nodes[thought_id]
        for branch_id in [b.id for b in self.edges.values() if thought_id in (b.from_id, b.to_id)]:
            del self.edges[branch_id]
        return 1

    def delete_branch(self, branch_id):
        return 1 if self.edges.pop(branch_id, None) is not None else 0

    def get_thought(self, thought_id):
        return self.nodes.get(thought_id)

    def get_parent_context(self, parent_id):
        self.calls.append("get_parent_context")
        parent = self.nodes.get(parent_id)
        if parent is None:
            return None
        children = [self.nodes[b.to_id] for b in self._children_of(parent_id)]
        return ParentContext(parent=parent, children=children)

    def root_embeddings(self):
        self.calls.append("root_embeddings")
        return [t for t in self.nodes.values() if t.is_root and t.embedding is not None]

    def fetch_neighborhoods(self, thought_ids: Sequence[str]):
        self.calls.append("fetch_neighborhoods")
        hoods = []
        for thought_id in thought_ids:
            thought = self.nodes.get(thought_id)
            if thought is None:
                continue
            children = [(b, self.nodes[b.to_id]) for b in self._children_of(thought_id)]
            parents = [(b, self.nodes[b.from_id]) for b in self._parents_of(thought_id)]
            hoods.append(Neighborhood(thought=thought, children=children, parents=parents))
        return hoods

    def fetch_children(self, thought_ids: Sequence[str]):
        edges = []
        for thought_id in thought_ids:
            edges.extend((b, self.nodes[b.to_id]) for b in self._children_of(thought_id))
        return edges

    def list_roots(self, skip, limit):
        roots = sorted(
            (t for t in self.nodes.values() if t.is_root),
            key=lambda t: t.created_at,
            reverse=True,
        )
        return roots[skip:skip + limit], len(roots)

    def ping(self):
        return True


class FakeEmbedder:
    """
    Returns the vector registered for a text, otherwise a fresh one-hot
    vector so unregistered texts are mutually orthogonal. One-hot axes are
    handed out from the last dimension down, away from hand-built vectors.
    """

    def __init__(self, dimensions: int = 16, vectors: Optional[Dict[str, List[float]]] = None):
        self.model_name = "fake-minilm"
        self.dimensions = dimensions
        self.vectors = dict(vectors or {})
        self.calls: List[str] = []
        self._next_axis = 0

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        if text not in self.vectors:
            vector = [0.0] * self.dimensions
            vector[self.dimensions - 1 - self._next_axis % self.dimensions] = 1.0
            self._next_axis += 1
            self.vectors[text] = vector
        return list(self.vectors[text])


class StubModerator:
    def __init__(self, verdict: Optional[ModerationVerdict] = None):
        self.verdict = verdict or ModerationVerdict(valid=True, reason="genuine question")
        self.calls: List[str] = []

    async def moderate(self, text: str) -> ModerationVerdict:
        self.calls.append(text)
        return self.verdict


class StubScorer:
    def __init__(self, assessment: Optional[StrengthAssessment] = None):
        self.assessment = assessment or StrengthAssessment(score=62, analysis="follows reasonably")
        self.calls: List[Tuple[str, str]] = []

    async def score(self, parent_text: str, child_text: str) -> StrengthAssessment:
        self.calls.append((parent_text, child_text))
        return self.assessment


def unit(*components: float, dimensions: int = 16) -> List[float]:
    """Vector padded with zeros to ``dimensions``."""
    return list(components) + [0.0] * (dimensions - len(components))


# Neo4j driver stand-ins


class FakeRecord:
    def __init__(self, values: Dict):
        self._values = values

    def __getitem__(self, key):
        return self._values[key]

    def data(self):
        return dict(self._values)


class FakeResult:
    def __init__(self, rows: List[Dict]):
        self._records = [FakeRecord(row) for row in rows]

    def single(self):
        return self._records[0] if self._records else None

    def __iter__(self):
        return iter(self._records)

    def consume(self):
        return None


class FakeTransaction:
    def __init__(self, driver: "FakeDriver"):
        self.driver = driver

    def run(self, query, parameters=None):
        self.driver.queries.append((query, parameters or {}))
        rows = self.driver.responses.pop(0) if self.driver.responses else []
        return FakeResult(rows)


class FakeSession:
    def __init__(self, driver: "FakeDriver"):
        self.driver = driver

    def __enter__(self):
        if self.driver.error is not None:
            raise self.driver.error
        return self

    def __exit__(self, *exc):
        self.driver.closed_sessions += 1
        return False

    def execute_read(self, work):
        return work(FakeTransaction(self.driver))

    def execute_write(self, work):
        self.driver.write_transactions += 1
        return work(FakeTransaction(self.driver))

    def run(self, query, parameters=None):
        return FakeTransaction(self.driver).run(query, parameters)


class FakeDriver:
    """Replays scripted result rows, one list of rows per ``tx.run`` call."""

    def __init__(self, responses: Optional[List[List[Dict]]] = None, error: Optional[Exception] = None):
        self.responses = list(responses or [])
        self.error = error
        self.queries: List[Tuple[str, Dict]] = []
        self.databases: List[Optional[str]] = []
        self.write_transactions = 0
        self.closed_sessions = 0

    def session(self, database=None):
        self.databases.append(database)
        return FakeSession(self)


# Classifier collaborators


class DummyRouter:
    def __init__(self, provider_name: str, runtime: str = "ollama", task_type: str = "moderation"):
        from lines_of_thought.services.llm.policies import LLMPolicy
        from lines_of_thought.services.llm.provider_registry import LLMProvider
        from lines_of_thought.services.llm.router import ProviderSelection

        provider = LLMProvider(
            name=provider_name,
            runtime=runtime,
            model="qwen2.5:7b",
            cost_per_1k_tokens=0.0,
            preferred_tasks=[task_type],
        )
        policy = LLMPolicy(
            task_type=task_type,
            primary_provider=provider_name,
            fallback_providers=[],
            timeout_ms=10_000,
            max_tokens=200,
        )
        self.task_type = task_type
        self.selection = ProviderSelection(
            provider=provider,
            policy=policy,
            attempted_providers={provider_name: "selected"},
        )

    def select(self, task_type: str):  # pragma: no cover - simple stub
        assert task_type == self.task_type
        return self.selection


class DummyOllamaManager:
    def __init__(self, response: str = "", success: bool = True, error: str = "timeout"):
        self.response = response
        self.success = success
        self.error = error
        self.calls = []

    async def generate_text(self, model_name: str, prompt: str, **kwargs):  # pragma: no cover
        self.calls.append((model_name, prompt, kwargs))
        if not self.success:
            return {"success": False, "error": self.error, "model": model_name}
        return {"success": True, "response": self.response, "model": model_name}


class DummyTelemetry:
    def __init__(self):
        self.success_records = []
        self.failure_records = []

    def record_success(self, provider: str, latency_ms: float, cost: float = 0.0):  # pragma: no cover
        self.success_records.append((provider, latency_ms, cost))

    def record_failure(self, provider: str, latency_ms: float, error: str, cost: float = 0.0):  # pragma: no cover
        self.failure_records.append((provider, latency_ms, error, cost))
