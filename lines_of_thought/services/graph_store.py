"""
Thought Graph Store - Neo4j persistence for thoughts and branches

Owns the persistence model (Thought nodes, BRANCHES_TO edges) and executes
the atomic create, delete and read queries used by the quality gate and the
retrieval and ranking engines.

Every query runs inside a session opened by ``_session()``, which releases
the session on every exit path and translates driver failures into
``StoreError``. Not-found outcomes are empty results, never errors.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union
import logging

from neo4j import Driver, ManagedTransaction, Session
from neo4j.exceptions import DriverError, Neo4jError

from lines_of_thought.config.neo4j_config import get_neo4j_driver
from lines_of_thought.config.settings import settings
from lines_of_thought.models.thought import Branch, SimilarityMatch, Thought
from lines_of_thought.services.errors import (
    BranchConflictError,
    ParentNotFoundError,
    StoreError,
    ThoughtNotFoundError,
)
from lines_of_thought.services.similarity import rank_by_similarity

logger = logging.getLogger(__name__)


@dataclass
class ParentContext:
    """A parent thought and its existing children, both with embeddings."""

    parent: Thought
    children: List[Thought] = field(default_factory=list)


@dataclass
class Neighborhood:
    """A seed thought with its direct children and direct parents."""

    thought: Thought
    children: List[Tuple[Branch, Thought]] = field(default_factory=list)
    parents: List[Tuple[Branch, Thought]] = field(default_factory=list)


class GraphStoreBase(ABC):
    """
    Store primitives used by the thought pipeline.

    Similarity lookups are implemented here on top of the primitives so every
    backend ranks candidates the same way.
    """

    @abstractmethod
    def create_thought(self, text: str, embedding: List[float], is_root: bool = True) -> Thought:
        """Persist a thought without a parent."""

    @abstractmethod
    def create_branch(
        self,
        parent_id: str,
        text: str,
        embedding: List[float],
        perspective: Optional[str] = None,
        strength_score: Optional[int] = None,
        strength_analysis: Optional[str] = None,
    ) -> Tuple[Thought, Branch]:
        """Persist a child thought and its incoming branch as one unit."""

    @abstractmethod
    def link_thoughts(self, from_id: str, to_id: str, perspective: Optional[str] = None) -> Branch:
        """Create a standalone branch between two existing thoughts."""

    @abstractmethod
    def delete_thought(self, thought_id: str) -> int:
        """Detach-delete a thought; returns the number of nodes removed."""

    @abstractmethod
    def delete_branch(self, branch_id: str) -> int:
        """Delete a single branch; returns the number of edges removed."""

    @abstractmethod
    def get_thought(self, thought_id: str) -> Optional[Thought]:
        """Fetch one thought or None."""

    @abstractmethod
    def get_parent_context(self, parent_id: str) -> Optional[ParentContext]:
        """Fetch a parent with its embedding and its children's embeddings."""

    @abstractmethod
    def root_embeddings(self) -> List[Thought]:
        """All root thoughts that carry an embedding."""

    @abstractmethod
    def fetch_neighborhoods(self, thought_ids: Sequence[str]) -> List[Neighborhood]:
        """Neighborhoods for every resolvable id, in one round trip."""

    @abstractmethod
    def fetch_children(self, thought_ids: Sequence[str]) -> List[Tuple[Branch, Thought]]:
        """Outgoing branches and child thoughts of the given thoughts."""

    @abstractmethod
    def list_roots(self, skip: int, limit: int) -> Tuple[List[Thought], int]:
        """One page of root thoughts, newest first, plus the total root count."""

    @abstractmethod
    def ping(self) -> bool:
        """True when the backend answers."""

    def find_similar_roots(
        self,
        embedding: List[float],
        threshold: Optional[float] = None,
    ) -> List[SimilarityMatch]:
        """Root thoughts ranked by cosine similarity to ``embedding``."""
        return rank_by_similarity(embedding, self.root_embeddings(), threshold)

    def find_similar_among(
        self,
        siblings: Union[str, Sequence[Thought]],
        embedding: List[float],
        threshold: Optional[float] = None,
    ) -> List[SimilarityMatch]:
        """
        Rank a sibling set against ``embedding``.

        ``siblings`` is either an already-fetched list of thoughts or a parent
        id whose children are loaded first. An unknown parent id yields no
        matches.
        """
        if isinstance(siblings, str):
            context = self.get_parent_context(siblings)
            candidates: Sequence[Thought] = context.children if context else []
        else:
            candidates = siblings
        return rank_by_similarity(embedding, candidates, threshold)


def _to_datetime(value: Any) -> datetime:
    """Convert neo4j temporal values to native datetimes."""
    if hasattr(value, "to_native"):
        return value.to_native()
    return value


def thought_from_map(data: Dict[str, Any]) -> Thought:
    """Build a Thought from a Cypher map projection."""
    embedding = data.get("embedding")
    return Thought(
        id=data["id"],
        text=data["text"],
        created_at=_to_datetime(data["createdAt"]),
        is_root=bool(data.get("isRoot")),
        embedding=list(embedding) if embedding is not None else None,
    )


def branch_from_map(data: Dict[str, Any], from_id: str, to_id: str) -> Branch:
    """Build a Branch from a Cypher map projection."""
    score = data.get("strengthScore")
    return Branch(
        id=data["id"],
        from_id=from_id,
        to_id=to_id,
        perspective=data.get("perspective"),
        strength_score=int(score) if score is not None else None,
        strength_analysis=data.get("strengthAnalysis"),
    )


THOUGHT_FIELDS = ".text, .createdAt, .isRoot, id: elementId({var})"
THOUGHT_FIELDS_WITH_EMBEDDING = ".text, .createdAt, .isRoot, .embedding, id: elementId({var})"
BRANCH_FIELDS = ".perspective, .strengthScore, .strengthAnalysis, id: elementId({var})"


def _thought(var: str, with_embedding: bool = False) -> str:
    fields = THOUGHT_FIELDS_WITH_EMBEDDING if with_embedding else THOUGHT_FIELDS
    return f"{var}{{{fields.format(var=var)}}}"


def _branch(var: str) -> str:
    return f"{var}{{{BRANCH_FIELDS.format(var=var)}}}"


CREATE_THOUGHT = f"""
CREATE (n:Thought {{text: $text, embedding: $embedding, createdAt: datetime(), isRoot: $isRoot}})
RETURN {_thought('n')} AS thought
"""

CREATE_BRANCH = f"""
MATCH (p:Thought) WHERE elementId(p) = $parentId
CREATE (c:Thought {{text: $text, embedding: $embedding, createdAt: datetime(), isRoot: false}})
CREATE (p)-[r:BRANCHES_TO {{
    perspective: $perspective,
    strengthScore: $strengthScore,
    strengthAnalysis: $strengthAnalysis,
    createdAt: datetime()
}}]->(c)
RETURN elementId(p) AS parentId, {_thought('c')} AS thought, {_branch('r')} AS branch
"""

LINK_PRECHECK = """
OPTIONAL MATCH (f:Thought) WHERE elementId(f) = $fromId
OPTIONAL MATCH (t:Thought) WHERE elementId(t) = $toId
RETURN f IS NOT NULL AS fromExists,
       t IS NOT NULL AS toExists,
       CASE WHEN t IS NULL THEN 0 ELSE COUNT { (:Thought)-[:BRANCHES_TO]->(t) } END AS parentCount,
       CASE WHEN f IS NULL OR t IS NULL THEN false
            ELSE EXISTS { (t)-[:BRANCHES_TO*0..]->(f) } END AS closesCycle
"""

LINK_CREATE = f"""
MATCH (f:Thought) WHERE elementId(f) = $fromId
MATCH (t:Thought) WHERE elementId(t) = $toId
CREATE (f)-[r:BRANCHES_TO {{perspective: $perspective, createdAt: datetime()}}]->(t)
RETURN {_branch('r')} AS branch
"""

DELETE_THOUGHT = """
MATCH (n:Thought) WHERE elementId(n) = $id
DETACH DELETE n
RETURN count(n) AS deleted
"""

DELETE_BRANCH = """
MATCH (:Thought)-[r:BRANCHES_TO]->(:Thought) WHERE elementId(r) = $id
DELETE r
RETURN count(r) AS deleted
"""

GET_THOUGHT = f"""
MATCH (n:Thought) WHERE elementId(n) = $id
RETURN {_thought('n')} AS thought
"""

PARENT_CONTEXT = f"""
MATCH (p:Thought) WHERE elementId(p) = $parentId
RETURN {_thought('p', with_embedding=True)} AS parent,
       [(p)-[:BRANCHES_TO]->(c:Thought) | {_thought('c', with_embedding=True)}] AS children
"""

ROOT_EMBEDDINGS = f"""
MATCH (n:Thought) WHERE n.isRoot = true AND n.embedding IS NOT NULL
RETURN {_thought('n', with_embedding=True)} AS thought
"""

NEIGHBORHOODS = f"""
UNWIND $ids AS seedId
MATCH (n:Thought) WHERE elementId(n) = seedId
RETURN {_thought('n')} AS thought,
       [(n)-[r:BRANCHES_TO]->(c:Thought) | {{branch: {_branch('r')}, thought: {_thought('c')}}}] AS children,
       [(p:Thought)-[r:BRANCHES_TO]->(n) | {{branch: {_branch('r')}, thought: {_thought('p')}}}] AS parents
"""

CHILDREN = f"""
UNWIND $ids AS parentId
MATCH (p:Thought)-[r:BRANCHES_TO]->(c:Thought) WHERE elementId(p) = parentId
RETURN parentId, {_branch('r')} AS branch, {_thought('c')} AS thought
"""

COUNT_ROOTS = """
MATCH (n:Thought) WHERE n.isRoot = true
RETURN count(n) AS total
"""

LIST_ROOTS = f"""
MATCH (n:Thought) WHERE n.isRoot = true
RETURN {_thought('n')} AS thought
ORDER BY n.createdAt DESC
SKIP $skip LIMIT $limit
"""


class GraphStore(GraphStoreBase):
    """Neo4j-backed thought graph store."""

    def __init__(self, driver: Optional[Driver] = None, database: Optional[str] = None):
        """Initialize with Neo4j driver."""
        self._driver = driver
        self._driver_initialized = driver is not None
        self.database = database or settings.NEO4J_DATABASE

    @property
    def driver(self) -> Driver:
        """Lazy-load Neo4j driver."""
        if not self._driver_initialized:
            try:
                self._driver = get_neo4j_driver()
                self._driver_initialized = True
            except (Neo4jError, DriverError) as e:
                logger.error(f"Failed to get Neo4j driver: {e}")
                raise StoreError("graph store unavailable") from e
        return self._driver

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.driver.session(database=self.database) as session:
                yield session
        except (Neo4jError, DriverError) as e:
            logger.error(f"Neo4j operation failed: {e}", exc_info=True)
            raise StoreError("graph store operation failed") from e

    # Writes

    def create_thought(self, text: str, embedding: List[float], is_root: bool = True) -> Thought:
        def work(tx: ManagedTransaction) -> Dict[str, Any]:
            record = tx.run(CREATE_THOUGHT, {"text": text, "embedding": embedding, "isRoot": is_root}).single()
            return record["thought"]

        with self._session() as session:
            data = session.execute_write(work)

        thought = thought_from_map(data)
        logger.info(f"Created thought {thought.id} (root={is_root})")
        return thought

    def create_branch(
        self,
        parent_id: str,
        text: str,
        embedding: List[float],
        perspective: Optional[str] = None,
        strength_score: Optional[int] = None,
        strength_analysis: Optional[str] = None,
    ) -> Tuple[Thought, Branch]:
        params = {
            "parentId": parent_id,
            "text": text,
            "embedding": embedding,
            "perspective": perspective,
            "strengthScore": strength_score,
            "strengthAnalysis": strength_analysis,
        }

        def work(tx: ManagedTransaction) -> Optional[Dict[str, Any]]:
            record = tx.run(CREATE_BRANCH, params).single()
            return record.data() if record is not None else None

        with self._session() as session:
            data = session.execute_write(work)

        if data is None:
            raise ParentNotFoundError(f"Parent thought {parent_id} not found")

        thought = thought_from_map(data["thought"])
        branch = branch_from_map(data["branch"], from_id=data["parentId"], to_id=thought.id)
        logger.info(f"Created thought {thought.id} under {parent_id} via branch {branch.id}")
        return thought, branch

    def link_thoughts(self, from_id: str, to_id: str, perspective: Optional[str] = None) -> Branch:
        params = {"fromId": from_id, "toId": to_id, "perspective": perspective}

        def work(tx: ManagedTransaction) -> Dict[str, Any]:
            check = tx.run(LINK_PRECHECK, params).single()
            if not check["fromExists"]:
                raise ThoughtNotFoundError(f"Thought {from_id} not found")
            if not check["toExists"]:
                raise ThoughtNotFoundError(f"Thought {to_id} not found")
            if check["parentCount"] > 0:
                raise BranchConflictError(f"Thought {to_id} already has a parent")
            if check["closesCycle"]:
                raise BranchConflictError(f"Linking {from_id} to {to_id} would create a cycle")
            return tx.run(LINK_CREATE, params).single()["branch"]

        with self._session() as session:
            data = session.execute_write(work)

        return branch_from_map(data, from_id=from_id, to_id=to_id)

    def delete_thought(self, thought_id: str) -> int:
        def work(tx: ManagedTransaction) -> int:
            return tx.run(DELETE_THOUGHT, {"id": thought_id}).single()["deleted"]

        with self._session() as session:
            deleted = session.execute_write(work)

        logger.info(f"Deleted {deleted} thought(s) for id {thought_id}")
        return deleted

    def delete_branch(self, branch_id: str) -> int:
        def work(tx: ManagedTransaction) -> int:
            return tx.run(DELETE_BRANCH, {"id": branch_id}).single()["deleted"]

        with self._session() as session:
            deleted = session.execute_write(work)

        logger.info(f"Deleted {deleted} branch(es) for id {branch_id}")
        return deleted

    # Reads

    def get_thought(self, thought_id: str) -> Optional[Thought]:
        def work(tx: ManagedTransaction) -> Optional[Dict[str, Any]]:
            record = tx.run(GET_THOUGHT, {"id": thought_id}).single()
            return record["thought"] if record is not None else None

        with self._session() as session:
            data = session.execute_read(work)
        return thought_from_map(data) if data is not None else None

    def get_parent_context(self, parent_id: str) -> Optional[ParentContext]:
        def work(tx: ManagedTransaction) -> Optional[Dict[str, Any]]:
            record = tx.run(PARENT_CONTEXT, {"parentId": parent_id}).single()
            return record.data() if record is not None else None

        with self._session() as session:
            data = session.execute_read(work)

        if data is None:
            return None
        return ParentContext(
            parent=thought_from_map(data["parent"]),
            children=[thought_from_map(child) for child in data["children"]],
        )

    def root_embeddings(self) -> List[Thought]:
        def work(tx: ManagedTransaction) -> List[Dict[str, Any]]:
            return [record["thought"] for record in tx.run(ROOT_EMBEDDINGS)]

        with self._session() as session:
            rows = session.execute_read(work)
        return [thought_from_map(row) for row in rows]

    def fetch_neighborhoods(self, thought_ids: Sequence[str]) -> List[Neighborhood]:
        if not thought_ids:
            return []

        def work(tx: ManagedTransaction) -> List[Dict[str, Any]]:
            return [record.data() for record in tx.run(NEIGHBORHOODS, {"ids": list(thought_ids)})]

        with self._session() as session:
            rows = session.execute_read(work)

        neighborhoods = []
        for row in rows:
            thought = thought_from_map(row["thought"])
            children = []
            for entry in row["children"]:
                child = thought_from_map(entry["thought"])
                children.append((branch_from_map(entry["branch"], thought.id, child.id), child))
            parents = []
            for entry in row["parents"]:
                parent = thought_from_map(entry["thought"])
                parents.append((branch_from_map(entry["branch"], parent.id, thought.id), parent))
            neighborhoods.append(Neighborhood(thought=thought, children=children, parents=parents))
        return neighborhoods

    def fetch_children(self, thought_ids: Sequence[str]) -> List[Tuple[Branch, Thought]]:
        if not thought_ids:
            return []

        def work(tx: ManagedTransaction) -> List[Dict[str, Any]]:
            return [record.data() for record in tx.run(CHILDREN, {"ids": list(thought_ids)})]

        with self._session() as session:
            rows = session.execute_read(work)

        edges = []
        for row in rows:
            child = thought_from_map(row["thought"])
            edges.append((branch_from_map(row["branch"], row["parentId"], child.id), child))
        return edges

    def list_roots(self, skip: int, limit: int) -> Tuple[List[Thought], int]:
        def work(tx: ManagedTransaction) -> Tuple[List[Dict[str, Any]], int]:
            total = tx.run(COUNT_ROOTS).single()["total"]
            rows = [record["thought"] for record in tx.run(LIST_ROOTS, {"skip": skip, "limit": limit})]
            return rows, total

        with self._session() as session:
            rows, total = session.execute_read(work)
        return [thought_from_map(row) for row in rows], total

    def ping(self) -> bool:
        try:
            with self._session() as session:
                session.run("RETURN 1").consume()
            return True
        except StoreError:
            return False
