from datetime import datetime

import pytest
from neo4j.exceptions import ServiceUnavailable
from neo4j.time import DateTime

from fakes import FakeDriver, unit
from lines_of_thought.services.errors import (
    BranchConflictError,
    ParentNotFoundError,
    StoreError,
    ThoughtNotFoundError,
)
from lines_of_thought.services.graph_store import GraphStore


def thought_row(thought_id, text="Is time real?", is_root=True, embedding=None):
    row = {
        "id": thought_id,
        "text": text,
        "createdAt": DateTime(2025, 10, 1, 12, 0, 0),
        "isRoot": is_root,
    }
    if embedding is not None:
        row["embedding"] = embedding
    return row


def branch_row(branch_id, perspective=None, score=None, analysis=None):
    return {
        "id": branch_id,
        "perspective": perspective,
        "strengthScore": score,
        "strengthAnalysis": analysis,
    }


def test_create_thought_runs_in_write_transaction():
    driver = FakeDriver(responses=[[{"thought": thought_row("4:abc:1")}]])
    store = GraphStore(driver=driver, database="thoughts")

    thought = store.create_thought("Is time real?", unit(1.0), is_root=True)

    assert thought.id == "4:abc:1"
    assert thought.is_root is True
    assert isinstance(thought.created_at, datetime)
    _, params = driver.queries[0]
    assert params["isRoot"] is True
    assert params["embedding"] == unit(1.0)
    assert driver.write_transactions == 1
    assert driver.databases == ["thoughts"]
    assert driver.closed_sessions == 1


def test_create_branch_returns_thought_and_branch():
    driver = FakeDriver(responses=[[{
        "parentId": "4:abc:1",
        "thought": thought_row("4:abc:2", text="It is.", is_root=False),
        "branch": branch_row("5:abc:9", perspective="physics", score=40, analysis="ok"),
    }]])
    store = GraphStore(driver=driver)

    thought, branch = store.create_branch("4:abc:1", "It is.", unit(1.0), "physics", 40, "ok")

    assert thought.is_root is False
    assert (branch.from_id, branch.to_id) == ("4:abc:1", "4:abc:2")
    assert branch.strength_score == 40
    assert branch.type == "BRANCHES_TO"


def test_create_branch_under_missing_parent_raises():
    driver = FakeDriver(responses=[[]])
    store = GraphStore(driver=driver)

    with pytest.raises(ParentNotFoundError):
        store.create_branch("missing", "It is.", unit(1.0))

    assert driver.closed_sessions == 1


@pytest.mark.parametrize("check,error", [
    ({"fromExists": False, "toExists": True, "parentCount": 0, "closesCycle": False}, ThoughtNotFoundError),
    ({"fromExists": True, "toExists": False, "parentCount": 0, "closesCycle": False}, ThoughtNotFoundError),
    ({"fromExists": True, "toExists": True, "parentCount": 1, "closesCycle": False}, BranchConflictError),
    ({"fromExists": True, "toExists": True, "parentCount": 0, "closesCycle": True}, BranchConflictError),
])
def test_link_precheck_rejections_write_nothing(check, error):
    driver = FakeDriver(responses=[[check]])
    store = GraphStore(driver=driver)

    with pytest.raises(error):
        store.link_thoughts("a", "b")

    assert len(driver.queries) == 1
    assert driver.closed_sessions == 1


def test_link_creates_branch_after_precheck():
    check = {"fromExists": True, "toExists": True, "parentCount": 0, "closesCycle": False}
    driver = FakeDriver(responses=[[check], [{"branch": branch_row("5:abc:3", perspective="ethics")}]])

    branch = GraphStore(driver=driver).link_thoughts("a", "b", "ethics")

    assert (branch.from_id, branch.to_id, branch.perspective) == ("a", "b", "ethics")
    assert branch.strength_score is None


def test_deletes_return_counts():
    driver = FakeDriver(responses=[[{"deleted": 1}], [{"deleted": 0}], [{"deleted": 0}]])
    store = GraphStore(driver=driver)

    assert store.delete_thought("a") == 1
    assert store.delete_thought("a") == 0
    assert store.delete_branch("r") == 0


def test_get_thought_missing_is_none():
    assert GraphStore(driver=FakeDriver(responses=[[]])).get_thought("missing") is None


def test_parent_context_includes_child_embeddings():
    driver = FakeDriver(responses=[[{
        "parent": thought_row("p", embedding=unit(1.0)),
        "children": [thought_row("c", is_root=False, embedding=unit(0.0, 1.0))],
    }]])

    context = GraphStore(driver=driver).get_parent_context("p")

    assert context.parent.embedding == unit(1.0)
    assert context.children[0].embedding == unit(0.0, 1.0)


def test_find_similar_roots_ranks_in_python():
    driver = FakeDriver(responses=[[
        {"thought": thought_row("far", embedding=unit(0.0, 1.0))},
        {"thought": thought_row("near", embedding=unit(1.0, 0.1))},
    ]])

    matches = GraphStore(driver=driver).find_similar_roots(unit(1.0), threshold=0.9)

    assert [m.thought.id for m in matches] == ["near"]


def test_neighborhoods_are_assembled_from_projections():
    driver = FakeDriver(responses=[[{
        "thought": thought_row("a", is_root=False),
        "children": [{"branch": branch_row("r2"), "thought": thought_row("c", is_root=False)}],
        "parents": [{"branch": branch_row("r1"), "thought": thought_row("root")}],
    }]])

    [hood] = GraphStore(driver=driver).fetch_neighborhoods(["a", "missing"])

    assert driver.queries[0][1] == {"ids": ["a", "missing"]}
    child_branch, child = hood.children[0]
    assert (child_branch.from_id, child_branch.to_id, child.id) == ("a", "c", "c")
    parent_branch, parent = hood.parents[0]
    assert (parent_branch.from_id, parent_branch.to_id, parent.id) == ("root", "a", "root")


def test_list_roots_reads_total_and_page():
    driver = FakeDriver(responses=[[{"total": 15}], [{"thought": thought_row(f"t{i}")} for i in range(6)]])

    nodes, total = GraphStore(driver=driver).list_roots(skip=9, limit=9)

    assert total == 15
    assert len(nodes) == 6
    assert driver.queries[1][1] == {"skip": 9, "limit": 9}


def test_driver_failures_become_store_errors():
    store = GraphStore(driver=FakeDriver(error=ServiceUnavailable("neo4j down")))

    with pytest.raises(StoreError):
        store.get_thought("a")
    assert store.ping() is False
