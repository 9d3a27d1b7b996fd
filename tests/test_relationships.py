# ============================================================================
# RELATIONSHIP EDGE TESTS
# ============================================================================
# STATUS: Tests - fk-derived edges and dangling references
# PURPOSE: Verify edge derivation, schema defaulting and diagnostics
# CREATED: 19 OCT 2026
# ============================================================================
"""
Relationship Edge Tests

Run with:
    pytest tests/test_relationships.py -v
"""

import pytest

from schemasync.contracts import RelationshipType
from schemasync.schema import parse_sql
from schemasync.services.relationship_service import (
    derive_edges,
    edge_id,
    find_dangling_references,
    prune_edge_relationships,
)


@pytest.fixture
def model():
    return parse_sql("""
        CREATE TABLE app.users (id int PRIMARY KEY, org_id int);
        CREATE TABLE app.orgs (id int PRIMARY KEY);
        CREATE TABLE app.posts (
            id int PRIMARY KEY,
            author_id int REFERENCES users(id),
            ghost_id int REFERENCES app.ghosts(id),
            x int, y int,
            FOREIGN KEY (x, y) REFERENCES app.pairs (a, b)
        );
        ALTER TABLE app.users ADD FOREIGN KEY (org_id) REFERENCES app.orgs (id);
    """)


class TestDeriveEdges:

    def test_edges_from_column_fks(self, model):
        edges = derive_edges(model.tables)
        assert [(e.source, e.source_column, e.target, e.target_column) for e in edges] == [
            ("app.users", "org_id", "app.orgs", "id"),
            ("app.posts", "author_id", "app.users", "id"),
        ]

    def test_unqualified_fk_uses_source_schema(self, model):
        edge = next(e for e in derive_edges(model.tables) if e.source_column == "author_id")
        assert edge.target == "app.users"
        assert edge.id == "posts.author_id-app.users.id"
        assert (edge.source_index, edge.target_index) == (1, 0)

    def test_multi_column_fk_has_no_edge(self, model):
        edges = derive_edges(model.tables)
        assert not any(e.source_column in ("x", "y") for e in edges)

    def test_default_and_override_relationship(self, model):
        override = edge_id("posts", "author_id", "app.users", "id")
        edges = derive_edges(model.tables, {override: RelationshipType.ONE_TO_ONE})
        types = {e.id: e.relationship_type for e in edges}
        assert types[override] == RelationshipType.ONE_TO_ONE
        assert types["users.org_id-app.orgs.id"] == RelationshipType.ONE_TO_MANY

    def test_serializes_with_aliases(self, model):
        data = derive_edges(model.tables)[0].model_dump(mode="json", by_alias=True)
        assert data["sourceColumn"] == "org_id"
        assert data["relationshipType"] == "one-to-many"


class TestDanglingReferences:

    def test_reports_without_repairing(self, model):
        dangling = find_dangling_references(model.tables)
        reasons = {(d.table_key, d.column): d.reason for d in dangling}

        assert reasons[("app.posts", "ghost_id")] == "table app.ghosts not found"
        assert reasons[("app.posts", None)] == "table app.pairs not found"
        assert model.tables["app.posts"].find_column("ghost_id").fk == "app.ghosts.id"

    def test_missing_column(self):
        model = parse_sql("""
            CREATE TABLE a (id int);
            CREATE TABLE b (a_id int REFERENCES a(nope));
        """)
        [dangling] = find_dangling_references(model.tables)
        assert dangling.reason == "column nope not found in a"


class TestPruneEdgeRelationships:

    def test_stale_overrides_dropped(self, model):
        edges = derive_edges(model.tables)
        live = edges[0].id
        pruned = prune_edge_relationships(
            {live: RelationshipType.ONE_TO_ONE, "gone.x-y.z": RelationshipType.MANY_TO_MANY},
            edges,
        )
        assert pruned == {live: RelationshipType.ONE_TO_ONE}
