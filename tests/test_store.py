"""
Tests for the store layer.

Tests cover:
- Ownership scoping (fail closed without a user)
- Child-table access through the parent key
- In-memory filter semantics
- Supabase filter translation
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from nourish.db.adapter import where
from nourish.db.client import SupabaseStore, apply_filter
from nourish.db.memory import MemoryStore
from nourish.errors import OwnershipError
from nourish.ledgers.normalize import contains_pattern

from conftest import ALICE, BOB


def run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


class TestOwnershipScoping:
    """User-owned tables always carry the caller's user_id."""

    def test_find_without_user_fails_closed(self, store):
        with pytest.raises(OwnershipError):
            run(store.find("pantry_items"))

    def test_insert_without_user_fails_closed(self, store):
        with pytest.raises(OwnershipError):
            run(store.insert("meal_logs", {"name": "toast", "calories": 90}))

    def test_update_and_delete_without_user_fail_closed(self, store):
        with pytest.raises(OwnershipError):
            run(store.update("weight_logs", [where("id", "=", "x")], {"weight": 1}))
        with pytest.raises(OwnershipError):
            run(store.delete("weight_logs", [where("id", "=", "x")]))

    def test_insert_stamps_owner(self, store):
        rows = run(store.insert("pantry_items", {"name": "rice"}, user_id=ALICE))
        assert rows[0]["user_id"] == ALICE
        assert rows[0]["id"]
        assert rows[0]["created_at"]

    def test_other_users_rows_are_invisible(self, store):
        row = run(store.insert("pantry_items", {"name": "rice"}, user_id=ALICE))[0]

        assert run(store.find("pantry_items", [where("id", "=", row["id"])], user_id=BOB)) == []
        assert run(store.update("pantry_items", [where("id", "=", row["id"])], {"name": "x"}, user_id=BOB)) == []
        assert run(store.delete("pantry_items", [where("id", "=", row["id"])], user_id=BOB)) == []
        assert run(store.find("pantry_items", user_id=ALICE))[0]["name"] == "rice"

    def test_patch_cannot_reassign_owner(self, store):
        row = run(store.insert("pantry_items", {"name": "rice"}, user_id=ALICE))[0]
        run(store.update("pantry_items", [where("id", "=", row["id"])], {"user_id": BOB}, user_id=ALICE))

        assert run(store.find("pantry_items", user_id=ALICE))[0]["user_id"] == ALICE
        assert run(store.find("pantry_items", user_id=BOB)) == []

    def test_child_table_requires_parent_key(self, store):
        with pytest.raises(OwnershipError):
            run(store.find("shopping_list_items"))
        with pytest.raises(OwnershipError):
            run(store.insert("shopping_list_items", {"name": "milk"}))

        rows = run(store.insert("shopping_list_items", {"name": "milk", "list_id": "L1"}))
        found = run(store.find("shopping_list_items", [where("list_id", "=", "L1")]))
        assert [r["id"] for r in found] == [rows[0]["id"]]

    def test_unscoped_table_still_refuses_blanket_mutation(self, store):
        with pytest.raises(ValueError):
            run(store.delete("users", []))


class TestMemoryFilters:
    """In-memory evaluation of filter clauses."""

    def test_ilike_contains_is_case_insensitive(self, store):
        run(store.insert("pantry_items", [{"name": "Greek Yogurt"}, {"name": "milk"}], user_id=ALICE))
        rows = run(store.find("pantry_items", [where("name", "ilike", contains_pattern("yog"))], user_id=ALICE))
        assert [r["name"] for r in rows] == ["Greek Yogurt"]

    def test_ilike_treats_wildcards_in_term_literally(self, store):
        run(store.insert("pantry_items", [{"name": "100% juice"}, {"name": "1000 island"}], user_id=ALICE))
        rows = run(store.find("pantry_items", [where("name", "ilike", contains_pattern("100%"))], user_id=ALICE))
        assert [r["name"] for r in rows] == ["100% juice"]

    def test_order_and_limit(self, store):
        run(store.insert(
            "weight_logs",
            [{"weight": 180, "date": "2026-01-02"}, {"weight": 181, "date": "2026-01-03"}, {"weight": 182, "date": "2026-01-01"}],
            user_id=ALICE,
        ))
        rows = run(store.find("weight_logs", user_id=ALICE, order_by="date", descending=True, limit=2))
        assert [r["date"] for r in rows] == ["2026-01-03", "2026-01-02"]

    def test_in_and_range_filters(self, store):
        run(store.insert(
            "meal_logs",
            [
                {"name": "a", "calories": 1, "meal_date": "2026-01-01"},
                {"name": "b", "calories": 2, "meal_date": "2026-01-05"},
                {"name": "c", "calories": 3, "meal_date": "2026-01-09"},
            ],
            user_id=ALICE,
        ))
        ranged = run(store.find(
            "meal_logs",
            [where("meal_date", ">=", "2026-01-02"), where("meal_date", "<=", "2026-01-09")],
            user_id=ALICE,
        ))
        assert sorted(r["name"] for r in ranged) == ["b", "c"]

        picked = run(store.find("meal_logs", [where("name", "in", ["a", "c"])], user_id=ALICE))
        assert sorted(r["name"] for r in picked) == ["a", "c"]

    def test_find_returns_copies(self, store):
        run(store.insert("pantry_items", {"name": "rice"}, user_id=ALICE))
        run(store.find("pantry_items", user_id=ALICE))[0]["name"] = "mutated"
        assert run(store.find("pantry_items", user_id=ALICE))[0]["name"] == "rice"


class TestSupabaseStore:
    """Query building against a mocked Supabase client."""

    def test_apply_filter_maps_operators(self):
        query = MagicMock()
        apply_filter(query, where("name", "ilike", "%rice%"))
        query.ilike.assert_called_once_with("name", "%rice%")

        query = MagicMock()
        apply_filter(query, where("id", "in", ("a", "b")))
        query.in_.assert_called_once_with("id", ["a", "b"])

        query = MagicMock()
        apply_filter(query, where("image", "is_null", False))
        query.not_.is_.assert_called_once_with("image", "null")

    def test_find_adds_owner_filter(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value = MagicMock(data=[{"id": "p1", "name": "rice"}])

        rows = run(SupabaseStore(client=mock_supabase).find("pantry_items", user_id=ALICE, limit=5))

        assert rows == [{"id": "p1", "name": "rice"}]
        mock_supabase.table.assert_called_with("pantry_items")
        table.eq.assert_any_call("user_id", ALICE)
        table.limit.assert_called_once_with(5)

    def test_insert_stamps_owner(self, mock_supabase):
        table = mock_supabase.table.return_value
        table.execute.return_value = MagicMock(data=[{"id": "m1"}])

        run(SupabaseStore(client=mock_supabase).insert("meal_logs", {"name": "toast"}, user_id=ALICE))

        table.insert.assert_called_once_with([{"name": "toast", "user_id": ALICE}])

    def test_update_without_user_never_reaches_client(self, mock_supabase):
        with pytest.raises(OwnershipError):
            run(SupabaseStore(client=mock_supabase).update("pantry_items", [where("id", "=", "p1")], {"name": "x"}))
        mock_supabase.table.assert_not_called()


@pytest.fixture
def mock_supabase():
    """Mock Supabase client whose query builder chains back to itself."""
    client = MagicMock()
    table = MagicMock()
    for method in ("select", "insert", "update", "delete", "eq", "gt", "lt", "gte", "lte", "in_", "ilike", "order", "limit"):
        getattr(table, method).return_value = table
    table.execute.return_value = MagicMock(data=[])
    client.table.return_value = table
    return client


def test_memory_store_is_a_store():
    from nourish.db.adapter import Store

    assert isinstance(MemoryStore(), Store)
    assert isinstance(SupabaseStore(client=MagicMock()), Store)
