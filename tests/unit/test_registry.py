"""
Tests for ResourceRegistry: named handles and best-effort teardown.
"""

import logging

import pytest

from condi.core.exceptions import DatabaseNotRegisteredError, InvalidResourceNameError
from condi.core.registry import ResourceRegistry, close_handle
from tests.conftest import FakeEngine, RecordingHandle


@pytest.fixture
def registry():
    return ResourceRegistry()


def test_default_database_alias(registry):
    handle = RecordingHandle()
    registry.set_default_database(handle)

    assert registry.get_database("default") is handle
    assert registry.get_default_database() is handle


def test_custom_default_name():
    registry = ResourceRegistry(default_name="primary")
    handle = RecordingHandle()
    registry.set_default_database(handle)

    assert registry.get_database("primary") is handle


def test_missing_database_raises(registry):
    with pytest.raises(DatabaseNotRegisteredError) as exc_info:
        registry.get_database("analytics")

    assert str(exc_info.value) == "Database connection with name analytics not exists"
    assert exc_info.value.to_dict()["error"]["code"] == "DATABASE_NOT_REGISTERED"


def test_replacing_a_handle_does_not_close_it(registry):
    old, new = RecordingHandle("old"), RecordingHandle("new")
    registry.set_database("reports", old).set_database("reports", new)

    assert registry.get_database("reports") is new
    assert old.close_calls == 0


def test_set_databases_replaces_all(registry):
    registry.set_database("stale", RecordingHandle())
    a, b = RecordingHandle("a"), RecordingHandle("b")
    registry.set_databases({"a": a, "b": b})

    assert registry.database_names() == ["a", "b"]
    assert set(map(id, registry.get_databases())) == {id(a), id(b)}
    assert registry.has_database("stale") is False


@pytest.mark.parametrize("name", ["", None])
def test_invalid_names_rejected(registry, name):
    with pytest.raises(InvalidResourceNameError):
        registry.set_database(name, RecordingHandle())

    with pytest.raises(InvalidResourceNameError):
        registry.set_databases({name: RecordingHandle()})


def test_remove_database(registry):
    handle = RecordingHandle()
    registry.set_database("tmp", handle)

    assert registry.remove_database("tmp") is handle
    assert registry.remove_database("tmp") is None


def test_close_all_continues_past_failures(registry, caplog):
    first = RecordingHandle("first", fail=True)
    second = RecordingHandle("second")
    third = RecordingHandle("third")
    registry.set_databases({"first": first, "second": second, "third": third})

    with caplog.at_level(logging.ERROR):
        results = registry.close_all()

    assert [h.close_calls for h in (first, second, third)] == [1, 1, 1]
    assert isinstance(results["first"], RuntimeError)
    assert results["second"] is None and results["third"] is None
    assert "Error closing database first: cannot close first" in caplog.text


def test_close_all_on_empty_registry(registry):
    assert registry.close_all() == {}


def test_close_handle_prefers_dispose():
    engine = FakeEngine("postgresql://")
    close_handle(engine)

    assert engine.disposed is True


def test_logger_slot(registry):
    custom = logging.getLogger("tests.registry")

    assert registry.has_logger is False
    assert registry.set_logger(custom) is registry
    assert registry.logger is custom
    assert registry.has_logger is True
