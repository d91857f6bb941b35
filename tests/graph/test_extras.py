from __future__ import annotations

from dataclasses import dataclass

import pytest

from wfload.graph import NO_EXTRA, NodeExtra, NodeExtraRegistry, NoExtra
from wfload.graph.extras import as_registry


@dataclass(frozen=True, slots=True)
class FormExtra(NodeExtra):
    node_id: int

    @classmethod
    def load(cls, session, node_id: int) -> "FormExtra":
        return cls(node_id=node_id)


def test_unregistered_type_resolves_to_no_extra():
    registry = NodeExtraRegistry()

    assert registry.resolve(object(), "anything", 1) is NO_EXTRA


def test_no_extra_instances_compare_equal():
    assert NoExtra() == NO_EXTRA
    assert NoExtra.load(None, 5) is NO_EXTRA


def test_register_and_resolve():
    registry = NodeExtraRegistry()
    session = object()
    seen = []

    def loader(sess, node_id):
        seen.append((sess, node_id))
        return FormExtra(node_id)

    registry.register("form", loader)

    assert "form" in registry
    assert len(registry) == 1
    assert list(registry) == ["form"]
    assert registry.get_loader("form") is loader
    assert registry.resolve(session, "form", 42) == FormExtra(42)
    assert seen == [(session, 42)]


def test_register_extra_decorator():
    registry = NodeExtraRegistry()

    @registry.register_extra("form")
    class DecoratedForm(FormExtra):
        pass

    assert DecoratedForm.__name__ == "DecoratedForm"
    assert registry.resolve(None, "form", 3) == DecoratedForm(3)


def test_register_extra_rejects_non_extra_classes():
    registry = NodeExtraRegistry()

    with pytest.raises(TypeError):
        registry.register_extra("form")(dict)  # type: ignore[arg-type]


def test_base_extra_has_no_loader():
    with pytest.raises(NotImplementedError):
        NodeExtra.load(None, 1)


def test_duplicate_registration():
    registry = NodeExtraRegistry({"form": FormExtra.load})

    with pytest.raises(ValueError):
        registry.register("form", FormExtra.load)

    def other(sess, node_id):
        return NO_EXTRA

    registry.register("form", other, replace=True)
    assert registry.get_loader("form") is other


@pytest.mark.parametrize("node_type, loader", [("", FormExtra.load), ("form", "not callable")])
def test_invalid_registration(node_type, loader):
    with pytest.raises((ValueError, TypeError)):
        NodeExtraRegistry().register(node_type, loader)  # type: ignore[arg-type]


def test_unregister():
    registry = NodeExtraRegistry({"form": FormExtra.load})
    registry.unregister("form")

    assert "form" not in registry
    assert registry.resolve(None, "form", 1) is NO_EXTRA


def test_loader_errors_propagate():
    def broken(sess, node_id):
        raise LookupError(f"no form row for node {node_id}")

    registry = NodeExtraRegistry({"form": broken})

    with pytest.raises(LookupError, match="node 9"):
        registry.resolve(None, "form", 9)


def test_as_registry():
    registry = NodeExtraRegistry()
    assert as_registry(registry) is registry

    empty = as_registry(None)
    assert isinstance(empty, NodeExtraRegistry)
    assert len(empty) == 0

    from_mapping = as_registry({"form": FormExtra.load})
    assert "form" in from_mapping
