from __future__ import annotations

from logging import getLogger
from typing import Callable, Dict, Iterator, Mapping, Optional, TypeAlias, TypeVar, Union

from sqlalchemy.engine import Connection
from sqlalchemy.orm import Session

from .model import NO_EXTRA, NodeExtra

logger = getLogger(__name__)

ExtraLoader: TypeAlias = Callable[[Union[Session, Connection], int], NodeExtra]
ExtraT = TypeVar("ExtraT", bound=type[NodeExtra])


class NodeExtraRegistry:
    """
    Maps a node type to the loader of its auxiliary data.

    A loader is called as ``loader(session, node_id)`` with the node
    *definition* id and returns a NodeExtra. Types without a loader resolve
    to NO_EXTRA; that is not an error. Loader exceptions are not caught.

    Registration happens up front, before a graph is loaded:

        registry = NodeExtraRegistry()
        registry.register("script", load_script)

        @registry.register_extra("task")
        class TaskExtra(NodeExtra):
            @classmethod
            def load(cls, session, node_id): ...
    """

    __slots__ = ("_loaders",)

    def __init__(self, loaders: Optional[Mapping[str, ExtraLoader]] = None) -> None:
        self._loaders: Dict[str, ExtraLoader] = {}
        for node_type, loader in (loaders or {}).items():
            self.register(node_type, loader)

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def register(
        self,
        node_type: str,
        loader: ExtraLoader,
        *,
        replace: bool = False,
    ) -> None:
        if not node_type:
            raise ValueError("node_type must be a non-empty string")
        if not callable(loader):
            raise TypeError(f"Loader for node type {node_type!r} is not callable: {loader!r}")
        if node_type in self._loaders and not replace:
            raise ValueError(f"A loader is already registered for node type {node_type!r}")
        self._loaders[node_type] = loader

    def register_extra(self, node_type: str) -> Callable[[ExtraT], ExtraT]:
        """Class decorator: register ``cls.load`` as the loader for node_type."""

        def decorator(cls: ExtraT) -> ExtraT:
            if not (isinstance(cls, type) and issubclass(cls, NodeExtra)):
                raise TypeError(f"{cls!r} is not a NodeExtra subclass")
            self.register(node_type, cls.load)
            return cls

        return decorator

    def unregister(self, node_type: str) -> None:
        del self._loaders[node_type]

    # ------------------------------------------------------------------ #
    # Dispatch
    # ------------------------------------------------------------------ #
    def get_loader(self, node_type: str) -> Optional[ExtraLoader]:
        return self._loaders.get(node_type)

    def resolve(
        self,
        session: Union[Session, Connection],
        node_type: str,
        node_id: int,
    ) -> NodeExtra:
        loader = self._loaders.get(node_type)
        if loader is None:
            return NO_EXTRA
        logger.debug("Loading extra data for node %s of type %r", node_id, node_type)
        return loader(session, node_id)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #
    def __contains__(self, node_type: object) -> bool:
        return node_type in self._loaders

    def __len__(self) -> int:
        return len(self._loaders)

    def __iter__(self) -> Iterator[str]:
        return iter(self._loaders)

    def __repr__(self) -> str:
        return f"NodeExtraRegistry(types={sorted(self._loaders)!r})"


def as_registry(
    extras: Union[NodeExtraRegistry, Mapping[str, ExtraLoader], None],
) -> NodeExtraRegistry:
    """Accept a registry, a plain type -> loader mapping, or None."""
    if extras is None:
        return NodeExtraRegistry()
    if isinstance(extras, NodeExtraRegistry):
        return extras
    return NodeExtraRegistry(extras)
