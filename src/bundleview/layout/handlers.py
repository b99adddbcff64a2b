"""Pluggable property handlers.

A property handler computes one derived property of a node or relation.
Handlers are either *relative* (they return a plain number that is only
compared against sibling values to derive a proportional share) or
*absolute* (they return a directly usable value such as a color).

Handler call signatures:
    node handlers: ``compute(node)``
    relation_color: ``compute(relation, u)`` with ``0 <= u <= 1``
    other relation handlers: ``compute(relation)``
"""

import html
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .options import BundleViewOptions


class PropertyKey(Enum):
    """Built-in property handler keys."""

    NODE_LENGTH = "node_length"
    NODE_HEIGHT = "node_height"
    NODE_COLOR = "node_color"
    NODE_TEXT_COLOR = "node_textColor"
    NODE_GRADIENT_COLOR = "node_gradient_color"
    NODE_GRADIENT_TEXT_COLOR = "node_gradient_textColor"
    NODE_VISIBILITY = "node_visibility"
    NODE_TOOLTIP_TEXT = "node_tooltip_text"
    RELATION_COLOR = "relation_color"
    RELATION_GRADIENT_COLOR = "relation_gradient_color"
    RELATION_VISIBILITY = "relation_visibility"

    @classmethod
    def coerce(cls, key: "PropertyKey | str") -> "PropertyKey":
        """Accept either a member or its string key (e.g. ``"node_length"``)."""
        if isinstance(key, cls):
            return key
        try:
            return cls(key)
        except ValueError:
            return cls[key.upper()]


@dataclass(frozen=True)
class PropertyHandler:
    """A handler function tagged as relative or absolute."""

    compute: Callable[..., Any]
    relative: bool = False

    def __call__(self, *args: Any) -> Any:
        return self.compute(*args)


def default_handlers(options: "BundleViewOptions") -> dict[PropertyKey, PropertyHandler]:
    """Build the default handler table for the given options."""

    def node_color(node):
        if node.too_small():
            return options.node_colors["small"]
        if node.is_leaf():
            return options.node_colors["leaf"]
        return options.node_colors["basic"]

    return {
        PropertyKey.NODE_LENGTH: PropertyHandler(lambda node: 1, relative=True),
        PropertyKey.NODE_HEIGHT: PropertyHandler(lambda node: 0, relative=True),
        PropertyKey.NODE_COLOR: PropertyHandler(node_color),
        PropertyKey.NODE_TEXT_COLOR: PropertyHandler(lambda node: options.node_text_color),
        PropertyKey.NODE_GRADIENT_COLOR: PropertyHandler(
            lambda node: options.node_gradient_colors
        ),
        PropertyKey.NODE_GRADIENT_TEXT_COLOR: PropertyHandler(
            lambda node: options.node_gradient_colors
        ),
        PropertyKey.NODE_VISIBILITY: PropertyHandler(lambda node: True),
        PropertyKey.NODE_TOOLTIP_TEXT: PropertyHandler(
            lambda node: html.escape(node.label, quote=False)
        ),
        PropertyKey.RELATION_COLOR: PropertyHandler(lambda relation, u: u, relative=True),
        PropertyKey.RELATION_GRADIENT_COLOR: PropertyHandler(
            lambda relation: options.relation_gradient_colors
        ),
        PropertyKey.RELATION_VISIBILITY: PropertyHandler(lambda relation: True),
    }


class HandlerRegistry(Mapping):
    """Current handler per property key; entries are replaced, never chained."""

    def __init__(self, handlers: Mapping[PropertyKey, PropertyHandler]) -> None:
        self._handlers = dict(handlers)

    def __getitem__(self, key: PropertyKey | str) -> PropertyHandler:
        return self._handlers[PropertyKey.coerce(key)]

    def __iter__(self) -> Iterator[PropertyKey]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def is_relative(self, key: PropertyKey | str) -> bool:
        return self[key].relative

    def replace(
        self, handlers: Mapping[PropertyKey | str, PropertyHandler]
    ) -> list[PropertyKey]:
        """Replace one or more entries at once.

        All keys are validated before any entry is replaced.

        Returns:
            The replaced keys.

        Raises:
            TypeError: If a value is not a PropertyHandler.
        """
        staged: dict[PropertyKey, PropertyHandler] = {}
        for key, handler in handlers.items():
            if not isinstance(handler, PropertyHandler):
                raise TypeError(f"Expected PropertyHandler for {key!r}, got {handler!r}")
            staged[PropertyKey.coerce(key)] = handler
        self._handlers.update(staged)
        return list(staged)
