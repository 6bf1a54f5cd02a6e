"""URL router matching HTTP methods and path patterns to handlers.

Patterns are split on ``/``. A segment starting with ``:`` captures one URL
segment as a parameter, and a segment starting with ``*`` matches the rest
of the URL. Handlers receive the router and return a true value when they
handled the request, or a false value to let routing continue.
"""

from __future__ import annotations

import bisect
from collections.abc import Callable, Iterable, Sequence
from typing import Any

ANY_METHOD_TOKEN = "*"
HIGH_PRIORITY = 0xD0000000
MEDIUM_PRIORITY = 0xE0000000
LOW_PRIORITY = 0xF0000000
MAX_URL_SEGMENTS = 100

_HANDLER_MASK = 0x0FFFFFFF
_PRIORITY_MASK = 0xF0000000

Handler = Callable[["HttpRouter"], Any]


class _Node:
    __slots__ = ("name", "children", "handlers", "is_high_priority")

    def __init__(self, name: str, is_high_priority: bool = False) -> None:
        self.name = name
        self.children: list[_Node] = []
        self.handlers: list[int] = []
        self.is_high_priority = is_high_priority


def _split_url(url: str) -> list[str]:
    """Split a URL standing on a slash into at most MAX_URL_SEGMENTS segments."""
    segments: list[str] = []
    rest = url
    while rest and len(segments) < MAX_URL_SEGMENTS:
        rest = rest[1:]
        slash = rest.find("/")
        if slash == -1:
            slash = len(rest)
        segments.append(rest[:slash])
        rest = rest[slash:]
    return segments


def _lexical_order(name: str) -> int:
    """Wildcards sort before parameters, which sort before static names."""
    if name.startswith(":"):
        return 1
    if name.startswith("*"):
        return 0
    return 2


def _upper_bound(items: Sequence[_Node], goes_before: Callable[[_Node], bool]) -> int:
    low, high = 0, len(items)
    while low < high:
        middle = (low + high) // 2
        if goes_before(items[middle]):
            high = middle
        else:
            low = middle + 1
    return low


def _method_sort_key(node: _Node) -> tuple[int, str]:
    if node.name == "GET":
        return (0, node.name)
    if node.name == ANY_METHOD_TOKEN:
        return (2, node.name)
    return (1, node.name)


class HttpRouter:
    """A tree of method and URL segment nodes leading to prioritised handlers."""

    ANY_METHOD_TOKEN = ANY_METHOD_TOKEN
    HIGH_PRIORITY = HIGH_PRIORITY
    MEDIUM_PRIORITY = MEDIUM_PRIORITY
    LOW_PRIORITY = LOW_PRIORITY

    def __init__(self, user_data: Any = None) -> None:
        self.user_data = user_data
        self._handlers: list[Handler] = []
        self._root = _Node("rootNode")
        self._segments: list[str] = []
        self._params: list[str] = []
        self._get_node(self._root, ANY_METHOD_TOKEN, False)

    @property
    def parameters(self) -> tuple[str, ...]:
        """The URL parameters captured for the handler being run."""
        return tuple(self._params)

    def _get_node(self, parent: _Node, name: str, is_high_priority: bool) -> _Node:
        for node in parent.children:
            if node.name == name and node.is_high_priority == is_high_priority:
                return node

        new_node = _Node(name, is_high_priority)

        def goes_before(existing: _Node) -> bool:
            if new_node.is_high_priority != existing.is_high_priority:
                return new_node.is_high_priority
            return (
                bool(existing.name)
                and parent is not self._root
                and _lexical_order(existing.name) < _lexical_order(new_node.name)
            )

        parent.children.insert(_upper_bound(parent.children, goes_before), new_node)
        return new_node

    def _run_handlers(self, handler_ids: Iterable[int]) -> bool:
        return any(self._handlers[handler_id & _HANDLER_MASK](self) for handler_id in handler_ids)

    def _execute(self, parent: _Node, index: int) -> bool:
        if index >= len(self._segments):
            return self._run_handlers(parent.handlers)

        segment = self._segments[index]
        for child in parent.children:
            if child.name.startswith("*"):
                if self._run_handlers(child.handlers):
                    return True
            elif child.name.startswith(":") and segment:
                self._params.append(segment)
                if self._execute(child, index + 1):
                    return True
                self._params.pop()
            elif child.name == segment:
                if self._execute(child, index + 1):
                    return True
        return False

    def _find_handler(self, method: str, pattern: str, priority: int) -> int | None:
        want_high = priority == HIGH_PRIORITY
        for method_node in self._root.children:
            if method_node.name != method:
                continue
            node = method_node
            for segment in _split_url(pattern):
                node = next(
                    (
                        child
                        for child in node.children
                        if (
                            (segment.startswith(":") and child.name.startswith(":"))
                            or child.name == segment
                        )
                        and child.is_high_priority == want_high
                    ),
                    None,
                )
                if node is None:
                    return None
            return next(
                (h for h in node.handlers if h & _PRIORITY_MASK == priority),
                None,
            )
        return None

    def _cull(self, parent: _Node | None, node: _Node, handler_id: int) -> bool:
        index = 0
        while index < len(node.children):
            if not self._cull(node, node.children[index], handler_id):
                index += 1

        if parent is None:
            return False

        removed_index = handler_id & _HANDLER_MASK
        kept: list[int] = []
        for h in node.handlers:
            if h & _HANDLER_MASK > removed_index:
                kept.append(((h & _HANDLER_MASK) - 1) | (h & _PRIORITY_MASK))
            elif h != handler_id:
                kept.append(h)
        node.handlers = kept

        if not node.handlers and not node.children:
            for position, child in enumerate(parent.children):
                if child is node:
                    del parent.children[position]
                    break
            return True
        return False

    def route(self, method: str, url: str) -> bool:
        """Run matching handlers until one handles the request; return whether one did."""
        self._segments = _split_url(url)
        self._params = []

        for method_node in self._root.children:
            if method_node.name == method:
                if self._execute(method_node, 0):
                    return True
                break

        if not self._root.children:
            return False
        return self._execute(self._root.children[-1], 0)

    def add(
        self,
        methods: Sequence[str] | str,
        pattern: str,
        handler: Handler,
        priority: int = MEDIUM_PRIORITY,
    ) -> None:
        """Register ``handler`` for ``pattern`` under each of ``methods``.

        A handler already registered for the first method, the same pattern
        and the same priority is removed first.
        """
        if isinstance(methods, str):
            methods = [methods]
        methods = list(methods)
        if not methods:
            raise ValueError("at least one method is required")

        self.remove(methods[0], pattern, priority)

        handler_id = priority | len(self._handlers)
        is_high = priority == HIGH_PRIORITY
        for method in methods:
            node = self._get_node(self._root, method, False)
            for segment in _split_url(pattern):
                if segment.startswith(":"):
                    segment = ":"
                node = self._get_node(node, segment, is_high)
            bisect.insort_right(node.handlers, handler_id)

        self._handlers.append(handler)
        self._root.children.sort(key=_method_sort_key)

    def remove(self, method: str, pattern: str, priority: int = MEDIUM_PRIORITY) -> bool:
        """Remove every route sharing the handler found for these parameters.

        Returns False when no such handler exists.
        """
        handler_id = self._find_handler(method, pattern, priority)
        if handler_id is None:
            return False

        self._cull(None, self._root, handler_id)
        del self._handlers[handler_id & _HANDLER_MASK]
        return True