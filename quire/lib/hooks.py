"""Async hook/filter registry for ordering lifecycle events.

Actions run after a user-driven mutation has been committed (a pin was
created, a star was reordered, ...). Filters let extensions reshape the JSON
payloads the API returns.

Backfill and rebalance are housekeeping writes and never fire hooks.

Usage:
    from quire.lib.hooks import action, filter, hooks, AFTER_PIN_CREATE

    @action(AFTER_PIN_CREATE, priority=10)
    async def warm_home_cache(pin):
        ...

    @filter(PRESENT_PIN, priority=10)
    def add_title(payload, pin):
        payload["title"] = pin.document.title
        return payload

    await hooks.do_action(AFTER_PIN_CREATE, pin)
    payload = await hooks.apply_filters(PRESENT_PIN, payload, pin)
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from quire.lib.observability import span

T = TypeVar("T")


@dataclass(order=True)
class HookHandler:
    """A registered callback and its priority (lower runs first)."""

    priority: int
    callback: Callable = field(compare=False)

    async def call(self, *args: Any, **kwargs: Any) -> Any:
        result = self.callback(*args, **kwargs)
        if asyncio.iscoroutine(result):
            return await result
        return result


class HookRegistry:
    """Central registry for actions and filters."""

    def __init__(self) -> None:
        self._actions: dict[str, list[HookHandler]] = defaultdict(list)
        self._filters: dict[str, list[HookHandler]] = defaultdict(list)

    @staticmethod
    def _register(table: dict[str, list[HookHandler]], name: str, callback: Callable, priority: int) -> None:
        table[name].append(HookHandler(priority=priority, callback=callback))
        table[name].sort()

    @staticmethod
    def _unregister(table: dict[str, list[HookHandler]], name: str, callback: Callable) -> bool:
        handlers = table.get(name, [])
        for i, handler in enumerate(handlers):
            if handler.callback is callback:
                handlers.pop(i)
                return True
        return False

    def add_action(self, hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
        self._register(self._actions, hook_name, callback, priority)

    def add_filter(self, hook_name: str, callback: Callable[..., T], priority: int = 10) -> None:
        self._register(self._filters, hook_name, callback, priority)

    def remove_action(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        """Remove an action callback. Returns True if it was registered."""
        return self._unregister(self._actions, hook_name, callback)

    def remove_filter(self, hook_name: str, callback: Callable[..., Any]) -> bool:
        """Remove a filter callback. Returns True if it was registered."""
        return self._unregister(self._filters, hook_name, callback)

    def has_action(self, hook_name: str) -> bool:
        return bool(self._actions.get(hook_name))

    def has_filter(self, hook_name: str) -> bool:
        return bool(self._filters.get(hook_name))

    async def do_action(self, hook_name: str, *args: Any, **kwargs: Any) -> None:
        """Run every action registered for ``hook_name`` in priority order."""
        with span(f"hook.action:{hook_name}", hook_name=hook_name):
            for handler in list(self._actions.get(hook_name, [])):
                await handler.call(*args, **kwargs)

    async def apply_filters(self, hook_name: str, value: T, *args: Any, **kwargs: Any) -> T:
        """Pass ``value`` through every filter registered for ``hook_name``."""
        with span(f"hook.filter:{hook_name}", hook_name=hook_name):
            for handler in list(self._filters.get(hook_name, [])):
                value = await handler.call(value, *args, **kwargs)
            return value

    def clear(self) -> None:
        """Clear all registered hooks. Useful for testing."""
        self._actions.clear()
        self._filters.clear()


# Global singleton registry
hooks = HookRegistry()


def add_action(hook_name: str, callback: Callable[..., Any], priority: int = 10) -> None:
    hooks.add_action(hook_name, callback, priority)


def add_filter(hook_name: str, callback: Callable[..., T], priority: int = 10) -> None:
    hooks.add_filter(hook_name, callback, priority)


async def do_action(hook_name: str, *args: Any, **kwargs: Any) -> None:
    await hooks.do_action(hook_name, *args, **kwargs)


async def apply_filters(hook_name: str, value: T, *args: Any, **kwargs: Any) -> T:
    return await hooks.apply_filters(hook_name, value, *args, **kwargs)


def action(hook_name: str, priority: int = 10) -> Callable[[Callable], Callable]:
    """Decorator registering a function as an action handler on import."""

    def decorator(func: Callable) -> Callable:
        hooks.add_action(hook_name, func, priority)
        return func

    return decorator


def filter(hook_name: str, priority: int = 10) -> Callable[[Callable], Callable]:
    """Decorator registering a function as a filter handler on import."""

    def decorator(func: Callable) -> Callable:
        hooks.add_filter(hook_name, func, priority)
        return func

    return decorator


# Actions
AFTER_PIN_CREATE = "after_pin_create"
AFTER_PIN_UPDATE = "after_pin_update"
AFTER_PIN_DELETE = "after_pin_delete"
AFTER_STAR_CREATE = "after_star_create"
AFTER_STAR_UPDATE = "after_star_update"
AFTER_STAR_DELETE = "after_star_delete"
AFTER_COLLECTION_CREATE = "after_collection_create"
AFTER_COLLECTION_MOVE = "after_collection_move"
AFTER_MEMBERSHIP_CREATE = "after_membership_create"
AFTER_MEMBERSHIP_UPDATE = "after_membership_update"

# Filters
PRESENT_PIN = "present_pin"
PRESENT_STAR = "present_star"
PRESENT_COLLECTION = "present_collection"
PRESENT_MEMBERSHIP = "present_membership"
