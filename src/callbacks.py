"""
PoE Data - Callback Registry
Named, synchronous notifications with registration-order dispatch.

Events emitted by the readers:
    update-start                      refresh of a dataset began
    update-status   (sub_type, index) progress inside a wiki table
    update-done                       refresh finished and cache written
    query-wiki-table (table, query)   last chance to adjust a cargo query
    process-wiki-data (table, record) one raw wiki row, before reduction
"""

from typing import Callable, Dict, List


class CallbackRegistry:
    """Observer list keyed by event name."""

    def __init__(self):
        self._callbacks: Dict[str, List[Callable]] = {}

    def register_callback(self, ident: str, callback: Callable) -> None:
        self._callbacks.setdefault(ident, []).append(callback)

    def unregister_callback(self, ident: str, callback: Callable) -> bool:
        """Remove one registration. Returns False if it was not registered."""
        callbacks = self._callbacks.get(ident)
        if not callbacks or callback not in callbacks:
            return False
        callbacks.remove(callback)
        return True

    def has_callbacks(self, ident: str) -> bool:
        return bool(self._callbacks.get(ident))

    def invoke_callback(self, ident: str, *args) -> None:
        """Call every observer of ``ident`` in registration order.

        Iterates over a snapshot so observers may unregister themselves.
        Exceptions raised by an observer propagate to the emitter.
        """
        for callback in list(self._callbacks.get(ident, ())):
            callback(*args)
