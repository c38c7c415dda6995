"""
Per-session event loops for the Streamlit front end.

Streamlit runs each browser session's script on its own thread, so
sessions cannot share one loop. Each session keeps its own loop in its
session state, next to the controller whose HTTP client is bound to it.
"""

import asyncio
from typing import Any, Awaitable, MutableMapping, TypeVar


LOOP_KEY = "event_loop"

T = TypeVar("T")


def session_event_loop(store: MutableMapping[str, Any]) -> asyncio.AbstractEventLoop:
    """Get the loop kept in `store`, creating it on first use."""
    loop = store.get(LOOP_KEY)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        store[LOOP_KEY] = loop
    return loop


def run_in_session(store: MutableMapping[str, Any], coro: Awaitable[T]) -> T:
    """Run a coroutine to completion on the session's own loop."""
    return session_event_loop(store).run_until_complete(coro)
