"""Change tokens and the reload loop that consumes them.

Purpose
-------
Support ``reload_on_change``: a provider asks its file provider for a
:class:`ChangeToken`, and :func:`on_change` polls that token on a daemon thread,
calling the provider's reload once the token flips and then re-arming with a
fresh token.

Contents
--------
* :class:`PollingChangeToken` – compares a fingerprint of the watched files.
* :data:`NEVER_CHANGES` – token for sources that cannot change.
* :class:`ChangeRegistration` – handle returned by :func:`on_change`.
* :func:`on_change` – start the polling loop.
"""

from __future__ import annotations

import threading
from typing import Callable, Hashable

from ...application.ports import ChangeToken
from ...observability import log_debug, make_event

__all__ = ["ChangeToken", "PollingChangeToken", "NEVER_CHANGES", "ChangeRegistration", "on_change"]


class PollingChangeToken:
    """Flip to changed once *fingerprint* returns something different from its first value.

    Examples
    --------
    >>> state = {"mtime": 1}
    >>> token = PollingChangeToken(lambda: state["mtime"], interval=0.1)
    >>> token.has_changed
    False
    >>> state["mtime"] = 2
    >>> token.has_changed
    True
    """

    def __init__(self, fingerprint: Callable[[], Hashable], *, interval: float) -> None:
        self._fingerprint = fingerprint
        self._initial = fingerprint()
        self._changed = False
        self.interval: float | None = interval

    @property
    def has_changed(self) -> bool:
        if not self._changed and self._fingerprint() != self._initial:
            self._changed = True
        return self._changed


class _NeverChangeToken:
    interval: float | None = None

    @property
    def has_changed(self) -> bool:
        return False


NEVER_CHANGES = _NeverChangeToken()


class ChangeRegistration:
    """Handle for a running :func:`on_change` loop; :meth:`close` stops it."""

    def __init__(self, thread: threading.Thread | None, stopped: threading.Event) -> None:
        self._thread = thread
        self._stopped = stopped

    @property
    def active(self) -> bool:
        return self._thread is not None and self._thread.is_alive() and not self._stopped.is_set()

    def close(self) -> None:
        self._stopped.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()


def on_change(
    token_producer: Callable[[], ChangeToken],
    consumer: Callable[[], None],
    *,
    delay: float = 0.0,
) -> ChangeRegistration:
    """Call *consumer* every time a token from *token_producer* reports a change.

    The first token is requested immediately. Tokens without a polling
    ``interval`` never change, so no thread is started for them. After a change
    the loop waits *delay* seconds, invokes *consumer*, then asks for a new token.
    """

    stopped = threading.Event()
    token = token_producer()
    interval = getattr(token, "interval", None)
    if interval is None:
        return ChangeRegistration(None, stopped)

    def _loop() -> None:
        current = token
        while not stopped.wait(getattr(current, "interval", None) or interval):
            if not current.has_changed:
                continue
            log_debug("change_detected", **make_event("watch", None, {"delay": delay}))
            if delay and stopped.wait(delay):
                return
            consumer()
            current = token_producer()

    thread = threading.Thread(target=_loop, name="lib_wildcard_config-watch", daemon=True)
    thread.start()
    log_debug("change_watch_started", **make_event("watch", None, {"interval": interval}))
    return ChangeRegistration(thread, stopped)
