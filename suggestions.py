from __future__ import annotations
import logging
import threading
from typing import Callable, List, Optional

from car_client import CarServiceError

log = logging.getLogger(__name__)

DEBOUNCE_SEC = 0.2
MIN_QUERY_CHARS = 2

class SuggestionDebouncer:
    """
    Autocomplete for the model field. Each keystroke cancels the pending
    lookup and schedules a new one after `delay` seconds of quiet. Every
    scheduled lookup carries a sequence number; results are delivered only if
    no newer lookup has been issued since, whatever order responses arrive in.
    """
    def __init__(
        self,
        search: Callable[[str], List[str]],
        on_results: Callable[[List[str]], None],
        delay: float = DEBOUNCE_SEC,
        min_chars: int = MIN_QUERY_CHARS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ):
        self.search = search
        self.on_results = on_results
        self.delay = delay
        self.min_chars = min_chars
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._issued = 0

    @property
    def latest_seq(self) -> int:
        return self._issued

    def on_input(self, text: str) -> int:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._issued += 1
            seq = self._issued
            timer = self._timer_factory(self.delay, self._fire, args=(seq, text))
            timer.daemon = True
            self._timer = timer
        timer.start()
        return seq

    def cancel(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            # Anything still running is now stale.
            self._issued += 1

    def _fire(self, seq: int, text: str) -> None:
        query = (text or "").strip()
        if len(query) < self.min_chars:
            results: List[str] = []
        else:
            try:
                results = self.search(query)
            except CarServiceError as e:
                log.warning("Suggestion lookup for %r failed: %s", query, e)
                results = []
            except Exception:
                # Runs on a timer thread; nothing upstream would see the error.
                log.exception("Suggestion lookup for %r crashed", query)
                results = []
        with self._lock:
            if seq != self._issued:
                log.debug("Dropping stale suggestions seq=%d (latest %d)", seq, self._issued)
                return
        self.on_results(results)
