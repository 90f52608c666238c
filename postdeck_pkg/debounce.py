"""
Trailing debounce for search input.

Each call cancels whatever is pending and schedules a fresh run with the
latest arguments, so only the final value of a burst is ever acted on.
"""

import logging
import threading


class Debouncer:
    """Delay-and-coalesce wrapper around a callable."""

    def __init__(self, func, wait, timer_factory=None):
        self.func = func
        self.wait = wait
        self.timer_factory = timer_factory or threading.Timer
        self.logger = logging.getLogger('Debouncer')

        self._lock = threading.Lock()
        self._timer = None
        self._pending = None
        self._generation = 0

    def __call__(self, *args, **kwargs):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = (args, kwargs)
            self._timer = self.timer_factory(self.wait, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    @property
    def pending(self):
        """True while a scheduled call has not run yet."""
        with self._lock:
            return self._pending is not None

    def cancel(self):
        """Drop the pending call, if any."""
        with self._lock:
            self._drop_timer()
            self._pending = None

    def flush(self):
        """Run the pending call right now instead of waiting for the timer."""
        with self._lock:
            self._drop_timer()
            pending, self._pending = self._pending, None
        if pending is None:
            return False
        args, kwargs = pending
        self.func(*args, **kwargs)
        return True

    def _drop_timer(self):
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        # Invalidates a timer that already started firing but lost the lock.
        self._generation += 1

    def _fire(self, generation):
        with self._lock:
            if generation != self._generation or self._pending is None:
                self.logger.debug("Skipping superseded debounced call")
                return
            pending, self._pending = self._pending, None
            self._timer = None
        args, kwargs = pending
        self.func(*args, **kwargs)
