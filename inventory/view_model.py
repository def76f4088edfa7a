"""
Screen state holders

A view-model lives as long as the screen it serves. Work it starts runs on its
`ViewModelScope` and is cancelled together when the view-model is cleared.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor

from .exceptions import MissingArgumentError

logger = logging.getLogger(__name__)


class SavedStateHandle:
    """
    Key-value arguments a screen was opened with

    Args:
        state (dict | None): Initial arguments, e.g. the ids from the route
    """
    def __init__(self, state=None):
        self._state = dict(state or {})

    def __contains__(self, key):
        return key in self._state

    def __getitem__(self, key):
        return self._state[key]

    def __setitem__(self, key, value):
        self._state[key] = value

    def get(self, key, default=None):
        return self._state.get(key, default)

    def require(self, key):
        """
        Get an argument the screen cannot work without

        Raises:
            MissingArgumentError: `key` is absent or None
        """
        value = self._state.get(key)
        if value is None:
            raise MissingArgumentError(key)
        return value


class ViewModelScope:
    """
    Runs a view-model's background work

    Tasks run one at a time in launch order on a single worker thread. Timers
    run on their own daemon threads. `cancel` stops everything at once.
    """
    def __init__(self, name='view-model'):
        self._name = name
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._timers = set()
        self._cancel_callbacks = []
        self.is_active = True

    def launch(self, fn, *args, **kwargs):
        """
        Run `fn` in the background without waiting for it

        Returns:
            Future: Completes with the task's result. Failures are logged and
                kept on the future. Already cancelled when the scope is.
        """
        with self._lock:
            if not self.is_active:
                future = Future()
                future.cancel()
                return future
            future = self._executor.submit(fn, *args, **kwargs)
        future.add_done_callback(self._log_failure)
        return future

    def call_later(self, delay, fn):
        """
        Call `fn` after `delay` seconds unless cancelled first

        Returns:
            threading.Timer: Use its `cancel` method to drop the call
        """
        def run():
            with self._lock:
                self._timers.discard(timer)
            fn()

        timer = threading.Timer(delay, run)
        timer.daemon = True
        with self._lock:
            if not self.is_active:
                return timer
            self._timers.add(timer)
        timer.start()
        return timer

    def on_cancel(self, callback):
        with self._lock:
            if self.is_active:
                self._cancel_callbacks.append(callback)
                return
        callback()

    def cancel(self):
        with self._lock:
            if not self.is_active:
                return
            self.is_active = False
            timers = list(self._timers)
            self._timers.clear()
            callbacks = self._cancel_callbacks
            self._cancel_callbacks = []
        for timer in timers:
            timer.cancel()
        for callback in callbacks:
            callback()
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.debug('Scope %s cancelled', self._name)

    def _log_failure(self, future):
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error('Task in scope %s failed', self._name, exc_info=error)


class ViewModel:
    """
    Base class for screen state holders

    Can be used as a context manager; leaving the block clears it.
    """
    def __init__(self, scope=None):
        self.view_model_scope = scope if scope is not None else ViewModelScope(type(self).__name__)

    def on_cleared(self):
        pass

    def clear(self):
        self.on_cleared()
        self.view_model_scope.cancel()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.clear()
