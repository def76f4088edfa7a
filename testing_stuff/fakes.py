"""
Test doubles shared by the unit tests
"""

from concurrent.futures import Future


class ManualTimer:
    def __init__(self, when, fn):
        self.when = when
        self.fn = fn
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScope:
    """
    Scope that runs launched work inline and only fires timers when the test
    advances its clock
    """
    def __init__(self):
        self.now = 0.0
        self.is_active = True
        self._timers = []
        self._cancel_callbacks = []

    def launch(self, fn, *args, **kwargs):
        future = Future()
        if not self.is_active:
            future.cancel()
            return future
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as error:
            future.set_exception(error)
        return future

    def call_later(self, delay, fn):
        timer = ManualTimer(self.now + delay, fn)
        self._timers.append(timer)
        return timer

    def on_cancel(self, callback):
        if self.is_active:
            self._cancel_callbacks.append(callback)
        else:
            callback()

    def cancel(self):
        self.is_active = False
        for timer in self._timers:
            timer.cancel()
        for callback in self._cancel_callbacks:
            callback()
        self._cancel_callbacks = []

    def pending_timers(self):
        return [timer for timer in self._timers if not timer.cancelled]

    def advance(self, seconds):
        self.now += seconds
        due = [timer for timer in self.pending_timers() if timer.when <= self.now]
        for timer in due:
            self._timers.remove(timer)
            timer.fn()
