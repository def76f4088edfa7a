"""
Push based streams used to bind screens to live queries

A `Flow` is cold: every subscriber starts its own producer. A `StateFlow` is
hot: it always holds a value, hands it to new collectors straight away, and
shares one upstream subscription between all of its collectors.

`Flow.state_in` turns a cold flow into a state flow. With `WhileSubscribed`
the upstream runs only while somebody is collecting; once the last collector
leaves it is kept alive for a grace period so that a screen which detaches and
quickly re-attaches does not query again.
"""

import logging
import threading

logger = logging.getLogger(__name__)


class Subscription:
    """
    Handle returned by `subscribe`. Cancelling it stops delivery.
    """
    def __init__(self):
        self._lock = threading.Lock()
        self._on_cancel = None
        self.cancelled = False

    def set_on_cancel(self, on_cancel):
        # Subscription may already be gone by the time the producer is running
        with self._lock:
            if not self.cancelled:
                self._on_cancel = on_cancel
                return
        if on_cancel is not None:
            on_cancel()

    def cancel(self):
        with self._lock:
            if self.cancelled:
                return
            self.cancelled = True
            on_cancel = self._on_cancel
            self._on_cancel = None
        if on_cancel is not None:
            on_cancel()


class Flow:
    """
    A cold stream of values

    Args:
        on_subscribe (callable): Called with an `emit` function for every new
            subscriber. Returns a callable that stops the producer, or None.
    """
    def __init__(self, on_subscribe):
        self._on_subscribe = on_subscribe

    def subscribe(self, collector):
        """
        Start collecting values

        Args:
            collector (callable): Called with every emitted value

        Returns:
            Subscription: Cancel it to stop receiving values
        """
        subscription = Subscription()

        def emit(value):
            if not subscription.cancelled:
                collector(value)

        stop = self._on_subscribe(emit)
        subscription.set_on_cancel(stop)
        return subscription

    def map(self, transform):
        def on_subscribe(emit):
            return self.subscribe(lambda value: emit(transform(value))).cancel
        return Flow(on_subscribe)

    def filter_not_null(self):
        def on_subscribe(emit):
            def collect(value):
                if value is not None:
                    emit(value)
            return self.subscribe(collect).cancel
        return Flow(on_subscribe)

    def first(self, timeout=None):
        """
        Block until the flow emits once and return that value

        Args:
            timeout (float | None): Seconds to wait, forever when None

        Raises:
            TimeoutError: Nothing was emitted in time
        """
        lock = threading.Lock()
        received = []
        done = threading.Event()

        def collect(value):
            with lock:
                if not received:
                    received.append(value)
                    done.set()

        subscription = self.subscribe(collect)
        try:
            if not done.wait(timeout):
                raise TimeoutError(f'Flow did not emit within {timeout} seconds')
        finally:
            subscription.cancel()
        return received[0]

    def state_in(self, scope, started, initial_value):
        """
        Share this flow as a `StateFlow` owned by `scope`

        Args:
            scope (ViewModelScope): Schedules the stop timer. Cancelling the
                scope stops the upstream for good.
            started (WhileSubscribed): When the upstream runs
            initial_value: Value held until the upstream emits
        """
        return StateFlow(initial_value, upstream=self, scope=scope, started=started)


class WhileSubscribed:
    """
    Run the upstream while there are collectors

    Args:
        stop_timeout_millis (int): Delay between the last collector leaving
            and the upstream being cancelled
    """
    def __init__(self, stop_timeout_millis=0):
        if stop_timeout_millis < 0:
            raise ValueError(f'stop_timeout_millis cannot be negative, was {stop_timeout_millis}')
        self.stop_timeout_millis = stop_timeout_millis

    def __repr__(self):
        return f'WhileSubscribed(stop_timeout_millis={self.stop_timeout_millis})'


class StateFlow:
    """
    A stream that always has a current value

    Equal consecutive values are dropped, so collectors only see changes.
    Collectors are called while the flow's lock is held and should return
    quickly. The upstream is started and stopped outside that lock.
    """
    def __init__(self, initial_value, upstream=None, scope=None, started=None):
        self._lock = threading.RLock()
        self._value = initial_value
        self._collectors = []
        self._upstream = upstream
        self._scope = scope
        self._started = started if started is not None else WhileSubscribed()
        self._upstream_subscription = None
        self._stop_handle = None
        self._stop_token = None
        self._closed = False
        if upstream is not None and scope is None:
            raise ValueError('A shared StateFlow needs a scope')
        if scope is not None:
            scope.on_cancel(self._close)

    @property
    def value(self):
        with self._lock:
            return self._value

    @property
    def subscription_count(self):
        with self._lock:
            return len(self._collectors)

    @property
    def is_active(self):
        """True while the upstream subscription is running"""
        with self._lock:
            return self._upstream_subscription is not None

    def subscribe(self, collector):
        """
        Collect the current value and every later change

        Args:
            collector (callable): Called with the current value right away

        Returns:
            Subscription: Cancel it to detach this collector
        """
        subscription = Subscription()
        entry = (subscription, collector)
        with self._lock:
            self._collectors.append(entry)
            self._deliver(collector, self._value)
            starting = self._claim_upstream()
        # Upstream producers may take their own locks and then emit into this
        # flow, so they are never started while this flow's lock is held.
        if starting is not None:
            self._start_upstream(starting)
        subscription.set_on_cancel(lambda: self._remove(entry))
        return subscription

    def _emit(self, value):
        with self._lock:
            if self._closed or value == self._value:
                return
            self._value = value
            for _, collector in list(self._collectors):
                self._deliver(collector, value)

    def _deliver(self, collector, value):
        try:
            collector(value)
        except Exception:
            logger.exception('State collector %r failed', collector)

    def _claim_upstream(self):
        # Called with the lock held. Returns a start marker when the caller
        # has to start the upstream.
        if self._closed or self._upstream is None:
            return None
        if self._stop_handle is not None:
            self._stop_handle.cancel()
            self._stop_handle = None
            self._stop_token = None
        if self._upstream_subscription is not None:
            return None
        starting = _Starting()
        self._upstream_subscription = starting
        return starting

    def _start_upstream(self, starting):
        logger.debug('Starting upstream subscription for %r', self)
        subscription = self._upstream.subscribe(self._emit)
        with self._lock:
            if self._upstream_subscription is starting:
                self._upstream_subscription = subscription
                return
        # Stopped or closed while starting
        subscription.cancel()

    def _remove(self, entry):
        with self._lock:
            if entry in self._collectors:
                self._collectors.remove(entry)
            if self._collectors or self._upstream_subscription is None:
                return
            delay = self._started.stop_timeout_millis / 1000
            if delay > 0:
                token = object()
                self._stop_token = token
                self._stop_handle = self._scope.call_later(delay, lambda: self._stop_upstream(token))
                return
        self._stop_upstream()

    def _stop_upstream(self, token=None):
        with self._lock:
            if token is not None:
                # A timer that was already running when it got cancelled
                if token is not self._stop_token:
                    return
                self._stop_handle = None
                self._stop_token = None
            if self._collectors or self._upstream_subscription is None:
                return
            subscription = self._upstream_subscription
            self._upstream_subscription = None
        logger.debug('Stopping upstream subscription for %r', self)
        if not isinstance(subscription, _Starting):
            subscription.cancel()

    def _close(self):
        with self._lock:
            self._closed = True
            if self._stop_handle is not None:
                self._stop_handle.cancel()
                self._stop_handle = None
            self._stop_token = None
            subscription = self._upstream_subscription
            self._upstream_subscription = None
        if subscription is not None and not isinstance(subscription, _Starting):
            subscription.cancel()


class _Starting:
    """Placeholder for an upstream subscription that is being set up"""


class MutableStateFlow(StateFlow):
    """A `StateFlow` whose value is set directly"""
    def __init__(self, initial_value):
        super().__init__(initial_value)

    @StateFlow.value.setter
    def value(self, value):
        self._emit(value)
