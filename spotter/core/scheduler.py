"""
Controller timeline for the recognition engine.

All engine state is mutated from a single logical thread (the controller).
Frame producers, motion sensors and viewers hand work to the controller with
call_soon(); timers fire by enqueuing their callback on the same timeline.

Two implementations:
- ThreadedScheduler: real controller thread + one timer thread for delays
- ManualScheduler: virtual clock driven by advance(), for tests and replays
"""

import heapq
import itertools
import queue
import threading
import time
from collections import deque
from typing import Callable, Optional


class TimerHandle:
    """A scheduled callback that can be cancelled until it fires."""

    def __init__(self, callback: Callable[[], None], deadline: float):
        self.callback = callback
        self.deadline = deadline
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not self.cancelled and not self.fired

    def cancel(self):
        self.cancelled = True


class Scheduler:
    """Interface shared by the schedulers."""

    def now(self) -> float:
        raise NotImplementedError

    def call_soon(self, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        raise NotImplementedError

    def run_in_worker(self, fn: Callable[[], None]):
        raise NotImplementedError

    def _fire(self, handle: TimerHandle):
        # Runs on the controller timeline; a cancel that raced the timer wins
        if not handle.active:
            return
        handle.fired = True
        handle.callback()


class ThreadedScheduler(Scheduler):
    """
    Controller thread draining a task queue.

    Delays are kept in a heap served by one timer thread; a due timer is
    handed to the controller with call_soon().
    """

    _STOP = object()
    COMPACT_SIZE = 256

    def __init__(self, name: str = 'spotter-controller'):
        self.name = name
        self._tasks = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._timer_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

        self._timers = []
        self._seq = itertools.count()
        self._timer_cond = threading.Condition()
        self._stopping = False

    def start(self):
        """Start the controller and timer threads (idempotent)."""
        with self._lock:
            if self._thread is not None and self._thread.is_alive():
                return
            with self._timer_cond:
                self._stopping = False
            self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
            self._timer_thread = threading.Thread(target=self._run_timers, name=f"{self.name}-timers",
                                                  daemon=True)
            self._thread.start()
            self._timer_thread.start()
        print(f"Controller thread started: {self.name}")

    def stop(self, timeout: float = 1.0):
        """Stop the controller thread after the tasks already queued."""
        with self._lock:
            thread, timer_thread = self._thread, self._timer_thread
            self._thread = None
            self._timer_thread = None
        if thread is None:
            return
        with self._timer_cond:
            self._stopping = True
            self._timer_cond.notify()
        self._tasks.put(self._STOP)
        for t in (timer_thread, thread):
            if t is not None and t is not threading.current_thread():
                t.join(timeout=timeout)
        print(f"Controller thread stopped: {self.name}")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def is_controller_thread(self) -> bool:
        return threading.current_thread() is self._thread

    def _run(self):
        while True:
            task = self._tasks.get()
            if task is self._STOP:
                break
            try:
                task()
            except Exception as e:
                print(f"Controller task error: {e}")

    def _run_timers(self):
        with self._timer_cond:
            while not self._stopping:
                now = self.now()
                while self._timers and self._timers[0][0] <= now:
                    _, _, handle = heapq.heappop(self._timers)
                    if handle.active:
                        self.call_soon(lambda h=handle: self._fire(h))
                if self._timers:
                    self._timer_cond.wait(self._timers[0][0] - now)
                else:
                    self._timer_cond.wait()

    def now(self) -> float:
        return time.monotonic()

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._tasks.put(callback)

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, self.now() + max(0.0, delay))
        with self._timer_cond:
            # Cancelled handles otherwise leave the heap only when they come due
            if len(self._timers) >= self.COMPACT_SIZE:
                self._timers = [entry for entry in self._timers if entry[2].active]
                heapq.heapify(self._timers)
            heapq.heappush(self._timers, (handle.deadline, next(self._seq), handle))
            self._timer_cond.notify()
        return handle

    def pending_timers(self) -> int:
        with self._timer_cond:
            return sum(1 for _, _, handle in self._timers if handle.active)

    def run_in_worker(self, fn: Callable[[], None]) -> threading.Thread:
        """Run a blocking call off the controller thread."""
        def run():
            try:
                fn()
            except Exception as e:
                print(f"Worker error: {e}")

        thread = threading.Thread(target=run, name=f"{self.name}-worker", daemon=True)
        thread.start()
        return thread

    def flush(self, timeout: float = 1.0) -> bool:
        """Block until every task queued before this call has run."""
        done = threading.Event()
        self.call_soon(done.set)
        return done.wait(timeout)


class ManualScheduler(Scheduler):
    """
    Deterministic scheduler with a virtual clock.

    call_soon() runs the task immediately (queued behind any task already
    running, so callbacks never re-enter each other). Timers only fire from
    advance()/advance_to(), in deadline order, with now() set to the
    deadline while they run.
    """

    EPSILON = 1e-9

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._timers = []
        self._seq = itertools.count()
        self._ready = deque()
        self._draining = False

    def now(self) -> float:
        return self._now

    def call_soon(self, callback: Callable[[], None]) -> None:
        self._ready.append(callback)
        self._drain()

    def _drain(self):
        if self._draining:
            return
        self._draining = True
        try:
            while self._ready:
                self._ready.popleft()()
        finally:
            self._draining = False

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback, self._now + max(0.0, delay))
        heapq.heappush(self._timers, (handle.deadline, next(self._seq), handle))
        return handle

    def run_in_worker(self, fn: Callable[[], None]):
        fn()

    def advance(self, seconds: float):
        """Move the clock forward, firing every timer that comes due."""
        target = self._now + max(0.0, seconds)
        while self._timers and self._timers[0][0] <= target + self.EPSILON:
            deadline, _, handle = heapq.heappop(self._timers)
            if not handle.active:
                continue
            self._now = max(self._now, deadline)
            self.call_soon(lambda h=handle: self._fire(h))
        self._now = max(self._now, target)

    def advance_to(self, timestamp: float):
        self.advance(timestamp - self._now)

    def pending_timers(self) -> int:
        return sum(1 for _, _, handle in self._timers if handle.active)
