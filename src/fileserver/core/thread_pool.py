"""
=============================================================================
WORKER POOL
=============================================================================

A bounded pool of worker threads that handle accepted connections, so the
accept loop never waits on a slow client.

=============================================================================
DISPATCH AND CONTINUE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   Accept loop                 Task queue              Workers        │
    │   ───────────                 ──────────              ───────        │
    │                                                                      │
    │   accept() ──► submit(conn) ──► [conn][conn][ ][ ] ──► Worker-0     │
    │      ▲              │                                  Worker-1     │
    │      │              │ returns immediately              Worker-2     │
    │      └──────────────┘                                  Worker-3     │
    │                                                                      │
    │   Queue full? submit() returns False and the caller answers 503.    │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Workers start at ``min_workers`` and grow one at a time, up to
``max_workers``, while every existing worker is busy and tasks are queued.

Shutdown uses the poison-pill pattern: one ``None`` per worker is put on
the queue, and a worker that dequeues ``None`` exits.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states."""
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: ``func(*args, **kwargs)``."""
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """
    Pulls tasks off the shared queue until it receives a poison pill.

    A task that raises is logged and counted; the worker keeps going.
    """

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int,
                 idle_timeout: float = 1.0):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._stop_event = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug("Worker %d started", self.worker_id)

        while not self._stop_event.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                # Poison pill
                if task is None:
                    break
                self._execute(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug("Worker %d stopped", self.worker_id)

    def _execute(self, task: Task):
        self.state = WorkerState.BUSY
        started = time.monotonic()
        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                "Worker %d completed task in %.3fs (queued %.3fs)",
                self.worker_id,
                time.monotonic() - started,
                started - task.submitted_at,
            )
        except Exception:
            self.tasks_failed += 1
            logger.exception("Worker %d task failed", self.worker_id)
        finally:
            self.state = WorkerState.IDLE

    def stop(self):
        """Ask the worker to exit after its current task."""
        self._stop_event.set()


class ThreadPool:
    """
    Bounded thread pool for connection handling.

        pool = ThreadPool(min_workers=4, max_workers=16, queue_size=100)
        pool.start()

        if not pool.submit(handle, args=(conn,)):
            reject(conn)                     # saturated

        pool.shutdown(wait=True)
    """

    def __init__(self, min_workers: int = 4, max_workers: int = 16,
                 queue_size: int = 100, idle_timeout: float = 1.0):
        """
        Args:
            min_workers: Workers created by start() and kept for the pool's life.
            max_workers: Upper bound on workers under load.
            queue_size: Pending tasks allowed before submit() refuses work.
            idle_timeout: How often an idle worker re-checks for shutdown.
        """
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutting_down = False
        self._next_worker_id = 0

    def start(self):
        """Start ``min_workers`` workers. Calling it twice is a no-op."""
        if self._started:
            return

        logger.info("Starting thread pool with %d workers", self.min_workers)
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True
        self._shutting_down = False

    def _add_worker(self) -> Worker:
        # Caller holds self._lock
        worker = Worker(self._task_queue, self._next_worker_id, self.idle_timeout)
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(self, func: Callable[..., Any], args: tuple = (),
               kwargs: Optional[dict] = None, block: bool = False,
               queue_timeout: Optional[float] = None) -> bool:
        """
        Queue ``func(*args, **kwargs)`` for a worker.

        Args:
            func: The callable to run.
            args: Positional arguments.
            kwargs: Keyword arguments.
            block: Wait for queue space instead of refusing immediately.
            queue_timeout: Upper bound on that wait.

        Returns:
            True if queued, False if the queue was full.

        Raises:
            RuntimeError: If the pool is not running.
        """
        if not self._started or self._shutting_down:
            raise RuntimeError("Thread pool is not running")

        task = Task(func=func, args=args, kwargs=kwargs or {})
        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add one worker if all are busy and work is waiting."""
        with self._lock:
            if len(self._workers) >= self.max_workers:
                return
            if self.busy_workers < len(self._workers):
                return
            if self._task_queue.qsize() == 0:
                return
            logger.debug("Scaling up: %d -> %d workers",
                         len(self._workers), len(self._workers) + 1)
            self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop all workers.

        Args:
            wait: Let queued tasks finish before stopping.
            timeout: Upper bound on that wait, in seconds.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutting_down = True

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.monotonic() > deadline:
                    logger.warning("Thread pool shutdown timed out, abandoning queued tasks")
                    break
                time.sleep(0.05)

        with self._lock:
            workers = list(self._workers)
            self._workers.clear()

        for _ in workers:
            try:
                self._task_queue.put_nowait(None)
            except queue.Full:
                break

        for worker in workers:
            worker.stop()
            worker.join(timeout=2.0)

        self._started = False
        logger.info("Thread pool shutdown complete")

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def worker_count(self) -> int:
        return len(self._workers)

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def queue_size(self) -> int:
        """Tasks waiting for a worker."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self._task_queue.qsize(),
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
