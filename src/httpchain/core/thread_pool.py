"""
=============================================================================
THREAD POOL
=============================================================================

Worker threads pulling connection tasks from a bounded queue.

    accept loop ──submit()──► [ queue (bounded) ] ──get()──► Worker-0
                                                   ──get()──► Worker-1
                                                   ──get()──► Worker-N

Each task owns its connection, and with it every Request/Response created
on that connection; nothing is shared between workers except the frozen
route table and chains. A full queue makes submit() return False, and the
server answers 503 instead of queueing without bound.

Shutdown uses "poison pills": one None per worker, each worker exits when
it takes one.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field


logger = logging.getLogger(__name__)


@dataclass
class Task:
    """A deferred call, with the time it was queued."""
    func: Callable[..., Any]
    args: tuple = ()
    timeout: Optional[float] = None
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """Runs tasks from the shared queue until it receives a poison pill."""

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.busy = False
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")
        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        self.busy = True
        start_time = time.monotonic()
        try:
            waited = start_time - task.submitted_at
            if task.timeout and waited > task.timeout:
                # The client has most likely given up by now.
                logger.warning(
                    f"Task expired in queue (waited {waited:.2f}s, timeout {task.timeout}s)"
                )
                self.tasks_failed += 1
                return

            task.func(*task.args)
            self.tasks_completed += 1
        except Exception as e:
            logger.exception(f"Worker {self.worker_id} task failed: {e}")
            self.tasks_failed += 1
        finally:
            self.busy = False


class ThreadPool:
    """
    Fixed-size pool of worker threads.

    Usage:
        pool = ThreadPool(min_workers=4, max_workers=16)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown(wait=True)

    The pool starts min_workers threads and adds one more (up to
    max_workers) whenever a task is submitted while every worker is busy.
    """

    def __init__(self, min_workers: int = 4, max_workers: int = 16, queue_size: int = 100):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        if self._started:
            return
        logger.info(f"Starting thread pool with {self.min_workers} workers")
        for _ in range(self.min_workers):
            self._add_worker()
        self._started = True

    def _add_worker(self) -> Worker:
        with self._lock:
            worker = Worker(self._task_queue, worker_id=len(self._workers))
            self._workers.append(worker)
            worker.start()
            return worker

    def submit(self, func: Callable[..., Any], args: tuple = (), timeout: Optional[float] = None) -> bool:
        """
        Queue a task without blocking.

        Returns:
            False if the pool is shut down or the queue is full.
        """
        if self._shutdown:
            return False

        try:
            self._task_queue.put_nowait(Task(func=func, args=args, timeout=timeout))
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        if not self._started or self.busy_workers < len(self._workers):
            return
        if len(self._workers) < self.max_workers:
            logger.debug("All workers busy, adding a worker")
            self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop all workers after the tasks already queued.

        Args:
            wait: Join worker threads.
            timeout: Overall seconds to wait for the joins.
        """
        if self._shutdown:
            return
        self._shutdown = True

        for _ in self._workers:
            self._task_queue.put(None)

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            for worker in self._workers:
                remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
                worker.join(remaining)

        logger.info("Thread pool stopped")

    @property
    def active_workers(self) -> int:
        return sum(1 for w in self._workers if w.is_alive())

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.busy)

    @property
    def stats(self) -> dict:
        return {
            "workers": len(self._workers),
            "busy": self.busy_workers,
            "queued": self._task_queue.qsize(),
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
