"""
Thread Manager for the news consolidator core.

Centralized thread management with dedicated pools for network IO and the
single-worker disk queue used by the image cache.
"""
import itertools
import threading
import time
from concurrent.futures import ThreadPoolExecutor, Future
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from core.logging.logger import get_logger, is_verbose_logging

logger = get_logger(__name__)


class ThreadPoolType(Enum):
    """Thread pool types for news workloads"""
    IO = "io"        # Feed fetches, image downloads
    DISK = "disk"    # Image disk tier: reads, writes, clears, size scans


@dataclass
class TaskResult:
    """Container for task execution results"""
    success: bool
    result: Any = None
    error: Optional[Exception] = None
    execution_time: float = 0.0
    task_id: Optional[str] = None


class Task:
    """Wrapper for executable tasks with metadata"""
    def __init__(self, func: Callable, *args, task_id: str = None, **kwargs):
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self.task_id = task_id or f"task_{id(self)}"
        self.created_at = time.time()
        self.pool_type: Optional[ThreadPoolType] = None
        self.future: Optional[Future] = None


class RecurringTask:
    """Handle for a callable re-run at a fixed interval on a daemon thread.

    The first run happens one interval after start. ``stop()`` is safe to
    call from any thread, including from inside the callable.
    """

    def __init__(self, interval_s: float, func: Callable, *args,
                 description: Optional[str] = None, **kwargs):
        self.interval_s = max(0.01, float(interval_s))
        self._func = func
        self._args = args
        self._kwargs = kwargs
        self.description = description or getattr(func, "__qualname__", None) or "recurring_task"
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            name=f"recurring_{self.description}",
            daemon=True,
        )

    def start(self) -> "RecurringTask":
        self._thread.start()
        return self

    def _run(self) -> None:
        while not self._stop_event.wait(self.interval_s):
            try:
                self._func(*self._args, **self._kwargs)
            except Exception as e:
                logger.exception("[THREADING] Recurring task %s raised: %s", self.description, e)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread.is_alive() and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self._stop_event.is_set()


class ThreadManager:
    """
    Centralized thread manager for the news core.

    Features:
    - Separate IO and DISK thread pools (DISK is always single-worker so
      every disk-tier operation is serialized)
    - Task result wrapping and completion callbacks
    - Per-pool statistics
    - Recurring background tasks
    """
    def __init__(self, config: Optional[Dict[ThreadPoolType, int]] = None):
        """
        Initialize thread manager.

        Args:
            config: Dictionary mapping ThreadPoolType to max_workers count.
                The DISK pool ignores overrides and always runs one worker.
        """
        self._shutdown = False
        self._lock = threading.Lock()
        self._task_counter = itertools.count(1)

        default_config = {
            ThreadPoolType.IO: 4,
            ThreadPoolType.DISK: 1,
        }
        self.config = {**default_config, **(config or {})}
        if self.config[ThreadPoolType.DISK] != 1:
            logger.warning("[THREADING] DISK pool must be single-worker; ignoring %s",
                           self.config[ThreadPoolType.DISK])
            self.config[ThreadPoolType.DISK] = 1

        self._executors: Dict[ThreadPoolType, ThreadPoolExecutor] = {}
        self._active_tasks: Dict[str, Task] = {}
        self._recurring: List[RecurringTask] = []
        self._stats = {pool_type: {'submitted': 0, 'completed': 0, 'failed': 0}
                       for pool_type in ThreadPoolType}

        self._initialize_pools()

        logger.info("ThreadManager initialized with IO=%d, DISK=%d workers",
                    self.config[ThreadPoolType.IO], self.config[ThreadPoolType.DISK])

    def _initialize_pools(self):
        """Initialize thread pools based on configuration."""
        for pool_type, max_workers in self.config.items():
            try:
                executor = ThreadPoolExecutor(
                    max_workers=max_workers,
                    thread_name_prefix=f"{pool_type.value}_pool"
                )
            except Exception as e:
                logger.error("Failed to initialize %s pool: %s", pool_type.value, e)
                self.shutdown()
                raise RuntimeError(f"Failed to initialize {pool_type.value} thread pool") from e
            self._executors[pool_type] = executor
            logger.info("Initialized %s pool with %d workers", pool_type.value, max_workers)

    @property
    def is_shutdown(self) -> bool:
        return self._shutdown

    def submit_task(self, pool_type: ThreadPoolType, func: Callable, *args,
                    task_id: str = None,
                    callback: Callable[[TaskResult], None] = None, **kwargs) -> Future:
        """
        Submit a task to the specified thread pool.

        Args:
            pool_type: Which thread pool to use
            func: Function to execute
            *args: Positional arguments for func
            task_id: Optional unique identifier
            callback: Optional callback for result (runs on the worker thread)
            **kwargs: Keyword arguments for func

        Returns:
            Future resolving to a TaskResult. The future never carries an
            exception; failures are reported through ``TaskResult.error``.
        """
        if self._shutdown:
            raise RuntimeError("Thread manager is shut down")

        task_id = task_id or f"{pool_type.value}_{next(self._task_counter)}"
        task = Task(func, *args, task_id=task_id, **kwargs)
        task.pool_type = pool_type
        executor = self._executors[pool_type]

        def wrapped_func():
            start_time = time.time()
            try:
                result = task.func(*task.args, **task.kwargs)
                task_result = TaskResult(
                    success=True,
                    result=result,
                    execution_time=time.time() - start_time,
                    task_id=task.task_id
                )
                self._record(pool_type, 'completed')
            except Exception as e:
                task_result = TaskResult(
                    success=False,
                    error=e,
                    execution_time=time.time() - start_time,
                    task_id=task.task_id
                )
                logger.error("Task %s failed: %s", task.task_id, e)
                self._record(pool_type, 'failed')
            finally:
                with self._lock:
                    self._active_tasks.pop(task.task_id, None)

            if callback:
                try:
                    callback(task_result)
                except Exception as e:
                    logger.error("Callback for task %s failed: %s", task.task_id, e)

            return task_result

        with self._lock:
            self._active_tasks[task.task_id] = task
            self._stats[pool_type]['submitted'] += 1
        try:
            future = executor.submit(wrapped_func)
        except RuntimeError:
            with self._lock:
                self._active_tasks.pop(task.task_id, None)
            raise
        task.future = future

        if is_verbose_logging():
            logger.debug("Submitted task %s to %s pool", task.task_id, pool_type.value)
        return future

    def submit_io_task(self, func: Callable, *args, **kwargs) -> Future:
        """Convenience method for IO pool submissions"""
        return self.submit_task(ThreadPoolType.IO, func, *args, **kwargs)

    def submit_disk_task(self, func: Callable, *args, **kwargs) -> Future:
        """Convenience method for DISK pool submissions.

        Work queued here runs strictly in submission order.
        """
        return self.submit_task(ThreadPoolType.DISK, func, *args, **kwargs)

    def _record(self, pool_type: ThreadPoolType, kind: str) -> None:
        with self._lock:
            self._stats[pool_type][kind] += 1

    def get_pool_stats(self) -> Dict[str, Dict[str, int]]:
        """Get statistics for all thread pools"""
        with self._lock:
            return {pool_type.value: stats.copy()
                    for pool_type, stats in self._stats.items()}

    def schedule_recurring(self, interval_s: float, func: Callable, *args,
                           description: Optional[str] = None, **kwargs) -> RecurringTask:
        """
        Schedule a recurring task on its own daemon thread.

        Args:
            interval_s: Interval in seconds
            func: Function to call
            *args, **kwargs: Arguments for func

        Returns:
            RecurringTask: handle whose ``stop()`` ends the schedule
        """
        if self._shutdown:
            raise RuntimeError("Thread manager is shut down")
        handle = RecurringTask(interval_s, func, *args, description=description, **kwargs)
        with self._lock:
            self._recurring = [r for r in self._recurring if r.is_running]
            self._recurring.append(handle)
        logger.debug("[THREADING] Recurring task %s every %.1fs", handle.description, handle.interval_s)
        return handle.start()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Shutdown all thread pools and recurring tasks.

        Args:
            wait: Whether to wait for active tasks
            timeout: Maximum time to wait for each recurring thread
        """
        if self._shutdown:
            return
        logger.info("Shutting down thread manager...")
        self._shutdown = True

        with self._lock:
            recurring = list(self._recurring)
            self._recurring.clear()
        for handle in recurring:
            handle.stop(timeout)

        for pool_type, executor in self._executors.items():
            with self._lock:
                pool_active = [t.task_id for t in self._active_tasks.values()
                               if t.pool_type == pool_type]
            if pool_active:
                logger.info("Pool %s has %d pending tasks during shutdown",
                            pool_type.value, len(pool_active))
            logger.debug("Shutting down %s pool...", pool_type.value)
            executor.shutdown(wait=wait, cancel_futures=not wait)

        self._executors.clear()
        with self._lock:
            self._active_tasks.clear()

        logger.info("Thread manager shut down complete")
