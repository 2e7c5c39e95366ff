"""Background task runner with per-task event queues."""

import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from queue import Empty, Queue
from typing import Any, Callable, Generator


class TaskError(Exception):
    """Raised when waiting on a task that failed or does not exist."""

    pass


@dataclass
class TaskInfo:
    id: str
    operation: str
    status: str = "pending"  # pending, running, completed, failed
    result: Any = None
    error: str = ""
    exception: BaseException | None = None
    events: Queue = field(default_factory=Queue)
    future: Future | None = None


class TaskManager:
    """Runs operations on a shared thread pool and records their outcome."""

    def __init__(self, max_workers: int | None = None):
        self._tasks: dict[str, TaskInfo] = {}
        self._lock = threading.Lock()
        self._pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="svmm")

    def submit(self, operation: str, fn: Callable[..., Any], *args, **kwargs) -> str:
        """Queue fn on the pool. Returns task_id."""
        task_id = str(uuid.uuid4())[:8]
        task = TaskInfo(id=task_id, operation=operation)
        with self._lock:
            self._tasks[task_id] = task

        def _run():
            task.status = "running"
            task.events.put({"event": "status", "data": "running"})
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                self.fail(task_id, e)
                raise
            self.complete(task_id, result)
            return result

        task.future = self._pool.submit(_run)
        return task_id

    def complete(self, task_id: str, result: Any) -> None:
        """Mark task as completed."""
        task = self.get(task_id)
        if not task:
            return
        task.status = "completed"
        task.result = result
        task.events.put({"event": "complete", "data": result})

    def fail(self, task_id: str, error: BaseException) -> None:
        """Mark task as failed."""
        task = self.get(task_id)
        if not task:
            return
        task.status = "failed"
        task.error = str(error)
        task.exception = error
        task.events.put({"event": "error", "data": str(error)})

    def get(self, task_id: str) -> TaskInfo | None:
        with self._lock:
            return self._tasks.get(task_id)

    def wait(self, task_id: str, timeout: float | None = None) -> Any:
        """Block until the task finishes and return its result, re-raising its error."""
        task = self.get(task_id)
        if not task or task.future is None:
            raise TaskError(f"Task not found: {task_id}")
        return task.future.result(timeout=timeout)

    def events(self, task_id: str, timeout: float = 30) -> Generator[dict[str, Any], None, None]:
        """Yield the task's events until it completes or fails."""
        task = self.get(task_id)
        if not task:
            raise TaskError(f"Task not found: {task_id}")

        while True:
            try:
                event = task.events.get(timeout=timeout)
            except Empty:
                if task.future is not None and task.future.cancelled():
                    return
                continue
            yield event
            if event["event"] in ("complete", "error"):
                break

    def discard(self, task_id: str) -> TaskInfo | None:
        """Forget a finished task. Raises TaskError while it is still pending or running."""
        with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None
            if task.future is not None and not task.future.done():
                raise TaskError(f"Task still running: {task_id}")
            return self._tasks.pop(task_id)

    def shutdown(self, wait: bool = True) -> None:
        self._pool.shutdown(wait=wait)

    def __enter__(self) -> "TaskManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
