"""Worker pools that feed discovered files to a :class:`Searcher`.

Two strategies are available:

``EagerDispatcher``
    The walker runs on the calling thread and sends ``SearchTask`` messages
    through a bounded queue to a fixed set of consumers.

``FrontierDispatcher``
    Directories are work items too. Any worker may list a directory, push
    its subdirectories and files back onto the shared queue, or search a
    file. The run ends once the queue has no unfinished tasks, meaning the
    queue is empty and no worker is busy.
"""

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .constants import DEFAULT_QUEUE_SIZE, DEFAULT_WORKERS, POLL_INTERVAL
from .search import Searcher
from .walker import DirectoryTask, Walker

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchTask:
    """A file to search."""

    path: Path


Task = Union[DirectoryTask, SearchTask]

_STOP = object()


class Dispatcher:
    """Base class holding the walker, searcher and pool size."""

    mode = ""

    def __init__(self, walker: Walker, searcher: Searcher, workers: int = DEFAULT_WORKERS):
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.walker = walker
        self.searcher = searcher
        self.workers = workers

    def run(self, root: Path) -> None:
        raise NotImplementedError

    def _search(self, task: SearchTask) -> None:
        try:
            self.searcher.search(task.path)
        except Exception:
            logger.exception("Unexpected error searching %s", task.path)


class EagerDispatcher(Dispatcher):
    """Single walker, fixed pool of search consumers."""

    mode = "eager"

    def __init__(
        self,
        walker: Walker,
        searcher: Searcher,
        workers: int = DEFAULT_WORKERS,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        super().__init__(walker, searcher, workers)
        self.queue_size = queue_size

    def run(self, root: Path) -> None:
        """Walk ``root`` and search every file found.

        Raises:
            RootError: If the root is not a readable directory
        """
        tasks: "queue.Queue[object]" = queue.Queue(maxsize=self.queue_size)

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="scopegrep-search") as executor:
            futures = [executor.submit(self._consume, tasks) for _ in range(self.workers)]
            try:
                for path in self.walker.iter_files(root):
                    tasks.put(SearchTask(path))
            finally:
                for _ in futures:
                    tasks.put(_STOP)

        for future in futures:
            future.result()

    def _consume(self, tasks: "queue.Queue[object]") -> None:
        while True:
            task = tasks.get()
            if task is _STOP:
                return
            self._search(task)


class FrontierDispatcher(Dispatcher):
    """Fixed pool of workers sharing one queue of directories and files."""

    mode = "frontier"

    def __init__(
        self,
        walker: Walker,
        searcher: Searcher,
        workers: int = DEFAULT_WORKERS,
        poll_interval: float = POLL_INTERVAL,
    ):
        super().__init__(walker, searcher, workers)
        self.poll_interval = poll_interval

    def run(self, root: Path) -> None:
        """Traverse and search ``root`` with all workers.

        Raises:
            RootError: If the root is not a readable directory
        """
        work: "queue.Queue[Task]" = queue.Queue()
        work.put(self.walker.root_task(root))
        finished = threading.Event()

        def worker() -> None:
            while not finished.is_set():
                try:
                    task = work.get(timeout=self.poll_interval)
                except queue.Empty:
                    continue
                try:
                    self._process(task, work)
                finally:
                    work.task_done()

        with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix="scopegrep-frontier") as executor:
            futures = [executor.submit(worker) for _ in range(self.workers)]
            work.join()
            finished.set()

        for future in futures:
            future.result()

    def _process(self, task: Task, work: "queue.Queue[Task]") -> None:
        if isinstance(task, SearchTask):
            self._search(task)
            return

        try:
            files, subdirs = self.walker.expand(task)
        except Exception:
            logger.exception("Unexpected error listing %s", task.path)
            return
        # Children must be queued before the parent task_done()
        for subdir in subdirs:
            work.put(subdir)
        for path in files:
            work.put(SearchTask(path))


DISPATCHERS = {
    EagerDispatcher.mode: EagerDispatcher,
    FrontierDispatcher.mode: FrontierDispatcher,
}
