"""Commit history loading for interactive front ends.

A history browser fires a new load every time the selection moves. Loads run
on a worker thread; only the result of the latest request of each kind is
cached and handed to the callback, older ones are dropped.
"""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field

from .git import GitClient
from .models import CommitFileChange

logger = logging.getLogger(__name__)


@dataclass
class CommitHistoryCache:
    """Per-commit file lists and per-file diffs, keyed by content identity."""

    files: dict[str, list[CommitFileChange]] = field(default_factory=dict)
    diffs: dict[tuple[str, str], str] = field(default_factory=dict)

    def clear(self) -> None:
        self.files.clear()
        self.diffs.clear()


class RequestTracker:
    """Monotonic request ids; a request is current until a newer one is issued."""

    def __init__(self):
        self._latest = 0
        self._lock = threading.Lock()

    def issue(self) -> int:
        with self._lock:
            self._latest += 1
            return self._latest

    def is_current(self, request_id: int) -> bool:
        with self._lock:
            return request_id == self._latest


@dataclass(frozen=True)
class LoadResult:
    request_id: int
    value: object = None
    error: Exception | None = None
    stale: bool = False


class CommitHistoryLoader:
    """Loads commit files and diffs in the background, discarding stale results."""

    def __init__(
        self,
        git: GitClient,
        cache: CommitHistoryCache | None = None,
        executor: ThreadPoolExecutor | None = None,
    ):
        self.git = git
        self.cache = cache or CommitHistoryCache()
        self._executor = executor or ThreadPoolExecutor(max_workers=2)
        self._files_requests = RequestTracker()
        self._diff_requests = RequestTracker()

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def load_files(
        self,
        commit_hash: str,
        on_result: Callable[[LoadResult], None],
    ) -> Future | None:
        """Load the files of a commit. Cached lists are delivered immediately."""
        request_id = self._files_requests.issue()
        cached = self.cache.files.get(commit_hash)
        if cached is not None:
            on_result(LoadResult(request_id=request_id, value=cached))
            return None

        def store(files: list[CommitFileChange]) -> None:
            self.cache.files[commit_hash] = files

        return self._executor.submit(
            self._run,
            self._files_requests,
            request_id,
            lambda: self.git.list_commit_files(commit_hash),
            store,
            on_result,
        )

    def load_diff(
        self,
        commit_hash: str,
        path: str,
        on_result: Callable[[LoadResult], None],
    ) -> Future | None:
        """Load one file's diff within a commit."""
        request_id = self._diff_requests.issue()
        key = (commit_hash, path)
        cached = self.cache.diffs.get(key)
        if cached is not None:
            on_result(LoadResult(request_id=request_id, value=cached))
            return None

        def store(diff: str) -> None:
            self.cache.diffs[key] = diff

        return self._executor.submit(
            self._run,
            self._diff_requests,
            request_id,
            lambda: self.git.diff_for_commit_file(commit_hash, path),
            store,
            on_result,
        )

    @staticmethod
    def _run(tracker, request_id, load, store, on_result) -> LoadResult:
        try:
            value = load()
        except Exception as error:
            if not tracker.is_current(request_id):
                return LoadResult(request_id=request_id, error=error, stale=True)
            result = LoadResult(request_id=request_id, error=error)
            on_result(result)
            return result

        if not tracker.is_current(request_id):
            logger.debug("Discarding stale history request %s", request_id)
            return LoadResult(request_id=request_id, value=value, stale=True)

        store(value)
        result = LoadResult(request_id=request_id, value=value)
        on_result(result)
        return result
