from __future__ import annotations

import hashlib
import os
import tempfile
from collections import defaultdict
from threading import Lock
from typing import Any, Protocol


class Synchronizer(Protocol):
    """Base class for synchronizers."""

    def __getitem__(self, item: str) -> Any:
        # see subclasses
        ...


class ThreadSynchronizer(Synchronizer):
    """Provides synchronization using thread locks, one per output path."""

    def __init__(self) -> None:
        self.mutex = Lock()
        self.locks: defaultdict[str, Lock] = defaultdict(Lock)

    def __getitem__(self, item: str) -> Lock:
        with self.mutex:
            return self.locks[item]

    def __getstate__(self) -> bool:
        return True

    def __setstate__(self, *args: Any) -> None:
        # reinitialize from scratch
        self.__init__()  # type: ignore[misc]


# shared by every ProcessSynchronizer of this process, keyed by lock file
_thread_locks = ThreadSynchronizer()


class PathLock:
    """
    The thread lock of an output path within this process, then its inter-process file lock.

    File locks are held per process, so they alone do not keep two threads of one process
    apart.
    """

    def __init__(self, thread_lock: Lock, process_lock: Any) -> None:
        self.thread_lock = thread_lock
        self.process_lock = process_lock

    def __enter__(self) -> PathLock:
        self.thread_lock.acquire()
        try:
            self.process_lock.acquire()
        except BaseException:
            self.thread_lock.release()
            raise
        return self

    def __exit__(self, *args: Any) -> None:
        try:
            self.process_lock.release()
        finally:
            self.thread_lock.release()


class ProcessSynchronizer(Synchronizer):
    """Provides synchronization using file locks via the
    `fasteners <https://fasteners.readthedocs.io/en/latest/api/inter_process/>`_
    package, combined with a thread lock per lock file.

    Items are output paths; each is mapped to a lock file named after a hash of the absolute
    path, so writers of the same file in different processes, or in different threads of
    one process, exclude each other.

    Parameters
    ----------
    path : string, optional
        Path to a directory on a file system that is shared by all processes.
        N.B., this should be a *different* path to where you store the outputs.
        Defaults to an ``ncfold-locks`` directory in the system temp directory.

    """

    def __init__(self, path: str | None = None) -> None:
        if path is None:
            path = os.path.join(tempfile.gettempdir(), "ncfold-locks")
        self.path = path

    def lock_path(self, item: str) -> str:
        digest = hashlib.sha1(os.path.abspath(item).encode("utf-8")).hexdigest()
        return os.path.join(self.path, digest + ".lock")

    def __getitem__(self, item: str) -> PathLock:
        import fasteners

        os.makedirs(self.path, exist_ok=True)
        lock_path = self.lock_path(item)
        return PathLock(_thread_locks[lock_path], fasteners.InterProcessLock(lock_path))

    # pickling and unpickling should be handled automatically
