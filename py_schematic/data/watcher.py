"""Data file watcher: poll the file and fire a callback when it changes."""

import threading
from pathlib import Path
from typing import Callable, Optional, Union

import structlog

logger = structlog.get_logger()


class DataWatcher:
    """
    Polls a file's modification time and size.

    A change (including the file appearing or disappearing) calls on_change
    once. poll() does a single check and can be driven without a thread.
    """

    def __init__(self, path: Union[str, Path], on_change: Callable[[], None]):
        self.path = Path(path)
        self.on_change = on_change
        self._stamp = self._read_stamp()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def _read_stamp(self):
        try:
            stat = self.path.stat()
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size

    def poll(self) -> bool:
        """Check the file once. Returns True if a change was reported."""
        stamp = self._read_stamp()
        if stamp == self._stamp:
            return False
        self._stamp = stamp
        logger.info("Data file changed", path=str(self.path))
        self.on_change()
        return True

    def _run(self, interval_seconds: float) -> None:
        while not self._stop.wait(interval_seconds):
            try:
                self.poll()
            except Exception as e:
                logger.error("Change handler failed", path=str(self.path), error=str(e))

    def start(self, interval_seconds: float = 2.5) -> "DataWatcher":
        if self._thread is not None:
            return self
        self._thread = threading.Thread(
            target=self._run,
            args=(interval_seconds,),
            daemon=True,
            name="data_file_watcher",
        )
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


def start_data_watcher(
    path: Union[str, Path, None],
    on_change: Callable[[], None],
    interval_seconds: float = 2.5,
) -> Optional[DataWatcher]:
    """If path is set, start a daemon thread that calls on_change when the file changes."""
    if not path:
        return None
    watcher = DataWatcher(Path(path).resolve(), on_change)
    return watcher.start(interval_seconds)
