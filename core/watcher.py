import time
import threading
import os
import queue
import fnmatch
from watchdog.observers.polling import PollingObserver as Observer
from watchdog.events import FileSystemEventHandler, FileSystemMovedEvent
from PySide6.QtCore import QObject, Signal, QTimer


class _EventHandler(FileSystemEventHandler):
    def __init__(self, event_queue, ignore_rules, root_path=None):
        super().__init__()
        self.queue = event_queue
        self.ignore_rules = ignore_rules
        self.root_path = root_path

    def on_any_event(self, event):
        if event.is_directory or event.event_type not in ('created', 'deleted', 'moved', 'modified'):
            return
        if is_ignored(event.src_path, self.ignore_rules, self.root_path):
            return

        # Just put the raw event data in the queue
        self.queue.put({
            'action': event.event_type,
            'src_path': event.src_path,
            'dst_path': event.dest_path if isinstance(event, FileSystemMovedEvent) else None
        })


def is_ignored(path, ignore_rules, root_path=None):
    """
    Check if a path, its file name, or any of its folders below root_path
    matches a glob-style ignore rule. Folders above the root never count.
    """
    path = os.path.normpath(str(path))
    if root_path:
        root = os.path.normpath(str(root_path))
        if path == root or path.startswith(root.rstrip(os.sep) + os.sep):
            path = os.path.relpath(path, root)
    parts = path.split(os.sep)
    for pattern in ignore_rules:
        if fnmatch.fnmatch(path, pattern):
            return True
        if any(fnmatch.fnmatch(part, pattern) for part in parts if part):
            return True
    return False


def events_to_changes(events):
    """
    Splits a batch of raw watcher events into (added, removed, imported) paths.

    A move counts as removing its source and adding its destination; a
    modification counts as a re-import.
    """
    added, removed, imported = [], [], []

    def _append(bucket, path):
        if path and path not in bucket:
            bucket.append(path)

    for event in events or []:
        action = event.get('action')
        if action == 'created':
            _append(added, event.get('src_path'))
        elif action == 'deleted':
            _append(removed, event.get('src_path'))
        elif action == 'moved':
            _append(removed, event.get('src_path'))
            _append(added, event.get('dst_path'))
        elif action == 'modified':
            _append(imported, event.get('src_path'))
    return added, removed, imported


class FileWatcher(QObject):
    fs_event_batch = Signal(list)

    def __init__(self, root_path, ignore_rules, poll_interval_ms=150):
        super().__init__()
        self.root_path = root_path
        # Ensure we get a set of patterns
        self.ignore_rules = set(ignore_rules or [])
        self.event_queue = queue.Queue()
        self._stop_event = threading.Event()
        self._thread = None

        # This timer will poll the queue from the main Qt thread
        self.poll_timer = QTimer(self)
        self.poll_timer.timeout.connect(self._process_queue)
        self.poll_timer.setInterval(poll_interval_ms)

    def start(self):
        if self.isRunning():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_observer)
        self._thread.daemon = True
        self._thread.start()
        self.poll_timer.start()
        print(f"[WATCHER] 👁️ Watching {self.root_path}")

    def stop(self):
        if not self.isRunning():
            return
        self._stop_event.set()
        self._thread.join(timeout=2)
        self._thread = None
        self.poll_timer.stop()
        print(f"[WATCHER] ⏹️ Stopped watching {self.root_path}")

    def isRunning(self):
        return self._thread is not None and self._thread.is_alive()

    def _run_observer(self):
        """This method runs in the background thread."""
        event_handler = _EventHandler(self.event_queue, self.ignore_rules, self.root_path)
        observer = Observer()
        observer.schedule(event_handler, self.root_path, recursive=True)
        observer.start()
        while not self._stop_event.is_set():
            time.sleep(0.1)
        observer.stop()
        observer.join()

    def _process_queue(self):
        """This method runs in the main Qt thread."""
        fs_events = []
        while True:
            try:
                fs_events.append(self.event_queue.get_nowait())
            except queue.Empty:
                break

        if fs_events:
            self.fs_event_batch.emit(fs_events)
