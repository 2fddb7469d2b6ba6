# core/sync_coordinator.py

"""
Serializes regeneration requests to the project generator.

The generator writes project files non-atomically, so two regenerations must
never overlap. Requests made while one is running (re-entrantly from a
callback, or from another thread) are queued and run strictly afterwards, in
the order they were made.
"""

import os
import threading
from collections import deque

from PySide6.QtCore import QObject, Signal

from .generation_flags import FlagSet, GenerationFlag, flag_description

IDLE = "idle"
SYNCING = "syncing"

FULL = "full"
INCREMENTAL = "incremental"

QUEUED = "queued"
RUNNING = "running"
COMPLETED = "completed"
FAILED = "failed"

# Coverage is only reported for C# scripts
SCRIPT_EXTENSION = ".cs"


class SyncRequest:
    """Handle for one regeneration request."""

    def __init__(self, kind, added=None, removed=None, imported=None):
        self.kind = kind
        self.added = list(added or [])
        self.removed = list(removed or [])
        self.imported = list(imported or [])
        self.status = QUEUED
        self.error = None
        self.result = None
        self._done = threading.Event()

    @property
    def changed(self):
        """Added and removed paths, in order, without duplicates."""
        seen = set()
        paths = []
        for path in self.added + self.removed:
            if path not in seen:
                seen.add(path)
                paths.append(path)
        return paths

    @property
    def done(self) -> bool:
        return self._done.is_set()

    @property
    def succeeded(self) -> bool:
        return self.status == COMPLETED

    def wait(self, timeout=None) -> bool:
        return self._done.wait(timeout)

    def _finish(self, status, error=None, result=None):
        self.status = status
        self.error = error
        self.result = result
        self._done.set()

    def __repr__(self):
        return f"SyncRequest({self.kind}, {self.status})"


class SyncCoordinator(QObject):
    sync_started = Signal(object)
    sync_finished = Signal(object)
    sync_failed = Signal(object)

    def __init__(self, generator, parent=None):
        super().__init__(parent)
        self.generator = generator
        self._lock = threading.Lock()
        self._pending = deque()
        self._state = IDLE

    @property
    def state(self) -> str:
        return self._state

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    # ---------------- requests ----------------
    def request_sync(self) -> SyncRequest:
        """Full regeneration. Blocks until done unless another sync is already running."""
        return self._submit(SyncRequest(FULL))

    def request_incremental_sync(self, added_paths=None, removed_paths=None, imported_paths=None) -> SyncRequest:
        return self._submit(SyncRequest(INCREMENTAL, added_paths, removed_paths, imported_paths))

    def _submit(self, request):
        with self._lock:
            self._pending.append(request)
            if self._state == SYNCING:
                print(f"[SYNC] ⏳ Sync in progress, queued {request.kind} request "
                      f"({len(self._pending)} pending)")
                return request
            self._state = SYNCING

        self._drain()
        return request

    def _drain(self):
        """Runs queued requests one at a time until the queue is empty."""
        request = None
        try:
            while True:
                with self._lock:
                    if not self._pending:
                        self._state = IDLE
                        return
                    request = self._pending.popleft()
                self._run(request)
        except BaseException as e:
            # Interrupted mid-sync; later requests stay queued
            print(f"[SYNC] ❌ Sync interrupted: {e!r}")
            if request is not None and not request.done:
                request._finish(FAILED, error=e)
            with self._lock:
                self._state = IDLE
            raise

    def _run(self, request):
        request.status = RUNNING
        self.sync_started.emit(request)
        try:
            if request.kind == FULL:
                print("[SYNC] 🚀 Regenerating project files...")
                result = self.generator.sync()
            else:
                print(f"[SYNC] 🚀 Incremental sync: {len(request.changed)} changed, "
                      f"{len(request.imported)} imported")
                result = self.generator.sync_if_needed(request.changed, request.imported)
        except Exception as e:
            # Not retried; the failure belongs to this request only
            print(f"[SYNC] ❌ {request.kind} sync failed: {e}")
            request._finish(FAILED, error=e)
            self.sync_failed.emit(request)
            return

        request._finish(COMPLETED, result=result)
        print(f"[SYNC] ✅ {request.kind} sync completed")
        self.sync_finished.emit(request)

    # ---------------- coverage ----------------
    def _relative_path(self, path):
        base = str(self.generator.project_root_directory or "").replace("\\", "/").rstrip("/")
        normalized = str(path).replace("\\", "/")
        if base and (normalized == base or normalized.startswith(base + "/")):
            normalized = normalized[len(base):]
        return normalized.strip("/")

    def is_path_covered(self, path):
        """
        Tells whether a file would be part of the generated project under the
        current flags.

        Returns (covered, missing_flag). Only C# scripts are checked; other
        files and paths outside any package are always covered. For a package
        whose origin is not enabled, or which has been excluded, missing_flag
        is the package's origin flag. Packages of unknown origin are never
        generated and report (False, NONE).
        """
        if not path or os.path.splitext(str(path))[1].lower() != SCRIPT_EXTENSION:
            return True, GenerationFlag.NONE

        relative = self._relative_path(path)
        try:
            package = self.generator.resolve_owning_package(relative)
        except Exception as e:
            print(f"[SYNC] ⚠️ Could not resolve package for {path}: {e}")
            return True, GenerationFlag.NONE

        if package is None:
            return True, GenerationFlag.NONE

        flag = package.origin_flag
        if not FlagSet(self.generator.active_flags).contains(flag):
            return False, flag

        if package.id in (self.generator.excluded_packages or []):
            return False, flag

        return True, GenerationFlag.NONE

    def is_supported_path(self, path) -> bool:
        # An empty path means opening the whole project
        if not path:
            return True
        return bool(self.generator.is_supported_file(path))

    def outside_project_warning(self, path):
        covered, missing_flag = self.is_path_covered(path)
        if covered:
            return None
        name = os.path.basename(str(path))
        if missing_flag == GenerationFlag.NONE:
            return (f"You are trying to open {name} outside a generated project. "
                    f"Its package comes from an unknown source and is never part of the generated project.")
        return (f"You are trying to open {name} outside a generated project. "
                f"This might cause problems with code completion and debugging. To avoid this, "
                f"enable {flag_description(missing_flag)} generation or include the package in the filters.")
