from PySide6.QtCore import QObject, Signal, Slot

from core.filter_cache import FilterCache
from core.filter_view import (
    ViewState, draw, SetFilterValue, ResetFiltersRequest, SyncIntent, ToggleFlagRequest
)
from core.sync_coordinator import SyncCoordinator
from core.watcher import FileWatcher, events_to_changes


class FiltersController(QObject):
    """Applies the requests produced by the filter view to the cache, generator and sync coordinator."""
    rows_changed = Signal(list)
    warning = Signal(str)

    def __init__(self, generator, catalog=None, settings=None, parent=None):
        super().__init__(parent)
        self.generator = generator
        self.cache = FilterCache(generator, catalog, self)
        self.sync = SyncCoordinator(generator, self)
        self.view_state = ViewState()
        self.rows = []
        self.settings = settings or {}
        self.file_watcher = None

        self.sync.sync_failed.connect(self._on_sync_failed)

    # ---------------- public API ----------------
    def process(self, events=()):
        """Runs one draw step and applies its side effects. Returns the rendered rows."""
        hierarchy = self.cache.hierarchy()
        self.view_state, rows, requests = draw(
            self.view_state, hierarchy, self.cache.filters, self.generator.active_flags, events
        )

        if requests:
            for request in requests:
                self._apply(request)
            # Side effects may have changed flags or filters; render once more without events
            hierarchy = self.cache.hierarchy()
            self.view_state, rows, _ = draw(
                self.view_state, hierarchy, self.cache.filters, self.generator.active_flags
            )

        self.rows = rows
        self.rows_changed.emit(rows)
        return rows

    def _apply(self, request):
        if isinstance(request, SetFilterValue):
            self.cache.set_value(request.kind, request.item_id, request.value)
        elif isinstance(request, ResetFiltersRequest):
            print("[FILTERS_CTRL] 🧹 Resetting filters")
            self.cache.reset_filters()
        elif isinstance(request, ToggleFlagRequest):
            print(f"[FILTERS_CTRL] 🔀 Toggling generation of {request.flag.name}")
            self.generator.active_flags = self.generator.active_flags.toggle(request.flag)
        elif isinstance(request, SyncIntent):
            self.sync.request_sync()

    def open_path(self, path):
        """Returns False for unsupported files; warns when the file is not part of the generated project."""
        if not self.sync.is_supported_path(path):
            return False
        message = self.sync.outside_project_warning(path)
        if message:
            print(f"[FILTERS_CTRL] ⚠️ {message}")
            self.warning.emit(message)
        return True

    # ---------------- watcher ----------------
    def start_file_watcher(self):
        if not self.settings.get("live_watcher", False):
            print("[FILTERS_CTRL] ℹ️ Live watcher disabled in settings")
            return
        if self.file_watcher and self.file_watcher.isRunning():
            return
        self.file_watcher = FileWatcher(
            self.generator.project_root_directory,
            self.settings.get("ignore_patterns", set()),
            self.settings.get("poll_interval_ms", 150),
        )
        self.file_watcher.fs_event_batch.connect(self.on_fs_events)
        self.file_watcher.start()

    def stop_file_watcher(self):
        if self.file_watcher:
            self.file_watcher.stop()

    @Slot(list)
    def on_fs_events(self, events):
        added, removed, imported = events_to_changes(events)
        if not (added or removed or imported):
            return
        self.sync.request_incremental_sync(added, removed, imported)

    @Slot(object)
    def _on_sync_failed(self, request):
        self.warning.emit(f"Project generation failed: {request.error}")
