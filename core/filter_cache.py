# core/filter_cache.py

"""
Cache of the advanced filters hierarchy.

The hierarchy is rebuilt only when the generator's active flag set differs
from the one captured at the last build. Every read checks the flags, so a
read always reflects the flags at the moment of the call.
"""

from PySide6.QtCore import QObject, Signal

from .filter_store import PACKAGES, UNITS, FilterStore
from .generation_flags import FlagSet
from .hierarchy import Hierarchy, build_hierarchy

EMPTY = "empty"
VALID = "valid"
STALE = "stale"


class FilterCache(QObject):
    filters_changed = Signal()       # dirty notification after a toggle or reset
    hierarchy_rebuilt = Signal(int)  # rebuild count

    def __init__(self, generator, catalog=None, parent=None):
        super().__init__(parent)
        self.generator = generator
        # The generator doubles as the unit catalog unless told otherwise
        self.catalog = catalog if catalog is not None else generator
        self.filters = FilterStore()
        self.rebuild_count = 0
        self._hierarchy = None
        self._cached_flags = None

    # ---------------- invalidation ----------------
    def _observed_flags(self):
        try:
            return FlagSet(self.generator.active_flags)
        except Exception as e:
            print(f"[FILTERS] ⚠️ Could not read active flags: {e}")
            return FlagSet()

    @property
    def state(self) -> str:
        if self._hierarchy is None:
            return EMPTY
        if self._observed_flags() != self._cached_flags:
            return STALE
        return VALID

    @property
    def cached_flags(self):
        return self._cached_flags

    def invalidate(self):
        self._hierarchy = None
        self._cached_flags = None

    def hierarchy(self) -> Hierarchy:
        flags = self._observed_flags()
        if self._hierarchy is None or flags != self._cached_flags:
            self._rebuild(flags)
        return self._hierarchy

    def _rebuild(self, flags):
        self._cached_flags = flags
        excluded_packages = []
        try:
            excluded_packages = list(self.generator.excluded_packages or [])
            excluded_units = list(self.generator.excluded_units or [])
            self.filters = FilterStore.from_exclusions(excluded_packages, excluded_units)
        except Exception as e:
            # Previous decisions stay in place
            print(f"[FILTERS] ⚠️ Could not read persisted filters: {e}")

        try:
            self._hierarchy = build_hierarchy(
                self.generator.eligible_packages,
                self.catalog.compiled_units(),
                excluded_packages,
                self.generator.resolve_owning_package,
            )
        except Exception as e:
            # Persisted decisions stay loaded; only the hierarchy degrades
            print(f"[FILTERS] ❌ Failed to build filter hierarchy: {e}")
            self._hierarchy = Hierarchy.empty()

        self.rebuild_count += 1
        print(f"[FILTERS] 🔄 Rebuilt hierarchy for {flags!r}: "
              f"{len(self._hierarchy)} nodes, {self._hierarchy.unit_count()} units")
        self.hierarchy_rebuilt.emit(self.rebuild_count)

    # ---------------- edits ----------------
    def _toggle(self, kind, item_id, force_held, force_value):
        self.hierarchy()
        current = self.filters.ensure(kind, item_id)
        value = self.filters.flip_or_force(kind, item_id, current, force_held, force_value)
        if value == current:
            return False
        self.write_back()
        self.filters_changed.emit()
        return True

    def toggle_package(self, package_id, force_held=False, force_value=True) -> bool:
        """Flips (or forces) a package decision. Returns True when something changed."""
        return self._toggle(PACKAGES, package_id, force_held, force_value)

    def toggle_unit(self, unit_id, force_held=False, force_value=True) -> bool:
        return self._toggle(UNITS, unit_id, force_held, force_value)

    def set_value(self, kind, item_id, value) -> bool:
        """Sets a decision to an explicit value, as requested by the view."""
        return self._toggle(kind, item_id, True, value)

    def write_back(self):
        """Flushes the filter store into the generator's persisted exclusion lists."""
        excluded_packages, excluded_units = self.filters.flush()
        try:
            # Two independent writes, not atomic
            self.generator.excluded_packages = sorted(excluded_packages)
            self.generator.excluded_units = sorted(excluded_units)
        except Exception as e:
            print(f"[FILTERS] ❌ Failed to persist filters: {e}")
            return False
        print(f"[FILTERS] 💾 Persisted {len(excluded_packages)} excluded packages, "
              f"{len(excluded_units)} excluded units")
        return True

    def reset_filters(self):
        self.filters.reset()
        self.write_back()
        self.filters_changed.emit()

    def can_reset(self) -> bool:
        return not self.filters.is_empty()

    # ---------------- presentation ----------------
    def summaries(self):
        hierarchy = self.hierarchy()
        return {flag: hierarchy.summary(flag, self.filters) for flag in hierarchy.by_flag}
