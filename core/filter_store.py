# core/filter_store.py

"""
Explicit inclusion decisions for packages and code units.

Both maps are keyed by id and default to "included": an id that was never
queried or toggled is not stored at all. Only the ids whose value is False
ever reach the persisted exclusion lists.
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple

PACKAGES = "package"
UNITS = "unit"

EXCLUSION_SEPARATOR = ";"


def parse_exclusion_string(raw) -> List[str]:
    """
    Parses a persisted ';'-joined exclusion string.

    None, empty strings, stray separators and non-string values all yield
    an empty (or cleaned) list instead of an error.
    """
    if not raw or not isinstance(raw, str):
        return []
    ids = []
    for part in raw.split(EXCLUSION_SEPARATOR):
        part = part.strip()
        if part and part not in ids:
            ids.append(part)
    return ids


def format_exclusion_list(ids: Optional[Iterable[str]]) -> str:
    if not ids:
        return ""
    return EXCLUSION_SEPARATOR.join(i for i in ids if _is_valid_id(i))


def _is_valid_id(value) -> bool:
    return isinstance(value, str) and value.strip() != ""


class FilterStore:
    def __init__(self):
        self._filters: Dict[str, Dict[str, bool]] = {PACKAGES: {}, UNITS: {}}

    @classmethod
    def from_exclusions(cls, excluded_packages=None, excluded_units=None) -> "FilterStore":
        """Seeds both maps from persisted exclusion lists; blank ids are skipped."""
        store = cls()
        for kind, excluded in ((PACKAGES, excluded_packages), (UNITS, excluded_units)):
            if isinstance(excluded, str):
                excluded = parse_exclusion_string(excluded)
            for item_id in excluded or []:
                if _is_valid_id(item_id):
                    store._filters[kind][item_id] = False
        return store

    @property
    def package_filter(self) -> Dict[str, bool]:
        return self._filters[PACKAGES]

    @property
    def unit_filter(self) -> Dict[str, bool]:
        return self._filters[UNITS]

    def _map(self, kind) -> Dict[str, bool]:
        filters = self._filters.get(kind)
        if filters is None:
            # Unknown kinds behave as "everything included" and keep nothing
            print(f"[FILTERS] ⚠️ Unknown filter kind {kind!r}, treating as included")
            return {}
        return filters

    def ensure(self, kind: str, item_id: str) -> bool:
        """Returns the stored decision for an id, inserting 'included' on first query."""
        if not _is_valid_id(item_id):
            return True
        filters = self._map(kind)
        if item_id not in filters:
            filters[item_id] = True
        return filters[item_id]

    def is_included(self, kind: str, item_id: str) -> bool:
        """Read-only lookup; does not insert."""
        return self._map(kind).get(item_id, True)

    @staticmethod
    def next_value(current: bool, force_held: bool, force_value: bool) -> bool:
        if force_held:
            return bool(force_value)
        return not current

    def flip_or_force(self, kind: str, item_id: str, current: bool,
                      force_held: bool = False, force_value: bool = True) -> bool:
        """
        Flips the decision for an id, or forces it to force_value while a bulk
        modifier is held. The new value is stored and returned.
        """
        value = self.next_value(current, force_held, force_value)
        if _is_valid_id(item_id):
            self._map(kind)[item_id] = value
        return value

    def flush(self) -> Tuple[Set[str], Set[str]]:
        """Returns (package exclusions, unit exclusions): every id stored as False."""
        return (
            {item_id for item_id, included in self._filters[PACKAGES].items() if not included},
            {item_id for item_id, included in self._filters[UNITS].items() if not included},
        )

    def reset(self) -> None:
        self._filters[PACKAGES].clear()
        self._filters[UNITS].clear()

    def is_empty(self) -> bool:
        return not self._filters[PACKAGES] and not self._filters[UNITS]

    def snapshot(self) -> "FilterStore":
        copy = FilterStore()
        copy._filters[PACKAGES].update(self._filters[PACKAGES])
        copy._filters[UNITS].update(self._filters[UNITS])
        return copy
