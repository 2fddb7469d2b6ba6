# core/generator.py

"""
The project generator the filters talk to.

ProjectGenerator documents the contract consumed by the filter cache and the
sync coordinator. CatalogGenerator is a concrete, file-backed implementation:
packages and compiled units come from a JSON catalog, exclusion lists and the
active flag set live in the prefs store, and a sync writes the list of
included units next to the project.
"""

import os
import json
from typing import Iterable, List, Optional

from .filter_store import format_exclusion_list, parse_exclusion_string
from .generation_flags import FlagSet, GenerationFlag
from .hierarchy import Package, UnitRecord

EXCLUDED_PACKAGES_KEY_FORMAT = "project_generation_excludedpackages_{0}"
EXCLUDED_UNITS_KEY_FORMAT = "project_generation_excludedunits_{0}"
ACTIVE_FLAGS_KEY_FORMAT = "project_generation_flags_{0}"

DEFAULT_ACTIVE_FLAGS = FlagSet.from_flags(GenerationFlag.EMBEDDED, GenerationFlag.LOCAL)

SUPPORTED_EXTENSIONS = {
    ".cs", ".uxml", ".uss", ".shader", ".compute", ".cginc", ".hlsl",
    ".glslinc", ".template", ".raytrace", ".asmdef", ".asmref", ".rsp",
}

GENERATED_LISTING_FILE = "generated_units.json"


def normalize_unix(path: str) -> str:
    return str(path).replace("\\", "/")


class ProjectGenerator:
    """Interface of the external project generator."""

    @property
    def excluded_packages(self) -> List[str]:
        raise NotImplementedError

    @excluded_packages.setter
    def excluded_packages(self, value):
        raise NotImplementedError

    @property
    def excluded_units(self) -> List[str]:
        raise NotImplementedError

    @excluded_units.setter
    def excluded_units(self, value):
        raise NotImplementedError

    @property
    def eligible_packages(self) -> List[Package]:
        raise NotImplementedError

    @property
    def active_flags(self) -> FlagSet:
        raise NotImplementedError

    @active_flags.setter
    def active_flags(self, value):
        raise NotImplementedError

    @property
    def project_root_directory(self) -> str:
        raise NotImplementedError

    def sync(self):
        raise NotImplementedError

    def sync_if_needed(self, changed_paths: Iterable[str], imported_paths: Iterable[str]):
        raise NotImplementedError

    def is_supported_file(self, path: str) -> bool:
        raise NotImplementedError

    def resolve_owning_package(self, path: str) -> Optional[Package]:
        raise NotImplementedError

    def is_eligible(self, package: Package) -> bool:
        """Origin-eligibility rule used to pre-filter eligible_packages."""
        return self.active_flags.contains(package.origin_flag)


class CatalogGenerator(ProjectGenerator):
    def __init__(self, project_root, catalog_path, prefs, project_id=None):
        self._root = normalize_unix(os.path.abspath(project_root))
        self.catalog_path = catalog_path
        self.prefs = prefs
        self.project_id = project_id or os.path.basename(self._root.rstrip("/")) or "project"

        self._excluded_packages_key = EXCLUDED_PACKAGES_KEY_FORMAT.format(self.project_id)
        self._excluded_units_key = EXCLUDED_UNITS_KEY_FORMAT.format(self.project_id)
        self._flags_key = ACTIVE_FLAGS_KEY_FORMAT.format(self.project_id)

        self._excluded_packages = parse_exclusion_string(prefs.get_string(self._excluded_packages_key))
        self._excluded_units = parse_exclusion_string(prefs.get_string(self._excluded_units_key))
        self._packages: List[Package] = []
        self._units: List[UnitRecord] = []
        self.sync_count = 0
        self.reload_catalog()

    # ---------------- catalog ----------------
    def reload_catalog(self):
        """Re-reads the catalog file. A missing or broken catalog yields empty catalogs."""
        self._packages, self._units = [], []
        try:
            with open(self.catalog_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            print(f"[GENERATOR] ⚠️ Catalog not found: {self.catalog_path}")
            return
        except (OSError, json.JSONDecodeError) as e:
            print(f"[GENERATOR] ❌ Could not read catalog '{self.catalog_path}': {e}")
            return

        if not isinstance(data, dict):
            print(f"[GENERATOR] ❌ Unexpected catalog layout in '{self.catalog_path}'")
            return

        for entry in data.get("packages", []):
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            self._packages.append(Package(
                entry["name"],
                entry.get("displayName"),
                entry.get("source"),
                normalize_unix(entry.get("path") or f"Packages/{entry['name']}").strip("/"),
            ))

        for entry in data.get("units", []):
            if not isinstance(entry, dict) or not entry.get("name"):
                continue
            self._units.append(UnitRecord(entry["name"], entry.get("definitionPath")))

        print(f"[GENERATOR] 📦 Loaded {len(self._packages)} packages and {len(self._units)} units")

    def compiled_units(self) -> List[UnitRecord]:
        return list(self._units)

    @property
    def all_packages(self) -> List[Package]:
        return list(self._packages)

    # ---------------- persisted filters ----------------
    @property
    def excluded_packages(self) -> List[str]:
        return self._excluded_packages

    @excluded_packages.setter
    def excluded_packages(self, value):
        ids = list(value or [])
        self.prefs.set_string(self._excluded_packages_key, format_exclusion_list(ids))
        self._excluded_packages = parse_exclusion_string(format_exclusion_list(ids))

    @property
    def excluded_units(self) -> List[str]:
        return self._excluded_units

    @excluded_units.setter
    def excluded_units(self, value):
        ids = list(value or [])
        self.prefs.set_string(self._excluded_units_key, format_exclusion_list(ids))
        self._excluded_units = parse_exclusion_string(format_exclusion_list(ids))

    @property
    def active_flags(self) -> FlagSet:
        return FlagSet(self.prefs.get_int(self._flags_key, DEFAULT_ACTIVE_FLAGS.bits))

    @active_flags.setter
    def active_flags(self, value):
        self.prefs.set_int(self._flags_key, FlagSet(value).bits)

    def toggle_flag(self, flag):
        self.active_flags = self.active_flags.toggle(flag)

    @property
    def eligible_packages(self) -> List[Package]:
        return [p for p in self._packages if self.is_eligible(p)]

    # ---------------- paths ----------------
    @property
    def project_root_directory(self) -> str:
        return self._root

    def relative_path(self, path) -> str:
        path = normalize_unix(path)
        if os.path.isabs(path):
            path = normalize_unix(os.path.abspath(path))
            if path == self._root:
                return ""
            if path.startswith(self._root + "/"):
                path = path[len(self._root) + 1:]
        return path.strip("/")

    def resolve_owning_package(self, path) -> Optional[Package]:
        """Longest package-path prefix of the project-relative path."""
        relative = self.relative_path(path)
        best = None
        for package in self._packages:
            prefix = package.path
            if not prefix:
                continue
            if relative == prefix or relative.startswith(prefix + "/"):
                if best is None or len(prefix) > len(best.path):
                    best = package
        return best

    def is_supported_file(self, path) -> bool:
        return os.path.splitext(str(path))[1].lower() in SUPPORTED_EXTENSIONS

    # ---------------- generation ----------------
    def _is_unit_included(self, record: UnitRecord) -> bool:
        if not record.definition_path:
            return True
        unit_id = os.path.basename(normalize_unix(record.definition_path))
        if unit_id in self._excluded_units:
            return False
        package = self.resolve_owning_package(record.definition_path)
        if package is None:
            return True
        return self.is_eligible(package) and package.id not in self._excluded_packages

    def sync(self):
        """Writes the list of included units. Overwrites the previous listing."""
        included = [
            {"name": u.name, "definitionPath": u.definition_path}
            for u in self._units if self._is_unit_included(u)
        ]
        listing_path = os.path.join(self._root, GENERATED_LISTING_FILE)
        with open(listing_path, 'w', encoding='utf-8') as f:
            json.dump({"flags": self.active_flags.bits, "units": included}, f, indent=4)
        self.sync_count += 1
        print(f"[GENERATOR] ✅ Generated {len(included)} units into {listing_path}")

    def sync_if_needed(self, changed_paths, imported_paths):
        paths = list(changed_paths or []) + list(imported_paths or [])
        if not any(self.is_supported_file(p) for p in paths):
            return False
        self.reload_catalog()
        self.sync()
        return True
