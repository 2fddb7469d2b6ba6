# core/hierarchy.py

"""
Package -> code unit hierarchy shown by the advanced filters.

The hierarchy joins two catalogs that change independently: the eligible
packages and the compiled code units. Each unit is attached to the package
that owns its definition file; units without an owning package are collected
into a single synthetic "ungrouped" node that always comes first.
"""

import os
from typing import Callable, Dict, Iterable, List, Optional

from .filter_store import PACKAGES, UNITS, FilterStore
from .generation_flags import GenerationFlag, PackageSource, flag_from_source


class Package:
    def __init__(self, package_id, display_name=None, source=PackageSource.UNKNOWN, path=None):
        self.id = package_id
        # Blank display names fall back to the id
        if not isinstance(display_name, str) or not display_name.strip():
            display_name = package_id
        self.display_name = display_name
        self.source = PackageSource.parse(source)
        self.path = path

    @property
    def origin_flag(self) -> GenerationFlag:
        return flag_from_source(self.source)

    def __eq__(self, other):
        if not isinstance(other, Package):
            return NotImplemented
        return (self.id, self.display_name, self.source) == (other.id, other.display_name, other.source)

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"Package({self.id!r}, {self.source.name})"


class UnitRecord:
    """A compiled unit as reported by the unit catalog, before it is placed in the hierarchy."""

    def __init__(self, name, definition_path=None):
        self.name = name
        self.definition_path = definition_path

    def __repr__(self):
        return f"UnitRecord({self.name!r}, {self.definition_path!r})"


class CodeUnit:
    def __init__(self, unit_id, display_name, owning_package_id=None, definition_path=None):
        self.id = unit_id
        self.display_name = display_name
        self.owning_package_id = owning_package_id
        self.definition_path = definition_path

    def __eq__(self, other):
        if not isinstance(other, CodeUnit):
            return NotImplemented
        return (self.id, self.display_name, self.owning_package_id, self.definition_path) == \
               (other.id, other.display_name, other.owning_package_id, other.definition_path)

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"CodeUnit({self.id!r}, package={self.owning_package_id!r})"


class PackageNode:
    def __init__(self, package: Optional[Package], units: List[CodeUnit]):
        self.package = package
        self.units = units

    @property
    def id(self) -> Optional[str]:
        return self.package.id if self.package else None

    @property
    def display_name(self) -> str:
        return self.package.display_name if self.package else "Assemblies from Assets"

    @property
    def is_ungrouped(self) -> bool:
        return self.package is None

    @property
    def origin_flag(self) -> GenerationFlag:
        return self.package.origin_flag if self.package else GenerationFlag.NONE

    def included_unit_count(self, filters: FilterStore) -> int:
        return sum(1 for unit in self.units if filters.is_included(UNITS, unit.id))

    def is_mixed(self, filters: FilterStore) -> bool:
        """True when some, but not all, of the node's units are excluded."""
        included = self.included_unit_count(filters)
        return 0 < included < len(self.units)

    def __eq__(self, other):
        if not isinstance(other, PackageNode):
            return NotImplemented
        return self.package == other.package and self.units == other.units

    def __repr__(self):
        return f"PackageNode({self.display_name!r}, {len(self.units)} units)"


class GroupSummary:
    def __init__(self, included_packages, total_packages, included_units, total_units):
        self.included_packages = included_packages
        self.total_packages = total_packages
        self.included_units = included_units
        self.total_units = total_units

    def as_tuple(self):
        return (self.included_packages, self.total_packages, self.included_units, self.total_units)

    def __eq__(self, other):
        if not isinstance(other, GroupSummary):
            return NotImplemented
        return self.as_tuple() == other.as_tuple()

    def __repr__(self):
        return f"GroupSummary{self.as_tuple()}"


def format_package_count(included: int, count: int) -> str:
    return f"{included}/{count} package{'' if count == 1 else 's'}"


def format_unit_count(included: int, count: int) -> str:
    return f"{included}/{count} unit{'' if count == 1 else 's'}"


class Hierarchy:
    def __init__(self, nodes: List[PackageNode], excluded_package_ids=None):
        self.nodes = nodes
        self.excluded_package_ids = frozenset(excluded_package_ids or ())
        self.by_flag: Dict[GenerationFlag, List[PackageNode]] = {}
        for node in nodes:
            self.by_flag.setdefault(node.origin_flag, []).append(node)

    @classmethod
    def empty(cls) -> "Hierarchy":
        return cls([])

    @property
    def ungrouped(self) -> Optional[PackageNode]:
        if self.nodes and self.nodes[0].is_ungrouped:
            return self.nodes[0]
        return None

    def nodes_for(self, flag) -> List[PackageNode]:
        return self.by_flag.get(GenerationFlag(flag), [])

    def unit_count(self) -> int:
        return sum(len(node.units) for node in self.nodes)

    def summary(self, flag, filters: FilterStore) -> GroupSummary:
        nodes = [node for node in self.nodes_for(flag) if not node.is_ungrouped]
        included_packages = sum(1 for node in nodes if filters.is_included(PACKAGES, node.id))
        units = [unit for node in self.nodes_for(flag) for unit in node.units]
        included_units = sum(1 for unit in units if filters.is_included(UNITS, unit.id))
        return GroupSummary(included_packages, len(nodes), included_units, len(units))

    def __eq__(self, other):
        if not isinstance(other, Hierarchy):
            return NotImplemented
        return self.nodes == other.nodes and self.excluded_package_ids == other.excluded_package_ids

    def __len__(self):
        return len(self.nodes)

    def __iter__(self):
        return iter(self.nodes)

    def __repr__(self):
        return f"Hierarchy({self.nodes!r})"


def _sort_key(display_name, item_id):
    return (str(display_name).casefold(), str(item_id))


def _safe_resolve(resolve_owning_package, path) -> Optional[Package]:
    if resolve_owning_package is None:
        return None
    try:
        return resolve_owning_package(path)
    except Exception as e:
        print(f"[HIERARCHY] ⚠️ Could not resolve owning package for {path}: {e}")
        return None


def build_hierarchy(packages: Iterable[Package],
                    units: Iterable[UnitRecord],
                    excluded_package_ids: Optional[Iterable[str]] = None,
                    resolve_owning_package: Optional[Callable[[str], Optional[Package]]] = None,
                    is_eligible: Optional[Callable[[Package], bool]] = None) -> Hierarchy:
    """
    Builds the ordered package/unit hierarchy.

    Packages with no eligible units are dropped. Units whose definition file
    cannot be located are dropped as well. Units without an owning package
    form the ungrouped node at the front.
    """
    eligible: Dict[str, Package] = {}
    for package in packages or []:
        if package is None or not package.id or package.id in eligible:
            continue
        if is_eligible is not None:
            try:
                if not is_eligible(package):
                    continue
            except Exception as e:
                print(f"[HIERARCHY] ⚠️ Eligibility check failed for {package.id}: {e}")
                continue
        eligible[package.id] = package

    ordered_packages = sorted(eligible.values(), key=lambda p: _sort_key(p.display_name, p.id))

    seen_units = set()
    resolved_units = []
    for record in units or []:
        path = getattr(record, "definition_path", None)
        if not path:
            # Implicit units have no definition file and cannot be filtered
            continue
        unit_id = os.path.basename(str(path).replace("\\", "/"))
        if not unit_id or unit_id in seen_units:
            continue
        seen_units.add(unit_id)
        owner = _safe_resolve(resolve_owning_package, path)
        resolved_units.append(CodeUnit(unit_id, unit_id, owner.id if owner else None, path))

    resolved_units.sort(key=lambda u: _sort_key(u.display_name, u.id))

    units_by_package: Dict[str, List[CodeUnit]] = {}
    ungrouped = []
    for unit in resolved_units:
        if unit.owning_package_id is None:
            ungrouped.append(unit)
        else:
            units_by_package.setdefault(unit.owning_package_id, []).append(unit)

    nodes = [
        PackageNode(package, units_by_package[package.id])
        for package in ordered_packages
        if units_by_package.get(package.id)
    ]
    if ungrouped:
        nodes.insert(0, PackageNode(None, ungrouped))

    return Hierarchy(nodes, excluded_package_ids)
