# core/filter_view.py

"""
Presentation step of the advanced filters.

draw() is pure: it takes the current view state, the hierarchy, the filter
decisions and a batch of input events, and returns the next view state, the
rows to render and the side effects to apply. It never touches the cache or
the generator; the controller applies the returned requests.
"""

from typing import List, Tuple

from .filter_store import PACKAGES, UNITS, FilterStore
from .generation_flags import FILTERABLE_FLAGS, FlagSet, GenerationFlag, flag_description
from .hierarchy import format_package_count, format_unit_count


# ---------------- view state ----------------
class ViewState:
    def __init__(self, expanded=frozenset(), show_filters=False):
        self.expanded = frozenset(expanded)
        self.show_filters = bool(show_filters)

    def with_expanded(self, flag, expanded) -> "ViewState":
        flags = set(self.expanded)
        if expanded:
            flags.add(GenerationFlag(flag))
        else:
            flags.discard(GenerationFlag(flag))
        return ViewState(flags, self.show_filters)

    def with_show_filters(self, visible) -> "ViewState":
        return ViewState(self.expanded, visible)

    def __eq__(self, other):
        if not isinstance(other, ViewState):
            return NotImplemented
        return (self.expanded, self.show_filters) == (other.expanded, other.show_filters)

    def __repr__(self):
        return f"ViewState(expanded={sorted(f.name for f in self.expanded)}, show_filters={self.show_filters})"


# ---------------- input events ----------------
class ToggleRow:
    """A click on a package or unit row, with the bulk-edit modifier state at click time."""

    def __init__(self, kind, item_id, force_held=False, force_value=True):
        self.kind = kind
        self.item_id = item_id
        self.force_held = force_held
        self.force_value = force_value


class SetExpanded:
    def __init__(self, flag, expanded):
        self.flag = GenerationFlag(flag)
        self.expanded = expanded


class ShowFilters:
    def __init__(self, visible):
        self.visible = visible


class ResetFilters:
    pass


class RegenerateRequested:
    pass


class ToggleGenerationFlag:
    def __init__(self, flag):
        self.flag = GenerationFlag(flag)


# ---------------- side-effect requests ----------------
class SetFilterValue:
    def __init__(self, kind, item_id, value):
        self.kind = kind
        self.item_id = item_id
        self.value = value

    def __eq__(self, other):
        if not isinstance(other, SetFilterValue):
            return NotImplemented
        return (self.kind, self.item_id, self.value) == (other.kind, other.item_id, other.value)

    def __repr__(self):
        return f"SetFilterValue({self.kind}, {self.item_id!r}, {self.value})"


class ResetFiltersRequest:
    def __eq__(self, other):
        return isinstance(other, ResetFiltersRequest)


class SyncIntent:
    def __eq__(self, other):
        return isinstance(other, SyncIntent)


class ToggleFlagRequest:
    def __init__(self, flag):
        self.flag = GenerationFlag(flag)

    def __eq__(self, other):
        return isinstance(other, ToggleFlagRequest) and other.flag == self.flag


# ---------------- rows ----------------
FLAG_ROW = "flag"
GROUP_ROW = "group"
PACKAGE_ROW = "package"
UNIT_ROW = "unit"


class Row:
    def __init__(self, kind, label, depth=0, item_id=None, flag=GenerationFlag.NONE,
                 checked=True, mixed=False, enabled=True, expanded=False):
        self.kind = kind
        self.label = label
        self.depth = depth
        self.item_id = item_id
        self.flag = flag
        self.checked = checked
        self.mixed = mixed
        self.enabled = enabled
        self.expanded = expanded

    def __repr__(self):
        return f"Row({self.kind}, {self.label!r}, depth={self.depth}, checked={self.checked})"


def _apply_events(state, filters, active_flags, events):
    """Folds the input events into a new view state, effective filters and requests."""
    effective = filters.snapshot()
    flags = FlagSet(active_flags)
    requests = []

    for event in events or ():
        if isinstance(event, ToggleRow):
            if event.kind not in (PACKAGES, UNITS):
                continue
            current = effective.is_included(event.kind, event.item_id)
            value = FilterStore.next_value(current, event.force_held, event.force_value)
            if value != current:
                effective.flip_or_force(event.kind, event.item_id, current, True, value)
                requests.append(SetFilterValue(event.kind, event.item_id, value))
        elif isinstance(event, SetExpanded):
            state = state.with_expanded(event.flag, event.expanded)
        elif isinstance(event, ShowFilters):
            state = state.with_show_filters(event.visible)
        elif isinstance(event, ResetFilters):
            effective.reset()
            state = ViewState(frozenset(), state.show_filters)
            requests.append(ResetFiltersRequest())
        elif isinstance(event, RegenerateRequested):
            requests.append(SyncIntent())
        elif isinstance(event, ToggleGenerationFlag):
            flags = flags.toggle(event.flag)
            requests.append(ToggleFlagRequest(event.flag))

    return state, effective, flags, requests


def _node_rows(node, filters, depth):
    rows = []
    for unit in node.units:
        rows.append(Row(UNIT_ROW, unit.display_name, depth, unit.id, node.origin_flag,
                        checked=filters.is_included(UNITS, unit.id)))
    return rows


def _group_rows(hierarchy, flag, state, filters, flags):
    enabled = flags.contains(flag)
    nodes = hierarchy.nodes_for(flag)
    summary = hierarchy.summary(flag, filters)
    can_expand = enabled and summary.total_packages > 0
    expanded = can_expand and flag in state.expanded

    label = ""
    if enabled:
        label = (f"{format_package_count(summary.included_packages, summary.total_packages)}, "
                 f"{format_unit_count(summary.included_units, summary.total_units)}")
    rows = [Row(GROUP_ROW, label, 1, flag=flag, enabled=can_expand, expanded=expanded)]
    if not expanded:
        return rows

    for node in nodes:
        included = filters.is_included(PACKAGES, node.id)
        rows.append(Row(PACKAGE_ROW, node.display_name, 2, node.id, flag,
                        checked=included, mixed=included and node.is_mixed(filters)))
        # Units of an excluded package are not shown
        if included:
            rows.extend(_node_rows(node, filters, 3))
    return rows


def draw(state: ViewState, hierarchy, filters: FilterStore, active_flags, events=()) -> Tuple[ViewState, List[Row], list]:
    """Returns (next state, rows to render, side-effect requests)."""
    state, effective, flags, requests = _apply_events(state, filters, active_flags, events)

    rows = []
    for flag in FILTERABLE_FLAGS:
        rows.append(Row(FLAG_ROW, flag_description(flag), 0, flag=flag, checked=flags.contains(flag)))
        if state.show_filters:
            rows.extend(_group_rows(hierarchy, flag, state, effective, flags))

    rows.append(Row(FLAG_ROW, flag_description(GenerationFlag.PLAYER_ASSEMBLIES), 0,
                    flag=GenerationFlag.PLAYER_ASSEMBLIES,
                    checked=flags.contains(GenerationFlag.PLAYER_ASSEMBLIES)))

    ungrouped = hierarchy.ungrouped
    if state.show_filters and ungrouped is not None:
        included = ungrouped.included_unit_count(effective)
        expanded = GenerationFlag.NONE in state.expanded
        # The ungrouped bucket itself cannot be excluded, only its units
        rows.append(Row(GROUP_ROW, f"{ungrouped.display_name}: {format_unit_count(included, len(ungrouped.units))}",
                        0, flag=GenerationFlag.NONE, checked=True,
                        mixed=included < len(ungrouped.units), enabled=False, expanded=expanded))
        if expanded:
            rows.extend(_node_rows(ungrouped, effective, 1))

    return state, rows, requests
