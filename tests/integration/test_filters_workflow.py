import pytest
import json
import os

from core.filter_view import ToggleRow, ShowFilters, SetExpanded, ResetFilters, RegenerateRequested, ToggleGenerationFlag
from core.generation_flags import GenerationFlag
from core.generator import CatalogGenerator, GENERATED_LISTING_FILE
from core.prefs_store import PrefsStore
from ui.controllers.filters_controller import FiltersController
from tests.fixtures.catalog_gen import create_test_project, SAMPLE_PACKAGES, SAMPLE_UNITS

import main


@pytest.fixture
def project(tmp_path):
    return create_test_project(tmp_path, SAMPLE_PACKAGES, SAMPLE_UNITS, {
        "Packages/com.acme.core/Runtime/Player.cs": "class Player {}",
        "Packages/com.vendor.net/Client.cs": "class Client {}",
        "Assets/Scripts/Game.cs": "class Game {}",
    })


@pytest.fixture
def generator(project):
    project_root, catalog_path = project
    prefs = PrefsStore(base_path=project_root)
    return CatalogGenerator(str(project_root), str(catalog_path), prefs, project_id="demo")


@pytest.fixture
def controller(generator, qtbot):
    ctl = FiltersController(generator, settings={"live_watcher": False})
    yield ctl
    ctl.stop_file_watcher()


def _listing(generator):
    with open(os.path.join(generator.project_root_directory, GENERATED_LISTING_FILE), encoding="utf-8") as f:
        return [u["name"] for u in json.load(f)["units"]]


def test_hierarchy_from_catalog(controller):
    hierarchy = controller.cache.hierarchy()
    # Embedded and local are enabled by default; registry is not
    assert [n.id for n in hierarchy] == [None, "com.acme.core", "com.acme.tools"]
    assert [u.id for u in hierarchy.ungrouped.units] == ["Game.asmdef"]
    # Blank display name falls back to the package id
    assert hierarchy.nodes[2].display_name == "com.acme.tools"


def test_toggle_persists_and_survives_restart(controller, generator, project, qtbot):
    controller.process([ShowFilters(True), SetExpanded(GenerationFlag.EMBEDDED, True)])
    with qtbot.waitSignal(controller.cache.filters_changed, timeout=1000):
        controller.process([ToggleRow("unit", "Acme.Core.Editor.asmdef")])

    assert generator.excluded_units == ["Acme.Core.Editor.asmdef"]

    project_root, catalog_path = project
    restarted = CatalogGenerator(str(project_root), str(catalog_path), PrefsStore(base_path=project_root), project_id="demo")
    assert restarted.excluded_units == ["Acme.Core.Editor.asmdef"]

    package_row = [r for r in controller.rows if r.kind == "package" and r.item_id == "com.acme.core"][0]
    assert package_row.mixed


def test_enabling_flag_rebuilds_once(controller, generator):
    controller.process()
    assert controller.cache.rebuild_count == 1

    controller.process([ToggleGenerationFlag(GenerationFlag.REGISTRY)])
    assert generator.active_flags.contains(GenerationFlag.REGISTRY)
    assert controller.cache.rebuild_count == 2
    assert "com.vendor.net" in [n.id for n in controller.cache.hierarchy()]

    controller.process()
    assert controller.cache.rebuild_count == 2


def test_regenerate_respects_filters(controller, generator):
    controller.process([ToggleRow("package", "com.acme.tools"), RegenerateRequested()])
    assert _listing(generator) == ["Acme.Core", "Acme.Core.Editor", "Game", "Assembly-CSharp"]

    controller.process([ResetFilters(), RegenerateRequested()])
    assert generator.excluded_packages == []
    assert "Acme.Tools" in _listing(generator)


def test_open_path_warns_outside_generated_project(controller, generator, project, qtbot):
    project_root, _ = project
    client = os.path.join(str(project_root), "Packages", "com.vendor.net", "Client.cs")

    with qtbot.waitSignal(controller.warning, timeout=1000) as blocker:
        assert controller.open_path(client)
    assert "Registry packages" in blocker.args[0]

    assert controller.open_path(os.path.join(str(project_root), "Assets", "Scripts", "Game.cs"))
    assert not controller.open_path(os.path.join(str(project_root), "Assets", "logo.png"))


def test_fs_events_trigger_incremental_sync(controller, generator, project):
    project_root, _ = project
    controller.on_fs_events([{'action': 'created', 'src_path': os.path.join(str(project_root), "Assets", "New.cs"), 'dst_path': None}])
    assert generator.sync_count == 1

    controller.on_fs_events([{'action': 'created', 'src_path': os.path.join(str(project_root), "notes.txt"), 'dst_path': None}])
    assert generator.sync_count == 1


def test_broken_catalog_yields_empty_hierarchy(tmp_path, qtbot):
    (tmp_path / "catalog.json").write_text("{ not json")
    generator = CatalogGenerator(str(tmp_path), str(tmp_path / "catalog.json"), PrefsStore(base_path=tmp_path))
    controller = FiltersController(generator)
    assert len(controller.cache.hierarchy()) == 0


def test_main_lists_and_syncs(project, capsys, qtbot):
    project_root, _ = project
    exit_code = main.main(["--project", str(project_root), "--exclude-package", "com.acme.tools", "--list", "--sync"])
    output = capsys.readouterr().out

    assert exit_code == 0
    # The empty embedded package is not listed
    assert "Embedded packages: 1/1 packages, 2/2 units" in output
    assert "Local packages: 0/1 packages, 1/1 units" in output
    assert "[ ] com.acme.tools" in output
    assert "Vendor Net" not in output
    assert os.path.exists(os.path.join(str(project_root), GENERATED_LISTING_FILE))


def test_unknown_origin_package_is_neither_generated_nor_covered(tmp_path, qtbot):
    packages = SAMPLE_PACKAGES + [{"name": "com.odd.pkg", "source": "unknown", "path": "Packages/com.odd.pkg"}]
    units = SAMPLE_UNITS + [("Odd", "Packages/com.odd.pkg/Odd.asmdef")]
    project_root, catalog_path = create_test_project(tmp_path, packages, units)
    generator = CatalogGenerator(str(project_root), str(catalog_path), PrefsStore(base_path=project_root))
    generator.active_flags = generator.active_flags.set(GenerationFlag.UNKNOWN)
    controller = FiltersController(generator)

    assert "com.odd.pkg" not in [p.id for p in generator.eligible_packages]
    controller.sync.request_sync()
    assert "Odd" not in _listing(generator)

    script = os.path.join(str(project_root), "Packages", "com.odd.pkg", "Odd.cs")
    assert controller.sync.is_path_covered(script) == (False, GenerationFlag.NONE)
    with qtbot.waitSignal(controller.warning, timeout=1000) as blocker:
        controller.open_path(script)
    assert "unknown source" in blocker.args[0]


def test_main_prints_hierarchy_only_when_listing(project, capsys, qtbot):
    project_root, _ = project
    assert main.main(["--project", str(project_root)]) == 0
    assert "Embedded packages:" not in capsys.readouterr().out

    assert main.main(["--project", str(project_root), "--list"]) == 0
    assert "Embedded packages: 1/1 packages, 2/2 units" in capsys.readouterr().out
