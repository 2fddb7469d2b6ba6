# --- File: main.py (Bootstrap) ---
import argparse
import os
import signal
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from core.code_workspace import CodeWorkspace
from core.generator import CatalogGenerator
from core.generation_flags import FILTERABLE_FLAGS, GenerationFlag, flag_description
from core.installation_discovery import InstallationDiscovery
from core.prefs_store import PrefsStore
from ui.controllers.filters_controller import FiltersController


def build_parser():
    parser = argparse.ArgumentParser(description="Inspect and edit project-generation filters.")
    parser.add_argument("--project", default=os.getcwd(), help="Project root directory")
    parser.add_argument("--catalog", default=None, help="Catalog JSON (default: <project>/catalog.json)")
    parser.add_argument("--exclude-package", action="append", default=[], help="Exclude a package by id")
    parser.add_argument("--exclude-unit", action="append", default=[], help="Exclude a unit by id")
    parser.add_argument("--reset", action="store_true", help="Clear all package and unit filters")
    parser.add_argument("--list", action="store_true", help="Print the filter hierarchy grouped by origin")
    parser.add_argument("--sync", action="store_true", help="Regenerate project files")
    parser.add_argument("--watch", action="store_true", help="Keep running and sync on file changes")
    return parser


def print_hierarchy(controller):
    cache = controller.cache
    hierarchy = cache.hierarchy()
    summaries = cache.summaries()
    for flag in [GenerationFlag.NONE] + FILTERABLE_FLAGS:
        nodes = hierarchy.nodes_for(flag)
        if not nodes:
            continue
        summary = summaries[flag]
        title = flag_description(flag) or "Ungrouped"
        print(f"{title}: {summary.included_packages}/{summary.total_packages} packages, "
              f"{summary.included_units}/{summary.total_units} units")
        for node in nodes:
            marker = "[x]" if cache.filters.is_included("package", node.id) else "[ ]"
            if node.is_mixed(cache.filters):
                marker = "[-]"
            print(f"  {marker} {node.display_name}")
            for unit in node.units:
                unit_marker = "[x]" if cache.filters.is_included("unit", unit.id) else "[ ]"
                print(f"      {unit_marker} {unit.display_name}")


def main(argv=None):
    """Application entry point."""
    args = build_parser().parse_args(argv)
    print("[MAIN] 🚀 Starting...")
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])

    discovery = InstallationDiscovery.instance()
    discovery.start()

    project = os.path.abspath(args.project)
    catalog = args.catalog or os.path.join(project, "catalog.json")
    prefs = PrefsStore(base_path=project)
    generator = CatalogGenerator(project, catalog, prefs)
    controller = FiltersController(generator, settings=prefs.get_settings())

    workspace = CodeWorkspace(prefs, generator.project_id, project)
    if workspace.absolute_path:
        print(f"[MAIN] 🗂️ Workspace file: {workspace.absolute_path}")

    if args.reset:
        controller.cache.reset_filters()
    for package_id in args.exclude_package:
        controller.cache.set_value("package", package_id, False)
    for unit_id in args.exclude_unit:
        controller.cache.set_value("unit", unit_id, False)

    if args.list:
        print_hierarchy(controller)

    installations = discovery.installations()
    for installation in installations:
        print(f"[MAIN] 🖥️ {installation.name}: {installation.path}")

    exit_code = 0
    if args.sync:
        request = controller.sync.request_sync()
        exit_code = 0 if request.succeeded else 1

    if args.watch:
        controller.settings["live_watcher"] = True
        controller.start_file_watcher()
        print("[MAIN] 🔄 Watching for changes, Ctrl+C to stop...")
        signal.signal(signal.SIGINT, lambda *_: app.quit())
        # Wake the event loop regularly so Python can run the signal handler
        heartbeat = QTimer()
        heartbeat.timeout.connect(lambda: None)
        heartbeat.start(200)
        try:
            exit_code = app.exec()
        finally:
            controller.stop_file_watcher()

    discovery.shutdown()
    return exit_code


if __name__ == '__main__':
    sys.exit(main())
