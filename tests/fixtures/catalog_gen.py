import json
import os


def create_test_project(base_path, packages, units, structure=None):
    """
    Creates a project folder with a catalog.json describing its packages and units.

    Args:
        base_path (pathlib.Path): Where to create the project folder.
        packages (list): Dicts with "name", "source" and optionally
                         "displayName" and "path".
        units (list): (name, definition_path) tuples; definition_path may be None.
        structure (dict, optional): Extra files to create, keyed by relative
                                    path, values are file contents.
    Returns:
        tuple: (project root path, catalog path)
    """
    project_root = base_path / "test_project"
    os.makedirs(project_root, exist_ok=True)

    catalog = {
        "packages": packages,
        "units": [{"name": name, "definitionPath": path} for name, path in units],
    }
    catalog_path = project_root / "catalog.json"
    with open(catalog_path, "w", encoding="utf-8") as f:
        json.dump(catalog, f, indent=4)

    for rel_path, content in (structure or {}).items():
        path = project_root / rel_path
        os.makedirs(path.parent, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    return project_root, catalog_path


SAMPLE_PACKAGES = [
    {"name": "com.acme.core", "displayName": "Acme Core", "source": "embedded", "path": "Packages/com.acme.core"},
    {"name": "com.acme.tools", "displayName": "", "source": "local", "path": "Packages/com.acme.tools"},
    {"name": "com.vendor.net", "displayName": "Vendor Net", "source": "registry", "path": "Packages/com.vendor.net"},
    {"name": "com.acme.empty", "displayName": "Acme Empty", "source": "embedded", "path": "Packages/com.acme.empty"},
]

SAMPLE_UNITS = [
    ("Acme.Core", "Packages/com.acme.core/Runtime/Acme.Core.asmdef"),
    ("Acme.Core.Editor", "Packages/com.acme.core/Editor/Acme.Core.Editor.asmdef"),
    ("Acme.Tools", "Packages/com.acme.tools/Acme.Tools.asmdef"),
    ("Vendor.Net", "Packages/com.vendor.net/Vendor.Net.asmdef"),
    ("Game", "Assets/Scripts/Game.asmdef"),
    ("Assembly-CSharp", None),
]
