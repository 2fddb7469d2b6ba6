import os

import pytest

from core.code_workspace import CodeWorkspace, WORKSPACE_PATH_KEY_FORMAT
from core.prefs_store import PrefsStore


@pytest.fixture
def prefs(tmp_path):
    return PrefsStore(base_path=tmp_path / "prefs")


def test_discovers_workspace_in_project_dir(tmp_path, prefs):
    project = tmp_path / "game"
    project.mkdir()
    workspace_file = project / "game.code-workspace"
    workspace_file.write_text("{}")

    workspace = CodeWorkspace(prefs, "game", str(project))

    assert workspace.workspace_path == str(workspace_file)
    assert workspace.absolute_path == os.path.abspath(str(workspace_file))
    assert prefs.get_string(WORKSPACE_PATH_KEY_FORMAT.format("game")) == str(workspace_file)


def test_falls_back_to_parent_folder(tmp_path, prefs):
    project = tmp_path / "game"
    project.mkdir()
    workspace_file = tmp_path / "all.code-workspace"
    workspace_file.write_text("{}")

    workspace = CodeWorkspace(prefs, "game", str(project))
    assert workspace.workspace_path == str(workspace_file)


def test_no_workspace_uses_solution(tmp_path, prefs):
    project = tmp_path / "game"
    project.mkdir()

    workspace = CodeWorkspace(prefs, "game", str(project))
    assert workspace.workspace_path is None
    assert workspace.solution_or_workspace("game.sln") == "game.sln"


def test_clearing_path_deletes_key(tmp_path, prefs):
    project = tmp_path / "game"
    project.mkdir()
    workspace_file = project / "game.code-workspace"
    workspace_file.write_text("{}")

    workspace = CodeWorkspace(prefs, "game", str(project))
    assert workspace.solution_or_workspace("game.sln") == str(workspace_file)

    workspace.set_workspace_path("")
    assert not prefs.has_key(WORKSPACE_PATH_KEY_FORMAT.format("game"))
    assert workspace.solution_or_workspace("game.sln") == "game.sln"
