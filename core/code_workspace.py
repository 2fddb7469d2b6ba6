# core/code_workspace.py

"""Locates and remembers the editor workspace file (*.code-workspace) of a project."""

import glob
import os

WORKSPACE_PATH_KEY_FORMAT = "project_visualstudiocode_workspacePath_{0}"


def _first_workspace_in(folder):
    if not folder or not os.path.isdir(folder):
        return None
    matches = sorted(glob.glob(os.path.join(folder, "*.code-workspace")))
    return matches[0] if matches else None


class CodeWorkspace:
    def __init__(self, prefs, project_id, project_dir):
        self.prefs = prefs
        self.project_dir = project_dir
        self._key = WORKSPACE_PATH_KEY_FORMAT.format(project_id)
        self.workspace_path = None
        self.absolute_path = None
        self._initialize()

    def _initialize(self):
        self.workspace_path = self.prefs.get_string(self._key)
        if not self.workspace_path:
            self.workspace_path = _first_workspace_in(self.project_dir)
            if self.workspace_path is None:
                parent = os.path.dirname(os.path.abspath(self.project_dir))
                self.workspace_path = _first_workspace_in(parent)
            if self.workspace_path is not None:
                print(f"[WORKSPACE] 🔍 Found workspace file: {self.workspace_path}")
                self.prefs.set_string(self._key, self.workspace_path)
        self._update_absolute_path()

    def _update_absolute_path(self):
        if self.workspace_path and os.path.isfile(self.workspace_path):
            self.absolute_path = os.path.abspath(self.workspace_path)
        else:
            self.absolute_path = None

    def set_workspace_path(self, value):
        if value == self.workspace_path:
            return
        if not value:
            self.prefs.delete_key(self._key)
        else:
            self.prefs.set_string(self._key, value)
        self.workspace_path = value or None
        self._update_absolute_path()

    def solution_or_workspace(self, solution):
        """The workspace file when one exists on disk, otherwise the solution."""
        if self.absolute_path is not None:
            return self.workspace_path
        return solution
