# core/installation_discovery.py

"""
One-shot discovery of external editor installations.

Discovery starts once per process on a background thread. Readers block on
the memoized result, which is fine because it is never read on a per-frame
path. A failing discovery logs the error and behaves as "no installations".
"""

import os
import shutil
import threading
from concurrent.futures import Future
from typing import Callable, Optional, Tuple

KNOWN_EDITORS = {
    "code": "Visual Studio Code",
    "code-insiders": "Visual Studio Code Insiders",
    "codium": "VSCodium",
    "cursor": "Cursor",
    "devenv": "Visual Studio",
    "rider": "JetBrains Rider",
}


class EditorInstallation:
    def __init__(self, name, path):
        self.name = name
        self.path = path

    def __eq__(self, other):
        if not isinstance(other, EditorInstallation):
            return NotImplemented
        return (self.name, self.path) == (other.name, other.path)

    def __hash__(self):
        return hash((self.name, self.path))

    def __repr__(self):
        return f"EditorInstallation({self.name!r}, {self.path!r})"


def discover_on_path() -> Tuple[EditorInstallation, ...]:
    """Looks up the known editor executables on PATH."""
    found = []
    for executable, name in KNOWN_EDITORS.items():
        path = shutil.which(executable)
        if path:
            found.append(EditorInstallation(name, os.path.realpath(path)))
    return tuple(found)


class InstallationDiscovery:
    _instance = None
    _instance_lock = threading.Lock()

    def __init__(self, discover: Optional[Callable[[], Tuple[EditorInstallation, ...]]] = None):
        self._discover = discover or discover_on_path
        self._future: Optional[Future] = None
        self._start_lock = threading.Lock()

    @classmethod
    def instance(cls) -> "InstallationDiscovery":
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = cls()
            return cls._instance

    @classmethod
    def reset_for_testing(cls, discover=None):
        with cls._instance_lock:
            cls._instance = cls(discover) if discover else None
            return cls._instance

    @property
    def started(self) -> bool:
        return self._future is not None

    def start(self) -> Future:
        """Starts discovery once. Later calls return the same future."""
        with self._start_lock:
            if self._future is None:
                self._future = Future()
                thread = threading.Thread(target=self._run, args=(self._future,), name="editor-discovery")
                thread.daemon = True
                thread.start()
                print("[DISCOVERY] 🔍 Discovering editor installations...")
            return self._future

    def _run(self, future):
        try:
            result = tuple(self._discover() or ())
        except Exception as e:
            print(f"[DISCOVERY] ❌ Error detecting editor installations: {e}")
            result = ()
        print(f"[DISCOVERY] ✅ Found {len(result)} editor installation(s)")
        future.set_result(result)

    def installations(self, timeout=None) -> Tuple[EditorInstallation, ...]:
        """Blocking read of the discovery result; starts discovery if needed."""
        return self.start().result(timeout)

    def find_for_path(self, editor_path) -> Optional[EditorInstallation]:
        if not editor_path:
            return None
        wanted = os.path.normcase(os.path.abspath(editor_path))
        for candidate in self.installations():
            if os.path.normcase(os.path.abspath(candidate.path)) == wanted:
                return candidate
        return None

    def shutdown(self):
        """Nothing to release: the discovery thread is a daemon and finishes on its own."""
