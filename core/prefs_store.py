import os
import json
import hashlib
import shutil
from datetime import datetime, timedelta
from pathlib import Path

PREFS_FILE = "prefs.json"

# Backup Strategy Configuration
BACKUP_DIR = "backups"
MAX_BACKUPS = 5
BACKUP_RETENTION_DAYS = 7

SCHEMA_VERSION = 1

# Global variable to hold the base path for testing
_TESTING_BASE_PATH = None

DEFAULT_IGNORE_PATTERNS = [
    ".git", "*.tmp", "*.meta", "Library", "Temp", "obj", "Logs", "__pycache__"
]


def get_default_settings():
    """Get complete default settings structure."""
    return {
        "live_watcher": True,
        "ignore_patterns": set(DEFAULT_IGNORE_PATTERNS),
        "poll_interval_ms": 150
    }


def ensure_complete_settings(settings):
    """Ensure settings has all required fields with proper defaults."""
    if not settings or not isinstance(settings, dict):
        return get_default_settings()

    defaults = get_default_settings()
    complete_settings = {}

    live_watcher = settings.get("live_watcher", defaults["live_watcher"])
    complete_settings["live_watcher"] = live_watcher if isinstance(live_watcher, bool) else defaults["live_watcher"]

    poll_interval = settings.get("poll_interval_ms")
    if isinstance(poll_interval, int) and not isinstance(poll_interval, bool) and poll_interval > 0:
        complete_settings["poll_interval_ms"] = poll_interval
    else:
        complete_settings["poll_interval_ms"] = defaults["poll_interval_ms"]

    # Handle ignore_patterns with proper type conversion
    ignore_patterns = settings.get("ignore_patterns")
    if isinstance(ignore_patterns, (list, set, tuple)):
        complete_settings["ignore_patterns"] = {p for p in ignore_patterns if isinstance(p, str)}
    else:
        complete_settings["ignore_patterns"] = defaults["ignore_patterns"]

    return complete_settings


def set_testing_mode(temp_dir):
    """Sets the base path for testing purposes."""
    global _TESTING_BASE_PATH
    _TESTING_BASE_PATH = temp_dir


def _get_prefs_file_path(base_path=None):
    """Returns the absolute path to the prefs file."""
    if _TESTING_BASE_PATH:
        return Path(_TESTING_BASE_PATH).resolve() / PREFS_FILE
    if base_path:
        return Path(base_path).resolve() / PREFS_FILE
    return Path.cwd() / PREFS_FILE


def _checksum(data):
    # The checksum is calculated on the JSON dump without the checksum field,
    # always with indent=4 so that load and save agree.
    json_bytes = json.dumps(data, indent=4, sort_keys=True).encode('utf-8')
    return hashlib.sha256(json_bytes).hexdigest()


def _load_and_verify(filepath):
    """Loads a JSON file, verifies its checksum, and returns the data."""
    with open(filepath, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Unexpected prefs layout.")

    checksum = data.pop("checksum", None)
    if not checksum:
        raise ValueError("Missing checksum.")

    if checksum != _checksum(data):
        raise ValueError("Checksum mismatch.")

    if not isinstance(data.get("entries"), dict):
        raise ValueError("Missing entries.")

    return data


def _default_data():
    return {"schema_version": SCHEMA_VERSION, "entries": {}}


def _manage_backups(source_path, prefs_file_path):
    """Creates a timestamped backup and prunes old backups based on retention policies."""
    backup_dir = prefs_file_path.parent / BACKUP_DIR
    backup_dir.mkdir(exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    dest_backup_path = backup_dir / f"prefs_{timestamp}.bak"
    shutil.copy(source_path, dest_backup_path)

    try:
        all_backups = sorted(backup_dir.glob("prefs_*.bak"), key=os.path.getmtime, reverse=True)

        if len(all_backups) > MAX_BACKUPS:
            for old_backup in all_backups[MAX_BACKUPS:]:
                old_backup.unlink()
                print(f"[PREFS] 🗑️ Removed backup (limit exceeded): {old_backup}")

        retention_limit = datetime.now() - timedelta(days=BACKUP_RETENTION_DAYS)
        for backup in sorted(backup_dir.glob("prefs_*.bak"), key=os.path.getmtime):
            backup_time = datetime.fromtimestamp(backup.stat().st_mtime)
            if backup_time < retention_limit:
                backup.unlink()
                print(f"[PREFS] 🗑️ Removed backup (expired): {backup}")

    except OSError as e:
        print(f"[PREFS] ❌ Error pruning backups: {e}")


def load_prefs(base_path=None):
    """Loads the prefs file, with integrity checks and backup fallback."""
    prefs_file_path = _get_prefs_file_path(base_path)
    if not prefs_file_path.exists():
        print(f"[PREFS] ℹ️ Prefs file not found: {prefs_file_path}. Using defaults.")
        return _default_data()

    try:
        return _load_and_verify(prefs_file_path)
    except (json.JSONDecodeError, ValueError, OSError, TypeError) as e:
        print(f"[PREFS] ⚠️ Could not load prefs file '{prefs_file_path}': {e}")

    # Attempt to restore from the backups directory
    backup_dir = prefs_file_path.parent / BACKUP_DIR
    if backup_dir.exists():
        backups = sorted(backup_dir.glob("prefs_*.bak"), key=os.path.getmtime, reverse=True)
        for backup_file in backups:
            try:
                print(f"[PREFS] 🔄 Attempting to restore from backup: {backup_file}")
                data = _load_and_verify(backup_file)
                shutil.copy(backup_file, prefs_file_path)
                print(f"[PREFS] ✅ Restored from backup: {backup_file}")
                return data
            except (json.JSONDecodeError, ValueError, OSError, TypeError) as backup_e:
                print(f"[PREFS] ⚠️ Could not restore from backup '{backup_file}': {backup_e}")
                continue  # Try the next oldest backup

    print("[PREFS] ℹ️ No valid backup found. Using defaults.")
    return _default_data()


def save_prefs(data, base_path=None):
    """Writes the prefs data with a checksum through a temp file, keeping a backup."""
    prefs_file_path = _get_prefs_file_path(base_path)
    data_to_save = {
        "schema_version": SCHEMA_VERSION,
        "entries": dict(data.get("entries", {}))
    }
    final_data = dict(data_to_save)
    final_data["checksum"] = _checksum(data_to_save)

    temp_file_path = prefs_file_path.with_suffix('.json.tmp')
    try:
        prefs_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(temp_file_path, 'w', encoding='utf-8') as f:
            json.dump(final_data, f, indent=4, sort_keys=True)

        _manage_backups(temp_file_path, prefs_file_path)
        shutil.move(temp_file_path, prefs_file_path)
        return True
    except (OSError, TypeError, ValueError) as e:
        print(f"[PREFS] ❌ Error saving prefs: {e}")
        return False


class PrefsStore:
    """
    String-keyed persisted entries, in the spirit of an editor-prefs store.

    Every write is immediate and synchronous. There is no atomicity across
    two keys: a crash between two writes leaves the first one applied.
    """

    def __init__(self, base_path=None):
        self.base_path = base_path
        self._data = load_prefs(base_path)

    @property
    def path(self):
        return _get_prefs_file_path(self.base_path)

    def reload(self):
        self._data = load_prefs(self.base_path)

    def has_key(self, key):
        return key in self._data["entries"]

    def get_string(self, key, default=None):
        value = self._data["entries"].get(key, default)
        if value is default or isinstance(value, str):
            return value
        return default

    def set_string(self, key, value):
        self._data["entries"][key] = "" if value is None else str(value)
        return save_prefs(self._data, self.base_path)

    def get_int(self, key, default=0):
        value = self._data["entries"].get(key, default)
        if isinstance(value, bool):
            return default
        if isinstance(value, int):
            return value
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def set_int(self, key, value):
        self._data["entries"][key] = int(value)
        return save_prefs(self._data, self.base_path)

    def get_settings(self, key="settings"):
        raw = self._data["entries"].get(key)
        return ensure_complete_settings(raw)

    def set_settings(self, settings, key="settings"):
        complete = ensure_complete_settings(settings)
        # Sets are not JSON serializable
        complete["ignore_patterns"] = sorted(complete["ignore_patterns"])
        self._data["entries"][key] = complete
        return save_prefs(self._data, self.base_path)

    def delete_key(self, key):
        if key not in self._data["entries"]:
            return False
        del self._data["entries"][key]
        return save_prefs(self._data, self.base_path)
