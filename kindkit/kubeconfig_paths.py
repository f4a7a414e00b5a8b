"""Locating KUBECONFIG files the way kubectl does, and locking them."""

from __future__ import annotations

import contextlib
import os
import posixpath
import stat
from collections.abc import Callable, Iterable, Iterator

KUBECONFIG_ENV = "KUBECONFIG"

GetEnv = Callable[[str], str]


def _environ(name: str) -> str:
    return os.environ.get(name, "")


def _current_goos() -> str:
    return "windows" if os.name == "nt" else "posix"


def paths(explicit_path: str, get_env: GetEnv | None = None) -> list[str]:
    """Return the kubeconfig paths to consider.

    An explicit path wins; otherwise $KUBECONFIG is used as a path list;
    otherwise $HOME/.kube/config.
    """
    get_env = get_env or _environ
    if explicit_path:
        return [explicit_path]

    found = discard_empty_and_duplicates(get_env(KUBECONFIG_ENV).split(os.pathsep))
    if found:
        return found

    home = home_dir(_current_goos(), get_env)
    return [posixpath.normpath(posixpath.join(home, ".kube", "config"))]


def path_for_merge(explicit_path: str, get_env: GetEnv | None = None) -> str:
    """Return the file kubectl would merge into."""
    candidates = paths(explicit_path, get_env)
    if len(candidates) == 1:
        return candidates[0]
    return next((p for p in candidates if file_exists(p)), candidates[-1])


def file_exists(filename: str) -> bool:
    """Return True if filename exists and is not a directory."""
    try:
        info = os.stat(filename)
    except OSError:
        return False
    return not stat.S_ISDIR(info.st_mode)


def discard_empty_and_duplicates(paths: Iterable[str]) -> list[str]:
    """Drop empty entries and repeats, keeping first occurrences in order."""
    return list(dict.fromkeys(p for p in paths if p))


def home_dir(goos: str, get_env: GetEnv | None = None) -> str:
    """Return the current user's home directory.

    On Windows the choice follows %HOME%, %HOMEDRIVE%%HOMEPATH% and
    %USERPROFILE%, preferring one holding .kube/config, then one that is a
    writeable directory, then one that exists, then one that is set.
    """
    get_env = get_env or _environ
    if goos != "windows":
        return get_env("HOME")

    home = get_env("HOME")
    home_drive, home_path = get_env("HOMEDRIVE"), get_env("HOMEPATH")
    drive_path = home_drive + home_path if home_drive and home_path else ""
    user_profile = get_env("USERPROFILE")

    for candidate in (home, drive_path, user_profile):
        if candidate and os.path.exists(os.path.join(candidate, ".kube", "config")):
            return candidate

    first_set = ""
    first_existing = ""
    for candidate in (home, user_profile, drive_path):
        if not candidate:
            continue
        first_set = first_set or candidate
        try:
            info = os.stat(candidate)
        except OSError:
            continue
        first_existing = first_existing or candidate
        if stat.S_ISDIR(info.st_mode) and stat.S_IMODE(info.st_mode) & 0o200:
            return candidate

    return first_existing or first_set


def lock_name(filename: str) -> str:
    """Return the lock file name used for filename."""
    return filename + ".lock"


def lock_file(filename: str) -> None:
    """Create the lock file for filename, creating its directory if needed.

    Raises FileExistsError if the file is already locked.
    """
    directory = os.path.dirname(filename) or "."
    os.makedirs(directory, mode=0o755, exist_ok=True)
    fd = os.open(lock_name(filename), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0)
    os.close(fd)


def unlock_file(filename: str) -> None:
    """Remove the lock file for filename."""
    os.remove(lock_name(filename))


@contextlib.contextmanager
def locked(filename: str) -> Iterator[str]:
    """Hold the lock on filename for the duration of the block."""
    lock_file(filename)
    try:
        yield filename
    finally:
        with contextlib.suppress(OSError):
            unlock_file(filename)