"""Writing, merging and removing kind entries in KUBECONFIG files."""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import TypeVar

from kindkit.kubeconfig_model import (
    Config,
    KubeconfigError,
    check_kubeadm_expectations,
    encode,
    kind_cluster_key,
    read,
)
from kindkit.kubeconfig_paths import locked, path_for_merge, paths

_Entry = TypeVar("_Entry")


def write(cfg: Config, config_path: str | os.PathLike[str]) -> None:
    """Write cfg to config_path, creating parent directories as needed."""
    encoded = encode(cfg)
    target = Path(config_path)
    try:
        target.parent.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        raise KubeconfigError(f"failed to create directory for KUBECONFIG: {exc}") from exc
    try:
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(encoded)
    except OSError as exc:
        raise KubeconfigError(f"failed to write KUBECONFIG: {exc}") from exc


def _upsert(entries: list[_Entry], new: _Entry) -> None:
    """Replace every entry sharing new's name, or append new if none does."""
    replaced = False
    for index, entry in enumerate(entries):
        if entry.name == new.name:  # type: ignore[attr-defined]
            entries[index] = copy.deepcopy(new)
            replaced = True
    if not replaced:
        entries.append(copy.deepcopy(new))


def merge(existing: Config, kind: Config) -> None:
    """Merge the kind config into existing, in place.

    Raises KubeconfigError if kind is not a single-entry kubeadm config.
    """
    check_kubeadm_expectations(kind)

    _upsert(existing.clusters, kind.clusters[0])
    _upsert(existing.users, kind.users[0])
    _upsert(existing.contexts, kind.contexts[0])

    existing.current_context = kind.current_context

    # Some clients depend on apiVersion and kind being present.
    if not existing.other_fields:
        existing.other_fields = copy.deepcopy(kind.other_fields)


def _lock_failure(exc: OSError) -> KubeconfigError:
    return KubeconfigError(f"failed to lock config file: {exc}")


def write_merged(kind_config: Config, explicit_config_path: str | os.PathLike[str] = "") -> None:
    """Merge kind_config into the kubeconfig kubectl would use and write it back.

    The current context is set to kind_config's current context.
    """
    config_path = path_for_merge(os.fspath(explicit_config_path))
    try:
        lock = locked(config_path)
        lock.__enter__()
    except OSError as exc:
        raise _lock_failure(exc) from exc
    try:
        existing = read(config_path)
        merge(existing, kind_config)
        write(existing, config_path)
    finally:
        lock.__exit__(None, None, None)


def remove(cfg: Config, kind_cluster_name: str) -> bool:
    """Drop the kind cluster's entries from cfg; return True if anything changed."""
    key = kind_cluster_key(kind_cluster_name)
    before = (len(cfg.clusters), len(cfg.users), len(cfg.contexts))

    cfg.clusters = [c for c in cfg.clusters if c.name != key]
    cfg.users = [u for u in cfg.users if u.name != key]
    cfg.contexts = [c for c in cfg.contexts if c.name != key]
    mutated = before != (len(cfg.clusters), len(cfg.users), len(cfg.contexts))

    if cfg.current_context == key:
        cfg.current_context = ""
        mutated = True
    return mutated


def remove_kind(kind_cluster_name: str, explicit_path: str | os.PathLike[str] = "") -> None:
    """Remove the kind cluster from every kubeconfig file kubectl would consider."""
    for config_path in paths(os.fspath(explicit_path)):
        try:
            lock = locked(config_path)
            lock.__enter__()
        except OSError as exc:
            raise _lock_failure(exc) from exc
        try:
            existing = read(config_path)
            if remove(existing, kind_cluster_name):
                write(existing, config_path)
        finally:
            lock.__exit__(None, None, None)


def context_for_cluster(kind_cluster_name: str) -> str:
    """Return the context name used for a kind cluster."""
    return kind_cluster_key(kind_cluster_name)