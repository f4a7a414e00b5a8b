"""KUBECONFIG data model, decoding and encoding.

Only the fields that kind inspects or modifies are modelled explicitly.
Everything else is kept as unstructured data in ``other_fields`` so it can
be written back unchanged.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


class KubeconfigError(Exception):
    """Raised when a KUBECONFIG cannot be read, decoded or validated."""


def _text(value: Any, what: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise KubeconfigError(f"{what}: expected a string, got {type(value).__name__}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise KubeconfigError(f"{what}: expected a mapping, got {type(value).__name__}")
    return value


def _sequence(value: Any, what: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise KubeconfigError(f"{what}: expected a list, got {type(value).__name__}")
    return value


def _rest(data: dict, known: set[str]) -> dict[str, Any]:
    return {key: copy.deepcopy(value) for key, value in data.items() if key not in known}


@dataclass
class Cluster:
    """How to communicate with a kubernetes cluster."""

    server: str = ""
    other_fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class NamedCluster:
    """A cluster together with its nickname."""

    name: str = ""
    cluster: Cluster = field(default_factory=Cluster)


@dataclass
class NamedUser:
    """A user entry; the user data is kept as it was read."""

    name: str = ""
    user: dict[str, Any] = field(default_factory=dict)


@dataclass
class Context:
    """References to a cluster and a user, plus any other context fields."""

    cluster: str = ""
    user: str = ""
    other_fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class NamedContext:
    """A context together with its nickname."""

    name: str = ""
    context: Context = field(default_factory=Context)


_CONFIG_KEYS = {"clusters", "users", "contexts", "current-context"}


def _cluster_from(data: Any) -> NamedCluster:
    entry = _mapping(data, "cluster entry")
    body = _mapping(entry.get("cluster"), "cluster")
    return NamedCluster(
        name=_text(entry.get("name"), "cluster name"),
        cluster=Cluster(
            server=_text(body.get("server"), "cluster server"),
            other_fields=_rest(body, {"server"}),
        ),
    )


def _user_from(data: Any) -> NamedUser:
    entry = _mapping(data, "user entry")
    return NamedUser(
        name=_text(entry.get("name"), "user name"),
        user=copy.deepcopy(_mapping(entry.get("user"), "user")),
    )


def _context_from(data: Any) -> NamedContext:
    entry = _mapping(data, "context entry")
    body = _mapping(entry.get("context"), "context")
    return NamedContext(
        name=_text(entry.get("name"), "context name"),
        context=Context(
            cluster=_text(body.get("cluster"), "context cluster"),
            user=_text(body.get("user"), "context user"),
            other_fields=_rest(body, {"cluster", "user"}),
        ),
    )


def _cluster_to(entry: NamedCluster) -> dict[str, Any]:
    body: dict[str, Any] = copy.deepcopy(entry.cluster.other_fields)
    if entry.cluster.server:
        body["server"] = entry.cluster.server
    return {"name": entry.name, "cluster": body}


def _user_to(entry: NamedUser) -> dict[str, Any]:
    return {"name": entry.name, "user": copy.deepcopy(entry.user or {})}


def _context_to(entry: NamedContext) -> dict[str, Any]:
    body: dict[str, Any] = copy.deepcopy(entry.context.other_fields)
    body["cluster"] = entry.context.cluster
    body["user"] = entry.context.user
    return {"name": entry.name, "context": body}


@dataclass
class Config:
    """A KUBECONFIG with the fields kind works with."""

    clusters: list[NamedCluster] = field(default_factory=list)
    users: list[NamedUser] = field(default_factory=list)
    contexts: list[NamedContext] = field(default_factory=list)
    current_context: str = ""
    other_fields: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> "Config":
        """Build a Config from decoded YAML data; None gives an empty config."""
        mapping = _mapping(data, "kubeconfig")
        return cls(
            clusters=[_cluster_from(c) for c in _sequence(mapping.get("clusters"), "clusters")],
            users=[_user_from(u) for u in _sequence(mapping.get("users"), "users")],
            contexts=[_context_from(c) for c in _sequence(mapping.get("contexts"), "contexts")],
            current_context=_text(mapping.get("current-context"), "current-context"),
            other_fields=_rest(mapping, _CONFIG_KEYS),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return plain data, leaving out empty top-level fields."""
        data: dict[str, Any] = copy.deepcopy(self.other_fields)
        if self.clusters:
            data["clusters"] = [_cluster_to(c) for c in self.clusters]
        if self.users:
            data["users"] = [_user_to(u) for u in self.users]
        if self.contexts:
            data["contexts"] = [_context_to(c) for c in self.contexts]
        if self.current_context:
            data["current-context"] = self.current_context
        return data


def kind_cluster_key(cluster_name: str) -> str:
    """Return the name identifying a kind cluster in kubeconfig files."""
    return "kind-" + cluster_name


def check_kubeadm_expectations(cfg: Config) -> None:
    """Raise KubeconfigError unless cfg has exactly one cluster, user and context."""
    if len(cfg.clusters) != 1:
        raise KubeconfigError(
            f"kubeadm KUBECONFIG should have one cluster, but read {len(cfg.clusters)}"
        )
    if len(cfg.users) != 1:
        raise KubeconfigError(
            f"kubeadm KUBECONFIG should have one user, but read {len(cfg.users)}"
        )
    if len(cfg.contexts) != 1:
        raise KubeconfigError(
            f"kubeadm KUBECONFIG should have one context, but read {len(cfg.contexts)}"
        )


def _normalize(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(key): _normalize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_normalize(item) for item in value]
    return value


def encode(cfg: Config) -> str:
    """Encode cfg as YAML with sorted keys; an empty config encodes to ''."""
    data = _normalize(cfg.to_dict())
    if not data:
        return ""
    try:
        return yaml.safe_dump(
            data,
            default_flow_style=False,
            sort_keys=True,
            allow_unicode=True,
            width=2**31 - 1,
        )
    except yaml.YAMLError as exc:
        raise KubeconfigError(f"failed to encode KUBECONFIG: {exc}") from exc


def decode(raw: str) -> Config:
    """Decode a KUBECONFIG YAML document."""
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise KubeconfigError(f"failed to decode KUBECONFIG: {exc}") from exc
    return Config.from_dict(data)


def kind_from_raw_kubeadm(raw_kubeadm_kubeconfig: str, cluster_name: str, server: str = "") -> Config:
    """Derive a kind kubeconfig from a kubeadm one; server is applied if set."""
    cfg = decode(raw_kubeadm_kubeconfig)
    check_kubeadm_expectations(cfg)

    key = kind_cluster_key(cluster_name)
    cfg.clusters[0].name = key
    cfg.users[0].name = key
    cfg.contexts[0].name = key
    cfg.contexts[0].context.user = key
    cfg.contexts[0].context.cluster = key
    cfg.current_context = key

    if server:
        cfg.clusters[0].cluster.server = server
    return cfg


def read(config_path: str | Path) -> Config:
    """Load a KUBECONFIG file; a missing file gives an empty Config."""
    try:
        raw = Path(config_path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return Config()
    except OSError as exc:
        raise KubeconfigError(f"failed to read {config_path}: {exc}") from exc
    return decode(raw)