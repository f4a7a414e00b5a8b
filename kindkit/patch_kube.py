"""Patching streams of Kubernetes YAML documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import yaml

from kindkit.patch_json import JSONPatchError, apply_patch, decode_patch, merge_patch

_YAML_SEPARATOR = "\n---"


class PatchError(ValueError):
    """Raised when documents or patches cannot be parsed or applied."""


@dataclass
class PatchJSON6902:
    """An RFC 6902 patch together with the resource type it targets."""

    group: str = ""
    version: str = ""
    kind: str = ""
    patch: str = ""


def group_version_to_api_version(group: str, version: str) -> str:
    """Join a group and version into an apiVersion."""
    return version if not group else f"{group}/{version}"


def _load_yaml(raw: str) -> Any:
    try:
        return yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise PatchError(f"failed to parse YAML {raw!r}: {exc}") from exc


@dataclass(frozen=True)
class MatchInfo:
    """The v1 TypeMeta fields used to match resources and patches."""

    kind: str = ""
    api_version: str = ""

    @classmethod
    def parse(cls, raw: str) -> "MatchInfo":
        """Read kind and apiVersion from a YAML document."""
        data = _load_yaml(raw)
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise PatchError(f"failed to parse type meta for {raw!r}")
        kind, api_version = data.get("kind", ""), data.get("apiVersion", "")
        if not isinstance(kind, str) or not isinstance(api_version, str):
            raise PatchError(f"failed to parse type meta for {raw!r}")
        return cls(kind=kind, api_version=api_version)

    def matches(self, other: "MatchInfo") -> bool:
        """Kinds must agree; apiVersion too unless other leaves it unset."""
        return self.kind == other.kind and (
            not other.api_version or self.api_version == other.api_version
        )


def split_yaml_documents(stream: str) -> list[str]:
    """Split a YAML stream on '---' separator lines."""
    documents: list[str] = []
    data = stream
    sep = len(_YAML_SEPARATOR)
    while data:
        i = data.find(_YAML_SEPARATOR)
        if i < 0:
            documents.append(data)
            break
        i += sep
        after = data[i:]
        if not after:
            documents.append(data[:-sep])
            break
        j = after.find("\n")
        if j < 0:
            # an unterminated separator line ends the stream
            break
        documents.append(data[: i - sep])
        data = data[i + j + 1 :]
    return documents


@dataclass
class _Item:
    data: Any
    match_info: MatchInfo


def _parse_items(raw_documents: list[str]) -> list[_Item]:
    return [_Item(_load_yaml(raw), MatchInfo.parse(raw)) for raw in raw_documents]


def kube_yaml(
    to_patch: str,
    patches: list[str] | None = None,
    patches6902: list[PatchJSON6902] | None = None,
) -> str:
    """Apply merge patches and JSON 6902 patches to matching documents of a stream."""
    resources = _parse_items(split_yaml_documents(to_patch))
    merge_patches = _parse_items(
        [doc for raw in patches or [] for doc in split_yaml_documents(raw)]
    )
    json_patches = []
    for config_patch in patches6902 or []:
        try:
            operations = decode_patch(_load_yaml(config_patch.patch))
        except JSONPatchError as exc:
            raise PatchError(f"failed to parse JSON 6902 patches: {exc}") from exc
        info = MatchInfo(
            kind=config_patch.kind,
            api_version=group_version_to_api_version(config_patch.group, config_patch.version),
        )
        json_patches.append((operations, info))

    out: list[str] = []
    for resource in resources:
        for patch in merge_patches:
            if resource.match_info.matches(patch.match_info):
                resource.data = merge_patch(resource.data, patch.data)
        for operations, info in json_patches:
            if resource.match_info.matches(info):
                try:
                    resource.data = apply_patch(resource.data, operations)
                except JSONPatchError as exc:
                    raise PatchError(f"failed to apply JSON 6902 patch: {exc}") from exc
        out.append(yaml.safe_dump(resource.data, default_flow_style=False, sort_keys=True))
    return "---\n".join(out)