# kindkit

A library of helpers for working with local Kubernetes clusters:

- **kubeconfig handling** (`kindkit.kubeconfig_model`, `kindkit.kubeconfig_paths`,
  `kindkit.kubeconfig_files`): decode a kubeadm `admin.conf`, rename its
  entries to a cluster key such as `kind-<name>`, merge it into an existing
  kubeconfig, and remove it again.
- **patching** (`kindkit.patch_json`, `kindkit.patch_kube`, `kindkit.patch_toml`):
  JSON merge patches and RFC 6902 JSON patches, applied to multi-document
  Kubernetes YAML streams or to TOML documents.
- **load balancer config** (`kindkit.loadbalancer`): render an HAProxy
  configuration for a set of control-plane backends.
- **log extraction** (`kindkit.logs`): unpack a tar stream into a host directory.

The only runtime dependency is PyYAML.

## Installation

```
pip install kindkit
```

## Kubeconfig

```python
from kindkit.kubeconfig_model import kind_from_raw_kubeadm, encode
from kindkit.kubeconfig_files import write_merged, remove_kind, context_for_cluster

with open("admin.conf") as fh:
    cfg = kind_from_raw_kubeadm(fh.read(), "kind", "https://127.0.0.1:6443")

print(encode(cfg))                     # YAML with sorted keys
write_merged(cfg, "")                  # merge into the file kubectl would use
print(context_for_cluster("kind"))     # "kind-kind"
remove_kind("kind", "")                # drop the entries again
```

`kind_from_raw_kubeadm` requires exactly one cluster, user and context
(`check_kubeadm_expectations`), renames all of them to `kind_cluster_key(name)`,
makes that the current context and, if a server is given, sets the cluster's
server. Fields that are not modelled are kept in `other_fields` and written
back unchanged. `encode` of an empty `Config` gives `""`; `read` of a missing
file gives an empty `Config`.

Which file is used (`kindkit.kubeconfig_paths`):

- a non-empty explicit path is used alone;
- otherwise `$KUBECONFIG` is split on the platform path separator, empty
  entries and duplicates dropped; `write_merged` picks the first existing file
  in that list, or the last entry if none exists, while `remove_kind` visits
  every entry;
- otherwise `$HOME/.kube/config` (on Windows, `home_dir` chooses between
  `%HOME%`, `%HOMEDRIVE%%HOMEPATH%` and `%USERPROFILE%`).

While a file is modified it is locked by creating `<file>.lock` exclusively
(`lock_file`, `unlock_file`, or the `locked` context manager). If the lock
file already exists, `write_merged` and `remove_kind` raise `KubeconfigError`.
Files are written with mode `0600`, missing parent directories with `0755`.

`merge(existing, kind)` replaces entries with the same name or appends new
ones, sets the current context, and copies the top-level extra fields
(`apiVersion`, `kind`, ...) only when the existing config has none.
`remove(cfg, name)` returns whether anything was changed.

## Patching

```python
from kindkit.patch_kube import kube_yaml, PatchJSON6902
from kindkit.patch_toml import patch_toml

patched = kube_yaml(
    documents,
    ["kind: ClusterConfiguration\nnetworking:\n  dnsDomain: example.local\n"],
    [PatchJSON6902(group="", version="v1", kind="Pod",
                   patch='[{"op": "remove", "path": "/metadata/labels"}]')],
)

containerd = patch_toml(
    'disabled_plugins = ["restart"]\n',
    ["disabled_plugins = []"],
    ['[{"op": "remove", "path": "/disabled_plugins"}]'],
)
```

`kube_yaml` splits the stream on `---` lines, applies every merge patch and
then every JSON 6902 patch to each document they match, and joins the
re-encoded documents (sorted keys) with `---`. A patch matches a document when
its `kind` is equal and, if the patch sets an `apiVersion`
(`group_version_to_api_version` for JSON 6902 patches), that is equal too.
Failures raise `PatchError`.

`patch_toml` parses the TOML, applies the TOML merge patches and then the JSON
6902 patches, and writes the result with `encode_toml`: sorted keys, plain
values before sub-tables, nested tables indented by two spaces. Invalid TOML
or a failing patch raises `PatchError`.

`kindkit.patch_json` offers the building blocks directly: `merge_patch`,
`decode_patch` and `apply_patch` (add, remove, replace, move, copy, test),
raising `JSONPatchError`. None of them modify their inputs.

## Load balancer

```python
from kindkit.loadbalancer import ConfigData, render_config, IMAGE, CONFIG_PATH

print(render_config(ConfigData(
    control_plane_port=6443,
    backend_servers={"cp1": "10.0.0.2:6443"},
    ipv6=False,
)))
```

Backend servers are listed in order of their names; with `ipv6=True` an extra
IPv6 bind line is added and servers resolve preferring IPv6. `IMAGE` and
`CONFIG_PATH` name the HAProxy image and where its configuration lives.

## Logs

```python
from kindkit.logs import untar

with open("logs.tar", "rb") as stream:
    untar(stream, "/tmp/node-logs")
```

Regular files and directories are written; other entry types are skipped with
a warning on the `kindkit.logs` logger. Parent directories of files are not
created, so the archive must contain its directory entries. Bytes after the
end of the archive are read and discarded.

## What this package does not do

It has no command line and does not talk to cluster nodes or container
runtimes: it does not fetch `admin.conf` from a node, look up API server
endpoints, or run `tar` on a node. Callers supply those inputs themselves.

## Running the tests

```
pip install -e ".[test]"
pytest
```