"""Kubeconfig merging and removal, YAML and TOML patching, HAProxy config rendering and log archive unpacking."""

__version__ = "0.1.0"

__all__ = [
    "kubeconfig_model",
    "kubeconfig_paths",
    "kubeconfig_files",
    "patch_json",
    "patch_kube",
    "patch_toml",
    "loadbalancer",
    "logs",
]