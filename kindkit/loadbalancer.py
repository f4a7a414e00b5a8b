"""Configuration for the external load balancer in front of the API servers."""

from __future__ import annotations

from dataclasses import dataclass, field

IMAGE = "kindest/haproxy:v20200708-548e36db"
"""The load balancer image and tag."""

CONFIG_PATH = "/usr/local/etc/haproxy/haproxy.cfg"
"""Where the configuration file lives inside the image."""

_PREAMBLE = """# generated by kind
global
  log /dev/log local0
  log /dev/log local1 notice
  daemon

resolvers docker
  nameserver dns 127.0.0.11:53

defaults
  log global
  mode tcp
  option dontlognull
  timeout connect 5000
  timeout client 50000
  timeout server 50000
  # allow to boot despite dns don't resolve backends
  default-server init-addr none

frontend control-plane
"""

_BACKEND_HEADER = """  default_backend kube-apiservers

backend kube-apiservers
  option httpchk GET /healthz
  """

_SERVER_OPTIONS = "check check-ssl verify none resolvers docker resolve-prefer"


@dataclass
class ConfigData:
    """Values supplied to the load balancer configuration."""

    control_plane_port: int
    backend_servers: dict[str, str] = field(default_factory=dict)
    ipv6: bool = False


def render_config(data: ConfigData) -> str:
    """Render the haproxy configuration for data.

    Backend servers are listed in order of their names.
    """
    port = data.control_plane_port
    if isinstance(port, bool) or not isinstance(port, int):
        raise TypeError(f"control_plane_port must be an int, got {type(port).__name__}")

    family = "ipv6" if data.ipv6 else "ipv4"
    ipv6_bind = f"  bind :::{port};\n" if data.ipv6 else "  \n"
    servers = "".join(
        f"\n  server {name} {address} {_SERVER_OPTIONS} {family}"
        for name, address in sorted(data.backend_servers.items())
    )
    return (
        _PREAMBLE
        + f"  bind *:{port}\n"
        + ipv6_bind
        + _BACKEND_HEADER
        + servers
        + "\n"
    )