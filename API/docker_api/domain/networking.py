from dataclasses import dataclass, field
from typing import Dict, Iterable, List


def port_key(private_port: int, protocol: str) -> str:
    return f"{private_port}/{protocol or 'tcp'}"


@dataclass
class PortProjection:
    exposed_ports: List[str] = field(default_factory=list)
    port_bindings: Dict[str, List[str]] = field(default_factory=dict)


def project_ports(ports: Iterable) -> PortProjection:
    """
    Build exposed ports and host bindings from a container's runtime ports.

    Entries are grouped by private port and protocol. Host ports are
    deduplicated within a group (the engine reports IPv4 and IPv6 bindings
    separately). Entries without a public port are exposed but not bound.
    """
    projection = PortProjection()
    for port in ports:
        key = port_key(port.private_port, port.protocol)
        if key not in projection.exposed_ports:
            projection.exposed_ports.append(key)

        if port.public_port is None:
            continue
        host_ports = projection.port_bindings.setdefault(key, [])
        host_port = str(port.public_port)
        if host_port not in host_ports:
            host_ports.append(host_port)

    return projection
