from docker_api.domain.container import PortEntry
from docker_api.domain.networking import project_ports


def test_duplicate_host_ports_collapse():
    # the engine lists the same binding once for IPv4 and once for IPv6
    ports = [
        PortEntry(80, "tcp", 8080),
        PortEntry(80, "tcp", 8080),
        PortEntry(80, "tcp", 8081),
        PortEntry(53, "udp", 5353),
    ]

    projection = project_ports(ports)

    assert sorted(projection.exposed_ports) == ["53/udp", "80/tcp"]
    assert sorted(projection.port_bindings["80/tcp"]) == ["8080", "8081"]
    assert projection.port_bindings["53/udp"] == ["5353"]


def test_projection_is_idempotent():
    ports = [PortEntry(80, "tcp", 8080), PortEntry(443, "tcp", 8443), PortEntry(80, "tcp", 8080)]

    first = project_ports(ports)
    second = project_ports(ports)

    assert first == second


def test_unpublished_port_is_exposed_but_not_bound():
    projection = project_ports([PortEntry(9000, "tcp", None), PortEntry(80, "tcp", 8080)])

    assert "9000/tcp" in projection.exposed_ports
    assert "9000/tcp" not in projection.port_bindings
    assert projection.port_bindings == {"80/tcp": ["8080"]}


def test_same_port_different_protocols_are_separate_keys():
    projection = project_ports([PortEntry(53, "tcp", 53), PortEntry(53, "udp", 53)])

    assert projection.port_bindings == {"53/tcp": ["53"], "53/udp": ["53"]}


def test_no_ports():
    projection = project_ports([])

    assert projection.exposed_ports == []
    assert projection.port_bindings == {}
