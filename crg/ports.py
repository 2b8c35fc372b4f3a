"""Parse `docker port` style lines into PortMapping values.

Grammar (one mapping per line):

    <container_port>/<proto> -> <host_addr>:<host_port>

e.g. ``5432/tcp -> 0.0.0.0:32769``. Bracketed IPv6 host addresses
(``[::]:32769``) and stacked protocol suffixes are not supported and are
reported as malformed.
"""
from __future__ import annotations

import re

from .errors import MalformedMapping
from .models import PortMapping

ARROW = "->"

CONTAINER_SIDE_RE = re.compile(r"^(?P<port>[^/\s]+)/(?P<proto>[A-Za-z]+)$")
HOST_SIDE_RE = re.compile(r"^(?P<addr>[^\[\]\s:]*):(?P<port>[^:\s]+)$")
PORT_RE = re.compile(r"^[0-9]+$")


def _port(raw: str, side: str, line: str) -> int:
    if not PORT_RE.match(raw):
        raise MalformedMapping(line, f"{side} port {raw!r} is not numeric")
    value = int(raw)
    if value <= 0:
        raise MalformedMapping(line, f"{side} port must be positive")
    return value


def parse(line: str) -> PortMapping:
    if line.count(ARROW) != 1:
        raise MalformedMapping(line, f"expected exactly one '{ARROW}' separator")

    left, right = (part.strip() for part in line.split(ARROW))
    if not left or not right:
        raise MalformedMapping(line, "empty container or host side")

    m = CONTAINER_SIDE_RE.match(left)
    if not m:
        raise MalformedMapping(line, f"container side {left!r} is not '<port>/<proto>'")
    container_port = _port(m.group("port"), "container", line)
    proto = m.group("proto").lower()

    h = HOST_SIDE_RE.match(right)
    if not h:
        raise MalformedMapping(line, f"host side {right!r} is not '<addr>:<port>'")
    host_port = _port(h.group("port"), "host", line)

    return PortMapping(container_port=container_port, host_port=host_port, protocol=proto, host_ip=h.group("addr"))


def parse_lines(text: str) -> list[PortMapping]:
    return [parse(line) for line in text.splitlines() if line.strip()]
