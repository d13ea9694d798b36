"""Local IPv4 addresses, for telling people where to download from."""

import ipaddress
import socket
import sys
from typing import NamedTuple

import psutil
from tabulate import tabulate

HEADERS = ("interface", "address", "port")


class ListeningOn(NamedTuple):
    interface: str
    address: str
    port: int


def listening_on(port: int) -> list[ListeningOn]:
    """
    One row per non-loopback IPv4 address on this host.

    Enumeration failures are reported and give an empty list.
    """
    try:
        interfaces = psutil.net_if_addrs()
    except (OSError, psutil.Error) as e:
        print(f"WARNING: failed to get interfaces: {e}", file=sys.stderr)
        return []

    rows = []
    for name, addrs in interfaces.items():
        for addr in addrs:
            if addr.family != socket.AF_INET:
                continue
            if ipaddress.ip_address(addr.address).is_loopback:
                continue
            rows.append(ListeningOn(name, addr.address, port))
    return rows


def format_table(rows) -> str:
    return tabulate(rows, headers=HEADERS, tablefmt="grid")
