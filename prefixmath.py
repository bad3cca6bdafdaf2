import ipaddress
from collections import namedtuple


MAX_CIDR = 32
ADDRESS_SPACE = 1 << MAX_CIDR
ADDRESS_MASK = ADDRESS_SPACE - 1

PrefixKey = namedtuple("PrefixKey", ["ip", "cidr"])


def block_size(cidr):
    return 1 << (MAX_CIDR - cidr)


def prefix(addr, cidr):
    """Zero the low 32-cidr bits of addr, treating it as unsigned."""
    if cidr <= 0:
        return 0
    mask = (ADDRESS_MASK << (MAX_CIDR - cidr)) & ADDRESS_MASK
    return addr & mask


def contains(parent, child):
    return (child.cidr > parent.cidr and
            parent.ip <= child.ip < parent.ip + block_size(parent.cidr))


def precedes(a, b):
    """True if a's range ends at or before b's begins."""
    return a.ip + block_size(a.cidr) <= b.ip


def sibling(ip, cidr):
    return ip ^ block_size(cidr)


def parse_ip(ip):
    """Return the integer form of ip, or None if it cannot be parsed.

    Accepts an int in the IPv4 range or a dotted quad string.
    """
    if isinstance(ip, bool):
        return None
    if isinstance(ip, int):
        return ip if 0 <= ip < ADDRESS_SPACE else None
    if not isinstance(ip, str) or not ip:
        return None

    octets = ip.strip().split('.')
    if len(octets) != 4:
        return None

    addr = 0
    for octet in octets:
        if not (octet.isascii() and octet.isdigit()):
            return None
        value = int(octet)
        if value > 255:
            return None
        addr = (addr << 8) | value
    return addr


def ip_to_str(addr):
    return '.'.join(str((addr >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def format_key(ip, cidr):
    return f"{ip}/{cidr}"


def parse_key(key):
    """Split an "ip/cidr" key into a PrefixKey.

    The ip part is normally the integer address, a dotted quad is accepted too.
    """
    ip, _, cidr = str(key).partition('/')
    cidr = int(cidr)
    if not 0 <= cidr <= MAX_CIDR:
        raise ValueError(f"Invalid cidr in key: {key}")
    if '.' in ip:
        addr = parse_ip(ip)
        if addr is None:
            raise ValueError(f"Invalid address in key: {key}")
        return PrefixKey(addr, cidr)
    return PrefixKey(int(ip), cidr)


def network_to_key(network):
    """Convert a textual IPv4 network ("1.2.3.0/24") to a table key."""
    net = ipaddress.ip_network(network, strict=False)
    if not isinstance(net, ipaddress.IPv4Network):
        raise ValueError(f"Not an IPv4 network: {network}")
    return format_key(int(net.network_address), net.prefixlen)
