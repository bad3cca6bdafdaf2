import json
from pathlib import Path
from types import MappingProxyType

from prefixmath import MAX_CIDR, format_key, parse_ip, prefix


UNKNOWN = "ZZ"


def resolve(table, ip):
    """Return the key a longest-prefix-match lookup of ip would use, or None."""
    addr = parse_ip(ip)
    if addr is None:
        return None
    for cidr in range(MAX_CIDR, -1, -1):
        key = format_key(prefix(addr, cidr), cidr)
        if key in table:
            return key
    return None


def lookup(table, ip, default=UNKNOWN):
    """Return the country for ip, or default if it cannot be determined."""
    key = resolve(table, ip)
    if key is None:
        return default
    return table[key]


class Ip2Country:
    """A country lookup bound to one built table."""

    def __init__(self, table, default=UNKNOWN):
        self.table = MappingProxyType(dict(table))
        self.default = default

    def __call__(self, ip):
        return lookup(self.table, ip, default=self.default)

    def __len__(self):
        return len(self.table)

    @classmethod
    def load(cls, file_path, default=UNKNOWN):
        return cls(load_table(file_path), default=default)


def save_table(table, path):
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(table, f, ensure_ascii=False, indent=2, default=str)


def load_table(path):
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)
