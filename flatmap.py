"""Compaction of flat ip/cidr -> value maps, without building a tree."""
from prefixmath import format_key, parse_key, prefix, sibling
from lookup import UNKNOWN


def merge_ip2country_map(ip2as, as2country):
    """Join an ip/cidr -> AS map with an AS -> country map.

    Announcements whose AS has no known country are mapped to ZZ.
    """
    print("Merging ASN and Country Maps")
    merged = {}
    notfound = 0
    for key, asn in ip2as.items():
        country = as2country.get(int(asn))
        if not country:
            notfound += 1
            country = UNKNOWN
        merged[key] = country

    if merged:
        located = int((len(merged) - notfound) / len(merged) * 1000) / 10
        print(f"Done. {located}% of announcements are geolocated.")
    return merged


def _reduce_pass(table):
    kept = {}
    collapsed = {}
    count = 0
    for key, value in table.items():
        ip, cidr = parse_key(key)
        if cidr > 0:
            pair = format_key(sibling(ip, cidr), cidr)
            if pair in table and table[pair] == value:
                count += 1
                collapsed[format_key(prefix(ip, cidr - 1), cidr - 1)] = value
                continue
        kept[key] = value

    # a collapsed pair fully shadows any existing value of its parent key
    kept.update(collapsed)
    return kept, count


def reduce_map(table):
    """Collapse sibling blocks with equal values into their parent, to a fixpoint."""
    current = dict(table)
    n_pass = 1
    while True:
        print(f"Cleaning up Map. Pass #{n_pass}")
        current, count = _reduce_pass(current)
        print(f"Done. Collapsed {count} entries.")
        if count == 0:
            return current
        n_pass += 1


def dedupe_map(table):
    """Drop entries whose nearest shorter prefix in the map has the same value."""
    print("Pruning Map.")
    out = {}
    dups = 0
    for key, value in table.items():
        ip, cidr = parse_key(key)
        redundant = False
        while cidr > 0:
            cidr -= 1
            ip = prefix(ip, cidr)
            ancestor = format_key(ip, cidr)
            if ancestor in table:
                redundant = table[ancestor] == value
                break
        if redundant:
            dups += 1
        else:
            out[key] = value

    print(f"Done. Pruned {dups} entries.")
    return out
