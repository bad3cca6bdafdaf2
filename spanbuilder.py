from prefixmath import block_size, contains, format_key, prefix
from prefixtree import PrefixNode, after_node


def span(a, b):
    """Smallest block containing both a and b, carrying a's value."""
    cidr = min(a.cidr, b.cidr)
    ip = prefix(min(a.ip, b.ip), cidr)
    while cidr > 0:
        candidate = PrefixNode(ip, cidr)
        if contains(candidate, a) and contains(candidate, b):
            break
        cidr -= 1
        ip = prefix(ip, cidr)
    return PrefixNode(ip, cidr, a.value)


def create_span(start, end, value):
    """Fill the gap between the end of start and the beginning of end.

    Returns the fewest aligned blocks, in address order, each tagged with value.
    """
    blocks = []
    at = start
    while after_node(at).ip < end.ip:
        item = after_node(at)
        item.value = value
        while item.cidr > 0:
            wider = PrefixNode(prefix(item.ip, item.cidr - 1), item.cidr - 1)
            if contains(wider, at) or wider.ip + block_size(wider.cidr) > end.ip:
                break
            item = PrefixNode(wider.ip, wider.cidr, value)
        blocks.append(item)
        at = item
    return blocks


def range_to_keys(first, last):
    """Express the inclusive address range [first, last] as the fewest keys."""
    if first > last:
        return []
    start = PrefixNode(first - 1, 32)
    end = PrefixNode(last + 1, 32)
    return [format_key(block.ip, block.cidr) for block in create_span(start, end, None)]
