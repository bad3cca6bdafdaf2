from prefixmath import (
    block_size,
    contains,
    format_key,
    ip_to_str,
    parse_key,
    precedes,
)


class MalformedTreeError(ValueError):
    """An inserted block overlaps a sibling without either containing the other."""


class PrefixNode:
    """One address block of the containment tree."""
    __slots__ = ['ip', 'cidr', 'value', 'children', 'key']

    def __init__(self, ip, cidr, value=None, key=None):
        self.ip = ip
        self.cidr = cidr
        self.value = value
        self.children = []
        self.key = key if key is not None else format_key(ip, cidr)

    @property
    def is_root(self):
        return self.key is None

    def same_block(self, other):
        return self.ip == other.ip and self.cidr == other.cidr

    def __repr__(self):
        return f"PrefixNode({describe(self)})"


def make_root():
    root = PrefixNode(0, 0)
    root.key = None
    return root


def describe(node):
    return f"{ip_to_str(node.ip)}/{node.cidr} - {node.value}"


def build(table, conflicts=None):
    """Build the containment tree of a flat ip/cidr -> value table.

    Keys are inserted least specific first so that parents exist before the
    blocks they contain.
    """
    entries = []
    for key, value in table.items():
        ip, cidr = parse_key(key)
        entries.append(PrefixNode(ip, cidr, value))
    entries.sort(key=lambda n: n.cidr)

    root = make_root()
    for node in entries:
        insert(root, node, conflicts=conflicts)
    return root


def _first_overlap(children, node):
    # children are sorted and disjoint, so precedes() is True for a prefix of them
    lo, hi = 0, len(children)
    while lo < hi:
        mid = (lo + hi) // 2
        if precedes(children[mid], node):
            lo = mid + 1
        else:
            hi = mid
    return lo


def insert(parent, node, conflicts=None):
    """Insert node under the deepest block of parent's subtree containing it.

    Siblings that node contains are reparented under it. An existing block with
    the same range is replaced by node, keeping node's value.
    """
    children = parent.children
    start = _first_overlap(children, node)
    end = start
    while end < len(children) and not precedes(node, children[end]):
        end += 1

    for pos in range(start, end):
        child = children[pos]
        if child.same_block(node):
            if child.value != node.value:
                message = (f"Warning: overwriting {describe(child)} "
                           f"with value {node.value}")
                print(message)
                if conflicts is not None:
                    conflicts.append((node.key, child.value, node.value))
            children[pos] = node
            insert_all(node, child.children, conflicts=conflicts)
            return parent
        if contains(child, node):
            return insert(child, node, conflicts=conflicts)
        if not contains(node, child):
            raise MalformedTreeError(
                f"Malformed tree: {describe(node)} expected to be parent of {describe(child)}"
            )

    detached = children[start:end]
    children[start:end] = [node]
    insert_all(node, detached, conflicts=conflicts)
    return parent


def insert_all(parent, nodes, conflicts=None):
    for node in list(nodes):
        insert(parent, node, conflicts=conflicts)


def find_key(root, key):
    target = parse_key(key)
    node = root
    while True:
        for child in node.children:
            if child.ip == target.ip and child.cidr == target.cidr:
                return child
            if contains(child, target):
                node = child
                break
        else:
            return None


def to_table(node):
    """Flatten a tree back into an ip/cidr -> value table."""
    table = {}
    stack = list(reversed(node.children))
    while stack:
        current = stack.pop()
        table[current.key] = current.value
        stack.extend(reversed(current.children))
    return table


def tree_size(node):
    return 1 + sum(tree_size(child) for child in node.children)


def before_node(node):
    """The single address just before node's range."""
    return PrefixNode(node.ip - 1, 32, node.value)


def after_node(node):
    """The single address just after node's range."""
    return PrefixNode(node.ip + block_size(node.cidr), 32, node.value)


def first_of(node, value):
    for child in node.children:
        if child.value == value:
            return child
    return None


def last_of(node, value):
    for child in reversed(node.children):
        if child.value == value:
            return child
    return None
