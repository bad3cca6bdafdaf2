"""Tree rewriting passes that reduce the number of stored blocks.

Both passes act on the direct children of a single node and keep every
address resolving to the same value. Address space a rewritten block newly
covers is filled with blocks carrying the value inherited from the node.
"""
from prefixmath import contains
from prefixtree import (
    after_node,
    before_node,
    first_of,
    insert_all,
    last_of,
    tree_size,
)
from spanbuilder import create_span, span
from lookup import UNKNOWN


def _inherited_value(node, filler_value):
    if filler_value is not None:
        return filler_value
    return UNKNOWN if node.is_root else node.value


def _fill_gaps(block, covered, filler_value):
    """Blocks carrying filler_value for the parts of block not in covered."""
    fillers = []
    previous = before_node(block)
    for child in covered:
        fillers.extend(create_span(previous, child, filler_value))
        previous = child
    fillers.extend(create_span(previous, after_node(block), filler_value))
    return fillers


def safe_merge(node, filler_value=None):
    """Merge adjacent equal-valued children of node into spanning blocks.

    A merge is skipped when another child inside the spanning block has a
    different value, or when the gap fillers it needs leave the tree no
    smaller. Returns the number of merges performed.
    """
    filler_value = _inherited_value(node, filler_value)
    children = node.children
    merges = 0
    i = 1
    while i < len(children):
        left, right = children[i - 1], children[i]
        if left.value != right.value:
            i += 1
            continue

        merged = span(left, right)
        safe = node.is_root or merged.cidr > node.cidr
        lo, hi = i - 1, i + 1
        while hi < len(children) and contains(merged, children[hi]):
            if children[hi].value != merged.value:
                safe = False
            hi += 1
        while lo > 0 and contains(merged, children[lo - 1]):
            if children[lo - 1].value != merged.value:
                safe = False
            lo -= 1
        if not safe:
            i += 1
            continue

        replaced = children[lo:hi]
        fillers = []
        if merged.value != filler_value:
            fillers = _fill_gaps(merged, replaced, filler_value)
        # grandchildren move up unchanged, so only the shells are compared
        if 1 + len(fillers) >= len(replaced):
            i += 1
            continue

        insert_all(merged, fillers)
        for old in replaced:
            insert_all(merged, old.children)
        children[lo:hi] = [merged]
        merges += 1
        i = max(lo, 1)
    return merges


def dedup(node):
    """Replace children that repeat node's value with their own children."""
    children = node.children
    i = 0
    while i < len(children):
        if children[i].value == node.value:
            children[i:i + 1] = children[i].children
        else:
            i += 1
    return node


def find_rearrangements(node, filler_value=None):
    """Re-root the most common value among node's children under one block.

    The rearrangement is kept only if it strictly shrinks the tree. This is a
    greedy single-level heuristic.
    """
    children = node.children
    if len(children) < 3:
        return node
    filler_value = _inherited_value(node, filler_value)

    counts = {}
    for child in children:
        counts[child.value] = counts.get(child.value, 0) + 1
    best, best_count = None, 0
    for value, count in counts.items():
        if count > best_count:
            best, best_count = value, count

    candidate = span(first_of(node, best), last_of(node, best))
    if not node.is_root and candidate.cidr <= node.cidr:
        return node

    covered = [child for child in children if contains(candidate, child)]
    start = children.index(covered[0])
    end = children.index(covered[-1]) + 1

    gaps = _fill_gaps(candidate, covered, filler_value)
    candidate.children = sorted(gaps + covered, key=lambda n: n.ip)
    dedup(candidate)

    before = sum(tree_size(child) for child in children[start:end])
    if tree_size(candidate) < before:
        children[start:end] = [candidate]
    return node
