import unittest

from prefixmath import format_key, parse_ip, prefix
from prefixtree import (
    MalformedTreeError,
    PrefixNode,
    after_node,
    before_node,
    build,
    find_key,
    first_of,
    insert,
    last_of,
    make_root,
    to_table,
    tree_size,
)


def key(ip, cidr):
    return format_key(prefix(parse_ip(ip), cidr), cidr)


def node(ip, cidr, value):
    return PrefixNode(prefix(parse_ip(ip), cidr), cidr, value)


class TestTreeCreation(unittest.TestCase):
    def test_containment_and_siblings(self):
        entries = {
            key("192.168.0.1", 16): "US",
            key("192.168.0.1", 8): "CN",
            key("193.168.0.1", 8): "BR",
        }
        tree = build(entries)
        self.assertEqual(len(tree.children), 2)
        self.assertEqual(tree.children[0].value, "CN")
        self.assertEqual(len(tree.children[0].children), 1)
        self.assertEqual(tree.children[0].children[0].value, "US")
        self.assertEqual(tree.children[1].value, "BR")

    def test_sibling_ordering(self):
        entries = {}
        for i in (2, 4, 6, 0, 1, 3, 5, 7):
            entries[key(f"10.{i}.0.1", 16)] = str(i)

        tree = build(entries)
        self.assertEqual(len(tree.children), 8)
        self.assertEqual(tree.children[0].value, "0")
        self.assertEqual(tree.children[7].value, "7")
        ips = [child.ip for child in tree.children]
        self.assertEqual(ips, sorted(ips))

    def test_before_and_after_nodes(self):
        tree = build({key("10.2.0.1", 16): "2"})

        before = before_node(tree.children[0])
        self.assertEqual(before.ip, parse_ip("10.1.255.255"))
        self.assertEqual(before.cidr, 32)

        after = after_node(tree.children[0])
        self.assertEqual(after.ip, parse_ip("10.3.0.0"))
        self.assertEqual(after.cidr, 32)

    def test_root_is_whole_space(self):
        tree = build({})
        self.assertEqual((tree.ip, tree.cidr), (0, 0))
        self.assertTrue(tree.is_root)
        self.assertEqual(tree.children, [])

    def test_flatten_round_trip(self):
        entries = {
            key("10.0.0.0", 8): "DE",
            key("10.1.0.0", 16): "US",
            key("10.1.5.0", 24): "DE",
            key("11.0.0.0", 16): "FR",
            key("0.0.0.0", 0): "ZZ",
        }
        self.assertEqual(to_table(build(entries)), entries)


class TestInsert(unittest.TestCase):
    def test_reparents_contained_siblings(self):
        root = make_root()
        insert(root, node("10.1.5.0", 24, "DE"))
        insert(root, node("10.1.7.0", 24, "FR"))
        insert(root, node("12.0.0.0", 8, "CN"))
        insert(root, node("10.1.0.0", 16, "US"))

        self.assertEqual([c.value for c in root.children], ["US", "CN"])
        self.assertEqual([c.value for c in root.children[0].children], ["DE", "FR"])

    def test_descends_into_container(self):
        root = make_root()
        insert(root, node("10.0.0.0", 8, "DE"))
        insert(root, node("10.1.0.0", 16, "US"))
        insert(root, node("10.1.5.0", 24, "FR"))

        self.assertEqual(tree_size(root), 4)
        self.assertEqual(root.children[0].children[0].children[0].value, "FR")

    def test_same_block_overwrites_and_logs(self):
        root = make_root()
        insert(root, node("10.1.0.0", 16, "US"))
        insert(root, node("10.1.5.0", 24, "DE"))
        conflicts = []
        insert(root, node("10.1.0.0", 16, "CA"), conflicts=conflicts)

        self.assertEqual(len(root.children), 1)
        self.assertEqual(root.children[0].value, "CA")
        self.assertEqual(root.children[0].children[0].value, "DE")
        self.assertEqual(conflicts, [(key("10.1.0.0", 16), "US", "CA")])

    def test_same_value_is_not_a_conflict(self):
        root = make_root()
        conflicts = []
        insert(root, node("10.1.0.0", 16, "US"), conflicts=conflicts)
        insert(root, node("10.1.0.0", 16, "US"), conflicts=conflicts)
        self.assertEqual(conflicts, [])
        self.assertEqual(len(root.children), 1)

    def test_misaligned_overlap_is_fatal(self):
        root = make_root()
        insert(root, node("10.0.0.0", 16, "US"))
        with self.assertRaises(MalformedTreeError):
            insert(root, PrefixNode(parse_ip("10.0.128.0"), 8, "CN"))


class TestQueries(unittest.TestCase):
    def setUp(self):
        self.tree = build({
            key("10.0.0.0", 8): "DE",
            key("10.1.0.0", 16): "US",
            key("10.1.5.0", 24): "FR",
            key("10.9.0.0", 16): "US",
            key("11.0.0.0", 8): "CN",
        })

    def test_find_key(self):
        found = find_key(self.tree, key("10.1.5.0", 24))
        self.assertIsNotNone(found)
        self.assertEqual(found.value, "FR")
        self.assertEqual(find_key(self.tree, key("11.0.0.0", 8)).value, "CN")

    def test_find_missing_key(self):
        self.assertIsNone(find_key(self.tree, key("10.1.6.0", 24)))
        self.assertIsNone(find_key(self.tree, key("12.0.0.0", 8)))

    def test_tree_size(self):
        self.assertEqual(tree_size(self.tree), 6)

    def test_first_and_last_of(self):
        parent = self.tree.children[0]
        self.assertIs(first_of(parent, "US"), parent.children[0])
        self.assertIs(last_of(parent, "US"), parent.children[1])
        self.assertIsNone(first_of(parent, "BR"))


if __name__ == "__main__":
    unittest.main()
