import bz2
import gzip
import json
import random
import re
from pathlib import Path

import chardet
import pandas as pd
from dateutil import parser as date_parser

from compactor import find_rearrangements, safe_merge
from flatmap import dedupe_map, merge_ip2country_map, reduce_map
from lookup import UNKNOWN, lookup
from prefixmath import (
    ADDRESS_SPACE,
    block_size,
    format_key,
    network_to_key,
    parse_ip,
    parse_key,
)
from prefixtree import build, to_table, tree_size


ORIGINAS_PATTERN = re.compile(r'IN TXT\s+"(\d+)" "(\d+\.\d+\.\d+\.\d+)" "(\d+)"')
RIB_ORIGIN_PATTERN = re.compile(r'(\d+) [ie]$')
AUTNUMS_PATTERN = re.compile(r'AS(\d+)\s*</a>.*,\s*([A-Z]{2})\s*$', re.MULTILINE)


def detect_file_encoding(file_path):
    with open(file_path, 'rb') as file:
        raw_data = file.read(1024)
    result = chardet.detect(raw_data)
    return result['encoding'] or 'utf-8'


def open_text(file_path):
    """Open a plain, .bz2 or .gz file for reading text."""
    file_path = str(file_path)
    if file_path.endswith('.bz2'):
        return bz2.open(file_path, 'rt', encoding='utf-8', errors='ignore')
    if file_path.endswith('.gz'):
        return gzip.open(file_path, 'rt', encoding='utf-8', errors='ignore')
    encoding = detect_file_encoding(file_path)
    return open(file_path, 'r', encoding=encoding, errors='ignore')


def extract_snapshot_date(filename):
    candidates = re.findall(r'\d{4}[-_.]\d{1,2}[-_.]\d{1,2}|\d{8}', Path(filename).name)
    for date_str in candidates:
        try:
            return date_parser.parse(date_str.replace('_', '-').replace('.', '-')).date()
        except (ValueError, OverflowError):
            continue
    return None


def parse_originas_line(line):
    """Parse one originas zone line into (key, asn), or None."""
    match = ORIGINAS_PATTERN.search(line)
    if not match:
        return None
    asn, network, cidr = match.groups()
    addr = parse_ip(network)
    if addr is None or int(cidr) > 32:
        return None
    return format_key(addr, int(cidr)), int(asn)


def load_originas(file_path):
    ip2as = {}
    with open_text(file_path) as f:
        for line in f:
            parsed = parse_originas_line(line)
            if parsed:
                key, asn = parsed
                ip2as[key] = asn
    return ip2as


def load_rib_snapshot(file_path):
    """Parse a text RIB dump (oix-full-snapshot) into ip/cidr -> origin AS.

    The first announcement seen for a network wins.
    """
    ip2as = {}
    seen = set()
    offsets = None
    with open_text(file_path) as f:
        for line in f:
            line = line.rstrip('\n')
            if offsets is None:
                net, path = line.find('Network'), line.find('Path')
                if net > 0 and path > 0:
                    offsets = (net, path)
                    print(f"Header parameters learned: {net}, {path}")
                continue

            network = line[offsets[0]:].split(' ', 1)[0]
            if '/' not in network or network in seen:
                continue
            seen.add(network)

            origin = RIB_ORIGIN_PATTERN.search(line[offsets[1]:].rstrip())
            if not origin:
                continue
            try:
                ip2as[network_to_key(network)] = int(origin.group(1))
            except ValueError:
                pass
    return ip2as


def load_ip2as_map(file_path):
    """Load an ip/cidr -> AS map from an originas dump or a RIB snapshot."""
    file_path = Path(file_path)
    print(f"Parsing IP -> ASN Map: {file_path}")
    if 'originas' in file_path.name:
        ip2as = load_originas(file_path)
    else:
        ip2as = load_rib_snapshot(file_path)
    print(f"Done. {len(ip2as)} announcements.")
    return ip2as


def parse_autnums_page(page):
    """Parse the cidr-report autnums page into AS -> country."""
    db = {}
    for chunk in page.split('<a href'):
        match = AUTNUMS_PATTERN.search(chunk)
        if match and match.group(1) and match.group(2) != UNKNOWN:
            db[int(match.group(1))] = match.group(2)
    return db


def parse_asbycountry(asbycountry):
    db = {}
    for country, asns in asbycountry.items():
        for asn in asns:
            db[int(asn)] = country
    return db


def load_as2country_csv(file_path):
    df = pd.read_csv(file_path, dtype=str).dropna(subset=['asn', 'country'])
    df['asn'] = df['asn'].str.replace(r'^AS', '', regex=True, case=False)
    df = df[df['asn'].str.isdigit()]
    return {int(asn): country.strip().upper() for asn, country in zip(df['asn'], df['country'])}


def load_as2country_map(file_path):
    """Load an AS -> country map from autnums.html, asbycountry JSON or CSV."""
    file_path = Path(file_path)
    print(f"Parsing ASN -> Country Map: {file_path}")
    suffix = file_path.suffix.lower()
    if suffix == '.csv':
        db = load_as2country_csv(file_path)
    elif suffix == '.json':
        with open_text(file_path) as f:
            db = parse_asbycountry(json.load(f))
    else:
        with open_text(file_path) as f:
            db = parse_autnums_page(f.read())
    print(f"Done. {len(db)} autonomous systems.")
    return db


def tree_transform(table):
    """Rearrange the table through its prefix tree to remove more entries."""
    print("Building Tree.")
    conflicts = []
    tree = build(table, conflicts=conflicts)
    print(f"Done. {tree_size(tree) - 1} nodes, {len(conflicts)} conflicts.")
    print("Merging Nodes.")
    merges = safe_merge(tree, UNKNOWN)
    print(f"Done - merged {merges} keys.")
    print("Compacting.")
    find_rearrangements(tree, UNKNOWN)
    print("Flattening.")
    output = to_table(tree)
    print(f"Done. {len(output)} keys.")
    return output


def build_ip2country_table(ip2as, as2country, compress=True):
    """Build the ip/cidr -> country table and a summary of each stage."""
    info = {"announcements": len(ip2as)}
    table = merge_ip2country_map(ip2as, as2country)
    info["geolocated"] = sum(1 for v in table.values() if v != UNKNOWN)
    if compress:
        table = compress_table(table, info)
    info["entries"] = len(table)
    return table, info


def compress_table(table, info=None):
    info = {} if info is None else info
    table = reduce_map(table)
    info["after_reduce"] = len(table)
    table = dedupe_map(table)
    info["after_dedupe"] = len(table)
    table = tree_transform(table)
    info["after_tree"] = len(table)
    return table


def sample_addresses(table, n_samples=1000, seed=0):
    """Addresses at block edges of table plus uniformly random ones."""
    rng = random.Random(seed)
    addrs = set()
    for key in table:
        start, cidr = parse_key(key)
        end = start + block_size(cidr)
        addrs.update(a for a in (start - 1, start, end - 1, end) if 0 <= a < ADDRESS_SPACE)
    addrs.update(rng.randrange(ADDRESS_SPACE) for _ in range(int(n_samples)))
    return sorted(addrs)


def compare_tables(reference, candidate, addrs):
    """Return [(addr, expected, got)] for every address the tables disagree on."""
    mismatches = []
    for addr in addrs:
        expected = lookup(reference, addr)
        got = lookup(candidate, addr)
        if expected != got:
            mismatches.append((addr, expected, got))
    return mismatches
