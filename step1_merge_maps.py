import argparse
from pathlib import Path

from build_table import (
    build_ip2country_table,
    extract_snapshot_date,
    load_as2country_map,
    load_ip2as_map,
)
from lookup import save_table


def main(argv=None):
    parser = argparse.ArgumentParser(description="Step 1: Merge IP -> ASN and ASN -> Country maps")
    parser.add_argument("--ip2as", type=str, required=True,
                        help="Path to originas dump or oix-full-snapshot RIB (plain, .bz2 or .gz)")
    parser.add_argument("--as2country", type=str, required=True,
                        help="Path to autnums.html, asbycountry JSON or asn,country CSV")
    parser.add_argument("--output", type=str, required=True,
                        help="Output filename for the table (will be saved to ./Tables/)")
    parser.add_argument("--no-compress", action="store_true",
                        help="Save the merged table as is, for compaction in step 2")
    args = parser.parse_args(argv)

    ip2as = load_ip2as_map(args.ip2as)
    as2country = load_as2country_map(args.as2country)
    table, info = build_ip2country_table(ip2as, as2country, compress=not args.no_compress)
    info["snapshot_date"] = extract_snapshot_date(args.ip2as)

    out_dir = Path("./Tables")
    out_path = out_dir / Path(args.output).name
    save_table(table, out_path)
    save_table(info, out_path.with_suffix(".info.json"))

    print(f"Table saved to: {out_path}")
    print(f"entries={len(table)}")


if __name__ == "__main__":
    main()
