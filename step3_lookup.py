import argparse
from pathlib import Path

from lookup import Ip2Country, resolve


def main(argv=None):
    parser = argparse.ArgumentParser(description="Step 3: Look up the country of IP addresses")
    parser.add_argument("--table", type=str, required=True,
                        help="Table filename (will be loaded from ./Tables/)")
    parser.add_argument("--ips", type=str, nargs="*", default=[],
                        help="IPv4 addresses (dotted quad or integer)")
    parser.add_argument("--ip-file", type=str,
                        help="File with one address per line")
    args = parser.parse_args(argv)

    table_path = Path("./Tables") / Path(args.table).name
    ip2country = Ip2Country.load(table_path)

    ips = list(args.ips)
    if args.ip_file:
        with open(args.ip_file) as f:
            ips.extend(line.strip() for line in f if line.strip())
    if not ips:
        print("Warning: No addresses provided.")

    for ip in ips:
        query = int(ip) if ip.isascii() and ip.isdigit() else ip
        key = resolve(ip2country.table, query)
        print(f"{ip} => {ip2country(query)} ({key or 'no match'})")

    print(f"lookups={len(ips)}")


if __name__ == "__main__":
    main()
