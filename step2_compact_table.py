import argparse
from pathlib import Path

from build_table import compare_tables, compress_table, sample_addresses
from lookup import load_table, save_table


def main(argv=None):
    parser = argparse.ArgumentParser(description="Step 2: Compact a merged IP -> Country table")
    parser.add_argument("--table", type=str, required=True,
                        help="Path to merged table JSON from step 1 (run with --no-compress)")
    parser.add_argument("--output", type=str, required=True,
                        help="Output filename for the compacted table (will be saved to ./Tables/)")
    parser.add_argument("--verify-samples", type=int, default=0,
                        help="Number of random addresses to check against the merged table")
    parser.add_argument("--seed", type=int, default=0,
                        help="Random seed for verification samples")
    args = parser.parse_args(argv)

    merged = load_table(args.table)
    info = {"merged": len(merged)}
    table = compress_table(merged, info)

    if args.verify_samples > 0:
        addrs = sample_addresses(merged, n_samples=args.verify_samples, seed=args.seed)
        mismatches = compare_tables(merged, table, addrs)
        info["verified"] = len(addrs)
        info["mismatches"] = len(mismatches)
        for addr, expected, got in mismatches[:20]:
            print(f"Warning: {addr} expected {expected} got {got}")

    out_dir = Path("./Tables")
    out_path = out_dir / Path(args.output).name
    save_table(table, out_path)
    save_table(info, out_path.with_suffix(".info.json"))

    print(f"Compacted table saved to: {out_path}")
    print(f"entries={len(table)}")


if __name__ == "__main__":
    main()
