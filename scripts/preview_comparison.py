"""
Local comparison preview from .fit files on disk.

Decodes the given files (no DB, storage or API needed), prints the stats
table and renders the comparison chart.

Usage:
    python scripts/preview_comparison.py ride_a.fit ride_b.fit
    python scripts/preview_comparison.py ride.fit --format pdf --out /tmp/ride.pdf
"""
import argparse
import sys
from pathlib import Path

# Allow running directly from repo root
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fitcompare.analysis.samples import assemble_comparison_set
from fitcompare.analysis.stats import compute_stats
from fitcompare.export.charts import STATS_COLUMNS, render_comparison, stats_table_row
from fitcompare.fit.decoder import decode_fit_file


def main() -> None:
    parser = argparse.ArgumentParser(description="Preview a FIT comparison chart")
    parser.add_argument("files", nargs="+", type=Path, help=".fit files to compare")
    parser.add_argument("--format", default="png", choices=["png", "pdf"])
    parser.add_argument("--out", type=Path, default=None)
    args = parser.parse_args()

    series = assemble_comparison_set(
        (path.name, lambda path=path: decode_fit_file(path)) for path in args.files
    )
    if not series:
        print("None of the files could be decoded.", file=sys.stderr)
        sys.exit(1)

    stats = [compute_stats(s) for s in series]
    print(" | ".join(STATS_COLUMNS))
    for row in stats:
        print(" | ".join(stats_table_row(row)))

    content, _ = render_comparison(series, stats, fmt=args.format, title="Preview")
    out = args.out or Path(f"/tmp/fitcompare_preview.{args.format}")
    out.write_bytes(content)
    print(f"Chart written to {out}")


if __name__ == "__main__":
    main()
