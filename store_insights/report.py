"""
Business insights report for a store snapshot.
Loads orders and products (JSON or CSV), runs the insight engine and the dashboard overview,
and writes:
- insights_report.txt (human-readable)
- insights_report.json (machine-readable: {"insights": ..., "overview": ...})

Run: python -m store_insights.report --orders data/orders.json --products data/products.json
"""

import sys
import json
import argparse
import os
from pathlib import Path

import pandas as pd

try:
    from store_insights.data import DATA_DIR, PROJECT_ROOT, load_records
    from store_insights.engine import as_utc_timestamp, format_money, generate_insights
    from store_insights.overview import build_dashboard_overview
except ImportError:
    from data import DATA_DIR, PROJECT_ROOT, load_records
    from engine import as_utc_timestamp, format_money, generate_insights
    from overview import build_dashboard_overview

OUTPUT_DIR = Path(os.environ.get("INSIGHTS_OUTPUT_DIR", PROJECT_ROOT / "reports"))
REPORT_TXT = "insights_report.txt"
REPORT_JSON = "insights_report.json"


def _section(lines, title, items):
    lines.append(title)
    if not items:
        lines.append("   (none)")
    for i, item in enumerate(items, 1):
        lines.append(f"   {i}. {item}")
    lines.append("")


def format_report(report, overview, now):
    """Render the insight report and overview as banner-style plain text."""
    lines = []
    lines.append("=" * 70)
    lines.append("STORE BUSINESS INSIGHTS")
    lines.append("=" * 70)
    lines.append(f"Generated for: {now.isoformat()}")
    lines.append("")
    lines.append("SUMMARY")
    lines.append(f"   {report.summary}")
    lines.append("")
    _section(lines, "KEY INSIGHTS", report.key_insights)
    _section(lines, "WARNINGS", report.warnings)
    _section(lines, "RECOMMENDATIONS", report.recommendations)

    lines.append("-" * 70)
    lines.append("OVERVIEW")
    lines.append("-" * 70)
    lines.append(f"   Total revenue:       {format_money(overview.total_revenue)}")
    lines.append(f"   Total orders:        {overview.total_orders}")
    lines.append(f"   Average order value: {format_money(overview.average_order_value)}")
    lines.append("")
    lines.append("   Top products (orders / revenue):")
    for p in overview.top_products:
        lines.append(f"      {p.name}: {p.sales:g} / {format_money(p.revenue)}")
    lines.append("")
    lines.append("   Order status:   " + ", ".join(f"{k}={v}" for k, v in overview.order_status_counts.items()))
    lines.append("   Payment status: " + ", ".join(f"{k}={v}" for k, v in overview.payment_status_counts.items()))
    lines.append("")
    lines.append("   Monthly sales:")
    for m in overview.sales_data:
        lines.append(f"      {m.name}: {format_money(m.sales)}")
    lines.append("")
    return "\n".join(lines)


def run_insights_report(orders_path=None, products_path=None, out_dir=None, now=None):
    """Load both collections, build the report and write txt + json. Returns (report, overview, out_dir)."""
    orders_path = Path(orders_path) if orders_path else DATA_DIR / "orders.json"
    products_path = Path(products_path) if products_path else DATA_DIR / "products.json"
    out_dir = Path(out_dir) if out_dir else OUTPUT_DIR
    now = as_utc_timestamp(now)

    orders = load_records(orders_path)
    products = load_records(products_path)
    print(f"Loaded {len(orders)} orders from {orders_path}")
    print(f"Loaded {len(products)} products from {products_path}")

    report = generate_insights(orders, products, now=now)
    overview = build_dashboard_overview(orders, products, now=now)

    out_dir.mkdir(parents=True, exist_ok=True)
    with open(out_dir / REPORT_TXT, "w", encoding="utf-8") as f:
        f.write(format_report(report, overview, now))
    with open(out_dir / REPORT_JSON, "w", encoding="utf-8") as f:
        json.dump(
            {
                "generated_at": now.isoformat(),
                "insights": report.model_dump(by_alias=True),
                "overview": overview.model_dump(mode="json"),
            },
            f,
            indent=2,
        )

    print(f"Insights written to {out_dir}")
    print(f"  {REPORT_TXT}, {REPORT_JSON}")
    print(report.summary)
    return report, overview, out_dir


def _parse_now(value):
    ts = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(ts):
        raise argparse.ArgumentTypeError(f"invalid ISO-8601 timestamp: {value!r}")
    return ts


def main(argv=None):
    parser = argparse.ArgumentParser(description="Generate a business insights report for a store snapshot")
    parser.add_argument("--orders", type=str, default=None, help="Orders file, .json or .csv (default: $STORE_DATA_DIR/orders.json)")
    parser.add_argument("--products", type=str, default=None, help="Products file, .json or .csv (default: $STORE_DATA_DIR/products.json)")
    parser.add_argument("--out", type=str, default=None, help="Output directory (default: $INSIGHTS_OUTPUT_DIR or reports/)")
    parser.add_argument("--now", type=_parse_now, default=None, help="Reference time for the 7-day windows (default: current UTC time)")
    args = parser.parse_args(argv)
    try:
        run_insights_report(args.orders, args.products, args.out, args.now)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
