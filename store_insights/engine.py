"""
Insight engine: rule-based business insights over order and product aggregates.

generate_insights(orders, products, now=None) recomputes every metric from scratch and turns
them into a summary line, key insights, recommendations and warnings using fixed thresholds.
No I/O and no state between calls; "now" is injectable so the 7-day windows are reproducible.

Window convention: last 7 days = (now - 7d, now], previous 7 days = (now - 14d, now - 7d].
An order stamped exactly now - 7d belongs to the previous window only. Orders without a valid
createdAt, or dated after now, are in neither window. The last window is closed at now rather
than at now - 7d so an order placed at the injected instant always counts as recent.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP, localcontext

import numpy as np
import pandas as pd

from store_insights.data import orders_frame, products_frame
from store_insights.schemas import InsightReport, as_orders, as_products

LOW_STOCK_THRESHOLD = 10
TOP_N = 5
RESTOCK_LIST_LIMIT = 5
PENDING_BACKLOG_THRESHOLD = 10
TREND_THRESHOLD_PCT = 10
CONCENTRATION_HIGH_PCT = 60
CONCENTRATION_LOW_PCT = 30
BREADTH_MIN_ORDERS = 50
LOW_AOV = 50
HIGH_AOV = 150
WINDOW = timedelta(days=7)

MAX_INSIGHTS = 8
MAX_RECOMMENDATIONS = 10
MAX_WARNINGS = 10

INSUFFICIENT_DATA_SUMMARY = "Not enough data to generate insights."
COLLECT_MORE_DATA = "Add products and record more orders so there is enough data to analyze store performance."

SCALE_UP_TOP_PERFORMERS = "Scale inventory and marketing spend behind your top performers to ride the upward trend."
RECOVERY_PROMOTION = "Run a recovery promotion and check fulfillment for delays or stockouts behind the decline."
UNPAID_FOLLOW_UP = "Send payment reminders for unpaid orders and hold fulfillment until payment clears."
PENDING_THROUGHPUT = "Add fulfillment staff or streamline picking and packing to clear the pending backlog."
DIVERSIFY_CATALOG = "Diversify the catalog and promote mid-tier products to reduce dependence on a few items."
BOOST_AOV_BREADTH = "Use bundles and volume discounts to lift average order value across the catalog."
UPSELL_CROSS_SELL = "Add upsell and cross-sell offers at checkout to raise average order value."
LOYALTY_SUBSCRIPTION = "Introduce loyalty rewards or subscription offers to retain high-value customers."
QUICK_WIN_MARKETING = (
    "Quick wins: retarget recent visitors, run a 48-hour flash sale, and boost ads on your best sellers."
)
OPERATIONS_CHECKLIST = (
    "Weekly checklist: review low-stock items, follow up on unpaid orders, and clear pending shipments."
)


# ---------------------------------------------------------------------------
# Number formatting (single rounding rule for every displayed figure)
# ---------------------------------------------------------------------------
def round_half_away(value, places=2):
    """Round half away from zero to `places` decimals (2.675 -> 2.68, -0.125 -> -0.13)."""
    value = float(value)
    if not np.isfinite(value):
        return value
    d = Decimal(str(value))
    with localcontext() as ctx:
        # quantize needs every integer digit plus the requested decimals
        ctx.prec = max(28, d.adjusted() + places + 2)
        return float(d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def format_money(value):
    return f"${round_half_away(value, 2):,.2f}"


def format_pct(value, places=1, signed=False):
    rounded = round_half_away(value, places)
    if signed:
        return f"{rounded:+.{places}f}%"
    return f"{rounded:.{places}f}%"


def format_count(value):
    value = float(value)
    return str(int(value)) if value.is_integer() else f"{value:g}"


def _plural(n, singular, plural):
    return singular if n == 1 else plural


def _product_label(row):
    if row["name"]:
        return row["name"]
    if row["id"] is not None and not pd.isna(row["id"]):
        return f"Product {row['id']}"
    return "Unnamed product"


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------
def utc_now():
    return datetime.now(timezone.utc)


def as_utc_timestamp(now=None):
    """Normalize an injected clock value to a tz-aware UTC pandas Timestamp (naive = UTC)."""
    ts = pd.Timestamp(utc_now() if now is None else now)
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def revenue_windows(orders_df, now):
    """Return (last7_sum, prev7_sum) over the half-open trailing windows ending at now."""
    now = as_utc_timestamp(now)
    ts = orders_df["created_at"]
    last_mask = (ts > now - WINDOW) & (ts <= now)
    prev_mask = (ts > now - 2 * WINDOW) & (ts <= now - WINDOW)
    last7 = float(orders_df.loc[last_mask, "total_amount"].sum())
    prev7 = float(orders_df.loc[prev_mask, "total_amount"].sum())
    return last7, prev7


def pct_change(last7, prev7):
    """Week-over-week change in percent; a zero baseline saturates to 0 (flat) or 100 (growth)."""
    if prev7 == 0:
        return 0.0 if last7 == 0 else 100.0
    return round_half_away((last7 - prev7) / abs(prev7) * 100, 2)


def compute_store_metrics(orders, products, now=None):
    """
    Aggregate the core metrics used by generate_insights.
    Returns a dict; low_stock / top_products are lists of row dicts in report order.
    """
    odf = orders_frame(as_orders(orders))
    pdf = products_frame(as_products(products))

    total_revenue = float(odf["total_amount"].sum())
    total_orders = int(len(odf))
    avg_order_value = total_revenue / total_orders if total_orders > 0 else 0.0

    low_stock = pdf[pdf["stock"] < LOW_STOCK_THRESHOLD]
    top = pdf.sort_values("orders_received", ascending=False, kind="stable").head(TOP_N)
    top_revenue = float(top["revenue"].sum())
    product_revenue_total = float(pdf["revenue"].sum())
    if product_revenue_total == 0:
        product_revenue_total = 1.0
    top_share_pct = round_half_away(top_revenue / product_revenue_total * 100, 1)

    last7_sum, prev7_sum = revenue_windows(odf, now)

    return {
        "total_revenue": total_revenue,
        "total_orders": total_orders,
        "avg_order_value": avg_order_value,
        "low_stock": low_stock.to_dict(orient="records"),
        "top_products": top.to_dict(orient="records"),
        "top_revenue": top_revenue,
        "product_revenue_total": product_revenue_total,
        "top_share_pct": top_share_pct,
        "unpaid_count": int((odf["payment_status"] == "Unpaid").sum()),
        "pending_count": int((odf["order_status"] == "Pending").sum()),
        "last7_sum": last7_sum,
        "prev7_sum": prev7_sum,
        "pct_change": pct_change(last7_sum, prev7_sum),
    }


# ---------------------------------------------------------------------------
# Report assembly
# ---------------------------------------------------------------------------
def dedupe_and_cap(items, cap):
    """Drop exact duplicates keeping first occurrence, then truncate to cap."""
    return list(dict.fromkeys(items))[:cap]


def insufficient_data_report():
    return InsightReport(
        summary=INSUFFICIENT_DATA_SUMMARY,
        key_insights=[],
        recommendations=[COLLECT_MORE_DATA],
        warnings=[],
    )


def build_summary(m):
    parts = [
        f"Revenue {format_money(m['total_revenue'])} • AOV {format_money(m['avg_order_value'])}",
        f"Low stock: {len(m['low_stock'])}",
        f"Unpaid: {m['unpaid_count']} • Pending: {m['pending_count']}",
        f"7-day change: {format_pct(m['pct_change'], 2, signed=True)}",
    ]
    return " | ".join(parts)


def generate_insights(orders, products, now=None):
    """
    Build an InsightReport from in-memory orders and products.
    Empty or missing products (or missing orders) short-circuit to the insufficient-data report.
    """
    if orders is None or products is None:
        return insufficient_data_report()
    products = as_products(products)
    if not products:
        return insufficient_data_report()
    orders = as_orders(orders)

    m = compute_store_metrics(orders, products, now)
    insights, recommendations, warnings = [], [], []

    insights.append(f"Total revenue {format_money(m['total_revenue'])} across {m['total_orders']} orders.")
    insights.append(f"Average order value is {format_money(m['avg_order_value'])}.")

    if m["top_products"]:
        names = ", ".join(_product_label(p) for p in m["top_products"])
        insights.append(
            f"Top products by orders: {names}. They generate {format_pct(m['top_share_pct'], 1)} of product revenue."
        )

    # Revenue trend
    change = m["pct_change"]
    if change > TREND_THRESHOLD_PCT:
        insights.append(
            f"Revenue is up {format_pct(change, 2)} over the last 7 days compared to the previous 7 days."
        )
        recommendations.append(SCALE_UP_TOP_PERFORMERS)
    elif change < -TREND_THRESHOLD_PCT:
        insights.append(
            f"Revenue is down {format_pct(abs(change), 2)} over the last 7 days compared to the previous 7 days."
        )
        warnings.append(f"Revenue declined {format_pct(abs(change), 2)} week over week.")
        recommendations.append(RECOVERY_PROMOTION)
    else:
        insights.append(
            f"Revenue is relatively stable week over week ({format_pct(change, 2, signed=True)})."
        )

    # Inventory
    low = m["low_stock"]
    if low:
        n = len(low)
        warnings.append(f"{n} {_plural(n, 'product is', 'products are')} critically low in stock.")
        lowest = sorted(low, key=lambda p: p["stock"])[:RESTOCK_LIST_LIMIT]
        items = ", ".join(f"{_product_label(p)} ({format_count(p['stock'])} left)" for p in lowest)
        recommendations.append(f"Restock soon: {items}.")
    else:
        insights.append("Inventory levels look healthy across all products.")

    # Payments and fulfillment
    unpaid = m["unpaid_count"]
    if unpaid > 0:
        warnings.append(f"{unpaid} {_plural(unpaid, 'order is', 'orders are')} still unpaid.")
        recommendations.append(UNPAID_FOLLOW_UP)
    pending = m["pending_count"]
    if pending > PENDING_BACKLOG_THRESHOLD:
        warnings.append(f"{pending} orders are pending fulfillment.")
        recommendations.append(PENDING_THROUGHPUT)

    # Revenue concentration
    share = m["top_share_pct"]
    if share > CONCENTRATION_HIGH_PCT:
        warnings.append(
            f"Top {TOP_N} products generate {format_pct(share, 1)} of product revenue; revenue is highly concentrated."
        )
        recommendations.append(DIVERSIFY_CATALOG)
    elif share < CONCENTRATION_LOW_PCT and m["total_orders"] > BREADTH_MIN_ORDERS:
        insights.append(
            f"Revenue is well spread across the catalog (top {TOP_N} share {format_pct(share, 1)})."
        )
        recommendations.append(BOOST_AOV_BREADTH)

    # Pricing
    aov = m["avg_order_value"]
    if aov < LOW_AOV:
        recommendations.append(UPSELL_CROSS_SELL)
    elif aov > HIGH_AOV:
        recommendations.append(LOYALTY_SUBSCRIPTION)

    if m["total_orders"] > 0:
        recommendations.append(QUICK_WIN_MARKETING)
    recommendations.append(OPERATIONS_CHECKLIST)

    return InsightReport(
        summary=build_summary(m),
        key_insights=insights[:MAX_INSIGHTS],
        recommendations=dedupe_and_cap(recommendations, MAX_RECOMMENDATIONS),
        warnings=dedupe_and_cap(warnings, MAX_WARNINGS),
    )
