"""
Dashboard overview: headline totals, top products, recent orders, monthly sales and
status breakdowns for the store home screen.
"""

import pandas as pd

from store_insights.data import orders_frame, products_frame
from store_insights.engine import as_utc_timestamp, round_half_away
from store_insights.schemas import (
    ORDER_STATUSES,
    PAYMENT_STATUSES,
    DashboardOverview,
    MonthlySales,
    RecentOrder,
    TopProduct,
    as_orders,
    as_products,
)

SALES_MONTHS = 12


def _status_counts(series, known):
    """Counts for every known status (zero-filled), then any other status seen, in first-seen order."""
    counts = {s: 0 for s in known}
    for status, n in series.value_counts(sort=False).items():
        counts[str(status)] = int(n)
    return counts


def monthly_sales(orders_df, now, months=SALES_MONTHS):
    """Revenue per calendar month for the `months` months ending at now's month (oldest first)."""
    now = as_utc_timestamp(now)
    end = now.tz_localize(None).to_period("M")
    periods = pd.period_range(end=end, periods=months, freq="M")
    dated = orders_df.dropna(subset=["created_at"])
    if len(dated):
        month = dated["created_at"].dt.tz_localize(None).dt.to_period("M")
        totals = dated.groupby(month)["total_amount"].sum()
    else:
        totals = pd.Series(dtype=float)
    return [
        MonthlySales(name=p.strftime("%b"), sales=round_half_away(float(totals.get(p, 0.0)), 2))
        for p in periods
    ]


def recent_orders(orders_df, limit=5):
    """Newest orders first; orders without a valid date are skipped."""
    dated = orders_df.dropna(subset=["created_at"])
    dated = dated.sort_values("created_at", ascending=False, kind="stable").head(limit)
    return [
        RecentOrder(
            id=row["id"],
            customer=row["customer_name"],
            total=round_half_away(row["total_amount"], 2),
            status=row["order_status"],
            date=row["created_at"].strftime("%Y-%m-%d"),
        )
        for row in dated.to_dict(orient="records")
    ]


def top_products(products_df, limit=5):
    top = products_df.sort_values("orders_received", ascending=False, kind="stable").head(limit)
    return [
        TopProduct(
            id=row["id"],
            name=row["name"] or f"Product {row['id']}",
            sales=float(row["orders_received"]),
            revenue=round_half_away(row["revenue"], 2),
        )
        for row in top.to_dict(orient="records")
    ]


def build_dashboard_overview(orders, products, now=None, top_n=5, recent_n=5):
    """Build the DashboardOverview; empty inputs give a zero-filled overview."""
    odf = orders_frame(as_orders(orders))
    pdf = products_frame(as_products(products))

    total_revenue = float(odf["total_amount"].sum())
    total_orders = int(len(odf))
    aov = total_revenue / total_orders if total_orders > 0 else 0.0

    return DashboardOverview(
        total_revenue=round_half_away(total_revenue, 2),
        total_orders=total_orders,
        average_order_value=round_half_away(aov, 2),
        top_products=top_products(pdf, top_n),
        recent_orders=recent_orders(odf, recent_n),
        sales_data=monthly_sales(odf, now),
        order_status_counts=_status_counts(odf["order_status"], ORDER_STATUSES),
        payment_status_counts=_status_counts(odf["payment_status"], PAYMENT_STATUSES),
    )
