"""
FastAPI service exposing store insights to the dashboard.

Endpoints:
- POST /insights              orders + products -> InsightReport
- POST /overview              orders + products -> DashboardOverview
- POST /automation/evaluate   inventory rules + products -> alerts and stats
- GET  /health

Assumptions:
- The dashboard has already fetched orders/products from the store backend and posts them as-is
  (camelCase or snake_case keys); malformed numeric fields are coerced to 0 by the models.
- `now` is optional; when omitted the current UTC time defines the 7-day windows.
"""

import traceback
from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

try:
    from store_insights.automation import automation_stats, evaluate_inventory_rules
    from store_insights.engine import generate_insights
    from store_insights.overview import build_dashboard_overview
    from store_insights.schemas import (
        Alert,
        AutomationStats,
        DashboardOverview,
        InsightReport,
        InventoryRule,
        Order,
        Product,
    )
except ImportError:
    from automation import automation_stats, evaluate_inventory_rules
    from engine import generate_insights
    from overview import build_dashboard_overview
    from schemas import (
        Alert,
        AutomationStats,
        DashboardOverview,
        InsightReport,
        InventoryRule,
        Order,
        Product,
    )

VERSION = "1.0.0"

app = FastAPI(
    title="Store Insights API",
    description="Rule-based business insights, dashboard overview and inventory alerts for a store.",
    version=VERSION,
)


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------
class SnapshotRequest(BaseModel):
    orders: List[Order] = Field(default_factory=list, max_length=100_000)
    products: List[Product] = Field(default_factory=list, max_length=100_000)
    now: Optional[datetime] = Field(None, description="Reference time for trailing windows (ISO-8601)")


class OverviewRequest(SnapshotRequest):
    top_n: int = Field(5, ge=1, le=50)
    recent_n: int = Field(5, ge=1, le=50)


class AutomationRequest(BaseModel):
    rules: List[InventoryRule] = Field(default_factory=list, max_length=1_000)
    products: List[Product] = Field(default_factory=list, max_length=100_000)
    now: Optional[datetime] = None


class AutomationResponse(BaseModel):
    alerts: List[Alert]
    stats: AutomationStats


def _failed(what: str, e: Exception) -> HTTPException:
    traceback.print_exc()
    return HTTPException(status_code=500, detail=f"{what} failed: {str(e)}")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@app.post("/insights", response_model=InsightReport)
def insights(request: SnapshotRequest):
    """Summary, key insights, recommendations and warnings for the posted snapshot."""
    try:
        return generate_insights(request.orders, request.products, now=request.now)
    except Exception as e:
        raise _failed("Insight generation", e)


@app.post("/overview", response_model=DashboardOverview)
def overview(request: OverviewRequest):
    """Headline totals, top products, recent orders, monthly sales and status counts."""
    try:
        return build_dashboard_overview(
            request.orders,
            request.products,
            now=request.now,
            top_n=request.top_n,
            recent_n=request.recent_n,
        )
    except Exception as e:
        raise _failed("Overview", e)


@app.post("/automation/evaluate", response_model=AutomationResponse)
def evaluate_rules(request: AutomationRequest):
    """Fire active inventory rules against the catalog."""
    try:
        alerts = evaluate_inventory_rules(request.rules, request.products, now=request.now)
        return AutomationResponse(alerts=alerts, stats=automation_stats(request.rules, alerts))
    except Exception as e:
        raise _failed("Rule evaluation", e)


@app.get("/health")
def health():
    return {"status": "ok", "version": VERSION}


# Run: uvicorn store_insights.serve:app --reload
#
# curl -X POST http://localhost:8000/insights \
#   -H "Content-Type: application/json" \
#   -d '{
#     "orders": [{"id": 1, "totalAmount": 150, "orderStatus": "Delivered", "paymentStatus": "Paid",
#                 "createdAt": "2025-07-24T10:00:00Z"}],
#     "products": [{"id": "prod-001", "name": "StoreForge Pro Theme", "price": 49.99, "stock": 5,
#                   "ordersReceived": 250}]
#   }'
