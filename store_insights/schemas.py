"""
Pydantic models for store records and the structured results built from them.

Input models accept the camelCase keys returned by the store backend as well as snake_case
keys, and coerce missing / malformed numeric fields to 0 at this boundary so downstream
aggregation never has to re-check them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from store_insights.data import coerce_non_negative, parse_timestamp

ORDER_STATUSES = ("Pending", "Delivered", "Cancelled")
PAYMENT_STATUSES = ("Unpaid", "Paid", "Refunded")


class _Record(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


# ---------------------------------------------------------------------------
# Input records
# ---------------------------------------------------------------------------
class OrderItem(_Record):
    product_id: Optional[Union[int, str]] = Field(None, validation_alias=AliasChoices("productId", "product_id"))
    name: Optional[str] = Field(None, validation_alias=AliasChoices("name", "productName"))
    price: float = Field(0.0, validation_alias=AliasChoices("unitPrice", "unit_price", "price"))
    quantity: float = 0.0
    total_price: Optional[float] = Field(None, validation_alias=AliasChoices("totalPrice", "total_price"))

    @field_validator("price", "quantity", mode="before")
    @classmethod
    def non_negative(cls, v):
        return coerce_non_negative(v)

    @field_validator("total_price", mode="before")
    @classmethod
    def optional_total(cls, v):
        return None if v is None else coerce_non_negative(v)

    def line_total(self) -> float:
        if self.total_price is not None:
            return self.total_price
        return self.price * self.quantity


class Order(_Record):
    id: Optional[Union[int, str]] = Field(None, validation_alias=AliasChoices("id", "orderId", "order_id"))
    customer_name: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("customerName", "customer_name"),
        serialization_alias="customerName",
    )
    total_amount: float = Field(
        0.0,
        validation_alias=AliasChoices("totalAmount", "total_amount"),
        serialization_alias="totalAmount",
    )
    order_status: str = Field(
        "Pending",
        validation_alias=AliasChoices("orderStatus", "order_status"),
        serialization_alias="orderStatus",
    )
    payment_status: str = Field(
        "Unpaid",
        validation_alias=AliasChoices("paymentStatus", "payment_status"),
        serialization_alias="paymentStatus",
    )
    created_at: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("createdAt", "created_at", "orderDate", "order_date"),
        serialization_alias="createdAt",
    )
    items: List[OrderItem] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def total_from_items(cls, data: Any):
        # Backend sometimes omits totalAmount and only returns line items
        if not isinstance(data, dict):
            return data
        if data.get("totalAmount") is not None or data.get("total_amount") is not None:
            return data
        items = data.get("items")
        if not isinstance(items, list) or not items:
            return data
        parsed = [OrderItem.model_validate(it) for it in items if isinstance(it, (dict, OrderItem))]
        data = dict(data)
        data.pop("totalAmount", None)
        data["total_amount"] = sum(it.line_total() for it in parsed)
        return data

    @field_validator("total_amount", mode="before")
    @classmethod
    def amount(cls, v):
        return coerce_non_negative(v)

    @field_validator("order_status", mode="before")
    @classmethod
    def order_status_default(cls, v):
        if isinstance(v, str) and v.strip():
            return v.strip()
        return "Pending"

    @field_validator("payment_status", mode="before")
    @classmethod
    def payment_status_default(cls, v):
        if isinstance(v, str) and v.strip():
            return v.strip()
        return "Unpaid"

    @field_validator("created_at", mode="before")
    @classmethod
    def timestamp(cls, v):
        return parse_timestamp(v)

    @field_validator("items", mode="before")
    @classmethod
    def item_list(cls, v):
        if not isinstance(v, list):
            return []
        return [it for it in v if isinstance(it, (dict, OrderItem))]


class Product(_Record):
    id: Optional[Union[int, str]] = Field(None, validation_alias=AliasChoices("id", "product_id", "productId"))
    name: str = Field("", validation_alias=AliasChoices("name", "title"))
    price: float = 0.0
    stock: int = Field(0, description="Units on hand; fractional input is truncated")
    orders_received: float = Field(
        0.0,
        validation_alias=AliasChoices("ordersReceived", "orders_received"),
        serialization_alias="ordersReceived",
    )

    @field_validator("name", mode="before")
    @classmethod
    def display_name(cls, v):
        return "" if v is None else str(v).strip()

    @field_validator("price", "orders_received", mode="before")
    @classmethod
    def non_negative(cls, v):
        return coerce_non_negative(v)

    @field_validator("stock", mode="before")
    @classmethod
    def whole_units(cls, v):
        return int(coerce_non_negative(v))


def as_orders(records: Optional[Iterable[Any]]) -> List[Order]:
    """Validate raw mappings (or pass through Order models). None -> []."""
    if records is None:
        return []
    return [r if isinstance(r, Order) else Order.model_validate(r) for r in records]


def as_products(records: Optional[Iterable[Any]]) -> List[Product]:
    if records is None:
        return []
    return [r if isinstance(r, Product) else Product.model_validate(r) for r in records]


# ---------------------------------------------------------------------------
# Insight report
# ---------------------------------------------------------------------------
class InsightReport(BaseModel):
    summary: str = Field(..., description="Single line combining headline metrics")
    key_insights: List[str] = Field(default_factory=list, serialization_alias="keyInsights")
    recommendations: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Dashboard overview
# ---------------------------------------------------------------------------
class TopProduct(BaseModel):
    id: Optional[Union[int, str]] = None
    name: str
    sales: float = Field(..., description="Orders received")
    revenue: float = Field(..., description="price * orders received")


class RecentOrder(BaseModel):
    id: Optional[Union[int, str]] = None
    customer: Optional[str] = None
    total: float
    status: str
    date: str = Field(..., description="YYYY-MM-DD")


class MonthlySales(BaseModel):
    name: str = Field(..., description="Month abbreviation, e.g. Jan")
    sales: float


class DashboardOverview(BaseModel):
    total_revenue: float = 0.0
    total_orders: int = 0
    average_order_value: float = 0.0
    top_products: List[TopProduct] = Field(default_factory=list)
    recent_orders: List[RecentOrder] = Field(default_factory=list)
    sales_data: List[MonthlySales] = Field(default_factory=list)
    order_status_counts: dict[str, int] = Field(default_factory=dict)
    payment_status_counts: dict[str, int] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Automation rules and alerts
# ---------------------------------------------------------------------------
class InventoryRule(BaseModel):
    id: Optional[Union[int, str]] = None
    name: str = Field(..., min_length=1, max_length=128)
    condition: Literal["below", "above", "equals"]
    value: float = Field(..., ge=0)
    action: str = Field(..., min_length=1, max_length=256)
    status: Literal["active", "paused"] = "active"

    @field_validator("name", "action", mode="before")
    @classmethod
    def strip_str(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("condition", "status", mode="before")
    @classmethod
    def lower_str(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class Alert(BaseModel):
    type: Literal["warning", "error", "success", "info"]
    title: str
    message: str
    time: str
    status: Literal["read", "unread"] = "unread"
    rule_id: Optional[Union[int, str]] = None
    product_id: Optional[Union[int, str]] = None


class AutomationStats(BaseModel):
    total_rules: int = 0
    active_rules: int = 0
    alerts: int = 0
    warnings: int = 0
    errors: int = 0
    success: int = 0
    info: int = 0
    unread: int = 0
