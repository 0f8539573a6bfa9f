"""
Data loading and normalization for order and product records.
Shared by the insight engine, the dashboard overview and the CLI; single source of truth
for numeric coercion, timestamp parsing and the DataFrame shape of each collection.
"""

from pathlib import Path
import json
import os

import numpy as np
import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.environ.get("STORE_DATA_DIR", PROJECT_ROOT / "data"))

ORDER_COLUMNS = ["id", "customer_name", "total_amount", "order_status", "payment_status", "created_at"]
PRODUCT_COLUMNS = ["id", "name", "price", "stock", "orders_received"]

# Wrapper keys accepted around a JSON list, e.g. {"products": [...]}
_WRAPPER_KEYS = ("orders", "products", "data", "items")


def coerce_number(value, fallback=0.0):
    """Return value as a finite float; None, NaN, inf, bools and unparseable input give fallback."""
    if value is None or isinstance(value, bool):
        return fallback
    if isinstance(value, str):
        cleaned = value.replace(",", "").replace("$", "").strip()
        if not cleaned:
            return fallback
        value = cleaned
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not np.isfinite(number):
        return fallback
    return number


def coerce_non_negative(value, fallback=0.0):
    """coerce_number, with negative amounts and counts clamped to 0."""
    number = coerce_number(value, fallback)
    return number if number > 0 else 0.0


def parse_timestamp(value):
    """Parse ISO-8601 strings / datetimes to a UTC datetime. Invalid or missing -> None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        ts = pd.to_datetime(value, utc=True, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    return ts.to_pydatetime()


def load_records(path):
    """
    Load a list of records from .json or .csv.
    JSON may be a plain list or an object wrapping the list under orders/products/data/items.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Data file not found: {path}")
    suffix = path.suffix.lower()
    if suffix == ".json":
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        if isinstance(raw, dict):
            for key in _WRAPPER_KEYS:
                if isinstance(raw.get(key), list):
                    raw = raw[key]
                    break
        if not isinstance(raw, list):
            raise ValueError(f"Expected a list of records in {path.name}")
        return [r for r in raw if isinstance(r, dict)]
    if suffix == ".csv":
        df = pd.read_csv(path)
        # NaN cells become None so the model validators see them as missing
        df = df.astype(object).where(df.notna(), None)
        return df.to_dict(orient="records")
    raise ValueError(f"Unsupported data file format: {path.suffix or path.name}")


def orders_frame(orders):
    """
    Build the order-level DataFrame from validated Order models.
    created_at is a tz-aware UTC datetime column (NaT where missing).
    """
    rows = [o.model_dump(include=set(ORDER_COLUMNS)) for o in orders]
    df = pd.DataFrame(rows, columns=ORDER_COLUMNS, dtype=object)
    df["total_amount"] = pd.to_numeric(df["total_amount"], errors="coerce").fillna(0.0).astype(float)
    df["created_at"] = pd.to_datetime(df["created_at"], utc=True, errors="coerce")
    return df


def products_frame(products):
    """Build the product-level DataFrame; derived revenue = price * orders_received."""
    rows = [p.model_dump(include=set(PRODUCT_COLUMNS)) for p in products]
    df = pd.DataFrame(rows, columns=PRODUCT_COLUMNS, dtype=object)
    for c in ("price", "stock", "orders_received"):
        df[c] = pd.to_numeric(df[c], errors="coerce").fillna(0.0).astype(float)
    df["revenue"] = df["price"] * df["orders_received"]
    return df
