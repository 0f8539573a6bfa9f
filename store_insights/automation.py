"""
Automation panel logic: evaluate inventory rules against the product catalog and summarize
or filter the resulting alerts. Rule/alert storage lives in the store backend; this module only
computes.
"""

from store_insights.engine import as_utc_timestamp, format_count
from store_insights.schemas import Alert, AutomationStats, InventoryRule, as_products


def as_rules(rules):
    if rules is None:
        return []
    return [r if isinstance(r, InventoryRule) else InventoryRule.model_validate(r) for r in rules]


def trigger_summary(rule):
    """Human-readable trigger, e.g. 'Inventory below 10 units'."""
    return f"Inventory {rule.condition} {format_count(rule.value)} units"


def rule_matches(rule, stock):
    if rule.condition == "below":
        return stock < rule.value
    if rule.condition == "above":
        return stock > rule.value
    return stock == rule.value


def _alert_type(rule, stock):
    if rule.condition == "above":
        return "info"
    if stock <= 0:
        return "error"
    return "warning"


def evaluate_inventory_rules(rules, products, now=None):
    """
    One alert per (active rule, matching product), in rule order then product order.
    Paused rules never fire.
    """
    stamp = as_utc_timestamp(now).isoformat()
    products = as_products(products)
    alerts = []
    for rule in as_rules(rules):
        if rule.status != "active":
            continue
        for product in products:
            if not rule_matches(rule, product.stock):
                continue
            name = product.name or f"Product {product.id}"
            alerts.append(
                Alert(
                    type=_alert_type(rule, product.stock),
                    title=rule.name,
                    message=f"{name} has {format_count(product.stock)} units in stock ({trigger_summary(rule).lower()}). Action: {rule.action}",
                    time=stamp,
                    status="unread",
                    rule_id=rule.id,
                    product_id=product.id,
                )
            )
    return alerts


def automation_stats(rules, alerts):
    rules = as_rules(rules)
    alerts = [a if isinstance(a, Alert) else Alert.model_validate(a) for a in alerts or []]
    return AutomationStats(
        total_rules=len(rules),
        active_rules=sum(1 for r in rules if r.status == "active"),
        alerts=len(alerts),
        warnings=sum(1 for a in alerts if a.type == "warning"),
        errors=sum(1 for a in alerts if a.type == "error"),
        success=sum(1 for a in alerts if a.type == "success"),
        info=sum(1 for a in alerts if a.type == "info"),
        unread=sum(1 for a in alerts if a.status == "unread"),
    )


def filter_rules(rules, search=""):
    """Case-insensitive match on rule name or trigger summary."""
    term = (search or "").strip().lower()
    rules = as_rules(rules)
    if not term:
        return rules
    return [r for r in rules if term in r.name.lower() or term in trigger_summary(r).lower()]


def filter_alerts(alerts, search="", alert_type="all"):
    """Case-insensitive match on title or message, optionally restricted to one alert type."""
    term = (search or "").strip().lower()
    alerts = [a if isinstance(a, Alert) else Alert.model_validate(a) for a in alerts or []]
    result = []
    for a in alerts:
        if term and term not in a.title.lower() and term not in a.message.lower():
            continue
        if alert_type not in (None, "", "all") and a.type != alert_type:
            continue
        result.append(a)
    return result
