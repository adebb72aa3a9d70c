# Overview: Registry of supported store settings keys, their types, defaults and limits.

SETTINGS_CATALOG = [
    {"key": "store_name", "type": "string", "default": "Billionaire Level", "validation": {"max_length": 128}},
    {"key": "admin_pin", "type": "pin", "default": "4200", "is_sensitive": True, "validation": {"min_length": 4, "max_length": 12}},
    {"key": "maintenance_mode", "type": "bool", "default": False},

    {"key": "financials.tax_rate", "type": "percent", "default": 0},
    {"key": "financials.delivery_fee", "type": "money", "default": 10},
    {"key": "financials.min_order_amount", "type": "money", "default": 0},
    {"key": "financials.currency_symbol", "type": "string", "default": "$", "validation": {"max_length": 4}},

    {"key": "payments.online", "type": "bool", "default": False},
    {"key": "payments.cash_in_store", "type": "bool", "default": True},
    {"key": "payments.card_in_store", "type": "bool", "default": True},
    {"key": "payments.crypto", "type": "bool", "default": False},

    {"key": "loyalty.enabled", "type": "bool", "default": True},
    {"key": "loyalty.points_per_dollar", "type": "money", "default": 1},

    {"key": "referral.enabled", "type": "bool", "default": True},
    {"key": "referral.percentage", "type": "percent", "default": 10},

    {"key": "messages.enabled", "type": "bool", "default": True},
    {"key": "messages.template", "type": "string", "default": "Thanks for shopping with us! Enjoy your lift-off.", "validation": {"max_length": 500}},

    {"key": "inventory.low_stock_threshold", "type": "int", "default": 5},

    {"key": "delivery.enabled", "type": "bool", "default": False},
]

SETTINGS_BY_KEY = {row["key"]: row for row in SETTINGS_CATALOG}
