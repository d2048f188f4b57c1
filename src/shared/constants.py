"""Shared constants across the application."""

# Feed limits
MAX_PRODUCTS_PER_PASS = 50

# Option values are stored as one delimited string
OPTION_VALUES_SEPARATOR = ","

# Sync bookkeeping
PRODUCT_SYNC_ID = "products"
SYNC_QUEUE = "sync"

# Schedule
SYNC_INTERVAL_HOURS = 24

# Cache keys
PRODUCT_LIST_CACHE_KEY = "catalog:products"
PRODUCT_LIST_CACHE_TTL_SECONDS = 300
