# Constants shared by the catalog query engine and the cart ledger.

# Filter sentinel meaning "do not filter on this field"
ALL = "All"
CATEGORIES = ("Men", "Women")

# Sort keys
SORT_DEFAULT = "default"          # caller order (server: newest created first)
SORT_PRICE_LOW = "price-low"      # ascending price
SORT_PRICE_HIGH = "price-high"    # descending price
SORT_NEWEST = "newest"            # descending date_added
SORT_POPULAR = "popular"          # descending reviews count

ALL_SORT_KEYS = {SORT_DEFAULT, SORT_PRICE_LOW, SORT_PRICE_HIGH, SORT_NEWEST, SORT_POPULAR}

# Pagination
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100

# Order totals (flat rates, no jurisdiction/tier logic)
SHIPPING_FLAT_RATE = 29.99
TAX_RATE = 0.10
