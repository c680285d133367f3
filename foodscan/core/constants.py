"""
Pipeline Constants
Sentinel values, partition keys and event topics shared by the pipeline.
"""

# Sentinels for unresolved product fields
UNKNOWN_PRODUCT = "Unknown Product"
UNKNOWN_BRAND = "Unknown Brand"
INGREDIENTS_NOT_AVAILABLE = "Ingredients not available"

# Fallback category when the taxonomy matches nothing
NATURAL_CATEGORY = "natural"

# Partition key for the anonymous / dev identity
ANONYMOUS_PARTITION = "anonymous"

# Event bus topics
TOPIC_PRODUCTS = "products"  # Payload: list[Product] for the current identity
TOPIC_PREFERENCES = "preferences"  # Payload: UserPreferences
TOPIC_PRODUCT_ADDED = "product_added"  # Payload: the saved Product

# Notification kinds
NOTIFY_SUCCESS = "success"
NOTIFY_INFO = "info"
NOTIFY_WARNING = "warning"
NOTIFY_ERROR = "error"

VALID_NOTIFY_KINDS = [NOTIFY_SUCCESS, NOTIFY_INFO, NOTIFY_WARNING, NOTIFY_ERROR]
