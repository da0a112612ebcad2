"""API-related constants."""

# HTTP Headers
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Routing
SAMPLES_PREFIX = "/samples"

# Bounds applied by the sample endpoints
MAX_USERS_PER_REQUEST = 100
MAX_USER_NAME_LENGTH = 128
MAX_USER_AGE = 150
