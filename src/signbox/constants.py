"""
Application-wide constants for signbox.

Wire header names, pool defaults, environment variable names and
validation bounds are centralized here.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("signbox")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "API_KEY_HEADER",
    "CONTENT_TYPE_OCTET_STREAM",
    "DEFAULT_ACQUIRE_TIMEOUT",
    "DEFAULT_MAX_CONNECTIONS",
    "DEFAULT_REQUEST_TIMEOUT",
    "DEFAULT_UNCLASSIFIED_STATUS",
    "ENV_ACQUIRE_TIMEOUT",
    "ENV_API_KEY",
    "ENV_MAX_CONNECTIONS",
    "ENV_PASS",
    "ENV_TIMEOUT",
    "ENV_UNCLASSIFIED_STATUS",
    "ENV_URL",
    "ENV_USER",
    "MAX_CONNECTIONS_LIMIT",
    "MAX_TIMEOUT",
    "MIN_TIMEOUT",
    "STATUS_POLICIES",
    "TRANSACTION_ID_HEADER",
    "__version__",
]

# ── Wire protocol ─────────────────────────────────────────────────────

# API key header sent on every request
API_KEY_HEADER = "X-SIGNBOX-EASYSIGN"

# Correlation id header; sent on every request, echoed back by the server
TRANSACTION_ID_HEADER = "X-SIGNBOX-TRANSACTION-ID"

# Content type of the uploaded document part
CONTENT_TYPE_OCTET_STREAM = "application/octet-stream"


# ── Connection pool defaults ──────────────────────────────────────────

# Maximum concurrent connections to the signing service
DEFAULT_MAX_CONNECTIONS = 40

# Seconds a request may wait in the queue for a free connection (10 minutes)
DEFAULT_ACQUIRE_TIMEOUT = 600

# Connect/read/write timeout for one signing exchange (seconds)
DEFAULT_REQUEST_TIMEOUT = 120

# Upper bound accepted for max_connections from config/env
MAX_CONNECTIONS_LIMIT = 1000


# ── Classification policy ─────────────────────────────────────────────

# Valid values for the policy applied to statuses other than 200/401/503
STATUS_POLICIES = ("retryable", "permanent")

DEFAULT_UNCLASSIFIED_STATUS = "retryable"


# ── Environment variable names ──────────────────────────────────────

ENV_URL = "SIGNBOX_URL"
ENV_API_KEY = "SIGNBOX_API_KEY"
ENV_USER = "SIGNBOX_USER"
ENV_PASS = "SIGNBOX_PASS"
ENV_MAX_CONNECTIONS = "SIGNBOX_MAX_CONNECTIONS"
ENV_ACQUIRE_TIMEOUT = "SIGNBOX_ACQUIRE_TIMEOUT"
ENV_TIMEOUT = "SIGNBOX_TIMEOUT"
ENV_UNCLASSIFIED_STATUS = "SIGNBOX_UNCLASSIFIED_STATUS"


# ── Timeout validation ──────────────────────────────────────────────

MIN_TIMEOUT = 1
MAX_TIMEOUT = 3600
