"""Constants for the WLED Sync integration.

All domain-wide constants, configuration keys, and default values are
centralised here so that other modules can import them without creating
circular-import problems.
"""

from __future__ import annotations

# ── Integration identity ───────────────────────────────────────────────────────

DOMAIN = "wled_sync"
"""The HA domain / unique identifier for this integration."""

MANUFACTURER = "WLED"
MODEL = "WLED light"

DEFAULT_NAME = "WLED Light"

# ── Config-entry / options keys ────────────────────────────────────────────────

CONF_POLL_INTERVAL = "poll_interval"
"""Polling-fallback interval in milliseconds, stored in the entry options."""

CONF_MAX_RETRIES = "max_retries"
"""Failed push-channel retries tolerated before falling back to polling."""

CONF_DEBUG = "debug"
"""Verbose logging flag; debug traces are emitted at info level when set."""

DEFAULT_POLL_INTERVAL = 10000
MIN_POLL_INTERVAL = 1000

DEFAULT_MAX_RETRIES = 5
MAX_MAX_RETRIES = 20

DEFAULT_DEBUG = False

# ── Transport parameters ───────────────────────────────────────────────────────

RECONNECT_INTERVAL = 2.0
"""Base seconds for push-channel reconnects.
Attempt *n* waits ``n * RECONNECT_INTERVAL``: 2 → 4 → 6 → 8 → 10 s."""

BACKGROUND_RECONNECT_INTERVAL = 30.0
"""Seconds between push-channel reconnect attempts while polling."""

# ── Repairs ────────────────────────────────────────────────────────────────────

ISSUE_PUSH_UNAVAILABLE = "push_unavailable"
"""Translation key of the repair issue raised while in polling fallback."""
