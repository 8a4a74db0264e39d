"""relay_providers.config.defaults
===============================

Small, stable default values shared by the adapters, the service layer and
the configuration loader. Everything here can be overridden through
environment variables or the external config file; nothing here performs I/O.
"""

from __future__ import annotations

# ---- Service / HTTP layer ----

# Comma-separated list of allowed origins for the dev server.
PROVIDER_SERVICE_CORS_DEFAULT_ORIGINS = "http://localhost:5173,http://127.0.0.1:5173"
PROVIDER_SERVICE_DEFAULT_HOST = "127.0.0.1"
PROVIDER_SERVICE_DEFAULT_PORT = 8091


# ---- Generation defaults ----
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.7
# Google accepts a slightly larger output budget and its own sampling knobs.
GOOGLE_MAX_OUTPUT_TOKENS = 2048
GOOGLE_TOP_P = 0.8
GOOGLE_TOP_K = 40

# Simulated streaming (providers without incremental output).
SIMULATED_CHUNK_WORDS = 4
SIMULATED_CHUNK_DELAY_SECONDS = 0.03

# Replicate prediction polling.
REPLICATE_POLL_INTERVAL_SECONDS = 1.0
REPLICATE_POLL_TIMEOUT_SECONDS = 300.0

# Server-side tool limits.
ANTHROPIC_WEB_SEARCH_MAX_USES = 5
ANTHROPIC_THINKING_BUDGET_TOKENS = 1024


# ---- Provider-specific defaults ----
OPENAI_DEFAULT_MODEL = "gpt-4o-mini"
OPENAI_DEFAULT_BASE_URL = "https://api.openai.com/v1"

ANTHROPIC_DEFAULT_MODEL = "claude-3-5-sonnet-latest"
ANTHROPIC_DEFAULT_BASE_URL = "https://api.anthropic.com"

GOOGLE_DEFAULT_MODEL = "gemini-1.5-flash"
GOOGLE_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"

REPLICATE_DEFAULT_MODEL = "meta/meta-llama-3-8b-instruct"
REPLICATE_DEFAULT_BASE_URL = "https://api.replicate.com/v1"


__all__ = [
    "PROVIDER_SERVICE_CORS_DEFAULT_ORIGINS",
    "PROVIDER_SERVICE_DEFAULT_HOST",
    "PROVIDER_SERVICE_DEFAULT_PORT",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "GOOGLE_MAX_OUTPUT_TOKENS",
    "GOOGLE_TOP_P",
    "GOOGLE_TOP_K",
    "SIMULATED_CHUNK_WORDS",
    "SIMULATED_CHUNK_DELAY_SECONDS",
    "REPLICATE_POLL_INTERVAL_SECONDS",
    "REPLICATE_POLL_TIMEOUT_SECONDS",
    "ANTHROPIC_WEB_SEARCH_MAX_USES",
    "ANTHROPIC_THINKING_BUDGET_TOKENS",
    "OPENAI_DEFAULT_MODEL",
    "OPENAI_DEFAULT_BASE_URL",
    "ANTHROPIC_DEFAULT_MODEL",
    "ANTHROPIC_DEFAULT_BASE_URL",
    "GOOGLE_DEFAULT_MODEL",
    "GOOGLE_DEFAULT_BASE_URL",
    "REPLICATE_DEFAULT_MODEL",
    "REPLICATE_DEFAULT_BASE_URL",
]


# ---- SQLite record store (local development) ----
# Busy timeout mitigates lock contention (milliseconds).
SQLITE_BUSY_TIMEOUT_MS = 5000
SQLITE_JOURNAL_MODE = "WAL"
SQLITE_SYNCHRONOUS = "NORMAL"

__all__ += ["SQLITE_BUSY_TIMEOUT_MS", "SQLITE_JOURNAL_MODE", "SQLITE_SYNCHRONOUS"]
