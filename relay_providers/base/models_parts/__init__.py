"""One-class-per-file implementations behind ``relay_providers.base.models``."""
