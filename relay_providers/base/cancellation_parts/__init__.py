"""Implementation modules behind ``relay_providers.base.cancellation``."""
