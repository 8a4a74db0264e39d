"""Credential resolution."""

from .credentials import PROVIDER_CONFIGS, ProviderCredentialResolver

__all__ = ["PROVIDER_CONFIGS", "ProviderCredentialResolver"]
