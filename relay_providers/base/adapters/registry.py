"""Closed dispatch from `ProviderKind` to adapter instance."""
from __future__ import annotations

from typing import Dict, Iterable, Mapping

from ..models import ProviderKind
from .base_adapter import ProviderAdapter


class AdapterRegistry:
    """Maps every `ProviderKind` to exactly one adapter.

    Construction fails when a kind is left without an adapter, so adding a
    member to `ProviderKind` without an implementation is caught at startup.
    """

    def __init__(self, adapters: Iterable[ProviderAdapter], *, require_all: bool = True) -> None:
        table: Dict[ProviderKind, ProviderAdapter] = {}
        for adapter in adapters:
            if adapter.kind in table:
                raise ValueError(f"duplicate adapter for provider kind {adapter.kind.value!r}")
            table[adapter.kind] = adapter
        if require_all:
            missing = [k.value for k in ProviderKind if k not in table]
            if missing:
                raise ValueError(f"no adapter registered for: {', '.join(missing)}")
        self._table = table

    def get(self, kind: ProviderKind) -> ProviderAdapter:
        try:
            return self._table[kind]
        except KeyError:
            raise LookupError(f"no adapter registered for provider kind {kind.value!r}") from None

    def kinds(self) -> Mapping[ProviderKind, ProviderAdapter]:
        return dict(self._table)


__all__ = ["AdapterRegistry"]
