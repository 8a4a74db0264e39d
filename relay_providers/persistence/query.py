"""Query evaluation shared by the in-process record stores."""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional

from .interfaces.repos import FindQuery, Record


def matches(record: Record, where: Optional[Dict[str, Any]]) -> bool:
    """Equality match on every ``where`` key."""
    if not where:
        return True
    return all(record.get(k) == v for k, v in where.items())


def _order(records: List[Record], field_name: str, direction: str) -> List[Record]:
    present = [r for r in records if r.get(field_name) is not None]
    missing = [r for r in records if r.get(field_name) is None]
    present.sort(key=lambda r: r[field_name], reverse=str(direction).lower() == "desc")
    return present + missing


def apply_query(records: Iterable[Record], query: Optional[FindQuery]) -> List[Record]:
    """Filter, order and page ``records``; returns deep copies.

    Records missing an ordering field sort after those that have it, in
    either direction.
    """
    query = query or FindQuery()
    selected = [r for r in records if matches(r, query.where)]
    # stable sorts applied last key first give multi-key ordering
    for field_name, direction in reversed(list(query.order_by)):
        selected = _order(selected, field_name, direction)
    start = max(query.offset, 0)
    end = start + query.limit if query.limit is not None else None
    return [copy.deepcopy(r) for r in selected[start:end]]


__all__ = ["matches", "apply_query"]
