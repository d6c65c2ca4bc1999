"""Relationship coverage counters for fetched resources."""

import logging
from typing import Any, Dict, Iterable, List, Optional


def has_relationship(resource: Dict[str, Any], name: str) -> bool:
    """True when ``relationships[name].data`` is a reference with an id or a list."""
    relationships = resource.get("relationships") or {}
    relationship = relationships.get(name) if isinstance(relationships, dict) else None
    if not isinstance(relationship, dict):
        return False
    data = relationship.get("data")
    if isinstance(data, dict):
        return data.get("id") is not None
    return isinstance(data, list)


def compute_relationship_stats(resources: List[Dict[str, Any]], names: Iterable[str]) -> Dict[str, int]:
    names = list(names)
    stats = {name: 0 for name in names}
    for resource in resources:
        for name in names:
            if has_relationship(resource, name):
                stats[name] += 1
    return stats


def log_relationship_stats(
    stats: Dict[str, int],
    total: int,
    label: str,
    logger: Optional[logging.Logger] = None,
) -> Dict[str, float]:
    """Log ``count (pct%)`` per relationship and return the percentages.

    Nothing is reported when ``total`` is zero.
    """
    if total <= 0:
        return {}
    log = logger or logging.getLogger(__name__)
    percentages = {}
    for name, count in stats.items():
        percentage = round(count / total * 100, 2)
        percentages[name] = percentage
        log.info(f"{label} with {name} relationship: {count} ({percentage}%)")
    return percentages
