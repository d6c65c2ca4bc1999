"""
Attach JSON:API ``included`` entities to the relationships that reference them.
"""

import copy
import logging
from collections import Counter
from typing import Any, Dict, List, Optional


def build_included_map(included: List[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Index included entities by ``"type:id"``; entries without both are dropped."""
    included_map: Dict[str, Dict[str, Any]] = {}
    for entity in included:
        if not isinstance(entity, dict):
            continue
        entity_type = entity.get("type")
        entity_id = entity.get("id")
        if entity_type and entity_id:
            included_map[f"{entity_type}:{entity_id}"] = entity
    return included_map


def _lookup(included_map: Dict[str, Dict[str, Any]], ref: Any) -> Optional[Dict[str, Any]]:
    if not isinstance(ref, dict):
        return None
    ref_type = ref.get("type")
    ref_id = ref.get("id")
    if not ref_type or not ref_id:
        return None
    entity = included_map.get(f"{ref_type}:{ref_id}")
    return copy.deepcopy(entity) if entity is not None else None


def _attach(included_map: Dict[str, Dict[str, Any]], relationship: Dict[str, Any], data: Any) -> List[Dict]:
    """Attach matches for ``data`` onto ``relationship``; returns the attached entities."""
    if isinstance(data, list) and data:
        attached = []
        for ref in data:
            entity = _lookup(included_map, ref)
            if entity is not None:
                relationship.setdefault("included", []).append(entity)
                attached.append(entity)
        return attached

    entity = _lookup(included_map, data)
    if entity is None:
        return []
    relationship["included"] = entity
    return [entity]


def _attach_nested(included_map: Dict[str, Dict[str, Any]], entity: Dict[str, Any]) -> None:
    relationships = entity.get("relationships")
    if not isinstance(relationships, dict):
        return
    for sub_relationship in relationships.values():
        if isinstance(sub_relationship, dict) and sub_relationship.get("data") is not None:
            _attach(included_map, sub_relationship, sub_relationship["data"])


def merge_included(
    body: Dict[str, Any],
    resources: List[Dict[str, Any]],
    logger: Optional[logging.Logger] = None,
) -> List[Dict[str, Any]]:
    """
    Enrich ``resources`` with the entities listed in ``body["included"]``.

    A to-one reference gets ``relationship["included"] = entity``; a to-many
    reference gets ``relationship["included"] = [entity, ...]`` in reference
    order. Relationships of an attached entity are resolved one level deep
    against the same map. References that are not in ``included`` are left
    alone. Resources are modified in place and also returned.

    Args:
        body: Decoded page response
        resources: The page's ``data`` list
        logger: Optional logger for the per-type breakdown

    Returns:
        The same resource list
    """
    log = logger or logging.getLogger(__name__)
    included = body.get("included")
    if not isinstance(included, list):
        return resources

    log.info(f"Processing {len(included)} included resources")
    included_map = build_included_map(included)

    type_counts = Counter(key.split(":", 1)[0] for key in included_map)
    for included_type, count in type_counts.items():
        log.info(f"Found {count} included resources of type '{included_type}'")

    for resource in resources:
        relationships = resource.get("relationships") if isinstance(resource, dict) else None
        if not isinstance(relationships, dict):
            continue
        for relationship in relationships.values():
            if not isinstance(relationship, dict) or relationship.get("data") is None:
                continue
            for entity in _attach(included_map, relationship, relationship["data"]):
                _attach_nested(included_map, entity)

    return resources
