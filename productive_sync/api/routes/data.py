"""
Read-only views over the mirror tables
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from ...config import table_name
from ...database.supabase_client import SupabaseClient

router = APIRouter(tags=["data"])
logger = logging.getLogger(__name__)


def _rows(resource: str, **kwargs) -> List[Dict[str, Any]]:
    try:
        return SupabaseClient().select_rows(table_name(resource), **kwargs)
    except Exception as e:
        logger.error(f"Error reading {resource}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to read {resource}: {e}")


def _get(resource: str, row_id: str) -> Optional[Dict[str, Any]]:
    try:
        return SupabaseClient().get_row(table_name(resource), row_id)
    except Exception as e:
        logger.error(f"Error reading {resource} {row_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to read {resource}: {e}")


def _row(resource: str, row_id: str, label: str) -> Dict[str, Any]:
    row = _get(resource, row_id)
    if row is None:
        raise HTTPException(status_code=404, detail=f"{label} {row_id} not found")
    return row


def _related(resource: str, row_id: Optional[str]) -> Optional[Dict[str, Any]]:
    return _get(resource, row_id) if row_id else None


@router.get("/companies")
def list_companies() -> List[Dict[str, Any]]:
    return _rows("companies", order="name")


@router.get("/companies/{company_id}")
def get_company(company_id: str) -> Dict[str, Any]:
    """Company with its projects"""
    company = _row("companies", company_id, "Company")
    company["projects"] = _rows("projects", filters={"company_id": company_id}, order="name")
    return company


@router.get("/projects")
def list_projects() -> List[Dict[str, Any]]:
    return _rows("projects", order="name")


@router.get("/projects/{project_id}")
def get_project(project_id: str) -> Dict[str, Any]:
    """Project with its company"""
    project = _row("projects", project_id, "Project")
    project["company"] = _related("companies", project.get("company_id"))
    return project


@router.get("/deals")
def list_deals(
    company_id: Optional[str] = None,
    project_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
) -> List[Dict[str, Any]]:
    return _rows(
        "deals",
        filters={"company_id": company_id, "project_id": project_id},
        order="name",
        limit=limit,
    )


@router.get("/deals/{deal_id}")
def get_deal(deal_id: str) -> Dict[str, Any]:
    """Deal with its company and project"""
    deal = _row("deals", deal_id, "Deal")
    deal["company"] = _related("companies", deal.get("company_id"))
    deal["project"] = _related("projects", deal.get("project_id"))
    return deal


@router.get("/time_entries")
def list_time_entries(
    limit: int = Query(100, ge=1, le=1000),
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    person_id: Optional[str] = None,
    task_id: Optional[str] = None,
    service_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Newest first, filtered by date range and related ids"""
    return _rows(
        "time_entries",
        filters={"person_id": person_id, "task_id": task_id, "service_id": service_id},
        ranges={"date": (date_from, date_to)},
        order="date",
        desc=True,
        limit=limit,
    )


@router.get("/time_entries/{entry_id}")
def get_time_entry(entry_id: str) -> Dict[str, Any]:
    return _row("time_entries", entry_id, "Time entry")


@router.get("/time_entry_versions")
def list_time_entry_versions(
    limit: int = Query(100, ge=1, le=1000),
    time_entry_id: Optional[str] = None,
    event: Optional[str] = None,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
) -> List[Dict[str, Any]]:
    # versions point at their time entry through item_id
    return _rows(
        "time_entry_versions",
        filters={"item_id": time_entry_id, "event": event},
        ranges={"created_at": (date_from, date_to)},
        order="created_at",
        desc=True,
        limit=limit,
    )


@router.get("/time_entry_versions/{version_id}")
def get_time_entry_version(version_id: str) -> Dict[str, Any]:
    return _row("time_entry_versions", version_id, "Time entry version")
