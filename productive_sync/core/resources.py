"""
Catalog of Productive resources mirrored by the sync.

Every resource is fetched by the same paginated routine; the entries below
only describe what differs between them (endpoint, includes, sort order and
the include subsets to fall back to when the API rejects an include).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

# Relationship names that always carry a list of references.
TO_MANY_RELATIONSHIPS = frozenset({
    "approval_statuses",
    "assignees",
    "attachments",
    "bcc_recipients",
    "cc_recipients",
    "custom_field_people",
    "options",
    "recipients",
    "subsidiaries",
    "teams",
    "to_recipients",
    "workflow_statuses",
})


@dataclass(frozen=True)
class ResourceSpec:
    """Fetch configuration for one resource type."""

    name: str
    path: str
    includes: Tuple[str, ...] = ()
    fallback: Optional[Tuple[Tuple[str, ...], ...]] = None
    sort: Optional[str] = None

    @property
    def ladder(self) -> List[Tuple[str, ...]]:
        """Include subsets tried in order after the full include list is rejected.

        Defaults to each include on its own; always ends with the empty set.
        """
        steps = list(self.fallback) if self.fallback is not None else [(inc,) for inc in self.includes]
        if not steps or steps[-1]:
            steps.append(())
        return steps

    @property
    def to_one(self) -> Tuple[str, ...]:
        return tuple(rel for rel in self.includes if rel not in TO_MANY_RELATIONSHIPS)


def _spec(
    name: str,
    includes: str = "",
    sort: Optional[str] = None,
    fallback: Optional[Tuple[Tuple[str, ...], ...]] = None,
    path: Optional[str] = None,
) -> ResourceSpec:
    return ResourceSpec(
        name=name,
        path=path or name,
        includes=tuple(i for i in includes.split(",") if i),
        fallback=fallback,
        sort=sort,
    )


_CATALOG = [
    _spec("subsidiaries", "bill_from,custom_domain,default_tax_rate,integration", sort="name"),
    _spec("tax_rates", "subsidiary", sort="name"),
    _spec("custom_domains", "subsidiaries"),
    _spec("document_types", "subsidiary,document_style,attachments"),
    _spec("companies", sort="name"),
    _spec("people", "manager,company,subsidiary,approval_policy_assignment,teams"),
    _spec("approval_policies"),
    _spec("approval_policy_assignments", "person,deal,approval_policy"),
    _spec("pipelines", "creator,updater"),
    _spec("deal_statuses", "pipeline", sort="name"),
    _spec("lost_reasons", "company"),
    _spec("contracts", "template"),
    _spec("workflows", "workflow_statuses", sort="name"),
    _spec("workflow_statuses", "workflow"),
    _spec("projects", "company,project_manager,last_actor,workflow", sort="name"),
    _spec("contact_entries", "company,person,subsidiary,purchase_order"),
    _spec(
        "deals",
        "creator,company,document_type,responsible,deal_status,project,lost_reason,contract,"
        "contact,subsidiary,template,tax_rate,origin_deal,approval_policy_assignment,next_todo",
        sort="name",
    ),
    _spec("sections", "deal"),
    _spec("service_types", "assignees"),
    _spec("services", "service_type,deal,person,section", sort="name"),
    _spec("custom_fields", "project,section,survey,custom_field_people,options"),
    _spec("custom_field_options", "custom_field"),
    _spec("boards", "project"),
    _spec("task_lists", "project,board"),
    _spec(
        "tasks",
        "project,creator,assignee,last_actor,task_list,parent_task,workflow_status,attachments",
    ),
    _spec("todos", "assignee,deal,task"),
    _spec("pages", "creator,project,attachments"),
    _spec("discussions", "page"),
    _spec("events"),
    _spec(
        "bookings",
        "service,event,person,creator,updater,approver,rejecter,canceler,origin,"
        "approval_statuses,attachments",
    ),
    _spec(
        "time_entries",
        "task,service,person",
        sort="-date",
        fallback=(("task", "service"), ("task",), ()),
    ),
    _spec("time_entry_versions", "creator", sort="-created_at"),
    _spec("timesheets", "person,creator", sort="-date"),
    _spec(
        "expenses",
        "deal,service_type,person,creator,rejecter,approver,service,purchase_order,tax_rate,attachment",
        sort="name",
    ),
    _spec(
        "invoices",
        "company,creator,deal,contact_entry,subsidiary,tax_rate,document_type,document_style,attachment",
        sort="created_at",
    ),
    _spec("invoice_attributions", "invoice,budget"),
    _spec(
        "purchase_orders",
        "deal,creator,document_type,attachment,bill_to,bill_from",
        sort="created_at",
    ),
    _spec("payment_reminder_sequences"),
    _spec("payment_reminders", "creator,updater,invoice,payment_reminder_sequence"),
    _spec(
        "emails",
        "creator,deal,invoice,payment_reminder,recipients,to_recipients,cc_recipients,"
        "bcc_recipients,attachments",
    ),
    _spec(
        "comments",
        "company,creator,deal,discussion,invoice,person,pinned_by,task,purchase_order,attachments",
    ),
    _spec(
        "attachments",
        "creator,invoice,purchase_order,bill,email,page,expense,comment,document_style,"
        "document_type,deal",
    ),
    _spec("integrations", "subsidiary,project,creator,deal"),
    _spec("tags"),
]

# Ordered so that referenced resources come before the ones pointing at them.
RESOURCES: Dict[str, ResourceSpec] = {spec.name: spec for spec in _CATALOG}


def get_resource(name: str) -> ResourceSpec:
    try:
        return RESOURCES[name]
    except KeyError:
        raise KeyError(f"Unknown Productive resource: {name}") from None
