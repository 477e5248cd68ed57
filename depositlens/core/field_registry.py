"""DepositLens — Raw Event Field Registry.

Defines the canonical seventeen columns of a bank marketing contact record
and which derived table each one belongs to. The loader, normalizer and
relinker all read their column lists from here.
"""

from enum import Enum
from typing import Dict, List, Tuple


class FieldGroup(str, Enum):
    """Which derived entity a raw column feeds."""

    CUSTOMER = "customer"  # Demographic profile → customers
    CAMPAIGN = "campaign"  # Interaction parameters → campaigns
    OUTCOME = "outcome"  # Result of the contact → outcomes


class FieldDefinition:
    """Describes a single raw column."""

    def __init__(
        self,
        name: str,
        header: str,
        python_type: type,
        group: FieldGroup,
        description: str = "",
        allowed_values: Tuple[str, ...] = (),
    ):
        self.name = name
        self.header = header
        self.python_type = python_type
        self.group = group
        self.description = description
        # Non-empty → the column is required and must hold one of these values
        self.allowed_values = allowed_values

    def __repr__(self) -> str:
        return f"<Field {self.name} ({self.header}, {self.group.value})>"


# ─────────────────────────────────────────────
# RAW EVENT FIELDS — Canonical Registry (file order)
# ─────────────────────────────────────────────

RAW_FIELDS: List[FieldDefinition] = [
    # Customer
    FieldDefinition("age", "age", int, FieldGroup.CUSTOMER, "Age in years"),
    FieldDefinition("job", "job", str, FieldGroup.CUSTOMER, "Occupation"),
    FieldDefinition("marital", "marital", str, FieldGroup.CUSTOMER, "Marital status"),
    FieldDefinition(
        "education", "education", str, FieldGroup.CUSTOMER, "Education level"
    ),
    FieldDefinition(
        "has_default", "default", str, FieldGroup.CUSTOMER, "Has credit in default"
    ),
    FieldDefinition(
        "balance", "balance", int, FieldGroup.CUSTOMER, "Average yearly balance"
    ),
    FieldDefinition("housing", "housing", str, FieldGroup.CUSTOMER, "Housing loan"),
    FieldDefinition("loan", "loan", str, FieldGroup.CUSTOMER, "Personal loan"),
    # Campaign
    FieldDefinition(
        "contact_channel", "contact", str, FieldGroup.CAMPAIGN, "cellular | telephone"
    ),
    FieldDefinition("day", "day", int, FieldGroup.CAMPAIGN, "Last contact day"),
    FieldDefinition("month", "month", str, FieldGroup.CAMPAIGN, "Last contact month"),
    FieldDefinition(
        "call_duration", "duration", int, FieldGroup.CAMPAIGN, "Call length (s)"
    ),
    FieldDefinition(
        "campaign_count",
        "campaign",
        int,
        FieldGroup.CAMPAIGN,
        "Contacts during this campaign",
    ),
    FieldDefinition(
        "days_since_prev",
        "pdays",
        int,
        FieldGroup.CAMPAIGN,
        "Days since previous campaign contact",
    ),
    FieldDefinition(
        "previous_count",
        "previous",
        int,
        FieldGroup.CAMPAIGN,
        "Contacts before this campaign",
    ),
    FieldDefinition(
        "prev_outcome", "poutcome", str, FieldGroup.CAMPAIGN, "Previous outcome"
    ),
    # Outcome
    FieldDefinition(
        "deposit_result",
        "deposit",
        str,
        FieldGroup.OUTCOME,
        "Term deposit: yes | no",
        allowed_values=("yes", "no"),
    ),
]


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────

FIELDS_BY_HEADER: Dict[str, FieldDefinition] = {f.header: f for f in RAW_FIELDS}

RAW_HEADERS: Tuple[str, ...] = tuple(f.header for f in RAW_FIELDS)


def fields_by_group(group: FieldGroup) -> list[FieldDefinition]:
    """Return all fields of a given group, in file order."""
    return [f for f in RAW_FIELDS if f.group == group]


CUSTOMER_FIELDS: Tuple[str, ...] = tuple(
    f.name for f in fields_by_group(FieldGroup.CUSTOMER)
)
CAMPAIGN_FIELDS: Tuple[str, ...] = tuple(
    f.name for f in fields_by_group(FieldGroup.CAMPAIGN)
)
