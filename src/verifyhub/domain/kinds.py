"""Verification categories, urgency levels, and the VerificationKind value object.

Category and urgency constants are fixed tables. The flat creation-time
price (base price x urgency multiplier) and the SLA deadline are both
derived from them.
"""

from __future__ import annotations

from decimal import Decimal
from enum import StrEnum

from pydantic import Field

from verifyhub.domain.base import ValueObject

MAX_DURATION_MINUTES = 480


class VerificationCategory(StrEnum):
    """The seven task categories an agent can be booked for."""

    PROPERTY_INSPECTION = "PROPERTY_INSPECTION"
    DOCUMENT_VERIFICATION = "DOCUMENT_VERIFICATION"
    BUSINESS_VERIFICATION = "BUSINESS_VERIFICATION"
    IDENTITY_VERIFICATION = "IDENTITY_VERIFICATION"
    LOCATION_VERIFICATION = "LOCATION_VERIFICATION"
    ASSET_VERIFICATION = "ASSET_VERIFICATION"
    CUSTOM_VERIFICATION = "CUSTOM_VERIFICATION"


class Urgency(StrEnum):
    """How fast the client needs the verification done."""

    STANDARD = "STANDARD"
    URGENT = "URGENT"
    EXPRESS = "EXPRESS"
    IMMEDIATE = "IMMEDIATE"


# --- Category tables ---

BASE_PRICES: dict[VerificationCategory, Decimal] = {
    VerificationCategory.PROPERTY_INSPECTION: Decimal("50.00"),
    VerificationCategory.DOCUMENT_VERIFICATION: Decimal("25.00"),
    VerificationCategory.BUSINESS_VERIFICATION: Decimal("75.00"),
    VerificationCategory.IDENTITY_VERIFICATION: Decimal("30.00"),
    VerificationCategory.LOCATION_VERIFICATION: Decimal("40.00"),
    VerificationCategory.ASSET_VERIFICATION: Decimal("60.00"),
    VerificationCategory.CUSTOM_VERIFICATION: Decimal("100.00"),
}

REQUIRED_DOCUMENTS: dict[VerificationCategory, tuple[str, ...]] = {
    VerificationCategory.PROPERTY_INSPECTION: ("Property deed", "Building plan", "Survey report"),
    VerificationCategory.DOCUMENT_VERIFICATION: ("Original document", "Supporting documents"),
    VerificationCategory.BUSINESS_VERIFICATION: (
        "Business registration",
        "Tax certificate",
        "Operating license",
    ),
    VerificationCategory.IDENTITY_VERIFICATION: ("Government ID", "Proof of address"),
    VerificationCategory.LOCATION_VERIFICATION: ("Location permit", "Access authorization"),
    VerificationCategory.ASSET_VERIFICATION: ("Asset documentation", "Ownership proof"),
    VerificationCategory.CUSTOM_VERIFICATION: ("Custom requirements as specified",),
}

DISPLAY_NAMES: dict[VerificationCategory, str] = {
    VerificationCategory.PROPERTY_INSPECTION: "Property Inspection",
    VerificationCategory.DOCUMENT_VERIFICATION: "Document Verification",
    VerificationCategory.BUSINESS_VERIFICATION: "Business Verification",
    VerificationCategory.IDENTITY_VERIFICATION: "Identity Verification",
    VerificationCategory.LOCATION_VERIFICATION: "Location Verification",
    VerificationCategory.ASSET_VERIFICATION: "Asset Verification",
    VerificationCategory.CUSTOM_VERIFICATION: "Custom Verification",
}

REMOTE_CATEGORIES: frozenset[VerificationCategory] = frozenset(
    {
        VerificationCategory.DOCUMENT_VERIFICATION,
        VerificationCategory.IDENTITY_VERIFICATION,
    }
)

# --- Urgency tables ---

URGENCY_MULTIPLIERS: dict[Urgency, Decimal] = {
    Urgency.STANDARD: Decimal("1.0"),
    Urgency.URGENT: Decimal("1.25"),
    Urgency.EXPRESS: Decimal("1.5"),
    Urgency.IMMEDIATE: Decimal("2.0"),
}

SLA_HOURS: dict[Urgency, int] = {
    Urgency.STANDARD: 48,
    Urgency.URGENT: 24,
    Urgency.EXPRESS: 12,
    Urgency.IMMEDIATE: 6,
}


class VerificationKind(ValueObject):
    """What is being verified, how urgently, and how long it takes."""

    category: VerificationCategory
    urgency: Urgency = Urgency.STANDARD
    requires_physical_presence: bool = True
    estimated_duration_minutes: int = Field(default=60, gt=0, le=MAX_DURATION_MINUTES)
    special_instructions: str | None = None

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES[self.category]

    @property
    def base_price(self) -> Decimal:
        """Category base price, before the urgency multiplier."""
        return BASE_PRICES[self.category]

    @property
    def urgency_multiplier(self) -> Decimal:
        return URGENCY_MULTIPLIERS[self.urgency]

    @property
    def sla_hours(self) -> int:
        """Expected completion window in hours."""
        return SLA_HOURS[self.urgency]

    @property
    def required_documents(self) -> list[str]:
        return list(REQUIRED_DOCUMENTS[self.category])

    @property
    def supports_remote_verification(self) -> bool:
        return self.category in REMOTE_CATEGORIES
