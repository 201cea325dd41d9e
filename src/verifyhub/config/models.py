"""Pydantic configuration sections with code-baked defaults.

Sparse TOML contract: every value has a default here and verifyhub.toml
only carries overrides. The ``[pricing]`` section is the engine's own
:class:`~verifyhub.domain.pricing.PricingConfig`.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from verifyhub.domain.money import NonNegativeAmount


class RequestsConfig(BaseModel):
    """[requests] section."""

    model_config = {"frozen": True}

    default_currency: str = "USD"
    default_duration_minutes: int = Field(default=60, gt=0, le=480)
    # Agent dispatch point used as the origin for distance quotes.
    origin_latitude: float = Field(default=6.5244, ge=-90, le=90)
    origin_longitude: float = Field(default=3.3792, ge=-180, le=180)
    overdue_page_size: int = Field(default=100, gt=0)


class LocationPricingConfig(BaseModel):
    """[location_pricing] section."""

    model_config = {"frozen": True}

    default_city_cost: NonNegativeAmount = Decimal("5000")
    default_area_cost: NonNegativeAmount = Decimal("0")
    page_size: int = Field(default=50, gt=0)


class StorageConfig(BaseModel):
    """[storage] section."""

    model_config = {"frozen": True}

    db_filename: str = "verifyhub.db"


class QuoteConfig(BaseModel):
    """[quote] section."""

    model_config = {"frozen": True}

    average_speed_kmh: float = Field(default=30.0, gt=0)
    surge_multiplier: float = Field(default=1.0, ge=1.0)
    include_suggestions: bool = True
