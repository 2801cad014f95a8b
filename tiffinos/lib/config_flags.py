"""
Billing configuration for TiffinOS.

Provides centralized defaults for:
- Guest meal charge and per-meal menu prices
- Which payment statuses count towards the amount paid
- How cancelled attendance days are treated
- Expiry / renewal windows and the menu price cache lifetime
"""
from typing import Optional
from pydantic import BaseModel, Field

from tiffinos.lib.logging import get_logger


logger = get_logger(__name__)


class BillingDefaults(BaseModel):
    """
    Vendor-independent billing defaults.

    Prices are whole rupees. Menu prices are only a fallback; a vendor's
    default menu items override them.
    """

    guest_rate: int = Field(
        default=40,
        ge=0,
        le=10000,
        description="Flat charge per guest meal"
    )
    default_lunch_price: int = Field(
        default=50,
        ge=0,
        le=10000,
        description="Fallback per-meal price for lunch"
    )
    default_dinner_price: int = Field(
        default=70,
        ge=0,
        le=10000,
        description="Fallback per-meal price for dinner"
    )
    excluded_payment_statuses: frozenset[str] = Field(
        default=frozenset({"failed"}),
        description="Payment statuses left out of the amount paid"
    )
    void_cancelled_meals: bool = Field(
        default=True,
        description="A cancelled attendance day contributes no lunch or dinner"
    )
    expiring_window_days: int = Field(
        default=7,
        ge=0,
        le=60,
        description="Subscriptions ending within this many days count as expiring"
    )
    renewal_window_days: int = Field(
        default=7,
        ge=0,
        le=60,
        description="Renewal is offered once this many days or fewer remain"
    )
    menu_cache_ttl_seconds: int = Field(
        default=30,
        ge=0,
        le=3600,
        description="Lifetime of cached menu price lookups"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "guest_rate": 40,
                "default_lunch_price": 50,
                "default_dinner_price": 70,
                "excluded_payment_statuses": ["failed"],
                "void_cancelled_meals": True,
            }
        }


# Global configuration instance (can be overridden)
_billing_defaults: Optional[BillingDefaults] = None


def get_billing_defaults() -> BillingDefaults:
    """
    Get billing defaults configuration.

    Returns:
        BillingDefaults instance with current settings
    """
    global _billing_defaults
    if _billing_defaults is None:
        _billing_defaults = BillingDefaults()
        logger.info("Initialized default billing configuration")
    return _billing_defaults


def set_billing_defaults(defaults: BillingDefaults) -> None:
    """
    Override billing defaults configuration.

    Args:
        defaults: New BillingDefaults configuration
    """
    global _billing_defaults
    _billing_defaults = defaults
    logger.info("Updated billing configuration", extra={
        "guest_rate": defaults.guest_rate,
        "excluded_payment_statuses": sorted(defaults.excluded_payment_statuses),
    })


def reset_all_configs() -> None:
    """Reset all configurations to defaults (useful for testing)."""
    global _billing_defaults
    _billing_defaults = None
    logger.info("Reset all configurations to defaults")
