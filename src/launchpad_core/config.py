"""
Settings for the launchpad engine and its HTTP surface.

Values come from environment variables (a local .env file is loaded first) and fall
back to the defaults below.

Environment Variables:
    CURATOR_ORG_MSP: organisation allowed to administer fee settings
    FINALIZE_OWNER_ALLOCATION: share of vault native paid to the sale owner at graduation
    FINALIZE_PLATFORM_FEE: share of vault native paid to the platform at graduation
    LIQUIDITY_POOL_FEE: fee tier of the pool seeded at graduation
    POOL_PRICE_TOLERANCE: accepted relative gap between the pool and curve sqrt prices
    LAUNCHPAD_PORT: port of the HTTP server
"""
import os
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from dotenv import load_dotenv

from launchpad_core.common.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _get_env_str(key: str, default: str, required: bool = False) -> str:
    """Get environment variable as string with validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ConfigurationError(f"Required environment variable {key} is not set")
    return value


def _get_env_int(key: str, default: int, min_val: Optional[int] = None, max_val: Optional[int] = None) -> int:
    """Get environment variable as integer with validation."""
    try:
        value = int(os.getenv(key, str(default)))
    except ValueError:
        raise ConfigurationError(f"Environment variable {key} must be a valid integer")
    if min_val is not None and value < min_val:
        raise ConfigurationError(f"Environment variable {key} must be >= {min_val}")
    if max_val is not None and value > max_val:
        raise ConfigurationError(f"Environment variable {key} must be <= {max_val}")
    return value


def _get_env_decimal(
    key: str, default: str, min_val: Optional[Decimal] = None, max_val: Optional[Decimal] = None
) -> Decimal:
    """Get environment variable as Decimal with validation."""
    try:
        value = Decimal(os.getenv(key, default))
    except InvalidOperation:
        raise ConfigurationError(f"Environment variable {key} must be a valid decimal")
    if not value.is_finite():
        raise ConfigurationError(f"Environment variable {key} must be a finite decimal")
    if min_val is not None and value < min_val:
        raise ConfigurationError(f"Environment variable {key} must be >= {min_val}")
    if max_val is not None and value > max_val:
        raise ConfigurationError(f"Environment variable {key} must be <= {max_val}")
    return value


@dataclass
class LaunchpadSettings:
    curator_org_msp: str = "CuratorOrg"
    owner_allocation_percentage: Decimal = Decimal("0.05")
    platform_fee_percentage: Decimal = Decimal("0.01")
    liquidity_pool_fee: int = 3000
    pool_price_tolerance: Decimal = Decimal("0.05")
    port: int = 5000

    @property
    def liquidity_allocation_percentage(self) -> Decimal:
        return Decimal("1") - self.owner_allocation_percentage - self.platform_fee_percentage


def load_settings() -> LaunchpadSettings:
    """
    Reads LaunchpadSettings from the environment.

    :raises ConfigurationError: a value is malformed or out of range
    """
    load_dotenv()

    settings = LaunchpadSettings(
        curator_org_msp=_get_env_str("CURATOR_ORG_MSP", "CuratorOrg", required=True),
        owner_allocation_percentage=_get_env_decimal(
            "FINALIZE_OWNER_ALLOCATION", "0.05", Decimal("0"), Decimal("1")
        ),
        platform_fee_percentage=_get_env_decimal("FINALIZE_PLATFORM_FEE", "0.01", Decimal("0"), Decimal("1")),
        liquidity_pool_fee=_get_env_int("LIQUIDITY_POOL_FEE", 3000, min_val=1),
        pool_price_tolerance=_get_env_decimal("POOL_PRICE_TOLERANCE", "0.05", Decimal("0"), Decimal("1")),
        port=_get_env_int("LAUNCHPAD_PORT", 5000, min_val=1, max_val=65535),
    )
    if settings.liquidity_allocation_percentage < 0:
        raise ConfigurationError("FINALIZE_OWNER_ALLOCATION + FINALIZE_PLATFORM_FEE must not exceed 1")

    logger.info(
        "Loaded launchpad settings: curator org %s, pool fee %s, port %s",
        settings.curator_org_msp, settings.liquidity_pool_fee, settings.port,
    )
    return settings
