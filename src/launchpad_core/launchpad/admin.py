import logging
from decimal import Decimal
from typing import List

from launchpad_core.common.errors import NotFoundError, UnauthorizedError, ValidationFailedError
from launchpad_core.common.model import (
    AuthorizeBatchSubmitterRequest,
    ConfigureFeeConfigRequest,
    DeauthorizeBatchSubmitterRequest,
    FinalizeTokenAllocationRequest,
    LaunchpadBatchSubmitAuthorities,
    LaunchpadFeeConfig,
    LaunchpadFinalizeFeeAllocation,
)
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.finalize import allocation_key
from launchpad_core.launchpad.sales import fee_config_key, find_fee_config
from launchpad_core.validation.request_validator import (
    validate_authorize_batch_submitter_request,
    validate_configure_fee_config_request,
    validate_finalize_allocation_request,
)

logger = logging.getLogger(__name__)


def is_curator(ctx: LaunchpadContext) -> bool:
    return ctx.calling_org == ctx.settings.curator_org_msp


def configure_fee_config(ctx: LaunchpadContext, request: ConfigureFeeConfigRequest) -> LaunchpadFeeConfig:
    """
    Creates or updates the platform fee config.

    Only the curator organisation may create it, with both a fee address and a fee amount;
    authorities default to the caller. Later updates are limited to listed authorities and
    keep any field the request leaves out.
    """
    validate_configure_fee_config_request(request)

    config = find_fee_config(ctx)
    if config is None:
        if not is_curator(ctx):
            raise UnauthorizedError(f"CallingUser {ctx.calling_user} is not authorized to create or update")
        if request.new_platform_fee_address is None or request.new_fee_amount is None:
            raise ValidationFailedError(
                "Must provide a launchpad platform fee address and fee amount in the initial setup of the configuration.",
                ["new_platform_fee_address", "new_fee_amount"],
            )
        config = LaunchpadFeeConfig(
            fee_address=request.new_platform_fee_address,
            fee_amount=request.new_fee_amount,
            authorities=list(request.new_authorities or [ctx.calling_user]),
        )
    elif ctx.calling_user in config.authorities:
        config.update_fee_config(
            request.new_platform_fee_address if request.new_platform_fee_address is not None else config.fee_address,
            request.new_fee_amount if request.new_fee_amount is not None else config.fee_amount,
            request.new_authorities if request.new_authorities is not None else config.authorities,
        )
    else:
        raise UnauthorizedError(f"CallingUser {ctx.calling_user} is not authorized to create or update")

    ctx.store.put(fee_config_key(ctx), config)
    logger.info("Fee config set by %s: address %s, amount %s", ctx.calling_user, config.fee_address, config.fee_amount)
    return config


def fetch_fee_config(ctx: LaunchpadContext) -> LaunchpadFeeConfig:
    config = find_fee_config(ctx)
    if config is None:
        raise NotFoundError("Launchpad fee configuration has not been defined.")
    return config


def fetch_fee_amount(ctx: LaunchpadContext) -> Decimal:
    """Platform fee rate, or 0 when no fee config exists."""
    config = find_fee_config(ctx)
    return config.fee_amount if config else Decimal("0")


def _require_admin(ctx: LaunchpadContext, authorities: List[str]):
    if not is_curator(ctx) and ctx.calling_user not in authorities:
        raise UnauthorizedError(f"CallingUser {ctx.calling_user} is not authorized for this operation")


def finalize_token_allocation(
    ctx: LaunchpadContext, request: FinalizeTokenAllocationRequest
) -> LaunchpadFinalizeFeeAllocation:
    """Stores the owner/platform split used when sales graduate; the pool gets the rest."""
    validate_finalize_allocation_request(request)
    config = find_fee_config(ctx)
    _require_admin(ctx, config.authorities if config else [])

    allocation = LaunchpadFinalizeFeeAllocation(
        platform_fee_percentage=request.platform_fee_percentage,
        owner_allocation_percentage=request.owner_fee_percentage,
        liquidity_allocation_percentage=Decimal("1") - request.platform_fee_percentage - request.owner_fee_percentage,
    )
    ctx.store.put(allocation_key(ctx), allocation)
    logger.info(
        "Finalization allocation set by %s: platform %s, owner %s",
        ctx.calling_user, allocation.platform_fee_percentage, allocation.owner_allocation_percentage,
    )
    return allocation


def batch_authorities_key(ctx: LaunchpadContext) -> str:
    return ctx.store.create_composite_key(LaunchpadBatchSubmitAuthorities.INDEX_KEY, [])


def fetch_batch_submit_authorities(ctx: LaunchpadContext) -> LaunchpadBatchSubmitAuthorities:
    authorities = ctx.store.get(batch_authorities_key(ctx))
    if authorities is None:
        raise NotFoundError("Batch submit authorities have not been configured.")
    return authorities


def authorize_batch_submitter(
    ctx: LaunchpadContext, request: AuthorizeBatchSubmitterRequest
) -> LaunchpadBatchSubmitAuthorities:
    """Adds batch submitters. The first call creates the record, seeded with the caller."""
    validate_authorize_batch_submitter_request(request)

    record = ctx.store.get(batch_authorities_key(ctx))
    if record is None:
        if not is_curator(ctx):
            raise UnauthorizedError(f"CallingUser {ctx.calling_user} is not authorized for this operation")
        record = LaunchpadBatchSubmitAuthorities(authorities=[ctx.calling_user])
    else:
        _require_admin(ctx, record.authorities)

    for authority in request.authorities:
        record.add_authority(authority)
    ctx.store.put(batch_authorities_key(ctx), record)
    logger.info("%s authorized batch submitters %s", ctx.calling_user, request.authorities)
    return record


def deauthorize_batch_submitter(
    ctx: LaunchpadContext, request: DeauthorizeBatchSubmitterRequest
) -> LaunchpadBatchSubmitAuthorities:
    record = fetch_batch_submit_authorities(ctx)
    _require_admin(ctx, record.authorities)
    if not record.is_authorized(request.authority):
        raise NotFoundError(f"{request.authority} is not a batch submit authority.")

    record.remove_authority(request.authority)
    ctx.store.put(batch_authorities_key(ctx), record)
    logger.info("%s deauthorized batch submitter %s", ctx.calling_user, request.authority)
    return record
