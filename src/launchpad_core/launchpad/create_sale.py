import logging

from launchpad_core.common.errors import ValidationFailedError
from launchpad_core.common.model import (
    CreateSaleRequest,
    CreateSaleResult,
    LaunchpadSale,
    NativeTokenQuantityRequest,
    TokenClass,
    TokenClassKey,
    TokenInstanceKey,
)
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.sales import put_sale, sale_key
from launchpad_core.launchpad.trades import buy_with_native
from launchpad_core.validation.request_validator import validate_create_sale_request

logger = logging.getLogger(__name__)

VAULT_PREFIX = "service|"
VAULT_SUFFIX = "$launchpad"


def vault_address_for(class_key: TokenClassKey) -> str:
    return f"{VAULT_PREFIX}{class_key.to_string_key()}{VAULT_SUFFIX}"


def create_sale(ctx: LaunchpadContext, request: CreateSaleRequest) -> CreateSaleResult:
    """
    Launches a new token: registers its class, mints the sale inventory and the liquidity
    reserve (2 x max supply) into the vault, stores the sale, and runs the creator's
    optional pre-buy.
    """
    validate_create_sale_request(request)

    symbol = request.token_symbol.upper()
    class_key = TokenClassKey(
        collection=request.token_collection,
        category=request.token_category,
        type=symbol,
        additional_key="none",
    )
    vault_address = vault_address_for(class_key)

    with ctx.atomic():
        if ctx.store.get(sale_key(ctx, vault_address)) is not None:
            raise ValidationFailedError(f"A sale already exists for {class_key.to_string_key()}.", ["token_symbol"])

        ctx.tokens.register_token(
            TokenClass(
                key=class_key,
                name=request.token_name,
                symbol=symbol,
                decimals=LaunchpadSale.SELLING_TOKEN_DECIMALS,
                description=request.token_description,
                image=request.token_image,
            )
        )

        selling_token = TokenInstanceKey(class_key.collection, class_key.category, class_key.type, class_key.additional_key)
        sale = LaunchpadSale(
            vault_address=vault_address,
            selling_token=selling_token,
            sale_owner=ctx.calling_user,
            reverse_bonding_curve_configuration=request.reverse_bonding_curve_configuration,
            sale_start_time=request.sale_start_time,
            adjustable_supply_multiplier=request.adjustable_supply_multiplier,
        )
        ctx.balances.mint(vault_address, selling_token, sale.max_supply * 2)
        put_sale(ctx, sale)
        logger.info("Created sale %s for %s by %s", vault_address, symbol, ctx.calling_user)

        initial_buy_quantity = "0"
        if request.pre_buy_quantity > 0:
            pre_buy = buy_with_native(
                ctx,
                NativeTokenQuantityRequest(
                    vault_address=vault_address,
                    native_token_quantity=request.pre_buy_quantity,
                    is_pre_mint=True,
                    unique_key=request.unique_key,
                ),
            )
            initial_buy_quantity = pre_buy.output_quantity

    return CreateSaleResult(
        image=request.token_image,
        token_name=request.token_name,
        symbol=symbol,
        description=request.token_description,
        initial_buy_quantity=initial_buy_quantity,
        vault_address=vault_address,
        creator_address=ctx.calling_user,
        collection=class_key.collection,
        category=class_key.category,
        type=class_key.type,
        additional_key=class_key.additional_key,
        is_finalized=False,
        token_string_key=class_key.to_string_key(),
        website_url=request.website_url,
        telegram_url=request.telegram_url,
        twitter_url=request.twitter_url,
        reverse_bonding_curve_configuration=request.reverse_bonding_curve_configuration,
    )
