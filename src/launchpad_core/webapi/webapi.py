import logging
from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer

from flask import jsonify
from flask_openapi3 import Info, Tag
from flask_openapi3 import OpenAPI

from launchpad_core.common.enums import OrderSide, SaleStatus, TradeFunction
from launchpad_core.common.errors import LaunchpadError
from launchpad_core.common.math import to_plain_str
from launchpad_core.common.model import (
    CreateSaleRequest,
    ExactTokenQuantityRequest,
    FetchSaleRequest,
    LaunchpadSale,
    NativeTokenQuantityRequest,
    ReverseBondingCurveConfiguration,
    TokenClass,
    TokenExtraFees,
    native_token_key,
)
from launchpad_core.config import LaunchpadSettings, load_settings
from launchpad_core.launchpad import calculations, trades
from launchpad_core.launchpad.admin import fetch_fee_amount
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.create_sale import create_sale
from launchpad_core.launchpad.sales import fetch_sale_details

logger = logging.getLogger(__name__)

info = Info(title="Launchpad API", version="1.0.0")
app = OpenAPI(__name__, info=info)

SERVICE_USER = "service|launchpad"

_engine: Optional[LaunchpadContext] = None


def init_engine(ctx: Optional[LaunchpadContext] = None, settings: Optional[LaunchpadSettings] = None) -> LaunchpadContext:
    """Installs the context requests run against; a fresh in-memory one by default, with the native token registered."""
    global _engine
    if ctx is None:
        ctx = LaunchpadContext.in_memory(SERVICE_USER, settings)
        key = native_token_key()
        ctx.tokens.register_token(
            TokenClass(key=key.token_class_key, name="GALA", symbol="GALA", decimals=LaunchpadSale.NATIVE_TOKEN_DECIMALS)
        )
    _engine = ctx
    return ctx


def engine() -> LaunchpadContext:
    if _engine is None:
        return init_engine()
    return _engine


@app.errorhandler(LaunchpadError)
def handle_launchpad_error(error: LaunchpadError):
    logger.info("Request failed with %s: %s", error.code, error.message)
    response = jsonify(error.to_dict())
    response.status_code = error.http_status
    return response


class CallerModel(BaseModel):
    calling_user: str = Field(description="Identity the request acts for")
    calling_org: Optional[str] = Field(None, description="Organisation of the caller")


class ExtraFeesModel(BaseModel):
    max_acceptable_reverse_bonding_curve_fee: Optional[Decimal] = Field(
        None, description="Highest exit fee the seller accepts"
    )


class ExactTokenBody(CallerModel):
    vault_address: str = Field(description="Vault address of the sale")
    token_quantity: Decimal = Field(description="Exact selling-token quantity")
    expected_native_token: Optional[Decimal] = Field(None, description="Slippage bound on the native side")
    extra_fees: Optional[ExtraFeesModel] = None
    unique_key: Optional[str] = None


class NativeTokenBody(CallerModel):
    vault_address: str = Field(description="Vault address of the sale")
    native_token_quantity: Decimal = Field(description="Exact native-token quantity")
    expected_token: Optional[Decimal] = Field(None, description="Slippage bound on the token side")
    extra_fees: Optional[ExtraFeesModel] = None
    is_pre_mint: bool = False
    unique_key: Optional[str] = None


# quantities leave the API as fixed-point strings ("500", "0.00825575")
PlainDecimal = Annotated[Decimal, PlainSerializer(to_plain_str, return_type=str, when_used="json")]


class ResultModel(BaseModel):
    """Response body read off the engine's result dataclasses."""
    model_config = ConfigDict(from_attributes=True)


class ReverseBondingCurveModel(ResultModel):
    min_fee_portion: PlainDecimal
    max_fee_portion: PlainDecimal


class CreateSaleBody(CallerModel):
    token_name: str
    token_symbol: str
    token_description: str
    token_image: str
    pre_buy_quantity: Decimal = Decimal("0")
    token_collection: str
    token_category: str
    reverse_bonding_curve_configuration: Optional[ReverseBondingCurveModel] = None
    sale_start_time: Optional[int] = None
    adjustable_supply_multiplier: Optional[Decimal] = None
    website_url: str = ""
    telegram_url: str = ""
    twitter_url: str = ""
    unique_key: Optional[str] = None


class FetchSaleQuery(BaseModel):
    vault_address: str = Field(description="Vault address of the sale")


class TokenInstanceKeyModel(ResultModel):
    collection: str
    category: str
    type: str
    additional_key: str
    instance: int


class SaleDetailsModel(ResultModel):
    vault_address: str
    selling_token: TokenInstanceKeyModel
    sale_owner: str
    native_token: TokenInstanceKeyModel
    reverse_bonding_curve_configuration: Optional[ReverseBondingCurveModel] = None
    sale_start_time: Optional[int] = None
    adjustable_supply_multiplier: Optional[PlainDecimal] = None
    sale_status: Optional[SaleStatus] = None
    selling_token_quantity: Optional[PlainDecimal] = None
    native_token_quantity: PlainDecimal
    max_supply: Optional[PlainDecimal] = None
    base_price: Optional[PlainDecimal] = None
    exponent_factor: Optional[PlainDecimal] = None
    euler: Optional[PlainDecimal] = None


class CreateSaleResultModel(ResultModel):
    image: str
    token_name: str
    symbol: str
    description: str
    initial_buy_quantity: str
    vault_address: str
    creator_address: str
    collection: str
    category: str
    type: str
    additional_key: str
    is_finalized: bool
    token_string_key: str
    website_url: str
    telegram_url: str
    twitter_url: str
    reverse_bonding_curve_configuration: Optional[ReverseBondingCurveModel] = None
    function_name: str


class CalculationFeesModel(ResultModel):
    reverse_bonding_curve: str
    transaction_fees: str


class CalculationResultModel(ResultModel):
    original_quantity: str = Field(description="Quantity the quote was asked for")
    calculated_quantity: str = Field(description="Quantity on the other side of the trade")
    extra_fees: CalculationFeesModel


class TradeResultModel(ResultModel):
    input_quantity: str
    total_fees: str
    output_quantity: str
    token_name: str
    trade_type: OrderSide
    vault_address: str
    user_address: str
    is_finalized: bool
    function_name: TradeFunction
    total_token_sold: str
    unique_key: Optional[str] = None


class FeeAmountModel(ResultModel):
    fee_amount: PlainDecimal


def respond(model, result):
    return jsonify(model.model_validate(result).model_dump(mode="json"))


def _extra_fees(body) -> Optional[TokenExtraFees]:
    if body.extra_fees is None:
        return None
    return TokenExtraFees(body.extra_fees.max_acceptable_reverse_bonding_curve_fee)


def _exact_token_request(body: ExactTokenBody) -> ExactTokenQuantityRequest:
    return ExactTokenQuantityRequest(
        vault_address=body.vault_address,
        token_quantity=body.token_quantity,
        expected_native_token=body.expected_native_token,
        extra_fees=_extra_fees(body),
        unique_key=body.unique_key,
    )


def _native_token_request(body: NativeTokenBody) -> NativeTokenQuantityRequest:
    return NativeTokenQuantityRequest(
        vault_address=body.vault_address,
        native_token_quantity=body.native_token_quantity,
        expected_token=body.expected_token,
        extra_fees=_extra_fees(body),
        is_pre_mint=body.is_pre_mint,
        unique_key=body.unique_key,
    )


def _call_context(body: CallerModel) -> LaunchpadContext:
    return engine().for_call(body.calling_user, body.calling_org)


sale_tag = Tag(name="Launchpad Sale", description="Create sales and read their state")
quote_tag = Tag(name="Launchpad Quote", description="Price a trade without executing it")
trade_tag = Tag(name="Launchpad Trade", description="Execute a trade against a sale")
fee_tag = Tag(name="Launchpad Fees", description="Platform fee settings")


@app.post("/sales", summary="Create Sale", tags=[sale_tag], responses={200: CreateSaleResultModel})
def create_sale_route(body: CreateSaleBody):
    """
    Launches a token sale for the caller, with an optional creator pre-buy
    """
    rbc = body.reverse_bonding_curve_configuration
    request = CreateSaleRequest(
        token_name=body.token_name,
        token_symbol=body.token_symbol,
        token_description=body.token_description,
        token_image=body.token_image,
        pre_buy_quantity=body.pre_buy_quantity,
        token_collection=body.token_collection,
        token_category=body.token_category,
        reverse_bonding_curve_configuration=(
            ReverseBondingCurveConfiguration(rbc.min_fee_portion, rbc.max_fee_portion) if rbc else None
        ),
        sale_start_time=body.sale_start_time,
        adjustable_supply_multiplier=body.adjustable_supply_multiplier,
        website_url=body.website_url,
        telegram_url=body.telegram_url,
        twitter_url=body.twitter_url,
        unique_key=body.unique_key,
    )
    return respond(CreateSaleResultModel, create_sale(_call_context(body), request))


@app.get("/sales/details", summary="Sale Details", tags=[sale_tag], responses={200: SaleDetailsModel})
def sale_details_route(query: FetchSaleQuery):
    ctx = engine().for_call(SERVICE_USER)
    return respond(SaleDetailsModel, fetch_sale_details(ctx, FetchSaleRequest(query.vault_address)))


@app.post(
    "/quotes/native-token-in",
    summary="Native cost of an exact token buy",
    tags=[quote_tag],
    responses={200: CalculationResultModel},
)
def native_token_in_route(body: ExactTokenBody):
    result = calculations.call_native_token_in(_call_context(body), _exact_token_request(body))
    return respond(CalculationResultModel, result)


@app.post(
    "/quotes/meme-token-out",
    summary="Tokens bought for a native amount",
    tags=[quote_tag],
    responses={200: CalculationResultModel},
)
def meme_token_out_route(body: NativeTokenBody):
    result = calculations.call_meme_token_out(_call_context(body), _native_token_request(body))
    return respond(CalculationResultModel, result)


@app.post(
    "/quotes/native-token-out",
    summary="Native paid for an exact token sell",
    tags=[quote_tag],
    responses={200: CalculationResultModel},
)
def native_token_out_route(body: ExactTokenBody):
    result = calculations.call_native_token_out(_call_context(body), _exact_token_request(body))
    return respond(CalculationResultModel, result)


@app.post(
    "/quotes/meme-token-in",
    summary="Tokens sold for a native amount",
    tags=[quote_tag],
    responses={200: CalculationResultModel},
)
def meme_token_in_route(body: NativeTokenBody):
    result = calculations.call_meme_token_in(_call_context(body), _native_token_request(body))
    return respond(CalculationResultModel, result)


@app.post("/trades/buy-exact-token", summary="Buy Exact Token", tags=[trade_tag], responses={200: TradeResultModel})
def buy_exact_token_route(body: ExactTokenBody):
    return respond(TradeResultModel, trades.buy_exact_token(_call_context(body), _exact_token_request(body)))


@app.post("/trades/buy-with-native", summary="Buy With Native", tags=[trade_tag], responses={200: TradeResultModel})
def buy_with_native_route(body: NativeTokenBody):
    return respond(TradeResultModel, trades.buy_with_native(_call_context(body), _native_token_request(body)))


@app.post("/trades/sell-exact-token", summary="Sell Exact Token", tags=[trade_tag], responses={200: TradeResultModel})
def sell_exact_token_route(body: ExactTokenBody):
    return respond(TradeResultModel, trades.sell_exact_token(_call_context(body), _exact_token_request(body)))


@app.post("/trades/sell-with-native", summary="Sell With Native", tags=[trade_tag], responses={200: TradeResultModel})
def sell_with_native_route(body: NativeTokenBody):
    return respond(TradeResultModel, trades.sell_with_native(_call_context(body), _native_token_request(body)))


@app.get("/fees/amount", summary="Platform Fee Amount", tags=[fee_tag], responses={200: FeeAmountModel})
def fee_amount_route():
    ctx = engine().for_call(SERVICE_USER)
    return respond(FeeAmountModel, {"fee_amount": fetch_fee_amount(ctx)})


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    settings = load_settings()
    init_engine(settings=settings)
    app.run(port=settings.port)


if __name__ == "__main__":
    main()
