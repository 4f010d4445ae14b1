from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, List, Optional

from launchpad_core.common.enums import FeeReceiptStatus, OrderSide, SaleStatus, TradeFunction
from launchpad_core.common.errors import ValidationFailedError
from launchpad_core.common.math import to_plain_str


@dataclass(frozen=True)
class TokenClassKey:
    """Identifies a token class by its collection/category/type/additional-key tuple."""
    collection: str
    category: str
    type: str
    additional_key: str

    def to_string_key(self) -> str:
        return "$".join([self.collection, self.category, self.type, self.additional_key])


@dataclass(frozen=True)
class TokenInstanceKey:
    """A fungible token instance; launchpad tokens always use instance 0."""
    collection: str
    category: str
    type: str
    additional_key: str
    instance: int = 0

    @property
    def token_class_key(self) -> TokenClassKey:
        return TokenClassKey(self.collection, self.category, self.type, self.additional_key)

    def to_string_key(self) -> str:
        return f"{self.token_class_key.to_string_key()}${self.instance}"


def native_token_key() -> TokenInstanceKey:
    return TokenInstanceKey(collection="GALA", category="Unit", type="none", additional_key="none")


@dataclass
class TokenClass:
    """Metadata the token service holds for a token class."""
    key: TokenClassKey
    name: str
    symbol: str
    decimals: int
    description: str = ""
    image: str = ""


@dataclass
class ReverseBondingCurveConfiguration:
    """Bounds of the sell-side exit fee, as portions of the native proceeds."""
    min_fee_portion: Decimal
    max_fee_portion: Decimal

    def __post_init__(self):
        for name in ("min_fee_portion", "max_fee_portion"):
            value = getattr(self, name)
            if value < Decimal("0") or value > Decimal("0.5"):
                raise ValidationFailedError(f"{name} must be between 0 and 0.5.", [name])
        if self.min_fee_portion > self.max_fee_portion:
            raise ValidationFailedError(
                "min_fee_portion must be less than or equal to max_fee_portion.", ["min_fee_portion"]
            )


@dataclass
class LaunchpadSale:
    """
    The authoritative record of one token launch, keyed by its vault address.

    Quantities are the balances still held in the vault. Curve constants are scaled by
    the adjustable supply multiplier m so that buying m times as many tokens costs the same
    native amount as it would on an unscaled sale:
        max_supply      = 1e7 * m
        base_price      = BASE_PRICE / m
        exponent_factor = EXPONENT_FACTOR / m
    """
    INDEX_KEY: ClassVar[str] = "GCLPS"
    MARKET_CAP: ClassVar[Decimal] = Decimal("1640985.8441726")
    BASE_PRICE: ClassVar[Decimal] = Decimal("16506671506650")
    EXPONENT_FACTOR: ClassVar[Decimal] = Decimal("1166069000000")
    EULER: ClassVar[Decimal] = Decimal("2.7182818284590452353602874713527")
    CURVE_SCALE: ClassVar[Decimal] = Decimal("1e18")
    BASE_MAX_SUPPLY: ClassVar[Decimal] = Decimal("1e7")
    NATIVE_TOKEN_DECIMALS: ClassVar[int] = 8
    SELLING_TOKEN_DECIMALS: ClassVar[int] = 18

    vault_address: str
    selling_token: TokenInstanceKey
    sale_owner: str
    native_token: TokenInstanceKey = field(default_factory=native_token_key)
    reverse_bonding_curve_configuration: Optional[ReverseBondingCurveConfiguration] = None
    sale_start_time: Optional[int] = None
    adjustable_supply_multiplier: Optional[Decimal] = None
    sale_status: Optional[SaleStatus] = None
    selling_token_quantity: Optional[Decimal] = None
    native_token_quantity: Decimal = Decimal("0")
    max_supply: Optional[Decimal] = None
    base_price: Optional[Decimal] = None
    exponent_factor: Optional[Decimal] = None
    euler: Optional[Decimal] = None

    def __post_init__(self):
        if self.adjustable_supply_multiplier is not None and self.adjustable_supply_multiplier < 0:
            raise ValidationFailedError(
                "adjustable_supply_multiplier cannot be negative.", ["adjustable_supply_multiplier"]
            )

        m = self.supply_multiplier
        if self.max_supply is None:
            self.max_supply = self.BASE_MAX_SUPPLY * m
        if self.base_price is None:
            self.base_price = self.BASE_PRICE / m
        if self.exponent_factor is None:
            self.exponent_factor = self.EXPONENT_FACTOR / m
        if self.euler is None:
            self.euler = self.EULER
        if self.selling_token_quantity is None:
            self.selling_token_quantity = self.max_supply

        if self.sale_status is None:
            if self.sale_start_time is not None and self.sale_start_time > 0:
                self.sale_status = SaleStatus.UPCOMING
            else:
                self.sale_status = SaleStatus.ONGOING

    @property
    def supply_multiplier(self) -> Decimal:
        if self.adjustable_supply_multiplier:
            return Decimal(self.adjustable_supply_multiplier)
        return Decimal("1")

    @property
    def is_finalized(self) -> bool:
        return self.sale_status == SaleStatus.FINISHED

    def current_status(self, now: int) -> SaleStatus:
        """Status as of 'now'; an upcoming sale whose start time has passed reads as ongoing."""
        if self.sale_status == SaleStatus.UPCOMING:
            if self.sale_start_time is None or self.sale_start_time <= now:
                return SaleStatus.ONGOING
        return self.sale_status

    def buy_token(self, selling_token_amount: Decimal, native_token_amount: Decimal):
        if selling_token_amount > self.selling_token_quantity:
            raise ValidationFailedError(
                f"Cannot buy {selling_token_amount} tokens, only {self.selling_token_quantity} left in vault."
            )
        self.selling_token_quantity = self.selling_token_quantity - selling_token_amount
        self.native_token_quantity = self.native_token_quantity + native_token_amount

    def sell_token(self, selling_token_amount: Decimal, native_token_amount: Decimal):
        if native_token_amount > self.native_token_quantity:
            raise ValidationFailedError(
                f"Cannot pay out {native_token_amount}, only {self.native_token_quantity} left in vault."
            )
        self.selling_token_quantity = self.selling_token_quantity + selling_token_amount
        self.native_token_quantity = self.native_token_quantity - native_token_amount

    def finalize(self):
        self.sale_status = SaleStatus.FINISHED
        self.native_token_quantity = Decimal("0")
        self.selling_token_quantity = Decimal("0")

    def fetch_tokens_sold(self) -> Decimal:
        return self.max_supply - self.selling_token_quantity

    def fetch_circulating_supply_proportional(self) -> Decimal:
        """Share of max supply outside the vault, between 0 and 1."""
        return Decimal("1") - (self.selling_token_quantity / self.max_supply)

    def fetch_native_tokens_in_vault(self) -> Decimal:
        return self.native_token_quantity


@dataclass
class LaunchpadFeeConfig:
    """Singleton platform fee configuration."""
    INDEX_KEY: ClassVar[str] = "GCLFC"

    fee_address: str
    fee_amount: Decimal
    authorities: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.fee_amount < Decimal("0") or self.fee_amount > Decimal("1"):
            raise ValidationFailedError("fee_amount must be between 0 and 1.", ["fee_amount"])
        if not self.fee_address:
            raise ValidationFailedError("fee_address is required.", ["fee_address"])

    def update_fee_config(self, new_fee_address: str, new_fee_amount: Decimal, new_authorities: List[str]):
        self.fee_address = new_fee_address
        self.fee_amount = new_fee_amount
        self.authorities = list(new_authorities)
        self.__post_init__()


@dataclass
class LaunchpadFinalizeFeeAllocation:
    """How the vault's native balance is split when a sale graduates."""
    INDEX_KEY: ClassVar[str] = "GCLFA"

    platform_fee_percentage: Decimal = Decimal("0.01")
    owner_allocation_percentage: Decimal = Decimal("0.05")
    liquidity_allocation_percentage: Decimal = Decimal("0.94")

    def __post_init__(self):
        parts = [
            ("platform_fee_percentage", self.platform_fee_percentage),
            ("owner_allocation_percentage", self.owner_allocation_percentage),
            ("liquidity_allocation_percentage", self.liquidity_allocation_percentage),
        ]
        for name, value in parts:
            if value < Decimal("0") or value > Decimal("1"):
                raise ValidationFailedError(f"{name} must be between 0 and 1.", [name])
        if sum(value for _, value in parts) != Decimal("1"):
            raise ValidationFailedError("Allocation percentages must sum to 1.")


@dataclass
class LaunchpadBatchSubmitAuthorities:
    INDEX_KEY: ClassVar[str] = "GCLBSA"

    authorities: List[str] = field(default_factory=list)

    def add_authority(self, authority: str):
        if authority not in self.authorities:
            self.authorities.append(authority)

    def remove_authority(self, authority: str):
        self.authorities = [a for a in self.authorities if a != authority]

    def is_authorized(self, user: str) -> bool:
        return user in self.authorities

    def get_authorities(self) -> List[str]:
        return list(self.authorities)


@dataclass
class LaunchpadTradeData:
    """Running trade metrics for one sale."""
    INDEX_KEY: ClassVar[str] = "GCLPTD"

    vault_address: str
    native_volume_traded: Decimal = Decimal("0")
    created_at: int = 0
    last_updated: int = 0


@dataclass
class FeeReceipt:
    fee_code: str
    paid_by_user: str
    tx_id: str
    quantity: Decimal
    year: str
    month: str
    day: str
    status: FeeReceiptStatus = FeeReceiptStatus.SETTLED


@dataclass
class TokenExtraFees:
    max_acceptable_reverse_bonding_curve_fee: Optional[Decimal] = None


@dataclass
class ExactTokenQuantityRequest:
    """A trade in which the caller fixes the selling-token quantity."""
    vault_address: str
    token_quantity: Decimal
    expected_native_token: Optional[Decimal] = None
    extra_fees: Optional[TokenExtraFees] = None
    unique_key: Optional[str] = None


@dataclass
class NativeTokenQuantityRequest:
    """A trade in which the caller fixes the native-token quantity."""
    vault_address: str
    native_token_quantity: Decimal
    expected_token: Optional[Decimal] = None
    extra_fees: Optional[TokenExtraFees] = None
    is_pre_mint: bool = False
    unique_key: Optional[str] = None


@dataclass
class FetchSaleRequest:
    vault_address: str


@dataclass
class CreateSaleRequest:
    token_name: str
    token_symbol: str
    token_description: str
    token_image: str
    pre_buy_quantity: Decimal
    token_collection: str
    token_category: str
    reverse_bonding_curve_configuration: Optional[ReverseBondingCurveConfiguration] = None
    sale_start_time: Optional[int] = None
    adjustable_supply_multiplier: Optional[Decimal] = None
    website_url: str = ""
    telegram_url: str = ""
    twitter_url: str = ""
    unique_key: Optional[str] = None


@dataclass
class ConfigureFeeConfigRequest:
    new_platform_fee_address: Optional[str] = None
    new_fee_amount: Optional[Decimal] = None
    new_authorities: Optional[List[str]] = None


@dataclass
class FinalizeTokenAllocationRequest:
    platform_fee_percentage: Decimal
    owner_fee_percentage: Decimal


@dataclass
class AuthorizeBatchSubmitterRequest:
    authorities: List[str]


@dataclass
class DeauthorizeBatchSubmitterRequest:
    authority: str


@dataclass
class TradeCalculationFees:
    reverse_bonding_curve: str = "0"
    transaction_fees: str = "0"


@dataclass
class TradeCalculationResult:
    """Output of every curve calculation; quantities are fixed-point strings."""
    original_quantity: str
    calculated_quantity: str
    extra_fees: TradeCalculationFees = field(default_factory=TradeCalculationFees)


@dataclass
class TradeResult:
    """Receipt of a settled trade."""
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


@dataclass
class CreateSaleResult:
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
    website_url: str = ""
    telegram_url: str = ""
    twitter_url: str = ""
    reverse_bonding_curve_configuration: Optional[ReverseBondingCurveConfiguration] = None
    function_name: str = "CreateSale"


@dataclass
class CurveParams:
    """Constants of the exponential launchpad curve."""
    base_price: Decimal
    exponent_factor: Decimal
    euler: Decimal = LaunchpadSale.EULER
    curve_scale: Decimal = LaunchpadSale.CURVE_SCALE
    max_supply: Decimal = LaunchpadSale.BASE_MAX_SUPPLY


@dataclass
class CurveState:
    """Where a sale sits on its curve."""
    tokens_sold: Decimal = Decimal("0")
    native_in_vault: Decimal = Decimal("0")


@dataclass
class TradeQuote:
    """
    Rounded, capped quantities of a prospective trade.

    token_quantity and native_quantity are already at their tokens' precision and are
    exactly what will move between trader and vault.
    """
    side: OrderSide
    token_quantity: Decimal
    native_quantity: Decimal
    transaction_fee: Decimal = Decimal("0")
    reverse_bonding_curve_fee: Decimal = Decimal("0")
    capped_by_supply: bool = False
    capped_by_market_cap: bool = False
    finalizes_sale: bool = False

    def to_calculation_result(self, exact_side: str) -> TradeCalculationResult:
        """
        :param exact_side: "token" when the caller fixed the token quantity, "native" otherwise;
                           the fixed side is reported as original_quantity.
        """
        if exact_side == "token":
            original, calculated = self.token_quantity, self.native_quantity
        else:
            original, calculated = self.native_quantity, self.token_quantity
        return TradeCalculationResult(
            original_quantity=to_plain_str(original),
            calculated_quantity=to_plain_str(calculated),
            extra_fees=TradeCalculationFees(
                reverse_bonding_curve=to_plain_str(self.reverse_bonding_curve_fee),
                transaction_fees=to_plain_str(self.transaction_fee),
            ),
        )
