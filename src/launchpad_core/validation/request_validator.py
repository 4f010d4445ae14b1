from decimal import Decimal
from typing import List, Optional

from launchpad_core.common.errors import ValidationFailedError
from launchpad_core.common.model import (
    AuthorizeBatchSubmitterRequest,
    ConfigureFeeConfigRequest,
    CreateSaleRequest,
    ExactTokenQuantityRequest,
    FinalizeTokenAllocationRequest,
    NativeTokenQuantityRequest,
    TokenExtraFees,
)


class RequestValidator:
    """
    Field checks run on requests before they reach the engine. Every problem found is
    collected and reported in one ValidationFailedError listing the offending fields.
    """

    def __init__(self):
        self.errors: List[str] = []
        self.fields: List[str] = []

    def fail(self, field_name: str, message: str):
        self.errors.append(message)
        self.fields.append(field_name)

    def require_text(self, field_name: str, value: Optional[str]):
        if not isinstance(value, str) or not value.strip():
            self.fail(field_name, f"'{field_name}' must be a non-empty string.")

    def require_decimal(self, field_name: str, value, positive: bool = True, optional: bool = False):
        if value is None:
            if not optional:
                self.fail(field_name, f"'{field_name}' is required.")
            return
        if not isinstance(value, Decimal) or not value.is_finite():
            self.fail(field_name, f"'{field_name}' must be a finite Decimal.")
        elif positive and value <= 0:
            self.fail(field_name, f"'{field_name}' must be greater than 0.")
        elif not positive and value < 0:
            self.fail(field_name, f"'{field_name}' cannot be negative.")

    def require_portion(self, field_name: str, value, upper: Decimal = Decimal("1")):
        self.require_decimal(field_name, value, positive=False)
        if isinstance(value, Decimal) and value.is_finite() and value > upper:
            self.fail(field_name, f"'{field_name}' must be at most {upper}.")

    def check_extra_fees(self, extra_fees: Optional[TokenExtraFees]):
        if extra_fees is not None:
            self.require_decimal(
                "extra_fees.max_acceptable_reverse_bonding_curve_fee",
                extra_fees.max_acceptable_reverse_bonding_curve_fee,
                positive=False,
                optional=True,
            )

    def raise_if_failed(self):
        if self.errors:
            raise ValidationFailedError("; ".join(self.errors), self.fields)


def validate_exact_token_request(request: ExactTokenQuantityRequest):
    v = RequestValidator()
    v.require_text("vault_address", request.vault_address)
    v.require_decimal("token_quantity", request.token_quantity)
    v.require_decimal("expected_native_token", request.expected_native_token, positive=False, optional=True)
    v.check_extra_fees(request.extra_fees)
    v.raise_if_failed()


def validate_native_token_request(request: NativeTokenQuantityRequest):
    v = RequestValidator()
    v.require_text("vault_address", request.vault_address)
    v.require_decimal("native_token_quantity", request.native_token_quantity)
    v.require_decimal("expected_token", request.expected_token, positive=False, optional=True)
    v.check_extra_fees(request.extra_fees)
    v.raise_if_failed()


def validate_create_sale_request(request: CreateSaleRequest):
    v = RequestValidator()
    for name in ("token_name", "token_symbol", "token_description", "token_image", "token_collection", "token_category"):
        v.require_text(name, getattr(request, name))
    if isinstance(request.token_symbol, str) and request.token_symbol.strip() and not request.token_symbol.isalnum():
        v.fail("token_symbol", "'token_symbol' must be alphanumeric.")
    v.require_decimal("pre_buy_quantity", request.pre_buy_quantity, positive=False)
    if request.sale_start_time is not None and (not isinstance(request.sale_start_time, int) or request.sale_start_time < 0):
        v.fail("sale_start_time", "'sale_start_time' must be a non-negative integer.")
    v.require_decimal(
        "adjustable_supply_multiplier", request.adjustable_supply_multiplier, positive=False, optional=True
    )
    v.raise_if_failed()


def validate_configure_fee_config_request(request: ConfigureFeeConfigRequest):
    v = RequestValidator()
    if request.new_platform_fee_address is None and request.new_fee_amount is None and request.new_authorities is None:
        v.fail("new_platform_fee_address", "At least one of the new fee config fields must be provided.")
    if request.new_platform_fee_address is not None:
        v.require_text("new_platform_fee_address", request.new_platform_fee_address)
    if request.new_fee_amount is not None:
        v.require_portion("new_fee_amount", request.new_fee_amount)
    if request.new_authorities is not None:
        if not request.new_authorities or not all(isinstance(a, str) and a for a in request.new_authorities):
            v.fail("new_authorities", "'new_authorities' must be a non-empty list of user ids.")
    v.raise_if_failed()


def validate_finalize_allocation_request(request: FinalizeTokenAllocationRequest):
    v = RequestValidator()
    v.require_portion("platform_fee_percentage", request.platform_fee_percentage)
    v.require_portion("owner_fee_percentage", request.owner_fee_percentage)
    v.raise_if_failed()
    if request.platform_fee_percentage + request.owner_fee_percentage > 1:
        raise ValidationFailedError(
            "Platform and owner percentages together cannot exceed 1.",
            ["platform_fee_percentage", "owner_fee_percentage"],
        )


def validate_authorize_batch_submitter_request(request: AuthorizeBatchSubmitterRequest):
    v = RequestValidator()
    if not request.authorities:
        v.fail("authorities", "'authorities' must not be empty.")
    for authority in request.authorities or []:
        v.require_text("authorities", authority)
    v.raise_if_failed()
