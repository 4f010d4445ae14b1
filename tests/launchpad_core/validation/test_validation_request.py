import pytest

from decimal import Decimal

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
from launchpad_core.validation.request_validator import (
    RequestValidator,
    validate_authorize_batch_submitter_request,
    validate_configure_fee_config_request,
    validate_create_sale_request,
    validate_exact_token_request,
    validate_finalize_allocation_request,
    validate_native_token_request,
)


@pytest.fixture
def create_request():
    return CreateSaleRequest(
        token_name="Rocket",
        token_symbol="RKT",
        token_description="desc",
        token_image="img",
        pre_buy_quantity=Decimal("0"),
        token_collection="Rocket",
        token_category="Unit",
    )


def test_collects_every_failure():
    v = RequestValidator()
    v.require_text("a", " ")
    v.require_decimal("b", Decimal("0"))
    v.require_decimal("c", None, optional=True)
    v.require_decimal("d", Decimal("NaN"))
    with pytest.raises(ValidationFailedError) as exc_info:
        v.raise_if_failed()
    assert exc_info.value.fields == ["a", "b", "d"]


def test_no_failures_does_not_raise():
    RequestValidator().raise_if_failed()


def test_exact_token_request_valid():
    validate_exact_token_request(
        ExactTokenQuantityRequest("vault", Decimal("1"), expected_native_token=Decimal("0"))
    )


@pytest.mark.parametrize(
    "request_obj, field_name",
    [
        (ExactTokenQuantityRequest("vault", Decimal("0")), "token_quantity"),
        (ExactTokenQuantityRequest("vault", Decimal("1"), expected_native_token=Decimal("-1")), "expected_native_token"),
        (
            ExactTokenQuantityRequest(
                "vault", Decimal("1"), extra_fees=TokenExtraFees(max_acceptable_reverse_bonding_curve_fee=Decimal("-1"))
            ),
            "extra_fees.max_acceptable_reverse_bonding_curve_fee",
        ),
    ]
)
def test_exact_token_request_invalid(request_obj, field_name):
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_exact_token_request(request_obj)
    assert exc_info.value.fields == [field_name]


def test_native_token_request_rejects_float_quantity():
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_native_token_request(NativeTokenQuantityRequest("vault", 1.5))
    assert exc_info.value.fields == ["native_token_quantity"]


def test_create_sale_request_valid(create_request):
    validate_create_sale_request(create_request)


def test_create_sale_symbol_must_be_alphanumeric(create_request):
    create_request.token_symbol = "R K T"
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_create_sale_request(create_request)
    assert exc_info.value.fields == ["token_symbol"]


def test_create_sale_negative_multiplier(create_request):
    create_request.adjustable_supply_multiplier = Decimal("-2")
    with pytest.raises(ValidationFailedError):
        validate_create_sale_request(create_request)


def test_configure_fee_config_needs_a_field():
    with pytest.raises(ValidationFailedError):
        validate_configure_fee_config_request(ConfigureFeeConfigRequest())


def test_configure_fee_config_authorities_not_empty():
    with pytest.raises(ValidationFailedError) as exc_info:
        validate_configure_fee_config_request(ConfigureFeeConfigRequest(new_authorities=[]))
    assert exc_info.value.fields == ["new_authorities"]


def test_finalize_allocation_bounds():
    validate_finalize_allocation_request(FinalizeTokenAllocationRequest(Decimal("0.5"), Decimal("0.5")))
    with pytest.raises(ValidationFailedError):
        validate_finalize_allocation_request(FinalizeTokenAllocationRequest(Decimal("1.01"), Decimal("0")))


def test_batch_submitter_request():
    validate_authorize_batch_submitter_request(AuthorizeBatchSubmitterRequest(["client|bot"]))
    with pytest.raises(ValidationFailedError):
        validate_authorize_batch_submitter_request(AuthorizeBatchSubmitterRequest(["client|bot", ""]))
