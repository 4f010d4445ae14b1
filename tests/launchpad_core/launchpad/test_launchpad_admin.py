import pytest
from decimal import Decimal

from launchpad_core.common.errors import NotFoundError, UnauthorizedError, ValidationFailedError
from launchpad_core.common.model import (
    AuthorizeBatchSubmitterRequest,
    ConfigureFeeConfigRequest,
    DeauthorizeBatchSubmitterRequest,
    FinalizeTokenAllocationRequest,
)
from launchpad_core.launchpad.admin import (
    authorize_batch_submitter,
    configure_fee_config,
    deauthorize_batch_submitter,
    fetch_batch_submit_authorities,
    fetch_fee_amount,
    fetch_fee_config,
    finalize_token_allocation,
)
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.finalize import fetch_fee_allocation

CURATOR = "client|curator"


@pytest.fixture
def ctx():
    return LaunchpadContext.in_memory("client|anyone", tx_time=1_700_000_000_000)


def curator(ctx, user=CURATOR):
    return ctx.for_call(user, calling_org="CuratorOrg")


def member(ctx, user):
    return ctx.for_call(user, calling_org="MemberOrg")


class TestFeeConfig:
    def test_missing_config(self, ctx):
        assert fetch_fee_amount(ctx) == 0
        with pytest.raises(NotFoundError):
            fetch_fee_config(ctx)

    def test_curator_creates_config(self, ctx):
        config = configure_fee_config(
            curator(ctx), ConfigureFeeConfigRequest(new_platform_fee_address="client|fees", new_fee_amount=Decimal("0.01"))
        )
        assert config.authorities == [CURATOR]
        assert fetch_fee_config(ctx).fee_address == "client|fees"
        assert fetch_fee_amount(ctx) == Decimal("0.01")

    def test_non_curator_cannot_create(self, ctx):
        with pytest.raises(UnauthorizedError):
            configure_fee_config(
                member(ctx, "client|x"),
                ConfigureFeeConfigRequest(new_platform_fee_address="client|fees", new_fee_amount=Decimal("0.01")),
            )

    def test_initial_setup_needs_address_and_amount(self, ctx):
        with pytest.raises(ValidationFailedError):
            configure_fee_config(curator(ctx), ConfigureFeeConfigRequest(new_fee_amount=Decimal("0.01")))

    def test_authority_updates_keep_missing_fields(self, ctx):
        configure_fee_config(
            curator(ctx),
            ConfigureFeeConfigRequest(
                new_platform_fee_address="client|fees",
                new_fee_amount=Decimal("0.01"),
                new_authorities=[CURATOR, "client|ops"],
            ),
        )
        updated = configure_fee_config(member(ctx, "client|ops"), ConfigureFeeConfigRequest(new_fee_amount=Decimal("0.02")))
        assert updated.fee_address == "client|fees"
        assert updated.fee_amount == Decimal("0.02")
        assert updated.authorities == [CURATOR, "client|ops"]

    def test_curator_outside_authorities_cannot_update(self, ctx):
        configure_fee_config(
            curator(ctx),
            ConfigureFeeConfigRequest(new_platform_fee_address="client|fees", new_fee_amount=Decimal("0.01")),
        )
        with pytest.raises(UnauthorizedError):
            configure_fee_config(curator(ctx, "client|other"), ConfigureFeeConfigRequest(new_fee_amount=Decimal("0.5")))

    def test_fee_amount_out_of_range(self, ctx):
        with pytest.raises(ValidationFailedError):
            configure_fee_config(
                curator(ctx),
                ConfigureFeeConfigRequest(new_platform_fee_address="client|fees", new_fee_amount=Decimal("1.5")),
            )


class TestFinalizeAllocation:
    def test_defaults_come_from_settings(self, ctx):
        allocation = fetch_fee_allocation(ctx)
        assert allocation.owner_allocation_percentage == Decimal("0.05")
        assert allocation.platform_fee_percentage == Decimal("0.01")
        assert allocation.liquidity_allocation_percentage == Decimal("0.94")

    def test_curator_sets_allocation(self, ctx):
        finalize_token_allocation(
            curator(ctx),
            FinalizeTokenAllocationRequest(platform_fee_percentage=Decimal("0.02"), owner_fee_percentage=Decimal("0.1")),
        )
        allocation = fetch_fee_allocation(ctx)
        assert allocation.platform_fee_percentage == Decimal("0.02")
        assert allocation.liquidity_allocation_percentage == Decimal("0.88")

    def test_fee_authority_sets_allocation(self, ctx):
        configure_fee_config(
            curator(ctx),
            ConfigureFeeConfigRequest(
                new_platform_fee_address="client|fees", new_fee_amount=Decimal("0"), new_authorities=["client|ops"]
            ),
        )
        finalize_token_allocation(
            member(ctx, "client|ops"),
            FinalizeTokenAllocationRequest(platform_fee_percentage=Decimal("0"), owner_fee_percentage=Decimal("0")),
        )
        assert fetch_fee_allocation(ctx).liquidity_allocation_percentage == Decimal("1")

    def test_outsider_rejected(self, ctx):
        with pytest.raises(UnauthorizedError):
            finalize_token_allocation(
                member(ctx, "client|x"),
                FinalizeTokenAllocationRequest(platform_fee_percentage=Decimal("0.01"), owner_fee_percentage=Decimal("0.05")),
            )

    def test_shares_cannot_exceed_whole(self, ctx):
        with pytest.raises(ValidationFailedError):
            finalize_token_allocation(
                curator(ctx),
                FinalizeTokenAllocationRequest(platform_fee_percentage=Decimal("0.6"), owner_fee_percentage=Decimal("0.5")),
            )


class TestBatchAuthorities:
    def test_first_authorization_needs_curator(self, ctx):
        with pytest.raises(UnauthorizedError):
            authorize_batch_submitter(member(ctx, "client|x"), AuthorizeBatchSubmitterRequest(["client|bot"]))
        with pytest.raises(NotFoundError):
            fetch_batch_submit_authorities(ctx)

    def test_authorize_and_deauthorize(self, ctx):
        record = authorize_batch_submitter(curator(ctx), AuthorizeBatchSubmitterRequest(["client|bot"]))
        assert record.get_authorities() == [CURATOR, "client|bot"]

        authorize_batch_submitter(member(ctx, "client|bot"), AuthorizeBatchSubmitterRequest(["client|bot2", "client|bot"]))
        assert fetch_batch_submit_authorities(ctx).get_authorities() == [CURATOR, "client|bot", "client|bot2"]

        deauthorize_batch_submitter(member(ctx, "client|bot"), DeauthorizeBatchSubmitterRequest("client|bot2"))
        assert not fetch_batch_submit_authorities(ctx).is_authorized("client|bot2")

    def test_outsider_cannot_change_authorities(self, ctx):
        authorize_batch_submitter(curator(ctx), AuthorizeBatchSubmitterRequest(["client|bot"]))
        with pytest.raises(UnauthorizedError):
            deauthorize_batch_submitter(member(ctx, "client|x"), DeauthorizeBatchSubmitterRequest("client|bot"))

    def test_deauthorize_unknown(self, ctx):
        authorize_batch_submitter(curator(ctx), AuthorizeBatchSubmitterRequest(["client|bot"]))
        with pytest.raises(NotFoundError):
            deauthorize_batch_submitter(curator(ctx), DeauthorizeBatchSubmitterRequest("client|ghost"))

    def test_empty_request(self, ctx):
        with pytest.raises(ValidationFailedError):
            authorize_batch_submitter(curator(ctx), AuthorizeBatchSubmitterRequest([]))
