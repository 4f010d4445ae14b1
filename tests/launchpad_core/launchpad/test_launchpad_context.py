import pytest
from decimal import Decimal

from launchpad_core.common.errors import NotFoundError
from launchpad_core.common.model import TokenClass, native_token_key
from launchpad_core.config import LaunchpadSettings
from launchpad_core.launchpad.context import LaunchpadContext
from launchpad_core.launchpad.trade_data import fetch_trade_data, write_trade_data


@pytest.fixture
def ctx():
    ctx = LaunchpadContext.in_memory("client|a", tx_time=1000, tx_id="tx-a")
    native = native_token_key()
    ctx.tokens.register_token(TokenClass(key=native.token_class_key, name="GALA", symbol="GALA", decimals=8))
    ctx.balances.mint("client|a", native, Decimal("10"))
    return ctx


def test_for_call_shares_collaborators(ctx):
    other = ctx.for_call("client|b", calling_org="OrgB", tx_time=2000, tx_id="tx-b")
    assert other.calling_user == "client|b"
    assert other.calling_org == "OrgB"
    assert other.tx_time == 2000
    assert other.store is ctx.store
    assert other.balances is ctx.balances


def test_for_call_defaults_identity(ctx):
    other = ctx.for_call("client|b")
    assert other.tx_time > 0
    assert other.tx_id
    assert other.tx_id != ctx.for_call("client|b").tx_id


def test_in_memory_takes_settings():
    settings = LaunchpadSettings(curator_org_msp="Admins")
    assert LaunchpadContext.in_memory("client|a", settings=settings).settings.curator_org_msp == "Admins"


def test_atomic_rolls_back_on_error(ctx):
    native = native_token_key()
    with pytest.raises(RuntimeError):
        with ctx.atomic():
            ctx.balances.transfer("client|a", "client|b", native, Decimal("4"))
            write_trade_data(ctx, "vault", Decimal("4"))
            raise RuntimeError("boom")

    assert ctx.balances.get_balance("client|a", native) == Decimal("10")
    assert ctx.balances.transfers == []
    with pytest.raises(NotFoundError):
        fetch_trade_data(ctx, "vault")


def test_atomic_commits(ctx):
    native = native_token_key()
    with ctx.atomic():
        ctx.balances.transfer("client|a", "client|b", native, Decimal("4"))
    assert ctx.balances.get_balance("client|b", native) == Decimal("4")


def test_trade_data_tracks_volume(ctx):
    write_trade_data(ctx, "vault", Decimal("1.5"))
    later = ctx.for_call("client|a", tx_time=5000)
    data = write_trade_data(later, "vault", Decimal("2"))
    assert data.native_volume_traded == Decimal("3.5")
    assert data.created_at == 1000
    assert data.last_updated == 5000
