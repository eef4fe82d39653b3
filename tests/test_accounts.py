import pytest

from surgevol.accounts import (
    U64_MAX,
    Mint,
    TokenAccount,
    burn,
    mint_to,
    transfer,
)

MINT_KEY = bytes([1]) * 32
OTHER_MINT_KEY = bytes([2]) * 32
ALICE = bytes([3]) * 32
BOB = bytes([4]) * 32


def _account(owner, amount, mint=MINT_KEY, tag=0):
    return TokenAccount(key=bytes([tag]) * 32, mint=mint, owner=owner, amount=amount)


def test_transfer_moves_tokens_and_conserves_total():
    source = _account(ALICE, 100, tag=10)
    destination = _account(BOB, 5, tag=11)
    transfer(source, destination, ALICE, 40)
    assert source.amount == 100 - 40
    assert destination.amount == 5 + 40
    assert source.amount + destination.amount == 105


def test_transfer_insufficient_funds():
    source = _account(ALICE, 10, tag=10)
    destination = _account(BOB, 0, tag=11)
    with pytest.raises(ValueError):
        transfer(source, destination, ALICE, 11)
    assert source.amount == 10
    assert destination.amount == 0


def test_transfer_requires_owner():
    source = _account(ALICE, 10, tag=10)
    destination = _account(BOB, 0, tag=11)
    with pytest.raises(PermissionError):
        transfer(source, destination, BOB, 1)


def test_transfer_requires_same_mint():
    source = _account(ALICE, 10, tag=10)
    destination = _account(BOB, 0, mint=OTHER_MINT_KEY, tag=11)
    with pytest.raises(ValueError):
        transfer(source, destination, ALICE, 1)


def test_transfer_destination_overflow():
    source = _account(ALICE, 10, tag=10)
    destination = _account(BOB, U64_MAX, tag=11)
    with pytest.raises(OverflowError):
        transfer(source, destination, ALICE, 1)
    assert source.amount == 10


def test_transfer_negative_amount_rejected():
    source = _account(ALICE, 10, tag=10)
    destination = _account(BOB, 0, tag=11)
    with pytest.raises(ValueError):
        transfer(source, destination, ALICE, -1)


def test_mint_then_burn_round_trip():
    mint = Mint(key=MINT_KEY)
    account = _account(ALICE, 0)
    mint_to(mint, account, 500)
    assert account.amount == 500
    assert mint.supply == 500
    burn(mint, account, ALICE, 500)
    assert account.amount == 0
    assert mint.supply == 0


def test_burn_requires_owner_and_balance():
    mint = Mint(key=MINT_KEY)
    account = _account(ALICE, 0)
    mint_to(mint, account, 20)
    with pytest.raises(PermissionError):
        burn(mint, account, BOB, 1)
    with pytest.raises(ValueError):
        burn(mint, account, ALICE, 21)
    assert account.amount == 20
    assert mint.supply == 20


def test_mint_to_wrong_mint():
    mint = Mint(key=MINT_KEY)
    account = _account(ALICE, 0, mint=OTHER_MINT_KEY)
    with pytest.raises(ValueError):
        mint_to(mint, account, 1)
    assert mint.supply == 0


def test_mint_to_supply_overflow():
    mint = Mint(key=MINT_KEY, supply=U64_MAX)
    account = _account(ALICE, 0)
    with pytest.raises(OverflowError):
        mint_to(mint, account, 1)
    assert account.amount == 0