# surgevol

Settlement logic for three related volatility products, as a plain Python
library with no dependencies outside the standard library.

## Modules

- **`surgevol.oracle`**: a running annualized volatility estimate built with
  Welford's online algorithm over log returns of a price feed.
  - `initialize_volatility_stats(authority)` returns an empty
    `VolatilityStats` owned by a 32-byte authority.
  - `update_volatility(stats, authority, price_update, now)` takes a
    `PriceUpdate` (a feed id and a `Price`), checks the authority, accepts
    the price only if it is for the SOL/USD feed and at most 3600 seconds
    old, folds it into the statistics and returns a `VolatilityUpdated`
    event. The annualized volatility is the daily volatility scaled by √252.
  - `VolatilityStats.to_bytes()` / `VolatilityStats.from_bytes(data)` write
    and read the fixed 80-byte account layout (8-byte discriminator first);
    `read_annualized_volatility(data)` reads only the volatility field from
    such bytes.
  - `feed_id_from_hex(text)` parses a 32-byte feed id, with or without `0x`.
- **`surgevol.futures`**: volatility futures redemption.
  - `calculate_redemption_value(amount, entry_vol_points, current_vol_points, usdc_per_vol)`
    gives the USDC owed: a base value plus the profit, or minus the loss,
    from the volatility change; a loss that would wipe out the base value
    yields 1.
  - `redeem_tokens(accounts, amount)` checks the `RedeemTokens` account
    constraints, burns the tokens, pays the basis-point fee to the fee
    account and the rest to the user from the collateral pool, and scales
    the position's collateral down in proportion.
  - `update_fee(accounts, new_fee_bps)` sets the fee on an `UpdateFee`
    account set, up to 10000 basis points.
- **`surgevol.variance`**: variance markets with a strike.
  - `mint_tokens(accounts, amount, is_long)` moves USDC into the vault,
    mints long or short tokens and returns a `TokensMinted` event.
  - `redeem(accounts)` reads the oracle's volatility from raw bytes,
    computes the realized variance, splits the deposits between long and
    short payouts, burns the user's tokens, marks the market expired and
    returns a `MarketRedeemed` event.
- **`surgevol.accounts`**: in-memory records (`Mint`, `TokenAccount`,
  `TokenConfig`, `UserPosition`, `Market`, `MarketBumps`) and the token
  operations `transfer`, `burn` and `mint_to`.
- **`surgevol.errors`**: `ContractError`, `OracleError` and `VarianceError`,
  each carrying a code from `ContractErrorCode`, `OracleErrorCode` or
  `VarianceErrorCode`, plus `InvalidAccountData` for unreadable account
  bytes.

If a redemption or mint fails part-way, the records it touched are put back
as they were before the exception propagates.

## Example

```python
from surgevol.oracle import initialize_volatility_stats, read_annualized_volatility

stats = initialize_volatility_stats(authority=bytes(32))
data = stats.to_bytes()
print(len(data))                         # 80
print(read_annualized_volatility(data))  # 0.0
```

## What it does not do

- It does not create variance markets or set up futures tokens and user
  positions; the `Market`, `TokenConfig` and `UserPosition` records are
  built by the caller. `MarketInitialized` is defined as an event type only.
- It does not fetch prices; a `PriceUpdate` must be supplied.
- It keeps no storage and has no command-line interface or server.

## Running the tests

```
pip install -e ".[test]"
pytest
```