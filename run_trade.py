#!/usr/bin/env python3
"""
run_trade.py - CLI entrypoint for the flash-loan arbitrage engine.

Every invocation builds a fresh sandbox from the engine config, so
balances do not carry over between commands. Step records do, when
an event log path is configured.

Usage:
    python run_trade.py trade --trade-asset USDC --principal 1 \\
        --buy-venue sushiswap --buy-fee 3000 --sell-venue uniswap_v3 --sell-fee 500
    python run_trade.py simulate --trade-asset USDC --principal 1 ...
    python run_trade.py balance
    python run_trade.py pending --log data/steps.jsonl
    python run_trade.py compose-id --tag 7 --date 2026-01-22 --minute 866
    python run_trade.py verify-pools
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import click

from chains.providers import RPCProvider
from core.constants import DEFAULT_DEADLINE_OFFSET_SECONDS
from core.exceptions import FlashArbError
from core.format_money import format_units, parse_units
from core.logging import get_logger, set_global_context, setup_logging
from core.models import TradeRequest
from core.trade_id import compose_trade_id, describe_trade_id
from dex.pool_registry import PoolRegistry, verify_deployed
from execution.bootstrap import Sandbox, build_sandbox
from execution.config import EngineConfig, load_engine_config
from execution.event_log import EventLog

logger = get_logger("flasharb.cli")


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _load(ctx: click.Context) -> Sandbox:
    config: EngineConfig = ctx.obj["config"]
    return build_sandbox(config)


def trade_options(func: Callable) -> Callable:
    """Options shared by `trade` and `simulate`."""
    options = [
        click.option("--trade-id", type=int, default=None, help="Trade id (default: composed from now)"),
        click.option("--tag", type=click.IntRange(0, 99), default=1, show_default=True, help="Process tag for composed ids"),
        click.option("--trade-asset", required=True, help="Symbol or address of the asset to round-trip"),
        click.option("--principal", required=True, help="Amount to borrow, in base-asset units (e.g. 1.5)"),
        click.option("--min-output", default="0", show_default=True, help="Buy leg floor, in trade-asset units"),
        click.option("--loan-fee", type=int, default=3000, show_default=True, help="Loan pool fee tier"),
        click.option("--buy-venue", required=True),
        click.option("--buy-fee", type=int, default=3000, show_default=True),
        click.option("--sell-venue", required=True),
        click.option("--sell-fee", type=int, default=3000, show_default=True),
        click.option("--price-limit-buy", type=int, default=0, help="sqrtPriceX96 limit (0 = none)"),
        click.option("--price-limit-sell", type=int, default=0, help="sqrtPriceX96 limit (0 = none)"),
        click.option("--deadline-offset", type=int, default=None, help="Seconds from start (default: config)"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def build_request(config: EngineConfig, **kwargs: Any) -> TradeRequest:
    trade_asset = config.token(kwargs["trade_asset"])
    trade_symbol = next((s for s, a in config.tokens.items() if a == trade_asset), "")

    trade_id = kwargs["trade_id"]
    if trade_id is None:
        now = datetime.now(timezone.utc)
        trade_id = compose_trade_id(kwargs["tag"], now.date(), now.hour * 60 + now.minute)

    deadline_offset = kwargs["deadline_offset"]
    if deadline_offset is None:
        deadline_offset = config.deadline_offset_seconds or DEFAULT_DEADLINE_OFFSET_SECONDS

    return TradeRequest(
        trade_id=trade_id,
        trade_asset=trade_asset,
        principal_amount=parse_units(kwargs["principal"], config.base_decimals),
        min_acceptable_output=parse_units(kwargs["min_output"], config.decimals.get(trade_symbol, 18)),
        loan_fee_tier=kwargs["loan_fee"],
        buy_fee_tier=kwargs["buy_fee"],
        sell_fee_tier=kwargs["sell_fee"],
        buy_venue=kwargs["buy_venue"],
        sell_venue=kwargs["sell_venue"],
        price_limit_buy=kwargs["price_limit_buy"],
        price_limit_sell=kwargs["price_limit_sell"],
        deadline_offset=deadline_offset,
    )


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Engine config YAML (default: bundled config/engine.yaml)",
)
@click.option(
    "--log-level",
    "-l",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=True,
    help="Use JSON log format",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str, json_logs: bool) -> None:
    """Atomic flash-loan arbitrage engine (sandbox)."""
    setup_logging(level=log_level, json_output=json_logs)
    set_global_context(service="flasharb", version="0.1.0")

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_engine_config(config_path)
    except FlashArbError as e:
        raise click.ClickException(str(e))


@cli.command()
@trade_options
@click.option("--caller", default=None, help="Caller identity (default: configured initiator)")
@click.pass_context
def trade(ctx: click.Context, caller: str | None, **kwargs: Any) -> None:
    """Run one atomic trade attempt."""
    sandbox = _load(ctx)
    try:
        request = build_request(sandbox.config, **kwargs)
        result = sandbox.coordinator.execute(caller or sandbox.config.initiator, request)
    except FlashArbError as e:
        raise click.ClickException(str(e))

    _echo_json({
        **result.to_dict(),
        "reserve": format_units(sandbox.coordinator.base_balance(), sandbox.config.base_decimals),
    })
    if not result.is_success:
        sys.exit(1)


@cli.command()
@trade_options
@click.pass_context
def simulate(ctx: click.Context, **kwargs: Any) -> None:
    """Price a trade against current reserves without executing it."""
    sandbox = _load(ctx)
    try:
        request = build_request(sandbox.config, **kwargs)
    except FlashArbError as e:
        raise click.ClickException(str(e))

    result = sandbox.coordinator.simulate(request)
    _echo_json(result.to_dict())
    if not result.passed:
        sys.exit(1)


@cli.command()
@click.pass_context
def balance(ctx: click.Context) -> None:
    """Show the coordinator reserve and the initiator balance."""
    sandbox = _load(ctx)
    config = sandbox.config
    _echo_json({
        "base_asset": config.base_asset,
        "symbol": config.base_symbol,
        "reserve": format_units(sandbox.coordinator.base_balance(), config.base_decimals),
        "initiator": format_units(
            sandbox.ledger.balance_of(config.initiator, config.base_asset),
            config.base_decimals,
        ),
    })


def _move(ctx: click.Context, caller: str | None, amount: str, operation: str) -> None:
    sandbox = _load(ctx)
    config = sandbox.config
    coordinator = sandbox.coordinator
    try:
        raw = parse_units(amount, config.base_decimals)
        method = coordinator.deposit if operation == "deposit" else coordinator.withdraw
        new_balance = method(caller or config.initiator, raw)
    except FlashArbError as e:
        raise click.ClickException(str(e))

    _echo_json({
        "operation": operation,
        "amount": format_units(raw, config.base_decimals),
        "reserve": format_units(new_balance, config.base_decimals),
    })


@cli.command()
@click.option("--amount", required=True, help="Base-asset units")
@click.option("--caller", default=None)
@click.pass_context
def deposit(ctx: click.Context, amount: str, caller: str | None) -> None:
    """Move base asset from the caller into the reserve."""
    _move(ctx, caller, amount, "deposit")


@cli.command()
@click.option("--amount", required=True, help="Base-asset units")
@click.option("--caller", default=None)
@click.pass_context
def withdraw(ctx: click.Context, amount: str, caller: str | None) -> None:
    """Move base asset from the reserve to the caller."""
    _move(ctx, caller, amount, "withdraw")


@cli.command()
@click.option(
    "--log",
    "log_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON-lines step log (default: configured event_log)",
)
@click.pass_context
def pending(ctx: click.Context, log_path: Path | None) -> None:
    """List trades whose last record is not terminal."""
    config: EngineConfig = ctx.obj["config"]
    path = log_path or config.event_log
    if path is None:
        raise click.ClickException("No event log configured; pass --log")

    event_log = EventLog.load(path)
    incomplete = event_log.incomplete_trades()
    _echo_json({
        "log": str(path),
        "records": len(event_log),
        "incomplete": [
            {"trade_id": trade_id, "last_step": event_log.last_step(trade_id).value}
            for trade_id in incomplete
        ],
    })


@cli.command("compose-id")
@click.option("--tag", type=click.IntRange(0, 99), required=True)
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), required=True)
@click.option("--minute", type=click.IntRange(0, 1439), required=True, help="Minute of day")
def compose_id(tag: int, day: datetime, minute: int) -> None:
    """Compose a trade id from tag, date and minute of day."""
    try:
        trade_id = compose_trade_id(tag, day.date(), minute)
    except ValueError as e:
        raise click.BadParameter(str(e))
    _echo_json(describe_trade_id(trade_id))


@cli.command("describe-id")
@click.argument("trade_id", type=int)
def describe_id(trade_id: int) -> None:
    """Decode a trade id composed with compose-id."""
    _echo_json(describe_trade_id(trade_id))


async def _verify(config: EngineConfig) -> dict:
    registry = PoolRegistry()
    for pool in config.loan_pools:
        registry.register(pool.token_a, pool.token_b, pool.fee, pool.address)
    checked = len(registry)

    async with RPCProvider(config.rpc.urls, timeout_seconds=config.rpc.timeout_seconds) as provider:
        removed = await verify_deployed(provider, registry)
        stats = provider.get_stats_summary()

    return {
        "checked": checked,
        "deployed": [entry.to_dict() for entry in registry],
        "missing": [entry.to_dict() for entry in removed],
        "rpc": stats,
    }


@cli.command("verify-pools")
@click.pass_context
def verify_pools(ctx: click.Context) -> None:
    """Check every configured loan pool has deployed code (RPC)."""
    config: EngineConfig = ctx.obj["config"]
    if not config.rpc.urls:
        raise click.ClickException("No RPC URLs configured")

    try:
        report = asyncio.run(_verify(config))
    except FlashArbError as e:
        raise click.ClickException(str(e))

    _echo_json(report)
    if report["missing"]:
        sys.exit(1)


if __name__ == "__main__":
    cli()
