"""
execution/bootstrap.py - Wire a sandbox engine from EngineConfig.

Builds one Ledger, mints the configured starting balances (loan pool
liquidity, venue reserves, initiator and reserve account), and wires
registries, venues, loan source, swap executor and coordinator on top.
"""

from dataclasses import dataclass
from typing import Optional

from chains.ledger import Ledger
from core.auth import AccessPolicy
from core.logging import get_logger
from core.time import Clock
from dex.pool_key import PoolKeyResolver
from dex.pool_registry import PoolRegistry
from dex.venues import ConstantProductVenue, VenueRegistry
from execution.config import EngineConfig
from execution.coordinator import TradeCoordinator
from execution.event_log import EventLog
from execution.loan import FlashLoanPool
from execution.swap import SwapExecutor

logger = get_logger(__name__)


@dataclass
class Sandbox:
    config: EngineConfig
    ledger: Ledger
    loan_pools: PoolRegistry
    venues: VenueRegistry
    event_log: EventLog
    coordinator: TradeCoordinator


def build_sandbox(
    config: EngineConfig,
    event_log: Optional[EventLog] = None,
    clock: Optional[Clock] = None,
) -> Sandbox:
    """
    Args:
        config: Loaded engine configuration
        event_log: Record sink (default: config.event_log file, else memory)
        clock: Unix-seconds clock shared by coordinator and swaps
    """
    ledger = Ledger()

    loan_pools = PoolRegistry()
    for pool in config.loan_pools:
        loan_pools.register(pool.token_a, pool.token_b, pool.fee, pool.address)
        for asset, amount in pool.balances.items():
            ledger.mint(pool.address, asset, amount)

    venues = VenueRegistry()
    for venue_config in config.venues:
        registry = PoolRegistry()
        for pool in venue_config.pools:
            registry.register(pool.token_a, pool.token_b, pool.fee, pool.address)
            for asset, amount in pool.balances.items():
                ledger.mint(pool.address, asset, amount)
        venues.add(ConstantProductVenue(venue_config.name, ledger, registry, spender=venue_config.spender))

    if config.initiator_balance:
        ledger.mint(config.initiator, config.base_asset, config.initiator_balance)
    if config.account_balance:
        ledger.mint(config.account, config.base_asset, config.account_balance)

    if event_log is None:
        event_log = EventLog.load(config.event_log) if config.event_log else EventLog()

    coordinator = TradeCoordinator(
        base_asset=config.base_asset,
        account=config.account,
        ledger=ledger,
        resolver=PoolKeyResolver(loan_pools),
        loan_source=FlashLoanPool(ledger),
        swap_executor=SwapExecutor(ledger, venues, clock=clock),
        policy=AccessPolicy(initiator=config.initiator),
        event_log=event_log,
        clock=clock,
    )

    logger.info(
        "Sandbox ready",
        extra={"context": {
            "loan_pools": len(loan_pools),
            "venues": venues.names(),
            "reserve": coordinator.base_balance(),
        }},
    )
    return Sandbox(
        config=config,
        ledger=ledger,
        loan_pools=loan_pools,
        venues=venues,
        event_log=event_log,
        coordinator=coordinator,
    )
