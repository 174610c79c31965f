"""
execution/config.py - Engine configuration.

Loaded from config/engine.yaml (or an explicit path) with .env overrides:

  FLASHARB_INITIATOR   replaces `initiator`
  FLASHARB_EVENT_LOG   replaces `event_log`
  FLASHARB_RPC_URLS    comma-separated list, replaces `rpc.urls`
  ALCHEMY_API_KEY      substituted into RPC URLs (chains.providers)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from config import DEFAULT_ENGINE_CONFIG, load_yaml
from core.constants import DEFAULT_DEADLINE_OFFSET_SECONDS
from core.exceptions import ConfigError, InvalidParameters
from core.logging import get_logger
from core.math import safe_int
from core.models import is_address, normalize_address

logger = get_logger(__name__)


@dataclass
class PoolConfig:
    """One pool: identity, address and per-token starting balances."""
    token_a: str
    token_b: str
    fee: int
    address: str
    balances: Dict[str, int] = field(default_factory=dict)


@dataclass
class VenueConfig:
    name: str
    pools: List[PoolConfig] = field(default_factory=list)
    spender: Optional[str] = None


@dataclass
class RPCConfig:
    urls: List[str] = field(default_factory=list)
    timeout_seconds: int = 10
    chain_id: int = 1
    factory: Optional[str] = None


@dataclass
class EngineConfig:
    """Everything needed to build a sandbox engine."""
    tokens: Dict[str, str]
    base_asset: str
    initiator: str
    account: str
    decimals: Dict[str, int] = field(default_factory=dict)
    deadline_offset_seconds: int = DEFAULT_DEADLINE_OFFSET_SECONDS
    event_log: Optional[Path] = None
    initiator_balance: int = 0
    account_balance: int = 0
    loan_pools: List[PoolConfig] = field(default_factory=list)
    venues: List[VenueConfig] = field(default_factory=list)
    rpc: RPCConfig = field(default_factory=RPCConfig)

    @property
    def base_symbol(self) -> Optional[str]:
        for symbol, address in self.tokens.items():
            if address == self.base_asset:
                return symbol
        return None

    @property
    def base_decimals(self) -> int:
        return self.decimals.get(self.base_symbol or "", 18)

    def token(self, value: str) -> str:
        """Symbol or address -> normalized address."""
        if value in self.tokens:
            return self.tokens[value]
        try:
            return normalize_address(value)
        except ValueError:
            raise ConfigError(f"Unknown token: {value!r}", {"known": sorted(self.tokens)})


def load_engine_config(config_path: Path | str | None = None) -> EngineConfig:
    """
    Load engine configuration from YAML.

    Args:
        config_path: Path to engine.yaml (default: bundled config/engine.yaml)

    Returns:
        EngineConfig with environment overrides applied

    Raises:
        ConfigError: missing file, malformed YAML, or invalid values
    """
    load_dotenv()
    data = load_yaml(config_path or DEFAULT_ENGINE_CONFIG)

    tokens = {}
    for symbol, address in (data.get("tokens") or {}).items():
        tokens[str(symbol)] = _address(address, f"tokens.{symbol}")

    base_value = _required(data, "base_asset")
    base_asset = tokens.get(base_value) or _address(base_value, "base_asset")

    initiator = os.getenv("FLASHARB_INITIATOR") or _required(data, "initiator")
    account = _required(data, "account")

    event_log_value = os.getenv("FLASHARB_EVENT_LOG", data.get("event_log") or "")
    balances = data.get("balances") or {}

    rpc_data = data.get("rpc") or {}
    env_urls = os.getenv("FLASHARB_RPC_URLS", "")
    urls = [u.strip() for u in env_urls.split(",") if u.strip()] or list(rpc_data.get("urls") or [])

    config = EngineConfig(
        tokens=tokens,
        base_asset=base_asset,
        initiator=str(initiator).strip().lower(),
        account=str(account).strip().lower(),
        decimals={str(k): _int(v, f"decimals.{k}") for k, v in (data.get("decimals") or {}).items()},
        deadline_offset_seconds=_int(
            data.get("deadline_offset_seconds", DEFAULT_DEADLINE_OFFSET_SECONDS),
            "deadline_offset_seconds",
        ),
        event_log=Path(event_log_value) if event_log_value else None,
        initiator_balance=_int(balances.get("initiator", 0), "balances.initiator"),
        account_balance=_int(balances.get("account", 0), "balances.account"),
        rpc=RPCConfig(
            urls=urls,
            timeout_seconds=_int(rpc_data.get("timeout_seconds", 10), "rpc.timeout_seconds"),
            chain_id=_int(rpc_data.get("chain_id", 1), "rpc.chain_id"),
            factory=_address(rpc_data["factory"], "rpc.factory") if rpc_data.get("factory") else None,
        ),
    )

    config.loan_pools = [
        _pool(config, entry, "liquidity", f"loan_pools[{i}]")
        for i, entry in enumerate(data.get("loan_pools") or [])
    ]
    for i, venue in enumerate(data.get("venues") or []):
        name = venue.get("name") if isinstance(venue, dict) else None
        if not name:
            raise ConfigError(f"venues[{i}] has no name", {"entry": venue})
        config.venues.append(VenueConfig(
            name=str(name),
            spender=venue.get("spender"),
            pools=[
                _pool(config, entry, "reserves", f"venues[{i}].pools[{j}]")
                for j, entry in enumerate(venue.get("pools") or [])
            ],
        ))

    logger.info(
        "Engine config loaded",
        extra={"context": {
            "tokens": len(config.tokens),
            "loan_pools": len(config.loan_pools),
            "venues": [v.name for v in config.venues],
        }},
    )
    return config


def _required(data: Dict[str, Any], key: str) -> Any:
    value = data.get(key)
    if value in (None, ""):
        raise ConfigError(f"Missing required config key: {key}", {"key": key})
    return value


def _address(value: Any, where: str) -> str:
    if not is_address(value):
        raise ConfigError(f"{where}: not an address: {value!r}", {"field": where})
    return normalize_address(value)


def _int(value: Any, where: str) -> int:
    """Ints or integral strings; floats are refused."""
    try:
        return safe_int(value, where)
    except (InvalidParameters, OverflowError):
        raise ConfigError(f"{where}: expected integer, got {value!r}", {"field": where})


def _pool(config: EngineConfig, entry: Any, balances_key: str, where: str) -> PoolConfig:
    if not isinstance(entry, dict):
        raise ConfigError(f"{where}: expected mapping", {"entry": entry})
    try:
        return PoolConfig(
            token_a=config.token(entry["token_a"]),
            token_b=config.token(entry["token_b"]),
            fee=_int(entry["fee"], f"{where}.fee"),
            address=_address(entry["address"], f"{where}.address"),
            balances={
                config.token(symbol): _int(amount, f"{where}.{balances_key}.{symbol}")
                for symbol, amount in (entry.get(balances_key) or {}).items()
            },
        )
    except KeyError as e:
        raise ConfigError(f"{where}: missing {e}", {"entry": entry})
