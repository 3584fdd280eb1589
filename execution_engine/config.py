"""Per-run executor configuration loaded from the environment."""

from decimal import Decimal
from typing import Dict, Mapping, Optional
import os

from dotenv import load_dotenv
from eth_utils import is_hex_address, to_checksum_address
from pydantic import BaseModel, ConfigDict, SecretStr, ValidationError, field_validator

from execution_adapter.ethereum.addresses import (
    CHAIN_ID,
    ORACLES,
    TOKENS,
    VAULT_NFT_ID,
    VAULT_RESOLVER,
)
from execution_adapter.ethereum.aggregator import DEFAULT_API_BASE, DEFAULT_TIMEOUT_SECONDS
from execution_adapter.ethereum.resolver import DebtReadPolicy
from execution_controller.policy import DEFAULT_GAS_LIMIT_MARGIN_BPS, DEFAULT_MAX_GAS_COST


class ConfigError(ValueError):
    """Raised when required settings are missing or invalid."""


_ADDRESS_FIELDS = (
    "contract_address",
    "source_token",
    "debt_token",
    "collateral_token",
    "eur_usd_feed",
    "stable_usd_feed",
    "native_usd_feed",
    "vault_resolver",
)


class ExecutorConfig(BaseModel):
    """Immutable settings for one invocation."""

    model_config = ConfigDict(frozen=True)

    contract_address: str
    rpc_url: SecretStr
    private_key: Optional[SecretStr] = None
    private_key_file: Optional[str] = None
    aggregator_api_key: Optional[SecretStr] = None
    gas_policy_id: Optional[str] = None
    dry_run: bool = False

    chain_id: int = CHAIN_ID
    source_token: str = TOKENS["EURE"]
    debt_token: str = TOKENS["USDC"]
    collateral_token: str = TOKENS["WETH"]
    eur_usd_feed: str = ORACLES["EUR_USD"]
    stable_usd_feed: str = ORACLES["USDC_USD"]
    native_usd_feed: str = ORACLES["ETH_USD"]
    vault_resolver: str = VAULT_RESOLVER
    vault_position_id: int = VAULT_NFT_ID
    debt_read_failure: DebtReadPolicy = DebtReadPolicy.ASSUME_ZERO

    max_gas_cost: Decimal = DEFAULT_MAX_GAS_COST
    gas_limit_margin_bps: int = DEFAULT_GAS_LIMIT_MARGIN_BPS
    aggregator_api_base: str = DEFAULT_API_BASE
    aggregator_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    rpc_timeout_seconds: float = 30.0
    receipt_timeout_seconds: float = 180.0

    @field_validator(*_ADDRESS_FIELDS)
    @classmethod
    def _checksum(cls, value: str) -> str:
        if not is_hex_address(value):
            raise ValueError(f"not a valid address: {value!r}")
        return to_checksum_address(value)

    @field_validator(
        "aggregator_timeout_seconds", "rpc_timeout_seconds", "receipt_timeout_seconds"
    )
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeouts must be positive")
        return value

    @field_validator("max_gas_cost")
    @classmethod
    def _non_negative_cost(cls, value: Decimal) -> Decimal:
        if value < 0:
            raise ValueError("max_gas_cost must be non-negative")
        return value

    def describe(self) -> Dict[str, object]:
        """Loggable view without secrets."""

        return {
            "contract_address": self.contract_address,
            "chain_id": self.chain_id,
            "dry_run": self.dry_run,
            "gas_policy_id": self.gas_policy_id,
            "max_gas_cost": str(self.max_gas_cost),
            "debt_read_failure": self.debt_read_failure.value,
        }


def load_config(
    env_file: Optional[str] = None,
    dry_run: Optional[bool] = None,
    require_signer: bool = True,
    environ: Optional[Mapping[str, str]] = None,
) -> ExecutorConfig:
    """Build an ``ExecutorConfig`` from environment variables.

    ``environ`` defaults to ``os.environ`` after loading ``env_file`` (or a
    local ``.env``) through python-dotenv. Every missing required variable is
    reported at once.
    """

    if environ is None:
        load_dotenv(env_file, override=False)
        environ = os.environ

    missing = []
    contract = environ.get("DCA_ADDRESS", "")
    if not contract:
        missing.append("DCA_ADDRESS")

    rpc_url = environ.get("RPC_URL", "")
    if not rpc_url:
        api_key = environ.get("ALCHEMY_API_KEY", "")
        if api_key:
            rpc_url = f"https://eth-mainnet.g.alchemy.com/v2/{api_key}"
        else:
            missing.append("ALCHEMY_API_KEY or RPC_URL")

    if require_signer:
        if not environ.get("ONEINCH_API_KEY"):
            missing.append("ONEINCH_API_KEY")
        if not environ.get("PRIVATE_KEY") and not environ.get("PRIVATE_KEY_FILE"):
            missing.append("PRIVATE_KEY or PRIVATE_KEY_FILE")

    if missing:
        raise ConfigError("Missing required environment variables: " + ", ".join(missing))

    values: Dict[str, object] = {
        "contract_address": contract,
        "rpc_url": rpc_url,
        "private_key": environ.get("PRIVATE_KEY") or None,
        "private_key_file": environ.get("PRIVATE_KEY_FILE") or None,
        "aggregator_api_key": environ.get("ONEINCH_API_KEY") or None,
        "gas_policy_id": environ.get("GAS_MANAGER_POLICY_ID") or None,
        "dry_run": _env_flag(environ.get("DRY_RUN")) if dry_run is None else dry_run,
    }
    optional = {
        "CHAIN_ID": "chain_id",
        "MAX_GAS_COST_USD": "max_gas_cost",
        "DEBT_READ_FAILURE": "debt_read_failure",
        "RECEIPT_TIMEOUT_SECONDS": "receipt_timeout_seconds",
        "ONEINCH_API_BASE": "aggregator_api_base",
    }
    for env_name, field in optional.items():
        if environ.get(env_name):
            values[field] = environ[env_name]

    try:
        return ExecutorConfig(**values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc


def _env_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}
