from .adapter import AdapterError, build_execute_payload, leg_for
from .aggregator import (
    AggregatorNetworkError,
    AggregatorResponseError,
    ReceiverMismatchError,
    SwapRouteFetcher,
)
from .calldata import CalldataFormatError
from .chain import (
    CallRevertedError,
    ChainClient,
    ChainRpcError,
    ConfirmationTimeoutError,
    SubmissionUnknownError,
    TxReceipt,
    Web3ChainClient,
)
from .contract import ContractDecodeError, DcaContractReader
from .models import AbsentLeg, ExecutePayload, Leg, PresentLeg, SwapDescription, SwapRoute
from .oracle import OracleReadError, PriceOracleReader
from .resolver import DebtDecodeError, DebtReadError, DebtReadPolicy, ResolverWordSchema, VaultDebtReader
from .simulator import SimulationError, simulate

__all__ = [
    "AbsentLeg",
    "AdapterError",
    "AggregatorNetworkError",
    "AggregatorResponseError",
    "CallRevertedError",
    "CalldataFormatError",
    "ChainClient",
    "ChainRpcError",
    "ConfirmationTimeoutError",
    "ContractDecodeError",
    "DcaContractReader",
    "DebtDecodeError",
    "DebtReadError",
    "DebtReadPolicy",
    "ExecutePayload",
    "Leg",
    "OracleReadError",
    "PresentLeg",
    "PriceOracleReader",
    "ReceiverMismatchError",
    "ResolverWordSchema",
    "SimulationError",
    "SubmissionUnknownError",
    "SwapDescription",
    "SwapRoute",
    "SwapRouteFetcher",
    "TxReceipt",
    "VaultDebtReader",
    "Web3ChainClient",
    "build_execute_payload",
    "leg_for",
    "simulate",
]
