"""Ethereum mainnet deployment addresses used by the executor."""

from typing import Dict

CHAIN_ID = 1

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

TOKENS: Dict[str, str] = {
    "EURE": "0x39b8B6385416f4cA36a20319F70D28621895279D",
    "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
}

TOKEN_DECIMALS: Dict[str, int] = {
    "EURE": 18,
    "USDC": 6,
    "WETH": 18,
}

# Chainlink aggregators, 8 decimals each.
ORACLES: Dict[str, str] = {
    "EUR_USD": "0xb49f677943BC038e9857d61E7d053CaA2C1734C1",
    "USDC_USD": "0x8fFfFfd4AfB6115b954Bd326cbe7B4BA576818f6",
    "ETH_USD": "0x5f4eC3Df9cbd43714FE2740f5E3616155c5b8419",
}

VAULT_RESOLVER = "0xB21C67DD518F6d31257d3A4F12B0A6344885b268"
VAULT_NFT_ID = 8765

AGGREGATION_ROUTER = "0x111111125421cA6dc452d289314280a0f8842A65"

EXPLORER_TX_URL = "https://etherscan.io/tx/"
