"""
Solana链与已知代币表
"""
from typing import Dict, List

from src.core.models import ChainInfo, Ecosystem, TokenInfo
from src.utils.config import DEFAULT_RPC_URLS

NATIVE_SOL_MINT = "So11111111111111111111111111111111111111112"

SOLANA_CHAINS: List[ChainInfo] = [
    ChainInfo(
        id="solana-mainnet",
        name="Solana",
        ecosystem=Ecosystem.SOLANA,
        native_chain_id="mainnet-beta",
        native_token=TokenInfo(
            symbol="SOL",
            name="Solana",
            decimals=9,
            address=NATIVE_SOL_MINT,
            chain_id="solana-mainnet",
            coingecko_id="solana",
        ),
        rpc_url=DEFAULT_RPC_URLS["solana-mainnet"],
        explorer_url="https://solscan.io",
    ),
]


def _token(symbol: str, name: str, decimals: int, mint: str, cg: str) -> TokenInfo:
    return TokenInfo(
        symbol=symbol,
        name=name,
        decimals=decimals,
        address=mint,
        chain_id="solana-mainnet",
        coingecko_id=cg,
    )


KNOWN_TOKENS: Dict[str, Dict[str, TokenInfo]] = {
    "solana-mainnet": {
        "USDC": _token("USDC", "USD Coin", 6, "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v", "usd-coin"),
        "USDT": _token("USDT", "Tether USD", 6, "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB", "tether"),
        "BONK": _token("BONK", "Bonk", 5, "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263", "bonk"),
        "JUP": _token("JUP", "Jupiter", 6, "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN", "jupiter-exchange-solana"),
        "RAY": _token("RAY", "Raydium", 6, "4k3Dyjzvzp8eMZWUXbBCjEvwSkkk59S5iCNLY3QrkX6R", "raydium"),
        "WSOL": _token("WSOL", "Wrapped SOL", 9, NATIVE_SOL_MINT, "solana"),
    },
}
