"""
EVM链与已知代币表
"""
from typing import Dict, List

from src.core.models import ChainInfo, Ecosystem, TokenInfo
from src.utils.config import DEFAULT_RPC_URLS

# 表示原生代币的哨兵地址
NATIVE_TOKEN_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"


def _native(chain_id: str, symbol: str, name: str, coingecko_id: str) -> TokenInfo:
    return TokenInfo(
        symbol=symbol,
        name=name,
        decimals=18,
        address=NATIVE_TOKEN_ADDRESS,
        chain_id=chain_id,
        coingecko_id=coingecko_id,
    )


def _chain(
    chain_id: str,
    name: str,
    native_chain_id: int,
    native: TokenInfo,
    explorer_url: str,
) -> ChainInfo:
    return ChainInfo(
        id=chain_id,
        name=name,
        ecosystem=Ecosystem.EVM,
        native_chain_id=native_chain_id,
        native_token=native,
        rpc_url=DEFAULT_RPC_URLS[chain_id],
        explorer_url=explorer_url,
    )


EVM_CHAINS: List[ChainInfo] = [
    _chain("ethereum", "Ethereum", 1, _native("ethereum", "ETH", "Ether", "ethereum"),
           "https://etherscan.io"),
    _chain("base", "Base", 8453, _native("base", "ETH", "Ether", "ethereum"),
           "https://basescan.org"),
    _chain("arbitrum", "Arbitrum One", 42161, _native("arbitrum", "ETH", "Ether", "ethereum"),
           "https://arbiscan.io"),
    _chain("polygon", "Polygon", 137, _native("polygon", "POL", "POL", "matic-network"),
           "https://polygonscan.com"),
    _chain("optimism", "Optimism", 10, _native("optimism", "ETH", "Ether", "ethereum"),
           "https://optimistic.etherscan.io"),
    _chain("avalanche", "Avalanche C-Chain", 43114,
           _native("avalanche", "AVAX", "Avalanche", "avalanche-2"), "https://snowtrace.io"),
    _chain("bsc", "BNB Smart Chain", 56, _native("bsc", "BNB", "BNB", "binancecoin"),
           "https://bscscan.com"),
]

# 链ID -> EVM数字链ID
CHAIN_ID_MAP: Dict[str, int] = {c.id: int(c.native_chain_id) for c in EVM_CHAINS}


def _token(chain_id: str, symbol: str, name: str, decimals: int, address: str, cg: str) -> TokenInfo:
    return TokenInfo(
        symbol=symbol,
        name=name,
        decimals=decimals,
        address=address,
        chain_id=chain_id,
        coingecko_id=cg,
    )


KNOWN_TOKENS: Dict[str, Dict[str, TokenInfo]] = {
    "ethereum": {
        "USDC": _token("ethereum", "USDC", "USD Coin", 6, "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", "usd-coin"),
        "USDT": _token("ethereum", "USDT", "Tether USD", 6, "0xdAC17F958D2ee523a2206206994597C13D831ec7", "tether"),
        "WETH": _token("ethereum", "WETH", "Wrapped Ether", 18, "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", "weth"),
        "DAI": _token("ethereum", "DAI", "Dai", 18, "0x6B175474E89094C44Da98b954EedeAC495271d0F", "dai"),
        "WBTC": _token("ethereum", "WBTC", "Wrapped BTC", 8, "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599", "wrapped-bitcoin"),
        "LINK": _token("ethereum", "LINK", "Chainlink", 18, "0x514910771AF9Ca656af840dff83E8264EcF986CA", "chainlink"),
        "UNI": _token("ethereum", "UNI", "Uniswap", 18, "0x1f9840a85d5aF5bf1D1762F925BDADdC4201F984", "uniswap"),
    },
    "base": {
        "USDC": _token("base", "USDC", "USD Coin", 6, "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", "usd-coin"),
        "WETH": _token("base", "WETH", "Wrapped Ether", 18, "0x4200000000000000000000000000000000000006", "weth"),
        "DAI": _token("base", "DAI", "Dai", 18, "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb", "dai"),
    },
    "arbitrum": {
        "USDC": _token("arbitrum", "USDC", "USD Coin", 6, "0xaf88d065e77c8cC2239327C5EDb3A432268e5831", "usd-coin"),
        "USDT": _token("arbitrum", "USDT", "Tether USD", 6, "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9", "tether"),
        "WETH": _token("arbitrum", "WETH", "Wrapped Ether", 18, "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1", "weth"),
        "ARB": _token("arbitrum", "ARB", "Arbitrum", 18, "0x912CE59144191C1204E64559FE8253a0e49E6548", "arbitrum"),
    },
    "polygon": {
        "USDC": _token("polygon", "USDC", "USD Coin", 6, "0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359", "usd-coin"),
        "USDT": _token("polygon", "USDT", "Tether USD", 6, "0xc2132D05D31c914a87C6611C10748AEb04B58e8F", "tether"),
        "WMATIC": _token("polygon", "WMATIC", "Wrapped Matic", 18, "0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270", "wmatic"),
    },
}
