"""
Compound V3 存借款持仓扫描器
"""
import asyncio
from typing import List, Optional

from src.core.models import PositionAsset, PositionType, ProtocolPosition
from src.core.registry import PluginContext
from src.core.scanner_types import ProtocolScanner
from src.data_sources.coingecko import CoinGeckoClient
from src.plugins.compound_v3 import CompoundV3Reader, get_supported_compound_chains
from src.plugins.wallet_intelligence.scanners.pricing import fetch_usd_prices


class CompoundV3Scanner(ProtocolScanner):
    """基础代币的存款与借款分别作为两条持仓返回，资产地址为Comet合约"""

    protocol_name = "Compound V3"

    def __init__(
        self, reader: Optional[CompoundV3Reader] = None, prices: Optional[CoinGeckoClient] = None
    ):
        self.reader = reader or CompoundV3Reader()
        self.prices = prices
        self.supported_chains = get_supported_compound_chains()

    async def scan_positions(
        self, chain_id: str, wallet: str, context: PluginContext
    ) -> List[ProtocolPosition]:
        chain = context.get_chain_adapter_for_chain(chain_id).require_chain(chain_id)
        account = await self.reader.get_account(chain_id, wallet, context)
        if account.supplied == 0 and account.borrowed == 0:
            return []

        market_config = self.reader.get_market_config(chain_id)
        market, prices = await asyncio.gather(
            self.reader.get_market(chain_id, context),
            fetch_usd_prices(self.prices, [market_config.base_token_coingecko_id]),
        )
        price = prices.get(market_config.base_token_coingecko_id, 0.0)

        positions = []
        if account.supplied > 0:
            positions.append(
                ProtocolPosition(
                    protocol=self.protocol_name,
                    type=PositionType.LENDING_SUPPLY,
                    chain_id=chain_id,
                    chain_name=chain.name,
                    assets=[
                        PositionAsset(
                            symbol=market.base_token,
                            address=market.comet,
                            balance=f"{account.supplied:.6f}",
                            balance_usd=account.supplied * price,
                            apy=market.supply_apr,
                        )
                    ],
                )
            )
        if account.borrowed > 0:
            positions.append(
                ProtocolPosition(
                    protocol=self.protocol_name,
                    type=PositionType.LENDING_BORROW,
                    chain_id=chain_id,
                    chain_name=chain.name,
                    assets=[
                        PositionAsset(
                            symbol=market.base_token,
                            address=market.comet,
                            balance=f"{account.borrowed:.6f}",
                            balance_usd=account.borrowed * price,
                            apy=market.borrow_apr,
                            is_debt=True,
                        )
                    ],
                )
            )
        return positions
