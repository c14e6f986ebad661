"""
Aave V3 存借款持仓扫描器
"""
from typing import List, Optional

from src.core.models import PositionAsset, PositionType, ProtocolPosition
from src.core.registry import PluginContext
from src.core.scanner_types import ProtocolScanner
from src.plugins.lending.addresses import get_supported_lending_chains
from src.plugins.lending.reader import AaveV3Reader


class AaveV3Scanner(ProtocolScanner):
    """存款与借款分别作为两条持仓返回"""

    protocol_name = "Aave V3"

    def __init__(self, reader: Optional[AaveV3Reader] = None):
        self.reader = reader or AaveV3Reader()
        self.supported_chains = get_supported_lending_chains()

    async def scan_positions(
        self, chain_id: str, wallet: str, context: PluginContext
    ) -> List[ProtocolPosition]:
        chain = context.get_chain_adapter_for_chain(chain_id).require_chain(chain_id)
        user_reserves = await self.reader.get_user_reserves(chain_id, wallet, context)

        supplied = [
            PositionAsset(
                symbol=r.symbol,
                address=r.address,
                balance=f"{r.supplied:.6f}",
                balance_usd=r.supplied_usd,
                apy=r.supply_apy,
            )
            for r in user_reserves
            if r.supplied > 0
        ]
        borrowed = [
            PositionAsset(
                symbol=r.symbol,
                address=r.address,
                balance=f"{r.borrowed:.6f}",
                balance_usd=r.borrowed_usd,
                apy=r.borrow_apy,
                is_debt=True,
            )
            for r in user_reserves
            if r.borrowed > 0
        ]

        positions = []
        if supplied:
            positions.append(
                ProtocolPosition(
                    protocol=self.protocol_name,
                    type=PositionType.LENDING_SUPPLY,
                    chain_id=chain_id,
                    chain_name=chain.name,
                    assets=supplied,
                )
            )
        if borrowed:
            positions.append(
                ProtocolPosition(
                    protocol=self.protocol_name,
                    type=PositionType.LENDING_BORROW,
                    chain_id=chain_id,
                    chain_name=chain.name,
                    assets=borrowed,
                )
            )
        return positions
