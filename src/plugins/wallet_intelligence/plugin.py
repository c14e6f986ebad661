"""
钱包情报插件

扫描器 × 链 并发扫描，单个分支失败只丢弃该分支。
"""
from typing import Any, Dict, List

from src.core.models import ProtocolPosition, ToolResult, WalletScanInput
from src.core.plugin import BasePlugin, ToolDefinition
from src.core.registry import PluginContext
from src.core.yield_types import gather_isolated
from src.utils.amounts import format_usd


class WalletIntelligencePlugin(BasePlugin):
    """跨协议、跨链的钱包持仓扫描"""

    name = "wallet-intelligence"
    description = "Wallet scanning across DeFi protocols and chains"
    version = "1.0.0"

    def get_tools(self) -> List[ToolDefinition]:
        return [
            ToolDefinition(
                name="defi_wallet_scan",
                description=(
                    "Scan a wallet address for DeFi positions across all supported protocols and "
                    "chains: native balances, known ERC-20 holdings, Aave V3 and Compound V3 "
                    "supply/borrow positions and Polymarket positions, with USD totals per "
                    "protocol and chain. "
                    "Chains or protocols that fail to respond are skipped."
                ),
                input_model=WalletScanInput,
                handler=self._scan,
            )
        ]

    async def _scan(self, params: WalletScanInput, context: PluginContext) -> ToolResult:
        chains = self.get_chains_for_address(params.address, context)
        if params.chain_ids:
            wanted = set(params.chain_ids)
            chains = [c for c in chains if c.id in wanted]

        scanners = context.get_scanners()
        if params.protocols:
            wanted_protocols = {p.lower() for p in params.protocols}
            scanners = [s for s in scanners if s.protocol_name.lower() in wanted_protocols]

        coros, labels = [], []
        for scanner in scanners:
            for chain in chains:
                if scanner.supports_chain(chain.id):
                    coros.append(scanner.scan_positions(chain.id, params.address, context))
                    labels.append(f"{scanner.protocol_name}@{chain.id}")

        batches = await gather_isolated(coros, labels=labels, event="chain_scan_failed")
        positions = [position for batch in batches for position in batch]

        return self.json_result(
            {
                "address": params.address,
                "total_value_usd": format_usd(sum(p.total_value_usd for p in positions)),
                "protocols_scanned": [s.protocol_name for s in scanners],
                "chains_scanned": [c.id for c in chains],
                "summary": self._summarize(positions),
                "positions": positions,
            }
        )

    @staticmethod
    def _summarize(positions: List[ProtocolPosition]) -> Dict[str, Any]:
        by_protocol: Dict[str, Dict[str, Any]] = {}
        by_chain: Dict[str, Dict[str, Any]] = {}
        for p in positions:
            proto = by_protocol.setdefault(p.protocol, {"total_usd": 0.0, "position_count": 0})
            proto["total_usd"] += p.total_value_usd
            proto["position_count"] += 1

            chain = by_chain.setdefault(
                p.chain_id, {"name": p.chain_name, "total_usd": 0.0, "position_count": 0}
            )
            chain["total_usd"] += p.total_value_usd
            chain["position_count"] += 1

        for entry in (*by_protocol.values(), *by_chain.values()):
            entry["total_usd"] = format_usd(entry["total_usd"])
        return {"by_protocol": by_protocol, "by_chain": by_chain}
