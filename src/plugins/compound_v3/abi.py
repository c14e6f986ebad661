"""
Comet合约最小ABI片段
"""
from typing import Any, Dict, List, Optional, Tuple


def _view(name: str, output: str, arg: Optional[Tuple[str, str]] = None) -> Dict[str, Any]:
    inputs = [{"name": arg[0], "type": arg[1]}] if arg else []
    return {
        "name": name,
        "type": "function",
        "stateMutability": "view",
        "inputs": inputs,
        "outputs": [{"name": "", "type": output}],
    }


COMET_ABI: List[Dict[str, Any]] = [
    _view("balanceOf", "uint256", ("account", "address")),
    _view("borrowBalanceOf", "uint256", ("account", "address")),
    _view("getUtilization", "uint256"),
    _view("getSupplyRate", "uint64", ("utilization", "uint256")),
    _view("getBorrowRate", "uint64", ("utilization", "uint256")),
    _view("totalSupply", "uint256"),
    _view("totalBorrow", "uint256"),
]
