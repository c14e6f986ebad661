"""
Aave V3 合约地址（按链）
"""
from typing import Dict, List, NamedTuple


class AaveV3Addresses(NamedTuple):
    pool: str
    pool_addresses_provider: str
    ui_pool_data_provider: str


AAVE_V3_ADDRESSES: Dict[str, AaveV3Addresses] = {
    "ethereum": AaveV3Addresses(
        pool="0x87870Bca3F3fD6335C3F4ce8392D69350B4fA4E2",
        pool_addresses_provider="0x2f39d218133AFaB8F2B819B1066c7E434Ad94E9e",
        ui_pool_data_provider="0x3F78BBD206e4D3c504Eb854232EdA7e47E9Fd8FC",
    ),
    "arbitrum": AaveV3Addresses(
        pool="0x794a61358D6845594F94dc1DB02A252b5b4814aD",
        pool_addresses_provider="0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb",
        ui_pool_data_provider="0x145dE30c929a065582da84Cf96F88460dB9745A7",
    ),
    "polygon": AaveV3Addresses(
        pool="0x794a61358D6845594F94dc1DB02A252b5b4814aD",
        pool_addresses_provider="0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb",
        ui_pool_data_provider="0x68100bD5345eA474D93577127C11F39FF8463e93",
    ),
    "base": AaveV3Addresses(
        pool="0xA238Dd80C259a72e81d7e4664a9801593F98d1c5",
        pool_addresses_provider="0xe20fCBdBfFC4Dd138cE8b2E6FBb6CB49777ad64D",
        ui_pool_data_provider="0x174446a6741300cD2E7C1b1A636Fee99c8F83502",
    ),
    "optimism": AaveV3Addresses(
        pool="0x794a61358D6845594F94dc1DB02A252b5b4814aD",
        pool_addresses_provider="0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb",
        ui_pool_data_provider="0x91c0eA31b49B69Ea18607702c5d9aC360bf3dE7d",
    ),
    "avalanche": AaveV3Addresses(
        pool="0x794a61358D6845594F94dc1DB02A252b5b4814aD",
        pool_addresses_provider="0xa97684ead0e402dC232d5A977953DF7ECBaB3CDb",
        ui_pool_data_provider="0xdBbFaFc45B7E4B5CD4400eda05F0951AEb1f0d24",
    ),
}


def get_supported_lending_chains() -> List[str]:
    return list(AAVE_V3_ADDRESSES)
