"""
配置管理
"""
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.utils.exceptions import ConfigurationError


# 未配置时使用的公共RPC端点（Cosmos链为REST/LCD端点）
DEFAULT_RPC_URLS: Dict[str, str] = {
    "ethereum": "https://eth.llamarpc.com",
    "base": "https://mainnet.base.org",
    "arbitrum": "https://arb1.arbitrum.io/rpc",
    "polygon": "https://polygon-rpc.com",
    "optimism": "https://mainnet.optimism.io",
    "avalanche": "https://api.avax.network/ext/bc/C/rpc",
    "bsc": "https://bsc-dataseed.binance.org",
    "solana-mainnet": "https://api.mainnet-beta.solana.com",
    "osmosis-1": "https://lcd.osmosis.zone",
    "cosmoshub-4": "https://rest.cosmos.directory/cosmoshub",
}


class Settings(BaseSettings):
    """全局配置"""

    # 服务器配置
    server_name: str = Field(default="defi-mcp", alias="MCP_SERVER_NAME")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # RPC端点（按链ID）
    rpc_ethereum: Optional[str] = Field(default=None, alias="RPC_ETHEREUM")
    rpc_base: Optional[str] = Field(default=None, alias="RPC_BASE")
    rpc_arbitrum: Optional[str] = Field(default=None, alias="RPC_ARBITRUM")
    rpc_polygon: Optional[str] = Field(default=None, alias="RPC_POLYGON")
    rpc_optimism: Optional[str] = Field(default=None, alias="RPC_OPTIMISM")
    rpc_avalanche: Optional[str] = Field(default=None, alias="RPC_AVALANCHE")
    rpc_bsc: Optional[str] = Field(default=None, alias="RPC_BSC")
    rpc_solana: Optional[str] = Field(default=None, alias="RPC_SOLANA")
    rpc_osmosis: Optional[str] = Field(default=None, alias="RPC_OSMOSIS")
    rpc_cosmoshub: Optional[str] = Field(default=None, alias="RPC_COSMOSHUB")

    # API密钥
    coingecko_api_key: Optional[str] = Field(default=None, alias="COINGECKO_API_KEY")
    coingecko_api_type: str = Field(default="demo", alias="COINGECKO_API_TYPE")  # "demo" or "pro"
    jupiter_api_key: Optional[str] = Field(default=None, alias="JUPITER_API_KEY")
    lifi_api_key: Optional[str] = Field(default=None, alias="LIFI_API_KEY")

    # 交易参数
    default_slippage_bps: int = Field(default=50, ge=0, le=10_000, alias="DEFAULT_SLIPPAGE_BPS")

    # 超时配置
    default_request_timeout: float = Field(
        default=10.0, gt=0, alias="DEFAULT_REQUEST_TIMEOUT"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


class AppConfig(BaseModel):
    """插件共享的只读运行配置"""

    model_config = ConfigDict(frozen=True)

    rpc_urls: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_RPC_URLS))
    api_keys: Dict[str, Optional[str]] = Field(default_factory=dict)
    default_slippage_bps: int = Field(default=50, ge=0, le=10_000)
    request_timeout: float = Field(default=10.0, gt=0)

    def get_rpc_url(self, chain_id: str, fallback: Optional[str] = None) -> Optional[str]:
        """获取链的RPC端点，未配置时返回fallback"""
        return self.rpc_urls.get(chain_id) or fallback

    def get_api_key(self, provider: str) -> Optional[str]:
        return self.api_keys.get(provider.lower())


class ConfigManager:
    """配置管理器"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        初始化配置管理器

        Args:
            config_dir: 配置文件目录，默认为项目根目录下的config/
        """
        if config_dir is None:
            project_root = Path(__file__).parent.parent.parent
            config_dir = project_root / "config"

        self.config_dir = config_dir
        self._tools: Optional[Dict] = None
        self._settings: Optional[Settings] = None

    @property
    def settings(self) -> Settings:
        """获取全局设置"""
        if self._settings is None:
            self._settings = Settings()
        return self._settings

    @property
    def tools(self) -> Dict[str, Any]:
        """
        获取 MCP 工具开关配置。

        配置文件位于 config/tools.yaml，格式示例：

        defi_get_balances:
          enabled: true
        """
        if self._tools is None:
            try:
                self._tools = self._load_yaml("tools.yaml")
            except ConfigurationError:
                # 如果未提供 tools.yaml，则默认所有工具启用
                self._tools = {}
        return self._tools

    def is_tool_enabled(self, tool_name: str) -> bool:
        """
        判断指定 MCP 工具是否启用。

        如果 tools.yaml 不存在，或未配置指定工具，则默认启用。
        """
        tool_cfg = self.tools.get(tool_name) or {}
        return bool(tool_cfg.get("enabled", True))

    def _load_yaml(self, filename: str) -> Dict[str, Any]:
        """加载YAML配置文件"""
        filepath = self.config_dir / filename
        if not filepath.exists():
            raise ConfigurationError(f"Configuration file not found: {filepath}")

        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse {filename}: {e}")

    def get_rpc_overrides(self) -> Dict[str, Optional[str]]:
        """环境变量中配置的RPC端点（按链ID）"""
        s = self.settings
        return {
            "ethereum": s.rpc_ethereum,
            "base": s.rpc_base,
            "arbitrum": s.rpc_arbitrum,
            "polygon": s.rpc_polygon,
            "optimism": s.rpc_optimism,
            "avalanche": s.rpc_avalanche,
            "bsc": s.rpc_bsc,
            "solana-mainnet": s.rpc_solana,
            "osmosis-1": s.rpc_osmosis,
            "cosmoshub-4": s.rpc_cosmoshub,
        }

    def get_api_key(self, provider: str) -> Optional[str]:
        """
        获取API密钥

        Args:
            provider: 提供者名称，如 coingecko

        Returns:
            API密钥
        """
        key_mapping = {
            "coingecko": self.settings.coingecko_api_key,
            "jupiter": self.settings.jupiter_api_key,
            "lifi": self.settings.lifi_api_key,
        }
        return key_mapping.get(provider.lower())

    def build_app_config(self, overrides: Optional[Mapping[str, str]] = None) -> AppConfig:
        """
        构建只读的AppConfig

        Args:
            overrides: 额外的RPC端点覆盖（测试用）

        Returns:
            AppConfig实例
        """
        rpc_urls = dict(DEFAULT_RPC_URLS)
        for chain_id, url in self.get_rpc_overrides().items():
            if url:
                rpc_urls[chain_id] = url
        if overrides:
            rpc_urls.update(overrides)

        return AppConfig(
            rpc_urls=rpc_urls,
            api_keys={
                provider: self.get_api_key(provider)
                for provider in ("coingecko", "jupiter", "lifi")
            },
            default_slippage_bps=self.settings.default_slippage_bps,
            request_timeout=self.settings.default_request_timeout,
        )


# 全局配置实例
config = ConfigManager()
