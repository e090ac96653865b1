"""
Application configuration using Pydantic Settings.
All configuration values can be overridden via environment variables or .env file.
"""
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Optional


CLUSTER_RPC_URLS = {
    "devnet": "https://api.devnet.solana.com",
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
}


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application identity presented to the wallet
    app_name: str = "now.ink"
    app_uri: str = "https://now.ink"
    app_icon: str = "favicon.ico"
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    log_dir: Path = Path("logs")

    # Backend gateway
    api_base_url: str = "http://localhost:8080/api/v1"

    # Solana
    solana_cluster: str = "devnet"
    solana_rpc_url: Optional[str] = None
    platform_wallet_path: Path = Path("wallets/platform-wallet.json")

    # Decentralized storage (Pinata / IPFS)
    pinata_jwt: Optional[str] = None
    pinata_api_url: str = "https://api.pinata.cloud"
    pinata_gateway_url: str = "https://gateway.pinata.cloud/ipfs"
    storage_timeout_seconds: int = 60
    storage_retry_count: int = 3
    storage_retry_base_delay: float = 1.0

    # Redis (platform signer sequencing guard)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None
    mint_sequencing_enabled: bool = False
    mint_lock_ttl_seconds: int = 120
    mint_lock_wait_seconds: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def get_rpc_url(self, network: Optional[str] = None) -> str:
        """Get the RPC endpoint for a cluster, honouring an explicit override."""
        network = network or self.solana_cluster
        if self.solana_rpc_url:
            return self.solana_rpc_url
        if network not in CLUSTER_RPC_URLS:
            raise ValueError(f"Unknown network: {network}. Available networks: {list(CLUSTER_RPC_URLS.keys())}")
        return CLUSTER_RPC_URLS[network]


# Global settings instance (lazily initialized)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
