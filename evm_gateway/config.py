from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Read the keystore passphrase from a secrets file when it is not set directly."""

        super().model_post_init(__context)

        if not self.wallet_passphrase and self.wallet_passphrase_file:
            path = Path(self.wallet_passphrase_file)
            if path.is_file():
                object.__setattr__(self, "wallet_passphrase", path.read_text(encoding="utf-8").strip())

    # Process Settings
    log_level: str = Field(default="INFO", description="Logging level")
    conf_dir: Path = Field(default=BASE_DIR / "conf", description="Directory holding network and token configuration")
    default_network: str = Field(default="pulsechain", description="Network used when a request does not name one")

    # Wallets
    wallets_dir: Path = Field(default=BASE_DIR / "wallets", description="Directory of encrypted keystore files")
    wallet_passphrase: str = Field(
        default="",
        description="Passphrase used to decrypt keystore files",
        validation_alias=AliasChoices("wallet_passphrase", "GATEWAY_PASSPHRASE", "WALLET_PASSPHRASE"),
    )
    wallet_passphrase_file: str = Field(
        default="",
        description="File containing the keystore passphrase (e.g. a mounted secret)",
    )
    hardware_wallets_file: Path = Field(
        default=BASE_DIR / "wallets" / "hardware-wallets.json",
        description="JSON file listing hardware-backed addresses",
    )
    external_signer_url: str = Field(
        default="",
        description="JSON-RPC endpoint of the external signer bridge fronting the hardware device",
    )

    # Timeouts
    rpc_timeout_seconds: float = Field(default=10.0, gt=0, description="Upper bound for a single node RPC call")
    device_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Upper bound for a hardware device signing request, including user confirmation",
    )
    status_timeout_seconds: float = Field(default=5.0, gt=0, description="Block number read timeout for status")

    # Fee Estimation
    fee_cache_ttl_seconds: float = Field(default=10.0, ge=1, le=120, description="Fee estimate cache TTL in seconds")

    # Submission
    confirmation_poll_interval_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Delay between receipt polls while waiting for inclusion",
    )
    nonce_block_tag: Literal["pending", "latest"] = Field(
        default="pending",
        description="Block tag used when fetching the next nonce",
    )

    # Rate Limiting
    max_concurrent_requests: int = Field(default=10, ge=1, description="Max concurrent node reads per operation")

    @property
    def networks_dir(self) -> Path:
        return self.conf_dir / "networks"

    @property
    def tokens_dir(self) -> Path:
        return self.conf_dir / "tokens"

    @property
    def has_external_signer(self) -> bool:
        return bool(self.external_signer_url)


# Global settings instance
settings = Settings()
