"""
Configuration schemas using Pydantic

定義 Hub / Neynar / HTTP / Storage / Analytics 設定。API key 與 DSN 不寫進 YAML，只記錄環境變數名稱。
"""

from typing import Optional
from pydantic import BaseModel, Field
import os


class HubConfig(BaseModel):
    """Farcaster Hub HTTP API 設定"""
    base_url: str = Field(default="https://hub-api.neynar.com/v1", description="Hub API base URL")
    api_key_env: str = Field(default="NEYNAR_API_KEY", description="API key 環境變數名稱")
    page_size: int = Field(default=50, ge=1, description="castsByFid pageSize")


class NeynarConfig(BaseModel):
    """Neynar v2 API 設定 (user profile / user casts)"""
    base_url: str = Field(default="https://api.neynar.com/v2/farcaster", description="Neynar v2 base URL")
    api_key_env: str = Field(default="NEYNAR_API_KEY", description="API key 環境變數名稱")
    enabled: bool = Field(default=True, description="live summary 是否查詢 user profile")


class HTTPConfig(BaseModel):
    """HTTP client 參數 (retry 屬於 client，不屬於 engine)"""
    timeout_seconds: float = Field(default=20.0, gt=0, description="Request timeout")
    max_retries: int = Field(default=3, ge=0, description="urllib3 Retry total")
    backoff_factor: float = Field(default=0.5, ge=0, description="urllib3 Retry backoff_factor")


class StorageConfig(BaseModel):
    """Postgres 設定"""
    postgres_dsn_env: str = Field(default="DATABASE_URL", description="Postgres DSN 環境變數名稱")
    auto_init_schema: bool = Field(default=False, description="連線時是否建立 accounts/posts 表")
    naive_timezone: str = Field(default="UTC", description="DB naive timestamp 的時區")


class AnalyticsConfig(BaseModel):
    """聚合參數"""
    default_window_days: int = Field(default=7, ge=1, description="Activity 預設天數")
    max_window_days: int = Field(default=30, ge=1, description="Activity 最大天數")
    default_top_limit: int = Field(default=5, ge=1, description="Top posts 預設數量")
    highlight_window_days: int = Field(default=30, ge=1, description="Summary highlights 的天數")


class CastAnalyticsConfig(BaseModel):
    """完整設定 schema"""
    hub: HubConfig = Field(default_factory=HubConfig)
    neynar: NeynarConfig = Field(default_factory=NeynarConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)

    @classmethod
    def from_yaml(cls, yaml_path: str) -> "CastAnalyticsConfig":
        """從 YAML 檔案載入設定"""
        import yaml
        with open(yaml_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return cls(**(data or {}))

    def get_postgres_dsn(self) -> Optional[str]:
        """取得 Postgres DSN (從環境變數)"""
        return os.environ.get(self.storage.postgres_dsn_env) or None

    def get_hub_api_key(self) -> Optional[str]:
        """取得 Hub API key (從環境變數)"""
        return os.environ.get(self.hub.api_key_env) or None

    def get_neynar_api_key(self) -> Optional[str]:
        """取得 Neynar API key (從環境變數)"""
        return os.environ.get(self.neynar.api_key_env) or None
