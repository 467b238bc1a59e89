from pydantic_settings import BaseSettings, SettingsConfigDict

from stowage.storage.urls import UrlConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_prefix="STOWAGE_", extra="ignore")

    app_url: str = ""

    storage_driver: str = "local"
    storage_local_dir: str = "./storage"
    storage_public_url: str = ""

    storage_endpoint: str = ""
    storage_region: str = "auto"
    storage_force_path_style: bool = False
    storage_access_key_id: str = ""
    storage_secret_access_key: str = ""
    storage_public_bucket: str = ""
    storage_private_bucket: str = ""
    storage_timeout: float = 30.0  # seconds, connect and read

    cdn_url: str = ""
    avatar_url: str = ""

    image_proxy_url: str = "https://wsrv.nl"
    image_proxy_timeout: float = 1.0  # seconds
    fetch_timeout: float = 10.0  # seconds

    upstash_redis_rest_url: str = ""
    upstash_redis_rest_token: str = ""
    redis_url: str = ""
    ratelimit_prefix: str = "stowage"
    ratelimit_fail_open: bool = True

    log_level: str = "INFO"
    log_json: bool = False

    @property
    def using_upstash(self) -> bool:
        return bool(self.upstash_redis_rest_url and self.upstash_redis_rest_token)

    def url_config(self) -> UrlConfig:
        return UrlConfig(
            app_url=self.app_url,
            public_url=self.storage_public_url,
            endpoint=self.storage_endpoint,
            force_path_style=self.storage_force_path_style,
            cdn_url=self.cdn_url,
            avatar_url=self.avatar_url,
        )


settings = Settings()
