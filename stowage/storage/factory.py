import logging

from stowage.settings import Settings, settings
from stowage.storage.base import StorageBackend, StorageDriver
from stowage.storage.content import ContentResolver
from stowage.storage.store import ObjectStore

logger = logging.getLogger(__name__)


def get_backend(config: Settings | None = None) -> StorageBackend:
    config = config or settings
    driver = StorageDriver.from_setting(config.storage_driver)
    urls = config.url_config()

    if driver == StorageDriver.LOCAL:
        from stowage.storage.local import LocalStorage

        logger.info("Using storage driver: local dir=%s", config.storage_local_dir)
        return LocalStorage(config.storage_local_dir, urls)

    from stowage.storage.s3 import S3Storage

    logger.info("Using storage driver: remote endpoint=%s", config.storage_endpoint or "<unset>")
    return S3Storage(
        urls=urls,
        public_bucket=config.storage_public_bucket,
        private_bucket=config.storage_private_bucket,
        region=config.storage_region,
        access_key_id=config.storage_access_key_id,
        secret_access_key=config.storage_secret_access_key,
        timeout=config.storage_timeout,
    )


def get_storage(config: Settings | None = None) -> ObjectStore:
    config = config or settings
    resolver = ContentResolver(
        proxy_url=config.image_proxy_url,
        proxy_timeout=config.image_proxy_timeout,
        fetch_timeout=config.fetch_timeout,
    )
    return ObjectStore(get_backend(config), resolver, config.url_config())
