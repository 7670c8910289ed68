from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "STOCKFLOW"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite+pysqlite:///./stockflow.db"
    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True
    TRANSFER_NUMBER_PREFIX: str = "TRF"
    TRANSFER_CONFLICT_MAX_ATTEMPTS: int = 5
    TRANSFER_CONFLICT_BACKOFF_MS: int = 25
    TRANSFERS_LIST_DEFAULT_PAGE_SIZE: int = 50
    TRANSFERS_LIST_MAX_PAGE_SIZE: int = 200
    DEFAULT_WAREHOUSE_CODE: str = "WH-MAIN"
    DEFAULT_WAREHOUSE_NAME: str = "Main Warehouse"
    DEFAULT_SHOP_CODE: str = "SHOP-01"
    DEFAULT_SHOP_NAME: str = "Flagship Shop"
    DEFAULT_PRODUCT_SKU: str = "SKU-0001"
    DEFAULT_PRODUCT_NAME: str = "Sample Product"
    DEFAULT_PRODUCT_PURCHASE_PRICE: str = "12.5000"
    SEED_USERNAME: str = "stockkeeper"
    SEED_EMAIL: str = "stockkeeper@example.com"

settings = Settings()
