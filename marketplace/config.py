import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Database
    POSTGRES_CONNECTION_STRING: str = os.getenv("POSTGRES_CONNECTION_STRING", "")

    # API
    API_TOKEN: str = os.getenv("API_TOKEN", "")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Services
    PRODUCT_CATALOG_URL: str = os.getenv("PRODUCT_CATALOG_URL", "http://product-catalog:8000")
    USER_DIRECTORY_URL: str = os.getenv("USER_DIRECTORY_URL", "http://user-directory:8000")
    HTTP_TIMEOUT: float = float(os.getenv("HTTP_TIMEOUT", "10.0"))

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "kafka:9092")
    ORDER_EVENTS_TOPIC: str = os.getenv("ORDER_EVENTS_TOPIC", "marketplace.order.events")

    # Outbox worker
    OUTBOX_BATCH_SIZE: int = int(os.getenv("OUTBOX_BATCH_SIZE", "20"))
    OUTBOX_POLL_INTERVAL: float = float(os.getenv("OUTBOX_POLL_INTERVAL", "3"))

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for the application"""
        url = self.POSTGRES_CONNECTION_STRING
        for prefix in ("postgres://", "postgresql://"):
            if url.startswith(prefix):
                return "postgresql+asyncpg://" + url[len(prefix):]
        return url

    @property
    def SYNC_DATABASE_URL(self) -> str:
        """Sync URL for Alembic"""
        url = self.POSTGRES_CONNECTION_STRING
        for prefix in ("postgres://", "postgresql+asyncpg://"):
            if url.startswith(prefix):
                return "postgresql://" + url[len(prefix):]
        return url


settings = Settings()
