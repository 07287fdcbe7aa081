# single_safety/core/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from single_safety.services.pricing import PricingPolicy


@dataclass(frozen=True)
class Settings:
    # Storage
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./data/single_safety.sqlite3")

    # Server
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # SGIS (Statistics Korea geocoding OpenAPI)
    sgis_consumer_key: str = os.getenv("SGIS_CONSUMER_KEY", "")
    sgis_consumer_secret: str = os.getenv("SGIS_CONSUMER_SECRET", "")
    sgis_base_url: str = os.getenv("SGIS_BASE_URL", "https://sgisapi.kostat.go.kr/OpenAPI3")
    sgis_timeout_seconds: float = float(os.getenv("SGIS_TIMEOUT_SECONDS", "10"))
    sgis_token_expiry_buffer_seconds: int = int(os.getenv("SGIS_TOKEN_EXPIRY_BUFFER_SECONDS", "300"))

    # Owner bulk discount
    single_package_product_id: str = os.getenv("SINGLE_PACKAGE_PRODUCT_ID", "single_package")
    owner_discount_rate: str = os.getenv("OWNER_DISCOUNT_RATE", "0.30")
    owner_discount_min_quantity: int = int(os.getenv("OWNER_DISCOUNT_MIN_QUANTITY", "3"))

    @property
    def sgis_auth_url(self) -> str:
        return f"{self.sgis_base_url.rstrip('/')}/auth/authentication.json"

    @property
    def sgis_token_expiry_buffer(self) -> timedelta:
        return timedelta(seconds=self.sgis_token_expiry_buffer_seconds)

    def pricing_policy(self) -> PricingPolicy:
        return PricingPolicy(
            package_product_id=self.single_package_product_id,
            discount_rate=Decimal(self.owner_discount_rate),
            min_package_quantity=self.owner_discount_min_quantity,
        )


def get_settings() -> Settings:
    return Settings()
