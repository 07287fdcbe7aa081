"""Shared test fixtures for the Single Safety admin API."""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from single_safety.core.config import Settings
from single_safety.core.db import dispose_db, init_db
from single_safety.core.time_utils import now_utc
from single_safety.main import create_app

NOW = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)

# Seoul City Hall in UTM-K (EPSG:5179)
CITY_HALL_X = 953932.0
CITY_HALL_Y = 1952041.0

SEOUL_ROW = {
    "sido_nm": "서울특별시",
    "sgg_nm": "중구",
    "adm_nm": "명동",
    "road_nm": "세종대로",
    "road_nm_main_no": "110",
    "road_nm_sub_no": "0",
    "leg_nm": "태평로1가",
    "jibun_main_no": "31",
    "jibun_sub_no": "0",
    "addr_type": "3",
    "x": str(CITY_HALL_X),
    "y": str(CITY_HALL_Y),
}


class FakeSGIS:
    """In-process stand-in for the SGIS OpenAPI, served through httpx.MockTransport.

    - auth issues "tok-1", "tok-2", ... expiring `token_lifetime` after `now`
    - geocode answers with `rows`, unless `geocode_statuses` holds status codes
      to return first (consumed one per request)
    """

    def __init__(self, now: datetime) -> None:
        self.now = now
        self.token_lifetime = timedelta(hours=4)
        self.auth_delay = 0.0
        self.auth_status = 200
        self.auth_payload = None

        self.rows = [dict(SEOUL_ROW)]
        self.geocode_statuses: list[int] = []
        self.geocode_body = None

        self.auth_calls = 0
        self.geocode_calls = 0
        self.seen_tokens: list[str] = []
        self.seen_params: list[dict] = []

    def set_token_expiry(self, expires_at: datetime) -> None:
        self.token_lifetime = expires_at - self.now

    async def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/auth/authentication.json"):
            self.auth_calls += 1
            if self.auth_delay:
                await asyncio.sleep(self.auth_delay)
            if self.auth_status != 200:
                return httpx.Response(self.auth_status, json={"errMsg": "denied"})
            if self.auth_payload is not None:
                return httpx.Response(200, json=self.auth_payload)
            expires_at = self.now + self.token_lifetime
            return httpx.Response(
                200,
                json={
                    "errCd": 0,
                    "errMsg": "Success",
                    "result": {
                        "accessToken": f"tok-{self.auth_calls}",
                        "accessTimeout": str(int(expires_at.timestamp())),
                    },
                },
            )

        if path.endswith("/addr/geocode.json"):
            self.geocode_calls += 1
            params = dict(request.url.params)
            self.seen_params.append(params)
            self.seen_tokens.append(params.get("accessToken"))
            if self.geocode_statuses:
                return httpx.Response(self.geocode_statuses.pop(0), json={"errMsg": "error"})
            if self.geocode_body is not None:
                return httpx.Response(200, json=self.geocode_body)
            limit = int(params.get("resultcount", "1"))
            return httpx.Response(
                200,
                json={"errCd": 0, "errMsg": "Success", "result": {"totalcount": len(self.rows), "resultdata": self.rows[:limit]}},
            )

        return httpx.Response(404)


@pytest.fixture
def fake_sgis():
    return FakeSGIS(now=now_utc())


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite://",
        log_level="WARNING",
        sgis_consumer_key="test-key",
        sgis_consumer_secret="test-secret",
        sgis_base_url="https://sgis.test/OpenAPI3",
    )


@pytest.fixture
def session():
    """A fresh in-memory database session."""
    engine = init_db("sqlite://")
    with Session(engine) as s:
        yield s
    dispose_db()


@pytest.fixture
def client(test_settings, fake_sgis):
    """API client with lifespan running against in-memory SQLite and FakeSGIS."""
    app = create_app(test_settings, sgis_transport=httpx.MockTransport(fake_sgis.handler))
    with TestClient(app) as c:
        yield c


@pytest.fixture
def catalog(client):
    """The package SKU plus one add-on product."""
    package = client.post(
        "/products",
        json={"id": "single_package", "name": "Single Package", "price": 100000, "price_description": "1 set"},
    ).json()
    sensor = client.post("/products", json={"name": "Door Sensor", "price": 5000}).json()
    return {"package": package, "sensor": sensor}
