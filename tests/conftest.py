"""
Pytest fixtures for the aged inventory tests.

Every test gets a fresh in-memory SQLite database. The product catalog DB and
Zoho are never contacted: the catalog is replaced by FakeCatalogSource and
HTTP by httpx.MockTransport.
"""

import os

# Settings are read at import time; keep the app away from real backends
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CATALOG_DATABASE_URL"] = ""
os.environ["CATALOG_SYNC_ENABLED"] = "false"
os.environ["ZOHO_REFRESH_TOKEN"] = ""
os.environ["ZOHO_CLIENT_ID"] = ""
os.environ["ZOHO_CLIENT_SECRET"] = ""

from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from aged_inventory.core.database import get_db, init_db
from aged_inventory.schemas.aged_inventory import RawInventoryRow
from aged_inventory.services.catalog_sync import CatalogImageSynchronizer, get_catalog_synchronizer


# =============================================================================
# FAKES
# =============================================================================

class FakeCatalogSource:
    """Stands in for the product catalog DB"""

    def __init__(self, pairs: Optional[List[Tuple[str, str]]] = None, refresh_token: Optional[str] = None,
                 fail: bool = False):
        self.pairs = pairs or []
        self.refresh_token = refresh_token
        self.fail = fail
        self.fetch_calls = 0

    def fetch_style_images(self):
        self.fetch_calls += 1
        if self.fail:
            raise OperationalError("SELECT base_style, image_url FROM products", {}, Exception("connection refused"))
        return list(self.pairs)

    def fetch_latest_refresh_token(self):
        if self.fail:
            raise OperationalError("SELECT refresh_token FROM zoho_tokens", {}, Exception("connection refused"))
        return self.refresh_token

    def describe(self):
        return {
            "total_products": len(self.pairs),
            "with_image_url": len(self.pairs),
            "columns": ["id", "style_id", "base_style", "name", "image_url"],
            "sample": [{"base_style": s, "image_url": u} for s, u in self.pairs[:5]],
        }


def make_row(**fields) -> RawInventoryRow:
    """RawInventoryRow from upstream header names, e.g. make_row(Style="A", Size="M")"""
    return RawInventoryRow.model_validate(fields)


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# APP FIXTURES
# =============================================================================

@pytest.fixture
def app(session_factory):
    from main import app as fastapi_app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_catalog_synchronizer] = lambda: CatalogImageSynchronizer(None, session_factory)
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> TestClient:
    # Not used as a context manager, so the lifespan (table init, sync loop) does not run
    return TestClient(app)


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

LOW_VALUE_HEADER = (
    "Style,Color,Commodity,Size,Remaining_Stock,Remaining_Asset_Value,Current_Stock,"
    "Committed_Stock,Inventory_Age,Age_Bracket,Trsc_Date,PO_No,Unit_Cost,CAD_Link"
)


@pytest.fixture
def low_value_csv() -> bytes:
    """Two styles, three colors, one row without a style"""
    csv_content = "\n".join([
        LOW_VALUE_HEADER,
        "ABC123,Black,Tops,M,10,50.00,12,2,400,1 year,2023-01-10,PO-1,5.00,",
        "ABC123,Black,Tops,L,5,25.00,5,0,430,1 year+,2022-12-01,PO-2,5.50,http://cad/abc.jpg",
        "ABC123,Red,Tops,S,\"1,200\",\"3,000.50\",0,0,100,Under 1 year,2024-02-02,,2.00,",
        "XYZ9,Navy,Pants,XL,3,30.00,3,0,1500,More than 4 years,2020-05-05,PO-9,10.00,",
        ",Blue,Tops,M,99,99.00,0,0,999,Ignored,,,1.00,",
    ])
    return csv_content.encode("utf-8")


@pytest.fixture
def catalog_csv() -> bytes:
    csv_content = "\n".join([
        "Style Name,Style Image",
        "XYZ9,http://img/xyz9.jpg",
        "Grand Total,http://img/total.jpg",
        "NOIMG,",
        "ABC123,http://img/abc123.jpg",
    ])
    return csv_content.encode("utf-8")
