from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["DATABASE_WRITE_URL"] = "sqlite+pysqlite:///:memory:"

from reliefdb.database import Base  # noqa: E402
from reliefdb.apps.accounts import models as account_models  # noqa: E402
from reliefdb.apps.beneficiaries import models as beneficiary_models  # noqa: E402
from reliefdb.apps.calamities import models as calamity_models  # noqa: E402
from reliefdb.apps.distribution import models as distribution_models  # noqa: E402
from reliefdb.apps.events.broker import broker  # noqa: E402
from reliefdb.apps.inventory import models as inventory_models  # noqa: E402


@pytest.fixture()
def db_session():
    engine = create_engine("sqlite+pysqlite:///:memory:")

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(
        bind=engine,
        tables=[
            account_models.User.__table__,
            beneficiary_models.Beneficiary.__table__,
            inventory_models.InventoryItem.__table__,
            inventory_models.InventoryTransaction.__table__,
            calamity_models.Calamity.__table__,
            calamity_models.CalamityItem.__table__,
            distribution_models.Distribution.__table__,
            distribution_models.DistributionLineItem.__table__,
        ],
    )
    TestingSession = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def _clear_event_history():
    broker.clear()
    yield
