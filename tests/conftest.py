from decimal import Decimal

import pytest

from banca import create_app
from banca.db import create_app_engine, create_session_factory, transaction
from banca.models.base import Base
from banca.models.bet import Bet
from banca.repositories.limit_config_repository import LimitConfigRepository
from banca.services.bucket_locks import BucketLocks
from banca.services.exposure_ledger import ExposureLedger


@pytest.fixture
def engine(tmp_path):
    engine = create_app_engine(f"sqlite:///{tmp_path / 'banca.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def ledger():
    return ExposureLedger(locks=BucketLocks(), lock_timeout=5.0)


class Seed:
    def __init__(self, session_factory):
        self._session_factory = session_factory

    def limit(self, modality, prize_tier, limit, lottery="", draw_time="", active=True):
        with transaction(self._session_factory) as session:
            return LimitConfigRepository().upsert_limit(
                session,
                modality=modality,
                prize_tier=prize_tier,
                limit=Decimal(str(limit)),
                lottery=lottery,
                draw_time=draw_time,
                active=active,
            )

    def bet(self, modality, number, position, stake, lottery="", draw_time="", status="pending"):
        with transaction(self._session_factory) as session:
            bet = Bet(
                ticket_id="seed",
                modality=modality,
                number=number,
                position=position,
                division_type="each",
                stake_amount=Decimal(str(stake)),
                lottery=lottery,
                draw_time=draw_time,
                status=status,
            )
            session.add(bet)
            return bet


@pytest.fixture
def seed(session_factory):
    return Seed(session_factory)


@pytest.fixture
def app(tmp_path):
    app = create_app({"TESTING": True, "DATABASE_URL": f"sqlite:///{tmp_path / 'api.db'}"})
    yield app
    app.extensions["engine"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()
