"""
Shared fixtures for ledger tests.

Each test gets its own SQLite database file in a temporary directory, a
LedgerGateway that records backoff sleeps instead of sleeping, and a
TestClient whose database and gateway dependencies point at that file.
"""

import os
import shutil
import tempfile
import unittest
from datetime import datetime
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker

from clinic_scheduler.database import Base, build_engine, get_db
from clinic_scheduler.domain.ledger import LedgerGateway, get_gateway
from clinic_scheduler.main import app
from clinic_scheduler.models import Appointment, Client, Payment

SESSION_DATE = datetime(2026, 3, 2, 10, 0)


class FlakyCommitSessionFactory:
    """Session factory whose first `failures` sessions fail to commit"""

    def __init__(self, factory, failures: int):
        self.factory = factory
        self.failures = failures
        self.sessions_opened = 0

    def __call__(self):
        db = self.factory()
        self.sessions_opened += 1
        if self.failures > 0:
            self.failures -= 1

            def commit():
                raise OperationalError("COMMIT", {}, Exception("database is locked"))

            db.commit = commit
        return db


class ConcurrentWriterSessionFactory:
    """
    Session factory that commits a competing update to a client right before
    the first `times` sessions flush, as another front desk would.
    """

    def __init__(self, factory, engine, client_id: int, times: int = 1, sessions_added: int = 5):
        self.factory = factory
        self.engine = engine
        self.client_id = client_id
        self.times = times
        self.sessions_added = sessions_added

    def __call__(self):
        db = self.factory()
        if self.times > 0:
            self.times -= 1
            event.listen(db, "before_flush", self._write_concurrently)
        return db

    def _write_concurrently(self, session, flush_context, instances):
        if session.info.get("concurrent_write_done"):
            return
        session.info["concurrent_write_done"] = True
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    "UPDATE clients SET remaining_sessions = remaining_sessions + :n, "
                    "version = version + 1 WHERE id = :id"
                ),
                {"n": self.sessions_added, "id": self.client_id},
            )


class LedgerTestCase(unittest.TestCase):
    """Base test case with an isolated database, gateway and API client"""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.engine = build_engine(f"sqlite:///{os.path.join(self.tmpdir, 'clinic.db')}")
        Base.metadata.create_all(bind=self.engine)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        self.sleeps = []
        self.gateway = self.make_gateway(self.SessionLocal)
        self.db = self.SessionLocal()

        app.dependency_overrides[get_db] = self.override_get_db
        app.dependency_overrides[get_gateway] = lambda: self.gateway
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.db.close()
        self.engine.dispose()
        shutil.rmtree(self.tmpdir, ignore_errors=True)

    def override_get_db(self):
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def make_gateway(self, session_factory) -> LedgerGateway:
        return LedgerGateway(session_factory, backoff_seconds=0.25, sleep=self.sleeps.append)

    def create_client(self, name="Ana Souza", remaining_sessions=0, **fields) -> Client:
        client = Client(name=name, remaining_sessions=remaining_sessions, **fields)
        self.db.add(client)
        self.db.commit()
        return client

    def create_appointment(self, client=None, **fields) -> Appointment:
        values = {
            "client_id": client.id if client else None,
            "title": "Physiotherapy",
            "start": SESSION_DATE,
            "is_package": False,
            "sessions_paid": 0,
            "amount": Decimal("100.00"),
            "amount_paid": Decimal("0.00"),
            "payment_status": "unpaid",
        }
        values.update(fields)
        appointment = Appointment(**values)
        self.db.add(appointment)
        self.db.commit()
        return appointment

    def reload(self, model, pk):
        self.db.expire_all()
        return self.db.get(model, pk)

    def payment_count(self) -> int:
        self.db.expire_all()
        return self.db.query(Payment).count()
