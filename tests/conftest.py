import os
os.environ.setdefault("DATABASE_URL", "sqlite://")

import random
import pytest
import redis
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from skillquiz.core.auth import create_token
from skillquiz.core.cache import Cache, get_cache
from skillquiz.core.database import get_db
from skillquiz.models.orm import Base, Question, Skill, User
from skillquiz.services.store import Store


class FakeRedis:
    """In-process stand-in for the handful of redis commands the cache uses."""

    def __init__(self):
        self.data = {}
        self.expires_at = {}
        self.now = 0.0
        self.deleted = []

    def advance(self, seconds):
        self.now += seconds

    def get(self, key):
        if key in self.expires_at and self.expires_at[key] <= self.now:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        if ex is not None:
            self.expires_at[key] = self.now + ex
        return True

    def ttl(self, key):
        return int(self.expires_at[key] - self.now) if key in self.expires_at else -1

    def delete(self, *keys):
        self.deleted.extend(keys)
        return sum(1 for k in keys if self.data.pop(k, None) is not None)


class DownRedis:
    def _fail(self, *args, **kwargs):
        raise redis.exceptions.ConnectionError("Error 111 connecting to localhost:6379. Connection refused.")
    get = set = delete = _fail


@pytest.fixture
def engine():
    eng = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    @event.listens_for(eng, "connect")
    def _fk_on(dbapi_conn, _):
        dbapi_conn.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)()
    yield session
    session.close()


@pytest.fixture
def store(db):
    return Store(db)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return Cache(fake_redis)


@pytest.fixture
def down_cache():
    return Cache(DownRedis())


@pytest.fixture
def rng():
    return random.Random(1234)


def add_question(db, skill, text, correct, difficulty="Easy"):
    q = Question(skill_id=skill.id, question_text=text, option_a=f"{text} a", option_b=f"{text} b",
                 option_c=f"{text} c", option_d=f"{text} d", correct_option=correct, difficulty=difficulty)
    db.add(q)
    db.flush()
    return q


@pytest.fixture
def seeded(db):
    arrays = Skill(name="Arrays")
    graphs = Skill(name="Graphs")
    empty = Skill(name="Empty")
    db.add_all([arrays, graphs, empty])
    db.flush()
    arrays_qs = [add_question(db, arrays, "Q1", "A"), add_question(db, arrays, "Q2", "B"),
                 add_question(db, arrays, "Q3", "C", "Hard")]
    graphs_qs = [add_question(db, graphs, "G1", "D", "Medium"), add_question(db, graphs, "G2", "A")]
    alice = User(username="alice", role="user")
    bob = User(username="bob", role="user")
    root = User(username="root", role="admin")
    db.add_all([alice, bob, root])
    db.commit()
    return {
        "arrays": arrays, "graphs": graphs, "empty": empty,
        "arrays_qs": arrays_qs, "graphs_qs": graphs_qs,
        "alice": alice, "bob": bob, "root": root,
    }


@pytest.fixture
def client(db, cache):
    from skillquiz.main import app

    def _db():
        yield db

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_cache] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_header():
    def make(user):
        return {"Authorization": f"Bearer {create_token(user.id, user.role)}"}
    return make
