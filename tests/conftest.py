import itertools
import os
from collections.abc import Callable
from datetime import date, datetime

import pytest

# config.py exige DATABASE_URL na importação
os.environ.setdefault("DATABASE_URL", "sqlite://")

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.domain.entities.atendimento import RegistroAtendimento
from src.infrastructure.database import models


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    models.Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def registro_factory() -> Callable[..., RegistroAtendimento]:
    seq = itertools.count(1)

    def _make(**overrides) -> RegistroAtendimento:
        payload = {
            "id_atendimento": str(next(seq)),
            "atendente": "Ana",
            "data": date(2024, 1, 15),
            "tempo_total": 10.0,
            "resolvido": True,
            "status": "Finalizado",
        }
        payload.update(overrides)
        return RegistroAtendimento(**payload)

    return _make


@pytest.fixture
def atendente_factory(db) -> Callable[..., models.Atendente]:
    def _create(nome: str, **overrides) -> models.Atendente:
        atendente = models.Atendente(nome=nome, ativo=overrides.pop("ativo", True), **overrides)
        db.add(atendente)
        db.commit()
        return atendente

    return _create


@pytest.fixture
def atendimento_factory(db) -> Callable[..., models.Atendimento]:
    seq = itertools.count(1)

    def _create(**overrides) -> models.Atendimento:
        payload = {
            "id_atendimento": f"AT-{next(seq)}",
            "atendente": "Ana",
            "data": date(2024, 1, 15),
            "tempo_total": 10,
            "resolvido": True,
            "status": "Finalizado",
            "created_at": datetime(2024, 1, 15, 12, 0),
        }
        payload.update(overrides)
        atendimento = models.Atendimento(**payload)
        db.add(atendimento)
        db.commit()
        return atendimento

    return _create


@pytest.fixture
def feedback_factory(db) -> Callable[..., models.Feedback]:
    seq = itertools.count(1)

    def _create(**overrides) -> models.Feedback:
        payload = {
            "id_atendimento": f"FB-{next(seq)}",
            "atendente": "Ana",
            "modulo": "Financeiro",
            "nota_geral": 5,
            "nota_clareza": 5,
            "problema_resolvido": "sim",
            "created_at": datetime(2024, 1, 15, 9, 0),
        }
        payload.update(overrides)
        feedback = models.Feedback(**payload)
        db.add(feedback)
        db.commit()
        return feedback

    return _create
