"""Shared test fixtures."""
import os

# Keep the app's own engine in memory; must be set before fitcompare is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Generator

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Import all models so SQLModel.metadata knows about them
from fitcompare.models.dataset import Dataset, FitFile, User  # noqa: F401
from fitcompare.storage.local import LocalObjectStorage


@pytest.fixture(name="engine")
def engine_fixture():
    """In-memory SQLite engine. Tables recreated fresh for each test."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="test_session")
def test_session_fixture(engine) -> Generator[Session, None, None]:
    """Provides a DB session connected to in-memory SQLite."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="storage")
def storage_fixture(tmp_path) -> LocalObjectStorage:
    """Blob storage rooted in a per-test temp directory."""
    return LocalObjectStorage(tmp_path / "blobs")


@pytest.fixture(name="seeded_dataset")
def seeded_dataset_fixture(test_session: Session) -> Dataset:
    """A persisted user with one two-file dataset."""
    user = User(external_id="rider-1", email="rider@example.com")
    test_session.add(user)
    test_session.commit()
    test_session.refresh(user)

    dataset = Dataset(name="Hill repeats", user_id=user.id)
    test_session.add(dataset)
    test_session.commit()
    test_session.refresh(dataset)

    for name in ("a.fit", "b.fit"):
        test_session.add(FitFile(
            name=name, dataset_id=dataset.id, file_path=f"fit-files/x-{name}"
        ))
    test_session.commit()
    test_session.refresh(dataset)
    return dataset
