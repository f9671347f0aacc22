"""User, dataset and uploaded-file models."""
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import Field, Relationship, SQLModel


def utcnow() -> datetime:
    """Timezone-aware current UTC time; stored timestamps are never naive."""
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    """One row per identity-provider account that has used the app."""

    id: Optional[int] = Field(default=None, primary_key=True)
    external_id: str = Field(unique=True, index=True)  # provider "sub" claim
    email: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    datasets: List["Dataset"] = Relationship(
        back_populates="user",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"},
    )


class Dataset(SQLModel, table=True):
    """A named group of .fit files compared together."""

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    user_id: int = Field(foreign_key="user.id", index=True, ondelete="CASCADE")

    # Unguessable token for read-only public access; None = not shared
    share_token: Optional[str] = Field(default=None, unique=True, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    user: Optional[User] = Relationship(back_populates="datasets")
    fit_files: List["FitFile"] = Relationship(
        back_populates="dataset",
        sa_relationship_kwargs={
            "cascade": "all, delete-orphan",
            "order_by": "FitFile.id",
        },
    )


class FitFile(SQLModel, table=True):
    """
    One uploaded .fit file. The bytes live in object storage under
    ``file_path``; decoded data is never persisted.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str  # original filename, used as the series display name
    dataset_id: int = Field(foreign_key="dataset.id", index=True, ondelete="CASCADE")
    file_path: str  # storage key
    created_at: datetime = Field(default_factory=utcnow)

    dataset: Optional[Dataset] = Relationship(back_populates="fit_files")
