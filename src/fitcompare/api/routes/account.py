"""Current-user routes."""
import logging

from fastapi import APIRouter, Depends
from sqlmodel import Session

from fitcompare.api.deps import get_current_user, get_storage
from fitcompare.api.routes.datasets import delete_blobs
from fitcompare.api.schemas import MessageOut, UserRead
from fitcompare.db.engine import get_session
from fitcompare.models.dataset import User
from fitcompare.storage.local import LocalObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=UserRead)
def get_me(user: User = Depends(get_current_user)):
    return UserRead.model_validate(user)


@router.delete("", response_model=MessageOut)
def delete_me(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    storage: LocalObjectStorage = Depends(get_storage),
):
    """
    Delete everything stored for the caller: blobs, datasets, the user row.
    The identity-provider account itself is deleted by the provider.
    """
    for dataset in user.datasets:
        delete_blobs(storage, list(dataset.fit_files))
    user_id = user.id
    session.delete(user)
    session.commit()
    logger.info("Deleted user %s and all their data", user_id)
    return MessageOut(message="Account data deleted")
