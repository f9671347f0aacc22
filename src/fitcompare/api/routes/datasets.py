"""Dataset and file routes for the signed-in owner."""
import logging
import secrets
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlmodel import Session, select

from fitcompare.api.deps import get_comparison_service, get_current_user, get_storage
from fitcompare.api.schemas import (
    ComparisonOut,
    DatasetRead,
    DatasetRename,
    MessageOut,
    SampleOut,
    ShareTokenOut,
)
from fitcompare.api.utils import (
    check_export_format,
    comparison_payload,
    export_response,
    file_samples,
    select_files,
)
from fitcompare.config import get_settings
from fitcompare.db.engine import get_session
from fitcompare.models.dataset import Dataset, FitFile, User, utcnow
from fitcompare.services.comparison import ComparisonService
from fitcompare.storage.local import LocalObjectStorage, StorageNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter()

FIT_EXTENSION = ".fit"
DEFAULT_DATASET_NAME = "New Dataset"


# ─── Helpers ──────────────────────────────────────────────────────────────────

def get_owned_dataset(session: Session, dataset_id: int, user: User) -> Dataset:
    """Fetch a dataset, 404 if unknown and 403 if it belongs to someone else."""
    dataset = session.get(Dataset, dataset_id)
    if not dataset:
        raise HTTPException(status_code=404, detail="Dataset not found")
    if dataset.user_id != user.id:
        raise HTTPException(status_code=403, detail="Unauthorized")
    return dataset


async def read_uploads(files: Optional[List[UploadFile]]) -> List[Tuple[str, bytes]]:
    """
    Read and validate uploaded files before anything is stored.

    400 if nothing was uploaded or a file isn't .fit, 413 if a file is
    over the configured size limit.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")

    max_bytes = get_settings().max_upload_bytes
    uploads = []
    for upload in files:
        filename = upload.filename or ""
        if Path(filename).suffix.lower() != FIT_EXTENSION:
            raise HTTPException(status_code=400, detail="Only .fit files are allowed")
        # One byte past the limit is enough to know it's too big
        data = await upload.read(max_bytes + 1)
        if len(data) > max_bytes:
            raise HTTPException(
                status_code=413, detail=f"{filename} exceeds {max_bytes} bytes"
            )
        uploads.append((filename, data))
    return uploads


def store_uploads(
    storage: LocalObjectStorage, uploads: List[Tuple[str, bytes]]
) -> List[FitFile]:
    """
    Write every upload to storage and return unsaved FitFile rows for them.

    If any write fails, the blobs already written are removed before the
    error propagates.
    """
    files: List[FitFile] = []
    try:
        for filename, data in uploads:
            files.append(FitFile(name=filename, file_path=storage.store(data, filename)))
    except Exception:
        delete_blobs(storage, files)
        raise
    return files


def attach_files(
    session: Session,
    storage: LocalObjectStorage,
    dataset: Dataset,
    uploads: List[Tuple[str, bytes]],
) -> None:
    """
    Store uploads and commit them with ``dataset`` in one transaction.
    On failure the transaction is rolled back and the new blobs deleted.
    """
    files = store_uploads(storage, uploads)
    try:
        dataset.fit_files.extend(files)
        dataset.updated_at = utcnow()
        session.add(dataset)
        session.commit()
    except Exception:
        session.rollback()
        delete_blobs(storage, files)
        raise
    session.refresh(dataset)


def delete_blobs(storage: LocalObjectStorage, files: List[FitFile]) -> None:
    """Remove stored bytes; failures are logged and never block the DB delete."""
    for f in files:
        try:
            storage.delete(f.file_path)
        except (StorageNotFoundError, OSError) as exc:
            logger.warning("Could not delete blob %s: %s", f.file_path, exc)


# ─── Datasets ─────────────────────────────────────────────────────────────────

@router.get("/", response_model=List[DatasetRead])
def list_datasets(
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """List the caller's datasets with their files, newest first."""
    datasets = session.exec(
        select(Dataset)
        .where(Dataset.user_id == user.id)
        .order_by(Dataset.created_at.desc(), Dataset.id.desc())
    ).all()
    return [DatasetRead.model_validate(d) for d in datasets]


@router.post("/", response_model=DatasetRead, status_code=201)
async def create_dataset(
    files: Optional[List[UploadFile]] = File(None),
    name: Optional[str] = Form(None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    storage: LocalObjectStorage = Depends(get_storage),
):
    """Create a dataset from one or more uploaded .fit files."""
    uploads = await read_uploads(files)

    dataset = Dataset(name=(name or "").strip() or DEFAULT_DATASET_NAME, user_id=user.id)
    attach_files(session, storage, dataset, uploads)
    logger.info(
        "User %s created dataset %s with %d files", user.id, dataset.id, len(uploads)
    )
    return DatasetRead.model_validate(dataset)


@router.get("/files/{file_id}/data", response_model=List[SampleOut])
async def get_file_data(
    file_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    service: ComparisonService = Depends(get_comparison_service),
):
    """Normalized samples for one file."""
    fit_file = session.get(FitFile, file_id)
    if not fit_file:
        raise HTTPException(status_code=404, detail="File not found")
    if fit_file.dataset.user_id != user.id:
        raise HTTPException(status_code=403, detail="Unauthorized")
    return await file_samples(service, fit_file)


@router.get("/{dataset_id}", response_model=DatasetRead)
def get_dataset(
    dataset_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Fetch one dataset with its files."""
    return DatasetRead.model_validate(get_owned_dataset(session, dataset_id, user))


@router.patch("/{dataset_id}", response_model=DatasetRead)
def rename_dataset(
    dataset_id: int,
    body: DatasetRename,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    dataset = get_owned_dataset(session, dataset_id, user)
    dataset.name = body.name
    dataset.updated_at = utcnow()
    session.add(dataset)
    session.commit()
    session.refresh(dataset)
    return DatasetRead.model_validate(dataset)


@router.delete("/{dataset_id}", response_model=MessageOut)
def delete_dataset(
    dataset_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    storage: LocalObjectStorage = Depends(get_storage),
):
    """Delete a dataset, its stored files and their rows."""
    dataset = get_owned_dataset(session, dataset_id, user)
    delete_blobs(storage, list(dataset.fit_files))
    session.delete(dataset)
    session.commit()
    logger.info("User %s deleted dataset %s", user.id, dataset_id)
    return MessageOut(message="Dataset deleted successfully")


# ─── Files within a dataset ───────────────────────────────────────────────────

@router.post("/{dataset_id}/files", response_model=DatasetRead, status_code=201)
async def upload_files(
    dataset_id: int,
    files: Optional[List[UploadFile]] = File(None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    storage: LocalObjectStorage = Depends(get_storage),
):
    """Add more .fit files to an existing dataset."""
    dataset = get_owned_dataset(session, dataset_id, user)
    uploads = await read_uploads(files)
    attach_files(session, storage, dataset, uploads)
    logger.info("User %s added %d files to dataset %s", user.id, len(uploads), dataset.id)
    return DatasetRead.model_validate(dataset)


@router.delete("/{dataset_id}/files/{file_id}", response_model=MessageOut)
def delete_file(
    dataset_id: int,
    file_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    storage: LocalObjectStorage = Depends(get_storage),
):
    dataset = get_owned_dataset(session, dataset_id, user)
    fit_file = session.get(FitFile, file_id)
    if not fit_file or fit_file.dataset_id != dataset.id:
        raise HTTPException(status_code=404, detail="File not found")
    delete_blobs(storage, [fit_file])
    session.delete(fit_file)
    dataset.updated_at = utcnow()
    session.add(dataset)
    session.commit()
    return MessageOut(message="File deleted successfully")


# ─── Comparison, export & sharing ─────────────────────────────────────────────

@router.get("/{dataset_id}/comparison", response_model=ComparisonOut)
async def compare_files(
    dataset_id: int,
    file_id: Optional[List[int]] = Query(None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    service: ComparisonService = Depends(get_comparison_service),
):
    """
    Series and stats for the selected files (all files if none selected).
    Files that are missing or unreadable are left out.
    """
    dataset = get_owned_dataset(session, dataset_id, user)
    return await comparison_payload(service, select_files(dataset, file_id))


@router.get("/{dataset_id}/export")
async def export_comparison(
    dataset_id: int,
    fmt: str = Query("png", alias="format"),
    file_id: Optional[List[int]] = Query(None),
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    service: ComparisonService = Depends(get_comparison_service),
):
    """Download the comparison charts as PNG or PDF."""
    fmt = check_export_format(fmt)
    dataset = get_owned_dataset(session, dataset_id, user)
    return await export_response(
        service, select_files(dataset, file_id), fmt, dataset.name
    )


@router.post("/{dataset_id}/share", response_model=ShareTokenOut)
def share_dataset(
    dataset_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Create a share token (or return the existing one)."""
    dataset = get_owned_dataset(session, dataset_id, user)
    if not dataset.share_token:
        dataset.share_token = secrets.token_urlsafe(get_settings().share_token_bytes)
        dataset.updated_at = utcnow()
        session.add(dataset)
        session.commit()
        session.refresh(dataset)
        logger.info("Created share link for dataset %s", dataset.id)
    return ShareTokenOut(share_token=dataset.share_token)


@router.delete("/{dataset_id}/share", response_model=MessageOut)
def unshare_dataset(
    dataset_id: int,
    user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Revoke the share link; old links stop working."""
    dataset = get_owned_dataset(session, dataset_id, user)
    dataset.share_token = None
    dataset.updated_at = utcnow()
    session.add(dataset)
    session.commit()
    return MessageOut(message="Share link revoked")
