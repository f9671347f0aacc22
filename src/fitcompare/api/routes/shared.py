"""Read-only routes for datasets opened through a share link. No auth."""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from fitcompare.api.deps import get_comparison_service
from fitcompare.api.schemas import ComparisonOut, SampleOut, SharedDatasetRead
from fitcompare.api.utils import (
    check_export_format,
    comparison_payload,
    export_response,
    file_samples,
    select_files,
)
from fitcompare.db.engine import get_session
from fitcompare.models.dataset import Dataset
from fitcompare.services.comparison import ComparisonService

router = APIRouter()


def get_shared_dataset(session: Session, token: str) -> Dataset:
    dataset = session.exec(
        select(Dataset).where(Dataset.share_token == token)
    ).first()
    if not dataset:
        raise HTTPException(status_code=404, detail="Dataset not found")
    return dataset


@router.get("/{token}", response_model=SharedDatasetRead)
def get_shared(token: str, session: Session = Depends(get_session)):
    return SharedDatasetRead.model_validate(get_shared_dataset(session, token))


@router.get("/{token}/files/{file_id}/data", response_model=List[SampleOut])
async def get_shared_file_data(
    token: str,
    file_id: int,
    session: Session = Depends(get_session),
    service: ComparisonService = Depends(get_comparison_service),
):
    """Samples for one file; the file must belong to the shared dataset."""
    dataset = get_shared_dataset(session, token)
    fit_file = next((f for f in dataset.fit_files if f.id == file_id), None)
    if fit_file is None:
        raise HTTPException(status_code=404, detail="File not found")
    return await file_samples(service, fit_file)


@router.get("/{token}/comparison", response_model=ComparisonOut)
async def compare_shared(
    token: str,
    file_id: Optional[List[int]] = Query(None),
    session: Session = Depends(get_session),
    service: ComparisonService = Depends(get_comparison_service),
):
    dataset = get_shared_dataset(session, token)
    return await comparison_payload(service, select_files(dataset, file_id))


@router.get("/{token}/export")
async def export_shared(
    token: str,
    fmt: str = Query("png", alias="format"),
    file_id: Optional[List[int]] = Query(None),
    session: Session = Depends(get_session),
    service: ComparisonService = Depends(get_comparison_service),
):
    fmt = check_export_format(fmt)
    dataset = get_shared_dataset(session, token)
    return await export_response(
        service, select_files(dataset, file_id), fmt, dataset.name
    )
