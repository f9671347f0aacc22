"""Helpers shared by the owner and shared-link routes."""
import logging
import re
from typing import List, Optional

from fastapi import HTTPException, Response
from starlette.concurrency import run_in_threadpool

from fitcompare.api.schemas import ComparisonOut, SampleOut
from fitcompare.export.charts import MEDIA_TYPES, render_comparison
from fitcompare.fit.decoder import FitParseError
from fitcompare.models.dataset import Dataset, FitFile
from fitcompare.services.comparison import ComparisonService
from fitcompare.storage.local import StorageNotFoundError

logger = logging.getLogger(__name__)


def select_files(dataset: Dataset, file_ids: Optional[List[int]]) -> List[FitFile]:
    """
    Files to compare, in the order requested.

    No ids means every file in the dataset. Ids that aren't in the dataset
    are dropped.
    """
    if not file_ids:
        return list(dataset.fit_files)
    by_id = {f.id: f for f in dataset.fit_files}
    return [by_id[i] for i in file_ids if i in by_id]


async def file_samples(service: ComparisonService, file: FitFile) -> List[SampleOut]:
    """Normalized samples for one file, with storage/decode errors as HTTP errors."""
    try:
        series = await service.load_series(file)
    except StorageNotFoundError:
        logger.error("FitFile %s points at missing blob %s", file.id, file.file_path)
        raise HTTPException(status_code=404, detail="Stored file missing")
    except FitParseError as exc:
        logger.warning("FitFile %s is unreadable: %s", file.id, exc)
        raise HTTPException(status_code=422, detail=f"File unreadable: {exc}")
    return [SampleOut.model_validate(s) for s in series.samples]


async def comparison_payload(
    service: ComparisonService, files: List[FitFile]
) -> ComparisonOut:
    comparison = await service.build(files)
    return ComparisonOut.model_validate(comparison)


def check_export_format(fmt: str) -> str:
    fmt = fmt.lower()
    if fmt not in MEDIA_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported export format {fmt!r}; use one of {sorted(MEDIA_TYPES)}",
        )
    return fmt


async def export_response(
    service: ComparisonService, files: List[FitFile], fmt: str, title: str
) -> Response:
    """Render the comparison for ``files`` as a downloadable PNG/PDF."""
    comparison = await service.build(files)
    content, media_type = await run_in_threadpool(
        render_comparison, comparison.series, comparison.stats, fmt, title
    )
    slug = re.sub(r"[^A-Za-z0-9]+", "-", title).strip("-").lower() or "dataset"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{slug}-comparison.{fmt}"'},
    )
