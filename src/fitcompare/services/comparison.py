"""
ComparisonService: turns stored FitFile rows into series and stats.

Flow for a comparison request:
  1. Fetch every requested file's bytes from storage and decode them,
     concurrently (storage reads and fitparse are blocking, so each runs in
     the thread pool)
  2. Assemble the comparison set in request order, skipping files that
     were missing from storage or failed to decode
  3. Compute one stats row per surviving series

Nothing is cached: every request re-reads and re-decodes the stored files.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Union

from fitcompare.analysis.samples import (
    RecordSource,
    SampleSeries,
    assemble_comparison_set,
    assemble_series,
)
from fitcompare.analysis.stats import AggregateStatRow, compute_stats
from fitcompare.fit.decoder import FitRecord, decode_fit_bytes
from fitcompare.models.dataset import FitFile
from fitcompare.storage.local import LocalObjectStorage

logger = logging.getLogger(__name__)


@dataclass
class Comparison:
    """A comparison set plus its stats table."""

    series: List[SampleSeries] = field(default_factory=list)
    stats: List[AggregateStatRow] = field(default_factory=list)


def _replay(outcome: Union[List[FitRecord], BaseException]) -> RecordSource:
    """Wrap an already-gathered load result as a record source."""
    def source() -> List[FitRecord]:
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome
    return source


class ComparisonService:
    """Loads stored .fit files and builds comparison sets from them."""

    def __init__(self, storage: LocalObjectStorage):
        """
        Args:
            storage: blob storage the FitFile.file_path keys point into.
        """
        self.storage = storage

    def load_records(self, file: FitFile) -> List[FitRecord]:
        """
        Fetch and decode one stored file (blocking).

        Raises:
            StorageNotFoundError: if the blob is gone from storage.
            FitParseError: if the blob is not a readable FIT file.
        """
        data = self.storage.fetch(file.file_path)
        return decode_fit_bytes(data)

    async def _run(self, fn, *args):
        """Run a blocking call in the thread pool."""
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, fn, *args)

    async def load_series(self, file: FitFile) -> SampleSeries:
        """Normalized series for a single file. Errors propagate."""
        records = await self._run(self.load_records, file)
        return assemble_series(file.name, records)

    async def build(self, files: Sequence[FitFile]) -> Comparison:
        """
        Build the comparison set and stats for ``files``, in the given order.

        Files that can't be fetched or decoded are left out; any other error
        propagates.
        """
        outcomes = await asyncio.gather(
            *(self._run(self.load_records, f) for f in files),
            return_exceptions=True,
        )
        series = assemble_comparison_set(
            (f.name, _replay(outcome)) for f, outcome in zip(files, outcomes)
        )
        if len(series) < len(files):
            logger.info(
                "Comparison built with %d of %d files", len(series), len(files)
            )
        return Comparison(series=series, stats=[compute_stats(s) for s in series])
