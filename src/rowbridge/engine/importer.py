"""Streaming CSV import with backpressure and per-line error isolation."""

import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Optional

from ..mapping.models import MappingConfig
from .assembler import RowAssembler, call_hook
from .formatting import split_row
from .models import (
    ImportReport,
    ImportState,
    PersistenceError,
    RowError,
    RowOutcome,
    StreamInterruptError,
)

logger = logging.getLogger(__name__)


class ImportPipeline:
    """
    Imports a stream of CSV lines into documents.

    The first line is the header and is discarded. Every data line is
    assembled, checked against the duplicate hook and saved. Intake stops
    as soon as ``workers`` lines are in flight and resumes only once all of
    them have finished, so with the default of one worker lines are
    processed strictly one after another.

    Row failures never abort the import; they end up in the report. Only an
    interrupt (``interrupt()`` or a failing line source) aborts, raising
    ``StreamInterruptError`` without a report.
    """

    def __init__(
        self,
        assembler: RowAssembler,
        config: MappingConfig,
        col_separator: str = ";",
        workers: int = 1,
        poll_interval: float = 0.05,
    ):
        self.assembler = assembler
        self.model = assembler.model
        self.config = config
        self.col_separator = col_separator
        self.workers = max(1, workers)
        self.poll_interval = poll_interval

        self.state = ImportState.AWAITING_HEADER
        self.in_flight = 0
        self._tasks: set[asyncio.Task] = set()
        self._idle = asyncio.Event()
        self._idle.set()
        self._interrupted = asyncio.Event()

    def _transition(self, state: ImportState):
        logger.info(f"Import '{self.config.name or self.config.model}': {self.state.value} -> {state.value}")
        self.state = state

    def interrupt(self):
        """Signal an external interrupt; the running import aborts."""
        self._interrupted.set()

    def _check_interrupt(self):
        if self._interrupted.is_set():
            raise StreamInterruptError("Import interrupted")

    async def run(self, lines: AsyncIterable[str]) -> ImportReport:
        """
        Consume a line source and import every data line.

        Returns:
            ImportReport with duplicates and errors ordered by line number

        Raises:
            StreamInterruptError: If the import was interrupted or the line
                source failed
        """
        report = ImportReport(config_name=self.config.name)
        line_number = 0

        iterator = aiter(lines)

        try:
            while True:
                line = await self._next_line(iterator)
                if line is None:
                    break
                self._check_interrupt()

                if self.state == ImportState.AWAITING_HEADER:
                    self._transition(ImportState.STREAMING)
                    continue

                if not line.strip():
                    continue

                line_number += 1
                self._dispatch(line, line_number, report)

                if self.in_flight >= self.workers:
                    await self._wait_idle()

            self._transition(ImportState.DRAINING)
            await self._wait_idle()
        except StreamInterruptError:
            await self._abort()
            raise
        except Exception as e:
            await self._abort()
            raise StreamInterruptError(f"Line source failed: {e}") from e

        report.total = line_number
        report.finalize()
        self._transition(ImportState.CLOSED)
        logger.info(
            f"Import finished: {report.total} lines, {len(report.persisted)} persisted, "
            f"{len(report.duplicates)} duplicates, {len(report.errors)} errors"
        )
        return report

    async def _next_line(self, iterator: AsyncIterator[str]) -> Optional[str]:
        """Pull the next line, giving up as soon as an interrupt is signalled.

        Returns None once the source is exhausted.
        """
        pull = asyncio.ensure_future(anext(iterator))
        interrupted = asyncio.ensure_future(self._interrupted.wait())
        try:
            await asyncio.wait({pull, interrupted}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            interrupted.cancel()
            if not pull.done():
                pull.cancel()
                await asyncio.gather(pull, return_exceptions=True)

        if pull.cancelled():
            raise StreamInterruptError("Import interrupted")
        try:
            return pull.result()
        except StopAsyncIteration:
            return None

    def _dispatch(self, line: str, number: int, report: ImportReport):
        self.in_flight += 1
        report.max_in_flight = max(report.max_in_flight, self.in_flight)
        self._idle.clear()

        task = asyncio.create_task(self._process(line, number, report))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _wait_idle(self):
        """Wait until no line is in flight, watching for interrupts."""
        while self.in_flight > 0:
            self._check_interrupt()
            try:
                await asyncio.wait_for(self._idle.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
        self._check_interrupt()

    async def _abort(self):
        self._transition(ImportState.ABORTED)
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.error(f"Import '{self.config.name or self.config.model}' aborted")

    async def _process(self, line: str, number: int, report: ImportReport):
        try:
            outcome, message = await self._import_line(line, number)
            report.record(number, outcome, message)
        finally:
            self.in_flight -= 1
            if self.in_flight == 0:
                self._idle.set()

    async def _import_line(self, line: str, number: int) -> tuple[RowOutcome, str]:
        try:
            document = await self.assembler.assemble(split_row(line, self.col_separator), number)

            if self.config.duplicate_hook and await call_hook(self.config.duplicate_hook, document):
                logger.info(f"Line {number}: duplicate, skipped")
                return RowOutcome.DUPLICATE, ""

            try:
                await self.model.save(document, **self.config.save_options)
            except Exception as e:
                raise PersistenceError(number, e, document.to_dict()) from e

            return RowOutcome.PERSISTED, ""
        except RowError as e:
            logger.warning(str(e))
            return RowOutcome.ERROR, e.message
        except Exception as e:
            logger.warning(f"Line {number}: {e}")
            return RowOutcome.ERROR, str(e)
