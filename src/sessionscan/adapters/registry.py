"""Scanner registry: fans discovery out to every scanner and merges the results."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable, TypeVar

from sessionscan.adapters.base import sort_summaries
from sessionscan.models import ParsedSession, ScannerStatus, SessionSummary

if TYPE_CHECKING:
    from sessionscan.adapters.base import SessionScanner

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ScannerRegistry:
    """Ordered collection of scanners behind a fault-isolation boundary.

    No exception raised by scanner code propagates out of a registry method:
    it is logged with the scanner's name and the failing method, and the
    caller gets an empty result instead.
    """

    def __init__(self, scanners: Iterable[SessionScanner] = ()) -> None:
        self._scanners: list[SessionScanner] = list(scanners)

    def register(self, scanner: SessionScanner) -> None:
        """Append a scanner. Registration order is query order."""
        self._scanners.append(scanner)

    def scanners(self) -> list[SessionScanner]:
        return list(self._scanners)

    def get_scanner(self, source: str) -> SessionScanner | None:
        """Find the scanner whose source_type equals ``source`` exactly."""
        for scanner in self._scanners:
            if self._source_type(scanner) == source:
                return scanner
        return None

    def scan_all(self, limit: int = 20, source: str | None = None) -> list[SessionSummary]:
        """Discover the most recently modified sessions across scanners.

        Args:
            limit: Maximum number of summaries to return.
            source: Only query the scanner with this source_type. An unknown
                source matches nothing.

        Returns:
            Summaries sorted by modification time, descending. Equal times
            are ordered by source, then id.
        """
        if limit <= 0:
            return []

        targets = self._scanners
        if source is not None:
            targets = [s for s in self._scanners if self._source_type(s) == source]

        summaries: list[SessionSummary] = []
        for scanner in targets:
            summaries.extend(
                self._safe_call(scanner, "scan", lambda s=scanner: s.scan(limit), [])
            )
        return sort_summaries(summaries)[:limit]

    def parse_session(
        self,
        file_path: str | Path,
        source: str,
        max_turns: int | None = None,
    ) -> ParsedSession | None:
        """Parse one session with the scanner for ``source``.

        Returns:
            The parsed session, or None if the source is unknown or the file
            yields no turns.
        """
        scanner = self.get_scanner(source)
        if scanner is None:
            logger.debug("No scanner registered for source %r", source)
            return None
        return self._safe_call(
            scanner, "parse", lambda: scanner.parse(file_path, max_turns), None
        )

    def list_scanner_status(self) -> list[ScannerStatus]:
        """Report which scanners found session directories on this machine."""
        statuses = []
        for scanner in self._scanners:
            try:
                dirs = scanner.get_session_dirs()
                status = ScannerStatus(
                    name=scanner.name,
                    source=scanner.source_type,
                    description=scanner.description,
                    available=bool(dirs),
                    dirs=[str(d) for d in dirs],
                )
            except Exception as e:
                label = _scanner_label(scanner)
                logger.error("Scanner %s failed in status: %s", label, e)
                status = ScannerStatus(
                    name=label,
                    source=self._source_type(scanner) or "",
                    description=_safe_attr(scanner, "description") or "",
                    available=False,
                    error=str(e) or type(e).__name__,
                )
            statuses.append(status)
        return statuses

    def _source_type(self, scanner: SessionScanner) -> str | None:
        return self._safe_call(scanner, "source_type", lambda: scanner.source_type, None)

    def _safe_call(
        self,
        scanner: SessionScanner,
        method: str,
        fn: Callable[[], T],
        fallback: T,
    ) -> T:
        try:
            return fn()
        except Exception as e:
            label = _scanner_label(scanner)
            logger.error("Scanner %s failed in %s: %s", label, method, e)
            logger.debug("Traceback for %s.%s", label, method, exc_info=True)
            return fallback


def _safe_attr(scanner: SessionScanner, attribute: str) -> str | None:
    try:
        return getattr(scanner, attribute)
    except Exception:
        return None


def _scanner_label(scanner: SessionScanner) -> str:
    """Name used in log lines; falls back to the class name."""
    return _safe_attr(scanner, "name") or type(scanner).__name__
