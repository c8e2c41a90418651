"""Errors raised while reading slide catalogs and asset tables."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, List, Optional

_RECORD_PREFIX = re.compile(r"^slides\[(\d+)\]")


class CatalogValidationError(ValueError):
    """A catalog or asset table that cannot be presented.

    ``issues`` holds every problem found, not just the first. Issues about a
    single record start with ``slides[i]``; ``record_positions`` lists those
    positions so a caller can point at the offending entries.
    """

    def __init__(self, issues: Iterable[str], *, subject: str = "Catalog", source: Optional[Path] = None):
        self.issues = [str(i).strip() for i in issues if str(i).strip()] or [f"Invalid {subject.lower()}"]
        self.subject = subject
        self.source = Path(source) if source is not None else None
        super().__init__(self._format())

    @property
    def record_positions(self) -> List[int]:
        positions = {int(m.group(1)) for m in map(_RECORD_PREFIX.match, self.issues) if m}
        return sorted(positions)

    def for_source(self, source: Path) -> "CatalogValidationError":
        """Same issues, reported against the file they came from."""
        return CatalogValidationError(self.issues, subject=self.subject, source=source)

    def _format(self) -> str:
        where = f" ({self.source})" if self.source else ""
        lines = [f"{self.subject} validation failed{where}:"]
        lines.extend(f"- {issue}" for issue in self.issues)
        return "\n".join(lines)
