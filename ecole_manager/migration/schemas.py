from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class RecordOutcome(BaseModel):
    success: bool
    record_id: Optional[str] = None
    record: Dict[str, Any] = Field(default_factory=dict)
    reason: Optional[str] = None


class CategoryResult(BaseModel):
    category: str
    skipped: bool = False
    skip_reason: Optional[str] = None
    outcomes: List[RecordOutcome] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[RecordOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> List[RecordOutcome]:
        return [o for o in self.outcomes if not o.success]


class MigrationReport(BaseModel):
    """Per-category outcomes, in the order the categories ran."""

    categories: List[CategoryResult] = Field(default_factory=list)

    def category(self, name: str) -> Optional[CategoryResult]:
        return next((c for c in self.categories if c.category == name), None)

    @property
    def succeeded(self) -> List[RecordOutcome]:
        return [o for c in self.categories for o in c.succeeded]

    @property
    def failed(self) -> List[RecordOutcome]:
        return [o for c in self.categories for o in c.failed]

    def warnings(self) -> List[str]:
        """Human-readable lines for every failed record, skipped category and category note."""
        lines: List[str] = []
        for result in self.categories:
            if result.skipped:
                lines.append(f"{result.category}: skipped ({result.skip_reason})")
            lines.extend(f"{result.category}: {note}" for note in result.notes)
            for outcome in result.failed:
                lines.append(f"{result.category} {outcome.record_id or '?'}: {outcome.reason}")
        return lines
