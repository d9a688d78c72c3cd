"""
Session result accumulation.

Callers use the recorded answers to compute XP and streak side effects.
"""

from dataclasses import dataclass, field

from cadence.domain.models import SessionWordResult


@dataclass
class SessionResultRecorder:
    """Append-only log of (item, correct?, timestamp) answers."""

    results: list[SessionWordResult] = field(default_factory=list)

    def record(
        self, item_id: str, is_correct: bool, timestamp: int, hint_used: bool = False
    ) -> SessionWordResult:
        result = SessionWordResult(
            item_id=item_id,
            is_correct=is_correct,
            timestamp=timestamp,
            hint_used=hint_used,
        )
        self.results.append(result)
        return result

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.results if r.is_correct)

    @property
    def incorrect_count(self) -> int:
        return len(self.results) - self.correct_count

    @property
    def accuracy(self) -> float | None:
        """Share of correct answers, None before the first answer."""
        if not self.results:
            return None
        return self.correct_count / len(self.results)

    def __len__(self) -> int:
        return len(self.results)
