"""Compensation bookkeeping for the checkout saga.

Each post-commit step that succeeds records the command that undoes it. When
a later step fails the recorded commands are dispatched newest first. A
failing compensation is logged and skipped so the remaining ones still run.
"""

from dataclasses import dataclass, field

import structlog
from protean.utils.globals import current_domain

logger = structlog.get_logger(__name__)


def _process(command):
    return current_domain.process(command, asynchronous=False)


@dataclass(frozen=True)
class Compensation:
    step: str
    command: object


@dataclass
class CompensationResult:
    run: int = 0
    failed: int = 0

    @property
    def complete(self):
        return self.failed == 0


@dataclass
class CompensationLog:
    order_id: str
    entries: list[Compensation] = field(default_factory=list)

    def __len__(self):
        return len(self.entries)

    def record(self, step, command):
        self.entries.append(Compensation(step=step, command=command))

    def unwind(self, dispatch=None) -> CompensationResult:
        """Dispatch the recorded compensations in reverse order."""
        dispatch = dispatch or _process
        result = CompensationResult()

        for entry in reversed(self.entries):
            try:
                dispatch(entry.command)
                result.run += 1
            except Exception as exc:
                result.failed += 1
                logger.warning(
                    "Compensation failed",
                    order_id=self.order_id,
                    step=entry.step,
                    error=str(exc),
                )

        self.entries.clear()
        return result
