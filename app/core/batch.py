"""Serial batch execution with a per-item result report.

Items are processed one at a time, in input order. Each failure is recorded
in the report; with ``continue_on_error=False`` the first failure stops the
batch and the report takes the aborted shape.
"""
from __future__ import annotations
import logging
import time
from dataclasses import dataclass, replace
from functools import reduce
from typing import Any, Callable, Iterable, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItemResult:
    identifier: Any
    ok: bool
    error: Optional[str] = None

    def to_dict(self, key: str = "identifier") -> dict:
        entry = {key: self.identifier, "ok": self.ok}
        if self.error is not None:
            entry["error"] = self.error
        return entry


@dataclass(frozen=True)
class BatchReport:
    """Outcome of a batch run.

    ``results`` holds one entry per attempted item, in input order. An aborted
    report's results are a prefix of what a continue-on-error run would give.
    """
    total: int
    results: Tuple[BatchItemResult, ...]
    aborted: bool = False
    aborted_on: Any = None
    error: Optional[str] = None

    @property
    def success(self) -> int:
        return sum(1 for result in self.results if result.ok)

    @property
    def failure(self) -> int:
        return len(self.results) - self.success

    @property
    def attempted(self) -> int:
        return len(self.results)

    def to_dict(self, key: str = "identifier") -> dict:
        """Render the normal or aborted report shape.

        Args:
            key: Name used for the identifier in each result entry
                (e.g. "cardNumber", "cardId")
        """
        results = [result.to_dict(key) for result in self.results]
        if self.aborted:
            return {
                "total": self.total,
                "attempted": self.attempted,
                "abortedOn": self.aborted_on,
                "error": self.error,
                "results": results,
            }
        return {
            "total": self.total,
            "success": self.success,
            "failure": self.failure,
            "results": results,
        }


@dataclass(frozen=True)
class _Progress:
    results: Tuple[BatchItemResult, ...] = ()
    aborted: bool = False
    aborted_on: Any = None
    error: Optional[str] = None


def run_batch(
    items: Iterable[Any],
    operation: Callable[[Any], Any],
    *,
    identify: Optional[Callable[[Any], Any]] = None,
    delay_ms: int = 0,
    continue_on_error: bool = True,
    sleep: Callable[[float], None] = time.sleep,
) -> BatchReport:
    """Run ``operation`` over ``items`` serially and report each outcome.

    Args:
        items: Inputs, processed in order
        operation: Called once per item; any exception marks the item failed
        identify: Maps an item to the identifier used in the report (item itself by default)
        delay_ms: Pause between consecutive items, in milliseconds (rate-limit throttle)
        continue_on_error: Keep going after a failure instead of aborting
        sleep: Sleep function taking seconds

    Returns:
        BatchReport; aborted when a failure occurred and continue_on_error is False
    """
    items = list(items)
    identify = identify or (lambda item: item)

    def step(progress: _Progress, item: Any) -> _Progress:
        if progress.aborted:
            return progress
        if progress.results and delay_ms > 0:
            sleep(delay_ms / 1000.0)

        identifier = identify(item)
        try:
            operation(item)
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("Batch item %r failed: %s", identifier, message)
            results = progress.results + (BatchItemResult(identifier, False, message),)
            if continue_on_error:
                return replace(progress, results=results)
            return _Progress(results=results, aborted=True, aborted_on=identifier, error=message)

        return replace(progress, results=progress.results + (BatchItemResult(identifier, True),))

    final = reduce(step, items, _Progress())
    if final.aborted:
        logger.warning("Batch aborted on %r after %d of %d item(s)", final.aborted_on, len(final.results), len(items))
    return BatchReport(
        total=len(items),
        results=final.results,
        aborted=final.aborted,
        aborted_on=final.aborted_on,
        error=final.error,
    )
