"""Best-effort batch helper.

`run_batch` applies a single-entity operation to each item of a list and
collects the outcome instead of stopping at the first failure. Each item
runs in its own savepoint, so a failing item leaves nothing half-written
while the items before and after it are kept.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from django.db import IntegrityError, transaction

from academics.exceptions import ServiceError

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    successful: List[Any] = field(default_factory=list)
    failed: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)

    def summary(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'successful': len(self.successful),
            'failed': len(self.failed),
        }

    def as_dict(self) -> Dict[str, Any]:
        return {
            'summary': self.summary(),
            'results': {'successful': self.successful, 'failed': self.failed},
        }


def run_batch(
    items: Iterable[Any],
    func: Callable[[Any], Any],
    describe: Optional[Callable[[Any], Dict[str, Any]]] = None,
) -> BatchResult:
    """Call `func(item)` for every item and record the outcome.

    Service errors and integrity errors are recorded in `failed` as the
    item's description plus an `error` message. Anything else is a bug and
    propagates.
    """
    result = BatchResult()
    for item in items:
        info = describe(item) if describe else {'input': item}
        try:
            with transaction.atomic():
                value = func(item)
        except (ServiceError, IntegrityError) as exc:
            logger.warning('Batch item failed %s: %s', info, exc)
            result.failed.append({**info, 'error': str(exc)})
            continue
        result.successful.append(value)
    return result
