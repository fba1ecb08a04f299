from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping

from ..core.constants import FETCH_MAX_WORKERS

logger = logging.getLogger(__name__)


@dataclass
class FetchResult:
    """Outcome of a batch of independent reads.

    A key is present in ``data`` only when its loader succeeded; failures are
    kept in ``errors`` as a message. Callers render what loaded and show
    "no data" for the rest.
    """

    data: Dict[str, Any] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    @property
    def ok(self) -> bool:
        return not self.errors


def fetch_all(loaders: Mapping[str, Callable[[], Any]], *, max_workers: int = FETCH_MAX_WORKERS) -> FetchResult:
    """Run independent loaders together and wait for all of them.

    No retries, no cancellation: each loader runs once and its failure is
    recorded without affecting the others.
    """

    result = FetchResult()
    if not loaders:
        return result

    workers = max(1, min(max_workers, len(loaders)))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {key: pool.submit(fn) for key, fn in loaders.items()}
        for key, fut in futures.items():
            try:
                result.data[key] = fut.result()
            except Exception as e:
                logger.exception("fetch failed: %s", key)
                result.errors[key] = str(e) or e.__class__.__name__
    return result
