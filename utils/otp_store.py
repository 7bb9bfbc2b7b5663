"""
In-memory OTP store keyed by email.

One record per email. Expiry is tracked with a min-heap of
``(expires_at, generation, email)`` entries: a replaced record leaves its old
heap entry behind, and the generation check makes that entry a no-op when it
is eventually popped. Expired records are also dropped lazily on access, so
the sweep interval only bounds memory, not correctness.

Only valid for a single running process.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from models import OtpRecord

logger = logging.getLogger(__name__)

OTP_TTL_SECONDS = 10 * 60


class CodeStore:
    def __init__(self, *, ttl_seconds: float = OTP_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._records: Dict[str, OtpRecord] = {}
        self._expiries: List[Tuple[float, int, str]] = []
        self._generations = itertools.count(1)
        # FastAPI runs sync handlers on a thread pool; the sweeper runs on
        # APScheduler's thread.
        self.lock = threading.RLock()

    def now(self) -> float:
        return self._clock()

    def _expired(self, record: OtpRecord, now: float) -> bool:
        return now >= record.issued_at + self.ttl_seconds

    def put(self, email: str, record: OtpRecord) -> OtpRecord:
        with self.lock:
            record.generation = next(self._generations)
            record.issued_at = self.now()
            # Re-insert so insertion order follows issuance order.
            self._records.pop(email, None)
            self._records[email] = record
            heapq.heappush(
                self._expiries,
                (record.issued_at + self.ttl_seconds, record.generation, email),
            )
            return record

    def get(self, email: str) -> Optional[OtpRecord]:
        with self.lock:
            record = self._records.get(email)
            if record is None:
                return None
            if self._expired(record, self.now()):
                del self._records[email]
                return None
            return record

    def delete(self, email: str) -> bool:
        with self.lock:
            return self._records.pop(email, None) is not None

    def mark_opened(self, tracking_id: str) -> bool:
        """Flag the first live, unopened record carrying ``tracking_id``."""
        with self.lock:
            now = self.now()
            for record in self._records.values():
                if record.tracking_id == tracking_id and not record.opened:
                    if self._expired(record, now):
                        continue
                    record.opened = True
                    return True
            return False

    def sweep_expired(self, now: Optional[float] = None) -> int:
        with self.lock:
            if now is None:
                now = self.now()
            removed = 0
            while self._expiries and self._expiries[0][0] <= now:
                _, generation, email = heapq.heappop(self._expiries)
                current = self._records.get(email)
                if current is not None and current.generation == generation:
                    del self._records[email]
                    removed += 1
            # Entries for deleted records are dropped as they surface above.
            return removed

    def clear(self) -> None:
        with self.lock:
            self._records.clear()
            self._expiries.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._records)

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and self.get(email) is not None
