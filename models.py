from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class OtpRecord:
    code: str  # 6 digits, write-only: checked, never echoed back
    tracking_id: str  # 32 hex chars, keys the open-tracking pixel
    issued_at: float = 0.0  # store clock reading, stamped by CodeStore.put()

    # Flips false -> true once, when the tracking pixel is fetched.
    opened: bool = False

    # Stamped by CodeStore.put(); lets the sweeper ignore heap entries that
    # belong to a record which has since been replaced.
    generation: int = field(default=0, repr=False)
