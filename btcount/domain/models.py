"""Domain models - pure Python dataclasses representing ledger entities"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

# Fractional digits the ledger stores; finer amounts would be rounded on write
AMOUNT_SCALE = 10


@dataclass(frozen=True)
class Transaction:
    """Signed movement of coins recorded in the ledger"""

    amount: Decimal
    timestamp: datetime


@dataclass(frozen=True)
class Snapshot:
    """Cumulative balance as of ``timestamp``.

    Persisted snapshots ("history stats") always sit on an hour boundary and
    cover every transaction strictly before it. The running snapshot kept by
    the current-hour cache uses the same shape, but its timestamp is the last
    transaction it saw.
    """

    timestamp: datetime
    amount: Decimal


@dataclass(frozen=True)
class TimeRange:
    """Bounds for ledger and snapshot reads; each store documents inclusivity"""

    since: datetime
    till: datetime
