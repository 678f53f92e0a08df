"""Protocol counters.

Learn: Every failure class in the protocol degrades to a silent no-op
for clients. These counters are the only place those events show up,
via the health endpoint.
"""

from dataclasses import asdict, dataclass


@dataclass
class DispatchStats:
    messages_received: int = 0
    malformed_dropped: int = 0
    unknown_ignored: int = 0
    stale_votes_ignored: int = 0
    duplicate_votes_ignored: int = 0
    broadcasts: int = 0
    deliveries: int = 0
    deliveries_skipped: int = 0
    probes_sent: int = 0
    sessions_reaped: int = 0

    def as_dict(self) -> dict[str, int]:
        return asdict(self)
