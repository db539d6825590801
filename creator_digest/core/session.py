"""Per-run registry of artifacts already used in a digest.

A DigestSession lives for exactly one digest run and is passed explicitly
to every step that must not reuse an artifact (a record id, a canonical URL,
an image). Nothing is shared between runs, so concurrent runs never see
each other's state.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class DigestSession:
    """Artifacts claimed during one digest run, grouped by domain.

    Attributes:
        run_id: Unique id of the run
        started_at: Reference time of the run
    """

    run_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    _used: dict[str, set[str]] = field(default_factory=dict, repr=False)

    def claim(self, domain: str, artifact: str) -> bool:
        """Mark an artifact as used.

        Returns:
            True if the artifact was free and is now claimed, False if it was
            already used in this session
        """
        used = self._used.setdefault(domain, set())
        if artifact in used:
            return False
        used.add(artifact)
        return True

    def is_used(self, domain: str, artifact: str) -> bool:
        return artifact in self._used.get(domain, ())

    def used(self, domain: str) -> frozenset[str]:
        return frozenset(self._used.get(domain, ()))
