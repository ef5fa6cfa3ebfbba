"""Record how users react to shown recommendations."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from campuspulse.recommendations.tools import utc_now
from campuspulse.recommendations.types import INTERACTION_ACTIONS
from campuspulse.store.records import RecordStore

logger = logging.getLogger(__name__)

INTERACTIONS_TABLE = "recommendation_interactions"


class InteractionTracker:
    """Append-only interaction sink. Duplicate interactions are stored as separate rows."""

    def __init__(
        self,
        store: RecordStore,
        table: str = INTERACTIONS_TABLE,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.table = table
        self.clock = clock

    def record(self, user_id: str | int, recommendation_id: str, action: str) -> None:
        if action not in INTERACTION_ACTIONS:
            raise ValueError(f"Unsupported interaction action: {action}")
        self.store.insert(
            self.table,
            {
                "user_id": str(user_id),
                "recommendation_id": recommendation_id,
                "action": action,
                "created_at": self.clock().isoformat(),
            },
        )
        logger.info("Recorded %s on %s for user %s", action, recommendation_id, user_id)
