from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


class ExecutionResult(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class LogLevel(str, Enum):
    INFO = "info"
    ERROR = "error"
    WARNING = "warning"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class AccountStats:
    total: int = 0
    successful: int = 0  # every role of the account checked in
    skipped: int = 0  # already checked in today
    failed: int = 0
    failed_indexes: List[int] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "skipped": self.skipped,
            "failed": self.failed,
            "failedIndexes": list(self.failed_indexes),
        }


@dataclass(slots=True)
class GameStats:
    game_id: int
    game_name: str
    total: int = 0
    succeeded: int = 0
    already_attended: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gameId": self.game_id,
            "gameName": self.game_name,
            "total": self.total,
            "succeeded": self.succeeded,
            "alreadyAttended": self.already_attended,
            "failed": self.failed,
        }


@dataclass(slots=True)
class LogEntry:
    account_number: int
    level: LogLevel
    message: str
    game_id: Optional[int] = None
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accountNumber": self.account_number,
            "level": self.level.value,
            "message": self.message,
            "gameId": self.game_id,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(slots=True)
class RunMeta:
    timestamp: datetime = field(default_factory=_now)
    execution_result: ExecutionResult = ExecutionResult.SUCCESS
    has_error: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "executionResult": self.execution_result.value,
            "hasError": self.has_error,
        }


@dataclass(slots=True)
class NotificationData:
    """Structured snapshot of a single check-in run.

    Owned by :class:`~checkin_notify.notifications.manager.NotificationManager`;
    templates receive it read-only.
    """

    meta: RunMeta = field(default_factory=RunMeta)
    accounts: AccountStats = field(default_factory=AccountStats)
    games: List[GameStats] = field(default_factory=list)
    logs: List[LogEntry] = field(default_factory=list)

    def find_game(self, game_id: int) -> Optional[GameStats]:
        for game in self.games:
            if game.game_id == game_id:
                return game
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Return the nested mapping used for placeholder lookups and JSON payloads."""
        return {
            "meta": self.meta.to_dict(),
            "accounts": self.accounts.to_dict(),
            "games": [game.to_dict() for game in self.games],
            "logs": [entry.to_dict() for entry in self.logs],
        }


@dataclass(slots=True)
class RenderedNotification:
    title: str
    body: Any
    subtitle: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
