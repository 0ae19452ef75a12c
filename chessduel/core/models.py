"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and the db layer (lower) use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from chessduel.core.shared_types import Color, Outcome, PieceType, Status


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PlayerModel:
    player_id: UUID
    display_name: str


@dataclass(frozen=True)
class ScoreModel:
    """Cumulative tally of a single player."""

    player_id: UUID
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.draws


@dataclass(frozen=True)
class ScoreDelta:
    """Increments applied to a Score when a game ends. Never negative."""

    player_id: UUID
    wins: int = 0
    losses: int = 0
    draws: int = 0
    points: int = 0


@dataclass(frozen=True)
class MoveRecordModel:
    """Append-only history entry."""

    sequence: int
    from_square: str
    to_square: str
    promotion: Optional[PieceType]
    piece: PieceType
    notation: str
    fen: str
    created_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class GameUpdate:
    """The part of a game record that changes when a move gets accepted."""

    current_fen: str
    status: Status
    result: Optional[Outcome] = None
    ended_at: Optional[datetime] = None


@dataclass
class GameModel:
    """Transport-safe representation of a chess game (session) used between API, Service, and DB layers."""

    game_id: UUID
    white_player: PlayerModel
    black_player: Optional[PlayerModel]
    current_fen: str
    status: Status
    result: Optional[Outcome] = None
    moves: list[MoveRecordModel] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    ended_at: Optional[datetime] = None

    def player_color(self, player_id: UUID) -> Optional[Color]:
        """Which color the player has in this game (None if not seated)."""
        if self.white_player.player_id == player_id:
            return Color.WHITE
        if self.black_player is not None and self.black_player.player_id == player_id:
            return Color.BLACK
        return None
