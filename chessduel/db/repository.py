"""Protocol repository (implemented with SQLAlchemy in sql_repository.py, faked in memory by the tests)"""

from typing import Protocol
from uuid import UUID

from chessduel.core.models import (
    GameModel,
    GameUpdate,
    MoveRecordModel,
    PlayerModel,
    ScoreDelta,
    ScoreModel,
)


class GameRepository(Protocol):
    """Persistence layer orchestration. Every method is a single unit of work: it commits everything or nothing."""

    def create_game(
        self, white_player_name: str, starting_fen: str
    ) -> tuple[GameModel, PlayerModel]:
        """Store a new player (with zeroed score) and a new game waiting for an opponent."""
        ...

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        ...

    def join_game(
        self, game_id: UUID, black_player_name: str
    ) -> tuple[GameModel, PlayerModel] | None:
        """
        Store a new player (with zeroed score), seat them as black and mark the game active.
        Only succeeds while the black slot is empty and the game is waiting: returns None otherwise.
        """
        ...

    def record_move(
        self,
        game_id: UUID,
        move: MoveRecordModel,
        game_update: GameUpdate,
        settlement: list[ScoreDelta],
    ) -> GameModel:
        """
        Append the move record, update the game, and apply the score increments (empty unless the game just ended).
        Raises StaleGameError if a move with the same sequence number was recorded in the meantime.
        """
        ...

    def get_player(self, player_id: UUID) -> PlayerModel | None: ...

    def get_score(self, player_id: UUID) -> ScoreModel | None: ...

    def top_scores(self, limit: int) -> list[tuple[PlayerModel, ScoreModel]]:
        """Ranked by points (descending), then by wins (descending)."""
        ...
