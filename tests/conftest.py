"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

import threading
from collections.abc import Generator
from dataclasses import replace
from uuid import UUID, uuid4

import pytest
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from chessduel.core.exceptions import StaleGameError
from chessduel.core.models import (
    GameModel,
    GameUpdate,
    MoveRecordModel,
    PlayerModel,
    ScoreDelta,
    ScoreModel,
)
from chessduel.core.shared_types import Status
from chessduel.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def test_engine() -> Generator[Engine, None, None]:
    """The in-memory engine with fresh tables (dropped at teardown)."""
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session_repo(test_engine: Engine) -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class MockRepository:
    """Mock the GameRepository using dictionaries. Thread-safe, so it can be used to simulate racing requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._games: dict[UUID, GameModel] = {}
        self._players: dict[UUID, PlayerModel] = {}
        self._scores: dict[UUID, ScoreModel] = {}

    def create_game(
        self, white_player_name: str, starting_fen: str
    ) -> tuple[GameModel, PlayerModel]:
        with self._lock:
            player = self._add_player(white_player_name)
            game = GameModel(
                game_id=uuid4(),
                white_player=player,
                black_player=None,
                current_fen=starting_fen,
                status=Status.WAITING,
            )
            self._games[game.game_id] = game
            return replace(game), player

    def get_game(self, game_id: UUID) -> GameModel | None:
        with self._lock:
            game = self._games.get(game_id)
            return replace(game, moves=list(game.moves)) if game else None

    def join_game(
        self, game_id: UUID, black_player_name: str
    ) -> tuple[GameModel, PlayerModel] | None:
        with self._lock:
            game = self._games.get(game_id)
            if game is None or game.black_player is not None:
                return None
            if game.status != Status.WAITING:
                return None
            player = self._add_player(black_player_name)
            joined = replace(game, black_player=player, status=Status.ACTIVE)
            self._games[game_id] = joined
            return replace(joined), player

    def record_move(
        self,
        game_id: UUID,
        move: MoveRecordModel,
        game_update: GameUpdate,
        settlement: list[ScoreDelta],
    ) -> GameModel:
        with self._lock:
            game = self._games[game_id]
            if len(game.moves) + 1 != move.sequence:
                raise StaleGameError(f"Move {move.sequence} already recorded.")
            updated = replace(
                game,
                moves=game.moves + [move],
                current_fen=game_update.current_fen,
                status=game_update.status,
                result=game_update.result,
                ended_at=game_update.ended_at,
            )
            self._games[game_id] = updated
            for delta in settlement:
                score = self._scores[delta.player_id]
                self._scores[delta.player_id] = replace(
                    score,
                    wins=score.wins + delta.wins,
                    losses=score.losses + delta.losses,
                    draws=score.draws + delta.draws,
                    points=score.points + delta.points,
                )
            return replace(updated, moves=list(updated.moves))

    def get_player(self, player_id: UUID) -> PlayerModel | None:
        return self._players.get(player_id)

    def get_score(self, player_id: UUID) -> ScoreModel | None:
        return self._scores.get(player_id)

    def top_scores(self, limit: int) -> list[tuple[PlayerModel, ScoreModel]]:
        ranked = sorted(
            self._scores.values(), key=lambda score: (-score.points, -score.wins)
        )
        return [(self._players[score.player_id], score) for score in ranked[:limit]]

    def clear(self) -> None:
        """Clear the repository (useful in between tests)"""
        self._games.clear()
        self._players.clear()
        self._scores.clear()

    def _add_player(self, name: str) -> PlayerModel:
        player = PlayerModel(player_id=uuid4(), display_name=name)
        self._players[player.player_id] = player
        self._scores[player.player_id] = ScoreModel(player_id=player.player_id)
        return player


@pytest.fixture
def mock_repository() -> Generator[MockRepository, None, None]:
    """Ensures to clear the repository between tests"""
    repo = MockRepository()
    try:
        yield repo
    finally:
        repo.clear()
