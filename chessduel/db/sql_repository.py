"""Implementation of (Game)Repository using SQLAlchemy"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from chessduel.core.exceptions import RepositoryError, StaleGameError
from chessduel.core.models import (
    GameModel,
    GameUpdate,
    MoveRecordModel,
    PlayerModel,
    ScoreDelta,
    ScoreModel,
)
from chessduel.core.shared_types import Outcome, PieceType, Status
from chessduel.db.schema import DBGame, DBMove, DBPlayer, DBScore

logger = logging.getLogger(__name__)


class SQLGameRepository:
    """Data stored using SQL / methods implemented using SQLAlchemy"""

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def create_game(
        self, white_player_name: str, starting_fen: str
    ) -> tuple[GameModel, PlayerModel]:
        """Store a new player (with zeroed score) and a new game waiting for an opponent."""
        with self._unit_of_work():
            player_db = self._add_player(white_player_name)
            game_db = DBGame(
                id=uuid4(),
                white_player_id=player_db.id,
                current_fen=starting_fen,
                status=Status.WAITING.value,
            )
            self.db.add(game_db)

        return self._reload_game(game_db.id), self._to_player_model(player_db)

    def get_game(self, game_id: UUID) -> GameModel | None:
        """Get game by ID, if record exists."""
        game_db = self._fetch_game(game_id)
        if game_db:
            return self._to_model(game_db)
        return None

    def join_game(
        self, game_id: UUID, black_player_name: str
    ) -> tuple[GameModel, PlayerModel] | None:
        """Conditional update: only one request can fill the empty black slot."""
        with self._unit_of_work():
            player_db = self._add_player(black_player_name)
            self.db.flush()
            result = self.db.execute(
                update(DBGame)
                .where(
                    DBGame.id == game_id,
                    DBGame.black_player_id.is_(None),
                    DBGame.status == Status.WAITING.value,
                )
                .values(black_player_id=player_db.id, status=Status.ACTIVE.value)
            )
            if result.rowcount != 1:
                # slot got taken (or game vanished): do not keep the new player around
                self.db.rollback()
                return None

        return self._reload_game(game_id), self._to_player_model(player_db)

    def record_move(
        self,
        game_id: UUID,
        move: MoveRecordModel,
        game_update: GameUpdate,
        settlement: list[ScoreDelta],
    ) -> GameModel:
        """Move record + game update + score increments, committed together."""
        try:
            with self._unit_of_work():
                game_db = self._fetch_game(game_id)
                if game_db is None:
                    raise RepositoryError(f"Game with {game_id=} vanished.")

                self.db.add(
                    DBMove(
                        game_id=game_id,
                        sequence=move.sequence,
                        from_square=move.from_square,
                        to_square=move.to_square,
                        promotion=move.promotion.value if move.promotion else None,
                        piece=move.piece.value,
                        notation=move.notation,
                        fen=move.fen,
                        created_at=move.created_at,
                    )
                )
                game_db.current_fen = game_update.current_fen
                game_db.status = game_update.status.value
                game_db.result = game_update.result.value if game_update.result else None
                game_db.ended_at = game_update.ended_at

                for delta in settlement:
                    self._increment_score(delta)
        except IntegrityError as error:
            raise StaleGameError(
                f"Move {move.sequence} of game {game_id} was already recorded."
            ) from error

        return self._reload_game(game_id)

    def get_player(self, player_id: UUID) -> PlayerModel | None:
        player_db = self.db.get(DBPlayer, player_id)
        return self._to_player_model(player_db) if player_db else None

    def get_score(self, player_id: UUID) -> ScoreModel | None:
        score_db = self.db.scalar(select(DBScore).where(DBScore.player_id == player_id))
        return self._to_score_model(score_db) if score_db else None

    def top_scores(self, limit: int) -> list[tuple[PlayerModel, ScoreModel]]:
        query = (
            select(DBScore)
            .options(selectinload(DBScore.player))
            .order_by(DBScore.points.desc(), DBScore.wins.desc())
            .limit(limit)
        )
        return [
            (self._to_player_model(score_db.player), self._to_score_model(score_db))
            for score_db in self.db.scalars(query)
        ]

    # -- Internal helpers --
    @contextmanager
    def _unit_of_work(self) -> Iterator[None]:
        """Commit on success. Roll back on any failure, so no partial state is left behind."""
        try:
            yield
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as error:
            self.db.rollback()
            logger.exception("Database failure, transaction rolled back")
            raise RepositoryError("The game store is unavailable.") from error
        except Exception:
            self.db.rollback()
            raise

    def _add_player(self, display_name: str) -> DBPlayer:
        player_db = DBPlayer(id=uuid4(), display_name=display_name)
        self.db.add(player_db)
        self.db.add(DBScore(player_id=player_db.id))
        return player_db

    def _increment_score(self, delta: ScoreDelta) -> None:
        """Increment in SQL (col = col + n), never read-modify-write in Python."""
        self.db.execute(
            update(DBScore)
            .where(DBScore.player_id == delta.player_id)
            .values(
                wins=DBScore.wins + delta.wins,
                losses=DBScore.losses + delta.losses,
                draws=DBScore.draws + delta.draws,
                points=DBScore.points + delta.points,
            )
        )

    def _reload_game(self, game_id: UUID) -> GameModel:
        """Read back a game this repository just wrote."""
        self.db.expire_all()
        game = self.get_game(game_id)
        if game is None:
            raise RepositoryError(f"Game with {game_id=} vanished after being written.")
        return game

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        query = (
            select(DBGame)
            .where(DBGame.id == game_id)
            .options(
                selectinload(DBGame.white_player),
                selectinload(DBGame.black_player),
                selectinload(DBGame.moves),
            )
        )
        return self.db.scalar(query)

    def _to_model(self, game_db: DBGame) -> GameModel:
        """Convert SQLAlchemy model to data transfer model."""
        black_player: Optional[PlayerModel] = (
            self._to_player_model(game_db.black_player)
            if game_db.black_player
            else None
        )
        return GameModel(
            game_id=game_db.id,
            white_player=self._to_player_model(game_db.white_player),
            black_player=black_player,
            current_fen=game_db.current_fen,
            status=Status(game_db.status),
            result=Outcome(game_db.result) if game_db.result else None,
            moves=[self._to_move_model(move_db) for move_db in game_db.moves],
            created_at=game_db.created_at,
            ended_at=game_db.ended_at,
        )

    @staticmethod
    def _to_player_model(player_db: DBPlayer) -> PlayerModel:
        return PlayerModel(player_id=player_db.id, display_name=player_db.display_name)

    @staticmethod
    def _to_score_model(score_db: DBScore) -> ScoreModel:
        return ScoreModel(
            player_id=score_db.player_id,
            wins=score_db.wins,
            losses=score_db.losses,
            draws=score_db.draws,
            points=score_db.points,
        )

    @staticmethod
    def _to_move_model(move_db: DBMove) -> MoveRecordModel:
        return MoveRecordModel(
            sequence=move_db.sequence,
            from_square=move_db.from_square,
            to_square=move_db.to_square,
            promotion=PieceType(move_db.promotion) if move_db.promotion else None,
            piece=PieceType(move_db.piece),
            notation=move_db.notation,
            fen=move_db.fen,
            created_at=move_db.created_at,
        )
