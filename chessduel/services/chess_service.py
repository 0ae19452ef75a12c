"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID

from chessduel.api.models import (
    CreateGameRequest,
    GameResponse,
    GetGameRequest,
    GetPlayerRequest,
    JoinGameRequest,
    LeaderboardEntry,
    LeaderboardRequest,
    LeaderboardResponse,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveDetail,
    MoveRecordResponse,
    MoveRequest,
    MoveResponse,
    PlayerResponse,
    ScoreResponse,
    SeatResponse,
)
from chessduel.chess import adjudicator
from chessduel.chess.fen import STARTING_FEN, has_started, side_to_move
from chessduel.chess.moves import build_uci
from chessduel.chess.notation import to_pgn
from chessduel.core.config import Settings
from chessduel.core.exceptions import (
    AlreadyStartedError,
    NotActiveError,
    NotFoundError,
    NotYourTurnError,
    SlotTakenError,
)
from chessduel.core.models import GameModel, GameUpdate, MoveRecordModel, utc_now
from chessduel.core.shared_types import Color, Status
from chessduel.db.repository import GameRepository
from chessduel.services.locks import SessionLocks
from chessduel.services.settlement import settlement_deltas

logger = logging.getLogger(__name__)


class ChessService:
    """Orchestration of layers for chess game (the Session Coordinator)."""

    def __init__(
        self,
        repository: GameRepository,
        locks: Optional[SessionLocks] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repo = repository
        # NOTE: share one SessionLocks between all services of a process, otherwise moves on a game are not serialized.
        self.locks = locks if locks is not None else SessionLocks()
        self.settings = settings if settings is not None else Settings()

    # -- API routes logic ---
    def create_game(self, request: CreateGameRequest) -> SeatResponse:
        """First player requested to create a new game. They play white."""
        game, player = self.repo.create_game(request.player_name, STARTING_FEN)
        logger.info("Game %s created by player %s", game.game_id, player.player_id)
        return self._create_seat_response(game, player.player_id, Color.WHITE)

    def join_game(self, request: JoinGameRequest) -> SeatResponse:
        """
        Second player requested to join a game. They play black.
        ----

        The join is what makes the game playable: status goes from waiting to active.
        """
        with self.locks.hold(request.game_id):
            game = self._fetch_game(request.game_id)

            if game.black_player is not None:
                raise SlotTakenError(f"Game {request.game_id} already has two players.")
            if game.status != Status.WAITING or has_started(game.current_fen):
                raise AlreadyStartedError(
                    f"Game {request.game_id} already started or finished. status: {game.status}"
                )

            joined = self.repo.join_game(request.game_id, request.player_name)
            if joined is None:
                # lost the race against a request outside of this process
                raise SlotTakenError(f"Game {request.game_id} already has two players.")

        game, player = joined
        logger.info("Player %s joined game %s", player.player_id, game.game_id)
        return self._create_seat_response(game, player.player_id, Color.BLACK)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        return self._create_game_response(self._fetch_game(request.game_id))

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """Retrieve set of legal moves for the side to move (optionally: only the moves of the piece on one square)."""
        game = self._fetch_game(request.game_id)
        if game.status != Status.ACTIVE:
            raise NotActiveError(f"Game is not active. status: {game.status}")

        return LegalMovesResponse(
            game_id=game.game_id,
            color=side_to_move(game.current_fen).to_shared(),
            legal_moves=adjudicator.legal_moves(game.current_fen, request.square),
        )

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """
        Make a move attempt
        -----

        1. the game must exist and be active
        2. the player must be seated in the game, and it must be their turn (derived from the FEN)
        3. the Adjudicator decides on legality and the status after the move
        4. move record, game update and (if the game ended) the score settlement are stored as one unit

        Everything happens while holding the game's lock: two requests can never both be accepted as the same move.
        """
        with self.locks.hold(request.game_id):
            game = self._fetch_game(request.game_id)

            if game.status != Status.ACTIVE:
                raise NotActiveError(f"Game is not active. status: {game.status}")

            self._assert_your_turn(game, request.player_id)

            # Adjudicate (raises IllegalMoveError, nothing has been written yet)
            move_uci = build_uci(
                from_square_alg=request.from_square,
                to_square_alg=request.to_square,
                promotion=request.promotion.value if request.promotion else None,
            )
            adjudication = adjudicator.apply(
                game.current_fen, move_uci, history=self._history_fens(game)
            )

            ended_at = utc_now() if adjudication.status.is_terminal else None
            record = MoveRecordModel(
                sequence=len(game.moves) + 1,
                from_square=adjudication.move.from_square.to_algebraic(),
                to_square=adjudication.move.to_square.to_algebraic(),
                promotion=(
                    adjudication.move.promote_to.to_shared()
                    if adjudication.move.promote_to
                    else None
                ),
                piece=adjudication.piece.to_shared(),
                notation=adjudication.notation,
                fen=adjudication.fen,
            )
            game_update = GameUpdate(
                current_fen=adjudication.fen,
                status=adjudication.status,
                result=adjudication.outcome,
                ended_at=ended_at,
            )
            settlement = settlement_deltas(game, adjudication.outcome)
            updated_game = self.repo.record_move(
                game.game_id, record, game_update, settlement
            )

        logger.debug(
            "Game %s: move %d %s", game.game_id, record.sequence, record.notation
        )
        if adjudication.status.is_terminal:
            logger.info(
                "Game %s ended: %s, result %s",
                game.game_id,
                adjudication.status,
                adjudication.outcome,
            )

        return MoveResponse(
            success=True,
            move=MoveDetail(
                piece=record.piece,
                from_square=record.from_square,
                to_square=record.to_square,
                promotion=record.promotion,
                notation=record.notation,
            ),
            game=self._create_game_response(updated_game),
            status=adjudication.status,
            is_check=adjudication.is_check,
            is_checkmate=adjudication.is_checkmate,
            is_stalemate=adjudication.is_stalemate,
            is_draw=adjudication.is_draw,
        )

    def get_player(self, request: GetPlayerRequest) -> PlayerResponse:
        player = self.repo.get_player(request.player_id)
        score = self.repo.get_score(request.player_id)
        if player is None or score is None:
            raise NotFoundError(f"Player with player_id={request.player_id} not found.")
        return PlayerResponse(
            player_id=player.player_id,
            display_name=player.display_name,
            score=ScoreResponse(
                wins=score.wins,
                losses=score.losses,
                draws=score.draws,
                points=score.points,
                games_played=score.games_played,
            ),
        )

    def leaderboard(self, request: LeaderboardRequest) -> LeaderboardResponse:
        """Best players first (points, then wins). The number of entries is capped."""
        limit = min(
            request.limit or self.settings.leaderboard_default_limit,
            self.settings.leaderboard_max_limit,
        )
        return LeaderboardResponse(
            leaderboard=[
                LeaderboardEntry(
                    rank=rank,
                    player_id=player.player_id,
                    player_name=player.display_name,
                    wins=score.wins,
                    losses=score.losses,
                    draws=score.draws,
                    points=score.points,
                    games_played=score.games_played,
                )
                for rank, (player, score) in enumerate(
                    self.repo.top_scores(limit), start=1
                )
            ]
        )

    # -- Internal helpers --
    def _assert_your_turn(self, game: GameModel, player_id: UUID) -> None:
        """You must wait for your turn before making a move. Whose turn it is comes from the FEN, nowhere else."""
        player_color = game.player_color(player_id)
        if player_color is None:
            raise NotFoundError(
                f"Player with {player_id=} does not play in game {game.game_id}."
            )

        color_to_move = side_to_move(game.current_fen).to_shared()
        if player_color != color_to_move:
            logger.warning(
                "Game %s: %s tried to move while it is %s's turn",
                game.game_id,
                player_color,
                color_to_move,
            )
            raise NotYourTurnError(
                f"It is not your turn. Waiting for {color_to_move} to make a move first."
            )

    def _history_fens(self, game: GameModel) -> list[str]:
        """Positions reached before the current one (oldest first). Needed for the repetition rule."""
        fens = [STARTING_FEN] + [move.fen for move in game.moves]
        return fens[:-1]

    def _create_game_response(self, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse"""
        moves = sorted(model.moves, key=lambda move: move.sequence)
        return GameResponse(
            game_id=model.game_id,
            white_player_id=model.white_player.player_id,
            white_player_name=model.white_player.display_name,
            black_player_id=model.black_player.player_id if model.black_player else None,
            black_player_name=(
                model.black_player.display_name if model.black_player else None
            ),
            status=model.status,
            result=model.result,
            fen=model.current_fen,
            turn=side_to_move(model.current_fen).to_shared(),
            moves=[
                MoveRecordResponse(
                    sequence=move.sequence,
                    from_square=move.from_square,
                    to_square=move.to_square,
                    promotion=move.promotion,
                    piece=move.piece,
                    notation=move.notation,
                    fen=move.fen,
                )
                for move in moves
            ],
            pgn=to_pgn([move.notation for move in moves], model.result),
            created_at=model.created_at,
            ended_at=model.ended_at,
        )

    def _create_seat_response(
        self, model: GameModel, player_id: UUID, color: Color
    ) -> SeatResponse:
        return SeatResponse(
            game_id=model.game_id,
            player_id=player_id,
            color=color,
            game=self._create_game_response(model),
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise NotFoundError(f"Game with {game_id=} not found.")
        return game_model


