"""Unit tests for chessduel/db/sql_repository.py"""

from unittest.mock import patch
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from chessduel.chess.fen import STARTING_FEN
from chessduel.core.exceptions import RepositoryError, StaleGameError
from chessduel.core.models import GameUpdate, MoveRecordModel, ScoreDelta
from chessduel.core.shared_types import Outcome, PieceType, Status
from chessduel.db.schema import DBPlayer
from chessduel.db.sql_repository import SQLGameRepository

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"
AFTER_D4 = "rnbqkbnr/pppppppp/8/8/3P4/8/PPP1PPPP/RNBQKBNR b KQkq d3 0 1"


def e4_record(sequence: int = 1, fen: str = AFTER_E4) -> MoveRecordModel:
    return MoveRecordModel(
        sequence=sequence,
        from_square="e2",
        to_square="e4",
        promotion=None,
        piece=PieceType.PAWN,
        notation="e4",
        fen=fen,
    )


def seated_game(repo: SQLGameRepository) -> tuple[UUID, UUID, UUID]:
    """game id, white player id, black player id"""
    game, white = repo.create_game("Alice", STARTING_FEN)
    joined = repo.join_game(game.game_id, "Bob")
    assert joined is not None
    _, black = joined
    return game.game_id, white.player_id, black.player_id


def count_players(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(DBPlayer)) or 0


def test_create_game(db_session_repo: Session) -> None:
    """A new game waits for its second player. The creator gets a zeroed score."""
    repo = SQLGameRepository(db_session_repo)
    game, player = repo.create_game("Alice", STARTING_FEN)

    assert game.white_player == player
    assert player.display_name == "Alice"
    assert game.black_player is None
    assert game.current_fen == STARTING_FEN
    assert game.status == Status.WAITING
    assert game.result is None
    assert game.moves == []
    assert game.ended_at is None

    score = repo.get_score(player.player_id)
    assert score is not None
    assert (score.wins, score.losses, score.draws, score.points) == (0, 0, 0, 0)


def test_get_game_by_id(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    game, _ = repo.create_game("Alice", STARTING_FEN)
    assert repo.get_game(game.game_id) == game


def test_get_unknown_game(db_session_repo: Session) -> None:
    """Should return None if ID does not match anything in database."""
    repo = SQLGameRepository(db_session_repo)
    repo.create_game("Alice", STARTING_FEN)
    assert repo.get_game(uuid4()) is None


def test_join_game(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    game, white = repo.create_game("Alice", STARTING_FEN)

    joined = repo.join_game(game.game_id, "Bob")
    assert joined is not None
    game, black = joined
    assert game.black_player == black
    assert black.display_name == "Bob"
    assert game.white_player == white
    assert game.status == Status.ACTIVE
    assert repo.get_score(black.player_id) is not None


def test_black_slot_is_filled_once(db_session_repo: Session) -> None:
    """A second join finds the slot taken. The rejected player is not stored."""
    repo = SQLGameRepository(db_session_repo)
    game_id, _, black_id = seated_game(repo)

    assert repo.join_game(game_id, "Eve") is None
    game = repo.get_game(game_id)
    assert game is not None
    assert game.black_player is not None
    assert game.black_player.player_id == black_id
    assert count_players(db_session_repo) == 2


def test_join_unknown_game(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    assert repo.join_game(uuid4(), "Bob") is None
    assert count_players(db_session_repo) == 0


def test_record_move(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    game_id, _, _ = seated_game(repo)

    game = repo.record_move(
        game_id, e4_record(), GameUpdate(current_fen=AFTER_E4, status=Status.ACTIVE), []
    )
    assert game.current_fen == AFTER_E4
    assert game.status == Status.ACTIVE
    assert len(game.moves) == 1
    move = game.moves[0]
    assert (move.sequence, move.from_square, move.to_square) == (1, "e2", "e4")
    assert move.piece == PieceType.PAWN
    assert move.promotion is None
    assert move.notation == "e4"


def test_moves_are_ordered_by_sequence(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    game_id, _, _ = seated_game(repo)
    update = GameUpdate(current_fen=AFTER_E4, status=Status.ACTIVE)
    for sequence in (1, 2, 3):
        game = repo.record_move(game_id, e4_record(sequence), update, [])
    assert [move.sequence for move in game.moves] == [1, 2, 3]


def test_promotion_is_stored(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    game_id, _, _ = seated_game(repo)
    record = MoveRecordModel(
        sequence=1,
        from_square="a7",
        to_square="a8",
        promotion=PieceType.KNIGHT,
        piece=PieceType.PAWN,
        notation="a8=N",
        fen="N6k/8/8/8/8/8/8/K7 b - - 0 1",
    )
    game = repo.record_move(
        game_id, record, GameUpdate(current_fen=record.fen, status=Status.ACTIVE), []
    )
    assert game.moves[0].promotion == PieceType.KNIGHT


def test_game_end_and_settlement_are_stored_together(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    game_id, white_id, black_id = seated_game(repo)
    game_update = GameUpdate(
        current_fen=AFTER_E4, status=Status.CHECKMATE, result=Outcome.BLACK
    )
    settlement = [
        ScoreDelta(white_id, losses=1),
        ScoreDelta(black_id, wins=1, points=3),
    ]

    game = repo.record_move(game_id, e4_record(), game_update, settlement)
    assert game.status == Status.CHECKMATE
    assert game.result == Outcome.BLACK

    white_score = repo.get_score(white_id)
    black_score = repo.get_score(black_id)
    assert white_score is not None and black_score is not None
    assert (white_score.losses, white_score.points) == (1, 0)
    assert (black_score.wins, black_score.points) == (1, 3)


def test_scores_are_incremented(db_session_repo: Session) -> None:
    """Settlements add up, they never overwrite."""
    repo = SQLGameRepository(db_session_repo)
    game_id, white_id, _ = seated_game(repo)
    update = GameUpdate(current_fen=AFTER_E4, status=Status.ACTIVE)
    repo.record_move(game_id, e4_record(1), update, [ScoreDelta(white_id, draws=1, points=1)])
    repo.record_move(game_id, e4_record(2), update, [ScoreDelta(white_id, wins=1, points=3)])

    score = repo.get_score(white_id)
    assert score is not None
    assert (score.wins, score.draws, score.points, score.games_played) == (1, 1, 4, 2)


def test_duplicate_move_number_is_rejected(db_session_repo: Session) -> None:
    """Second writer of move 1 loses: no second record, no second settlement, game unchanged."""
    repo = SQLGameRepository(db_session_repo)
    game_id, white_id, _ = seated_game(repo)
    settlement = [ScoreDelta(white_id, wins=1, points=3)]
    repo.record_move(
        game_id,
        e4_record(),
        GameUpdate(current_fen=AFTER_E4, status=Status.CHECKMATE, result=Outcome.WHITE),
        settlement,
    )

    with pytest.raises(StaleGameError):
        repo.record_move(
            game_id,
            e4_record(fen=AFTER_D4),
            GameUpdate(current_fen=AFTER_D4, status=Status.ACTIVE),
            settlement,
        )

    game = repo.get_game(game_id)
    assert game is not None
    assert game.current_fen == AFTER_E4
    assert game.status == Status.CHECKMATE
    assert len(game.moves) == 1
    score = repo.get_score(white_id)
    assert score is not None
    assert (score.wins, score.points) == (1, 3)


def test_get_player(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    _, player = repo.create_game("Alice", STARTING_FEN)
    assert repo.get_player(player.player_id) == player
    assert repo.get_player(uuid4()) is None
    assert repo.get_score(uuid4()) is None


def test_top_scores(db_session_repo: Session) -> None:
    """Ranked by points, then wins"""
    repo = SQLGameRepository(db_session_repo)
    first_game, winner_id, loser_id = seated_game(repo)
    second_game, drawer_id, other_drawer_id = seated_game(repo)
    repo.record_move(
        first_game,
        e4_record(),
        GameUpdate(current_fen=AFTER_E4, status=Status.CHECKMATE, result=Outcome.WHITE),
        [ScoreDelta(winner_id, wins=1, points=3), ScoreDelta(loser_id, losses=1)],
    )
    repo.record_move(
        second_game,
        e4_record(),
        GameUpdate(current_fen=AFTER_E4, status=Status.DRAW, result=Outcome.DRAW),
        [
            ScoreDelta(drawer_id, draws=1, points=1),
            ScoreDelta(other_drawer_id, draws=1, points=1),
        ],
    )

    ranking = repo.top_scores(10)
    assert [score.points for _, score in ranking] == [3, 1, 1, 0]
    assert ranking[0][0].player_id == winner_id
    assert ranking[-1][0].player_id == loser_id
    assert len(repo.top_scores(2)) == 2


def test_store_failure_rolls_back(db_session_repo: Session) -> None:
    """Database errors are reported as RepositoryError, nothing is left behind."""
    repo = SQLGameRepository(db_session_repo)
    failure = OperationalError("COMMIT", {}, Exception("disk I/O error"))
    with patch.object(db_session_repo, "commit", side_effect=failure):
        with pytest.raises(RepositoryError):
            repo.create_game("Alice", STARTING_FEN)

    assert count_players(db_session_repo) == 0
    assert repo.top_scores(10) == []


def test_game_missing_after_write(db_session_repo: Session) -> None:
    """A game that cannot be read back after a write is a store failure, not a None."""
    repo = SQLGameRepository(db_session_repo)
    with patch.object(repo, "get_game", return_value=None):
        with pytest.raises(RepositoryError):
            repo.create_game("Alice", STARTING_FEN)


def test_record_move_in_unknown_game(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    update = GameUpdate(current_fen=AFTER_E4, status=Status.ACTIVE)
    with pytest.raises(RepositoryError):
        repo.record_move(uuid4(), e4_record(), update, [])
