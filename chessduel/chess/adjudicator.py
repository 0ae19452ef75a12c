"""
The Adjudicator decides whether a requested move is legal and what it leads to.

`apply()` is a pure function of its inputs: it reads a position (and the earlier positions of the game, for the repetition rule),
never mutates them, and either returns an `Adjudication` or raises `IllegalMoveError`.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from chessduel.chess.moves import DEFAULT_PROMOTION, Move, is_valid_uci
from chessduel.chess.notation import to_san
from chessduel.chess.pieces import Color, PieceType
from chessduel.chess.position import Position
from chessduel.chess.square import Square, is_valid_square
from chessduel.core.exceptions import IllegalMoveError
from chessduel.core.shared_types import Outcome, Status

PositionLike = Position | str


@dataclass(frozen=True)
class Adjudication:
    """Everything the Session Coordinator needs to know about an accepted move"""

    position: Position
    move: Move
    piece: PieceType
    notation: str
    is_check: bool
    status: Status
    outcome: Optional[Outcome]

    @property
    def fen(self) -> str:
        return self.position.to_fen()

    @property
    def is_checkmate(self) -> bool:
        return self.status == Status.CHECKMATE

    @property
    def is_stalemate(self) -> bool:
        return self.status == Status.STALEMATE

    @property
    def is_draw(self) -> bool:
        """Any result without a winner (stalemate included)"""
        return self.status in (Status.STALEMATE, Status.DRAW)


def _as_position(position: PositionLike) -> Position:
    return Position.from_fen(position) if isinstance(position, str) else position


def apply(
    position: PositionLike, move_uci: str, history: Sequence[PositionLike] = ()
) -> Adjudication:
    """
    Validate and play a move
    ----

    1. the move must be well-formed UCI (squares a1-h8, optional promotion character)
    2. there must be a piece of the side to move on the source square
    3. the move must be in the set of legal moves (covers every rule violation)
    4. a pawn reaching the last rank without a promotion piece becomes a queen

    `history` holds the earlier positions of the game (oldest first), needed for the threefold repetition rule.
    """
    current = _as_position(position)

    if not is_valid_uci(move_uci):
        raise IllegalMoveError(f"Cannot interpret {move_uci!r} as a move.")

    requested = Move.from_uci(move_uci)
    moving_piece = current.board.piece(requested.from_square)
    if moving_piece.is_empty():
        raise IllegalMoveError(
            f"No piece on {requested.from_square.to_algebraic()}."
        )
    if moving_piece.color != current.color_to_move:
        raise IllegalMoveError(
            f"The piece on {requested.from_square.to_algebraic()} belongs to the opponent."
        )

    move = _match_legal_move(current, requested)
    if move is None:
        raise IllegalMoveError(f"Move not allowed: {move_uci}")

    after = current.play(move)
    status = classify(after, [_as_position(previous) for previous in history] + [current])
    return Adjudication(
        position=after,
        move=move,
        piece=moving_piece.type,
        notation=to_san(current, move, after),
        is_check=after.is_check(),
        status=status,
        outcome=outcome_for(status, after),
    )


def _match_legal_move(position: Position, requested: Move) -> Optional[Move]:
    """
    Find the legal move with the requested squares.
    Promotion piece defaults to a queen. A promotion piece requested for a move that does not promote is ignored.
    """
    candidates = [
        move for move in position.legal_moves() if move.same_squares(requested)
    ]
    if not candidates:
        return None

    promotes = any(move.promote_to is not None for move in candidates)
    if not promotes:
        return candidates[0]

    wanted = requested.promote_to or DEFAULT_PROMOTION
    return next((move for move in candidates if move.promote_to == wanted), None)


def classify(position: Position, history: Sequence[Position] = ()) -> Status:
    """
    Status of the game in `position` (a position reached by a move).
    Order: checkmate > stalemate > draw (repetition, fifty-move rule, insufficient material) > active
    """
    if not position.has_legal_move():
        return Status.CHECKMATE if position.is_check() else Status.STALEMATE

    if (
        position.is_threefold_repetition(history)
        or position.is_fifty_move_draw()
        or position.is_insufficient_material()
    ):
        return Status.DRAW
    return Status.ACTIVE


def outcome_for(status: Status, position: Position) -> Optional[Outcome]:
    """Checkmate: the side that just moved (so NOT the side to move) wins. Stalemate and draws: draw."""
    if status == Status.CHECKMATE:
        return Outcome.WHITE if position.color_to_move == Color.BLACK else Outcome.BLACK
    if status in (Status.STALEMATE, Status.DRAW):
        return Outcome.DRAW
    return None


def legal_moves(position: PositionLike, square: Optional[str] = None) -> list[str]:
    """Legal moves (UCI) for the side to move, optionally only those starting on `square`."""
    current = _as_position(position)
    if square is None:
        moves = current.legal_moves()
    elif is_valid_square(square):
        moves = current.legal_moves_from(Square.from_algebraic(square))
    else:
        raise IllegalMoveError(f"Cannot interpret {square!r} as a square.")
    return [move.to_uci() for move in moves]
