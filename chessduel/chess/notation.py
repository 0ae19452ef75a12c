"""
Standard Algebraic Notation (SAN)

ex) e4, Nf3, exd5, Raxd1, R1e2, Qh4xe1, e8=Q, O-O, O-O-O, Qh4#

+ the movetext of a Portable Game Notation (PGN) record: 1. f3 e5 2. g4 Qh4# 0-1
"""

from collections.abc import Sequence
from typing import Optional

from chessduel.chess.moves import Move
from chessduel.chess.pieces import PIECE_TO_FEN, PieceType
from chessduel.chess.position import Position
from chessduel.core.shared_types import Outcome

KING_SIDE_CASTLE = "O-O"
QUEEN_SIDE_CASTLE = "O-O-O"

PGN_RESULTS: dict[Optional[Outcome], str] = {
    Outcome.WHITE: "1-0",
    Outcome.BLACK: "0-1",
    Outcome.DRAW: "1/2-1/2",
    None: "*",
}


def to_san(before: Position, move: Move, after: Position) -> str:
    """Notation of a legal `move` played in `before`, resulting in `after`."""
    return f"{_move_text(before, move)}{_check_suffix(after)}"


def _move_text(before: Position, move: Move) -> str:
    if move.castling_direction is not None:
        return (
            KING_SIDE_CASTLE
            if move.castling_direction.is_king_side
            else QUEEN_SIDE_CASTLE
        )

    piece = before.board.piece(move.from_square)
    is_capture = move.is_en_passant or not before.board.is_empty(move.to_square)
    destination = move.to_square.to_algebraic()

    if piece.type == PieceType.PAWN:
        # pawn captures are written with the file the pawn came from
        prefix = f"{move.from_square.file_name}x" if is_capture else ""
        promotion = (
            f"={PIECE_TO_FEN[move.promote_to].upper()}" if move.promote_to else ""
        )
        return f"{prefix}{destination}{promotion}"

    letter = PIECE_TO_FEN[piece.type].upper()
    capture = "x" if is_capture else ""
    return f"{letter}{_disambiguation(before, move)}{capture}{destination}"


def _disambiguation(before: Position, move: Move) -> str:
    """
    When two (or more) identical pieces can move to the same square, add the file of departure if that tells them apart,
    otherwise the rank, and if neither is enough, both.
    """
    piece = before.board.piece(move.from_square)
    rivals = [
        other.from_square
        for other in before.legal_moves()
        if other.to_square == move.to_square
        and other.from_square != move.from_square
        and before.board.piece(other.from_square) == piece
    ]
    if not rivals:
        return ""

    origin = move.from_square
    if all(square.file != origin.file for square in rivals):
        return origin.file_name
    if all(square.rank != origin.rank for square in rivals):
        return str(origin.rank)
    return origin.to_algebraic()


def _check_suffix(after: Position) -> str:
    if not after.is_check():
        return ""
    return "#" if not after.has_legal_move() else "+"


def to_pgn(sans: Sequence[str], outcome: Optional[Outcome] = None) -> str:
    """
    Movetext of a game started from the initial position, closed by the result ('*' while the game is still going).
    Every white move gets a move number.
    """
    tokens: list[str] = []
    for index, san in enumerate(sans):
        if index % 2 == 0:
            tokens.append(f"{index // 2 + 1}.")
        tokens.append(san)
    tokens.append(PGN_RESULTS[outcome])
    return " ".join(tokens)
