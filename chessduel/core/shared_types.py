"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING = "waiting"
    ACTIVE = "active"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({Status.CHECKMATE, Status.STALEMATE, Status.DRAW})


class Outcome(StrEnum):
    WHITE = "white"
    BLACK = "black"
    DRAW = "draw"


# --- NOTE: Color and PieceType here DO NOT contain options for empty squares (see chessduel/chess/pieces.py)
# --- Same names as the domain versions, the imports show which one is used where.


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"
