"""
The part of a position that can be encoded in a FEN string, plus validation of FEN strings.
"""

from dataclasses import dataclass, replace
from typing import Optional, Self

from chessduel.chess.castling import (
    CastlingDirection,
    castling_from_fen,
    castling_to_fen,
)
from chessduel.chess.pieces import FEN_TO_PIECE, Color
from chessduel.chess.square import (
    BOARD_DIMENSIONS,
    RANK_NAMES,
    Square,
    is_valid_square,
)
from chessduel.core.exceptions import InvalidFENError

STARTING_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows proper FEN notation.
    """

    # there should be 6 parts to the string
    parts = fen.split(" ")
    if len(parts) != 6:
        return False

    position, color, castling, en_passant, half_move_counter, full_move_counter = parts
    return (
        is_valid_position(position)
        and is_valid_color_code(color)
        and is_valid_castling_rights(castling)
        and is_valid_en_passant(en_passant)
        and is_valid_move_counter(half_move_counter)
        and is_valid_move_counter(full_move_counter)
        and int(full_move_counter) >= 1
    )


def is_valid_position(position: str) -> bool:
    """Only check the part of the FEN encoding for the board position. Each side needs exactly one king."""
    num_files, num_ranks = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_ranks:
        return False

    for rank_fen in rank_fens:
        file_count = 0
        for character in rank_fen:
            # make sure every character is valid
            if character in RANK_NAMES:
                file_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                file_count += 1
            else:
                # immediately invalidate if the character is anything else
                return False

        # make sure you are creating a correctly sized board
        if file_count != num_files:
            return False
    return position.count("K") == 1 and position.count("k") == 1


def is_valid_color_code(color: str) -> bool:
    return color in {"w", "b"}


def is_valid_castling_rights(castling: str) -> bool:
    """A valid castling encoding has either KQkq, KQk, etc. (in that order) or a '-' if all rights have been revoked."""
    if castling == "-":
        return True
    return castling_to_fen(castling_from_fen(castling)) == castling


def is_valid_en_passant(en_passant: str) -> bool:
    """Valid en passant square encoding should be a square on the 3rd or 6th rank or a '-'"""
    if en_passant == "-":
        return True
    return is_valid_square(en_passant) and en_passant[1] in {"3", "6"}


def is_valid_move_counter(counter: str) -> bool:
    return counter.isascii() and counter.isdigit()


@dataclass(frozen=True)
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----

    FEN, or Forsyth-Edwards Notation, is a standard notation for describing a particular board position of a chess game.
    The purpose of FEN is to provide all the necessary information to restart a game from a particular position.

    <board position string><active color><castling rights><en passant square><# half move clock><number turns played>

    * The string to describe the board position is described in the Board class
    * The active color is either "w" or "b"
    * Castling rights are denoted as "k" for king-side or "q" for queen-side. Capital letters for the white pieces, small letters for the black pieces.
        In the starting position: KQkq (all rights available), and as rights get revoked the letter is dropped ("-" if none are left).
    * The en passant square indicates the square a pawn can take on. If not available a "-" is used.
    * The half move clock counts the number of half moves made since the last pawn move or capture. (Used for the fifty-move rule)
    * The number of turns starts at 1 and increments after every move black makes.

    ex) The standard starting position has a FEN
    rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1
    i.e. it is white to move, all castling options available, no en passant square, no half moves and we are in the first turn.

    NOTE: frozen. A move produces a new FENState (see `dataclasses.replace`), the old one stays valid.
    """

    position: str
    color_to_move: Color
    castling_rights: frozenset[CastlingDirection]
    en_passant_square: Optional[Square]
    half_move_clock: int
    num_turns: int

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data"""

        # raise an exception if invalid FEN:
        if not is_valid_fen(fen):
            raise InvalidFENError(f"Cannot interpret supplied string as FEN: {fen}")

        # extract the different components. FEN is space separated
        (
            position,
            active_color,
            castling_str,
            en_passant_algebraic,
            half_move_clock,
            num_turns,
        ) = fen.split(" ")

        color_to_move = Color.WHITE if active_color == "w" else Color.BLACK
        en_passant_square = (
            Square.from_algebraic(en_passant_algebraic)
            if en_passant_algebraic != "-"
            else None
        )
        return cls(
            position,
            color_to_move,
            castling_from_fen(castling_str),
            en_passant_square,
            int(half_move_clock),
            int(num_turns),
        )

    def to_fen(self) -> str:
        """reverse operation: write a FEN from the given data"""
        active_color = "w" if self.color_to_move == Color.WHITE else "b"
        castling_str = castling_to_fen(self.castling_rights)

        en_passant_algebraic = (
            self.en_passant_square.to_algebraic()
            if self.en_passant_square is not None
            else "-"
        )
        return f"{self.position} {active_color} {castling_str} {en_passant_algebraic} {self.half_move_clock} {self.num_turns}"

    def castling_options(self, color: Color) -> list[CastlingDirection]:
        """Rights (not yet revoked) for the given color"""
        return [
            direction
            for direction in self.castling_rights
            if direction.color == color
        ]

    def can_castle(self, color: Color) -> bool:
        return bool(self.castling_options(color))

    def without_castling_rights(self, *directions: CastlingDirection) -> Self:
        return replace(self, castling_rights=self.castling_rights - set(directions))


# --- DERIVED GAME INFO ---
# Whose turn it is / whether a game started are never stored next to the FEN: always derive them from it.
def side_to_move(fen: str) -> Color:
    """The color whose turn it is in the given FEN."""
    return FENState.from_fen(fen).color_to_move


def has_started(fen: str, starting_fen: str = STARTING_FEN) -> bool:
    """True once at least one move was played from the starting position"""
    return fen != starting_fen
