"""Unit tests for chessduel/chess/pieces.py"""

import pytest

from chessduel.chess.pieces import (
    EMPTY,
    FEN_TO_PIECE,
    PIECE_TO_FEN,
    Color,
    Piece,
    PieceType,
)
from chessduel.core import shared_types


@pytest.mark.parametrize("char", [char.upper() for char in FEN_TO_PIECE.keys()])
def test_creating_white_piece_from_fen(char: str) -> None:
    """Capital letters are used for white pieces"""
    piece = Piece.from_fen(char)
    assert piece.type == FEN_TO_PIECE[char.lower()]
    assert piece.color == Color.WHITE


@pytest.mark.parametrize("char", [char.lower() for char in FEN_TO_PIECE.keys()])
def test_creating_black_piece_from_fen(char: str) -> None:
    """Lower case letters are used for black pieces"""
    piece = Piece.from_fen(char)
    assert piece.type == FEN_TO_PIECE[char.lower()]
    assert piece.color == Color.BLACK


@pytest.mark.parametrize(
    "piece_type",
    [piece_type for piece_type in PieceType if piece_type != PieceType.EMPTY],
)
def test_pieces_to_fen(piece_type: PieceType) -> None:
    assert Piece(piece_type, Color.WHITE).to_fen() == PIECE_TO_FEN[piece_type].upper()
    assert Piece(piece_type, Color.BLACK).to_fen() == PIECE_TO_FEN[piece_type].lower()


@pytest.mark.parametrize("color", [Color.WHITE, Color.BLACK])
def test_promotion_creates_new_piece(color: Color) -> None:
    """Pieces are frozen: promoting returns a new piece of the same color, the pawn is untouched."""
    pawn = Piece(PieceType.PAWN, color)
    queen = pawn.promoted_to(PieceType.QUEEN)
    assert queen == Piece(PieceType.QUEEN, color)
    assert pawn.type == PieceType.PAWN


def test_opponent() -> None:
    assert Color.WHITE.opponent == Color.BLACK
    assert Color.BLACK.opponent == Color.WHITE
    assert Color.NONE.opponent == Color.NONE


def test_empty_square() -> None:
    assert EMPTY.is_empty()
    assert not Piece(PieceType.KING, Color.WHITE).is_empty()


@pytest.mark.parametrize(
    "piece_type",
    [piece_type for piece_type in PieceType if piece_type != PieceType.EMPTY],
)
def test_conversion_to_shared_piece_type(piece_type: PieceType) -> None:
    shared = piece_type.to_shared()
    assert isinstance(shared, shared_types.PieceType)
    assert shared.name == piece_type.name


def test_conversion_to_shared_color() -> None:
    assert Color.WHITE.to_shared() == shared_types.Color.WHITE
    assert Color.BLACK.to_shared() == shared_types.Color.BLACK
