"""Requests and Response models"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from chessduel.chess.square import is_valid_square
from chessduel.core.exceptions import InvalidRequestError
from chessduel.core.shared_types import Color, Outcome, PieceType, Status

MAX_NAME_LENGTH = 64

PROMOTION_NAMES: dict[str, PieceType] = {
    "q": PieceType.QUEEN,
    "r": PieceType.ROOK,
    "b": PieceType.BISHOP,
    "n": PieceType.KNIGHT,
    PieceType.QUEEN.value: PieceType.QUEEN,
    PieceType.ROOK.value: PieceType.ROOK,
    PieceType.BISHOP.value: PieceType.BISHOP,
    PieceType.KNIGHT.value: PieceType.KNIGHT,
}


def _validate_player_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise InvalidRequestError("Player name is required.")
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidRequestError(
            f"Player name is limited to {MAX_NAME_LENGTH} characters."
        )
    return name


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    player_name: str

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _validate_player_name(value)


class JoinGameRequest(BaseModel):
    game_id: UUID
    player_name: str

    @field_validator("player_name")
    @classmethod
    def validate_player_name(cls, value: str) -> str:
        return _validate_player_name(value)


class MoveRequest(BaseModel):
    game_id: UUID
    player_id: UUID
    from_square: str
    to_square: str
    promotion: Optional[PieceType] = None

    @field_validator("from_square", "to_square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        value = value.strip().lower()
        if not is_valid_square(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value

    @field_validator("promotion", mode="before")
    @classmethod
    def validate_promotion(cls, value: Optional[str]) -> Optional[PieceType]:
        """Accept both FEN characters ('q') and piece names ('queen')"""
        if value is None or value == "":
            return None
        piece_type = PROMOTION_NAMES.get(str(value).strip().lower())
        if piece_type is None:
            raise InvalidRequestError(f"Cannot promote a pawn into {value!r}.")
        return piece_type


class GetGameRequest(BaseModel):
    game_id: UUID


class LegalMovesRequest(BaseModel):
    game_id: UUID
    square: Optional[str] = None

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        value = value.strip().lower()
        if not is_valid_square(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a valid square name."
            )
        return value


class GetPlayerRequest(BaseModel):
    player_id: UUID


class LeaderboardRequest(BaseModel):
    limit: Optional[int] = None

    @field_validator("limit")
    @classmethod
    def validate_limit(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 1:
            raise InvalidRequestError("Leaderboard limit must be at least 1.")
        return value


# --- RESPONSE MODELS ---
class MoveRecordResponse(BaseModel):
    sequence: int
    from_square: str
    to_square: str
    promotion: Optional[PieceType]
    piece: PieceType
    notation: str
    fen: str


class GameResponse(BaseModel):
    """Snapshot of a game, as polled by the clients"""

    game_id: UUID
    white_player_id: UUID
    white_player_name: str
    black_player_id: Optional[UUID]
    black_player_name: Optional[str]
    status: Status
    result: Optional[Outcome]
    fen: str
    turn: Color
    moves: list[MoveRecordResponse]
    pgn: str
    created_at: datetime
    ended_at: Optional[datetime]


class SeatResponse(BaseModel):
    """Answer to creating or joining a game: the identity assigned to the player + the game"""

    game_id: UUID
    player_id: UUID
    color: Color
    game: GameResponse


class MoveDetail(BaseModel):
    piece: PieceType
    from_square: str
    to_square: str
    promotion: Optional[PieceType]
    notation: str


class MoveResponse(BaseModel):
    success: bool
    move: MoveDetail
    game: GameResponse
    status: Status
    is_check: bool
    is_checkmate: bool
    is_stalemate: bool
    is_draw: bool


class LegalMovesResponse(BaseModel):
    game_id: UUID
    color: Color
    legal_moves: list[str]


class ScoreResponse(BaseModel):
    wins: int
    losses: int
    draws: int
    points: int
    games_played: int


class PlayerResponse(BaseModel):
    player_id: UUID
    display_name: str
    score: ScoreResponse


class LeaderboardEntry(BaseModel):
    rank: int
    player_id: UUID
    player_name: str
    wins: int
    losses: int
    draws: int
    points: int
    games_played: int


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardEntry]
