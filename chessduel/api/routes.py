"""HTTP routes. Thin: parse the request, hand it to the ChessService, return its response."""

from collections.abc import Generator
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from chessduel.api.models import (
    CreateGameRequest,
    GameResponse,
    GetGameRequest,
    GetPlayerRequest,
    JoinGameRequest,
    LeaderboardRequest,
    LeaderboardResponse,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveRequest,
    MoveResponse,
    PlayerResponse,
    SeatResponse,
)
from chessduel.db.database import session_scope
from chessduel.db.sql_repository import SQLGameRepository
from chessduel.services.chess_service import ChessService

router = APIRouter()


def get_db(request: Request) -> Generator[Session, None, None]:
    yield from session_scope(request.app.state.session_factory)


def get_service(
    request: Request, db: Annotated[Session, Depends(get_db)]
) -> ChessService:
    return ChessService(
        SQLGameRepository(db),
        locks=request.app.state.session_locks,
        settings=request.app.state.settings,
    )


Service = Annotated[ChessService, Depends(get_service)]


@router.post("/games", response_model=SeatResponse)
def create_game(
    service: Service, player_name: Annotated[str, Body(embed=True)]
) -> SeatResponse:
    return service.create_game(CreateGameRequest(player_name=player_name))


@router.get("/games/{game_id}", response_model=GameResponse)
def get_game(service: Service, game_id: UUID) -> GameResponse:
    return service.get_game_state(GetGameRequest(game_id=game_id))


@router.post("/games/{game_id}/join", response_model=SeatResponse)
def join_game(
    service: Service, game_id: UUID, player_name: Annotated[str, Body(embed=True)]
) -> SeatResponse:
    return service.join_game(JoinGameRequest(game_id=game_id, player_name=player_name))


@router.post("/games/{game_id}/moves", response_model=MoveResponse)
def make_move(
    service: Service,
    game_id: UUID,
    player_id: Annotated[UUID, Body()],
    from_square: Annotated[str, Body()],
    to_square: Annotated[str, Body()],
    promotion: Annotated[Optional[str], Body()] = None,
) -> MoveResponse:
    request = MoveRequest(
        game_id=game_id,
        player_id=player_id,
        from_square=from_square,
        to_square=to_square,
        promotion=promotion,
    )
    return service.make_move(request)


@router.get("/games/{game_id}/legal-moves", response_model=LegalMovesResponse)
def legal_moves(
    service: Service, game_id: UUID, square: Optional[str] = None
) -> LegalMovesResponse:
    return service.legal_moves(LegalMovesRequest(game_id=game_id, square=square))


@router.get("/players/{player_id}", response_model=PlayerResponse)
def get_player(service: Service, player_id: UUID) -> PlayerResponse:
    return service.get_player(GetPlayerRequest(player_id=player_id))


@router.get("/leaderboard", response_model=LeaderboardResponse)
def leaderboard(service: Service, limit: Optional[int] = None) -> LeaderboardResponse:
    return service.leaderboard(LeaderboardRequest(limit=limit))
