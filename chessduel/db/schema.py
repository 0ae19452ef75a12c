"""Database tables / schema"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from chessduel.core.models import utc_now
from chessduel.core.shared_types import Status


class Base(DeclarativeBase):
    pass


class DBPlayer(Base):
    __tablename__ = "players"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    display_name: Mapped[str] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(default=utc_now)

    score: Mapped["DBScore"] = relationship(back_populates="player")


class DBScore(Base):
    __tablename__ = "scores"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player_id: Mapped[UUID] = mapped_column(ForeignKey("players.id"), unique=True)
    wins: Mapped[int] = mapped_column(default=0)
    losses: Mapped[int] = mapped_column(default=0)
    draws: Mapped[int] = mapped_column(default=0)
    points: Mapped[int] = mapped_column(default=0, index=True)

    player: Mapped[DBPlayer] = relationship(back_populates="score")


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    white_player_id: Mapped[UUID] = mapped_column(ForeignKey("players.id"))
    black_player_id: Mapped[Optional[UUID]] = mapped_column(ForeignKey("players.id"))
    current_fen: Mapped[str]
    status: Mapped[str] = mapped_column(default=Status.WAITING.value)
    result: Mapped[Optional[str]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)
    ended_at: Mapped[Optional[datetime]]

    white_player: Mapped[DBPlayer] = relationship(foreign_keys=[white_player_id])
    black_player: Mapped[Optional[DBPlayer]] = relationship(
        foreign_keys=[black_player_id]
    )
    moves: Mapped[list["DBMove"]] = relationship(
        back_populates="game", order_by="DBMove.sequence"
    )


class DBMove(Base):
    """Append-only. The unique (game, sequence) pair stops two requests from both recording the same move number."""

    __tablename__ = "moves"
    __table_args__ = (UniqueConstraint("game_id", "sequence"),)
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id"), index=True)
    sequence: Mapped[int]
    from_square: Mapped[str] = mapped_column(String(2))
    to_square: Mapped[str] = mapped_column(String(2))
    promotion: Mapped[Optional[str]]
    piece: Mapped[str]
    notation: Mapped[str]
    fen: Mapped[str]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)

    game: Mapped[DBGame] = relationship(back_populates="moves")
