"""
Custom exceptions shared by all layers.

Every exception carries a `reason`: a stable, machine readable code the API layer hands to the client,
so a client can tell "wait for your turn" apart from "try another move" apart from "the game is over".
"""


class GameError(Exception):
    """Top level exception of the application."""

    reason: str = "game_error"


# --- VALIDATION ---
class InvalidRequestError(GameError):
    """Malformed input. Rejected before the store is touched."""

    reason = "invalid_request"


class InvalidFENError(GameError):
    """String cannot be interpreted as a FEN record."""

    reason = "invalid_fen"


# --- LOOKUPS ---
class NotFoundError(GameError):
    """Unknown game or player."""

    reason = "not_found"


# --- STATE CONFLICTS ---
class GameStateError(GameError):
    """The request does not fit the current state of the game. Nothing was changed."""

    reason = "state_conflict"


class AlreadyStartedError(GameStateError):
    reason = "already_started"


class SlotTakenError(GameStateError):
    reason = "slot_taken"


class NotActiveError(GameStateError):
    reason = "not_active"


class NotYourTurnError(GameStateError):
    reason = "not_your_turn"


class StaleGameError(GameStateError):
    """Another request changed the game in between reading and writing it."""

    reason = "stale_game"


# --- CHESS RULES ---
class IllegalMoveError(GameError):
    """Move violates the rules of chess. The position is unchanged."""

    reason = "illegal_move"


# --- PERSISTENCE ---
class RepositoryError(GameError):
    """Store unavailable or failed. No partial state was committed."""

    reason = "internal_failure"
