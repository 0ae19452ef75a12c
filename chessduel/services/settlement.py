"""
Score settlement: the one-time score update applied when a game reaches a terminal status.

| Outcome | White (wins/losses/draws/points) | Black         |
|---------|----------------------------------|---------------|
| white   | +1 / 0 / 0 / +3                  | 0 / +1 / 0 / 0 |
| black   | 0 / +1 / 0 / 0                   | +1 / 0 / 0 / +3 |
| draw    | 0 / 0 / +1 / +1                  | 0 / 0 / +1 / +1 |
"""

from typing import Optional

from chessduel.core.models import GameModel, ScoreDelta
from chessduel.core.shared_types import Outcome

WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0


def _win(player_id) -> ScoreDelta:
    return ScoreDelta(player_id, wins=1, points=WIN_POINTS)


def _loss(player_id) -> ScoreDelta:
    return ScoreDelta(player_id, losses=1, points=LOSS_POINTS)


def _draw(player_id) -> ScoreDelta:
    return ScoreDelta(player_id, draws=1, points=DRAW_POINTS)


def settlement_deltas(game: GameModel, outcome: Optional[Outcome]) -> list[ScoreDelta]:
    """
    Increments for both players ([white, black]).
    Empty when there is no outcome or when a color slot is unfilled: then there is nothing to settle.
    """
    if outcome is None or game.black_player is None:
        return []

    white_id = game.white_player.player_id
    black_id = game.black_player.player_id
    if outcome == Outcome.WHITE:
        return [_win(white_id), _loss(black_id)]
    if outcome == Outcome.BLACK:
        return [_loss(white_id), _win(black_id)]
    return [_draw(white_id), _draw(black_id)]
