"""
A complete chess position: the board plus everything else a FEN string records.

Position is the entrypoint into the rules of chess. It knows the legal moves for the side to move and
produces the Position reached after a move. It is immutable: playing a move never changes the Position you started from.
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Optional, Self

from chessduel.chess.board import Board
from chessduel.chess.castling import CASTLING_RULES, CastlingDirection
from chessduel.chess.fen import FENState
from chessduel.chess.moves import (
    AcceptedMove,
    Move,
    candidate_castling_move,
    castling_rook_squares,
    en_passant_moves,
    is_pawn_push_to_promotion_square,
    pawn_direction,
    pawn_pushes_w_promotion,
)
from chessduel.chess.pieces import Color, PieceType
from chessduel.chess.square import Square

# Half-moves without pawn move or capture before the game is drawn (i.e. 50 moves by each side)
FIFTY_MOVE_RULE_HALF_MOVES = 100
REPETITIONS_FOR_DRAW = 3


@dataclass(frozen=True)
class Position:
    board: Board
    state: FENState

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        state = FENState.from_fen(fen)
        return cls(Board.from_fen(state.position), state)

    def to_fen(self) -> str:
        return self.state.to_fen()

    @property
    def color_to_move(self) -> Color:
        return self.state.color_to_move

    # --- RULES API ---
    def legal_moves(self) -> list[Move]:
        """
        List of legal moves for the side to move
        ----

        **Combines the following**

        1. generate candidate moves, using the basic movement rules for all pieces (the board does this calculation)
        2. add candidate castling moves
        3. add candidate en passant moves
        4. remove illegal options --> a move that would put you in check or you are in check and the move does not get you out of it.
        5. Pawn push to promotion square? --> expand the set of moves to include one for every choice of piece type to promote into.
        """
        color = self.color_to_move
        candidate_moves = self.board.generate_candidate_moves(color)
        candidate_moves.extend(self._generate_castling_moves())
        candidate_moves.extend(self._generate_en_passant_moves())

        legal_moves: list[Move] = []
        for move in candidate_moves:
            if self._is_putting_yourself_in_check(move):
                continue
            if is_pawn_push_to_promotion_square(move, self.board):
                legal_moves.extend(pawn_pushes_w_promotion(move))
            else:
                legal_moves.append(move)
        return legal_moves

    def legal_moves_from(self, square: Square) -> list[Move]:
        return [move for move in self.legal_moves() if move.from_square == square]

    def has_legal_move(self) -> bool:
        return bool(self.legal_moves())

    def is_check(self) -> bool:
        """The side to move is in check"""
        return self.board.is_check(self.color_to_move)

    def is_checkmate(self) -> bool:
        return self.is_check() and not self.has_legal_move()

    def is_stalemate(self) -> bool:
        return not self.is_check() and not self.has_legal_move()

    def is_fifty_move_draw(self) -> bool:
        return self.state.half_move_clock >= FIFTY_MOVE_RULE_HALF_MOVES

    def is_insufficient_material(self) -> bool:
        return self.board.has_insufficient_material()

    def is_threefold_repetition(self, history: Iterable["Position"]) -> bool:
        """This position occurred (at least) twice before in the history of the game."""
        key = self.repetition_key()
        earlier = sum(1 for previous in history if previous.repetition_key() == key)
        return earlier + 1 >= REPETITIONS_FOR_DRAW

    def repetition_key(self) -> tuple[str, Color, frozenset[CastlingDirection], Optional[Square]]:
        """
        Positions are the same (for the repetition rule) if the same pieces stand on the same squares,
        the same side is to move, and the same castling / en passant captures are available.
        The move counters do not count.
        """
        en_passant_square = (
            self.state.en_passant_square if self._generate_en_passant_moves() else None
        )
        return (
            self.state.position,
            self.color_to_move,
            self.state.castling_rights,
            en_passant_square,
        )

    def play(self, move: Move) -> "Position":
        """
        Produce the position after a move (a legal move, as found in `legal_moves()`)
        -----

        1. update the board (NOTE: if castling, move the king and the rook. en passant: remove the taken pawn)
        2. promote the pawn (if needed)
        3. update the FEN state: castling rights, en passant square, move counters, and finally the color to move
        """
        accepted_move = AcceptedMove.from_move_and_board(move, self.board)
        board = self.board.copy()
        self._update_board(board, accepted_move)
        state = self._next_state(board, accepted_move)
        return Position(board, state)

    # -- LEGAL MOVES HELPERS ---
    def _is_putting_yourself_in_check(self, move: Move) -> bool:
        """Return True if the move puts (or leaves) you in check

        plan:
        1. Copy the board
        2. make the candidate move
        3. determine if king is in check on the new board
        """
        board = self.board.copy()
        self._update_board(board, AcceptedMove.from_move_and_board(move, self.board))
        return board.is_check(self.color_to_move)

    def _update_board(self, board: Board, move: AcceptedMove) -> None:
        if move.move.castling_direction:
            self._move_castling_pieces(board, move.move.castling_direction)
            return

        board.move_piece(move.move)
        if move.move.is_en_passant:
            # The pawn taken was standing in the same file as the en passant square, on the rank the moving pawn came from.
            board.remove_piece(
                Square(file=move.move.to_square.file, rank=move.move.from_square.rank)
            )
        if move.move.promote_to is not None:
            board.promote_piece(move.move.to_square, to=move.move.promote_to)

    # -- CASTLING RULE HELPERS ---
    def _generate_castling_moves(self) -> list[Move]:
        """Use CASTLING_RULES to construct corresponding set of moves"""
        return [
            candidate_castling_move(direction)
            for direction in self._legal_castling_directions()
        ]

    def _legal_castling_directions(self) -> list[CastlingDirection]:
        """
        Find the legal castling directions for the side to move
        ---

        **you are allowed to castle if**

        * Castling rights are not yet revoked (so king and rook never moved).
        * You are not currently in check (you cannot castle out of check).
        * All squares in between the king and the rook are empty.
        * None of the squares the king crosses or lands on is under attack.
        """
        player_color = self.color_to_move
        if not self.state.can_castle(player_color):
            return []

        if self.board.is_check(player_color):
            return []

        legal_directions: list[CastlingDirection] = []
        for direction in self.state.castling_options(player_color):
            squares = CASTLING_RULES[direction]
            if self.board.is_any_occupied(squares.squares_to_be_empty()):
                continue

            if self.board.is_any_under_attack(squares.king_path(), player_color.opponent):
                continue

            legal_directions.append(direction)
        return legal_directions

    def _move_castling_pieces(self, board: Board, direction: CastlingDirection) -> None:
        """Move both the King and the Rook"""
        squares = CASTLING_RULES[direction]
        board.move_piece(Move(from_square=squares.king_from, to_square=squares.king_to))
        board.move_piece(Move(from_square=squares.rook_from, to_square=squares.rook_to))

    def _revoked_castling_rights(self, move: AcceptedMove) -> list[CastlingDirection]:
        """
        Checks which rights should get revoked
        ----

        1. If you are moving your king (castling included) --> revoke both
        2. If you are moving your rook from its starting square --> revoke the right in that direction
        3. If you are taking your opponent's rook on its starting square --> revoke your opponent's right in that direction
        """
        player_color = self.color_to_move
        revoked: list[CastlingDirection] = []

        if move.moving_piece.type == PieceType.KING:
            revoked.extend(self.state.castling_options(player_color))

        if move.moving_piece.type == PieceType.ROOK:
            for direction in self.state.castling_options(player_color):
                rook_starting_square, _ = castling_rook_squares(direction)
                if move.move.from_square == rook_starting_square:
                    revoked.append(direction)

        if move.captured_piece is not None and move.captured_piece.type == PieceType.ROOK:
            for direction in self.state.castling_options(player_color.opponent):
                rook_starting_square, _ = castling_rook_squares(direction)
                if move.move.to_square == rook_starting_square:
                    revoked.append(direction)

        return revoked

    # --- EN PASSANT RULE HELPERS ----
    def _generate_en_passant_moves(self) -> list[Move]:
        """Moves of your pawns that are on the correct squares to take en passant."""
        if self.state.en_passant_square is None:
            return []
        return en_passant_moves(
            en_passant_square=self.state.en_passant_square,
            color=self.color_to_move,
            board=self.board,
        )

    def _determine_en_passant_square(self, move: AcceptedMove) -> Optional[Square]:
        """The square skipped by a pawn moving two squares. Possible en passant target for the next turn."""
        ranks_moved = abs(move.move.from_square.rank - move.move.to_square.rank)
        if move.moving_piece.type == PieceType.PAWN and ranks_moved == 2:
            return move.move.from_square.offset(0, pawn_direction(self.color_to_move))
        return None

    # --- FEN STATE UPDATE ---
    def _next_state(self, board: Board, move: AcceptedMove) -> FENState:
        """
        NOTE everything that depends on the player who made the move (castling rights / en passant squares)
        is determined BEFORE the color to move flips.
        """
        player_color = self.color_to_move
        state = self.state.without_castling_rights(*self._revoked_castling_rights(move))

        resets_clock = move.moving_piece.type == PieceType.PAWN or move.is_capture
        return replace(
            state,
            position=board.to_fen(),
            en_passant_square=self._determine_en_passant_square(move),
            half_move_clock=0 if resets_clock else self.state.half_move_clock + 1,
            num_turns=self.state.num_turns + (1 if player_color == Color.BLACK else 0),
            color_to_move=player_color.opponent,
        )
