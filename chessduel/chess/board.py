"""The Game board implements all rules that affect the `position` (in chess: the configuration of pieces on the board)"""

from dataclasses import dataclass
from typing import Self

from chessduel.chess.moves import ATTACK_RULES, MOVEMENT_RULES, CandidateMovesFn, Move
from chessduel.chess.pieces import EMPTY, Color, Piece, PieceType
from chessduel.chess.square import BOARD_DIMENSIONS, Square


@dataclass
class Board:
    position: dict[Square, Piece]

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the first part of a FEN string (the one that denotes the board position).

        ex. standard starting position:
        rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR
        means:
        * black pieces are on the 8th rank, starting with rook on a8, knight on b8, etc.
        * pawns cover 7th rank entirely
        * ranks 6 through 3 have 8 consecutive empty squares
        * rank 2 are the white pawns (capital letters)
        * 1st rank are the white pieces. Again, left-to-right reads a1-h1.
        """
        position: dict[Square, Piece] = {}
        for rank_idx, fen_one_rank in enumerate(fen_str.split("/")):
            # FEN string is read from top rank (8th) to bottom rank (1st)
            rank = BOARD_DIMENSIONS[1] - rank_idx
            # ... but the first character is the a-file, so reads in normal direction
            file = 1
            for character in fen_one_rank:
                if character.isalpha():
                    position[Square(file, rank)] = Piece.from_fen(character)
                    file += 1
                else:
                    # A number denotes the amount of empty squares after each other
                    for _ in range(int(character)):
                        position[Square(file, rank)] = EMPTY
                        file += 1
        return cls(position)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(
            self._rank_to_fen(rank) for rank in range(BOARD_DIMENSIONS[1], 0, -1)
        )

    def _rank_to_fen(self, rank: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for file in range(1, BOARD_DIMENSIONS[0] + 1):
            piece = self.piece(Square(file, rank))

            if not piece.is_empty():
                if empty_count > 0:
                    fen_characters.append(str(empty_count))
                    empty_count = 0
                fen_characters.append(piece.to_fen())
            else:
                empty_count += 1

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    def copy(self) -> Self:
        """Pieces are immutable, so a shallow copy of the mapping is enough."""
        return type(self)(dict(self.position))

    # --- QUERIES ---
    def piece(self, square: Square) -> Piece:
        return self.position[square]

    def is_empty(self, square: Square) -> bool:
        return self.position[square].is_empty()

    def locate_pieces(self, piece_type: PieceType, color: Color) -> list[Square]:
        target = Piece(piece_type, color)
        return [square for square, piece in self.position.items() if piece == target]

    def locate_color(self, color: Color) -> list[Square]:
        return [
            square for square, piece in self.position.items() if piece.color == color
        ]

    def king_square(self, color: Color) -> Square:
        return self.locate_pieces(PieceType.KING, color)[0]

    def is_under_attack(self, square: Square, by_color: Color) -> bool:
        return any(rule(square, by_color, self) for rule in ATTACK_RULES)

    def is_any_under_attack(self, squares: list[Square], by_color: Color) -> bool:
        return any(self.is_under_attack(square, by_color) for square in squares)

    def is_any_occupied(self, squares: list[Square]) -> bool:
        return any(not self.is_empty(square) for square in squares)

    def is_check(self, color: Color) -> bool:
        """Is the king of the given color under attack?"""
        return self.is_under_attack(self.king_square(color), color.opponent)

    def has_insufficient_material(self) -> bool:
        """
        Neither side can possibly deliver checkmate:
        * king vs king
        * king + a single minor piece vs king
        * only bishops next to the kings, all of them on squares of the same color
        """
        others = [
            (square, piece)
            for square, piece in self.position.items()
            if not piece.is_empty() and piece.type != PieceType.KING
        ]
        if not others:
            return True

        if len(others) == 1 and others[0][1].type in (
            PieceType.KNIGHT,
            PieceType.BISHOP,
        ):
            return True

        if all(piece.type == PieceType.BISHOP for _, piece in others):
            square_colors = {square.is_light() for square, _ in others}
            return len(square_colors) == 1
        return False

    def generate_candidate_moves(self, color: Color) -> list[Move]:
        """
        Before knowing the set of legal moves, we use raycasting to find candidate moves, which will later be tested for legality
        (making sure it does not put yourself in check.)

        ---
        NOTE: Castling and en passant are taken care of in the Position class.
        """
        candidate_moves: list[Move] = []
        for starting_square in self.locate_color(color):
            piece_type = self.piece(starting_square).type
            movement_rule: CandidateMovesFn = MOVEMENT_RULES[piece_type]
            candidate_moves.extend(movement_rule(starting_square, self))
        return candidate_moves

    # --- UPDATES ---
    def place_piece(self, piece: Piece, square: Square) -> None:
        self.position[square] = piece

    def remove_piece(self, square: Square) -> None:
        self.position[square] = EMPTY

    def move_piece(self, move: Move) -> None:
        """Update the position on the board"""
        piece_that_moved = self.piece(move.from_square)
        self.remove_piece(move.from_square)
        self.place_piece(piece_that_moved, move.to_square)

    def promote_piece(self, square: Square, to: PieceType) -> None:
        self.position[square] = self.piece(square).promoted_to(to)
