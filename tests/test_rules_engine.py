"""Tests for DefaultRulesEngine move generation and application."""

import unittest

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tablut_ai.board_manager import BoardManager
from tablut_ai.core.zobrist import get_zobrist
from tablut_ai.errors import RulesViolationError
from tablut_ai.models import Cell, Move, Position, RulesConfig, Side, Turn
from tablut_ai.rules.default_engine import DefaultRulesEngine
from tablut_ai.rules.factory import get_rules_engine
from tablut_ai.rules.geometry import CITADELS, THRONE
from tablut_ai.rules.interfaces import RulesEngine

EMPTY_ROW = "........."


def _rows(**rows):
    """Nine empty rows with the given ``r<N>`` rows replaced."""
    return [rows.get(f"r{i}", EMPTY_ROW) for i in range(9)]


def _move(side, fr, fc, tr, tc):
    return Move(
        from_pos=Position(row=fr, col=fc),
        to=Position(row=tr, col=tc),
        player=side,
    )


class TestMoveGeneration(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = DefaultRulesEngine()

    def test_engine_satisfies_protocol(self) -> None:
        self.assertIsInstance(self.engine, RulesEngine)
        self.assertIsInstance(get_rules_engine(), DefaultRulesEngine)
        self.assertIs(get_rules_engine(), get_rules_engine())

    def test_lone_king_order_and_citadel_stops(self) -> None:
        state = BoardManager.from_ascii(_rows(r4="....K...."))
        moves = self.engine.get_valid_moves(state)
        targets = [(m.to.row, m.to.col) for m in moves]
        # Up, Down, Left, Right; each ray stops before the camp squares.
        self.assertEqual(
            targets,
            [(3, 4), (2, 4), (5, 4), (6, 4), (4, 3), (4, 2), (4, 5), (4, 6)],
        )
        self.assertTrue(all(m.player is Side.DEFENDER for m in moves))

    def test_pawn_crosses_but_never_stops_on_throne(self) -> None:
        state = BoardManager.from_ascii(_rows(r2="..K......", r4="..D......"))
        moves = self.engine.get_valid_moves(state)
        rightward = [
            m.to.col for m in moves
            if m.from_pos == Position(row=4, col=2) and m.to.row == 4 and m.to.col > 2
        ]
        self.assertEqual(rightward, [3, 5, 6])

    def test_initial_position_moves_are_legal_destinations(self) -> None:
        state = BoardManager.initial_state()
        moves = self.engine.get_valid_moves(state)
        self.assertTrue(moves)
        for move in moves:
            self.assertNotIn((move.to.row, move.to.col), CITADELS)
            self.assertNotEqual((move.to.row, move.to.col), THRONE)
        sources = [m.from_pos.row * 9 + m.from_pos.col for m in moves]
        self.assertEqual(sources, sorted(sources))

    def test_terminal_state_has_no_moves(self) -> None:
        state = BoardManager.from_ascii(_rows(r4="....K...."), Turn.DRAW)
        self.assertEqual(self.engine.get_valid_moves(state), [])

    def test_has_valid_move(self) -> None:
        board = BoardManager.parse_board(_rows(r0="D.A......", r1="A........"))
        self.assertTrue(self.engine.has_valid_move(board, Side.DEFENDER))
        self.assertTrue(self.engine.has_valid_move(board, Side.ATTACKER))
        boxed = BoardManager.parse_board(_rows(r0="DA.......", r1="A........"))
        self.assertFalse(self.engine.has_valid_move(boxed, Side.DEFENDER))


class TestMoveValidation(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = DefaultRulesEngine()
        self.state = BoardManager.from_ascii(
            _rows(r2="..K.D....", r4="..D......", r6="......A..")
        )

    def _rule_of(self, move):
        with self.assertRaises(RulesViolationError) as cm:
            self.engine.apply_move(self.state, move)
        return cm.exception.rule_ref

    def test_wrong_side(self) -> None:
        self.assertEqual(self._rule_of(_move(Side.ATTACKER, 6, 6, 6, 7)), "turn-order")

    def test_empty_source(self) -> None:
        self.assertEqual(self._rule_of(_move(Side.DEFENDER, 3, 3, 3, 5)), "own-piece")

    def test_diagonal(self) -> None:
        self.assertEqual(self._rule_of(_move(Side.DEFENDER, 4, 2, 5, 3)), "orthogonal")

    def test_blocked_path(self) -> None:
        self.assertEqual(self._rule_of(_move(Side.DEFENDER, 4, 2, 1, 2)), "blocked")

    def test_citadel(self) -> None:
        self.assertEqual(self._rule_of(_move(Side.DEFENDER, 2, 4, 1, 4)), "citadel")

    def test_throne_for_pawn(self) -> None:
        self.assertEqual(self._rule_of(_move(Side.DEFENDER, 4, 2, 4, 4)), "throne")

    def test_game_over(self) -> None:
        finished = BoardManager.from_ascii(_rows(r2="..K......"), Turn.DEFENDER_WIN)
        with self.assertRaises(RulesViolationError) as cm:
            self.engine.apply_move(finished, _move(Side.DEFENDER, 2, 2, 3, 2))
        self.assertEqual(cm.exception.rule_ref, "game-over")

    def test_rejected_move_leaves_state_untouched(self) -> None:
        before = self.state.board
        with self.assertRaises(RulesViolationError):
            self.engine.apply_move(self.state, _move(Side.DEFENDER, 4, 2, 4, 4))
        self.assertEqual(self.state.board, before)


class TestMoveApplication(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = DefaultRulesEngine()

    def test_capture_removes_exactly_the_flanked_pawns(self) -> None:
        state = BoardManager.from_ascii(
            _rows(r1="...D.....", r2=".AD......", r4="....K....", r6="...A....."),
            Turn.ATTACKER,
        )
        after = self.engine.apply_move(state, _move(Side.ATTACKER, 6, 3, 2, 3))
        self.assertIs(after.board[2][2], Cell.EMPTY)
        self.assertIs(after.board[1][3], Cell.EMPTY)
        self.assertIs(after.board[2][1], Cell.ATTACKER)
        self.assertIs(after.board[2][3], Cell.ATTACKER)
        self.assertIs(after.turn, Turn.DEFENDER)
        self.assertEqual(after.move_count, 1)
        counts = BoardManager.count_pieces(after.board)
        self.assertEqual(counts[Cell.DEFENDER], 0)
        self.assertEqual(counts[Cell.KING], 1)

    def test_king_capture_is_attacker_win(self) -> None:
        state = BoardManager.from_ascii(
            _rows(r2="...AKA...", r3=".......A."), Turn.ATTACKER
        )
        after = self.engine.apply_move(state, _move(Side.ATTACKER, 3, 7, 3, 4))
        self.assertIs(after.turn, Turn.ATTACKER_WIN)
        self.assertIsNone(BoardManager.find_king(after.board))

    def test_partial_enclosure_keeps_playing(self) -> None:
        state = BoardManager.from_ascii(
            _rows(r2="...AK....", r3=".......A."), Turn.ATTACKER
        )
        after = self.engine.apply_move(state, _move(Side.ATTACKER, 3, 7, 3, 4))
        self.assertIs(after.turn, Turn.DEFENDER)
        self.assertEqual(BoardManager.find_king(after.board), (2, 4))

    def test_king_on_edge_is_defender_win(self) -> None:
        state = BoardManager.from_ascii(_rows(r2="..K......", r6="......A.."))
        after = self.engine.apply_move(state, _move(Side.DEFENDER, 2, 2, 0, 2))
        self.assertIs(after.turn, Turn.DEFENDER_WIN)

    def test_repeated_position_is_draw(self) -> None:
        state = BoardManager.from_ascii(_rows(r2="..K......", r6="......A.."))
        plies = [
            _move(Side.DEFENDER, 2, 2, 2, 3),
            _move(Side.ATTACKER, 6, 6, 6, 7),
            _move(Side.DEFENDER, 2, 3, 2, 2),
            _move(Side.ATTACKER, 6, 7, 6, 6),
        ]
        for move in plies[:-1]:
            state = self.engine.apply_move(state, move)
            self.assertFalse(state.is_terminal)
        state = self.engine.apply_move(state, plies[-1])
        self.assertIs(state.turn, Turn.DRAW)

    def test_higher_repetition_limit_allows_repeat(self) -> None:
        engine = DefaultRulesEngine(RulesConfig(repetition_limit=3))
        state = BoardManager.from_ascii(_rows(r2="..K......", r6="......A.."))
        for move in [
            _move(Side.DEFENDER, 2, 2, 2, 3),
            _move(Side.ATTACKER, 6, 6, 6, 7),
            _move(Side.DEFENDER, 2, 3, 2, 2),
            _move(Side.ATTACKER, 6, 7, 6, 6),
        ]:
            state = engine.apply_move(state, move)
        self.assertIs(state.turn, Turn.DEFENDER)

    def test_move_cap_is_draw(self) -> None:
        engine = DefaultRulesEngine(RulesConfig(max_moves=1))
        state = BoardManager.from_ascii(_rows(r2="..K......", r6="......A.."))
        after = engine.apply_move(state, _move(Side.DEFENDER, 2, 2, 2, 3))
        self.assertIs(after.turn, Turn.DRAW)

    def test_opponent_without_moves_is_draw(self) -> None:
        state = BoardManager.from_ascii(
            _rows(r0="A.D......", r1="D........", r6="......K..")
        )
        after = self.engine.apply_move(state, _move(Side.DEFENDER, 0, 2, 0, 1))
        self.assertIs(after.turn, Turn.DRAW)

    def test_history_tracks_incremental_hash(self) -> None:
        state = BoardManager.initial_state()
        move = self.engine.get_valid_moves(state)[0]
        after = self.engine.apply_move(state, move)
        self.assertEqual(len(after.position_history), 2)
        self.assertEqual(
            after.position_history[-1],
            get_zobrist().compute_hash(after.board, after.turn),
        )
        BoardManager.validate_state(after)


@settings(max_examples=25, deadline=None)
@given(choices=st.lists(st.integers(min_value=0, max_value=10_000), max_size=25))
def test_random_playouts_respect_the_rules(choices):
    """Every generated move is accepted and lands on a legal square."""
    engine = DefaultRulesEngine()
    state = BoardManager.initial_state()
    pieces = sum(BoardManager.count_pieces(state.board).values())

    for choice in choices:
        if state.is_terminal:
            break
        moves = engine.get_valid_moves(state)
        assert moves
        successors = [engine.apply_move(state, m) for m in moves]

        move = moves[choice % len(moves)]
        state = successors[choice % len(moves)]
        dest = (move.to.row, move.to.col)
        moved = state.board[dest[0]][dest[1]]
        assert dest not in CITADELS
        assert dest != THRONE or moved is Cell.KING

        remaining = sum(BoardManager.count_pieces(state.board).values())
        assert remaining <= pieces
        pieces = remaining


@pytest.mark.parametrize("limit", [0, 1])
def test_repetition_limit_must_be_at_least_two(limit):
    with pytest.raises(ValueError):
        RulesConfig(repetition_limit=limit)
