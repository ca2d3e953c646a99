"""Tests for the UCT search: tree bookkeeping, budgets and fallbacks."""

import logging
import unittest
from unittest.mock import patch

import pytest

from tablut_ai.ai.mcts_ai import MCTSAI, NEUTRAL_REWARD, ROOT, MCTSTree
from tablut_ai.board_manager import BoardManager
from tablut_ai.errors import RulesViolationError
from tablut_ai.models import AIConfig, Move, Position, Side, Turn
from tablut_ai.rules.default_engine import DefaultRulesEngine

EMPTY_ROW = "........."


def _rows(**rows):
    return [rows.get(f"r{i}", EMPTY_ROW) for i in range(9)]


def _config(**overrides):
    values = dict(
        think_time_ms=5_000,
        max_iterations=40,
        rollout_max_moves=20,
        heuristic_profile_id="heuristic_v1_deterministic",
        rng_seed=1234,
    )
    values.update(overrides)
    return AIConfig(**values)


class RejectingEngine:
    """Generates real moves but refuses to apply any of them."""

    def __init__(self):
        self._inner = DefaultRulesEngine()

    def get_valid_moves(self, state):
        return self._inner.get_valid_moves(state)

    def apply_move(self, state, move):
        raise RulesViolationError("refused", rule_ref="test")


class TestMCTSTree(unittest.TestCase):
    def setUp(self) -> None:
        self.state = BoardManager.initial_state()
        self.moves = DefaultRulesEngine().get_valid_moves(self.state)

    def test_backprop_flips_reward_for_opponent_nodes(self) -> None:
        tree = MCTSTree(self.state)
        child = tree.add_child(ROOT, self.moves[0], self.state, by_agent=True)
        grandchild = tree.add_child(child, self.moves[1], self.state, by_agent=False)

        tree.backpropagate(grandchild, 1.0)
        self.assertEqual([n.visits for n in tree.nodes], [1, 1, 1])
        self.assertEqual(tree[ROOT].wins, 1.0)
        self.assertEqual(tree[child].wins, 1.0)
        self.assertEqual(tree[grandchild].wins, 0.0)

        tree.backpropagate(grandchild, 0.25)
        self.assertAlmostEqual(tree[grandchild].wins, 0.75)
        self.assertAlmostEqual(tree[child].wins, 1.25)
        self.assertAlmostEqual(tree[grandchild].mean, 0.375)

    def test_unvisited_child_is_selected_first(self) -> None:
        tree = MCTSTree(self.state)
        first = tree.add_child(ROOT, self.moves[0], self.state, by_agent=True)
        second = tree.add_child(ROOT, self.moves[1], self.state, by_agent=True)
        tree.backpropagate(first, 1.0)
        self.assertEqual(tree.uct_select_child(ROOT, 1.4), second)

    def test_uct_prefers_higher_mean_without_exploration(self) -> None:
        tree = MCTSTree(self.state)
        weak = tree.add_child(ROOT, self.moves[0], self.state, by_agent=True)
        strong = tree.add_child(ROOT, self.moves[1], self.state, by_agent=True)
        tree.backpropagate(weak, 0.0)
        tree.backpropagate(strong, 1.0)
        self.assertEqual(tree.uct_select_child(ROOT, 0.0), strong)


class TestMCTSSearch(unittest.TestCase):
    def test_root_visits_match_completed_cycles(self) -> None:
        ai = MCTSAI(Side.DEFENDER, _config())
        state = BoardManager.initial_state()
        move = ai.select_move(state)

        self.assertIn(move, ai.get_valid_moves(state))
        tree = ai.get_last_search_tree()
        stats = ai.last_search_stats
        self.assertEqual(stats["iterations"], 40)
        self.assertEqual(stats["abandoned"], 0)
        self.assertEqual(tree.root.visits, 40)
        self.assertEqual(sum(c.visits for c in tree.children_of(ROOT)), 40)
        self.assertLessEqual(len(tree), 41)
        self.assertEqual(stats["tree_size"], len(tree))

        roots = ai.get_root_statistics()
        self.assertEqual(len(roots), len(tree.root.children))
        ai.clear_tree()
        self.assertIsNone(ai.get_last_search_tree())

    def test_first_expansion_follows_move_ordering(self) -> None:
        ai = MCTSAI(Side.DEFENDER, _config(max_iterations=1))
        state = BoardManager.from_ascii(_rows(r2="..K......", r6="......A.."))
        ai.select_move(state)
        expected = ai.order_moves(state, ai.get_valid_moves(state))[0]
        self.assertEqual(ai.get_last_search_tree().children_of(ROOT)[0].move, expected)

    def test_wall_clock_budget_alone_bounds_the_search(self) -> None:
        ai = MCTSAI(Side.DEFENDER, _config(think_time_ms=150, max_iterations=None))
        state = BoardManager.initial_state()
        move = ai.select_move(state)

        self.assertIn(move, ai.get_valid_moves(state))
        stats = ai.last_search_stats
        self.assertGreater(stats["iterations"], 0)
        self.assertEqual(ai.get_last_search_tree().root.visits, stats["iterations"])
        self.assertNotIn("used_fallback", stats)
        # Whole cycles only: the deadline may be overrun by at most one cycle.
        self.assertGreaterEqual(stats["elapsed_ms"], 150)
        self.assertLess(stats["elapsed_ms"], 150 + 2_000)

    def test_zero_budget_falls_back_to_random_move(self) -> None:
        ai = MCTSAI(Side.DEFENDER, _config(think_time_ms=0))
        state = BoardManager.initial_state()
        move = ai.select_move(state)

        self.assertIn(move, ai.get_valid_moves(state))
        self.assertEqual(ai.last_search_stats["iterations"], 0)
        self.assertTrue(ai.last_search_stats["used_fallback"])
        self.assertEqual(ai.last_search_stats["fallback_reason"], "no_visited_children")

    def test_single_legal_move_skips_search(self) -> None:
        state = BoardManager.from_ascii(
            _rows(r0="D.A......", r1="A........", r7="........A", r8=".......AK")
        )
        ai = MCTSAI(Side.DEFENDER, _config())
        with patch.object(ai, "_search") as search:
            move = ai.select_move(state)
        search.assert_not_called()
        self.assertEqual(move.from_pos, Position(row=0, col=0))
        self.assertEqual(move.to, Position(row=0, col=1))

    def test_rejected_expansions_are_not_counted(self) -> None:
        state = BoardManager.initial_state()
        ai = MCTSAI(Side.DEFENDER, _config(max_iterations=5), rules_engine=RejectingEngine())
        legal = DefaultRulesEngine().get_valid_moves(state)

        move = ai.select_move(state)

        self.assertIn(move, legal)
        tree = ai.get_last_search_tree()
        self.assertEqual(tree.root.children, [])
        self.assertEqual(ai.last_search_stats["abandoned"], len(legal))
        # Once every move was refused the root itself is rolled out.
        self.assertEqual(ai.last_search_stats["iterations"], 5)
        self.assertEqual(tree.root.wins, 5 * NEUTRAL_REWARD)
        self.assertTrue(ai.last_search_stats["used_fallback"])

    def test_same_seed_same_choice(self) -> None:
        state = BoardManager.initial_state()
        first = MCTSAI(Side.DEFENDER, _config(max_iterations=25))
        second = MCTSAI(Side.DEFENDER, _config(max_iterations=25))
        self.assertEqual(first.select_move(state), second.select_move(state))
        self.assertEqual(first.get_root_statistics(), second.get_root_statistics())

    def test_attacker_captures_the_king(self) -> None:
        state = BoardManager.from_ascii(
            _rows(r2="...AKA...", r3=".......A."), Turn.ATTACKER
        )
        ai = MCTSAI(Side.ATTACKER, _config())
        move = ai.select_move(state)
        self.assertEqual(move.from_pos, Position(row=3, col=7))
        self.assertEqual(move.to, Position(row=3, col=4))


@pytest.mark.parametrize(
    "turn, expected",
    [
        (Turn.DEFENDER_WIN, 1.0),
        (Turn.ATTACKER_WIN, 0.0),
        (Turn.DRAW, NEUTRAL_REWARD),
        (Turn.ATTACKER, NEUTRAL_REWARD),
    ],
)
def test_rollout_reward_from_defender_view(turn, expected):
    ai = MCTSAI(Side.DEFENDER, _config())
    assert ai._reward(turn) == expected


def test_rollout_cap_scores_neutral():
    ai = MCTSAI(Side.DEFENDER, _config(rollout_max_moves=0))
    assert ai._rollout(BoardManager.initial_state()) == NEUTRAL_REWARD


def test_search_stats_logged_at_debug(caplog):
    caplog.set_level(logging.DEBUG, logger="tablut_ai.ai.mcts_ai")
    ai = MCTSAI(Side.DEFENDER, _config(max_iterations=3))
    ai.select_move(BoardManager.initial_state())
    assert any("MCTS search stats" in r.getMessage() for r in caplog.records)


def test_moves_are_plain_move_models():
    ai = MCTSAI(Side.DEFENDER, _config(max_iterations=3))
    move = ai.select_move(BoardManager.initial_state())
    assert isinstance(move, Move)
    assert move.player is Side.DEFENDER
