"""
Monte Carlo Tree Search (UCT) AI for Tablut.

The tree is an arena: :class:`MCTSTree` owns a flat list of
:class:`MCTSNode` records that refer to each other by index, so parent
links are plain integers and the whole tree is dropped in one go.

One search cycle is:

1. **Selection**: descend from the root through fully expanded nodes by
   UCT, ``mean + C * sqrt(ln(max(1, N)) / n)``, unvisited children first.
2. **Expansion**: pop the best-scored untried move of the selected node and
   apply it through the rules engine. A rejected move abandons the cycle.
3. **Simulation**: epsilon-greedy rollout over the top-K fast-scored moves
   up to ``rollout_max_moves`` plies.
4. **Backpropagation**: rewards are always expressed from the searching
   side's point of view and flipped (``1 - reward``) on nodes produced by
   an opponent move.

The wall clock is only polled between complete cycles.
"""

from __future__ import annotations

import heapq
import logging
import math
import time
from typing import Any, Dict, List, Optional

from ..errors import RulesViolationError
from ..models import AIConfig, GameState, Move, Side, Turn
from ..rules.interfaces import RulesEngine
from .heuristic_ai import HeuristicAI

logger = logging.getLogger(__name__)

ROOT = 0

# Reward for draws, move-capped rollouts and rejected rollout moves.
NEUTRAL_REWARD = 0.5


class MCTSNode:
    """One tree node; ``parent`` and ``children`` are arena indices."""

    __slots__ = (
        "state",
        "parent",
        "move",
        "children",
        "untried_moves",
        "visits",
        "wins",
        "by_agent",
    )

    def __init__(
        self,
        state: GameState,
        parent: Optional[int] = None,
        move: Optional[Move] = None,
        by_agent: bool = False,
    ) -> None:
        self.state = state
        self.parent = parent
        self.move = move
        self.children: List[int] = []
        # None until first expansion; stored worst-first so pop() yields the best.
        self.untried_moves: Optional[List[Move]] = None
        self.visits = 0
        self.wins = 0.0
        # True when ``move`` was played by the searching side.
        self.by_agent = by_agent

    @property
    def mean(self) -> float:
        return self.wins / self.visits if self.visits else 0.0

    @property
    def is_fully_expanded(self) -> bool:
        return self.untried_moves is not None and not self.untried_moves

    def __repr__(self) -> str:
        return f"MCTSNode(move={self.move}, visits={self.visits}, wins={self.wins:.1f})"


class MCTSTree:
    """Index-addressed node arena."""

    def __init__(self, root_state: GameState) -> None:
        self.nodes: List[MCTSNode] = [MCTSNode(root_state)]

    def __len__(self) -> int:
        return len(self.nodes)

    def __getitem__(self, index: int) -> MCTSNode:
        return self.nodes[index]

    @property
    def root(self) -> MCTSNode:
        return self.nodes[ROOT]

    def add_child(self, parent: int, move: Move, state: GameState, by_agent: bool) -> int:
        index = len(self.nodes)
        self.nodes.append(MCTSNode(state, parent=parent, move=move, by_agent=by_agent))
        self.nodes[parent].children.append(index)
        return index

    def children_of(self, index: int) -> List[MCTSNode]:
        return [self.nodes[i] for i in self.nodes[index].children]

    def uct_select_child(self, index: int, exploration: float) -> int:
        """Child index maximising UCT; the first unvisited child wins outright."""
        node = self.nodes[index]
        log_n = math.log(max(1, node.visits))
        best_index = node.children[0]
        best_value = -math.inf
        for child_index in node.children:
            child = self.nodes[child_index]
            if child.visits == 0:
                return child_index
            value = child.wins / child.visits + exploration * math.sqrt(log_n / child.visits)
            if value > best_value:
                best_index, best_value = child_index, value
        return best_index

    def backpropagate(self, index: Optional[int], reward: float) -> None:
        """Add one visit and ``reward`` (flipped for opponent moves) up to the root."""
        while index is not None:
            node = self.nodes[index]
            node.visits += 1
            if node.parent is None or node.by_agent:
                node.wins += reward
            else:
                node.wins += 1.0 - reward
            index = node.parent


class MCTSAI(HeuristicAI):
    """Time-budgeted UCT search with heuristic rollouts."""

    engine_type = "mcts"

    def __init__(
        self,
        side: Side,
        config: Optional[AIConfig] = None,
        rules_engine: Optional[RulesEngine] = None,
    ):
        super().__init__(side, config, rules_engine)
        self.last_tree: Optional[MCTSTree] = None

    def get_last_search_tree(self) -> Optional[MCTSTree]:
        """Tree built by the most recent search, for inspection and tests."""
        return self.last_tree

    def clear_tree(self) -> None:
        self.last_tree = None

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search(self, game_state: GameState, valid_moves: List[Move]) -> Optional[Move]:
        start = time.monotonic()
        deadline = start + self.config.think_time_ms / 1000.0
        max_iterations = self.config.max_iterations

        tree = MCTSTree(game_state)
        tree.root.untried_moves = self.order_moves(game_state, valid_moves)[::-1]
        self.last_tree = tree

        iterations = 0
        abandoned = 0
        while time.monotonic() < deadline and (
            max_iterations is None or iterations < max_iterations
        ):
            if self._run_cycle(tree):
                iterations += 1
            else:
                abandoned += 1

        selected, score = self._select_best_move(tree, valid_moves)
        self.last_search_stats = {
            "iterations": iterations,
            "abandoned": abandoned,
            "tree_size": len(tree),
            "elapsed_ms": (time.monotonic() - start) * 1000.0,
            "score": score,
        }
        if score is None:
            self.last_search_stats.update(
                score=0.0, used_fallback=True, fallback_reason="no_visited_children"
            )
        self._log_stats()
        return selected

    def _run_cycle(self, tree: MCTSTree) -> bool:
        """One selection/expansion/simulation/backprop pass; False if abandoned."""
        index = self._select(tree)
        node = tree[index]

        if not node.state.is_terminal:
            if node.untried_moves is None:
                moves = self.rules_engine.get_valid_moves(node.state)
                node.untried_moves = self.order_moves(node.state, moves)[::-1]
            if node.untried_moves:
                move = node.untried_moves.pop()
                try:
                    child_state = self.rules_engine.apply_move(node.state, move)
                except RulesViolationError as e:
                    logger.debug("Expansion of %s rejected: %s", move, e)
                    return False
                index = tree.add_child(index, move, child_state, move.player is self.side)
                node = tree[index]

        reward = self._rollout(node.state)
        tree.backpropagate(index, reward)
        return True

    def _select(self, tree: MCTSTree) -> int:
        index = ROOT
        while True:
            node = tree[index]
            if node.state.is_terminal or not node.is_fully_expanded or not node.children:
                return index
            index = tree.uct_select_child(index, self.config.exploration_constant)

    def _rollout(self, state: GameState) -> float:
        """Play out ``state`` and return the reward for this AI's side."""
        epsilon = self.config.rollout_epsilon
        top_k = self.config.rollout_top_k
        for _ in range(self.config.rollout_max_moves):
            if state.is_terminal:
                break
            moves = self.rules_engine.get_valid_moves(state)
            if not moves:
                break
            if self.rng.random() < epsilon:
                move = self.rng.choice(moves)
            else:
                scores = self.evaluator.score_moves(state, moves)
                best = heapq.nlargest(top_k, range(len(moves)), key=scores.__getitem__)
                move = moves[self.rng.choice(best)]
            try:
                state = self.rules_engine.apply_move(state, move)
            except RulesViolationError:
                return NEUTRAL_REWARD
        return self._reward(state.turn)

    def _reward(self, turn: Turn) -> float:
        if turn is Turn.win_for(self.side):
            return 1.0
        if turn is Turn.win_for(self.side.opponent):
            return 0.0
        return NEUTRAL_REWARD

    def _select_best_move(
        self, tree: MCTSTree, valid_moves: List[Move]
    ) -> tuple[Optional[Move], Optional[float]]:
        """Best mean among visited root children, ties to the most visited.

        Falls back to a random legal move (with a None score) when no child
        was visited.
        """
        visited = [c for c in tree.children_of(ROOT) if c.visits > 0]
        if not visited:
            return self.get_random_element(valid_moves), None
        best = max(visited, key=lambda c: (c.mean, c.visits))
        return best.move, best.mean

    def get_root_statistics(self) -> List[Dict[str, Any]]:
        """Per-move visit and value summary of the last search's root."""
        if self.last_tree is None:
            return []
        return [
            {"move": str(c.move), "visits": c.visits, "mean": c.mean}
            for c in self.last_tree.children_of(ROOT)
        ]

    def _log_stats(self) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            stats = self.last_search_stats
            logger.debug(
                "MCTS search stats: iterations=%d, abandoned=%d, tree_size=%d, "
                "elapsed=%.1fms, best_mean=%.3f",
                stats["iterations"],
                stats["abandoned"],
                stats["tree_size"],
                stats["elapsed_ms"],
                stats["score"],
            )
