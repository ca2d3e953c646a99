"""Move-selection strategies and the heuristic evaluator."""

from .base import BaseAI
from .evaluator import HeuristicEvaluator
from .factory import AIFactory, create_ai
from .heuristic_ai import HeuristicAI
from .mcts_ai import MCTSAI, MCTSNode, MCTSTree
from .minimax_ai import MinimaxAI
from .random_ai import RandomAI

__all__ = [
    "AIFactory",
    "BaseAI",
    "HeuristicAI",
    "HeuristicEvaluator",
    "MCTSAI",
    "MCTSNode",
    "MCTSTree",
    "MinimaxAI",
    "RandomAI",
    "create_ai",
]
