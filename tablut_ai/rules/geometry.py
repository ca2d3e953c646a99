"""Board geometry for Ashton Tablut.

Special squares are classification predicates over coordinates, not board
content: they hold in every state. The throne is the centre cell; citadels
are the four T-shaped camps on the edges where the attackers start.
Both act as hostile anvils for captures whatever sits on them.
"""

from __future__ import annotations

from ..models import BOARD_SIZE, Position

THRONE: tuple[int, int] = (4, 4)

CITADELS: frozenset[tuple[int, int]] = frozenset({
    (0, 3), (0, 4), (0, 5), (1, 4),
    (3, 0), (4, 0), (5, 0), (4, 1),
    (3, 8), (4, 8), (5, 8), (4, 7),
    (8, 3), (8, 4), (8, 5), (7, 4),
})

LAST = BOARD_SIZE - 1

CORNERS: frozenset[tuple[int, int]] = frozenset({
    (0, 0), (0, LAST), (LAST, 0), (LAST, LAST),
})

# Up, Down, Left, Right: generation order matters for reproducible ordering.
DIRECTIONS: tuple[tuple[int, int], ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))

# Validated once; move generation hands these out instead of building
# fresh Position models per candidate square.
POSITIONS: tuple[tuple[Position, ...], ...] = tuple(
    tuple(Position(row=r, col=c) for c in range(BOARD_SIZE))
    for r in range(BOARD_SIZE)
)


def in_bounds(r: int, c: int) -> bool:
    return 0 <= r < BOARD_SIZE and 0 <= c < BOARD_SIZE


def is_throne(r: int, c: int) -> bool:
    return (r, c) == THRONE


def is_citadel(r: int, c: int) -> bool:
    return (r, c) in CITADELS


def is_hostile_square(r: int, c: int) -> bool:
    """Throne or citadel: completes a capture sandwich even when empty."""
    return (r, c) == THRONE or (r, c) in CITADELS


def is_edge(r: int, c: int) -> bool:
    return r == 0 or c == 0 or r == LAST or c == LAST


def is_corner(r: int, c: int) -> bool:
    return (r, c) in CORNERS


def is_escape_square(r: int, c: int) -> bool:
    """Edge cell on which the King wins the game."""
    return is_edge(r, c) and not is_corner(r, c)


def edge_distance(r: int, c: int) -> int:
    """Distance in steps from (r, c) to the nearest board edge."""
    return min(r, LAST - r, c, LAST - c)


def manhattan(r1: int, c1: int, r2: int, c2: int) -> int:
    return abs(r1 - r2) + abs(c1 - c2)
