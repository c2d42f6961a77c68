"""
Adjacency-map graph primitives.

Small helpers over ``dict[node, set[node]]`` maps shared by the dependency
engine and the dependency graph query object.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Hashable, Iterable, Mapping
from typing import TypeVar

N = TypeVar("N", bound=Hashable)


def invert(adjacency: Mapping[N, Iterable[N]]) -> dict[N, set[N]]:
    """
    Reverse every edge of an adjacency map.

    Nodes that only appear as keys are kept with an empty edge set.

    Example:
        >>> invert({"b": {"a"}, "a": set()})
        {'b': set(), 'a': {'b'}}
    """
    inverted: dict[N, set[N]] = {node: set() for node in adjacency}
    for node, neighbours in adjacency.items():
        for neighbour in neighbours:
            inverted.setdefault(neighbour, set()).add(node)
    return inverted


def reachable(adjacency: Mapping[N, Iterable[N]], start: N) -> set[N]:
    """BFS from *start*; returns every node reachable from it, excluding itself
    unless it lies on a cycle."""
    visited: set[N] = set()
    queue: deque[N] = deque([start])

    while queue:
        current = queue.popleft()
        for neighbour in adjacency.get(current, ()):
            if neighbour not in visited:
                visited.add(neighbour)
                queue.append(neighbour)

    return visited


def path_exists(adjacency: Mapping[N, Iterable[N]], start: N, goal: N) -> bool:
    """Check whether *goal* can be reached from *start* following edges."""
    if start == goal:
        return True
    visited: set[N] = {start}
    queue: deque[N] = deque([start])

    while queue:
        current = queue.popleft()
        for neighbour in adjacency.get(current, ()):
            if neighbour == goal:
                return True
            if neighbour not in visited:
                visited.add(neighbour)
                queue.append(neighbour)

    return False


def find_cycle(adjacency: Mapping[N, Iterable[N]]) -> list[N] | None:
    """
    Return one cycle as a node list (first node repeated at the end), or None.

    Three-color DFS (white / gray / black), iterative so deep graphs do not
    hit the recursion limit.
    """
    WHITE, GRAY, BLACK = 0, 1, 2  # noqa: N806
    color: dict[N, int] = {}
    for node, neighbours in adjacency.items():
        color.setdefault(node, WHITE)
        for neighbour in neighbours:
            color.setdefault(neighbour, WHITE)

    for root in list(color):
        if color[root] != WHITE:
            continue
        stack: list[tuple[N, list[N]]] = [(root, list(adjacency.get(root, ())))]
        path: list[N] = [root]
        color[root] = GRAY
        while stack:
            node, pending = stack[-1]
            if not pending:
                color[node] = BLACK
                stack.pop()
                path.pop()
                continue
            neighbour = pending.pop()
            if color[neighbour] == GRAY:
                return path[path.index(neighbour):] + [neighbour]
            if color[neighbour] == WHITE:
                color[neighbour] = GRAY
                path.append(neighbour)
                stack.append((neighbour, list(adjacency.get(neighbour, ()))))

    return None
