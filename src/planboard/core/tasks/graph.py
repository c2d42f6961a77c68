"""
Read-only queries over the task dependency graph.

``planboard deps show`` and the dependency view use this to explain what a
task waits for, what it holds up, and which chains of work are longest.
The graph is a snapshot: it does not follow later edits to the tasks.
"""

from __future__ import annotations

from collections import deque

from planboard.core.document.models import Task
from planboard.core.graph import find_cycle, invert, reachable


class DependencyGraph:
    """
    Snapshot of the dependency edges between tasks.

    ``waits_on[A] = {B}`` when task A lists B in ``dependencies``; the
    inverse map ``holds_up[B] = {A}`` says finishing B helps A. References
    to tasks outside the snapshot are dropped.

    Example::

        graph = DependencyGraph(doc.tasks)
        graph.would_become_ready("task_3")
    """

    def __init__(self, tasks: list[Task]) -> None:
        ids = {t.id for t in tasks}
        self._ids = frozenset(ids)
        self._done = frozenset(t.id for t in tasks if t.is_done)
        self._waits_on: dict[str, set[str]] = {
            t.id: {d for d in t.dependencies if d in ids} for t in tasks
        }
        self._holds_up = invert(self._waits_on)
        self._depth, self._via = self._longest_paths()

    def _longest_paths(self) -> tuple[dict[str, int], dict[str, str]]:
        """
        Length of the longest chain ending at each task, walked in
        dependency order. ``via`` records the predecessor on that chain.
        Tasks on a cycle never become ready and get no depth.
        """
        in_degree = {node: len(deps) for node, deps in self._waits_on.items()}
        queue = deque(sorted(node for node, count in in_degree.items() if count == 0))
        depth: dict[str, int] = {}
        via: dict[str, str] = {}

        while queue:
            node = queue.popleft()
            best = max(
                sorted(self._waits_on[node]),
                key=lambda dep: depth[dep],
                default=None,
            )
            depth[node] = 1 if best is None else depth[best] + 1
            if best is not None:
                via[node] = best
            for follower in sorted(self._holds_up.get(node, ())):
                in_degree[follower] -= 1
                if in_degree[follower] == 0:
                    queue.append(follower)
        return depth, via

    # ------------------------------------------------------------------
    # Neighbourhood of one task
    # ------------------------------------------------------------------

    def predecessors(self, task_id: str) -> list[str]:
        """Tasks *task_id* waits for directly."""
        return sorted(self._waits_on.get(task_id, ()))

    def direct_successors(self, task_id: str) -> list[str]:
        return sorted(self._holds_up.get(task_id, ()))

    def transitive_predecessors(self, task_id: str) -> set[str]:
        return reachable(self._waits_on, task_id)

    def transitive_successors(self, task_id: str) -> set[str]:
        """Everything downstream of *task_id*."""
        return reachable(self._holds_up, task_id)

    def is_blocked(self, task_id: str) -> bool:
        return not self._waits_on.get(task_id, set()) <= self._done

    def would_become_ready(self, task_id: str) -> list[str]:
        """Unfinished tasks whose last open predecessor is *task_id*."""
        done = self._done | {task_id}
        return sorted(
            follower
            for follower in self._holds_up.get(task_id, ())
            if follower not in self._done and self._waits_on[follower] <= done
        )

    # ------------------------------------------------------------------
    # Whole graph
    # ------------------------------------------------------------------

    def root_blockers(self, limit: int = 5) -> list[tuple[str, int]]:
        """
        Unfinished tasks ranked by how many tasks sit downstream of them.

        Returns ``(task_id, downstream_count)`` pairs, largest first.
        """
        counts = [
            (node, len(self.transitive_successors(node)))
            for node in self._ids - self._done
        ]
        ranked = sorted((c for c in counts if c[1]), key=lambda c: (-c[1], c[0]))
        return ranked[:limit]

    def chains(self, limit: int = 5) -> list[list[str]]:
        """
        Longest dependency chains, longest first.

        A chain starts at a task nothing waits on and follows the longest
        run of predecessors back to a task with none, e.g.
        ``["task_3", "task_2", "task_1"]``. Single tasks are not chains.
        """
        found: list[list[str]] = []
        for end in sorted(self._depth):
            if self._holds_up.get(end) or self._depth[end] < 2:
                continue
            chain = [end]
            while chain[-1] in self._via:
                chain.append(self._via[chain[-1]])
            found.append(chain)
        found.sort(key=lambda chain: (-len(chain), chain[0]))
        return found[:limit]

    def has_cycle(self) -> bool:
        return find_cycle(self._waits_on) is not None

    @property
    def stats(self) -> dict[str, int]:
        """node_count, edge_count and max_chain_depth (0 without any edges)."""
        longest = max(self._depth.values(), default=0)
        return {
            "node_count": len(self._ids),
            "edge_count": sum(len(deps) for deps in self._waits_on.values()),
            "max_chain_depth": longest if longest > 1 else 0,
        }
