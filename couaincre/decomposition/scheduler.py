"""
Bucket priority queue with lazy re-evaluation.

Vertices are kept in buckets keyed by their last known score. The scan
pointer (``minimum``) only moves forward. Vertices whose score may have
changed since they were queued are flagged dirty; they are re-scored only
when popped, and pushed to a higher bucket if their fresh score exceeds the
current minimum.
"""

from typing import Callable, Dict, Iterable, List


class BucketScheduler:
    """
    Lazy bucket queue over vertex ids ``0..num_vertices-1``.

    Each bucket is a stack: among vertices with the same score the one
    inserted last is popped first. Inserting below the current minimum
    places the vertex at the minimum.

    Args:
        num_vertices: Number of vertices that may be scheduled
    """

    def __init__(self, num_vertices: int):
        self._buckets: Dict[int, List[int]] = {}
        self._dirty = [False] * num_vertices
        self._minimum = 0
        self._size = 0

    @property
    def minimum(self) -> int:
        """Current scan position; never decreases."""
        return self._minimum

    def __len__(self):
        return self._size

    def insert(self, score: int, vertex: int) -> None:
        score = max(score, self._minimum)
        bucket = self._buckets.get(score)
        if bucket is None:
            bucket = self._buckets[score] = []
        bucket.append(vertex)
        self._size += 1

    def requeue(self, vertex: int, new_score: int) -> None:
        self.insert(new_score, vertex)

    def mark_dirty(self, vertices: Iterable[int]) -> None:
        for v in vertices:
            self._dirty[v] = True

    def is_dirty(self, vertex: int) -> bool:
        return self._dirty[vertex]

    def pop_min(self, evaluate: Callable[[int], int]) -> int:
        """
        Remove and return a vertex of minimum score.

        Dirty vertices are re-scored with ``evaluate``. A fresh score above
        the current minimum sends the vertex back to its new bucket and the
        scan continues; otherwise the vertex is accepted. Clean vertices are
        accepted without re-scoring.

        Raises:
            IndexError: If the scheduler is empty
        """
        while self._size:
            bucket = self._buckets.get(self._minimum)
            if not bucket:
                self._buckets.pop(self._minimum, None)
                self._minimum += 1
                continue

            vertex = bucket.pop()
            self._size -= 1
            if self._dirty[vertex]:
                self._dirty[vertex] = False
                score = evaluate(vertex)
                if score > self._minimum:
                    self.requeue(vertex, score)
                    continue
            return vertex

        raise IndexError("pop from an empty scheduler")
