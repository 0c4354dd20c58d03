from typing import Dict, Generic, Hashable, Iterable, List, Sequence, TypeVar

from facegroup.schemas.clustering import SimilarityGraph

T = TypeVar("T", bound=Hashable)


class UnionFind(Generic[T]):
    """Disjoint sets with path compression and union by rank."""

    def __init__(self, items: Iterable[T] = ()):
        self.parent: Dict[T, T] = {}
        self.rank: Dict[T, int] = {}
        for item in items:
            self.add(item)

    def add(self, item: T) -> None:
        if item not in self.parent:
            self.parent[item] = item
            self.rank[item] = 0

    def find(self, item: T) -> T:
        root = item
        while self.parent[root] != root:
            root = self.parent[root]
        while self.parent[item] != root:
            self.parent[item], item = root, self.parent[item]
        return root

    def union(self, a: T, b: T) -> T:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return root_a
        if self.rank[root_a] < self.rank[root_b]:
            root_a, root_b = root_b, root_a
        self.parent[root_b] = root_a
        if self.rank[root_a] == self.rank[root_b]:
            self.rank[root_a] += 1
        return root_a

    def groups(self, order: Iterable[T]) -> List[List[T]]:
        """Members grouped by root, groups and members in first-seen ``order``."""
        grouped: Dict[T, List[T]] = {}
        for item in order:
            grouped.setdefault(self.find(item), []).append(item)
        return list(grouped.values())


def find_connected_components(face_ids: Sequence[str], graph: SimilarityGraph) -> List[List[str]]:
    """Connected components of the similarity graph, singletons included.

    Edges pointing outside ``face_ids`` are ignored.
    """
    uf: UnionFind[str] = UnionFind(face_ids)
    for face_id, matches in graph.items():
        if face_id not in uf.parent:
            continue
        for match in matches:
            if match.matched_face_id in uf.parent:
                uf.union(face_id, match.matched_face_id)
    return uf.groups(dict.fromkeys(face_ids))
