from typing import List, Sequence

from facegroup.schemas.clustering import EnrichedCluster, SimilarityGraph


def enrich_clusters(clusters: Sequence[List[str]], graph: SimilarityGraph) -> List[EnrichedCluster]:
    """Size, mean intra-cluster similarity and representative face per cluster.

    Only the original similarity graph is used (merge-pass probe hits are not
    edges). The representative is the face with the most intra-cluster edges;
    the first face wins ties and clusters without edges.
    """
    enriched = []
    for face_ids in clusters:
        members = set(face_ids)
        total_similarity = 0.0
        connections = 0
        representative = face_ids[0]
        best_degree = 0

        for face_id in face_ids:
            inside = [m for m in graph.get(face_id, []) if m.matched_face_id in members]
            total_similarity += sum(m.similarity for m in inside)
            connections += len(inside)
            if len(inside) > best_degree:
                best_degree = len(inside)
                representative = face_id

        enriched.append(EnrichedCluster(
            face_ids=list(face_ids),
            representative_face_id=representative,
            average_similarity=total_similarity / connections if connections else 0.0,
            size=len(face_ids),
        ))
    return enriched
