import pytest

from facegroup.models import Face, FaceCluster, FaceClusterMember, Group
from facegroup.services.face_grouping import group_new_faces

from fakes import FakeOracle


async def test_groups_batch_and_skips_single_appearances(group_world, make_faces, make_clustering):
    group = group_world["group"]
    faces = await make_faces(group_world["media"], ["n1", "n2", "n3"], processed=False, brightness=60, sharpness=50)
    oracle = FakeOracle({("n1", "n2"): 96})

    report = await group_new_faces(group.id, [f.id for f in faces], make_clustering(oracle))

    assert report.clusters_created == 1
    assert report.faces_grouped == 2
    assert report.faces_skipped == 1

    [cluster] = await FaceCluster.filter(group_id=group.id).all()
    assert cluster.appearance_count == 2
    assert cluster.confidence == pytest.approx(0.96)
    assert await FaceClusterMember.filter(cluster_id=cluster.id).count() == 2

    stored = await Face.filter(id__in=[f.id for f in faces]).all()
    assert all(f.processed for f in stored)
    assert all(f.quality_score is not None for f in stored)
    # graph searches run at the incremental threshold
    assert [call[2] for call in oracle.calls[:3]] == [85, 85, 85]

    refreshed = await Group.get(id=group.id)
    assert refreshed.cluster_version == group.cluster_version + 1


async def test_already_processed_faces_are_ignored(group_world, make_faces, make_clustering):
    faces = await make_faces(group_world["media"], ["d1", "d2"], processed=True)
    oracle = FakeOracle({("d1", "d2"): 99})

    report = await group_new_faces(group_world["group"].id, [f.id for f in faces], make_clustering(oracle))

    assert report.clusters_created == 0
    assert oracle.calls == []
    assert await FaceCluster.filter(group_id=group_world["group"].id).count() == 0
