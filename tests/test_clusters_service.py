import pytest

from facegroup.core.errors import BadRequestError, ForbiddenError, NotFoundError
from facegroup.models import Face, FaceCluster, FaceClusterMember, Media
from facegroup.services import membership
from facegroup.services.clusters import (
    delete_cluster,
    list_cluster_faces,
    list_clusters_with_samples,
    rename_cluster,
)


@pytest.fixture
async def clustered(group_world, make_faces):
    group, media = group_world["group"], group_world["media"]
    second_photo = await Media.create(group=group, storage_key="groups/family/photo-2.jpg")

    blurry = await make_faces(media, ["c1"], confidence=60.0, brightness=10, sharpness=5)
    sharp = await make_faces(second_photo, ["c2"], confidence=99.0, brightness=60, sharpness=90)
    others = await make_faces(media, ["c3", "c4", "c5"])

    big = await membership.create_cluster(group.id, membership.face_pairs(blurry + sharp + others[:1], 1.0), 0.9)
    small = await membership.create_cluster(group.id, membership.face_pairs(others[1:], 1.0), 0.8)
    return {"big": big, "small": small, "sharp": sharp[0]}


async def test_listing_is_largest_first_with_best_sample(group_world, clustered):
    clusters = await list_clusters_with_samples(group_world["group"].id, group_world["member"].id)

    assert [c.id for c in clusters] == [clustered["big"].id, clustered["small"].id]
    biggest = clusters[0]
    assert biggest.appearance_count == 3
    assert biggest.total_photos == 2
    assert biggest.sample_face.face_id == clustered["sharp"].id
    assert biggest.sample_face.bounding_box.width == pytest.approx(0.2)


async def test_stored_quality_score_wins(group_world, clustered):
    face = await Face.get(oracle_face_id="c1")
    face.quality_score = 100
    await face.save()

    clusters = await list_clusters_with_samples(group_world["group"].id, group_world["admin"].id)
    assert clusters[0].sample_face.face_id == face.id
    assert clusters[0].sample_face.quality_score == 100


async def test_outsiders_cannot_list(group_world, clustered):
    with pytest.raises(NotFoundError):
        await list_clusters_with_samples(group_world["group"].id, group_world["outsider"].id)


async def test_rename(group_world, clustered):
    cluster = await rename_cluster(clustered["small"].id, group_world["member"].id, "  Uncle Bob ")
    assert cluster.cluster_name == "Uncle Bob"

    cleared = await rename_cluster(clustered["small"].id, group_world["member"].id, "   ")
    assert cleared.cluster_name is None


async def test_rename_too_long(group_world, clustered):
    with pytest.raises(BadRequestError):
        await rename_cluster(clustered["small"].id, group_world["member"].id, "x" * 51)


async def test_rename_unknown_cluster(group_world):
    with pytest.raises(NotFoundError):
        await rename_cluster("00000000-0000-0000-0000-000000000000", group_world["admin"].id, "Bob")


async def test_delete_requires_admin(group_world, clustered):
    with pytest.raises(ForbiddenError):
        await delete_cluster(clustered["small"].id, group_world["member"].id)

    await delete_cluster(clustered["small"].id, group_world["admin"].id)
    assert not await FaceCluster.filter(id=clustered["small"].id).exists()
    assert await FaceClusterMember.filter(cluster_id=clustered["small"].id).count() == 0
    # faces themselves stay
    assert await Face.filter(oracle_face_id__in=["c4", "c5"]).count() == 2


async def test_cluster_faces_paging(group_world, clustered):
    first = await list_cluster_faces(clustered["big"].id, group_world["member"].id, page=1, limit=2)
    second = await list_cluster_faces(clustered["big"].id, group_world["member"].id, page=2, limit=2)

    assert first.total == second.total == 3
    assert len(first.items) == 2
    assert len(second.items) == 1
    seen = {i.face_id for i in first.items} | {i.face_id for i in second.items}
    assert len(seen) == 3
