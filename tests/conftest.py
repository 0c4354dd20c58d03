"""
Pytest configuration and fixtures for FaceGroup tests
"""

import os

# Test-friendly environment prior to importing the app
os.environ["APP_ENV"] = "test"
os.environ["CACHE_ENABLED"] = "0"
os.environ["METRICS_ENABLED"] = "0"
os.environ["JOBS_BACKEND"] = "inline"

from typing import Iterable, List  # noqa: E402

import pytest  # noqa: E402

from facegroup.db import close_db, init_db  # noqa: E402
from facegroup.models import (  # noqa: E402
    ROLE_ADMIN,
    ROLE_MEMBER,
    Face,
    Group,
    GroupMember,
    Media,
    User,
)
from facegroup.services.face_clustering import FaceClusteringService  # noqa: E402

from fakes import FAST  # noqa: E402


@pytest.fixture
def make_clustering():
    def _make(oracle, options=FAST) -> FaceClusteringService:
        return FaceClusteringService(oracle, options)
    return _make


@pytest.fixture(scope="function")
async def db_setup():
    """Fresh in-memory SQLite database for each test."""
    await init_db("sqlite://:memory:")
    try:
        yield
    finally:
        await close_db()


@pytest.fixture
async def group_world(db_setup):
    """A group with an admin, a plain member, an outsider and one media item."""
    admin = await User.create(email="admin@example.com", name="Admin")
    member = await User.create(email="member@example.com", name="Member")
    outsider = await User.create(email="outsider@example.com", name="Outsider")
    group = await Group.create(name="Family", collection_id="face-media-group-test")
    await GroupMember.create(group=group, user=admin, role=ROLE_ADMIN)
    await GroupMember.create(group=group, user=member, role=ROLE_MEMBER)
    media = await Media.create(group=group, uploaded_by=admin, storage_key="groups/family/photo-1.jpg")
    return {"admin": admin, "member": member, "outsider": outsider, "group": group, "media": media}


@pytest.fixture
def make_faces():
    async def _make(media, oracle_ids: Iterable[str], processed: bool = True, **attrs) -> List[Face]:
        faces = []
        for i, oracle_id in enumerate(oracle_ids):
            faces.append(await Face.create(
                media=media,
                oracle_face_id=oracle_id,
                x=0.1 * i, y=0.1, width=0.2, height=0.2,
                confidence=attrs.get("confidence", 99.0),
                brightness=attrs.get("brightness"),
                sharpness=attrs.get("sharpness"),
                processed=processed,
            ))
        return faces
    return _make
