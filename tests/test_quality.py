"""Quality scoring used to pick a cluster's sample face"""

from hypothesis import given, strategies as st

from facegroup.services.quality import face_quality_score


def test_confidence_only():
    assert face_quality_score(100) == 30
    assert face_quality_score(0) == 0
    assert face_quality_score(50) == 15


def test_perfect_face_scores_100():
    assert face_quality_score(100, brightness=60, sharpness=100, pose=(0, 0, 0)) == 100


def test_brightness_bands():
    assert face_quality_score(0, brightness=40) == 25
    assert face_quality_score(0, brightness=80) == 25
    assert face_quality_score(0, brightness=35) == 15
    assert face_quality_score(0, brightness=90) == 15
    assert face_quality_score(0, brightness=95) == 5
    assert face_quality_score(0, brightness=10) == 5


def test_pose_bands():
    assert face_quality_score(0, pose=(5, 5, 5)) == 20
    assert face_quality_score(0, pose=(-15, 15, 15)) == 15
    assert face_quality_score(0, pose=(25, 25, 25)) == 10
    assert face_quality_score(0, pose=(45, 0, 90)) == 5


def test_zero_valued_attributes_still_count():
    # brightness 0 is a measurement, not a missing value
    assert face_quality_score(0, brightness=0) == 5
    assert face_quality_score(0, pose=(0, 0, 0)) == 20


def test_rounds_half_up():
    # 99% confidence -> 29.7 points
    assert face_quality_score(99) == 30
    # 81% confidence -> 24.3 points
    assert face_quality_score(81) == 24


@given(
    st.floats(min_value=0, max_value=100),
    st.one_of(st.none(), st.floats(min_value=0, max_value=255)),
    st.one_of(st.none(), st.floats(min_value=0, max_value=100)),
    st.one_of(st.none(), st.tuples(*[st.floats(min_value=-180, max_value=180)] * 3)),
)
def test_score_is_bounded(confidence, brightness, sharpness, pose):
    score = face_quality_score(confidence, brightness, sharpness, pose)
    assert isinstance(score, int)
    assert 0 <= score <= 100
