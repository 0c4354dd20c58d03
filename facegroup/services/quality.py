from typing import Optional, Sequence


def face_quality_score(
    confidence: float,
    brightness: Optional[float] = None,
    sharpness: Optional[float] = None,
    pose: Optional[Sequence[float]] = None,
) -> int:
    """Composite 0-100 score used to rank faces for thumbnails.

    confidence: up to 30 points, linear.
    brightness: 25 inside [40, 80], 15 inside [30, 90], else 5.
    sharpness:  up to 25 points, linear.
    pose (roll, yaw, pitch): 20/15/10/5 by mean absolute angle (<10, <20, <30, rest).
    Missing optional attributes contribute nothing.
    """
    score = (confidence / 100.0) * 30

    if brightness is not None:
        if 40 <= brightness <= 80:
            score += 25
        elif 30 <= brightness <= 90:
            score += 15
        else:
            score += 5

    if sharpness is not None:
        score += (sharpness / 100.0) * 25

    if pose is not None:
        avg_deviation = sum(abs(angle) for angle in pose) / len(pose)
        if avg_deviation < 10:
            score += 20
        elif avg_deviation < 20:
            score += 15
        elif avg_deviation < 30:
            score += 10
        else:
            score += 5

    # round half up, then clamp
    return max(0, min(100, int(score + 0.5)))


def score_face(face) -> int:
    """Quality score for a Face row, preferring the stored value."""
    if face.quality_score is not None:
        return face.quality_score
    return face_quality_score(face.confidence, face.brightness, face.sharpness, face.pose)


async def assign_quality_score(face) -> int:
    face.quality_score = face_quality_score(face.confidence, face.brightness, face.sharpness, face.pose)
    await face.save(update_fields=["quality_score"])
    return face.quality_score
