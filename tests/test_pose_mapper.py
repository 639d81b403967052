import pytest

from conftest import posenet_pose
from pose2d_puppet.config import RigConfig
from pose2d_puppet.models import JointLabel, Keypoint, PoseHypothesis
from pose2d_puppet.pose_mapper import (
    KeypointSmoother,
    PoseMapper,
    keypoint_from_dict,
    keypoints_by_label,
    select_pose,
)


def test_keypoint_from_posenet_dict():
    kp = keypoint_from_dict({"part": "leftWrist", "score": 0.8, "position": {"x": 3, "y": 4}})
    assert kp == Keypoint(JointLabel.LEFT_WRIST, 3.0, 4.0, 0.8)


def test_keypoint_from_flat_dict():
    kp = keypoint_from_dict({"name": "right_knee", "x": 1, "y": 2, "confidence": 0.5})
    assert kp == Keypoint(JointLabel.RIGHT_KNEE, 1.0, 2.0, 0.5)


def test_unknown_keypoint_is_ignored():
    assert keypoint_from_dict({"part": "tail", "score": 1, "position": {"x": 0, "y": 0}}) is None


def test_select_pose_picks_highest_score():
    poses = [
        posenet_pose({"nose": (1, 1)}, score=0.4),
        posenet_pose({"nose": (2, 2)}, score=0.9),
        posenet_pose({"nose": (3, 3)}, score=0.7),
    ]
    assert select_pose(poses).keypoints[0].x == 2


def test_select_pose_tie_keeps_first():
    poses = [
        PoseHypothesis(0.5, [Keypoint(JointLabel.NOSE, 1, 1, 0.9)]),
        PoseHypothesis(0.5, [Keypoint(JointLabel.NOSE, 2, 2, 0.9)]),
    ]
    assert select_pose(poses) is poses[0]


@pytest.mark.parametrize("poses", [None, [], [None]])
def test_select_pose_without_candidates(poses):
    assert select_pose(poses) is None


def test_duplicate_labels_keep_highest_confidence():
    mapped = keypoints_by_label([
        Keypoint(JointLabel.NOSE, 1, 1, 0.3),
        Keypoint(JointLabel.NOSE, 2, 2, 0.8),
        Keypoint(JointLabel.NOSE, 3, 3, 0.5),
    ])
    assert mapped[JointLabel.NOSE].x == 2


def test_map_frame_returns_none_for_empty_frames():
    mapper = PoseMapper()
    assert mapper.map_frame([]) is None
    assert mapper.map_frame([{"score": 0.9, "keypoints": []}]) is None


def test_map_frame_accepts_hypotheses_and_dicts():
    mapper = PoseMapper()
    mapped = mapper.map_frame([posenet_pose({"leftShoulder": (10, 20)})])
    assert mapped[JointLabel.LEFT_SHOULDER].position == (10, 20)

    hypothesis = PoseHypothesis(1.0, [Keypoint(JointLabel.NOSE, 5, 6, 0.9)])
    assert mapper.map_frame([hypothesis])[JointLabel.NOSE].position == (5, 6)


def test_smoother_blends_by_confidence():
    smoother = KeypointSmoother(smoothing=0.5, confidence_threshold=0.1)
    first = smoother.smooth({JointLabel.NOSE: Keypoint(JointLabel.NOSE, 0, 0, 0.9)})
    assert first[JointLabel.NOSE].position == (0, 0)

    # blend = 1 - 0.5 * (1 - 0.6) = 0.8
    second = smoother.smooth({JointLabel.NOSE: Keypoint(JointLabel.NOSE, 10, 20, 0.6)})
    assert second[JointLabel.NOSE].x == pytest.approx(8.0)
    assert second[JointLabel.NOSE].y == pytest.approx(16.0)


def test_smoother_skips_low_confidence():
    smoother = KeypointSmoother(smoothing=0.5, confidence_threshold=0.1)
    smoother.smooth({JointLabel.NOSE: Keypoint(JointLabel.NOSE, 0, 0, 0.9)})
    low = Keypoint(JointLabel.NOSE, 50, 50, 0.05)
    assert smoother.smooth({JointLabel.NOSE: low})[JointLabel.NOSE] is low
    assert smoother.smoothed[JointLabel.NOSE].position == (0, 0)

    smoother.reset()
    assert smoother.smoothed == {}


def test_mapper_smoothing_is_optional():
    assert PoseMapper(RigConfig()).smoother is None
    assert PoseMapper(RigConfig(smoothing=0.4)).smoother is not None
