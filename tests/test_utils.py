import json

import pytest

from pose2d_puppet.models import JointLabel
from pose2d_puppet.utils import load_pose_frames, parse_openpose_person, parse_pose_frame


def openpose_person(count, points):
    """points: {index: (x, y, c)}"""
    raw = [0.0] * (count * 3)
    for index, (x, y, c) in points.items():
        raw[index * 3:index * 3 + 3] = [x, y, c]
    return {"pose_keypoints_2d": raw}


def test_parse_coco17_person():
    pose = parse_openpose_person(openpose_person(17, {0: (10, 20, 0.9), 9: (30, 40, 0.5)}))

    labels = [kp.name for kp in pose.keypoints]
    assert labels == [JointLabel.NOSE, JointLabel.LEFT_WRIST]
    assert pose.score == pytest.approx(1.4 / 17)


def test_parse_body25_skips_neck_and_feet():
    points = {1: (5, 5, 0.9), 7: (30, 40, 0.8), 8: (1, 1, 0.9), 20: (2, 2, 0.9)}
    pose = parse_openpose_person(openpose_person(25, points))

    assert [kp.name for kp in pose.keypoints] == [JointLabel.LEFT_WRIST]
    assert pose.keypoints[0].position == (30, 40)


def test_unsupported_keypoint_count():
    assert parse_openpose_person(openpose_person(12, {})) is None


def test_parse_openpose_frame():
    frame = {"people": [openpose_person(18, {0: (1, 2, 0.7)}), {"pose_keypoints_2d": [1, 2]}]}
    poses = parse_pose_frame(frame)
    assert len(poses) == 1
    assert poses[0].keypoints[0].name is JointLabel.NOSE


def test_parse_posenet_list_and_dict():
    pose = {"score": 0.7, "keypoints": [
        {"part": "rightAnkle", "score": 0.6, "position": {"x": 1, "y": 2}},
    ]}
    assert parse_pose_frame([pose])[0].keypoints[0].name is JointLabel.RIGHT_ANKLE
    assert parse_pose_frame({"poses": [pose]})[0].score == pytest.approx(0.7)
    assert parse_pose_frame({}) == []


def test_parse_rejects_unknown_frame():
    with pytest.raises(ValueError):
        parse_pose_frame("nope")


def test_load_pose_frames_keeps_bad_files_as_empty(tmp_path):
    (tmp_path / "000.json").write_text(json.dumps({"people": [openpose_person(17, {0: (1, 1, 1)})]}))
    (tmp_path / "001.json").write_text("{ not json")
    (tmp_path / "002.json").write_text(json.dumps([]))
    (tmp_path / "notes.txt").write_text("ignored")

    frames = load_pose_frames(str(tmp_path))

    assert len(frames) == 3
    assert len(frames[0]) == 1
    assert frames[1] == []
    assert frames[2] == []
