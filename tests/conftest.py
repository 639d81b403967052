from pathlib import Path

import pytest

from pose2d_puppet.config import RigConfig
from pose2d_puppet.models import JointLabel, Keypoint


DEMO_SVG = Path(__file__).resolve().parents[1] / "src" / "pose2d_puppet" / "assets" / "puppet.svg"

# 데모 일러스트의 bind pose 관절 위치
DEMO_JOINTS = {
    "nose": (256, 80),
    "leftEye": (264, 72),
    "rightEye": (248, 72),
    "leftEar": (272, 78),
    "rightEar": (240, 78),
    "leftShoulder": (290, 130),
    "rightShoulder": (222, 130),
    "leftElbow": (300, 200),
    "rightElbow": (212, 200),
    "leftWrist": (305, 265),
    "rightWrist": (207, 265),
    "leftHip": (278, 260),
    "rightHip": (234, 260),
    "leftKnee": (282, 360),
    "rightKnee": (230, 360),
    "leftAnkle": (285, 450),
    "rightAnkle": (227, 450),
}

# 왼팔과 몸통만 있는 일러스트
ARM_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="300" height="300">
  <g id="skeleton">
    <circle id="leftShoulder" cx="100" cy="100" r="2"/>
    <circle id="rightShoulder" cx="60" cy="100" r="2"/>
    <circle id="leftElbow" cx="150" cy="100" r="2"/>
    <circle id="leftWrist" cx="200" cy="100" r="2"/>
    <circle id="leftHip" cx="95" cy="200" r="2"/>
    <circle id="rightHip" cx="65" cy="200" r="2"/>
  </g>
  <g id="illustration">
    <rect id="torso" x="60" y="100" width="40" height="100"/>
    <rect id="leftUpperArm" x="100" y="95" width="50" height="10"/>
    <rect id="leftForearm" x="150" y="96" width="50" height="8"/>
    <circle id="sun" cx="250" cy="30" r="10"/>
  </g>
</svg>
"""


def make_keypoints(joints, confidence=0.99):
    return {
        JointLabel.parse(name): Keypoint(JointLabel.parse(name), float(x), float(y), confidence)
        for name, (x, y) in joints.items()
    }


def posenet_pose(joints, score=0.9, confidence=0.99):
    return {
        "score": score,
        "keypoints": [
            {"part": name, "score": confidence, "position": {"x": x, "y": y}}
            for name, (x, y) in joints.items()
        ],
    }


@pytest.fixture
def config():
    return RigConfig(confidence_threshold=0.1, min_scale=0.3, max_scale=3.0)


@pytest.fixture
def demo_svg():
    return DEMO_SVG.read_text(encoding="utf-8")


@pytest.fixture
def arm_svg():
    return ARM_SVG
