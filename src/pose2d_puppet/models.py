"""
Data models for pose-driven puppets.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
import math


class JointLabel(str, Enum):
    """포즈 소스가 제공하는 관절 이름"""
    NOSE = "nose"
    LEFT_EYE = "leftEye"
    RIGHT_EYE = "rightEye"
    LEFT_EAR = "leftEar"
    RIGHT_EAR = "rightEar"
    LEFT_SHOULDER = "leftShoulder"
    RIGHT_SHOULDER = "rightShoulder"
    LEFT_ELBOW = "leftElbow"
    RIGHT_ELBOW = "rightElbow"
    LEFT_WRIST = "leftWrist"
    RIGHT_WRIST = "rightWrist"
    LEFT_HIP = "leftHip"
    RIGHT_HIP = "rightHip"
    LEFT_KNEE = "leftKnee"
    RIGHT_KNEE = "rightKnee"
    LEFT_ANKLE = "leftAnkle"
    RIGHT_ANKLE = "rightAnkle"

    @classmethod
    def parse(cls, name: str) -> Optional["JointLabel"]:
        """camelCase / snake_case / LShoulder 형식 모두 허용, 모르는 이름은 None"""
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            return None
        key = name.replace("_", "").replace("-", "").replace(" ", "").lower()
        return _LABEL_LOOKUP.get(key)


def _build_lookup():
    lookup = {}
    for label in JointLabel:
        key = label.value.lower()
        lookup[key] = label
        # LShoulder / RShoulder (OpenPose, Pose2Sim 스타일)
        if key.startswith("left"):
            lookup["l" + key[4:]] = label
        elif key.startswith("right"):
            lookup["r" + key[5:]] = label
    return lookup


_LABEL_LOOKUP = _build_lookup()


@dataclass(frozen=True)
class Keypoint:
    """단일 키포인트 데이터"""
    name: JointLabel
    x: float
    y: float
    confidence: float

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    @property
    def is_valid(self) -> bool:
        return all(math.isfinite(v) for v in (self.x, self.y, self.confidence))


@dataclass(frozen=True)
class PoseHypothesis:
    """한 프레임에서 검출된 한 사람의 포즈"""
    score: float
    keypoints: List[Keypoint] = field(default_factory=list)


@dataclass(frozen=True)
class BoneSpec:
    """본 스키마 항목 (start/end 는 관절 이름 또는 파생 관절)"""
    name: str
    parent: Optional[str]
    start: str
    end: str
