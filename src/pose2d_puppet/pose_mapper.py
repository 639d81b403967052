"""
PoseMapper - turns pose-source output into keypoints by label.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from .config import RigConfig
from .models import JointLabel, Keypoint, PoseHypothesis

log = logging.getLogger("pose_mapper")

KeypointsByLabel = Dict[JointLabel, Keypoint]
RawPose = Union[PoseHypothesis, Mapping[str, Any]]


def keypoint_from_dict(data: Mapping[str, Any]) -> Optional[Keypoint]:
    """PoseNet 형식 ({part, score, position: {x, y}}) 또는 {name, x, y, confidence}"""
    label = JointLabel.parse(data.get("part", data.get("name")))
    if label is None:
        return None
    position = data.get("position")
    if position is not None:
        x, y = position["x"], position["y"]
    else:
        x, y = data["x"], data["y"]
    confidence = data.get("score", data.get("confidence", 0.0))
    return Keypoint(label, float(x), float(y), float(confidence))


def hypothesis_from_dict(data: Mapping[str, Any]) -> PoseHypothesis:
    keypoints = []
    for raw in data.get("keypoints") or []:
        kp = raw if isinstance(raw, Keypoint) else keypoint_from_dict(raw)
        if kp is not None:
            keypoints.append(kp)
        else:
            log.debug("Ignoring keypoint with unknown label: %r", raw)
    return PoseHypothesis(score=float(data.get("score", 0.0)), keypoints=keypoints)


def select_pose(poses: Optional[Sequence[RawPose]]) -> Optional[PoseHypothesis]:
    """점수가 가장 높은 포즈 선택 (동점이면 앞쪽)"""
    best = None
    for raw in poses or []:
        if raw is None:
            continue
        pose = raw if isinstance(raw, PoseHypothesis) else hypothesis_from_dict(raw)
        if best is None or pose.score > best.score:
            best = pose
    return best


def keypoints_by_label(keypoints: Iterable[Keypoint]) -> KeypointsByLabel:
    """라벨별 키포인트 (중복 시 confidence 가 높은 것)"""
    result: KeypointsByLabel = {}
    for kp in keypoints:
        previous = result.get(kp.name)
        if previous is not None:
            log.debug("Duplicate keypoint %s in frame", kp.name.value)
            if previous.confidence >= kp.confidence:
                continue
        result[kp.name] = kp
    return result


class KeypointSmoother:
    """confidence 가중 EMA 스무딩

    blend = 1 - smoothing * (1 - confidence)
    confidence 가 높을수록 새 관측값을 더 많이 반영한다.
    """

    def __init__(self, smoothing: float = 0.5, confidence_threshold: float = 0.1):
        self.smoothing = smoothing
        self.confidence_threshold = confidence_threshold
        self.smoothed: KeypointsByLabel = {}

    def smooth(self, keypoints: KeypointsByLabel) -> KeypointsByLabel:
        result = dict(keypoints)
        for label, kp in keypoints.items():
            if not kp.is_valid or kp.confidence <= self.confidence_threshold:
                continue
            prev = self.smoothed.get(label)
            if prev is not None:
                blend = 1.0 - self.smoothing * (1.0 - kp.confidence)
                kp = Keypoint(
                    label,
                    blend * kp.x + (1.0 - blend) * prev.x,
                    blend * kp.y + (1.0 - blend) * prev.y,
                    kp.confidence,
                )
            self.smoothed[label] = kp
            result[label] = kp
        return result

    def reset(self):
        self.smoothed = {}


class PoseMapper:
    """프레임의 포즈 후보들 -> Skeleton.update_pose 입력"""

    def __init__(self, config: Optional[RigConfig] = None):
        config = config or RigConfig()
        self.smoother: Optional[KeypointSmoother] = None
        if config.smoothing > 0:
            self.smoother = KeypointSmoother(config.smoothing, config.confidence_threshold)

    def map_frame(self, poses: Optional[Sequence[RawPose]]) -> Optional[KeypointsByLabel]:
        """포즈가 없으면 None (해당 프레임은 건너뜀)"""
        pose = select_pose(poses)
        if pose is None or not pose.keypoints:
            return None
        mapped = keypoints_by_label(pose.keypoints)
        if self.smoother is not None:
            mapped = self.smoother.smooth(mapped)
        return mapped

    def reset(self):
        if self.smoother is not None:
            self.smoother.reset()
