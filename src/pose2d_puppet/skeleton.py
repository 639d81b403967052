"""
Skeleton - bone hierarchy with bind pose and current pose.

Bone angles in the current pose are stored relative to the parent bone's
current world angle, so a bone that keeps its pose follows its parent.

Bone frames:
    bind     F  = T(bind_start) . R(bind_angle)
    current  F' = T(pivot) . R(world_angle) . Sx(scale)

The pivot of a child bone is its bind start mapped through the parent's
delta ``F'(parent) . inv(F(parent))``. Scale stretches along the bone axis
and is not inherited.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .config import RigConfig
from .constants import DEFAULT_BONES, DERIVED_JOINTS
from .errors import BindingError
from .models import BoneSpec, JointLabel, Keypoint
from .scene import SceneGraph, rotation, scaling, translation

log = logging.getLogger("skeleton")

Point = Tuple[float, float]


def wrap_angle(angle: float) -> float:
    """라디안 각도를 (-pi, pi] 범위로 정규화"""
    wrapped = math.atan2(math.sin(angle), math.cos(angle))
    return math.pi if wrapped == -math.pi else wrapped


@dataclass
class Bone:
    """단일 본 (bind pose 정보 포함)"""
    id: int
    name: str
    parent_id: Optional[int]
    start_joint: str
    end_joint: str
    bind_start: np.ndarray
    bind_end: np.ndarray
    bind_angle: float = 0.0
    bind_length: float = 0.0
    bind_local_angle: float = 0.0
    children: List["Bone"] = field(default_factory=list, repr=False)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def bind_frame(self) -> np.ndarray:
        return translation(*self.bind_start) @ rotation(self.bind_angle)


@dataclass
class BonePose:
    """본의 현재 포즈 (부모 기준 각도, 길이 배율)"""
    angle: float
    scale: float = 1.0


class SkeletonState(Enum):
    BOUND = "bound"
    POSED = "posed"


class Skeleton:
    """본 계층 구조와 현재 포즈"""

    def __init__(self, bones: Sequence[Bone], config: Optional[RigConfig] = None,
                 derived_offsets: Optional[Mapping[str, Point]] = None):
        self.config = config or RigConfig()
        self.bones: List[Bone] = list(bones)
        self.derived_offsets: Dict[str, np.ndarray] = {
            name: np.asarray(offset, dtype=float) for name, offset in (derived_offsets or {}).items()
        }
        self._validate()

        self._index: Dict[str, int] = {bone.name: bone.id for bone in self.bones}
        for bone in self.bones:
            bone.children = []
        for bone in self.bones:
            if bone.parent_id is not None:
                parent = self.bones[bone.parent_id]
                parent.children.append(bone)
                bone.bind_local_angle = wrap_angle(bone.bind_angle - parent.bind_angle)
            else:
                bone.bind_local_angle = wrap_angle(bone.bind_angle)

        self.pose: List[BonePose] = []
        self.root_position = np.zeros(2)
        self.reset()

    def _validate(self):
        if not self.bones:
            raise BindingError("skeleton has no bones")
        roots = [bone for bone in self.bones if bone.parent_id is None]
        if len(roots) != 1:
            raise BindingError(f"skeleton must have exactly one root bone, found {len(roots)}")
        for position, bone in enumerate(self.bones):
            if bone.id != position:
                raise BindingError(f"bone {bone.name!r} has id {bone.id}, expected {position}")
            # 부모가 항상 앞에 있어야 하므로 사이클도 불가능
            if bone.parent_id is not None and not 0 <= bone.parent_id < bone.id:
                raise BindingError(f"bone {bone.name!r} has invalid parent id {bone.parent_id}")

    # ---- 생성 ----

    @classmethod
    def from_joints(
        cls,
        joints: Mapping[str, Point],
        schema: Sequence[BoneSpec] = DEFAULT_BONES,
        config: Optional[RigConfig] = None,
    ) -> "Skeleton":
        """관절 위치(bind pose)로부터 스켈레톤 생성

        관절이 없는 본은 하위 본과 함께 제외되고, 루트 본을 만들 수 없으면 BindingError.
        """
        positions = {name: np.asarray(p, dtype=float) for name, p in joints.items()}
        # 직접 그린 neck/pelvis 마커는 중점 대비 오프셋으로 기록 (프레임에서도 같은 오프셋 적용)
        derived_offsets: Dict[str, np.ndarray] = {}
        for derived, (a, b) in DERIVED_JOINTS.items():
            if a.value not in positions or b.value not in positions:
                continue
            midpoint = (positions[a.value] + positions[b.value]) / 2.0
            if derived in positions:
                derived_offsets[derived] = positions[derived] - midpoint
            else:
                positions[derived] = midpoint

        bones: List[Bone] = []
        ids: Dict[str, int] = {}
        for spec in schema:
            if spec.parent is None and bones:
                raise BindingError(f"schema has more than one root bone ({spec.name!r})")
            if spec.parent is not None and spec.parent not in ids:
                log.warning("Dropping bone %r: parent %r is not available", spec.name, spec.parent)
                continue

            start = positions.get(spec.start)
            end = positions.get(spec.end)
            length = float(np.linalg.norm(end - start)) if start is not None and end is not None else 0.0
            if length < 1e-6:
                if spec.parent is None:
                    raise BindingError(
                        f"root bone {spec.name!r} cannot be located ({spec.start} -> {spec.end})")
                log.warning("Dropping bone %r: joints %s/%s missing or coincident",
                            spec.name, spec.start, spec.end)
                continue

            dx, dy = end - start
            bone = Bone(
                id=len(bones),
                name=spec.name,
                parent_id=ids.get(spec.parent) if spec.parent is not None else None,
                start_joint=spec.start,
                end_joint=spec.end,
                bind_start=start.copy(),
                bind_end=end.copy(),
                bind_angle=math.atan2(dy, dx),
                bind_length=length,
            )
            ids[spec.name] = bone.id
            bones.append(bone)

        if not bones:
            raise BindingError("root bone cannot be located: empty schema")
        return cls(bones, config, derived_offsets)

    @classmethod
    def from_scene(
        cls,
        scene: SceneGraph,
        schema: Sequence[BoneSpec] = DEFAULT_BONES,
        config: Optional[RigConfig] = None,
    ) -> "Skeleton":
        """씬의 skeleton 그룹에 있는 관절 마커로 스켈레톤 생성"""
        config = config or RigConfig()
        joints: Dict[str, Point] = {}
        for group in scene.descendants(config.skeleton_group):
            label = JointLabel.parse(group.id)
            if label is not None:
                joints[label.value] = scene.anchor_point(group.id)
            elif group.id in DERIVED_JOINTS:
                joints[group.id] = scene.anchor_point(group.id)
        log.info("Found %d joint markers in group %r", len(joints), config.skeleton_group)
        return cls.from_joints(joints, schema, config)

    # ---- 조회 ----

    @property
    def root(self) -> Bone:
        return self.bones[0]

    @property
    def state(self) -> SkeletonState:
        return self._state

    def bone_id(self, name: str) -> Optional[int]:
        return self._index.get(name)

    def bone(self, name: str) -> Bone:
        bone_id = self._index.get(name)
        if bone_id is None:
            raise KeyError(f"unknown bone: {name}")
        return self.bones[bone_id]

    def __len__(self):
        return len(self.bones)

    def __contains__(self, name):
        return name in self._index

    # ---- 포즈 ----

    def reset(self):
        """현재 포즈를 bind pose 로 복원"""
        self.pose = [BonePose(bone.bind_local_angle, 1.0) for bone in self.bones]
        self.root_position = self.root.bind_start.copy()
        self._state = SkeletonState.BOUND

    def set_local_pose(self, name: str, angle: float, scale: float = 1.0):
        """본의 로컬 각도/배율 직접 지정"""
        bone = self.bone(name)
        self.pose[bone.id] = BonePose(wrap_angle(angle), self._clamp(scale))
        self._state = SkeletonState.POSED

    def _clamp(self, scale: float) -> float:
        return min(max(scale, self.config.min_scale), self.config.max_scale)

    def _frame_joints(self, keypoints: Mapping[JointLabel, Keypoint]) -> Dict[str, np.ndarray]:
        """confidence 임계값을 넘는 관절 위치 (파생 관절 포함)"""
        threshold = self.config.confidence_threshold
        joints = {}
        for label, kp in keypoints.items():
            label = JointLabel.parse(label)
            if label is None or kp is None or not kp.is_valid or kp.confidence <= threshold:
                continue
            joints[label.value] = np.array([kp.x, kp.y], dtype=float)
        for derived, (a, b) in DERIVED_JOINTS.items():
            if a.value in joints and b.value in joints:
                joints[derived] = (joints[a.value] + joints[b.value]) / 2.0
                if derived in self.derived_offsets:
                    joints[derived] = joints[derived] + self.derived_offsets[derived]
        return joints

    def update_pose(self, keypoints_by_label: Mapping[JointLabel, Keypoint]) -> int:
        """키포인트로 현재 포즈 갱신, 갱신된 본 개수 반환

        관절이 없거나 confidence 가 낮은 본은 이전 포즈를 유지한다.
        """
        joints = self._frame_joints(keypoints_by_label)
        world = [0.0] * len(self.bones)
        updated = 0

        for bone in self.bones:
            parent_world = world[bone.parent_id] if bone.parent_id is not None else 0.0
            start = joints.get(bone.start_joint)
            end = joints.get(bone.end_joint)
            length = float(np.linalg.norm(end - start)) if start is not None and end is not None else 0.0

            if length > 1e-6:
                dx, dy = end - start
                self.pose[bone.id] = BonePose(
                    angle=wrap_angle(math.atan2(dy, dx) - parent_world),
                    scale=self._clamp(length / bone.bind_length),
                )
                updated += 1
            else:
                log.debug("Missing joint for bone %r, keeping previous pose", bone.name)
            world[bone.id] = parent_world + self.pose[bone.id].angle

        root_start = joints.get(self.root.start_joint)
        if root_start is not None:
            self.root_position = root_start

        self._state = SkeletonState.POSED
        return updated

    def world_angles(self) -> List[float]:
        """부모에서 자식 순으로 누적한 각 본의 월드 각도"""
        world = [0.0] * len(self.bones)
        for bone in self.bones:
            parent_world = world[bone.parent_id] if bone.parent_id is not None else 0.0
            world[bone.id] = parent_world + self.pose[bone.id].angle
        return world

    def world_angle(self, name: str) -> float:
        return wrap_angle(self.world_angles()[self.bone(name).id])

    def world_frames(self) -> List[np.ndarray]:
        """각 본의 현재 월드 프레임 F'"""
        angles = self.world_angles()
        frames: List[np.ndarray] = [None] * len(self.bones)
        deltas: List[np.ndarray] = [None] * len(self.bones)
        for bone in self.bones:
            if bone.parent_id is None:
                pivot = self.root_position
            else:
                px, py, _ = deltas[bone.parent_id] @ np.array([bone.bind_start[0], bone.bind_start[1], 1.0])
                pivot = (px, py)
            frames[bone.id] = (
                translation(pivot[0], pivot[1])
                @ rotation(angles[bone.id])
                @ scaling(self.pose[bone.id].scale, 1.0)
            )
            deltas[bone.id] = frames[bone.id] @ np.linalg.inv(bone.bind_frame())
        return frames

    def bone_deltas(self) -> List[np.ndarray]:
        """bind pose 대비 현재 포즈 변환 (F' . inv(F))"""
        return [
            frame @ np.linalg.inv(bone.bind_frame())
            for bone, frame in zip(self.bones, self.world_frames())
        ]

    def joint_positions(self) -> List[Tuple[Point, Point]]:
        """각 본의 현재 시작/끝 위치 (오버레이용)"""
        segments = []
        for bone, frame in zip(self.bones, self.world_frames()):
            sx, sy, _ = frame @ np.array([0.0, 0.0, 1.0])
            ex, ey, _ = frame @ np.array([bone.bind_length, 0.0, 1.0])
            segments.append(((float(sx), float(sy)), (float(ex), float(ey))))
        return segments
