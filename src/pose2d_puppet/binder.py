"""
PartBinder - resolves illustration groups to bones once per load.

A group binds to a bone when the first token of its id (split on ``-``,
``.`` or whitespace), with underscores removed and case folded, equals the
bone name folded the same way: ``leftUpperArm``, ``left_upper_arm`` and
``leftUpperArm-sleeve`` all bind to ``leftUpperArm``.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from .errors import BindingError
from .scene import Group, SceneGraph
from .skeleton import Skeleton

log = logging.getLogger("binder")

_TOKEN_SPLIT = re.compile(r"[-.\s]")


def fold_name(name: str) -> str:
    return _TOKEN_SPLIT.split(name, 1)[0].replace("_", "").lower()


@dataclass(frozen=True)
class PartBinding:
    """스킨 파트 하나의 바인딩 (bone_id 가 None 이면 고정 장식)"""
    part_id: str
    bone_id: Optional[int]
    bind_offset: Optional[np.ndarray] = None

    @property
    def is_bound(self) -> bool:
        return self.bone_id is not None


class BindingTable:
    """스킨 파트 -> 본 매핑 (로드 시 한 번 생성)"""

    def __init__(self, parts: List[PartBinding], bone_count: int):
        self.parts = tuple(parts)
        by_bone: List[List[PartBinding]] = [[] for _ in range(bone_count)]
        for part in self.parts:
            if part.is_bound:
                by_bone[part.bone_id].append(part)
        self.by_bone = tuple(tuple(items) for items in by_bone)
        self._by_part = {part.part_id: part for part in self.parts}

    @property
    def bound(self) -> List[PartBinding]:
        return [p for p in self.parts if p.is_bound]

    @property
    def unbound(self) -> List[PartBinding]:
        return [p for p in self.parts if not p.is_bound]

    def bone_for(self, part_id: str) -> Optional[int]:
        part = self._by_part.get(part_id)
        return part.bone_id if part is not None else None

    def __contains__(self, part_id):
        return part_id in self._by_part

    def __len__(self):
        return len(self.parts)


class PartBinder:
    """이름 규칙으로 일러스트 그룹을 본에 연결

    루트 본을 찾을 수 없는 경우는 Skeleton.from_joints 에서 이미 BindingError.
    여기서는 정규화한 이름이 겹치는 본이 있으면 BindingError.
    """

    def __init__(self, skeleton: Skeleton):
        self.skeleton = skeleton
        self._lookup: Dict[str, int] = {}
        for bone in skeleton.bones:
            key = fold_name(bone.name)
            if key in self._lookup:
                other = skeleton.bones[self._lookup[key]].name
                raise BindingError(f"bones {other!r} and {bone.name!r} resolve to the same part name")
            self._lookup[key] = bone.id

    def resolve(self, name: str) -> Optional[int]:
        """그룹 이름 -> 본 id (없으면 None)"""
        return self._lookup.get(fold_name(name))

    def bind(self, scene: SceneGraph, illustration_group: Optional[str] = None) -> BindingTable:
        illustration_group = illustration_group or self.skeleton.config.illustration_group

        bind_frames = [np.linalg.inv(bone.bind_frame()) for bone in self.skeleton.bones]
        parts: List[PartBinding] = []

        def walk(group: Group, inside_bound: bool):
            bone_id = self.resolve(group.id)
            if bone_id is not None:
                offset = bind_frames[bone_id] @ scene.bind_ctm(group.id)
                parts.append(PartBinding(group.id, bone_id, offset))
                inside_bound = True
            elif not inside_bound:
                parts.append(PartBinding(group.id, None))
            for child in group.children:
                walk(child, inside_bound)

        for child in scene.require_group(illustration_group).children:
            walk(child, False)

        table = BindingTable(parts, len(self.skeleton.bones))
        log.info("Bound %d skin parts (%d unbound)", len(table.bound), len(table.unbound))
        for part in table.unbound:
            log.debug("Part %r does not match any bone, kept static", part.part_id)
        return table
