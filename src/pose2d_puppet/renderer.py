"""
IllustrationRenderer - propagates bone transforms to skin parts.
"""

import logging
from typing import List, Optional, Sequence

from .binder import BindingTable
from .constants import DRAW_ORDER
from .scene import SceneGraph
from .skeleton import Skeleton

log = logging.getLogger("renderer")


class IllustrationRenderer:
    """현재 포즈를 씬에 반영하고 다시 그림"""

    def __init__(self, scene: SceneGraph, skeleton: Skeleton, table: BindingTable,
                 draw_order: Optional[Sequence[str]] = None):
        self.scene = scene
        self.skeleton = skeleton
        self.table = table
        self.draw_order = list(DRAW_ORDER if draw_order is None else draw_order)
        self._apply_draw_order()

    def _apply_draw_order(self):
        rank = {name: i for i, name in enumerate(self.draw_order)}
        bones = self.skeleton.bones
        ranked = [
            (rank[bones[part.bone_id].name], i, part.part_id)
            for i, part in enumerate(self.table.bound)
            if bones[part.bone_id].name in rank
        ]
        ranked.sort()
        self.scene.apply_z_order(part_id for _, _, part_id in ranked)

    def draw(self) -> bytes:
        """씬 초기화 후 바인딩된 파트에 월드 변환 적용, 렌더링 결과 반환"""
        frames = self.skeleton.world_frames()
        self.scene.clear()
        # 문서 순서 = 부모 파트가 중첩된 자식보다 먼저
        for part in self.table.bound:
            self.scene.set_world_transform(part.part_id, frames[part.bone_id] @ part.bind_offset)
        return self.scene.render()

    def bone_segments(self) -> List[tuple]:
        """(본 이름, 시작점, 끝점) 목록 (오버레이용)"""
        return [
            (bone.name, start, end)
            for bone, (start, end) in zip(self.skeleton.bones, self.skeleton.joint_positions())
        ]
