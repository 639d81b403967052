"""
Puppet and PuppetPipeline.

A Puppet is the scene, skeleton, binding table and renderer built together
from one illustration. The pipeline owns the puppet currently on display
and runs frames through it one at a time.
"""

import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence

from .binder import BindingTable, PartBinder
from .config import RigConfig
from .constants import DEFAULT_BONES, DRAW_ORDER
from .errors import PuppetError
from .models import BoneSpec
from .pose_mapper import KeypointsByLabel, PoseMapper, RawPose
from .renderer import IllustrationRenderer
from .scene import Document, SceneGraph
from .skeleton import Skeleton

log = logging.getLogger("puppet")


@dataclass
class Puppet:
    """하나의 일러스트에서 만든 씬 + 스켈레톤 + 바인딩"""
    scene: SceneGraph
    skeleton: Skeleton
    bindings: BindingTable
    renderer: IllustrationRenderer

    @classmethod
    def load(cls, document: Document, config: Optional[RigConfig] = None,
             schema: Sequence[BoneSpec] = DEFAULT_BONES,
             draw_order: Sequence[str] = DRAW_ORDER) -> "Puppet":
        """SVG 로드 -> 스켈레톤 생성 -> 파트 바인딩 (실패 시 ParseError/BindingError)"""
        config = config or RigConfig()
        scene = SceneGraph.parse(document, config.required_groups)
        skeleton = Skeleton.from_scene(scene, schema, config)
        bindings = PartBinder(skeleton).bind(scene, config.illustration_group)
        if config.hide_skeleton:
            scene.set_visible(config.skeleton_group, False)
        renderer = IllustrationRenderer(scene, skeleton, bindings, draw_order)
        puppet = cls(scene, skeleton, bindings, renderer)
        puppet.draw()
        return puppet

    def update(self, keypoints: KeypointsByLabel) -> bytes:
        self.skeleton.update_pose(keypoints)
        return self.draw()

    def draw(self) -> bytes:
        return self.renderer.draw()

    def reset(self) -> bytes:
        self.skeleton.reset()
        return self.draw()


@dataclass
class PipelineStats:
    """프레임 처리 통계"""
    processed: int = 0
    skipped: int = 0
    dropped: int = 0


class PuppetPipeline:
    """포즈 프레임 -> 퍼펫 렌더링 (한 번에 한 프레임)"""

    def __init__(self, config: Optional[RigConfig] = None,
                 schema: Sequence[BoneSpec] = DEFAULT_BONES,
                 draw_order: Sequence[str] = DRAW_ORDER):
        self.config = config or RigConfig()
        self.schema = list(schema)
        self.draw_order = list(draw_order)
        self.mapper = PoseMapper(self.config)
        self.puppet: Optional[Puppet] = None
        self.stats = PipelineStats()
        self._loading = False

    @property
    def is_loading(self) -> bool:
        return self._loading

    def update_config(self, **changes) -> RigConfig:
        """설정 일부 변경 (현재 퍼펫에도 적용, 스무딩 기록은 초기화)"""
        self.config = replace(self.config, **changes)
        self.mapper = PoseMapper(self.config)
        if self.puppet is not None:
            self.puppet.skeleton.config = self.config
        return self.config

    def load(self, document: Document) -> Puppet:
        """새 일러스트 로드. 성공할 때만 교체되고, 실패하면 이전 퍼펫 유지"""
        self._loading = True
        try:
            puppet = Puppet.load(document, self.config, self.schema, self.draw_order)
        except PuppetError as e:
            log.error("Failed to load illustration: %s", e)
            raise
        finally:
            self._loading = False

        self.puppet = puppet
        self.mapper.reset()
        log.info("Loaded puppet with %d bones and %d skin parts",
                 len(puppet.skeleton), len(puppet.bindings))
        return puppet

    def process_frame(self, poses: Optional[Sequence[RawPose]]) -> Optional[bytes]:
        """한 프레임 처리, 새로 렌더링한 SVG 반환 (그리지 않았으면 None)"""
        if self._loading or self.puppet is None:
            self.stats.dropped += 1
            return None

        keypoints = self.mapper.map_frame(poses)
        if keypoints is None:
            # 검출 없음: 마지막 포즈 유지
            self.stats.skipped += 1
            return None

        self.stats.processed += 1
        return self.puppet.update(keypoints)

    @property
    def last_render(self) -> Optional[bytes]:
        return self.puppet.scene.last_render if self.puppet is not None else None
