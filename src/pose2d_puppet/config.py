"""
Rig configuration.

Values can be given directly or loaded from a YAML file:

    confidence_threshold: 0.1
    min_scale: 0.3
    max_scale: 3.0
    smoothing: 0.0
"""

import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

log = logging.getLogger("config")


@dataclass(frozen=True)
class RigConfig:
    """리그 설정

    confidence_threshold: 이 값보다 confidence 가 높아야 관절을 사용
    min_scale / max_scale: 본 길이 배율 클램프 범위
    smoothing: 키포인트 스무딩 강도 [0, 1], 0 이면 비활성
    skeleton_group / illustration_group: SVG 내 필수 그룹 id
    hide_skeleton: 렌더링 시 관절 마커 그룹 숨김
    """
    confidence_threshold: float = 0.1
    min_scale: float = 0.3
    max_scale: float = 3.0
    smoothing: float = 0.0
    skeleton_group: str = "skeleton"
    illustration_group: str = "illustration"
    hide_skeleton: bool = True

    def __post_init__(self):
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(f"confidence_threshold must be in [0, 1], got {self.confidence_threshold}")
        if self.min_scale <= 0 or self.max_scale < self.min_scale:
            raise ValueError(f"invalid scale range [{self.min_scale}, {self.max_scale}]")
        if not 0.0 <= self.smoothing <= 1.0:
            raise ValueError(f"smoothing must be in [0, 1], got {self.smoothing}")

    @property
    def required_groups(self):
        return (self.skeleton_group, self.illustration_group)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "RigConfig":
        """dict 에서 설정 생성 (알 수 없는 키는 경고 후 무시)"""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            log.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})


def load_config(path: Union[str, Path]) -> RigConfig:
    """YAML 파일에서 설정 로드"""
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, dict):
        raise ValueError(f"config file {path} must contain a mapping")
    config = RigConfig.from_dict(data)
    log.info("Loaded rig config from %s", path)
    return config
