"""
Utility functions for reading pose frames from JSON.

Two layouts are understood:

- PoseNet style: a list of poses ``[{score, keypoints: [{part, score, position}]}]``
  or a dict ``{"poses": [...]}``.
- OpenPose style: ``{"people": [{"pose_keypoints_2d": [x, y, c, ...]}]}`` with
  COCO-17, COCO-18, BODY-25 or HALPE-26 ordering guessed from the length.
"""

import glob
import json
import logging
import os
from typing import Any, List, Optional

from .constants import KEYPOINT_LAYOUTS
from .models import Keypoint, PoseHypothesis
from .pose_mapper import hypothesis_from_dict

log = logging.getLogger("utils")


def parse_openpose_person(person_data: dict) -> Optional[PoseHypothesis]:
    """OpenPose people[] 항목 하나를 PoseHypothesis 로 변환"""
    raw = person_data.get('pose_keypoints_2d', [])
    count = len(raw) // 3
    layout = KEYPOINT_LAYOUTS.get(count)
    if layout is None:
        log.warning("Unsupported keypoint count %d in pose_keypoints_2d", count)
        return None

    keypoints = []
    for i, label in enumerate(layout):
        if label is None:
            continue
        x, y, conf = raw[i * 3], raw[i * 3 + 1], raw[i * 3 + 2]
        # OpenPose 는 미검출 관절을 (0, 0, 0) 으로 기록
        if conf <= 0:
            continue
        keypoints.append(Keypoint(label, float(x), float(y), float(conf)))

    score = sum(kp.confidence for kp in keypoints) / len(layout) if keypoints else 0.0
    return PoseHypothesis(score=score, keypoints=keypoints)


def parse_pose_frame(data: Any) -> List[PoseHypothesis]:
    """한 프레임 JSON -> 포즈 후보 목록"""
    if isinstance(data, dict) and 'people' in data:
        poses = (parse_openpose_person(p) for p in data.get('people') or [])
        return [p for p in poses if p is not None]
    if isinstance(data, dict):
        data = data.get('poses', [])
    if not isinstance(data, list):
        raise ValueError(f"unsupported pose frame: {type(data).__name__}")
    return [hypothesis_from_dict(p) for p in data if isinstance(p, dict)]


def load_pose_frames(folder: str) -> List[List[PoseHypothesis]]:
    """폴더 내 *.json 파일들을 이름순으로 읽어 프레임 목록 생성

    읽을 수 없는 파일은 빈 프레임으로 처리한다.
    """
    files = sorted(glob.glob(os.path.join(folder, "*.json")))
    frames = []
    for file_path in files:
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                frames.append(parse_pose_frame(json.load(f)))
        except (OSError, ValueError, KeyError, TypeError) as e:
            log.warning("Cannot read pose frame %s: %s", file_path, e)
            frames.append([])
    log.info("Loaded %d pose frames from %s", len(frames), folder)
    return frames
