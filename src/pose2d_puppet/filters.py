"""
Offline smoothing of a loaded pose sequence.

Each keypoint coordinate is filtered along time over runs of consecutive
frames where it was detected; gaps split runs and runs that are too short
for the filter are left as they are.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
from scipy import signal
from scipy.ndimage import gaussian_filter1d

from .models import JointLabel, Keypoint, PoseHypothesis
from .pose_mapper import select_pose

log = logging.getLogger("filters")

FILTER_TYPES = ("butterworth", "gaussian", "median")


def _valid_runs(valid_mask: np.ndarray) -> List[np.ndarray]:
    valid_indices = np.where(valid_mask)[0]
    if len(valid_indices) == 0:
        return []
    gaps = np.where(np.diff(valid_indices) > 1)[0] + 1
    return np.split(valid_indices, gaps)


def butterworth_filter(col: np.ndarray, valid_mask: np.ndarray,
                       order: int = 4, cutoff: float = 6, frame_rate: float = 30) -> np.ndarray:
    result = col.copy()
    b, a = signal.butter(order // 2, cutoff / (frame_rate / 2), 'low', analog=False)
    padlen = 3 * max(len(a), len(b))
    for seq in _valid_runs(valid_mask):
        if len(seq) > padlen:
            result[seq] = signal.filtfilt(b, a, col[seq])
    return result


def gaussian_filter(col: np.ndarray, valid_mask: np.ndarray, sigma: float = 3) -> np.ndarray:
    result = col.copy()
    for seq in _valid_runs(valid_mask):
        if len(seq) > sigma * 2:
            result[seq] = gaussian_filter1d(col[seq], sigma)
    return result


def median_filter(col: np.ndarray, valid_mask: np.ndarray, kernel_size: int = 5) -> np.ndarray:
    result = col.copy()
    if kernel_size % 2 == 0:
        kernel_size += 1
    for seq in _valid_runs(valid_mask):
        if len(seq) >= kernel_size:
            result[seq] = signal.medfilt(col[seq], kernel_size)
    return result


def filter_pose_sequence(frames: Sequence[Sequence[PoseHypothesis]], filter_type: str,
                         params: Optional[dict] = None,
                         frame_rate: float = 30) -> List[List[PoseHypothesis]]:
    """프레임마다 최고 점수 포즈를 골라 관절 궤적을 필터링

    결과의 각 프레임은 필터링된 포즈 하나만 담는다 (포즈가 없던 프레임은 빈 목록).
    """
    if filter_type not in FILTER_TYPES:
        raise ValueError(f"unknown filter type: {filter_type}")
    params = params or {}

    selected = [select_pose(poses) for poses in frames]
    labels = list(JointLabel)
    n_frames = len(selected)
    data = np.full((n_frames, len(labels), 3), np.nan)
    column = {label: i for i, label in enumerate(labels)}

    for f_idx, pose in enumerate(selected):
        if pose is None:
            continue
        for kp in pose.keypoints:
            data[f_idx, column[kp.name]] = (kp.x, kp.y, kp.confidence)

    filtered = data.copy()
    for k_idx in range(len(labels)):
        valid_mask = ~np.isnan(data[:, k_idx, 0])
        if np.sum(valid_mask) < 5:
            continue
        for coord_idx in range(2):
            col = data[:, k_idx, coord_idx]
            if filter_type == "butterworth":
                filtered[:, k_idx, coord_idx] = butterworth_filter(
                    col, valid_mask, params.get('order', 4), params.get('cutoff', 6), frame_rate)
            elif filter_type == "gaussian":
                filtered[:, k_idx, coord_idx] = gaussian_filter(col, valid_mask, params.get('sigma', 3))
            else:
                filtered[:, k_idx, coord_idx] = median_filter(
                    col, valid_mask, params.get('kernel_size', 5))

    result = []
    for f_idx, pose in enumerate(selected):
        if pose is None:
            result.append([])
            continue
        keypoints = []
        for kp in pose.keypoints:
            x, y, _ = filtered[f_idx, column[kp.name]]
            keypoints.append(Keypoint(kp.name, float(x), float(y), kp.confidence))
        result.append([PoseHypothesis(score=pose.score, keypoints=keypoints)])
    log.info("Applied %s filter to %d frames", filter_type, n_frames)
    return result
