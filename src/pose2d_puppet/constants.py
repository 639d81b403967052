"""
Constants for the puppet rig: bone schema, draw order and keypoint layouts.
"""

from typing import Dict, List, Optional, Tuple

from .models import BoneSpec, JointLabel


J = JointLabel

# 파생 관절: 두 관절의 중점
DERIVED_JOINTS: Dict[str, Tuple[JointLabel, JointLabel]] = {
    "neck": (J.LEFT_SHOULDER, J.RIGHT_SHOULDER),
    "pelvis": (J.LEFT_HIP, J.RIGHT_HIP),
}

# 기본 본 스키마 (부모가 항상 자식보다 앞)
DEFAULT_BONES: List[BoneSpec] = [
    BoneSpec("torso", None, "pelvis", "neck"),
    BoneSpec("head", "torso", "neck", J.NOSE.value),
    BoneSpec("leftUpperArm", "torso", J.LEFT_SHOULDER.value, J.LEFT_ELBOW.value),
    BoneSpec("leftForearm", "leftUpperArm", J.LEFT_ELBOW.value, J.LEFT_WRIST.value),
    BoneSpec("rightUpperArm", "torso", J.RIGHT_SHOULDER.value, J.RIGHT_ELBOW.value),
    BoneSpec("rightForearm", "rightUpperArm", J.RIGHT_ELBOW.value, J.RIGHT_WRIST.value),
    BoneSpec("leftThigh", "torso", J.LEFT_HIP.value, J.LEFT_KNEE.value),
    BoneSpec("leftShin", "leftThigh", J.LEFT_KNEE.value, J.LEFT_ANKLE.value),
    BoneSpec("rightThigh", "torso", J.RIGHT_HIP.value, J.RIGHT_KNEE.value),
    BoneSpec("rightShin", "rightThigh", J.RIGHT_KNEE.value, J.RIGHT_ANKLE.value),
]

# 고정 z-order: 뒤쪽 팔다리 -> 몸통 -> 앞쪽 팔 -> 얼굴
DRAW_ORDER: List[str] = [
    "rightThigh", "rightShin",
    "leftThigh", "leftShin",
    "rightUpperArm", "rightForearm",
    "torso",
    "leftUpperArm", "leftForearm",
    "head",
]

# 신체 부위별 색상 (본 오버레이용)
BODY_PART_COLORS = {
    'right': "#FF6B6B",
    'left': "#4ECDC4",
    'center': "#FFE66D",
    'face': "#DDA0DD",
}


_COCO_17: List[Optional[JointLabel]] = [
    J.NOSE, J.LEFT_EYE, J.RIGHT_EYE, J.LEFT_EAR, J.RIGHT_EAR,
    J.LEFT_SHOULDER, J.RIGHT_SHOULDER, J.LEFT_ELBOW, J.RIGHT_ELBOW,
    J.LEFT_WRIST, J.RIGHT_WRIST, J.LEFT_HIP, J.RIGHT_HIP,
    J.LEFT_KNEE, J.RIGHT_KNEE, J.LEFT_ANKLE, J.RIGHT_ANKLE,
]

# OpenPose COCO 18 (1 = neck)
_COCO_18: List[Optional[JointLabel]] = [
    J.NOSE, None,
    J.RIGHT_SHOULDER, J.RIGHT_ELBOW, J.RIGHT_WRIST,
    J.LEFT_SHOULDER, J.LEFT_ELBOW, J.LEFT_WRIST,
    J.RIGHT_HIP, J.RIGHT_KNEE, J.RIGHT_ANKLE,
    J.LEFT_HIP, J.LEFT_KNEE, J.LEFT_ANKLE,
    J.RIGHT_EYE, J.LEFT_EYE, J.RIGHT_EAR, J.LEFT_EAR,
]

# OpenPose BODY_25 (1 = neck, 8 = mid hip, 19-24 = feet)
_BODY_25: List[Optional[JointLabel]] = [
    J.NOSE, None,
    J.RIGHT_SHOULDER, J.RIGHT_ELBOW, J.RIGHT_WRIST,
    J.LEFT_SHOULDER, J.LEFT_ELBOW, J.LEFT_WRIST,
    None,
    J.RIGHT_HIP, J.RIGHT_KNEE, J.RIGHT_ANKLE,
    J.LEFT_HIP, J.LEFT_KNEE, J.LEFT_ANKLE,
    J.RIGHT_EYE, J.LEFT_EYE, J.RIGHT_EAR, J.LEFT_EAR,
] + [None] * 6

# HALPE_26: COCO 17 + head, neck, hip, feet
_HALPE_26: List[Optional[JointLabel]] = _COCO_17 + [None] * 9

# pose_keypoints_2d 길이(키포인트 개수)로 레이아웃 추정
KEYPOINT_LAYOUTS: Dict[int, List[Optional[JointLabel]]] = {
    17: _COCO_17,
    18: _COCO_18,
    25: _BODY_25,
    26: _HALPE_26,
}
