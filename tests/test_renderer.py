import math

import numpy as np
import pytest

from conftest import make_keypoints
from pose2d_puppet.binder import PartBinder
from pose2d_puppet.models import BoneSpec
from pose2d_puppet.renderer import IllustrationRenderer
from pose2d_puppet.scene import SceneGraph, rotation, translation
from pose2d_puppet.skeleton import Skeleton

ARM_SCHEMA = [
    BoneSpec("leftUpperArm", None, "leftShoulder", "leftElbow"),
    BoneSpec("leftForearm", "leftUpperArm", "leftElbow", "leftWrist"),
]


def build(document, schema=None, draw_order=None):
    scene = SceneGraph.parse(document)
    skeleton = Skeleton.from_scene(scene, schema) if schema else Skeleton.from_scene(scene)
    table = PartBinder(skeleton).bind(scene)
    return IllustrationRenderer(scene, skeleton, table, draw_order)


def rotate_about(cx, cy, angle):
    return translation(cx, cy) @ rotation(angle) @ translation(-cx, -cy)


def test_bind_pose_draw_keeps_bind_transforms(demo_svg):
    renderer = build(demo_svg)
    renderer.draw()
    for part in renderer.table.bound:
        assert np.allclose(
            renderer.scene.current_ctm(part.part_id),
            renderer.scene.bind_ctm(part.part_id),
            atol=1e-9,
        ), part.part_id


@pytest.mark.parametrize("angle", [math.pi / 6, -math.pi / 2, 2.5])
def test_child_part_follows_parent_rotation(arm_svg, angle):
    renderer = build(arm_svg, ARM_SCHEMA)
    renderer.skeleton.set_local_pose("leftUpperArm", angle)
    renderer.draw()

    expected = rotate_about(100, 100, angle)
    for part_id in ("leftUpperArm", "leftForearm"):
        assert np.allclose(
            renderer.scene.current_ctm(part_id),
            expected @ renderer.scene.bind_ctm(part_id),
            atol=1e-9,
        ), part_id


def test_unbound_parts_never_move(arm_svg):
    renderer = build(arm_svg)
    sun = renderer.scene.get_group("sun")
    first = renderer.draw()
    assert sun.element.get("transform") is None

    for wrist in [(150, 150), (100, 40), (180, 60)]:
        renderer.skeleton.update_pose(make_keypoints({
            "leftShoulder": (100, 100),
            "leftElbow": (150, 100),
            "leftWrist": wrist,
        }))
        output = renderer.draw()
        assert output != first
        assert sun.element.get("transform") is None
        assert np.allclose(renderer.scene.current_ctm("sun"), np.identity(3))


def test_draw_returns_last_render(arm_svg):
    renderer = build(arm_svg)
    output = renderer.draw()
    assert renderer.scene.last_render == output
    assert output.startswith(b"<")


def test_draw_order_sorts_parts(arm_svg):
    renderer = build(arm_svg, draw_order=["leftForearm", "torso", "leftUpperArm"])
    illustration = renderer.scene.get_group("illustration").element
    # 순위 없는 sun 은 바로 앞 형제(leftForearm) 뒤에 남음
    assert [child.get("id") for child in illustration] == [
        "leftForearm", "sun", "torso", "leftUpperArm",
    ]


def test_bone_segments_match_bind_joints(arm_svg):
    renderer = build(arm_svg)
    segments = {name: (start, end) for name, start, end in renderer.bone_segments()}
    assert segments["leftForearm"][0] == pytest.approx((150, 100))
    assert segments["leftForearm"][1] == pytest.approx((200, 100))
