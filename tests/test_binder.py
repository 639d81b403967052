import numpy as np
import pytest

from pose2d_puppet.binder import PartBinder, fold_name
from pose2d_puppet.errors import BindingError
from pose2d_puppet.models import BoneSpec
from pose2d_puppet.scene import SceneGraph
from pose2d_puppet.skeleton import Skeleton


@pytest.mark.parametrize("name", [
    "leftUpperArm",
    "left_upper_arm",
    "LeftUpperArm",
    "leftUpperArm-sleeve",
    "leftUpperArm.2",
    "leftUpperArm shadow",
])
def test_fold_name_variants(name):
    assert fold_name(name) == "leftupperarm"


def load(document):
    scene = SceneGraph.parse(document)
    skeleton = Skeleton.from_scene(scene)
    return scene, skeleton, PartBinder(skeleton).bind(scene)


def test_demo_binds_every_bone(demo_svg):
    scene, skeleton, table = load(demo_svg)

    assert [p.part_id for p in table.unbound] == ["ground", "sun"]
    for bone in skeleton.bones:
        assert table.by_bone[bone.id], bone.name
    assert table.bone_for("head-hat") == skeleton.bone_id("head")
    assert table.bone_for("ground") is None


def test_nested_part_binds_to_its_own_bone(demo_svg):
    scene, skeleton, table = load(demo_svg)
    torso = skeleton.bone_id("torso")
    assert [p.part_id for p in table.by_bone[torso]] == ["torso", "torso-belt"]


def test_partial_illustration_binds_available_parts(arm_svg):
    scene, skeleton, table = load(arm_svg)

    assert sorted(p.part_id for p in table.bound) == ["leftForearm", "leftUpperArm", "torso"]
    assert [p.part_id for p in table.unbound] == ["sun"]
    assert "sun" in table
    assert len(table) == 4


def test_bind_offset_maps_bone_frame_to_part(arm_svg):
    scene, skeleton, table = load(arm_svg)
    arm = skeleton.bone("leftUpperArm")
    part = table.by_bone[arm.id][0]

    # F(bind) . offset == bind CTM
    assert np.allclose(arm.bind_frame() @ part.bind_offset, scene.bind_ctm(part.part_id))
    assert np.allclose(part.bind_offset, [[1, 0, -100], [0, 1, -100], [0, 0, 1]])


def test_children_of_unbound_container_are_resolved():
    document = """<svg xmlns="http://www.w3.org/2000/svg">
      <g id="skeleton">
        <circle id="leftShoulder" cx="100" cy="100" r="2"/>
        <circle id="rightShoulder" cx="60" cy="100" r="2"/>
        <circle id="leftHip" cx="95" cy="200" r="2"/>
        <circle id="rightHip" cx="65" cy="200" r="2"/>
      </g>
      <g id="illustration">
        <g id="body">
          <rect id="torso_main" x="60" y="100" width="40" height="100"/>
          <rect id="badge" x="70" y="120" width="5" height="5"/>
        </g>
      </g>
    </svg>"""
    scene, skeleton, table = load(document)

    assert table.bone_for("torso_main") is None
    assert [p.part_id for p in table.unbound] == ["body", "torso_main", "badge"]

    document = document.replace('id="torso_main"', 'id="torso-main"')
    scene, skeleton, table = load(document)
    assert table.bone_for("torso-main") == skeleton.root.id
    assert [p.part_id for p in table.unbound] == ["body", "badge"]


def test_bones_with_colliding_part_names_raise(arm_svg):
    schema = [
        BoneSpec("leftUpperArm", None, "leftShoulder", "leftElbow"),
        BoneSpec("left_upper_arm", "leftUpperArm", "leftElbow", "leftWrist"),
    ]
    skeleton = Skeleton.from_scene(SceneGraph.parse(arm_svg), schema)
    with pytest.raises(BindingError, match="same part name"):
        PartBinder(skeleton)


def test_root_without_skin_part_still_binds():
    scene = SceneGraph.parse("""<svg xmlns="http://www.w3.org/2000/svg">
      <g id="skeleton">
        <circle id="leftShoulder" cx="100" cy="100" r="2"/>
        <circle id="rightShoulder" cx="60" cy="100" r="2"/>
        <circle id="leftHip" cx="95" cy="200" r="2"/>
        <circle id="rightHip" cx="65" cy="200" r="2"/>
      </g>
      <g id="illustration"><circle id="sun" cx="5" cy="5" r="2"/></g>
    </svg>""")
    skeleton = Skeleton.from_scene(scene)
    table = PartBinder(skeleton).bind(scene)
    assert table.by_bone[skeleton.root.id] == ()
    assert [p.part_id for p in table.unbound] == ["sun"]
