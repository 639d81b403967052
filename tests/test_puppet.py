import numpy as np
import pytest

from conftest import ARM_SVG, DEMO_JOINTS, posenet_pose
from pose2d_puppet.config import RigConfig
from pose2d_puppet.errors import BindingError, ParseError
from pose2d_puppet.puppet import Puppet, PuppetPipeline


NO_HIPS_SVG = """<svg xmlns="http://www.w3.org/2000/svg">
  <g id="skeleton">
    <circle id="leftShoulder" cx="100" cy="100" r="2"/>
    <circle id="rightShoulder" cx="60" cy="100" r="2"/>
  </g>
  <g id="illustration"><rect id="torso" width="10" height="10"/></g>
</svg>"""


@pytest.fixture
def pipeline(demo_svg):
    pipeline = PuppetPipeline(RigConfig())
    pipeline.load(demo_svg)
    return pipeline


def test_load_demo_puppet(demo_svg):
    puppet = Puppet.load(demo_svg)

    assert len(puppet.skeleton) == 10
    assert puppet.scene.get_group("skeleton").element.get("display") == "none"
    assert puppet.scene.last_render is not None


def test_skeleton_stays_visible_when_configured(demo_svg):
    puppet = Puppet.load(demo_svg, RigConfig(hide_skeleton=False))
    assert puppet.scene.get_group("skeleton").element.get("display") is None


@pytest.mark.parametrize("document, error", [
    ("<svg><g></svg>", ParseError),
    ('<svg xmlns="http://www.w3.org/2000/svg"><g id="skeleton"/></svg>', ParseError),
    (NO_HIPS_SVG, BindingError),
    (ARM_SVG.replace('<g id="illustration"', '<g id="illustration" transform="scale(0)"'), ParseError),
])
def test_failed_load_keeps_previous_puppet(pipeline, document, error):
    previous = pipeline.puppet
    with pytest.raises(error):
        pipeline.load(document)
    assert pipeline.puppet is previous
    assert not pipeline.is_loading


def test_frames_during_load_are_dropped(pipeline, monkeypatch):
    original = Puppet.load
    results = []

    def slow_load(document, *args):
        results.append(pipeline.process_frame([posenet_pose(DEMO_JOINTS)]))
        return original(document, *args)

    monkeypatch.setattr(Puppet, "load", slow_load)
    pipeline.load(ARM_SVG)

    assert results == [None]
    assert pipeline.stats.dropped == 1
    assert pipeline.stats.processed == 0
    assert len(pipeline.puppet.skeleton) == 3


def test_frame_before_load_is_dropped():
    pipeline = PuppetPipeline()
    assert pipeline.process_frame([posenet_pose(DEMO_JOINTS)]) is None
    assert pipeline.stats.dropped == 1
    assert pipeline.last_render is None


def test_posenet_frame_moves_forearm(pipeline):
    forearm = pipeline.puppet.scene.get_group("leftForearm")
    before = pipeline.puppet.scene.current_ctm("leftForearm")

    output = pipeline.process_frame([
        posenet_pose({**DEMO_JOINTS, "leftWrist": (360, 220)}, score=0.8),
        posenet_pose({name: (0, 0) for name in DEMO_JOINTS}, score=0.2),
    ])

    assert output is not None
    assert output == pipeline.last_render
    assert pipeline.stats.processed == 1
    assert forearm.element.get("transform", "").startswith("matrix(")
    assert not np.allclose(pipeline.puppet.scene.current_ctm("leftForearm"), before)
    # 위팔은 그대로
    assert np.allclose(
        pipeline.puppet.scene.current_ctm("leftUpperArm"),
        pipeline.puppet.scene.bind_ctm("leftUpperArm"),
        atol=1e-9,
    )


def test_empty_frame_holds_last_pose(pipeline):
    pipeline.process_frame([posenet_pose({**DEMO_JOINTS, "rightKnee": (180, 340)})])
    rendered = pipeline.last_render
    pose = list(pipeline.puppet.skeleton.pose)

    assert pipeline.process_frame([]) is None
    assert pipeline.process_frame(None) is None
    assert pipeline.stats.skipped == 2
    assert pipeline.last_render == rendered
    assert pipeline.puppet.skeleton.pose == pose


def test_reset_returns_to_bind_pose(pipeline):
    pipeline.process_frame([posenet_pose({**DEMO_JOINTS, "leftElbow": (340, 150)})])
    pipeline.puppet.reset()
    for part in pipeline.puppet.bindings.bound:
        assert np.allclose(
            pipeline.puppet.scene.current_ctm(part.part_id),
            pipeline.puppet.scene.bind_ctm(part.part_id),
            atol=1e-9,
        )


def test_update_config_reaches_loaded_skeleton(pipeline):
    pipeline.update_config(confidence_threshold=0.5, smoothing=0.3)
    assert pipeline.puppet.skeleton.config.confidence_threshold == 0.5
    assert pipeline.mapper.smoother is not None

    # 0.5 이하는 무시
    skeleton = pipeline.puppet.skeleton
    before = list(skeleton.pose)
    pipeline.process_frame([posenet_pose({**DEMO_JOINTS, "leftElbow": (340, 150)}, confidence=0.5)])
    assert skeleton.pose == before
