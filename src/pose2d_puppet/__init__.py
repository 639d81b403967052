"""
pose2d_puppet - Pose-driven 2D vector puppet.
Binds an SVG illustration to a bone hierarchy and deforms it from 2D keypoints.
"""

__version__ = "0.1.0"

# Lazy imports so the rig can be used without loading Qt
_EXPORTS = {
    "JointLabel": ".models",
    "Keypoint": ".models",
    "PoseHypothesis": ".models",
    "BoneSpec": ".models",
    "RigConfig": ".config",
    "load_config": ".config",
    "PuppetError": ".errors",
    "ParseError": ".errors",
    "BindingError": ".errors",
    "SceneGraph": ".scene",
    "Skeleton": ".skeleton",
    "PartBinder": ".binder",
    "BindingTable": ".binder",
    "PoseMapper": ".pose_mapper",
    "IllustrationRenderer": ".renderer",
    "Puppet": ".puppet",
    "PuppetPipeline": ".puppet",
    "load_pose_frames": ".utils",
    "filter_pose_sequence": ".filters",
    "PuppetViewerWindow": ".app",
}


def __getattr__(name):
    module_name = _EXPORTS.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    from importlib import import_module
    return getattr(import_module(module_name, __name__), name)


__all__ = list(_EXPORTS) + ["__version__"]


def main():
    """Entry point for the application."""
    from .app import run_app
    run_app()
