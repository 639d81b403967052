"""
Pose Puppet Viewer - Main Application Window
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from PySide6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QHBoxLayout, QVBoxLayout,
    QFileDialog, QStatusBar, QSplitter, QMessageBox
)
from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QKeyEvent

from .canvas import PuppetCanvas, render_to_image
from .config import RigConfig, load_config
from .controls import PlaybackBar, ControlPanel
from .errors import PuppetError
from .filters import filter_pose_sequence
from .models import PoseHypothesis
from .puppet import PuppetPipeline
from .utils import load_pose_frames

log = logging.getLogger("app")

DEFAULT_ILLUSTRATION = Path(__file__).resolve().parent / "assets" / "puppet.svg"


class PuppetViewerWindow(QMainWindow):
    """메인 윈도우"""

    def __init__(self, config: Optional[RigConfig] = None):
        super().__init__()
        self.pipeline = PuppetPipeline(config)
        self.all_frames: List[List[PoseHypothesis]] = []
        self.filtered_frames: Optional[List[List[PoseHypothesis]]] = None
        self.current_frame: int = 0
        self.play_timer = QTimer(self)
        self.play_timer.timeout.connect(self._on_timer_tick)

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        self.setWindowTitle("Pose Puppet")
        self.setMinimumSize(1000, 750)
        self.setStyleSheet("""
            QMainWindow {
                background-color: #1a1a2e;
            }
            QStatusBar {
                background-color: #16213e;
                color: #e0e0e0;
            }
        """)

        central = QWidget()
        self.setCentralWidget(central)
        outer_layout = QVBoxLayout(central)
        outer_layout.setContentsMargins(0, 0, 0, 0)
        outer_layout.setSpacing(0)

        content_widget = QWidget()
        content_layout = QHBoxLayout(content_widget)
        content_layout.setContentsMargins(10, 10, 10, 10)

        self.canvas = PuppetCanvas()
        self.control_panel = ControlPanel()
        self.control_panel.setFixedWidth(280)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.canvas)
        splitter.addWidget(self.control_panel)
        splitter.setStretchFactor(0, 1)
        splitter.setStretchFactor(1, 0)
        content_layout.addWidget(splitter)
        outer_layout.addWidget(content_widget, 1)

        self.playback_bar = PlaybackBar()
        outer_layout.addWidget(self.playback_bar)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.status_bar.showMessage("일러스트를 불러오려면 Ctrl+O, 포즈 폴더는 Ctrl+P")

        menubar = self.menuBar()
        file_menu = menubar.addMenu("파일")

        open_svg_action = file_menu.addAction("일러스트 열기")
        open_svg_action.setShortcut("Ctrl+O")
        open_svg_action.triggered.connect(self._open_illustration)

        open_poses_action = file_menu.addAction("포즈 폴더 열기")
        open_poses_action.setShortcut("Ctrl+P")
        open_poses_action.triggered.connect(self._open_pose_folder)

        export_action = file_menu.addAction("PNG 로 내보내기")
        export_action.setShortcut("Ctrl+E")
        export_action.triggered.connect(self._export_png)

        file_menu.addSeparator()

        exit_action = file_menu.addAction("종료")
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)

    def _connect_signals(self):
        self.control_panel.confidence_changed.connect(self._on_confidence_changed)
        self.control_panel.smoothing_changed.connect(self._on_smoothing_changed)
        self.control_panel.reset_pose_requested.connect(self._reset_pose)
        self.control_panel.filter_apply_requested.connect(self._apply_filter)
        self.control_panel.filter_revert_requested.connect(self._revert_filter)
        self.control_panel.show_skeleton_changed.connect(self.canvas.set_show_skeleton)
        self.control_panel.skeleton_width_changed.connect(self.canvas.set_skeleton_width)
        self.control_panel.skeleton_opacity_changed.connect(self.canvas.set_skeleton_opacity)

        self.playback_bar.frame_changed.connect(self._go_to_frame)
        self.playback_bar.playback_toggled.connect(self._toggle_playback)

    def keyPressEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key.Key_Space:
            self.playback_bar._toggle_playback()
        elif event.key() == Qt.Key.Key_Left:
            self._go_to_frame(self.current_frame - 1)
        elif event.key() == Qt.Key.Key_Right:
            self._go_to_frame(self.current_frame + 1)
        elif event.key() == Qt.Key.Key_Home:
            self._go_to_frame(0)
        elif event.key() == Qt.Key.Key_End:
            self._go_to_frame(len(self.all_frames) - 1)
        else:
            super().keyPressEvent(event)

    # ---- 로딩 ----

    def _open_illustration(self):
        path, _ = QFileDialog.getOpenFileName(self, "SVG 일러스트 선택", "", "SVG (*.svg)")
        if path:
            self.load_illustration(path)

    def load_illustration(self, path: str) -> bool:
        self.status_bar.showMessage(f"일러스트 로딩 중: {path}")
        try:
            puppet = self.pipeline.load(path)
        except PuppetError as e:
            # 이전 퍼펫은 그대로 표시
            self.status_bar.showMessage(f"⚠ 일러스트 로드 실패: {e}")
            if self.pipeline.puppet is None:
                self.canvas.set_message(f"일러스트를 불러올 수 없습니다\n{e}")
            QMessageBox.warning(self, "로드 실패", str(e))
            return False

        unbound = len(puppet.bindings.unbound)
        self.status_bar.showMessage(
            f"✓ {os.path.basename(path)}: 본 {len(puppet.skeleton)}개, "
            f"파트 {len(puppet.bindings.bound)}개 (고정 {unbound}개)")
        if self.all_frames:
            self._load_current_frame()
        else:
            self._refresh_canvas()
        return True

    def _open_pose_folder(self):
        folder = QFileDialog.getExistingDirectory(
            self, "포즈 JSON 폴더 선택", "",
            QFileDialog.Option.ShowDirsOnly
        )
        if folder:
            self.load_pose_folder(folder)

    def load_pose_folder(self, folder: str):
        frames = load_pose_frames(folder)
        if not frames:
            self.status_bar.showMessage(f"⚠ JSON 파일을 찾을 수 없습니다: {folder}")
            return

        self.play_timer.stop()
        self.playback_bar.stop_playback()
        self.all_frames = frames
        self.filtered_frames = None
        self.control_panel.set_filter_applied(False)
        self.current_frame = 0
        self.playback_bar.set_total_frames(len(frames))
        self._load_current_frame()
        self.status_bar.showMessage(f"✓ {len(frames)}개 프레임 로드됨: {folder}")

    def _export_png(self):
        svg_data = self.pipeline.last_render
        if svg_data is None:
            self.status_bar.showMessage("⚠ 내보낼 일러스트가 없습니다")
            return
        path, _ = QFileDialog.getSaveFileName(self, "PNG 저장", "puppet.png", "PNG (*.png)")
        if not path:
            return
        width, height = self.pipeline.puppet.scene.size
        image = render_to_image(svg_data, int(width) or 512, int(height) or 512)
        if image.save(path):
            self.status_bar.showMessage(f"✓ 저장됨: {path}")
        else:
            log.error("Failed to save %s", path)
            self.status_bar.showMessage(f"⚠ 저장 실패: {path}")

    # ---- 프레임 ----

    def _frames(self) -> List[List[PoseHypothesis]]:
        return self.filtered_frames if self.filtered_frames is not None else self.all_frames

    def _load_current_frame(self):
        frames = self._frames()
        if not frames or self.current_frame >= len(frames):
            return
        self.pipeline.process_frame(frames[self.current_frame])
        self.playback_bar.set_current_frame(self.current_frame)
        self._refresh_canvas()

    def _refresh_canvas(self):
        puppet = self.pipeline.puppet
        if puppet is None:
            self.canvas.set_svg(None)
            return
        self.canvas.set_bone_segments(puppet.renderer.bone_segments())
        self.canvas.set_svg(self.pipeline.last_render)

    def _go_to_frame(self, frame: int):
        if not self.all_frames:
            return
        self.current_frame = max(0, min(frame, len(self.all_frames) - 1))
        self._load_current_frame()

    def _toggle_playback(self, playing: bool):
        if playing:
            fps = self.playback_bar.get_fps()
            self.play_timer.start(int(1000 / fps))
        else:
            self.play_timer.stop()

    def _on_timer_tick(self):
        if self.current_frame >= len(self.all_frames) - 1:
            self._go_to_frame(0)
        else:
            self._go_to_frame(self.current_frame + 1)

    # ---- 설정 ----

    def _on_confidence_changed(self, value: float):
        self.pipeline.update_config(confidence_threshold=value)

    def _on_smoothing_changed(self, value: float):
        self.pipeline.update_config(smoothing=value)

    def _reset_pose(self):
        if self.pipeline.puppet is None:
            return
        self.pipeline.puppet.reset()
        self._refresh_canvas()
        self.status_bar.showMessage("✓ 바인드 포즈로 복원됨")

    def _apply_filter(self, filter_type: str, params: dict):
        if not self.all_frames:
            self.status_bar.showMessage("⚠ 필터링할 데이터가 없습니다")
            return
        try:
            self.filtered_frames = filter_pose_sequence(
                self.all_frames, filter_type, params, frame_rate=self.playback_bar.get_fps())
        except ValueError as e:
            self.status_bar.showMessage(f"⚠ 필터링 오류: {e}")
            return

        filter_name = filter_type.capitalize()
        self.control_panel.set_filter_applied(True, filter_name)
        self._load_current_frame()
        self.status_bar.showMessage(f"✓ {filter_name} 필터 적용 완료")

    def _revert_filter(self):
        self.filtered_frames = None
        self.control_panel.set_filter_applied(False)
        self._load_current_frame()
        self.status_bar.showMessage("✓ 원본 데이터로 복원됨")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Drive an SVG puppet from 2D pose keypoints")
    parser.add_argument("illustration", nargs="?", default=str(DEFAULT_ILLUSTRATION),
                        help="SVG illustration (path or URL)")
    parser.add_argument("poses", nargs="?", default=None,
                        help="folder of per-frame pose JSON files")
    parser.add_argument("--config", default=None, help="rig config YAML")
    parser.add_argument("--log-level", default="INFO")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = load_config(args.config) if args.config else RigConfig()

    app = QApplication(sys.argv[:1])
    app.setStyle("Fusion")

    window = PuppetViewerWindow(config)
    window.load_illustration(args.illustration)
    if args.poses:
        window.load_pose_folder(args.poses)
    window.show()
    sys.exit(app.exec())


def run_app():
    """Entry point for the application."""
    main()


if __name__ == "__main__":
    main()
