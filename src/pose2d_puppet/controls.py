"""
Control widgets for the puppet viewer - PlaybackBar and ControlPanel.
"""

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout,
    QSlider, QLabel, QPushButton, QSpinBox,
    QGroupBox, QComboBox, QCheckBox
)
from PySide6.QtCore import Qt, Signal


GROUP_STYLE = """
    QGroupBox {
        color: #4ECDC4;
        font-weight: bold;
        border: 1px solid #3d3d5c;
        border-radius: 8px;
        margin-top: 12px;
        padding-top: 10px;
        background-color: #1f1f3a;
    }
    QGroupBox::title {
        subcontrol-origin: margin;
        left: 10px;
        padding: 0 5px;
    }
"""

BUTTON_STYLE = """
    QPushButton {
        background-color: #4ECDC4;
        color: #1a1a2e;
        border: none;
        border-radius: 6px;
        padding: 8px 16px;
        font-weight: bold;
    }
    QPushButton:hover {
        background-color: #5FE6DD;
    }
    QPushButton:disabled {
        background-color: #3d3d5c;
        color: #808080;
    }
"""

SPINBOX_STYLE = """
    QSpinBox {
        background-color: #2d2d44;
        color: #e0e0e0;
        border: 1px solid #3d3d5c;
        border-radius: 4px;
        padding: 4px 8px;
    }
"""


class PlaybackBar(QWidget):
    """하단 재생 컨트롤 바"""

    frame_changed = Signal(int)
    playback_toggled = Signal(bool)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.total_frames = 0
        self.is_playing = False
        self._setup_ui()

    def _setup_ui(self):
        self.setFixedHeight(60)
        self.setObjectName("playbackBar")
        self.setStyleSheet("""
            #playbackBar {
                background-color: #16213e;
                border-top: 1px solid #3d3d5c;
            }
        """)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(15, 8, 15, 8)
        layout.setSpacing(15)

        self.play_btn = QPushButton("▶")
        self.play_btn.setFixedSize(40, 40)
        self.play_btn.clicked.connect(self._toggle_playback)
        self.play_btn.setStyleSheet(BUTTON_STYLE)
        layout.addWidget(self.play_btn)

        self.frame_slider = QSlider(Qt.Orientation.Horizontal)
        self.frame_slider.setMinimum(0)
        self.frame_slider.setMaximum(0)
        self.frame_slider.valueChanged.connect(self._on_slider_changed)
        layout.addWidget(self.frame_slider, 1)

        self.frame_label = QLabel("0 / 0")
        self.frame_label.setStyleSheet("color: #e0e0e0; font-size: 13px; min-width: 100px;")
        layout.addWidget(self.frame_label)

        fps_label = QLabel("FPS:")
        fps_label.setStyleSheet("color: #a0a0a0;")
        layout.addWidget(fps_label)

        self.fps_spin = QSpinBox()
        self.fps_spin.setRange(1, 120)
        self.fps_spin.setValue(30)
        self.fps_spin.setButtonSymbols(QSpinBox.ButtonSymbols.NoButtons)
        self.fps_spin.setStyleSheet(SPINBOX_STYLE)
        layout.addWidget(self.fps_spin)

    def set_total_frames(self, total: int):
        self.total_frames = total
        self.frame_slider.setMaximum(max(0, total - 1))
        self._update_frame_label()

    def set_current_frame(self, frame: int):
        self.frame_slider.blockSignals(True)
        self.frame_slider.setValue(frame)
        self.frame_slider.blockSignals(False)
        self._update_frame_label()

    def _update_frame_label(self):
        current = self.frame_slider.value()
        self.frame_label.setText(f"{current} / {max(0, self.total_frames - 1)}")

    def _on_slider_changed(self, value):
        self._update_frame_label()
        self.frame_changed.emit(value)

    def _toggle_playback(self):
        self.is_playing = not self.is_playing
        self.play_btn.setText("■" if self.is_playing else "▶")
        self.playback_toggled.emit(self.is_playing)

    def get_fps(self) -> int:
        return self.fps_spin.value()

    def stop_playback(self):
        self.is_playing = False
        self.play_btn.setText("▶")


class ControlPanel(QWidget):
    """리그 설정 / 필터 / 표시 옵션 패널"""

    confidence_changed = Signal(float)
    smoothing_changed = Signal(float)
    reset_pose_requested = Signal()
    filter_apply_requested = Signal(str, dict)
    filter_revert_requested = Signal()
    show_skeleton_changed = Signal(bool)
    skeleton_width_changed = Signal(int)
    skeleton_opacity_changed = Signal(int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._setup_ui()

    def _setup_ui(self):
        layout = QVBoxLayout(self)
        layout.setSpacing(12)
        layout.setContentsMargins(5, 5, 5, 5)

        # === 리그 ===
        rig_group = QGroupBox("리그")
        rig_group.setStyleSheet(GROUP_STYLE)
        rig_layout = QVBoxLayout(rig_group)

        self.conf_slider, self.conf_value_label = self._add_slider_row(
            rig_layout, "Confidence:", 10, self._on_confidence_changed)
        self.smooth_slider, self.smooth_value_label = self._add_slider_row(
            rig_layout, "Smoothing:", 0, self._on_smoothing_changed)

        self.reset_btn = QPushButton("바인드 포즈로")
        self.reset_btn.setStyleSheet(BUTTON_STYLE)
        self.reset_btn.clicked.connect(lambda: self.reset_pose_requested.emit())
        rig_layout.addWidget(self.reset_btn)
        layout.addWidget(rig_group)

        # === 스무딩 필터 ===
        filter_group = QGroupBox("스무딩 필터")
        filter_group.setStyleSheet(GROUP_STYLE)
        filter_layout = QVBoxLayout(filter_group)

        self.filter_combo = QComboBox()
        self.filter_combo.addItems(["Butterworth", "Gaussian", "Median"])
        self.filter_combo.currentTextChanged.connect(self._on_filter_type_changed)
        filter_layout.addWidget(self.filter_combo)

        param_layout = QHBoxLayout()
        self.param_label = QLabel("Cutoff (Hz):")
        self.param_label.setStyleSheet("color: #a0a0a0;")
        self.param_spin = QSpinBox()
        self.param_spin.setStyleSheet(SPINBOX_STYLE)
        param_layout.addWidget(self.param_label)
        param_layout.addWidget(self.param_spin)
        param_layout.addStretch()
        filter_layout.addLayout(param_layout)
        self._on_filter_type_changed("Butterworth")

        btn_layout = QHBoxLayout()
        self.apply_filter_btn = QPushButton("적용")
        self.apply_filter_btn.setStyleSheet(BUTTON_STYLE)
        self.apply_filter_btn.clicked.connect(self._on_apply_filter)
        self.revert_filter_btn = QPushButton("되돌리기")
        self.revert_filter_btn.setStyleSheet(BUTTON_STYLE.replace("#4ECDC4", "#FF6B6B").replace("#5FE6DD", "#FF8E8E"))
        self.revert_filter_btn.clicked.connect(lambda: self.filter_revert_requested.emit())
        self.revert_filter_btn.setEnabled(False)
        btn_layout.addWidget(self.apply_filter_btn)
        btn_layout.addWidget(self.revert_filter_btn)
        filter_layout.addLayout(btn_layout)

        self.filter_status_label = QLabel("원본 데이터")
        self.filter_status_label.setStyleSheet("color: #95E1D3; font-size: 11px;")
        filter_layout.addWidget(self.filter_status_label)
        layout.addWidget(filter_group)

        # === 표시 옵션 ===
        display_group = QGroupBox("표시 옵션")
        display_group.setStyleSheet(GROUP_STYLE)
        display_layout = QVBoxLayout(display_group)

        self.show_skeleton_cb = QCheckBox("본 표시")
        self.show_skeleton_cb.setStyleSheet("color: #e0e0e0;")
        self.show_skeleton_cb.stateChanged.connect(
            lambda s: self.show_skeleton_changed.emit(s == Qt.CheckState.Checked.value))
        display_layout.addWidget(self.show_skeleton_cb)

        width_layout = QHBoxLayout()
        width_label = QLabel("두께:")
        width_label.setStyleSheet("color: #a0a0a0; font-size: 11px;")
        self.sk_width_slider = QSlider(Qt.Orientation.Horizontal)
        self.sk_width_slider.setRange(1, 10)
        self.sk_width_slider.setValue(3)
        self.sk_width_slider.valueChanged.connect(lambda v: self.skeleton_width_changed.emit(v))
        width_layout.addWidget(width_label)
        width_layout.addWidget(self.sk_width_slider)
        display_layout.addLayout(width_layout)

        opacity_layout = QHBoxLayout()
        opacity_label = QLabel("투명도:")
        opacity_label.setStyleSheet("color: #a0a0a0; font-size: 11px;")
        self.sk_opacity_slider = QSlider(Qt.Orientation.Horizontal)
        self.sk_opacity_slider.setRange(20, 255)
        self.sk_opacity_slider.setValue(200)
        self.sk_opacity_slider.valueChanged.connect(lambda v: self.skeleton_opacity_changed.emit(v))
        opacity_layout.addWidget(opacity_label)
        opacity_layout.addWidget(self.sk_opacity_slider)
        display_layout.addLayout(opacity_layout)
        layout.addWidget(display_group)

        layout.addStretch()

    def _add_slider_row(self, parent_layout, title: str, value: int, slot):
        row = QHBoxLayout()
        label = QLabel(title)
        label.setStyleSheet("color: #e0e0e0;")
        slider = QSlider(Qt.Orientation.Horizontal)
        slider.setRange(0, 100)
        slider.setValue(value)
        slider.valueChanged.connect(slot)
        value_label = QLabel(f"{value / 100.0:.2f}")
        value_label.setStyleSheet("color: #4ECDC4; font-weight: bold; min-width: 40px;")
        row.addWidget(label)
        row.addWidget(slider)
        row.addWidget(value_label)
        parent_layout.addLayout(row)
        return slider, value_label

    def _on_confidence_changed(self, value):
        conf = value / 100.0
        self.conf_value_label.setText(f"{conf:.2f}")
        self.confidence_changed.emit(conf)

    def _on_smoothing_changed(self, value):
        smoothing = value / 100.0
        self.smooth_value_label.setText(f"{smoothing:.2f}")
        self.smoothing_changed.emit(smoothing)

    def _on_filter_type_changed(self, filter_type: str):
        """필터 유형에 맞게 파라미터 범위 변경"""
        if filter_type == "Butterworth":
            self.param_label.setText("Cutoff (Hz):")
            self.param_spin.setRange(1, 14)
            self.param_spin.setSingleStep(1)
            self.param_spin.setValue(6)
        elif filter_type == "Gaussian":
            self.param_label.setText("Sigma:")
            self.param_spin.setRange(1, 20)
            self.param_spin.setSingleStep(1)
            self.param_spin.setValue(3)
        else:
            self.param_label.setText("Kernel Size:")
            self.param_spin.setRange(3, 21)
            self.param_spin.setSingleStep(2)
            self.param_spin.setValue(5)

    def _on_apply_filter(self):
        """필터 적용 버튼 클릭"""
        filter_type = self.filter_combo.currentText().lower()
        key = {"butterworth": "cutoff", "gaussian": "sigma", "median": "kernel_size"}[filter_type]
        self.filter_apply_requested.emit(filter_type, {key: self.param_spin.value()})

    def set_filter_applied(self, applied: bool, filter_name: str = ""):
        """필터 적용 상태 업데이트"""
        self.revert_filter_btn.setEnabled(applied)
        if applied:
            self.filter_status_label.setText(f"✓ {filter_name} 필터 적용됨")
            self.filter_status_label.setStyleSheet("color: #4ECDC4; font-size: 11px; font-weight: bold;")
        else:
            self.filter_status_label.setText("원본 데이터")
            self.filter_status_label.setStyleSheet("color: #95E1D3; font-size: 11px;")
