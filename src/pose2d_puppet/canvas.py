"""
PuppetCanvas - paints a rendered puppet SVG with an optional bone overlay.
"""

from typing import List, Optional, Tuple

from PySide6.QtWidgets import QWidget
from PySide6.QtCore import Qt, QByteArray, QRectF
from PySide6.QtGui import QPainter, QColor, QPen, QBrush, QFont, QImage
from PySide6.QtSvg import QSvgRenderer

from .constants import BODY_PART_COLORS


def bone_part(name: str) -> str:
    """본 이름으로 색상 그룹 결정"""
    name = name.lower()
    if any(x in name for x in ['head', 'neck', 'face']):
        return 'face'
    if name.startswith('right'):
        return 'right'
    if name.startswith('left'):
        return 'left'
    return 'center'


def render_to_image(svg_data: bytes, width: int, height: int) -> QImage:
    """SVG 바이트를 QImage 로 래스터화"""
    renderer = QSvgRenderer(QByteArray(svg_data))
    if not renderer.isValid():
        raise ValueError("invalid SVG data")
    image = QImage(width, height, QImage.Format.Format_ARGB32)
    image.fill(Qt.GlobalColor.transparent)
    painter = QPainter(image)
    try:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)
        renderer.render(painter, QRectF(0, 0, width, height))
    finally:
        painter.end()
    return image


def fit_view_box(view_box: QRectF, width: float, height: float) -> Tuple[QRectF, float]:
    """viewBox 를 비율 유지하며 (width, height) 영역 중앙에 배치한 사각형과 배율"""
    if view_box.width() <= 0 or view_box.height() <= 0:
        return QRectF(0, 0, width, height), 1.0
    scale = min(width / view_box.width(), height / view_box.height())
    w, h = view_box.width() * scale, view_box.height() * scale
    return QRectF((width - w) / 2, (height - h) / 2, w, h), scale


def map_point(point: Tuple[float, float], view_box: QRectF, target: QRectF,
              scale: float) -> Tuple[float, float]:
    """문서 좌표 -> 캔버스 좌표 (QSvgRenderer 의 viewBox 매핑과 동일)"""
    return (target.x() + (point[0] - view_box.x()) * scale,
            target.y() + (point[1] - view_box.y()) * scale)


class PuppetCanvas(QWidget):
    """렌더링된 퍼펫을 표시하는 캔버스 위젯"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.renderer: Optional[QSvgRenderer] = None
        self.bone_segments: List[tuple] = []
        self.show_skeleton: bool = False
        self.skeleton_width: int = 3
        self.skeleton_opacity: int = 200
        self.message = "SVG 일러스트를 불러와주세요"

        self.setMinimumSize(600, 600)
        self.setStyleSheet("background-color: #1a1a2e;")

    def set_svg(self, svg_data: Optional[bytes]):
        """렌더링된 SVG 설정"""
        if svg_data is None:
            self.renderer = None
        else:
            self.renderer = QSvgRenderer(QByteArray(svg_data), self)
        self.update()

    def set_bone_segments(self, segments: List[tuple]):
        self.bone_segments = segments
        self.update()

    def set_show_skeleton(self, show: bool):
        self.show_skeleton = show
        self.update()

    def set_skeleton_width(self, width: int):
        self.skeleton_width = width
        self.update()

    def set_skeleton_opacity(self, opacity: int):
        self.skeleton_opacity = opacity
        self.update()

    def set_message(self, message: str):
        self.message = message
        self.update()

    def _target_rect(self) -> Tuple[QRectF, float]:
        """캔버스 안에 비율을 유지해 배치할 영역과 배율"""
        return fit_view_box(self.renderer.viewBoxF(), self.width(), self.height())

    def paintEvent(self, event):
        """캔버스 렌더링"""
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            painter.fillRect(self.rect(), QColor("#1a1a2e"))

            if self.renderer is None or not self.renderer.isValid():
                painter.setPen(QColor("#ffffff"))
                painter.setFont(QFont("Segoe UI", 14))
                painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, self.message)
                return

            target, scale = self._target_rect()
            self.renderer.render(painter, target)

            if self.show_skeleton:
                self._draw_bones(painter, target, scale)
        finally:
            painter.end()

    def _draw_bones(self, painter: QPainter, target: QRectF, scale: float):
        """본 오버레이 그리기"""
        view_box = self.renderer.viewBoxF()
        for name, start, end in self.bone_segments:
            color = QColor(BODY_PART_COLORS.get(bone_part(name), BODY_PART_COLORS['center']))
            color.setAlpha(self.skeleton_opacity)
            x1, y1 = map_point(start, view_box, target, scale)
            x2, y2 = map_point(end, view_box, target, scale)

            painter.setPen(QPen(color, self.skeleton_width))
            painter.drawLine(int(x1), int(y1), int(x2), int(y2))

            painter.setPen(QPen(QColor("#ffffff"), 2))
            painter.setBrush(QBrush(QColor("#ffffff")))
            painter.drawEllipse(int(x1) - 3, int(y1) - 3, 6, 6)
