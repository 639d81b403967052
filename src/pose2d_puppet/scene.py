"""
SceneGraph - SVG document adapter.

Parses an SVG document into a tree of named groups (every element carrying
an ``id``) and gives read/write access to their transforms. Transforms are
3x3 affine matrices in column-vector convention, so SVG ``matrix(a b c d e f)``
is ``[[a, c, e], [b, d, f], [0, 0, 1]]``.

Mutations are kept on the groups and only written back into the document on
``render()``; nothing is redrawn implicitly.
"""

import logging
import math
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union
from urllib.request import urlopen

import numpy as np

from .errors import ParseError

log = logging.getLogger("scene")

SVG_NS = "http://www.w3.org/2000/svg"

ET.register_namespace("", SVG_NS)
ET.register_namespace("xlink", "http://www.w3.org/1999/xlink")
ET.register_namespace("inkscape", "http://www.inkscape.org/namespaces/inkscape")
ET.register_namespace("sodipodi", "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd")

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_NUMBER_RE = re.compile(_NUMBER)
_TRANSFORM_RE = re.compile(r"([A-Za-z]+)\s*\(([^)]*)\)")
_TRANSFORM_LIST_RE = re.compile(r"\s*(?:[A-Za-z]+\s*\([^)]*\)\s*,?\s*)*")
_ARG_COUNTS = {
    "matrix": (6,),
    "translate": (1, 2),
    "scale": (1, 2),
    "rotate": (1, 3),
    "skewX": (1,),
    "skewY": (1,),
}

Document = Union[str, bytes, Path]


def translation(tx: float, ty: float) -> np.ndarray:
    return np.array([[1.0, 0.0, tx], [0.0, 1.0, ty], [0.0, 0.0, 1.0]])


def rotation(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]])


def scaling(sx: float, sy: float) -> np.ndarray:
    return np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]])


def apply(matrix: np.ndarray, x: float, y: float) -> Tuple[float, float]:
    """행렬로 점 변환"""
    px, py, _ = matrix @ np.array([x, y, 1.0])
    return float(px), float(py)


def parse_transform(value: Optional[str]) -> np.ndarray:
    """SVG transform 속성을 3x3 행렬로 변환"""
    result = np.identity(3)
    if value is None or not value.strip():
        return result
    if not _TRANSFORM_LIST_RE.fullmatch(value):
        raise ParseError(f"invalid transform attribute: {value!r}")

    for name, args in _TRANSFORM_RE.findall(value):
        nums = [float(n) for n in _NUMBER_RE.findall(args)]
        if name not in _ARG_COUNTS or len(nums) not in _ARG_COUNTS[name]:
            raise ParseError(f"invalid transform function: {name}({args})")

        if name == "matrix":
            a, b, c, d, e, f = nums
            m = np.array([[a, c, e], [b, d, f], [0.0, 0.0, 1.0]])
        elif name == "translate":
            m = translation(nums[0], nums[1] if len(nums) > 1 else 0.0)
        elif name == "scale":
            m = scaling(nums[0], nums[1] if len(nums) > 1 else nums[0])
        elif name == "rotate":
            m = rotation(math.radians(nums[0]))
            if len(nums) == 3:
                cx, cy = nums[1], nums[2]
                m = translation(cx, cy) @ m @ translation(-cx, -cy)
        elif name == "skewX":
            m = np.identity(3)
            m[0, 1] = math.tan(math.radians(nums[0]))
        else:
            m = np.identity(3)
            m[1, 0] = math.tan(math.radians(nums[0]))
        result = result @ m
    # 부모 CTM 의 역행렬로 파트를 배치하므로 특이 행렬은 지원하지 않음
    if abs(np.linalg.det(result[:2, :2])) < 1e-12:
        raise ParseError(f"non-invertible transform: {value!r}")
    return result


def format_transform(matrix: np.ndarray) -> str:
    """3x3 행렬을 SVG matrix(...) 문자열로 변환"""
    values = (matrix[0, 0], matrix[1, 0], matrix[0, 1], matrix[1, 1], matrix[0, 2], matrix[1, 2])
    return "matrix({})".format(" ".join(format(float(v), ".10g") for v in values))


def _length(value: Optional[str], default: float = 0.0) -> float:
    """'12.5px' 같은 길이 값에서 숫자만 추출"""
    if value is None:
        return default
    match = _NUMBER_RE.match(value.strip())
    return float(match.group()) if match else default


def _local_name(tag) -> str:
    return tag.rsplit("}", 1)[-1] if isinstance(tag, str) else ""


class Group:
    """SVG 에서 id 를 가진 요소 하나"""

    def __init__(self, element: ET.Element, parent: Optional["Group"] = None):
        self.element = element
        self.id: str = element.get("id")
        self.tag = _local_name(element.tag)
        self.parent = parent
        self.children: List["Group"] = []
        self._bind_attr = element.get("transform")
        self._bind_display = element.get("display")
        self.bind_transform = parse_transform(self._bind_attr)
        self.transform = self.bind_transform.copy()

    @property
    def name(self) -> str:
        return self.id

    def iter(self) -> Iterator["Group"]:
        """자기 자신과 모든 하위 그룹 (전위 순회)"""
        yield self
        for child in self.children:
            yield from child.iter()

    def __repr__(self):
        return f"Group({self.id!r}, tag={self.tag!r}, children={len(self.children)})"


class SceneGraph:
    """SVG 문서의 명명된 그룹 트리"""

    def __init__(self, root: ET.Element):
        if _local_name(root.tag) != "svg":
            raise ParseError(f"root element must be <svg>, got <{_local_name(root.tag)}>")
        self.root = root
        self._parents: Dict[ET.Element, ET.Element] = {
            child: parent for parent in root.iter() for child in parent
        }
        self._static: Dict[ET.Element, np.ndarray] = {}
        self._groups: Dict[str, Group] = {}
        self._by_element: Dict[ET.Element, Group] = {}
        self.top_level: List[Group] = []
        self._rendered: Optional[bytes] = None
        self._build(root, None)

    def _build(self, element: ET.Element, parent: Optional[Group]):
        for child in element:
            if not isinstance(child.tag, str):
                continue
            group = parent
            gid = child.get("id")
            if gid is not None and gid not in self._groups:
                group = Group(child, parent)
                self._groups[gid] = group
                self._by_element[child] = group
                if parent is None:
                    self.top_level.append(group)
                else:
                    parent.children.append(group)
            else:
                if gid is not None:
                    log.warning("Duplicate element id %r, keeping the first one", gid)
                self._static[child] = parse_transform(child.get("transform"))
            self._build(child, group)

    # ---- 로딩 ----

    @classmethod
    def parse(cls, document: Document, required_groups: Sequence[str] = ()) -> "SceneGraph":
        """파일 경로, URL, 인라인 SVG 텍스트/바이트에서 씬 그래프 생성"""
        data = cls._read(document)
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise ParseError(f"malformed SVG document: {e}") from e

        scene = cls(root)
        for name in required_groups:
            scene.require_group(name)
        log.info("Parsed SVG scene with %d named groups", len(scene._groups))
        return scene

    @staticmethod
    def _read(document: Document) -> bytes:
        if isinstance(document, bytes):
            return document
        if isinstance(document, str):
            text = document.lstrip()
            if text.startswith("<"):
                return text.encode("utf-8")
            if text.startswith(("http://", "https://")):
                try:
                    with urlopen(text, timeout=30) as response:
                        return response.read()
                except OSError as e:
                    raise ParseError(f"cannot fetch SVG from {text}: {e}") from e
        try:
            return Path(document).read_bytes()
        except OSError as e:
            raise ParseError(f"cannot read SVG file {document}: {e}") from e

    # ---- 조회 ----

    @property
    def groups(self) -> List[Group]:
        """모든 그룹 (문서 순서)"""
        return list(self._groups.values())

    def get_group(self, name: str) -> Optional[Group]:
        return self._groups.get(name)

    def require_group(self, name: str) -> Group:
        group = self._groups.get(name)
        if group is None:
            raise ParseError(f"required group {name!r} not found")
        return group

    def descendants(self, name: str) -> List[Group]:
        """지정 그룹 아래의 모든 그룹 (자기 자신 제외, 문서 순서)"""
        group = self.require_group(name)
        return [g for g in group.iter() if g is not group]

    @property
    def size(self) -> Tuple[float, float]:
        width = _length(self.root.get("width"))
        height = _length(self.root.get("height"))
        if width > 0 and height > 0:
            return (width, height)
        view_box = [float(n) for n in _NUMBER_RE.findall(self.root.get("viewBox", ""))]
        if len(view_box) == 4:
            return (view_box[2], view_box[3])
        return (0.0, 0.0)

    def _transform_of(self, element: ET.Element, bind: bool) -> np.ndarray:
        group = self._by_element.get(element)
        if group is not None:
            return group.bind_transform if bind else group.transform
        return self._static.get(element, np.identity(3))

    def _ctm(self, element: Optional[ET.Element], bind: bool) -> np.ndarray:
        chain = []
        while element is not None and element is not self.root:
            chain.append(element)
            element = self._parents.get(element)
        result = np.identity(3)
        for e in reversed(chain):
            result = result @ self._transform_of(e, bind)
        return result

    def bind_ctm(self, group_id: str) -> np.ndarray:
        """원본 상태에서 그룹 좌표 -> 문서 좌표 변환"""
        return self._ctm(self.require_group(group_id).element, bind=True)

    def current_ctm(self, group_id: str) -> np.ndarray:
        """현재 상태에서 그룹 좌표 -> 문서 좌표 변환"""
        return self._ctm(self.require_group(group_id).element, bind=False)

    def anchor_point(self, group_id: str) -> Tuple[float, float]:
        """마커 요소의 기준점 (원본 문서 좌표)"""
        group = self.require_group(group_id)
        e = group.element
        if group.tag in ("circle", "ellipse"):
            x, y = _length(e.get("cx")), _length(e.get("cy"))
        elif group.tag in ("rect", "image", "use"):
            x = _length(e.get("x")) + _length(e.get("width")) / 2.0
            y = _length(e.get("y")) + _length(e.get("height")) / 2.0
        elif group.tag == "line":
            x = (_length(e.get("x1")) + _length(e.get("x2"))) / 2.0
            y = (_length(e.get("y1")) + _length(e.get("y2"))) / 2.0
        else:
            x, y = 0.0, 0.0
        return apply(self.bind_ctm(group_id), x, y)

    # ---- 변경 ----

    def set_transform(self, group_id: str, matrix: np.ndarray):
        """그룹 자체의 transform 교체 (다음 render() 에 반영)"""
        self.require_group(group_id).transform = np.asarray(matrix, dtype=float)

    def set_world_transform(self, group_id: str, matrix: np.ndarray):
        """문서 좌표 기준 변환이 matrix 가 되도록 그룹 transform 설정"""
        group = self.require_group(group_id)
        parent_ctm = self._ctm(self._parents.get(group.element), bind=False)
        group.transform = np.linalg.inv(parent_ctm) @ np.asarray(matrix, dtype=float)

    def set_visible(self, group_id: str, visible: bool):
        group = self.require_group(group_id)
        if visible:
            if group._bind_display is None or group._bind_display == "none":
                group.element.attrib.pop("display", None)
            else:
                group.element.set("display", group._bind_display)
        else:
            group.element.set("display", "none")

    def apply_z_order(self, group_ids: Iterable[str]):
        """형제 요소 순서를 지정 순위대로 정렬

        순위가 없는 형제는 바로 앞의 순위 있는 형제 뒤에 그대로 남는다.
        """
        rank = {gid: i for i, gid in enumerate(group_ids)}
        parents = {
            self._parents[self._groups[gid].element]
            for gid in rank if gid in self._groups and self._groups[gid].element in self._parents
        }
        for parent in parents:
            keyed = []
            last = -1
            for position, child in enumerate(list(parent)):
                key = rank.get(child.get("id"))
                if key is None:
                    key = last
                else:
                    last = key
                keyed.append((key, position, child))
            keyed.sort(key=lambda item: (item[0], item[1]))
            parent[:] = [child for _, _, child in keyed]

    def clear(self):
        """모든 그룹을 원본 transform 으로 되돌림"""
        for group in self._groups.values():
            group.transform = group.bind_transform.copy()
        self._rendered = None

    def render(self) -> bytes:
        """변경된 transform 을 문서에 기록하고 SVG 직렬화"""
        for group in self._groups.values():
            if np.allclose(group.transform, group.bind_transform):
                if group._bind_attr is None:
                    group.element.attrib.pop("transform", None)
                else:
                    group.element.set("transform", group._bind_attr)
            else:
                group.element.set("transform", format_transform(group.transform))
        self._rendered = ET.tostring(self.root, encoding="utf-8")
        return self._rendered

    @property
    def last_render(self) -> Optional[bytes]:
        return self._rendered
