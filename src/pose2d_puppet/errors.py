"""
Exceptions raised while loading an illustration.
"""


class PuppetError(Exception):
    """퍼펫 관련 예외의 기본 클래스"""


class ParseError(PuppetError):
    """SVG 문서가 잘못되었거나 필수 그룹이 없음"""


class BindingError(PuppetError):
    """스켈레톤 스키마와 일러스트를 연결할 수 없음 (루트 본 누락 등)"""
