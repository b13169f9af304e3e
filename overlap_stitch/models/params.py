"""
Stitch parameters, positions and overlap scores
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

from .errors import UnknownVariantError


class _ParsableOption(Enum):
    """
    Enum whose members can be parsed from a fixed set of short and long
    tokens. Subclasses list them in `_tokens()`.
    """

    @classmethod
    def _tokens(cls) -> Dict[Tuple[str, ...], '_ParsableOption']:
        raise NotImplementedError

    @classmethod
    def parse(cls, value: str) -> '_ParsableOption':
        """Parse a token such as 'v', 'V', 'Vertical' or 'vertical'"""
        if isinstance(value, cls):
            return value

        for tokens, member in cls._tokens().items():
            if value in tokens:
                return member

        raise UnknownVariantError(
            cls.__name__,
            str(value),
            [(tokens, member.label) for tokens, member in cls._tokens().items()]
        )

    @property
    def label(self) -> str:
        return self.name.capitalize()

    def __str__(self) -> str:
        return self.label


class Direction(_ParsableOption):
    """Axis along which overlaps are searched"""
    VERTICAL = 'vertical'
    HORIZONTAL = 'horizontal'
    SIDEWAYS = 'sideways'

    @classmethod
    def _tokens(cls):
        return {
            ('v', 'V', 'Vertical', 'vertical'): cls.VERTICAL,
            ('h', 'H', 'Horizontal', 'horizontal'): cls.HORIZONTAL,
            ('s', 'S', 'Sideways', 'sideways'): cls.SIDEWAYS,
        }


class Order(_ParsableOption):
    """Whether the input sequence already encodes adjacency"""
    ORDERED = 'ordered'
    UNORDERED = 'unordered'

    @classmethod
    def _tokens(cls):
        return {
            ('o', 'O', 'Ordered', 'ordered'): cls.ORDERED,
            ('u', 'U', 'Unordered', 'unordered'): cls.UNORDERED,
        }


class MatchMode(_ParsableOption):
    """Pixels compared while scoring: raw values or edge magnitudes"""
    NORMAL = 'normal'
    EDGES = 'edges'

    @classmethod
    def _tokens(cls):
        return {
            ('n', 'N', 'Normal', 'normal'): cls.NORMAL,
            ('e', 'E', 'Edges', 'edges'): cls.EDGES,
        }


@dataclass(frozen=True)
class Position:
    """
    Signed offset of a second image relative to a first one
    """
    x: int = 0
    y: int = 0

    def __add__(self, other: 'Position') -> 'Position':
        if not isinstance(other, Position):
            return NotImplemented
        return Position(self.x + other.x, self.y + other.y)

    def to_dict(self) -> dict:
        """Convert to dictionary"""
        return {'x': int(self.x), 'y': int(self.y)}

    @classmethod
    def from_dict(cls, data: dict) -> 'Position':
        """Create from dictionary"""
        return cls(x=int(data['x']), y=int(data['y']))


@dataclass(frozen=True)
class OverlapScore:
    """
    Result of a region search. Higher score is a better match; `flipped`
    means the second image was scored as the first one.
    """
    score: int = 0
    flipped: bool = False
    position: Position = field(default_factory=Position)

    @property
    def x(self) -> int:
        return self.position.x

    @property
    def y(self) -> int:
        return self.position.y

    def as_flipped(self) -> 'OverlapScore':
        """Copy of this score with the roles marked as swapped"""
        return OverlapScore(self.score, True, self.position)
