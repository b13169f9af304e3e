"""
Builder collecting the parameters of an ImageStitcher
"""

from typing import Optional, Sequence, Union

import numpy as np

from .pipeline import ImageStitcher
from ..models.errors import MissingFieldError
from ..models.params import Direction, MatchMode, Order


DEFAULT_WINDOW_SIZE = 6
DEFAULT_MATCH_MODE = MatchMode.EDGES
DEFAULT_CROP = 0


class ImageStitcherBuilder:
    """
    Chainable setters; `build()` fails on the first required field left
    unset. Option values may be given as enum members or accepted tokens.
    """

    REQUIRED_FIELDS = ('images', 'order', 'direction', 'window_size', 'match_mode')

    def __init__(self):
        self._images: Optional[Sequence[np.ndarray]] = None
        self._order: Optional[Order] = None
        self._direction: Optional[Direction] = None
        self._window_size: Optional[int] = None
        self._match_mode: Optional[MatchMode] = None
        self._crop: Optional[int] = None
        self._num_threads: Optional[int] = None

    def images(self, images: Optional[Sequence[np.ndarray]]) -> 'ImageStitcherBuilder':
        self._images = images
        return self

    def order(self, order: Union[Order, str, None]) -> 'ImageStitcherBuilder':
        self._order = None if order is None else Order.parse(order)
        return self

    def direction(self, direction: Union[Direction, str, None]) -> 'ImageStitcherBuilder':
        self._direction = None if direction is None else Direction.parse(direction)
        return self

    def window_size(self, window_size: Optional[int]) -> 'ImageStitcherBuilder':
        self._window_size = window_size
        return self

    def match_mode(self, match_mode: Union[MatchMode, str, None]) -> 'ImageStitcherBuilder':
        self._match_mode = None if match_mode is None else MatchMode.parse(match_mode)
        return self

    def crop(self, crop: Optional[int]) -> 'ImageStitcherBuilder':
        self._crop = crop
        return self

    def num_threads(self, num_threads: Optional[int]) -> 'ImageStitcherBuilder':
        self._num_threads = num_threads
        return self

    def build(self, show_progress: bool = False) -> ImageStitcher:
        for name in self.REQUIRED_FIELDS:
            if getattr(self, f'_{name}') is None:
                raise MissingFieldError(name)

        return ImageStitcher(
            images=self._images,
            order=self._order,
            direction=self._direction,
            window_size=self._window_size,
            match_mode=self._match_mode,
            crop=DEFAULT_CROP if self._crop is None else self._crop,
            num_threads=self._num_threads,
            show_progress=show_progress
        )
