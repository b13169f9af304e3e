"""
Error types raised while configuring and running a stitch
"""

from typing import List, Tuple


class StitchError(Exception):
    """Base class for stitching errors"""


class ConfigurationError(StitchError, ValueError):
    """
    Invalid construction parameters, detected before any image is processed
    """


class MissingFieldError(ConfigurationError):
    """A required builder field was never set"""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f'Did not set the field "{field}" when building')


class UnknownVariantError(ConfigurationError):
    """
    A string did not match any accepted token of an option enum.
    `expected` holds (tokens, variant name) groups.
    """

    def __init__(
        self,
        name: str,
        value: str,
        expected: List[Tuple[Tuple[str, ...], str]]
    ):
        self.name = name
        self.value = value
        self.expected = expected
        super().__init__(self._format())

    def _format(self) -> str:
        lines = [f"Unknown {self.name} variant {self.value}. ", "expected: "]
        for tokens, variant in self.expected:
            lines.append(f"- {' | '.join(tokens)} => {variant}.")
        return "\n".join(lines)


class PreconditionError(StitchError, ValueError):
    """
    Inputs that cannot produce a valid composite (offset beyond the
    combined image extent, too few rows for a window). Fatal for a run.
    """
