"""Kong service → Tyk OAS definition mapping and unit splitting."""

from .splitter import SplitResult, Splitter, load_units, sanitize_title
from .transformer import TransformResult, Transformer

__all__ = [
    "SplitResult",
    "Splitter",
    "load_units",
    "sanitize_title",
    "TransformResult",
    "Transformer",
]
