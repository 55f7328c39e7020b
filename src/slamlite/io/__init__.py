"""I/O utilities for feeding frames into the pipeline."""

from .frame_reader import FrameReader

__all__ = [
    "FrameReader",
]
