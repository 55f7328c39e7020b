"""Frame source producing RGBA buffers from image folders or video files."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator

import cv2
import numpy as np

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".pgm", ".ppm", ".tif", ".tiff")


class FrameReader:
    """Reads frames from disk in the format VisualOdometry expects.

    Stands in for the live camera layer: every frame is converted to a
    packed RGBA buffer and downscaled to the processing resolution
    (half of the native resolution by default). The processing size is
    fixed by the first frame so it stays constant for the session.

    Two sources are supported:
    - A directory of images, read in filename order
    - A video file readable by cv2.VideoCapture
    """

    def __init__(self, path: str | Path, scale: float = 0.5) -> None:
        """Initialize reader.

        Args:
            path: Image directory or video file
            scale: Downscale factor applied to every frame (0 < scale <= 1)

        Raises:
            FileNotFoundError: If path doesn't exist
            ValueError: If scale is out of range or the directory holds
                no images
        """
        if not 0.0 < scale <= 1.0:
            raise ValueError(f"scale must be in (0, 1], got {scale}")

        self.path = Path(path)
        self.scale = scale

        if not self.path.exists():
            raise FileNotFoundError(f"Frame source does not exist: {self.path}")

        self._image_list: list[Path] | None = None
        self._capture: cv2.VideoCapture | None = None

        if self.path.is_dir():
            self._image_list = self._load_image_list()
            if not self._image_list:
                raise ValueError(f"No images found in {self.path}")

        self._current_idx = 0
        self._size: tuple[int, int] | None = None

    def _load_image_list(self) -> list[Path]:
        """List image files in the directory, sorted by filename."""
        return sorted(
            p
            for p in self.path.iterdir()
            if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
        )

    def _open_video(self) -> cv2.VideoCapture:
        capture = cv2.VideoCapture(str(self.path))
        if not capture.isOpened():
            raise ValueError(f"Failed to open video: {self.path}")
        return capture

    def _read_bgr(self) -> np.ndarray | None:
        """Read the next raw BGR frame, or None when exhausted."""
        if self._image_list is not None:
            if self._current_idx >= len(self._image_list):
                return None
            image_path = self._image_list[self._current_idx]
            image = cv2.imread(str(image_path), cv2.IMREAD_COLOR)
            if image is None:
                raise ValueError(f"Failed to load image: {image_path}")
            return image

        if self._capture is None:
            self._capture = self._open_video()
        ok, image = self._capture.read()
        return image if ok else None

    def _to_rgba(self, bgr: np.ndarray) -> np.ndarray:
        """Downscale to the session size and convert BGR -> RGBA."""
        if self._size is None:
            h, w = bgr.shape[:2]
            self._size = (max(1, int(w * self.scale)), max(1, int(h * self.scale)))

        if (bgr.shape[1], bgr.shape[0]) != self._size:
            bgr = cv2.resize(bgr, self._size, interpolation=cv2.INTER_AREA)
        return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGBA)

    def get_next_frame(self) -> tuple[np.ndarray, int, int] | None:
        """Get the next frame.

        Returns:
            Tuple of (rgba, width, height) where rgba is an (H, W, 4)
            uint8 array, or None if no more frames are available.

        Example:
            >>> reader = FrameReader('data/sequence')
            >>> while (frame := reader.get_next_frame()) is not None:
            ...     rgba, width, height = frame
        """
        bgr = self._read_bgr()
        if bgr is None:
            return None

        self._current_idx += 1
        rgba = self._to_rgba(bgr)
        return rgba, rgba.shape[1], rgba.shape[0]

    def reset(self) -> None:
        """Rewind to the first frame."""
        self._current_idx = 0
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def close(self) -> None:
        """Release the video handle, if any."""
        if self._capture is not None:
            self._capture.release()
            self._capture = None

    def __enter__(self) -> FrameReader:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __len__(self) -> int:
        """Return number of frames (frame count reported by the video container)."""
        if self._image_list is not None:
            return len(self._image_list)
        capture = self._capture or self._open_video()
        try:
            return int(capture.get(cv2.CAP_PROP_FRAME_COUNT))
        finally:
            if capture is not self._capture:
                capture.release()

    @property
    def frame_size(self) -> tuple[int, int] | None:
        """Return (width, height) of output frames once the first is read."""
        return self._size

    def __iter__(self) -> Iterator[tuple[np.ndarray, int, int]]:
        """Iterate over all frames from the beginning.

        Yields:
            Tuple of (rgba, width, height)
        """
        self.reset()
        return self

    def __next__(self) -> tuple[np.ndarray, int, int]:
        frame = self.get_next_frame()
        if frame is None:
            raise StopIteration
        return frame
