"""Bounding rectangles for detections, in source-image pixel coordinates."""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import numpy as np

from clients.vision_client import Detection, NormalizedVertex


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle; (x0, y0) inclusive, (x1, y1) exclusive."""

    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def width(self) -> int:
        return max(0, self.x1 - self.x0)

    @property
    def height(self) -> int:
        return max(0, self.y1 - self.y0)

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """Pillow-style (left, upper, right, lower) box."""
        return self.x0, self.y0, self.x1, self.y1


def filter_detections(detections: Iterable[Detection], label: str) -> List[Detection]:
    """Keep detections whose name equals `label` exactly, in their original order."""
    return [d for d in detections if d.name == label]


def bounding_rect(vertices: Iterable[NormalizedVertex], width: int, height: int) -> Rect:
    """
    Scale normalized vertices to pixels and take the per-axis min/max.

    Vision reports vertices as float32, so the scaling is done in float32 and
    truncated toward zero afterwards. This is the coarse axis-aligned
    envelope, not the polygon itself.
    """
    coords = np.array([(v.x, v.y) for v in vertices], dtype=np.float32).reshape(-1, 2)
    if not len(coords):
        return Rect(0, 0, 0, 0)
    pixels = (coords * np.array([width, height], dtype=np.float32)).astype(np.int64)
    x0, y0 = pixels.min(axis=0)
    x1, y1 = pixels.max(axis=0)
    return Rect(int(x0), int(y0), int(x1), int(y1))


def detection_rects(
    detections: Iterable[Detection], label: str, width: int, height: int
) -> List[Rect]:
    """Rectangles for every detection labelled `label`."""
    return [
        bounding_rect(d.vertices, width, height)
        for d in filter_detections(detections, label)
    ]
