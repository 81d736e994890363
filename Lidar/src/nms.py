"""
Greedy non-maximum suppression for oriented 3D boxes.

Overlap is measured on the bird's-eye-view footprint (center x/y, width,
length, heading) by default. The metric is pluggable so the volumetric
variant can be selected from the configuration.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

import cv2
import numpy as np

from .boxes import OrientedBox

logger = logging.getLogger(__name__)

OverlapFn = Callable[[OrientedBox, OrientedBox], float]


def _rotated_rect(box: OrientedBox):
    # OpenCV RotatedRect: ((cx, cy), (width, height), angle in degrees)
    return (float(box.x), float(box.y)), (float(box.w), float(box.l)), float(np.degrees(box.heading))


def bev_intersection(a: OrientedBox, b: OrientedBox) -> float:
    """Area shared by the two rotated ground-plane footprints."""
    if a.footprint_area <= 0 or b.footprint_area <= 0:
        return 0.0

    ret, region = cv2.rotatedRectangleIntersection(_rotated_rect(a), _rotated_rect(b))
    if ret == cv2.INTERSECT_NONE or region is None or len(region) < 3:
        return 0.0

    hull = cv2.convexHull(region.astype(np.float32), returnPoints=True)
    return float(cv2.contourArea(hull))


def bev_iou(a: OrientedBox, b: OrientedBox) -> float:
    """Intersection-over-union of the rotated footprints. Degenerate boxes never overlap."""
    inter = bev_intersection(a, b)
    if inter <= 0:
        return 0.0
    union = a.footprint_area + b.footprint_area - inter
    if union <= 0:
        return 0.0
    return min(inter / union, 1.0)


def volume_iou(a: OrientedBox, b: OrientedBox) -> float:
    """3D IoU: footprint intersection times vertical overlap (z is the box center)."""
    if a.volume <= 0 or b.volume <= 0:
        return 0.0

    z_low = max(a.z - a.h / 2, b.z - b.h / 2)
    z_high = min(a.z + a.h / 2, b.z + b.h / 2)
    z_overlap = z_high - z_low
    if z_overlap <= 0:
        return 0.0

    inter = bev_intersection(a, b) * z_overlap
    if inter <= 0:
        return 0.0
    union = a.volume + b.volume - inter
    if union <= 0:
        return 0.0
    return min(inter / union, 1.0)


OVERLAP_METRICS: Dict[str, OverlapFn] = {
    "bev": bev_iou,
    "3d": volume_iou,
}


def get_overlap_metric(name: str) -> OverlapFn:
    key = name.lower().strip()
    if key not in OVERLAP_METRICS:
        raise ValueError(
            f"Overlap metric '{name}' not recognized. Available: {list(OVERLAP_METRICS.keys())}"
        )
    return OVERLAP_METRICS[key]


def suppress(
    boxes: Sequence[OrientedBox],
    iou_threshold: float,
    max_kept: Optional[int] = None,
    overlap: Union[str, OverlapFn] = bev_iou,
) -> List[OrientedBox]:
    """
    Class-agnostic greedy NMS.

    Candidates are visited by descending score (ties keep buffer order). Each
    kept box removes every remaining candidate whose overlap with it is
    strictly greater than `iou_threshold`.

    Args:
        boxes: Decoded detections.
        iou_threshold: Overlap above which a lower scored box is dropped, in [0, 1].
        max_kept: Maximum number of boxes returned (None for no cap).
        overlap: Metric name from OVERLAP_METRICS or a callable (a, b) -> IoU.

    Returns:
        Survivors in selection order.
    """
    if not 0.0 <= iou_threshold <= 1.0:
        raise ValueError(f"iou_threshold must be in [0, 1], got {iou_threshold}")
    if max_kept is not None and max_kept <= 0:
        raise ValueError(f"max_kept must be a positive integer, got {max_kept}")
    if isinstance(overlap, str):
        overlap = get_overlap_metric(overlap)

    if len(boxes) == 0:
        return []

    scores = np.array([b.score for b in boxes], dtype=np.float64)
    order = np.argsort(-scores, kind="stable")
    suppressed = np.zeros(len(boxes), dtype=bool)

    kept: List[OrientedBox] = []
    for rank, i in enumerate(order):
        if suppressed[i]:
            continue
        best = boxes[i]
        kept.append(best)
        if max_kept is not None and len(kept) >= max_kept:
            break

        for j in order[rank + 1:]:
            if suppressed[j]:
                continue
            if overlap(best, boxes[j]) > iou_threshold:
                suppressed[j] = True

    logger.debug(f"NMS kept {len(kept)} of {len(boxes)} boxes (iou > {iou_threshold} suppressed)")
    return kept
