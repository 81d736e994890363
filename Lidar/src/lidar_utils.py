import logging
from pathlib import Path
from typing import Iterable, List, Sequence, Union

import numpy as np

from .boxes import OrientedBox

logger = logging.getLogger(__name__)


def load_points(path: Union[str, Path], point_dims: int = 4) -> np.ndarray:
    """
    Read a KITTI-style .bin point cloud.

    Args:
        path: File of float32 values, `point_dims` per point.
        point_dims: Row width reported by the engine's `points` binding.

    Returns:
        (N, point_dims) float32 array.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Can't open point cloud: {path}")

    raw = np.fromfile(path, dtype=np.float32)
    if raw.size % point_dims:
        logger.warning(
            f"{path.name}: {raw.size} floats is not a multiple of {point_dims}, dropping the tail"
        )
        raw = raw[:raw.size - raw.size % point_dims]
    return raw.reshape(-1, point_dims)


def list_point_files(data_path: Union[str, Path]) -> List[Path]:
    """A single .bin file, or every .bin file of a directory (sorted)."""
    data_path = Path(data_path)
    if data_path.is_dir():
        return sorted(data_path.glob("*.bin"))
    return [data_path]


def class_name(class_id: int, class_names: Sequence[str]) -> str:
    if 0 <= class_id < len(class_names):
        return class_names[class_id]
    return f"class_{class_id}"


def format_detection(box: OrientedBox, class_names: Sequence[str]) -> str:
    return (
        f"{class_name(box.class_id, class_names)}, {box.x:f}, {box.y:f}, {box.z:f}, "
        f"{box.w:f}, {box.l:f}, {box.h:f}, {box.heading:f}, {box.score:f}"
    )


def save_predictions(boxes: Iterable[OrientedBox], file_name: Union[str, Path]) -> Path:
    """One line per box: x y z w l h heading class_id score."""
    file_name = Path(file_name)
    file_name.parent.mkdir(parents=True, exist_ok=True)

    with open(file_name, 'w') as f:
        for box in boxes:
            f.write(" ".join(str(v) for v in box.as_row()) + "\n")

    logger.info(f"Saved prediction in: {file_name}")
    return file_name


def prediction_path(points_path: Union[str, Path], output_dir: Union[str, Path]) -> Path:
    return Path(output_dir) / f"{Path(points_path).stem}.txt"
