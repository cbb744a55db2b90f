"""
Image, seed and mask file helpers.
"""

from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
from PIL import Image

IMG_EXTS = {".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff"}


def load_image_rgb(path: str) -> np.ndarray:
    """Return H x W x 3 float32 RGB in [0, 1]."""
    img = Image.open(path).convert("RGB")
    return np.asarray(img, dtype=np.float32) / 255.0


def load_mask(path: str) -> np.ndarray:
    """Load a .npy or image mask as H x W bool, nonzero meaning set."""
    p = Path(path)
    if p.suffix.lower() == ".npy":
        return np.asarray(np.load(path)) != 0
    img = Image.open(path)
    if img.mode not in ("1", "L", "P", "I;16", "I"):
        img = img.convert("L")
    return np.asarray(img) != 0


def load_annotation_map(ann_path: str) -> np.ndarray:
    """Load .npy or paletted .png as H x W int32."""
    p = Path(ann_path)
    if p.suffix.lower() == ".npy":
        return np.asarray(np.load(ann_path), dtype=np.int32)
    img = Image.open(ann_path)
    if img.mode != "P":
        img = img.convert("P")
    return np.asarray(img, dtype=np.int32)


def seeds_from_annotation(ann: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split a label map into (background, foreground) seed masks.

    Labels: 0 unlabeled, 1 background, 2 and above foreground.
    """
    a = np.asarray(ann)
    return a == 1, a >= 2


def save_mask_png(mask: np.ndarray, out_path: str) -> None:
    """Save a boolean mask as 8-bit PNG, 255 where True."""
    out = np.where(np.asarray(mask, dtype=bool), 255, 0).astype(np.uint8)
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(out).save(out_path, format="PNG")


def find_image_annotation_pairs(images_dir: str, anns_dir: str) -> List[Tuple[str, Optional[str]]]:
    """Pair images with annotations by basename. Prefer .npy over .png, None if missing."""
    images_dir = Path(images_dir)
    anns_dir = Path(anns_dir)
    imgs = [p for p in images_dir.iterdir() if p.is_file() and p.suffix.lower() in IMG_EXTS]
    pairs = []
    for ip in sorted(imgs):
        stem = ip.stem
        npy = anns_dir / f"{stem}.npy"
        png = anns_dir / f"{stem}.png"
        ann_path = str(npy) if npy.exists() else (str(png) if png.exists() else None)
        pairs.append((str(ip), ann_path))
    return pairs
