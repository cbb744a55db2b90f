#!/usr/bin/env python3
"""
seeded_segmentation.py

Batch seeded binary segmentation over a directory of images.

Annotations follow the usual scribble convention:
  0 = unlabeled
  1 = background seed
  2..K = foreground seed, all object classes merged into one

For each image the potential field of (Is + L L) x = b is solved, with L the
8-connected colour-affinity Laplacian, Is the seed indicator and b = +1 on
background seeds, -1 on foreground seeds. Pixels with x > 0 are background.
Masks are written as 8-bit PNG, 255 = background, 0 = foreground.

License: MIT License
"""

import argparse, json, logging, time
from pathlib import Path

import numpy as np
from tqdm import tqdm

from seeded_seg import DEFAULT_BETA, DEFAULT_SIGMA, SeededSegmentation, threshold_field
from seeded_seg.image_io import (
    find_image_annotation_pairs,
    load_annotation_map,
    load_image_rgb,
    save_mask_png,
    seeds_from_annotation,
)

METHOD_NAME = "seeded_segmentation"


# --------------------------- Runner ---------------------------

def run_single_image(image_path: str, ann_path: str, args):
    """Segment one image, returns (mask, potential field)."""
    img = load_image_rgb(image_path)
    if ann_path is None:
        raise FileNotFoundError(f"No matching annotation for {image_path}")
    ann = load_annotation_map(ann_path)
    if ann.shape != img.shape[:2]:
        raise ValueError(f"Shape mismatch for {image_path} and {ann_path}, got {img.shape[:2]} vs {ann.shape}")
    background, foreground = seeds_from_annotation(ann)

    t0 = time.time()
    engine = SeededSegmentation(img, beta=args.beta, sigma=args.sigma)
    field = engine.potential_field(background, foreground)
    mask = threshold_field(field, field.shape)
    ms = (time.time() - t0) * 1000.0

    H, W = mask.shape
    logging.info(f"{Path(image_path).stem}, {H}x{W}, runtime_ms {ms:.2f}, background {mask.mean():.3f}")
    return mask, field


def save_outputs(out_root: Path, base: str, mask: np.ndarray, field: np.ndarray, save_potential: bool) -> None:
    save_mask_png(mask, str(out_root / f"{base}_mask.png"))
    if save_potential:
        np.save(out_root / f"{base}_potential.npy", field)


def main(argv=None):
    ap = argparse.ArgumentParser(description="Seeded binary segmentation with a squared affinity Laplacian")
    ap.add_argument("--images_dir", type=str)
    ap.add_argument("--anns_dir", type=str)
    ap.add_argument("--output_dir", type=str)
    ap.add_argument("--beta", type=float, default=DEFAULT_BETA, help="edge sharpness, >= 0")
    ap.add_argument("--sigma", type=float, default=DEFAULT_SIGMA, help="colour scale, > 0")
    ap.add_argument("--num-images", type=int, default=0, help="0 means all")
    ap.add_argument("--start-one", type=int, default=1, help="1-indexed start position")
    ap.add_argument("--workers", type=int, default=0, help="thread pool size, 0 runs sequentially")
    ap.add_argument("--save-potential", action="store_true", help="also save the continuous field as .npy")
    ap.add_argument("--run-tests", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if args.run_tests:
        _run_tests(args)
        return

    if not (args.images_dir and args.anns_dir and args.output_dir):
        ap.error("--images_dir, --anns_dir and --output_dir are required")

    pairs = find_image_annotation_pairs(args.images_dir, args.anns_dir)
    start_idx = max(0, int(args.start_one) - 1)
    if start_idx >= len(pairs):
        logging.info(json.dumps({"processed": 0, "skipped": len(pairs), "reason": "start index beyond input"}))
        return
    end_idx = len(pairs) if args.num_images == 0 else min(len(pairs), start_idx + int(args.num_images))
    work_list = pairs[start_idx:end_idx]

    out_root = Path(args.output_dir) / METHOD_NAME
    out_root.mkdir(parents=True, exist_ok=True)

    processed, skipped = 0, 0
    times = []

    if args.workers and args.workers > 0:
        from concurrent.futures import ThreadPoolExecutor, as_completed

        def task(img_path, ann_path):
            base = Path(img_path).stem
            if ann_path is None:
                return base, None, None, "missing annotation"
            t0 = time.time()
            try:
                mask, field = run_single_image(img_path, ann_path, args)
            except Exception as e:
                return base, None, None, str(e)
            return base, mask, field, (time.time() - t0) * 1000.0

        with tqdm(total=len(work_list), desc="Seeded") as pbar, ThreadPoolExecutor(max_workers=int(args.workers)) as ex:
            futs = [ex.submit(task, i, a) for i, a in work_list]
            for f in as_completed(futs):
                base, mask, field, ms = f.result()
                if mask is None:
                    logging.error(f"Error on {base}: {ms}, skipping")
                    skipped += 1
                else:
                    save_outputs(out_root, base, mask, field, args.save_potential)
                    processed += 1
                    times.append(ms)
                pbar.update(1)
    else:
        with tqdm(total=len(work_list), desc="Seeded") as pbar:
            for img_path, ann_path in work_list:
                base = Path(img_path).stem
                if ann_path is None:
                    logging.error(f"Missing annotation for {base}, skipping")
                    skipped += 1
                    pbar.update(1)
                    continue
                try:
                    t0 = time.time()
                    mask, field = run_single_image(img_path, ann_path, args)
                    ms = (time.time() - t0) * 1000.0
                    save_outputs(out_root, base, mask, field, args.save_potential)
                    processed += 1
                    times.append(ms)
                except Exception as e:
                    logging.error(f"Error on {base}: {e}")
                    skipped += 1
                pbar.update(1)

    print(json.dumps({
        "total": len(work_list),
        "processed": processed,
        "skipped": skipped,
        "avg_runtime_ms": float(np.mean(times)) if times else None,
        "median_runtime_ms": float(np.median(times)) if times else None,
        "beta": float(args.beta),
        "sigma": float(args.sigma),
        "method": METHOD_NAME
    }))


# --------------------------- Minimal tests ---------------------------

def _synthetic_case(H: int = 32, W: int = 32):
    """Dark left half, bright right half, one seed strip on each side."""
    img = np.zeros((H, W, 3), dtype=np.float32)
    img[:, W // 2:] = 1.0
    background = np.zeros((H, W), dtype=bool)
    foreground = np.zeros((H, W), dtype=bool)
    background[:, 2] = True
    foreground[:, W - 3] = True
    return img, background, foreground


def _run_tests(args):
    logging.info("Running synthetic test")
    img, background, foreground = _synthetic_case()
    mask = SeededSegmentation(img, beta=args.beta, sigma=args.sigma).segment(background, foreground)
    W = img.shape[1]
    assert mask[:, : W // 2].all(), "left half must be background"
    assert not mask[:, W // 2:].any(), "right half must be foreground"
    logging.info("OK")
    print(json.dumps({"test": "ok", "background_fraction": float(mask.mean())}))


if __name__ == "__main__":
    main()
