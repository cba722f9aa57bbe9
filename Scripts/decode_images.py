import argparse
import dataclasses
import logging
from pathlib import Path

import cv2

from yolo_grid import (
    ColorTable,
    GridPostConfig,
    ModelProfile,
    draw_detections,
    load_class_names,
    load_model_profile,
    load_pipeline,
)

IMAGE_SUFFIXES = {".jpg", ".jpeg", ".png", ".bmp"}


def main() -> int:
    parser = argparse.ArgumentParser(description="Decode every image in a folder with a grid (TinyYoloV2-style) ONNX model.")
    parser.add_argument("--images", required=True, help="Directory of images to scan.")
    parser.add_argument("--model", default="Models/tinyyolov2-8.onnx", help="Path to the ONNX grid model.")
    parser.add_argument("--profile", default=None, help="Optional model profile JSON (layout, anchors, labels, colors).")
    parser.add_argument("--labels", default=None, help="Optional label file (one name per line, or a names: mapping).")
    parser.add_argument("--conf", type=float, default=0.0, help="Confidence threshold.")
    parser.add_argument("--max-boxes", type=int, default=5, help="Maximum boxes kept per image.")
    parser.add_argument("--iou", type=float, default=0.5, help="Maximum IoU allowed between kept boxes.")
    parser.add_argument("--workers", type=int, default=None, help="Decode images on this many threads.")
    parser.add_argument("--out-dir", default=None, help="Write images with box overlays here.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    profile = load_model_profile(Path(args.profile)) if args.profile else ModelProfile()
    if args.labels:
        profile = dataclasses.replace(profile, labels=tuple(load_class_names(args.labels)))

    pipeline = load_pipeline(
        args.model,
        profile,
        post_cfg=GridPostConfig(
            conf_threshold=args.conf,
            max_detections=args.max_boxes,
            iou_threshold=args.iou,
            max_workers=args.workers,
        ),
    )

    image_dir = Path(args.images)
    if not image_dir.is_dir():
        raise FileNotFoundError(f"Image directory not found: {image_dir}")

    images = {}
    for path in sorted(image_dir.iterdir()):
        if path.suffix.lower() not in IMAGE_SUFFIXES:
            continue
        img = cv2.imread(str(path))
        if img is None:
            logging.warning("could not read image %s", path)
            continue
        images[path.name] = img
    if not images:
        raise FileNotFoundError(f"No images found in directory: {image_dir}")

    results = pipeline.detect_batch(images)

    colors = ColorTable(profile.colors) if profile.colors is not None else ColorTable()
    out_dir = Path(args.out_dir) if args.out_dir else None
    if out_dir is not None:
        out_dir.mkdir(parents=True, exist_ok=True)

    for name, detections in results.successes().items():
        for det in detections:
            print(name, det.label, f"{det.confidence:.3f}", tuple(det.rect))

        if out_dir is not None:
            vis = draw_detections(pipeline.resize(images[name]), detections, colors=colors)
            ok = cv2.imwrite(str(out_dir / name), vis)
            if not ok:
                raise RuntimeError(f"Failed to write output image: {out_dir / name}")

    for name, error in results.failures().items():
        print(name, "FAILED", error)

    return 1 if results.failures() else 0


if __name__ == "__main__":
    raise SystemExit(main())
