#!/usr/bin/env python3
"""
Detect a document in a photo and write the rectified result next to it
Usage: python3 rectify_image.py <path_to_image> [analysis_width]
"""

import logging
import sys
import cv2
from pathlib import Path

from common.frame import Frame
from document_detection import DocumentDetector, OverlayVisualizer
from rectification import NormalizedQuadrilateral, PerspectiveRectifier, target_size


def main():
    if len(sys.argv) < 2:
        print("Usage: python3 rectify_image.py <path_to_image> [analysis_width]")
        print("Example: python3 rectify_image.py images/passport.jpg 480")
        sys.exit(1)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    image_path = Path(sys.argv[1])
    analysis_width = int(sys.argv[2]) if len(sys.argv) > 2 else 480

    if not image_path.exists():
        print(f"Error: Image not found: {image_path}")
        sys.exit(1)

    # Load image
    print(f"Loading image: {image_path}")
    image = cv2.imread(str(image_path))

    if image is None:
        print(f"Error: Failed to load image: {image_path}")
        sys.exit(1)

    frame = Frame(image)
    print(f"Image dimensions: {frame.width}x{frame.height} px")

    # Detect on the analysis frame, exactly as the live scanner does
    detector = DocumentDetector()
    analysis = frame.downscale(analysis_width)
    corners = detector.detect(analysis.image)

    quad = None
    if corners is None:
        print("✗ Document was not detected, keeping the whole photo")
    else:
        quad = NormalizedQuadrilateral.from_pixels(corners, analysis.width, analysis.height)
        full_corners = quad.to_pixels(frame.width, frame.height)
        width, height = target_size(full_corners)
        print("✓ Document detected")
        print(f"  Corners (tl, tr, br, bl): {[tuple(map(int, p)) for p in full_corners]}")
        print(f"  Target size:              {width:.0f}x{height:.0f} px")

        outline = OverlayVisualizer().visualize(frame.image, full_corners, stable=True)
        outline_path = image_path.parent / f"detected_{image_path.name}"
        cv2.imwrite(str(outline_path), outline)
        print(f"✓ Outline saved: {outline_path}")

    rectifier = PerspectiveRectifier(detector=detector, analysis_width=analysis_width, redetect=False)
    result = rectifier.process(frame, quad)
    if result.notice:
        print(f"⚠️  {result.notice}")

    output_path = image_path.parent / f"rectified_{image_path.stem}.jpg"
    output_path.write_bytes(result.to_jpeg())
    print(f"\n✓ Result saved: {output_path} ({result.width}x{result.height} px)")


if __name__ == "__main__":
    main()
