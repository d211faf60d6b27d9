#!/usr/bin/env python3
"""
Live document scanner.

Usage:
    python -m scanner
    python -m scanner --auto --output-dir scans

Keys:
    space  capture now
    a      toggle auto-capture
    r      drop the current lock
    q/Esc  quit
"""

import argparse
import logging
import os
import sys
from pathlib import Path

import cv2

from common.errors import CameraError, FrameUnavailable
from document_detection.visualizer import OverlayVisualizer
from .camera import CameraSource
from .config import ScannerConfig
from .controller import AutoCaptureController, ScannerState
from .scheduler import CycleScheduler, REDRAW_TAG

WINDOW_NAME = "Document scanner"


def parse_args():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description='Live document scanner with automatic border detection',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Settings are read from the environment (and .env), see SCANNER_* variables.
Command line options override them.
        """
    )

    parser.add_argument('--camera', type=int, help='Camera device index')
    parser.add_argument('--auto', action='store_true', help='Capture automatically once the outline is stable')
    parser.add_argument('--output-dir', help='Where captured documents are written')
    parser.add_argument('--analysis-width', type=int, help='Width of the analysis frame in pixels')
    parser.add_argument('--preview-width', type=int, default=960, help='Width of the preview window')
    parser.add_argument('--once', action='store_true', help='Quit after the first capture')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    return parser.parse_args()


def build_config(args) -> ScannerConfig:
    config = ScannerConfig.from_env()
    if args.camera is not None:
        config.camera_index = args.camera
    if args.auto:
        config.auto_capture = True
    if args.output_dir:
        config.output_dir = args.output_dir
    if args.analysis_width:
        config.analysis_width = args.analysis_width
    config.validate()
    return config


def save_to_directory(output_dir: str):
    """Upload collaborator writing each capture into a local directory."""
    target = Path(output_dir)

    def upload(payload: bytes, filename: str):
        target.mkdir(parents=True, exist_ok=True)
        path = target / filename
        path.write_bytes(payload)
        print(f"✅ Saved: {path}")

    return upload


def preview_size(width: int, height: int, max_width: int) -> tuple[int, int]:
    if width <= max_width:
        return width, height
    return max_width, max(1, int(height * (max_width / width)))


def preview_frame(source, controller):
    """Freshest frame for display; detection keeps its own slower cadence."""
    return source.read() or controller.latest_frame


def render_preview(frame, controller, visualizer):
    """Scale the frame to the display size and draw the latest overlay on it."""
    width, height = controller.display_size or (frame.width, frame.height)
    preview = cv2.resize(frame.image, (width, height), interpolation=cv2.INTER_AREA)

    overlay = controller.latest_overlay
    preview = visualizer.visualize(preview, overlay.polygon, overlay.stable)
    if controller.auto_capture:
        status = "Hold still..." if overlay.stable else "Searching for document..."
        visualizer.draw_status(preview, status, overlay.stable)

    return preview


def main():
    """Main CLI function"""
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"❌ Invalid configuration: {e}")
        sys.exit(2)

    source = CameraSource(allowed=config.camera_allowed)
    scheduler = CycleScheduler()
    visualizer = OverlayVisualizer()

    upload = save_to_directory(config.output_dir)

    def on_capture(payload: bytes, filename: str):
        result = controller.last_capture
        if result.notice:
            print(f"⚠️  {result.notice}")
        else:
            print(f"📄 Document rectified to {result.width}x{result.height}")
        upload(payload, filename)
        if args.once:
            controller.close()

    controller = AutoCaptureController(
        source,
        config=config,
        scheduler=scheduler,
        on_capture=on_capture
    )

    print(f"📷 Opening camera {config.camera_index}...")
    try:
        controller.start()
    except CameraError as e:
        print(f"❌ {e.user_message}")
        sys.exit(1)

    first = source.read()
    if first is not None:
        controller.display_size = preview_size(first.width, first.height, args.preview_width)

    def handle_capture():
        try:
            controller.capture()
        except FrameUnavailable as e:
            print(f"⚠️  {e}")

    def redraw():
        frame = preview_frame(source, controller)
        if frame is not None:
            cv2.imshow(WINDOW_NAME, render_preview(frame, controller, visualizer))

        key = cv2.waitKey(1) & 0xFF
        if key in (ord('q'), 27):
            controller.close()
        elif key == ord(' '):
            handle_capture()
        elif key == ord('a'):
            controller.auto_capture = not controller.auto_capture
            print(f"⚡ Auto-capture {'on' if controller.auto_capture else 'off'}")
        elif key == ord('r'):
            controller.reset()

    scheduler.every(config.redraw_period, redraw, tag=REDRAW_TAG)

    def track_state(state: ScannerState):
        if state is ScannerState.STABLE:
            print("🔒 Document outline stable")

    controller.on_state_change = track_state

    if controller.auto_capture and args.once:
        print("⚡ Auto-capture on, the scanner quits after the first document")

    try:
        scheduler.run_forever(lambda: not controller.closed)
    except KeyboardInterrupt:
        pass
    finally:
        controller.close()
        cv2.destroyAllWindows()

    print(f"👋 Scanner closed, captures in {os.path.abspath(config.output_dir)}")


if __name__ == '__main__':
    main()
