"""
FaceControl - hands-free cursor control from facial landmarks.

Main entry point. Replays a recorded landmark session through the
pipeline and drives the local mouse.

Usage:
    python -m facecontrol.main session.npy [--loop] [--dry-run]
"""

import argparse
import sys
from pathlib import Path

from PyQt6.QtWidgets import QApplication

from facecontrol.core.config import get_default_config
from facecontrol.gui.app_window import MainWindow
from facecontrol.os_control.dispatch import NullMouseSink
from facecontrol.vision.landmark_source import LandmarkReplay
from facecontrol.utils.logger import setup_logger, get_logger


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Facial landmark cursor control")
    parser.add_argument("recording", type=Path,
                        help="Landmark recording (.npy, shape frames x landmarks x 2)")
    parser.add_argument("--loop", action="store_true",
                        help="Restart the recording when it ends")
    parser.add_argument("--dry-run", action="store_true",
                        help="Run the pipeline without moving the mouse")
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    config = get_default_config()

    setup_logger(
        name="facecontrol",
        level=config.log_level,
        log_file=config.storage.log_path,
        enable_file_logging=config.storage.enable_file_logging,
    )

    logger = get_logger(__name__)
    logger.info("=" * 60)
    logger.info("FaceControl Starting")
    logger.info(f"Version: {config.version}")
    logger.info("=" * 60)

    app = QApplication(sys.argv)
    app.setApplicationName("FaceControl")
    app.setApplicationVersion(config.version)

    if args.dry_run:
        sink = NullMouseSink()
    else:
        # pynput needs a display; import only when actually driving the mouse
        from facecontrol.os_control.cursor_controller import PynputMouseSink

        screen = app.primaryScreen()
        if screen is not None:
            size = screen.geometry()
            sink = PynputMouseSink(size.width(), size.height())
        else:
            sink = PynputMouseSink(config.screen.width, config.screen.height)

    source = LandmarkReplay(args.recording, config.camera, loop=args.loop)

    window = MainWindow(config, source, sink)
    window.show()

    logger.info("Application window created")

    exit_code = app.exec()

    logger.info("Application exiting")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
