"""
FrameMark - a frame annotation editor for video review.

This is the stand-alone entry point: it opens one still (a file or the
clipboard image), runs the editor and writes the annotated image and pins.
Run with: python -m framemark.app IMAGE
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from PySide6.QtGui import QGuiApplication, QImage
from PySide6.QtWidgets import QApplication

from framemark import __version__
from framemark.editor.editor_widget import FrameAnnotationWidget
from framemark.editor.pins import AnnotationResult
from framemark.services.config_service import ConfigService
from framemark.services.logging_service import get_logger, setup_logging


# Exit codes
EXIT_SAVED = 0
EXIT_CANCELLED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="framemark",
        description="Annotate a still frame with drawings and numbered comment pins",
    )
    parser.add_argument("image", nargs="?", default=None, help="Image file to annotate")
    parser.add_argument("-o", "--output", default=None,
                        help="Where to write the annotated image (default: <stem>_annotated.jpg)")
    parser.add_argument("--pins-json", default=None, help="Also write the pins as JSON to this path")
    parser.add_argument("--clipboard", action="store_true",
                        help="Annotate the clipboard image when no IMAGE is given")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def default_output_path(image: Optional[Path], image_format: str) -> Path:
    """``<stem>_annotated.<ext>`` next to the input, or in the working directory."""
    extension = "jpg" if image_format.upper() == "JPEG" else image_format.lower()
    if image is None:
        return Path.cwd() / f"frame_annotated.{extension}"
    return image.with_name(f"{image.stem}_annotated.{extension}")


def write_result(
    result: AnnotationResult,
    output: Path,
    pins_json: Optional[Path] = None
) -> None:
    """Write the annotated image and, optionally, the pin payload."""
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.annotated_image)

    if pins_json is not None:
        payload = result.to_dict()
        payload.pop("annotatedImage")
        payload["image"] = str(output)
        pins_json.parent.mkdir(parents=True, exist_ok=True)
        with open(pins_json, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)


def load_source(
    image: Optional[Path],
    use_clipboard: bool,
    logger: logging.Logger
) -> Optional[Union[bytes, QImage]]:
    """
    Read the still to annotate.

    Returns:
        Encoded bytes from a file, a QImage from the clipboard, or None when
        nothing could be read.
    """
    if image is not None:
        try:
            return image.read_bytes()
        except OSError as e:
            logger.error(f"Could not read {image}: {e}")
            return None

    if use_clipboard:
        clipboard_image = QGuiApplication.clipboard().image()
        if clipboard_image.isNull():
            logger.error("The clipboard does not contain an image")
            return None
        return clipboard_image

    return None


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for FrameMark.

    Returns:
        Exit code (0 when saved, non-zero when cancelled or on error).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.image is None and not args.clipboard:
        parser.error("an IMAGE is required unless --clipboard is given")

    setup_logging(log_level=logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger(__name__)

    try:
        logger.info("Starting FrameMark...")

        app = QApplication.instance() or QApplication(sys.argv[:1])
        app.setApplicationName("FrameMark")
        app.setOrganizationName("FrameMark")
        app.setApplicationVersion(__version__)

        image_path = Path(args.image) if args.image else None
        source = load_source(image_path, args.clipboard, logger)
        if source is None:
            return 1

        config = ConfigService()
        widget = FrameAnnotationWidget(source, config_service=config)
        widget.setWindowTitle(f"FrameMark - {image_path.name if image_path else 'clipboard'}")

        exit_code = EXIT_CANCELLED

        def on_saved(result: AnnotationResult) -> None:
            nonlocal exit_code
            output = Path(args.output) if args.output else default_output_path(
                image_path, result.image_format
            )
            pins_json = Path(args.pins_json) if args.pins_json else None
            try:
                write_result(result, output, pins_json)
            except OSError as e:
                logger.error(f"Could not write the annotation: {e}")
            else:
                logger.info(f"Annotated image written to {output}")
                if pins_json is not None:
                    logger.info(f"Pins written to {pins_json}")
                exit_code = EXIT_SAVED
            widget.close()

        def on_cancelled() -> None:
            logger.info("Annotation cancelled by user")
            widget.close()

        widget.saved.connect(on_saved)
        widget.cancelled.connect(on_cancelled)
        widget.resize(widget.sizeHint())
        widget.show()

        logger.info("FrameMark initialization complete. Entering event loop...")
        app.exec()

        logger.info(f"FrameMark exiting with code {exit_code}")
        return exit_code

    except Exception as e:
        # Log any unhandled exceptions
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
