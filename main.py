#!/usr/bin/env python3
"""
Main entry point for the proctoring monitor.
Runs a monitoring session from the command line and writes the session
document and violation frames to an output directory.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from proctoring.core.face_detection import FaceDetector
from proctoring.core.face_mesh import FaceMeshDetector
from proctoring.core.face_recognition import FaceEmbedder
from proctoring.core.frame_capture import ViolationFrame
from proctoring.core.proctoring_system import ProctoringSystem
from proctoring.core.session_log import DisplayEvent
from proctoring.core.video_capture import VideoCapture
from proctoring.utils.config import Config
from proctoring.utils.logger import configure_logging
from proctoring.utils.storage import KeyValueStore


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Webcam exam proctoring monitor")

    parser.add_argument("--camera", "-c", type=int, default=None,
                        help="Camera device index (default: configured camera)")
    parser.add_argument("--video", type=str, default="",
                        help="Read frames from a video file instead of a camera")
    parser.add_argument("--config", type=str, default="",
                        help="JSON configuration file (optional)")
    parser.add_argument("--enrollment", "-e", type=str, default="",
                        help="Enrolled descriptors store (default: configured store path)")
    parser.add_argument("--output", "-o", type=str, default="sessions",
                        help="Directory for the session document and violation frames")
    parser.add_argument("--duration", "-d", type=float, default=None,
                        help="Stop after this many seconds (default: run until interrupted)")
    parser.add_argument("--no-recognition", action="store_true",
                        help="Disable identity verification")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Print info events as well as violations")

    return parser.parse_args(argv)


def make_event_printer(verbose: bool):
    """Event callback printing to stdout."""
    def on_event(event: DisplayEvent) -> None:
        if verbose or event.severity.value != "info":
            print(f"[{event.timestamp}] {event.severity.value.upper()}: {event.message}")
    return on_event


def on_violation_update(total: int, attention: int) -> None:
    print(f"  Violations: {total} (attention: {attention})")


def make_frame_writer(output_dir: Path):
    """Frame sink writing each violation frame as a PNG file."""
    def write_frame(frame: ViolationFrame) -> None:
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / frame.filename).write_bytes(frame.data)
    return write_frame


def write_session_document(document: dict, output_dir: Path) -> Path:
    """Write the session document as pretty-printed JSON."""
    output_dir.mkdir(parents=True, exist_ok=True)
    end_time = document['session_info']['end_time'].replace(':', '-').replace('.', '-')
    path = output_dir / f"proctoring-session-{end_time}.json"
    path.write_text(json.dumps(document, indent=2), encoding='utf-8')
    return path


def main(argv=None) -> int:
    """Run one monitoring session."""
    args = parse_arguments(argv)

    config = Config(args.config) if args.config else Config()
    if not config.validate_config():
        print("✗ Invalid configuration")
        return 1

    log_path = configure_logging(config.logging)
    if log_path is not None:
        print(f"✓ Logging to {log_path}")

    output_dir = Path(args.output)
    source = args.video or (args.camera if args.camera is not None else config.camera.device_id)

    print("Initializing proctoring monitor...")
    try:
        video = VideoCapture(source, config.camera)
        face_detector = FaceDetector(config.mediapipe)
        face_mesh = FaceMeshDetector(config.mediapipe)
    except RuntimeError as e:
        print(f"✗ Error initializing components: {e}")
        return 1

    embedder: Optional[FaceEmbedder] = None if args.no_recognition else FaceEmbedder(config.model)
    store = KeyValueStore(args.enrollment or config.storage.store_path)

    system = ProctoringSystem(
        video_source=video,
        face_detector=face_detector,
        face_mesh=face_mesh,
        on_log_event=make_event_printer(args.verbose),
        on_violation_update=on_violation_update,
        face_embedder=embedder,
        enrollment_store=store,
        config=config,
        frame_sink=make_frame_writer(output_dir / "frames"),
    )
    print("✓ All components initialized successfully")

    max_duration_ms = args.duration * 1000 if args.duration is not None else None
    try:
        document = system.run(max_duration_ms=max_duration_ms)
    except KeyboardInterrupt:
        document = system.stop_monitoring()
    finally:
        system.dispose()
        video.release()

    if document is None:
        return 1

    path = write_session_document(document, output_dir)
    stats = document['statistics']
    print(f"✓ Session saved to {path}")
    print(f"  Total violations: {stats['total_violations']}, "
          f"attention violations: {stats['attention_violations']}, "
          f"events: {stats['total_events']}")

    metrics = video.get_performance_metrics()
    print(f"  Frames read: {metrics['frames_read']}, capture rate: {metrics['fps']:.1f} FPS")
    return 0


if __name__ == "__main__":
    sys.exit(main())
