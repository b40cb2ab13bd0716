from __future__ import annotations

import argparse
import json
from dataclasses import asdict
from pathlib import Path

import cv2

from signallens.core.config.settings import SignalSettings, load_settings
from signallens.core.overlay.draw import draw_reading
from signallens.core.pipeline import SignalPipeline
from signallens.core.video_sources.base import ImageSource, VideoSource, make_source

WINDOW_NAME = "Signal Lens"
QUIT_KEYS = {ord("q"), 27}


def _source_from_settings(settings: SignalSettings) -> str:
    if settings.video_source in {"file", "image"} and settings.video_path:
        return settings.video_path
    if settings.video_source == "rtsp" and settings.rtsp_url:
        return settings.rtsp_url
    return f"webcam:{settings.camera_index}"


def _open_source(target: str) -> VideoSource:
    try:
        return make_source(target)
    except RuntimeError as exc:
        raise SystemExit(f"Cannot open input {target}: {exc}") from None


def run(args) -> list[dict]:
    settings = load_settings()
    if args.channel_order:
        settings.channel_order = args.channel_order
    pipeline = SignalPipeline.from_settings(settings)
    source = _open_source(args.input or _source_from_settings(settings))
    # Still images stay on screen until a key is pressed.
    wait_ms = 0 if isinstance(source, ImageSource) else 1

    outputs: list[dict] = []
    try:
        while True:
            frame = source.read()
            if frame is None:
                if source.is_live:
                    continue
                break
            # Captures and decoded files are BGR.
            if pipeline.channel_order == "rgb":
                frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
            reading = pipeline.analyze(frame, profile=args.profile)
            record = {"frame_index": len(outputs), **asdict(reading)}
            outputs.append(record)
            if args.display:
                cv2.imshow(WINDOW_NAME, draw_reading(frame, reading, pipeline.channel_order))
                if (cv2.waitKey(wait_ms) & 0xFF) in QUIT_KEYS:
                    break
            else:
                print(f"[{record['frame_index']}] {reading.state}")
            if args.max_frames and len(outputs) >= args.max_frames:
                break
    finally:
        source.close()
        if args.display:
            cv2.destroyWindow(WINDOW_NAME)

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(outputs, f, indent=2)
        print(f"Wrote {len(outputs)} frame readings to {out_path}")
    return outputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Classify traffic-signal state frame by frame")
    parser.add_argument(
        "--input",
        default=None,
        help="Video/image path, webcam:<index> or rtsp:// URL (default: from settings)",
    )
    parser.add_argument("--output", default=None, help="Where to save JSON readings")
    parser.add_argument("--max-frames", type=int, default=0, help="Limit frames for quick tests")
    parser.add_argument("--channel-order", choices=["bgr", "rgb"], default=None)
    parser.add_argument("--profile", action="store_true", help="Record per-stage timings")
    parser.add_argument("--display", action="store_true", help="Show an annotated window (q/Esc quits)")
    return parser


if __name__ == "__main__":
    run(build_parser().parse_args())
