import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

import requests

from backend.client import VideoAPIClient
from backend.logging_config import configure_logging
from backend.services.progress import ProgressTicker
from backend.services.prompt_enhancer import (
    DEFAULT_ASPECT_RATIO,
    DEFAULT_MOTION_INTENSITY,
    DEFAULT_STYLE,
    AspectRatio,
    MotionIntensity,
    VideoStyle,
)


def progress_label(value: float) -> str:
    if value < 30:
        return "Initializing AI models..."
    if value < 60:
        return "Processing your prompt..."
    if value < 90:
        return "Rendering 4K video..."
    return "Finalizing..."


def _print_progress(value: float) -> None:
    sys.stdout.write(f"\r[{value:5.1f}%] {progress_label(value):<30}")
    sys.stdout.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate videos through a running video generation server")
    parser.add_argument("--server", default="http://127.0.0.1:8000", help="Base URL of the server")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a video from a text prompt")
    generate.add_argument("prompt", help="Text prompt describing the video")
    generate.add_argument("--style", default=DEFAULT_STYLE, choices=[s.value for s in VideoStyle])
    generate.add_argument(
        "--aspect-ratio", default=DEFAULT_ASPECT_RATIO, choices=[a.value for a in AspectRatio]
    )
    generate.add_argument(
        "--motion", default=DEFAULT_MOTION_INTENSITY, choices=[m.value for m in MotionIntensity]
    )
    generate.add_argument("--output", type=Path, default=None, help="Where to save a raw video response")

    subparsers.add_parser("health", help="Show the server capability descriptor")
    return parser


def run_generate(client: VideoAPIClient, args: argparse.Namespace) -> int:
    request = {
        "prompt": args.prompt.strip(),
        "style": args.style,
        "aspectRatio": args.aspect_ratio,
        "motionIntensity": args.motion,
    }
    ticker = ProgressTicker(on_update=_print_progress)
    ticker.start()
    try:
        result = client.generate_video(request, output_path=args.output)
    finally:
        ticker.cancel()

    if not result.get("success"):
        sys.stdout.write("\n")
        print(f"Generation failed: {result.get('message') or result.get('error')}")
        return 1

    ticker.complete()
    sys.stdout.write("\n")
    print(result.get("message", "Video generated successfully!"))
    print(result.get("videoUrl") or result.get("videoPath"))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging("WARNING")
    args = build_parser().parse_args(argv)
    client = VideoAPIClient(args.server)

    if args.command == "health":
        try:
            print(json.dumps(client.check_health(), indent=2))
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            print(f"Health check error: {exc}")
            return 1
        return 0
    return run_generate(client, args)


if __name__ == "__main__":
    sys.exit(main())
