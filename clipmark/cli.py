"""
Command line entry point

Examples:
  clipmark analyze rally_01.mp4 --model models/yolo11n-pose.onnx --time 3.5 --time 12.0
  clipmark analyze frame.png --model models/yolo11n-pose.onnx --overlay-dir ./overlays
  clipmark export rally_01 --output ./exports/rally_01.json --width 1920 --height 1080
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import cv2
from tqdm import tqdm

from .annotation.export import write_export
from .core.config import AnnotatorConfig
from .core.exceptions import ClipmarkException, DataLoadError, handle_clipmark_exception
from .io.frame_source import ArrayFrameSource, VideoFrameSource
from .io.storage import JsonFileStore, MemoryStore, video_key
from .workspace import AnnotationWorkspace

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp'}


def load_config(config_path: Optional[str]) -> AnnotatorConfig:
    """YAML config (if given) with environment overrides on top"""
    base = AnnotatorConfig.from_yaml(config_path) if config_path else None
    return AnnotatorConfig.from_env(base)


def open_source(path: str):
    if Path(path).suffix.lower() in IMAGE_EXTENSIONS:
        return ArrayFrameSource.from_image(path)
    return VideoFrameSource(path)


async def run_analyze(args: argparse.Namespace) -> List[dict]:
    config = load_config(args.config)
    if args.model:
        config.pose.model_path = args.model

    workspace = AnnotationWorkspace(config)
    workspace.open_video(open_source(args.video), store=MemoryStore())

    overlay_dir = Path(args.overlay_dir) if args.overlay_dir else None
    if overlay_dir is not None:
        overlay_dir.mkdir(parents=True, exist_ok=True)

    results = []
    try:
        for time_s in tqdm(args.time or [0.0], desc="Analyzing"):
            workspace.seek(time_s)
            result = await workspace.analyze()
            results.append(result.to_dict())

            if overlay_dir is not None and result.persons:
                frame = workspace.render_overlay(workspace.source.capture())
                out_path = overlay_dir / f"{workspace.video_name}_{time_s:08.3f}.png"
                cv2.imwrite(str(out_path), cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
    finally:
        workspace.close_video()

    return results


def run_export(args: argparse.Namespace) -> Path:
    config = load_config(args.config)
    name = video_key(args.video_name)
    store = JsonFileStore(config.paths.data_root, name, config.storage.ttl_seconds)
    state = store.load()
    if state is None:
        raise DataLoadError(f"No saved state for '{name}' in {config.paths.data_root}")

    return write_export(
        args.output,
        state.clips,
        state.annotations,
        args.width,
        args.height,
        config.annotation.labels,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='clipmark',
        description='Pose-assisted clip and action annotation',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')
    parser.add_argument('--config', type=str, default=None, help='YAML configuration file')

    subparsers = parser.add_subparsers(dest='command', required=True)

    analyze = subparsers.add_parser('analyze', help='Detect poses at given times')
    analyze.add_argument('video', help='Video or image file')
    analyze.add_argument('--model', type=str, default=None,
                         help='ONNX pose model (default: pose.model_path from config)')
    analyze.add_argument('--time', type=float, action='append',
                         help='Time in seconds to analyze (repeatable, default: 0)')
    analyze.add_argument('--overlay-dir', type=str, default=None,
                         help='Write overlay PNGs for frames with detections')

    export = subparsers.add_parser('export', help='Export saved clips and annotations')
    export.add_argument('video_name', help='Video file or its name without extension')
    export.add_argument('--output', type=str, required=True, help='Output JSON file')
    export.add_argument('--width', type=int, default=1, help='Frame width for normalization')
    export.add_argument('--height', type=int, default=1, help='Frame height for normalization')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        if args.command == 'analyze':
            results = asyncio.run(run_analyze(args))
            print(json.dumps(results, indent=2))
            if all(result['status'] == 'failed' for result in results):
                logger.error("Analysis failed for every requested time")
                return 1
        else:
            path = run_export(args)
            print(path)
    except ClipmarkException as e:
        handle_clipmark_exception(e)
        return 1
    except FileNotFoundError as e:
        logger.error(f"Fatal error: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
