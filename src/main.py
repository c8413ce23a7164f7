"""
Capture Studio - Main Application
==================================

Collect labeled hand-gesture samples from the camera, train models on
the backend and try them live.

Usage:
    capture-studio                         # interactive console
    capture-studio --backend-url http://host:8000
    capture-studio samples                 # print sample counts
    capture-studio train lenguaje_senas_v1
    capture-studio models
    capture-studio delete NAME
    capture-studio clear
"""

import argparse
import asyncio
import logging
import sys

from app.studio import CaptureStudio
from backend.client import BackendClient, BackendConfig
from core.errors import CaptureStudioError
from utils.config import Config
from utils.logger import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Hand-gesture sample capture studio")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--backend-url", default=None, help="Backend base URL")
    parser.add_argument("--camera", type=int, default=None, help="Camera device id")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="Interactive capture console (default)")
    sub.add_parser("samples", help="Show sample counts")
    sub.add_parser("clear", help="Delete all samples")
    sub.add_parser("models", help="List trained models")
    train = sub.add_parser("train", help="Train a model")
    train.add_argument("name", nargs="?", default=None)
    delete = sub.add_parser("delete", help="Delete a model")
    delete.add_argument("name")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    config = Config().load(args.config)
    config.override("backend.base_url", args.backend_url)
    config.override("camera.device_id", args.camera)
    config.override("logging.level", args.log_level)
    return config


async def run_command(args: argparse.Namespace, config: Config, client: BackendClient) -> int:
    """Non-interactive backend commands."""
    if args.command == "samples":
        info = await client.list_samples()
        print(f"Total samples: {info.total_samples}")
        for label, count in sorted(info.samples_per_class.items()):
            print(f"  {label:<6} {count:5d}")
    elif args.command == "clear":
        await client.clear_samples()
        print("All samples deleted")
    elif args.command == "models":
        models = await client.list_models()
        if not models:
            print("No models available")
        for m in models:
            print(f"{m.name:<30} acc={m.accuracy:.3f} samples={m.sample_count} classes={','.join(m.classes)}")
    elif args.command == "train":
        name = args.name or config.get("session.model_name")
        model = await client.train(name)
        print(f"Trained {model.name}: accuracy={model.accuracy:.3f}")
    elif args.command == "delete":
        await client.delete_model(args.name)
        print(f"Deleted {args.name}")
    return 0


async def run_console(config: Config) -> int:
    from app.console import StudioConsole

    async with CaptureStudio(config) as studio:
        await StudioConsole(studio).run()
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    config = load_config(args)
    log_cfg = config.logging_options
    setup_logging(
        level=log_cfg.get("level", "INFO"),
        log_file=log_cfg.get("file"),
        max_size_mb=log_cfg.get("max_size_mb", 10),
        backup_count=log_cfg.get("backup_count", 3),
    )

    try:
        if args.command in (None, "run"):
            return asyncio.run(run_console(config))
        client = BackendClient(BackendConfig.from_dict(config.backend))
        return asyncio.run(run_command(args, config, client))
    except CaptureStudioError as e:
        logger.error("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
