"""Command-line interface for level generation."""

import argparse
import sys
import time
from pathlib import Path

import structlog


def main() -> None:
    """CLI entry point for level generation."""
    parser = argparse.ArgumentParser(
        description="Generate a tiled terrain level with villages and props"
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Config name in configs/ or path to a TOML file (default: built-in defaults)",
    )
    parser.add_argument(
        "--seed", type=int, default=None, help="Override the configured random seed"
    )
    parser.add_argument(
        "--list-configs", action="store_true", help="List available configs and exit"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Verbose logging"
    )

    args = parser.parse_args()

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(10 if args.verbose else 20),
    )
    logger = structlog.get_logger()

    # Import here to avoid slow startup for --help
    from ..config import find_config, list_configs, load_config
    from ..exceptions import ConfigurationError
    from .config import GenerationConfig
    from .generator import generate_world
    from .validation import validate_layout

    if args.list_configs:
        for name in list_configs():
            print(name)
        return

    try:
        if args.config:
            try:
                config_path = find_config(args.config)
            except FileNotFoundError:
                config_path = Path(args.config)
            config = load_config(config_path)
            logger.info("config_loaded", path=str(config_path))
        else:
            config = GenerationConfig()

        if args.seed is not None:
            config = config.model_copy(update={"seed": args.seed})

        start_time = time.time()
        result = generate_world(config)
        gen_time = time.time() - start_time
    except (ConfigurationError, FileNotFoundError) as e:
        logger.error("generation_failed", error=str(e))
        sys.exit(1)

    validation = validate_layout(result)
    settlements = result.settlements

    logger.info(
        "generation_complete",
        seconds=round(gen_time, 2),
        seed=config.seed,
        villages=len(settlements.villages),
        houses=len(settlements.houses),
        furniture=len(settlements.furniture),
        props=len(result.objects),
        shortfalls=len(settlements.shortfalls),
        valid=validation.passed,
    )

    if not validation.passed:
        sys.exit(1)


if __name__ == "__main__":
    main()
