"""
CLI Interface Module

Command-line access to the tiered routing engine: vendor configuration status,
the model and OCR catalogs, per-provider metrics, and one-off name suggestion
and OCR runs against the configured vendors.
"""

import argparse
import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .. import __version__
from ..llm.prompt_library import OCR_METHOD_PROMPTS
from ..metrics.api_metrics import ApiMetrics
from ..services.analysis_service import AnalysisService
from ..tiers.tier_config import TIER_CONFIGS
from ..utils.config_loader import Config, RouterConfig
from ..utils.error_handlers import (
    ConfigurationError,
    RoutingError,
    create_error_report,
    log_error_with_context,
)
from ..utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

# Constants
DEFAULT_CONFIG_PATH = "config/router_config.yaml"
MAX_CONTENT_BYTES = 200_000
SEPARATOR_WIDTH = 60
OCR_METHODS = sorted(OCR_METHOD_PROMPTS)


def load_config(config_path: Optional[str]) -> RouterConfig:
    """Load and validate configuration, using defaults when the file is absent.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Validated RouterConfig.

    Raises:
        ConfigurationError: If validation reports any error.
    """
    try:
        config = Config.load(config_path)
    except FileNotFoundError:
        logger.warning(f"Configuration file not found ({config_path}), using defaults")
        config = Config.default()

    errors = Config.validate(config)
    if errors:
        raise ConfigurationError(
            f"Invalid configuration: {'; '.join(errors)}", config_key="router_config"
        )
    return config


@contextmanager
def get_service(config_path: Optional[str]) -> Iterator[AnalysisService]:
    """Context manager yielding a configured AnalysisService.

    Args:
        config_path: Path to the router configuration file.

    Yields:
        AnalysisService that is closed on exit.
    """
    service = AnalysisService.from_config(load_config(config_path))
    try:
        yield service
    finally:
        service.close()


def handle_error(context: str, error: Exception) -> int:
    """Centralized error handling for commands.

    Args:
        context: Description of the operation that failed.
        error: Exception that was raised.

    Returns:
        Exit code 1.
    """
    if isinstance(error, FileNotFoundError):
        logger.error(f"{context}: File not found - {error}")
    elif isinstance(error, ValueError):
        logger.error(f"{context}: Invalid value - {error}")
    elif isinstance(error, RoutingError):
        log_error_with_context(
            error, {"provider": error.provider or "none", "operation": context}, logger
        )
        logger.debug(f"Error report: {json.dumps(create_error_report(error), default=str)}")
    else:
        logger.error(f"{context}: {error}", exc_info=True)
    return 1


def main(argv: Optional[list] = None) -> int:
    """Execute the main CLI entry point.

    Returns:
        Exit code: 0 for success, non-zero for errors.

    Example:
        $ tiered-routing status
        $ tiered-routing suggest-name invoice.txt --plan credits_low
    """
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Tiered Routing Engine v{__version__}")
        return 0

    setup_logging(args.log_level)

    if args.command is None:
        parser.print_help()
        return 1

    command_map = {
        "status": command_status,
        "models": command_models,
        "metrics": command_metrics,
        "suggest-name": command_suggest_name,
        "ocr": command_ocr,
    }

    try:
        return command_map[args.command](args)
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 130
    except Exception as e:
        return handle_error("Command execution failed", e)


def command_status(args: argparse.Namespace) -> int:
    """Print which vendors are configured and why the others are not."""
    with get_service(args.config) as service:
        status = service.get_provider_status()

    print_header("PROVIDER STATUS")
    for vendor, entry in sorted(status.items()):
        mark = "✓" if entry["available"] else "✗"
        reason = f" ({entry['reason']})" if entry["reason"] else ""
        print(f"{mark} {vendor}{reason}")
    print("=" * SEPARATOR_WIDTH)
    return 0


def command_models(args: argparse.Namespace) -> int:
    """Print the model and OCR catalogs, optionally with the tier chains."""
    with get_service(args.config) as service:
        models = service.get_available_models()
        ocr_providers = service.get_ocr_providers()
        plans = service.engine.tiers.plans()

    if args.json:
        print(
            json.dumps(
                {
                    "models": models,
                    "ocr_providers": ocr_providers,
                    "tiers": [tier.to_dict() for tier in plans],
                },
                indent=2,
            )
        )
        return 0

    print_header("MODELS")
    for model in models:
        print(f"{model['id']:<22} {model['provider']:<10} {model['name']}")

    print_header("OCR PROVIDERS")
    for provider in ocr_providers:
        print(f"{provider['id']:<22} {provider['provider']:<14} {provider['quality_level']}")

    print_header("TIERS")
    for tier in plans:
        print(f"{tier.plan_name:<10} models: {', '.join(tier.models)}")
        print(f"{'':<10} ocr:    {', '.join(p for p in tier.ocr_providers if p)}")
    print("=" * SEPARATOR_WIDTH)
    return 0


def command_metrics(args: argparse.Namespace) -> int:
    """Print per-provider metrics or reset one provider's row."""
    with get_service(args.config) as service:
        if args.reset:
            removed = service.reset_metrics(args.reset)
            print(f"{'✓ Reset' if removed else 'No metrics for'} {args.reset}")
            return 0
        rows = service.list_metrics()

    if args.json:
        print(json.dumps([row.to_dict() for row in rows], indent=2))
        return 0

    print_header("API METRICS")
    if not rows:
        print("No requests recorded")
    for row in rows:
        print_metrics_row(row)
    print("=" * SEPARATOR_WIDTH)
    return 0


def command_suggest_name(args: argparse.Namespace) -> int:
    """Suggest a filename for a text file or an image."""
    path = Path(args.file)
    if not path.is_file():
        return handle_error("Invalid input path", FileNotFoundError(str(path)))

    instructions = {}
    if args.max_length:
        instructions["max_length"] = args.max_length
    if args.style:
        instructions["naming_style"] = args.style

    with get_service(args.config) as service:
        if args.image:
            result = service.suggest_name_from_image(
                path.read_bytes(), path.name, args.plan, instructions or None
            )
        else:
            content = path.read_bytes()[:MAX_CONTENT_BYTES].decode("utf-8", errors="replace")
            result = service.generate_suggested_name(
                content,
                path.name,
                path.suffix.lstrip(".") or "txt",
                args.plan,
                instructions or None,
            )

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"Suggested name: {result.suggested_name}")
        print(f"Confidence: {result.confidence:.2f} ({result.provider})")
        print(f"Reasoning: {result.reasoning}")
    return 0


def command_ocr(args: argparse.Namespace) -> int:
    """Extract text from an image through the plan's OCR chain."""
    path = Path(args.image)
    if not path.is_file():
        return handle_error("Invalid input path", FileNotFoundError(str(path)))

    with get_service(args.config) as service:
        result = service.extract_text_from_image(path.read_bytes(), args.method, args.plan)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"Provider: {result.provider} (confidence {result.confidence:.2f})")
        print(result.extracted_text)
    return 0


def setup_argument_parser() -> argparse.ArgumentParser:
    """Configure the argument parser with all CLI commands and options.

    Returns:
        Configured ArgumentParser instance ready to parse sys.argv.
    """
    parser = argparse.ArgumentParser(
        description="Tiered Routing Engine - CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show which vendors have credentials
  %(prog)s status

  # Suggest a name using the basic plan chain
  %(prog)s suggest-name notes.txt --plan basic

  # OCR an image with the pro plan
  %(prog)s ocr scan.png --plan pro --method extract-content

  # Reset the metrics row of one vendor
  %(prog)s metrics --reset openai
        """,
    )

    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )
    parser.add_argument(
        "--config",
        default=DEFAULT_CONFIG_PATH,
        help="Path to configuration file (default: %(default)s)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: %(default)s)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "status",
        help="Show vendor configuration status",
        description="Report which vendors have credentials configured.",
    )

    models_parser = subparsers.add_parser(
        "models",
        help="List models, OCR providers and tier chains",
    )
    models_parser.add_argument("--json", action="store_true", help="Print JSON")

    metrics_parser = subparsers.add_parser(
        "metrics",
        help="Show or reset per-provider metrics",
    )
    metrics_parser.add_argument(
        "--reset",
        metavar="PROVIDER",
        help="Delete the metrics row of a provider",
    )
    metrics_parser.add_argument("--json", action="store_true", help="Print JSON")

    plan_help = (
        f"Plan name ({', '.join(TIER_CONFIGS)}) or billing plan type "
        "(default: %(default)s)"
    )

    suggest_parser = subparsers.add_parser(
        "suggest-name",
        help="Suggest a filename for a file",
    )
    suggest_parser.add_argument("file", help="Path to the file")
    suggest_parser.add_argument("--plan", default="free", help=plan_help)
    suggest_parser.add_argument(
        "--image",
        action="store_true",
        help="Treat the file as an image and OCR it first",
    )
    suggest_parser.add_argument("--max-length", type=int, help="Maximum name length")
    suggest_parser.add_argument("--style", help="Naming style hint (e.g. snake_case)")
    suggest_parser.add_argument("--json", action="store_true", help="Print JSON")

    ocr_parser = subparsers.add_parser(
        "ocr",
        help="Extract text from an image",
    )
    ocr_parser.add_argument("image", help="Path to the image")
    ocr_parser.add_argument("--plan", default="free", help=plan_help)
    ocr_parser.add_argument(
        "--method",
        choices=OCR_METHODS,
        default="smart-naming",
        help="OCR method (default: %(default)s)",
    )
    ocr_parser.add_argument("--json", action="store_true", help="Print JSON")

    return parser


def print_header(title: str) -> None:
    print("\n" + "=" * SEPARATOR_WIDTH)
    print(title)
    print("=" * SEPARATOR_WIDTH)


def print_metrics_row(row: ApiMetrics) -> None:
    """Print one provider's metrics on two lines."""
    print(
        f"{row.provider_name:<14} requests: {row.request_count:<6} "
        f"success: {row.success_rate * 100:5.1f}%  avg: {row.avg_latency_ms}ms "
        f"(min {row.min_latency_ms}, max {row.max_latency_ms})"
    )
    if row.last_error_message:
        print(f"{'':<14} last error: {row.last_error_message}")


if __name__ == "__main__":
    sys.exit(main())
