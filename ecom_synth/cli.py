"""
Command-line entry point

    ecom-synth --scale small --format csv --format sql --seed 42
"""

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from ecom_synth.config import get_settings, get_synth_config
from ecom_synth.config.logging import configure_logging
from ecom_synth.data.generators import DataGenerator
from ecom_synth.exceptions import SynthError
from ecom_synth.export import DatasetExporter, ExportFormat
from ecom_synth.quality import validate_dataset

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings().generator
    scales = list(get_synth_config().scales)

    parser = argparse.ArgumentParser(
        prog="ecom-synth",
        description="Generate a synthetic social-selling e-commerce dataset",
    )
    parser.add_argument(
        "--scale", "-s",
        choices=scales,
        default=settings.scale,
        help=f"Scale preset (default: {settings.scale})",
    )
    parser.add_argument(
        "--format", "-f",
        dest="formats",
        action="append",
        choices=[f.value for f in ExportFormat],
        help="Export format; repeat for several (default: %s)" % ", ".join(settings.formats),
    )
    parser.add_argument("--seed", type=int, default=settings.seed, help="Random seed for a reproducible run")
    parser.add_argument(
        "--output-dir", "-o",
        default=settings.output_dir,
        help=f"Export root directory (default: {settings.output_dir})",
    )
    parser.add_argument("--list-scales", action="store_true", help="List scale presets and exit")
    parser.add_argument(
        "--validate",
        action="store_true",
        default=settings.validate_output,
        help="Run dataset quality checks after generation",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--log-format", choices=["json", "text"], default=None, help="Override LOG_FORMAT")
    return parser


def print_scales() -> None:
    print("Available scales:")
    for key, scale in get_synth_config().scales.items():
        print(f"  {key:<10} {scale.description}")
        print(
            f"             {scale.workspaces} workspaces, {scale.total_products} products, "
            f"{scale.days_of_history} days of history"
        )


def print_summary(summary: Dict[str, int], output_dir: Path) -> None:
    print("=" * 50)
    print("Data Summary")
    print("-" * 50)
    for table, count in summary.items():
        print(f"  {table:<22} {count:>12,}")
    print("-" * 50)
    print(f"  {'TOTAL':<22} {sum(summary.values()):>12,}")
    print("=" * 50)
    print(f"Output: {output_dir}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_scales:
        print_scales()
        return 0

    configure_logging(log_level=args.log_level, log_format=args.log_format)
    formats = args.formats or get_settings().generator.formats
    output_dir = Path(args.output_dir)

    try:
        generator = DataGenerator(scale=args.scale, seed=args.seed)
        data = generator.generate_all()
        DatasetExporter(output_dir, table_order=generator.table_order).export(data, formats)

        if args.validate:
            report = validate_dataset(data, config=generator.config)
            if not report.passed:
                logger.error("Dataset failed validation", failed=report.failed_collections)
                return 1
    except (SynthError, OSError) as e:
        logger.error("Generation failed", error=str(e), error_type=type(e).__name__)
        return 1

    print_summary(generator.summary(), output_dir)
    return 0


if __name__ == "__main__":
    sys.exit(main())
