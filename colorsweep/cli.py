"""Command-line interface for the colorsweep project."""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Iterable, Sequence

from tqdm import tqdm

from .extract.flags import DEFAULT_SWEEP, describe, parse_flags
from .extract.kmeans import DEFAULT_K, DEFAULT_SIZE
from .extract.normalize import list_images, load_image
from .group.aggregate import ReportAggregator
from .group.sweep import ConfigurationSweep
from .io.outputs import write_html
from .palette.matcher import NearestColorMatcher
from .palette.reference import ReferencePalette

DEFAULT_OUTPUT_NAME = "output.html"


def _config_arg(value: str) -> int:
    try:
        return parse_flags(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the color sweep report."""
    parser = argparse.ArgumentParser(
        description="Extract dominant colors under several k-means configurations "
        "and match them against a reference palette."
    )
    parser.add_argument(
        "--input",
        default=".",
        help="Directory containing the images to analyse.",
    )
    parser.add_argument(
        "--out",
        default=".",
        help="Directory where the HTML report will be written.",
    )
    parser.add_argument(
        "--pattern",
        default="*.jpg",
        help="Glob pattern selecting images inside the input directory.",
    )
    parser.add_argument(
        "-k",
        "--clusters",
        type=int,
        default=DEFAULT_K,
        help="Number of dominant colors to extract per configuration.",
    )
    parser.add_argument(
        "--config",
        dest="configs",
        action="append",
        type=_config_arg,
        metavar="FLAGS",
        help="Extraction flags as an integer or names joined by '+' "
        "(random, mean, no-crop, lab, ciede2000, debug). Repeatable.",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=DEFAULT_SIZE,
        help="Width images are downscaled to before clustering.",
    )
    parser.add_argument(
        "--output-name",
        default=DEFAULT_OUTPUT_NAME,
        help="File name of the generated report.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.clusters < 1:
        parser.error("--clusters must be at least 1")
    if args.size < 1:
        parser.error("--size must be at least 1")
    return args


def _image_label(path: Path, out_dir: Path) -> str:
    """Return *path* relative to *out_dir* so the report can reference it."""
    try:
        return Path(os.path.relpath(path.resolve(), out_dir.resolve())).as_posix()
    except ValueError:
        return path.resolve().as_posix()


def _process_images(
    paths: Sequence[Path],
    sweep: ConfigurationSweep,
    cluster_count: int,
    configs: Sequence[int],
    out_dir: Path,
) -> ReportAggregator:
    """Load each image, sweep the configurations and collect the results."""
    aggregator = ReportAggregator()
    for path in tqdm(paths, desc="Sweeping images", unit="image", leave=False):
        label = _image_label(path, out_dir)
        try:
            img = load_image(path)
        except (FileNotFoundError, ValueError) as exc:
            print(f"[warn] {path.name}: failed to load image ({exc})")
            aggregator.record_failure(label, str(exc))
            continue
        try:
            report = sweep.sweep(cluster_count, configs, img, name=label)
        finally:
            img.close()
        if not report.entries:
            print(f"[warn] {path.name}: no configuration produced colors")
        aggregator.add(report)
    return aggregator


def _print_summary(aggregator: ReportAggregator) -> None:
    summary = aggregator.summary()
    print(f"Images: {summary['images']}")
    print(f"Processed: {summary['processed']} (failed {summary['failed']})")
    print(
        f"Configurations: {summary['configurations']} "
        f"(skipped {summary['skipped_configurations']})"
    )
    print(f"Matched clusters: {summary['clusters']}")
    print(f"Mean palette distance: {summary['mean_distance']:.2f}")


def main(argv: Iterable[str] | None = None) -> int:
    """Entry point for the CLI."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_dir = Path(args.input)
    out_dir = Path(args.out)
    try:
        paths = list_images(input_dir, args.pattern)
    except FileNotFoundError as exc:
        print(f"[error] {exc}")
        return 1
    print(f"[input] {len(paths)} images matching {args.pattern} in {input_dir}")

    configs = list(args.configs) if args.configs else list(DEFAULT_SWEEP)
    for bits in configs:
        print(f"[config] {bits}: K={args.clusters}, {describe(bits)}")

    matcher = NearestColorMatcher(ReferencePalette())
    sweep = ConfigurationSweep(matcher, resize_size=args.size)
    aggregator = _process_images(paths, sweep, args.clusters, configs, out_dir)

    output_path = write_html(out_dir / args.output_name, aggregator.build())
    print(f"[saved] report: {output_path}")
    _print_summary(aggregator)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
