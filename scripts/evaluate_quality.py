#!/usr/bin/env python3
"""
Evaluate an SfM reconstruction against a ground-truth camera trajectory.

Writes camGT.ply, camComputed.ply, camera_Registered.ply,
evaluation_report.json and ExternalCalib_Report.html to the output directory.

Usage:
    python -m scripts.evaluate_quality -i data/fountain/gt -c outputs/fountain/sfm_data.json -o outputs/fountain_eval
    python -m scripts.evaluate_quality -i data/castle/gt -c outputs/castle -o outputs/castle_eval -t 3
"""

import argparse
import sys
from pathlib import Path
import logging
from typing import List, Optional

# Add the project root to the path
sys.path.append(str(Path(__file__).parent.parent))

from evalquality.config import load_config
from evalquality.core.errors import ConfigurationError, EvaluationError
from evalquality.pipeline.evaluation import EvaluationResult, QualityEvaluator

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

CAMERA_TYPE_HELP = """Type of the ground-truth camera:
 -1: autoguess (try 1,2,3,4,5),
  1: openMVG (bin),
  2: Strecha 'png.camera',
  3: Strecha 'jpg.camera',
  4: Strecha 'PNG.camera',
  5: Strecha 'JPG.camera'"""


def setup_logging(output_dir: Path, file_name: str = "evaluation.log") -> logging.Handler:
    """
    Add a file handler writing the run log into the output directory.

    Returns:
        The handler, to be removed once the run is over
    """
    log_file = output_dir / file_name

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

    logging.getLogger().addHandler(file_handler)
    logger.info(f"Logging to file: {log_file}")
    return file_handler


def print_summary(result: EvaluationResult):
    """Print the residual statistics of an evaluation."""
    position = result.statistics.position
    rotation = result.statistics.rotation

    print("\n" + "=" * 80)
    print("QUALITY EVALUATION SUMMARY")
    print("=" * 80)
    print(f"Ground-truth cameras: {result.num_ground_truth_cameras}")
    print(f"Posed views: {result.num_posed_views}")
    print(f"Compared cameras: {len(result.records)}")
    print(f"\nSimilarity scale: {result.transform.scale:.6f}")

    print("\nBaseline error statistics (GT unit):")
    print(f"   min={position.minimum:.6f} max={position.maximum:.6f} mean={position.mean:.6f} "
          f"median={position.median:.6f} rms={position.rms:.6f}")
    print("\nAngular error statistics (degree):")
    print(f"   min={rotation.minimum:.4f} max={rotation.maximum:.4f} mean={rotation.mean:.4f} "
          f"median={rotation.median:.4f} rms={rotation.rms:.4f}")

    if result.output_files:
        print("\nGenerated files:")
        for output_file in result.output_files:
            print(f"   • {output_file}")
    print("=" * 80)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Evaluate an SfM camera trajectory against ground truth",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=CAMERA_TYPE_HELP
    )

    parser.add_argument('-i', '--gt', type=str, required=True,
                        help='Directory where the ground-truth camera trajectory is saved')
    parser.add_argument('-c', '--computed', type=str, required=True,
                        help='Reconstruction directory or sfm_data.json to evaluate')
    parser.add_argument('-o', '--outdir', type=str, default='',
                        help='Directory where statistics will be saved')
    parser.add_argument('-t', '--camtype', type=int, default=-1,
                        help='Type of the ground-truth camera (see below, default: -1)')
    parser.add_argument('--config', type=str, default=None,
                        help='YAML configuration merged over the defaults')
    parser.add_argument('--workers', type=int, default=None,
                        help='Number of threads reading ground-truth files')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable verbose logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the evaluation; returns the process exit code."""
    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.info("Verbose logging enabled")

    file_handler = None
    try:
        if not args.outdir:
            raise ConfigurationError("It is an invalid output directory")

        overrides = []
        if args.workers is not None:
            overrides.append(f"loading.num_workers={args.workers}")
        cfg = load_config(args.config, overrides)
        if not args.verbose:
            logging.getLogger().setLevel(cfg.logging.get('level', 'INFO'))

        output_dir = Path(args.outdir)
        if output_dir.exists() and not output_dir.is_dir():
            raise ConfigurationError(f"It is an invalid output directory: {output_dir}")
        output_dir.mkdir(parents=True, exist_ok=True)
        file_handler = setup_logging(output_dir, cfg.logging.get('file_name', 'evaluation.log'))

        evaluator = QualityEvaluator(cfg)
        result = evaluator.run(args.gt, args.computed, output_dir, cam_type=args.camtype)

        print_summary(result)
        logger.info(f"Evaluation completed successfully! Results in: {output_dir}")
        return 0

    except EvaluationError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Evaluation interrupted by user")
        return 1
    finally:
        if file_handler is not None:
            logging.getLogger().removeHandler(file_handler)
            file_handler.close()


if __name__ == "__main__":
    sys.exit(main())
