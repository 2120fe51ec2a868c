#!/usr/bin/env python3
"""
Generate a synthetic evaluation dataset: ground-truth camera files and an
sfm_data.json reconstruction related to them by a known similarity transform.

Usage:
    python -m scripts.generate_synthetic_data --output_dir data/synthetic_circle
    python -m scripts.generate_synthetic_data --output_dir data/noisy --trajectory spiral \\
        --num_cameras 30 --position_noise 0.01 --rotation_noise 0.5 --camtype 1
"""

import argparse
import json
import logging
from pathlib import Path
import sys

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from omegaconf import OmegaConf

from evalquality.synthetic import CameraGenerator, perturb_trajectory, random_similarity, write_dataset

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def generate_synthetic_dataset(args: argparse.Namespace) -> None:
    """Generate the trajectory, its reconstruction and write both to disk."""
    cameras_config = OmegaConf.create({
        'trajectory': args.trajectory,
        'num_cameras': args.num_cameras,
        'radius': args.radius,
        'seed': args.seed
    })
    if args.config:
        cameras_config = OmegaConf.merge(cameras_config, OmegaConf.load(args.config).get('cameras', {}))

    ground_truth = CameraGenerator(cameras_config).generate_cameras()
    transform = random_similarity(seed=args.seed)

    keys = [entry.key for entry in ground_truth]
    unregistered = keys[:args.unregistered]
    reconstruction = perturb_trajectory(
        ground_truth,
        transform,
        position_noise=args.position_noise,
        rotation_noise_deg=args.rotation_noise,
        unregistered_keys=unregistered,
        seed=args.seed
    )

    gt_dir, sfm_data_path = write_dataset(args.output_dir, ground_truth, reconstruction, cam_type=args.camtype)

    # Keep the expected alignment for reference
    with open(args.output_dir / 'expected_alignment.json', 'w') as f:
        json.dump(transform.to_dict(), f, indent=2)

    print("\n" + "=" * 60)
    print("SYNTHETIC DATASET GENERATION COMPLETE")
    print("=" * 60)
    print(f"Ground truth: {gt_dir} ({len(ground_truth)} cameras)")
    print(f"Reconstruction: {sfm_data_path}")
    print(f"Trajectory: {cameras_config.trajectory}")
    print("\nTo evaluate:")
    print(f"  python -m scripts.evaluate_quality -i {gt_dir} -c {sfm_data_path} "
          f"-o {args.output_dir / 'evaluation'} -t {args.camtype}")
    print("=" * 60)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic ground truth and reconstruction for quality evaluation"
    )
    parser.add_argument('--output_dir', type=Path, required=True, help='Output directory')
    parser.add_argument('--config', type=Path, default=None,
                        help='Optional YAML file with a "cameras" section')
    parser.add_argument('--trajectory', choices=['circular', 'arc', 'spiral', 'random', 'linear'],
                        default='circular', help='Camera trajectory (default: circular)')
    parser.add_argument('--num_cameras', type=int, default=12, help='Number of cameras')
    parser.add_argument('--radius', type=float, default=5.0, help='Trajectory radius')
    parser.add_argument('--camtype', type=int, choices=[1, 2, 3, 4, 5], default=2,
                        help='Ground-truth camera format (default: 2, Strecha png.camera)')
    parser.add_argument('--position_noise', type=float, default=0.0,
                        help='Std-dev of the noise on reconstructed centers')
    parser.add_argument('--rotation_noise', type=float, default=0.0,
                        help='Rotation noise in degrees')
    parser.add_argument('--unregistered', type=int, default=0,
                        help='Number of views left without a pose')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')

    args = parser.parse_args()
    args.output_dir.mkdir(parents=True, exist_ok=True)
    generate_synthetic_dataset(args)


if __name__ == "__main__":
    main()
