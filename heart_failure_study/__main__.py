"""CLI entry point: python -m heart_failure_study"""

import argparse
import logging
import sys

from heart_failure_study.config import DATA_URL, DEFAULT_OUTPUT_DIR, DEFAULT_SEED, StudyConfig
from heart_failure_study.models.trainer import MODEL_CONFIGS
from heart_failure_study.pipeline import HeartFailureStudy
from heart_failure_study.utils import set_level


def main(argv=None):
    parser = argparse.ArgumentParser(
        description=(
            "Heart failure survival study - "
            "fits five classifiers, checks the logistic model and ranks risk factors."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python -m heart_failure_study\n"
            "  python -m heart_failure_study --data heart_failure_clinical_records_dataset.csv\n"
            "  python -m heart_failure_study --seed 7 --output-dir ./results --no-plots\n"
        ),
    )

    parser.add_argument(
        "--data",
        type=str,
        default=DATA_URL,
        help="Path or URL of the patient records CSV (default: UCI repository)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=DEFAULT_SEED,
        help=f"Random seed for folds, split and forest (default: {DEFAULT_SEED})",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory for report and figures (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        help="Skip writing figures",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug messages",
    )
    parser.add_argument(
        "--list-models",
        action="store_true",
        help="List the compared models and exit",
    )

    args = parser.parse_args(argv)

    if args.list_models:
        print("Compared models:")
        for name in MODEL_CONFIGS:
            cls, _, _ = MODEL_CONFIGS[name]
            print(f"  {name:<25} ({cls.__name__})")
        return 0

    if args.verbose:
        set_level(logging.DEBUG)

    config = StudyConfig(
        data_source=args.data,
        seed=args.seed,
        output_dir=args.output_dir,
        make_plots=not args.no_plots,
    )
    study = HeartFailureStudy(config)

    try:
        study.run()
    except Exception as e:
        print(f"\nStudy failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
