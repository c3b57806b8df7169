"""
Ferry Delay Model Training - Entry Point

Run one training pass:
    python main.py
    python main.py --days-back 90 --max-workers 4

Or import and use programmatically:
    from ferrycast.training import PipelineCoordinator

Environment variables:
    WSF_API_ACCESS_CODE: WSDOT API access code (required)
    WSF_DAYS_BACK: History range in days (default: 365)
    TRAINING_MAX_WORKERS: Parallel training units (default: 1)
    DB_PATH: SQLite model database (default: data/models.db)
"""

import argparse
import sys

from ferrycast.utils.logger import setup_logger, logger
from ferrycast.config import settings, create_route_priors
from ferrycast.config.route_priors import ValidationThresholds
from ferrycast.utils.exceptions import ConfigurationError


def main() -> int:
    """Main entry point for the training job."""
    parser = argparse.ArgumentParser(
        description="Ferry Delay Model Training Pipeline"
    )
    parser.add_argument(
        "--days-back",
        type=int,
        default=None,
        help="Days of vessel history to load (default: from settings)",
    )
    parser.add_argument(
        "--no-sampling",
        action="store_true",
        help="Load every record instead of the most recent per vessel",
    )
    parser.add_argument(
        "--db-path",
        type=str,
        default=None,
        help="SQLite model database path (default: from settings)",
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=None,
        help="Parallel training units (default: from settings)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (default: from settings)",
    )

    args = parser.parse_args()

    # Configure logging
    log_level = args.log_level or settings.logging.level
    setup_logger(
        log_level=log_level,
        log_dir=settings.logging.log_dir,
        log_file=settings.logging.log_file,
        rotation=settings.logging.rotation,
        retention=settings.logging.retention,
    )

    wsf_settings = settings.wsf
    if args.days_back is not None:
        wsf_settings = wsf_settings.model_copy(update={"days_back": args.days_back})
    max_workers = args.max_workers or settings.training.max_workers

    logger.info("=" * 60)
    logger.info("FERRY DELAY MODEL TRAINING")
    logger.info("=" * 60)
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Days back: {wsf_settings.days_back}")
    logger.info(f"Sampling: {not args.no_sampling and wsf_settings.sample_records}")
    logger.info(f"Max workers: {max_workers}")

    from ferrycast.db import ModelRepository
    from ferrycast.ingestion import HistoryLoader, WsfVesselsClient
    from ferrycast.training import PipelineCoordinator

    try:
        client = WsfVesselsClient()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e.message}")
        return 2

    loader = HistoryLoader(
        client=client,
        wsf_settings=wsf_settings,
        timezone_name=settings.training.timezone,
        sample_records=False if args.no_sampling else None,
    )
    repository = ModelRepository(db_path=args.db_path)
    priors = create_route_priors(ValidationThresholds.from_settings(settings.training))

    coordinator = PipelineCoordinator(
        loader=loader,
        sink=repository,
        priors=priors,
        max_workers=max_workers,
        timezone_name=settings.training.timezone,
    )
    report = coordinator.run()

    logger.info(f"Run result: {report.status.value}")
    logger.info(f"Models trained: {report.models_trained}, skipped: {report.models_skipped}")
    for failure in report.training_failures:
        logger.warning(f"Training failure: {failure}")
    if report.error:
        logger.error(f"Error: {report.error}")

    return 0 if report.status.value == "success" else 1


if __name__ == "__main__":
    sys.exit(main())
