"""
Print a summary of the configured movie catalog.

This script:
1) Reads settings from FILTERFLIX_* environment variables
2) Loads every streaming service's CSV source
3) Logs per-service counts, failed sources and the most common genres

Usage:
    python -m scripts.catalog_report

Useful after dropping new CSV exports into data/csvs/ to check they parse.
"""

import time  # measure load time

from loguru import logger  # console logging

from filterflix.catalog import CatalogIndex  # load-once catalog
from filterflix.config import Settings, configure_logging  # env settings
from filterflix.data_loader import CatalogLoader  # CSV reader


def main():
	settings = Settings.from_env()
	configure_logging(settings.log_level)

	logger.info("=" * 60)
	logger.info("FilterFlix Catalog Report")
	logger.info("=" * 60)

	# 1) Load every source
	t0 = time.time()  # start timer
	loader = CatalogLoader(settings.csv_dir, base_url=settings.catalog_base_url, timeout_s=settings.source_timeout_s)
	catalog = CatalogIndex(loader)
	stats = catalog.statistics()
	logger.info(f"[OK] Loaded {stats['total_movies']} movies in {time.time() - t0:.2f}s")

	# 2) Per-service counts
	for service in catalog.services:
		logger.info(f"  {service.name:<12} {stats['per_service'][service.id]:>6}")
	if stats['failed_services']:
		logger.warning(f"Sources that failed to load: {', '.join(stats['failed_services'])}")

	# 3) Genres, most common first
	top = sorted(stats['genre_breakdown'].items(), key=lambda kv: (-kv[1], kv[0]))[:10]
	logger.info(f"{len(stats['genre_breakdown'])} distinct genres; most common:")
	for genre, count in top:
		logger.info(f"  {genre:<20} {count:>6}")
	logger.info("=" * 60)


if __name__ == '__main__':
	main()  # invoke report
