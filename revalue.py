"""
Revaluation script.
Recomputes every asset value and portfolio total from stored quantities and
prices, correcting totals that drifted after direct database edits.

Usage:
    python revalue.py            # all portfolios
    python revalue.py 3 7        # only portfolios 3 and 7
"""

import logging
import sys

from config import get_settings
from core import MoneyMapError
from db_engine import init_db
from services import PortfolioService

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format=settings.log_format
)
logger = logging.getLogger(__name__)


def revalue_portfolios(portfolio_ids=None) -> int:
    """
    Recalculate the given portfolios, or all of them.

    Returns:
        Number of portfolios that could not be revalued
    """
    if portfolio_ids is None:
        portfolio_ids = [p.id for p in PortfolioService.get_all_portfolios()]

    failures = 0
    for portfolio_id in portfolio_ids:
        try:
            portfolio = PortfolioService.recalculate_total_value(portfolio_id)
            logger.info(f"Portfolio {portfolio_id} ({portfolio.name}): {portfolio.total_value}")
        except MoneyMapError as e:
            failures += 1
            logger.error(f"Failed to revalue portfolio {portfolio_id}: {e}")

    logger.info(f"Revalued {len(portfolio_ids) - failures}/{len(portfolio_ids)} portfolios")
    return failures


if __name__ == "__main__":
    init_db()
    ids = [int(arg) for arg in sys.argv[1:]] or None
    sys.exit(1 if revalue_portfolios(ids) else 0)
