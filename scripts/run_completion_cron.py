#!/usr/bin/env python3
"""
Cron script that marks finished reservations as completed.
Use it instead of the in-process scheduler (AUTO_COMPLETE_INTERVAL_MINUTES=0):
*/15 * * * * /path/to/venv/bin/python /path/to/run_completion_cron.py
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.services.reservation_service import ReservationService
from app.utils.logger import get_logger
from app.database import init_db
from datetime import datetime

logger = get_logger('completion_cron')


def main():
    """Main cron job function"""
    logger.info(f"Starting completion cron job at {datetime.now()}")

    try:
        init_db()

        completed = ReservationService().complete_past_reservations()

        logger.info(f"Completion cron job finished: {completed} reservations completed")

    except Exception as e:
        logger.error(f"Error in completion cron job: {str(e)}")
        raise


if __name__ == "__main__":
    main()
