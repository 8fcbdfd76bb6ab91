"""Run all seeds: python -m database.seeds"""

import asyncio

from database.seeds import seed_all
from shared.logging_config import configure_logging

configure_logging()
asyncio.run(seed_all())
