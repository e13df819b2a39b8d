import asyncio
from loguru import logger
from .models import ProbeResult, SearchCriteria
from .notifier import Notifier
from .prober import AvailabilityProber

CAMPGROUND_NAME = "Barrett Cove"
RULE = "═" * 47

def report_result(result: ProbeResult, screenshot_path: str = None):
    """Log a human-readable summary of one probe."""
    logger.info(RULE)
    logger.info("  AVAILABILITY CHECK RESULTS")
    logger.info(RULE)

    for url in result.api_urls:
        logger.info(f"Captured API response: {url}")

    if result.available:
        logger.success(f"{result.count} site(s) available (from {result.source})")
    elif result.no_sites_message:
        logger.info(result.no_sites_message)
    else:
        logger.warning("Could not determine availability from page.")
        logger.warning("The site may need more interaction; try --no-headless to watch the browser.")
        if result.page_excerpt:
            logger.info(f"Page excerpt: {result.page_excerpt[:500]}")

    for i, site in enumerate(result.sites, 1):
        mark = "+" if site.available else "-"
        line = f"  [{i}] {mark} {site.name}"
        if site.price:
            line += f" - {site.price}"
        logger.info(line)
        if site.details:
            logger.info(f"      {site.details}")
        if site.availability:
            logger.info(f"      {site.availability}")
        if not site.price and not site.details and site.full_text:
            logger.info(f"      {site.full_text[:200]}")

    if result.filter_options:
        logger.debug(f"Available filters: {' | '.join(result.filter_options)}")

    if screenshot_path:
        logger.info(f"Screenshot saved to {screenshot_path}")
    logger.info(RULE)

class AvailabilityMonitor:
    """Runs probes once or forever and raises the alarm on a hit."""

    def __init__(self, prober: AvailabilityProber, notifier: Notifier, notify: bool = False,
                 screenshot_path: str = None, sleep=asyncio.sleep):
        self.prober = prober
        self.notifier = notifier
        self.notify = notify
        self.screenshot_path = screenshot_path
        self._sleep = sleep

    async def check_once(self, criteria: SearchCriteria) -> ProbeResult:
        result = await self.prober.probe(criteria)
        report_result(result, self.screenshot_path)

        if result.available:
            logger.success("SITES AVAILABLE! Check the results above.")
            if self.notify:
                self.notifier.notify(
                    "Campsite Available!",
                    f"{result.count} site(s) available at {CAMPGROUND_NAME} "
                    f"{criteria.check_in} - {criteria.check_out}",
                )
        return result

    async def run_forever(self, criteria: SearchCriteria, interval_minutes: int):
        """Check, wait ``interval_minutes``, repeat. Only stops when cancelled."""
        logger.info(f"Loop mode: checking every {interval_minutes} minute(s). Press Ctrl+C to stop.")

        while True:
            await self.check_once(criteria)
            logger.info(f"Next check in {interval_minutes} minute(s)...")
            await self._sleep(interval_minutes * 60)
