import asyncio
from typing import List, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit
from playwright.async_api import async_playwright, Browser, Page, Response
from loguru import logger
from .config import Config
from .extraction import (
    PageEvidence,
    choose_action_control,
    choose_filter_match,
    is_availability_api_url,
    merge_evidence,
    sites_from_api_payload,
)
from .models import ProbeResult, SearchCriteria, SiteRecord

FILTER_ELEMENT_SELECTOR = 'button, [role="button"], option, li, label'
ACTION_CONTROL_SELECTOR = 'button, a, [role="button"], input[type="submit"]'
ACTION_LABELS = ("Search", "Update", "Apply", "Find Sites", "Check Availability")

COLLECT_TEXTS_JS = """
(selector) => Array.from(document.querySelectorAll(selector)).map(
    (el) => (el.innerText || el.textContent || el.value || '').trim()
)
"""

CLICK_NTH_JS = """
([selector, index]) => {
    const el = document.querySelectorAll(selector)[index];
    if (!el) return false;
    el.click();
    return true;
}
"""

# Prefers an input hinted as "length"; otherwise the only number input that is
# not a guest count. Sets the value through the prototype setter so React/Vue
# listeners see it.
SET_LENGTH_JS = """
(length) => {
    const labelText = (input) => {
        const labels = input.labels ? Array.from(input.labels) : [];
        const wrapping = input.closest('label');
        if (wrapping) labels.push(wrapping);
        return labels.map((l) => l.textContent || '').join(' ');
    };
    const hints = (input) => [
        input.name,
        input.placeholder,
        input.id,
        input.getAttribute('aria-label'),
        labelText(input),
    ].join(' ').toLowerCase();

    const inputs = Array.from(document.querySelectorAll('input'));
    let target = inputs.find((input) => hints(input).includes('length'));
    if (!target) {
        const guestWords = ['guest', 'adult', 'child', 'kid', 'people', 'party', 'occupant', 'pet'];
        const numbers = inputs.filter((input) => input.type === 'number'
            && !guestWords.some((word) => hints(input).includes(word)));
        if (numbers.length === 1) target = numbers[0];
    }
    if (!target) return null;

    const setter = Object.getOwnPropertyDescriptor(HTMLInputElement.prototype, 'value').set;
    setter.call(target, String(length));
    target.dispatchEvent(new Event('input', { bubbles: true }));
    target.dispatchEvent(new Event('change', { bubbles: true }));
    return target.name || target.placeholder || target.id || 'length input';
}
"""

class ProbeFailure(Exception):
    """Raised inside a probe when the booking page cannot be inspected."""

def build_search_url(base_url: str, criteria: SearchCriteria) -> str:
    """Embed the stay dates into the booking page URL.

    Campspot widgets read ``checkIn``/``checkOut`` (ISO dates) and ``adults``
    from the query string; ``bookNow=true`` opens the search directly.
    """
    parts = urlsplit(base_url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend([
        ('bookNow', 'true'),
        ('checkIn', criteria.check_in.isoformat()),
        ('checkOut', criteria.check_out.isoformat()),
        ('adults', str(criteria.guests)),
    ])
    return urlunsplit(parts._replace(query=urlencode(query)))

class ApiCapture:
    """Collects site records from JSON responses seen while the page loads."""

    def __init__(self, origin: str):
        self.origin = origin
        self.urls: List[str] = []
        self.sites: List[SiteRecord] = []
        self._pending: List[asyncio.Task] = []

    def on_response(self, response: Response):
        url = response.url
        if urlsplit(url).netloc != self.origin or not is_availability_api_url(url):
            return
        self._pending.append(asyncio.ensure_future(self._read(response)))

    async def _read(self, response: Response):
        try:
            payload = await response.json()
        except Exception:
            logger.debug(f"Ignoring non-JSON response from {response.url}")
            return

        self.urls.append(response.url)
        sites = sites_from_api_payload(payload)
        if sites:
            logger.debug(f"{len(sites)} site(s) in API response {response.url}")
            self.sites.extend(sites)

    async def drain(self):
        """Wait for response bodies that are still being read."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)
            self._pending = []

class AvailabilityProber:
    """Loads the booking widget in a fresh browser and reads availability."""

    def __init__(self, config: Config, playwright_factory=async_playwright):
        self.config = config
        self._playwright_factory = playwright_factory

    async def probe(self, criteria: SearchCriteria) -> ProbeResult:
        """Run one probe. Never raises; a failed probe reports zero sites."""

        url = build_search_url(self.config.base_url, criteria)
        logger.info("Starting availability check...")
        logger.info(f"   Check-in:  {criteria.check_in}")
        logger.info(f"   Check-out: {criteria.check_out} ({criteria.nights} night(s))")
        logger.info(f"   RV Type:   {criteria.rv_type or '-'}")
        logger.info(f"   RV Length: {f'{criteria.rv_length} ft' if criteria.rv_length else '-'}")

        try:
            async with self._playwright_factory() as playwright:
                browser = await playwright.chromium.launch(
                    headless=self.config.headless,
                    args=[
                        '--no-sandbox',
                        '--disable-setuid-sandbox',
                        '--disable-dev-shm-usage',
                        f'--window-size={self.config.viewport_width},{self.config.viewport_height}',
                    ]
                )
                try:
                    return await self._inspect(browser, url, criteria)
                finally:
                    await browser.close()
                    logger.debug("Browser closed")

        except Exception as e:
            logger.error(f"Check failed: {e}")
            return ProbeResult.empty()

    async def _inspect(self, browser: Browser, url: str, criteria: SearchCriteria) -> ProbeResult:
        context = await browser.new_context(
            user_agent=self.config.user_agent,
            viewport={'width': self.config.viewport_width, 'height': self.config.viewport_height},
        )
        page = await context.new_page()

        capture = ApiCapture(urlsplit(self.config.base_url).netloc)
        if self.config.deep_inspection:
            page.on('response', capture.on_response)

        try:
            html = await self._load_and_filter(page, url, criteria)
        finally:
            if self.config.deep_inspection:
                page.remove_listener('response', capture.on_response)
            await capture.drain()

        evidence = PageEvidence.from_html(html, deep=self.config.deep_inspection)
        return merge_evidence(evidence, capture.sites, capture.urls)

    async def _load_and_filter(self, page: Page, url: str, criteria: SearchCriteria) -> str:
        """Drive the page through load, filters and the results wait; return its HTML."""
        logger.info(f"Loading booking page {url}")
        response = await page.goto(
            url,
            wait_until='networkidle',
            timeout=self.config.page_timeout_ms
        )
        if response is not None and response.status >= 400:
            raise ProbeFailure(f"Failed to load page: HTTP {response.status}")

        # The widget keeps rendering after the network goes quiet
        await page.wait_for_timeout(self.config.settle_delay_ms)

        filtered = False
        if criteria.rv_type:
            filtered = await self._apply_rv_type(page, criteria.rv_type) or filtered
        if criteria.rv_length:
            filtered = await self._apply_rv_length(page, criteria.rv_length) or filtered
        if filtered:
            await self._submit_search(page)

        logger.info("Waiting for search results...")
        await page.wait_for_timeout(self.config.results_wait_ms)

        await self._screenshot(page)

        return await page.content()

    async def _apply_rv_type(self, page: Page, rv_type: str) -> bool:
        """Click the first element labelled with the requested way to stay."""
        texts = await page.evaluate(COLLECT_TEXTS_JS, FILTER_ELEMENT_SELECTOR)
        index = choose_filter_match(texts, rv_type)
        if index is None:
            logger.warning(f"No control found for RV type '{rv_type}', continuing without it")
            return False

        clicked = await page.evaluate(CLICK_NTH_JS, [FILTER_ELEMENT_SELECTOR, index])
        if clicked:
            logger.info(f"   Selected RV type: '{texts[index][:60]}'")
        return bool(clicked)

    async def _apply_rv_length(self, page: Page, rv_length: int) -> bool:
        field = await page.evaluate(SET_LENGTH_JS, rv_length)
        if not field:
            logger.warning("No RV length input found, continuing without it")
            return False

        logger.info(f"   Set RV length {rv_length} ft on '{field}'")
        return True

    async def _submit_search(self, page: Page) -> Optional[str]:
        texts = await page.evaluate(COLLECT_TEXTS_JS, ACTION_CONTROL_SELECTOR)
        index = choose_action_control(texts, ACTION_LABELS)
        if index is None:
            logger.debug("No search/apply control found after filtering")
            return None

        await page.evaluate(CLICK_NTH_JS, [ACTION_CONTROL_SELECTOR, index])
        logger.info(f"   Clicked '{texts[index]}'")
        return texts[index]

    async def _screenshot(self, page: Page):
        try:
            await page.screenshot(path=self.config.screenshot_path, full_page=True)
            logger.debug(f"Screenshot saved to {self.config.screenshot_path}")
        except Exception as e:
            logger.warning(f"Could not save screenshot: {e}")
