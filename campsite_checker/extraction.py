"""Availability extraction heuristics.

Everything that knows about the booking page's markup lives here. The page is
owned by a third party and can change at any time, so every helper is
best-effort: a missing signal yields ``None`` or an empty list, never an
exception.

Two evidence sources feed a probe result:

* the rendered page (HTML), read with BeautifulSoup
* JSON responses the page fetched from the provider's API while loading

``merge_evidence`` combines them. A "N sites available" line in the page text
is authoritative for the count. After that, structured API records win over
scraped cards, and a generic "no sites" phrase only decides when neither
exists.
"""

import re
from typing import Any, Iterable, List, Optional
from bs4 import BeautifulSoup
from pydantic import BaseModel
from .models import ProbeResult, SiteRecord

SITE_COUNT_PATTERN = re.compile(r'(\d+)\s+sites?\s+available', re.IGNORECASE)

NO_SITES_PHRASES = (
    "no sites available",
    "no results",
    "no campsites",
    "nothing available",
    "no availability",
)
NO_SITES_MESSAGE = "No sites available matching search criteria"

CARD_SELECTOR = ", ".join([
    '[class*="site-card"]',
    '[class*="SiteCard"]',
    '[class*="site-result"]',
    '[class*="campsite"]',
    '[class*="Campsite"]',
    '[class*="listing"]',
    '[class*="result-card"]',
    '[class*="ResultCard"]',
    '[data-testid*="site"]',
])
CARD_NAME_SELECTOR = '[class*="name"], [class*="title"], h2, h3, h4'
CARD_PRICE_SELECTOR = '[class*="price"], [class*="rate"], [class*="cost"]'
CARD_DETAILS_SELECTOR = '[class*="detail"], [class*="info"], [class*="description"]'
CARD_AVAILABILITY_SELECTOR = '[class*="avail"], [class*="status"]'

FILTER_SELECTOR = '[class*="filter"], [class*="category"], [class*="way-to-stay"]'
EXCERPT_SELECTOR = 'main, [class*="content"], [class*="results"]'

API_URL_KEYWORDS = ("availability", "search", "sites", "campground")
API_SITE_KEYS = ("sites", "results", "campsites", "availability")

BLOCK_TAGS = [
    "address", "article", "aside", "blockquote", "body", "dd", "details", "dialog",
    "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form", "h1",
    "h2", "h3", "h4", "h5", "h6", "header", "li", "main", "nav", "ol", "p", "pre",
    "section", "summary", "table", "td", "th", "tr", "ul",
]

def _squash(text: str) -> str:
    return " ".join(text.split())

def _soup(html: str) -> BeautifulSoup:
    soup = BeautifulSoup(html, 'html.parser')
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()
    return soup

def page_text(html: str) -> str:
    """Visible text of the page, one space between text nodes."""
    return _soup(html).get_text(" ", strip=True)

def extract_site_count(text: str) -> Optional[int]:
    """Return N from the first "N site(s) available" in text, or None."""
    match = SITE_COUNT_PATTERN.search(_squash(text))
    if match:
        return int(match.group(1))
    return None

def text_blocks(html: str) -> List[str]:
    """Text of each innermost block element, inline children joined.

    Text from different blocks is never joined, so a stray number in one box
    cannot pair up with a "Sites Available" heading in the next.
    """
    soup = _soup(html)
    blocks = []
    for tag in soup.find_all(BLOCK_TAGS):
        if tag.find(BLOCK_TAGS) is None:
            text = _squash(tag.get_text(" "))
            if text:
                blocks.append(text)
    return blocks

def find_site_count(html: str) -> Optional[int]:
    """First "N sites available" within a single block or text node."""
    for text in text_blocks(html):
        count = extract_site_count(text)
        if count is not None:
            return count

    # Text sitting directly inside a block that also has block children
    for text in _soup(html).stripped_strings:
        count = extract_site_count(text)
        if count is not None:
            return count
    return None

def find_no_sites_message(text: str) -> Optional[str]:
    """Detect any of the provider's "nothing available" phrasings."""
    lowered = _squash(text).lower()
    if any(phrase in lowered for phrase in NO_SITES_PHRASES):
        return NO_SITES_MESSAGE
    return None

def _field(card, selector: str) -> str:
    element = card.select_one(selector)
    return _squash(element.get_text(" ")) if element else ""

def extract_cards(html: str) -> List[SiteRecord]:
    """Scrape site cards by class-name fragments.

    Cards nested inside another matched card are skipped so that a wrapper
    and its inner "campsite-..." element are not counted twice.
    """
    soup = _soup(html)
    matched = soup.select(CARD_SELECTOR)
    matched_ids = {id(el) for el in matched}

    sites = []
    for card in matched:
        if any(id(parent) in matched_ids for parent in card.parents):
            continue

        availability = _field(card, CARD_AVAILABILITY_SELECTOR)
        sites.append(SiteRecord(
            name=_field(card, CARD_NAME_SELECTOR) or "Unknown",
            price=_field(card, CARD_PRICE_SELECTOR),
            details=_field(card, CARD_DETAILS_SELECTOR),
            availability=availability,
            available=not _reads_unavailable(availability),
            full_text=_squash(card.get_text(" "))[:300],
        ))
    return sites

def _reads_unavailable(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in ("unavailable", "not available", "sold out", "booked"))

def extract_filter_options(html: str) -> List[str]:
    soup = _soup(html)
    options = []
    for element in soup.select(FILTER_SELECTOR):
        text = _squash(element.get_text(" "))[:100]
        if text and text not in options:
            options.append(text)
    return options

def page_excerpt(html: str, max_chars: int = 2000) -> str:
    soup = _soup(html)
    main = soup.select_one(EXCERPT_SELECTOR)
    if main is None:
        return ""
    return _squash(main.get_text(" "))[:max_chars]

def is_availability_api_url(url: str) -> bool:
    """Whether a response URL looks like the provider's availability API."""
    lowered = url.lower()
    return "/api/" in lowered and any(word in lowered for word in API_URL_KEYWORDS)

def sites_from_api_payload(payload: Any) -> List[SiteRecord]:
    """Turn a captured JSON body into site records.

    The first non-empty value among ``sites``, ``results``, ``campsites`` and
    ``availability`` is used; anything that is not a list of objects is
    ignored.
    """
    if not isinstance(payload, dict):
        return []

    items = None
    for key in API_SITE_KEYS:
        if payload.get(key):
            items = payload[key]
            break

    if not isinstance(items, list):
        return []

    sites = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get('name') or item.get('siteName') or item.get('title') or 'Site'
        price = item.get('price') or item.get('rate') or item.get('totalPrice') or ''
        sites.append(SiteRecord(
            name=str(name),
            price=str(price),
            available=item.get('available') is not False,
        ))
    return sites

def choose_filter_match(texts: Iterable[str], wanted: str) -> Optional[int]:
    """Index of the element to click for a filter label.

    An exact (case-insensitive) match beats a partial one; among equals the
    first in document order wins.
    """
    wanted = _squash(wanted or "").lower()
    if not wanted:
        return None

    normalized = [_squash(t or "").lower() for t in texts]
    for i, text in enumerate(normalized):
        if text == wanted:
            return i
    for i, text in enumerate(normalized):
        if wanted in text:
            return i
    return None

class PageEvidence(BaseModel):
    """What the rendered page says about availability."""
    text_count: Optional[int] = None
    no_sites_message: Optional[str] = None
    cards: List[SiteRecord] = []
    filter_options: List[str] = []
    excerpt: str = ""

    @classmethod
    def from_html(cls, html: str, deep: bool = False) -> "PageEvidence":
        text = page_text(html)
        evidence = cls(
            text_count=find_site_count(html),
            no_sites_message=find_no_sites_message(text),
            excerpt=page_excerpt(html),
        )
        if deep:
            evidence.cards = extract_cards(html)
            evidence.filter_options = extract_filter_options(html)
        return evidence

def merge_evidence(page: PageEvidence, api_sites: List[SiteRecord] = None,
                   api_urls: List[str] = None) -> ProbeResult:
    """Combine page and API evidence into one probe result."""
    api_sites = api_sites or []
    sites = api_sites if api_sites else page.cards

    if page.text_count is not None:
        count, source = page.text_count, "text"
    elif api_sites:
        count, source = sum(1 for s in api_sites if s.available), "api"
    elif page.cards:
        count, source = sum(1 for s in page.cards if s.available), "cards"
    elif page.no_sites_message:
        count, source = 0, "no-sites"
    else:
        count, source = 0, "none"

    return ProbeResult(
        count=count,
        sites=sites,
        source=source,
        no_sites_message=page.no_sites_message,
        api_urls=list(api_urls or []),
        filter_options=page.filter_options,
        page_excerpt=page.excerpt,
    )

def choose_action_control(texts: Iterable[str], labels: Iterable[str]) -> Optional[int]:
    """Index of the first control whose whole label is one of ``labels``."""
    wanted = {_squash(label).lower() for label in labels}
    for i, text in enumerate(texts):
        if _squash(text or "").lower() in wanted:
            return i
    return None
