"""BeautifulSoup parsers for webtoons.com server-rendered pages.

Each function takes an already-parsed document and returns plain values.
Required fields raise :class:`~toonkit.utils.errors.ParseError` naming the
selector that came up empty; optional fields return ``None`` (or an empty
list) so a cosmetic layout change never breaks metadata loading.
"""

from __future__ import annotations

import html
import math
import re
from datetime import datetime, timezone
from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag

from toonkit.utils.errors import ParseError
from toonkit.utils.text import collapse_whitespace, parse_count

PROVIDER = "webtoons"

_BACKGROUND_URL_RE = re.compile(r"background(?:-image)?\s*:\s*url\(\s*['\"]?([^'\")]+)['\"]?\s*\)")
_CREATOR_ID_RE = re.compile(r'creatorId\\*"\s*:\s*\\*"([^"\\]+)')
_IMAGE_HOST = "webtoon-phinf.pstatic.net"
_PUBLIC_IMAGE_HOST = "swebtoon-phinf.pstatic.net"

_WEEKDAYS = {
    "MON": "MONDAY",
    "TUE": "TUESDAY",
    "WED": "WEDNESDAY",
    "THU": "THURSDAY",
    "FRI": "FRIDAY",
    "SAT": "SATURDAY",
    "SUN": "SUNDAY",
}


def _required(soup: BeautifulSoup | Tag, selector: str, field: str, endpoint: str) -> Tag:
    element = soup.select_one(selector)
    if element is None:
        raise ParseError(
            f"Selector `{selector}` matched nothing",
            provider_name=PROVIDER,
            field=field,
            endpoint=endpoint,
        )
    return element


def public_image_url(url: str | None) -> str | None:
    """Point image URLs at the CDN host that serves them without a Referer."""
    if not url:
        return None
    parts = urlsplit(url)
    if parts.netloc == _IMAGE_HOST:
        return parts._replace(netloc=_PUBLIC_IMAGE_HOST).geturl()
    return url


# ---------------------------------------------------------------------------
# Webtoon listing page (metadata + first episode page)
# ---------------------------------------------------------------------------

def parse_title(soup: BeautifulSoup, endpoint: str) -> str:
    title = collapse_whitespace(_required(soup, ".info>.subj", "title", endpoint).get_text(" "))
    if not title:
        raise ParseError("Title element is empty", provider_name=PROVIDER, field="title", endpoint=endpoint)
    return title


def parse_genres(soup: BeautifulSoup, endpoint: str) -> list[str]:
    genres = [
        collapse_whitespace(element.get_text(" "))
        for element in soup.select(".info>.genre")
    ]
    genres = [g for g in genres if g]
    if not genres:
        raise ParseError(
            "Selector `.info>.genre` matched nothing",
            provider_name=PROVIDER,
            field="genres",
            endpoint=endpoint,
        )
    return genres


def parse_creators(soup: BeautifulSoup) -> list[tuple[str, str | None]]:
    """Return ``(username, profile)`` pairs, account holders first.

    Creators with an account are links (``a.author``) whose last path
    segment is the profile slug.  Creators without one only appear as
    comma-separated text inside ``div.author_area``.
    """
    creators: list[tuple[str, str | None]] = []
    seen: set[str] = set()

    for link in soup.select("a.author"):
        username = collapse_whitespace(link.get_text(" "))
        href = link.get("href") or ""
        profile = urlsplit(href).path.rstrip("/").rsplit("/", 1)[-1] or None
        if username and username not in seen:
            seen.add(username)
            creators.append((username, profile))

    area = soup.select_one("div.author_area")
    if area is not None:
        for text in area.find_all(string=True, recursive=False):
            text = collapse_whitespace(text)
            if text.lower().startswith("author info"):
                break
            for name in text.split(","):
                name = name.strip().strip(".").strip()
                if name and name.lower() != "author info" and name not in seen:
                    seen.add(name)
                    creators.append((name, None))

    return creators


def parse_counts(soup: BeautifulSoup) -> tuple[int | None, int | None]:
    """Return ``(views, subscribers)`` from the ``em.cnt`` counters."""
    counters = [element.get_text(strip=True) for element in soup.select("em.cnt")]
    views = parse_count(counters[0]) if len(counters) > 0 else None
    subscribers = parse_count(counters[1]) if len(counters) > 1 else None
    return views, subscribers


def parse_rating(soup: BeautifulSoup) -> float | None:
    """Average star score from `em#_starScoreAverage`; some locales use a decimal comma."""
    element = soup.select_one("em#_starScoreAverage")
    if element is None:
        return None
    try:
        return float(element.get_text(strip=True).replace(",", "."))
    except ValueError:
        return None


def parse_schedule(soup: BeautifulSoup) -> tuple[list[str], bool]:
    """Return ``(release days, completed)`` from ``p.day_info``."""
    completed = soup.select_one(".ico_completed") is not None
    element = soup.select_one("p.day_info")
    if element is None:
        return [], completed

    days: list[str] = []
    for token in element.get_text(" ").split():
        token = token.strip(",").upper()
        if token in ("UP", "EVERY", ""):
            continue
        if token == "COMPLETED":
            completed = True
            continue
        days.append(_WEEKDAYS.get(token, token))
    return days, completed


def parse_summary(soup: BeautifulSoup) -> str | None:
    element = soup.select_one("p.summary")
    if element is None:
        return None
    return collapse_whitespace(element.get_text(" ")) or None


def parse_images(soup: BeautifulSoup) -> tuple[str | None, str | None]:
    """Return ``(thumbnail, banner)``.

    The thumbnail is the ``.thmb>img`` source.  The banner is taken from
    the header's inline ``background`` style when present, otherwise it
    falls back to the thumbnail image.
    """
    image = soup.select_one(".thmb>img")
    thumbnail = public_image_url(image.get("src")) if image is not None else None

    banner = None
    for element in soup.select(".detail_header[style], .detail_bg[style]"):
        match = _BACKGROUND_URL_RE.search(element.get("style", ""))
        if match:
            banner = public_image_url(match.group(1))
            break
    return thumbnail, banner or thumbnail


def parse_episode_pages(soup: BeautifulSoup, endpoint: str) -> int:
    """Compute the listing's page count from the newest episode's ``#N`` tag.

    Page 1 shows the newest episodes; dividing the newest sequence number
    by the number of rows per page gives the number of pages.
    """
    tags = soup.select("li._episodeItem>a>span.tx")
    if not tags:
        raise ParseError(
            "Selector `li._episodeItem>a>span.tx` matched nothing",
            provider_name=PROVIDER,
            field="episode_count",
            endpoint=endpoint,
        )
    text = tags[0].get_text(strip=True)
    if not text.startswith("#") or not text[1:].isdigit():
        raise ParseError(
            f"Unexpected episode counter {text!r}",
            provider_name=PROVIDER,
            field="episode_count",
            endpoint=endpoint,
        )
    return math.ceil(int(text[1:]) / len(tags))


# ---------------------------------------------------------------------------
# Episode rows
# ---------------------------------------------------------------------------

def parse_published(text: str | None) -> datetime | None:
    """Parse ``"Jun 3, 2022"``; originals publish at 02:00 UTC."""
    if not text:
        return None
    try:
        day = datetime.strptime(collapse_whitespace(text), "%b %d, %Y")
    except ValueError:
        return None
    return day.replace(hour=2, tzinfo=timezone.utc)


def parse_episode_rows(soup: BeautifulSoup, endpoint: str) -> list[dict]:
    """Return one dict per ``li._episodeItem`` row, in page order."""
    rows: list[dict] = []
    for item in soup.select("li._episodeItem"):
        number = item.get("data-episode-no")
        if number is None or not str(number).isdigit():
            raise ParseError(
                "Episode row without a numeric data-episode-no",
                provider_name=PROVIDER,
                field="episode.number",
                endpoint=endpoint,
            )
        title = _required(item, "span.subj>span", "episode.title", endpoint)
        date = item.select_one("span.date")
        thumb = item.select_one("span.thmb>img")
        rows.append(
            {
                "number": int(number),
                "title": html.unescape(collapse_whitespace(title.get_text(" "))),
                "published": parse_published(date.get_text(strip=True) if date else None),
                "thumbnail": public_image_url(thumb.get("src")) if thumb is not None else None,
            }
        )
    return rows


# ---------------------------------------------------------------------------
# Viewer page
# ---------------------------------------------------------------------------

def parse_viewer_title(soup: BeautifulSoup) -> str | None:
    title = soup.select_one("div.subj_info>h1.subj_episode")
    if title is None:
        return None
    return html.unescape(collapse_whitespace(title.get_text(" "))) or None


def parse_viewer(soup: BeautifulSoup, endpoint: str) -> dict:
    """Return title, creator note and panels of an episode viewer page."""
    panels = []
    for image in soup.select("img._images"):
        url = image.get("data-url") or image.get("src")
        if not url:
            continue
        panels.append(
            {
                "url": public_image_url(url),
                "width": _as_int(image.get("width")),
                "height": _as_int(image.get("height")),
            }
        )
    if not panels:
        raise ParseError(
            "Selector `img._images` matched nothing",
            provider_name=PROVIDER,
            field="panels",
            endpoint=endpoint,
        )

    note = soup.select_one(".creator_note>.author_text")
    return {
        "title": parse_viewer_title(soup),
        "note": (collapse_whitespace(note.get_text(" ")) or None) if note is not None else None,
        "panels": panels,
    }


# ---------------------------------------------------------------------------
# Creator profile page
# ---------------------------------------------------------------------------

def parse_creator_page(soup: BeautifulSoup, endpoint: str) -> dict:
    """Return username, follower count and creator id of a profile page.

    The page uses generated CSS class names, so elements are matched on
    the stable class prefix.
    """
    username = None
    for element in soup.find_all("h3"):
        if any(cls.startswith("HomeProfile_nickname") for cls in element.get("class", [])):
            username = collapse_whitespace(element.get_text(" "))
            break
    if not username:
        raise ParseError(
            "Creator nickname heading not found",
            provider_name=PROVIDER,
            field="creator.username",
            endpoint=endpoint,
        )

    # The same class is used for the series count; followers is the second one.
    metrics = [
        element.get_text(strip=True)
        for element in soup.find_all("span")
        if any(cls.startswith("CreatorBriefMetric_count") for cls in element.get("class", []))
    ]
    followers = parse_count(metrics[1]) if len(metrics) > 1 else None

    creator_id = None
    for script in soup.find_all("script"):
        match = _CREATOR_ID_RE.search(script.string or "")
        if match:
            creator_id = match.group(1)
            break

    return {"username": username, "followers": followers, "creator_id": creator_id}


def _as_int(value: str | None) -> int | None:
    try:
        return int(float(value)) if value is not None else None
    except (TypeError, ValueError):
        return None
