"""
MangaDex client: search, chapter listing and chapter download into a Cbz.
"""

import concurrent.futures
import enum
import os
import time
from typing import Callable, Dict, List, NamedTuple, Optional

# cloudscraper is optional; fall back to requests.Session if unavailable
try:
    import cloudscraper  # type: ignore
except Exception:  # pragma: no cover
    cloudscraper = None

import requests
from tqdm import tqdm

from .errors import CbzError, DownloadError
from .insertion import CbzInsertionBuilder
from .log import log_debug, log_verbose
from .writer import CbzWriter, SharedCbzWriter

API_BASE_URL = "https://api.mangadex.org"
DEFAULT_MAX_PARALLEL_DOWNLOAD = 10
DEFAULT_MAX_DOWNLOAD_RETRIES = 10
DEFAULT_RETRY_DELAY = 0.5  # seconds, doubled after every failed attempt
MAX_RETRY_DELAY = 30.0
DEFAULT_CHAPTERS_LIMIT = 100
DEFAULT_SEARCH_LIMIT = 10
REQUEST_TIMEOUT = 30


class ImageLink(NamedTuple):
    filename: str
    url: str


class DownloadEvent(enum.Enum):
    INIT = "init"
    DOWNLOAD = "download"
    ZIP = "zip"
    SKIP = "skip"
    DONE = "done"


# -----------------------------------------------------------
# HTTP helpers
# -----------------------------------------------------------
def create_session():
    # Prefer cloudscraper, any init error falls back to requests.Session
    if cloudscraper is not None:
        try:
            return cloudscraper.create_scraper(
                browser={
                    "browser": "chrome",
                    "platform": "darwin",
                    "mobile": False,
                }
            )
        except Exception as e:
            log_verbose(
                f"  Warning: cloudscraper init failed ({e}). "
                "Falling back to requests.Session()"
            )
    return requests.Session()


def get_json(session, url: str, params=None, context: str = "") -> Dict:
    """GET ``url`` and decode its JSON body."""
    try:
        r = session.get(url, params=params, timeout=REQUEST_TIMEOUT)
        r.raise_for_status()
        return r.json()
    except requests.exceptions.RequestException as e:
        raise DownloadError(f"Request failed ({context or url}): {e}") from e
    except ValueError as e:
        raise DownloadError(f"Error decoding {context or url}: {e}") from e


def fetch_bytes(
    session,
    url: str,
    max_retries: int = DEFAULT_MAX_DOWNLOAD_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
) -> bytes:
    """
    Downloads ``url``, retrying up to ``max_retries`` times with exponential
    backoff.

    Raises:
        DownloadError: when every attempt failed.
    """
    attempts = max_retries + 1
    delay = retry_delay
    for attempt in range(attempts):
        try:
            r = session.get(url, timeout=REQUEST_TIMEOUT)
            r.raise_for_status()
            return r.content
        except requests.exceptions.RequestException as e:
            log_verbose(
                f"  Warning: Attempt {attempt + 1}/{attempts} failed for {os.path.basename(url)}: {e}"
            )
            if attempt < attempts - 1:
                time.sleep(delay)
                delay = min(delay * 2, MAX_RETRY_DELAY)
    raise DownloadError(f"Giving up on {url} after {attempts} attempts")


# -----------------------------------------------------------
# API requests
# -----------------------------------------------------------
def search(session, title: str, limit: Optional[int] = DEFAULT_SEARCH_LIMIT) -> List[Dict]:
    """Returns ``[{"id": ..., "title": ...}]`` for the mangas matching ``title``."""
    params = [("title", title), ("order[relevance]", "desc")]
    if limit is not None:
        params.append(("limit", str(limit)))
    data = get_json(session, f"{API_BASE_URL}/manga", params, "search").get("data", [])
    results = []
    for manga in data:
        titles = manga.get("attributes", {}).get("title", {})
        results.append(
            {
                "id": manga["id"],
                "title": titles.get("en") or next(iter(titles.values()), ""),
            }
        )
    return results


def get_chapters(
    session,
    manga_id: str,
    limit: int = DEFAULT_CHAPTERS_LIMIT,
    chapters: Optional[List[str]] = None,
    volumes: Optional[List[str]] = None,
    languages: Optional[List[str]] = None,
    offset: int = 0,
) -> List[Dict]:
    """Chapters of a manga, most recent first, optionally filtered."""
    params = [
        ("manga", manga_id),
        ("limit", str(limit)),
        ("order[chapter]", "desc"),
    ]
    if offset > 0:
        params.append(("offset", str(offset)))
    for chapter in chapters or []:
        params.append(("chapter[]", chapter))
    for language in languages or []:
        params.append(("translatedLanguage[]", language))
    for volume in volumes or []:
        params.append(("volume[]", volume))

    data = get_json(session, f"{API_BASE_URL}/chapter", params, "get_chapters").get(
        "data", []
    )
    results = []
    for ch in data:
        attributes = ch.get("attributes", {})
        results.append(
            {
                "id": ch["id"],
                "title": attributes.get("title") or "",
                "volume": attributes.get("volume") or "",
                "chapter": attributes.get("chapter") or "",
                "language": attributes.get("translatedLanguage") or "",
            }
        )
    return results


def get_image_links(session, chapter_id: str) -> List[ImageLink]:
    """Page image links of a chapter, in reading order."""
    payload = get_json(
        session, f"{API_BASE_URL}/at-home/server/{chapter_id}", context="get_image_links"
    )
    try:
        base_url = payload["baseUrl"]
        chapter = payload["chapter"]
        return [
            ImageLink(filename, f"{base_url}/data/{chapter['hash']}/{filename}")
            for filename in chapter["data"]
        ]
    except (KeyError, TypeError) as e:
        raise DownloadError(f"Unexpected at-home payload for {chapter_id}: {e}") from e


# -----------------------------------------------------------
# Chapter download
# -----------------------------------------------------------
class ArchiveDownload:
    """
    Downloads every page of a chapter and packs them into a Cbz.

    Pages are fetched in parallel and inserted as soon as they arrive; page
    ``n`` (1-based, in the chapter's order) is always stored as
    ``{n:05}.{ext}``. A page that can't be fetched is reported and skipped,
    the archive is still produced with the others.
    """

    def __init__(
        self,
        chapter_id: str,
        max_parallel_download: int = DEFAULT_MAX_PARALLEL_DOWNLOAD,
        max_download_retries: int = DEFAULT_MAX_DOWNLOAD_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        on_event: Optional[Callable[[DownloadEvent, int], None]] = None,
    ):
        self.chapter_id = chapter_id
        self.max_parallel_download = max_parallel_download
        self.max_download_retries = max_download_retries
        self.retry_delay = retry_delay
        self.on_event = on_event
        self.failed: List[ImageLink] = []

    def _send(self, event: DownloadEvent, value: int = 0):
        if self.on_event is not None:
            self.on_event(event, value)

    def _download_page(self, session, cbz_writer: SharedCbzWriter, position: int, link: ImageLink):
        log_debug(f"  Downloading {link.url}")
        data = fetch_bytes(session, link.url, self.max_download_retries, self.retry_delay)
        self._send(DownloadEvent.DOWNLOAD)

        insertion = (
            CbzInsertionBuilder.from_filename(link.filename)
            .set_bytes(data)
            .build_indexed(position)
        )
        cbz_writer.insert_at(insertion)
        self._send(DownloadEvent.ZIP)

    def request(self, session=None) -> CbzWriter:
        session = session if session is not None else create_session()
        image_links = get_image_links(session, self.chapter_id)
        self._send(DownloadEvent.INIT, len(image_links))
        log_verbose(f"  Downloading {len(image_links)} images...")

        cbz_writer = SharedCbzWriter()
        workers = max(1, min(len(image_links), self.max_parallel_download))
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
            future_to_link = {
                ex.submit(self._download_page, session, cbz_writer, i + 1, link): link
                for i, link in enumerate(image_links)
            }
            for fut in concurrent.futures.as_completed(future_to_link):
                link = future_to_link[fut]
                try:
                    fut.result()
                except (DownloadError, CbzError) as e:
                    tqdm.write(f"  Error: Skipping image {link.filename}: {e}")
                    self.failed.append(link)
                    self._send(DownloadEvent.SKIP)

        self._send(DownloadEvent.DONE)
        return cbz_writer.into_inner()


def progress_bar(desc: str = "Downloading"):
    """Returns an ``on_event`` callback driving a tqdm bar, one step per page."""
    bar = None

    def on_event(event: DownloadEvent, value: int = 0):
        nonlocal bar
        if event is DownloadEvent.INIT:
            bar = tqdm(total=value, desc=desc, unit="page")
        elif bar is None:
            return
        elif event in (DownloadEvent.ZIP, DownloadEvent.SKIP):
            bar.update(1)
        elif event is DownloadEvent.DONE:
            bar.close()

    return on_event
