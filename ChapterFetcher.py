import requests
from bs4 import BeautifulSoup
from selenium import webdriver
from selenium.common.exceptions import TimeoutException, WebDriverException
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.common.by import By
from selenium.webdriver.support.ui import WebDriverWait
import logging
import time
import re
import os
import base64
import binascii
import zlib
import platform
import argparse
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union
from urllib.parse import urljoin, urlparse

if platform.system() == 'Windows':
    os.system('color')

logger = logging.getLogger(__name__)

CUSTOM_CHARSET = '0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ-_'
BASE64_CHARSET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/'


@dataclass
class FetcherConstants:
    DEFAULT_TIMEOUT: int = 30
    DEFAULT_DELAY_MS: int = 2000
    BROWSER_DELAY_MS: int = 5000
    MAX_REDIRECTS: int = 10
    MIN_CONTENT_LENGTH: int = 100
    MERGE_SEPARATOR_WIDTH: int = 60
    CHALLENGE_TIMEOUT: float = 45
    SELECTOR_TIMEOUT: float = 15
    SETTLE_DELAY: float = 3
    PAGE_LOAD_TIMEOUT: int = 60
    POLL_INTERVAL: float = 0.5
    CHALLENGE_TITLE: str = 'Just a moment'
    SCRIPT_MARKER_ID: str = 'script-x'
    PAYLOAD_VARIABLE: str = 'data_x'
    USER_AGENT: str = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'
    CONTENT_SELECTORS: Tuple[str, ...] = (
        '.box-chap', '#box-chap', '.chapter-content',
        '#chapter-content', '.reading-detail', '.content-chapter',
    )


@dataclass
class Config:
    """Run switches set from the command line."""
    DEBUG_MODE: bool = False
    USE_BROWSER: bool = False
    HEADLESS: bool = False

    @classmethod
    def validate(cls) -> None:
        """Validate configuration settings."""
        if not all(isinstance(getattr(cls, attr), bool) for attr in cls.__annotations__):
            raise ValueError("All configuration values must be boolean")


class ConsoleColors:
    """ANSI color codes for console output."""
    RED: str = '\033[91m'
    GREEN: str = '\033[92m'
    YELLOW: str = '\033[93m'
    RESET: str = '\033[0m'


class FetcherError(Exception):
    """Base class for every error the fetch pipeline raises on purpose."""
    pass


class SetupError(FetcherError):
    """Invalid arguments; raised before any request is made."""
    pass


class NetworkError(FetcherError):
    """Transport failure while retrieving a page."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class RedirectLoopError(NetworkError):
    pass


class ChallengeTimeoutError(FetcherError):
    """The anti-bot interstitial did not clear in time."""
    pass


class ContentNotFoundError(FetcherError):
    """The page was retrieved but holds no usable chapter text."""
    pass


class DecodeError(ContentNotFoundError):
    pass


class FileSystemError(FetcherError):
    pass


@dataclass(frozen=True)
class ChapterRequest:
    url: str
    sequence_index: int


@dataclass
class RawDocument:
    """One retrieved page.

    ``encoded`` documents carry the obfuscated payload and must go through
    the decoder; browser-rendered documents already hold the chapter markup
    in ``html`` and the heading text in ``title``.
    """
    url: str
    html: str
    title: Optional[str] = None
    encoded: bool = True


@dataclass(frozen=True)
class ChapterRecord:
    title: str
    content: str

    def render(self) -> str:
        return f"{self.title}\n{self.content}"


@dataclass(frozen=True)
class RunResult:
    success_count: int
    failure_count: int
    failed_urls: Tuple[str, ...]
    files_written: int = 0


@dataclass
class RunOptions:
    output_dir: str = '.'
    delay_ms: int = FetcherConstants.DEFAULT_DELAY_MS
    merge_size: int = 0

    def __post_init__(self) -> None:
        if self.delay_ms < 0:
            raise SetupError("Delay must not be negative")
        if self.merge_size < 0:
            raise SetupError("Merge size must not be negative")

    @property
    def merging(self) -> bool:
        return self.merge_size > 1


CHAPTER_SEGMENT_RE = re.compile(r'chuong-\d+/?$')


def validate_url(url: str) -> bool:
    try:
        result = urlparse(url)
    except ValueError:
        return False
    return result.scheme in ('http', 'https') and bool(result.netloc)


def story_root(base_url: str) -> str:
    """Strip a trailing chapter segment and slashes from a story URL."""
    return CHAPTER_SEGMENT_RE.sub('', base_url).rstrip('/')


def parse_range(chapter_range: str) -> Tuple[int, int]:
    match = re.fullmatch(r'\s*(\d+)\s*-\s*(\d+)\s*', chapter_range or '')
    if not match:
        raise SetupError(f"Invalid chapter range '{chapter_range}', expected <start>-<end>")
    start, end = int(match.group(1)), int(match.group(2))
    if start < 1 or end < 1:
        raise SetupError("Chapter numbers must be positive integers")
    if end < start:
        raise SetupError(f"Range end {end} is before range start {start}")
    return start, end


def expand_range(base_url: str, start: int, end: int) -> List[ChapterRequest]:
    if not base_url:
        raise SetupError("A base URL is required with --range")
    if start < 1 or end < start:
        raise SetupError(f"Invalid chapter range {start}-{end}")

    root = story_root(base_url)
    return [
        ChapterRequest(url=f"{root}/chuong-{number}", sequence_index=index)
        for index, number in enumerate(range(start, end + 1))
    ]


def resolve_requests(arguments: Sequence[str], chapter_range: Optional[str] = None) -> List[ChapterRequest]:
    """Turn CLI arguments into the ordered list of chapter requests."""
    urls = []
    for argument in arguments:
        if validate_url(argument):
            urls.append(argument)
        else:
            logger.warning(f"Ignoring argument that is not a URL: {argument}")

    if chapter_range:
        if not urls:
            raise SetupError("A base URL is required with --range")
        start, end = parse_range(chapter_range)
        return expand_range(urls[0], start, end)

    if not urls:
        raise SetupError("No chapter URLs given")
    return [ChapterRequest(url=url, sequence_index=index) for index, url in enumerate(urls)]


class DirectPageRetriever:
    """Plain HTTP retrieval that follows redirects by hand."""

    def __init__(self, session: Optional[requests.Session] = None,
                 timeout: float = FetcherConstants.DEFAULT_TIMEOUT,
                 max_redirects: int = FetcherConstants.MAX_REDIRECTS):
        if session is None:
            session = requests.Session()
            session.headers.update({'User-Agent': FetcherConstants.USER_AGENT})
        self.session = session
        self.timeout = timeout
        self.max_redirects = max_redirects

    def fetch(self, url: str) -> RawDocument:
        return RawDocument(url=url, html=self._get(url, 0), encoded=True)

    def _get(self, url: str, depth: int) -> str:
        try:
            response = self.session.get(url, timeout=self.timeout, allow_redirects=False)
        except requests.RequestException as e:
            raise NetworkError(f"Request to {url} failed: {e}", e) from e

        location = response.headers.get('Location')
        if 300 <= response.status_code < 400 and location:
            if depth >= self.max_redirects:
                raise RedirectLoopError(f"Too many redirects (>{self.max_redirects}) starting from {url}")
            target = urljoin(url, location)
            logger.debug(f"Redirect {response.status_code}: {url} -> {target}")
            return self._get(target, depth + 1)

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise NetworkError(f"Request to {url} failed: {e}", e) from e

        if 'charset' not in response.headers.get('Content-Type', '').lower():
            response.encoding = 'utf-8'
        return response.text

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'DirectPageRetriever':
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class BrowserPageRetriever:
    """Chrome-driven retrieval for sources that sit behind an anti-bot challenge.

    One driver is kept for the whole run and released by ``close``. Each fetch
    navigates, waits (best-effort) for the challenge page to go away, lets the
    page settle and then reads the first content selector whose markup is long
    enough to be a chapter.
    """

    def __init__(self, headless: bool = False, driver=None,
                 challenge_timeout: float = FetcherConstants.CHALLENGE_TIMEOUT,
                 selector_timeout: float = FetcherConstants.SELECTOR_TIMEOUT,
                 settle_delay: float = FetcherConstants.SETTLE_DELAY,
                 poll_interval: float = FetcherConstants.POLL_INTERVAL,
                 selectors: Sequence[str] = FetcherConstants.CONTENT_SELECTORS,
                 min_content_length: int = FetcherConstants.MIN_CONTENT_LENGTH,
                 sleep: Callable[[float], None] = time.sleep):
        self.headless = headless
        self.driver = driver
        self.challenge_timeout = challenge_timeout
        self.selector_timeout = selector_timeout
        self.settle_delay = settle_delay
        self.poll_interval = poll_interval
        self.selectors = tuple(selectors)
        self.min_content_length = min_content_length
        self._sleep = sleep

    def open(self) -> 'BrowserPageRetriever':
        if self.driver is None:
            self.driver = self._create_driver()
        return self

    def _create_driver(self):
        chrome_options = Options()
        chrome_options.page_load_strategy = 'eager'
        if self.headless:
            chrome_options.add_argument('--headless=new')
        chrome_options.add_argument('--no-sandbox')
        chrome_options.add_argument('--disable-setuid-sandbox')
        chrome_options.add_argument('--disable-dev-shm-usage')
        chrome_options.add_argument('--disable-blink-features=AutomationControlled')
        chrome_options.add_argument('--window-size=1280,800')
        chrome_options.add_argument(f'--user-agent={FetcherConstants.USER_AGENT}')
        chrome_options.add_experimental_option('excludeSwitches', ['enable-automation'])
        chrome_options.add_experimental_option('useAutomationExtension', False)

        try:
            driver = webdriver.Chrome(options=chrome_options)
        except WebDriverException as e:
            raise SetupError(f"Failed to start Chrome: {e.msg or e}") from e

        try:
            driver.set_page_load_timeout(FetcherConstants.PAGE_LOAD_TIMEOUT)
            driver.execute_cdp_cmd('Page.addScriptToEvaluateOnNewDocument', {
                'source': "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"
            })
        except WebDriverException as e:
            driver.quit()
            raise SetupError(f"Failed to configure Chrome: {e.msg or e}") from e
        logger.info("Chrome WebDriver initialized")
        return driver

    def fetch(self, url: str) -> RawDocument:
        self.open()
        try:
            self.driver.get(url)
        except WebDriverException as e:
            raise NetworkError(f"Navigation to {url} failed: {e.msg or e}", e) from e

        try:
            self._wait_for_challenge()
        except ChallengeTimeoutError as e:
            logger.warning(f"{e}, trying anyway")
            print(f"{ConsoleColors.YELLOW}  Challenge wait timed out, trying anyway{ConsoleColors.RESET}")
        except WebDriverException as e:
            raise NetworkError(f"Challenge wait on {url} failed: {e.msg or e}", e) from e

        if self.settle_delay > 0:
            self._sleep(self.settle_delay)

        try:
            self._wait_for_content()
            title = self._extract_title()
            content = self._find_content()
        except WebDriverException as e:
            raise ContentNotFoundError(f"Could not read rendered page {url}: {e.msg or e}") from e

        if not content:
            raise ContentNotFoundError(f"No content selector matched on {url}")
        return RawDocument(url=url, html=content, title=title, encoded=False)

    def _wait_for_challenge(self) -> None:
        marker = FetcherConstants.CHALLENGE_TITLE
        try:
            WebDriverWait(self.driver, self.challenge_timeout, poll_frequency=self.poll_interval).until(
                lambda d: marker not in (d.title or '')
            )
        except TimeoutException as e:
            raise ChallengeTimeoutError(
                f"Challenge still showing after {self.challenge_timeout}s"
            ) from e

    def _wait_for_content(self) -> None:
        try:
            WebDriverWait(self.driver, self.selector_timeout, poll_frequency=self.poll_interval).until(
                lambda d: any(d.find_elements(By.CSS_SELECTOR, selector) for selector in self.selectors)
            )
        except TimeoutException:
            logger.debug("No content selector appeared before timeout")

    def _extract_title(self) -> str:
        headings = self.driver.find_elements(By.TAG_NAME, 'h2')
        if not headings:
            return ''
        return (headings[0].get_attribute('textContent') or '').strip()

    def _find_content(self) -> str:
        for selector in self.selectors:
            elements = self.driver.find_elements(By.CSS_SELECTOR, selector)
            if not elements:
                continue
            markup = elements[0].get_attribute('innerHTML') or ''
            if len(markup) > self.min_content_length:
                logger.debug(f"Content found with selector {selector} ({len(markup)} chars)")
                return markup
        return ''

    def close(self) -> None:
        if self.driver is None:
            return
        try:
            self.driver.quit()
            logger.info("Chrome WebDriver cleaned up")
        except WebDriverException as e:
            logger.warning(f"Cleanup warning: {e}")
        finally:
            self.driver = None

    def __enter__(self) -> 'BrowserPageRetriever':
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()


PAYLOAD_RE = re.compile(re.escape(FetcherConstants.PAYLOAD_VARIABLE) + r'\s*=\s*"([^"]+)"')
NON_BASE64_RE = re.compile(r'[^A-Za-z0-9+/]')


def translate_alphabet(text: str, source: str = CUSTOM_CHARSET, target: str = BASE64_CHARSET) -> str:
    """Swap every character of ``source`` for the one at the same index in ``target``."""
    return text.translate(str.maketrans(source, target))


def _as_soup(html: Union[str, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html, 'html.parser')


def extract_title(html: Union[str, BeautifulSoup]) -> str:
    heading = _as_soup(html).find('h2')
    if heading is None:
        return ''
    return heading.get_text().strip()


def extract_payload(html: Union[str, BeautifulSoup]) -> str:
    script = _as_soup(html).find('script', id=FetcherConstants.SCRIPT_MARKER_ID)
    if script is None:
        raise DecodeError(f"No <script id=\"{FetcherConstants.SCRIPT_MARKER_ID}\"> in page")

    match = PAYLOAD_RE.search(script.get_text())
    if not match:
        raise DecodeError(f"No {FetcherConstants.PAYLOAD_VARIABLE} assignment in content script")
    return match.group(1)


def _b64decode(text: str) -> bytes:
    data = NON_BASE64_RE.sub('', text)
    data += '=' * (-len(data) % 4)
    try:
        return base64.b64decode(data)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Payload is not valid base64: {e}") from e


def _inflate(data: bytes) -> str:
    try:
        raw = zlib.decompress(data, zlib.MAX_WBITS | 32)
    except zlib.error:
        try:
            raw = zlib.decompress(data, -zlib.MAX_WBITS)
        except zlib.error as e:
            raise DecodeError(f"Malformed compressed stream: {e}") from e
    return raw.decode('utf-8', errors='replace')


def decode_payload(payload: str) -> str:
    return _inflate(_b64decode(translate_alphabet(payload)))


def decode_chapter_content(html: Union[str, BeautifulSoup]) -> str:
    """Recover the chapter markup hidden in the page's content script."""
    return decode_payload(extract_payload(html))


def obfuscate_payload(text: str) -> str:
    """Inverse of ``decode_payload``: compress, base64 and re-substitute."""
    encoded = base64.b64encode(zlib.compress(text.encode('utf-8'))).decode('ascii')
    return translate_alphabet(encoded, BASE64_CHARSET, CUSTOM_CHARSET)


COMMENT_RE = re.compile(r'<!--.*?-->', re.DOTALL)
NON_BREAK_TAG_RE = re.compile(r'<(?!/?br\s*/?>)[^>]+>', re.IGNORECASE)
BREAK_RUN_RE = re.compile(r'(\s*<br\s*/?>\s*){3,}', re.IGNORECASE)
BLANK_LINES_RE = re.compile(r'\n{2,}')


def _sanitize_once(html: str) -> str:
    cleaned = COMMENT_RE.sub('', html)
    cleaned = cleaned.replace('&nbsp;', ' ')
    cleaned = NON_BREAK_TAG_RE.sub('', cleaned)
    cleaned = BREAK_RUN_RE.sub('<br><br>', cleaned)
    cleaned = cleaned.replace('\t', '')
    cleaned = BLANK_LINES_RE.sub('\n', cleaned)
    return cleaned.strip()


def sanitize_content(html: str) -> str:
    """Strip every tag except <br> and squeeze redundant breaks and blank lines."""
    # Each pass only shrinks the text, so this settles.
    cleaned = _sanitize_once(html)
    while True:
        again = _sanitize_once(cleaned)
        if again == cleaned:
            return cleaned
        cleaned = again


def parse_chapter(document: RawDocument) -> ChapterRecord:
    if document.encoded:
        soup = _as_soup(document.html)
        title = extract_title(soup)
        raw_content = decode_chapter_content(soup)
    else:
        title = (document.title or '').strip()
        raw_content = document.html

    if not title:
        logger.warning(f"No <h2> title found for {document.url}")

    content = sanitize_content(raw_content)
    if not content:
        raise ContentNotFoundError(f"Decoded content is empty for {document.url}")
    return ChapterRecord(title=title, content=content)


MERGE_SEPARATOR = '\n\n' + '=' * FetcherConstants.MERGE_SEPARATOR_WIDTH + '\n\n'


def url_slug(url: str) -> str:
    return url.rstrip('/').split('/')[-1] or 'output'


def chapter_filename(url: str) -> str:
    return f"{url_slug(url)}.txt"


def merged_filename(first_url: str, last_url: str) -> str:
    first_slug, last_slug = url_slug(first_url), url_slug(last_url)
    first_num = re.search(r'\d+', first_slug)
    last_num = re.search(r'\d+', last_slug)
    if first_num and last_num:
        return f"chuong-{first_num.group(0)}-{last_num.group(0)}.txt"
    return f"{first_slug}-to-{last_slug}.txt"


def write_output(path: str, text: str) -> None:
    """Write ``text`` to ``path``, creating missing parent directories."""
    try:
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(text)
    except OSError as e:
        raise FileSystemError(f"Could not write {path}: {e}") from e
    logger.info(f"Saved: {path}")


class RequestPacer:
    """Fixed pause between consecutive requests."""

    def __init__(self, delay_ms: int, sleep: Callable[[float], None] = time.sleep):
        self.delay = delay_ms / 1000.0
        self._sleep = sleep

    def wait(self) -> None:
        if self.delay > 0:
            self._sleep(self.delay)


class RunState:
    """Tallies and the pending merge group for one run."""

    def __init__(self, total: int):
        self.total = total
        self.current = 0
        self.success_count = 0
        self.failure_count = 0
        self.failed_urls: List[str] = []
        self.files_written = 0
        self.merge_buffer: List[Tuple[ChapterRequest, ChapterRecord]] = []

    def start(self, request: ChapterRequest) -> None:
        self.current += 1
        print(f"\n[{self.current}/{self.total}] Fetching: {request.url}")
        logger.info(f"Fetching {request.url}")

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, request: ChapterRequest, error: Exception) -> None:
        self.failure_count += 1
        self.failed_urls.append(request.url)
        logger.error(f"Failed {request.url}: {error}")
        print(f"{ConsoleColors.YELLOW}Warning: {error}{ConsoleColors.RESET}")

    def take_buffer(self) -> List[Tuple[ChapterRequest, ChapterRecord]]:
        buffer, self.merge_buffer = self.merge_buffer, []
        return buffer

    def result(self) -> RunResult:
        return RunResult(
            success_count=self.success_count,
            failure_count=self.failure_count,
            failed_urls=tuple(self.failed_urls),
            files_written=self.files_written,
        )


def partition_groups(chapter_requests: Sequence[ChapterRequest], size: int) -> List[List[ChapterRequest]]:
    return [list(chapter_requests[i:i + size]) for i in range(0, len(chapter_requests), size)]


class BatchFetcher:
    """Fetch, decode and save a list of chapters one after another.

    A failing chapter is recorded and skipped; only the summary returned by
    ``run`` reports it. With ``merge_size > 1`` consecutive chapters are
    grouped and each group is written to a single file.
    """

    def __init__(self, retriever, options: RunOptions, sleep: Callable[[float], None] = time.sleep):
        self.retriever = retriever
        self.options = options
        self.pacer = RequestPacer(options.delay_ms, sleep)

    def run(self, chapter_requests: Sequence[ChapterRequest]) -> RunResult:
        state = RunState(len(chapter_requests))
        if self.options.merging:
            self._run_merged(chapter_requests, state)
        else:
            self._run_single(chapter_requests, state)
        return state.result()

    def fetch_chapter(self, request: ChapterRequest) -> ChapterRecord:
        document = self.retriever.fetch(request.url)
        record = parse_chapter(document)
        print(f"{ConsoleColors.GREEN}Title: {record.title}{ConsoleColors.RESET}")
        print(f"Content: {len(record.content)} chars")
        return record

    def _output_path(self, filename: str) -> str:
        return os.path.join(self.options.output_dir, filename)

    def _run_single(self, chapter_requests: Sequence[ChapterRequest], state: RunState) -> None:
        for position, request in enumerate(chapter_requests):
            if position:
                self.pacer.wait()
            state.start(request)
            try:
                record = self.fetch_chapter(request)
                path = self._output_path(chapter_filename(request.url))
                write_output(path, record.render())
            except FetcherError as e:
                state.record_failure(request, e)
                continue
            state.record_success()
            state.files_written += 1
            print(f"{ConsoleColors.GREEN}Saved: {path}{ConsoleColors.RESET}")

    def _run_merged(self, chapter_requests: Sequence[ChapterRequest], state: RunState) -> None:
        position = 0
        for group in partition_groups(chapter_requests, self.options.merge_size):
            for request in group:
                if position:
                    self.pacer.wait()
                position += 1
                state.start(request)
                try:
                    record = self.fetch_chapter(request)
                except FetcherError as e:
                    state.record_failure(request, e)
                    continue
                state.merge_buffer.append((request, record))
            self._flush_group(group, state)

    def _flush_group(self, group: List[ChapterRequest], state: RunState) -> None:
        members = state.take_buffer()
        if not members:
            logger.warning(f"No chapters decoded for group {group[0].url} .. {group[-1].url}, nothing written")
            return

        text = MERGE_SEPARATOR.join(record.render() for _, record in members)
        path = self._output_path(merged_filename(group[0].url, group[-1].url))
        try:
            write_output(path, text)
        except FileSystemError as e:
            for request, _ in members:
                state.record_failure(request, e)
            return

        for request, _ in members:
            state.record_success()
        state.files_written += 1
        print(f"{ConsoleColors.GREEN}Saved: {path} ({len(members)} chapters){ConsoleColors.RESET}")


def configure_logging(debug_mode: bool) -> None:
    log_level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler('fetcher_detailed.log', encoding='utf-8'),
            logging.StreamHandler() if debug_mode else logging.NullHandler()
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='chapterfetcher',
        description='Fetch obfuscated chapters and save them as text files',
    )
    parser.add_argument('urls', nargs='*', metavar='URL',
                        help='Chapter URLs, or the story base URL when --range is used')
    parser.add_argument('--out', default='.', help='Output directory (default: current dir)')
    parser.add_argument('--delay', type=int, default=None,
                        help=f'Delay between requests in ms (default: {FetcherConstants.DEFAULT_DELAY_MS}, '
                             f'{FetcherConstants.BROWSER_DELAY_MS} with --browser)')
    parser.add_argument('--range', dest='chapter_range', metavar='START-END',
                        help='Generate chapter URLs from START to END')
    parser.add_argument('--merge', type=int, default=0, metavar='N',
                        help='Merge every N chapters into one file')
    parser.add_argument('--browser', action='store_true',
                        help='Fetch through Chrome for sites behind an anti-bot challenge')
    parser.add_argument('--headless', action='store_true', help='Run Chrome without a window')
    parser.add_argument('--debug', action='store_true', help='Enable debug mode')
    return parser


def create_retriever():
    if Config.USE_BROWSER:
        return BrowserPageRetriever(headless=Config.HEADLESS)
    return DirectPageRetriever()


def print_summary(result: RunResult, options: RunOptions) -> None:
    print(f"\n{ConsoleColors.GREEN}Done: {result.success_count} OK, {result.failure_count} failed{ConsoleColors.RESET}")
    if options.merging:
        print(f"Files: {result.files_written} merged files")
    if result.failed_urls:
        print(f"\n{ConsoleColors.RED}Failed chapters:{ConsoleColors.RESET}")
        for url in result.failed_urls:
            print(f"  {url}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    Config.DEBUG_MODE = args.debug
    Config.USE_BROWSER = args.browser
    Config.HEADLESS = args.headless
    Config.validate()
    configure_logging(Config.DEBUG_MODE)

    try:
        chapter_requests = resolve_requests(args.urls, args.chapter_range)
        if args.delay is not None:
            delay = args.delay
        elif Config.USE_BROWSER:
            delay = FetcherConstants.BROWSER_DELAY_MS
        else:
            delay = FetcherConstants.DEFAULT_DELAY_MS
        options = RunOptions(output_dir=args.out, delay_ms=delay, merge_size=args.merge)
    except SetupError as e:
        print(f"{ConsoleColors.RED}Error: {e}{ConsoleColors.RESET}")
        parser.print_usage()
        return 1

    print(f"Fetching {len(chapter_requests)} chapter(s) -> {os.path.abspath(options.output_dir)}")
    print(f"Delay: {options.delay_ms}ms between requests")
    if options.merging:
        print(f"Merge: {options.merge_size} chapters per file")

    try:
        with create_retriever() as retriever:
            result = BatchFetcher(retriever, options).run(chapter_requests)
    except SetupError as e:
        print(f"\n{ConsoleColors.RED}Error: {e}{ConsoleColors.RESET}")
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130

    print_summary(result, options)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
