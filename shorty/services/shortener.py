from dataclasses import dataclass
from typing import Callable, List, Optional
import logging

from shorty.core.errors import ConflictError, ExhaustedRetriesError, NotFoundError, ValidationError
from shorty.db.Models.models import UrlMapping
from shorty.db.repository import MappingStore
from shorty.utils.encoding import SHORT_CODE_LENGTH, generate_short_code
from shorty.utils.validators import is_valid_url


logger = logging.getLogger(__name__)

MAX_CREATE_ATTEMPTS = 5


@dataclass(frozen=True)
class ShortenResult:
    mapping: UrlMapping
    short_url: str
    # False when an existing mapping was reused
    created: bool


@dataclass(frozen=True)
class MappingView:
    mapping: UrlMapping
    short_url: str


class URLService:
    """Shortening, redirect and listing logic on top of a MappingStore."""

    def __init__(
        self,
        store: MappingStore,
        base_url: str,
        code_length: int = SHORT_CODE_LENGTH,
        max_attempts: int = MAX_CREATE_ATTEMPTS,
        code_generator: Optional[Callable[[int], str]] = None,
    ):
        self.store = store
        self.base_url = base_url.rstrip("/")
        self.code_length = code_length
        self.max_attempts = max_attempts
        self.code_generator = code_generator or generate_short_code

    def build_short_url(self, short_code: str) -> str:
        return f"{self.base_url}/{short_code}"

    def shorten(self, url) -> ShortenResult:
        if not url or not isinstance(url, str):
            raise ValidationError("Missing url")
        if not is_valid_url(url):
            logger.info("Rejected invalid URL: %s", url[:50])
            raise ValidationError("Invalid URL")

        # Idempotency: return existing mapping if present
        existing = self.store.find_by_original_url(url)
        if existing:
            logger.info("short URL already existed : '%s' for URL: %s", existing.short_code, url[:50])
            return ShortenResult(existing, self.build_short_url(existing.short_code), created=False)

        mapping = self._create_with_generated_code(url)
        logger.info("Shortened %s to %s", url[:50], mapping.short_code)
        return ShortenResult(mapping, self.build_short_url(mapping.short_code), created=True)

    def _create_with_generated_code(self, url: str) -> UrlMapping:
        for attempt in range(self.max_attempts):
            short_code = self.code_generator(self.code_length)
            try:
                return self.store.create(url, short_code)
            except ConflictError:
                logger.info("Short code collision on attempt %d/%d", attempt + 1, self.max_attempts)

        raise ExhaustedRetriesError(
            f"Failed to generate unique short code after {self.max_attempts} attempts"
        )

    def redirect(self, short_code: str) -> str:
        """Count a click and return the URL to redirect to."""
        if self.store.find_by_short_code(short_code) is None:
            logger.warning("Redirect 404: Short code not found: %s", short_code)
            raise NotFoundError()

        # Counted before the response is sent; a crash afterwards over-counts
        mapping = self.store.increment_clicks(short_code)
        return mapping.original_url

    def list_all(self) -> List[MappingView]:
        return [
            MappingView(m, self.build_short_url(m.short_code))
            for m in self.store.list_all()
        ]
