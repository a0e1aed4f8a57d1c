"""Page storage"""

import logging
import secrets
import string
import threading
from abc import ABC, abstractmethod
from typing import Dict, Optional
from pagegen_api.models.schemas import GeneratedPage

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 8


class PageStore(ABC):
    """Key-value interface for generated pages, keyed by page id."""

    @abstractmethod
    def put(self, page_id: str, page: GeneratedPage) -> GeneratedPage:
        """Store a page under page_id, replacing any previous entry"""

    @abstractmethod
    def get(self, page_id: str) -> Optional[GeneratedPage]:
        """Return the page or None when the id is unknown"""

    @abstractmethod
    def new_id(self) -> str:
        """Return a fresh id that is not in use"""

    @abstractmethod
    def __len__(self) -> int:
        ...

    def __contains__(self, page_id: object) -> bool:
        return isinstance(page_id, str) and self.get(page_id) is not None


class InMemoryPageStore(PageStore):
    """
    Process-local dict of pages. Nothing is evicted and nothing survives a restart.

    Access goes through a lock so that sync route handlers running in the
    threadpool cannot race inserts made from the event loop.
    """

    def __init__(self):
        self._pages: Dict[str, GeneratedPage] = {}
        self._lock = threading.Lock()

    def put(self, page_id: str, page: GeneratedPage) -> GeneratedPage:
        with self._lock:
            self._pages[page_id] = page
            total = len(self._pages)
        logger.info(f"Stored page {page_id} ({total} pages in memory)")
        return page

    def get(self, page_id: str) -> Optional[GeneratedPage]:
        with self._lock:
            return self._pages.get(page_id)

    def new_id(self) -> str:
        with self._lock:
            while True:
                page_id = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
                if page_id not in self._pages:
                    return page_id

    def __len__(self) -> int:
        with self._lock:
            return len(self._pages)


# Global store instance
page_store = InMemoryPageStore()
