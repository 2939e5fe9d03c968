import threading
import time
from typing import Dict, List, Optional, Tuple, Union

import pytest

from pagesnap.config import CloneConfig
from pagesnap.errors import NetworkError
from pagesnap.http_client import FetchResponse

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

Body = Union[bytes, str, int, Tuple[bytes, str]]


class StubClient:
    """In-memory HTTP capability.

    A ``str`` body is served as ``text/css``, ``bytes`` as ``image/png``, a
    ``(bytes, content_type)`` pair as given and an ``int`` as that HTTP
    error status. Unknown URLs answer 404.
    """

    def __init__(self, responses: Dict[str, Body], delay: float = 0.0) -> None:
        self.responses = responses
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def get(self, url: str) -> FetchResponse:
        with self._lock:
            self.calls.append(url)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            body: Optional[Body] = self.responses.get(url)
            if body is None:
                raise NetworkError(f"{url}: HTTP 404")
            if isinstance(body, int):
                raise NetworkError(f"{url}: HTTP {body}")
            if isinstance(body, tuple):
                content, content_type = body
            elif isinstance(body, str):
                content, content_type = body.encode("utf-8"), "text/css; charset=utf-8"
            else:
                content, content_type = body, "image/png"
            return FetchResponse(url=url, status=200, content=content, content_type=content_type)
        finally:
            with self._lock:
                self.active -= 1


class StubRenderer:
    def __init__(self, html: str, final_url: Optional[str] = None) -> None:
        self.html = html
        self.final_url = final_url

    async def render(self, url: str):
        return self.html, self.final_url or url


@pytest.fixture
def config(tmp_path):
    return CloneConfig(output_root=tmp_path, render_js=False, concurrency=4)
