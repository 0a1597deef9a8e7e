from __future__ import annotations
import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from config import load_settings
from models import CarRecord

log = logging.getLogger(__name__)

class CarServiceError(RuntimeError):
    pass

class CarGameClient:
    """
    HTTP client for the game server. Connection errors, timeouts and 5xx
    responses are retried `retries` times with exponential backoff; anything
    else fails at once with CarServiceError.
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        backoff: Optional[float] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        settings = load_settings()
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.timeout = settings.timeout if timeout is None else timeout
        self.retries = settings.retries if retries is None else retries
        self.backoff = settings.backoff if backoff is None else backoff
        self.session = session or requests.Session()
        self._sleep = sleep

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        attempt = 0
        while True:
            try:
                resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
            except (requests.ConnectionError, requests.Timeout) as e:
                problem = f"{type(e).__name__}: {e}"
            except requests.RequestException as e:
                raise CarServiceError(f"{method} {url} failed: {type(e).__name__}: {e}") from e
            else:
                if resp.status_code < 400:
                    try:
                        return resp.json()
                    except ValueError as e:
                        raise CarServiceError(f"Invalid JSON from {url}") from e
                if resp.status_code < 500:
                    raise CarServiceError(f"HTTP {resp.status_code} from {url}: {resp.text[:200]}")
                problem = f"HTTP {resp.status_code}"

            if attempt >= self.retries:
                raise CarServiceError(f"{method} {url} failed after {attempt + 1} attempts ({problem})")
            delay = self.backoff * (2 ** attempt)
            log.warning("%s %s failed (%s); retry %d/%d in %.2fs",
                        method, url, problem, attempt + 1, self.retries, delay)
            self._sleep(delay)
            attempt += 1

    # ---------- boundary operations ----------
    def random_car(self) -> CarRecord:
        data = self._request("GET", "/api/random-car")
        if not isinstance(data, dict):
            raise CarServiceError("Random car response is not an object")
        return CarRecord.from_payload(data)

    def score_guess(self, guess_price: float, guess_model: str, truth: CarRecord) -> Dict[str, Any]:
        payload = {
            "guess_price": guess_price,
            "guess_model": guess_model,
            "correct": truth.to_payload(),
        }
        data = self._request("POST", "/api/guess", json=payload)
        return data if isinstance(data, dict) else {}

    def search_titles(self, query: str) -> List[str]:
        data = self._request("GET", "/api/search-models", params={"q": query})
        if not isinstance(data, list):
            return []
        return [t for t in data if isinstance(t, str)]

    def health(self) -> Dict[str, Any]:
        data = self._request("GET", "/api/health")
        return data if isinstance(data, dict) else {}
