"""
core/moderation.py -- Profanity filtering via the APILayer bad_words API.

Every question title, question body and answer is run through censor()
before it is stored. The API replaces offending words with '*' and returns
the censored text.

Error mapping (every failure is a typed QAError, never a bare requests error):
  - Retries exhausted on a transient status (429/502/503/504)
        -> MiddlewareAPIError
  - Connection failures, timeouts, undecodable JSON
        -> ExternalAPIError
  - Any other 4xx -> ClientError(APILayerError)
  - Any other 5xx -> ServerError(APILayerError)

Retry policy lives in the HTTPAdapter (urllib3 Retry with exponential
backoff), not in the call site. POST is allowed to retry because the API is
a pure function of its input.

The requests session is synchronous; callers in async code run censor() on
Starlette's thread pool.
"""

import logging

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from core.errors import APILayerError, ClientError, ExternalAPIError, MiddlewareAPIError, ServerError

logger = logging.getLogger("qaservice.moderation")

_RETRY_STATUSES = (429, 502, 503, 504)


def _build_session(retries: int) -> requests.Session:
    session = requests.Session()
    # 3 redirect hops is generous for a single known API.
    session.max_redirects = 3
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=_RETRY_STATUSES,
        allowed_methods=frozenset({"POST"}),
        raise_on_status=True,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class ProfanityFilter:
    """Client for the bad_words censoring API.

    Usage:
        moderator = ProfanityFilter(api_key="...")
        clean = moderator.censor("some text")
    """

    def __init__(
        self,
        api_key: str,
        url: str = "https://api.apilayer.com/bad_words",
        timeout: float = 10.0,
        retries: int = 3,
        session: requests.Session | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = url
        self._timeout = timeout
        self._session = session if session is not None else _build_session(retries)

    def censor(self, content: str) -> str:
        """Return content with profanity replaced by '*'."""
        try:
            resp = self._session.post(
                self._url,
                params={"censor_character": "*"},
                headers={"apikey": self._api_key},
                data=content.encode("utf-8"),
                timeout=self._timeout,
            )
        except requests.exceptions.RetryError as exc:
            raise MiddlewareAPIError(exc) from exc
        except requests.RequestException as exc:
            raise ExternalAPIError(exc) from exc

        if not resp.ok:
            error = APILayerError(status=resp.status_code, message=_error_message(resp))
            if 400 <= resp.status_code < 500:
                raise ClientError(error)
            raise ServerError(error)

        try:
            payload = resp.json()
        except requests.exceptions.JSONDecodeError as exc:
            raise ExternalAPIError(exc) from exc
        censored = payload.get("censored_content") if isinstance(payload, dict) else None
        if not isinstance(censored, str):
            raise ExternalAPIError(ValueError("bad_words response has no censored_content"))
        if payload.get("bad_words_total"):
            logger.info("Censored %d word(s)", payload["bad_words_total"])
        return censored

    def close(self) -> None:
        self._session.close()


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return resp.text
