# faithful/utils/http_retry.py
"""
HTTP POST with retry for rate limits and transient errors.

Used by the generative providers that talk to their APIs over plain
requests. Scripture provider calls do NOT go through here: those are
bounded by a short timeout and fall through to the next lookup tier
instead of retrying.

Usage:
    from faithful.utils.http_retry import post_with_retry

    response = post_with_retry(
        url="https://api.anthropic.com/v1/messages",
        json=payload,
        headers=headers,
        timeout=60,
    )
    data = response.json()
"""

import logging
import time
from typing import Optional

import requests

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 30


def _retry_after_seconds(response: requests.Response, attempt: int) -> int:
    retry_after = response.headers.get("retry-after")
    if retry_after:
        try:
            return max(0, min(int(retry_after), MAX_BACKOFF_SECONDS))
        except ValueError:
            pass
    return min(2 ** attempt * 2, MAX_BACKOFF_SECONDS)


def _error_message(error: requests.HTTPError) -> str:
    """Pull the provider's own error message out of an error response."""
    try:
        error_data = error.response.json()
        return error_data.get("error", {}).get("message", str(error))
    except Exception:
        return str(error)


def post_with_retry(
    url: str,
    json: dict,
    headers: dict,
    timeout: int = 60,
    max_retries: int = 2,
    sleep=time.sleep,
) -> requests.Response:
    """
    POST with automatic retry for rate limits and transient server errors.

    Retry behavior:
    - 429 (rate limit): Respects Retry-After up to MAX_BACKOFF_SECONDS, falls back to exponential backoff
    - No wait after the final attempt
    - 5xx (server error): Exponential backoff
    - Connection errors: Exponential backoff
    - 4xx (client error): No retry; the provider message is kept so callers
      can tell billing/quota rejections apart from other failures
    - Timeout: No retry (raises immediately)

    Raises:
        RuntimeError: On timeout, client errors, or exhausted retries
    """
    last_response: Optional[requests.Response] = None

    for attempt in range(max_retries):
        last_attempt = attempt == max_retries - 1
        try:
            response = requests.post(url, json=json, headers=headers, timeout=timeout)

            if response.status_code == 429:
                wait = _retry_after_seconds(response, attempt)
                logger.info(
                    f"Rate limited by {url}, waiting {wait}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                last_response = response
                if not last_attempt:
                    sleep(wait)
                continue

            if response.status_code >= 500:
                wait = 2 ** attempt
                logger.warning(
                    f"Server error {response.status_code} from {url}, "
                    f"retrying in {wait}s (attempt {attempt + 1}/{max_retries})"
                )
                last_response = response
                if not last_attempt:
                    sleep(wait)
                continue

            response.raise_for_status()
            return response

        except requests.ConnectionError as e:
            if not last_attempt:
                wait = 2 ** attempt
                logger.warning(f"Connection error to {url}, retrying in {wait}s: {e}")
                sleep(wait)
                continue
            raise RuntimeError(
                f"Connection to {url} failed after {max_retries} attempts: {e}"
            )

        except requests.Timeout:
            raise RuntimeError(f"Request to {url} timed out after {timeout}s")

        except requests.HTTPError as e:
            raise RuntimeError(f"API error from {url}: {_error_message(e)}")

    status = last_response.status_code if last_response is not None else "unknown"
    raise RuntimeError(
        f"Request to {url} failed after {max_retries} retries "
        f"(last status: {status})"
    )
