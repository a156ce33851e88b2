# checkout/utils/retry.py
import logging

import requests
from tenacity import before_sleep_log, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from checkout.utils.logging import get_logger

logger = get_logger(__name__)

GATEWAY_ATTEMPTS = 3


# retry tylko na błędy transportu (timeout, brak połączenia), odpowiedzi 4xx/5xx nie są ponawiane
def http_retry(attempts: int = GATEWAY_ATTEMPTS):
    return retry(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
