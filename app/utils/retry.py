# app/utils/retry.py
from tenacity import (
    Retrying,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random_exponential,
)
import requests
import redis
from sqlalchemy.exc import OperationalError


def http_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.3, min=0.3, max=3),
        retry=retry_if_exception_type(requests.RequestException),
    )


def redis_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(redis.RedisError),
    )


def db_retry():
    #tylko bledy polaczenia, IntegrityError to przegrany wyscig a nie awaria
    return retry(
        reraise=True,
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(OperationalError),
    )


def conflict_retrying(exc_type: type[Exception], attempts: int, wait_max: float) -> Retrying:
    """Petla read-check-write: ponawia tylko przy nieaktualnej wersji partycji."""
    return Retrying(
        reraise=True,
        stop=stop_after_attempt(attempts),
        wait=wait_random_exponential(multiplier=wait_max / 10, max=wait_max),
        retry=retry_if_exception_type(exc_type),
    )
