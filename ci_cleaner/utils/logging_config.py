"""Logging configuration using AWS Lambda Powertools."""

from aws_lambda_powertools import Logger

from ..models.config import LOG_LEVEL

SERVICE_NAME = "ci-cleaner"


def get_logger(level: str | None = None) -> Logger:
    """Build the structured logger handed to the orchestrators and cleaners.

    Returns Powertools Logger with:
    - Structured JSON logging
    - ``extra=`` fields merged into each record
    - ``append_keys`` for run-wide keys such as the provider name
    """
    return Logger(service=SERVICE_NAME, level=(level or LOG_LEVEL).upper())
