"""
AWS Lambda Handlers Module.

Entry points of the ledger API. Each handler module owns an API Gateway REST
resolver and a ``lambda_handler``:

- ``ledger.handlers.transactions_handler.lambda_handler``
- ``ledger.handlers.users_handler.lambda_handler``

Routes parse the request, call the logic layer once and map every failure to
an explicit JSON error response.
"""

from ledger.handlers.utils.observability import logger, metrics, tracer

__all__ = [
    "logger",
    "tracer",
    "metrics",
]
