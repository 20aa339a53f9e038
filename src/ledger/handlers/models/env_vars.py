"""
Environment variable models for type-safe configuration.

Defines the Pydantic model for the environment variables read by the ledger
Lambda handlers, parsed and validated with aws-lambda-env-modeler.
"""

from typing import Annotated, Optional

from aws_lambda_env_modeler import get_environment_variables
from pydantic import BaseModel, Field


class LedgerEnvVars(BaseModel):
    """Environment variables for the ledger handlers."""

    # DynamoDB table names
    TRANSACTIONS_TABLE_NAME: Annotated[str, Field(
        description='DynamoDB table storing transaction records',
        min_length=1
    )] = 'TransactionTable'

    USERS_TABLE_NAME: Annotated[str, Field(
        description='DynamoDB table storing user records',
        min_length=1
    )] = 'UserTable'

    # Set to point at DynamoDB Local
    DYNAMODB_ENDPOINT: Annotated[Optional[str], Field(
        description='DynamoDB endpoint URL override'
    )] = None

    AWS_REGION: Annotated[str, Field(
        description='AWS region for service deployment'
    )] = 'us-east-1'

    ENVIRONMENT: Annotated[str, Field(
        description='Deployment environment name',
        pattern=r'^(dev|staging|prod|test)$'
    )] = 'dev'

    # Pagination
    TRANSACTIONS_PAGE_SIZE: Annotated[int, Field(
        description='Maximum number of transactions returned per page',
        ge=1,
        le=100
    )] = 10

    USERS_PAGE_SIZE: Annotated[int, Field(
        description='Scan page size used when walking the user table',
        ge=1,
        le=100
    )] = 25

    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        description='Service name for AWS Powertools'
    )] = 'ledger-api'

    LOG_LEVEL: Annotated[str, Field(
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    POWERTOOLS_TRACE_DISABLED: Annotated[str, Field(
        description='Disable X-Ray tracing (true/false)',
        pattern=r'^(true|false)$'
    )] = 'false'

    CORS_ALLOW_ORIGIN: Annotated[str, Field(
        description='CORS allowed origin for API responses'
    )] = '*'


def get_handler_env_vars() -> LedgerEnvVars:
    """
    Get typed environment variables for the ledger handlers.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=LedgerEnvVars)
