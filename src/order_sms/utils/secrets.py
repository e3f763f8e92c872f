import json
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ConfigError
from .logger import get_logger

logger = get_logger("secrets")


def get_twilio_secrets(secret_name: str, region_name: Optional[str] = None) -> dict:
    """
    Fetch Twilio credentials from AWS Secrets Manager.

    Expects the secret value to be a JSON object, e.g.:

        {
          "account_sid": "...",
          "auth_token": "...",
          "phone": "+15550001111"
        }
    """
    logger.info(
        "secrets.fetch",
        extra={"secret_name": secret_name, "region": region_name},
    )

    client = boto3.client("secretsmanager", region_name=region_name)

    try:
        resp = client.get_secret_value(SecretId=secret_name)
    except (BotoCoreError, ClientError) as e:
        logger.error(
            "secrets.fetch_failed",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise ConfigError(f"Unable to read secret '{secret_name}': {e}") from e

    secret_str = resp.get("SecretString")
    if not secret_str:
        msg = f"Secret '{secret_name}' has no SecretString payload"
        logger.error(msg)
        raise ConfigError(msg)

    try:
        data = json.loads(secret_str)
    except json.JSONDecodeError as e:
        logger.error(
            "secrets.invalid_json",
            extra={"secret_name": secret_name, "error": str(e)},
        )
        raise ConfigError(f"Secret '{secret_name}' is not valid JSON") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Secret '{secret_name}' must be a JSON object")

    return data
