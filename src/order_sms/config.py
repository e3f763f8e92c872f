import os
from dataclasses import dataclass
from typing import Mapping, Optional
from urllib.parse import quote

from .errors import ConfigError
from .utils.logger import get_logger
from .utils.secrets import get_twilio_secrets

logger = get_logger("config")

DEFAULT_PORT = 3000
STORE_BACKENDS = ("memory", "file", "dynamodb")


@dataclass(frozen=True)
class Settings:
    twilio_sid: str
    twilio_auth_token: str
    twilio_phone: str
    public_base_url: str
    port: int = DEFAULT_PORT
    order_store: str = "file"
    order_store_path: str = "orders.json"
    orders_table: Optional[str] = None
    notify_queue_url: Optional[str] = None
    aws_region: str = "us-east-1"

    def tracking_link(self, order_id: str) -> str:
        return f"{self.public_base_url}/track/{quote(str(order_id), safe='')}"


def _parse_port(raw: Optional[str]) -> int:
    if not raw:
        return DEFAULT_PORT
    try:
        port = int(raw)
    except ValueError:
        raise ConfigError(f"Invalid PORT='{raw}'. Must be an integer.")
    if not 0 < port < 65536:
        raise ConfigError(f"Invalid PORT='{raw}'. Must be between 1 and 65535.")
    return port


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from environment variables.

    Twilio credentials come from TWILIO_SID / TWILIO_AUTH_TOKEN / TWILIO_PHONE.
    When TWILIO_SECRET_NAME is set, any of the three left unset is filled in
    from that Secrets Manager secret (keys account_sid, auth_token, phone).

    Raises ConfigError naming every missing or invalid variable.
    """
    env = os.environ if environ is None else environ

    region = env.get("AWS_REGION") or "us-east-1"
    twilio = {
        "account_sid": env.get("TWILIO_SID"),
        "auth_token": env.get("TWILIO_AUTH_TOKEN"),
        "phone": env.get("TWILIO_PHONE"),
    }

    secret_name = env.get("TWILIO_SECRET_NAME")
    if secret_name and not all(twilio.values()):
        secret = get_twilio_secrets(secret_name, region)
        for key, value in twilio.items():
            if not value:
                twilio[key] = secret.get(key)

    port = _parse_port(env.get("PORT"))
    order_store = (env.get("ORDER_STORE") or "file").lower()
    orders_table = env.get("ORDERS_TABLE") or None

    missing = [
        name
        for name, value in [
            ("TWILIO_SID", twilio["account_sid"]),
            ("TWILIO_AUTH_TOKEN", twilio["auth_token"]),
            ("TWILIO_PHONE", twilio["phone"]),
        ]
        if not value
    ]
    if order_store == "dynamodb" and not orders_table:
        missing.append("ORDERS_TABLE")

    if missing:
        msg = f"Missing required environment variables: {', '.join(missing)}"
        logger.error(msg)
        raise ConfigError(msg)

    if order_store not in STORE_BACKENDS:
        msg = f"Invalid ORDER_STORE='{order_store}'. Must be one of: {', '.join(STORE_BACKENDS)}"
        logger.error(msg)
        raise ConfigError(msg)

    base_url = env.get("PUBLIC_BASE_URL") or f"http://localhost:{port}"

    return Settings(
        twilio_sid=twilio["account_sid"],
        twilio_auth_token=twilio["auth_token"],
        twilio_phone=twilio["phone"],
        public_base_url=base_url.rstrip("/"),
        port=port,
        order_store=order_store,
        order_store_path=env.get("ORDER_STORE_PATH") or "orders.json",
        orders_table=orders_table,
        notify_queue_url=env.get("NOTIFY_QUEUE_URL") or None,
        aws_region=region,
    )
