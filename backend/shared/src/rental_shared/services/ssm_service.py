"""Parameter Store access for Stripe credentials missing from settings.

Values are cached per process for ``ttl_seconds`` so a rotated key is picked
up by warm Lambda containers without a redeploy.
"""

import logging
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


class SSMServiceError(Exception):
    """Raised when a parameter cannot be read."""


class SSMService:
    """Read-through cache over ``ssm:GetParameter`` with decryption.

    Usage:
        ssm = SSMService(region_name="eu-central-1")
        key = ssm.get_parameter("/rental/dev/stripe/secret_key")
    """

    def __init__(
        self, region_name: str | None = None, ttl_seconds: int = DEFAULT_TTL_SECONDS
    ) -> None:
        self._client = boto3.client("ssm", region_name=region_name)
        self._ttl = ttl_seconds
        self._cache: dict[str, tuple[float, str]] = {}

    def get_parameter(self, name: str, *, use_cache: bool = True) -> str:
        """Return the decrypted value of ``name``.

        Raises:
            SSMServiceError: If the parameter is missing, access is denied, or
                the call fails
        """
        now = time.monotonic()
        cached = self._cache.get(name)
        if use_cache and cached and now - cached[0] < self._ttl:
            return cached[1]

        try:
            response = self._client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error("SSM lookup of %s failed with %s", name, code)
            if code == "ParameterNotFound":
                raise SSMServiceError(f"SSM parameter not found: {name}") from e
            raise SSMServiceError(f"SSM lookup of {name} failed: {code}") from e
        except BotoCoreError as e:
            logger.error("SSM lookup of %s failed: %s", name, e)
            raise SSMServiceError(f"SSM lookup of {name} failed") from e

        value: str = response["Parameter"]["Value"]
        self._cache[name] = (now, value)
        logger.info("Loaded SSM parameter %s", name)
        return value

    def clear_cache(self) -> None:
        self._cache.clear()
