import json
import logging
import os
from typing import Any, Dict, Optional

import boto3
from cachetools import TTLCache

logger = logging.getLogger(__name__)

class SecretsManager:
    """
    Reads credentials from AWS Secrets Manager.

    Values are cached for five minutes so rotated secrets are picked up
    without hitting the API on every settings load.
    """

    def __init__(self, region_name: Optional[str] = None, cache_ttl: int = 300):
        self.region_name = region_name or os.environ.get("AWS_REGION", "us-east-1")
        self._client = None
        self._cache: TTLCache = TTLCache(maxsize=64, ttl=cache_ttl)

    @property
    def client(self):
        """Lazy-loaded Secrets Manager client"""
        if self._client is None:
            session = boto3.session.Session()
            self._client = session.client(
                service_name="secretsmanager",
                region_name=self.region_name
            )
        return self._client

    def clear_cache(self):
        logger.info("Clearing secrets cache")
        self._cache.clear()

    def get_secret(self, secret_id: str) -> str:
        """
        Get a secret value, served from cache while it is fresh.

        Args:
            secret_id: The secret ID or ARN

        Returns:
            The secret value as a string
        """
        if secret_id in self._cache:
            logger.debug(f"Returning cached secret for {secret_id}")
            return self._cache[secret_id]

        logger.info(f"Fetching fresh secret for {secret_id}")
        try:
            response = self.client.get_secret_value(SecretId=secret_id)
        except Exception as e:
            logger.error(f"Failed to get secret {secret_id}: {e}")
            raise

        value = response["SecretBinary"] if "SecretBinary" in response else response["SecretString"]
        self._cache[secret_id] = value
        return value

    def get_json_secret(self, secret_id: str) -> Dict[str, Any]:
        return json.loads(self.get_secret(secret_id))

    def get_db_credentials(self) -> Dict[str, str]:
        """
        PostgreSQL credentials; the secret name comes from DATABASE_SECRETS_NAME.
        """
        return self.get_json_secret(os.environ.get("DATABASE_SECRETS_NAME", "sos-db-credentials"))

    def get_api_key(self, service_name: str) -> str:
        """Get API key for a specific service"""
        return self.get_secret(f"{service_name}-api-key")
