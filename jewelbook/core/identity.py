"""
Identity provider client.

The provider owns login credentials for accounts created outside this
service; the local ``User.role`` column stays the role source of truth and is
only mirrored into the provider's account metadata. Every call is best-effort:
failures are logged and reported as ``False`` so that database work already
committed is never rolled back because of the remote side.
"""
import logging
import os
from typing import Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

IDENTITY_PROVIDER_URL = getattr(
    settings,
    'IDENTITY_PROVIDER_URL',
    os.getenv('IDENTITY_PROVIDER_URL', '')
)

IDENTITY_PROVIDER_API_KEY = getattr(
    settings,
    'IDENTITY_PROVIDER_API_KEY',
    os.getenv('IDENTITY_PROVIDER_API_KEY', '')
)

REQUEST_TIMEOUT = getattr(settings, 'EXTERNAL_HTTP_TIMEOUT', 10)


class IdentityProviderClient:
    """Thin REST client for the identity provider's user management API"""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None, timeout: float = REQUEST_TIMEOUT):
        self.base_url = (base_url if base_url is not None else IDENTITY_PROVIDER_URL).rstrip('/')
        self.api_key = api_key if api_key is not None else IDENTITY_PROVIDER_API_KEY
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    def _headers(self):
        return {
            'Authorization': f'Bearer {self.api_key}',
            'Content-Type': 'application/json',
        }

    def delete_account(self, external_id: Optional[str]) -> bool:
        """Delete the provider account; returns True when the account is gone"""
        if not external_id:
            return False
        if not self.is_configured:
            logger.info(f"Identity provider not configured, skipping account deletion for {external_id}")
            return False
        try:
            response = requests.delete(
                f'{self.base_url}/users/{external_id}',
                headers=self._headers(),
                timeout=self.timeout,
            )
            if response.status_code == 404:
                logger.info(f"Identity provider account {external_id} already absent")
                return True
            response.raise_for_status()
            logger.info(f"Deleted identity provider account {external_id}")
            return True
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to delete identity provider account {external_id}: {str(e)}")
            return False

    def update_role(self, external_id: Optional[str], role: str) -> bool:
        """Mirror the local role into the provider account's public metadata"""
        if not external_id or not self.is_configured:
            return False
        try:
            response = requests.patch(
                f'{self.base_url}/users/{external_id}/metadata',
                json={'public_metadata': {'role': role}},
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            logger.info(f"Mirrored role '{role}' to identity provider account {external_id}")
            return True
        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to mirror role to identity provider account {external_id}: {str(e)}")
            return False


def get_identity_client() -> IdentityProviderClient:
    return IdentityProviderClient()
