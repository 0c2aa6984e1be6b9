"""
AWS credential providers for SigV4 signing.

The signing engine never reads the process environment itself. Credentials are
supplied by a provider object passed in explicitly, so tests can inject fixed
credentials and applications can pick their own source.

Usage:
    from ecs_client.auth import EnvironmentCredentialProvider, StaticCredentialProvider

    # Read AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY
    provider = EnvironmentCredentialProvider()
    credentials = provider.resolve()

    # Fixed credentials
    provider = StaticCredentialProvider("AKIDEXAMPLE", "secret")
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Mapping, Optional, Protocol, runtime_checkable

import boto3

from ..errors import CredentialError

logger = logging.getLogger(__name__)

# Environment variable holding the AWS Access Key ID
AWS_ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"

# Environment variable holding the AWS Secret Access Key
AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"

# Environment variable holding an optional session token
AWS_SESSION_TOKEN = "AWS_SESSION_TOKEN"


@dataclass(frozen=True)
class AWSCredentials:
    """AWS credentials for SigV4 signing."""
    access_key: str
    secret_key: str = field(repr=False)
    session_token: Optional[str] = field(default=None, repr=False)

    def validate(self) -> None:
        """
        Check that both halves of the key pair are present.

        Raises:
            CredentialError: If the access key id or secret key is empty
        """
        if not self.access_key:
            raise CredentialError("AWS access key id is missing or empty")
        if not self.secret_key:
            raise CredentialError("AWS secret access key is missing or empty")


@runtime_checkable
class CredentialProvider(Protocol):
    """Anything that can hand out an access key id and a secret access key."""

    def get_access_key_id(self) -> str:
        ...

    def get_secret_access_key(self) -> str:
        ...

    def get_session_token(self) -> Optional[str]:
        ...

    def resolve(self) -> AWSCredentials:
        ...


class BaseCredentialProvider(ABC):
    """Shared ``resolve`` implementation for the concrete providers."""

    @abstractmethod
    def get_access_key_id(self) -> str:
        ...

    @abstractmethod
    def get_secret_access_key(self) -> str:
        ...

    def get_session_token(self) -> Optional[str]:
        return None

    def resolve(self) -> AWSCredentials:
        """
        Look up both keys and return them as one credentials object.

        Returns:
            AWSCredentials with a non-empty access key id and secret key

        Raises:
            CredentialError: If either lookup fails or returns an empty value
        """
        credentials = AWSCredentials(
            access_key=self.get_access_key_id(),
            secret_key=self.get_secret_access_key(),
            session_token=self.get_session_token() or None,
        )
        credentials.validate()
        return credentials


class StaticCredentialProvider(BaseCredentialProvider):
    """Provider returning credentials fixed at construction time."""

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        session_token: Optional[str] = None,
    ):
        self._access_key = access_key
        self._secret_key = secret_key
        self._session_token = session_token

    def get_access_key_id(self) -> str:
        return self._access_key

    def get_secret_access_key(self) -> str:
        return self._secret_key

    def get_session_token(self) -> Optional[str]:
        return self._session_token


class EnvironmentCredentialProvider(BaseCredentialProvider):
    """
    Provider reading credentials from environment variables.

    Store the keys created in the IAM console as:

        $ export AWS_ACCESS_KEY_ID="your_access_key_id"
        $ export AWS_SECRET_ACCESS_KEY="your_secret_access_key"

    Missing values are reported as CredentialError, never substituted.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize the provider.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ`` at lookup time.
        """
        self._environ = environ

    def _lookup(self, name: str) -> str:
        environ = self._environ if self._environ is not None else os.environ
        value = environ.get(name, "")
        if not value:
            raise CredentialError(
                f"Environment variable {name} is not set",
                details={"variable": name},
            )
        return value

    def get_access_key_id(self) -> str:
        return self._lookup(AWS_ACCESS_KEY_ID)

    def get_secret_access_key(self) -> str:
        return self._lookup(AWS_SECRET_ACCESS_KEY)

    def get_session_token(self) -> Optional[str]:
        environ = self._environ if self._environ is not None else os.environ
        return environ.get(AWS_SESSION_TOKEN) or None


def _load_boto_credentials(profile_name: Optional[str] = None):
    """Return the botocore credentials object for ``profile_name``."""
    try:
        if profile_name:
            session = boto3.Session(profile_name=profile_name)
        else:
            session = boto3.Session()

        credentials = session.get_credentials()
    except Exception as e:
        raise CredentialError(f"Failed to get AWS credentials: {e}") from e

    if credentials is None:
        raise CredentialError("No AWS credentials found")
    return credentials


def _freeze(credentials) -> AWSCredentials:
    frozen_credentials = credentials.get_frozen_credentials()

    return AWSCredentials(
        access_key=frozen_credentials.access_key or "",
        secret_key=frozen_credentials.secret_key or "",
        session_token=frozen_credentials.token,
    )


def get_aws_credentials(profile_name: Optional[str] = None) -> AWSCredentials:
    """
    Get AWS credentials from the boto3 credential chain.

    Args:
        profile_name: Optional AWS profile name to use

    Returns:
        AWSCredentials object with access key, secret key, and optional session token

    Raises:
        CredentialError: If credentials cannot be obtained
    """
    return _freeze(_load_boto_credentials(profile_name))


class BotoCredentialProvider(BaseCredentialProvider):
    """
    Provider backed by the boto3 credential chain (environment, shared
    credentials file, instance/task role).

    The chain is walked once, on the first ``resolve``. Later calls reuse the
    same botocore credentials object, which refreshes assumed-role and SSO
    credentials itself when they near expiry.
    """

    def __init__(self, profile_name: Optional[str] = None):
        self.profile_name = profile_name
        self._credentials = None
        self._lock = threading.Lock()

    def _boto_credentials(self):
        with self._lock:
            if self._credentials is None:
                self._credentials = _load_boto_credentials(self.profile_name)
            return self._credentials

    def resolve(self) -> AWSCredentials:
        try:
            credentials = _freeze(self._boto_credentials())
        except CredentialError:
            raise
        except Exception as e:
            raise CredentialError(f"Failed to refresh AWS credentials: {e}") from e
        credentials.validate()
        logger.debug("Resolved credentials for access key %s", credentials.access_key)
        return credentials

    def get_access_key_id(self) -> str:
        return self.resolve().access_key

    def get_secret_access_key(self) -> str:
        return self.resolve().secret_key

    def get_session_token(self) -> Optional[str]:
        return self.resolve().session_token
