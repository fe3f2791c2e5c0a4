"""
Firebase Admin SDK authentication provider.

Verifies ID tokens issued to web/mobile clients by Firebase Authentication.
Requires a service account (file, dict, environment variables or GCP
application default credentials).

Example:
    auth = FirebaseAuth(credentials_path="path/to/serviceAccount.json")

    claims = await auth.verify_token(id_token)
    print(claims["uid"])  # Firebase user ID
"""

import logging
import os
from typing import Dict, Any, Optional

import firebase_admin
from dotenv import load_dotenv
from firebase_admin import auth, credentials

from common.auth.base import AuthProvider

logger = logging.getLogger(__name__)

load_dotenv()


def _get_firebase_credentials_from_env() -> Optional[Dict[str, Any]]:
    """
    Check if Firebase credentials are present in environment variables.
    Returns credentials dict if all required fields are present, None otherwise.
    """
    required_fields = [
        "PROJECT_ID",
        "PRIVATE_KEY",
        "CLIENT_EMAIL",
    ]

    for field in required_fields:
        if not os.environ.get(field):
            return None

    def _env(name: str, default: str = "") -> str:
        return os.environ.get(name, default).strip('"').strip(",")

    return {
        "type": _env("TYPE", "service_account"),
        "project_id": _env("PROJECT_ID"),
        "private_key_id": _env("PRIVATE_KEY_ID"),
        # Escaped newlines are common when the key is pasted into a .env file
        "private_key": _env("PRIVATE_KEY").replace("\\n", "\n"),
        "client_email": _env("CLIENT_EMAIL"),
        "client_id": _env("CLIENT_ID"),
        "auth_uri": _env("AUTH_URI", "https://accounts.google.com/o/oauth2/auth"),
        "token_uri": _env("TOKEN_URI", "https://oauth2.googleapis.com/token"),
        "auth_provider_x509_cert_url": _env(
            "AUTH_PROVIDER_X509_CERT_URL", "https://www.googleapis.com/oauth2/v1/certs"
        ),
        "client_x509_cert_url": _env("CLIENT_X509_CERT_URL"),
        "universe_domain": _env("UNIVERSE_DOMAIN", "googleapis.com"),
    }


class FirebaseAuth(AuthProvider):
    """Firebase Admin SDK authentication provider."""

    def __init__(
        self,
        credentials_path: Optional[str] = None,
        credentials_dict: Optional[Dict[str, Any]] = None,
        project_id: Optional[str] = None,
        check_revoked: bool = True,
    ):
        """
        Initialize Firebase auth provider.

        Args:
            credentials_path: Path to service account JSON file
            credentials_dict: Service account credentials as dict (alternative to path)
            project_id: Firebase project ID (optional, can be inferred from credentials)
            check_revoked: Reject ID tokens whose refresh tokens were revoked
        """
        self._check_revoked = check_revoked

        # Initialize Firebase app if not already done
        if not firebase_admin._apps:
            if credentials_path:
                cred = credentials.Certificate(credentials_path)
            elif credentials_dict:
                cred = credentials.Certificate(credentials_dict)
            else:
                env_credentials = _get_firebase_credentials_from_env()
                if env_credentials:
                    cred = credentials.Certificate(env_credentials)
                else:
                    # Use default credentials (for GCP environments)
                    cred = credentials.ApplicationDefault()

            options = {}
            if project_id:
                options["projectId"] = project_id

            firebase_admin.initialize_app(cred, options)
            logger.info("Firebase app initialized")

        self._auth = auth

    async def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify a Firebase ID token."""
        try:
            decoded = self._auth.verify_id_token(token, check_revoked=self._check_revoked)
            # Add 'sub' field for compatibility with JWT provider
            decoded["sub"] = decoded.get("uid")
            return decoded
        except self._auth.RevokedIdTokenError:
            raise ValueError("Token has been revoked")
        except self._auth.ExpiredIdTokenError:
            raise ValueError("Token has expired")
        except self._auth.InvalidIdTokenError as e:
            raise ValueError(f"Invalid token: {e}")
        except Exception as e:
            raise ValueError(f"Token verification failed: {e}")
