"""Bearer token validation against a JWKS endpoint.

Works with any OIDC provider that publishes its signing keys as a JWKS
document. Identity issuance is external; this module only verifies.
"""

from functools import lru_cache

import jwt
from jwt import PyJWKClient, PyJWKClientError

from common.config import settings


class TokenAuthError(Exception):
    """Base exception for token authentication errors."""

    pass


class TokenExpiredError(TokenAuthError):
    """Token has expired."""

    pass


class InvalidTokenError(TokenAuthError):
    """Token is invalid or malformed."""

    pass


class TokenValidator:
    """JWT validator using a JWKS key set.

    Keys are fetched lazily and cached by ``PyJWKClient``.
    """

    def __init__(
        self,
        jwks_url: str,
        issuer: str | None = None,
        audience: str | None = None,
        algorithms: tuple[str, ...] = ("RS256",),
    ):
        """Initialize the validator.

        Args:
            jwks_url: URL of the provider's JWKS document
            issuer: Expected ``iss`` claim; not checked when empty
            audience: Expected ``aud`` claim; not checked when empty
            algorithms: Accepted signing algorithms
        """
        self.jwks_url = jwks_url
        self.issuer = issuer or None
        self.audience = audience or None
        self.algorithms = list(algorithms)
        self._jwk_client: PyJWKClient | None = None

    @property
    def jwk_client(self) -> PyJWKClient:
        """Lazily initialize JWKS client."""
        if self._jwk_client is None:
            if not self.jwks_url:
                raise InvalidTokenError("Token verification is not configured")
            self._jwk_client = PyJWKClient(self.jwks_url)
        return self._jwk_client

    def decode_token(self, token: str) -> dict:
        """Decode and validate a bearer token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid or verification fails
        """
        try:
            signing_key = self.jwk_client.get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_exp": True,
                    "verify_aud": self.audience is not None,
                    "verify_iss": self.issuer is not None,
                    "require": ["sub", "exp"],
                },
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidAudienceError as e:
            raise InvalidTokenError("Invalid token audience") from e
        except jwt.InvalidIssuerError as e:
            raise InvalidTokenError("Invalid token issuer") from e
        except PyJWKClientError as e:
            raise InvalidTokenError(f"Failed to fetch signing key: {e}") from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Token validation failed: {e}") from e


@lru_cache
def get_token_validator() -> TokenValidator:
    """Get cached validator configured from settings."""
    return TokenValidator(
        jwks_url=settings.auth_jwks_url,
        issuer=settings.auth_issuer,
        audience=settings.auth_audience,
    )
