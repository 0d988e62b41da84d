from dataclasses import dataclass
import json
import time
import hashlib
import base64
import logging

from config import config
from models.user import User, UserORM

logger = logging.getLogger(__name__)

def to_base64(data: dict) -> str:
    """
    Convert a dictionary to a base64 encoded string.

    Args:
        data (dict): The dictionary to encode.

    Returns:
        str: Base64 encoded string of the JSON representation of the dictionary.
    """
    return base64.b64encode(json.dumps(data).encode("utf-8")).decode("utf-8")

def _sign(header_base64: str, payload_base64: str) -> str:
    return hashlib.sha256(
        f"{header_base64}.{payload_base64}.{config.jwt.secret}".encode("utf-8")
    ).hexdigest()

@dataclass
class JsonWebToken:
    """
    Class to handle JSON Web Token (JWT) creation, decoding, and verification.
    """
    sub: str  # user id
    iat: int  # issued at timestamp
    exp: int  # expiration timestamp
    role: str
    email: str
    full_name: str | None = None
    enabled: bool = True

    @property
    def payload(self) -> dict:
        return {
            "sub": self.sub,
            "iat": self.iat,
            "exp": self.exp,
            "role": self.role,
            "email": self.email,
            "full_name": self.full_name,
            "enabled": self.enabled
        }

    @property
    def token(self) -> str:
        """
        Generate the JWT token string from the instance data.

        Returns:
            str: The encoded JWT token.
        """
        header_base64 = to_base64({"alg": "HS256", "typ": "JWT"})
        payload_base64 = to_base64(self.payload)
        return f"{header_base64}.{payload_base64}.{_sign(header_base64, payload_base64)}"

    @property
    def is_expired(self) -> bool:
        return time.time() > self.exp

    @staticmethod
    def from_token(token: str) -> 'JsonWebToken':
        """
        Decode a JWT token string into a JsonWebToken instance, if the signature is valid.

        Args:
            token (str): The JWT token to decode.

        Returns:
            JsonWebToken: An instance of JsonWebToken with the decoded data.

        Raises:
            ValueError: If the token is malformed or its signature does not match.
        """
        parts = token.split(".")
        if len(parts) != 3:
            raise ValueError("Invalid token format")

        header_base64, payload_base64, signature = parts
        if signature != _sign(header_base64, payload_base64):
            raise ValueError("Invalid token signature")

        payload = json.loads(base64.b64decode(payload_base64).decode("utf-8"))
        return JsonWebToken(
            sub=payload["sub"],
            iat=payload["iat"],
            exp=payload["exp"],
            role=payload["role"],
            email=payload["email"],
            full_name=payload.get("full_name"),
            enabled=payload.get("enabled", True)
        )

    @staticmethod
    def from_user(user: User | UserORM, expire: int = None) -> 'JsonWebToken':
        """
        Create a JsonWebToken instance for a user.

        Args:
            user (User | UserORM): The user the token is issued to.
            expire (int, optional): Lifetime of the token in seconds. Defaults to JWT.EXPIRATION.

        Returns:
            JsonWebToken: An instance of JsonWebToken with the user's data.
        """
        current_time = time.time()
        lifetime = config.jwt.expiration if expire is None else expire
        return JsonWebToken(
            sub=user.id,
            iat=int(current_time),
            exp=int(current_time + lifetime),
            role=user.role,
            email=user.email,
            full_name=user.full_name,
            enabled=user.enabled
        )

def create_token(user: User | UserORM, expire: int = None) -> tuple[str, dict]:
    """
    Create a JSON Web Token (JWT) for the given user, and return the token and its payload.

    Args:
        user (User | UserORM): The user data object.
        expire (int, optional): The lifetime of the token in seconds.

    Returns:
        tuple[str, dict]: The generated JWT and its payload.
    """
    jwt = JsonWebToken.from_user(user, expire=expire)
    return jwt.token, jwt.payload

def decode_token(token: str) -> dict | None:
    try:
        return JsonWebToken.from_token(token).payload
    except (ValueError, json.JSONDecodeError, KeyError):
        return None

def verify_token(token: str) -> bool:
    """
    Verify the validity of a JSON Web Token (JWT).

    Args:
        token (str): The JWT to verify.

    Returns:
        bool: True if the signature is valid and the token has not expired.
    """
    try:
        jwt = JsonWebToken.from_token(token)
        return not jwt.is_expired
    except (ValueError, json.JSONDecodeError, KeyError) as e:
        logger.debug("Rejected token: %s", e)
        return False
