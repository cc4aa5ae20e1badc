"""Authentication utilities for JWT token validation using Supabase JWKS"""
import json
import logging
from functools import lru_cache
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends, Header, HTTPException
from jose import JWTError, jwt

from wellness import config

logger = logging.getLogger(__name__)

if not config.SUPABASE_URL:
    logger.warning("SUPABASE_URL not set - authentication will fail")


@lru_cache(maxsize=1)
def get_supabase_jwks() -> dict:
    """
    Fetch and cache Supabase JWKS (JSON Web Key Set) from public endpoint

    The cache lives until the process restarts.

    Returns:
        JWKS dictionary containing public keys
    """
    if not config.SUPABASE_URL:
        raise ValueError("SUPABASE_URL not configured")

    jwks_url = f"{config.SUPABASE_URL}/auth/v1/.well-known/jwks.json"

    try:
        logger.info(f"Fetching JWKS from: {jwks_url}")
        response = httpx.get(jwks_url, timeout=10.0)
        response.raise_for_status()
        jwks = response.json()
        logger.info(f"Successfully fetched JWKS with {len(jwks.get('keys', []))} keys")
        return jwks
    except Exception as e:
        logger.error(f"Failed to fetch JWKS from {jwks_url}: {e}")
        raise ValueError(f"Failed to fetch Supabase JWKS: {e}")


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        logger.warning("No Authorization header provided")
        raise HTTPException(status_code=401, detail="Authorization header is required")

    if not authorization.startswith('Bearer '):
        logger.warning(f"Invalid Authorization header format: {authorization[:20]}...")
        raise HTTPException(status_code=401, detail="Authorization header must start with 'Bearer '")

    return authorization.split('Bearer ')[1]


def decode_supabase_token(token: str) -> Dict[str, Any]:
    """
    Verify a Supabase access token against the project JWKS

    Raises:
        HTTPException: If the token is invalid or expired, or auth is misconfigured
    """
    try:
        jwks = get_supabase_jwks()

        kid = jwt.get_unverified_header(token).get('kid')
        if not kid:
            logger.warning("Token missing 'kid' in header")
            raise HTTPException(status_code=401, detail="Invalid token: missing key ID")

        jwk = next((key for key in jwks.get('keys', []) if key.get('kid') == kid), None)
        if not jwk:
            logger.warning(f"No matching key found for kid: {kid}")
            raise HTTPException(status_code=401, detail="Invalid token: key not found")

        # python-jose expects the key as a JSON string for JWK
        return jwt.decode(
            token,
            json.dumps(jwk),
            algorithms=[jwk.get('alg', 'RS256')],
            options={
                "verify_signature": True,
                "verify_exp": True,
                "verify_aud": False  # Supabase tokens may not have aud
            }
        )

    except HTTPException:
        raise
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        raise HTTPException(status_code=401, detail="Token has expired")
    except jwt.JWTClaimsError as e:
        logger.warning(f"JWT claims validation failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid token claims")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {str(e)}")
        raise HTTPException(status_code=401, detail="Invalid authentication token")
    except ValueError as e:
        logger.error(f"Configuration error: {str(e)}")
        raise HTTPException(status_code=500, detail="Authentication is not properly configured")


async def get_current_claims(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Dict[str, Any]:
    """Verified token payload of the calling user"""
    payload = decode_supabase_token(_bearer_token(authorization))
    if not payload.get('sub'):
        logger.warning("Token payload missing 'sub' claim")
        raise HTTPException(status_code=401, detail="Invalid token: missing user ID")
    return payload


async def get_current_user_id(claims: Dict[str, Any] = Depends(get_current_claims)) -> str:
    """User ID (UUID string) from the token's 'sub' claim"""
    return claims['sub']
