"""
Request identity — bearer JWT for dashboard users, API keys for webhooks.

Tokens are issued by the identity provider; we only verify them. The decoded
identity is stored on flask.g for the duration of the request.
"""
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

import jwt
from flask import g, request

from recruitops.config import JWT_SECRET, JWT_ISSUER
from recruitops.database import utcnow

logger = logging.getLogger('recruitops.auth')

OPEN_PATHS = {'/health', '/api/health'}

# Paths authenticated by ApiKey instead of a user token
API_KEY_SUFFIXES = ('/prospects', '/campaign-created')

API_KEY_PREFIX = 'mk_'

ADMIN_ROLES = {'admin', 'org:admin'}


@dataclass
class Identity:
    user_id: str
    org_id: Optional[str] = None
    org_role: Optional[str] = None
    email: Optional[str] = None

    @property
    def is_admin(self):
        return (self.org_role or '').lower() in ADMIN_ROLES


class AuthError(Exception):
    def __init__(self, message, status=401):
        self.message = message
        self.status = status
        super().__init__(message)


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    return header[len('Bearer '):].strip() or None


def decode_token(token):
    """Verify an HS256 token and map its claims to an Identity."""
    options = {'require': ['sub']}
    kwargs = {'algorithms': ['HS256'], 'options': options}
    if JWT_ISSUER:
        kwargs['issuer'] = JWT_ISSUER
    try:
        payload = jwt.decode(token, JWT_SECRET, **kwargs)
    except jwt.PyJWTError as e:
        raise AuthError(f'Invalid token: {e}') from e
    return Identity(
        user_id=payload['sub'],
        org_id=payload.get('org_id'),
        org_role=payload.get('org_role'),
        email=payload.get('email'),
    )


def load_identity():
    """before_request hook: resolve g.identity (user) or leave API-key paths to their handlers."""
    g.identity = None
    if request.path in OPEN_PATHS or request.method == 'OPTIONS':
        return None
    if request.path.endswith(API_KEY_SUFFIXES):
        return None

    token = _bearer_token()
    if not token:
        raise AuthError('Unauthorized')
    g.identity = decode_token(token)
    return None


def current_identity():
    identity = g.get('identity')
    if identity is None:
        raise AuthError('Unauthorized')
    return identity


def require_org(org_id=None):
    """The caller's identity, checked to belong to org_id (or to any org if None)."""
    identity = current_identity()
    if not identity.org_id:
        raise AuthError('No organization selected', status=403)
    if org_id is not None and identity.org_id != org_id:
        raise AuthError('Access denied to this organization', status=403)
    return identity


def require_admin(org_id=None):
    identity = require_org(org_id)
    if not identity.is_admin:
        raise AuthError('Admin role required', status=403)
    return identity


# ── API keys ──────────────────────────────────────────────────────────────────

def generate_api_key():
    return API_KEY_PREFIX + secrets.token_hex(24)


def create_api_key(session, org_id, name, scopes=None):
    from recruitops.models.api_key import ApiKey
    api_key = ApiKey(organization_id=org_id, key=generate_api_key(), name=name, scopes=scopes or [])
    session.add(api_key)
    session.commit()
    logger.info("API key '%s' created for org %s", name, org_id)
    return api_key


def require_api_key(session):
    """Resolve the ApiKey presented as a bearer token. Returns it, or raises AuthError."""
    from sqlalchemy import select
    from recruitops.models.api_key import ApiKey

    token = _bearer_token()
    if not token or not token.startswith(API_KEY_PREFIX):
        raise AuthError('Missing API key')
    api_key = session.execute(select(ApiKey).where(ApiKey.key == token)).scalars().first()
    if api_key is None:
        raise AuthError('Invalid API key')
    api_key.last_used_at = utcnow()
    session.commit()
    return api_key
