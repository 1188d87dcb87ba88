"""Challenge-response login performed once per connection.

The client greets the server, receives a random pad, and answers with its
user name and a token derived from the password and the pad::

    password_digest = md5(user + password)
    token           = md5(password_digest + pad)

Both digests travel as lowercase hex strings. The server confirms a good
token with a reply starting ``"et bonjour a vous"``.
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any, Callable

from .errors import AuthenticationError
from .framing import ENCODING
from .messages import HELLO, WELCOME_PREFIX

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

DigestFactory = Callable[[], Any]


def credential_hash(
    first: str, second: str, digest: DigestFactory = hashlib.md5
) -> str:
    """Hash two strings with a single digest state.

    The state is seeded with ``first`` and finalized over ``second``, so the
    result equals the digest of the two strings concatenated.
    """
    state = digest()
    state.update(first.encode(ENCODING))
    state.update(second.encode(ENCODING))
    return state.digest().hex()


def login_token(
    user: str, password: str, pad: str, digest: DigestFactory = hashlib.md5
) -> str:
    """Derive the token answering the server's pad."""
    password_digest = credential_hash(user, password, digest)
    return credential_hash(password_digest, pad, digest)


def authenticate(
    session: Session,
    user: str,
    password: str,
    digest: DigestFactory = hashlib.md5,
) -> str:
    """Run the login exchange on a fresh session.

    Returns:
        The server's welcome reply.

    Raises:
        AuthenticationError: If the server does not accept the token.
    """
    pad = session.transact(HELLO)
    token = login_token(user, password, pad, digest)
    reply = session.transact(f"{user} {token}")
    if not reply.startswith(WELCOME_PREFIX):
        raise AuthenticationError(f"Server refused login for {user!r} ({reply!r})")

    logger.info("Authenticated as %s", user)
    return reply
