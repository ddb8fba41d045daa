#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Location: ./teamhub/utils/create_jwt_token.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Issue and inspect bearer tokens for teamhub users.

* **Run as a script** - ``teamhub-token -u 42`` prints a token whose ``sub`` is user 42.
* **Import as a library** - ``create_jwt_token`` for async callers, ``_create_jwt_token`` for sync ones.

Verification is shared with request authentication through
``teamhub.auth.decode_access_token``.

Doctest examples
----------------
>>> import jwt
>>> token = _create_jwt_token({'sub': '7'}, expires_in_minutes=1, secret='secret', algorithm='HS256')
>>> jwt.decode(token, 'secret', algorithms=['HS256'], audience=settings.jwt_audience, issuer=settings.jwt_issuer)['sub']
'7'
>>> import asyncio
>>> t = asyncio.run(create_jwt_token({'sub': '8'}, expires_in_minutes=1, secret='secret', algorithm='HS256'))
>>> jwt.decode(t, 'secret', algorithms=['HS256'], audience=settings.jwt_audience, issuer=settings.jwt_issuer)['sub']
'8'
"""

# Standard
import argparse
import datetime as _dt
import sys
from typing import Any, Dict, Optional, Sequence
import uuid

# Third-Party
import jwt  # PyJWT
import orjson

# First-Party
from teamhub.auth import decode_access_token
from teamhub.config import settings

__all__: Sequence[str] = (
    "create_jwt_token",
    "_create_jwt_token",
)

DEFAULT_EXP_MINUTES: int = settings.token_expiry


def _create_jwt_token(
    data: Dict[str, Any],
    expires_in_minutes: int = DEFAULT_EXP_MINUTES,
    secret: str = "",  # nosec B107 - Optional override; uses config if empty
    algorithm: str = "",
) -> str:
    """Create a signed JWT carrying the standard claims.

    Args:
        data: Payload; ``sub`` should be the user id as a string.
        expires_in_minutes: Lifetime in minutes. 0 disables expiration.
        secret: Signing secret override; ``settings.jwt_secret_key`` when empty.
        algorithm: Algorithm override; ``settings.jwt_algorithm`` when empty.

    Returns:
        str: The signed token.
    """
    secret = secret or settings.jwt_secret_key.get_secret_value()
    algorithm = algorithm or settings.jwt_algorithm

    payload = data.copy()
    now = _dt.datetime.now(_dt.timezone.utc)

    payload["iat"] = int(now.timestamp())
    payload["iss"] = settings.jwt_issuer
    payload["aud"] = settings.jwt_audience
    payload["jti"] = payload.get("jti") or str(uuid.uuid4())

    # Tokens carry the user id as a string subject
    if "sub" in payload:
        payload["sub"] = str(payload["sub"])

    if payload.get("exp", 0) > 0:
        pass
    elif expires_in_minutes > 0:
        payload["exp"] = int((now + _dt.timedelta(minutes=expires_in_minutes)).timestamp())
    else:
        print("WARNING: Creating token without expiration.", file=sys.stderr)

    return jwt.encode(payload, secret, algorithm=algorithm)


async def create_jwt_token(
    data: Dict[str, Any],
    expires_in_minutes: int = DEFAULT_EXP_MINUTES,
    *,
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
) -> str:
    """Async facade over :func:`_create_jwt_token`.

    Args:
        data: Payload to encode.
        expires_in_minutes: Lifetime in minutes. 0 disables expiration.
        secret: Signing secret override.
        algorithm: Algorithm override.

    Returns:
        str: The signed token.
    """
    return _create_jwt_token(data, expires_in_minutes, secret or "", algorithm or "")


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Arguments; ``sys.argv[1:]`` when None.

    Returns:
        argparse.Namespace: Parsed arguments.

    Examples:
        >>> args = _parse_args(['-u', '42', '-e', '60'])
        >>> args.user_id, args.exp
        (42, 60)
    """
    p = argparse.ArgumentParser(
        description="Generate or inspect teamhub bearer tokens.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    group = p.add_mutually_exclusive_group()
    group.add_argument("-u", "--user-id", type=int, help="User id placed in the sub claim.")
    group.add_argument("-d", "--data", help="Raw JSON payload or comma-separated key=value pairs.")
    group.add_argument("--decode", metavar="TOKEN", help="Token string to verify against the configured secret and print.")

    p.add_argument("-e", "--exp", type=int, default=DEFAULT_EXP_MINUTES, help="Expiration in minutes (0 disables the exp claim).")
    p.add_argument("-s", "--secret", default="", help="Secret key for signing. If not provided, uses JWT_SECRET_KEY from config.")
    p.add_argument("--algo", default="", help="Signing algorithm. If not provided, uses JWT_ALGORITHM from config.")

    return p.parse_args(argv)


def _payload_from_cli(args: argparse.Namespace) -> Dict[str, Any]:
    """Build the token payload from parsed arguments.

    Args:
        args: Parsed arguments with ``user_id`` and ``data``.

    Returns:
        Dict[str, Any]: Payload to encode.

    Raises:
        ValueError: If neither a user id nor data is given, or data holds a pair without ``=``.

    Examples:
        >>> from argparse import Namespace
        >>> _payload_from_cli(Namespace(user_id=42, data=None))
        {'sub': '42'}
        >>> _payload_from_cli(Namespace(user_id=None, data='{"sub": "3", "scope": "teams"}'))
        {'sub': '3', 'scope': 'teams'}
        >>> _payload_from_cli(Namespace(user_id=None, data='sub=5,scope=teams'))
        {'sub': '5', 'scope': 'teams'}
    """
    if args.user_id is not None:
        return {"sub": str(args.user_id)}

    if args.data is not None:
        try:
            return orjson.loads(args.data)
        except orjson.JSONDecodeError:
            payload: Dict[str, Any] = {}
            for pair in (kv.strip() for kv in args.data.split(",") if kv.strip()):
                if "=" not in pair:
                    raise ValueError(f"Invalid key=value pair: '{pair}'")
                k, v = pair.split("=", 1)
                payload[k.strip()] = v.strip()
            return payload

    raise ValueError("Either --user-id or --data is required")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the ``teamhub-token`` command.

    Args:
        argv: Arguments; ``sys.argv[1:]`` when None.
    """
    args = _parse_args(argv)

    if args.decode:
        decoded = decode_access_token(args.decode)
        sys.stdout.write(orjson.dumps(decoded, default=str, option=orjson.OPT_INDENT_2).decode())
        sys.stdout.write("\n")
        return

    try:
        payload = _payload_from_cli(args)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    print(_create_jwt_token(payload, args.exp, args.secret, args.algo))


if __name__ == "__main__":
    main()
