"""
tradeflow_authz.__main__

Operator diagnostic entrypoint: `python -m tradeflow_authz --token <access token>`.

Responsibilities:
- Load settings and build the engine.
- Resolve the authorization view for the given session token.
- Print the view (and display profile) as JSON.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

from tradeflow_authz.bootstrap import create_engine, create_http_client
from tradeflow_authz.errors import SessionTokenError
from tradeflow_authz.settings import Settings, get_settings


async def _inspect(settings: Settings, token: str) -> dict[str, object]:
    async with create_http_client(settings) as http:
        engine = create_engine(settings=settings, http=http)
        identity = engine.session.sign_in(token)
        await engine.facade.start()
        try:
            view = await engine.facade.get_authorization()
            profile = await engine.profiles.resolve(identity)
        finally:
            engine.facade.close()

    out = view.as_dict()
    out["profile"] = (
        {"full_name": profile.full_name, "email": profile.email, "initials": profile.initials}
        if profile
        else None
    )
    return out


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tradeflow-authz",
        description="Resolve and print the authorization view for a session access token.",
    )
    parser.add_argument(
        "--token",
        default=os.environ.get("TRADEFLOW_ACCESS_TOKEN"),
        help="session access token (default: $TRADEFLOW_ACCESS_TOKEN)",
    )
    args = parser.parse_args(argv)
    if not args.token:
        parser.error("an access token is required")

    try:
        result = asyncio.run(_inspect(get_settings(), args.token))
    except SessionTokenError as e:
        print(f"invalid access token: {e}", file=sys.stderr)
        return 1

    json.dump(result, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())


# --- Module Notes -----------------------------------------------------------
# A degraded view is printed, not treated as an error: its "degraded" field names the
# resolvers that fell back, which is what operators need to see.
