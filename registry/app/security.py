"""
Authorization credential forwarding.

The incoming request's Authorization header is handed, unmodified, to the
remote DPP validator. When the request carries no credential, nothing is
forwarded.
"""

from typing import Annotated, Dict, Optional

from fastapi import Header

AUTHORIZATION = "Authorization"


def get_authorization(
    authorization: Annotated[
        Optional[str],
        Header(description="Credential forwarded to the DPP validator"),
    ] = None,
) -> Optional[str]:
    """Extract the caller's Authorization header, if any."""
    return authorization


def forwarded_headers(authorization: Optional[str]) -> Dict[str, str]:
    if authorization is None:
        return {}
    return {AUTHORIZATION: authorization}
