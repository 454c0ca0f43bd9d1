"""
WealthDesk — Identity

Authentication itself belongs to the hosted identity provider. This module
only resolves a bearer token to the advisor it belongs to.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from src.models.domain import Principal


class IdentityProvider(ABC):

    @abstractmethod
    def resolve(self, token: str) -> Optional[Principal]:
        """The principal for ``token``, or None if it is not recognised."""


class StaticTokenIdentity(IdentityProvider):
    """Fixed token -> advisor id table, configured through API_TOKENS."""

    def __init__(self, tokens: Dict[str, str]):
        self._tokens = dict(tokens)

    def resolve(self, token):
        advisor_id = self._tokens.get(token)
        return Principal(advisor_id=advisor_id) if advisor_id else None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
