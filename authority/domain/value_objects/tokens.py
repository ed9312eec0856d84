"""Token result value objects returned by the authentication flows."""

from dataclasses import dataclass
from typing import NamedTuple

from authority.domain.entities.account import Account
from authority.domain.entities.refresh_session import RefreshSession


@dataclass(frozen=True)
class IssuedRefreshToken:
    """A freshly created refresh session together with its plaintext token.

    The plaintext is only available here; the store keeps its digest.
    """

    token: str
    session: RefreshSession


@dataclass(frozen=True)
class AccessTokenResult:
    access_token: str
    expires_in: int
    token_type: str = "Bearer"


@dataclass(frozen=True)
class AuthResult:
    """Outcome of register, login and social login."""

    account: Account
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "Bearer"
    is_new_account: bool = False


class LinkResult(NamedTuple):
    """Outcome of reconciling a social profile with local accounts.

    Attributes:
        account: The linked, existing or created account.
        is_new: A new account was created.
        linked: An existing LOCAL account was linked to the provider.
    """

    account: Account
    is_new: bool
    linked: bool
