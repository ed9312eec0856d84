"""Social Profile Value Object.

The normalized shape of a third-party identity, produced by resolving a
provider access token. It is never persisted on its own; it only decides
whether a local account is linked or created.
"""

from dataclasses import dataclass
from typing import Optional

from authority.domain.entities.account import Account, AuthProvider


@dataclass(frozen=True)
class SocialProfile:
    """Normalized third-party profile.

    Attributes:
        provider: The provider that asserted the profile.
        external_id: Identifier assigned by the provider.
        email: Lower-cased email address. Always present.
        email_verified: Whether the provider asserts ownership of the email.
    """

    provider: AuthProvider
    external_id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email_verified: bool = False

    def __post_init__(self):
        if not self.external_id:
            raise ValueError("Social profile requires an external id")
        if not isinstance(self.email, str) or "@" not in self.email:
            raise ValueError("Social profile requires an email address")
        object.__setattr__(self, "email", Account.normalize_email(self.email))
