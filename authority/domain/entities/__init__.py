from authority.domain.entities.account import Account, AuthProvider, Role
from authority.domain.entities.email_verification_ticket import EmailVerificationTicket
from authority.domain.entities.refresh_session import RefreshSession

__all__ = ["Account", "AuthProvider", "Role", "RefreshSession", "EmailVerificationTicket"]
