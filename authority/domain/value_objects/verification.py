"""Email verification outcomes."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from authority.domain.entities.email_verification_ticket import EmailVerificationTicket


class VerificationOutcome(str, Enum):
    VERIFIED = "verified"
    ALREADY_VERIFIED = "already_verified"
    TICKET_ISSUED = "ticket_issued"


@dataclass(frozen=True)
class VerificationResult:
    """Successful result of issuing or consuming a verification ticket.

    "Already verified" is a success, not an error.
    """

    outcome: VerificationOutcome
    email: str
    ticket: Optional[EmailVerificationTicket] = None

    @property
    def already_verified(self) -> bool:
        return self.outcome == VerificationOutcome.ALREADY_VERIFIED


@dataclass(frozen=True)
class VerificationStatus:
    verified: bool
    has_pending_ticket: bool
