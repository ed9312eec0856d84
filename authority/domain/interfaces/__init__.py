from .repositories import (
    IAccountRepository,
    IRefreshSessionRepository,
    IVerificationTicketRepository,
)
from .services import ICredentialHasher, IEventBus, INotifier, ISocialProfileProvider
from .unit_of_work import IUnitOfWork, UnitOfWorkFactory, join_or_begin

__all__ = [
    "IAccountRepository",
    "IRefreshSessionRepository",
    "IVerificationTicketRepository",
    "ICredentialHasher",
    "IEventBus",
    "INotifier",
    "ISocialProfileProvider",
    "IUnitOfWork",
    "UnitOfWorkFactory",
    "join_or_begin",
]
