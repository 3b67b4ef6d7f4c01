"""Which users own which business domains."""
from .repository import DomainMembershipRepository, DomainMembershipRepositoryProtocol
