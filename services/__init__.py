"""Role services exchanging values through the bulletin board."""

from .authority import Authority
from .bulletin_board import BulletinBoard
from .voting_client import VotingClient

__all__ = ['Authority', 'BulletinBoard', 'VotingClient']
