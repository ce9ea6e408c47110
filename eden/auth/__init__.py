"""Sender authorization: nickname cache, NickServ challenge, permission check."""

from .authorizer import Authorizer
from .cache import UserCache
from .nickserv import NickServChallenge

__all__ = ["Authorizer", "NickServChallenge", "UserCache"]
