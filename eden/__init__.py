"""Eden: an IRC bot with NickServ backed command authorization."""

__version__ = "0.1.0"
