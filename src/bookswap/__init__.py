"""BookSwap API - a peer-to-peer book exchange marketplace.

Users list the books they own, browse other users' listings and trade through
exchange requests.
"""

__version__ = "1.0.0"
