"""Protocol constants.

Keep these in one place to avoid stringly-typed message handling.
"""

# Handshake types.
SYN = "SYN"
SYN_ACK = "SYN-ACK"

# Data types.
APP = "APP"

HANDSHAKE = frozenset((SYN, SYN_ACK))
DATA = frozenset((APP,))
TYPES = HANDSHAKE | DATA
