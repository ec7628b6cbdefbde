""" Python implementation of a handshake and message routing protocol for
    one-way, fire-and-forget transports. This includes connection
    establishment with acknowledgment (SYN / SYN-ACK), per-sender filtering of
    application messages, and a single shared inbound channel fanned out to
    any number of consumers.
"""

# Utility components.

from . import json
from . import weakref

# Submodules used by multiple other components.

from . import config
from . import protocol
from . import transport
from . import channel

# Primary public-facing interfaces.

from . import handshake
from . import router
from . import messenger

from .messenger import Messenger
shutdown = channel.shutdown

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
