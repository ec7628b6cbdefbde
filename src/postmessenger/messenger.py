""" Implementation of the :class:`Messenger`, which is intended to be the
    principal entry point for applications exchanging messages with another
    execution context.
"""

from . import channel
from . import config
from . import handshake
from . import router
from .transport.session import Sender


class Messenger:
    """ Message broker between this execution context and others reachable
        over the one-way *transport*. The *configuration* defaults to
        :data:`postmessenger.config.default`.

        A typical exchange connects first, waiting for the other side to
        acknowledge, and then sends::

            messenger = postmessenger.Messenger(port)
            attempt = messenger.connect(child)
            if attempt.wait(5):
                messenger.send(child, 'Hello my child!')

        while the other side listens::

            for event in messenger.listen(parent):
                print(event.payload)

        Every :class:`Messenger` built on the same *transport* shares a single
        :class:`postmessenger.channel.Channel`; shutting down one shuts down
        all of them.
    """

    def __init__(self, transport, configuration=None):

        if configuration is None:
            configuration = config.default

        self.config = configuration
        self.transport = transport

        self.channel = channel.shared(transport)
        self.sender = Sender(transport, configuration)
        self.coordinator = handshake.Coordinator(self.channel, self.sender, configuration)
        self.router = router.Router(self.channel, self.sender)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.shutdown()


    def connect(self, receiver, retry_period=None, max_retries=None):
        """ Try to establish a connection with *receiver* by sending a SYN,
            retrying every *retry_period* seconds up to *max_retries* times
            until the receiver answers with a SYN-ACK. Returns a
            :class:`postmessenger.handshake.Attempt`; see
            :func:`postmessenger.handshake.Coordinator.connect`.
        """

        return self.coordinator.connect(receiver, retry_period, max_retries)


    def listen(self, sender):
        """ Return a :class:`postmessenger.router.Listener` yielding APP
            messages from *sender*. Handshake messages, and messages not sent
            by this protocol, are never yielded.
        """

        return self.router.listen(sender)


    def send(self, receiver, payload=None, target_origin=None):
        """ Send an APP message with the optional *payload* to *receiver*.
        """

        self.router.send(receiver, payload, target_origin)


    def shutdown(self):
        """ Shut down the shared channel: listeners stop, pending connection
            attempts stop retrying. Safe to call more than once.
        """

        self.channel.shutdown()


# end of class Messenger


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
