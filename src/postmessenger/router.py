""" Routing of application messages to interested consumers. Every
    :func:`Router.listen` call builds a new, independent view of the shared
    channel, filtered down to APP messages from a single sender.
"""

import functools
import queue

from . import weakref
from .protocol import fields


_end = object()


class Listener:
    """ An unbounded, blocking iterator of
        :class:`postmessenger.protocol.message.Event` instances: every APP
        message sent by *endpoint* that arrives after the :class:`Listener`
        was created, in arrival order. Iteration never ends on its own; it
        ends when :func:`close` is called, or when the channel shuts down.

        Events are queued per listener until they are consumed, so a slow
        consumer never holds up the channel or any other listener. The
        channel only holds a weak reference to the listener: one that is
        dropped without being closed is detached once it is collected, and
        stops queueing events nobody will read.
    """

    def __init__(self, channel, endpoint):

        self.endpoint = endpoint
        self._queue = queue.SimpleQueue()

        reference = weakref.ref(self)
        incoming = functools.partial(_incoming, reference)
        closed = functools.partial(_closed, reference)

        self.subscription = channel.subscribe(incoming, closed)
        self._finalizer = weakref.finalize(self, channel.discard, self.subscription)


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def __iter__(self):
        return self


    def __next__(self):

        event = self.get()

        if event is None:
            raise StopIteration

        return event


    @property
    def closed(self):
        return self.subscription.closed


    def close(self):
        """ Detach from the channel. Events already queued are discarded,
            and iteration stops.
        """

        self.subscription.close()


    def get(self, timeout=None):
        """ Return the next event, blocking for up to *timeout* seconds, or
            forever if *timeout* is None. A :class:`queue.Empty` exception is
            raised if the timeout expires. None is returned once the
            listener is closed.
        """

        if self.subscription.closed:
            return None

        event = self._queue.get(timeout=timeout)

        if event is _end:
            # Leave the marker in place for any other consumer.
            self._queue.put(_end)
            return None

        return event


    def _closed(self):
        self._queue.put(_end)


    def _incoming(self, event):

        if event.is_from(self.endpoint, fields.APP):
            self._queue.put(event)


# end of class Listener



# The channel calls these rather than the bound methods, so that it never
# holds a strong reference to a Listener.

def _incoming(reference, event):

    listener = reference()
    if listener is not None:
        listener._incoming(event)


def _closed(reference):

    listener = reference()
    if listener is not None:
        listener._closed()



class Router:
    """ Expose the application-level traffic on a shared *channel*, and send
        application messages via *sender*.
    """

    def __init__(self, channel, sender):

        self.channel = channel
        self.sender = sender


    def listen(self, endpoint):
        """ Return a new :class:`Listener` for APP messages from *endpoint*.
            Any number of listeners may be active at once, for the same or
            different endpoints; each sees every matching message.
        """

        return Listener(self.channel, endpoint)


    def send(self, receiver, payload=None, target_origin=None):
        """ Send an APP message carrying *payload* to *receiver*. There is
            no confirmation of delivery; use a handshake first if the
            receiver might not be listening yet.
        """

        self.sender.send_message(receiver, fields.APP, payload, target_origin)


# end of class Router


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
