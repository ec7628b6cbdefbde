""" The SYN / SYN-ACK handshake. A remote endpoint may still be loading, or
    may not be listening at all; since the underlying transport never says
    whether a message arrived, the handshake is how one side learns that the
    other is ready for application messages.

    There are two roles. The passive :class:`Responder` answers every SYN
    with a SYN-ACK, unconditionally. The active role is
    :func:`Coordinator.connect`, which sends SYN on a fixed cadence until a
    SYN-ACK comes back or the retry budget is spent.
"""

import threading
import traceback

from . import config
from .channel import Timer
from .protocol import fields


IDLE = 'idle'
PENDING = 'pending'
ESTABLISHED = 'established'
EXHAUSTED = 'exhausted'
DISPOSED = 'disposed'


class Responder:
    """ Reply to any SYN arriving on the *channel* with a SYN-ACK addressed
        to the endpoint that sent it. This happens regardless of whether a
        local connection attempt toward that endpoint exists. Only one
        :class:`Responder` should be attached to a given channel, otherwise
        each SYN would be acknowledged more than once; use :func:`responder`
        to enforce that.
    """

    def __init__(self, channel, sender):

        self.channel = channel
        self.sender = sender
        self.subscription = channel.subscribe(self._incoming)


    def _incoming(self, event):

        if event.type == fields.SYN:
            self.sender.send_message(event.source, fields.SYN_ACK)


    def close(self):
        self.subscription.close()


# end of class Responder



_responders = dict()
_responders_lock = threading.Lock()


def responder(channel, sender):
    """ Factory function for the :class:`Responder` attached to *channel*.
        The first caller's *sender* is the one used to send SYN-ACK replies.
    """

    with _responders_lock:
        for stale in [known for known in _responders if known.closed]:
            del _responders[stale]

        try:
            instance = _responders[channel]
        except KeyError:
            instance = Responder(channel, sender)
            _responders[channel] = instance

    return instance



class Attempt:
    """ A single outbound connection attempt, as returned by
        :func:`Coordinator.connect`. The attempt sends a SYN to the
        *endpoint* immediately, then again every *period* seconds, for a
        total of 1 + *max_retries* SYN messages. The first SYN-ACK from the
        *endpoint* establishes the connection, stops the retries, and
        resolves the attempt; this happens exactly once.

        If every SYN goes unanswered the retries stop and the ``state``
        becomes :data:`EXHAUSTED`. No exception is raised in that case: the
        attempt simply never resolves, and :func:`wait` returns False after
        its timeout. The attempt does keep watching for a SYN-ACK, so a late
        reply will still resolve it, until :func:`dispose` is called.

        :ivar endpoint: The endpoint being connected to.
        :ivar retries: The number of SYN messages sent so far.
        :ivar established: True once a SYN-ACK has been received.
        :ivar state: One of :data:`IDLE`, :data:`PENDING`,
            :data:`ESTABLISHED`, :data:`EXHAUSTED`, or :data:`DISPOSED`.
    """

    def __init__(self, channel, sender, endpoint, period, max_retries):

        self.channel = channel
        self.sender = sender
        self.endpoint = endpoint
        self.period = period
        self.max_retries = max_retries

        self.retries = 0
        self.established = False
        self.state = IDLE

        self.callbacks = list()
        self.subscription = None
        self.timer = None

        self._lock = threading.Lock()
        self._resolved = threading.Event()


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.dispose()


    def __repr__(self):
        return 'Attempt(%r, state=%r, retries=%d)' % (self.endpoint, self.state, self.retries)


    def start(self):
        """ Begin the attempt. The SYN-ACK watch is attached before the
            first SYN goes out, so even an immediate reply is seen.
        """

        with self._lock:
            if self.state != IDLE:
                return
            self.state = PENDING

        self.subscription = self.channel.subscribe(self._incoming, self._closed)
        self.timer = Timer(self._syn, 0, self.period)

        if self.subscription.closed:
            # The channel is shut down; nothing will ever be sent.
            with self._lock:
                self.state = DISPOSED
            self.timer.cancel()
            return

        self.channel.schedule(self.timer)

        # A dispose() on another thread may have raced the setup above.

        if self.state == DISPOSED:
            self._release()


    def add_callback(self, callback):
        """ Register a callback to be invoked with this :class:`Attempt` as
            its sole argument when the connection is established. If it is
            already established the callback is invoked immediately. The
            attempt holds on to the callback until it is established or
            disposed, so a lambda is fine here.
        """

        if callable(callback):
            pass
        else:
            raise TypeError('the registered callback must be callable')

        with self._lock:
            established = self.established
            if established == False:
                self.callbacks.append(callback)

        if established:
            callback(self)


    def dispose(self):
        """ Abandon the attempt: stop sending SYN, and stop watching for a
            SYN-ACK. Disposing of an established or already disposed
            attempt has no effect.
        """

        with self._lock:
            if self.state == ESTABLISHED or self.state == DISPOSED:
                return
            self.state = DISPOSED
            self.callbacks = list()

        self._release()


    cancel = dispose


    def poll(self):
        """ Return True if the connection has been established, otherwise
            return False.
        """

        return self._resolved.is_set()


    def wait(self, timeout=None):
        """ Block until the connection is established. This is a wrapper to
            a :class:`threading.Event` instance; it returns True once the
            connection is established, otherwise it returns False after the
            requested *timeout*. If the *timeout* argument is None it will
            block indefinitely, which for an unanswered attempt is forever.
        """

        return self._resolved.wait(timeout)


    def _incoming(self, event):

        if event.is_from(self.endpoint, fields.SYN_ACK):
            pass
        else:
            return

        with self._lock:
            if self.state == PENDING or self.state == EXHAUSTED:
                pass
            else:
                return

            self.established = True
            self.state = ESTABLISHED

        self._release()
        self._resolved.set()

        callbacks = self.callbacks
        self.callbacks = list()

        for callback in callbacks:
            try:
                callback(self)
            except Exception:
                print(traceback.format_exc())


    def _closed(self):
        """ The SYN-ACK watch went away, either because the attempt released
            it or because the channel shut down.
        """

        with self._lock:
            if self.state == PENDING or self.state == EXHAUSTED:
                self.state = DISPOSED
                self.callbacks = list()

        timer = self.timer
        if timer is not None:
            timer.cancel()


    def _release(self):

        timer = self.timer
        if timer is not None:
            timer.cancel()

        subscription = self.subscription
        if subscription is not None:
            subscription.close()


    def _syn(self):
        """ Timer callback, invoked on the channel's dispatch thread once
            per period.
        """

        if self.state != PENDING:
            self.timer.cancel()
            return

        if self.retries > self.max_retries:
            # The final SYN has had a full period to be answered. Stop the
            # timer, but keep watching for a late SYN-ACK.
            self.timer.cancel()
            with self._lock:
                if self.state == PENDING:
                    self.state = EXHAUSTED
            return

        self.retries += 1
        self.sender.send_message(self.endpoint, fields.SYN)


# end of class Attempt



class Coordinator:
    """ Drive outbound connection attempts over a shared *channel*, sending
        via *sender*. Instantiating a :class:`Coordinator` also ensures the
        channel has its passive :class:`Responder`.
    """

    def __init__(self, channel, sender, configuration=None):

        if configuration is None:
            configuration = config.default

        self.channel = channel
        self.sender = sender
        self.config = configuration
        self.responder = responder(channel, sender)


    def connect(self, endpoint, retry_period=None, max_retries=None):
        """ Start a new connection :class:`Attempt` toward *endpoint* and
            return it. The *retry_period*, in seconds, and the *max_retries*
            default to the configured values. Attempts are independent:
            connecting twice to the same endpoint drives two retry sequences.
        """

        if retry_period is None:
            retry_period = self.config.syn_retry_period

        if max_retries is None:
            max_retries = self.config.max_syn_retry

        retry_period = float(retry_period)
        if retry_period <= 0:
            raise ValueError('retry_period must be positive: ' + repr(retry_period))

        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise ValueError('max_retries must be a non-negative integer: ' + repr(max_retries))

        attempt = Attempt(self.channel, self.sender, endpoint, retry_period, max_retries)
        attempt.start()
        return attempt


# end of class Coordinator


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
