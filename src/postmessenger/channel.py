""" The shared inbound channel. A :class:`Channel` owns the one and only
    listener registration on a transport's inbound event source, decodes
    each arriving message, and fans the result out to any number of
    subscribers. It also runs the timers used by the handshake.

    All subscriber callbacks and timer callbacks are invoked from a single
    background thread per channel, one at a time, in the order the underlying
    events arrived or the timers came due. Anything running on that thread
    can safely manipulate state shared with other callbacks on the same
    channel without locking.

    Use :func:`shared` to retrieve the channel for a given transport; there
    is exactly one active channel per transport in a given process.
"""

import atexit
import functools
import heapq
import itertools
import queue
import threading
import time
import traceback

from .protocol import wire
from .protocol.message import Event


_stop = object()
_ids = itertools.count()


class Subscription:
    """ A read-only view attached to a :class:`Channel`. The *callback* is
        invoked with every :class:`postmessenger.protocol.message.Event`
        dispatched while the subscription is attached. The optional
        *on_close* callable is invoked exactly once when the subscription is
        closed, either directly or because the channel shut down.
    """

    def __init__(self, channel, callback, on_close=None):

        self.id = next(_ids)
        self.channel = channel
        self.callback = callback
        self.on_close = on_close
        self.closed = False
        self._lock = threading.Lock()


    def __enter__(self):
        return self


    def __exit__(self, *exc_info):
        self.close()


    def close(self):
        """ Detach this view from the channel. No further events will be
            delivered once this returns, other than one already in progress
            on the dispatch thread. Calling :func:`close` more than once is
            harmless.
        """

        self.channel.unsubscribe(self)

    cancel = close


    def _close(self):

        with self._lock:
            if self.closed:
                return
            self.closed = True

        on_close = self.on_close
        if on_close is None:
            return

        try:
            on_close()
        except Exception:
            print(traceback.format_exc())


# end of class Subscription



class Timer:
    """ A scheduled invocation of *callback* on the dispatch thread of a
        :class:`Channel`. If a *period* is specified the callback is invoked
        repeatedly until the timer is cancelled. The cadence is fixed: each
        deadline is the previous deadline plus the period, regardless of how
        long the callback took to run.
    """

    def __init__(self, callback, delay=0, period=None):

        self.callback = callback
        self.period = period
        self.deadline = time.monotonic() + delay
        self.cancelled = False


    def cancel(self):
        """ Prevent any further invocation of the callback. This is safe to
            call from any thread, and from within the callback itself.
        """

        self.cancelled = True


    def _fire(self):
        """ Invoke the callback. Return True if the timer should be
            rescheduled.
        """

        try:
            self.callback()
        except Exception:
            print(traceback.format_exc())

        if self.period is None or self.cancelled:
            return False

        self.deadline += self.period
        return True


# end of class Timer



class Channel:
    """ The shared broadcast stream for one transport. Nothing happens until
        the channel is first used: at that point a single listener is
        registered with the transport, and the dispatch thread is started.
        Neither step is ever repeated for the same :class:`Channel` instance.

        Inbound data is decoded with :func:`postmessenger.protocol.wire.unpack`.
        Malformed data is dropped, with a diagnostic printed and the
        ``dropped`` counter incremented; it has no effect on any other
        message or subscriber.

        :ivar transport: The :class:`postmessenger.transport.base.Transport`
            whose inbound events feed this channel.
        :ivar dropped: The number of inbound messages dropped because they
            could not be decoded.
    """

    def __init__(self, transport):

        self.transport = transport
        self.closed = False
        self.started = False
        self.dropped = 0
        self.thread = None

        self._lock = threading.Lock()
        self._queue = queue.SimpleQueue()
        self._subscribers = dict()
        self._timers = list()
        self._sequence = itertools.count()


    def __repr__(self):
        return 'Channel(%r, closed=%r)' % (self.transport, self.closed)


    def subscribe(self, callback, on_close=None):
        """ Attach a new :class:`Subscription` invoking *callback* for each
            dispatched event. Events dispatched before this call are not
            replayed. If the channel is already shut down the subscription is
            returned in a closed state, and *on_close* will already have been
            invoked.
        """

        if callable(callback):
            pass
        else:
            raise TypeError('callback must be callable')

        subscription = Subscription(self, callback, on_close)

        with self._lock:
            if self.closed:
                closed = True
            else:
                closed = False
                self._subscribers[subscription.id] = subscription

        if closed:
            subscription._close()
        else:
            self._start()

        return subscription


    def unsubscribe(self, subscription):

        with self._lock:
            self._subscribers.pop(subscription.id, None)

        subscription._close()


    def discard(self, subscription):
        """ Close *subscription* from the dispatch thread, some time soon.
            Unlike :func:`unsubscribe` this takes no lock, and is safe to
            call from a garbage collection finalizer on any thread.
        """

        self._queue.put(functools.partial(self.unsubscribe, subscription))


    def call_soon(self, callback):
        """ Invoke *callback* on the dispatch thread as soon as possible,
            after anything already queued. Returns a :class:`Timer`.
        """

        return self.call_later(0, callback)


    def call_later(self, delay, callback):
        """ Invoke *callback* on the dispatch thread after *delay* seconds.
            Returns a :class:`Timer`.
        """

        timer = Timer(callback, delay)
        self.schedule(timer)
        return timer


    def call_every(self, period, callback, delay=0):
        """ Invoke *callback* on the dispatch thread every *period* seconds,
            starting after *delay* seconds. Returns a :class:`Timer`; the
            calls continue until it is cancelled or the channel shuts down.
        """

        period = float(period)
        if period <= 0:
            raise ValueError('the period must be positive: ' + repr(period))

        timer = Timer(callback, delay, period)
        self.schedule(timer)
        return timer


    def shutdown(self):
        """ Stop the channel: the transport listener is removed, every
            subscription is closed, every timer is cancelled, and the
            dispatch thread exits. Once this returns no further callbacks
            will be invoked, unless it was called from a callback running on
            the dispatch thread; in that case the calling callback is the
            last. Repeated calls are no-ops.
        """

        with self._lock:
            if self.closed:
                return

            self.closed = True
            started = self.started
            subscriptions = tuple(self._subscribers.values())
            self._subscribers.clear()

        with _channels_lock:
            key = id(self.transport)
            if _channels.get(key) is self:
                del _channels[key]

        if started:
            self.transport.remove_listener(self._incoming)

        for subscription in subscriptions:
            subscription._close()

        if started:
            self._queue.put(_stop)
            if threading.current_thread() is not self.thread:
                self.thread.join()


    def _start(self):

        with self._lock:
            if self.started or self.closed:
                return
            self.started = True

            self.thread = threading.Thread(target=self.run)
            self.thread.daemon = True

        self.transport.add_listener(self._incoming)
        self.thread.start()


    def schedule(self, timer):
        """ Arrange for an existing :class:`Timer` to run on the dispatch
            thread. If the channel is shut down the timer is cancelled.
        """

        if self.closed:
            timer.cancel()
            return

        self._start()
        self._queue.put(functools.partial(self._push, timer))


    def _push(self, timer):
        entry = (timer.deadline, next(self._sequence), timer)
        heapq.heappush(self._timers, entry)


    def _incoming(self, event):
        """ Invoked by the transport, on whatever thread it likes, for each
            arriving :class:`postmessenger.transport.base.InboundEvent`.
        """

        self._queue.put(event)


    def _dispatch(self, raw):

        try:
            envelope = wire.unpack(raw.data)
        except wire.DecodeError as e:
            self.dropped += 1
            print('dropping malformed message from %r: %s' % (raw.source, e))
            return

        event = Event(envelope, raw.source, raw.origin)
        self.propagate(event)


    def propagate(self, event):
        """ Invoke the callback of every attached subscription with the
            supplied *event*. The set of subscriptions is captured before
            the first callback is invoked; subscriptions attached by a
            callback see the next event, not this one.
        """

        with self._lock:
            subscriptions = tuple(self._subscribers.values())

        for subscription in subscriptions:
            if subscription.closed:
                continue

            try:
                subscription.callback(event)
            except Exception:
                print(traceback.format_exc())
                continue


    def _run_timers(self):

        timers = self._timers
        now = time.monotonic()

        while timers and self.closed == False:
            deadline, sequence, timer = timers[0]

            if deadline > now:
                break

            heapq.heappop(timers)

            if timer.cancelled:
                continue

            if timer._fire():
                self._push(timer)


    def _timeout(self):

        if self._timers:
            deadline = self._timers[0][0]
            return max(0, deadline - time.monotonic())

        return None


    def run(self):

        while self.closed == False:
            try:
                item = self._queue.get(timeout=self._timeout())
            except queue.Empty:
                item = None

            if item is _stop or self.closed:
                break

            if item is None:
                pass
            elif callable(item):
                try:
                    item()
                except Exception:
                    print(traceback.format_exc())
            else:
                try:
                    self._dispatch(item)
                except Exception:
                    self.dropped += 1
                    print(traceback.format_exc())

            self._run_timers()


        # Loop exited, nothing further will fire.

        for deadline, sequence, timer in self._timers:
            timer.cancel()

        self._timers = list()


# end of class Channel



_channels = dict()
_channels_lock = threading.Lock()


def shared(transport):
    """ Factory function for the :class:`Channel` associated with the given
        *transport*. Repeated calls return the same instance until that
        instance is shut down, after which a fresh one is created on demand.
    """

    key = id(transport)

    with _channels_lock:
        try:
            channel = _channels[key]
        except KeyError:
            channel = Channel(transport)
            _channels[key] = channel

    return channel



def shutdown():
    """ Shut down every channel created by :func:`shared`.
    """

    with _channels_lock:
        channels = tuple(_channels.values())

    for channel in channels:
        channel.shutdown()


atexit.register(shutdown)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
