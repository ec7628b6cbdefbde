import json
import queue
import time

import pytest

import postmessenger
from postmessenger.transport import local
from postmessenger.transport.base import InboundEvent


class Recorder(local.Port):
    """ A local port that remembers everything sent through it, and counts
        how many times anyone registered a listener. Receivers that are not
        local ports are accepted, since the protocol treats endpoints as
        opaque; messages to them go nowhere.
    """

    def __init__(self, origin='local'):
        local.Port.__init__(self, origin)
        self.sent = list()
        self.listeners_added = 0


    def add_listener(self, callback):
        self.listeners_added += 1
        local.Port.add_listener(self, callback)


    def post_message(self, receiver, data, target_origin):
        self.sent.append((time.monotonic(), receiver, data, target_origin))

        if isinstance(receiver, local.Port):
            local.Port.post_message(self, receiver, data, target_origin)


    def inject(self, data, source, origin='local'):
        """ Simulate the arrival of *data* sent by *source*.
        """

        self._deliver(InboundEvent(data, source, origin), '*')


    def sent_to(self, receiver, type=None):
        """ Return the (timestamp, envelope) pairs sent to *receiver*,
            optionally only those of the given *type*.
        """

        matches = list()

        for timestamp, target, data, target_origin in self.sent:
            if target is not receiver:
                continue

            envelope = json.loads(data)
            if type is None or envelope['type'] == type:
                matches.append((timestamp, envelope))

        return matches


# end of class Recorder



class Collector:
    """ A channel subscriber that stashes every event in a queue.
    """

    def __init__(self):
        self.queue = queue.SimpleQueue()


    def __call__(self, event):
        self.queue.put(event)


    def get(self, timeout=1):
        return self.queue.get(timeout=timeout)


    def drain(self, wait=0.1):
        time.sleep(wait)

        events = list()
        while True:
            try:
                events.append(self.queue.get(block=False))
            except queue.Empty:
                break

        return events


# end of class Collector



@pytest.fixture(autouse=True)
def shutdown_channels():

    yield

    postmessenger.shutdown()


@pytest.fixture
def recorder():

    port = Recorder()
    yield port
    port.close()


@pytest.fixture
def collector():
    return Collector()


@pytest.fixture
def ports():
    """ Three in-process execution contexts sharing an origin.
    """

    created = (local.Port(), local.Port(), local.Port())
    yield created

    for port in created:
        port.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
