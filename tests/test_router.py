import gc
import queue
import threading
import time
import weakref
import pytest

import postmessenger
from postmessenger.transport import local


def test_type_filtering(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)
    listener = messenger.listen(remote)

    recorder.inject('{"type": "SYN"}', remote)
    recorder.inject('{"type": "SYN-ACK"}', remote)
    recorder.inject('{"type": "PING", "payload": 1}', remote)
    recorder.inject('"just a string"', remote)
    recorder.inject('{"type": "APP", "payload": {"msg": "x"}}', remote)

    event = listener.get(timeout=1)
    assert event.type == 'APP'
    assert event.payload == {'msg': 'x'}
    assert event.source is remote

    with pytest.raises(queue.Empty):
        listener.get(timeout=0.1)


def test_app_without_payload(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)
    listener = messenger.listen(remote)

    recorder.inject('{"type": "APP"}', remote)

    event = listener.get(timeout=1)
    assert event.payload is None


def test_sender_isolation(recorder):

    first = object()
    second = object()

    messenger = postmessenger.Messenger(recorder)
    from_first = messenger.listen(first)
    from_second = messenger.listen(second)

    for number in range(4):
        recorder.inject('{"type": "APP", "payload": %d}' % (number), first)
        recorder.inject('{"type": "APP", "payload": %d}' % (number + 10), second)

    received = [from_first.get(timeout=1).payload for number in range(4)]
    assert received == [0, 1, 2, 3]

    received = [from_second.get(timeout=1).payload for number in range(4)]
    assert received == [10, 11, 12, 13]

    with pytest.raises(queue.Empty):
        from_first.get(timeout=0.05)


def test_multiple_listeners(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)

    one = messenger.listen(remote)
    two = messenger.listen(remote)

    recorder.inject('{"type": "APP", "payload": "both"}', remote)

    assert one.get(timeout=1).payload == 'both'
    assert two.get(timeout=1).payload == 'both'

    # Closing one listener leaves the other alone.

    one.close()
    recorder.inject('{"type": "APP", "payload": "again"}', remote)

    assert one.get(timeout=0.1) is None
    assert two.get(timeout=1).payload == 'again'


def test_listener_starts_empty(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)

    early = messenger.listen(remote)
    recorder.inject('{"type": "APP", "payload": 1}', remote)
    assert early.get(timeout=1).payload == 1

    late = messenger.listen(remote)
    recorder.inject('{"type": "APP", "payload": 2}', remote)

    assert late.get(timeout=1).payload == 2

    with pytest.raises(queue.Empty):
        late.get(timeout=0.05)


def test_discarded_listener(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)
    shared = messenger.channel

    before = len(shared._subscribers)

    listener = messenger.listen(remote)
    assert len(shared._subscribers) == before + 1

    subscription = listener.subscription
    reference = weakref.ref(listener)

    del listener
    gc.collect()

    assert reference() is None

    # Detaching happens on the dispatch thread.

    for attempt in range(50):
        if subscription.closed:
            break
        time.sleep(0.01)

    assert subscription.closed
    assert len(shared._subscribers) == before

    # Traffic from the sender no longer has anywhere to go, and the channel
    # carries on for everyone else.

    kept = messenger.listen(remote)
    for number in range(100):
        recorder.inject('{"type": "APP", "payload": %d}' % (number), remote)

    assert kept.get(timeout=1).payload == 0
    assert len(shared._subscribers) == before + 1


def iterate(listener, results):

    for event in listener:
        results.append(event.payload)


def test_iteration_ends_on_close(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)
    listener = messenger.listen(remote)

    results = list()
    thread = threading.Thread(target=iterate, args=(listener, results))
    thread.start()

    recorder.inject('{"type": "APP", "payload": "one"}', remote)
    recorder.inject('{"type": "APP", "payload": "two"}', remote)
    time.sleep(0.1)

    listener.close()
    thread.join(1)

    assert not thread.is_alive()
    assert results == ['one', 'two']
    assert listener.closed


def test_iteration_ends_on_shutdown(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)

    with messenger.listen(remote) as listener:

        results = list()
        thread = threading.Thread(target=iterate, args=(listener, results))
        thread.start()

        recorder.inject('{"type": "APP", "payload": 1}', remote)
        time.sleep(0.1)

        messenger.shutdown()
        thread.join(1)

        assert not thread.is_alive()
        assert results == [1]

    # Listening on a shut down messenger yields nothing.

    listener = messenger.listen(remote)
    assert listener.closed
    assert list(listener) == []


def test_send(recorder):

    remote = object()
    messenger = postmessenger.Messenger(recorder)

    messenger.send(remote, {'msg': 'Hello my child!'})
    messenger.send(remote)
    messenger.send(remote, [1, 2, 3], target_origin='*')

    sent = recorder.sent_to(remote)
    envelopes = [envelope for timestamp, envelope in sent]

    assert envelopes == [
        {'type': 'APP', 'payload': {'msg': 'Hello my child!'}},
        {'type': 'APP'},
        {'type': 'APP', 'payload': [1, 2, 3]},
    ]

    origins = [target_origin for timestamp, receiver, data, target_origin in recorder.sent]
    assert origins == ['/', '/', '*']

    # Sending is fire-and-forget: nothing is waited on or answered.

    assert len(recorder.sent) == 3


def test_structured_data(ports):

    parent, child, unrelated = ports

    postmessenger.Messenger(parent)
    child_messenger = postmessenger.Messenger(child)
    listener = child_messenger.listen(parent)

    # Data that arrives already structured is accepted as is.

    parent.post_message(child, {'type': 'APP', 'payload': 'structured'}, '*')
    parent.post_message(child, {'type': 'SYN'}, '*')

    event = listener.get(timeout=1)
    assert event.payload == 'structured'

    with pytest.raises(queue.Empty):
        listener.get(timeout=0.05)


def test_target_origin():

    here = local.Port('https://here.example')
    there = local.Port('https://there.example')

    try:
        postmessenger.Messenger(here)
        listener = postmessenger.Messenger(there).listen(here)

        sender = postmessenger.Messenger(here)
        sender.send(there, 'same origin only')
        sender.send(there, 'wrong origin', target_origin='https://elsewhere.example')
        sender.send(there, 'exact origin', target_origin='https://there.example')
        sender.send(there, 'any origin', target_origin='*')

        assert listener.get(timeout=1).payload == 'exact origin'
        assert listener.get(timeout=1).payload == 'any origin'

        with pytest.raises(queue.Empty):
            listener.get(timeout=0.05)

    finally:
        here.close()
        there.close()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
