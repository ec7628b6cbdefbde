import threading
import time

import postmessenger
from postmessenger import config
from postmessenger import handshake


def test_parent_and_child(ports):

    parent, child, unrelated = ports

    parent_messenger = postmessenger.Messenger(parent)
    child_messenger = postmessenger.Messenger(child)

    from_child = parent_messenger.listen(child)
    from_parent = child_messenger.listen(parent)

    attempt = parent_messenger.connect(child, retry_period=0.05, max_retries=5)
    assert attempt.wait(1)

    parent_messenger.send(child, 'Hello my child!')
    child_messenger.send(parent, {'reply': 'Hello parent!'})

    event = from_parent.get(timeout=1)
    assert event.payload == 'Hello my child!'
    assert event.source is parent

    event = from_child.get(timeout=1)
    assert event.payload == {'reply': 'Hello parent!'}
    assert event.source is child


def test_late_receiver(ports):

    parent, child, unrelated = ports

    parent_messenger = postmessenger.Messenger(parent)
    attempt = parent_messenger.connect(child, retry_period=0.05, max_retries=20)

    received = list()

    def start_child():
        time.sleep(0.2)
        child_messenger = postmessenger.Messenger(child)
        listener = child_messenger.listen(parent)
        received.append(listener)

    thread = threading.Thread(target=start_child)
    thread.start()

    assert attempt.wait(2)
    thread.join(1)

    # The child only answered once it was up, so at least one SYN went
    # unanswered before that.

    assert attempt.retries > 1

    parent_messenger.send(child, 'ready')
    listener = received[0]
    assert listener.get(timeout=1).payload == 'ready'


def test_unrelated_traffic(ports):

    parent, child, unrelated = ports

    child_messenger = postmessenger.Messenger(child)
    from_parent = child_messenger.listen(parent)

    postmessenger.Messenger(unrelated).send(child, 'not from the parent')
    postmessenger.Messenger(parent).send(child, 'from the parent')

    assert from_parent.get(timeout=1).payload == 'from the parent'


def test_shared_channel(recorder):

    first = postmessenger.Messenger(recorder)
    second = postmessenger.Messenger(recorder)

    assert first.channel is second.channel
    assert first.coordinator.responder is second.coordinator.responder
    assert recorder.listeners_added == 1


def test_context_manager(recorder):

    with postmessenger.Messenger(recorder) as messenger:
        listener = messenger.listen(object())

    assert messenger.channel.closed
    assert listener.closed


def test_configuration(recorder):

    remote = object()
    configuration = config.Configuration(max_syn_retry=1, syn_retry_period=0.02)
    messenger = postmessenger.Messenger(recorder, configuration)

    attempt = messenger.connect(remote)
    assert attempt.period == 0.02
    assert attempt.max_retries == 1

    time.sleep(0.15)
    assert attempt.state == handshake.EXHAUSTED
    assert len(recorder.sent_to(remote, 'SYN')) == 2


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
