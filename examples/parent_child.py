""" Two execution contexts talking over ZeroMQ. Run the child first, or
    don't; the parent keeps knocking until the child answers::

        python parent_child.py child
        python parent_child.py parent

    Both roles run on the local host by default, on fixed ports so that each
    side knows where to find the other.
"""

import argparse
import time
import postmessenger
from postmessenger.transport import zmq


parent_port = 10200
child_port = 10201


def parent(hostname):

    port = zmq.Port(parent_port, hostname)
    child = zmq.endpoint('tcp://%s:%d' % (hostname, child_port))

    messenger = postmessenger.Messenger(port)
    replies = messenger.listen(child)

    attempt = messenger.connect(child)

    if attempt.wait(15):
        pass
    else:
        print('No answer from the child after %d tries.' % (attempt.retries))
        return

    messenger.send(child, 'Hello my child!')
    messenger.send(child, {'chores': ['dishes', 'laundry']})

    event = replies.get(timeout=5)
    print('Child says: %r' % (event.payload,))

    messenger.shutdown()
    port.close()


def child(hostname):

    port = zmq.Port(child_port, hostname)
    parent = zmq.endpoint('tcp://%s:%d' % (hostname, parent_port))

    messenger = postmessenger.Messenger(port)

    received = 0
    for event in messenger.listen(parent):
        print('Parent says: %r' % (event.payload,))
        received += 1

        if received == 2:
            messenger.send(parent, 'Fine.')
            break

    # Sockets do not linger on close; give the reply a moment to go out.

    time.sleep(0.5)

    messenger.shutdown()
    port.close()


def main():

    parser = argparse.ArgumentParser(description='postmessenger parent/child demonstration')
    parser.add_argument('role', choices=('parent', 'child'))
    parser.add_argument('--hostname', default='127.0.0.1')
    arguments = parser.parse_args()

    if arguments.role == 'parent':
        parent(arguments.hostname)
    else:
        child(arguments.hostname)


if __name__ == '__main__':
    main()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
