import gc
import postmessenger


class Referenced:

    def __init__(self):
        self.calls = list()

    def a_method(self, *args):
        self.calls.append(args)


def test_persistent_object():
    thing = Referenced()

    reference = postmessenger.weakref.ref(thing)
    assert reference is not None
    assert callable(reference)

    dereferenced = reference()
    assert dereferenced is not None


def test_persistent_object_method():
    """ This is the reason the local weak reference wrapper exists, and why
        weakref.WeakMethod exists: the standard weakref.ref() reference cannot
        refer to a bound method, as they immediately lose scope and are
        deallocated.
    """

    thing = Referenced()

    reference = postmessenger.weakref.ref(thing.a_method)
    assert reference is not None
    assert callable(reference)

    dereferenced = reference()
    assert dereferenced is not None
    assert callable(dereferenced)


def test_removed_object_method():
    thing = Referenced()

    reference = postmessenger.weakref.ref(thing.a_method)
    del thing

    dereferenced = reference()
    assert dereferenced is None


def test_finalize():
    thing = Referenced()

    called = list()
    postmessenger.weakref.finalize(thing, called.append, 'collected')
    assert called == []

    del thing
    gc.collect()

    assert called == ['collected']


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
