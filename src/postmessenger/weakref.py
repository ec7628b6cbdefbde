import weakref


def ref(thing):
    """ Return a weak reference to the supplied argument, regardless of
        whether it is a simple object or a bound method.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing)
    else:
        return weakref.WeakMethod(thing)



def finalize(thing, callback, *args):
    """ Arrange for *callback* to be invoked with *args* once *thing* is
        garbage collected. The *callback* must not refer to *thing*, or it
        will never be collected. Returns the :class:`weakref.finalize`
        instance, which can be called early or detached.
    """

    return weakref.finalize(thing, callback, *args)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
