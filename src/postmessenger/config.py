""" Configuration for a :class:`postmessenger.Messenger`. The embedding
    application either constructs a :class:`Configuration` directly, loads
    one from disk with :func:`load`, or relies on :data:`default`.
"""

from __future__ import annotations

import dataclasses
import os

from . import json


default_filename = 'messenger.json'


@dataclasses.dataclass(frozen=True)
class Configuration:
    """ Immutable settings for the handshake and the transport adapter.

        :ivar max_syn_retry: How many times a SYN is re-sent after the first
            attempt before :func:`postmessenger.handshake.Coordinator.connect`
            gives up; zero means a single SYN is sent.
        :ivar syn_retry_period: Seconds between SYN attempts.
        :ivar default_target_origin: The target origin used for every send
            that does not specify one.
    """

    max_syn_retry: int = 10
    syn_retry_period: float = 1.0
    default_target_origin: str = '/'

    def __post_init__(self):

        max_syn_retry = self.max_syn_retry

        # bool is an int, but True retries is nonsense.

        if isinstance(max_syn_retry, bool) or not isinstance(max_syn_retry, int):
            raise ValueError('max_syn_retry must be an integer: ' + repr(max_syn_retry))

        if max_syn_retry < 0:
            raise ValueError('max_syn_retry must be non-negative: ' + repr(max_syn_retry))

        try:
            period = float(self.syn_retry_period)
        except (TypeError, ValueError):
            raise ValueError('syn_retry_period must be a number: ' + repr(self.syn_retry_period))

        if period <= 0:
            raise ValueError('syn_retry_period must be positive: ' + repr(self.syn_retry_period))

        object.__setattr__(self, 'syn_retry_period', period)

        if isinstance(self.default_target_origin, str):
            pass
        else:
            raise ValueError('default_target_origin must be a string: ' + repr(self.default_target_origin))


    def replace(self, **changes):
        """ Return a new :class:`Configuration` with the requested fields
            changed; the original is unmodified.
        """

        return dataclasses.replace(self, **changes)


# end of class Configuration


default = Configuration()

fields = tuple(field.name for field in dataclasses.fields(Configuration))



def directory(default=None):
    """ Return the directory location where configuration files are loaded
        from. This defaults to ``$HOME/.postmessenger``, but can be overridden
        by calling this method with a valid path, or by setting the
        ``POSTMESSENGER_HOME`` environment variable. Note that changes to the
        environment variable will be ignored unless it is set prior to the
        first invocation of this method.
    """

    if default is not None:
        default = str(default)
        default = os.path.expandvars(default)

        if os.path.isabs(default):
            pass
        else:
            raise ValueError('the default directory must be an absolute path')

        if os.path.exists(default):
            pass
        else:
            os.makedirs(default, mode=0o775)

        os.environ['POSTMESSENGER_HOME'] = default
        directory.found = default


    found = directory.found

    if found is not None:
        return found

    try:
        found = os.environ['POSTMESSENGER_HOME']
    except KeyError:
        pass
    else:
        directory.found = found
        return found

    try:
        home = os.environ['HOME']
    except KeyError:
        raise RuntimeError('POSTMESSENGER_HOME and HOME environment variables not set, cannot determine configuration directory')

    found = os.path.join(home, '.postmessenger')

    directory.found = found
    return found

directory.found = None



def from_dict(block):
    """ Build a :class:`Configuration` from a dictionary, such as one parsed
        from a JSON file. Missing fields take their default values; unknown
        fields are rejected.
    """

    if isinstance(block, dict):
        pass
    else:
        raise ValueError('configuration must be a JSON object, not ' + type(block).__name__)

    unknown = set(block.keys()) - set(fields)
    if unknown:
        unknown = ', '.join(sorted(unknown))
        raise ValueError('unknown configuration fields: ' + unknown)

    return Configuration(**block)



def load(filename=None):
    """ Load a :class:`Configuration` from the JSON file *filename*. If no
        *filename* is specified the ``messenger.json`` file in the
        :func:`directory` is used; if that file does not exist the
        :data:`default` configuration is returned.
    """

    if filename is None:
        filename = os.path.join(directory(), default_filename)
        if os.path.exists(filename):
            pass
        else:
            return default

    with open(filename, 'rb') as contents:
        raw = contents.read()

    block = json.loads(raw)
    return from_dict(block)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
