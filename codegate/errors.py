class CodegateError(Exception):
    """Base class for errors raised by codegate services."""


class StoreUnavailable(CodegateError):
    """The code store could not complete an operation (transient)."""


class SessionStoreUnavailable(CodegateError):
    """The session store could not load or save a session (transient)."""
