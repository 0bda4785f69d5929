"""
We use builtin exceptions where they fit and specialize where necessary.

Every exception that may reach an embedder is a subclass of
HttpsByDefaultException. None of them ever reaches the end user: a failing
navigation decision leaves the request unmodified.
"""


class HttpsByDefaultException(Exception):
    """
    Base class for all exceptions thrown by httpsbydefault.
    """

    def __init__(self, message=None):
        super().__init__(message)


class OptionsError(HttpsByDefaultException):
    pass


class AddonManagerError(HttpsByDefaultException):
    pass


class AddonHalt(HttpsByDefaultException):
    """
    Raised by addons to signal that no further handlers should handle this event.
    """


class TabNotFound(HttpsByDefaultException):
    """
    Raised by the tabs collaborator for a tab that does not exist (yet), or has been closed.
    """

    def __init__(self, tab_id: int):
        super().__init__(f"Invalid tab ID: {tab_id}")
        self.tab_id = tab_id
