"""Startup failures. Anything raised from here aborts before serving."""


class PipeserveError(Exception):
    pass


class NotApplicable(PipeserveError):
    """The path argument can't be used as an OS path."""


class CaptureError(PipeserveError):
    """Reading stdin or writing the capture file failed."""


class BindError(PipeserveError):
    """The listening socket couldn't be bound."""


class ConfigError(PipeserveError):
    pass
