from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from fwintegrity.compare import ChangeRecord


class FwIntegrityException(Exception):
    """Base class for all fwintegrity exceptions"""

    _msg_fmt = "An unknown exception occurred."

    def __init__(self, message: Optional[str] = None, **kwargs: Dict[str, Any]):
        if not message:
            message = self._msg_fmt % kwargs

        super().__init__(message)


class NoMeasurements(FwIntegrityException):
    _msg_fmt = "no measurements"


class ParseError(FwIntegrityException):
    """A serialized measurement set contained a line that is not key=value.

    The full input text is kept in ``text`` so callers can report it.
    """

    _msg_fmt = "failed to parse: %(text)s"

    def __init__(self, text: str):
        self.text = text
        super().__init__(self._msg_fmt % {"text": text})


class IntegrityMismatch(FwIntegrityException):
    """The current measurements differ from the baseline.

    The message is the rendered diff, the records themselves are in ``records``.
    """

    def __init__(self, message: str, records: "List[ChangeRecord]"):
        self.records = records
        super().__init__(message)
