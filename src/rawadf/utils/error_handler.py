"""
Error presentation for the rawadf command line.

The core raises typed EADF errors and never prints. This module turns an
exception into the message shown to the user and the process exit code.
"""

import errno

from rawadf.imaging.image_formats import EADFError, ErrorKind


EXIT_SUCCESS = 0
EXIT_FAILURE = 1


ERROR_MESSAGES = {
    ErrorKind.WRONG_MAGIC: "Incorrect magic (is this really an extended ADF?)",
    ErrorKind.INVALID_TRACK_COUNT: "Invalid number of tracks",
    ErrorKind.INVALID_TRACK_TYPE: "Invalid track type",
    ErrorKind.TRUNCATED: "Premature end-of-file",
    ErrorKind.READ: "Error reading from file",
    ErrorKind.WRITE: "Error writing to file",
    ErrorKind.SEEK: "Error seeking in file",
    ErrorKind.INVALID_TRACK_SPEC: "Invalid track specification",
}

OS_ERROR_MESSAGES = {
    errno.ENOENT: "No such file or directory",
    errno.EACCES: "Permission denied",
    errno.EISDIR: "Is a directory",
    errno.ENOSPC: "No space left on device",
    errno.EROFS: "Read-only file system",
}


def describe_error(error: BaseException, context: str = "") -> str:
    """
    Build the user-facing message for an error.

    Args:
        error: Exception raised by the core or by opening a file
        context: Prefix such as the command or file name

    Returns:
        "context: message", or just the message when context is empty

    Example:
        >>> describe_error(WrongMagicError("bad", "a.adf"), "merge")
        'merge: Incorrect magic (is this really an extended ADF?) [File: a.adf]'
    """
    if isinstance(error, EADFError):
        message = ERROR_MESSAGES.get(error.kind, error.message)
        details = []
        if error.kind is ErrorKind.INVALID_TRACK_SPEC:
            spec = getattr(error, 'spec', None)
            if spec is not None:
                details.append(f"'{spec}'")
        else:
            if error.source:
                details.append(f"[File: {error.source}]")
            if error.offset is not None:
                details.append(f"[Offset: {error.offset}]")
        if details:
            message = f"{message} {' '.join(details)}"
    elif isinstance(error, OSError):
        reason = OS_ERROR_MESSAGES.get(error.errno, error.strerror or str(error))
        message = f"{error.filename}: {reason}" if error.filename else reason
    else:
        message = str(error) or type(error).__name__

    if context:
        return f"{context}: {message}"
    return message


def error_kind_name(error: BaseException) -> str:
    """Short tag for log lines."""
    if isinstance(error, EADFError):
        return error.kind.value
    if isinstance(error, OSError):
        return errno.errorcode.get(error.errno, "oserror")
    return type(error).__name__
