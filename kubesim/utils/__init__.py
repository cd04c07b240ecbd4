import shlex
from typing import List

from kubesim.models.custom_errors import InvalidArgumentError
from kubesim.utils.logger import get_logger

logger = get_logger(__name__)


def split_command(command: str) -> List[str]:
    """
    Tokenize one shell segment the way a POSIX shell would.
    """
    try:
        return shlex.split(command)
    except ValueError as err:
        logger.debug("Unable to tokenize %r: %s", command, err)
        raise InvalidArgumentError(f"unable to parse command: {err}")


def split_pipeline(line: str) -> List[str]:
    """
    Split a command line on unquoted, unescaped '|' characters.

    '||' is kept together with its segment as it is not a pipe.
    """
    segments = []
    current = []
    quote = None
    escaped = False
    i = 0
    while i < len(line):
        ch = line[i]
        if escaped:
            current.append(ch)
            escaped = False
        elif ch == "\\" and quote != "'":
            current.append(ch)
            escaped = True
        elif quote:
            current.append(ch)
            if ch == quote:
                quote = None
        elif ch in ("'", '"'):
            current.append(ch)
            quote = ch
        elif ch == "|":
            if i + 1 < len(line) and line[i + 1] == "|":
                current.append("||")
                i += 1
            else:
                segments.append("".join(current).strip())
                current = []
        else:
            current.append(ch)
        i += 1
    segments.append("".join(current).strip())
    return segments
