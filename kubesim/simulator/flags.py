from typing import Dict, Iterator, List, Optional, Union
from pydantic import BaseModel


class Present(BaseModel):
    """A flag given without a value (--all-namespaces, -A)."""

    pass


class WithValue(BaseModel):
    """A flag carrying a string value (--image=nginx, -n demo)."""

    value: str


FlagValue = Union[Present, WithValue]


class Flags:
    """Parsed flags keyed by name without leading dashes."""

    def __init__(self, values: Optional[Dict[str, FlagValue]] = None):
        self.values: Dict[str, FlagValue] = values or {}

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self):
        return f"Flags({self.values!r})"

    def get(self, *names: str, default: Optional[str] = None) -> Optional[str]:
        """
        Return the value of the first alias given with a value.

        A boolean presence never counts as a value, so `-n` at the end of
        a line falls back to the default.
        """
        for name in names:
            flag = self.values.get(name)
            if isinstance(flag, WithValue):
                return flag.value
        return default

    def given(self, *names: str) -> bool:
        """True when any alias was given at all."""
        return any(name in self.values for name in names)

    def get_int(self, *names: str) -> Optional[int]:
        value = self.get(*names)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            return None


def _takes_value(args: List[str], i: int) -> bool:
    return i + 1 < len(args) and not args[i + 1].startswith("-")


def parse_flags(args: List[str]) -> Flags:
    """
    Parse long (--key, --key=value, --key value) and short (-k, -k value) flags.

    Tokens that are neither are skipped: callers slice positionals off before
    parsing. Unknown flags are captured as-is and validated by the caller.
    """
    values: Dict[str, FlagValue] = {}
    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith("--"):
            flag = arg[2:]
            if "=" in flag:
                key, value = flag.split("=", 1)
                values[key] = WithValue(value=value)
            elif _takes_value(args, i):
                values[flag] = WithValue(value=args[i + 1])
                i += 1
            else:
                values[flag] = Present()
        elif arg.startswith("-") and len(arg) == 2:
            key = arg[1:]
            if _takes_value(args, i):
                values[key] = WithValue(value=args[i + 1])
                i += 1
            else:
                values[key] = Present()
        i += 1
    return Flags(values)


def split_positionals(args: List[str]) -> List[str]:
    """
    Leading tokens before the first flag.
    """
    positionals = []
    for arg in args:
        if arg.startswith("-") and arg != "-":
            break
        positionals.append(arg)
    return positionals
