"""Host functions made available to scripts."""

from __future__ import annotations

import math
import re
import sys
from typing import Any, Callable, Iterable, Optional, TextIO

from polysub.interpreter import (
    Builtin,
    Case,
    Env,
    InterpreterError,
    Record,
    _format_float,
    show,
)

_NONE = Case("None", Record())
_EOF = Case("Eof", 0)
_DONE: Any = object()

_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)",
    re.IGNORECASE,
)

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_U64_LIMIT = 2**64


class ProgressBar:
    """A simple text progress indicator written to a stream (stderr by default)."""

    def __init__(self, length: Optional[int] = None, stream: Optional[TextIO] = None) -> None:
        self.length = length
        self.position = 0
        self.finished = False
        self._stream = stream

    def _draw(self) -> None:
        stream = self._stream if self._stream is not None else sys.stderr
        text = f"{self.position}" if self.length is None else f"{self.position}/{self.length}"
        stream.write("\r" + text)
        stream.flush()

    def inc(self, delta: int) -> None:
        self.position += delta
        self._draw()

    def dec(self, delta: int) -> None:
        self.position = max(0, self.position - delta)
        self._draw()

    def set_length(self, length: int) -> None:
        self.length = length
        self._draw()

    def finish(self) -> None:
        if self.length is not None:
            self.position = self.length
        self.finished = True
        self._draw()
        stream = self._stream if self._stream is not None else sys.stderr
        stream.write("\n")


_SIMPLE_ESCAPES = {0: "\\0", 9: "\\t", 10: "\\n", 13: "\\r", 92: "\\\\"}
_SIMPLE_UNESCAPES = {"0": 0, "t": 9, "n": 10, "r": 13, "\\": 92}


def escape(text: str) -> str:
    """Escape the UTF-8 bytes of ``text`` that are not printable ASCII."""
    parts = []
    for byte in text.encode("utf-8"):
        if byte in _SIMPLE_ESCAPES:
            parts.append(_SIMPLE_ESCAPES[byte])
        elif 0x20 <= byte <= 0x7E:
            parts.append(chr(byte))
        else:
            parts.append(f"\\x{byte:02x}")
    return "".join(parts)


def unescape(text: str) -> str:
    """Reverse :func:`escape`; raise InterpreterError on a malformed sequence."""
    data = text.encode("utf-8")
    out = bytearray()
    chars = iter(range(len(data)))
    for i in chars:
        byte = data[i]
        if byte != 92:
            out.append(byte)
            continue
        nxt = next(chars, None)
        if nxt is None:
            raise InterpreterError("unescape: trailing backslash")
        code = chr(data[nxt])
        if code in _SIMPLE_UNESCAPES:
            out.append(_SIMPLE_UNESCAPES[code])
        elif code == "x":
            hex_digits = data[nxt + 1 : nxt + 3].decode("ascii", errors="replace")
            if len(hex_digits) != 2 or not all(c in "0123456789abcdefABCDEF" for c in hex_digits):
                raise InterpreterError("unescape: invalid hex escape")
            out.append(int(hex_digits, 16))
            next(chars, None)
            next(chars, None)
        else:
            raise InterpreterError(f"unescape: invalid escape \\{code}")
    try:
        return out.decode("utf-8")
    except UnicodeDecodeError as err:
        raise InterpreterError(f"unescape: invalid UTF-8: {err}") from None


def _some(value: Any) -> Case:
    return Case("Some", value)


def _optional(value: Any) -> Case:
    return _NONE if value is None else _some(value)


def _pair(a: Any, b: Any) -> Record:
    return Record([("_0", a, False), ("_1", b, False)])


def _iterator(items: Iterable[Any]) -> Builtin:
    it = iter(items)

    def step(_: Any) -> Case:
        item = next(it, _DONE)
        return _NONE if item is _DONE else _some(item)

    return Builtin(step, "iterator")


def _to_u64(n: int) -> Optional[int]:
    return n if 0 <= n < _U64_LIMIT else None


def _to_i64(n: int) -> Optional[int]:
    return n if _I64_MIN <= n <= _I64_MAX else None


def _panic(msg: Any) -> Any:
    raise InterpreterError(show(msg))


def _read_line(_: Any) -> Case:
    try:
        line = sys.stdin.readline()
    except (OSError, ValueError) as err:
        return Case("Err", str(err))
    if not line:
        return _EOF
    if line.endswith("\n"):
        line = line[:-1]
    return Case("Ok", line)


def _write_str(s: str) -> Record:
    sys.stdout.write(s)
    return Record()


def _num_to_char(n: int) -> Optional[str]:
    if 0 <= n <= 0x10FFFF and not 0xD800 <= n <= 0xDFFF:
        return chr(n)
    return None


def _int_to_float(n: int) -> float:
    try:
        return float(n)
    except OverflowError:
        return math.copysign(math.inf, n)


def _float_to_int(x: float) -> int:
    if math.isnan(x):
        return 0
    if x >= 2**63:
        return _I64_MAX
    if x <= _I64_MIN:
        return _I64_MIN
    return int(x)


def _str_to_int(s: str) -> Optional[int]:
    return int(s) if _INT_RE.fullmatch(s) else None


def _str_to_float(s: str) -> Optional[float]:
    return float(s) if _FLOAT_RE.fullmatch(s) else None


def _vec_get(args: Record) -> Any:
    items, idx = args.get_field("_0"), args.get_field("_1")
    return items[idx] if 0 <= idx < len(items) else None


def _vec_set(args: Record) -> Any:
    items, idx, value = args.get_field("_0"), args.get_field("_1"), args.get_field("_2")
    if not 0 <= idx < len(items):
        return None
    return items[:idx] + (value,) + items[idx + 1 :]


def _vec_split(args: Record) -> Record:
    items, idx = args.get_field("_0"), args.get_field("_1")
    if _to_u64(idx) is None or idx > len(items):
        raise InterpreterError(f"split index {idx} out of range for length {len(items)}")
    return _pair(items[:idx], items[idx:])


def _dict_insert(args: Record) -> dict:
    result = dict(args.get_field("_0"))
    result[args.get_field("_1")] = args.get_field("_2")
    return result


def _dict_remove(args: Record) -> dict:
    result = dict(args.get_field("_0"))
    result.pop(args.get_field("_1"), None)
    return result


def _dict_get(args: Record) -> Any:
    return args.get_field("_0").get(args.get_field("_1"))


def _progress_step(args: Record) -> Record:
    bar, delta = args.get_field("_0"), args.get_field("_1")
    if _to_i64(delta) is not None:
        if delta < 0:
            bar.dec(-delta)
        else:
            bar.inc(delta)
    return Record()


def _progress_setlen(args: Record) -> Record:
    bar, length = args.get_field("_0"), args.get_field("_1")
    if _to_u64(length) is not None:
        bar.set_length(length)
    return Record()


def _progress_finish(bar: ProgressBar) -> Record:
    bar.finish()
    return Record()


_PLAIN: dict[str, Callable[[Any], Any]] = {
    "panic": _panic,
    "__read_line": _read_line,
    "__write_str": _write_str,
    "__chars": lambda s: _iterator(list(s)),
    "__split": lambda s: _iterator(s.split()),
    "__char_to_num": lambda s: ord(s[0]) if s else -1,
    "__escape": escape,
    "__unescape": unescape,
    "__int_to_float": _int_to_float,
    "__float_to_int": _float_to_int,
    "__int_to_str": str,
    "__float_to_str": _format_float,
    "__vec_new": lambda _: (),
    "__vec_length": len,
    "__vec_push_back": lambda a: a.get_field("_0") + (a.get_field("_1"),),
    "__vec_pop_back": lambda v: v[:-1],
    "__vec_push_front": lambda a: (a.get_field("_1"),) + a.get_field("_0"),
    "__vec_pop_front": lambda v: v[1:],
    "__vec_split": _vec_split,
    "__vec_iter": lambda v: _iterator(tuple(v)),
    "__vec_iter_rev": lambda v: _iterator(tuple(reversed(v))),
    "__dict_new": lambda _: {},
    "__dict_length": len,
    "__dict_insert": _dict_insert,
    "__dict_contains": lambda a: a.get_field("_1") in a.get_field("_0"),
    "__dict_remove": _dict_remove,
    "__dict_iter": lambda d: _iterator([_pair(k, v) for k, v in d.items()]),
    "__progress_bar_new": lambda n: ProgressBar(_to_u64(n)),
    "__progress_bar_step": _progress_step,
    "__progress_bar_setlen": _progress_setlen,
    "__progress_bar_finish": _progress_finish,
}

_OPTIONAL: dict[str, Callable[[Any], Any]] = {
    "__num_to_char": _num_to_char,
    "__str_to_int": _str_to_int,
    "__str_to_float": _str_to_float,
    "__vec_peek_back": lambda v: v[-1] if v else None,
    "__vec_peek_front": lambda v: v[0] if v else None,
    "__vec_get": _vec_get,
    "__vec_set": _vec_set,
    "__dict_get": _dict_get,
}


def define_builtins(env: Env) -> Env:
    """Return ``env`` extended with every builtin function."""
    for name, fn in _PLAIN.items():
        env = env.bind(name, Builtin(fn, name))
    for name, fn in _OPTIONAL.items():
        env = env.bind(name, Builtin(lambda arg, fn=fn: _optional(fn(arg)), name))
    return env