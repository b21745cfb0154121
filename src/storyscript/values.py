""" Loosely typed script values.

Script variables hold strings, numbers or booleans and an absent value is
represented as None. Story scripts are written without any type annotations
so everything coerces: numeric looking strings compare equal to numbers,
booleans count as 1 and 0, adding anything to a string concatenates and
arithmetic on garbage gives NaN rather than an error.
"""

import re
import math
from typing import Union, Optional

Number = Union[int, float]
Value = Union[str, int, float, bool]

DECIMAL_RE = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$', re.ASCII)
RADIX_RE = re.compile(r'^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$')
INFINITY_RE = re.compile(r'^[+-]?Infinity$')

# beyond this floats don't reliably hold integers anyway
MAX_SAFE_INTEGER = (1<<53) - 1

def _to_float(x:int) -> float:
    try:
        return float(x)
    except OverflowError:
        return math.inf if x > 0 else -math.inf

def normalize_number(x:Number) -> Number:
    """ Keeps every number representable as a double.

    Integral floats come back as ints so 10/2 reads as 5, not 5.0. Ints
    too big to hold exactly become floats, overflowing to +/-Infinity. """
    if isinstance(x, int) and not isinstance(x, bool) and abs(x) > MAX_SAFE_INTEGER:
        return _to_float(x)
    if isinstance(x, float) and math.isfinite(x) and x.is_integer() and abs(x) <= MAX_SAFE_INTEGER:
        return int(x)
    return x

def parse_number(text:str) -> Optional[Number]:
    """ parses a numeric literal, returning None if text isn't one.

    Accepts decimal integers and floats with optional exponent, hex/octal/
    binary integers and signed Infinity. """

    s = text.strip()
    if DECIMAL_RE.match(s):
        # float() of a string saturates to inf rather than raising
        return normalize_number(float(s))
    elif RADIX_RE.match(s):
        return normalize_number(int(s, 0))
    elif INFINITY_RE.match(s):
        return -math.inf if s.startswith("-") else math.inf
    return None

def kind(value:Optional[Value]) -> str:
    if value is None:
        return "absent"
    elif isinstance(value, bool):
        return "boolean"
    elif isinstance(value, (int, float)):
        return "number"
    else:
        return "string"

def to_number(value:Optional[Value]) -> Number:
    if value is None:
        return math.nan
    elif isinstance(value, bool):
        return 1 if value else 0
    elif isinstance(value, (int, float)):
        return normalize_number(value)
    elif not value.strip():
        return 0
    else:
        n = parse_number(value)
        return math.nan if n is None else n

def to_string(value:Optional[Value]) -> str:
    if value is None:
        return "undefined"
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        elif math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        return str(normalize_number(value))
    return str(value)

def is_truthy(value:Optional[Value]) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)

def loose_equals(a:Optional[Value], b:Optional[Value]) -> bool:
    ka, kb = kind(a), kind(b)
    if ka == "absent" or kb == "absent":
        return ka == kb
    elif ka == kb:
        return a == b
    elif ka == "boolean":
        return loose_equals(to_number(a), b)
    elif kb == "boolean":
        return loose_equals(a, to_number(b))
    else:
        # number vs string
        return to_number(a) == to_number(b)

def compare(a:Optional[Value], op:str, b:Optional[Value]) -> bool:
    """ evaluates a comparison operator with loose coercion.

    Two strings compare lexicographically, anything else compares
    numerically and any comparison involving NaN is false. """

    if op == "==":
        return loose_equals(a, b)
    elif op == "!=":
        return not loose_equals(a, b)

    x:Union[str, Number]
    y:Union[str, Number]
    if isinstance(a, str) and isinstance(b, str):
        x, y = a, b
    else:
        x, y = to_number(a), to_number(b)
        if math.isnan(x) or math.isnan(y):
            return False

    if op == ">":
        return x > y # type: ignore[operator]
    elif op == "<":
        return x < y # type: ignore[operator]
    elif op == ">=":
        return x >= y # type: ignore[operator]
    elif op == "<=":
        return x <= y # type: ignore[operator]
    else:
        raise ValueError(f'unknown comparison operator {op}')

def add(a:Optional[Value], b:Optional[Value]) -> Value:
    if isinstance(a, str) or isinstance(b, str):
        return to_string(a) + to_string(b)
    return normalize_number(to_number(a) + to_number(b))

def _divide(x:Number, y:Number) -> Number:
    if y == 0:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1., y)
    return x / y

def arithmetic(op:str, a:Optional[Value], b:Optional[Value]) -> Value:
    """ applies one of + - * / the way a compound assignment would """
    if op == "+":
        return add(a, b)

    x, y = to_number(a), to_number(b)
    if op == "-":
        result = x - y
    elif op == "*":
        result = x * y
    elif op == "/":
        result = _divide(x, y)
    else:
        raise ValueError(f'unknown arithmetic operator {op}')
    return normalize_number(result)
