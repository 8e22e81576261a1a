"""Stable string hashing used as a seedless pseudo-random source.

Every "random-looking" decision in the scoring engine is derived from
``stable_hash`` so that the same candidate evaluated against the same role
always produces the same outcome, across calls and across processes.
Python's built-in ``hash`` is salted per process and must not be used here.
"""

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def stable_hash(value: str) -> int:
    """Return a non-negative 32-bit rolling hash of ``value``.

    The hash walks UTF-16 code units with a multiplier of 31 and folds the
    accumulator to a signed 32-bit integer after every step, then returns
    its absolute value. This matches the hash used by the browser demo, so
    scenarios reproduce identically on both.
    """
    accumulator = 0
    encoded = value.encode("utf-16-le")
    for offset in range(0, len(encoded), 2):
        code_unit = encoded[offset] | (encoded[offset + 1] << 8)
        accumulator = (accumulator * 31 + code_unit) & _INT32_MASK

    if accumulator & _INT32_SIGN:
        accumulator -= 1 << 32
    return abs(accumulator)


def to_base36(number: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    chunks = []
    while number:
        number, remainder = divmod(number, 36)
        chunks.append(digits[remainder])
    return "".join(reversed(chunks))
