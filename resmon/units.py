"""Human-readable formatting of sizes, speeds, frequencies, power and temperature."""

from __future__ import annotations

import math
from enum import IntEnum

from resmon.settings import Base, TemperatureUnit

_DECIMAL_SYMBOLS = ("", "k", "M", "G", "T", "P", "E", "Z", "Y", "R", "Q")
_BINARY_SYMBOLS = ("", "Ki", "Mi", "Gi", "Ti", "Pi", "Ei", "Zi", "Yi", "Ri", "Qi")


class Prefix(IntEnum):
    """Unit prefixes, each one step of the base larger than the previous."""

    NONE = 0
    KILO = 1
    MEGA = 2
    GIGA = 3
    TERA = 4
    PETA = 5
    EXA = 6
    ZETTA = 7
    YOTTA = 8
    RONNA = 9
    QUETTA = 10

    def symbol(self, base):
        """Return the prefix symbol for ``base``."""
        symbols = _BINARY_SYMBOLS if base is Base.BINARY else _DECIMAL_SYMBOLS
        return symbols[self]


def to_largest_prefix(amount, base):
    """Scale ``amount`` down to the largest prefix that keeps it below the base."""
    factor = 1024.0 if base is Base.BINARY else 1000.0
    x = float(amount)
    for prefix in Prefix:
        if x < factor:
            return x, prefix
        x /= factor
    return x, Prefix.QUETTA


def _round(x):
    """Round half away from zero."""
    if not math.isfinite(x):
        return x
    whole = math.floor(abs(x))
    if abs(x) - whole >= 0.5:
        whole += 1
    return math.copysign(float(whole), x)


def _plain(x):
    if math.isnan(x):
        return "NaN"
    if math.isinf(x):
        return "inf" if x > 0 else "-inf"
    if x.is_integer():
        if x == 0 and math.copysign(1.0, x) < 0:
            return "-0"
        return str(int(x))
    return repr(x)


def _fixed(x, digits):
    if math.isnan(x):
        return "NaN"
    return f"{x:.{digits}f}"


def _scaled(amount, base, unit, none_text, digits=2):
    number, prefix = to_largest_prefix(amount, base)
    text = none_text(number) if prefix is Prefix.NONE else _fixed(number, digits)
    return f"{text} {prefix.symbol(base)}{unit}"


def convert_temperature(celsius, unit=TemperatureUnit.CELSIUS):
    """Format a temperature given in °C in the chosen unit."""
    if unit is TemperatureUnit.KELVIN:
        return f"{_plain(_round(celsius + 273.15))} K"
    if unit is TemperatureUnit.FAHRENHEIT:
        return f"{_plain(_round(celsius * 1.8 + 32.0))} °F"
    return f"{_plain(_round(float(celsius)))} °C"


def convert_storage(num_bytes, integer=False, base=Base.DECIMAL):
    """Format an amount of bytes; ``integer`` rounds to whole numbers."""
    if integer:
        number, prefix = to_largest_prefix(num_bytes, base)
        return f"{_plain(_round(number))} {prefix.symbol(base)}B"
    return _scaled(num_bytes, base, "B", lambda n: _plain(_round(n)))


def convert_speed(bytes_per_second, network=False, base=Base.DECIMAL, network_bits=False):
    """Format a transfer rate; network rates may be shown in bits."""
    if network and network_bits:
        return _scaled(bytes_per_second * 8.0, base, "b/s", lambda n: _plain(_round(n)))
    return _scaled(bytes_per_second, base, "B/s", lambda n: _plain(_round(n)))


def convert_frequency(hertz):
    """Format a frequency in Hz."""
    return _scaled(hertz, Base.DECIMAL, "Hz", lambda n: _fixed(n, 2))


def convert_power(watts):
    """Format a power in W."""
    return _scaled(watts, Base.DECIMAL, "W", lambda n: _fixed(n, 1))