"""
Sectioned key/value store in gerrit.config (git-config) format.
Section and key lookups are case-insensitive, subsections are not. A config may sit on top of a base
config (gerrit.config under secure.config); values in the top config win.
"""
import configparser
import re
from datetime import timedelta
from pathlib import Path

from github_oauth.errors import InvalidConfigValue

_SECTION_HEADER = re.compile(r'^\s*([^\s"]+)\s*(?:"((?:[^"\\]|\\.)*)")?\s*$')
_DURATION = re.compile(r"^(0|[1-9][0-9]*)\s*(.*)$")
_INT_SUFFIXES = {"k": 1024, "m": 1024 * 1024, "g": 1024 * 1024 * 1024}

_DURATION_UNITS: dict[str, timedelta] = {}
for _names, _unit in [
    (("ms", "milliseconds"), timedelta(milliseconds=1)),
    (("s", "sec", "second", "seconds"), timedelta(seconds=1)),
    (("m", "min", "minute", "minutes"), timedelta(minutes=1)),
    (("h", "hr", "hour", "hours"), timedelta(hours=1)),
    (("d", "day", "days"), timedelta(days=1)),
    (("w", "week", "weeks"), timedelta(weeks=1)),
    (("mon", "month", "months"), timedelta(days=30)),
    (("y", "year", "years"), timedelta(days=365)),
]:
    for _name in _names:
        _DURATION_UNITS[_name] = _unit


def _key(section: str, subsection: str | None, name: str) -> str:
    if subsection is None:
        return f"{section}.{name}"
    return f"{section}.{subsection}.{name}"


_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "t": "\t"}


def _unquote(value: str) -> str:
    """
    git-config value: drop quotes and a trailing # or ; comment. Inside double quotes # and ; are
    literal and whitespace is kept; outside quotes surrounding whitespace is trimmed.
    """
    out: list[str] = []
    quoted_end = 0
    in_quotes = False
    i = 0
    value = value.strip()
    while i < len(value):
        c = value[i]
        if c == "\\" and i + 1 < len(value):
            i += 1
            out.append(_ESCAPES.get(value[i], "\\" + value[i]))
            if in_quotes:
                quoted_end = len(out)
        elif c == '"':
            in_quotes = not in_quotes
            quoted_end = len(out)
        elif c in "#;" and not in_quotes:
            break
        else:
            out.append(c)
            if in_quotes:
                quoted_end = len(out)
        i += 1
    result = "".join(out)
    return result[:quoted_end] + result[quoted_end:].rstrip()


class RawConfig:
    def __init__(self, base: "RawConfig | None" = None):
        self.base = base
        # (section.lower(), subsection) -> name.lower() -> (name as written, value)
        self._sections: dict[tuple[str, str | None], dict[str, tuple[str, str]]] = {}

    @classmethod
    def from_dict(cls, data: dict, base: "RawConfig | None" = None) -> "RawConfig":
        """
        Build from {section: {name: value}}. A section may be given as (section, subsection).
        Non-string values are stored as their string form, like they would appear in a file.
        """
        cfg = cls(base=base)
        for section, values in data.items():
            if isinstance(section, tuple):
                section, subsection = section
            else:
                subsection = None
            for name, value in values.items():
                cfg.set_string(section, subsection, name, str(value))
        return cfg

    @classmethod
    def from_file(cls, path: str | Path, base: "RawConfig | None" = None) -> "RawConfig":
        """Parse a gerrit.config style file. A missing file yields an empty config."""
        cfg = cls(base=base)
        path = Path(path)
        if not path.exists():
            return cfg
        parser = configparser.ConfigParser(
            interpolation=None,
            strict=False,
            allow_no_value=True,
            delimiters=("=",),
            comment_prefixes=("#", ";"),
            inline_comment_prefixes=None,
            default_section="\x00",
        )
        parser.optionxform = str
        parser.read_string(path.read_text(encoding="utf-8"), source=str(path))
        for header in parser.sections():
            m = _SECTION_HEADER.match(header)
            if m is None:
                raise configparser.ParsingError(f"{path}: bad section header [{header}]")
            section, subsection = m.group(1), m.group(2)
            if subsection is not None:
                subsection = subsection.replace('\\"', '"').replace("\\\\", "\\")
            for name, value in parser.items(header, raw=True):
                cfg.set_string(section, subsection, name, "" if value is None else _unquote(value))
        return cfg

    def set_string(self, section: str, subsection: str | None, name: str, value: str) -> None:
        values = self._sections.setdefault((section.lower(), subsection), {})
        existing = values.get(name.lower())
        values[name.lower()] = (existing[0] if existing else name, value)

    def get_string(self, section: str, subsection: str | None, name: str) -> str | None:
        values = self._sections.get((section.lower(), subsection))
        if values is not None and name.lower() in values:
            return values[name.lower()][1]
        if self.base is not None:
            return self.base.get_string(section, subsection, name)
        return None

    def get_int(self, section: str, name: str, default: int, subsection: str | None = None) -> int:
        """Integer with optional k/m/g suffix; empty or absent returns default."""
        raw = self.get_string(section, subsection, name)
        if raw is None or not raw.strip():
            return default
        value = raw.strip().lower()
        multiplier = _INT_SUFFIXES.get(value[-1], 1)
        if multiplier != 1:
            value = value[:-1].strip()
        try:
            return int(value) * multiplier
        except ValueError:
            raise InvalidConfigValue(_key(section, subsection, name), raw, "an integer") from None

    def get_names(self, section: str, recursive: bool = False) -> list[str]:
        """
        Key names of the section (no subsection), in file order, de-duplicated case-insensitively.
        With recursive=True names only present in the base config are included too.
        """
        names: dict[str, str] = {}
        values = self._sections.get((section.lower(), None), {})
        for lowered, (name, _value) in values.items():
            names.setdefault(lowered, name)
        if recursive and self.base is not None:
            for name in self.base.get_names(section, recursive=True):
                names.setdefault(name.lower(), name)
        return list(names.values())

    def get_duration(
        self,
        section: str,
        subsection: str | None,
        name: str,
        default: timedelta,
        unit: timedelta = timedelta(seconds=1),
    ) -> timedelta:
        """
        Duration such as "30", "500 ms", "5min" or "2 hours". A bare number is in `unit`.
        Empty or absent returns default.
        """
        raw = self.get_string(section, subsection, name)
        if raw is None or not raw.strip():
            return default
        m = _DURATION.match(raw.strip())
        if m is None:
            raise InvalidConfigValue(_key(section, subsection, name), raw, "a duration")
        amount, suffix = int(m.group(1)), m.group(2).strip().lower()
        if not suffix:
            return amount * unit
        if suffix not in _DURATION_UNITS:
            raise InvalidConfigValue(_key(section, subsection, name), raw, "a duration")
        return amount * _DURATION_UNITS[suffix]
