"""
Path templates - compile ``/users/{name}`` style paths for matching.

Grammar:
    /static/{param}          generic string parameter (one segment)
    /items/{id:int}          typed parameter
    /files/{rest:path}       rest of the path, slashes included

Specificity (higher wins when several patterns match):
    - Static segment: +200
    - Typed token (int, float, uuid): +120
    - Generic token (str): +50
    - Path token: +0
    - Segment count tiebreaker: + (segment_count * 2)
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Pattern
import re
import uuid as uuid_lib
from urllib.parse import quote

from ..faults import InvalidRoutePatternFault


_TOKEN_RE = re.compile(r"^\{(?P<name>[A-Za-z_][A-Za-z0-9_]*)(?::(?P<type>[a-z]+))?\}$")

STRONG_TYPES = {"int", "float", "uuid"}


@dataclass(frozen=True)
class ParamType:
    """Castor and regex fragment for a parameter type."""
    name: str
    regex: str
    castor: Callable[[str], Any]
    formatter: Callable[[Any], str] = str


PARAM_TYPES: Dict[str, ParamType] = {
    "str": ParamType("str", r"[^/]+", str),
    "int": ParamType("int", r"-?\d+", int),
    "float": ParamType("float", r"-?\d+(?:\.\d+)?", float),
    "uuid": ParamType(
        "uuid",
        r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}",
        uuid_lib.UUID,
    ),
    "path": ParamType("path", r".+", str),
}


@dataclass
class CompiledParam:
    """Compiled parameter metadata."""
    index: int
    name: str
    param_type: ParamType

    def cast(self, raw: str) -> Any:
        return self.param_type.castor(raw)


@dataclass
class CompiledPattern:
    """Fully compiled path template ready for matching."""
    raw: str
    segments: List[str]
    params: Dict[str, CompiledParam] = field(default_factory=dict)
    specificity: int = 0
    compiled_re: Optional[Pattern] = None

    @property
    def is_static(self) -> bool:
        return not self.params

    @property
    def shape(self) -> str:
        """
        Template with parameter names erased, e.g. ``/users/{str}``.

        Two patterns with the same shape match exactly the same paths.
        """
        parts = []
        for segment in self.segments:
            m = _TOKEN_RE.match(segment)
            parts.append(segment if m is None else "{" + (m.group("type") or "str") + "}")
        return "/" + "/".join(parts)

    def match(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Match a concrete path.

        Returns:
            Cast parameters, or None when the path does not match or a
            parameter fails to cast.
        """
        if self.is_static:
            return {} if normalize_path(path) == self.raw else None

        m = self.compiled_re.match(normalize_path(path))
        if m is None:
            return None

        params: Dict[str, Any] = {}
        for name, param in self.params.items():
            try:
                params[name] = param.cast(m.group(name))
            except (ValueError, TypeError):
                return None
        return params

    def format(self, **values: Any) -> str:
        """Render the template with ``values``; leftovers are an error."""
        parts = []
        for segment in self.segments:
            m = _TOKEN_RE.match(segment)
            if m is None:
                parts.append(segment)
                continue
            name = m.group("name")
            if name not in values:
                raise KeyError(f"Missing value for path parameter '{name}' in {self.raw}")
            param_type = self.params[name].param_type
            safe = "/" if param_type.name == "path" else ""
            parts.append(quote(param_type.formatter(values[name]), safe=safe))
        return "/" + "/".join(parts) if parts else "/"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "raw": self.raw,
            "params": {name: p.param_type.name for name, p in self.params.items()},
            "specificity": self.specificity,
        }


def normalize_path(path: str) -> str:
    """Strip the trailing slash and ensure a leading one."""
    if not path.startswith("/"):
        path = "/" + path
    return path.rstrip("/") or "/"


def compile_path(path: str) -> CompiledPattern:
    """
    Compile a path template.

    Raises:
        InvalidRoutePatternFault: For malformed tokens, unknown types,
            duplicate parameter names, or a path token that is not last.
    """
    raw = normalize_path(path)
    segments = [s for s in raw.split("/") if s]

    params: Dict[str, CompiledParam] = {}
    regex_parts: List[str] = []
    score = 0

    for index, segment in enumerate(segments):
        if "{" not in segment and "}" not in segment:
            regex_parts.append(re.escape(segment))
            score += 200
            continue

        m = _TOKEN_RE.match(segment)
        if m is None:
            raise InvalidRoutePatternFault(path, f"malformed segment {segment!r}")

        name = m.group("name")
        type_name = m.group("type") or "str"
        param_type = PARAM_TYPES.get(type_name)
        if param_type is None:
            raise InvalidRoutePatternFault(path, f"unknown parameter type {type_name!r}")
        if name in params:
            raise InvalidRoutePatternFault(path, f"duplicate parameter {name!r}")
        if type_name == "path" and index != len(segments) - 1:
            raise InvalidRoutePatternFault(path, "path parameters must be the last segment")

        params[name] = CompiledParam(index=index, name=name, param_type=param_type)
        regex_parts.append(f"(?P<{name}>{param_type.regex})")

        if type_name in STRONG_TYPES:
            score += 120
        elif type_name == "str":
            score += 50

    score += len(segments) * 2

    compiled_re = None
    if params:
        compiled_re = re.compile("^/" + "/".join(regex_parts) + "$")

    return CompiledPattern(
        raw=raw,
        segments=segments,
        params=params,
        specificity=score,
        compiled_re=compiled_re,
    )
