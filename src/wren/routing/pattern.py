"""Route template compilation.

Turns ``/users/{id}/posts/{slug}`` into an anchored regular expression
plus the ordered parameter names::

    ^/users/(?P<p0>[^/]+)/posts/(?P<p1>[^/]+)/?$      ("id", "slug")

Literal text is escaped, so ``/files/v1.0`` only matches a real dot.
Parameter names may contain ``-``, which Python group names cannot, so
each placeholder gets a positional group alias mapped back to its name.
"""

import re
from dataclasses import dataclass

from wren.errors import MalformedRoute

PLACEHOLDER = re.compile(r"\{([A-Za-z_][A-Za-z0-9_-]*)\}")
SEGMENT_PATTERN = r"[^/]+"


@dataclass(frozen=True, slots=True)
class CompiledPattern:
    """An anchored matcher and the parameter names it extracts."""

    template: str
    regex: re.Pattern[str]
    param_names: tuple[str, ...]

    def match(self, path: str) -> dict[str, str] | None:
        """Match *path* as a whole; parameters come back in template order."""
        found = self.regex.match(path)
        if found is None:
            return None
        return {name: found.group(f"p{i}") for i, name in enumerate(self.param_names)}

    def expand(self, params: dict[str, object]) -> str:
        """Substitute *params* into the template (reverse routing).

        Raises ``KeyError`` naming the first missing parameter.
        """
        return PLACEHOLDER.sub(lambda m: str(params[m.group(1)]), self.template)


def compile_path(path: str) -> CompiledPattern:
    """Compile a route template.

    Raises ``MalformedRoute`` for an empty template, a template without a
    leading ``/``, a parameter name used twice, or an expression the
    regex engine rejects.
    """
    if not path or not path.startswith("/"):
        msg = f"Route paths must start with a forward slash: {path!r}"
        raise MalformedRoute(msg)

    names: list[str] = []
    parts: list[str] = []
    position = 0
    for found in PLACEHOLDER.finditer(path):
        name = found.group(1)
        if name in names:
            msg = f"Duplicate route parameter {name!r} in {path!r}"
            raise MalformedRoute(msg)
        parts.append(re.escape(path[position : found.start()]))
        parts.append(f"(?P<p{len(names)}>{SEGMENT_PATTERN})")
        names.append(name)
        position = found.end()

    tail = path[position:]
    if len(path) > 1:
        tail = tail.rstrip("/")
    parts.append(re.escape(tail))
    expression = "".join(parts)
    if expression in ("", "/"):
        # Root route: "/" itself, tolerant of nothing else
        expression = ""

    try:
        regex = re.compile(f"^{expression}/?$")
    except re.error as exc:
        msg = f"Unable to compile route expression for {path!r}: {exc}"
        raise MalformedRoute(msg) from exc

    return CompiledPattern(template=path, regex=regex, param_names=tuple(names))
