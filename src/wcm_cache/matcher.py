"""URI pattern matching for page definitions.

Patterns are ``/``-delimited. A segment is one of:

- a literal, compared byte-for-byte
- ``*``, which consumes exactly one path segment
- ``**``, which consumes the rest of the path (bound as ``"**"``)
- a token ``{name}``, optionally wrapped in a literal prefix/suffix
  (``post-{id}.html``), bound to the percent-decoded segment value

Matching never backtracks and never raises: a pattern that cannot match
simply yields ``None``.
"""

from urllib.parse import unquote

from loguru import logger

CATCH_ALL = "**"
WILDCARD = "*"


def _strip_leading_slash(text: str) -> str:
    if text.startswith("/"):
        return text[1:]
    return text


def _split(text: str) -> list[str]:
    if not text:
        return []
    return text.split("/")


def _match_token(segment: str, value: str) -> tuple[str, str] | None:
    """Match a ``prefix{name}suffix`` segment against a path segment.

    Returns:
        (name, decoded value), or None if the value does not fit
    """
    start = segment.find("{")
    stop = segment.find("}", start)
    if stop == -1:
        # no closing brace, compare as a literal
        return ("", "") if segment == value else None

    prefix = segment[:start]
    suffix = segment[stop + 1:]
    if len(value) < len(prefix) + len(suffix):
        return None
    if not value.startswith(prefix) or not value.endswith(suffix):
        return None

    captured = value[len(prefix):len(value) - len(suffix)]
    return segment[start + 1:stop], unquote(captured)


def match(pattern: str, path: str) -> dict[str, str] | None:
    """Match a concrete path against a URI pattern.

    Args:
        pattern: The page URI pattern (e.g. ``/blog/{slug}``)
        path: The request path (e.g. ``/blog/hello-world``)

    Returns:
        Token bindings on success (empty dict if nothing was captured),
        None if the path does not match

    Example:
        ```python
        match("a/{id}/b", "a/42/b")          # {"id": "42"}
        match("files/**", "files/x/y/z")     # {"**": "/x/y/z"}
        match("about", "contact")            # None
        ```
    """
    pattern = _strip_leading_slash(pattern or "")
    path = _strip_leading_slash(path or "")

    if pattern == CATCH_ALL:
        return {CATCH_ALL: path}

    if "{" not in pattern and WILDCARD not in pattern:
        return {} if pattern == path else None

    pattern_segments = _split(pattern)
    path_segments = _split(path)
    tokens: dict[str, str] = {}

    for index in range(max(len(pattern_segments), len(path_segments))):
        segment = pattern_segments[index] if index < len(pattern_segments) else None
        value = path_segments[index] if index < len(path_segments) else None

        if not segment or not value:
            # one side ran out (or is an empty trailing segment)
            if segment or value:
                return None
            continue

        if segment == WILDCARD:
            continue

        if segment == CATCH_ALL:
            tokens[CATCH_ALL] = "/" + "/".join(path_segments[index:])
            break

        if "{" in segment:
            bound = _match_token(segment, value)
            if bound is None:
                return None
            name, decoded = bound
            if name:
                tokens[name] = decoded
            continue

        if segment != value:
            return None

    logger.debug(f"Matched - pattern: {pattern}, text: {path}, tokens: {tokens}")
    return tokens
