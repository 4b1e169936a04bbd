"""
Conversion between parsed YAML values and editable cell text.

Every cell of the merge table is a string. Scalars are shown in their YAML
spelling (``true``, ``null``, ``.inf``); mappings and sequences are shown as
indented JSON, which is valid YAML flow syntax and can be re-parsed on save.

The codec is stateless: formatting options travel in an explicit CodecConfig.

Example:
    >>> from yamlgrid.codec import decode, encode
    >>> decode({"a": [1, 2]})
    '{\\n  "a": [\\n    1,\\n    2\\n  ]\\n}'
    >>> encode("30")
    30
    >>> encode("30", reparse=False)
    '30'
"""

import json
import logging
import math
from dataclasses import dataclass
from typing import Any

import yaml

from yamlgrid.exceptions import SerializationError

logger = logging.getLogger("yamlgrid.codec")


@dataclass(frozen=True)
class CodecConfig:
    """Formatting options for structured values."""
    indent: int = 2                   # Spaces per JSON nesting level
    ensure_ascii: bool = False        # Escape non-ASCII characters

    def __post_init__(self) -> None:
        if self.indent < 1:
            raise ValueError(f"indent must be at least 1, got {self.indent}")


DEFAULT_CONFIG = CodecConfig()

_STRUCTURED_OPENERS = ("{", "[")


def decode(raw: Any, config: CodecConfig = DEFAULT_CONFIG) -> str:
    """Convert a parsed YAML value to its cell text.

    Never raises. A structured value that cannot be serialized (a recursive
    structure built from anchors, a mapping with composite keys) is logged and
    falls back to ``str(raw)``.

    Args:
        raw: Value produced by ``yaml.safe_load``.
        config: Formatting options for mappings and sequences.

    Returns:
        The display string. Identical inputs always produce identical output.
    """
    if isinstance(raw, (dict, list)):
        try:
            return _dump_structured(raw, config)
        except SerializationError as e:
            logger.warning(f"{e}; showing raw form instead")
            return str(raw)
    return _decode_scalar(raw)


def encode(text: str, reparse: bool = True) -> Any:
    """Convert cell text back to a value for writing.

    With ``reparse`` disabled the text is returned unchanged and every value
    is written as a string.

    With ``reparse`` enabled:
      - text that parses as a JSON object or array becomes that structure;
      - text that YAML resolves to a scalar whose cell text is exactly the
        input (``30``, ``true``, ``null``, ``2024-01-01``) becomes that scalar;
      - anything else stays a string.

    Args:
        text: Cell text.
        reparse: Whether to recover native types from the text.

    Returns:
        The value to place in the output document.
    """
    if not reparse:
        return text

    stripped = text.strip()
    if stripped[:1] in _STRUCTURED_OPENERS:
        try:
            return json.loads(stripped)
        except ValueError:
            logger.debug(f"Cell text looks structured but is not JSON: {stripped[:40]!r}")

    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError:
        return text

    if isinstance(parsed, (dict, list)):
        return text
    if _decode_scalar(parsed) == text:
        return parsed
    return text


def is_structured(text: str) -> bool:
    """Return True if text is a JSON object or array."""
    stripped = text.strip()
    if stripped[:1] not in _STRUCTURED_OPENERS:
        return False
    try:
        return isinstance(json.loads(stripped), (dict, list))
    except ValueError:
        return False


def _decode_scalar(raw: Any) -> str:
    if raw is None:
        return "null"
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, float):
        if math.isnan(raw):
            return ".nan"
        if math.isinf(raw):
            return ".inf" if raw > 0 else "-.inf"
    return str(raw)


def _dump_structured(raw: Any, config: CodecConfig) -> str:
    try:
        return json.dumps(
            raw,
            indent=config.indent,
            ensure_ascii=config.ensure_ascii,
            default=str,
        )
    except (TypeError, ValueError, RecursionError) as err:
        raise SerializationError(f"Cannot serialize {type(raw).__name__} value: {err}") from err
