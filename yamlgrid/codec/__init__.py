"""Value codec package for yamlgrid.

Converts parsed YAML values to cell text (decode) and cell text back to values
(encode).

Example:
    >>> from yamlgrid.codec import CodecConfig, decode
    >>> decode([1, 2], CodecConfig(indent=4))
    '[\\n    1,\\n    2\\n]'
"""

from .value_codec import DEFAULT_CONFIG, CodecConfig, decode, encode, is_structured

__all__ = ["CodecConfig", "DEFAULT_CONFIG", "decode", "encode", "is_structured"]
