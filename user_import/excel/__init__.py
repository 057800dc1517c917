from .codec import EmptyDataError, MalformedFileError, ParseError, RawRow, decode, encode
from .template import TEMPLATE_COLUMNS, TEMPLATE_SAMPLE_DATA, generate_template

__all__ = [
    "EmptyDataError",
    "MalformedFileError",
    "ParseError",
    "RawRow",
    "decode",
    "encode",
    "TEMPLATE_COLUMNS",
    "TEMPLATE_SAMPLE_DATA",
    "generate_template",
]
