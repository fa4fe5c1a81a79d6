"""FieldConcord - Appariement optimal de champs entre deux objets."""

from fieldconcord.aliases import AliasStoreError
from fieldconcord.codec import CodecError
from fieldconcord.config import ConfigError, ConfigFileError, FieldConcordError
from fieldconcord.io_excel import ExcelFileError, FieldTableError

__all__ = [
    "__version__",
    "FieldConcordError",
    "ConfigError",
    "ConfigFileError",
    "AliasStoreError",
    "CodecError",
    "ExcelFileError",
    "FieldTableError",
]

__version__ = "0.1.0"
