from .document import SchemaDocument, PRIMITIVE_TYPES
from .compiler import SchemaCompiler
from .sources import (
    SchemaSource,
    SchemaSourceChain,
    StoredSchemaSource,
    LocationSchemaSource,
)
from .cache import SchemaCache

__all__ = [
    "SchemaDocument",
    "PRIMITIVE_TYPES",
    "SchemaCompiler",
    "SchemaSource",
    "SchemaSourceChain",
    "StoredSchemaSource",
    "LocationSchemaSource",
    "SchemaCache",
]
