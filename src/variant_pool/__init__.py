"""variant-pool: in-memory pools of VCF variant records."""

__version__ = "0.3.0"

from .header import FieldDeclaration, VCFHeader, generate_basic_header  # noqa: E402
from .loader import LoaderState, PoolConfig, StreamingLoader  # noqa: E402
from .models import Genotype, RecordKey, VariantRecord, with_overrides  # noqa: E402
from .normalizer import AltType, classify_alt, normalize_chromosome  # noqa: E402
from .pool import VariantPool  # noqa: E402
from .serializer import WriteResult, write_pool  # noqa: E402

__all__ = [
    "AltType",
    "FieldDeclaration",
    "Genotype",
    "LoaderState",
    "PoolConfig",
    "RecordKey",
    "StreamingLoader",
    "VCFHeader",
    "VariantPool",
    "VariantRecord",
    "WriteResult",
    "__version__",
    "classify_alt",
    "generate_basic_header",
    "normalize_chromosome",
    "with_overrides",
    "write_pool",
]
