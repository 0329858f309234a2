"""VCF header model, parsing and synthesis."""

import copy
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import pysam

DEFAULT_FILEFORMAT = "VCFv4.2"
PLACEHOLDER_DESCRIPTION = "This is a dummy description"

INFO = "INFO"
FORMAT = "FORMAT"
FIELD_CATEGORIES = (INFO, FORMAT)

# pysam has no Character type; single characters are written as String.
PYSAM_VALUE_TYPES = {
    "Integer": "Integer",
    "Float": "Float",
    "Flag": "Flag",
    "String": "String",
    "Character": "String",
}

_STRUCTURED_LINE = re.compile(r"^##(\w+)=<(.+)>$")


@dataclass
class FieldDeclaration:
    """An ##INFO or ##FORMAT declaration."""

    category: str
    id: str
    number: str = "."
    type: str = "String"
    description: str = ""
    extra: dict[str, str] = field(default_factory=dict)


def parse_structured_value(field_string: str) -> dict[str, str]:
    """Parse a definition string like 'ID=AC,Number=A,Type=Integer,Description="..."'

    Commas inside quoted values do not split fields; surrounding quotes are
    removed from the returned values.
    """
    parts = []
    current_part = ""
    in_quotes = False
    escaped = False

    for char in field_string:
        if escaped:
            current_part += char
            escaped = False
        elif char == "\\" and in_quotes:
            current_part += char
            escaped = True
        elif char == '"':
            in_quotes = not in_quotes
            current_part += char
        elif char == "," and not in_quotes:
            parts.append(current_part)
            current_part = ""
        else:
            current_part += char

    if current_part:
        parts.append(current_part)

    result: dict[str, str] = {}
    for part in parts:
        if "=" in part:
            key, value = part.split("=", 1)
            if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
                value = value[1:-1].replace('\\"', '"')
            result[key.strip()] = value
    return result


class VCFHeader:
    """Mutable VCF header: version, field declarations, contigs and samples.

    Meta lines that are neither field nor contig declarations (FILTER, ALT,
    source, reference, ...) are kept verbatim and written back in order.
    """

    def __init__(
        self,
        fileformat: str = DEFAULT_FILEFORMAT,
        meta_lines: Iterable[str] = (),
        declarations: Iterable[FieldDeclaration] = (),
        contigs: Mapping[str, Mapping[str, str]] | None = None,
        samples: Iterable[str] = (),
    ):
        self.fileformat = fileformat
        self.meta_lines: list[str] = list(meta_lines)
        self.info_fields: dict[str, FieldDeclaration] = {}
        self.format_fields: dict[str, FieldDeclaration] = {}
        self.contigs: dict[str, dict[str, str]] = {
            k: dict(v) for k, v in (contigs or {}).items()
        }
        self.samples: list[str] = list(samples)
        for declaration in declarations:
            self.add_declaration(declaration)

    def declarations(self, category: str) -> dict[str, FieldDeclaration]:
        if category == INFO:
            return self.info_fields
        if category == FORMAT:
            return self.format_fields
        raise ValueError(f"Unknown header field category: {category}")

    def has_declaration(self, category: str, field_id: str) -> bool:
        return field_id in self.declarations(category)

    def add_declaration(self, declaration: FieldDeclaration) -> None:
        self.declarations(declaration.category)[declaration.id] = declaration

    def add_missing_field(self, category: str, field_id: str) -> FieldDeclaration:
        """Declare a field that records use but the header lacks.

        INFO placeholders take an unbounded count, FORMAT placeholders a
        single value; both are typed String.
        """
        number = "." if category == INFO else "1"
        declaration = FieldDeclaration(
            category=category,
            id=field_id,
            number=number,
            type="String",
            description=PLACEHOLDER_DESCRIPTION,
        )
        self.add_declaration(declaration)
        return declaration

    def add_contig(self, contig_id: str, **attributes: str | int) -> None:
        self.contigs[contig_id] = {k: str(v) for k, v in attributes.items()}

    def to_pysam(self) -> pysam.VariantHeader:
        """Build the pysam header used for writing.

        The ``##fileformat`` line is the one pysam writes; ``fileformat`` is
        only kept from parsed input.
        """
        header = pysam.VariantHeader()
        for line in self.meta_lines:
            header.add_line(line)
        for declaration in [*self.info_fields.values(), *self.format_fields.values()]:
            metadata = header.info if declaration.category == INFO else header.formats
            metadata.add(
                declaration.id,
                declaration.number,
                PYSAM_VALUE_TYPES.get(declaration.type, "String"),
                declaration.description,
                **declaration.extra,
            )
        for contig_id, attrs in self.contigs.items():
            attrs = dict(attrs)
            length = attrs.pop("length", None)
            header.contigs.add(contig_id, length=int(length) if length else None, **attrs)
        for sample in self.samples:
            header.add_sample(sample)
        return header

    def copy(self) -> "VCFHeader":
        return copy.deepcopy(self)

    @classmethod
    def parse(cls, text: str) -> "VCFHeader":
        return VCFHeaderParser().parse(text.splitlines())

    def __repr__(self) -> str:
        return (
            f"VCFHeader(fileformat={self.fileformat!r}, info={list(self.info_fields)}, "
            f"format={list(self.format_fields)}, contigs={list(self.contigs)}, "
            f"samples={self.samples!r})"
        )


class VCFHeaderParser:
    """Parser for VCF header information."""

    def parse(self, header_lines: list[str]) -> VCFHeader:
        """Build a VCFHeader from raw header lines."""
        header = VCFHeader()
        for raw in header_lines:
            line = raw.rstrip("\r\n")
            if not line:
                continue
            if line.startswith("##fileformat="):
                header.fileformat = line.split("=", 1)[1]
            elif line.startswith("#CHROM"):
                columns = line.split("\t")
                header.samples = columns[9:]
            elif line.startswith("##"):
                self._parse_meta_line(header, line)
        return header

    def parse_info_fields(self, header_lines: list[str]) -> dict[str, FieldDeclaration]:
        """Parse INFO field definitions from header lines."""
        return self.parse(header_lines).info_fields

    def parse_format_fields(self, header_lines: list[str]) -> dict[str, FieldDeclaration]:
        """Parse FORMAT field definitions from header lines."""
        return self.parse(header_lines).format_fields

    def _parse_meta_line(self, header: VCFHeader, line: str) -> None:
        match = _STRUCTURED_LINE.match(line)
        if not match:
            header.meta_lines.append(line)
            return

        kind, body = match.group(1), match.group(2)
        values = parse_structured_value(body)
        if kind in FIELD_CATEGORIES and "ID" in values:
            extra = {
                k: v
                for k, v in values.items()
                if k not in ("ID", "Number", "Type", "Description")
            }
            header.add_declaration(
                FieldDeclaration(
                    category=kind,
                    id=values["ID"],
                    number=values.get("Number", "."),
                    type=values.get("Type", "String"),
                    description=values.get("Description", ""),
                    extra=extra,
                )
            )
        elif kind == "contig" and "ID" in values:
            attrs = {k: v for k, v in values.items() if k != "ID"}
            header.add_contig(values["ID"], **attrs)
        else:
            header.meta_lines.append(line)


def generate_basic_header(
    sequence_dictionary: Mapping[str, int], samples: Iterable[str] = ()
) -> VCFHeader:
    """
    Generate a basic header for a pool that has none.

    The header carries the format version, a single GT declaration (FORMAT
    must declare at least one field) and one contig line per dictionary
    entry.

    Args:
        sequence_dictionary: Contig name to length, in reference order
        samples: Sample names for the column header line

    Returns:
        New VCFHeader
    """
    header = VCFHeader(samples=samples)
    header.add_declaration(
        FieldDeclaration(category=FORMAT, id="GT", number="1", type="String", description="Genotype")
    )
    for contig_id, length in sequence_dictionary.items():
        header.add_contig(contig_id, length=length)
    return header
