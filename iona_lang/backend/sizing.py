"""Type size and alignment calculation for lowered IR types.

Sizes follow the x86-64 layout the C compiler gives the generated
definitions, which the LLVM types built by `codegen_llvm` reproduce:

- Integer `{i64}`, Float `{double}`, Slot `i8*`: 8 bytes
- Boolean `i8`: 1 byte
- String and every Array instantiation `{ptr, i64, i64}`: 24 bytes
- Sum type `{i32 tag, [N x iA] data}`: the payload union starts at the tag
  size rounded up to the payload alignment A, and its size N*A is the largest
  payload rounded up to A. The whole rounds up to max(4, A).
- Struct: fields with padding, rounded up to the widest alignment
"""
from __future__ import annotations
from typing import Dict

from iona_lang.backend.enums import LoweredSumType
from iona_lang.backend.lowering import LoweringTable
from iona_lang.backend.structs import LoweredStruct
from iona_lang.internals.errors import raise_internal_error
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef, Type

POINTER_SIZE_BYTES = 8
BUFFER_SIZE_BYTES = 24  # {data*, len, capacity}
ENUM_TAG_SIZE_BYTES = 4


def _align_up(offset: int, align: int) -> int:
    if offset % align != 0:
        offset += align - (offset % align)
    return offset


class TypeSizing:
    """Calculate sizes and alignments for IR types."""

    def __init__(self, lowering: LoweringTable, provenance: str = "<input>") -> None:
        """Initialize the type sizing calculator.

        Args:
            lowering: Table for resolving named types.
            provenance: Source label for lookup failures.
        """
        self.lowering = lowering
        self.provenance = provenance
        self._named_cache: Dict[str, int] = {}

    def get_type_size_bytes(self, ty: Type) -> int:
        """Get the size in bytes of an IR type."""
        match ty:
            case BuiltinType.INTEGER | BuiltinType.FLOAT | BuiltinType.SLOT:
                return 8
            case BuiltinType.BOOLEAN:
                return 1
            case BuiltinType.STRING:
                return BUFFER_SIZE_BYTES
            case TemplateRef():
                return BUFFER_SIZE_BYTES
            case NamedType(name=name):
                cached = self._named_cache.get(name)
                if cached is None:
                    lowered = self.lowering.resolve(name, owner=name, provenance=self.provenance)
                    cached = self.lowered_size_bytes(lowered)
                    self._named_cache[name] = cached
                return cached
        raise_internal_error("CE0001", node=type(ty).__name__)

    def get_type_alignment(self, ty: Type) -> int:
        """Get the alignment requirement in bytes for an IR type.

        Alignment rules for x86-64:
        - Boolean: 1 byte
        - Integer/Float/Slot and all buffers: 8 bytes
        - Sum types: the wider of the tag and the payload alignment
        - Structs: maximum alignment of all fields
        """
        match ty:
            case BuiltinType.BOOLEAN:
                return 1
            case BuiltinType() | TemplateRef():
                return POINTER_SIZE_BYTES
            case NamedType(name=name):
                lowered = self.lowering.resolve(name, owner=name, provenance=self.provenance)
                if isinstance(lowered, LoweredSumType):
                    return max(ENUM_TAG_SIZE_BYTES, self.payload_alignment(lowered))
                return max((self.get_type_alignment(f.ty) for f in lowered.fields), default=1)
        raise_internal_error("CE0001", node=type(ty).__name__)

    def lowered_size_bytes(self, lowered: LoweredSumType | LoweredStruct) -> int:
        if isinstance(lowered, LoweredSumType):
            align = max(ENUM_TAG_SIZE_BYTES, self.payload_alignment(lowered))
            return _align_up(self.payload_offset(lowered) + self.payload_size_bytes(lowered), align)
        return self._calculate_struct_size(lowered)

    def payload_alignment(self, lowered: LoweredSumType) -> int:
        """Alignment of the payload union: its widest member, 1 without payloads."""
        if lowered.payload_union is None:
            return 1
        return max(self.get_type_alignment(f.ty) for f in lowered.payload_union.fields)

    def payload_offset(self, lowered: LoweredSumType) -> int:
        return _align_up(ENUM_TAG_SIZE_BYTES, self.payload_alignment(lowered))

    def payload_size_bytes(self, lowered: LoweredSumType) -> int:
        """Size of the payload union: the largest payload rounded up to its alignment."""
        if lowered.payload_union is None:
            return 0
        largest = max(self.get_type_size_bytes(f.ty) for f in lowered.payload_union.fields)
        return _align_up(largest, self.payload_alignment(lowered))

    def _calculate_struct_size(self, lowered: LoweredStruct) -> int:
        """Total size of a struct, including padding for field alignment."""
        offset = 0
        max_align = 1

        for f in lowered.fields:
            field_size = self.get_type_size_bytes(f.ty)
            field_align = self.get_type_alignment(f.ty)
            max_align = max(max_align, field_align)

            offset = _align_up(offset, field_align)
            offset += field_size

        return _align_up(offset, max_align)


__all__ = ["TypeSizing", "POINTER_SIZE_BYTES", "BUFFER_SIZE_BYTES", "ENUM_TAG_SIZE_BYTES"]
