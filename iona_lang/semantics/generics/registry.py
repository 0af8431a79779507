"""Per-compilation template registry.

`TemplateRegistry.instantiate` monomorphizes a (template, element) pair into a
`TemplateInstantiation`: the concrete type name, the symbol prefix of every
generated operation and the dependency set the definition needs. Results are
memoized, so asking twice returns the very same object and code emission can
deduplicate by identity.

Each compilation owns its registry. Sharing one between unrelated
compilations would leak instantiations from one output into another.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple

from iona_lang.internals import errors as er
from iona_lang.runtime import RuntimeModule
from iona_lang.semantics.generics.name_mangling import symbol_prefix
from iona_lang.semantics.generics.templates import get_template
from iona_lang.semantics.typesys import BuiltinType, NamedType, TemplateRef, Type

# Runtime header that defines each builtin element type
BUILTIN_RUNTIME: Dict[BuiltinType, RuntimeModule] = {
    BuiltinType.INTEGER: RuntimeModule.NUMBERS,
    BuiltinType.FLOAT: RuntimeModule.NUMBERS,
    BuiltinType.STRING: RuntimeModule.STRINGS,
}


@dataclass(frozen=True)
class HookSymbols:
    """C symbols called for non-trivial elements (both take a pointer)."""
    clone: Optional[str] = None
    drop: Optional[str] = None

    @property
    def trivial(self) -> bool:
        return self.clone is None and self.drop is None


TRIVIAL_HOOKS = HookSymbols()
STRING_HOOK_SYMBOLS = HookSymbols(clone="string_clone", drop="string_free")


@dataclass(frozen=True)
class TemplateInstantiation:
    """One monomorphized container definition."""
    template_id: str
    element: Type
    type_name: str                          # e.g. "StringArray"
    symbol_prefix: str                      # e.g. "string_array"
    operations: Tuple[str, ...]
    runtime: Tuple[RuntimeModule, ...]      # runtime headers, first-seen order
    nested: Tuple["TemplateInstantiation", ...]  # element instantiations
    named: Tuple[str, ...]                  # declared types the element refers to
    hooks: HookSymbols                      # element clone/drop symbols

    def __str__(self) -> str:
        return f"{self.template_id}<{self.element}>"

    @property
    def key(self) -> Tuple[str, Type]:
        return (self.template_id, self.element)

    @property
    def ref(self) -> TemplateRef:
        return TemplateRef(self.template_id, self.element)

    def symbol(self, op: str) -> str:
        if op not in self.operations:
            er.raise_internal_error("CE0003", op=op, instance=str(self))
        return f"{self.symbol_prefix}_{op}"

    @property
    def symbols(self) -> Tuple[str, ...]:
        return tuple(f"{self.symbol_prefix}_{op}" for op in self.operations)


class TemplateRegistry:
    """Memoizing monomorphizer for container templates."""

    def __init__(self) -> None:
        # (template_id, element) → instantiation; insertion order = first instantiation
        self._cache: Dict[Tuple[str, Type], TemplateInstantiation] = {}
        # declared type name → element hooks
        self._hooks: Dict[str, HookSymbols] = {}

    def register_hooks(self, type_name: str, hooks: HookSymbols) -> None:
        """Record clone/drop symbols for a declared element type.

        Must happen before the first instantiation over that type, since
        instantiations are immutable once created.
        """
        self._hooks[type_name] = hooks

    def hooks_for(self, element: Type) -> HookSymbols:
        match element:
            case BuiltinType.STRING:
                return STRING_HOOK_SYMBOLS
            case NamedType(name=name):
                return self._hooks.get(name, TRIVIAL_HOOKS)
            case TemplateRef():
                inner = self.instantiate(element.template_id, element.element)
                return HookSymbols(clone=inner.symbol("clone"), drop=inner.symbol("free"))
        return TRIVIAL_HOOKS

    def element_name(self, element: Type) -> str:
        """Name the element contributes to the instantiation's type name."""
        if isinstance(element, TemplateRef):
            return self.instantiate(element.template_id, element.element).type_name
        return str(element)

    def instantiate(self, template_id: str, element: Type) -> TemplateInstantiation:
        """Return the (memoized) instantiation of `template_id<element>`.

        Nested container elements are instantiated first, so the returned
        object's `nested` dependencies are always registered too.
        """
        cache_key = (template_id, element)
        cached = self._cache.get(cache_key)
        if cached is not None:
            return cached

        template = get_template(template_id)
        if template is None:
            er.raise_fatal("CE2004", template=template_id, usage=f"{template_id}<{element}>")

        runtime: list[RuntimeModule] = list(template.runtime)
        nested: list[TemplateInstantiation] = []
        named: list[str] = []
        match element:
            case BuiltinType():
                module = BUILTIN_RUNTIME.get(element)
                if module is not None and module not in runtime:
                    runtime.append(module)
            case NamedType(name=name):
                named.append(name)
            case TemplateRef():
                nested.append(self.instantiate(element.template_id, element.element))
            case _:
                er.raise_internal_error("CE0001", node=type(element).__name__)

        type_name = template.type_name(self.element_name(element))
        instantiation = TemplateInstantiation(
            template_id=template_id,
            element=element,
            type_name=type_name,
            symbol_prefix=symbol_prefix(type_name),
            operations=tuple(template.operations),
            runtime=tuple(runtime),
            nested=tuple(nested),
            named=tuple(named),
            hooks=self.hooks_for(element),
        )
        self._cache[cache_key] = instantiation
        return instantiation

    def instantiate_ref(self, ref: TemplateRef) -> TemplateInstantiation:
        return self.instantiate(ref.template_id, ref.element)

    def get(self, template_id: str, element: Type) -> Optional[TemplateInstantiation]:
        return self._cache.get((template_id, element))

    def lookup(self, template_id: str, element: Type, *, owner: str, provenance: str) -> TemplateInstantiation:
        """Registered instantiation, or abort compilation naming the missing pair."""
        found = self._cache.get((template_id, element))
        if found is None:
            er.raise_fatal("CE3001", filename=provenance,
                           instance=f"{template_id}<{element}>", owner=owner, provenance=provenance)
        return found

    def __contains__(self, key: Tuple[str, Type]) -> bool:
        return key in self._cache

    def __iter__(self) -> Iterator[TemplateInstantiation]:
        return iter(self._cache.values())

    def __len__(self) -> int:
        return len(self._cache)


__all__ = [
    "HookSymbols", "TRIVIAL_HOOKS", "STRING_HOOK_SYMBOLS",
    "TemplateInstantiation", "TemplateRegistry", "BUILTIN_RUNTIME",
]
