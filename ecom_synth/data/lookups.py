"""
Lookup Index

Parent -> children maps built as the pipeline runs. Stages receive a
read-only LookupIndex snapshot and return a LookupAccumulator with the
entries they add; the orchestrator merges the two into the next snapshot.
"""

from collections import defaultdict
from types import MappingProxyType
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional

from ecom_synth.exceptions import PipelineError


class LookupAccumulator:
    """
    Append-only builder for the lookup entries one stage produces.

    ``append`` groups values under a key (1:N); ``put`` stores a single value
    (1:1) and refuses to overwrite an existing key.
    """

    def __init__(self):
        self._grouped: Dict[str, Dict[Hashable, List[Any]]] = defaultdict(lambda: defaultdict(list))
        self._single: Dict[str, Dict[Hashable, Any]] = defaultdict(dict)

    def append(self, lookup: str, key: Hashable, value: Any) -> None:
        self._grouped[lookup][key].append(value)

    def ensure(self, lookup: str, key: Hashable) -> None:
        """Register a key with no children yet"""
        self._grouped[lookup][key]

    def declare(self, lookup: str) -> None:
        """Make sure a lookup exists even when the stage added no entries"""
        if lookup not in self._grouped and lookup not in self._single:
            self._single[lookup] = {}

    def put(self, lookup: str, key: Hashable, value: Any) -> None:
        table = self._single[lookup]
        if key in table:
            raise PipelineError(f"Lookup '{lookup}' already has an entry for {key!r}")
        table[key] = value

    @property
    def names(self) -> List[str]:
        return sorted(set(self._grouped) | set(self._single))

    def freeze(self) -> Dict[str, Mapping[Hashable, Any]]:
        frozen: Dict[str, Mapping[Hashable, Any]] = {}
        for name, groups in self._grouped.items():
            frozen[name] = MappingProxyType({key: tuple(values) for key, values in groups.items()})
        for name, table in self._single.items():
            if name in frozen:
                raise PipelineError(f"Lookup '{name}' mixes grouped and single entries")
            frozen[name] = MappingProxyType(dict(table))
        return frozen


class LookupIndex:
    """Immutable snapshot of every lookup produced so far"""

    def __init__(self, tables: Optional[Mapping[str, Mapping[Hashable, Any]]] = None):
        self._tables: Mapping[str, Mapping[Hashable, Any]] = MappingProxyType(dict(tables or {}))

    def __contains__(self, name: str) -> bool:
        return name in self._tables

    @property
    def names(self) -> List[str]:
        return list(self._tables)

    def table(self, name: str) -> Mapping[Hashable, Any]:
        try:
            return self._tables[name]
        except KeyError:
            raise PipelineError(f"Lookup '{name}' has not been built yet") from None

    def get(self, name: str, key: Hashable, default: Any = None) -> Any:
        return self.table(name).get(key, default)

    def children(self, name: str, key: Hashable) -> tuple:
        """Grouped children of a key; empty when the key has none"""
        return self.table(name).get(key, ())

    def require(self, name: str, key: Hashable) -> Any:
        """Single entry that must exist"""
        table = self.table(name)
        if key not in table:
            raise PipelineError(f"Lookup '{name}' has no entry for {key!r}")
        return table[key]

    def merged(self, accumulator: LookupAccumulator) -> "LookupIndex":
        """New snapshot with the accumulator's lookups added"""
        additions = accumulator.freeze()
        clashes = set(additions) & set(self._tables)
        if clashes:
            raise PipelineError(f"Lookups built twice: {sorted(clashes)}")
        return LookupIndex({**self._tables, **additions})

    def restricted(self, names: Iterable[str]) -> "LookupIndex":
        """View exposing only the given lookups"""
        names = list(names)
        missing = [name for name in names if name not in self._tables]
        if missing:
            raise PipelineError(f"Lookups not yet built: {missing}")
        return LookupIndex({name: self._tables[name] for name in names})
