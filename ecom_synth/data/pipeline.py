"""
Stage Graph

Generation stages declare the collections and lookups they read and the
ones they produce. The Pipeline resolves the declarations into a
dependency order and hands each stage a context that only exposes what the
stage declared, so a missing or undeclared input fails loudly instead of
reading an empty collection.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ecom_synth.config.tables import ScaleProfile, SynthConfig
from ecom_synth.data.lookups import LookupAccumulator, LookupIndex
from ecom_synth.data.sampling import Sampler
from ecom_synth.exceptions import PipelineError

Record = Dict[str, Any]


@dataclass
class StageResult:
    """Output of one stage: new collections plus lookup entries"""
    collections: Dict[str, List[Record]]
    lookups: LookupAccumulator = field(default_factory=LookupAccumulator)


@dataclass
class StageContext:
    """Read-only inputs handed to a stage"""
    config: SynthConfig
    scale: ScaleProfile
    sampler: Sampler
    lookups: LookupIndex
    _collections: Mapping[str, Sequence[Record]]

    def collection(self, name: str) -> Sequence[Record]:
        try:
            return self._collections[name]
        except KeyError:
            raise PipelineError(f"Collection '{name}' was not declared as a stage input") from None


@dataclass(frozen=True)
class Stage:
    """
    One node of the generation graph.

    Attributes:
        name: Stage identifier used in logs
        produces: Collections this stage creates
        func: Callable taking a StageContext and returning a StageResult
        requires: Collections the stage reads
        uses_lookups: Lookups the stage reads
        builds_lookups: Lookups the stage adds
    """
    name: str
    produces: Tuple[str, ...]
    func: Callable[[StageContext], StageResult]
    requires: Tuple[str, ...] = ()
    uses_lookups: Tuple[str, ...] = ()
    builds_lookups: Tuple[str, ...] = ()


class Pipeline:
    """
    Dependency-ordered collection of stages.

    Example:
        pipeline = Pipeline(STAGES)
        for stage in pipeline.order:
            ...
    """

    def __init__(self, stages: Sequence[Stage]):
        self.stages = list(stages)
        self._collection_owner = self._index_owners(
            ((name, stage) for stage in self.stages for name in stage.produces), "Collection"
        )
        self._lookup_owner = self._index_owners(
            ((name, stage) for stage in self.stages for name in stage.builds_lookups), "Lookup"
        )
        self.order = self._resolve_order()

    @staticmethod
    def _index_owners(pairs, kind: str) -> Dict[str, Stage]:
        owners: Dict[str, Stage] = {}
        for name, stage in pairs:
            if name in owners:
                raise PipelineError(
                    f"{kind} '{name}' produced by both '{owners[name].name}' and '{stage.name}'"
                )
            owners[name] = stage
        return owners

    def _resolve_order(self) -> List[Stage]:
        deps: Dict[str, set] = {}

        for stage in self.stages:
            needed = set()
            for name in stage.requires:
                owner = self._collection_owner.get(name)
                if owner is None:
                    raise PipelineError(f"Stage '{stage.name}' requires unknown collection '{name}'")
                needed.add(owner.name)
            for name in stage.uses_lookups:
                owner = self._lookup_owner.get(name)
                if owner is None:
                    raise PipelineError(f"Stage '{stage.name}' uses unknown lookup '{name}'")
                needed.add(owner.name)
            needed.discard(stage.name)
            deps[stage.name] = needed

        # Kahn's algorithm, always taking the earliest-declared ready stage so
        # the order (and therefore the random stream) is stable across runs
        ordered: List[Stage] = []
        done: set = set()
        pending = list(self.stages)
        while pending:
            ready = next((s for s in pending if deps[s.name] <= done), None)
            if ready is None:
                raise PipelineError(
                    f"Stage dependency cycle among: {sorted(s.name for s in pending)}"
                )
            ordered.append(ready)
            done.add(ready.name)
            pending.remove(ready)
        return ordered

    @property
    def collection_names(self) -> List[str]:
        return [name for stage in self.order for name in stage.produces]

    def run_stage(
        self,
        stage: Stage,
        collections: Mapping[str, List[Record]],
        lookups: LookupIndex,
        config: SynthConfig,
        scale: ScaleProfile,
        sampler: Sampler,
    ) -> StageResult:
        """Execute a single stage against the data produced so far"""
        missing = [name for name in stage.requires if name not in collections]
        if missing:
            raise PipelineError(f"Stage '{stage.name}' is missing input collections: {missing}")

        context = StageContext(
            config=config,
            scale=scale,
            sampler=sampler,
            lookups=lookups.restricted(stage.uses_lookups),
            _collections={name: tuple(collections[name]) for name in stage.requires},
        )
        result = stage.func(context)

        produced = set(result.collections)
        if produced != set(stage.produces):
            raise PipelineError(
                f"Stage '{stage.name}' declared {sorted(stage.produces)} but returned {sorted(produced)}"
            )
        for name in stage.builds_lookups:
            result.lookups.declare(name)
        undeclared = set(result.lookups.names) - set(stage.builds_lookups)
        if undeclared:
            raise PipelineError(f"Stage '{stage.name}' built undeclared lookups: {sorted(undeclared)}")
        return result


def run_pipeline(
    pipeline: Pipeline,
    config: SynthConfig,
    scale: ScaleProfile,
    sampler: Sampler,
    on_stage_complete: Optional[Callable[[Stage, StageResult], None]] = None,
) -> Dict[str, List[Record]]:
    """Single forward pass over every stage"""
    collections: Dict[str, List[Record]] = {}
    lookups = LookupIndex()

    for stage in pipeline.order:
        result = pipeline.run_stage(stage, collections, lookups, config, scale, sampler)
        collections.update(result.collections)
        lookups = lookups.merged(result.lookups)
        if on_stage_complete is not None:
            on_stage_complete(stage, result)

    return collections
