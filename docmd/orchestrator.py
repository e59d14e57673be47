"""Pipeline orchestration for current/workspace/packages/dependencies/json runs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .converter import ConversionRequest, ConversionStatus, DocConverter, RustdocConverter
from .graph import ClosureResolver, GraphIntegrityError, build_normal_dependency_graph
from .logging import PROGRESS, get_logger
from .master_index import INDEX_FILENAME, IndexSections, MasterIndexGenerator
from .metadata import MetadataIndex, MetadataProvider
from .models import (
    DocMdError,
    DocumentationTarget,
    ExclusionSet,
    OutcomeRecord,
    OutcomeStatus,
    PackageRecord,
    TargetKind,
    TransitiveDependencyMap,
    WorkContext,
    normalize_name,
)
from .output import OutputLifecycle
from .report import RunReport


class AmbiguousRootError(DocMdError):
    """Raised when a run needs a root package but the workspace is virtual."""


class WorkspaceError(DocMdError):
    """Raised when workspace mode is requested outside a workspace."""


class InputDocumentError(DocMdError):
    """Raised when an explicitly supplied rustdoc JSON file is unusable."""


_VIRTUAL_ROOT_HINT = (
    "Virtual workspaces have no root package.\n"
    "Use: docmd --workspace  (to document all workspace members)\n"
    "Or:  docmd -p <package>  (to document a specific package)"
)


class RunMode(str, Enum):
    CURRENT = "current"
    WORKSPACE = "workspace"
    PACKAGES = "packages"
    DEPENDENCIES = "dependencies"
    JSON = "json"


@dataclass(frozen=True)
class RunRequest:
    """What the caller asked docmd to document."""

    mode: RunMode = RunMode.CURRENT
    packages: Sequence[str] = ()
    include_dependencies: bool = True
    json_path: Optional[Path] = None


@dataclass
class RunPlan:
    """Targets and closure settings resolved before any conversion starts."""

    targets: List[DocumentationTarget]
    document_dependencies: bool
    workspace_exclusion: ExclusionSet = frozenset()
    dependency_roots: Tuple[str, ...] = ()
    explicit_as_members: bool = False


def parse_package_spec(spec: str) -> Tuple[str, Optional[str]]:
    """Split ``name@version`` into its parts; the version is optional."""
    name, separator, version = spec.partition("@")
    if separator and version:
        return name, version
    return name, None


class Orchestrator:
    """Coordinates metadata, closure resolution, conversion and indexing for one run."""

    def __init__(
        self,
        context: WorkContext,
        converter: DocConverter | None = None,
        *,
        metadata_provider: MetadataProvider | None = None,
        lifecycle: OutputLifecycle | None = None,
        index_generator: MasterIndexGenerator | None = None,
    ) -> None:
        self.context = context
        self.converter = converter or RustdocConverter()
        self.metadata_provider = metadata_provider or MetadataProvider()
        self.lifecycle = lifecycle or OutputLifecycle(context.output_dir)
        self.index_generator = index_generator or MasterIndexGenerator()
        self.logger = get_logger("orchestrator")

    def run(self, request: RunRequest) -> RunReport:
        """Execute ``request``; only precondition failures raise."""
        self.lifecycle.validate()

        if request.mode is RunMode.JSON:
            json_path = self._check_input_document(request.json_path)
            self.lifecycle.migrate_legacy_layout()
            return self._run_json(json_path)

        index = self.metadata_provider.load(self.context.project_root)
        context = self.context.with_target_dir(index.target_directory)
        graph = build_normal_dependency_graph(index)
        resolver = ClosureResolver(graph, index)
        plan = self.plan(index, request)

        self.lifecycle.migrate_legacy_layout()
        return self.execute(plan, index, resolver, context, mode=request.mode)

    # ------------------------------------------------------------------
    # Planning

    def plan(self, index: MetadataIndex, request: RunRequest) -> RunPlan:
        """Resolve the documentation targets for ``request`` against ``index``."""
        workspace_ids: ExclusionSet = frozenset(index.workspace_member_ids)

        if request.mode is RunMode.CURRENT:
            root = self._require_root(index, "document current crate")
            return RunPlan(
                targets=[DocumentationTarget.for_package(TargetKind.CURRENT, root)],
                document_dependencies=request.include_dependencies,
                workspace_exclusion=workspace_ids,
            )

        if request.mode is RunMode.WORKSPACE:
            members = sorted(index.workspace_members(), key=lambda package: package.name)
            if not members:
                raise WorkspaceError(
                    "Not in a workspace or workspace has no members.\n"
                    "The --workspace flag requires a Cargo workspace.\n"
                    "For single-crate projects, use: docmd (without --workspace)"
                )
            return RunPlan(
                targets=[DocumentationTarget.for_package(TargetKind.WORKSPACE_MEMBER, member) for member in members],
                document_dependencies=request.include_dependencies,
                workspace_exclusion=workspace_ids,
            )

        if request.mode is RunMode.PACKAGES:
            if not request.packages:
                raise DocMdError("No packages requested")
            targets = [self._explicit_target(index, spec) for spec in request.packages]
            # explicit requests document every dependency, workspace members included
            return RunPlan(
                targets=targets,
                document_dependencies=request.include_dependencies,
                explicit_as_members=request.include_dependencies,
            )

        if request.mode is RunMode.DEPENDENCIES:
            root = self._require_root(index, "document dependencies")
            return RunPlan(
                targets=[],
                document_dependencies=True,
                workspace_exclusion=workspace_ids,
                dependency_roots=(root.id,),
            )

        raise DocMdError(f"Unsupported run mode: {request.mode}")

    def _require_root(self, index: MetadataIndex, action: str) -> PackageRecord:
        if index.root_id is None:
            raise AmbiguousRootError(f"Cannot {action} from a virtual workspace root.\n{_VIRTUAL_ROOT_HINT}")
        root = index.root_package
        if root is None:
            raise GraphIntegrityError(f"Root package {index.root_id} not found in packages list")
        return root

    def _explicit_target(self, index: MetadataIndex, spec: str) -> DocumentationTarget:
        name, version = parse_package_spec(spec)
        package = index.find(name, version)
        if package is None:
            self.logger.debug("Package '%s' not found in metadata; documenting by name only", spec)
            return DocumentationTarget(kind=TargetKind.EXPLICIT, name=name, version=version)
        return DocumentationTarget.for_package(TargetKind.EXPLICIT, package)

    # ------------------------------------------------------------------
    # Execution

    def execute(
        self,
        plan: RunPlan,
        index: MetadataIndex,
        resolver: ClosureResolver,
        context: WorkContext,
        *,
        mode: RunMode = RunMode.CURRENT,
    ) -> RunReport:
        """Document the planned targets, then their combined dependencies."""
        report = RunReport(
            mode=mode.value,
            output_dir=context.output_dir,
            dependencies_requested=plan.document_dependencies,
        )

        if plan.targets:
            self.logger.info("Documenting %d target(s)...", len(plan.targets))
        report.primary = self._document_all(plan.targets, context)

        if plan.document_dependencies:
            dependencies = self.collect_dependencies(plan, report.primary, resolver, index)
            if dependencies:
                self.logger.info("Documenting %d unique dependencies...", len(dependencies))
                report.dependencies = self._document_all(dependencies, context)
            else:
                self.logger.info("No dependencies found")

        sections = IndexSections.from_outcomes(
            report.outcomes,
            explicit_as_members=plan.explicit_as_members and bool(report.dependencies),
        )
        report.index_path = self._write_index(sections)
        return report

    def collect_dependencies(
        self,
        plan: RunPlan,
        primary: Sequence[OutcomeRecord],
        resolver: ClosureResolver,
        index: MetadataIndex,
    ) -> List[DocumentationTarget]:
        """Union the closures of documented targets into one sorted, name-deduplicated list."""
        target_ids = {target.package_id for target in plan.targets if target.package_id is not None}
        roots: List[str] = [
            outcome.target.package_id
            for outcome in primary
            if outcome.documented and outcome.target.package_id is not None
        ]
        roots.extend(plan.dependency_roots)

        combined: TransitiveDependencyMap = {}
        for root in roots:
            exclusion = plan.workspace_exclusion | frozenset(target_ids - {root})
            combined.update(resolver.resolve(root, exclusion))

        primary_names = {target.name for target in plan.targets}
        dependencies: List[DocumentationTarget] = []
        for name, version in sorted(combined.items()):
            if name in primary_names:
                continue
            package = index.find(name, version)
            if package is None:
                dependencies.append(DocumentationTarget(kind=TargetKind.DEPENDENCY, name=name, version=version))
            else:
                dependencies.append(DocumentationTarget.for_package(TargetKind.DEPENDENCY, package))
        return dependencies

    def _document_all(
        self,
        targets: Sequence[DocumentationTarget],
        context: WorkContext,
    ) -> List[OutcomeRecord]:
        return [self._document(target, ConversionRequest.for_target(target, context)) for target in targets]

    def _document(self, target: DocumentationTarget, request: ConversionRequest) -> OutcomeRecord:
        self.logger.info("Generating docs for '%s'...", target.name)
        try:
            result = self.converter.convert(request)
        except Exception as exc:
            self.logger.debug("Converter raised for %s", target.spec, exc_info=True)
            outcome = OutcomeRecord.failed_target(target, str(exc) or exc.__class__.__name__)
        else:
            if result.status is ConversionStatus.SUCCESS:
                outcome = OutcomeRecord.documented_target(target)
            elif result.status is ConversionStatus.SKIPPED:
                outcome = OutcomeRecord.skipped_target(target, result.message or "nothing to document")
            else:
                outcome = OutcomeRecord.failed_target(target, result.message or "conversion failed")
        self._log_outcome(outcome, request)
        return outcome

    def _log_outcome(self, outcome: OutcomeRecord, request: ConversionRequest) -> None:
        if outcome.status is OutcomeStatus.DOCUMENTED:
            self.logger.info("  ✓ %s → %s", outcome.name, request.package_dir / INDEX_FILENAME, extra=PROGRESS)
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.logger.warning("  ⊘ %s skipped: %s", outcome.name, outcome.detail, extra=PROGRESS)
        else:
            self.logger.error("  ✗ Failed to document '%s': %s", outcome.name, outcome.detail, extra=PROGRESS)

    def _write_index(self, sections: IndexSections) -> Path:
        output_dir = self.lifecycle.ensure_root()
        index_path = self.index_generator.write(output_dir, sections)
        self.logger.info("Master index: %s", index_path)
        return index_path

    # ------------------------------------------------------------------
    # JSON mode

    @staticmethod
    def _check_input_document(json_path: Optional[Path]) -> Path:
        if json_path is None:
            raise InputDocumentError("JSON mode requires an input file")
        if not json_path.exists():
            raise InputDocumentError(f"JSON file not found: {json_path}")
        if not json_path.is_file():
            raise InputDocumentError(f"Path is not a file: {json_path}")
        return json_path

    def _run_json(self, json_path: Path) -> RunReport:
        name = json_path.stem
        if not name:
            raise InputDocumentError(f"Invalid JSON filename - could not extract crate name: {json_path}")
        target = DocumentationTarget(kind=TargetKind.EXPLICIT, name=name)
        request = ConversionRequest(
            name=name,
            version=None,
            artifact_name=normalize_name(name),
            context=self.context,
            input_path=json_path,
        )
        report = RunReport(mode=RunMode.JSON.value, output_dir=self.context.output_dir)
        report.primary = [self._document(target, request)]
        report.index_path = self._write_index(IndexSections.from_outcomes(report.primary))
        return report


__all__ = [
    "AmbiguousRootError",
    "InputDocumentError",
    "Orchestrator",
    "RunMode",
    "RunPlan",
    "RunRequest",
    "WorkspaceError",
    "parse_package_spec",
]
