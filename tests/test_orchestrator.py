from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from docmd.converter import ConversionOutcome
from docmd.graph import GraphIntegrityError
from docmd.models import TargetKind, WorkContext
from docmd.orchestrator import (
    AmbiguousRootError,
    InputDocumentError,
    Orchestrator,
    RunMode,
    RunRequest,
    WorkspaceError,
    parse_package_spec,
)
from docmd.output import OutputLifecycle, OutputPathError
from tests._fixtures.doubles import RecordingConverter, StaticMetadataProvider
from tests._fixtures.metadata_builder import MetadataBuilder


def _orchestrator(
    tmp_path: Path,
    builder: MetadataBuilder,
    converter: RecordingConverter | None = None,
    *,
    output_dir: Path | None = None,
) -> tuple[Orchestrator, RecordingConverter, StaticMetadataProvider]:
    output_dir = output_dir or tmp_path / "out"
    converter = converter or RecordingConverter()
    provider = StaticMetadataProvider(builder.index())
    context = WorkContext(project_root=tmp_path, output_dir=output_dir)
    orchestrator = Orchestrator(
        context,
        converter,
        metadata_provider=provider,  # type: ignore[arg-type]
        lifecycle=OutputLifecycle(output_dir),
    )
    return orchestrator, converter, provider


@pytest.fixture
def single_crate(metadata_builder: MetadataBuilder) -> MetadataBuilder:
    app = metadata_builder.package("my-app", "0.1.0", root=True, member=True)
    serde_json = metadata_builder.package("serde_json", "1.0.117")
    serde = metadata_builder.package("serde", "1.0.200")
    criterion = metadata_builder.package("criterion", "0.5.1")
    metadata_builder.depend(app, serde_json)
    metadata_builder.depend(serde_json, serde)
    metadata_builder.depend(app, criterion, "dev")
    return metadata_builder


def test_current_crate_and_dependencies_are_documented(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    orchestrator, converter, provider = _orchestrator(tmp_path, single_crate)

    report = orchestrator.run(RunRequest())

    assert provider.calls == [tmp_path]
    assert converter.names == ["my-app", "serde", "serde_json"]
    assert converter.requests[0].spec == "my-app@0.1.0"
    assert converter.requests[0].package_dir == tmp_path / "out" / "my_app"
    assert [outcome.target.kind for outcome in report.dependencies] == [TargetKind.DEPENDENCY] * 2
    assert report.documented == ["my-app", "serde", "serde_json"]
    index_text = (tmp_path / "out" / "index.md").read_text(encoding="utf-8")
    assert "## Current Crate\n\n- [`my-app`](my_app/index.md)" in index_text
    assert "## Dependencies (2)" in index_text
    assert "criterion" not in index_text


def test_no_deps_documents_only_the_current_crate(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    orchestrator, converter, _ = _orchestrator(tmp_path, single_crate)

    report = orchestrator.run(RunRequest(include_dependencies=False))

    assert converter.names == ["my-app"]
    assert report.dependencies == []
    assert "Dependencies" not in report.render_summary()


def test_failed_current_crate_does_not_seed_dependencies(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    converter = RecordingConverter({"my-app": ConversionOutcome.failed("Failed to build 'my-app'")})
    orchestrator, _, _ = _orchestrator(tmp_path, single_crate, converter)

    report = orchestrator.run(RunRequest())

    assert converter.names == ["my-app"]
    assert report.failed == ["my-app"]
    assert report.index_path == tmp_path / "out" / "index.md"
    assert "Current Crate" not in report.index_path.read_text(encoding="utf-8")


def test_dependency_failures_do_not_stop_the_run(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    app = metadata_builder.package("app", root=True, member=True)
    for name in ("alpha", "beta", "gamma", "delta"):
        metadata_builder.depend(app, metadata_builder.package(name))
    converter = RecordingConverter(
        {
            "alpha": ConversionOutcome.failed("Failed to build 'alpha'"),
            "beta": ConversionOutcome.skipped("no library target found (binary-only crate)"),
            "gamma": RuntimeError("renderer crashed"),
        }
    )
    orchestrator, _, _ = _orchestrator(tmp_path, metadata_builder, converter)

    report = orchestrator.run(RunRequest())

    assert converter.names == ["app", "alpha", "beta", "delta", "gamma"]
    assert report.documented == ["app", "delta"]
    assert report.skipped == ["beta"]
    assert report.failed == ["alpha", "gamma"]
    assert report.dependencies[-1].detail == "renderer crashed"
    index_text = report.index_path.read_text(encoding="utf-8")
    assert "## Dependencies (1)" in index_text
    assert "delta" in index_text and "alpha" not in index_text


def test_workspace_members_share_deduplicated_dependencies(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    web = metadata_builder.package("web", member=True)
    core = metadata_builder.package("core", member=True)
    serde = metadata_builder.package("serde")
    regex = metadata_builder.package("regex")
    metadata_builder.depend(web, core)
    metadata_builder.depend(web, serde)
    metadata_builder.depend(core, serde)
    metadata_builder.depend(core, regex)
    orchestrator, converter, _ = _orchestrator(tmp_path, metadata_builder)

    report = orchestrator.run(RunRequest(mode=RunMode.WORKSPACE))

    assert converter.names == ["core", "web", "regex", "serde"]
    assert [outcome.target.kind for outcome in report.primary] == [TargetKind.WORKSPACE_MEMBER] * 2
    index_text = report.index_path.read_text(encoding="utf-8")
    assert "## Workspace Members (2)" in index_text
    assert "## Dependencies (2)" in index_text


def test_empty_workspace_is_rejected(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    metadata_builder.package("lonely", root=True)
    orchestrator, converter, _ = _orchestrator(tmp_path, metadata_builder)

    with pytest.raises(WorkspaceError):
        orchestrator.run(RunRequest(mode=RunMode.WORKSPACE))
    assert converter.requests == []


def test_virtual_root_cannot_document_current_crate(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    metadata_builder.package("member", member=True)
    orchestrator, converter, _ = _orchestrator(tmp_path, metadata_builder)

    with pytest.raises(AmbiguousRootError, match="--workspace"):
        orchestrator.run(RunRequest())
    with pytest.raises(AmbiguousRootError):
        orchestrator.run(RunRequest(mode=RunMode.DEPENDENCIES))
    assert converter.requests == []
    assert not (tmp_path / "out").exists()


def test_root_missing_from_packages_is_an_integrity_error(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    metadata_builder.package("app", member=True)
    metadata_builder.root = "path+file:///work/app#ghost@0.1.0"
    orchestrator, _, _ = _orchestrator(tmp_path, metadata_builder)

    with pytest.raises(GraphIntegrityError, match="not found"):
        orchestrator.run(RunRequest())


def test_deps_only_skips_the_current_crate(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    orchestrator, converter, _ = _orchestrator(tmp_path, single_crate)

    report = orchestrator.run(RunRequest(mode=RunMode.DEPENDENCIES))

    assert converter.names == ["serde", "serde_json"]
    assert report.primary == []
    assert "Current Crate" not in report.index_path.read_text(encoding="utf-8")


def test_explicit_packages_exclude_each_other_but_not_workspace(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    app = metadata_builder.package("app", root=True, member=True)
    tokio = metadata_builder.package("tokio", "1.37.0")
    mio = metadata_builder.package("mio", "0.8.11")
    bytes_ = metadata_builder.package("bytes", "1.6.0")
    helper = metadata_builder.package("helper", member=True)
    metadata_builder.depend(app, tokio)
    metadata_builder.depend(tokio, mio)
    metadata_builder.depend(tokio, bytes_)
    metadata_builder.depend(bytes_, helper)
    orchestrator, converter, _ = _orchestrator(tmp_path, metadata_builder)

    report = orchestrator.run(RunRequest(mode=RunMode.PACKAGES, packages=["tokio@1.37.0", "bytes"]))

    assert converter.names == ["tokio", "bytes", "helper", "mio"]
    assert [outcome.target.kind for outcome in report.primary] == [TargetKind.EXPLICIT] * 2
    index_text = report.index_path.read_text(encoding="utf-8")
    assert "## Workspace Members (2)" in index_text
    assert "## Dependencies (2)" in index_text


def test_unknown_explicit_package_is_attempted_by_name(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    converter = RecordingConverter({"not-a-dep": ConversionOutcome.failed("error: package `not-a-dep` not found")})
    orchestrator, _, _ = _orchestrator(tmp_path, single_crate, converter)

    report = orchestrator.run(RunRequest(mode=RunMode.PACKAGES, packages=["not-a-dep@2.0.0"], include_dependencies=False))

    assert converter.requests[0].spec == "not-a-dep@2.0.0"
    assert converter.requests[0].artifact_name == "not_a_dep"
    assert report.failed == ["not-a-dep"]


def test_explicit_packages_without_deps_are_listed_as_dependencies(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    orchestrator, converter, _ = _orchestrator(tmp_path, single_crate)

    report = orchestrator.run(RunRequest(mode=RunMode.PACKAGES, packages=["serde"], include_dependencies=False))

    assert converter.names == ["serde"]
    assert "## Dependencies (1)" in report.index_path.read_text(encoding="utf-8")


def test_output_path_file_fails_before_metadata(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    output = tmp_path / "out"
    output.write_text("", encoding="utf-8")
    orchestrator, converter, provider = _orchestrator(tmp_path, single_crate, output_dir=output)

    with pytest.raises(OutputPathError):
        orchestrator.run(RunRequest())
    assert provider.calls == []
    assert converter.requests == []


def test_legacy_layout_is_migrated(tmp_path: Path, single_crate: MetadataBuilder) -> None:
    legacy = tmp_path / "out" / "deps" / "serde"
    legacy.mkdir(parents=True)
    orchestrator, _, _ = _orchestrator(tmp_path, single_crate)

    orchestrator.run(RunRequest())

    assert not (tmp_path / "out" / "deps").exists()
    assert (tmp_path / "out" / "serde" / "index.md").exists()


def test_json_mode_renders_the_given_file(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    json_path = tmp_path / "my-lib.json"
    json_path.write_text("{}", encoding="utf-8")
    orchestrator, converter, provider = _orchestrator(tmp_path, metadata_builder)

    report = orchestrator.run(RunRequest(mode=RunMode.JSON, json_path=json_path))

    assert provider.calls == []
    assert converter.requests[0].input_path == json_path
    assert converter.requests[0].artifact_name == "my_lib"
    assert report.documented == ["my-lib"]
    assert "- [`my-lib`](my_lib/index.md)" in report.index_path.read_text(encoding="utf-8")


def test_json_mode_rejects_missing_and_directory_inputs(tmp_path: Path, metadata_builder: MetadataBuilder) -> None:
    orchestrator, converter, _ = _orchestrator(tmp_path, metadata_builder)

    with pytest.raises(InputDocumentError, match="JSON file not found"):
        orchestrator.run(RunRequest(mode=RunMode.JSON, json_path=tmp_path / "missing.json"))
    with pytest.raises(InputDocumentError, match="not a file"):
        orchestrator.run(RunRequest(mode=RunMode.JSON, json_path=tmp_path))
    assert converter.requests == []


@pytest.mark.parametrize(
    ("spec", "expected"),
    [
        ("serde", ("serde", None)),
        ("serde@1.0.200", ("serde", "1.0.200")),
        ("serde@", ("serde", None)),
    ],
)
def test_parse_package_spec(spec: str, expected: tuple) -> None:
    assert parse_package_spec(spec) == expected


def test_index_links_point_at_renamed_library_directories(
    tmp_path: Path,
    metadata_builder: MetadataBuilder,
    caplog: pytest.LogCaptureFixture,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr(logging.getLogger("docmd"), "propagate", True)
    caplog.set_level(logging.INFO, logger="docmd")
    app = metadata_builder.package("my-app", "0.1.0", root=True, member=True)
    htslib = metadata_builder.package("rust-htslib", "0.47.0", lib_name="htslib")
    metadata_builder.depend(app, htslib)
    orchestrator, _, _ = _orchestrator(tmp_path, metadata_builder)

    report = orchestrator.run(RunRequest())

    index_text = report.index_path.read_text(encoding="utf-8")
    links = re.findall(r"\]\(([^)]+)\)", index_text)
    assert links == ["my_app/index.md", "htslib/index.md"]
    for link in links:
        assert (tmp_path / "out" / link).is_file()
    assert f"✓ rust-htslib → {tmp_path / 'out' / 'htslib' / 'index.md'}" in caplog.text
