"""
tests/test_pipeline.py
Integration tests for GenerationPipeline against a real SQLite database.

Tests cover:
- Files written per artifact kind under the configured paths
- Connection-based observer directories
- Dry runs, table filters and unknown tables
- Abort-vs-skip error policy and the report summary
"""

from __future__ import annotations

import pathlib
from typing import List

import pytest

from modelgen.exceptions import ArtifactError, ConfigurationError, SchemaError
from modelgen.generator import GenerationOptions, GenerationPipeline, GenerationReport
from modelgen.models import Column, GeneratorConfig
from modelgen.templates import FactoryGenerator


def _relative(report: GenerationReport, root: pathlib.Path) -> List[str]:
    return sorted(f.path.relative_to(root).as_posix() for f in report.files)


# ===========================================================================
# Full runs
# ===========================================================================


class TestPipelineRun:

    def test_models_only(self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path) -> None:
        report = GenerationPipeline(sqlite_config).run(GenerationOptions(output_dir=output_dir))
        assert report.success is True
        assert report.tables_processed == ["comments", "post_tag", "posts", "users"]
        assert _relative(report, output_dir) == [
            "app/Models/Comment.php",
            "app/Models/Post.php",
            "app/Models/PostTag.php",
            "app/Models/User.php",
        ]
        for generated in report.files:
            assert generated.path.is_file()
            assert generated.bytes_written > 0
            assert generated.lines > 0

    def test_every_artifact(self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path) -> None:
        options = GenerationOptions(
            output_dir=output_dir,
            tables=("posts",),
            with_relationships=True,
            with_factories=True,
            with_rules=True,
            with_scopes=True,
            with_events=True,
            with_observers=True,
            with_resources=True,
            with_collections=True,
            with_policies=True,
        )
        report = GenerationPipeline(sqlite_config).run(options)
        assert _relative(report, output_dir) == [
            "app/Http/Resources/PostCollection.php",
            "app/Http/Resources/PostResource.php",
            "app/Models/Post.php",
            "app/Observers/Main/PostObserver.php",
            "app/Policies/PostPolicy.php",
            "database/factories/PostFactory.php",
        ]
        assert len(report.files_of_kind("model")) == 1

        model = (output_dir / "app/Models/Post.php").read_text(encoding="utf-8")
        assert "protected $connection = 'main';" in model
        assert "return $this->belongsTo(User::class, 'user_id', 'id');" in model
        assert "use HasFactory, SoftDeletes;" in model
        assert "public function scopeByUser($query, $id)" in model
        assert "public function handleRestored(): void" in model
        assert "'status' => 'draft'," in model

        observer = (output_dir / "app/Observers/Main/PostObserver.php").read_text(encoding="utf-8")
        assert "namespace App\\Observers\\Main;" in observer

        resource = (output_dir / "app/Http/Resources/PostResource.php").read_text(encoding="utf-8")
        assert "'user' => new UserResource($this->whenLoaded('user'))," in resource

    def test_implicit_foreign_key_target(
        self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path
    ) -> None:
        options = GenerationOptions(
            output_dir=output_dir, tables=("comments",), with_relationships=True
        )
        GenerationPipeline(sqlite_config).run(options)
        model = (output_dir / "app/Models/Comment.php").read_text(encoding="utf-8")
        assert "return $this->belongsTo(Post::class, 'post_id', 'id');" in model

    def test_unique_index_rule(self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path) -> None:
        options = GenerationOptions(output_dir=output_dir, tables=("users",), with_rules=True)
        GenerationPipeline(sqlite_config).run(options)
        model = (output_dir / "app/Models/User.php").read_text(encoding="utf-8")
        assert "'unique:users,email'" in model
        assert "protected $hidden" in model

    def test_compound_key_table(self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path) -> None:
        options = GenerationOptions(output_dir=output_dir, tables=("post_tag",), with_rules=True)
        GenerationPipeline(sqlite_config).run(options)
        model = (output_dir / "app/Models/PostTag.php").read_text(encoding="utf-8")
        assert "protected $primaryKey = ['post_id', 'tag_id'];" in model
        assert "public $incrementing = false;" in model
        assert "public static function rules(): array" in model
        assert "'post_id' =>" not in model
        assert "'tag_id' =>" not in model

    def test_observers_from_config(self, config_dict: dict, output_dir: pathlib.Path) -> None:
        config_dict["modelgen"]["observer_properties"] = {
            "generate_observers": True,
            "observer_connection_based": False,
        }
        config = GeneratorConfig.from_mapping(config_dict)
        report = GenerationPipeline(config).run(
            GenerationOptions(output_dir=output_dir, tables=("users",))
        )
        assert "app/Observers/UserObserver.php" in _relative(report, output_dir)

    def test_custom_paths(self, config_dict: dict, output_dir: pathlib.Path) -> None:
        config_dict["modelgen"]["model_path"] = "src/Entities"
        config = GeneratorConfig.from_mapping(config_dict)
        report = GenerationPipeline(config).run(
            GenerationOptions(output_dir=output_dir, tables=("users",))
        )
        assert _relative(report, output_dir) == ["src/Entities/User.php"]

    def test_dry_run_writes_nothing(
        self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path
    ) -> None:
        options = GenerationOptions(output_dir=output_dir, dry_run=True, with_factories=True)
        report = GenerationPipeline(sqlite_config).run(options)
        assert report.success is True
        assert report.total_files == 8
        assert all(f.bytes_written == 0 for f in report.files)
        assert not output_dir.exists()
        assert "(dry run)" in report.summary()

    def test_explicit_connection(self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path) -> None:
        config = sqlite_config.with_overrides(default_connection="other")
        report = GenerationPipeline(config).run(
            GenerationOptions(connection="main", output_dir=output_dir, tables=("users",))
        )
        assert report.connection == "main"


# ===========================================================================
# Failures
# ===========================================================================


class TestPipelineFailures:

    def test_unknown_table(self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path) -> None:
        options = GenerationOptions(output_dir=output_dir, tables=("users", "ghosts"))
        with pytest.raises(SchemaError, match="ghosts"):
            GenerationPipeline(sqlite_config).run(options)
        assert not output_dir.exists()

    def test_unknown_connection(self, sqlite_config: GeneratorConfig, output_dir: pathlib.Path) -> None:
        with pytest.raises(ConfigurationError):
            GenerationPipeline(sqlite_config).run(
                GenerationOptions(connection="nope", output_dir=output_dir)
            )

    def test_missing_database(self, tmp_path: pathlib.Path, output_dir: pathlib.Path) -> None:
        missing = tmp_path / "missing.sqlite"
        config = GeneratorConfig(
            default_connection="main",
            connections={"main": {"driver": "sqlite", "database": str(missing)}},
        )
        with pytest.raises(SchemaError) as excinfo:
            GenerationPipeline(config).run(GenerationOptions(output_dir=output_dir))
        assert excinfo.value.path == str(missing)
        assert not missing.exists()

    def test_no_tables(self, tmp_path: pathlib.Path, output_dir: pathlib.Path) -> None:
        empty = tmp_path / "empty.sqlite"
        empty.write_bytes(b"")
        config = GeneratorConfig(
            default_connection="main",
            connections={"main": {"driver": "sqlite", "database": str(empty)}},
        )
        with pytest.raises(SchemaError, match="No tables"):
            GenerationPipeline(config).run(GenerationOptions(output_dir=output_dir))

    @pytest.fixture()
    def failing_posts_factory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        original = FactoryGenerator.generate

        def _generate(self: FactoryGenerator, model_name: str, table_name: str, columns: List[Column]) -> str:
            if table_name == "posts":
                raise ArtifactError("factory stub unavailable")
            return original(self, model_name, table_name, columns)

        monkeypatch.setattr(FactoryGenerator, "generate", _generate)

    def test_failure_aborts_by_default(
        self,
        sqlite_config: GeneratorConfig,
        output_dir: pathlib.Path,
        failing_posts_factory: None,
    ) -> None:
        options = GenerationOptions(output_dir=output_dir, with_factories=True)
        with pytest.raises(ArtifactError, match="factory stub unavailable"):
            GenerationPipeline(sqlite_config).run(options)
        assert not (output_dir / "app/Models/User.php").exists()

    def test_skip_failed_tables(
        self,
        sqlite_config: GeneratorConfig,
        output_dir: pathlib.Path,
        failing_posts_factory: None,
    ) -> None:
        options = GenerationOptions(
            output_dir=output_dir, with_factories=True, skip_failed_tables=True
        )
        report = GenerationPipeline(sqlite_config).run(options)
        assert report.success is False
        assert report.skipped_tables == ["posts"]
        assert report.tables_processed == ["comments", "post_tag", "users"]
        assert report.errors == ["posts: factory stub unavailable"]
        assert not (output_dir / "app/Models/Post.php").exists()
        assert (output_dir / "app/Models/User.php").is_file()

        summary = report.summary()
        assert "FAILED" in summary
        assert "Skipped Tables (1):" in summary
        assert "x posts: factory stub unavailable" in summary
