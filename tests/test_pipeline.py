from __future__ import annotations

from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from asset_patcher.cli import main
from asset_patcher.config import load_config
from asset_patcher.logging_utils import create_logger
from asset_patcher.migration import CleanupReport, MigrationFailure
from asset_patcher.pipeline import PatcherPipeline

TYPES = """
types:
  UnityEngine.Object: {}
  UnityEngine.Component: {base: UnityEngine.Object}
  UnityEngine.MonoBehaviour: {base: UnityEngine.Component}
  UnityEngine.Transform: {base: UnityEngine.Component}
  UnityEngine.GameObject: {base: UnityEngine.Object}
  UnityEngine.ScriptableObject: {base: UnityEngine.Object}
  Item: {base: UnityEngine.ScriptableObject}
  EnemyType: {base: UnityEngine.ScriptableObject}
  EnemyAI: {base: UnityEngine.MonoBehaviour}
  FlowermanAI: {base: EnemyAI}
  CrawlerAI: {base: EnemyAI}
assets:
  Flashlight.asset: Item
  Shovel.asset: Item
  Flowerman.asset: EnemyType
  Flowerman.prefab:
    type: UnityEngine.GameObject
    components: [UnityEngine.Transform, FlowermanAI]
  Crawler.prefab:
    type: UnityEngine.GameObject
    components: [UnityEngine.Transform, CrawlerAI]
"""


def _write(path: Path, text: str = "x") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


@pytest.fixture()
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.delenv("ASSET_PATCHER_MINIMAL_COPY", raising=False)
    monkeypatch.delenv("ASSET_PATCHER_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    source = tmp_path / "ripped"
    _write(source / "MonoBehaviour" / "Flashlight.asset", "light")
    _write(source / "MonoBehaviour" / "Shovel.asset", "dig")
    _write(source / "MonoBehaviour" / "Flowerman.asset", "enemy")
    _write(source / "PrefabInstance" / "Flowerman.prefab", "flowerman")
    _write(source / "PrefabInstance" / "Crawler.prefab", "crawler")
    _write(source / "AudioClip" / "Scream.ogg", "aaa")
    _write(source / "Scripts" / "Assembly-CSharp" / "EnemyAI.cs", "class EnemyAI {}")
    _write(tmp_path / "types.yaml", TYPES)
    cfg = tmp_path / "patcher.yaml"
    cfg.write_text(
        """
paths:
  source_root: ripped
  project_root: Game
  type_catalog: types.yaml
migration:
  emulate_case_insensitive: false
""",
        encoding="utf-8",
    )
    return cfg


def test_cli_migrate_sort_unsort(project: Path) -> None:
    game = project.parent / "Game"

    assert main(["--config", str(project), "migrate"]) == 0
    assert (game / "Audio" / "AudioClips" / "Scream.ogg").read_text(encoding="utf-8") == "aaa"
    assert (game / "MonoBehaviour" / "Shovel.asset").is_file()
    assert not (game / "Scripts").exists()

    assert main(["--config", str(project), "sort", "all"]) == 0
    assert (game / "MonoBehaviour" / "Item" / "Flashlight.asset").is_file()
    assert (game / "MonoBehaviour" / "Flowerman.asset").is_file()
    assert (game / "Prefabs" / "EnemyAI" / "Flowerman.prefab").is_file()
    assert (game / "Prefabs" / "EnemyAI" / "Crawler.prefab").is_file()

    assert main(["--config", str(project), "unsort", "all"]) == 0
    assert sorted(p.name for p in (game / "Prefabs").iterdir()) == ["Crawler.prefab", "Flowerman.prefab"]
    assert not (game / "MonoBehaviour" / "Item").exists()


def test_cli_minimal_copy_from_environment(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ASSET_PATCHER_MINIMAL_COPY", "true")

    assert main(["--config", str(project), "migrate"]) == 0

    game = project.parent / "Game"
    assert not (game / "Audio").exists()
    assert (game / "Prefabs" / "Crawler.prefab").is_file()


def test_cli_clear_keeps_libraries(project: Path) -> None:
    game = project.parent / "Game"
    _write(game / "Plugins" / "Game.dll", "binary")
    _write(game / "Stale" / "Old.asset", "old")

    assert main(["--config", str(project), "clear"]) == 0

    assert (game / "Plugins" / "Game.dll").is_file()
    assert not (game / "Stale" / "Old.asset").exists()


def test_cli_reports_config_and_source_errors(project: Path, tmp_path: Path) -> None:
    assert main(["--config", str(tmp_path / "missing.yaml"), "migrate"]) == 2

    broken = tmp_path / "broken.yaml"
    broken.write_text("paths: {source_root: nowhere, project_root: Game}\n", encoding="utf-8")
    assert main(["--config", str(broken), "migrate"]) == 2


def test_pipeline_plan_and_migration_report(project: Path) -> None:
    config = load_config(project)
    pipeline = PatcherPipeline.from_config(config, logger=create_logger(quiet=True))

    report = pipeline.migrate()

    assert report.ok
    assert report.excluded_categories == ["Scripts"]
    assert report.migrated_categories == ["AudioClip", "MonoBehaviour", "PrefabInstance"]

    plan = pipeline.plan("scriptable_objects")
    item = plan.group_for("Item")
    assert item is not None and item.needs_folder
    assert plan.destination_of(item.members[0]) == config.paths.project_root / "MonoBehaviour" / "Item"
    assert not plan.group_for("EnemyType").needs_folder
    pipeline.logger.close()


def test_cli_drop_removes_vendored_folder_before_migrating(project: Path) -> None:
    source = project.parent / "ripped"
    game = project.parent / "Game"
    _write(source / "MonoBehaviour" / "DunGen" / "Settings.asset", "vendored")
    _write(game / "MonoBehaviour" / "DunGen" / "Settings.asset", "stale")

    assert main(["--config", str(project), "migrate", "--drop", "MonoBehaviour/DunGen"]) == 0

    assert not (source / "MonoBehaviour" / "DunGen").exists()
    assert not (game / "MonoBehaviour" / "DunGen").exists()
    assert (game / "MonoBehaviour" / "Shovel.asset").is_file()


@pytest.mark.parametrize(
    "catalog_text",
    [None, "types: [unterminated\n", "types:\n  - Item\n"],
)
def test_cli_bad_type_catalog_is_a_config_error(
    project: Path, catalog_text: str | None, capsys: pytest.CaptureFixture[str]
) -> None:
    catalog = project.parent / "types.yaml"
    if catalog_text is None:
        catalog.unlink()
    else:
        catalog.write_text(catalog_text, encoding="utf-8")

    assert main(["--config", str(project), "sort", "all"]) == 2
    assert "error:" in capsys.readouterr().err


def test_cli_migrate_reports_failed_clear(project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    stuck = project.parent / "Game" / "locked.asset"

    def failing_clear(root, keep_suffixes):
        return CleanupReport(failures=[MigrationFailure(stuck, None, "permission denied")])

    monkeypatch.setattr("asset_patcher.pipeline.clear_destination", failing_clear)

    assert main(["--config", str(project), "migrate", "--clear"]) == 1
    assert (project.parent / "Game" / "MonoBehaviour" / "Shovel.asset").is_file()


MIXER = """--- !u!244 &1
AudioMixerEffectController:
  m_EffectName: Echo
  m_Bypass: 0
"""
SCRIPT_GUID = "abcdefabcdefabcdefabcdefabcdef12"


def _patchable_project(tmp_path: Path) -> Path:
    game = tmp_path / "Game"
    _write(game / "Scenes" / "MainMenu.unity")
    _write(game / "Scenes" / "InitSceneLaunchOptions.unity")
    _write(game / "Scenes" / "Levels" / "Level1.unity")
    _write(game / "Scripts" / "es3" / "ES3Defaults.cs.meta", f"fileFormatVersion: 2\nguid: {SCRIPT_GUID}\n")
    _write(
        game / "Resources" / "es3" / "ES3Defaults.asset",
        "  m_Script: {fileID: 11500000, guid: 00000000000000000000000000000000, type: 3}\n",
    )
    _write(game / "Audio" / "AudioMixerControllers" / "Diagetic.mixer", MIXER)
    cfg = tmp_path / "patch.yaml"
    cfg.write_text(
        "paths:\n  source_root: ripped\n  project_root: Game\n  scene_list: build/SceneList.txt\n",
        encoding="utf-8",
    )
    return cfg


def test_cli_patch_applies_post_migration_fixes(project: Path) -> None:
    tmp_path = project.parent
    cfg = _patchable_project(tmp_path)

    assert main(["--config", str(cfg), "patch"]) == 0

    assert (tmp_path / "build" / "SceneList.txt").read_text(encoding="utf-8").splitlines() == [
        "Scenes/InitSceneLaunchOptions.unity",
        "Scenes/Levels/Level1.unity",
        "Scenes/MainMenu.unity",
    ]
    asset = (tmp_path / "Game" / "Resources" / "es3" / "ES3Defaults.asset").read_text(encoding="utf-8")
    assert f"guid: {SCRIPT_GUID}" in asset
    mixer = (tmp_path / "Game" / "Audio" / "AudioMixerControllers" / "Diagetic.mixer").read_text(encoding="utf-8")
    assert "  m_Bypass: 1" in mixer.split("\n")


def test_patch_step_records_each_missing_input(project: Path) -> None:
    pipeline = PatcherPipeline.from_config(load_config(project), logger=create_logger(quiet=True))

    report = pipeline.patch()

    assert not report.ok
    assert len(report.failures) == 3
    assert report.scenes == []
    assert report.guid is None
    pipeline.logger.close()


def test_patch_follows_remapped_category_folders(project: Path) -> None:
    tmp_path = project.parent
    cfg = _patchable_project(tmp_path)
    (tmp_path / "Game" / "Scenes").rename(tmp_path / "Game" / "Maps")
    cfg.write_text(
        cfg.read_text(encoding="utf-8") + "migration:\n  mappings:\n    Scenes: Maps\n    AudioMixerController: Mixers\n",
        encoding="utf-8",
    )
    (tmp_path / "Game" / "Audio" / "AudioMixerControllers").rename(tmp_path / "Game" / "Mixers")
    pipeline = PatcherPipeline.from_config(load_config(cfg), logger=create_logger(quiet=True))

    report = pipeline.patch()

    assert report.ok
    assert report.scenes[0] == "Maps/InitSceneLaunchOptions.unity"
    assert report.bypassed_effects == 1
    pipeline.logger.close()
