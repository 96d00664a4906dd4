"""Basic project scaffolding tests."""

import importlib


def test_package_importable() -> None:
    """Verify the top-level package is importable."""
    import battleboat  # noqa: F401  (import used to ensure availability)

    assert battleboat is not None


def test_submodules_exist() -> None:
    """All primary submodules should be importable."""
    modules = [
        "battleboat.engine",
        "battleboat.engine.game",
        "battleboat.ai",
        "battleboat.telemetry",
        "battleboat.stats",
        "battleboat.cli",
    ]

    for module in modules:
        assert importlib.import_module(module) is not None
