"""Pytest configuration and shared fixtures."""

import logging
import os
import shutil
import tempfile

import pytest


@pytest.fixture
def temp_directory():
    """Create a temporary directory for testing."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def plugin_source(temp_directory):
    """Plugin development directory with manifest, docs and assets."""
    file_structure = {
        "main.go": "package main\n\nfunc main() {}\n",
        "manifest.json": '{"name": "auth", "version": "1.0.0"}\n',
        "docs.md": "# auth\n",
        "assets": {
            "logo.svg": "<svg/>",
            "css": {"style.css": "body {}"},
        },
        "LICENSE": "MIT\n",
    }

    source_dir = os.path.join(temp_directory, "src", "auth")

    def create_structure(base_path, structure):
        for name, content in structure.items():
            path = os.path.join(base_path, name)

            if isinstance(content, dict):
                os.makedirs(path, exist_ok=True)
                create_structure(path, content)
            else:
                os.makedirs(os.path.dirname(path), exist_ok=True)
                with open(path, "w", encoding="utf-8") as f:
                    f.write(content)

    create_structure(source_dir, file_structure)
    return source_dir


@pytest.fixture
def install_dir(temp_directory):
    """Empty installation root."""
    path = os.path.join(temp_directory, "inst")
    os.makedirs(path)
    return path


@pytest.fixture
def fake_toolchain():
    """subprocess.run replacement that records commands and writes the build output."""
    calls = []

    def run(command, **kwargs):
        calls.append(list(command))
        if "-o" in command:
            binary = command[command.index("-o") + 1]
            with open(binary, "w", encoding="utf-8") as f:
                f.write("#!/bin/sh\n")
        return None

    run.calls = calls
    return run


@pytest.fixture(autouse=True)
def isolate_filesystem(temp_directory, monkeypatch):
    """Isolate filesystem operations to temporary directory."""
    monkeypatch.chdir(temp_directory)
    return temp_directory


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers installed by setup_logging during CLI tests."""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if getattr(handler, "_cmsdev", False):
            root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)
