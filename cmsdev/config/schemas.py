"""Configuration file schema and defaults for cmsdev."""

import sys

CONFIG_FILENAME = "cmsdev.yml"

# Precompiled host binary, relative to the installation directory
if sys.platform.startswith("win"):
    DEFAULT_HOST_BINARY = "cms.exe"
else:
    DEFAULT_HOST_BINARY = "./cms"

_COMMAND = {
    "type": "array",
    "items": {"type": "string", "minLength": 1},
    "minItems": 1,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "layout": {
            "type": "object",
            "properties": {
                "content_dir": {"type": "string", "minLength": 1},
                "plugins_dir": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "files": {
            "type": "object",
            "properties": {
                "manifest": {"type": "string", "minLength": 1},
                "docs": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "commands": {
            "type": "object",
            "properties": {
                "generate": _COMMAND,
                "build": _COMMAND,
                "run": _COMMAND,
            },
            "additionalProperties": False,
        },
        "host": {
            "type": "object",
            "properties": {
                "binary": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
        "watch": {
            "type": "object",
            "properties": {
                "ignore": {"type": "array", "items": {"type": "string"}},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

DEFAULT_CONFIG = {
    "layout": {
        "content_dir": "content",
        "plugins_dir": "plugins",
    },
    "files": {
        "manifest": "manifest.json",
        "docs": "docs.md",
    },
    "commands": {
        "generate": ["go", "generate", "{entry}"],
        "build": ["go", "build", "-o", "{binary}", "{entry}"],
        "run": ["go", "run", "main.go"],
    },
    "host": {
        "binary": DEFAULT_HOST_BINARY,
    },
    "watch": {
        "ignore": [
            ".git",
            ".idea",
            ".vscode",
            "node_modules",
            "*.swp",
            "*~",
            ".DS_Store",
        ],
    },
}
