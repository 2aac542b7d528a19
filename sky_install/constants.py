"""Well-known resources and defaults."""

from __future__ import annotations

import os
from pathlib import Path

SCAII_HOME = Path(os.environ.get("SCAII_HOME") or os.path.expanduser("~/.scaii"))
CONFIG_FILENAME = "sky-install.json"

CLEAN_EXIT = 0
GET_FAILURE = 1

CORE_URL = "https://github.com/SCAII/SCAII"
CORE_NAME = "SCAII"

RTS_URL = "https://github.com/SCAII/Sky-RTS"
RTS_NAME = "Sky-RTS"

RESERVED_NAMES = frozenset({CORE_NAME, RTS_NAME})

DEFAULT_BRANCH = "master"

# Seconds; applies to connect/read of each HTTP request.
DEFAULT_TIMEOUT = 60.0

CLOSURE_LIB_NAME = "closure-library"
CLOSURE_LIB_URL = "https://github.com/google/closure-library/archive/v20171112.zip"
CLOSURE_LIB_BYTES = 7_032_575

PROTOBUF_JS_NAME = "protobuf-js"
PROTOBUF_JS_URL = (
    "https://github.com/google/protobuf/releases/download/v3.5.1/protobuf-js-3.5.1.zip"
)
PROTOBUF_JS_BYTES = 5_538_299

# Where the bundled libraries land inside the core checkout.
VIZ_JS_DIR = ("viz", "js")
