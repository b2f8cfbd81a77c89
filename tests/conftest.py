import base64
import os
import sys
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


@pytest.fixture(autouse=True)
def clear_algolens_env(monkeypatch):
    for key in list(os.environ.keys()):
        if key.startswith("ALGOLENS_"):
            monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def jpeg_b64():
    """A tiny real JPEG, base64-encoded without a data URI prefix."""
    buf = BytesIO()
    Image.new("RGB", (8, 8), (200, 120, 40)).save(buf, format="JPEG")
    return base64.b64encode(buf.getvalue()).decode()
