import io

import pytest
from PIL import Image


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (32, 16), color="white").save(buffer, format="PNG")
    return buffer.getvalue()
