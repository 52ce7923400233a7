import base64
from io import BytesIO

from PIL import Image


def image_to_data_url(data: bytes, max_size: int = 960) -> str:
    """Downscale a screenshot to reduce token usage and return it as a JPEG data URL."""
    img = Image.open(BytesIO(data)).convert("RGB")
    w, h = img.size
    if max(w, h) > max_size:
        scale = max_size / max(w, h)
        img = img.resize((int(w * scale), int(h * scale)), Image.LANCZOS)

    buf = BytesIO()
    img.save(buf, format="JPEG", quality=75)
    b64 = base64.b64encode(buf.getvalue()).decode("utf-8")
    return f"data:image/jpeg;base64,{b64}"
