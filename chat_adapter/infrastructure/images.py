"""图片相关的基础设施。

- extract_images: 从消息文本中拆出图片地址与剩余文本。
- ImageResolver: 把 URL（http/https 或 data URI）解析为 Image，失败抛 ImageError。
- ImageBuffer: 由调用方持有的图片收集器，适配层只负责追加。
"""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from io import BytesIO
from typing import Iterator, List, Optional, Tuple

import httpx
from PIL import Image as PILImage, UnidentifiedImageError

from chat_adapter.config.settings import settings
from chat_adapter.domain.exceptions import ImageError

# markdown 图片 | data URI | 以图片扩展名结尾的裸链接（普通 markdown 链接内的除外），按阅读顺序单次扫描
_IMAGE_RE = re.compile(
    r"!\[[^\]]*\]\(\s*(?P<markdown>[^\s)]+)\s*\)"
    r"|(?P<data>data:image/[a-zA-Z0-9.+-]+;base64,[A-Za-z0-9+/=]+)"
    r"|(?<!\]\()(?P<bare>https?://[^\s<>()\"']+?\.(?:png|jpe?g|gif|webp|bmp)(?:\?[^\s<>()\"']*)?)(?=[\s<>()\"']|$)",
    re.IGNORECASE,
)


def excerpt(text: str, length: int = 24, suffix: str = "...") -> str:
    """截断过长文本用于日志展示。"""

    if len(text) <= length:
        return text
    return text[:length] + suffix


def extract_images(content: str) -> Tuple[str, List[str]]:
    """从文本中提取图片地址，返回 (剩余文本, 按出现顺序去重后的 URL 列表)。

    识别三种形式：markdown 图片 ``![alt](url)``、``data:image/...;base64,...``
    以及以图片扩展名结尾的裸 http(s) 链接。
    """

    urls: List[str] = []

    def _take(match: "re.Match[str]") -> str:
        url = match.group("markdown") or match.group("data") or match.group("bare")
        if url not in urls:
            urls.append(url)
        return ""

    text = _IMAGE_RE.sub(_take, content)
    lines = [re.sub(r"[ \t]{2,}", " ", line).strip() for line in text.splitlines()]
    residual = re.sub(r"\n{3,}", "\n\n", "\n".join(lines))
    return residual.strip(), urls


@dataclass
class Image:
    """解析成功的图片。"""

    url: str
    mime_type: str
    width: int
    height: int
    size: int


class ImageResolver:
    """把图片地址解析为 Image。

    http(s) 地址通过 httpx 下载，data URI 直接 base64 解码，
    再交给 Pillow 读取格式与尺寸。
    """

    def __init__(self, cfg=settings):
        self._settings = cfg

    def resolve(self, url: str) -> Image:
        if url.startswith("data:"):
            data = self._decode_data_uri(url)
        elif url.startswith(("http://", "https://")):
            data = self._download(url)
        else:
            raise ImageError(code="IMAGE_UNSUPPORTED_SOURCE", message="unsupported image source")

        max_bytes = self._settings.image_max_bytes
        if len(data) > max_bytes:
            raise ImageError(code="IMAGE_TOO_LARGE", message=f"image exceeds {max_bytes} bytes")
        return self._probe(url, data)

    def _download(self, url: str) -> bytes:
        """流式下载，超过 image_max_bytes 立即中止。"""

        max_bytes = self._settings.image_max_bytes
        data = bytearray()
        try:
            with httpx.Client(
                timeout=self._settings.image_fetch_timeout,
                follow_redirects=True,
                trust_env=False,
            ) as client:
                with client.stream("GET", url) as resp:
                    if resp.status_code >= 400:
                        raise ImageError(
                            code="IMAGE_FETCH_ERROR",
                            message=f"image download failed with status {resp.status_code}",
                        )
                    for part in resp.iter_bytes():
                        data.extend(part)
                        if len(data) > max_bytes:
                            raise ImageError(code="IMAGE_TOO_LARGE", message=f"image exceeds {max_bytes} bytes")
        except httpx.RequestError as e:
            raise ImageError(code="IMAGE_FETCH_ERROR", message=str(e))
        return bytes(data)

    @staticmethod
    def _decode_data_uri(url: str) -> bytes:
        header, sep, payload = url.partition(",")
        if not sep or ";base64" not in header:
            raise ImageError(code="IMAGE_DECODE_ERROR", message="data uri is not base64 encoded")
        cleaned = "".join(payload.split())
        cleaned += "=" * (-len(cleaned) % 4)
        try:
            return base64.b64decode(cleaned, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ImageError(code="IMAGE_DECODE_ERROR", message=str(e))

    @staticmethod
    def _probe(url: str, data: bytes) -> Image:
        try:
            with PILImage.open(BytesIO(data)) as img:
                width, height = img.size
                mime_type = PILImage.MIME.get(img.format or "", "application/octet-stream")
        except (UnidentifiedImageError, OSError) as e:
            raise ImageError(code="IMAGE_DECODE_ERROR", message=str(e))
        return Image(url=url, mime_type=mime_type, width=width, height=height, size=len(data))


class ImageBuffer:
    """调用方持有的图片收集器（用于后续计费或清理），适配层只追加不读取。"""

    def __init__(self) -> None:
        self._images: List[Image] = []

    def add_image(self, image: Optional[Image]) -> None:
        if image is not None:
            self._images.append(image)

    @property
    def images(self) -> List[Image]:
        return list(self._images)

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[Image]:
        return iter(self._images)
