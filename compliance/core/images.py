"""
Image reference helpers shared by cluster, runtime and file checkers.
"""

from typing import Optional, Tuple

FLOATING_TAGS = {"latest"}


def split_image_reference(image: str) -> Tuple[str, Optional[str], Optional[str]]:
    """
    Разобрать ссылку на образ в (repository, tag, digest).

    Порт реестра ("registry:5000/app") не считается тегом: тег ищется
    только в последнем компоненте пути.

    Examples:
        "nginx"                      -> ("nginx", None, None)
        "nginx:1.25"                 -> ("nginx", "1.25", None)
        "registry:5000/app"          -> ("registry:5000/app", None, None)
        "app@sha256:abc"             -> ("app", None, "sha256:abc")
    """
    image = (image or "").strip()
    digest = None
    if "@" in image:
        image, digest = image.split("@", 1)

    slash = image.rfind("/")
    last_component = image[slash + 1:]
    if ":" in last_component:
        repository, tag = image.rsplit(":", 1)
        return repository, tag, digest

    return image, None, digest


def is_floating_image(image: str) -> bool:
    """Образ без тега, с тегом 'latest' или пустой (digest закрепляет версию)."""
    if not image or not image.strip():
        return True

    _, tag, digest = split_image_reference(image)
    if digest:
        return False
    if not tag:
        return True
    return tag.lower() in FLOATING_TAGS
