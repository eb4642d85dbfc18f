from dataclasses import dataclass, replace
from typing import Optional

from docker_api.core.errors import ValidationError

LATEST_TAG = "latest"
DOCKER_HUB = "docker.io"


@dataclass(frozen=True)
class ImageReference:
    repository: str
    tag: Optional[str] = None

    def with_tag(self, tag: str) -> "ImageReference":
        return replace(self, tag=tag)

    @property
    def registry_host(self) -> str:
        """
        Registry the repository lives on.

        The first path component is a registry host only when it looks like
        one (has a dot or a port, or is localhost); otherwise Docker Hub.
        """
        first, sep, _ = self.repository.partition("/")
        if sep and ("." in first or ":" in first or first == "localhost"):
            return first
        return DOCKER_HUB

    def __str__(self) -> str:
        if self.tag:
            return f"{self.repository}:{self.tag}"
        return self.repository


def parse_image_reference(raw: str) -> ImageReference:
    """
    Split an image string into repository and tag.

    Only a colon after the last "/" separates a tag, so a registry port
    (``host:5000/name``) stays part of the repository. Digests are dropped.
    """
    image = (raw or "").strip()
    image = image.split("@", 1)[0]

    slash = image.rfind("/")
    colon = image.rfind(":")
    if colon > slash:
        repository, tag = image[:colon], image[colon + 1:] or None
    else:
        repository, tag = image, None

    if not repository or repository.endswith("/"):
        raise ValidationError(f"Image reference '{raw}' has no repository")
    return ImageReference(repository=repository, tag=tag)


def replacement_image(raw: str) -> ImageReference:
    """The reference a recreate pulls: same repository, always ``latest``."""
    return parse_image_reference(raw).with_tag(LATEST_TAG)
