from __future__ import annotations

import structlog

from ..core.errors import ProvisionError, RuntimeClientError, WaitTimeout
from ..core.settings import Settings
from ..core.waiting import Waiter
from ..runtime.client import RuntimeClient

log = structlog.get_logger(__name__)


class ImageProvisioner:
    def __init__(self, client: RuntimeClient, settings: Settings):
        self.client = client
        self.settings = settings

    def ensure(self, image: str, waiter: Waiter) -> None:
        """Make sure `image` is present locally, pulling it once if needed."""
        try:
            if self.client.image_exists(image):
                return
        except RuntimeClientError as e:
            raise ProvisionError(f"cannot inspect image {image}: {e}") from e

        log.info("image_pull", image=image)
        try:
            self.client.pull_image(image)
        except RuntimeClientError as e:
            raise ProvisionError(f"pull of {image} failed: {e}") from e

        def _present():
            try:
                return True if self.client.image_exists(image) else None
            except RuntimeClientError:
                # daemon may still be registering the layers
                return None

        try:
            waiter.poll(_present, self.settings.image_pull_timeout_s, f"image {image}")
        except WaitTimeout as e:
            raise ProvisionError(str(e)) from e
        log.info("image_ready", image=image)
