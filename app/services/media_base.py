"""
Blog API — Abstract Media Host Interface
==========================================

What:  The contract BlogService relies on for storing images remotely.
Why:   Posts only keep the descriptor the host returns, so any host that can
       return {url, secure_url, public_id, width, height, format,
       resource_type} can replace Cloudinary without touching the services.

Implementations:
    - MediaService (media_service.py): Cloudinary
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class MediaHost(ABC):

    @abstractmethod
    async def upload_image(
        self,
        content: bytes,
        folder: str,
        public_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Compress and upload an image.

        Returns:
            Descriptor with at least url/secure_url, public_id, width, height,
            format and resource_type.

        Raises:
            MediaServiceError: compression or upload failed after retries
            CircuitBreakerOpenError: the host has been failing; call skipped
        """
        ...

    @abstractmethod
    async def delete_image(self, public_id: str) -> Dict[str, Any]:
        """Delete an image by public id; returns the host's status payload."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Lightweight reachability probe; never raises."""
        ...
