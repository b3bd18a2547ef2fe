"""Avatar Pin - generate avatar images and pin them with NFT metadata to IPFS."""

__version__ = "0.1.0"

from avatarpin.core.config import AvatarPinConfig, config
from avatarpin.core.pipeline import AvatarPipeline

__all__ = [
    "AvatarPinConfig",
    "AvatarPipeline",
    "config",
]
