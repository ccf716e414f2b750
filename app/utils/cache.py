"""
Redis cache for AI-generated quiz documents

Identical source material (same images in the same order, same text, same
model) maps to the same key, so a teacher re-uploading a worksheet does not
pay for a second Gemini call.
"""
import redis
import json
import logging
import hashlib
from typing import Any, Dict, List, Optional, Tuple
from app.config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "quizgen"


class CacheService:
    """
    Generation cache backed by Redis

    Redis is optional. When it cannot be reached at startup, or a call
    fails, the cache behaves as permanently empty.
    """

    def __init__(self, url: Optional[str] = None):
        self.redis_client = None
        try:
            client = redis.from_url(
                url or settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=5
            )
            client.ping()
            self.redis_client = client
            logger.info("Redis connection established; generation cache enabled")
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis unavailable ({str(e)}); generation cache disabled")

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    def generation_key(
        self,
        images: List[Tuple[bytes, str]],
        raw_text: str,
        model_name: str
    ) -> str:
        """Content hash of one generation request"""
        digest = hashlib.sha256(model_name.encode())
        for data, mime_type in images:
            digest.update(b"\x00image\x00")
            digest.update(mime_type.encode())
            digest.update(hashlib.sha256(data).digest())
        digest.update(b"\x00text\x00")
        digest.update(raw_text.strip().encode())
        return f"{KEY_PREFIX}:{digest.hexdigest()}"

    def get_generation(self, key: str) -> Optional[Dict[str, Any]]:
        """
        Previously generated document for key

        Returns:
            The cached document, or None on miss, outage or a corrupt entry
        """
        if not self.enabled:
            return None

        try:
            payload = self.redis_client.get(key)
        except redis.RedisError as e:
            logger.error(f"Generation cache read failed: {str(e)}")
            return None

        if payload is None:
            logger.info(f"Generation cache miss: {key}")
            return None

        try:
            document = json.loads(payload)
        except ValueError:
            logger.warning(f"Discarding unreadable generation cache entry: {key}")
            return None

        logger.info(f"Generation cache hit: {key}")
        return document if isinstance(document, dict) else None

    def store_generation(self, key: str, document: Dict[str, Any], ttl: Optional[int] = None) -> bool:
        """
        Remember a generated document

        Args:
            key: Key from generation_key()
            document: Raw model output (stored before validation)
            ttl: Seconds to keep it; defaults to GENERATION_CACHE_TTL

        Returns:
            True if the document was written
        """
        if not self.enabled:
            return False

        ttl = ttl or settings.GENERATION_CACHE_TTL
        try:
            self.redis_client.setex(key, ttl, json.dumps(document))
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Generation cache write failed: {str(e)}")
            return False

        logger.info(f"Generation cached: {key} (TTL: {ttl}s)")
        return True


# Global instance
cache_service = CacheService()
