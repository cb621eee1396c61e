import json
import logging
from typing import Dict, List, Optional, Union
from redis import Redis
from pydantic import BaseModel

from ..models.metro import FleetStatistics, TrainInfo

logger = logging.getLogger(__name__)

POSITIONS_KEY = "train_positions"
STATISTICS_KEY = "fleet_statistics"
SNAPSHOT_EXPIRY = 3  # seconds
SOCKET_TIMEOUT = 0.5  # seconds, publishing runs on the event loop


class RedisService:
    """Publishes simulation snapshots to Redis for out-of-process readers."""

    def __init__(self, host: str = "localhost", port: int = 6379, client: Optional[Redis] = None):
        """Initialize Redis connection."""
        if client is not None:
            self.redis = client
            return

        try:
            self.redis = Redis(
                host=host,
                port=port,
                decode_responses=True,
                socket_connect_timeout=1,
                socket_timeout=SOCKET_TIMEOUT,
            )
            self.redis.ping()
            logger.info("Successfully connected to Redis")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {str(e)}. Snapshots will not be published.")
            self.redis = None

    @property
    def available(self) -> bool:
        return self.redis is not None

    def set_data(self, key: str, data: Union[Dict, List, BaseModel], expiry: Optional[int] = None) -> bool:
        """Set data in Redis with optional expiry in seconds."""
        if self.redis is None:
            return False

        try:
            if isinstance(data, BaseModel):
                data = data.model_dump()

            serialized = json.dumps(data)
            result = self.redis.set(key, serialized, ex=expiry)
            return bool(result)
        except Exception as e:
            logger.error(f"Error setting data in Redis: {str(e)}")
            return False

    def get_data(self, key: str) -> Optional[Union[Dict, List]]:
        """Get JSON data from Redis."""
        if self.redis is None:
            return None

        try:
            data = self.redis.get(key)

            if not data:
                return None

            return json.loads(data)
        except Exception as e:
            logger.error(f"Error getting data from Redis: {str(e)}")
            return None

    def delete_data(self, key: str) -> bool:
        """Delete data from Redis."""
        if self.redis is None:
            return False

        try:
            return bool(self.redis.delete(key))
        except Exception as e:
            logger.error(f"Error deleting data from Redis: {str(e)}")
            return False

    def publish_snapshot(self, trains: List[TrainInfo], statistics: FleetStatistics) -> bool:
        """Store the latest visible trains and statistics with a short expiry."""
        positions = self.set_data(
            POSITIONS_KEY,
            [train.model_dump() for train in trains],
            expiry=SNAPSHOT_EXPIRY,
        )
        stats = self.set_data(STATISTICS_KEY, statistics, expiry=SNAPSHOT_EXPIRY)
        return positions and stats

    def get_train_positions(self) -> Optional[List[TrainInfo]]:
        cached = self.get_data(POSITIONS_KEY)
        if not cached:
            return None
        return [TrainInfo.model_validate(item) for item in cached]

    def clear_snapshot(self) -> bool:
        """Remove the published snapshot so readers do not see a stopped simulation."""
        positions = self.delete_data(POSITIONS_KEY)
        stats = self.delete_data(STATISTICS_KEY)
        return positions or stats
